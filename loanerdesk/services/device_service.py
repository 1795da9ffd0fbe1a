"""
Device service: the loaner device lifecycle.

A device is either ``available`` or ``checked_out``.  ``check_out``
and ``check_in`` are the only transitions; each one is a single
transaction holding a guarded ``UPDATE ... WHERE status = <expected>``
plus exactly one ``device_logs`` insert, so either both rows change or
neither does.  A zero row count on the guarded update means another
request won the race and is reported as the matching conflict.

Registration creates ``available`` devices; removal is an unconditional
delete that leaves the device's log history in place.
"""

import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from loanerdesk.constants import (
    ACTION_CHECKIN,
    ACTION_CHECKOUT,
    DEVICE_STATUSES,
    DEVICE_TYPES,
    STATUS_AVAILABLE,
    STATUS_CHECKED_OUT,
    UNKNOWN_HOLDER,
)
from loanerdesk.errors import (
    AlreadyAvailable,
    AlreadyCheckedOut,
    AutoRegistrationDisabled,
    ConflictError,
    DeviceNotFound,
    DuplicateAssetTag,
    LoanerDeskError,
    ValidationError,
)
from loanerdesk.extensions import db
from loanerdesk.models.device import Device, DeviceLog
from loanerdesk.services import audit_service, query_helpers, school_service
from loanerdesk.timeutil import utcnow

logger = logging.getLogger(__name__)

_SORTABLE = {
    "assetTag": Device.asset_tag,
    "model": Device.model,
    "status": Device.status,
    "serial": Device.serial,
    "assignedTo": Device.assigned_to_name,
    "assignedAt": Device.assigned_at,
    "createdAt": Device.created_at,
    "updatedAt": Device.updated_at,
}


# =========================================================================
# Lookups
# =========================================================================


def find_device_by_asset_tag(asset_tag: str) -> Device | None:
    """Return the device with this asset tag, or None."""
    return Device.query.filter_by(asset_tag=asset_tag).first()


def get_device_by_asset_tag(asset_tag: str) -> Device:
    """
    Return the device with this asset tag.

    Raises:
        DeviceNotFound: If no device carries the tag.
    """
    device = find_device_by_asset_tag(asset_tag)
    if device is None:
        raise DeviceNotFound(f"Device not found: {asset_tag}")
    return device


def get_device_by_id(device_id: str) -> Device:
    """Return a device by primary key, raising ``DeviceNotFound``."""
    device = db.session.get(Device, device_id)
    if device is None:
        raise DeviceNotFound()
    return device


def get_devices_for_school(
    school_id: str,
    status: str | None = None,
    search: str | None = None,
    sort: str | None = None,
    direction: str | None = None,
) -> list[Device]:
    """
    List a school's devices.

    Args:
        school_id: Owning school.
        status:    Optional exact status filter.
        search:    Optional substring matched against asset tag,
                   serial, and current holder name.
        sort:      Comma-separated fields (see ``_SORTABLE``);
                   defaults to newest first.
        direction: ``asc`` or ``desc``.

    Raises:
        SchoolNotFound:  If the school does not exist.
        ValidationError: On an unknown status or sort field.
    """
    school_service.get_school(school_id)

    if status and status not in DEVICE_STATUSES:
        raise ValidationError(f"Unknown device status: {status}")

    query = Device.query.filter(Device.school_id == school_id)
    query = query_helpers.equals(query, Device.status, status)
    if search:
        query = query.filter(
            query_helpers.ilike_any(
                (Device.asset_tag, Device.serial, Device.assigned_to_name), search
            )
        )
    query = query_helpers.apply_sort(
        query, _SORTABLE, sort, direction, default=("createdAt",), tiebreaker=Device.id
    )
    return query.all()


# =========================================================================
# Lifecycle transitions
# =========================================================================


def check_out(
    asset_tag: str,
    holder_name: str,
    reason: str,
    homeroom_teacher: str | None = None,
) -> Device:
    """
    Check an available device out to ``holder_name``.

    Args:
        asset_tag:        Barcode of the device being handed out.
        holder_name:      Student or staff member receiving it.
        reason:           Checkout reason code.
        homeroom_teacher: Optional homeroom teacher of a student holder.

    Returns:
        The updated device.

    Raises:
        DeviceNotFound:    If no device carries the tag.
        AlreadyCheckedOut: If the device is not available.
    """
    device = _lock_device(asset_tag)
    if device.status != STATUS_AVAILABLE:
        _abort(AlreadyCheckedOut(f"Device {asset_tag} is already checked out"))

    now = utcnow()
    result = db.session.execute(
        update(Device)
        .where(Device.id == device.id, Device.status == STATUS_AVAILABLE)
        .values(
            status=STATUS_CHECKED_OUT,
            assigned_to_name=holder_name,
            assigned_at=now,
            assigned_reason=reason,
            homeroom_teacher=homeroom_teacher,
            updated_at=now,
        )
    )
    if result.rowcount != 1:
        _abort(AlreadyCheckedOut(f"Device {asset_tag} is already checked out"))

    db.session.add(
        DeviceLog(
            device_id=device.id,
            asset_tag=device.asset_tag,
            action=ACTION_CHECKOUT,
            user_name=holder_name,
            reason=reason,
            homeroom_teacher=homeroom_teacher,
            timestamp=now,
            school_id=device.school_id,
        )
    )
    _commit()

    logger.info(
        "Checked out %s to %s (reason=%s, school=%s)",
        asset_tag,
        holder_name,
        reason,
        device.school_id,
    )
    return device


def check_in(asset_tag: str) -> Device:
    """
    Return a checked-out device to the available pool.

    The log entry records the holder who returned it; a checked-out row
    with no holder name is logged as ``"Unknown"``.

    Raises:
        DeviceNotFound:   If no device carries the tag.
        AlreadyAvailable: If the device is not checked out.
    """
    device = _lock_device(asset_tag)
    if device.status != STATUS_CHECKED_OUT:
        _abort(AlreadyAvailable(f"Device {asset_tag} is already checked in"))

    holder_name = device.assigned_to_name or UNKNOWN_HOLDER
    now = utcnow()
    result = db.session.execute(
        update(Device)
        .where(Device.id == device.id, Device.status == STATUS_CHECKED_OUT)
        .values(
            status=STATUS_AVAILABLE,
            assigned_to_name=None,
            assigned_at=None,
            assigned_reason=None,
            homeroom_teacher=None,
            updated_at=now,
        )
    )
    if result.rowcount != 1:
        _abort(AlreadyAvailable(f"Device {asset_tag} is already checked in"))

    db.session.add(
        DeviceLog(
            device_id=device.id,
            asset_tag=device.asset_tag,
            action=ACTION_CHECKIN,
            user_name=holder_name,
            timestamp=now,
            school_id=device.school_id,
        )
    )
    _commit()

    logger.info("Checked in %s from %s", asset_tag, holder_name)
    return device


def _lock_device(asset_tag: str) -> Device:
    """Load a device for update inside the current transaction."""
    device = (
        Device.query.filter_by(asset_tag=asset_tag).with_for_update().first()
    )
    if device is None:
        _abort(DeviceNotFound(f"Device not found: {asset_tag}"))
    return device


def _abort(error: LoanerDeskError):
    """Roll back the open transaction and raise ``error``."""
    db.session.rollback()
    raise error


def _commit() -> None:
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise


# =========================================================================
# Registration and removal
# =========================================================================


def register_device(
    asset_tag: str,
    model: str,
    school_id: str,
    serial: str | None = None,
    user_id: int | None = None,
) -> Device:
    """
    Register a new, available device.

    Args:
        asset_tag: Barcode label; must be unique across every school.
        model:     Device type key (see ``constants.DEVICE_TYPES``).
        school_id: Owning school (permanent).
        serial:    Optional manufacturer serial number.
        user_id:   ID of the user registering the device.

    Raises:
        DuplicateAssetTag: If the tag is already registered anywhere.
        SchoolNotFound:    If the school does not exist.
        ValidationError:   On an unknown model.
    """
    if model not in DEVICE_TYPES:
        raise ValidationError(f"Unknown device model: {model}")
    school_service.get_school(school_id)

    if find_device_by_asset_tag(asset_tag) is not None:
        raise DuplicateAssetTag(f"Device already exists: {asset_tag}")

    device = Device(
        asset_tag=asset_tag,
        model=model,
        school_id=school_id,
        serial=serial or None,
        status=STATUS_AVAILABLE,
    )
    db.session.add(device)
    try:
        db.session.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same tag.
        db.session.rollback()
        raise DuplicateAssetTag(f"Device already exists: {asset_tag}") from exc

    audit_service.log_change(
        user_id=user_id,
        action_type="CREATE",
        entity_type="devices",
        entity_id=device.id,
        new_value={
            "assetTag": asset_tag,
            "model": model,
            "schoolId": school_id,
            "serial": serial,
        },
    )
    _commit()

    logger.info("Registered device %s (%s) at %s", asset_tag, model, school_id)
    return device


def auto_register(
    asset_tag: str,
    model: str,
    school_id: str,
    serial: str | None = None,
    user_id: int | None = None,
) -> Device:
    """
    Register an unknown tag scanned at a kiosk, if the school allows it.

    Raises:
        AutoRegistrationDisabled: If the school's ``allow_new_devices``
                                  flag is off.
    """
    school = school_service.get_school(school_id)
    if not school.allow_new_devices:
        logger.warning(
            "Auto-registration of %s refused: disabled for school %s",
            asset_tag,
            school_id,
        )
        raise AutoRegistrationDisabled()
    return register_device(asset_tag, model, school_id, serial=serial, user_id=user_id)


def register_many(
    asset_tags: list[str],
    model: str,
    school_id: str,
    user_id: int | None = None,
) -> tuple[list[Device], list[tuple[str, str]]]:
    """
    Register a batch of scanned tags of one model for one school.

    Each tag commits on its own; a duplicate or invalid tag is reported
    and the rest of the batch continues.

    Returns:
        ``(created_devices, [(asset_tag, error_message), ...])``.
    """
    created: list[Device] = []
    failed: list[tuple[str, str]] = []

    for asset_tag in asset_tags:
        try:
            created.append(
                register_device(asset_tag, model, school_id, user_id=user_id)
            )
        except (ConflictError, ValidationError) as exc:
            failed.append((asset_tag, exc.message))

    logger.info(
        "Bulk registration at %s: %d created, %d failed",
        school_id,
        len(created),
        len(failed),
    )
    return created, failed


def remove_device(device_id: str, user_id: int | None = None) -> None:
    """
    Delete a device regardless of its status.

    ``device_logs`` rows for the device are kept; their ``device_id``
    simply no longer resolves.

    Raises:
        DeviceNotFound: If no device has this id.
    """
    device = get_device_by_id(device_id)
    snapshot = device.to_dict()
    if device.is_checked_out:
        logger.warning(
            "Removing device %s while checked out to %s",
            device.asset_tag,
            device.assigned_to_name,
        )

    db.session.delete(device)
    audit_service.log_change(
        user_id=user_id,
        action_type="DELETE",
        entity_type="devices",
        entity_id=device_id,
        previous_value=snapshot,
    )
    _commit()

    logger.info("Removed device %s (%s)", snapshot["assetTag"], device_id)
