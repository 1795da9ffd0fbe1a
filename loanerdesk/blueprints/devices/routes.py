"""
Routes for the devices blueprint.

Kiosk users check devices in and out; admins register and remove
them.  An unknown tag scanned at checkout or check-in is registered
only at a school whose ``allowNewDevices`` setting is on, even for an
admin.
"""

import logging

from flask import jsonify, request
from flask_login import current_user, login_required

from loanerdesk.blueprints.devices import bp
from loanerdesk.decorators import admin_required
from loanerdesk.errors import DeviceNotFound
from loanerdesk.schemas import (
    BulkDeviceCreate,
    CheckinRequest,
    CheckoutRequest,
    DeviceCreate,
    load_request,
)
from loanerdesk.services import device_service, log_service

logger = logging.getLogger(__name__)


# =========================================================================
# Lookup
# =========================================================================


@bp.route("/<school_id>")
@login_required
def list_devices(school_id):
    """
    List a school's devices.

    Query parameters: ``status``, ``q`` (asset tag, serial, or holder
    substring), ``sort``, ``order``.
    """
    devices = device_service.get_devices_for_school(
        school_id,
        status=request.args.get("status"),
        search=request.args.get("q"),
        sort=request.args.get("sort"),
        direction=request.args.get("order"),
    )
    return jsonify([device.to_dict() for device in devices])


@bp.route("/tag/<asset_tag>")
@login_required
def get_device(asset_tag):
    """Return the device carrying ``asset_tag`` or 404."""
    return jsonify(device_service.get_device_by_asset_tag(asset_tag).to_dict())


@bp.route("/tag/<asset_tag>/history")
@login_required
@admin_required
def device_history(asset_tag):
    """Return every checkout and check-in logged for ``asset_tag``, newest first."""
    entries = log_service.get_logs_for_device(asset_tag)
    return jsonify([entry.to_dict() for entry in entries])


# =========================================================================
# Registration
# =========================================================================


@bp.route("", methods=["POST"])
@login_required
def create_device():
    """
    Register one device.

    Admins may register into any school; other users only into
    schools that allow new devices.
    """
    body = load_request(DeviceCreate)
    device = _register(body.asset_tag, body.model, body.school_id, body.serial)
    return jsonify({"id": device.id}), 201


@bp.route("/bulk", methods=["POST"])
@login_required
@admin_required
def create_devices_bulk():
    """
    Register a batch of scanned tags of one model for one school.

    Tags that fail (duplicates, mostly) are reported without stopping
    the batch.
    """
    body = load_request(BulkDeviceCreate)
    created, failed = device_service.register_many(
        body.asset_tags, body.model, body.school_id, user_id=current_user.id
    )
    return (
        jsonify(
            {
                "created": [device.to_dict() for device in created],
                "failed": [
                    {"assetTag": asset_tag, "error": message}
                    for asset_tag, message in failed
                ],
            }
        ),
        201,
    )


# =========================================================================
# Checkout / check-in
# =========================================================================


@bp.route("/<asset_tag>/checkout", methods=["POST"])
@login_required
def checkout(asset_tag):
    """
    Check a device out.

    Body: ``userName``, ``reason``, optional ``homeroomTeacher``.  When
    the tag is unknown and ``schoolId`` and ``model`` are supplied, the
    device is registered first.
    """
    body = load_request(CheckoutRequest)
    _ensure_registered(asset_tag, body.school_id, body.model)
    device_service.check_out(
        asset_tag,
        holder_name=body.user_name,
        reason=body.reason,
        homeroom_teacher=body.homeroom_teacher,
    )
    return jsonify({"success": True})


@bp.route("/<asset_tag>/checkin", methods=["POST"])
@login_required
def checkin(asset_tag):
    """
    Check a device back in.

    An unknown tag sent with ``schoolId`` and ``model`` is registered
    straight into the available pool; there is no checkout to close,
    so no log entry is written for it.
    """
    body = load_request(CheckinRequest, allow_empty=True)
    if _ensure_registered(asset_tag, body.school_id, body.model):
        return jsonify({"success": True, "registered": True})
    device_service.check_in(asset_tag)
    return jsonify({"success": True})


# =========================================================================
# Removal
# =========================================================================


@bp.route("/<device_id>", methods=["DELETE"])
@login_required
@admin_required
def delete_device(device_id):
    """Delete a device by id; its history stays in the log."""
    device_service.remove_device(device_id, user_id=current_user.id)
    return jsonify({"success": True})


# =========================================================================
# Helpers
# =========================================================================


def _register(asset_tag, model, school_id, serial=None):
    if current_user.is_admin:
        return device_service.register_device(
            asset_tag, model, school_id, serial=serial, user_id=current_user.id
        )
    return device_service.auto_register(
        asset_tag, model, school_id, serial=serial, user_id=current_user.id
    )


def _ensure_registered(asset_tag, school_id, model) -> bool:
    """
    Auto-register ``asset_tag`` if it is unknown and registration
    details were sent.  Admins get no bypass here: a scan only creates
    a device at a school that allows new devices.  Returns True when a
    device was created.

    Raises:
        DeviceNotFound: If the tag is unknown and no details were sent.
    """
    if device_service.find_device_by_asset_tag(asset_tag) is not None:
        return False
    if not (school_id and model):
        raise DeviceNotFound(f"Device not found: {asset_tag}")
    logger.info("Registering unknown tag %s scanned at %s", asset_tag, school_id)
    device_service.auto_register(asset_tag, model, school_id, user_id=current_user.id)
    return True
