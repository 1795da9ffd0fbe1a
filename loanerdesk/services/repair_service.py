"""
Repair service: repair ticket submission and listing.

A repair request is forwarded to the Operations Hero helpdesk first;
the local ``repair_tickets`` row is written only after the helpdesk
returns a ticket id.  A rejected or failed submission leaves no local
trace.  The repair itself is not a device state: the student or staff
member usually leaves with a loaner through an ordinary checkout.
"""

import logging

from loanerdesk.constants import (
    ISSUE_TYPES,
    REPAIR_DEVICE_TYPES,
    TICKET_OPEN,
    TICKET_STATUSES,
)
from loanerdesk.errors import ValidationError
from loanerdesk.extensions import db
from loanerdesk.models.repair import RepairTicket
from loanerdesk.services import query_helpers, school_service
from loanerdesk.services.operations_hero_client import OperationsHeroClient

logger = logging.getLogger(__name__)

_SORTABLE = {
    "createdAt": RepairTicket.created_at,
    "fullName": RepairTicket.full_name,
    "deviceBarcode": RepairTicket.device_barcode,
    "deviceType": RepairTicket.device_type,
    "issueType": RepairTicket.issue_type,
    "schoolId": RepairTicket.school_id,
    "status": RepairTicket.status,
}


def build_summary(
    device_type: str,
    device_barcode: str,
    issue_type: str,
    full_name: str,
    is_staff: bool,
    notes: str | None = None,
) -> str:
    """
    Compose the helpdesk summary text.

    Example::

        Device Type: chromebook
        Serial/Asset Tag: CB-001
        Issue: broken-screen
        Submitted By: Jane Doe (Student)

        Submitted via Device Checkout Kiosk
    """
    parts = [
        f"Device Type: {device_type}",
        f"Serial/Asset Tag: {device_barcode}",
        f"Issue: {issue_type}",
        f"Submitted By: {full_name} ({'Staff' if is_staff else 'Student'})",
    ]
    if notes:
        parts.append(f"Additional Notes: {notes}")
    parts.append("\nSubmitted via Device Checkout Kiosk")
    return "\n".join(parts)


def submit_repair_ticket(
    school_id: str,
    device_type: str,
    full_name: str,
    issue_type: str,
    device_barcode: str,
    notes: str | None = None,
    is_staff: bool = False,
    client: OperationsHeroClient | None = None,
) -> RepairTicket:
    """
    File a repair request with the helpdesk and mirror it locally.

    Args:
        school_id:      School the device belongs to.
        device_type:    One of ``constants.REPAIR_DEVICE_TYPES``.
        full_name:      Person reporting the problem.
        issue_type:     Issue code (see ``constants.ISSUE_TYPES``).
        device_barcode: Asset tag or serial of the broken device.
        notes:          Optional free text.
        is_staff:       True for staff devices, False for students.
        client:         Helpdesk client; a new ``OperationsHeroClient``
                        is created when omitted.

    Returns:
        The persisted RepairTicket.

    Raises:
        ValidationError:        On missing fields or an unmapped school.
        SchoolNotFound:         If the school does not exist locally.
        TicketSubmissionFailed: If the helpdesk did not accept the ticket.
    """
    full_name = (full_name or "").strip()
    issue_type = (issue_type or "").strip()
    device_barcode = (device_barcode or "").strip()
    notes = (notes or "").strip() or None

    missing = [
        label
        for label, value in (
            ("fullName", full_name),
            ("issueType", issue_type),
            ("deviceBarcode", device_barcode),
        )
        if not value
    ]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")
    if device_type not in REPAIR_DEVICE_TYPES:
        raise ValidationError(f"Unknown device type: {device_type}")
    if issue_type not in ISSUE_TYPES:
        raise ValidationError(f"Unknown issue type: {issue_type}")

    school_service.get_school(school_id)

    client = client or OperationsHeroClient()
    location_id = client.location_for_school(school_id)
    summary = build_summary(
        device_type, device_barcode, issue_type, full_name, is_staff, notes
    )

    # Raises TicketSubmissionFailed; nothing has been written yet.
    response = client.create_request(location_id, summary)

    ticket = RepairTicket(
        school_id=school_id,
        device_type=device_type,
        full_name=full_name,
        issue_type=issue_type,
        device_barcode=device_barcode,
        notes=notes,
        is_staff=is_staff,
        operations_hero_id=str(response["id"]),
        status=TICKET_OPEN,
    )
    db.session.add(ticket)
    db.session.commit()

    logger.info(
        "Repair ticket %s filed for %s at %s (helpdesk id %s)",
        ticket.id,
        device_barcode,
        school_id,
        ticket.operations_hero_id,
    )
    return ticket


def get_repair_tickets(
    start_date: str | None = None,
    end_date: str | None = None,
    device_barcode: str | None = None,
    full_name: str | None = None,
    issue_type: str | None = None,
    school_id: str | None = None,
    is_staff: bool | None = None,
    status: str | None = None,
    sort: str | None = None,
    direction: str | None = None,
) -> list[RepairTicket]:
    """
    List repair tickets matching every supplied filter.

    Barcode and name are case-insensitive substring matches; the
    other filters are exact.  Default order is newest first.

    Raises:
        ValidationError: On a bad date, status, or sort field.
    """
    if status and status not in TICKET_STATUSES:
        raise ValidationError(f"Unknown ticket status: {status}")

    query = RepairTicket.query
    query = query_helpers.date_range(query, RepairTicket.created_at, start_date, end_date)
    query = query_helpers.contains(query, RepairTicket.device_barcode, device_barcode)
    query = query_helpers.contains(query, RepairTicket.full_name, full_name)
    query = query_helpers.equals(query, RepairTicket.issue_type, issue_type)
    query = query_helpers.equals(query, RepairTicket.school_id, school_id)
    query = query_helpers.equals(query, RepairTicket.is_staff, is_staff)
    query = query_helpers.equals(query, RepairTicket.status, status)
    query = query_helpers.apply_sort(
        query,
        _SORTABLE,
        sort,
        direction,
        default=("createdAt",),
        tiebreaker=RepairTicket.id,
    )
    return query.all()
