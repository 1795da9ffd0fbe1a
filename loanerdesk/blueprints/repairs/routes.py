"""
Routes for the repairs blueprint.

Submitting a ticket calls the external helpdesk synchronously; the
response is returned only once the helpdesk has accepted (or
rejected) it.
"""

from flask import jsonify, request
from flask_login import login_required

from loanerdesk.blueprints.repairs import bp
from loanerdesk.schemas import RepairTicketCreate, load_request
from loanerdesk.services import query_helpers, repair_service


@bp.route("")
@login_required
def list_tickets():
    """
    List repair tickets.

    Query parameters: ``startDate``, ``endDate``, ``deviceBarcode``,
    ``fullName``, ``issueType``, ``schoolId``, ``isStaff``, ``status``,
    ``sort``, ``order``.
    """
    args = request.args
    tickets = repair_service.get_repair_tickets(
        start_date=args.get("startDate"),
        end_date=args.get("endDate"),
        device_barcode=args.get("deviceBarcode"),
        full_name=args.get("fullName"),
        issue_type=args.get("issueType"),
        school_id=args.get("schoolId"),
        is_staff=query_helpers.parse_bool(args.get("isStaff"), "isStaff"),
        status=args.get("status"),
        sort=args.get("sort"),
        direction=args.get("order"),
    )
    return jsonify([ticket.to_dict() for ticket in tickets])


@bp.route("", methods=["POST"])
@login_required
def create_ticket():
    """File a repair ticket with the helpdesk and record it locally."""
    body = load_request(RepairTicketCreate)
    ticket = repair_service.submit_repair_ticket(
        school_id=body.school_id,
        device_type=body.device_type,
        full_name=body.full_name,
        issue_type=body.issue_type,
        device_barcode=body.device_barcode,
        notes=body.notes,
        is_staff=body.is_staff,
    )
    return jsonify({"id": ticket.id, "operationsHeroId": ticket.operations_hero_id}), 201
