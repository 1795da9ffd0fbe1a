"""
Routes for the logs blueprint: admin view of the device history and the
administrative audit trail.
"""

from flask import jsonify, request
from flask_login import login_required

from loanerdesk.blueprints.logs import bp
from loanerdesk.decorators import admin_required
from loanerdesk.errors import ValidationError
from loanerdesk.services import audit_service, log_service


@bp.route("")
@login_required
@admin_required
def list_logs():
    """
    List checkout/check-in log entries.

    Query parameters: ``startDate``, ``endDate``, ``assetTag``,
    ``userName``, ``reason``, ``homeroomTeacher``, ``action``,
    ``schoolId``, ``sort``, ``order``.
    """
    args = request.args
    entries = log_service.get_device_logs(
        start_date=args.get("startDate"),
        end_date=args.get("endDate"),
        asset_tag=args.get("assetTag"),
        user_name=args.get("userName"),
        reason=args.get("reason"),
        homeroom_teacher=args.get("homeroomTeacher"),
        action=args.get("action"),
        school_id=args.get("schoolId"),
        sort=args.get("sort"),
        direction=args.get("order"),
    )
    return jsonify([entry.to_dict() for entry in entries])


@bp.route("/audit")
@login_required
@admin_required
def list_audit_entries():
    """
    List administrative audit entries, newest first.

    Query parameters: ``userId``, ``actionType``, ``entityType``,
    ``startDate``, ``endDate``.
    """
    args = request.args
    user_id = _user_id(args.get("userId"))
    entries = audit_service.get_audit_logs(
        user_id=user_id,
        action_type=args.get("actionType"),
        entity_type=args.get("entityType"),
        start_date=args.get("startDate"),
        end_date=args.get("endDate"),
    )
    return jsonify([entry.to_dict() for entry in entries])


def _user_id(raw: str | None) -> int | None:
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError("userId must be an integer") from exc
