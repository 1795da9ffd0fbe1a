"""
Device log service: read access to the checkout/check-in history.

``device_logs`` is written only by ``device_service``; this module
never inserts, updates, or deletes rows.
"""

from loanerdesk.constants import LOG_ACTIONS
from loanerdesk.errors import ValidationError
from loanerdesk.models.device import DeviceLog
from loanerdesk.services import query_helpers

_SORTABLE = {
    "timestamp": DeviceLog.timestamp,
    "assetTag": DeviceLog.asset_tag,
    "action": DeviceLog.action,
    "userName": DeviceLog.user_name,
    "reason": DeviceLog.reason,
    "homeroomTeacher": DeviceLog.homeroom_teacher,
    "schoolId": DeviceLog.school_id,
}


def get_device_logs(
    start_date: str | None = None,
    end_date: str | None = None,
    asset_tag: str | None = None,
    user_name: str | None = None,
    reason: str | None = None,
    homeroom_teacher: str | None = None,
    action: str | None = None,
    school_id: str | None = None,
    sort: str | None = None,
    direction: str | None = None,
) -> list[DeviceLog]:
    """
    List log entries matching every supplied filter.

    Asset tag, user name, reason, and homeroom teacher are
    case-insensitive substring matches; action and school are exact.
    Default order is newest first.

    Raises:
        ValidationError: On a bad date, action, or sort field.
    """
    if action and action not in LOG_ACTIONS:
        raise ValidationError(f"Unknown action: {action}")

    query = DeviceLog.query
    query = query_helpers.date_range(query, DeviceLog.timestamp, start_date, end_date)
    query = query_helpers.contains(query, DeviceLog.asset_tag, asset_tag)
    query = query_helpers.contains(query, DeviceLog.user_name, user_name)
    query = query_helpers.contains(query, DeviceLog.reason, reason)
    query = query_helpers.contains(query, DeviceLog.homeroom_teacher, homeroom_teacher)
    query = query_helpers.equals(query, DeviceLog.action, action)
    query = query_helpers.equals(query, DeviceLog.school_id, school_id)
    query = query_helpers.apply_sort(
        query,
        _SORTABLE,
        sort,
        direction,
        default=("timestamp",),
        tiebreaker=DeviceLog.id,
    )
    return query.all()


def get_logs_for_device(asset_tag: str) -> list[DeviceLog]:
    """Return the full history of one asset tag, newest first."""
    return (
        DeviceLog.query.filter(DeviceLog.asset_tag == asset_tag)
        .order_by(DeviceLog.timestamp.desc(), DeviceLog.created_at.desc())
        .all()
    )
