"""
Audit service: records administrative changes and queries them.

User management, school settings edits, device registration and
removal, and logins pass through this service.  Device checkout and
check-in history is *not* written here; ``device_service`` appends to
``device_logs`` for that.

``log_change`` adds the entry to the current session without
committing, so the entry commits (or rolls back) together with the
change it describes.
"""

import json
import logging
from typing import Any

from flask import request
from sqlalchemy import desc

from loanerdesk.extensions import db
from loanerdesk.models.audit import AuditLog
from loanerdesk.services import query_helpers

logger = logging.getLogger(__name__)


# -- Write audit entries ---------------------------------------------------

def log_change(
    user_id: int | None,
    action_type: str,
    entity_type: str,
    entity_id: str | int | None,
    previous_value: dict[str, Any] | None = None,
    new_value: dict[str, Any] | None = None,
) -> AuditLog:
    """
    Record a data change in the audit log.

    Args:
        user_id:        ID of the user who made the change, or None for
                        CLI and system actions.
        action_type:    One of CREATE, UPDATE, DELETE, LOGIN, LOGOUT.
        entity_type:    Table name of the entity (e.g., 'devices').
        entity_id:      Primary key of the affected record.
        previous_value: Dict of the record state before the change.
        new_value:      Dict of the record state after the change.

    Returns:
        The newly created AuditLog record.
    """
    # Capture request metadata when available (inside a request context).
    ip_address = None
    user_agent = None
    try:
        ip_address = request.remote_addr
        user_agent = str(request.user_agent)[:500]
    except RuntimeError:
        # Outside of a request context (e.g., CLI command).
        pass

    entry = AuditLog(
        user_id=user_id,
        action_type=action_type,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        previous_value=json.dumps(previous_value, default=str) if previous_value else None,
        new_value=json.dumps(new_value, default=str) if new_value else None,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.session.add(entry)

    logger.info(
        "Audit: %s %s:%s by user %s",
        action_type,
        entity_type,
        entity_id,
        user_id,
    )
    return entry


def log_login(user_id: int) -> AuditLog:
    """Record a successful user login."""
    return log_change(
        user_id=user_id,
        action_type="LOGIN",
        entity_type="users",
        entity_id=user_id,
    )


def log_logout(user_id: int) -> AuditLog:
    """Record a user logout."""
    return log_change(
        user_id=user_id,
        action_type="LOGOUT",
        entity_type="users",
        entity_id=user_id,
    )


# -- Query audit logs ------------------------------------------------------

def get_audit_logs(
    user_id: int | None = None,
    action_type: str | None = None,
    entity_type: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    limit: int = 500,
) -> list[AuditLog]:
    """Return recent audit entries, newest first, with optional filters."""
    query = AuditLog.query
    query = query_helpers.equals(query, AuditLog.user_id, user_id)
    query = query_helpers.equals(query, AuditLog.action_type, action_type)
    query = query_helpers.equals(query, AuditLog.entity_type, entity_type)
    query = query_helpers.date_range(query, AuditLog.created_at, start_date, end_date)
    query = query.order_by(desc(AuditLog.created_at), desc(AuditLog.id))
    return query.limit(limit).all()
