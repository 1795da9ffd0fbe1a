"""
Administrative audit model: ``audit_log`` table.

``AuditLog`` records who changed what outside the device lifecycle:
logins, user management, school settings, device registration and
removal.  Checkout/check-in history lives in ``device_logs`` instead.
"""

from loanerdesk.extensions import db
import json

from loanerdesk.timeutil import isoformat, utcnow


class AuditLog(db.Model):
    """
    Records administrative data changes.

    ``action_type`` values: CREATE, UPDATE, DELETE, LOGIN, LOGOUT.

    JSON conventions for ``previous_value`` / ``new_value``:
      - CREATE: previous_value is NULL, new_value has full record.
      - UPDATE: both contain only the changed fields.
      - DELETE: previous_value has full record, new_value is NULL.
    """

    __tablename__ = "audit_log"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    # Plain column so audit rows outlive deleted users.
    user_id = db.Column(db.Integer, nullable=True, index=True)
    action_type = db.Column(db.String(50), nullable=False)
    entity_type = db.Column(db.String(100), nullable=False)
    entity_id = db.Column(db.String(100), nullable=True)
    previous_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "actionType": self.action_type,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "previousValue": _loads(self.previous_value),
            "newValue": _loads(self.new_value),
            "ipAddress": self.ip_address,
            "createdAt": isoformat(self.created_at),
        }

    def __repr__(self) -> str:
        return (
            f"<AuditLog {self.action_type} {self.entity_type}"
            f":{self.entity_id}>"
        )


def _loads(value: str | None):
    return json.loads(value) if value else None
