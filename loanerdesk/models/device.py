"""
Loaner device models: ``devices`` and ``device_logs`` tables.

``Device`` is the current state of one physical asset.  ``DeviceLog``
is the append-only audit trail of checkout/check-in transitions and
deliberately holds only a weak reference (plain column, no foreign
key) to the device so that history survives device deletion.
"""

import uuid

from loanerdesk.constants import (
    ACTION_CHECKIN,
    ACTION_CHECKOUT,
    DEVICE_TYPES,
    STATUS_AVAILABLE,
    STATUS_CHECKED_OUT,
)
from loanerdesk.extensions import db
from loanerdesk.timeutil import isoformat, utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


def _in_list(column: str, values) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


class Device(db.Model):
    """
    A single loaner device identified by its asset tag.

    Invariants (enforced by ``device_service`` and by the CHECK
    constraints below):
      - ``asset_tag`` is unique across all schools.
      - ``available``   => every ``assigned_*`` column is NULL.
      - ``checked_out`` => ``assigned_to_name`` and ``assigned_at`` are set.
    """

    __tablename__ = "devices"
    __table_args__ = (
        db.CheckConstraint(
            _in_list("status", (STATUS_AVAILABLE, STATUS_CHECKED_OUT)),
            name="CK_devices_status",
        ),
        db.CheckConstraint(
            _in_list("model", DEVICE_TYPES),
            name="CK_devices_model",
        ),
        db.CheckConstraint(
            "(status = 'available' AND assigned_to_name IS NULL "
            "AND assigned_at IS NULL AND assigned_reason IS NULL "
            "AND homeroom_teacher IS NULL) OR "
            "(status = 'checked_out' AND assigned_to_name IS NOT NULL "
            "AND assigned_at IS NOT NULL)",
            name="CK_devices_assignment",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    asset_tag = db.Column(db.String(100), unique=True, nullable=False)
    serial = db.Column(db.String(100), nullable=True)
    model = db.Column(db.String(50), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_AVAILABLE)
    school_id = db.Column(
        db.String(50), db.ForeignKey("schools.id"), nullable=False, index=True
    )

    # -- Assignment (NULL while available) ---------------------------------
    assigned_to_name = db.Column(db.String(200), nullable=True)
    assigned_at = db.Column(db.DateTime, nullable=True)
    assigned_reason = db.Column(db.String(50), nullable=True)
    homeroom_teacher = db.Column(db.String(200), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # -- Relationships -----------------------------------------------------
    school = db.relationship("School", back_populates="devices")

    @property
    def is_checked_out(self) -> bool:
        return self.status == STATUS_CHECKED_OUT

    @property
    def assignment(self) -> dict | None:
        """Return the current holder record, or None when available."""
        if self.status != STATUS_CHECKED_OUT:
            return None
        return {
            "name": self.assigned_to_name,
            "timestamp": isoformat(self.assigned_at),
            "reason": self.assigned_reason,
            "homeroomTeacher": self.homeroom_teacher,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "assetTag": self.asset_tag,
            "serial": self.serial,
            "model": self.model,
            "status": self.status,
            "schoolId": self.school_id,
            "assignedTo": self.assignment,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Device {self.asset_tag} {self.status}>"


class DeviceLog(db.Model):
    """
    One checkout or check-in event.

    Rows are inserted in the same transaction as the device update and
    are never updated or deleted by the application.  ``device_id`` may
    dangle after the device is removed; ``asset_tag`` is a snapshot
    kept for querying.
    """

    __tablename__ = "device_logs"
    __table_args__ = (
        db.CheckConstraint(
            _in_list("action", (ACTION_CHECKIN, ACTION_CHECKOUT)),
            name="CK_device_logs_action",
        ),
        db.Index("IX_device_logs_timestamp", "timestamp"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    device_id = db.Column(db.String(36), nullable=True, index=True)
    asset_tag = db.Column(db.String(100), nullable=False, index=True)
    action = db.Column(db.String(20), nullable=False)
    user_name = db.Column(db.String(200), nullable=False)
    reason = db.Column(db.String(50), nullable=True)
    homeroom_teacher = db.Column(db.String(200), nullable=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)
    school_id = db.Column(db.String(50), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "deviceId": self.device_id,
            "assetTag": self.asset_tag,
            "action": self.action,
            "userName": self.user_name,
            "reason": self.reason,
            "homeroomTeacher": self.homeroom_teacher,
            "timestamp": isoformat(self.timestamp),
            "schoolId": self.school_id,
        }

    def __repr__(self) -> str:
        return f"<DeviceLog {self.action} {self.asset_tag} by {self.user_name}>"
