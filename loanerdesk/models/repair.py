"""
Repair ticket mirror: ``repair_tickets`` table.

A row exists only for tickets the Operations Hero helpdesk accepted.
Status is written once as ``open``; closing happens in the helpdesk
and is not synced back.
"""

import uuid

from loanerdesk.constants import REPAIR_DEVICE_TYPES, TICKET_OPEN
from loanerdesk.extensions import db
from loanerdesk.timeutil import isoformat, utcnow


class RepairTicket(db.Model):
    """Local record of a repair request filed with the helpdesk."""

    __tablename__ = "repair_tickets"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('open', 'closed')", name="CK_repair_tickets_status"
        ),
        db.CheckConstraint(
            "device_type IN ("
            + ", ".join(f"'{t}'" for t in REPAIR_DEVICE_TYPES)
            + ")",
            name="CK_repair_tickets_device_type",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = db.Column(db.String(200), nullable=False)
    device_type = db.Column(db.String(20), nullable=False)
    device_barcode = db.Column(db.String(100), nullable=False, index=True)
    issue_type = db.Column(db.String(50), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    school_id = db.Column(
        db.String(50), db.ForeignKey("schools.id"), nullable=False, index=True
    )
    is_staff = db.Column(db.Boolean, nullable=False, default=False)
    operations_hero_id = db.Column(db.String(100), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=TICKET_OPEN)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # -- Relationships -----------------------------------------------------
    school = db.relationship("School")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "fullName": self.full_name,
            "deviceType": self.device_type,
            "deviceBarcode": self.device_barcode,
            "issueType": self.issue_type,
            "notes": self.notes,
            "schoolId": self.school_id,
            "isStaff": self.is_staff,
            "operationsHeroId": self.operations_hero_id,
            "status": self.status,
            "createdAt": isoformat(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<RepairTicket {self.operations_hero_id} {self.device_barcode}>"
