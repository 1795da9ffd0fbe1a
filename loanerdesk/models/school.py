"""
School configuration model: ``schools`` table.

Schools are referenced by slug id (``kossman``, ``long-valley``, ...)
from devices, device logs, and repair tickets.  The device lifecycle
never mutates a school; only the settings endpoints do.
"""

from loanerdesk.extensions import db
from loanerdesk.timeutil import isoformat, utcnow


class School(db.Model):
    """
    One school building in the district.

    ``allow_new_devices`` gates auto-registration: when True, a kiosk
    user scanning an unknown asset tag during checkout or check-in may
    register it on the spot instead of getting "Device not found".
    """

    __tablename__ = "schools"

    id = db.Column(db.String(50), primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    allow_new_devices = db.Column(db.Boolean, nullable=False, default=False)
    logo_url = db.Column(db.Text, nullable=True)
    address = db.Column(db.String(500), nullable=True)
    contact = db.Column(db.String(200), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # -- Relationships -----------------------------------------------------
    devices = db.relationship("Device", back_populates="school", lazy="dynamic")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "allowNewDevices": self.allow_new_devices,
            "logoUrl": self.logo_url,
            "address": self.address,
            "contact": self.contact,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<School {self.id}>"
