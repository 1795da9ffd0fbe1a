"""
Model package: imports all models so Alembic and SQLAlchemy can
discover them automatically when ``flask db`` commands are run.

  - school.py -> schools
  - device.py -> devices, device_logs
  - repair.py -> repair_tickets
  - user.py   -> users, sessions
  - audit.py  -> audit_log
"""

from loanerdesk.models.school import School  # noqa: F401
from loanerdesk.models.device import Device, DeviceLog  # noqa: F401
from loanerdesk.models.repair import RepairTicket  # noqa: F401
from loanerdesk.models.user import Session, User  # noqa: F401
from loanerdesk.models.audit import AuditLog  # noqa: F401
