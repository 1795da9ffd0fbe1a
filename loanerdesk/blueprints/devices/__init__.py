"""
Devices blueprint: registration, checkout, check-in, and removal of
loaner devices.
"""

from flask import Blueprint

bp = Blueprint("devices", __name__)

# Import routes after blueprint creation to avoid circular imports.
from loanerdesk.blueprints.devices import routes  # noqa: E402, F401
