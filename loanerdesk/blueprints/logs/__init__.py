"""
Logs blueprint: device checkout/check-in history.
"""

from flask import Blueprint

bp = Blueprint("logs", __name__)

# Import routes after blueprint creation to avoid circular imports.
from loanerdesk.blueprints.logs import routes  # noqa: E402, F401
