"""
Repairs blueprint: repair ticket submission and listing.
"""

from flask import Blueprint

bp = Blueprint("repairs", __name__)

# Import routes after blueprint creation to avoid circular imports.
from loanerdesk.blueprints.repairs import routes  # noqa: E402, F401
