"""
Schools blueprint: school listing and settings.
"""

from flask import Blueprint

bp = Blueprint("schools", __name__)

# Import routes after blueprint creation to avoid circular imports.
from loanerdesk.blueprints.schools import routes  # noqa: E402, F401
