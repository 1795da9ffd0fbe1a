"""
Authentication blueprint: login, logout, and the current user.
"""

from flask import Blueprint

bp = Blueprint("auth", __name__)

# Import routes after blueprint creation to avoid circular imports.
from loanerdesk.blueprints.auth import routes  # noqa: E402, F401
