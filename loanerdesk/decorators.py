"""
Authorization decorators for route-level access control.

Used together with Flask-Login's ``@login_required``, which resolves
the bearer token and answers 401 when it is missing or stale:

    @bp.route("/api/users")
    @login_required
    @admin_required
    def list_users():
        ...
"""

import logging
from functools import wraps

from flask import abort, request
from flask_login import current_user

from loanerdesk.errors import ForbiddenError

logger = logging.getLogger(__name__)


def admin_required(func):
    """
    Decorator that restricts a route to admin users.

    Non-admins receive 403 ``{"error": "Admin access required"}``.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        # current_user is guaranteed authenticated by @login_required.
        if not current_user.is_authenticated:
            abort(401)
        if not current_user.is_admin:
            logger.warning(
                "Access denied: user %d (%s) attempted %s %s (requires admin)",
                current_user.id,
                current_user.username,
                request.method,
                request.path,
            )
            raise ForbiddenError()
        return func(*args, **kwargs)

    return wrapper
