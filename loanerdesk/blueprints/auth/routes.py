"""
Routes for the auth blueprint: login, logout, and the current user.

Login exchanges a username and password for an opaque bearer token.
Every other API route expects that token in ``Authorization: Bearer``.
"""

from flask import jsonify, request
from flask_login import current_user, login_required

from loanerdesk.blueprints.auth import bp
from loanerdesk.schemas import LoginRequest, load_request
from loanerdesk.services import auth_service
from loanerdesk.timeutil import isoformat


@bp.route("/login", methods=["POST"])
def login():
    """
    Verify credentials and issue a session token.

    Returns 401 ``{"error": "Invalid credentials"}`` on any failure so
    the response does not reveal which usernames exist.
    """
    body = load_request(LoginRequest)
    user, session = auth_service.authenticate(body.username, body.password)
    return jsonify(
        {
            "username": user.username,
            "isAdmin": user.is_admin,
            "lastLogin": isoformat(user.last_login),
            "token": session.token,
            "expiresAt": isoformat(session.expires_at),
        }
    )


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    """End the session belonging to the presented token."""
    token = auth_service.bearer_token(request.headers.get("Authorization"))
    auth_service.logout(token)
    return jsonify({"success": True})


@bp.route("/me")
@login_required
def me():
    """Return the signed-in user."""
    return jsonify(current_user.to_dict())
