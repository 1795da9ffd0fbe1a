"""
Routes for the users blueprint: admin-only account management.
"""

from flask import jsonify
from flask_login import current_user, login_required

from loanerdesk.blueprints.users import bp
from loanerdesk.decorators import admin_required
from loanerdesk.errors import ValidationError
from loanerdesk.schemas import PasswordReset, UserCreate, UserUpdate, load_request
from loanerdesk.services import user_service


@bp.route("")
@login_required
@admin_required
def list_users():
    """List every user, active or not."""
    return jsonify([user.to_dict() for user in user_service.get_all_users()])


@bp.route("", methods=["POST"])
@login_required
@admin_required
def create_user():
    """Create a user; the password must satisfy the password policy."""
    body = load_request(UserCreate)
    user = user_service.create_user(
        username=body.username,
        email=body.email,
        password=body.password,
        is_admin=body.is_admin,
        created_by=current_user.id,
    )
    return jsonify(user.to_dict()), 201


@bp.route("/<int:user_id>", methods=["PATCH"])
@login_required
@admin_required
def update_user(user_id):
    """
    Change a user's ``isActive`` or ``isAdmin`` flag.

    Admins cannot deactivate or demote themselves.
    """
    body = load_request(UserUpdate)
    if user_id == current_user.id and (
        body.is_active is False or body.is_admin is False
    ):
        raise ValidationError("You cannot deactivate or demote your own account")
    user = user_service.update_user(
        user_id,
        is_active=body.is_active,
        is_admin=body.is_admin,
        changed_by=current_user.id,
    )
    return jsonify(user.to_dict())


@bp.route("/<int:user_id>/password", methods=["POST"])
@login_required
@admin_required
def reset_password(user_id):
    """Set a new password and sign the user out everywhere."""
    body = load_request(PasswordReset)
    user_service.reset_password(user_id, body.password, changed_by=current_user.id)
    return jsonify({"success": True})
