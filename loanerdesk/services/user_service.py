"""
User service: user lookup, creation, and account administration.

Admins create kiosk and admin accounts, reset passwords, and
deactivate users.  Deactivating a user or resetting their password
revokes every session they hold.
"""

import logging
import re

from sqlalchemy import func, or_

from loanerdesk.errors import DuplicateUser, UserNotFound, ValidationError
from loanerdesk.extensions import db
from loanerdesk.models.user import Session, User
from loanerdesk.services import audit_service
from loanerdesk.timeutil import utcnow

logger = logging.getLogger(__name__)

# At least 8 characters with a lowercase letter, an uppercase letter,
# a digit, and one of @$!%*?&.
_PASSWORD_RE = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$"
)


# -- User lookup -----------------------------------------------------------


def get_user_by_id(user_id: int) -> User | None:
    """Return a user by primary key, or None if not found."""
    return db.session.get(User, user_id)


def get_user_by_username(username: str) -> User | None:
    """Return a user by username (case-insensitive)."""
    return User.query.filter(func.lower(User.username) == username.lower()).first()


def get_all_users(include_inactive: bool = True) -> list[User]:
    """Return users ordered by username."""
    query = User.query.order_by(User.username)
    if not include_inactive:
        query = query.filter(User.is_active == True)  # noqa: E712
    return query.all()


def validate_password(password: str) -> None:
    """
    Enforce the district password policy.

    Raises:
        ValidationError: If the password is too weak.
    """
    if not _PASSWORD_RE.match(password or ""):
        raise ValidationError(
            "Password must be at least 8 characters and include upper- and "
            "lowercase letters, a number, and one of @$!%*?&"
        )


# -- User creation ---------------------------------------------------------


def create_user(
    username: str,
    email: str,
    password: str,
    is_admin: bool = False,
    created_by: int | None = None,
) -> User:
    """
    Create a new active user.

    Args:
        username:   Login name (unique, case-insensitive).
        email:      Contact email (unique).
        password:   Plain-text password; stored hashed.
        is_admin:   Grant admin access.
        created_by: ID of the admin creating the user, or None (CLI).

    Returns:
        The newly created User record.

    Raises:
        DuplicateUser:   If the username or email is taken.
        ValidationError: If the password fails the policy.
    """
    validate_password(password)

    existing = User.query.filter(
        or_(
            func.lower(User.username) == username.lower(),
            func.lower(User.email) == email.lower(),
        )
    ).first()
    if existing is not None:
        raise DuplicateUser()

    user = User(username=username, email=email, is_admin=is_admin)
    user.set_password(password)
    db.session.add(user)
    db.session.flush()  # Get the user ID for audit logging.

    audit_service.log_change(
        user_id=created_by,
        action_type="CREATE",
        entity_type="users",
        entity_id=user.id,
        new_value={"username": username, "email": email, "isAdmin": is_admin},
    )
    db.session.commit()

    logger.info("Created user %s (admin=%s)", username, is_admin)
    return user


# -- Account administration ------------------------------------------------


def update_user(
    user_id: int,
    is_active: bool | None = None,
    is_admin: bool | None = None,
    changed_by: int | None = None,
) -> User:
    """
    Change a user's active or admin flag.

    Deactivation revokes all of the user's sessions.

    Raises:
        UserNotFound: If the user does not exist.
    """
    user = get_user_by_id(user_id)
    if user is None:
        raise UserNotFound()

    previous = {"active": user.is_active, "isAdmin": user.is_admin}

    if is_active is not None:
        user.is_active = is_active
    if is_admin is not None:
        user.is_admin = is_admin
    user.updated_at = utcnow()

    revoked = 0
    if is_active is False:
        revoked = _revoke_sessions(user.id)

    audit_service.log_change(
        user_id=changed_by,
        action_type="UPDATE",
        entity_type="users",
        entity_id=user.id,
        previous_value=previous,
        new_value={"active": user.is_active, "isAdmin": user.is_admin},
    )
    db.session.commit()

    logger.info(
        "Updated user %s: active=%s admin=%s (%d session(s) revoked)",
        user.username,
        user.is_active,
        user.is_admin,
        revoked,
    )
    return user


def reset_password(user_id: int, new_password: str, changed_by: int | None = None) -> User:
    """
    Set a new password and revoke every existing session.

    Raises:
        UserNotFound:    If the user does not exist.
        ValidationError: If the password fails the policy.
    """
    user = get_user_by_id(user_id)
    if user is None:
        raise UserNotFound()
    validate_password(new_password)

    user.set_password(new_password)
    user.updated_at = utcnow()
    _revoke_sessions(user.id)

    audit_service.log_change(
        user_id=changed_by,
        action_type="UPDATE",
        entity_type="users",
        entity_id=user.id,
        new_value={"password": "reset"},
    )
    db.session.commit()

    logger.info("Password reset for user %s", user.username)
    return user


def record_login(user: User) -> None:
    """Stamp ``last_login`` (no commit)."""
    user.last_login = utcnow()


def _revoke_sessions(user_id: int) -> int:
    """Delete all sessions of a user (no commit); returns the count."""
    return Session.query.filter(Session.user_id == user_id).delete(
        synchronize_session=False
    )
