"""
Auth service: password login and bearer-token sessions.

A successful login creates a ``sessions`` row holding a random opaque
token.  Every API request presents that token in an
``Authorization: Bearer`` header; Flask-Login's request loader calls
``resolve_token`` to turn it back into a user.
"""

import logging
import secrets

from flask import current_app

from loanerdesk.errors import AuthError
from loanerdesk.extensions import db
from loanerdesk.models.user import Session, User
from loanerdesk.services import audit_service, user_service
from loanerdesk.timeutil import minutes_from_now, utcnow

logger = logging.getLogger(__name__)


def authenticate(username: str, password: str) -> tuple[User, Session]:
    """
    Verify credentials and open a new session.

    Args:
        username: Login name.
        password: Plain-text password.

    Returns:
        ``(user, session)``; ``session.token`` is handed to the client.

    Raises:
        AuthError: On an unknown user, wrong password, or inactive account.
    """
    user = user_service.get_user_by_username(username)
    if user is None or not user.is_active or not user.check_password(password):
        logger.warning("Failed login attempt for username %r", username)
        raise AuthError("Invalid credentials")

    _purge_expired_sessions(user.id)
    session = create_session(user)
    user_service.record_login(user)
    audit_service.log_login(user.id)
    db.session.commit()

    logger.info("User %s logged in", user.username)
    return user, session


def create_session(user: User) -> Session:
    """
    Add a new session for ``user`` (no commit).

    Admin sessions expire after ``ADMIN_SESSION_MINUTES``; others after
    ``USER_SESSION_MINUTES``.
    """
    minutes = (
        current_app.config["ADMIN_SESSION_MINUTES"]
        if user.is_admin
        else current_app.config["USER_SESSION_MINUTES"]
    )
    session = Session(
        user_id=user.id,
        token=secrets.token_urlsafe(48),
        expires_at=minutes_from_now(minutes),
    )
    db.session.add(session)
    db.session.flush()
    return session


def resolve_token(token: str | None) -> User | None:
    """
    Return the active user owning an unexpired session token, or None.
    """
    if not token:
        return None
    session = Session.query.filter_by(token=token).first()
    if session is None or session.is_expired:
        return None
    user = session.user
    if user is None or not user.is_active:
        return None
    return user


def logout(token: str) -> None:
    """Delete the session for ``token``; unknown tokens are ignored."""
    session = Session.query.filter_by(token=token).first()
    if session is None:
        return
    audit_service.log_logout(session.user_id)
    db.session.delete(session)
    db.session.commit()
    logger.info("User %s logged out", session.user_id)


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _purge_expired_sessions(user_id: int) -> None:
    Session.query.filter(
        Session.user_id == user_id, Session.expires_at <= utcnow()
    ).delete(synchronize_session=False)
