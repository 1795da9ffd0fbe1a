"""
Authentication models: ``users`` and ``sessions`` tables.

Users sign in with a username and password and receive an opaque
bearer token stored in ``sessions``.  There are two kinds of user:
admins (district IT) and regular kiosk accounts that only check
devices in and out.
"""

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from loanerdesk.extensions import db
from loanerdesk.timeutil import isoformat, utcnow


class User(UserMixin, db.Model):
    """
    Application user.

    Inherits from ``UserMixin`` to satisfy Flask-Login requirements
    (``is_authenticated``, ``is_active``, ``get_id``); the ``is_active``
    column overrides the mixin's property.
    """

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # -- Relationships -----------------------------------------------------
    sessions = db.relationship(
        "Session",
        back_populates="user",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    # ---- Passwords -------------------------------------------------------

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "isAdmin": self.is_admin,
            "active": self.is_active,
            "lastLogin": isoformat(self.last_login),
        }

    def __repr__(self) -> str:
        return f"<User {self.username} admin={self.is_admin}>"


class Session(db.Model):
    """
    A bearer-token login session.

    Expired rows are ignored by the request loader and purged on the
    owner's next login.
    """

    __tablename__ = "sessions"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = db.Column(db.String(128), unique=True, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # -- Relationships -----------------------------------------------------
    user = db.relationship("User", back_populates="sessions")

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= utcnow()

    def __repr__(self) -> str:
        return f"<Session user={self.user_id} expires={self.expires_at}>"
