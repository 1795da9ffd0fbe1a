"""
Pytest configuration and shared fixtures.

Provides a test application, database session, and test client that
all test modules can use.  Uses the ``testing`` configuration, which
points at an in-memory SQLite database that is created fresh for each
test.

Route tests must not hold an application context open while making
requests: Flask-Login caches the current user on the app context, so
every request needs its own.  The seeding factories below therefore
push a context only when none is active.
"""

from contextlib import contextmanager

import pytest
from flask import has_app_context

from loanerdesk import create_app
from loanerdesk.extensions import db as _db
from loanerdesk.services import auth_service, device_service, school_service, user_service

PASSWORD = "Passw0rd!"


@pytest.fixture()
def app():
    """
    Create a Flask application configured for testing.

    The schema is created before the test and dropped afterwards.
    """
    app = create_app("testing")

    with app.app_context():
        _db.create_all()

    yield app

    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def db_session(app):  # pylint: disable=redefined-outer-name
    """
    Provide the database session inside an application context.

    For service-level tests that call services directly.
    """
    with app.app_context():
        yield _db.session


@pytest.fixture()
def client(app):  # pylint: disable=redefined-outer-name
    """
    Provide a Flask test client for making HTTP requests.

    Usage in tests::

        def test_health(client):
            response = client.get("/health")
            assert response.status_code == 200
    """
    return app.test_client()


@contextmanager
def _context(app):
    if has_app_context():
        yield
    else:
        with app.app_context():
            yield


# =========================================================================
# Seeding factories
# =========================================================================


@pytest.fixture()
def schools(app):  # pylint: disable=redefined-outer-name
    """Seed the default district schools; all have auto-registration off."""
    with _context(app):
        school_service.seed_default_schools()


@pytest.fixture()
def allow_new_devices(app, schools):  # pylint: disable=redefined-outer-name
    """Return a function that turns auto-registration on for a school."""

    def _allow(school_id: str) -> None:
        with _context(app):
            school_service.update_school(school_id, {"allowNewDevices": True})

    return _allow


@pytest.fixture()
def make_device(app, schools):  # pylint: disable=redefined-outer-name
    """
    Return a factory that registers a device and returns its dict.

    Usage::

        device = make_device("CB-001", school_id="kossman")
    """

    def _make(asset_tag, model="chromebook", school_id="kossman", serial=None):
        with _context(app):
            return device_service.register_device(
                asset_tag, model, school_id, serial=serial
            ).to_dict()

    return _make


@pytest.fixture()
def make_user(app):  # pylint: disable=redefined-outer-name
    """Return a factory that creates a user and returns its id."""

    def _make(username, is_admin=False, password=PASSWORD, email=None):
        with _context(app):
            user = user_service.create_user(
                username,
                email or f"{username}@district.example.org",
                password,
                is_admin=is_admin,
            )
            return user.id

    return _make


@pytest.fixture()
def login(app):  # pylint: disable=redefined-outer-name
    """Return a function that signs a user in and returns auth headers."""

    def _login(username, password=PASSWORD):
        with _context(app):
            _, session = auth_service.authenticate(username, password)
            return {"Authorization": f"Bearer {session.token}"}

    return _login


@pytest.fixture()
def admin_headers(make_user, login):  # pylint: disable=redefined-outer-name
    """Bearer headers for a freshly created admin."""
    make_user("it-admin", is_admin=True)
    return login("it-admin")


@pytest.fixture()
def kiosk_headers(make_user, login):  # pylint: disable=redefined-outer-name
    """Bearer headers for a freshly created non-admin (kiosk) user."""
    make_user("cart-kiosk")
    return login("cart-kiosk")
