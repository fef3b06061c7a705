"""
Shared pytest fixtures for the Studio Management test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user: factory for users with roles
    - hr / super_admin / project_manager / staff / other_staff: common actors
    - auth_headers: builds the X-User-Id header for an actor
"""

import pytest

from studio import create_app
from studio.models import db as _db
from studio.models.auth import User, UserRole


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Actors ───────────────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Factory: make_user("Name", "hr", "director") → committed User."""
    counter = {"n": 0}

    def _make(full_name: str, *roles: str, status: str = "active") -> User:
        counter["n"] += 1
        slug = full_name.lower().replace(" ", ".")
        user = User(email=f"{slug}.{counter['n']}@studiohq.com", full_name=full_name, status=status)
        _db.session.add(user)
        _db.session.flush()
        for role in roles:
            _db.session.add(UserRole(user_id=user.id, role=role))
        _db.session.commit()
        return user

    return _make


@pytest.fixture()
def hr(make_user):
    return make_user("Hana Rahma", "hr")


@pytest.fixture()
def super_admin(make_user):
    return make_user("Sam Admin", "super_admin")


@pytest.fixture()
def project_manager(make_user):
    return make_user("Pat Manager", "project_manager")


@pytest.fixture()
def staff(make_user):
    return make_user("Vid Editor", "video_editor")


@pytest.fixture()
def other_staff(make_user):
    return make_user("Pho Tographer", "photographer")


@pytest.fixture()
def auth_headers():
    """auth_headers(user) → {"X-User-Id": "<id>"}"""

    def _headers(user) -> dict:
        return {"X-User-Id": str(user.id)}

    return _headers
