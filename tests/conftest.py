"""
Shared pytest fixtures for the PKM Review Platform test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - world: one grant type with criteria, a full team, its proposals and
      two reviewers (see tests/factories.py)
"""

import pytest

from app import create_app
from app.models import db as _db

from tests import factories


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
        _db.session.remove()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def world():
    """Grant type + criteria + team of three with advisor + two reviewers."""
    return factories.build_world()


@pytest.fixture()
def auth_headers():
    """Build Authorization headers: auth_headers("admin", "admin-1")."""
    return factories.auth_headers
