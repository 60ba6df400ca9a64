"""
Shared pytest fixtures for the action item service test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - organization / other_organization / location: tenant scope rows
    - admin / manager / viewer / outsider: Actor values per role
    - *_headers: Bearer headers carrying a matching access token
    - make_task: factory creating action items through the service layer
"""

import pytest

from taskhub import create_app
from taskhub.models import db as _db
from taskhub.models.organization import Location, Organization
from taskhub.services import task_service
from taskhub.services.jwt_service import generate_access_token
from taskhub.services.permission import Actor


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


# ── Tenant scope ─────────────────────────────────────────────────────────


@pytest.fixture()
def organization():
    org = Organization(name="Bright Smiles Dental", domain="brightsmiles.example")
    _db.session.add(org)
    _db.session.commit()
    return org


@pytest.fixture()
def other_organization():
    org = Organization(name="Apex Orthodontics", domain="apexortho.example")
    _db.session.add(org)
    _db.session.commit()
    return org


@pytest.fixture()
def location(organization):
    loc = Location(organization_id=organization.id, name="Downtown")
    _db.session.add(loc)
    _db.session.commit()
    return loc


# ── Actors & tokens ──────────────────────────────────────────────────────


@pytest.fixture()
def admin():
    return Actor(user_id=1, role="admin")


@pytest.fixture()
def manager(organization):
    return Actor(user_id=2, role="manager", organization_id=organization.id)


@pytest.fixture()
def viewer(organization):
    return Actor(user_id=3, role="viewer", organization_id=organization.id)


@pytest.fixture()
def outsider(other_organization):
    """A manager of a different organization."""
    return Actor(user_id=4, role="manager", organization_id=other_organization.id)


def _headers(actor: Actor) -> dict:
    token = generate_access_token(actor.user_id, actor.role, actor.organization_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture()
def manager_headers(manager):
    return _headers(manager)


@pytest.fixture()
def viewer_headers(viewer):
    return _headers(viewer)


@pytest.fixture()
def outsider_headers(outsider):
    return _headers(outsider)


# ── Factories ────────────────────────────────────────────────────────────


@pytest.fixture()
def make_task(admin, organization):
    """Create an action item in ``organization`` (override any field)."""

    def _make(**overrides):
        data = {"organization_id": organization.id, "title": "Reply to new Google review"}
        data.update(overrides)
        return task_service.create_task(data, admin)

    return _make
