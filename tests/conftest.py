import os
import sys

import pytest

# Ensure project root is on sys.path so 'app', 'config', and 'riseup' import correctly
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from tests.support import factories as test_factories
from tests.support import stubs as test_stubs

ADMIN_EMAIL = "admin@riseup.test"


@pytest.fixture
def mailer():
    return test_stubs.RecordingMailer()


@pytest.fixture
def media_relay():
    return test_stubs.InMemoryMediaRelay()


@pytest.fixture
def app(tmp_path, mailer, media_relay):
    """Application wired to a per-test sqlite file and in-memory collaborators."""
    import app as app_module
    from riseup.database.db_manager import db

    db_path = tmp_path / "test.sqlite"
    application = app_module.create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path.as_posix()}",
            "ADMIN_EMAILS": [ADMIN_EMAIL],
            "ENABLE_RATE_LIMITING": False,
            "CONTENT_SECURITY_POLICY": None,
            "MEDIA_BUCKET": None,
            "SMTP_USER": None,
            "SMTP_PASS": None,
            "FRONTEND_DIST": str(tmp_path / "dist"),
        }
    )
    application.extensions["mailer"] = mailer
    application.extensions["otp_service"].mailer = mailer
    application.extensions["media_relay"] = media_relay
    yield application

    with application.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield app


@pytest.fixture
def db_session(app_context):
    from riseup.database.db_manager import db

    test_factories.set_session(db.session)
    try:
        yield db.session
    finally:
        db.session.rollback()
        db.session.remove()
        test_factories.reset_session()


@pytest.fixture
def factories(db_session):
    yield test_factories


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def persist(app):
    """Create rows through a factory in a throwaway app context; returns ids."""

    def _persist(factory_cls, **kwargs):
        return test_factories.persist(app, factory_cls, **kwargs)

    return _persist


@pytest.fixture
def login(client):
    def _login(email, password=test_factories.DEFAULT_PASSWORD, target=None):
        target = target or client
        return target.post("/api/auth/login", json={"email": email, "password": password})

    return _login


@pytest.fixture
def fan(app, persist, login, client):
    """A logged-in fan; returns the user's id and email."""
    user_id = persist(test_factories.UserFactory, user_type="fan")
    email = test_factories.email_of(app, user_id)
    assert login(email).status_code == 200
    return {"id": user_id, "email": email}


@pytest.fixture
def admin(app, persist, login, client):
    user_id = persist(test_factories.UserFactory, email=ADMIN_EMAIL, username="siteadmin")
    assert login(ADMIN_EMAIL).status_code == 200
    return {"id": user_id, "email": ADMIN_EMAIL}
