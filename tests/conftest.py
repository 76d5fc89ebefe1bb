"""
Shared test fixtures.

Every test gets its own in-memory SQLite database, settings with a cheap
hash work factor, and an email sender that records instead of sending.
"""

import pytest
from fastapi.testclient import TestClient

import rasta.models  # noqa: F401  registers every table on Base.metadata
from rasta.core.config import Settings
from rasta.core.errors import EmailDispatchError
from rasta.core.security import build_hasher, build_token_codec
from rasta.core.totp import build_totp_engine
from rasta.database import Base, build_engine, build_session_factory
from rasta.main import create_app
from rasta.models.user import AccountType, RegionType
from rasta.services.user_service import UserService

TEST_JWT_SECRET = "test-secret-that-is-long-enough-for-hs256"
STRONG_PASSWORD = "Abcdefg1!"


class RecordingEmailSender:
    """Keeps every message in memory; set ``fail`` to simulate an SMTP outage."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, template, recipient, subject, data):
        if self.fail:
            raise EmailDispatchError()
        self.sent.append(
            {"template": template, "recipient": recipient, "subject": subject, "data": data}
        )

    def last_code(self, recipient: str | None = None) -> str:
        for message in reversed(self.sent):
            if recipient is None or message["recipient"] == recipient:
                return message["data"]["otp"]
        raise AssertionError(f"no email sent to {recipient}")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret=TEST_JWT_SECRET,
        jwt_issuer="RastaTest",
        jwt_expiry=3600,
        email_otp_expiry=600,
        hash_rounds=1000,
        dev_mode=False,
    )


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def hasher(settings):
    return build_hasher(settings)


@pytest.fixture
def codec(settings):
    return build_token_codec(settings)


@pytest.fixture
def totp_engine(settings):
    return build_totp_engine(settings)


# -- Service-level fixtures ------------------------------------------------


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    yield session
    session.close()


def create_user(
    db,
    hasher,
    username="johndoe",
    email="john@example.com",
    password=STRONG_PASSWORD,
    verified=True,
    account=AccountType.NORMAL,
):
    return UserService(db, hasher).create(
        first_name="John",
        last_name="Doe",
        username=username,
        email=email,
        password=password,
        region=RegionType.WESTERN_EUROPE,
        account=account,
        is_verified=verified,
    )


# -- API-level fixtures ----------------------------------------------------


@pytest.fixture
def app(settings, email_sender):
    application = create_app(settings, email_sender=email_sender)
    Base.metadata.create_all(bind=application.state.engine)
    yield application
    application.state.engine.dispose()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def app_db(app):
    """A session on the API's own database, for arranging and inspecting rows."""
    session = app.state.session_factory()
    yield session
    session.close()


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def login(client, username, password=STRONG_PASSWORD, otp=None) -> str:
    body = {"username": username, "password": password}
    if otp is not None:
        body["otp"] = otp
    resp = client.post("/api/v1/users/login", json=body)
    assert resp.status_code == 200, resp.json()
    return resp.json()["token"]
