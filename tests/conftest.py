"""Shared fixtures.

The app and the services are built against an in-memory SQLite database, a
mail transport that records instead of sending, and a clock the tests can
move by hand.
"""
import os

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("MAIL_TRANSPORT", "console")
os.environ.setdefault("LOG_FORMAT", "json")

import re
from datetime import datetime, timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import Settings
from database import get_session
from main import create_app
from models import Base, Company, User, UserRole
from services import AuthService, NotificationSender, TokenIssuer
from services.passwords import hash_password
from utils.mail import MailDeliveryError

JWT_SECRET = "test-secret"
FRONTEND_URL = "http://app.test"
PASSWORD = "Abc12345!"

_LINK = re.compile(r"(https?://\S+/verify-email\?\S+)")


class FrozenClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingTransport:
    """Keeps every message; raises instead when ``fail`` is set."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, message):
        if self.fail:
            raise MailDeliveryError("mail server unavailable")
        self.sent.append(message)
        return f"msg-{len(self.sent)}"

    @property
    def last(self):
        return self.sent[-1]


def link_params(message) -> dict:
    """userId and token from the verification link in ``message``."""
    match = _LINK.search(message.text)
    assert match, "no verification link in message"
    query = parse_qs(urlparse(match.group(1)).query)
    return {"userId": query["userId"][0], "token": query["token"][0]}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 1, 15, 9, 0, 0))


@pytest.fixture
def outbox():
    return RecordingTransport()


@pytest.fixture
def token_issuer(clock):
    return TokenIssuer(JWT_SECRET, clock=clock)


@pytest.fixture
def notifier(outbox):
    return NotificationSender(outbox, frontend_url=FRONTEND_URL, company_name="Pocket Attendance")


@pytest.fixture
def auth_service(db, token_issuer, notifier, clock):
    return AuthService(db, token_issuer, notifier, clock=clock)


@pytest.fixture
def settings():
    return Settings(
        app_env="testing",
        jwt_secret=JWT_SECRET,
        frontend_url=FRONTEND_URL,
        database_url="sqlite://",
        log_format="text",
    )


@pytest.fixture
def app(settings, outbox, clock, session_factory):
    app = create_app(
        settings=settings,
        transport=outbox,
        clock=clock,
        create_tables=False,
        configure_logging=False,
    )

    def override_get_session():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_get_session
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(session_factory):
    """Insert a user directly, bypassing the API."""

    def _make_user(
        email="ann@x.com",
        password=PASSWORD,
        name="Ann",
        role=UserRole.EMPLOYEE,
        company_id=None,
        verified=True,
    ) -> User:
        session = session_factory()
        try:
            user = User(
                email=email,
                password=hash_password(password),
                name=name,
                role=role,
                company_id=company_id,
                is_email_verified=verified,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            return user
        finally:
            session.close()

    return _make_user


@pytest.fixture
def make_company(session_factory):
    def _make_company(name="Acme", logo_url=None) -> Company:
        session = session_factory()
        try:
            company = Company(name=name, logo_url=logo_url)
            session.add(company)
            session.commit()
            session.refresh(company)
            return company
        finally:
            session.close()

    return _make_company


@pytest.fixture
def bearer(token_issuer):
    """Authorization header for a user object."""

    def _bearer(user) -> dict:
        return {"Authorization": f"Bearer {token_issuer.issue(user)}"}

    return _bearer


def assert_failure(result, error_type, message=None):
    """``result`` is a Failure carrying exactly ``error_type``."""
    assert not result.is_success, result
    assert type(result.error) is error_type, result.error
    if message is not None:
        assert result.error.message == message
