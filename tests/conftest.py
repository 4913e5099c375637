"""
Shared fixtures for the FormFlow test suite.

Every test gets a freshly created in-memory SQLite schema. Outgoing email is
captured in a list rather than delivered, and the HTTP clients talk to the
app in-process through ASGITransport.
"""
import os
import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

# Must be set before the app (and its engine/limiter) is imported
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ENV"] = "test"
os.environ["TESTING"] = "1"
os.environ["EMAIL_BACKEND"] = "console"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from formflow.core.deps import COOKIE_NAME, get_db
from formflow.core.security import create_session_token, hash_password
from formflow.db.base import Base
from formflow.db.models import User
from formflow.db.session import SessionLocal, engine
from formflow.main import app
from formflow.services import email_sender

TEST_PASSWORD = "secret123"


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates a fresh schema and session for test isolation.

    The in-memory engine uses a single shared connection, so app code can
    commit freely; the schema is dropped afterwards.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


def make_user(db: Session, email: str | None = None, name: str = "Test User") -> User:
    user = User(
        id=uuid.uuid4(),
        email=email or f"test-{uuid.uuid4().hex[:8]}@test.com",
        password_hash=hash_password(TEST_PASSWORD),
        name=name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user_password() -> str:
    """Plaintext password of users created by make_user."""
    return TEST_PASSWORD


@pytest.fixture(scope="function")
def test_user(db: Session) -> User:
    """Create a test form author."""
    return make_user(db)


@pytest.fixture(scope="function")
def other_user(db: Session) -> User:
    """A second author for ownership checks."""
    return make_user(db, name="Other User")


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Session cookie for an author, as the browser would hold it."""
    user: User
    token: str
    cookie_name: str = COOKIE_NAME


@pytest.fixture(scope="function")
def test_auth(test_user: User) -> TestAuth:
    """Session cookie value for test_user."""
    token = create_session_token(
        user_id=test_user.id,
        email=test_user.email,
        token_version=test_user.token_version,
    )
    return TestAuth(user=test_user, token=token)


# =============================================================================
# Email Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def sent_emails(monkeypatch) -> list[dict]:
    """Capture outgoing email; every send succeeds unless a test overrides it."""
    outbox: list[dict] = []

    async def fake_send_email(**kwargs):
        outbox.append(kwargs)
        return {"success": True, "message_id": f"test-{len(outbox)}"}

    monkeypatch.setattr(email_sender, "send_email", fake_send_email)
    return outbox


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Anonymous client, as a respondent opening a survey link.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    db: Session,
    test_auth: TestAuth,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Client signed in as test_user, sending the CSRF header on every call.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={test_auth.cookie_name: test_auth.token},
        headers={"X-Requested-With": "XMLHttpRequest"},  # CSRF header
    ) as c:
        yield c

    app.dependency_overrides.clear()
