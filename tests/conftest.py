"""
Test configuration and fixtures.

Provides:
- in-memory SQLite database, tables recreated for every test
- user/trip factories and bearer headers minted with the app's own tokens
- a FastAPI TestClient
- email delivery replaced by a recorder
"""
import os
import tempfile

# must be set before config/database are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SENDGRID_API_KEY"] = ""
os.environ["LOG_DIR"] = os.path.join(tempfile.gettempdir(), "tripmate-test-logs")

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import models  # noqa: F401
from database import Base, engine, SessionLocal
from main import app
from models.User import User
from services import email_service, trip_service
from utils.security import create_access_token


@pytest.fixture(autouse=True)
def tables() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch) -> list:
    """Every email the code tries to send, as (to, subject)."""
    sent = []

    def fake_send_email(to_email, subject, html_content):
        sent.append((to_email, subject))
        return True

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return sent


@pytest.fixture
def make_user(db: Session):
    def _make(email: str, full_name: str = None) -> User:
        user = User(email=email, full_name=full_name)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def owner(make_user) -> User:
    return make_user("owner@example.com", "Olivia Owner")


@pytest.fixture
def alice(make_user) -> User:
    return make_user("alice@example.com", "Alice")


@pytest.fixture
def bob(make_user) -> User:
    return make_user("bob@example.com", "Bob")


@pytest.fixture
def trip(db: Session, owner: User):
    return trip_service.create_trip(db, owner, trip_name="Krabi weekend", num_days=3, description="Beach trip")


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.user_id, user.email)}"}


@pytest.fixture
def headers_for():
    return auth_headers
