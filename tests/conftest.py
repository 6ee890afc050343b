"""Pytest configuration and fixtures."""

import os

# Settings are read once at import time; point them at in-memory SQLite first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import tenancy.models  # noqa: F401  (register mappers)
from tenancy.database import Base, SessionLocal, engine
from tenancy.main import app
from tenancy.models.plan import Plan
from tenancy.models.user import GlobalRole
from tenancy.services import auth as auth_service

DEFAULT_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def schema():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(schema) -> Session:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(schema) -> TestClient:
    # No context manager: the lifespan would dispose the shared in-memory engine
    return TestClient(app)


@pytest.fixture
def make_user(db):
    """Register a user directly through the service layer."""

    def _make_user(email: str, full_name: str = "", super_admin: bool = False):
        session = auth_service.register(db, email=email, password=DEFAULT_PASSWORD, full_name=full_name)
        user = session.user
        if super_admin:
            user.global_role = GlobalRole.SUPER_ADMIN
            db.commit()
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user("root@example.com", "Root", super_admin=True)


@pytest.fixture
def plan(db) -> Plan:
    plan = Plan(name="Community", description="", max_members=25, max_admins=2, feature_flags={"events": True})
    db.add(plan)
    db.commit()
    return plan


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register_via_api(client: TestClient, email: str, password: str = DEFAULT_PASSWORD, **extra) -> dict:
    response = client.post("/api/v1/auth/register", json={"email": email, "password": password, **extra})
    assert response.status_code == 201, response.text
    return response.json()


def promote(email: str) -> None:
    session = SessionLocal()
    try:
        auth_service.promote_super_admin(session, email)
    finally:
        session.close()
