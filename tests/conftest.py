"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time, so the environment must be in place first
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("COOKIE_SECRET", "test-cookie-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("APP_ENV", "development")

import itertools
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from api.dependencies import get_cv_storage, get_db, get_email_service
from api.main import app
from core.integrations.email import EmailService
from core.storage.local import LocalStorage
from database.engine import Base, create_session_factory
from database.models import applications, jobs, organizations, users  # noqa: F401

PASSWORD = "secret123"

_emails = itertools.count(1)


@pytest.fixture
def mailer():
    """Mail service double; records verification mails instead of sending them."""
    service = Mock(spec=EmailService)
    service.send_verification_email.return_value = True
    return service


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(base_path=str(tmp_path / "uploads"))


@pytest.fixture
def engine():
    """One in-memory SQLite database shared by every session of a test."""
    return create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def client(mailer, storage, engine, session_factory):
    """TestClient bound to a fresh in-memory database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: mailer
    app.dependency_overrides[get_cv_storage] = lambda: storage

    with TestClient(app) as test_client:
        test_client.portal.call(create_schema)
        yield test_client
        test_client.portal.call(engine.dispose)

    app.dependency_overrides.clear()


@pytest.fixture
def run_db(client, session_factory):
    """
    Run ``fn(session, *args)`` on the client's event loop.

    Used to inspect or adjust rows the API has no endpoint for.
    """

    def run(fn, *args):
        async def call():
            async with session_factory() as session:
                return await fn(session, *args)

        return client.portal.call(call)

    return run


def registration_payload(role: str = "talent", email: str | None = None, **overrides) -> dict:
    payload = {
        "name": "Jane",
        "lastName": "Doe",
        "email": email or f"user{next(_emails)}@example.com",
        "password": PASSWORD,
        "location": {"country": "Canada", "city": "Toronto"},
        "role": role,
        "phone": "+1-555-0100",
    }
    if role == "employer":
        payload.update(
            {"companyName": "Acme", "companySize": "11-50", "industry": "Software"}
        )
    payload.update(overrides)
    return payload


@pytest.fixture
def register(client, mailer):
    """
    Register an account and return ``(payload, verification_token)``.

    The token is read from the mail the service would have sent.
    """

    def _register(role: str = "talent", **overrides):
        payload = registration_payload(role, **overrides)
        response = client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 201, response.text
        _, _, token, _ = mailer.send_verification_email.call_args.args
        return payload, token

    return _register


@pytest.fixture
def login(client):
    """Log in and return the token-user; the client keeps the session cookies."""

    def _login(email: str, password: str = PASSWORD):
        response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()["tokenUser"]

    return _login


@pytest.fixture
def make_user(client, register, login):
    """Register, verify and log in; returns the token-user with its email."""

    def _make_user(role: str = "talent", **overrides):
        payload, token = register(role, **overrides)
        response = client.post(
            "/api/v1/auth/verify-Email",
            json={"verificationToken": token, "email": payload["email"]},
        )
        assert response.status_code == 200, response.text
        user = login(payload["email"])
        user["email"] = payload["email"]
        return user

    return _make_user


def job_payload(**overrides) -> dict:
    payload = {
        "title": "Backend Engineer",
        "company": "Acme",
        "position": "Engineer",
        "description": "Build APIs",
        "jobType": "full-time",
        "jobLocation": {"country": "Canada", "city": "Toronto"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_job(client):
    """Create a job as the currently logged-in employer and return it."""

    def _create_job(**overrides):
        response = client.post("/api/v1/jobs", json=job_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["job"]

    return _create_job


@pytest.fixture
def apply(client):
    """Apply for a job as the currently logged-in talent."""

    def _apply(job_id, cv: bytes = b"%PDF-1.4 resume", filename: str = "cv.pdf", **fields):
        files = {"cv": (filename, cv, "application/pdf")} if cv is not None else None
        data = {"coverLetter": "Hello", "skills": "python, sql", **fields}
        return client.post(f"/api/v1/jobs/applyForJob/{job_id}", data=data, files=files)

    return _apply
