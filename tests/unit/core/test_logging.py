"""
Tests for structured request logging and sensitive data masking.
"""

import json
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.middleware.logging import (
    StructuredFormatter,
    StructuredLoggingMiddleware,
    mask_headers,
    mask_sensitive_data,
)


class TestMasking:
    """Test credential and PII masking."""

    def test_sensitive_keys_redacted(self):
        masked = mask_sensitive_data(
            {
                "password": "secret123",
                "newPassword": "other",
                "verificationToken": "abc",
                "name": "Jane",
            }
        )
        assert masked == {
            "password": "[REDACTED]",
            "newPassword": "[REDACTED]",
            "verificationToken": "[REDACTED]",
            "name": "Jane",
        }

    def test_nested_structures(self):
        masked = mask_sensitive_data({"user": {"refreshToken": "x"}, "items": [{"secret": 1}]})
        assert masked["user"]["refreshToken"] == "[REDACTED]"
        assert masked["items"][0]["secret"] == "[REDACTED]"

    def test_pii_in_free_text(self):
        masked = mask_sensitive_data("contact jane@example.com or +1-555-0100")
        assert "jane@example.com" not in masked
        assert "[EMAIL]" in masked
        assert "[PHONE]" in masked

    def test_cookie_header_redacted(self):
        headers = mask_headers({"cookie": "accessToken=s:abc", "accept": "*/*"})
        assert headers == {"cookie": "[REDACTED]", "accept": "*/*"}


class TestStructuredLoggingMiddleware:
    """Test request logs and request ids."""

    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(StructuredLoggingMiddleware, log_request_body=True)

        @app.post("/api/v1/auth/login")
        async def login():
            return {"ok": True}

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        return TestClient(app)

    def test_request_id_generated(self, client):
        response = client.post("/api/v1/auth/login", json={})
        assert response.headers["x-request-id"]

    def test_request_id_propagated(self, client):
        response = client.post(
            "/api/v1/auth/login", json={}, headers={"x-request-id": "req-123"}
        )
        assert response.headers["x-request-id"] == "req-123"

    def test_password_never_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="core.middleware.logging"):
            client.post(
                "/api/v1/auth/login",
                json={"email": "jane@example.com", "password": "hunter2"},
            )

        assert "hunter2" not in caplog.text
        events = [
            json.loads(r.getMessage())["event"]
            for r in caplog.records
            if r.name == "core.middleware.logging"
        ]
        assert events == ["request_started", "request_completed"]

    def test_health_checks_not_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="core.middleware.logging"):
            response = client.get("/health")

        assert response.headers["x-request-id"]
        assert not [r for r in caplog.records if r.name == "core.middleware.logging"]


class TestStructuredFormatter:
    def test_formats_json(self):
        record = logging.LogRecord("app", logging.INFO, __file__, 1, "hello", None, None)
        data = json.loads(StructuredFormatter().format(record))
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
