"""
Tests for health and readiness probes.
"""

from unittest.mock import AsyncMock

from sqlalchemy.exc import OperationalError

from api.main import app
from database.engine import get_db


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready(self, client):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ready"}

    def test_ready_database_down(self, client):
        """Readiness reports 503 when the query fails."""
        session = AsyncMock()
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))

        async def broken_db():
            yield session

        app.dependency_overrides[get_db] = broken_db

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json() == {"status": "unavailable"}
