"""Tests for the public GET /health route."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient


def test_health_with_runner_up(api_client: TestClient) -> None:
    r = api_client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "runner": "healthy"}


def test_health_with_runner_down(api_client: TestClient) -> None:
    manager = api_client.app.state.environment
    with patch.object(manager, "check_health", new=AsyncMock(return_value=False)):
        r = api_client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "runner": "unhealthy"}
