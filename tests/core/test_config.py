"""Unit tests for core.config.Settings validation."""

import pytest
from pydantic import ValidationError

from coderunner.core.config import Settings


def test_defaults() -> None:
    s = Settings(_env_file=None)
    assert s.RUNNER_CONTAINER_NAME == "py-code-runner"
    assert s.RUNNER_MEMORY_LIMIT == "256m"
    assert s.RUNNER_PORT == 3001
    assert s.API_PORT == 3000
    assert s.SCRIPT_EXEC_TIMEOUT_MS == 1000
    assert s.RUNNER_HEALTH_ATTEMPTS == 10
    assert s.RUNNER_HEALTH_INTERVAL == 0.5


def test_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RUNNER_MEMORY_LIMIT", "128m")
    monkeypatch.setenv("SCRIPT_EXEC_TIMEOUT_MS", "250")
    s = Settings(_env_file=None)
    assert s.RUNNER_MEMORY_LIMIT == "128m"
    assert s.SCRIPT_EXEC_TIMEOUT_MS == 250


def test_request_timeout_must_exceed_script_timeout() -> None:
    with pytest.raises(ValidationError, match="RUNNER_REQUEST_TIMEOUT"):
        Settings(_env_file=None, RUNNER_REQUEST_TIMEOUT=1.0, SCRIPT_EXEC_TIMEOUT_MS=1000)


def test_script_timeout_must_be_positive() -> None:
    with pytest.raises(ValidationError, match="positive"):
        Settings(_env_file=None, SCRIPT_EXEC_TIMEOUT_MS=0)
