from collections.abc import Generator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from coderunner.core.environment import EnvironmentManager
from coderunner.core.gateway import ExecutionProxy
from coderunner.main import create_app
from coderunner.runner.main import app as runner_app
from tests.utils.runtime import FakeRuntime, health_transport, runner_transport


@pytest.fixture
def runner_client() -> Generator[TestClient, None, None]:
    with TestClient(runner_app) as c:
        yield c


@pytest.fixture
def fake_runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def make_manager(fake_runtime: FakeRuntime):
    """Build an EnvironmentManager over a FakeRuntime with no settle delay."""

    def _make(
        runtime: FakeRuntime | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> EnvironmentManager:
        return EnvironmentManager(
            runtime or fake_runtime,  # type: ignore[arg-type]
            settle_delay=0,
            transport=transport or health_transport(),
        )

    return _make


@pytest.fixture
def make_api_app(fake_runtime: FakeRuntime):
    """
    Public API app whose container is a FakeRuntime and whose runner is the
    real runner app served in-process.
    """

    def _make(
        runtime: FakeRuntime | None = None,
        proxy_transport: httpx.AsyncBaseTransport | None = None,
    ) -> FastAPI:
        manager = EnvironmentManager(
            runtime or fake_runtime,  # type: ignore[arg-type]
            settle_delay=0,
            transport=runner_transport(),
        )
        client = httpx.AsyncClient(transport=proxy_transport or runner_transport())
        return create_app(environment=manager, proxy=ExecutionProxy(manager, client=client))

    return _make


@pytest.fixture
def api_client(make_api_app) -> Generator[TestClient, None, None]:
    with TestClient(make_api_app()) as c:
        yield c
