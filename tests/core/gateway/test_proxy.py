"""Unit tests for core.gateway.proxy (runner replaced by httpx.MockTransport)."""

import json
from collections.abc import Callable
from dataclasses import dataclass

import httpx
import pytest

from coderunner.core.exceptions import (
    RunnerConnectionError,
    RunnerNotReadyError,
    RunnerResponseError,
    RunnerTimeoutError,
)
from coderunner.core.gateway import ExecutionProxy

RUNNER_URL = "http://172.17.0.2:3001"


@dataclass
class StaticLocator:
    base_url: str | None = RUNNER_URL


def _proxy(
    handler: Callable[[httpx.Request], httpx.Response],
    locator: StaticLocator | None = None,
) -> ExecutionProxy:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ExecutionProxy(locator or StaticLocator(), timeout=5.0, client=client)


async def test_forward_returns_runner_result() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"output": "", "result": "2", "executionTimeMs": 0.4})

    result = await _proxy(handler).forward("1 + 1")
    assert result.result == "2"
    assert result.execution_time_ms == 0.4
    assert str(seen[0].url) == f"{RUNNER_URL}/execute"
    assert seen[0].method == "POST"
    assert json.loads(seen[0].content) == {"code": "1 + 1"}


async def test_snippet_error_passes_through() -> None:
    body = {
        "output": "",
        "result": None,
        "error": "Execution timed out (limit: 1000ms)",
        "executionTimeMs": 1001.2,
    }
    result = await _proxy(lambda r: httpx.Response(200, json=body)).forward("while True: pass")
    assert result.error == "Execution timed out (limit: 1000ms)"
    assert result.result is None


async def test_not_ready_without_address() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("runner must not be contacted")

    with pytest.raises(RunnerNotReadyError) as info:
        await _proxy(handler, StaticLocator(base_url=None)).forward("1")
    assert info.value.status_code == 503


async def test_connection_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(RunnerConnectionError, match="Connection refused") as info:
        await _proxy(handler).forward("1")
    assert info.value.status_code == 502


async def test_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(RunnerTimeoutError) as info:
        await _proxy(handler).forward("1")
    assert info.value.status_code == 504


async def test_non_json_body() -> None:
    with pytest.raises(RunnerResponseError, match="Invalid response from runner"):
        await _proxy(lambda r: httpx.Response(200, text="<html>")).forward("1")


async def test_non_200_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "Code is required and must be a string"})

    with pytest.raises(RunnerResponseError, match="status 400: Code is required"):
        await _proxy(handler).forward("1")


async def test_unexpected_shape() -> None:
    with pytest.raises(RunnerResponseError):
        await _proxy(lambda r: httpx.Response(200, json={"output": "x"})).forward("1")


async def test_locator_read_per_call() -> None:
    locator = StaticLocator(base_url=None)
    proxy = _proxy(lambda r: httpx.Response(200, json={"executionTimeMs": 0}), locator)
    with pytest.raises(RunnerNotReadyError):
        await proxy.forward("1")
    locator.base_url = RUNNER_URL
    assert (await proxy.forward("1")).output == ""
    await proxy.close()


async def test_truncated_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.RemoteProtocolError(
            "peer closed connection without sending complete message body", request=request
        )

    with pytest.raises(RunnerResponseError, match="Invalid response from runner") as info:
        await _proxy(handler).forward("1")
    assert info.value.status_code == 502


async def test_undecodable_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.DecodingError("Error -3 while decompressing data", request=request)

    with pytest.raises(RunnerResponseError):
        await _proxy(handler).forward("1")


async def test_connect_timeout_is_connection_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(RunnerConnectionError, match="Runner request failed") as info:
        await _proxy(handler).forward("1")
    assert info.value.status_code == 502
