"""
Execution proxy: forward a snippet to the runner's POST /execute.

The transport timeout (RUNNER_REQUEST_TIMEOUT) is larger than the script
deadline so the runner's own timeout result can travel back. Failures are
classified as not-ready, connection, timeout or bad-response; a result whose
`error` field is set is returned untouched.
"""

import logging
from typing import Protocol

import httpx
from pydantic import ValidationError

from coderunner.core.config import settings
from coderunner.core.exceptions import (
    RunnerConnectionError,
    RunnerNotReadyError,
    RunnerResponseError,
    RunnerTimeoutError,
)
from coderunner.schemas import ExecutionResult

logger = logging.getLogger(__name__)


class RunnerLocator(Protocol):
    @property
    def base_url(self) -> str | None: ...


class ExecutionProxy:
    """
    Reads the runner address from `locator` (the EnvironmentManager) on every
    call and never changes lifecycle state. One httpx.AsyncClient per proxy.
    """

    def __init__(
        self,
        locator: RunnerLocator,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.locator = locator
        self.timeout = timeout or settings.RUNNER_REQUEST_TIMEOUT
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    async def forward(self, code: str) -> ExecutionResult:
        base_url = self.locator.base_url
        if base_url is None:
            raise RunnerNotReadyError()

        try:
            resp = await self._client.post(
                f"{base_url}/execute", json={"code": code}, timeout=self.timeout
            )
        except httpx.ConnectTimeout as e:
            raise RunnerConnectionError(f"Runner request failed: {e}") from e
        except httpx.TimeoutException as e:
            logger.warning("Runner request timed out after %ss: %s", self.timeout, e)
            raise RunnerTimeoutError() from e
        except (httpx.RemoteProtocolError, httpx.DecodingError) as e:
            # truncated or undecodable body
            raise RunnerResponseError() from e
        except httpx.TransportError as e:
            raise RunnerConnectionError(f"Runner request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise RunnerResponseError() from e

        if resp.status_code != 200:
            message = data.get("error") if isinstance(data, dict) else None
            raise RunnerResponseError(
                f"Runner responded with status {resp.status_code}: {message or resp.reason_phrase}"
            )

        try:
            return ExecutionResult.model_validate(data)
        except ValidationError as e:
            raise RunnerResponseError() from e

    async def close(self) -> None:
        await self._client.aclose()
