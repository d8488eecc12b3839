"""
Error taxonomy and the JSON error envelope `{"error": message}` shared by the
public API and the runner endpoint.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coderunner.core.config import settings
from coderunner.schemas import CODE_REQUIRED_MESSAGE, INVALID_JSON_MESSAGE

_logger = logging.getLogger(__name__)


class ProvisioningError(RuntimeError):
    """Image build or container create/remove failed. Fatal at startup."""


class ReadinessError(RuntimeError):
    """The runner never answered its health probe. Fatal at startup."""


class RunnerError(Exception):
    """Request-time failure talking to the runner. Mapped to a 5xx response."""

    status_code = 502


class RunnerNotReadyError(RunnerError):
    status_code = 503

    def __init__(self, message: str = "Runner is not ready") -> None:
        super().__init__(message)


class RunnerConnectionError(RunnerError):
    status_code = 502


class RunnerTimeoutError(RunnerError):
    status_code = 504

    def __init__(self, message: str = "Runner request timed out") -> None:
        super().__init__(message)


class RunnerResponseError(RunnerError):
    status_code = 502

    def __init__(self, message: str = "Invalid response from runner") -> None:
        super().__init__(message)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def install_exception_handlers(app: FastAPI) -> None:
    """Register handlers that render every failure as `{"error": ...}`."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """400 with a fixed message; malformed JSON gets its own message."""
        if any(err.get("type") == "json_invalid" for err in exc.errors()):
            return error_response(400, INVALID_JSON_MESSAGE)
        return error_response(400, CODE_REQUIRED_MESSAGE)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RunnerError)
    async def runner_exception_handler(request: Request, exc: RunnerError) -> JSONResponse:
        _logger.warning("Runner request failed on %s: %s", request.url.path, exc)
        return error_response(exc.status_code, str(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions: log and return 500 with a safe message."""
        _logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        detail = "Internal server error"
        if settings.ENVIRONMENT == "local":
            detail = f"Internal server error: {exc}"
        return error_response(500, detail)
