"""
Runner endpoint: the FastAPI app that runs inside the isolated container.

GET  /health   pure liveness, {"status": "ok"}
POST /execute  evaluate {code} with the restricted interpreter

/execute waits synchronously on the event loop thread while a child process
evaluates the snippet, so one slow snippet blocks this process until its
deadline (plus a short kill grace); scale by running more containers.
"""

import logging

from fastapi import FastAPI

from coderunner.core.config import settings
from coderunner.core.exceptions import install_exception_handlers
from coderunner.core.health import liveness_check
from coderunner.engines import ScriptExecutor
from coderunner.schemas import ErrorResponse, ExecuteRequest, ExecutionResult, HealthResponse

logger = logging.getLogger(__name__)

app = FastAPI(
    title=f"{settings.PROJECT_NAME}-runner",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)
install_exception_handlers(app)

executor = ScriptExecutor()


@app.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health() -> dict[str, str]:
    return liveness_check()


@app.post(
    "/execute",
    response_model=ExecutionResult,
    response_model_by_alias=True,
    responses={400: {"model": ErrorResponse}},
)
async def execute(body: ExecuteRequest) -> ExecutionResult:
    """Evaluate the snippet; interpreter failures still return 200 with `error` set."""
    result = executor.evaluate(body.code)
    if result.error:
        logger.debug("Snippet failed: %s", result.error)
    return result
