from fastapi import APIRouter

from coderunner.api.deps import ProxyDep
from coderunner.schemas import ErrorResponse, ExecuteRequest, ExecutionResult

router = APIRouter(tags=["execute"])


@router.post(
    "/execute",
    response_model=ExecutionResult,
    responses={
        400: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def execute(body: ExecuteRequest, proxy: ProxyDep) -> ExecutionResult:
    """
    Run a Python snippet in the isolated runner.

    Snippet failures (syntax, exceptions, timeout) come back as 200 with
    `error` set; transport failures become 5xx `{"error": ...}`.
    """
    return await proxy.forward(body.code)
