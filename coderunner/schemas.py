"""
Request/response schemas shared by the public API and the runner endpoint.
"""

from pydantic import BaseModel, ConfigDict, Field, StrictStr

CODE_REQUIRED_MESSAGE = "Code is required and must be a string"
INVALID_JSON_MESSAGE = "Invalid JSON body"


class ExecuteRequest(BaseModel):
    """Body of POST /execute: one opaque snippet."""

    code: StrictStr = Field(min_length=1)


class ExecutionResult(BaseModel):
    """
    Outcome of one evaluation. `error` and `result` are never both set;
    `errors` is the captured console.error channel, not a failure flag.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    output: str = ""
    errors: str | None = None
    result: str | None = None
    error: str | None = None
    execution_time_ms: float = Field(alias="executionTimeMs")


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str = "ok"
    runner: str | None = None
