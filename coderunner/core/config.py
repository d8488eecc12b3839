from typing import Literal

from pydantic import HttpUrl, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "coderunner"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    SENTRY_DSN: HttpUrl | None = None
    LOG_LEVEL: str = "INFO"

    # Public API (the process that owns the container)
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3000

    # Isolated runner container
    RUNNER_CONTAINER_NAME: str = "py-code-runner"
    RUNNER_IMAGE: str = "py-code-runner:latest"
    RUNNER_BUILD_CONTEXT: str = "."
    RUNNER_DOCKERFILE: str = "docker/runner.Dockerfile"
    RUNNER_IMAGE_ALWAYS_BUILD: bool = False
    RUNNER_MEMORY_LIMIT: str = "256m"
    RUNNER_PORT: int = 3001
    # Host interface the container port is published on; loopback keeps it private.
    RUNNER_PUBLISH_HOST: str = "127.0.0.1"
    # Connect to this host instead of the container IP (e.g. 127.0.0.1 on Docker Desktop).
    RUNNER_HOST: str | None = None
    RUNNER_SETTLE_DELAY: float = 1.0
    RUNNER_HEALTH_ATTEMPTS: int = 10
    RUNNER_HEALTH_INTERVAL: float = 0.5
    RUNNER_HEALTH_TIMEOUT: float = 2.0
    RUNNER_REQUEST_TIMEOUT: float = 5.0

    # Restricted interpreter (runs inside the container)
    SCRIPT_EXEC_TIMEOUT_MS: int = 1000

    @model_validator(mode="after")
    def _check_timeouts(self) -> Self:
        if self.SCRIPT_EXEC_TIMEOUT_MS <= 0:
            raise ValueError("SCRIPT_EXEC_TIMEOUT_MS must be positive")
        if self.RUNNER_REQUEST_TIMEOUT * 1000 <= self.SCRIPT_EXEC_TIMEOUT_MS:
            raise ValueError(
                "RUNNER_REQUEST_TIMEOUT must exceed SCRIPT_EXEC_TIMEOUT_MS so a "
                "timed-out script can still report back"
            )
        return self


settings = Settings()  # type: ignore
