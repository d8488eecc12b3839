import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI

from coderunner.api.main import api_router
from coderunner.core.config import settings
from coderunner.core.environment import EnvironmentManager
from coderunner.core.exceptions import install_exception_handlers
from coderunner.core.gateway import ExecutionProxy

_logger = logging.getLogger(__name__)


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)


def create_app(
    environment: EnvironmentManager | None = None,
    proxy: ExecutionProxy | None = None,
) -> FastAPI:
    """
    Public API. Startup provisions the runner container (image, container,
    health) and fails hard if any step fails; shutdown tears it down on a
    best-effort basis. uvicorn maps SIGINT/SIGTERM to shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        env = environment or EnvironmentManager()
        fwd = proxy or ExecutionProxy(env)
        app.state.environment = env
        app.state.proxy = fwd
        _logger.info("Initializing code runner...")
        try:
            await env.initialize()
        except Exception:
            await fwd.close()
            raise
        _logger.info("Code runner ready at %s", env.base_url)
        try:
            yield
        finally:
            _logger.info("Shutting down...")
            await fwd.close()
            await env.stop()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        docs_url="/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    install_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
