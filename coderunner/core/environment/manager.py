"""
EnvironmentManager: provisions, health-checks and tears down the runner container.

initialize() = ensure_image() -> ensure_running() -> wait_healthy().
Provisioning and readiness failures raise and leave the environment FAILED;
stop() never raises.
"""

import asyncio
import logging

import httpx

from coderunner.core.config import settings
from coderunner.core.exceptions import ProvisioningError, ReadinessError
from coderunner.core.retry import retry_until

from .docker import DockerCommandError, DockerRuntime
from .state import EnvironmentState, IsolatedEnvironment

logger = logging.getLogger(__name__)


class EnvironmentManager:
    def __init__(
        self,
        runtime: DockerRuntime | None = None,
        *,
        name: str | None = None,
        image: str | None = None,
        memory_limit: str | None = None,
        port: int | None = None,
        settle_delay: float | None = None,
        health_timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.runtime = runtime or DockerRuntime()
        self.environment = IsolatedEnvironment(
            name=name or settings.RUNNER_CONTAINER_NAME,
            image=image or settings.RUNNER_IMAGE,
            memory_limit=memory_limit or settings.RUNNER_MEMORY_LIMIT,
            port=port or settings.RUNNER_PORT,
        )
        self.settle_delay = settings.RUNNER_SETTLE_DELAY if settle_delay is None else settle_delay
        self.health_timeout = health_timeout or settings.RUNNER_HEALTH_TIMEOUT
        self._transport = transport

    @property
    def state(self) -> EnvironmentState:
        return self.environment.state

    @property
    def address(self) -> str | None:
        return self.environment.address

    @property
    def base_url(self) -> str | None:
        """Runner URL, or None while no address is known (not ready)."""
        if self.environment.address is None:
            return None
        host = settings.RUNNER_HOST or self.environment.address
        return f"http://{host}:{self.environment.port}"

    def _fail(self, message: str, exc: Exception) -> ProvisioningError:
        self.environment.transition(EnvironmentState.FAILED)
        logger.error("%s: %s", message, exc)
        return ProvisioningError(f"{message}: {exc}")

    async def ensure_image(self, *, rebuild: bool | None = None) -> None:
        """Build the runner image if it is missing (or always, when rebuild)."""
        env = self.environment
        if rebuild is None:
            rebuild = settings.RUNNER_IMAGE_ALWAYS_BUILD
        if not rebuild and await self.runtime.image_exists(env.image):
            logger.info("Runner image %s already present", env.image)
            return
        logger.info("Building runner image %s", env.image)
        try:
            await self.runtime.build_image(
                env.image, settings.RUNNER_BUILD_CONTEXT, settings.RUNNER_DOCKERFILE
            )
        except DockerCommandError as e:
            raise self._fail("Failed to build image", e) from e
        logger.info("Runner image %s built", env.image)

    async def ensure_running(self) -> str | None:
        """
        Adopt a running container, replace a stopped one, or create a new one.
        Returns the resolved address (None if inspection failed).
        """
        env = self.environment
        if await self.runtime.container_exists(env.name):
            if await self.runtime.container_running(env.name):
                address = await self.resolve_address()
                env.transition(EnvironmentState.RUNNING, address=address)
                logger.info("Adopted running container %s at %s", env.name, address)
                return address
            env.transition(EnvironmentState.STOPPED)
            logger.info("Removing stopped container %s", env.name)
            try:
                await self.runtime.remove_container(env.name)
            except DockerCommandError as e:
                raise self._fail("Failed to remove stale container", e) from e
            env.transition(EnvironmentState.ABSENT)

        logger.info("Starting runner container %s", env.name)
        try:
            await self.runtime.run_container(
                env.name,
                env.image,
                port=env.port,
                memory_limit=env.memory_limit,
                publish_host=settings.RUNNER_PUBLISH_HOST,
            )
        except DockerCommandError as e:
            raise self._fail("Failed to start container", e) from e

        await asyncio.sleep(self.settle_delay)
        address = await self.resolve_address()
        env.transition(EnvironmentState.RUNNING, address=address)
        logger.info("Container %s started with IP: %s", env.name, address)
        return address

    async def resolve_address(self) -> str | None:
        """Container IP from `docker inspect`; None means not ready."""
        address = await self.runtime.container_address(self.environment.name)
        if address is None:
            logger.warning("Could not resolve address of container %s", self.environment.name)
        return address

    async def check_health(self) -> bool:
        """GET /health on the runner. Never raises."""
        base_url = self.base_url
        if base_url is None:
            return False
        try:
            async with httpx.AsyncClient(
                timeout=self.health_timeout, transport=self._transport
            ) as client:
                resp = await client.get(f"{base_url}/health")
        except httpx.HTTPError as e:
            logger.debug("Health probe failed: %s", e)
            return False
        return resp.status_code == 200

    async def wait_healthy(
        self, max_attempts: int | None = None, interval: float | None = None
    ) -> None:
        """Poll check_health() a bounded number of times; ReadinessError on exhaustion."""
        attempts = max_attempts or settings.RUNNER_HEALTH_ATTEMPTS
        delay = settings.RUNNER_HEALTH_INTERVAL if interval is None else interval
        logger.info("Waiting for container to be healthy...")
        healthy = await retry_until(
            self.check_health, attempts=attempts, interval=delay, label="runner health probe"
        )
        if not healthy:
            self.environment.transition(EnvironmentState.FAILED)
            raise ReadinessError(
                f"Container failed to become healthy after {attempts} attempts"
            )
        self.environment.transition(EnvironmentState.HEALTHY)
        logger.info("Container is healthy")

    async def initialize(self) -> None:
        await self.ensure_image()
        await self.ensure_running()
        await self.wait_healthy()

    async def stop(self) -> None:
        """Best-effort stop + remove. Failures are logged, never raised."""
        env = self.environment
        logger.info("Stopping runner container %s", env.name)
        try:
            await self.runtime.stop_container(env.name)
            await self.runtime.remove_container(env.name)
        except DockerCommandError as e:
            logger.warning("Failed to stop container %s: %s", env.name, e)
        else:
            logger.info("Container stopped")
        env.transition(EnvironmentState.ABSENT)
