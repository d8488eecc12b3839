"""
Async wrapper around the docker CLI.

Every call shells out with asyncio.create_subprocess_exec so the event loop
keeps serving while docker works. A non-zero exit raises DockerCommandError
carrying stderr.
"""

from __future__ import annotations

import asyncio
import logging
import shutil

logger = logging.getLogger(__name__)


class DockerCommandError(RuntimeError):
    """A docker CLI invocation failed (or docker is not installed)."""

    def __init__(self, args: tuple[str, ...], message: str, returncode: int | None = None) -> None:
        self.command = args
        self.returncode = returncode
        super().__init__(message)


class DockerRuntime:
    """
    Container runtime used by EnvironmentManager. Methods that answer a yes/no
    question (image_exists, container_exists, container_running) return False
    when docker itself fails; methods that change state raise.
    """

    def __init__(self, executable: str = "docker") -> None:
        self.executable = executable

    async def _exec(self, *args: str) -> str:
        if shutil.which(self.executable) is None:
            raise DockerCommandError(args, f"{self.executable} executable not found")
        logger.debug("Running: %s %s", self.executable, " ".join(args))
        proc = await asyncio.create_subprocess_exec(
            self.executable,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip() or f"exit code {proc.returncode}"
            raise DockerCommandError(args, message, proc.returncode)
        return stdout.decode(errors="replace").strip()

    async def _query(self, *args: str) -> str | None:
        try:
            return await self._exec(*args)
        except DockerCommandError as e:
            logger.debug("docker %s failed: %s", args[0], e)
            return None

    async def image_exists(self, image: str) -> bool:
        return await self._query("image", "inspect", "--format", "{{.Id}}", image) is not None

    async def build_image(self, image: str, context: str, dockerfile: str | None = None) -> None:
        args = ["build", "-t", image]
        if dockerfile:
            args += ["-f", dockerfile]
        await self._exec(*args, context)

    async def container_exists(self, name: str) -> bool:
        out = await self._query("ps", "-a", "--filter", f"name=^/?{name}$", "--format", "{{.Names}}")
        return name in (out or "").splitlines()

    async def container_running(self, name: str) -> bool:
        out = await self._query(
            "ps", "--filter", f"name=^/?{name}$", "--filter", "status=running", "--format", "{{.Names}}"
        )
        return name in (out or "").splitlines()

    async def run_container(
        self,
        name: str,
        image: str,
        *,
        port: int,
        memory_limit: str,
        publish_host: str = "127.0.0.1",
    ) -> str:
        """Start a detached container; returns its id."""
        return await self._exec(
            "run",
            "-d",
            "--name",
            name,
            f"--memory={memory_limit}",
            "-p",
            f"{publish_host}:{port}:{port}",
            image,
        )

    async def stop_container(self, name: str) -> None:
        await self._exec("stop", name)

    async def remove_container(self, name: str) -> None:
        await self._exec("rm", name)

    async def container_address(self, name: str) -> str | None:
        """First IP address across the container's networks, or None."""
        out = await self._query(
            "inspect", "-f", "{{range .NetworkSettings.Networks}}{{.IPAddress}} {{end}}", name
        )
        if not out:
            return None
        return out.split()[0]
