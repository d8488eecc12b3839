"""Unit tests for core.environment.docker (subprocess patched out)."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from coderunner.core.environment import DockerCommandError, DockerRuntime


def _proc(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    return proc


@pytest.fixture
def docker_on_path():
    with patch("coderunner.core.environment.docker.shutil.which", return_value="/usr/bin/docker"):
        yield


def _patch_exec(*procs: MagicMock):
    return patch(
        "coderunner.core.environment.docker.asyncio.create_subprocess_exec",
        new=AsyncMock(side_effect=list(procs)),
    )


@pytest.mark.usefixtures("docker_on_path")
class TestDockerRuntime:
    async def test_run_container_args(self) -> None:
        with _patch_exec(_proc(stdout=b"abc123\n")) as exec_:
            cid = await DockerRuntime().run_container(
                "py-code-runner", "py-code-runner:latest", port=3001, memory_limit="256m"
            )
        assert cid == "abc123"
        args = exec_.await_args.args
        assert args == (
            "docker",
            "run",
            "-d",
            "--name",
            "py-code-runner",
            "--memory=256m",
            "-p",
            "127.0.0.1:3001:3001",
            "py-code-runner:latest",
        )

    async def test_build_image_with_dockerfile(self) -> None:
        with _patch_exec(_proc()) as exec_:
            await DockerRuntime().build_image("img:1", ".", "docker/runner.Dockerfile")
        assert exec_.await_args.args == (
            "docker", "build", "-t", "img:1", "-f", "docker/runner.Dockerfile", "."
        )

    async def test_failure_raises_with_stderr(self) -> None:
        with _patch_exec(_proc(returncode=1, stderr=b"No such container\n")):
            with pytest.raises(DockerCommandError, match="No such container") as info:
                await DockerRuntime().stop_container("missing")
        assert info.value.returncode == 1
        assert info.value.command == ("stop", "missing")

    async def test_image_exists(self) -> None:
        with _patch_exec(_proc(stdout=b"sha256:1\n"), _proc(returncode=1)):
            runtime = DockerRuntime()
            assert await runtime.image_exists("img:1") is True
            assert await runtime.image_exists("img:2") is False

    async def test_container_exists_matches_exact_name(self) -> None:
        with _patch_exec(_proc(stdout=b"py-code-runner-old\n"), _proc(stdout=b"py-code-runner\n")):
            runtime = DockerRuntime()
            assert await runtime.container_exists("py-code-runner") is False
            assert await runtime.container_exists("py-code-runner") is True

    async def test_container_running(self) -> None:
        with _patch_exec(_proc(stdout=b""), _proc(stdout=b"py-code-runner\n")) as exec_:
            runtime = DockerRuntime()
            assert await runtime.container_running("py-code-runner") is False
            assert await runtime.container_running("py-code-runner") is True
        assert "status=running" in exec_.await_args.args

    async def test_container_address_first_network(self) -> None:
        with _patch_exec(_proc(stdout=b"172.17.0.2 10.0.0.3 \n")):
            assert await DockerRuntime().container_address("c") == "172.17.0.2"

    async def test_container_address_missing(self) -> None:
        with _patch_exec(_proc(stdout=b" \n"), _proc(returncode=1, stderr=b"No such object")):
            runtime = DockerRuntime()
            assert await runtime.container_address("c") is None
            assert await runtime.container_address("c") is None


async def test_missing_executable() -> None:
    with patch("coderunner.core.environment.docker.shutil.which", return_value=None):
        runtime = DockerRuntime()
        with pytest.raises(DockerCommandError, match="not found"):
            await runtime.stop_container("c")
        assert await runtime.image_exists("img") is False
