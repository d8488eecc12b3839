"""
Health-check helpers for the two services.

Runner liveness: the endpoint process is responsive (no I/O).
API health: liveness plus whether the runner answers its probe.
"""

from coderunner.core.environment import EnvironmentManager


def liveness_check() -> dict[str, str]:
    """Pure liveness signal; never checks dependencies."""
    return {"status": "ok"}


async def runner_health_check(manager: EnvironmentManager) -> dict[str, str]:
    """Public /health body: own status plus runner reachability."""
    healthy = await manager.check_health()
    return {
        "status": "ok",
        "runner": "healthy" if healthy else "unhealthy",
    }
