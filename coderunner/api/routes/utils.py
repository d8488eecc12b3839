from fastapi import APIRouter

from coderunner.api.deps import EnvironmentDep
from coderunner.core.health import runner_health_check
from coderunner.schemas import HealthResponse

router = APIRouter(tags=["utils"])


@router.get("/health", response_model=HealthResponse)
async def health(environment: EnvironmentDep) -> dict[str, str]:
    """
    Liveness of this process plus reachability of the runner container.

    Always 200; `runner` reports "healthy" or "unhealthy".
    """
    return await runner_health_check(environment)
