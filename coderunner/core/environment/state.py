"""
Lifecycle state of the isolated runner container.

ABSENT -> STOPPED -> RUNNING -> HEALTHY, with FAILED reachable from any
provisioning step. Only EnvironmentManager holds an IsolatedEnvironment and
every change goes through transition().
"""

from dataclasses import dataclass
from enum import Enum


class EnvironmentState(str, Enum):
    ABSENT = "absent"
    STOPPED = "stopped"
    RUNNING = "running"
    HEALTHY = "healthy"
    FAILED = "failed"


_TRANSITIONS: dict[EnvironmentState, frozenset[EnvironmentState]] = {
    EnvironmentState.ABSENT: frozenset(
        {EnvironmentState.ABSENT, EnvironmentState.STOPPED, EnvironmentState.RUNNING, EnvironmentState.FAILED}
    ),
    EnvironmentState.STOPPED: frozenset(
        {EnvironmentState.ABSENT, EnvironmentState.FAILED}
    ),
    EnvironmentState.RUNNING: frozenset(
        {
            EnvironmentState.ABSENT,
            EnvironmentState.STOPPED,
            EnvironmentState.RUNNING,
            EnvironmentState.HEALTHY,
            EnvironmentState.FAILED,
        }
    ),
    EnvironmentState.HEALTHY: frozenset(
        {
            EnvironmentState.ABSENT,
            EnvironmentState.STOPPED,
            EnvironmentState.RUNNING,
            EnvironmentState.HEALTHY,
            EnvironmentState.FAILED,
        }
    ),
    EnvironmentState.FAILED: frozenset(
        {EnvironmentState.ABSENT, EnvironmentState.STOPPED, EnvironmentState.RUNNING, EnvironmentState.FAILED}
    ),
}


class InvalidTransitionError(RuntimeError):
    def __init__(self, current: EnvironmentState, target: EnvironmentState) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid environment transition: {current.value} -> {target.value}")


@dataclass
class IsolatedEnvironment:
    name: str
    image: str
    memory_limit: str
    port: int
    state: EnvironmentState = EnvironmentState.ABSENT
    address: str | None = None

    def transition(self, target: EnvironmentState, *, address: str | None = None) -> None:
        """
        Move to `target`. RUNNING/HEALTHY keep the given address (or the current
        one when None is passed); every other state clears it.
        """
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.state, target)
        self.state = target
        if target in (EnvironmentState.RUNNING, EnvironmentState.HEALTHY):
            if address is not None:
                self.address = address
        else:
            self.address = None

    @property
    def is_ready(self) -> bool:
        return self.state is EnvironmentState.HEALTHY and self.address is not None
