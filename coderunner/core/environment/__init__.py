"""
Isolated runner environment: docker runtime wrapper, lifecycle state, manager.
"""

from .docker import DockerCommandError, DockerRuntime
from .manager import EnvironmentManager
from .state import EnvironmentState, InvalidTransitionError, IsolatedEnvironment

__all__ = [
    "DockerCommandError",
    "DockerRuntime",
    "EnvironmentManager",
    "EnvironmentState",
    "InvalidTransitionError",
    "IsolatedEnvironment",
]
