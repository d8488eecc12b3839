"""
Gateway: forwarding of execution requests to the isolated runner.
"""

from coderunner.core.gateway.proxy import ExecutionProxy, RunnerLocator

__all__ = [
    "ExecutionProxy",
    "RunnerLocator",
]
