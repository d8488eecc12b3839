from typing import Annotated

from fastapi import Depends, Request

from coderunner.core.environment import EnvironmentManager
from coderunner.core.gateway import ExecutionProxy


def get_environment(request: Request) -> EnvironmentManager:
    return request.app.state.environment


def get_proxy(request: Request) -> ExecutionProxy:
    return request.app.state.proxy


EnvironmentDep = Annotated[EnvironmentManager, Depends(get_environment)]
ProxyDep = Annotated[ExecutionProxy, Depends(get_proxy)]
