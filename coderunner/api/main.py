from fastapi import APIRouter

from coderunner.api.routes import execute, utils

api_router = APIRouter()
api_router.include_router(utils.router)
api_router.include_router(execute.router)
