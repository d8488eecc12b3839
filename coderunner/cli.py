"""
Console entry points.

  coderunner-api     public API on API_HOST:API_PORT (provisions the runner container)
  coderunner-runner  runner endpoint, started inside the container
"""

import argparse
import logging

import uvicorn

from coderunner.core.config import settings

logger = logging.getLogger(__name__)


def _parse(description: str, default_host: str, default_port: int) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--host", default=default_host)
    parser.add_argument("--port", type=int, default=default_port)
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    return parser.parse_args()


def api() -> None:
    args = _parse("Serve the public code-execution API.", settings.API_HOST, settings.API_PORT)
    logging.basicConfig(level=args.log_level.upper())
    logger.info("API server starting on http://%s:%s", args.host, args.port)
    uvicorn.run(
        "coderunner.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


def runner() -> None:
    # Inside the container the port is only published on the host's loopback.
    args = _parse("Serve the sandboxed runner endpoint.", "0.0.0.0", settings.RUNNER_PORT)
    logging.basicConfig(level=args.log_level.upper())
    logger.info("Runner listening on port %s", args.port)
    uvicorn.run(
        "coderunner.runner.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        workers=1,
    )
