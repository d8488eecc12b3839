"""
Bounded retry with a fixed delay, for readiness probes.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


async def retry_until(
    probe: Callable[[], Awaitable[bool]],
    *,
    attempts: int,
    interval: float,
    label: str = "probe",
) -> bool:
    """
    Await probe() up to `attempts` times, sleeping `interval` seconds between
    failed attempts. Returns True on the first success, False once attempts
    are exhausted. Exceptions raised by probe() propagate.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    for attempt in range(1, attempts + 1):
        if await probe():
            return True
        logger.debug("%s failed (attempt %d/%d)", label, attempt, attempts)
        if attempt < attempts:
            await asyncio.sleep(interval)
    return False
