from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from ainotes_api.domain.exceptions import BackendError

logger = logging.getLogger("ainotes.client")

T = TypeVar("T")


async def retry_async(
    call: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    backoff_s: float,
    op: str,
) -> T:
    """Await call() up to `attempts` times, doubling the delay after each BackendError."""
    for attempt in range(1, max(1, attempts)):
        try:
            return await call()
        except BackendError as e:
            delay = backoff_s * (2 ** (attempt - 1))
            logger.warning("retrying", extra={"op": op, "attempt": attempt, "error": str(e), "delay_s": delay})
            await asyncio.sleep(delay)
    return await call()
