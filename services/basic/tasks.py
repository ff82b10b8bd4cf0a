"""Fire-and-forget background jobs with a log-only error policy."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, Set

from core.logger import get_logger

logger = get_logger(__name__)


class BackgroundRunner:
    """Schedules coroutines without awaiting them.

    Failures and timeouts are logged and never reach the caller. Tasks are
    referenced until they finish so the loop does not collect them early;
    `drain()` waits for the outstanding ones (shutdown hook, tests).
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, job: Awaitable, name: str) -> asyncio.Task:
        task = asyncio.create_task(self._guard(job, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _guard(self, job: Awaitable, name: str) -> None:
        try:
            if self._timeout:
                await asyncio.wait_for(job, timeout=self._timeout)
            else:
                await job
        except asyncio.TimeoutError:
            logger.warning("Background job %s timed out after %ss", name, self._timeout)
        except asyncio.CancelledError:
            logger.info("Background job %s cancelled", name)
            raise
        except Exception as exc:
            logger.warning("Background job %s failed: %s: %s", name, type(exc).__name__, exc)
        else:
            logger.debug("Background job %s finished", name)
