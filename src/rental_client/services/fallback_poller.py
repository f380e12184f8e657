"""Degraded-mode polling while the realtime transport is down."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

from rental_client.config import settings

logger = logging.getLogger(__name__)

PollCallback = Callable[[], Coroutine[Any, Any, None]]


class FallbackPoller:
    """Runs ``callback`` every ``interval`` seconds iff authenticated and disconnected.

    There is never more than one polling task. ``update`` is the only way the
    poller changes mode; it stops the task as soon as the transport comes back
    or the session ends.
    """

    def __init__(self, callback: PollCallback, *, interval: float | None = None) -> None:
        self._callback = callback
        self._interval = interval if interval is not None else settings.POLL_INTERVAL_SECONDS
        self._task: asyncio.Task[None] | None = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def update(self, *, authenticated: bool, connected: bool) -> None:
        if authenticated and not connected:
            await self.start()
        else:
            await self.stop()

    async def start(self) -> None:
        if self.is_active:
            return
        await self.stop()
        self._task = asyncio.create_task(self._run(), name="chat-fallback-poller")
        logger.info("Realtime unavailable, polling every %.1fs", self._interval)

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        if task is asyncio.current_task():
            # Called from a poll callback: the loop exits once the callback returns.
            logger.info("Fallback polling stopped")
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        logger.info("Fallback polling stopped")

    async def _run(self) -> None:
        me = asyncio.current_task()
        while self._task is me:
            await asyncio.sleep(self._interval)
            if self._task is not me:
                return
            try:
                await self._callback()
            except Exception:
                logger.exception("Fallback poll failed")
