"""Periodic expiry sweep for the session registry."""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

    from arcade.logic.state import SessionKey
    from arcade.session.registry import SessionRegistry

logger = structlog.get_logger()


class SessionSweeper:
    """Drive SessionRegistry.sweep_expired on a fixed interval.

    Owned by the hosting process: call start() on app startup and stop() on
    shutdown. Tests call run_once() directly with a synthetic clock.
    An interval of 0 disables the background task.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        *,
        interval_seconds: float,
        timeout_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry
        self._interval_seconds = interval_seconds
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the periodic sweep task. Idempotent."""
        if self._interval_seconds <= 0:
            return
        if self.is_running:
            return
        self._task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def run_once(self) -> list[SessionKey]:
        removed = await self._registry.sweep_expired(self._clock(), self._timeout_seconds)
        if removed:
            logger.info("cleaned up expired sessions", count=len(removed))
        return removed

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval_seconds)
            try:
                await self.run_once()
            except Exception:
                logger.exception("session sweeper encountered an error")
