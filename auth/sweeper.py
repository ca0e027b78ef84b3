"""
auth/sweeper.py -- Background job that purges expired sessions on an interval.

SessionSweeper is an explicit schedulable job rather than a free-running
timer: start() and stop() bracket its lifetime, and run_once() performs a
single sweep so tests can trigger one deterministically without waiting on
the wall clock.

Shutdown:
  stop() sets an asyncio.Event the loop waits on between sweeps and then
  awaits the task. A sweep already in flight runs to completion first. The
  sweep itself is a single DELETE statement, so there is no partial batch to
  abandon either way.

Failure policy:
  A store failure during a sweep is logged and run_once() returns None. Any
  other exception is logged by the loop and the cycle is dropped. The next
  interval retries either way, and stop() never re-raises a sweep error.

The sweep runs in a worker thread (asyncio.to_thread) because the store is
synchronous SQLAlchemy; blocking the event loop would stall request handling.
"""

from __future__ import annotations

import asyncio
import logging

from auth.errors import StoreUnavailableError
from auth.lifecycle import SessionManager

logger = logging.getLogger("canary.sweeper")

DEFAULT_INTERVAL_SECONDS = 60 * 60  # hourly


class SessionSweeper:
    """Periodic purge of expired sessions.

    Usage (inside a running event loop):
        sweeper = SessionSweeper(manager, interval_seconds=3600)
        sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(self, manager: SessionManager, interval_seconds: float = DEFAULT_INTERVAL_SECONDS) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than zero")
        self.manager = manager
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop. No-op if already running."""
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name="session-sweeper")
        logger.info("Session sweeper started (interval=%ss)", self.interval_seconds)

    async def stop(self) -> None:
        """Signal the loop to exit and wait for it. Safe to call when not running."""
        if self._task is None:
            return
        assert self._stop_event is not None
        self._stop_event.set()
        await self._task
        self._task = None
        self._stop_event = None
        logger.info("Session sweeper stopped")

    async def run_once(self) -> int | None:
        """Run one sweep. Returns rows removed, or None if the store failed."""
        try:
            return await asyncio.to_thread(self.manager.sweep_expired)
        except StoreUnavailableError:
            logger.exception("Session sweep failed; retrying next interval")
            return None

    async def _loop(self) -> None:
        assert self._stop_event is not None
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                try:
                    await self.run_once()
                except Exception:
                    logger.exception("Unexpected error during session sweep; retrying next interval")
