"""In-process periodic trigger for the APR update cycle.

Fires immediately on start and then every `interval_minutes`. Each tick fans out
one worker per stored network (see `run_apr_update`). A tick that arrives while
the previous cycle is still running is skipped, so a network never has two
cycles in flight.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

import httpx

from src.pipelines.flows.apr_update import DEFAULT_MAX_CONCURRENCY, run_apr_update
from src.services.store import AprStore

logger = logging.getLogger(__name__)


class AprScheduler:
    def __init__(
        self,
        store: AprStore,
        interval_minutes: int,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self._store = store
        self.interval_seconds = interval_minutes * 60
        self._max_concurrency = max_concurrency
        self._transport = transport
        self._loop_task: asyncio.Task | None = None
        self._cycle: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle is not None and not self._cycle.done()

    def start(self) -> None:
        if self.running:
            return
        logger.info(f"Starting scheduler (apr_update_minutes={self.interval_seconds // 60})")
        self._loop_task = asyncio.create_task(self._run(), name="apr-scheduler")

    async def _run(self) -> None:
        while True:
            self.trigger()
            await asyncio.sleep(self.interval_seconds)

    def trigger(self) -> bool:
        """Start a cycle unless one is already running. Returns whether it started."""
        if self.cycle_in_flight:
            logger.warning("Previous APR update still running; skipping this tick")
            return False
        self._cycle = asyncio.create_task(self.run_once(), name="apr-cycle")
        return True

    async def run_once(self) -> dict[str, bool]:
        logger.info("Running unified APR update task")
        try:
            results = await run_apr_update(
                self._store,
                max_concurrency=self._max_concurrency,
                transport=self._transport,
            )
        except Exception:
            # Listing networks failed; the next tick retries.
            logger.exception("APR update task failed")
            return {}
        logger.info("Completed unified APR update task for all networks")
        return results

    async def stop(self, timeout: float = 30.0) -> None:
        """Stop ticking and give an in-flight cycle up to `timeout` seconds to finish."""
        logger.info("Stopping scheduler...")
        if self._loop_task is not None:
            self._loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._loop_task
            self._loop_task = None

        if self.cycle_in_flight:
            assert self._cycle is not None
            try:
                await asyncio.wait_for(asyncio.shield(self._cycle), timeout)
            except asyncio.TimeoutError:
                logger.warning(f"APR update did not finish within {timeout}s; cancelling")
                self._cycle.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._cycle
