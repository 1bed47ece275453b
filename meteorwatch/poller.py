"""Fixed-cadence position poller with an explicit stop handle.

``start()`` fetches immediately, then every ``interval_ms``. Each tick spawns
its own fetch task so a slow request never delays the cadence; whichever
successful response completes last wins. ``stop()`` cancels the timer and
every in-flight fetch, and no callback fires once it has returned.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

from meteorwatch.config import ISS_POLL_INTERVAL_MS
from meteorwatch.errors import FetchFailure
from meteorwatch.models import PositionSnapshot

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[PositionSnapshot]]
UpdateCallback = Callable[[PositionSnapshot], Any]
ErrorCallback = Callable[[str], Any] | None
SleepFn = Callable[[float], Awaitable[None]]


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class PollHandle:
    """Returned by ``PositionPoller.start``; stopping it is idempotent."""

    def __init__(self, poller: "PositionPoller", generation: int):
        self._poller = poller
        self._generation = generation

    @property
    def active(self) -> bool:
        return self._poller.running and self._poller._generation == self._generation

    def stop(self) -> None:
        if self.active:
            self._poller.stop()


class PositionPoller:
    def __init__(self, fetch: FetchFn, *, sleep: SleepFn = asyncio.sleep):
        self._fetch = fetch
        self._sleep = sleep
        self.snapshot = PositionSnapshot()
        self.last_error: str | None = None
        self.running = False
        self._generation = 0
        self._task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    def start(
        self,
        on_update: UpdateCallback,
        interval_ms: float = ISS_POLL_INTERVAL_MS,
        on_error: ErrorCallback = None,
    ) -> PollHandle:
        """Begin polling on the running event loop. Restarting stops the previous run."""
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.stop()
        self._generation += 1
        self.running = True
        gen = self._generation
        self._task = asyncio.get_running_loop().create_task(
            self._run(gen, on_update, on_error, interval_ms / 1000)
        )
        logger.info("Position poller started (every %d ms)", interval_ms)
        return PollHandle(self, gen)

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        # Invalidate any fetch that resolves between now and its cancellation
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        for task in list(self._inflight):
            task.cancel()
        self._inflight.clear()
        logger.info("Position poller stopped")

    async def _run(
        self,
        gen: int,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
        interval_s: float,
    ) -> None:
        while self._is_current(gen):
            task = asyncio.get_running_loop().create_task(self._poll_once(gen, on_update, on_error))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            await self._sleep(interval_s)

    def _is_current(self, gen: int) -> bool:
        return self.running and gen == self._generation

    async def _poll_once(self, gen: int, on_update: UpdateCallback, on_error: ErrorCallback) -> None:
        try:
            snapshot = await self._fetch()
        except FetchFailure as exc:
            await self._report(gen, on_error, exc.message)
            return
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Position fetch failed")
            await self._report(gen, on_error, str(exc) or type(exc).__name__)
            return

        if not self._is_current(gen):
            return
        # Last-known snapshot survives failures; success replaces it whole
        self.snapshot = snapshot
        self.last_error = None
        await _maybe_await(on_update(snapshot))

    async def _report(self, gen: int, on_error: ErrorCallback, message: str) -> None:
        if not self._is_current(gen):
            return
        logger.warning("Position fetch failed: %s", message)
        self.last_error = message
        if on_error:
            await _maybe_await(on_error(message))
