# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Periodic removal of expired capabilities.

CapabilitySweeper runs as an asyncio task owned by ViewerProxy: started in
start(), stopped in stop(). It complements the validator's lazy eviction;
deleting an entry both mechanisms saw expire is a no-op.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from .store import CapabilityStore

logger = logging.getLogger(__name__)


class CapabilitySweeper:
    """Cancellable background task sweeping the capability store.

    Attributes:
        store: Registry to sweep.
        interval: Seconds between sweeps.
    """

    def __init__(self, store: CapabilityStore, interval: float = 300.0):
        self.store = store
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        """Run one sweep pass. Errors are logged, never raised."""
        try:
            removed = self.store.sweep()
        except Exception:
            logger.exception("Capability sweep failed")
            return 0
        if removed:
            logger.info(f"Swept {removed} expired capabilities ({len(self.store)} active)")
        return removed

    async def start(self) -> None:
        """Start the sweep loop. No-op if already running."""
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop_event), name="capability-sweeper")
        logger.info(f"Capability sweeper started (interval={self.interval}s)")

    async def stop(self) -> None:
        """Signal the loop to exit and wait for it."""
        if self._task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        task, self._task = self._task, None
        try:
            await asyncio.wait_for(task, timeout=max(self.interval, 1.0))
        except asyncio.TimeoutError:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("Capability sweeper stopped")

    async def _run(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                self.sweep_once()


__all__ = ["CapabilitySweeper"]
