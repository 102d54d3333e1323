"""Async pipeline forwarding processed samples to downstream consumers."""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from typing import Any, Awaitable, Callable

import structlog

from workout_monitor.models import AlertLevel, ProcessedSample

logger = structlog.get_logger(__name__)

Consumer = Callable[[ProcessedSample], Awaitable[object]]

STATS_INTERVAL_SECONDS = 60


class StreamPipeline:
    """Queue between the synchronous scoring path and slow downstream work.

    ``/receive-data`` scores a sample, then publishes the result here;
    consumers (alert notifications, storage) run on a background task, so a
    slow webhook never delays the next sample's intensity.  Per-alert-level
    counters are kept for the health endpoint.
    """

    def __init__(self, maxsize: int = 10_000) -> None:
        self._queue: asyncio.Queue[ProcessedSample] = asyncio.Queue(maxsize=maxsize)
        self._consumers: list[Consumer] = []
        self._running = False
        self._processed_total = 0
        self._consumer_errors = 0
        self._by_level: Counter[str] = Counter()

    def add_consumer(self, fn: Consumer) -> None:
        """Register an async callback that receives every processed sample."""
        self._consumers.append(fn)

    async def publish(self, item: ProcessedSample) -> None:
        """Enqueue a processed sample; waits while the queue is full."""
        await self._queue.put(item)

    # ── Consumer loop ─────────────────────────────────────────

    async def start(self) -> None:
        """Run the consumer loop until :meth:`stop` (start as a background task)."""
        self._running = True
        logger.info("stream_pipeline.started", consumers=len(self._consumers))
        next_stats = time.monotonic() + STATS_INTERVAL_SECONDS

        while self._running:
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            await self._deliver(item)
            self._queue.task_done()

            if time.monotonic() >= next_stats:
                logger.info("stream_pipeline.stats", **self.stats())
                next_stats = time.monotonic() + STATS_INTERVAL_SECONDS

    async def _deliver(self, item: ProcessedSample) -> None:
        for consumer in self._consumers:
            try:
                await consumer(item)
            except Exception as exc:
                self._consumer_errors += 1
                logger.error(
                    "stream_pipeline.consumer_error",
                    consumer=getattr(consumer, "__qualname__", repr(consumer)),
                    user_id=item.user_id,
                    error=str(exc),
                )
        self._processed_total += 1
        self._by_level[item.result.alert_level.value] += 1

    async def stop(self) -> None:
        """Stop the consumer loop after the item in flight."""
        self._running = False
        logger.info("stream_pipeline.stopped", **self.stats())

    # ── Introspection ─────────────────────────────────────────

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def processed_total(self) -> int:
        return self._processed_total

    def stats(self) -> dict[str, Any]:
        return {
            "processed_total": self._processed_total,
            "pending": self.pending,
            "consumer_errors": self._consumer_errors,
            "by_alert_level": {level.value: self._by_level[level.value] for level in AlertLevel},
        }
