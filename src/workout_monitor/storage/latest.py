"""In-memory cache of the most recent processed reading per user."""

from __future__ import annotations

import threading
from typing import Any

from workout_monitor.models import ProcessedSample


class LatestReadingCache:
    """Keep the last :meth:`ProcessedSample.to_payload` record for each user.

    Session reset leaves the cached reading in place; it is overwritten by
    the next sample.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: dict[str, dict[str, Any]] = {}

    def record(self, item: ProcessedSample) -> dict[str, Any]:
        payload = item.to_payload()
        with self._lock:
            self._latest[item.user_id] = payload
        return payload

    def get(self, user_id: str) -> dict[str, Any] | None:
        return self._latest.get(user_id)

    def __len__(self) -> int:
        return len(self._latest)
