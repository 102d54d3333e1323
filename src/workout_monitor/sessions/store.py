"""Keyed state containers: active sessions and recent-intensity buffers.

Both containers are indexed by user id.  Mutual exclusion is per user via
:class:`KeyedLocks`, so samples for different users never contend while
samples for the same user are applied in arrival order.
"""

from __future__ import annotations

import math
import threading
import weakref
from collections import deque
from datetime import datetime, timezone

import structlog

from workout_monitor.errors import MissingUserIdError
from workout_monitor.models import (
    Baseline,
    BaselineInput,
    CompletedSession,
    Session,
    SessionSummary,
)
from workout_monitor.physiology.heat_index import compute_heat_index
from workout_monitor.physiology.sensitivity import body_mass_index
from workout_monitor.profiles import (
    InMemoryProfileDirectory,
    ProfileDirectory,
    lookup_body_metrics,
    resolve_body_metrics,
)

logger = structlog.get_logger(__name__)

HISTORY_SIZE = 5


class KeyedLocks:
    """Hand out one :class:`threading.Lock` per key.

    Locks are held weakly: an entry disappears as soon as no caller holds
    or waits on it, so the registry only ever contains in-flight keys.
    The registry lock is held only while looking up or creating a key's
    lock, never while that lock is in use.
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()

    def __call__(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def __len__(self) -> int:
        return len(self._locks)


class IntensityHistory:
    """Bounded FIFO of recent discretised intensities per user.

    Callers must hold the user's lock when mutating a buffer.
    """

    def __init__(self, maxlen: int = HISTORY_SIZE) -> None:
        self._maxlen = maxlen
        self._buffers: dict[str, deque[float]] = {}

    @property
    def maxlen(self) -> int:
        return self._maxlen

    def push(self, user_id: str, value: float) -> list[float]:
        """Append *value*, evicting the oldest entry on overflow.

        Returns a snapshot of the buffer, oldest first.
        """
        buf = self._buffers.get(user_id)
        if buf is None:
            buf = self._buffers[user_id] = deque(maxlen=self._maxlen)
        buf.append(value)
        return list(buf)

    def get(self, user_id: str) -> list[float]:
        return list(self._buffers.get(user_id, ()))

    def clear(self, user_id: str) -> None:
        self._buffers.pop(user_id, None)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._buffers


class SessionStore:
    """One active :class:`Session` per user, plus that user's history buffer."""

    def __init__(
        self,
        profiles: ProfileDirectory | None = None,
        *,
        history: IntensityHistory | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._profiles = profiles or InMemoryProfileDirectory()
        self._sessions: dict[str, Session] = {}
        self.history = history or IntensityHistory()
        self.lock_for = locks if locks is not None else KeyedLocks()

    # ── Lifecycle ─────────────────────────────────────────────

    async def start_session(
        self,
        user_id: str | None,
        planned_intensity: float | None,
        baseline: BaselineInput,
    ) -> Session:
        """Capture a baseline and make it the user's active session.

        Any existing session for the user is replaced and its history
        buffer dropped.  Profile lookup problems fall back to defaults.
        """
        if not user_id:
            raise MissingUserIdError("start_session")

        metrics = resolve_body_metrics(await lookup_body_metrics(self._profiles, user_id))
        session = Session(
            user_id=user_id,
            baseline=Baseline(
                temperature=baseline.temperature,
                humidity=baseline.humidity,
                gas=baseline.gas,
                heart_rate=baseline.heart_rate,
                heat_index=(
                    compute_heat_index(baseline.temperature, baseline.humidity)
                    if baseline.temperature is not None
                    else None
                ),
            ),
            body_mass_index=body_mass_index(metrics.height_cm, metrics.weight_kg),
            planned_intensity=_planned_intensity(planned_intensity),
        )

        with self.lock_for(user_id):
            self._sessions[user_id] = session
            self.history.clear(user_id)

        logger.info(
            "session.started",
            user_id=user_id,
            bmi=round(session.body_mass_index, 1),
            planned_intensity=session.planned_intensity,
            baseline=session.baseline.model_dump(),
        )
        return session

    def get_session(self, user_id: str) -> Session | None:
        return self._sessions.get(user_id)

    def reset_session(self, user_id: str) -> bool:
        """Drop the user's session and history.  Return ``True`` if a session existed."""
        with self.lock_for(user_id):
            existed = self._sessions.pop(user_id, None) is not None
            self.history.clear(user_id)
        if existed:
            logger.info("session.reset", user_id=user_id)
        return existed

    def complete_session(self, user_id: str | None, summary: SessionSummary) -> CompletedSession:
        """Close the user's session and return a record for the history store."""
        if not user_id:
            raise MissingUserIdError("complete_session")

        with self.lock_for(user_id):
            session = self._sessions.pop(user_id, None)
            self.history.clear(user_id)

        record = CompletedSession(
            user_id=user_id,
            start_time=summary.start_time or (session.start_time if session else None),
            end_time=summary.end_time or datetime.now(timezone.utc),
            duration=summary.duration,
            intensity=summary.intensity,
            planned_intensity=session.planned_intensity if session else None,
            metadata=summary.metadata,
        )
        logger.info(
            "session.completed",
            user_id=user_id,
            session_id=record.session_id,
            had_active_session=session is not None,
        )
        return record

    # ── Introspection ─────────────────────────────────────────

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    def active_users(self) -> list[str]:
        return list(self._sessions)


def _planned_intensity(value: float | None) -> int:
    # Missing, zero and negative plans all mean the lightest level.
    if value is None:
        return 1
    return max(1, math.floor(value + 0.5))
