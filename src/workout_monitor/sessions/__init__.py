"""Per-user session and intensity-history state."""

from workout_monitor.sessions.store import IntensityHistory, KeyedLocks, SessionStore

__all__ = ["IntensityHistory", "KeyedLocks", "SessionStore"]
