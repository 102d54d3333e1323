"""Shared Pydantic models used across the framework."""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_number(value: Any) -> float | None:
    """Parse *value* as a finite float, or return ``None``.

    Sensor firmware sends numbers, numeric strings, empty strings and the
    occasional ``NaN``; anything that is not a finite number becomes
    ``None`` so the engine can apply its per-field fallback.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def _parse_trend(value: Any) -> float:
    return parse_number(value) or 0.0


OptionalNumber = Annotated[float | None, BeforeValidator(parse_number)]
TrendNumber = Annotated[float, BeforeValidator(_parse_trend)]


def is_finite(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


# ── Enums ─────────────────────────────────────────────────────

class AlertLevel(str, Enum):
    """Three-tier safety classification, ordered none < warning < critical."""
    NONE = "none"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _ALERT_RANK[self]

    def escalate(self, other: AlertLevel) -> AlertLevel:
        """Return the more severe of ``self`` and *other*."""
        return other if other.rank > self.rank else self


_ALERT_RANK = {AlertLevel.NONE: 0, AlertLevel.WARNING: 1, AlertLevel.CRITICAL: 2}


# ── Session state ─────────────────────────────────────────────

class BaselineInput(BaseModel):
    """Resting-state readings supplied by the client when a session starts."""
    temperature: OptionalNumber = None
    humidity: OptionalNumber = None
    gas: OptionalNumber = None
    heart_rate: OptionalNumber = None


class Baseline(BaseModel):
    """Reference vector captured at session start.

    ``heat_index`` is always derived from ``temperature``/``humidity`` at
    capture time, never supplied by the caller.
    """
    temperature: float | None = None
    humidity: float | None = None
    gas: float | None = None
    heart_rate: float | None = None
    heat_index: float | None = None

    @property
    def is_complete(self) -> bool:
        """``True`` when every field is a finite number and scoring can run."""
        return all(
            is_finite(v)
            for v in (self.temperature, self.humidity, self.gas, self.heart_rate, self.heat_index)
        )


class Session(BaseModel):
    """The single active exercise session owned by one user."""
    user_id: str
    start_time: datetime = Field(default_factory=_utcnow)
    baseline: Baseline
    body_mass_index: float
    planned_intensity: int = 1


class BodyMetrics(BaseModel):
    """Height / weight pair resolved from the user profile directory."""
    height_cm: float = 175.0
    weight_kg: float = 70.0


# ── Per-sample data ───────────────────────────────────────────

class SensorSample(BaseModel):
    """One flat reading from the wearable, tagged to a user."""
    user_id: str | None = None
    temperature: OptionalNumber = None
    humidity: OptionalNumber = None
    gas: OptionalNumber = None
    heart_rate: OptionalNumber = None
    predicted_heat_index_trend: TrendNumber = 0.0
    predicted_gas_trend: TrendNumber = 0.0
    timestamp: datetime = Field(default_factory=_utcnow)


class SampleResult(BaseModel):
    """Scoring outcome for one sample.

    ``intensity`` is 0 when no session is active, 1 while the baseline is
    incomplete, and an integer in ``[1, 10]`` otherwise.
    """
    intensity: int
    status_message: str
    alert_level: AlertLevel = AlertLevel.NONE
    alert_message: str | None = None


class ProcessedSample(BaseModel):
    """A sample together with its result, as handed to downstream consumers."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    sample: SensorSample
    result: SampleResult
    heat_index: float | None = None
    processed_at: datetime = Field(default_factory=_utcnow)

    @property
    def user_id(self) -> str:
        return self.sample.user_id or ""

    def to_payload(self) -> dict[str, Any]:
        """Flatten into the record shape served by ``/sensor-data``."""
        s = self.sample
        return {
            "id": self.id,
            "user_id": s.user_id,
            "timestamp": s.timestamp.isoformat(),
            "temperature": None if s.temperature is None else round(s.temperature, 1),
            "humidity": None if s.humidity is None else round(s.humidity, 1),
            "gas": None if s.gas is None else round(s.gas),
            "heart_rate": s.heart_rate or 0,
            "heat_index": self.heat_index,
            "predicted_heat_index_trend": round(s.predicted_heat_index_trend, 2),
            "predicted_gas_trend": round(s.predicted_gas_trend, 1),
            "intensity": self.result.intensity,
            "status_message": self.result.status_message,
            "alert_level": self.result.alert_level.value,
            "alert_message": self.result.alert_message,
            "processed_at": self.processed_at.isoformat(),
        }


# ── Session completion ────────────────────────────────────────

class SessionSummary(BaseModel):
    """Client-side summary submitted when the user finishes a session."""
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: OptionalNumber = None  # minutes
    intensity: OptionalNumber = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class CompletedSession(BaseModel):
    """Record of a finished session, handed to the history store."""
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    start_time: datetime | None = None
    end_time: datetime = Field(default_factory=_utcnow)
    duration: float | None = None
    intensity: float | None = None
    planned_intensity: int | None = None
    type: str = "cardio"
    status: str = "completed"
    metadata: dict[str, Any] = Field(default_factory=dict)
