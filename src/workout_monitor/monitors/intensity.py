"""Intensity engine — per-sample exercise intensity on a 1–10 scale.

Pipeline for a user with an active session and complete baseline:

1. Deltas against the baseline (heat index absolute, gas and heart rate
   rises only).
2. Square-root normalisation of each delta to ``[0, 1]``; the heat-index
   and gas divisors scale with the user's BMI sensitivity factor.
3. Weighted base score (heart rate 50 %, heat index 25 %, gas 25 %).
4. Forecast-trend boost, capped so the raw score stays ``<= 1``.
5. Power-curve discretisation to ``1..10``.
6. Recency-weighted smoothing over the user's last five values.
7. Half-up rounding and clamping.

The same sample is then passed to the :class:`AlertClassifier` using
signed deltas.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import structlog

from workout_monitor.errors import MissingUserIdError
from workout_monitor.models import (
    Baseline,
    ProcessedSample,
    SampleResult,
    SensorSample,
    Session,
)
from workout_monitor.monitors.alerts import AlertClassifier
from workout_monitor.physiology.heat_index import compute_heat_index
from workout_monitor.physiology.sensitivity import sensitivity_factor
from workout_monitor.sessions.store import SessionStore

logger = structlog.get_logger(__name__)

# ── Domain constants ──────────────────────────────────────────

HR_WEIGHT = 0.5
HEAT_INDEX_WEIGHT = 0.25
GAS_WEIGHT = 0.25

HEAT_INDEX_DIVISOR = 3.0  # °C, times sensitivity
HEAT_INDEX_DIVISOR_MIN = 0.1
GAS_DIVISOR = 100.0  # ppm, times sensitivity
GAS_DIVISOR_MIN = 1.0
HR_DIVISOR = 60.0  # bpm

HEAT_INDEX_TREND_THRESHOLD = 0.5
HEAT_INDEX_TREND_FULL_SCALE = 2.0
HEAT_INDEX_TREND_MAX_BOOST = 0.3
GAS_TREND_THRESHOLD = 50.0
GAS_TREND_FULL_SCALE = 100.0
GAS_TREND_MAX_BOOST = 0.2

DISCRETIZE_EXPONENT = 0.8
MIN_INTENSITY = 1
MAX_INTENSITY = 10

OVEREXERTION_INTENSITY = 8
MODERATE_INTENSITY = 4

TREND_SEPARATOR = " · "

# ── Status messages ───────────────────────────────────────────

STATUS_AWAITING_START = "Awaiting session start"
STATUS_BASELINE_SETTLING = "Baselines still settling..."
STATUS_OVEREXERTION = "Warning: exercise intensity is high! (Overexertion)"
STATUS_GOOD = "Good! Appropriate exercise intensity."
STATUS_LIGHT = "Light exercise in progress."

TREND_HEAT_INDEX_RISING = "Heat index rising quickly"
TREND_HEAT_INDEX_FALLING = "Heat index falling quickly"
TREND_GAS_WORSENING = "Air quality worsening trend detected"


# ── Pure scoring steps ────────────────────────────────────────


def normalize_delta(delta: float, divisor: float) -> float:
    """Compress *delta* into ``[0, 1]`` with a square root."""
    return min(1.0, math.sqrt(max(0.0, delta) / divisor))


def trend_adjustment(heat_index_trend: float, gas_trend: float) -> tuple[float, list[str]]:
    """Return the additive boost from forecast trends and a cause per triggered trend."""
    boost = 0.0
    causes: list[str] = []

    if abs(heat_index_trend) >= HEAT_INDEX_TREND_THRESHOLD:
        strength = min(1.0, abs(heat_index_trend) / HEAT_INDEX_TREND_FULL_SCALE)
        boost += strength * HEAT_INDEX_TREND_MAX_BOOST
        causes.append(TREND_HEAT_INDEX_RISING if heat_index_trend > 0 else TREND_HEAT_INDEX_FALLING)

    if gas_trend >= GAS_TREND_THRESHOLD:
        strength = min(1.0, gas_trend / GAS_TREND_FULL_SCALE)
        boost += strength * GAS_TREND_MAX_BOOST
        causes.append(TREND_GAS_WORSENING)

    return boost, causes


def discretize(raw: float) -> float:
    """Map a raw score in ``[0, 1]`` onto ``[1, 10]``, flattening the top end."""
    raw = min(1.0, max(0.0, raw))
    return MIN_INTENSITY + raw**DISCRETIZE_EXPONENT * (MAX_INTENSITY - MIN_INTENSITY)


def recency_weighted_mean(values: list[float]) -> float:
    """Weighted mean with weights ``1..N``, oldest first."""
    weighted = sum(v * (i + 1) for i, v in enumerate(values))
    return weighted / (len(values) * (len(values) + 1) / 2)


def round_half_up(x: float) -> int:
    # round() is banker's rounding; 6.5 must become 7
    return math.floor(x + 0.5)


def finalize(value: float) -> int:
    return max(MIN_INTENSITY, min(MAX_INTENSITY, round_half_up(value)))


def status_message(intensity: int, trend_causes: list[str]) -> str:
    if trend_causes:
        return TREND_SEPARATOR.join(trend_causes)
    if intensity >= OVEREXERTION_INTENSITY:
        return STATUS_OVEREXERTION
    if intensity >= MODERATE_INTENSITY:
        return STATUS_GOOD
    return STATUS_LIGHT


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    """Every intermediate value of one pre-smoothing score."""

    heat_index_delta: float
    gas_delta: float
    heart_rate_delta: float
    sensitivity: float
    normalized_heat_index: float
    normalized_gas: float
    normalized_heart_rate: float
    base: float
    trend_boost: float
    raw: float
    discretized: float
    trend_causes: list[str] = field(default_factory=list)


def score_sample(
    baseline: Baseline,
    body_mass_index: float,
    sample: SensorSample,
    heat_index: float | None,
) -> ScoreBreakdown:
    """Run steps 1–5 of the pipeline for a complete *baseline*.

    A missing current heat index or gas reading contributes a zero delta.
    A missing heart rate counts as 0 bpm, which never rises above baseline.
    """
    sensitivity = sensitivity_factor(body_mass_index)

    delta_hi = abs(heat_index - baseline.heat_index) if heat_index is not None else 0.0
    delta_gas = max(0.0, sample.gas - baseline.gas) if sample.gas is not None else 0.0
    delta_hr = max(0.0, (sample.heart_rate or 0.0) - baseline.heart_rate)

    norm_hi = normalize_delta(delta_hi, max(HEAT_INDEX_DIVISOR_MIN, HEAT_INDEX_DIVISOR * sensitivity))
    norm_gas = normalize_delta(delta_gas, max(GAS_DIVISOR_MIN, GAS_DIVISOR * sensitivity))
    norm_hr = normalize_delta(delta_hr, HR_DIVISOR)

    base = HR_WEIGHT * norm_hr + HEAT_INDEX_WEIGHT * norm_hi + GAS_WEIGHT * norm_gas
    boost, causes = trend_adjustment(sample.predicted_heat_index_trend, sample.predicted_gas_trend)
    raw = min(1.0, base + boost)

    return ScoreBreakdown(
        heat_index_delta=delta_hi,
        gas_delta=delta_gas,
        heart_rate_delta=delta_hr,
        sensitivity=sensitivity,
        normalized_heat_index=norm_hi,
        normalized_gas=norm_gas,
        normalized_heart_rate=norm_hr,
        base=base,
        trend_boost=boost,
        raw=raw,
        discretized=discretize(raw),
        trend_causes=causes,
    )


# ── Engine ────────────────────────────────────────────────────


class IntensityEngine:
    """Score incoming samples against each user's active session.

    The engine owns no state of its own: sessions and history buffers live
    in the :class:`SessionStore` it is constructed with.  For a user with an
    active session, :meth:`process` holds that user's lock for its whole
    duration, so samples for one user are applied strictly in arrival order.
    """

    def __init__(self, sessions: SessionStore, classifier: AlertClassifier | None = None) -> None:
        self._sessions = sessions
        self._classifier = classifier or AlertClassifier()

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    def process(self, sample: SensorSample) -> ProcessedSample:
        """Score one sample.  Raises :class:`MissingUserIdError` only."""
        user_id = sample.user_id
        if not user_id:
            raise MissingUserIdError("process")

        heat_index = (
            compute_heat_index(sample.temperature, sample.humidity)
            if sample.temperature is not None
            else None
        )

        # Users without a session never touch the lock registry; the
        # check is repeated under the lock in case a reset raced us.
        if self._sessions.get_session(user_id) is None:
            return ProcessedSample(
                sample=sample,
                result=SampleResult(intensity=0, status_message=STATUS_AWAITING_START),
                heat_index=heat_index,
            )

        with self._sessions.lock_for(user_id), structlog.contextvars.bound_contextvars(user_id=user_id):
            session = self._sessions.get_session(user_id)
            if session is None:
                result = SampleResult(intensity=0, status_message=STATUS_AWAITING_START)
            elif not session.baseline.is_complete:
                logger.warning(
                    "intensity.invalid_baseline",
                    baseline=session.baseline.model_dump(),
                )
                result = SampleResult(intensity=MIN_INTENSITY, status_message=STATUS_BASELINE_SETTLING)
            else:
                result = self._score(user_id, session, sample, heat_index)

        return ProcessedSample(sample=sample, result=result, heat_index=heat_index)

    def _score(
        self,
        user_id: str,
        session: Session,
        sample: SensorSample,
        heat_index: float | None,
    ) -> SampleResult:
        baseline = session.baseline
        breakdown = score_sample(baseline, session.body_mass_index, sample, heat_index)

        history = self._sessions.history.push(user_id, breakdown.discretized)
        smoothed = recency_weighted_mean(history) if len(history) > 1 else history[0]
        intensity = finalize(smoothed)

        logger.debug(
            "intensity.computed",
            deltas=(
                round(breakdown.heat_index_delta, 2),
                round(breakdown.gas_delta, 1),
                round(breakdown.heart_rate_delta, 1),
            ),
            normalized=(
                round(breakdown.normalized_heat_index, 3),
                round(breakdown.normalized_gas, 3),
                round(breakdown.normalized_heart_rate, 3),
            ),
            sensitivity=breakdown.sensitivity,
            base=round(breakdown.base, 3),
            trend=round(breakdown.trend_boost, 3),
            raw=round(breakdown.raw, 3),
            discretized=round(breakdown.discretized, 2),
            history_len=len(history),
            intensity=intensity,
        )

        assessment = self._classifier.classify(
            heat_index_delta=heat_index - baseline.heat_index if heat_index is not None else None,
            gas_delta=sample.gas - baseline.gas if sample.gas is not None else None,
            intensity=intensity,
        )
        return SampleResult(
            intensity=intensity,
            status_message=status_message(intensity, breakdown.trend_causes),
            alert_level=assessment.level,
            alert_message=assessment.message,
        )
