"""Alert classifier — tiered safety alerts from baseline deltas and intensity."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from workout_monitor.models import AlertLevel

logger = structlog.get_logger(__name__)

ALERT_SEPARATOR = " | "


@dataclass(frozen=True, slots=True)
class AlertThreshold:
    """A two-step threshold on one signal.

    ``value >= critical`` fires the critical cause; otherwise
    ``value >= warning`` fires the warning cause.
    """

    signal: str
    critical: float
    warning: float
    critical_template: str
    warning_template: str

    def evaluate(self, value: float) -> tuple[AlertLevel, str] | None:
        if value >= self.critical:
            return AlertLevel.CRITICAL, self.critical_template.format(value=value)
        if value >= self.warning:
            return AlertLevel.WARNING, self.warning_template.format(value=value)
        return None


HEAT_INDEX_THRESHOLD = AlertThreshold(
    signal="heat_index_delta",
    critical=3.0,
    warning=2.0,
    critical_template="Heat index rising rapidly: +{value:.1f}°C",
    warning_template="Heat index rising: +{value:.1f}°C",
)
GAS_THRESHOLD = AlertThreshold(
    signal="gas_delta",
    critical=100.0,
    warning=50.0,
    critical_template="Air quality degraded: +{value:.0f} ppm",
    warning_template="Air quality caution: +{value:.0f} ppm",
)
INTENSITY_THRESHOLD = AlertThreshold(
    signal="intensity",
    critical=8,
    warning=7,
    critical_template="Overexertion: {value:.0f}/10",
    warning_template="High intensity: {value:.0f}/10",
)


@dataclass(frozen=True, slots=True)
class AlertAssessment:
    """Overall level plus every cause that fired, in evaluation order."""

    level: AlertLevel = AlertLevel.NONE
    causes: list[str] = field(default_factory=list)

    @property
    def message(self) -> str | None:
        return ALERT_SEPARATOR.join(self.causes) if self.causes else None


class AlertClassifier:
    """Evaluate heat-index, air-quality and intensity thresholds.

    Deltas are *signed* (current minus baseline): a falling heat index or
    improving air never raises an alert.  All matching causes are
    reported; the overall level only ever escalates.
    """

    def __init__(
        self,
        *,
        heat_index: AlertThreshold = HEAT_INDEX_THRESHOLD,
        gas: AlertThreshold = GAS_THRESHOLD,
        intensity: AlertThreshold = INTENSITY_THRESHOLD,
    ) -> None:
        self._thresholds = (heat_index, gas, intensity)

    def classify(
        self,
        *,
        heat_index_delta: float | None,
        gas_delta: float | None,
        intensity: int,
    ) -> AlertAssessment:
        """Classify one sample.  A ``None`` delta means the signal is unavailable."""
        level = AlertLevel.NONE
        causes: list[str] = []

        for threshold, value in zip(self._thresholds, (heat_index_delta, gas_delta, intensity)):
            if value is None:
                continue
            fired = threshold.evaluate(value)
            if fired is None:
                continue
            fired_level, cause = fired
            level = level.escalate(fired_level)
            causes.append(cause)

        if causes:
            logger.info("alert.classified", level=level.value, causes=causes)
        return AlertAssessment(level=level, causes=causes)
