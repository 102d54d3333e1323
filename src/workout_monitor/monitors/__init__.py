"""Intensity scoring and safety-alert classification."""

from workout_monitor.monitors.alerts import AlertAssessment, AlertClassifier
from workout_monitor.monitors.intensity import IntensityEngine

__all__ = ["AlertAssessment", "AlertClassifier", "IntensityEngine"]
