"""Pure physiological helper functions (no state)."""

from workout_monitor.physiology.heat_index import compute_heat_index
from workout_monitor.physiology.sensitivity import (
    body_mass_index,
    sensitivity_factor,
)

__all__ = ["body_mass_index", "compute_heat_index", "sensitivity_factor"]
