"""Body-mass-index helpers and the BMI → sensitivity multiplier."""

from __future__ import annotations

DEFAULT_HEIGHT_CM = 175.0
DEFAULT_WEIGHT_KG = 70.0
FALLBACK_BMI = 22.0

# (upper bound exclusive, factor); anything at or above the last bound → 1.3
_BREAKPOINTS: tuple[tuple[float, float], ...] = (
    (18.5, 0.8),
    (25.0, 1.0),
    (30.0, 1.2),
)
_OBESE_FACTOR = 1.3


def body_mass_index(height_cm: float, weight_kg: float) -> float:
    """Return weight / height² with height in metres.

    A non-positive height cannot produce a meaningful index, so
    :data:`FALLBACK_BMI` is returned instead.
    """
    h = height_cm / 100
    if h <= 0:
        return FALLBACK_BMI
    return weight_kg / (h * h)


def sensitivity_factor(bmi: float) -> float:
    """Map a body-mass index to the multiplier applied to normalisation divisors.

    Higher factors widen the heat-index and gas divisors, so the same delta
    scores lower for users with a higher BMI.
    """
    for upper, factor in _BREAKPOINTS:
        if bmi < upper:
            return factor
    return _OBESE_FACTOR
