"""Perceived temperature via the NOAA Rothfusz regression.

The regression is defined in Fahrenheit; inputs and output here are in
degrees Celsius.  Relative humidity outside ``[0, 100]`` is clamped rather
than rejected.
"""

from __future__ import annotations

# Rothfusz coefficients, in the order of the terms below
_C1 = -42.379
_C2 = 2.04901523
_C3 = 10.14333127
_C4 = -0.22475541
_C5 = -0.00683783
_C6 = -0.05481717
_C7 = 0.00122874
_C8 = 0.00085282
_C9 = -0.00000199


def celsius_to_fahrenheit(t: float) -> float:
    return t * 9 / 5 + 32


def fahrenheit_to_celsius(t: float) -> float:
    return (t - 32) * 5 / 9


def compute_heat_index(temperature: float | None, humidity: float | None) -> float:
    """Return the heat index in °C, rounded to one decimal place.

    When either input is missing the temperature is returned unchanged
    (``0.0`` if the temperature is missing too).
    """
    if temperature is None or humidity is None:
        return temperature if temperature is not None else 0.0

    r = min(100.0, max(0.0, humidity))
    t = celsius_to_fahrenheit(temperature)

    hi_f = (
        _C1
        + _C2 * t
        + _C3 * r
        + _C4 * t * r
        + _C5 * t * t
        + _C6 * r * r
        + _C7 * t * t * r
        + _C8 * t * r * r
        + _C9 * t * t * r * r
    )
    return round(fahrenheit_to_celsius(hi_f), 1)
