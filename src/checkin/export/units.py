"""Unit conversion and labels for display.

Stored values are imperial (pounds, inches). Metrics are percentages and
do not depend on units.
"""

from __future__ import annotations

from typing import Optional

KG_PER_LB = 0.45359237
CM_PER_INCH = 2.54


def pounds_to_kilograms(lbs: Optional[float]) -> Optional[float]:
    if lbs is None:
        return None
    return round(lbs * KG_PER_LB, 2)


def kilograms_to_pounds(kg: Optional[float]) -> Optional[float]:
    if kg is None:
        return None
    return round(kg / KG_PER_LB, 2)


def inches_to_centimeters(inches: Optional[float]) -> Optional[float]:
    if inches is None:
        return None
    return round(inches * CM_PER_INCH, 2)


def centimeters_to_inches(cm: Optional[float]) -> Optional[float]:
    if cm is None:
        return None
    return round(cm / CM_PER_INCH, 2)


def weight_unit_label(unit_system: str) -> str:
    return "kg" if unit_system == "metric" else "lbs"


def length_unit_label(unit_system: str) -> str:
    return "cm" if unit_system == "metric" else "inches"


def display_measure(value: Optional[float], measure: str, unit_system: str) -> Optional[float]:
    """Convert a stored measurement for display in the given unit system."""
    if unit_system != "metric":
        return value
    if measure == "waist":
        return inches_to_centimeters(value)
    return pounds_to_kilograms(value)
