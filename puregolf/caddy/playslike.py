"""Deterministic plays-like distance engine (yards, mph, Fahrenheit)."""

from __future__ import annotations

from typing import Dict, NamedTuple, Optional, Tuple

from puregolf.utils.rounding import round_int

from .models import LieType, ShotContext, WeatherContext

HEADWIND_YARDS_PER_MPH = -1.5
TAILWIND_YARDS_PER_MPH = 1.0
COLD_YARDS_PER_DEGREE = -0.2
HOT_YARDS_PER_DEGREE = 0.1
COLD_THRESHOLD_F = 70.0
HOT_THRESHOLD_F = 80.0
# Applied to the signed elevation change as-is; uphill and downhill share it.
ELEVATION_YARDS_PER_UNIT = -2.0

LIE_ADJUSTMENTS: Dict[LieType, float] = {
    LieType.TEE: 0.0,
    LieType.FAIRWAY: 0.0,
    LieType.ROUGH: -5.0,
    LieType.SAND: -10.0,
    LieType.GREENSIDE: 0.0,
    LieType.GREEN: 0.0,
}


class Conditions(NamedTuple):
    wind_speed: float
    wind_direction: Optional[str]
    temperature: Optional[float]


def resolve_conditions(
    context: ShotContext, weather: WeatherContext | None = None
) -> Conditions:
    """Weather readings win; the shot context's own fields fill the gaps."""
    if weather is not None:
        return Conditions(weather.wind_speed, weather.wind_direction, weather.temperature)
    return Conditions(context.wind_speed or 0.0, context.wind_direction, context.temperature)


def is_headwind(direction: str | None) -> bool:
    label = (direction or "").lower()
    return "head" in label or "into" in label


def is_tailwind(direction: str | None) -> bool:
    label = (direction or "").lower()
    return "tail" in label or "helping" in label


def wind_effect(wind_speed: float, wind_direction: str | None) -> float:
    """Yards added to the target; crosswinds and unknown directions add nothing."""
    if not wind_speed or not wind_direction:
        return 0.0
    if is_headwind(wind_direction):
        return wind_speed * HEADWIND_YARDS_PER_MPH
    if is_tailwind(wind_direction):
        return wind_speed * TAILWIND_YARDS_PER_MPH
    return 0.0


def temperature_effect(temperature: float | None) -> float:
    if not temperature:
        return 0.0
    if temperature < COLD_THRESHOLD_F:
        return (COLD_THRESHOLD_F - temperature) * COLD_YARDS_PER_DEGREE
    if temperature > HOT_THRESHOLD_F:
        return (temperature - HOT_THRESHOLD_F) * HOT_YARDS_PER_DEGREE
    return 0.0


def elevation_effect(elevation_change: float | None) -> float:
    if not elevation_change:
        return 0.0
    return elevation_change * ELEVATION_YARDS_PER_UNIT


def lie_adjustment(lie_type: LieType) -> float:
    return LIE_ADJUSTMENTS.get(lie_type, 0.0)


def plays_like(
    context: ShotContext, weather: WeatherContext | None = None
) -> Tuple[int, Dict[str, float]]:
    """Return the adjusted distance and the per-factor breakdown behind it."""
    conditions = resolve_conditions(context, weather)
    wind = wind_effect(conditions.wind_speed, conditions.wind_direction)
    temp = temperature_effect(conditions.temperature)
    elev = elevation_effect(context.elevation_change)
    lie = lie_adjustment(context.lie_type)
    total = wind + temp + elev + lie
    adjusted = round_int(context.distance_to_target + total)
    return adjusted, {
        "wind": round(wind, 2),
        "temperature": round(temp, 2),
        "elevation": round(elev, 2),
        "lie": lie,
        "total": round(total, 2),
    }


def adjusted_distance(context: ShotContext, weather: WeatherContext | None = None) -> int:
    distance, _ = plays_like(context, weather)
    return distance


__all__ = [
    "Conditions",
    "adjusted_distance",
    "elevation_effect",
    "is_headwind",
    "is_tailwind",
    "lie_adjustment",
    "plays_like",
    "resolve_conditions",
    "temperature_effect",
    "wind_effect",
]
