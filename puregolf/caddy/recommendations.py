"""Club recommendation engine: environment, nearest carry, then personal bias."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from puregolf.utils.rounding import round_half_up

from .clubs import find_club
from .models import (
    AnalysisFactor,
    ClubData,
    ClubRecommendation,
    ClubType,
    FactorImpact,
    FactorType,
    LieType,
    MissPattern,
    PersonalTendencies,
    ShotContext,
    UserClubStats,
    WeatherContext,
)
from .playslike import is_headwind, plays_like, resolve_conditions
from .selector import alternative_clubs, select_by_distance

logger = logging.getLogger(__name__)

CLUB_SWAP_BIAS_YARDS = 5
MINOR_BIAS_YARDS = 2
BIAS_COMPENSATION = 0.8

BASE_CONFIDENCE = 0.7
TENDENCY_CONFIDENCE_WEIGHT = 0.3
MAX_CONFIDENCE = 0.95
DIFFICULT_LIE_FACTOR = 0.9
EXTREME_DISTANCE_FACTOR = 0.85
LONG_SHOT_YARDS = 200
SHORT_SHOT_YARDS = 50

FACTOR_LONG_DISTANCE_YARDS = 180
FACTOR_WIND_MPH = 10

_DIFFICULT_LIES = {LieType.ROUGH, LieType.SAND}
_CLEAN_LIES = {LieType.TEE, LieType.FAIRWAY}


def _direction(bias: int) -> str:
    return "long" if bias > 0 else "short"


def apply_personalization(
    base_club: ClubData,
    adjusted_distance: float,
    tendencies: PersonalTendencies | None,
) -> Tuple[str, int, str]:
    """Return (club, distance_adjustment, reasoning) after bias correction."""
    bias = tendencies.club_bias.get(base_club.name, 0) if tendencies else 0

    if abs(bias) > CLUB_SWAP_BIAS_YARDS:
        compensated = adjusted_distance - bias * BIAS_COMPENSATION
        new_club = select_by_distance(compensated)
        reasoning = (
            f"Your {base_club.name} typically plays {abs(bias)}y {_direction(bias)}, "
            f"so taking {new_club.name} instead"
        )
        return new_club.name, bias, reasoning

    if abs(bias) > MINOR_BIAS_YARDS:
        reasoning = (
            f"{base_club.name} (accounting for your {abs(bias)}y "
            f"{_direction(bias)} tendency)"
        )
        return base_club.name, bias, reasoning

    return base_club.name, 0, f"{base_club.name} fits your typical distance"


def calculate_confidence(
    context: ShotContext, tendencies: PersonalTendencies | None = None
) -> float:
    confidence = BASE_CONFIDENCE
    if tendencies is not None:
        confidence = min(
            confidence + tendencies.confidence_level * TENDENCY_CONFIDENCE_WEIGHT,
            MAX_CONFIDENCE,
        )
    if context.lie_type in _DIFFICULT_LIES:
        confidence *= DIFFICULT_LIE_FACTOR
    distance = context.distance_to_target
    if distance > LONG_SHOT_YARDS or distance < SHORT_SHOT_YARDS:
        confidence *= EXTREME_DISTANCE_FACTOR
    return min(max(round_half_up(confidence, 2), 0.0), MAX_CONFIDENCE)


def play_advice(
    club: str, context: ShotContext, tendencies: PersonalTendencies | None = None
) -> Tuple[Optional[str], str]:
    """Return (aim_adjustment, swing_thought)."""
    aim: Optional[str] = None
    if tendencies is not None:
        if tendencies.miss_pattern is MissPattern.RIGHT:
            aim = "aim slightly left"
        elif tendencies.miss_pattern is MissPattern.LEFT:
            aim = "aim slightly right"
        else:
            aim = "aim at target"

    catalog = find_club(club)
    if context.lie_type is LieType.ROUGH:
        thought = "commit through the rough"
    elif context.lie_type is LieType.SAND:
        thought = "accelerate through impact"
    elif catalog is not None and catalog.type in (ClubType.DRIVER, ClubType.WOOD):
        thought = "smooth tempo"
    else:
        thought = "trust your swing"
    return aim, thought


def recommend(
    context: ShotContext,
    tendencies: PersonalTendencies | None = None,
    weather: WeatherContext | None = None,
    user_stats: Sequence[UserClubStats] | None = None,
) -> ClubRecommendation:
    """Recommend a club for ``context``.

    ``user_stats`` is accepted for callers that already hold per-club
    summaries; selection and confidence are driven by ``tendencies`` alone.
    """
    distance, breakdown = plays_like(context, weather)
    base_club = select_by_distance(distance)
    club, adjustment, reasoning = apply_personalization(base_club, distance, tendencies)
    aim, thought = play_advice(club, context, tendencies)

    logger.debug(
        "caddy_recommend",
        extra={
            "caddy_recommend": {
                "target": context.distance_to_target,
                "plays_like": distance,
                "breakdown": breakdown,
                "base_club": base_club.name,
                "club": club,
                "bias": adjustment,
                "user_stats": len(user_stats or ()),
            }
        },
    )

    return ClubRecommendation(
        primary_club=club,
        alternative_clubs=alternative_clubs(club),
        reasoning=reasoning,
        confidence=calculate_confidence(context, tendencies),
        distance_adjustment=adjustment,
        aim_adjustment=aim,
        swing_thought=thought,
    )


def get_analysis_factors(
    context: ShotContext,
    weather: WeatherContext | None = None,
    tendencies: PersonalTendencies | None = None,
) -> List[AnalysisFactor]:
    """Factors behind a recommendation, in a fixed order."""
    distance = context.distance_to_target
    factors: List[AnalysisFactor] = [
        AnalysisFactor(
            type=FactorType.DISTANCE,
            impact=(
                FactorImpact.NEGATIVE
                if distance > FACTOR_LONG_DISTANCE_YARDS
                else FactorImpact.NEUTRAL
            ),
            description=f"{distance:g}y to target",
            weight=1.0,
        )
    ]

    if context.lie_type not in _CLEAN_LIES:
        factors.append(
            AnalysisFactor(
                type=FactorType.LIE,
                impact=FactorImpact.NEGATIVE,
                description=f"{context.lie_type.value} lie reduces distance",
                weight=0.8,
            )
        )

    conditions = resolve_conditions(context, weather)
    if conditions.wind_speed > FACTOR_WIND_MPH:
        factors.append(
            AnalysisFactor(
                type=FactorType.WEATHER,
                impact=(
                    FactorImpact.NEGATIVE
                    if is_headwind(conditions.wind_direction)
                    else FactorImpact.POSITIVE
                ),
                description=(
                    f"{conditions.wind_speed:g}mph {conditions.wind_direction or 'variable'} wind"
                ),
                weight=0.6,
            )
        )

    if tendencies is not None:
        factors.append(
            AnalysisFactor(
                type=FactorType.PERSONAL,
                impact=FactorImpact.POSITIVE,
                description="Personal tendencies applied",
                weight=0.9,
            )
        )
    return factors


__all__ = [
    "apply_personalization",
    "calculate_confidence",
    "get_analysis_factors",
    "play_advice",
    "recommend",
]
