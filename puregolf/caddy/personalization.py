"""Personal tendencies derived from a player's historical shots and swing flaws.

Tendencies are always rebuilt from the full sample handed in; nothing here
patches a previous result field by field. Callers that only hold the newest
batch go through :func:`update_tendencies`, which merges the stored history
before recomputing.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from statistics import fmean
from typing import Dict, Iterable, List, Mapping, Sequence, TypeVar

from puregolf.utils.rounding import round_half_up, round_int

from .clubs import find_club
from .models import (
    HistoricalSample,
    HistoricalShot,
    LieType,
    MissPattern,
    PersonalTendencies,
    ShotResult,
    SwingFlaw,
    UserClubStats,
)

logger = logging.getLogger(__name__)

MIN_SHOTS_FOR_TENDENCIES = 10
MIN_SHOTS_PER_CLUB = 3
MIN_BIAS_YARDS = 2
MIN_DIRECTIONAL_RESULTS = 5
DOMINANT_MISS_FRACTION = 0.4
RECENT_FLAW_WINDOW = 20
MIN_FLAW_SEVERITY = 2
MIN_FLAW_OCCURRENCES = 2
MAX_RECURRING_FLAWS = 3
MIN_SHOTS_PER_LIE = 3
FULL_CONFIDENCE_SHOTS = 100
LOW_SAMPLE_SHOTS = 20
LOW_SAMPLE_PENALTY = 0.5
DEFAULT_CONFIDENCE = 0.1
REFRESH_AFTER_DAYS = 7.0
REFRESH_BELOW_CONFIDENCE = 0.2
TREND_BIAS_DELTA_YARDS = 5

_FLAW_DESCRIPTIONS: Dict[str, str] = {
    "over_the_top": "to counter your over-the-top swing",
    "early_extension": "given your tendency to stand up early",
    "slice": "to help with your slice tendency",
    "hook": "to prevent your hook pattern",
}

_T = TypeVar("_T")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now(now: datetime | None) -> datetime:
    return _as_utc(now) if now is not None else datetime.now(timezone.utc)


def default_tendencies(now: datetime | None = None) -> PersonalTendencies:
    """Placeholder profile for players without enough history."""
    return PersonalTendencies(
        club_bias={},
        miss_pattern=MissPattern.INCONSISTENT,
        recurring_flaws=[],
        lie_preferences={},
        course_performance={},
        confidence_level=DEFAULT_CONFIDENCE,
        last_updated=_now(now),
    )


def calculate_tendencies(
    shots: Sequence[HistoricalShot],
    flaws: Sequence[SwingFlaw],
    course_scores: Mapping[str, Sequence[float]] | None = None,
    *,
    now: datetime | None = None,
) -> PersonalTendencies:
    if len(shots) < MIN_SHOTS_FOR_TENDENCIES:
        return default_tendencies(now)

    return PersonalTendencies(
        club_bias=club_bias(shots),
        miss_pattern=miss_pattern(shot.result for shot in shots),
        recurring_flaws=recurring_flaws(flaws),
        lie_preferences=lie_preferences(shots),
        course_performance=course_performance(course_scores or {}),
        confidence_level=confidence_level(len(shots)),
        last_updated=_now(now),
    )


def club_bias(shots: Iterable[HistoricalShot]) -> Dict[str, int]:
    """Signed mean (actual - intended) per club, kept only when meaningful."""
    diffs: Dict[str, List[float]] = defaultdict(list)
    for shot in shots:
        diffs[shot.club].append(shot.actual_distance - shot.intended_distance)

    bias: Dict[str, int] = {}
    for club, values in diffs.items():
        if len(values) < MIN_SHOTS_PER_CLUB:
            continue
        mean_diff = fmean(values)
        if abs(mean_diff) > MIN_BIAS_YARDS:
            bias[club] = round_int(mean_diff)
    return bias


def miss_pattern(results: Iterable[ShotResult]) -> MissPattern:
    """Dominant direction; distance misses (short/long/poor) are ignored."""
    left = right = straight = 0
    for result in results:
        if result is ShotResult.LEFT:
            left += 1
        elif result is ShotResult.RIGHT:
            right += 1
        elif result is ShotResult.GOOD:
            straight += 1

    total = left + right + straight
    if total < MIN_DIRECTIONAL_RESULTS:
        return MissPattern.INCONSISTENT
    if left / total > DOMINANT_MISS_FRACTION:
        return MissPattern.LEFT
    if right / total > DOMINANT_MISS_FRACTION:
        return MissPattern.RIGHT
    return MissPattern.STRAIGHT


def recurring_flaws(flaws: Iterable[SwingFlaw]) -> List[str]:
    """Most frequent significant flaw codes among the latest analyses."""
    recent = sorted(flaws, key=lambda flaw: _as_utc(flaw.date), reverse=True)
    counts: Counter[str] = Counter(
        flaw.flaw_code
        for flaw in recent[:RECENT_FLAW_WINDOW]
        if flaw.severity >= MIN_FLAW_SEVERITY
    )
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        code for code, count in ranked[:MAX_RECURRING_FLAWS] if count >= MIN_FLAW_OCCURRENCES
    ]


def lie_preferences(shots: Iterable[HistoricalShot]) -> Dict[LieType, float]:
    """Share of ``good`` results per lie, for lies with enough shots."""
    totals: Dict[LieType, int] = defaultdict(int)
    good: Dict[LieType, int] = defaultdict(int)
    for shot in shots:
        totals[shot.lie_type] += 1
        if shot.result is ShotResult.GOOD:
            good[shot.lie_type] += 1

    return {
        lie: round_half_up(good[lie] / total, 2)
        for lie, total in totals.items()
        if total >= MIN_SHOTS_PER_LIE
    }


def course_performance(course_scores: Mapping[str, Sequence[float]]) -> Dict[str, float]:
    return {
        course_id: round_half_up(fmean(scores), 1)
        for course_id, scores in course_scores.items()
        if scores
    }


def confidence_level(shot_count: int) -> float:
    confidence = min(shot_count / FULL_CONFIDENCE_SHOTS, 1.0)
    if shot_count < LOW_SAMPLE_SHOTS:
        confidence *= LOW_SAMPLE_PENALTY
    return round_half_up(confidence, 2)


def merge_records(existing: Iterable[_T], new: Iterable[_T]) -> List[_T]:
    """Concatenate two record batches, dropping exact duplicates, keeping order."""
    seen: set = set()
    merged: List[_T] = []
    for record in [*existing, *new]:
        if record in seen:
            continue
        seen.add(record)
        merged.append(record)
    return merged


def merge_sample(
    history: HistoricalSample | None,
    new_shots: Iterable[HistoricalShot] = (),
    new_flaws: Iterable[SwingFlaw] = (),
    new_scores: Mapping[str, Sequence[float]] | None = None,
) -> HistoricalSample:
    base = history or HistoricalSample()
    scores = {course_id: list(values) for course_id, values in base.course_scores.items()}
    for course_id, values in (new_scores or {}).items():
        scores.setdefault(course_id, []).extend(values)
    return HistoricalSample(
        shots=merge_records(base.shots, new_shots),
        flaws=merge_records(base.flaws, new_flaws),
        course_scores=scores,
    )


def update_tendencies(
    current: PersonalTendencies | None,
    history: HistoricalSample | None,
    new_shots: Sequence[HistoricalShot],
    new_flaws: Sequence[SwingFlaw],
    *,
    now: datetime | None = None,
) -> PersonalTendencies:
    """Recompute tendencies over the stored history plus a fresh batch."""
    sample = merge_sample(history, new_shots, new_flaws)
    updated = calculate_tendencies(
        sample.shots, sample.flaws, sample.course_scores, now=now
    )

    if current is not None:
        changes = detect_trend_changes(current, updated)
        if changes:
            logger.info(
                "tendency trend change",
                extra={"caddy_trends": changes, "shots": len(sample.shots)},
            )
    return updated


def needs_refresh(
    tendencies: PersonalTendencies,
    *,
    now: datetime | None = None,
    max_age_days: float = REFRESH_AFTER_DAYS,
) -> bool:
    age = _now(now) - _as_utc(tendencies.last_updated)
    return (
        age > timedelta(days=max_age_days)
        or tendencies.confidence_level < REFRESH_BELOW_CONFIDENCE
    )


def _direction(yards: float) -> str:
    return "long" if yards > 0 else "short"


def generate_personal_reasoning(
    club: str, adjustment: float, tendencies: PersonalTendencies
) -> str:
    reasons: List[str] = []

    if abs(adjustment) > MIN_BIAS_YARDS:
        reasons.append(
            f"your {club} typically plays {abs(adjustment):g}y {_direction(adjustment)}"
        )

    if tendencies.miss_pattern in (MissPattern.LEFT, MissPattern.RIGHT):
        reasons.append(f"you tend to miss {tendencies.miss_pattern.value}")

    if tendencies.recurring_flaws:
        description = _FLAW_DESCRIPTIONS.get(tendencies.recurring_flaws[0])
        if description:
            reasons.append(description)

    return " and ".join(reasons) if reasons else "based on standard distances"


def get_confidence_description(confidence: float) -> str:
    if confidence >= 0.8:
        return "High confidence"
    if confidence >= 0.6:
        return "Good confidence"
    if confidence >= 0.4:
        return "Moderate confidence"
    if confidence >= 0.2:
        return "Low confidence"
    return "Building profile"


def detect_trend_changes(old: PersonalTendencies, new: PersonalTendencies) -> List[str]:
    changes: List[str] = []
    if old.miss_pattern is not new.miss_pattern:
        changes.append(
            f"Miss pattern changed from {old.miss_pattern.value} to {new.miss_pattern.value}"
        )
    for club, new_bias in new.club_bias.items():
        delta = abs(new_bias - old.club_bias.get(club, 0))
        if delta > TREND_BIAS_DELTA_YARDS:
            changes.append(f"{club} bias changed by {round_int(delta)}y")
    return changes


def club_stats_from_shots(shots: Sequence[HistoricalShot]) -> List[UserClubStats]:
    """Per-club summary of a player's history, clubs in first-seen order."""
    grouped: Dict[str, List[HistoricalShot]] = defaultdict(list)
    for shot in shots:
        grouped[shot.club].append(shot)

    stats: List[UserClubStats] = []
    for club, club_shots in grouped.items():
        totals = [shot.actual_distance for shot in club_shots]
        avg_total = fmean(totals)
        catalog = find_club(club)
        rollout = catalog.typical_total - catalog.typical_carry if catalog else 0
        good = sum(1 for shot in club_shots if shot.result is ShotResult.GOOD)
        latest = sorted(club_shots, key=lambda shot: _as_utc(shot.date), reverse=True)
        stats.append(
            UserClubStats(
                club=club,
                total_shots=len(club_shots),
                avg_carry=round_half_up(max(avg_total - rollout, 0.0), 1),
                avg_total=round_half_up(avg_total, 1),
                accuracy_percentage=round_half_up(good / len(club_shots) * 100, 1),
                miss_pattern=miss_pattern(shot.result for shot in club_shots),
                typical_lie_types=list(dict.fromkeys(shot.lie_type for shot in club_shots)),
                last_10_distances=[shot.actual_distance for shot in latest[:10]],
                bias_yards=round_int(
                    fmean(shot.actual_distance - shot.intended_distance for shot in club_shots)
                ),
            )
        )
    return stats


__all__ = [
    "calculate_tendencies",
    "club_bias",
    "club_stats_from_shots",
    "confidence_level",
    "course_performance",
    "default_tendencies",
    "detect_trend_changes",
    "generate_personal_reasoning",
    "get_confidence_description",
    "lie_preferences",
    "merge_records",
    "merge_sample",
    "miss_pattern",
    "needs_refresh",
    "recurring_flaws",
    "update_tendencies",
]
