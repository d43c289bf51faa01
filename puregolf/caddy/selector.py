"""Nearest-carry club selection against the standard catalog."""

from __future__ import annotations

from typing import List

from .clubs import distance_clubs, find_club
from .models import ClubData

ALTERNATIVE_WINDOW_YARDS = 15


def select_by_distance(distance: float) -> ClubData:
    """Pick the club whose typical carry is closest to ``distance``.

    Ties go to the first club in catalog order (longest first); the putter is
    never a candidate.
    """
    best: ClubData | None = None
    smallest_diff = float("inf")
    for club in distance_clubs():
        diff = abs(club.typical_carry - distance)
        if diff < smallest_diff:
            smallest_diff = diff
            best = club
    if best is None:  # pragma: no cover - catalog is static
        raise ValueError("club catalog has no distance clubs")
    return best


def alternative_clubs(primary_club: str) -> List[str]:
    """One shorter and one longer option within the alternative window."""
    primary = find_club(primary_club)
    if primary is None:
        return []

    carry = primary.typical_carry
    candidates = distance_clubs()
    alternatives: List[str] = []

    shorter = next(
        (
            club
            for club in candidates
            if carry - ALTERNATIVE_WINDOW_YARDS <= club.typical_carry < carry
        ),
        None,
    )
    if shorter:
        alternatives.append(shorter.name)

    longer = next(
        (
            club
            for club in candidates
            if carry < club.typical_carry <= carry + ALTERNATIVE_WINDOW_YARDS
        ),
        None,
    )
    if longer:
        alternatives.append(longer.name)
    return alternatives


__all__ = ["select_by_distance", "alternative_clubs", "ALTERNATIVE_WINDOW_YARDS"]
