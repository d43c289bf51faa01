from __future__ import annotations

from typing import Tuple

from .models import ClubData, ClubType

# name, type, loft (deg), typical carry (yd), typical total (yd)
_CATALOG_TEMPLATE = [
    ("Driver", ClubType.DRIVER, 10.5, 250, 275),
    ("3-Wood", ClubType.WOOD, 15.0, 225, 245),
    ("5-Wood", ClubType.WOOD, 18.0, 210, 230),
    ("3-Hybrid", ClubType.HYBRID, 21.0, 195, 210),
    ("4-Iron", ClubType.IRON, 24.0, 180, 195),
    ("5-Iron", ClubType.IRON, 27.0, 170, 185),
    ("6-Iron", ClubType.IRON, 30.0, 160, 175),
    ("7-Iron", ClubType.IRON, 34.0, 150, 165),
    ("8-Iron", ClubType.IRON, 38.0, 140, 150),
    ("9-Iron", ClubType.IRON, 42.0, 130, 140),
    ("PW", ClubType.WEDGE, 46.0, 120, 125),
    ("GW", ClubType.WEDGE, 50.0, 110, 115),
    ("SW", ClubType.WEDGE, 56.0, 100, 105),
    ("LW", ClubType.WEDGE, 60.0, 85, 90),
    ("Putter", ClubType.PUTTER, 4.0, 0, 0),
]

STANDARD_CLUBS: Tuple[ClubData, ...] = tuple(
    ClubData(name=name, type=kind, loft=loft, typical_carry=carry, typical_total=total)
    for name, kind, loft, carry, total in _CATALOG_TEMPLATE
)

_BY_NAME = {club.name: club for club in STANDARD_CLUBS}


def find_club(name: str) -> ClubData | None:
    return _BY_NAME.get(name)


def distance_clubs() -> Tuple[ClubData, ...]:
    """Catalog clubs that can be hit at a target, in Driver to LW order."""

    return tuple(club for club in STANDARD_CLUBS if club.type is not ClubType.PUTTER)


__all__ = ["STANDARD_CLUBS", "find_club", "distance_clubs"]
