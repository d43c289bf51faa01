from __future__ import annotations

from puregolf.caddy.clubs import STANDARD_CLUBS, distance_clubs, find_club
from puregolf.caddy.models import ClubType
from puregolf.caddy.selector import alternative_clubs, select_by_distance


def test_catalog_is_ordered_driver_to_putter() -> None:
    assert len(STANDARD_CLUBS) == 15
    assert STANDARD_CLUBS[0].name == "Driver"
    assert STANDARD_CLUBS[-1].name == "Putter"
    carries = [club.typical_carry for club in distance_clubs()]
    assert carries == sorted(carries, reverse=True)


def test_find_club() -> None:
    seven = find_club("7-Iron")
    assert seven is not None
    assert seven.typical_carry == 150
    assert find_club("9-Wood") is None


def test_selection_minimizes_carry_gap_and_never_returns_putter() -> None:
    candidates = distance_clubs()
    for distance in range(0, 301):
        club = select_by_distance(distance)
        assert club.type is not ClubType.PUTTER
        best_gap = min(abs(c.typical_carry - distance) for c in candidates)
        assert abs(club.typical_carry - distance) == best_gap


def test_ties_go_to_first_catalog_club() -> None:
    # 145 sits between 7-Iron (150) and 8-Iron (140).
    assert select_by_distance(145).name == "7-Iron"
    assert select_by_distance(135).name == "8-Iron"


def test_exact_and_extreme_distances() -> None:
    assert select_by_distance(150).name == "7-Iron"
    assert select_by_distance(158).name == "6-Iron"
    assert select_by_distance(0).name == "LW"
    assert select_by_distance(400).name == "Driver"


def test_alternatives_bracket_the_primary() -> None:
    assert alternative_clubs("7-Iron") == ["8-Iron", "6-Iron"]
    assert alternative_clubs("LW") == ["SW"]
    assert alternative_clubs("Driver") == []
    assert alternative_clubs("3-Hybrid") == ["4-Iron", "5-Wood"]


def test_alternatives_for_unknown_club_are_empty() -> None:
    assert alternative_clubs("Mystery") == []
