"""
Division Rules: gender affinity and side sizes (single source of truth).

Every division maps to the genders it admits. A player whose gender is unset
only fits the mixed division.
"""

from typing import Dict, FrozenSet, List, Optional, Sequence, Union

from tennis_coach.services.entities import Division, Gender, RosterPlayer
from tennis_coach.services.errors import BracketConfigError

DivisionLike = Union[Division, str]

DIVISION_GENDERS: Dict[Division, FrozenSet[Optional[Gender]]] = {
    Division.boys_singles: frozenset({Gender.male}),
    Division.boys_doubles: frozenset({Gender.male}),
    Division.girls_singles: frozenset({Gender.female}),
    Division.girls_doubles: frozenset({Gender.female}),
    Division.mixed_doubles: frozenset({Gender.male, Gender.female, None}),
}

PLAYERS_PER_SIDE: Dict[Division, int] = {
    Division.boys_singles: 1,
    Division.girls_singles: 1,
    Division.boys_doubles: 2,
    Division.girls_doubles: 2,
    Division.mixed_doubles: 2,
}


def coerce_division(value: DivisionLike) -> Division:
    """Accept either a Division or its string value."""
    if isinstance(value, Division):
        return value
    try:
        return Division(value)
    except ValueError:
        raise BracketConfigError(f"Unknown division: {value!r}") from None


def coerce_divisions(values: Sequence[DivisionLike]) -> List[Division]:
    return [coerce_division(v) for v in values]


def players_per_side(division: DivisionLike) -> int:
    return PLAYERS_PER_SIDE[coerce_division(division)]


def is_doubles(division: DivisionLike) -> bool:
    return players_per_side(division) == 2


def is_eligible(player: RosterPlayer, division: DivisionLike) -> bool:
    return player.gender in DIVISION_GENDERS[coerce_division(division)]


def filter_players_by_division(players: Sequence[RosterPlayer], division: DivisionLike) -> List[RosterPlayer]:
    """
    Return the players from a roster who may play in a division.

    Roster order is preserved; the result is always a subset of the input.
    """
    target = coerce_division(division)
    return [p for p in players if is_eligible(p, target)]
