"""
Position assignment: rank a division's eligible pool by skill rating.

Position 1 is the highest rated player. Missing ratings count as 0. Ties keep
roster order (sorted() is stable), so the same roster always ranks the same way.
"""

from typing import List, Optional, Sequence

from tennis_coach.services.divisions import DivisionLike, filter_players_by_division
from tennis_coach.services.entities import RosterPlayer
from tennis_coach.services.errors import BracketConfigError


def rating_of(player: RosterPlayer) -> float:
    return player.utr_rating if player.utr_rating is not None else 0.0


def rank_players(players: Sequence[RosterPlayer]) -> List[RosterPlayer]:
    """Sort players by rating descending; the input is left untouched."""
    return sorted(players, key=lambda p: -rating_of(p))


def player_at_position(ranked: Sequence[RosterPlayer], position: int) -> Optional[RosterPlayer]:
    """
    Return the player holding a 1-based position, or None when the pool is short.

    Args:
        ranked: Players already ordered by rank_players()
        position: 1-based position (1 = strongest)

    Raises:
        BracketConfigError: if position < 1
    """
    if position < 1:
        raise BracketConfigError(f"position must be >= 1, got {position}")
    if position > len(ranked):
        return None
    return ranked[position - 1]


def division_ladder(players: Sequence[RosterPlayer], division: DivisionLike) -> List[RosterPlayer]:
    """Eligible players for a division in position order."""
    return rank_players(filter_players_by_division(players, division))
