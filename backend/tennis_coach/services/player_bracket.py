"""
Player Bracket: single elimination draw for one singles division.

Entrants are seeded by rating (unrated last, then player id). The draw is
padded to the next power of two; the top seeds receive the byes, and the
remaining players meet strongest against weakest, skipping an opponent from
the same school when another is available. Seed order is spread over the
draw so the top two lines start in opposite halves.

Round r match i feeds round r + 1 match i // 2; the winner of an even i
takes player1 there, an odd i player2.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from tennis_coach.services.divisions import DivisionLike, coerce_division, filter_players_by_division, is_doubles
from tennis_coach.services.entities import MatchStatus, RosterTeam
from tennis_coach.services.errors import (
    BracketConfigError,
    InvalidEntityError,
    InvalidResultError,
    InvalidTransitionError,
    MatchAlreadyCompletedError,
    MatchNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entrant:
    player_id: int
    team_id: int
    school_name: str
    name: str = ""
    utr_rating: Optional[float] = None


@dataclass(frozen=True)
class EliminationMatch:
    id: str
    round_number: int
    match_number: int
    player1: Optional[Entrant] = None
    player2: Optional[Entrant] = None
    status: MatchStatus = MatchStatus.pending
    winner_player_id: Optional[int] = None
    score: Optional[str] = None
    is_bye: bool = False
    next_match_id: Optional[str] = None
    completed_at: Optional[datetime] = None

    @property
    def is_ready(self) -> bool:
        return self.player1 is not None and self.player2 is not None

    @property
    def same_school(self) -> bool:
        return self.is_ready and self.player1.school_name == self.player2.school_name

    @property
    def winner(self) -> Optional[Entrant]:
        for entrant in (self.player1, self.player2):
            if entrant is not None and entrant.player_id == self.winner_player_id:
                return entrant
        return None


@dataclass(frozen=True)
class EliminationSummary:
    rounds: int
    total_matches: int
    completed_matches: int
    current_round: int
    is_complete: bool
    champion: Optional[Entrant] = None


def entrants_from_teams(teams: Sequence[RosterTeam], division: DivisionLike) -> List[Entrant]:
    """Every player from the given schools who is eligible for a singles division."""
    target = coerce_division(division)
    if is_doubles(target):
        raise BracketConfigError(f"Elimination draws are singles only, got {target.value}")
    return [
        Entrant(player_id=p.id, team_id=team.id, school_name=team.school_name, name=p.name, utr_rating=p.utr_rating)
        for team in teams
        for p in filter_players_by_division(team.players, target)
    ]


def _seed_key(entrant: Entrant):
    return (entrant.utr_rating is None, -(entrant.utr_rating or 0.0), entrant.player_id)


def _draw_order(slots: int) -> List[int]:
    """Seed index for each draw line, e.g. 4 -> [0, 3, 1, 2]."""
    order = [0]
    while len(order) < slots:
        size = len(order) * 2
        order = [x for seed in order for x in (seed, size - 1 - seed)]
    return order


def _pair_off(players: List[Entrant]) -> List[Tuple[Entrant, Entrant]]:
    remaining = list(players)
    pairs = []
    while remaining:
        top = remaining.pop(0)
        opponent = next(
            (p for p in reversed(remaining) if p.school_name != top.school_name),
            remaining[-1],
        )
        remaining.remove(opponent)
        pairs.append((top, opponent))
    return pairs


def generate_elimination_bracket(bracket_id: str, entrants: Sequence[Entrant]) -> Tuple[EliminationMatch, ...]:
    """
    Build every match of a single elimination draw.

    Args:
        bracket_id: Prefix for match ids ("{bracket_id}-{round}-{match_number}")
        entrants: Players in the draw; fewer than two gives an empty draw

    Returns:
        Matches ordered by round then match number, byes already resolved

    Raises:
        InvalidEntityError: a player is entered twice
    """
    seen = set()
    for entrant in entrants:
        if entrant.player_id in seen:
            raise InvalidEntityError(f"Player {entrant.player_id}", "player_id", "is entered twice")
        seen.add(entrant.player_id)
    if len(entrants) < 2:
        return ()

    seeded = sorted(entrants, key=_seed_key)
    size = 1
    while size < len(seeded):
        size *= 2
    rounds = size.bit_length() - 1
    byes = size - len(seeded)

    # first-round lines in seed order: bye holders, then played pairs
    lines: List[Tuple[Entrant, Optional[Entrant]]] = [(e, None) for e in seeded[:byes]]
    lines.extend(_pair_off(seeded[byes:]))

    first_round = [lines[seed] for seed in _draw_order(size // 2)]

    def next_id(round_number: int, match_number: int) -> Optional[str]:
        if round_number == rounds:
            return None
        return f"{bracket_id}-{round_number + 1}-{(match_number - 1) // 2 + 1}"

    matches: List[EliminationMatch] = []
    for index, (player1, player2) in enumerate(first_round):
        bye = player2 is None
        matches.append(
            EliminationMatch(
                id=f"{bracket_id}-1-{index + 1}",
                round_number=1,
                match_number=index + 1,
                player1=player1,
                player2=player2,
                status=MatchStatus.completed if bye else MatchStatus.pending,
                winner_player_id=player1.player_id if bye else None,
                is_bye=bye,
                next_match_id=next_id(1, index + 1),
            )
        )
    for round_number in range(2, rounds + 1):
        for index in range(size >> round_number):
            matches.append(
                EliminationMatch(
                    id=f"{bracket_id}-{round_number}-{index + 1}",
                    round_number=round_number,
                    match_number=index + 1,
                    next_match_id=next_id(round_number, index + 1),
                )
            )

    result = tuple(matches)
    for match in matches:
        if match.is_bye:
            result = progress_winner(result, match.id)

    logger.debug(
        "Elimination draw %s: %d players, %d rounds, %d byes",
        bracket_id,
        len(seeded),
        rounds,
        byes,
    )
    return result


def _find(matches: Sequence[EliminationMatch], match_id: str) -> int:
    index = next((i for i, m in enumerate(matches) if m.id == match_id), None)
    if index is None:
        raise MatchNotFoundError(match_id)
    return index


def progress_winner(matches: Sequence[EliminationMatch], match_id: str) -> Tuple[EliminationMatch, ...]:
    """
    Move the winner of a completed match into its slot in the next round.

    Raises:
        MatchNotFoundError: match_id is not in the draw
        InvalidTransitionError: the match has no winner yet
    """
    index = _find(matches, match_id)
    match = matches[index]
    if match.winner is None:
        raise InvalidTransitionError(f"Match {match_id} has no winner to progress")
    if match.next_match_id is None:
        return tuple(matches)

    target = _find(matches, match.next_match_id)
    slot = "player1" if (match.match_number - 1) % 2 == 0 else "player2"
    result = list(matches)
    result[target] = replace(result[target], **{slot: match.winner})
    return tuple(result)


def record_elimination_result(
    matches: Sequence[EliminationMatch],
    match_id: str,
    winner_player_id: int,
    score: str,
    completed_at: Optional[datetime] = None,
) -> Tuple[EliminationMatch, ...]:
    """
    Record a played match and send the winner on.

    Recording the same winner and score again returns the draw unchanged. A
    different result on a completed match is refused, since the winner has
    already moved on.

    Raises:
        MatchNotFoundError: match_id is not in the draw
        InvalidTransitionError: a bye, or a match still waiting on a player
        InvalidResultError: empty score or a winner who is not in the match
        MatchAlreadyCompletedError: a different result on a completed match
    """
    index = _find(matches, match_id)
    current = matches[index]
    if current.is_bye:
        raise InvalidTransitionError(f"Match {match_id} is a bye")
    if not current.is_ready:
        raise InvalidTransitionError(f"Match {match_id} is still waiting for a player")
    if score is None or not str(score).strip():
        raise InvalidResultError("score is required")
    score = str(score).strip()
    if winner_player_id not in (current.player1.player_id, current.player2.player_id):
        raise InvalidResultError(f"Player {winner_player_id} is not in match {match_id}")

    if current.status == MatchStatus.completed:
        if current.winner_player_id == winner_player_id and current.score == score:
            return tuple(matches)
        raise MatchAlreadyCompletedError(match_id)

    result = list(matches)
    result[index] = replace(
        current,
        status=MatchStatus.completed,
        winner_player_id=winner_player_id,
        score=score,
        completed_at=completed_at or datetime.utcnow(),
    )
    logger.info("Player %s won elimination match %s (%s)", winner_player_id, match_id, score)
    return progress_winner(result, match_id)


def bracket_summary(matches: Sequence[EliminationMatch]) -> EliminationSummary:
    if not matches:
        return EliminationSummary(rounds=0, total_matches=0, completed_matches=0, current_round=0, is_complete=False)

    rounds = max(m.round_number for m in matches)
    completed = sum(1 for m in matches if m.status == MatchStatus.completed)
    open_rounds = [m.round_number for m in matches if m.status != MatchStatus.completed]
    is_complete = not open_rounds
    champion = None
    if is_complete:
        final = next(m for m in matches if m.round_number == rounds)
        champion = final.winner
    return EliminationSummary(
        rounds=rounds,
        total_matches=len(matches),
        completed_matches=completed,
        current_round=rounds + 1 if is_complete else min(open_rounds),
        is_complete=is_complete,
        champion=champion,
    )


def round_matches(matches: Sequence[EliminationMatch], round_number: int) -> List[EliminationMatch]:
    return sorted((m for m in matches if m.round_number == round_number), key=lambda m: m.match_number)


def player_path(matches: Sequence[EliminationMatch], player_id: int) -> List[EliminationMatch]:
    """Completed matches a player took part in, byes included, by round."""
    return sorted(
        (
            m
            for m in matches
            if m.status == MatchStatus.completed
            and any(e is not None and e.player_id == player_id for e in (m.player1, m.player2))
        ),
        key=lambda m: m.round_number,
    )


def same_school_matches(matches: Sequence[EliminationMatch]) -> List[EliminationMatch]:
    """Ready matches between two players from the same school."""
    return [m for m in matches if m.same_school]
