"""
Team-Match Aggregator: head-to-head totals for one dual match.

Only completed positions count. The leader can be read at any time
(provisional_leader); the final winner only once every position is completed
(final_winner).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple, Union

from tennis_coach.services.entities import (
    IndividualMatch,
    MatchStatus,
    Outcome,
    Side,
    TeamLevel,
    TeamMatch,
    TeamMatchStatus,
)
from tennis_coach.services.errors import IncompleteTeamMatchError, InvalidTransitionError
from tennis_coach.services.result_recorder import RecordingPolicy, RecordOutcome, record_result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamMatchResult:
    team_match_id: int
    home_wins: int
    away_wins: int
    total_positions: int
    completed_positions: int

    @property
    def is_complete(self) -> bool:
        return self.total_positions > 0 and self.completed_positions == self.total_positions

    def provisional_leader(self) -> Outcome:
        """Who is ahead right now; may change while positions are still open."""
        if self.home_wins > self.away_wins:
            return Outcome.home
        if self.away_wins > self.home_wins:
            return Outcome.away
        return Outcome.tie

    @property
    def winner(self) -> Outcome:
        return self.provisional_leader()

    def final_winner(self) -> Outcome:
        """
        Raises:
            IncompleteTeamMatchError: if any position is not completed
        """
        if not self.is_complete:
            raise IncompleteTeamMatchError(
                f"Team match {self.team_match_id}: {self.completed_positions} of "
                f"{self.total_positions} positions completed"
            )
        return self.provisional_leader()


def aggregate_team_match(
    team_match: TeamMatch, individual_matches: Optional[Sequence[IndividualMatch]] = None
) -> TeamMatchResult:
    """
    Count position wins for each side.

    Args:
        team_match: The dual match
        individual_matches: Position matches to count (defaults to team_match.individual_matches)
    """
    matches = team_match.individual_matches if individual_matches is None else individual_matches
    completed = [m for m in matches if m.status == MatchStatus.completed]
    return TeamMatchResult(
        team_match_id=team_match.id,
        home_wins=sum(1 for m in completed if m.winner == Side.home),
        away_wins=sum(1 for m in completed if m.winner == Side.away),
        total_positions=len(matches),
        completed_positions=len(completed),
    )


def derive_team_match_status(team_match: TeamMatch) -> TeamMatchStatus:
    if team_match.status == TeamMatchStatus.cancelled:
        return TeamMatchStatus.cancelled
    matches = team_match.individual_matches
    if matches and all(m.status == MatchStatus.completed for m in matches):
        return TeamMatchStatus.completed
    if any(m.status != MatchStatus.pending for m in matches):
        return TeamMatchStatus.in_progress
    return TeamMatchStatus.scheduled


def refresh_team_match(team_match: TeamMatch, now: Optional[datetime] = None) -> TeamMatch:
    """Recompute scores, status and (final) winner from the position matches."""
    summary = aggregate_team_match(team_match)
    status = derive_team_match_status(team_match)
    completed_at = team_match.completed_at
    if status == TeamMatchStatus.completed and completed_at is None:
        completed_at = now or datetime.utcnow()
    return replace(
        team_match,
        home_score=summary.home_wins,
        away_score=summary.away_wins,
        status=status,
        winner=summary.final_winner() if status == TeamMatchStatus.completed else None,
        completed_at=completed_at if status == TeamMatchStatus.completed else None,
    )


def record_team_match_result(
    team_match: TeamMatch,
    match_id: str,
    winner: Union[Side, str],
    score: str,
    policy: RecordingPolicy = RecordingPolicy.permissive,
    completed_at: Optional[datetime] = None,
) -> Tuple[TeamMatch, RecordOutcome]:
    """
    Record one position result inside a dual match and refresh its totals.

    Raises:
        InvalidTransitionError: the dual match is cancelled
    """
    if team_match.status == TeamMatchStatus.cancelled:
        raise InvalidTransitionError(f"Team match {team_match.id} is cancelled")
    recorded = record_result(
        team_match.individual_matches, match_id, winner, score, policy=policy, completed_at=completed_at
    )
    if recorded.outcome != RecordOutcome.applied:
        return team_match, recorded.outcome

    updated = refresh_team_match(replace(team_match, individual_matches=recorded.matches), now=completed_at)
    if updated.status == TeamMatchStatus.completed and team_match.status != TeamMatchStatus.completed:
        logger.info(
            "Team match %s completed %d-%d (%s)",
            team_match.id,
            updated.home_score,
            updated.away_score,
            updated.winner.value,
        )
    return updated, recorded.outcome


def cancel_team_match(team_match: TeamMatch) -> TeamMatch:
    """
    Mark a dual match cancelled. Position results already entered are kept.

    Raises:
        InvalidTransitionError: the dual match is already completed
    """
    if team_match.status == TeamMatchStatus.completed:
        raise InvalidTransitionError(f"Team match {team_match.id} is completed and cannot be cancelled")
    if team_match.status == TeamMatchStatus.cancelled:
        return team_match
    logger.info("Team match %s cancelled", team_match.id)
    return replace(team_match, status=TeamMatchStatus.cancelled, winner=None, completed_at=None)


def _season_contribution(team_match: TeamMatch) -> Dict[int, Tuple[int, int]]:
    if team_match.status != TeamMatchStatus.completed or team_match.winner in (None, Outcome.tie):
        return {}
    if team_match.winner == Outcome.home:
        return {team_match.home_team_id: (1, 0), team_match.away_team_id: (0, 1)}
    return {team_match.home_team_id: (0, 1), team_match.away_team_id: (1, 0)}


def season_record_changes(before: TeamMatch, after: TeamMatch) -> Dict[int, Tuple[int, int]]:
    """
    (wins, losses) to add to each school's season record when a dual match
    moves from `before` to `after`.

    A match counts once it is completed with a home or away winner; ties
    leave the records alone. An overwrite that flips the winner of a
    completed match moves the win across, so the result can hold negatives.
    """
    old = _season_contribution(before)
    new = _season_contribution(after)
    changes: Dict[int, Tuple[int, int]] = {}
    for team_id in list(old) + [t for t in new if t not in old]:
        old_wins, old_losses = old.get(team_id, (0, 0))
        new_wins, new_losses = new.get(team_id, (0, 0))
        delta = (new_wins - old_wins, new_losses - old_losses)
        if delta != (0, 0):
            changes[team_id] = delta
    return changes


@dataclass
class TeamMatchStanding:
    team_id: int
    team_level: TeamLevel
    wins: int = 0
    losses: int = 0
    ties: int = 0
    total_matches: int = 0

    @property
    def win_percentage(self) -> float:
        return self.wins / self.total_matches if self.total_matches > 0 else 0.0


def team_match_standings(team_matches: Sequence[TeamMatch]) -> List[TeamMatchStanding]:
    """
    Season record per (team, team level) over completed dual matches.

    Ordered by win percentage descending, then wins descending; remaining ties
    keep first-seen order.
    """
    stats: Dict[Tuple[int, TeamLevel], TeamMatchStanding] = {}

    def entry(team_id: int, level: TeamLevel) -> TeamMatchStanding:
        key = (team_id, level)
        if key not in stats:
            stats[key] = TeamMatchStanding(team_id=team_id, team_level=level)
        return stats[key]

    for match in team_matches:
        if match.status != TeamMatchStatus.completed:
            continue
        home = entry(match.home_team_id, match.team_level)
        away = entry(match.away_team_id, match.team_level)
        home.total_matches += 1
        away.total_matches += 1

        outcome = match.winner or aggregate_team_match(match).provisional_leader()
        if outcome == Outcome.home:
            home.wins += 1
            away.losses += 1
        elif outcome == Outcome.away:
            away.wins += 1
            home.losses += 1
        else:
            home.ties += 1
            away.ties += 1

    return sorted(stats.values(), key=lambda s: (-s.win_percentage, -s.wins))
