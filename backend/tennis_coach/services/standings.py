"""
Standings Calculator: school standings from individual match results.

Each completed position match is one win for the winning school and one loss
for the other. Standings are derived on demand and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from tennis_coach.services.entities import Division, IndividualMatch, MatchStatus, RosterTeam


@dataclass(frozen=True)
class StandingsEntry:
    team_id: int
    school_name: str
    wins: int
    losses: int
    total_matches: int
    win_percentage: float


@dataclass(frozen=True)
class TournamentSummary:
    tournament_id: Optional[int]
    divisions: List[Division]
    total_matches: int
    completed_matches: int
    current_round: int
    is_complete: bool
    school_scores: Dict[int, int] = field(default_factory=dict)


def calculate_school_scores(matches: Sequence[IndividualMatch]) -> Dict[int, int]:
    """
    Wins per team over completed matches.

    Every team that appears in a completed match has a key, even with 0 wins.
    """
    scores: Dict[int, int] = {}
    for match in matches:
        if match.status != MatchStatus.completed:
            continue
        scores.setdefault(match.home_team_id, 0)
        scores.setdefault(match.away_team_id, 0)
        winner_id = match.winning_team_id
        if winner_id is not None:
            scores[winner_id] += 1
    return scores


def calculate_standings(matches: Sequence[IndividualMatch], teams: Sequence[RosterTeam]) -> List[StandingsEntry]:
    """
    One StandingsEntry per team, best first.

    Order: wins descending, then win percentage descending. Teams still tied
    keep the order of the teams argument.
    """
    scores = calculate_school_scores(matches)
    completed = [m for m in matches if m.status == MatchStatus.completed]

    entries = []
    for team in teams:
        wins = scores.get(team.id, 0)
        total = sum(1 for m in completed if m.involves(team.id))
        entries.append(
            StandingsEntry(
                team_id=team.id,
                school_name=team.school_name,
                wins=wins,
                losses=total - wins,
                total_matches=total,
                win_percentage=wins / total if total > 0 else 0.0,
            )
        )

    return sorted(entries, key=lambda e: (-e.wins, -e.win_percentage))


def tournament_summary(matches: Sequence[IndividualMatch]) -> TournamentSummary:
    """Progress overview for a tournament's match set."""
    divisions: List[Division] = []
    for match in matches:
        if match.division not in divisions:
            divisions.append(match.division)

    total = len(matches)
    completed = sum(1 for m in matches if m.status == MatchStatus.completed)
    return TournamentSummary(
        tournament_id=matches[0].tournament_id if matches else None,
        divisions=divisions,
        total_matches=total,
        completed_matches=completed,
        current_round=1,  # round robin: every match is round 1
        is_complete=total > 0 and completed == total,
        school_scores=calculate_school_scores(matches),
    )
