"""
Engine value types.

These are the in-memory shapes the scoring engine works on. They carry no
database state; match_store.py converts them to and from table rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple


class Gender(str, Enum):
    male = "male"
    female = "female"


class TeamLevel(str, Enum):
    varsity = "varsity"
    jv = "jv"
    freshman = "freshman"


class Division(str, Enum):
    boys_singles = "boys_singles"
    girls_singles = "girls_singles"
    boys_doubles = "boys_doubles"
    girls_doubles = "girls_doubles"
    mixed_doubles = "mixed_doubles"


class MatchStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"


class Side(str, Enum):
    home = "home"
    away = "away"


class Outcome(str, Enum):
    home = "home"
    away = "away"
    tie = "tie"


class TeamMatchStatus(str, Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


@dataclass(frozen=True)
class RosterPlayer:
    """One player as the engine sees it."""
    id: int
    name: str
    gender: Optional[Gender] = None
    grade: Optional[int] = None
    utr_rating: Optional[float] = None
    division_preference: Optional[str] = None
    team_level: Optional[TeamLevel] = None


@dataclass(frozen=True)
class RosterTeam:
    id: int
    school_name: str
    team_level: Optional[TeamLevel] = None
    players: Tuple[RosterPlayer, ...] = ()


@dataclass(frozen=True)
class IndividualMatch:
    """One position match between two teams.

    winner and score are set exactly when status is completed.
    """
    id: str
    division: Division
    position: int
    home_team_id: int
    away_team_id: int
    tournament_id: Optional[int] = None
    team_match_id: Optional[int] = None
    round_number: int = 1
    match_number: int = 1
    home_player1_id: Optional[int] = None
    home_player2_id: Optional[int] = None
    away_player1_id: Optional[int] = None
    away_player2_id: Optional[int] = None
    status: MatchStatus = MatchStatus.pending
    winner: Optional[Side] = None
    score: Optional[str] = None
    is_bye: bool = False
    court_number: Optional[int] = None
    scheduled_time: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.completed

    @property
    def winning_team_id(self) -> Optional[int]:
        if not self.is_completed or self.winner is None:
            return None
        return self.team_id_for(self.winner)

    def team_id_for(self, side: Side) -> int:
        return self.home_team_id if side == Side.home else self.away_team_id

    def involves(self, team_id: int) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)

    def unassigned_slots(self) -> List[str]:
        """Names of the player slots a scheduler still has to fill.

        Only the first slot per side is checked; doubles partners are entered
        by the coach, see bracket_generator.assign_partner.
        """
        missing = []
        if self.home_player1_id is None:
            missing.append("home_player1_id")
        if self.away_player1_id is None:
            missing.append("away_player1_id")
        return missing

    @property
    def is_playable(self) -> bool:
        return self.is_bye or not self.unassigned_slots()


@dataclass(frozen=True)
class TeamMatch:
    """Head-to-head between two schools at one team level on one date."""
    id: int
    home_team_id: int
    away_team_id: int
    team_level: TeamLevel
    match_date: date
    tournament_id: Optional[int] = None
    status: TeamMatchStatus = TeamMatchStatus.scheduled
    individual_matches: Tuple[IndividualMatch, ...] = ()
    home_score: int = 0
    away_score: int = 0
    winner: Optional[Outcome] = None
    completed_at: Optional[datetime] = None
