from tennis_coach.models.player import Player
from tennis_coach.models.position_match import PositionMatch
from tennis_coach.models.team import Team
from tennis_coach.models.team_match import TeamMatchRecord
from tennis_coach.models.tournament import Tournament, TournamentTeam

__all__ = [
    "Player",
    "PositionMatch",
    "Team",
    "TeamMatchRecord",
    "Tournament",
    "TournamentTeam",
]
