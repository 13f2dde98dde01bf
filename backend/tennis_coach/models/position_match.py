from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class PositionMatch(SQLModel, table=True):
    """Stored IndividualMatch, keyed by the engine's match id."""

    __tablename__ = "position_match"

    id: str = Field(primary_key=True)
    tournament_id: Optional[int] = Field(default=None, foreign_key="tournament.id", index=True)
    team_match_id: Optional[int] = Field(default=None, foreign_key="team_match.id", index=True)
    division: str  # boys_singles | girls_singles | boys_doubles | girls_doubles | mixed_doubles
    position: int
    round_number: int = Field(default=1)
    match_number: int

    home_team_id: int = Field(foreign_key="team.id")
    away_team_id: int = Field(foreign_key="team.id")
    home_player1_id: Optional[int] = Field(default=None, foreign_key="player.id")
    home_player2_id: Optional[int] = Field(default=None, foreign_key="player.id")
    away_player1_id: Optional[int] = Field(default=None, foreign_key="player.id")
    away_player2_id: Optional[int] = Field(default=None, foreign_key="player.id")

    status: str = Field(default="pending")  # pending | in_progress | completed
    winner: Optional[str] = Field(default=None)  # home | away
    score: Optional[str] = Field(default=None)
    is_bye: bool = Field(default=False)
    court_number: Optional[int] = Field(default=None)
    scheduled_time: Optional[datetime] = Field(default=None)
    started_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})
