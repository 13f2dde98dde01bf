from datetime import date, datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class TeamMatchRecord(SQLModel, table=True):
    __tablename__ = "team_match"

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: Optional[int] = Field(default=None, foreign_key="tournament.id", index=True)
    home_team_id: int = Field(foreign_key="team.id")
    away_team_id: int = Field(foreign_key="team.id")
    team_level: str  # "varsity" | "jv" | "freshman"
    match_date: date
    location: Optional[str] = None
    notes: Optional[str] = None

    status: str = Field(default="scheduled")  # "scheduled" | "in_progress" | "completed" | "cancelled"
    home_score: int = Field(default=0)
    away_score: int = Field(default=0)
    winner: Optional[str] = Field(default=None)  # "home" | "away" | "tie"; set once completed
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
