from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    start_date: Optional[date] = None
    location: Optional[str] = None
    divisions: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    positions_per_division: int = Field(default=6)
    status: str = Field(default="open")  # "open" | "in_progress" | "completed"
    created_at: datetime = Field(default_factory=datetime.utcnow)


class TournamentTeam(SQLModel, table=True):
    """Participation link; join order (id) decides home/away in the bracket."""

    __table_args__ = (SAUniqueConstraint("tournament_id", "team_id", name="uq_tournament_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    team_id: int = Field(foreign_key="team.id")
    seed_number: Optional[int] = Field(default=None)
    joined_at: datetime = Field(default_factory=datetime.utcnow)
