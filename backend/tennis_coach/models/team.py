from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tennis_coach.models.player import Player


class Team(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    team_code: str = Field(index=True, unique=True)  # Short code other coaches use to find the school
    school_name: str
    team_level: Optional[str] = Field(default=None)  # "varsity" | "jv" | "freshman"
    season_record_wins: int = Field(default=0)
    season_record_losses: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    players: List["Player"] = Relationship(back_populates="team")
