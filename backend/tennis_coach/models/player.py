from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tennis_coach.models.team import Team


class Player(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    name: str
    gender: Optional[str] = Field(default=None)  # "male" | "female"; unset players only fit mixed doubles
    grade: Optional[int] = Field(default=None)
    utr_rating: Optional[float] = Field(default=None)  # Skill rating used for position order
    division_preference: Optional[str] = Field(default=None)
    team_level: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    team: "Team" = Relationship(back_populates="players")
