"""
Team Management API Routes
Schools, their rosters, and player skill ratings.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from tennis_coach.database import get_session
from tennis_coach.models.player import Player
from tennis_coach.models.team import Team
from tennis_coach.services.entities import Gender, TeamLevel

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TeamCreateRequest(BaseModel):
    team_code: str
    school_name: str
    team_level: Optional[TeamLevel] = None

    @field_validator("team_code", "school_name")
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class PlayerCreateRequest(BaseModel):
    name: str
    gender: Optional[Gender] = None
    grade: Optional[int] = None
    utr_rating: Optional[float] = None
    division_preference: Optional[str] = None
    team_level: Optional[TeamLevel] = None


class PlayerUpdateRequest(BaseModel):
    name: Optional[str] = None
    gender: Optional[Gender] = None
    grade: Optional[int] = None
    utr_rating: Optional[float] = None
    division_preference: Optional[str] = None
    team_level: Optional[TeamLevel] = None


class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    team_id: int
    name: str
    gender: Optional[str] = None
    grade: Optional[int] = None
    utr_rating: Optional[float] = None
    division_preference: Optional[str] = None
    team_level: Optional[str] = None
    created_at: datetime


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    team_code: str
    school_name: str
    team_level: Optional[str] = None
    season_record_wins: int
    season_record_losses: int
    created_at: datetime
    players: List[PlayerResponse] = []


def _enum_value(value):
    return value.value if value is not None else None


def _get_team_or_404(session: Session, team_id: int) -> Team:
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


# ============================================================================
# Team Endpoints
# ============================================================================


@router.post("/teams", response_model=TeamResponse, status_code=201)
def create_team(request: TeamCreateRequest, session: Session = Depends(get_session)):
    """Create a team. team_code must be unique."""
    team = Team(
        team_code=request.team_code,
        school_name=request.school_name,
        team_level=_enum_value(request.team_level),
    )
    session.add(team)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail=f"Team code '{request.team_code}' already exists")
    session.refresh(team)
    return team


@router.get("/teams/{team_id}", response_model=TeamResponse)
def get_team(team_id: int, session: Session = Depends(get_session)):
    return _get_team_or_404(session, team_id)


# ============================================================================
# Player Endpoints
# ============================================================================


@router.post("/teams/{team_id}/players", response_model=PlayerResponse, status_code=201)
def add_player(team_id: int, request: PlayerCreateRequest, session: Session = Depends(get_session)):
    _get_team_or_404(session, team_id)

    player = Player(
        team_id=team_id,
        name=request.name,
        gender=_enum_value(request.gender),
        grade=request.grade,
        utr_rating=request.utr_rating,
        division_preference=request.division_preference,
        team_level=_enum_value(request.team_level),
    )
    session.add(player)
    session.commit()
    session.refresh(player)
    return player


@router.get("/teams/{team_id}/players", response_model=List[PlayerResponse])
def list_players(team_id: int, session: Session = Depends(get_session)):
    """Roster ordered by skill rating descending (unrated last), then id."""
    _get_team_or_404(session, team_id)
    players = session.exec(select(Player).where(Player.team_id == team_id)).all()
    return sorted(
        players,
        key=lambda p: (p.utr_rating is None, -(p.utr_rating if p.utr_rating is not None else 0), p.id),
    )


@router.patch("/players/{player_id}", response_model=PlayerResponse)
def update_player(player_id: int, request: PlayerUpdateRequest, session: Session = Depends(get_session)):
    """
    Update a player. Rating changes apply to the next bracket generation;
    existing matches keep their assigned players.
    """
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    update_data = request.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        if key in ("gender", "team_level"):
            value = _enum_value(value)
        setattr(player, key, value)

    session.add(player)
    session.commit()
    session.refresh(player)
    return player
