"""
Request/response models shared by the tournament and team-match routers,
plus the translation of engine errors into HTTP errors.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException
from pydantic import BaseModel, field_validator

from tennis_coach.services.entities import IndividualMatch, Side
from tennis_coach.services.errors import (
    BracketConfigError,
    IncompleteTeamMatchError,
    InvalidEntityError,
    InvalidResultError,
    InvalidTransitionError,
    MatchAlreadyCompletedError,
    MatchNotFoundError,
    ScoringEngineError,
)
from tennis_coach.services.score_parser import parse_score


class ResultRequest(BaseModel):
    winner: Side
    score: str

    @field_validator("score")
    @classmethod
    def score_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("score is required")
        return v.strip()


class ScoreBreakdown(BaseModel):
    sets: List[List[int]]
    home_sets_won: int
    away_sets_won: int
    home_games: int
    away_games: int


class MatchResponse(BaseModel):
    id: str
    tournament_id: Optional[int] = None
    team_match_id: Optional[int] = None
    division: str
    position: int
    round_number: int
    match_number: int
    home_team_id: int
    away_team_id: int
    home_player1_id: Optional[int] = None
    home_player2_id: Optional[int] = None
    away_player1_id: Optional[int] = None
    away_player2_id: Optional[int] = None
    status: str
    winner: Optional[str] = None
    score: Optional[str] = None
    score_breakdown: Optional[ScoreBreakdown] = None
    is_bye: bool
    is_playable: bool
    court_number: Optional[int] = None
    scheduled_time: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


def match_to_response(m: IndividualMatch) -> MatchResponse:
    parsed = parse_score(m.score)
    breakdown = None
    if parsed is not None:
        parsed = parsed.oriented_for(m.winner)
        breakdown = ScoreBreakdown(
            sets=[list(s) for s in parsed.sets],
            home_sets_won=parsed.home_sets_won,
            away_sets_won=parsed.away_sets_won,
            home_games=parsed.home_games,
            away_games=parsed.away_games,
        )
    return MatchResponse(
        id=m.id,
        tournament_id=m.tournament_id,
        team_match_id=m.team_match_id,
        division=m.division.value,
        position=m.position,
        round_number=m.round_number,
        match_number=m.match_number,
        home_team_id=m.home_team_id,
        away_team_id=m.away_team_id,
        home_player1_id=m.home_player1_id,
        home_player2_id=m.home_player2_id,
        away_player1_id=m.away_player1_id,
        away_player2_id=m.away_player2_id,
        status=m.status.value,
        winner=m.winner.value if m.winner else None,
        score=m.score,
        score_breakdown=breakdown,
        is_bye=m.is_bye,
        is_playable=m.is_playable,
        court_number=m.court_number,
        scheduled_time=m.scheduled_time,
        started_at=m.started_at,
        completed_at=m.completed_at,
    )


def engine_error_to_http(exc: ScoringEngineError) -> HTTPException:
    """Map an engine error onto the HTTP status the routes return for it."""
    if isinstance(exc, MatchNotFoundError):
        return HTTPException(status_code=404, detail="Match not found")
    if isinstance(exc, (MatchAlreadyCompletedError, InvalidTransitionError, IncompleteTeamMatchError)):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, (InvalidResultError, BracketConfigError, InvalidEntityError)):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
