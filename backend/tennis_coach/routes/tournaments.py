"""
Individual tournament routes: participants, bracket generation, results,
standings and summary. All scoring logic lives in tennis_coach.services.
"""

import logging
from dataclasses import asdict
from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from tennis_coach.config import get_default_positions, get_recording_policy
from tennis_coach.database import get_session
from tennis_coach.models.team import Team
from tennis_coach.models.tournament import Tournament, TournamentTeam
from tennis_coach.routes.match_schemas import (
    MatchResponse,
    ResultRequest,
    engine_error_to_http,
    match_to_response,
)
from tennis_coach.services import match_store
from tennis_coach.services.bracket_generator import (
    assign_players_to_matches,
    generate_individual_bracket,
    matches_by_division,
    rosters_by_team,
)
from tennis_coach.services.entities import Division
from tennis_coach.services.errors import ScoringEngineError
from tennis_coach.services.player_bracket import (
    EliminationMatch,
    bracket_summary,
    entrants_from_teams,
    generate_elimination_bracket,
)
from tennis_coach.services.result_recorder import RecordingPolicy, RecordOutcome, record_result, start_match
from tennis_coach.services.standings import calculate_standings, tournament_summary

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TournamentCreate(BaseModel):
    name: str
    divisions: List[Division]
    positions_per_division: Optional[int] = None
    start_date: Optional[date] = None
    location: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("divisions")
    @classmethod
    def validate_divisions(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("divisions must not repeat")
        return v

    @field_validator("positions_per_division")
    @classmethod
    def validate_positions(cls, v):
        if v is not None and v < 0:
            raise ValueError("positions_per_division must be >= 0")
        return v


class TournamentResponse(BaseModel):
    id: int
    name: str
    start_date: Optional[date] = None
    location: Optional[str] = None
    divisions: List[str]
    positions_per_division: int
    status: str
    team_ids: List[int]
    created_at: datetime


class TournamentTeamCreate(BaseModel):
    team_id: int
    seed_number: Optional[int] = None


class BracketResponse(BaseModel):
    tournament_id: int
    match_count: int
    unplayable_count: int
    matches: List[MatchResponse]


class RecordResultResponse(BaseModel):
    outcome: str
    match: MatchResponse


class StandingsEntryResponse(BaseModel):
    team_id: int
    school_name: str
    wins: int
    losses: int
    total_matches: int
    win_percentage: float


class TournamentSummaryResponse(BaseModel):
    tournament_id: int
    divisions: List[str]
    total_matches: int
    completed_matches: int
    current_round: int
    is_complete: bool
    school_scores: Dict[int, int]


class DrawEntrantResponse(BaseModel):
    player_id: int
    team_id: int
    school_name: str
    name: str
    utr_rating: Optional[float] = None


class DrawMatchResponse(BaseModel):
    id: str
    round_number: int
    match_number: int
    player1: Optional[DrawEntrantResponse] = None
    player2: Optional[DrawEntrantResponse] = None
    status: str
    winner_player_id: Optional[int] = None
    is_bye: bool
    same_school: bool
    next_match_id: Optional[str] = None


class DrawResponse(BaseModel):
    tournament_id: int
    division: str
    rounds: int
    total_matches: int
    matches: List[DrawMatchResponse]


def _get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def _to_response(session: Session, tournament: Tournament) -> TournamentResponse:
    links = session.exec(
        select(TournamentTeam).where(TournamentTeam.tournament_id == tournament.id).order_by(TournamentTeam.id)
    ).all()
    return TournamentResponse(
        id=tournament.id,
        name=tournament.name,
        start_date=tournament.start_date,
        location=tournament.location,
        divisions=list(tournament.divisions or []),
        positions_per_division=tournament.positions_per_division,
        status=tournament.status,
        team_ids=[link.team_id for link in links],
        created_at=tournament.created_at,
    )


# ============================================================================
# Tournament Endpoints
# ============================================================================


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(payload: TournamentCreate, session: Session = Depends(get_session)):
    positions = payload.positions_per_division
    if positions is None:
        positions = get_default_positions()

    tournament = Tournament(
        name=payload.name,
        start_date=payload.start_date,
        location=payload.location,
        divisions=[d.value for d in payload.divisions],
        positions_per_division=positions,
    )
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return _to_response(session, tournament)


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    return _to_response(session, _get_tournament_or_404(session, tournament_id))


@router.post("/tournaments/{tournament_id}/teams", response_model=TournamentResponse, status_code=201)
def join_tournament(tournament_id: int, payload: TournamentTeamCreate, session: Session = Depends(get_session)):
    """Add a participating team. Join order decides home/away in the bracket."""
    tournament = _get_tournament_or_404(session, tournament_id)
    if not session.get(Team, payload.team_id):
        raise HTTPException(status_code=404, detail="Team not found")

    session.add(TournamentTeam(tournament_id=tournament_id, team_id=payload.team_id, seed_number=payload.seed_number))
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Team already in tournament")
    session.refresh(tournament)
    return _to_response(session, tournament)


@router.post("/tournaments/{tournament_id}/bracket", response_model=BracketResponse, status_code=201)
def generate_bracket(
    tournament_id: int,
    replace: bool = Query(False, description="Delete existing matches and regenerate"),
    session: Session = Depends(get_session),
):
    """
    Generate the round robin position matches and assign players by rating.

    Returns 409 if matches already exist, unless replace=true.
    """
    tournament = _get_tournament_or_404(session, tournament_id)

    existing = match_store.load_tournament_matches(session, tournament_id)
    if existing and not replace:
        raise HTTPException(
            status_code=409,
            detail=f"Tournament already has {len(existing)} matches; pass replace=true to regenerate",
        )

    try:
        teams = match_store.load_tournament_teams(session, tournament_id)
        matches = generate_individual_bracket(
            tournament_id, teams, tournament.divisions or [], tournament.positions_per_division
        )
        matches = assign_players_to_matches(matches, rosters_by_team(teams))
    except ScoringEngineError as exc:
        raise engine_error_to_http(exc)

    if existing:
        deleted = match_store.delete_tournament_matches(session, tournament_id, commit=False)
        logger.info("Replaced %d matches for tournament %d", deleted, tournament_id)

    match_store.save_matches(session, matches, commit=False)
    tournament.status = "in_progress" if matches else "open"
    session.add(tournament)
    session.commit()

    return BracketResponse(
        tournament_id=tournament_id,
        match_count=len(matches),
        unplayable_count=sum(1 for m in matches if not m.is_playable),
        matches=[match_to_response(m) for m in matches],
    )


@router.get("/tournaments/{tournament_id}/matches", response_model=List[MatchResponse])
def list_matches(
    tournament_id: int,
    division: Optional[Division] = Query(None),
    session: Session = Depends(get_session),
):
    """All matches in generation order, or one division ordered by position."""
    _get_tournament_or_404(session, tournament_id)
    matches = match_store.load_tournament_matches(session, tournament_id)
    if division is not None:
        matches = matches_by_division(matches, division)
    return [match_to_response(m) for m in matches]


@router.post("/tournaments/{tournament_id}/matches/{match_id}/start", response_model=MatchResponse)
def start_tournament_match(tournament_id: int, match_id: str, session: Session = Depends(get_session)):
    _get_tournament_or_404(session, tournament_id)
    matches = match_store.load_tournament_matches(session, tournament_id)
    try:
        updated = start_match(matches, match_id)
    except ScoringEngineError as exc:
        raise engine_error_to_http(exc)

    started = next(m for m in updated if m.id == match_id)
    match_store.save_matches(session, [started])
    return match_to_response(started)


@router.patch("/tournaments/{tournament_id}/matches/{match_id}/result", response_model=RecordResultResponse)
def record_tournament_result(
    tournament_id: int,
    match_id: str,
    payload: ResultRequest,
    session: Session = Depends(get_session),
    policy: RecordingPolicy = Depends(get_recording_policy),
):
    """
    Record winner + score for one match.

    outcome is "applied" or "unchanged" (same result sent again). An unknown
    match id is 404 under either policy; under the strict policy a different
    result on a completed match is 409.
    """
    tournament = _get_tournament_or_404(session, tournament_id)
    matches = match_store.load_tournament_matches(session, tournament_id)
    try:
        recorded = record_result(matches, match_id, payload.winner, payload.score, policy=policy)
    except ScoringEngineError as exc:
        raise engine_error_to_http(exc)

    if recorded.outcome == RecordOutcome.not_found:
        raise HTTPException(status_code=404, detail="Match not found")

    if recorded.outcome == RecordOutcome.applied:
        match_store.save_matches(session, [recorded.match], commit=False)
        if tournament_summary(recorded.matches).is_complete:
            tournament.status = "completed"
            session.add(tournament)
        session.commit()

    return RecordResultResponse(outcome=recorded.outcome.value, match=match_to_response(recorded.match))


@router.get("/tournaments/{tournament_id}/standings", response_model=List[StandingsEntryResponse])
def get_standings(tournament_id: int, session: Session = Depends(get_session)):
    """School standings: wins descending, then win percentage descending."""
    _get_tournament_or_404(session, tournament_id)
    try:
        teams = match_store.load_tournament_teams(session, tournament_id)
    except ScoringEngineError as exc:
        raise engine_error_to_http(exc)
    matches = match_store.load_tournament_matches(session, tournament_id)
    return [StandingsEntryResponse(**asdict(entry)) for entry in calculate_standings(matches, teams)]


@router.get("/tournaments/{tournament_id}/summary", response_model=TournamentSummaryResponse)
def get_summary(tournament_id: int, session: Session = Depends(get_session)):
    _get_tournament_or_404(session, tournament_id)
    summary = tournament_summary(match_store.load_tournament_matches(session, tournament_id))
    return TournamentSummaryResponse(
        tournament_id=tournament_id,
        divisions=[d.value for d in summary.divisions],
        total_matches=summary.total_matches,
        completed_matches=summary.completed_matches,
        current_round=summary.current_round,
        is_complete=summary.is_complete,
        school_scores=summary.school_scores,
    )


def _draw_match_response(m: EliminationMatch) -> DrawMatchResponse:
    return DrawMatchResponse(
        id=m.id,
        round_number=m.round_number,
        match_number=m.match_number,
        player1=DrawEntrantResponse(**asdict(m.player1)) if m.player1 else None,
        player2=DrawEntrantResponse(**asdict(m.player2)) if m.player2 else None,
        status=m.status.value,
        winner_player_id=m.winner_player_id,
        is_bye=m.is_bye,
        same_school=m.same_school,
        next_match_id=m.next_match_id,
    )


@router.get("/tournaments/{tournament_id}/draw", response_model=DrawResponse)
def preview_elimination_draw(
    tournament_id: int,
    division: Division = Query(..., description="Singles division to draw"),
    session: Session = Depends(get_session),
):
    """
    Single elimination draw for one singles division over every eligible
    player of the participating schools. Nothing is stored.
    """
    _get_tournament_or_404(session, tournament_id)
    try:
        teams = match_store.load_tournament_teams(session, tournament_id)
        matches = generate_elimination_bracket(f"{tournament_id}-{division.value}", entrants_from_teams(teams, division))
    except ScoringEngineError as exc:
        raise engine_error_to_http(exc)

    summary = bracket_summary(matches)
    return DrawResponse(
        tournament_id=tournament_id,
        division=division.value,
        rounds=summary.rounds,
        total_matches=summary.total_matches,
        matches=[_draw_match_response(m) for m in matches],
    )
