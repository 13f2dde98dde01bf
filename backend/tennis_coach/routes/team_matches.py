"""
Dual (team vs team) match routes: lineup creation, position results,
head-to-head summary and season standings.
"""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, model_validator
from sqlmodel import Session, select

from tennis_coach.config import get_recording_policy
from tennis_coach.database import get_session
from tennis_coach.models.player import Player
from tennis_coach.models.team import Team
from tennis_coach.models.team_match import TeamMatchRecord
from tennis_coach.models.tournament import Tournament
from tennis_coach.routes.match_schemas import (
    MatchResponse,
    ResultRequest,
    engine_error_to_http,
    match_to_response,
)
from tennis_coach.services import match_store
from tennis_coach.services.bracket_generator import (
    assign_partner,
    assign_players_to_matches,
    create_team_match_lineup,
)
from tennis_coach.services.entities import Side, TeamLevel, TeamMatch
from tennis_coach.services.errors import ScoringEngineError
from tennis_coach.services.result_recorder import RecordingPolicy, RecordOutcome
from tennis_coach.services.team_match_aggregator import (
    aggregate_team_match,
    cancel_team_match,
    record_team_match_result,
    season_record_changes,
    team_match_standings,
)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TeamMatchCreate(BaseModel):
    home_team_id: int
    away_team_id: int
    team_level: TeamLevel
    match_date: date
    tournament_id: Optional[int] = None
    location: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_teams(self):
        if self.home_team_id == self.away_team_id:
            raise ValueError("home_team_id and away_team_id must differ")
        return self


class PartnerRequest(BaseModel):
    side: Side
    player_id: Optional[int] = None


class TeamMatchResultResponse(BaseModel):
    home_wins: int
    away_wins: int
    total_positions: int
    completed_positions: int
    is_complete: bool
    provisional_leader: str
    final_winner: Optional[str] = None


class TeamMatchResponse(BaseModel):
    id: int
    tournament_id: Optional[int] = None
    home_team_id: int
    away_team_id: int
    team_level: str
    match_date: date
    status: str
    home_score: int
    away_score: int
    winner: Optional[str] = None
    completed_at: Optional[datetime] = None
    result: TeamMatchResultResponse
    individual_matches: List[MatchResponse]


class TeamMatchRecordResponse(BaseModel):
    outcome: str
    team_match: TeamMatchResponse


class TeamMatchStandingResponse(BaseModel):
    team_id: int
    team_level: str
    wins: int
    losses: int
    ties: int
    total_matches: int
    win_percentage: float


def _to_response(team_match: TeamMatch) -> TeamMatchResponse:
    summary = aggregate_team_match(team_match)
    return TeamMatchResponse(
        id=team_match.id,
        tournament_id=team_match.tournament_id,
        home_team_id=team_match.home_team_id,
        away_team_id=team_match.away_team_id,
        team_level=team_match.team_level.value,
        match_date=team_match.match_date,
        status=team_match.status.value,
        home_score=team_match.home_score,
        away_score=team_match.away_score,
        winner=team_match.winner.value if team_match.winner else None,
        completed_at=team_match.completed_at,
        result=TeamMatchResultResponse(
            home_wins=summary.home_wins,
            away_wins=summary.away_wins,
            total_positions=summary.total_positions,
            completed_positions=summary.completed_positions,
            is_complete=summary.is_complete,
            provisional_leader=summary.provisional_leader().value,
            final_winner=summary.final_winner().value if summary.is_complete else None,
        ),
        individual_matches=[match_to_response(m) for m in team_match.individual_matches],
    )


def _load_or_404(session: Session, team_match_id: int) -> TeamMatch:
    try:
        team_match = match_store.load_team_match(session, team_match_id)
    except ScoringEngineError as exc:
        raise engine_error_to_http(exc)
    if team_match is None:
        raise HTTPException(status_code=404, detail="Team match not found")
    return team_match


# ============================================================================
# Team Match Endpoints
# ============================================================================


@router.post("/team-matches", response_model=TeamMatchResponse, status_code=201)
def create_team_match(payload: TeamMatchCreate, session: Session = Depends(get_session)):
    """
    Create a dual match with the standard lineup (6 boys singles, 6 girls
    singles, 3 boys doubles, 3 girls doubles, 1 mixed doubles) and place each
    school's players by rating. Doubles partners are left for the coach.
    """
    for team_id in (payload.home_team_id, payload.away_team_id):
        if not session.get(Team, team_id):
            raise HTTPException(status_code=404, detail=f"Team {team_id} not found")
    if payload.tournament_id is not None and not session.get(Tournament, payload.tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")

    record = TeamMatchRecord(
        tournament_id=payload.tournament_id,
        home_team_id=payload.home_team_id,
        away_team_id=payload.away_team_id,
        team_level=payload.team_level.value,
        match_date=payload.match_date,
        location=payload.location,
        notes=payload.notes,
    )
    session.add(record)
    session.flush()  # assigns record.id for the lineup ids

    try:
        home = match_store.load_roster_team(session, payload.home_team_id)
        away = match_store.load_roster_team(session, payload.away_team_id)
        lineup = create_team_match_lineup(
            record.id, payload.home_team_id, payload.away_team_id, tournament_id=payload.tournament_id
        )
        lineup = assign_players_to_matches(lineup, {home.id: home.players, away.id: away.players})
    except ScoringEngineError as exc:
        session.rollback()
        raise engine_error_to_http(exc)

    match_store.save_matches(session, lineup, commit=False)
    session.commit()
    return _to_response(_load_or_404(session, record.id))


@router.get("/team-matches/standings", response_model=List[TeamMatchStandingResponse])
def get_team_match_standings(
    tournament_id: Optional[int] = Query(None),
    session: Session = Depends(get_session),
):
    """Records over completed dual matches: win percentage, then wins."""
    query = select(TeamMatchRecord)
    if tournament_id is not None:
        query = query.where(TeamMatchRecord.tournament_id == tournament_id)
    records = session.exec(query.order_by(TeamMatchRecord.id)).all()

    try:
        team_matches = [match_store.record_to_team_match(r) for r in records]
    except ScoringEngineError as exc:
        raise engine_error_to_http(exc)

    return [
        TeamMatchStandingResponse(
            team_id=s.team_id,
            team_level=s.team_level.value,
            wins=s.wins,
            losses=s.losses,
            ties=s.ties,
            total_matches=s.total_matches,
            win_percentage=s.win_percentage,
        )
        for s in team_match_standings(team_matches)
    ]


@router.get("/team-matches/{team_match_id}", response_model=TeamMatchResponse)
def get_team_match(team_match_id: int, session: Session = Depends(get_session)):
    return _to_response(_load_or_404(session, team_match_id))


@router.patch("/team-matches/{team_match_id}/matches/{match_id}/result", response_model=TeamMatchRecordResponse)
def record_position_result(
    team_match_id: int,
    match_id: str,
    payload: ResultRequest,
    session: Session = Depends(get_session),
    policy: RecordingPolicy = Depends(get_recording_policy),
):
    """Record one position result; team totals, status and winner follow."""
    team_match = _load_or_404(session, team_match_id)
    try:
        updated, outcome = record_team_match_result(team_match, match_id, payload.winner, payload.score, policy=policy)
    except ScoringEngineError as exc:
        raise engine_error_to_http(exc)

    if outcome == RecordOutcome.not_found:
        raise HTTPException(status_code=404, detail="Match not found")
    if outcome == RecordOutcome.applied:
        match_store.save_team_match(session, updated, season_changes=season_record_changes(team_match, updated))

    return TeamMatchRecordResponse(outcome=outcome.value, team_match=_to_response(updated))


@router.post("/team-matches/{team_match_id}/cancel", response_model=TeamMatchResponse)
def cancel(team_match_id: int, session: Session = Depends(get_session)):
    """Cancel a dual match that has not finished. Further results are rejected with 409."""
    team_match = _load_or_404(session, team_match_id)
    try:
        cancelled = cancel_team_match(team_match)
    except ScoringEngineError as exc:
        raise engine_error_to_http(exc)

    if cancelled is not team_match:
        match_store.save_team_match(session, cancelled)
    return _to_response(cancelled)


@router.put("/team-matches/{team_match_id}/matches/{match_id}/partner", response_model=MatchResponse)
def set_partner(
    team_match_id: int,
    match_id: str,
    payload: PartnerRequest,
    session: Session = Depends(get_session),
):
    """Set the coach's doubles partner for one side (player_id null clears it)."""
    team_match = _load_or_404(session, team_match_id)
    partner = None
    if payload.player_id is not None:
        player = session.get(Player, payload.player_id)
        expected_team = team_match.home_team_id if payload.side == Side.home else team_match.away_team_id
        if not player or player.team_id != expected_team:
            raise HTTPException(status_code=422, detail="Partner must be a player of that side's team")

    try:
        if payload.player_id is not None:
            partner = match_store.player_to_roster(player)
        updated = assign_partner(team_match.individual_matches, match_id, payload.side, partner)
    except ScoringEngineError as exc:
        raise engine_error_to_http(exc)

    changed = next(m for m in updated if m.id == match_id)
    match_store.save_matches(session, [changed])
    return match_to_response(changed)
