"""
Match store: converts table rows to engine values and back.

This is the only service module that touches a Session. Matches are upserted
keyed by match id; the last write for a given id wins.
"""

from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlmodel import Session, select

from tennis_coach.models.player import Player
from tennis_coach.models.position_match import PositionMatch
from tennis_coach.models.team import Team
from tennis_coach.models.team_match import TeamMatchRecord
from tennis_coach.models.tournament import TournamentTeam
from tennis_coach.services.entities import (
    Division,
    Gender,
    IndividualMatch,
    MatchStatus,
    Outcome,
    RosterPlayer,
    RosterTeam,
    Side,
    TeamLevel,
    TeamMatch,
    TeamMatchStatus,
)
from tennis_coach.services.errors import InvalidEntityError


def _enum_or_none(enum_cls, value, entity: str, field: str):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidEntityError(entity, field, f"has unknown value {value!r}") from None


# ============================================================================
# Rosters
# ============================================================================


def player_to_roster(player: Player) -> RosterPlayer:
    if player.id is None:
        raise InvalidEntityError(f"Player {player.name!r}", "id")
    entity = f"Player {player.id}"
    return RosterPlayer(
        id=player.id,
        name=player.name,
        gender=_enum_or_none(Gender, player.gender, entity, "gender"),
        grade=player.grade,
        utr_rating=player.utr_rating,
        division_preference=player.division_preference,
        team_level=_enum_or_none(TeamLevel, player.team_level, entity, "team_level"),
    )


def team_to_roster(team: Team, players: Optional[Sequence[Player]] = None) -> RosterTeam:
    if team.id is None:
        raise InvalidEntityError(f"Team {team.school_name!r}", "id")
    roster = team.players if players is None else players
    return RosterTeam(
        id=team.id,
        school_name=team.school_name,
        team_level=_enum_or_none(TeamLevel, team.team_level, f"Team {team.id}", "team_level"),
        players=tuple(player_to_roster(p) for p in sorted(roster, key=lambda p: p.id)),
    )


def load_roster_team(session: Session, team_id: int) -> Optional[RosterTeam]:
    team = session.get(Team, team_id)
    if not team:
        return None
    players = session.exec(select(Player).where(Player.team_id == team_id)).all()
    return team_to_roster(team, players)


def load_tournament_teams(session: Session, tournament_id: int) -> List[RosterTeam]:
    """
    Participating teams in bracket order.

    Order:
    1. seed_number ascending (nulls last)
    2. join order (link id ascending)
    """
    links = session.exec(select(TournamentTeam).where(TournamentTeam.tournament_id == tournament_id)).all()
    links = sorted(
        links,
        key=lambda link: (link.seed_number is None, link.seed_number if link.seed_number is not None else 0, link.id),
    )
    teams = []
    for link in links:
        roster = load_roster_team(session, link.team_id)
        if roster is None:
            raise InvalidEntityError(f"TournamentTeam {link.id}", "team_id", f"references missing team {link.team_id}")
        teams.append(roster)
    return teams


# ============================================================================
# Individual matches
# ============================================================================


def record_to_match(row: PositionMatch) -> IndividualMatch:
    entity = f"PositionMatch {row.id}"
    return IndividualMatch(
        id=row.id,
        tournament_id=row.tournament_id,
        team_match_id=row.team_match_id,
        division=_enum_or_none(Division, row.division, entity, "division"),
        position=row.position,
        round_number=row.round_number,
        match_number=row.match_number,
        home_team_id=row.home_team_id,
        away_team_id=row.away_team_id,
        home_player1_id=row.home_player1_id,
        home_player2_id=row.home_player2_id,
        away_player1_id=row.away_player1_id,
        away_player2_id=row.away_player2_id,
        status=_enum_or_none(MatchStatus, row.status, entity, "status"),
        winner=_enum_or_none(Side, row.winner, entity, "winner"),
        score=row.score,
        is_bye=row.is_bye,
        court_number=row.court_number,
        scheduled_time=row.scheduled_time,
        started_at=row.started_at,
        completed_at=row.completed_at,
    )


def _copy_match_onto(match: IndividualMatch, row: PositionMatch) -> PositionMatch:
    row.tournament_id = match.tournament_id
    row.team_match_id = match.team_match_id
    row.division = match.division.value
    row.position = match.position
    row.round_number = match.round_number
    row.match_number = match.match_number
    row.home_team_id = match.home_team_id
    row.away_team_id = match.away_team_id
    row.home_player1_id = match.home_player1_id
    row.home_player2_id = match.home_player2_id
    row.away_player1_id = match.away_player1_id
    row.away_player2_id = match.away_player2_id
    row.status = match.status.value
    row.winner = match.winner.value if match.winner else None
    row.score = match.score
    row.is_bye = match.is_bye
    row.court_number = match.court_number
    row.scheduled_time = match.scheduled_time
    row.started_at = match.started_at
    row.completed_at = match.completed_at
    return row


def save_matches(session: Session, matches: Iterable[IndividualMatch], commit: bool = True) -> int:
    """Upsert matches by id. Returns the number of rows written."""
    written = 0
    for match in matches:
        row = session.get(PositionMatch, match.id)
        if row is None:
            row = PositionMatch(id=match.id)
        session.add(_copy_match_onto(match, row))
        written += 1
    if commit:
        session.commit()
    return written


def load_tournament_matches(session: Session, tournament_id: int) -> List[IndividualMatch]:
    rows = session.exec(
        select(PositionMatch)
        .where(PositionMatch.tournament_id == tournament_id, PositionMatch.team_match_id.is_(None))
        .order_by(PositionMatch.match_number)
    ).all()
    return [record_to_match(r) for r in rows]


def load_team_match_matches(session: Session, team_match_id: int) -> List[IndividualMatch]:
    rows = session.exec(
        select(PositionMatch)
        .where(PositionMatch.team_match_id == team_match_id)
        .order_by(PositionMatch.match_number)
    ).all()
    return [record_to_match(r) for r in rows]


def delete_tournament_matches(session: Session, tournament_id: int, commit: bool = True) -> int:
    """
    Delete a tournament's position matches. With commit=False the deletes are
    only flushed, so the caller can write the replacements in the same transaction.
    """
    rows = session.exec(
        select(PositionMatch).where(
            PositionMatch.tournament_id == tournament_id, PositionMatch.team_match_id.is_(None)
        )
    ).all()
    for row in rows:
        session.delete(row)
    if commit:
        session.commit()
    else:
        session.flush()
    return len(rows)


# ============================================================================
# Team matches
# ============================================================================


def record_to_team_match(record: TeamMatchRecord, matches: Sequence[IndividualMatch] = ()) -> TeamMatch:
    entity = f"TeamMatch {record.id}"
    return TeamMatch(
        id=record.id,
        tournament_id=record.tournament_id,
        home_team_id=record.home_team_id,
        away_team_id=record.away_team_id,
        team_level=_enum_or_none(TeamLevel, record.team_level, entity, "team_level"),
        match_date=record.match_date,
        status=_enum_or_none(TeamMatchStatus, record.status, entity, "status"),
        individual_matches=tuple(matches),
        home_score=record.home_score,
        away_score=record.away_score,
        winner=_enum_or_none(Outcome, record.winner, entity, "winner"),
        completed_at=record.completed_at,
    )


def load_team_match(session: Session, team_match_id: int) -> Optional[TeamMatch]:
    record = session.get(TeamMatchRecord, team_match_id)
    if not record:
        return None
    return record_to_team_match(record, load_team_match_matches(session, team_match_id))


def save_team_match(
    session: Session,
    team_match: TeamMatch,
    season_changes: Optional[Mapping[int, Tuple[int, int]]] = None,
) -> TeamMatchRecord:
    """
    Write a team match's totals, all of its position matches and any season
    record changes (see team_match_aggregator.season_record_changes) in one commit.
    """
    record = session.get(TeamMatchRecord, team_match.id)
    if record is None:
        raise InvalidEntityError(f"TeamMatch {team_match.id}", "id", "not found")
    record.status = team_match.status.value
    record.home_score = team_match.home_score
    record.away_score = team_match.away_score
    record.winner = team_match.winner.value if team_match.winner else None
    record.completed_at = team_match.completed_at
    session.add(record)
    save_matches(session, team_match.individual_matches, commit=False)
    apply_season_changes(session, season_changes or {})
    session.commit()
    session.refresh(record)
    return record


def apply_season_changes(session: Session, changes: Mapping[int, Tuple[int, int]]) -> None:
    """Add (wins, losses) to each team's season record. Does not commit."""
    for team_id, (wins, losses) in changes.items():
        team = session.get(Team, team_id)
        if team is None:
            raise InvalidEntityError(f"Team {team_id}", "id", "not found")
        team.season_record_wins = max(0, team.season_record_wins + wins)
        team.season_record_losses = max(0, team.season_record_losses + losses)
        session.add(team)
