"""
Individual Bracket Generator: round robin position matches.

For every division, every position 1..N and every pair of teams (i, j) with
i listed before j, one pending IndividualMatch is created with team i at home.
All matches are round 1. Match count = |divisions| * N * C(teams, 2).

Players are filled in afterwards by assign_players_to_matches(), which keeps
generation independent of roster changes between runs.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from tennis_coach.services.divisions import DivisionLike, coerce_division, coerce_divisions, is_doubles, is_eligible
from tennis_coach.services.entities import Division, IndividualMatch, RosterPlayer, RosterTeam, Side
from tennis_coach.services.errors import (
    BracketConfigError,
    InvalidEntityError,
    InvalidTransitionError,
    MatchNotFoundError,
)
from tennis_coach.services.positions import division_ladder, player_at_position

logger = logging.getLogger(__name__)

DEFAULT_POSITIONS_PER_DIVISION = 6

# Dual-match layout: (division, number of positions)
DEFAULT_TEAM_MATCH_LAYOUT: Tuple[Tuple[Division, int], ...] = (
    (Division.boys_singles, 6),
    (Division.girls_singles, 6),
    (Division.boys_doubles, 3),
    (Division.girls_doubles, 3),
    (Division.mixed_doubles, 1),
)


def validate_teams(teams: Sequence[RosterTeam]) -> None:
    """Fail fast on teams without an id or listed twice."""
    seen = set()
    for index, team in enumerate(teams):
        if team.id is None:
            raise InvalidEntityError(f"RosterTeam[{index}] ({team.school_name!r})", "id")
        if team.id in seen:
            raise InvalidEntityError(f"RosterTeam[{index}] ({team.school_name!r})", "id", f"duplicates team {team.id}")
        seen.add(team.id)


def round_robin_pairs(teams: Sequence[RosterTeam]) -> List[Tuple[RosterTeam, RosterTeam]]:
    """All unordered pairs (teams[i], teams[j]) with i < j."""
    pairs = []
    for i in range(len(teams)):
        for j in range(i + 1, len(teams)):
            pairs.append((teams[i], teams[j]))
    return pairs


def expected_match_count(division_count: int, positions_per_division: int, team_count: int) -> int:
    return division_count * positions_per_division * (team_count * (team_count - 1) // 2)


def generate_individual_bracket(
    tournament_id: int,
    teams: Sequence[RosterTeam],
    divisions: Sequence[DivisionLike],
    positions_per_division: int = DEFAULT_POSITIONS_PER_DIVISION,
) -> Tuple[IndividualMatch, ...]:
    """
    Generate every position match for a round robin tournament.

    Args:
        tournament_id: Owning tournament
        teams: Participating teams; list order decides home/away
        divisions: Divisions to contest
        positions_per_division: N, positions per division (0 yields no matches)

    Returns:
        Tuple of pending matches, ids "<tournament>-<division>-<position>-<match_number>"

    Raises:
        BracketConfigError: unknown division or negative positions_per_division
        InvalidEntityError: a team without id, or a team listed twice
    """
    if positions_per_division < 0:
        raise BracketConfigError(f"positions_per_division must be >= 0, got {positions_per_division}")
    validate_teams(teams)
    division_list = coerce_divisions(divisions)
    pairs = round_robin_pairs(teams)

    matches: List[IndividualMatch] = []
    match_number = 1
    for division in division_list:
        for position in range(1, positions_per_division + 1):
            for home, away in pairs:
                matches.append(
                    IndividualMatch(
                        id=f"{tournament_id}-{division.value}-{position}-{match_number}",
                        tournament_id=tournament_id,
                        division=division,
                        position=position,
                        round_number=1,
                        match_number=match_number,
                        home_team_id=home.id,
                        away_team_id=away.id,
                    )
                )
                match_number += 1

    logger.debug(
        "Generated %d matches for tournament %s (%d divisions x %d positions x %d pairs)",
        len(matches),
        tournament_id,
        len(division_list),
        positions_per_division,
        len(pairs),
    )
    return tuple(matches)


def create_team_match_lineup(
    team_match_id: int,
    home_team_id: int,
    away_team_id: int,
    layout: Sequence[Tuple[DivisionLike, int]] = DEFAULT_TEAM_MATCH_LAYOUT,
    tournament_id: Optional[int] = None,
) -> Tuple[IndividualMatch, ...]:
    """Build the position matches of one dual match (home vs away)."""
    if home_team_id == away_team_id:
        raise InvalidEntityError(f"TeamMatch {team_match_id}", "away_team_id", "must differ from home_team_id")

    matches: List[IndividualMatch] = []
    match_number = 1
    for raw_division, positions in layout:
        division = coerce_division(raw_division)
        if positions < 0:
            raise BracketConfigError(f"{division.value}: positions must be >= 0, got {positions}")
        for position in range(1, positions + 1):
            matches.append(
                IndividualMatch(
                    id=f"tm{team_match_id}-{division.value}-{position}",
                    tournament_id=tournament_id,
                    team_match_id=team_match_id,
                    division=division,
                    position=position,
                    match_number=match_number,
                    home_team_id=home_team_id,
                    away_team_id=away_team_id,
                )
            )
            match_number += 1
    return tuple(matches)


def rosters_by_team(teams: Sequence[RosterTeam]) -> Dict[int, Tuple[RosterPlayer, ...]]:
    return {team.id: team.players for team in teams}


def assign_players_to_matches(
    matches: Sequence[IndividualMatch],
    rosters: Mapping[int, Sequence[RosterPlayer]],
) -> Tuple[IndividualMatch, ...]:
    """
    Fill home_player1_id / away_player1_id from each team's position ladder.

    A team with no eligible player at the match position leaves that slot
    empty. Doubles partners (player2) are never chosen here.
    """
    ladders: Dict[Tuple[int, Division], List[RosterPlayer]] = {}

    def ladder(team_id: int, division: Division) -> List[RosterPlayer]:
        key = (team_id, division)
        if key not in ladders:
            ladders[key] = division_ladder(rosters.get(team_id, ()), division)
        return ladders[key]

    assigned: List[IndividualMatch] = []
    unfilled = 0
    for match in matches:
        home = player_at_position(ladder(match.home_team_id, match.division), match.position)
        away = player_at_position(ladder(match.away_team_id, match.division), match.position)
        if home is None or away is None:
            unfilled += 1
        assigned.append(
            replace(
                match,
                home_player1_id=home.id if home else None,
                away_player1_id=away.id if away else None,
            )
        )

    if unfilled:
        logger.debug("%d of %d matches have an unassigned player slot", unfilled, len(assigned))
    return tuple(assigned)


def assign_partner(
    matches: Sequence[IndividualMatch],
    match_id: str,
    side: Side,
    partner: Optional[RosterPlayer],
) -> Tuple[IndividualMatch, ...]:
    """
    Set (or clear, with partner=None) the doubles partner chosen by the coach for one side.

    Raises:
        MatchNotFoundError: match_id not in the set
        InvalidTransitionError: match is a singles match, or partner equals player 1
        InvalidEntityError: partner's gender is not admitted by the division
    """
    side = Side(side)
    result: List[IndividualMatch] = []
    found = False
    for match in matches:
        if match.id != match_id:
            result.append(match)
            continue
        found = True
        if not is_doubles(match.division):
            raise InvalidTransitionError(f"{match.division.value} has no partner slot")
        partner_id = partner.id if partner is not None else None
        if partner is not None:
            first = match.home_player1_id if side == Side.home else match.away_player1_id
            if partner_id == first:
                raise InvalidTransitionError(f"Player {partner_id} already holds the first {side.value} slot")
            if not is_eligible(partner, match.division):
                raise InvalidEntityError(
                    f"Player {partner_id}", "gender", f"is not eligible for {match.division.value}"
                )
        field = "home_player2_id" if side == Side.home else "away_player2_id"
        result.append(replace(match, **{field: partner_id}))

    if not found:
        raise MatchNotFoundError(match_id)
    return tuple(result)


def matches_by_division(matches: Sequence[IndividualMatch], division: DivisionLike) -> List[IndividualMatch]:
    """Matches of one division ordered by position (then match number)."""
    target = coerce_division(division)
    selected = [m for m in matches if m.division == target]
    return sorted(selected, key=lambda m: (m.position, m.match_number))
