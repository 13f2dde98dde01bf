"""
Tests for round robin bracket generation, dual-match lineups and player
placement.
"""

from itertools import product

import pytest

from tennis_coach.services.bracket_generator import (
    DEFAULT_TEAM_MATCH_LAYOUT,
    assign_partner,
    assign_players_to_matches,
    create_team_match_lineup,
    expected_match_count,
    generate_individual_bracket,
    matches_by_division,
    rosters_by_team,
)
from tennis_coach.services.entities import Division, Gender, MatchStatus, RosterPlayer, RosterTeam, Side
from tennis_coach.services.errors import (
    BracketConfigError,
    InvalidEntityError,
    InvalidTransitionError,
    MatchNotFoundError,
)


def _make_teams(n: int) -> list[RosterTeam]:
    return [RosterTeam(id=10 * (i + 1), school_name=f"School {i + 1}") for i in range(n)]


def _player(pid: int, gender, rating) -> RosterPlayer:
    return RosterPlayer(id=pid, name=f"P{pid}", gender=gender, utr_rating=rating)


class TestGenerateIndividualBracket:
    def test_three_teams_one_division_two_positions(self):
        teams = _make_teams(3)
        matches = generate_individual_bracket(1, teams, [Division.boys_singles], 2)

        assert len(matches) == 6
        assert all(m.status == MatchStatus.pending for m in matches)
        assert all(m.round_number == 1 for m in matches)
        assert all(m.winner is None and m.score is None for m in matches)
        assert [(m.position, m.home_team_id, m.away_team_id) for m in matches] == [
            (1, 10, 20),
            (1, 10, 30),
            (1, 20, 30),
            (2, 10, 20),
            (2, 10, 30),
            (2, 20, 30),
        ]

    def test_ids_and_match_numbers(self):
        matches = generate_individual_bracket(7, _make_teams(2), ["girls_singles", "mixed_doubles"], 2)
        assert [m.match_number for m in matches] == [1, 2, 3, 4]
        assert [m.id for m in matches] == [
            "7-girls_singles-1-1",
            "7-girls_singles-2-2",
            "7-mixed_doubles-1-3",
            "7-mixed_doubles-2-4",
        ]
        assert len({m.id for m in matches}) == len(matches)
        assert all(m.tournament_id == 7 for m in matches)

    @pytest.mark.parametrize("team_count,division_count,positions", list(product([0, 1, 2, 4], [0, 1, 5], [0, 1, 3])))
    def test_match_count(self, team_count, division_count, positions):
        divisions = list(Division)[:division_count]
        matches = generate_individual_bracket(1, _make_teams(team_count), divisions, positions)
        assert len(matches) == expected_match_count(division_count, positions, team_count)
        assert len(matches) == division_count * positions * team_count * (team_count - 1) // 2

    def test_each_pair_meets_once_per_position(self):
        matches = generate_individual_bracket(1, _make_teams(4), [Division.boys_doubles], 3)
        for position in (1, 2, 3):
            pairs = [
                frozenset((m.home_team_id, m.away_team_id)) for m in matches if m.position == position
            ]
            assert len(pairs) == len(set(pairs)) == 6
            assert all(len(p) == 2 for p in pairs)

    def test_team_order_only_relabels_home_and_away(self):
        teams = _make_teams(3)
        divisions = [Division.boys_singles, Division.girls_doubles]

        def pairings(ordered):
            matches = generate_individual_bracket(1, ordered, divisions, 2)
            return sorted(
                (m.division.value, m.position, tuple(sorted((m.home_team_id, m.away_team_id)))) for m in matches
            )

        assert pairings(teams) == pairings(list(reversed(teams)))

    def test_empty_inputs_produce_empty_set(self):
        assert generate_individual_bracket(1, [], [Division.boys_singles], 6) == ()
        assert generate_individual_bracket(1, _make_teams(1), [Division.boys_singles], 6) == ()
        assert generate_individual_bracket(1, _make_teams(3), [], 6) == ()
        assert generate_individual_bracket(1, _make_teams(3), [Division.boys_singles], 0) == ()

    def test_negative_positions_rejected(self):
        with pytest.raises(BracketConfigError):
            generate_individual_bracket(1, _make_teams(2), [Division.boys_singles], -1)

    def test_unknown_division_rejected(self):
        with pytest.raises(BracketConfigError):
            generate_individual_bracket(1, _make_teams(2), ["quad_singles"], 1)

    def test_duplicate_team_rejected(self):
        team = RosterTeam(id=5, school_name="North")
        with pytest.raises(InvalidEntityError):
            generate_individual_bracket(1, [team, team], [Division.boys_singles], 1)

    def test_team_without_id_rejected(self):
        with pytest.raises(InvalidEntityError):
            generate_individual_bracket(1, [RosterTeam(id=None, school_name="Nowhere")], [Division.boys_singles], 1)


class TestTeamMatchLineup:
    def test_default_layout(self):
        lineup = create_team_match_lineup(3, 10, 20)
        assert len(lineup) == sum(n for _, n in DEFAULT_TEAM_MATCH_LAYOUT) == 19
        assert lineup[0].id == "tm3-boys_singles-1"
        assert lineup[-1].id == "tm3-mixed_doubles-1"
        assert all(m.team_match_id == 3 for m in lineup)
        assert all((m.home_team_id, m.away_team_id) == (10, 20) for m in lineup)
        assert [m.match_number for m in lineup] == list(range(1, 20))

    def test_same_team_rejected(self):
        with pytest.raises(InvalidEntityError):
            create_team_match_lineup(1, 10, 10)


class TestAssignPlayers:
    def _rosters(self):
        home = RosterTeam(
            id=10,
            school_name="Home",
            players=(
                _player(1, Gender.male, 8.0),
                _player(2, Gender.male, 10.0),
                _player(3, Gender.female, 9.0),
            ),
        )
        away = RosterTeam(id=20, school_name="Away", players=(_player(4, Gender.male, None),))
        return rosters_by_team([home, away])

    def test_players_placed_by_rating(self):
        matches = generate_individual_bracket(1, _make_teams(2), [Division.boys_singles], 2)
        assigned = assign_players_to_matches(matches, self._rosters())

        first, second = assigned
        assert (first.home_player1_id, first.away_player1_id) == (2, 4)
        assert (second.home_player1_id, second.away_player1_id) == (1, None)
        assert first.is_playable
        assert not second.is_playable
        assert second.unassigned_slots() == ["away_player1_id"]

    def test_partners_never_auto_assigned(self):
        matches = generate_individual_bracket(1, _make_teams(2), [Division.mixed_doubles], 1)
        (match,) = assign_players_to_matches(matches, self._rosters())
        assert match.home_player1_id == 2
        assert match.home_player2_id is None and match.away_player2_id is None

    def test_identity_fields_untouched(self):
        matches = generate_individual_bracket(1, _make_teams(2), [Division.girls_singles], 1)
        (before,) = matches
        (after,) = assign_players_to_matches(matches, self._rosters())
        assert (after.id, after.division, after.position, after.status) == (
            before.id,
            before.division,
            before.position,
            before.status,
        )
        assert after.home_player1_id == 3

    def test_missing_roster_leaves_slots_empty(self):
        matches = generate_individual_bracket(1, _make_teams(2), [Division.boys_singles], 1)
        (match,) = assign_players_to_matches(matches, {})
        assert match.unassigned_slots() == ["home_player1_id", "away_player1_id"]


class TestAssignPartner:
    def _doubles(self):
        matches = generate_individual_bracket(1, _make_teams(2), [Division.boys_doubles, Division.boys_singles], 1)
        return assign_players_to_matches(
            matches, {10: (_player(1, Gender.male, 9.0), _player(2, Gender.male, 8.0))}
        )

    def test_sets_and_clears_partner(self):
        matches = self._doubles()
        updated = assign_partner(matches, "1-boys_doubles-1-1", Side.home, _player(2, Gender.male, 8.0))
        assert updated[0].home_player2_id == 2
        assert updated[1] == matches[1]

        cleared = assign_partner(updated, "1-boys_doubles-1-1", "home", None)
        assert cleared[0].home_player2_id is None

    def test_singles_rejected(self):
        with pytest.raises(InvalidTransitionError):
            assign_partner(self._doubles(), "1-boys_singles-1-2", Side.home, _player(2, Gender.male, 8.0))

    def test_partner_cannot_repeat_first_player(self):
        with pytest.raises(InvalidTransitionError):
            assign_partner(self._doubles(), "1-boys_doubles-1-1", Side.home, _player(1, Gender.male, 9.0))

    def test_partner_must_fit_division(self):
        with pytest.raises(InvalidEntityError):
            assign_partner(self._doubles(), "1-boys_doubles-1-1", Side.home, _player(5, Gender.female, 9.5))
        with pytest.raises(InvalidEntityError):
            assign_partner(self._doubles(), "1-boys_doubles-1-1", Side.away, _player(6, None, 7.0))

    def test_mixed_doubles_admits_any_gender(self):
        matches = generate_individual_bracket(1, _make_teams(2), [Division.mixed_doubles], 1)
        updated = assign_partner(matches, "1-mixed_doubles-1-1", Side.away, _player(7, None, 5.0))
        assert updated[0].away_player2_id == 7

    def test_unknown_match(self):
        with pytest.raises(MatchNotFoundError):
            assign_partner(self._doubles(), "nope", Side.away, _player(2, Gender.male, 8.0))


class TestMatchesByDivision:
    def test_filters_and_orders_by_position(self):
        matches = generate_individual_bracket(1, _make_teams(3), [Division.boys_singles, Division.girls_singles], 2)
        girls = matches_by_division(list(reversed(matches)), "girls_singles")
        assert len(girls) == 6
        assert all(m.division == Division.girls_singles for m in girls)
        assert [m.position for m in girls] == [1, 1, 1, 2, 2, 2]
        assert [m.match_number for m in girls] == [7, 8, 9, 10, 11, 12]
