from fastapi.testclient import TestClient


def _school(client: TestClient, code: str) -> tuple:
    """A school with four boys and four girls; returns (team_id, [player ids, strongest first per gender])."""
    team_id = client.post("/api/teams", json={"team_code": code, "school_name": f"{code} High"}).json()["id"]
    player_ids = []
    for i, (gender, rating) in enumerate([("male", 10.0), ("male", 9.0), ("male", 8.0), ("male", 7.0),
                                          ("female", 10.5), ("female", 9.5), ("female", 8.5), ("female", 7.5)]):
        response = client.post(
            f"/api/teams/{team_id}/players",
            json={"name": f"{code}{i}", "gender": gender, "utr_rating": rating},
        )
        player_ids.append(response.json()["id"])
    return team_id, player_ids


def _create_team_match(client: TestClient, home: int, away: int, level: str = "varsity") -> dict:
    response = client.post(
        "/api/team-matches",
        json={"home_team_id": home, "away_team_id": away, "team_level": level, "match_date": "2026-04-02"},
    )
    assert response.status_code == 201
    return response.json()


def test_create_team_match_lineup(client: TestClient):
    home, home_players = _school(client, "H")
    away, away_players = _school(client, "V")
    team_match = _create_team_match(client, home, away)

    assert team_match["status"] == "scheduled"
    assert (team_match["home_score"], team_match["away_score"]) == (0, 0)
    assert team_match["result"]["total_positions"] == 19
    assert team_match["result"]["provisional_leader"] == "tie"
    assert team_match["result"]["final_winner"] is None

    by_id = {m["id"]: m for m in team_match["individual_matches"]}
    tm = team_match["id"]
    assert set(m["division"] for m in by_id.values()) == {
        "boys_singles",
        "girls_singles",
        "boys_doubles",
        "girls_doubles",
        "mixed_doubles",
    }

    boys_1 = by_id[f"tm{tm}-boys_singles-1"]
    assert (boys_1["home_player1_id"], boys_1["away_player1_id"]) == (home_players[0], away_players[0])
    girls_2 = by_id[f"tm{tm}-girls_singles-2"]
    assert girls_2["home_player1_id"] == home_players[5]
    # only four boys per school: positions 5 and 6 have no player
    assert by_id[f"tm{tm}-boys_singles-5"]["is_playable"] is False
    # mixed #1 goes to the highest rated player of either gender
    assert by_id[f"tm{tm}-mixed_doubles-1"]["home_player1_id"] == home_players[4]
    assert by_id[f"tm{tm}-boys_doubles-1"]["home_player2_id"] is None


def test_create_team_match_validation(client: TestClient):
    home, _ = _school(client, "H")
    response = client.post(
        "/api/team-matches",
        json={"home_team_id": home, "away_team_id": home, "team_level": "jv", "match_date": "2026-04-02"},
    )
    assert response.status_code == 422

    response = client.post(
        "/api/team-matches",
        json={"home_team_id": home, "away_team_id": 999, "team_level": "jv", "match_date": "2026-04-02"},
    )
    assert response.status_code == 404
    assert client.get("/api/team-matches/999").status_code == 404


def test_record_position_results(client: TestClient):
    home, _ = _school(client, "H")
    away, _ = _school(client, "V")
    team_match = _create_team_match(client, home, away)
    tm = team_match["id"]
    url = f"/api/team-matches/{tm}/matches/tm{tm}-boys_singles-1/result"

    response = client.patch(url, json={"winner": "away", "score": "6-2 6-2"})
    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "applied"
    assert body["team_match"]["status"] == "in_progress"
    assert body["team_match"]["away_score"] == 1
    assert body["team_match"]["result"]["provisional_leader"] == "away"
    assert body["team_match"]["winner"] is None

    assert client.patch(url, json={"winner": "away", "score": "6-2 6-2"}).json()["outcome"] == "unchanged"
    missing = client.patch(f"/api/team-matches/{tm}/matches/tm{tm}-boys_singles-9/result", json={"winner": "home", "score": "6-0"})
    assert missing.status_code == 404

    stored = client.get(f"/api/team-matches/{tm}").json()
    assert stored["away_score"] == 1
    assert stored["status"] == "in_progress"


def test_complete_team_match_and_standings(client: TestClient):
    home, _ = _school(client, "H")
    away, _ = _school(client, "V")
    team_match = _create_team_match(client, home, away)
    tm = team_match["id"]

    for i, match in enumerate(team_match["individual_matches"]):
        winner = "home" if i % 3 else "away"
        response = client.patch(
            f"/api/team-matches/{tm}/matches/{match['id']}/result",
            json={"winner": winner, "score": "8-6"},
        )
        assert response.status_code == 200

    final = client.get(f"/api/team-matches/{tm}").json()
    assert final["status"] == "completed"
    assert (final["home_score"], final["away_score"]) == (12, 7)
    assert final["winner"] == "home"
    assert final["result"]["final_winner"] == "home"
    assert final["completed_at"] is not None

    unfinished = _create_team_match(client, away, home)

    standings = client.get("/api/team-matches/standings").json()
    assert [(s["team_id"], s["wins"], s["losses"]) for s in standings] == [(home, 1, 0), (away, 0, 1)]
    assert standings[0]["win_percentage"] == 1.0
    assert standings[0]["team_level"] == "varsity"
    assert unfinished["status"] == "scheduled"


def test_set_partner(client: TestClient):
    home, home_players = _school(client, "H")
    away, away_players = _school(client, "V")
    tm = _create_team_match(client, home, away)["id"]
    url = f"/api/team-matches/{tm}/matches/tm{tm}-boys_doubles-1/partner"

    response = client.put(url, json={"side": "home", "player_id": home_players[3]})
    assert response.status_code == 200
    assert response.json()["home_player2_id"] == home_players[3]

    stored = {m["id"]: m for m in client.get(f"/api/team-matches/{tm}").json()["individual_matches"]}
    assert stored[f"tm{tm}-boys_doubles-1"]["home_player2_id"] == home_players[3]

    # partner must come from that side's school
    assert client.put(url, json={"side": "away", "player_id": home_players[2]}).status_code == 422
    # a girl cannot partner in boys doubles
    response = client.put(url, json={"side": "home", "player_id": home_players[4]})
    assert response.status_code == 422
    assert "not eligible" in response.json()["detail"]
    # same player in both slots
    assert client.put(url, json={"side": "home", "player_id": home_players[0]}).status_code == 409
    # singles have no partner slot
    singles = f"/api/team-matches/{tm}/matches/tm{tm}-boys_singles-1/partner"
    assert client.put(singles, json={"side": "away", "player_id": away_players[1]}).status_code == 409

    cleared = client.put(url, json={"side": "home", "player_id": None})
    assert cleared.json()["home_player2_id"] is None


def test_completed_team_match_updates_season_records(client: TestClient):
    home, _ = _school(client, "H")
    away, _ = _school(client, "V")
    team_match = _create_team_match(client, home, away)
    tm = team_match["id"]

    for match in team_match["individual_matches"]:
        client.patch(f"/api/team-matches/{tm}/matches/{match['id']}/result", json={"winner": "home", "score": "6-1"})

    home_team = client.get(f"/api/teams/{home}").json()
    away_team = client.get(f"/api/teams/{away}").json()
    assert (home_team["season_record_wins"], home_team["season_record_losses"]) == (1, 0)
    assert (away_team["season_record_wins"], away_team["season_record_losses"]) == (0, 1)

    # overturning enough positions flips the dual match and moves the season win
    for match in team_match["individual_matches"][:10]:
        client.patch(f"/api/team-matches/{tm}/matches/{match['id']}/result", json={"winner": "away", "score": "1-6"})

    assert client.get(f"/api/team-matches/{tm}").json()["winner"] == "away"
    home_team = client.get(f"/api/teams/{home}").json()
    away_team = client.get(f"/api/teams/{away}").json()
    assert (home_team["season_record_wins"], home_team["season_record_losses"]) == (0, 1)
    assert (away_team["season_record_wins"], away_team["season_record_losses"]) == (1, 0)


def test_cancel_team_match(client: TestClient):
    home, _ = _school(client, "H")
    away, _ = _school(client, "V")
    tm = _create_team_match(client, home, away)["id"]
    url = f"/api/team-matches/{tm}/matches/tm{tm}-girls_singles-1/result"
    assert client.patch(url, json={"winner": "home", "score": "6-3"}).status_code == 200

    response = client.post(f"/api/team-matches/{tm}/cancel")
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["home_score"] == 1

    assert client.patch(url, json={"winner": "away", "score": "3-6"}).status_code == 409
    stored = client.get(f"/api/team-matches/{tm}").json()
    assert stored["status"] == "cancelled"
    assert client.get("/api/team-matches/standings").json() == []

    assert client.post(f"/api/team-matches/{tm}/cancel").status_code == 200
    assert client.post("/api/team-matches/999/cancel").status_code == 404


def test_completed_team_match_cannot_be_cancelled(client: TestClient):
    home, _ = _school(client, "H")
    away, _ = _school(client, "V")
    team_match = _create_team_match(client, home, away)
    tm = team_match["id"]
    for match in team_match["individual_matches"]:
        client.patch(f"/api/team-matches/{tm}/matches/{match['id']}/result", json={"winner": "away", "score": "2-6"})

    assert client.post(f"/api/team-matches/{tm}/cancel").status_code == 409
    assert client.get(f"/api/team-matches/{tm}").json()["status"] == "completed"
