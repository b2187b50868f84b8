from fastapi.testclient import TestClient

from tests.conftest import match_of


def _team(client: TestClient, name: str) -> int:
    response = client.post("/api/teams", json={"name": name, "omission": name[:3].upper()})
    assert response.status_code == 201
    return response.json()["id"]


def test_create_team_and_players(client: TestClient):
    """Jersey numbers are unique among a team's active players"""
    team_id = _team(client, "Harbour Rovers")

    response = client.post(f"/api/teams/{team_id}/players", json={"name": "Sam Reed", "jersey_number": 7})
    assert response.status_code == 201

    response = client.post(f"/api/teams/{team_id}/players", json={"name": "Kim Lowe", "jersey_number": 7})
    assert response.status_code == 409
    assert response.json()["success"] is False

    response = client.post(f"/api/teams/{team_id}/players", json={"name": "Kim Lowe", "jersey_number": 1000})
    assert response.status_code == 422

    client.post(f"/api/teams/{team_id}/players", json={"name": "Ali Hart"})
    players = client.get(f"/api/teams/{team_id}/players").json()
    assert [p["name"] for p in players] == ["Sam Reed", "Ali Hart"]


def test_blank_team_name(client: TestClient):
    response = client.post("/api/teams", json={"name": "  "})
    assert response.status_code == 422


def test_register_participants(client: TestClient, cup):
    """A team may enter twice under different names but never twice under one name"""
    team_id = _team(client, "Harbour Rovers")
    url = f"/api/tournaments/{cup.tournament.id}/participants"

    response = client.post(url, json={"team_id": team_id})
    assert response.status_code == 201
    entry = response.json()
    assert entry["team_name"] == "Harbour Rovers"
    assert entry["team_omission"] == "HAR"
    assert entry["withdrawal_status"] == "active"

    response = client.post(url, json={"team_id": team_id})
    assert response.status_code == 409

    response = client.post(url, json={"team_id": team_id, "team_name": "Harbour Rovers B"})
    assert response.status_code == 201

    participants = client.get(url).json()
    assert len(participants) == 8
    # drawn teams first, in block and position order
    assert [p["team_name"] for p in participants[:3]] == ["Alpha", "Bravo", "Charlie"]
    assert participants[-1]["assigned_block"] is None


def test_rename_updates_open_matches(client: TestClient, session, cup, play):
    """Renaming changes unconfirmed matches and leaves confirmed ones alone"""
    play("A01", "2", "0")

    response = client.put(f"/api/participants/{cup.teams['Alpha'].id}", json={"team_name": "Alpha United"})
    assert response.status_code == 200

    assert match_of(session, cup, "A01").team1_display_name == "Alpha"
    assert match_of(session, cup, "A02").team1_display_name == "Alpha United"

    response = client.put(f"/api/participants/{cup.teams['Bravo'].id}", json={"team_name": "Alpha United"})
    assert response.status_code == 409


def test_tournament_roster(client: TestClient, cup):
    """Roster entries must come from the registered team"""
    alpha = cup.teams["Alpha"]
    player_id = client.post(f"/api/teams/{alpha.team_id}/players", json={"name": "Sam Reed", "jersey_number": 9}).json()["id"]
    outsider_team = _team(client, "Harbour Rovers")
    outsider = client.post(f"/api/teams/{outsider_team}/players", json={"name": "Kim Lowe"}).json()["id"]
    url = f"/api/participants/{alpha.id}/players"

    response = client.put(url, json={"players": [{"player_id": outsider}]})
    assert response.status_code == 422

    response = client.put(url, json={"players": [{"player_id": player_id, "jersey_number": 10}]})
    assert response.status_code == 200
    assert response.json() == [{"player_id": player_id, "name": "Sam Reed", "jersey_number": 10}]

    # Entered players are deactivated instead of deleted
    assert client.delete(f"/api/players/{player_id}").status_code == 204
    players = client.get(f"/api/teams/{alpha.team_id}/players").json()
    assert players[0]["is_active"] is False


def test_draw_api(client: TestClient, cup):
    url = f"/api/tournaments/{cup.tournament.id}/draw"

    draw = client.get(url).json()
    assert [t["team_name"] for t in draw["blocks"][1]["teams"]] == ["Delta", "Echo", "Foxtrot"]

    response = client.put(url, json={"assignments": [{"tournament_team_id": cup.teams["Alpha"].id, "block_name": "Q", "block_position": 1}]})
    assert response.status_code == 422

    assignments = [
        {"tournament_team_id": cup.teams["Delta"].id, "block_name": "A", "block_position": 1},
        {"tournament_team_id": cup.teams["Alpha"].id, "block_name": "B", "block_position": 1},
    ]
    response = client.put(url, json={"assignments": assignments})
    assert response.status_code == 200
    body = response.json()
    assert body["teams_assigned"] == 2
    assert [t["team_name"] for t in body["draw"]["blocks"][0]["teams"]] == ["Delta"]

    a01 = client.get(f"/api/tournaments/{cup.tournament.id}/matches").json()[0]
    assert a01["match_code"] == "A01"
    assert (a01["team1_display_name"], a01["team2_display_name"]) == ("Delta", "A2")
