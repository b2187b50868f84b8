from fastapi.testclient import TestClient


def _create_format(client: TestClient) -> int:
    response = client.post("/api/tournament-formats", json={"name": "Four team knockout", "team_count": 4})
    assert response.status_code == 201
    format_id = response.json()["id"]

    templates = [
        {"match_number": 1, "match_code": "SF1", "phase": "final", "round_name": "Semi-final",
         "team1_display_name": "Team 1", "team2_display_name": "Team 4", "execution_priority": 1},
        {"match_number": 2, "match_code": "SF2", "phase": "final", "round_name": "Semi-final",
         "team1_display_name": "Team 2", "team2_display_name": "Team 3", "execution_priority": 2},
        {"match_number": 3, "match_code": "F", "phase": "final", "round_name": "Final",
         "team1_source": "SF1_winner", "team2_source": "SF2_winner",
         "team1_display_name": "SF1 winner", "team2_display_name": "SF2 winner",
         "day_number": 2, "execution_priority": 3, "winner_position": 1, "loser_position_start": 2},
    ]
    for template in templates:
        response = client.post(f"/api/tournament-formats/{format_id}/templates", json=template)
        assert response.status_code == 201
    return format_id


def _tournament_payload(format_id: int, **overrides):
    payload = {
        "name": "Summer Cup",
        "format_id": format_id,
        "event_start_date": "2026-07-04",
        "event_end_date": "2026-07-05",
    }
    payload.update(overrides)
    return payload


def test_health_check(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_tournament_generates_matches(client: TestClient):
    """Creating a tournament builds its blocks and matches from the format"""
    format_id = _create_format(client)

    response = client.post("/api/tournaments", json=_tournament_payload(format_id))

    assert response.status_code == 201
    tournament = response.json()
    assert tournament["status"] == "planning"
    assert tournament["team_count"] == 4

    matches = client.get(f"/api/tournaments/{tournament['id']}/matches").json()
    assert [m["match_code"] for m in matches] == ["SF1", "SF2", "F"]
    assert matches[2]["tournament_date"] == "2026-07-05"
    assert all(m["is_confirmed"] is False for m in matches)

    standings = client.get(f"/api/tournaments/{tournament['id']}/standings").json()
    # Final-phase templates without a block_name are grouped by round
    assert [b["block_name"] for b in standings["blocks"]] == ["Semi-final", "Final"]


def test_template_validation(client: TestClient):
    format_id = _create_format(client)
    url = f"/api/tournament-formats/{format_id}/templates"

    response = client.post(
        url,
        json={"match_number": 9, "match_code": "F", "team1_display_name": "x", "team2_display_name": "y"},
    )
    assert response.status_code == 409

    response = client.post(
        url,
        json={"match_number": 9, "match_code": "X1", "team1_source": "best of rest",
              "team1_display_name": "x", "team2_display_name": "y"},
    )
    assert response.status_code == 422
    assert response.json()["success"] is False

    templates = client.get(url).json()
    assert [t["match_code"] for t in templates] == ["SF1", "SF2", "F"]


def test_tournament_validation_fails_if_end_before_start(client: TestClient):
    """Request validation errors use the standard error envelope"""
    format_id = _create_format(client)
    response = client.post(
        "/api/tournaments",
        json=_tournament_payload(format_id, event_start_date="2026-07-05", event_end_date="2026-07-04"),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Validation failed"
    assert body["details"]


def test_unknown_format(client: TestClient):
    response = client.post("/api/tournaments", json=_tournament_payload(9999))
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Tournament format not found"}


def test_update_and_delete_tournament(client: TestClient):
    format_id = _create_format(client)
    tournament_id = client.post("/api/tournaments", json=_tournament_payload(format_id)).json()["id"]

    response = client.put(f"/api/tournaments/{tournament_id}", json={"venue": "Riverside Park"})
    assert response.status_code == 200
    assert response.json()["venue"] == "Riverside Park"

    response = client.put(f"/api/tournaments/{tournament_id}", json={"event_end_date": "2026-07-01"})
    assert response.status_code == 422

    response = client.delete(f"/api/tournaments/{tournament_id}")
    assert response.status_code == 204
    assert client.get(f"/api/tournaments/{tournament_id}").status_code == 404
    assert client.get(f"/api/tournaments/{tournament_id}/matches").status_code == 404


def test_format_in_use_cannot_be_deleted(client: TestClient):
    format_id = _create_format(client)
    client.post("/api/tournaments", json=_tournament_payload(format_id))

    response = client.delete(f"/api/tournament-formats/{format_id}")
    assert response.status_code == 409


def test_group_with_tournaments_cannot_be_deleted(client: TestClient):
    format_id = _create_format(client)
    group_id = client.post("/api/tournament-groups", json={"name": "City League 2026"}).json()["id"]
    client.post("/api/tournaments", json=_tournament_payload(format_id, group_id=group_id))

    tournaments = client.get(f"/api/tournament-groups/{group_id}/tournaments").json()
    assert [t["name"] for t in tournaments] == ["Summer Cup"]

    response = client.delete(f"/api/tournament-groups/{group_id}")
    assert response.status_code == 409


def test_rules_default_then_saved(client: TestClient):
    """Unsaved rules report defaults; saved rules are validated"""
    format_id = _create_format(client)
    tournament_id = client.post("/api/tournaments", json=_tournament_payload(format_id)).json()["id"]
    url = f"/api/tournaments/{tournament_id}/rules/preliminary"

    rules = client.get(url).json()
    assert rules["is_default"] is True
    assert (rules["win_points"], rules["draw_points"], rules["loss_points"]) == (3, 1, 0)
    assert rules["tie_breaking_rules"] == ["points", "goal_difference", "goals_for", "head_to_head", "lottery"]

    response = client.put(url, json={"tie_breaking_rules": ["lottery", "points"]})
    assert response.status_code == 422

    response = client.put(url, json={"win_points": 2, "tie_breaking_rules": ["points", "wins", "lottery"]})
    assert response.status_code == 200
    rules = response.json()
    assert rules["is_default"] is False
    assert rules["win_points"] == 2
    assert rules["tie_breaking_rules"] == ["points", "wins", "lottery"]

    assert client.get(f"/api/tournaments/{tournament_id}/rules/semi").status_code == 422


def test_status_and_duplicate(client: TestClient):
    format_id = _create_format(client)
    tournament_id = client.post("/api/tournaments", json=_tournament_payload(format_id)).json()["id"]

    status = client.get(f"/api/tournaments/{tournament_id}/status").json()
    assert status["status"] == "planning"

    response = client.post(f"/api/tournaments/{tournament_id}/duplicate", json={"name": "Summer Cup II"})
    assert response.status_code == 201
    copy = response.json()
    assert copy["tournament"]["name"] == "Summer Cup II"
    assert copy["matches_created"] == 3
    assert copy["tournament"]["id"] != tournament_id
