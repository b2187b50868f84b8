from fastapi.testclient import TestClient

from tests.conftest import match_of, play_group_stage


def test_enter_and_confirm_result(client: TestClient, session, cup):
    """Scores entered over the API decide the winner; a second confirm is a conflict"""
    match_id = match_of(session, cup, "A01").id

    response = client.patch(f"/api/matches/{match_id}", json={"team1_scores": "1, 2", "team2_scores": "0,1"})
    assert response.status_code == 200
    match = response.json()
    assert match["team1_scores"] == "1,2"
    assert match["winner_tournament_team_id"] == cup.teams["Alpha"].id
    assert match["is_confirmed"] is False

    response = client.post(f"/api/matches/{match_id}/confirm", json={"confirmed_by": "desk"})
    assert response.status_code == 200
    assert response.json()["data"]["match_code"] == "A01"
    assert client.get(f"/api/matches/{match_id}").json()["is_confirmed"] is True

    response = client.post(f"/api/matches/{match_id}/confirm", json={})
    assert response.status_code == 409
    assert response.json() == {"success": False, "error": "Match A01 is already confirmed"}

    response = client.post(f"/api/matches/{match_id}/unconfirm")
    assert response.status_code == 200
    assert response.json()["data"]["rankings_cleared"] is True


def test_bad_scores_are_rejected(client: TestClient, session, cup):
    match_id = match_of(session, cup, "A01").id
    response = client.patch(f"/api/matches/{match_id}", json={"team1_scores": "two"})
    assert response.status_code == 422


def test_unknown_match(client: TestClient, cup):
    response = client.get("/api/matches/9999")
    assert response.status_code == 404
    assert response.json()["error"] == "Match not found"


def test_cancel_and_uncancel(client: TestClient, session, cup):
    match_id = match_of(session, cup, "B01").id

    response = client.post(f"/api/matches/{match_id}/cancel", json={"cancellation_type": "weather"})
    assert response.status_code == 422

    response = client.post(f"/api/matches/{match_id}/cancel", json={"cancellation_type": "no_show_team1"})
    assert response.status_code == 200
    assert response.json()["data"]["walkover_recorded"] is True

    response = client.post(f"/api/matches/{match_id}/cancel", json={"cancellation_type": "no_count"})
    assert response.status_code == 400

    response = client.post(f"/api/matches/{match_id}/uncancel")
    assert response.status_code == 200
    assert client.get(f"/api/matches/{match_id}").json()["match_status"] == "scheduled"


def test_bulk_confirm(client: TestClient, session, cup):
    ids = []
    for code in ("A01", "A02"):
        match_id = match_of(session, cup, code).id
        client.patch(f"/api/matches/{match_id}", json={"team1_scores": "1", "team2_scores": "0"})
        ids.append(match_id)
    sf1 = match_of(session, cup, "SF1").id

    response = client.post(f"/api/tournaments/{cup.tournament.id}/matches/confirm", json={"match_ids": ids + [sf1]})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["confirmed"] == ids
    assert [s["match_id"] for s in data["skipped"]] == [sf1]


def test_standings_endpoints(client: TestClient, session, cup, play):
    """Manual rankings over the API re-run promotion"""
    play_group_stage(play)
    block_a = match_of(session, cup, "A01").match_block_id

    standings = client.get(f"/api/tournaments/{cup.tournament.id}/standings").json()
    block = standings["blocks"][0]
    assert block["is_complete"] is True
    assert [r["team_name"] for r in block["team_rankings"]] == ["Charlie", "Alpha", "Bravo"]

    rankings = [
        {"tournament_team_id": cup.teams["Alpha"].id, "position": 1},
        {"tournament_team_id": cup.teams["Charlie"].id, "position": 2},
    ]
    response = client.put(f"/api/blocks/{block_a}/manual-rankings", json={"rankings": rankings})
    assert response.status_code == 200
    assert response.json()["data"]["slots_promoted"] == 2
    assert match_of(session, cup, "SF1").team1_tournament_team_id == cup.teams["Alpha"].id

    response = client.put(
        f"/api/blocks/{block_a}/manual-rankings",
        json={"rankings": [{"tournament_team_id": cup.teams["Delta"].id, "position": 1}]},
    )
    assert response.status_code == 422

    # Recalculating from results restores the computed order
    response = client.post(f"/api/tournaments/{cup.tournament.id}/recalculate-standings")
    assert response.status_code == 200
    assert response.json()["data"]["slots_promoted"] == 2
    assert match_of(session, cup, "SF1").team1_tournament_team_id == cup.teams["Charlie"].id

    response = client.post(f"/api/tournaments/{cup.tournament.id}/recalculate-progression")
    assert response.status_code == 200
    assert response.json()["data"]["slots_updated"] == 0
