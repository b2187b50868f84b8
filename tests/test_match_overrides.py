import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from matchday.errors import ConflictError, NotFoundError, ValidationFailedError
from matchday.services import override_service
from tests.conftest import match_of, play_group_stage


def _team_ids(session: Session, cup, code: str):
    match = match_of(session, cup, code)
    return match.team1_tournament_team_id, match.team2_tournament_team_id


def test_override_redirects_promoted_team(session: Session, cup, play):
    """SF1 takes the 3rd of block B instead of the runner-up"""
    play_group_stage(play)
    assert _team_ids(session, cup, "SF1") == (cup.teams["Charlie"].id, cup.teams["Foxtrot"].id)

    override, applied = override_service.create_override(
        session,
        cup.tournament.id,
        {"match_code": "SF1", "team2_source_override": "B_3", "override_reason": "Foxtrot ineligible"},
    )

    assert override.team1_source_override is None
    # both SF1 slots are reset and refilled
    assert applied["slots_promoted"] == 2
    assert _team_ids(session, cup, "SF1") == (cup.teams["Charlie"].id, cup.teams["Echo"].id)


def test_deleting_override_restores_template_source(session: Session, cup, play):
    play_group_stage(play)
    override, _ = override_service.create_override(
        session, cup.tournament.id, {"match_code": "SF1", "team2_source_override": "B_3"}
    )

    override_service.delete_override(session, cup.tournament.id, override.id)

    assert _team_ids(session, cup, "SF1") == (cup.teams["Charlie"].id, cup.teams["Foxtrot"].id)


def test_override_redirects_progression(session: Session, cup, play):
    """The final can take the semi-final loser when an override says so"""
    play_group_stage(play)
    play("SF1", "2", "1")

    override_service.create_override(
        session, cup.tournament.id, {"match_code": "F", "team2_source_override": "SF1_loser"}
    )

    assert _team_ids(session, cup, "F") == (cup.teams["Charlie"].id, cup.teams["Foxtrot"].id)


def test_update_override_replays_slots(session: Session, cup, play):
    play_group_stage(play)
    override, _ = override_service.create_override(
        session, cup.tournament.id, {"match_code": "SF2", "team1_source_override": "B_3"}
    )
    assert _team_ids(session, cup, "SF2")[0] == cup.teams["Echo"].id

    override_service.update_override(session, cup.tournament.id, override.id, {"team1_source_override": "B_2"})

    assert _team_ids(session, cup, "SF2")[0] == cup.teams["Foxtrot"].id


def test_duplicate_override_is_a_conflict(session: Session, cup):
    override_service.create_override(session, cup.tournament.id, {"match_code": "SF1", "team2_source_override": "B_3"})
    with pytest.raises(ConflictError):
        override_service.create_override(
            session, cup.tournament.id, {"match_code": "SF1", "team1_source_override": "B_1"}
        )


def test_override_needs_a_source(session: Session, cup):
    with pytest.raises(ValidationFailedError):
        override_service.create_override(
            session, cup.tournament.id, {"match_code": "SF1", "team1_source_override": "  "}
        )


def test_override_for_unknown_match(session: Session, cup):
    with pytest.raises(NotFoundError):
        override_service.create_override(session, cup.tournament.id, {"match_code": "QF9", "team1_source_override": "A_1"})


def test_override_cannot_reference_own_match(session: Session, cup):
    with pytest.raises(ValidationFailedError):
        override_service.create_override(
            session, cup.tournament.id, {"match_code": "F", "team1_source_override": "F_winner"}
        )


def test_override_rejects_unreadable_source(session: Session, cup):
    with pytest.raises(ValidationFailedError):
        override_service.create_override(
            session, cup.tournament.id, {"match_code": "F", "team1_source_override": "best loser"}
        )


def test_bulk_upsert_creates_and_updates(session: Session, cup):
    override_service.create_override(session, cup.tournament.id, {"match_code": "SF1", "team2_source_override": "B_3"})

    saved, _ = override_service.bulk_upsert_overrides(
        session,
        cup.tournament.id,
        [
            {"match_code": "SF1", "team2_source_override": "B_2"},
            {"match_code": "SF2", "team1_source_override": "B_3"},
        ],
    )

    assert [o.match_code for o in saved] == ["SF1", "SF2"]
    listed = override_service.list_overrides(session, cup.tournament.id)
    assert [(o["match_code"], o["team2_source_override"], o["original_team2_source"]) for o in listed] == [
        ("SF1", "B_2", "B_2"),
        ("SF2", None, "A_2"),
    ]


def test_override_api(client: TestClient, cup):
    """Create, list and delete through the API; errors use the standard envelope"""
    url = f"/api/tournaments/{cup.tournament.id}/match-overrides"

    response = client.post(url, json={"match_code": "SF1", "team2_source_override": "B_3"})
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    override_id = body["data"]["id"]

    response = client.post(url, json={"match_code": "SF1", "team2_source_override": "B_1"})
    assert response.status_code == 409
    assert response.json()["success"] is False

    response = client.post(url, json={"match_code": "SF2"})
    assert response.status_code == 422

    response = client.get(url)
    assert response.status_code == 200
    assert [o["match_code"] for o in response.json()] == ["SF1"]

    response = client.delete(f"{url}/{override_id}")
    assert response.status_code == 200
    assert response.json()["data"]["match_code"] == "SF1"
    assert client.get(url).json() == []
