import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from matchday.errors import InvalidStateError, ValidationFailedError
from matchday.models.final_match import FinalMatch
from matchday.models.live_match import CANCEL_NO_SHOW_TEAM1, CANCEL_NO_SHOW_TEAM2, MATCH_CANCELLED
from matchday.models.match_block import MatchBlock
from matchday.models.tournament_team import (
    WITHDRAWAL_APPROVED,
    WITHDRAWAL_REJECTED,
    WITHDRAWAL_REQUESTED,
    TournamentTeam,
)
from matchday.services import match_result_service, withdrawal_service
from tests.conftest import match_of


def test_request_withdrawal(session: Session, cup):
    entry = withdrawal_service.request_withdrawal(session, cup.teams["Echo"].id, "  Not enough players ")

    assert entry.withdrawal_status == WITHDRAWAL_REQUESTED
    assert entry.withdrawal_reason == "Not enough players"
    assert entry.withdrawal_requested_at is not None


def test_request_needs_reason(session: Session, cup):
    with pytest.raises(ValidationFailedError):
        withdrawal_service.request_withdrawal(session, cup.teams["Echo"].id, " ")


def test_request_only_from_active(session: Session, cup):
    withdrawal_service.request_withdrawal(session, cup.teams["Echo"].id, "Injuries")
    with pytest.raises(InvalidStateError):
        withdrawal_service.request_withdrawal(session, cup.teams["Echo"].id, "Again")


def test_impact_lists_open_matches(session: Session, cup, play):
    play("B01", "2", "0")  # Delta - Echo
    impact = withdrawal_service.analyze_impact(session, cup.teams["Echo"].id)

    assert impact["confirmed_matches"] == 1
    assert impact["scheduled_matches"] == 1
    assert impact["affected_match_codes"] == ["B03"]
    assert impact["assigned_block"] == "B"


def test_approval_awards_walkovers(session: Session, cup):
    """Scheduled matches of the withdrawn team become walkover wins for the opponents"""
    echo = cup.teams["Echo"].id
    withdrawal_service.request_withdrawal(session, echo, "Travel problems")

    result = withdrawal_service.process_withdrawal(session, echo, "approve", processed_by="admin", comment="ok")

    assert result["withdrawal_status"] == WITHDRAWAL_APPROVED
    assert [(a["match_code"], a["action"]) for a in result["match_actions"]] == [
        ("B01", "walkover"),
        ("B03", "walkover"),
    ]

    b01 = match_of(session, cup, "B01")
    b03 = match_of(session, cup, "B03")
    assert b01.match_status == MATCH_CANCELLED
    assert b01.cancellation_type == CANCEL_NO_SHOW_TEAM2
    assert b03.cancellation_type == CANCEL_NO_SHOW_TEAM1
    assert session.get(FinalMatch, b01.id).winner_tournament_team_id == cup.teams["Delta"].id
    assert session.get(FinalMatch, b03.id).winner_tournament_team_id == cup.teams["Foxtrot"].id

    block = session.get(MatchBlock, b01.match_block_id)
    ranking = {r["team_name"]: r for r in block.team_rankings}
    assert ranking["Delta"]["points"] == 3
    assert ranking["Delta"]["goals_for"] == 3
    assert ranking["Echo"]["matches_played"] == 2
    assert ranking["Echo"]["position"] == 3


def test_rejection_leaves_matches(session: Session, cup):
    echo = cup.teams["Echo"].id
    withdrawal_service.request_withdrawal(session, echo, "Travel problems")

    result = withdrawal_service.process_withdrawal(session, echo, "reject")

    assert result["withdrawal_status"] == WITHDRAWAL_REJECTED
    assert result["match_actions"] == []
    assert match_of(session, cup, "B01").match_status != MATCH_CANCELLED


def test_process_needs_pending_request(session: Session, cup):
    with pytest.raises(InvalidStateError):
        withdrawal_service.process_withdrawal(session, cup.teams["Echo"].id, "approve")


def test_bulk_process_reports_each_team(session: Session, cup):
    """A team without a pending request fails alone"""
    echo, bravo = cup.teams["Echo"].id, cup.teams["Bravo"].id
    withdrawal_service.request_withdrawal(session, echo, "Travel problems")

    result = withdrawal_service.bulk_process(session, [echo, bravo], "reject")

    assert result["processed"] == 1
    assert result["failed"] == 1
    assert [r["success"] for r in result["results"]] == [True, False]


def test_statistics(session: Session, cup):
    withdrawal_service.request_withdrawal(session, cup.teams["Echo"].id, "Travel problems")
    stats = withdrawal_service.withdrawal_statistics(session, cup.tournament.id)

    assert stats[WITHDRAWAL_REQUESTED] == 1
    assert stats["active"] == 5
    assert stats["total"] == 6


def test_withdrawal_api(client: TestClient, cup):
    """Request, list and approve through the API"""
    echo = cup.teams["Echo"].id

    response = client.post(f"/api/participants/{echo}/withdrawal", json={"reason": "Travel problems"})
    assert response.status_code == 200
    assert response.json()["withdrawal_status"] == WITHDRAWAL_REQUESTED

    response = client.get("/api/withdrawal-requests", params={"tournament_id": cup.tournament.id})
    assert [p["id"] for p in response.json()] == [echo]

    response = client.post(f"/api/withdrawal-requests/{echo}/process", json={"action": "maybe"})
    assert response.status_code == 422

    response = client.post(f"/api/withdrawal-requests/{echo}/process", json={"action": "approve"})
    assert response.status_code == 200
    assert response.json()["data"]["withdrawal_status"] == WITHDRAWAL_APPROVED

    response = client.get("/api/withdrawal-requests", params={"status": "all"})
    assert [p["withdrawal_status"] for p in response.json()] == [WITHDRAWAL_APPROVED]


def test_failed_approval_saves_nothing(session: Session, cup, monkeypatch):
    """A walkover that cannot be recorded leaves the request pending and every match untouched"""
    echo = cup.teams["Echo"].id
    withdrawal_service.request_withdrawal(session, echo, "Travel problems")

    real_cancel = match_result_service.apply_cancellation
    calls = []

    def cancel_once(session, match_id, cancellation_type, remarks=None):
        calls.append(match_id)
        if len(calls) > 1:
            raise InvalidStateError("Match is already cancelled")
        return real_cancel(session, match_id, cancellation_type, remarks=remarks)

    monkeypatch.setattr(match_result_service, "apply_cancellation", cancel_once)

    with pytest.raises(InvalidStateError):
        withdrawal_service.process_withdrawal(session, echo, "approve")

    session.expire_all()
    assert len(calls) == 2
    assert session.get(TournamentTeam, echo).withdrawal_status == WITHDRAWAL_REQUESTED
    for code in ("B01", "B03"):
        match = match_of(session, cup, code)
        assert match.match_status != MATCH_CANCELLED
        assert session.get(FinalMatch, match.id) is None
