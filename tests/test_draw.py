from datetime import date

import pytest
from sqlmodel import Session, select

from matchday.errors import InvalidStateError, ValidationFailedError
from matchday.models.live_match import LiveMatch
from matchday.models.match_block import MatchBlock
from matchday.models.tournament_rule import TournamentRule
from matchday.models.tournament_team import TournamentTeam
from matchday.services import withdrawal_service
from matchday.services.draw_service import apply_draw, get_draw
from matchday.services.duplication_service import duplicate_tournament
from tests.conftest import build_cup, match_of


def test_structure_from_templates(session: Session):
    """Blocks for A, B and the final round; one live match per template"""
    cup = build_cup(session, draw=False)
    tournament_id = cup.tournament.id

    blocks = session.exec(
        select(MatchBlock).where(MatchBlock.tournament_id == tournament_id).order_by(MatchBlock.block_order)
    ).all()
    assert [(b.phase, b.block_name, b.display_round_name) for b in blocks] == [
        ("preliminary", "A", "Block A"),
        ("preliminary", "B", "Block B"),
        ("final", "final", "Semi-final"),
    ]

    matches = session.exec(select(LiveMatch).where(LiveMatch.tournament_id == tournament_id)).all()
    assert len(matches) == 10
    # Final-phase templates are on day 2
    assert match_of(session, cup, "F").tournament_date == date(2026, 5, 3)
    assert match_of(session, cup, "A01").tournament_date == date(2026, 5, 2)
    assert match_of(session, cup, "A01").team1_tournament_team_id is None
    assert match_of(session, cup, "A01").team1_display_name == "A1"


def test_redraw_replaces_previous_draw(session: Session, cup):
    """Swapping two teams moves them in the preliminary matches"""
    assignments = [dict(a) for a in cup.assignments]
    for a in assignments:
        if a["tournament_team_id"] == cup.teams["Alpha"].id:
            a["block_position"] = 2
        elif a["tournament_team_id"] == cup.teams["Bravo"].id:
            a["block_position"] = 1

    apply_draw(session, cup.tournament.id, assignments)

    a01 = match_of(session, cup, "A01")
    assert (a01.team1_display_name, a01.team2_display_name) == ("Bravo", "Alpha")


def test_undrawn_team_leaves_placeholder(session: Session, cup):
    assignments = [a for a in cup.assignments if a["tournament_team_id"] != cup.teams["Charlie"].id]

    apply_draw(session, cup.tournament.id, assignments)

    a02 = match_of(session, cup, "A02")
    assert a02.team2_tournament_team_id is None
    assert a02.team2_display_name == "A3"
    assert session.get(TournamentTeam, cup.teams["Charlie"].id).assigned_block is None


@pytest.mark.parametrize(
    "change",
    [
        {"block_name": "Z"},
        {"block_position": 0},
        {"block_position": 2},
        {"tournament_team_id": 9999},
    ],
)
def test_invalid_draw(session: Session, cup, change):
    """Unknown block, bad or duplicate position and unregistered teams are rejected"""
    assignments = [dict(a) for a in cup.assignments]
    assignments[0].update(change)
    with pytest.raises(ValidationFailedError):
        apply_draw(session, cup.tournament.id, assignments)


def test_draw_locked_after_results(session: Session, cup, play):
    play("A01", "2", "0")
    with pytest.raises(InvalidStateError):
        apply_draw(session, cup.tournament.id, cup.assignments)


def test_get_draw_groups_by_block(session: Session, cup):
    draw = get_draw(session, cup.tournament.id)

    assert [b["block_name"] for b in draw["blocks"]] == ["A", "B"]
    assert [t["team_name"] for t in draw["blocks"][0]["teams"]] == ["Alpha", "Bravo", "Charlie"]


def test_duplicate_copies_setup_without_results(session: Session, cup, play):
    """Rules, active registrations and the draw are copied; results and withdrawn teams are not"""
    session.add(TournamentRule(tournament_id=cup.tournament.id, phase="preliminary", win_points=2))
    session.commit()
    play("A01", "2", "0")
    echo = cup.teams["Echo"].id
    withdrawal_service.request_withdrawal(session, echo, "Travel problems")
    withdrawal_service.process_withdrawal(session, echo, "approve")

    result = duplicate_tournament(session, cup.tournament.id, "Autumn Cup")

    copy = result["tournament"]
    assert copy.name == "Autumn Cup"
    assert copy.status == "planning"
    assert result["rules_copied"] == 1
    assert result["teams_copied"] == 5
    assert result["matches_created"] == 10

    copied_a01 = session.exec(
        select(LiveMatch).where(LiveMatch.tournament_id == copy.id, LiveMatch.match_code == "A01")
    ).one()
    assert copied_a01.team1_display_name == "Alpha"
    assert copied_a01.team1_scores is None
    copied_b01 = session.exec(
        select(LiveMatch).where(LiveMatch.tournament_id == copy.id, LiveMatch.match_code == "B01")
    ).one()
    assert copied_b01.team2_tournament_team_id is None
