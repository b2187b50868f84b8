import os
from datetime import date
from types import SimpleNamespace

# Keep the app's own engine off disk; tests use test_engine below
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from matchday.database import get_session  # noqa: E402
from matchday.main import app  # noqa: E402
from matchday.models.match_template import PHASE_FINAL, PHASE_PRELIMINARY, MatchTemplate  # noqa: E402
from matchday.models.team import Team  # noqa: E402
from matchday.models.tournament import Tournament  # noqa: E402
from matchday.models.tournament_format import TournamentFormat  # noqa: E402
from matchday.models.tournament_team import TournamentTeam  # noqa: E402
from matchday.services import match_result_service  # noqa: E402
from matchday.services.draw_service import apply_draw, generate_structure  # noqa: E402
from matchday.services.progression_service import get_live_match  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# sqlite:///:memory: + StaticPool: every session shares one connection, so rows
# committed by a fixture are visible to the app's sessions (and vice versa).
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Fresh tables per test"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Test client wired to the test engine. The override is set before TestClient starts."""
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Six-team cup: two league blocks of three, then semi-finals, final and 3rd place
#
#   A01 A1-A2   A02 A1-A3   A03 A2-A3      (same for block B)
#   SF1  A_1 vs B_2         SF2  B_1 vs A_2
#   3P   SF1_loser vs SF2_loser (3rd / 4th)
#   F    SF1_winner vs SF2_winner (1st / 2nd)
# ============================================================================

BLOCK_TEAMS = {
    "A": ["Alpha", "Bravo", "Charlie"],
    "B": ["Delta", "Echo", "Foxtrot"],
}


def _templates(format_id: int):
    templates = []
    number = 1
    for block in ("A", "B"):
        for index, (p1, p2) in enumerate(((1, 2), (1, 3), (2, 3)), start=1):
            templates.append(
                MatchTemplate(
                    format_id=format_id,
                    match_number=number,
                    match_code=f"{block}0{index}",
                    phase=PHASE_PRELIMINARY,
                    block_name=block,
                    team1_source=f"{block}{p1}",
                    team2_source=f"{block}{p2}",
                    team1_display_name=f"{block}{p1}",
                    team2_display_name=f"{block}{p2}",
                    execution_priority=number,
                )
            )
            number += 1

    finals = [
        ("SF1", "A_1", "B_2", "A 1st", "B 2nd", "Semi-final", None, None),
        ("SF2", "B_1", "A_2", "B 1st", "A 2nd", "Semi-final", None, None),
        ("3P", "SF1_loser", "SF2_loser", "SF1 loser", "SF2 loser", "3rd place", 3, 4),
        ("F", "SF1_winner", "SF2_winner", "SF1 winner", "SF2 winner", "Final", 1, 2),
    ]
    for code, s1, s2, d1, d2, round_name, winner_pos, loser_pos in finals:
        templates.append(
            MatchTemplate(
                format_id=format_id,
                match_number=number,
                match_code=code,
                phase=PHASE_FINAL,
                round_name=round_name,
                block_name="final",
                team1_source=s1,
                team2_source=s2,
                team1_display_name=d1,
                team2_display_name=d2,
                day_number=2,
                execution_priority=number,
                winner_position=winner_pos,
                loser_position_start=loser_pos,
                loser_position_end=loser_pos,
            )
        )
        number += 1
    return templates


def build_cup(session: Session, draw: bool = True) -> SimpleNamespace:
    fmt = TournamentFormat(name="Six team cup", team_count=6)
    session.add(fmt)
    session.commit()
    session.refresh(fmt)

    for template in _templates(fmt.id):
        session.add(template)
    session.commit()

    tournament = Tournament(
        name="Spring Cup",
        format_id=fmt.id,
        team_count=6,
        event_start_date=date(2026, 5, 2),
        event_end_date=date(2026, 5, 3),
    )
    session.add(tournament)
    session.flush()
    generate_structure(session, tournament)
    session.commit()
    session.refresh(tournament)

    entries = {}
    assignments = []
    for block, names in BLOCK_TEAMS.items():
        for position, name in enumerate(names, start=1):
            team = Team(name=name)
            session.add(team)
            session.flush()
            entry = TournamentTeam(tournament_id=tournament.id, team_id=team.id, team_name=name)
            session.add(entry)
            session.flush()
            entries[name] = entry
            assignments.append({"tournament_team_id": entry.id, "block_name": block, "block_position": position})
    session.commit()

    if draw:
        apply_draw(session, tournament.id, assignments)

    return SimpleNamespace(tournament=tournament, format=fmt, teams=entries, assignments=assignments)


@pytest.fixture
def cup(session: Session) -> SimpleNamespace:
    """Six-team cup with the draw applied and no results"""
    return build_cup(session)


def match_of(session: Session, cup: SimpleNamespace, code: str):
    session.expire_all()
    return get_live_match(session, cup.tournament.id, code)


@pytest.fixture
def play(session: Session, cup: SimpleNamespace):
    """play("A01", "2", "0") enters the score and confirms the match"""

    def _play(code: str, team1_scores: str, team2_scores: str, winner: str = None):
        match = match_of(session, cup, code)
        changes = {"team1_scores": team1_scores, "team2_scores": team2_scores}
        if winner is not None:
            changes["winner_tournament_team_id"] = cup.teams[winner].id
        match_result_service.update_live_match(session, match.id, changes)
        return match_result_service.confirm_match(session, match.id, confirmed_by="referee")

    return _play


def play_group_stage(play) -> None:
    """Block A: Charlie 1st, Alpha 2nd, Bravo 3rd. Block B: Delta 1st, Foxtrot 2nd, Echo 3rd."""
    play("A01", "2", "0")  # Alpha - Bravo
    play("A02", "1", "1")  # Alpha - Charlie
    play("A03", "0", "3")  # Bravo - Charlie
    play("B01", "2", "0")  # Delta - Echo
    play("B02", "1", "0")  # Delta - Foxtrot
    play("B03", "1", "1")  # Echo - Foxtrot
