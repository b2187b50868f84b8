"""
Public read-only API endpoints.

No auth required. Only tournaments flagged is_public are visible; anything else is
reported as not found. Scores are shown for confirmed results only.
"""
import logging
from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session, select

from matchday.database import get_session
from matchday.models.final_match import FinalMatch
from matchday.models.live_match import LiveMatch
from matchday.models.match_block import MatchBlock
from matchday.models.tournament import Tournament
from matchday.services import standings_service
from matchday.services.tournament_status import (
    DISPLAY_BEFORE_EVENT,
    DISPLAY_COMPLETED,
    DISPLAY_ONGOING,
    DISPLAY_PLANNING,
    DISPLAY_RECRUITING,
    calculate_status,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Response models ──────────────────────────────────────────────────────

class PublicTournament(BaseModel):
    id: int
    name: str
    venue: Optional[str] = None
    event_start_date: date
    event_end_date: date
    recruitment_start_date: Optional[date] = None
    recruitment_end_date: Optional[date] = None
    status: str


class PublicTournamentList(BaseModel):
    recruiting: List[PublicTournament]
    before_event: List[PublicTournament]
    ongoing: List[PublicTournament]
    completed: List[PublicTournament]
    total: int


class PublicMatch(BaseModel):
    match_id: int
    match_code: str
    phase: str
    block_name: str
    display_round_name: Optional[str] = None
    tournament_date: Optional[date] = None
    court_number: Optional[int] = None
    start_time: Optional[str] = None
    team1_tournament_team_id: Optional[int] = None
    team2_tournament_team_id: Optional[int] = None
    team1_display_name: str
    team2_display_name: str
    match_status: str
    is_confirmed: bool
    team1_scores: Optional[str] = None
    team2_scores: Optional[str] = None
    winner_tournament_team_id: Optional[int] = None
    is_draw: bool = False
    is_walkover: bool = False


def _get_public_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament or not tournament.is_public:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


# ── Tournament list ──────────────────────────────────────────────────────

@router.get("/public/tournaments", response_model=PublicTournamentList)
def public_tournaments(session: Session = Depends(get_session)):
    """Public tournaments grouped by status. Tournaments still in planning are left out."""
    tournaments = session.exec(
        select(Tournament)
        .where(Tournament.is_public == True)  # noqa: E712
        .order_by(Tournament.event_start_date.desc(), Tournament.id)
    ).all()

    groups: Dict[str, List[PublicTournament]] = {
        DISPLAY_RECRUITING: [],
        DISPLAY_BEFORE_EVENT: [],
        DISPLAY_ONGOING: [],
        DISPLAY_COMPLETED: [],
    }
    for t in tournaments:
        status = calculate_status(session, t)
        if status == DISPLAY_PLANNING:
            continue
        groups[status].append(
            PublicTournament(
                id=t.id,
                name=t.name,
                venue=t.venue,
                event_start_date=t.event_start_date,
                event_end_date=t.event_end_date,
                recruitment_start_date=t.recruitment_start_date,
                recruitment_end_date=t.recruitment_end_date,
                status=status,
            )
        )

    return PublicTournamentList(**groups, total=sum(len(g) for g in groups.values()))


# ── Matches and standings ────────────────────────────────────────────────

@router.get("/public/tournaments/{tournament_id}/matches", response_model=List[PublicMatch])
def public_matches(tournament_id: int, session: Session = Depends(get_session)):
    """Schedule with confirmed results, in block then match number order"""
    _get_public_tournament(session, tournament_id)

    blocks = {
        b.id: b
        for b in session.exec(select(MatchBlock).where(MatchBlock.tournament_id == tournament_id)).all()
    }
    finals = {
        f.match_id: f
        for f in session.exec(select(FinalMatch).where(FinalMatch.tournament_id == tournament_id)).all()
    }
    matches = session.exec(
        select(LiveMatch).where(LiveMatch.tournament_id == tournament_id).order_by(LiveMatch.match_number)
    ).all()

    result: List[PublicMatch] = []
    for m in sorted(matches, key=lambda m: (blocks[m.match_block_id].block_order, m.match_number)):
        block = blocks[m.match_block_id]
        final = finals.get(m.id)
        item = PublicMatch(
            match_id=m.id,
            match_code=m.match_code,
            phase=block.phase,
            block_name=block.block_name,
            display_round_name=block.display_round_name,
            tournament_date=m.tournament_date,
            court_number=m.court_number,
            start_time=m.start_time,
            team1_tournament_team_id=m.team1_tournament_team_id,
            team2_tournament_team_id=m.team2_tournament_team_id,
            team1_display_name=m.team1_display_name,
            team2_display_name=m.team2_display_name,
            match_status=m.match_status,
            is_confirmed=final is not None,
        )
        if final is not None:
            item.team1_scores = final.team1_scores
            item.team2_scores = final.team2_scores
            item.winner_tournament_team_id = final.winner_tournament_team_id
            item.is_draw = final.is_draw
            item.is_walkover = final.is_walkover
        result.append(item)
    return result


@router.get("/public/tournaments/{tournament_id}/standings")
def public_standings(tournament_id: int, session: Session = Depends(get_session)):
    """Stored rankings of every block"""
    tournament = _get_public_tournament(session, tournament_id)
    return {
        "tournament_id": tournament.id,
        "tournament_name": tournament.name,
        "blocks": standings_service.get_tournament_standings(session, tournament_id),
    }
