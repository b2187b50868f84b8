"""Tournament lifecycle status, derived from dates and match progress."""
import logging
from datetime import date, datetime
from typing import Optional

from sqlmodel import Session, select

from matchday.models.final_match import FinalMatch
from matchday.models.live_match import MATCH_CANCELLED, MATCH_SCHEDULED, LiveMatch
from matchday.models.tournament import STATUS_COMPLETED, STATUS_ONGOING, STATUS_PLANNING, Tournament

logger = logging.getLogger(__name__)

DISPLAY_PLANNING = "planning"
DISPLAY_RECRUITING = "recruiting"
DISPLAY_BEFORE_EVENT = "before_event"
DISPLAY_ONGOING = "ongoing"
DISPLAY_COMPLETED = "completed"


def all_matches_finished(session: Session, tournament_id: int) -> bool:
    """Every live match is confirmed or cancelled (and there is at least one)."""
    matches = session.exec(select(LiveMatch).where(LiveMatch.tournament_id == tournament_id)).all()
    if not matches:
        return False
    confirmed = set(session.exec(select(FinalMatch.match_id).where(FinalMatch.tournament_id == tournament_id)).all())
    return all(m.id in confirmed or m.match_status == MATCH_CANCELLED for m in matches)


def has_started_matches(session: Session, tournament_id: int) -> bool:
    """Some match with both teams has left the scheduled state."""
    started = session.exec(
        select(LiveMatch.id).where(
            LiveMatch.tournament_id == tournament_id,
            LiveMatch.match_status != MATCH_SCHEDULED,
            LiveMatch.team1_tournament_team_id.is_not(None),
            LiveMatch.team2_tournament_team_id.is_not(None),
        )
    ).first()
    return started is not None


def calculate_status(session: Session, tournament: Tournament, today: Optional[date] = None) -> str:
    """Status shown to users.

    A started tournament follows its stored status (completed falls back to ongoing while
    results are missing). Otherwise matches already under way make it ongoing, and then
    the dates decide, recruitment window first.
    """
    today = today or date.today()
    if tournament.status == STATUS_COMPLETED:
        return DISPLAY_COMPLETED if all_matches_finished(session, tournament.id) else DISPLAY_ONGOING
    if tournament.status == STATUS_ONGOING:
        return DISPLAY_ONGOING
    if has_started_matches(session, tournament.id):
        return DISPLAY_ONGOING

    recruitment_start, recruitment_end = tournament.recruitment_start_date, tournament.recruitment_end_date
    if recruitment_start and recruitment_end and recruitment_start <= today <= recruitment_end:
        return DISPLAY_RECRUITING
    if recruitment_start and today < recruitment_start:
        return DISPLAY_PLANNING
    if recruitment_end and recruitment_end < today < tournament.event_start_date:
        return DISPLAY_BEFORE_EVENT
    if tournament.event_start_date <= today <= tournament.event_end_date:
        return DISPLAY_ONGOING
    if today > tournament.event_end_date:
        return DISPLAY_COMPLETED
    return DISPLAY_BEFORE_EVENT


def sync_tournament_status(session: Session, tournament_id: int) -> str:
    """Align the stored status with match progress after a result change. Does not commit."""
    tournament = session.get(Tournament, tournament_id)
    if tournament is None:
        return STATUS_PLANNING

    finished = all_matches_finished(session, tournament_id)
    new_status = tournament.status
    if finished:
        new_status = STATUS_COMPLETED
    elif tournament.status == STATUS_COMPLETED:
        new_status = STATUS_ONGOING
    elif tournament.status == STATUS_PLANNING:
        any_confirmed = session.exec(
            select(FinalMatch.match_id).where(FinalMatch.tournament_id == tournament_id)
        ).first()
        if any_confirmed is not None:
            new_status = STATUS_ONGOING

    if new_status != tournament.status:
        logger.info("Tournament %s status %s -> %s", tournament_id, tournament.status, new_status)
        tournament.status = new_status
        tournament.updated_at = datetime.utcnow()
        session.add(tournament)
        session.flush()
    return tournament.status
