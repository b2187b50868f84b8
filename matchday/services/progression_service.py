"""
Bracket progression: when a match is confirmed, its winner and loser move into the
downstream slots whose (override-aware) source is "<code>_winner" / "<code>_loser".

Only live matches are written. A slot is filled when it is empty, still shows the
template placeholder, or holds one of the two teams of the source match (a
corrected result). Confirmed downstream matches are never touched. Idempotent.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlmodel import Session, select

from matchday.models.final_match import FinalMatch
from matchday.models.live_match import LiveMatch
from matchday.models.match_template import PHASE_FINAL
from matchday.models.tournament_team import TournamentTeam
from matchday.services.source_expression import ROLE_LOSER, ROLE_WINNER, result_source
from matchday.services.template_sources import ResolvedTemplate, get_tournament, resolve_templates

logger = logging.getLogger(__name__)


def get_live_match(session: Session, tournament_id: int, match_code: str) -> Optional[LiveMatch]:
    return session.exec(
        select(LiveMatch).where(LiveMatch.tournament_id == tournament_id, LiveMatch.match_code == match_code)
    ).first()


def is_confirmed(session: Session, match_id: int) -> bool:
    return session.get(FinalMatch, match_id) is not None


def get_slot(match: LiveMatch, position: int) -> Tuple[Optional[int], str]:
    if position == 1:
        return match.team1_tournament_team_id, match.team1_display_name
    return match.team2_tournament_team_id, match.team2_display_name


def set_slot(match: LiveMatch, position: int, team_id: Optional[int], display_name: str) -> None:
    if position == 1:
        match.team1_tournament_team_id = team_id
        match.team1_display_name = display_name
    else:
        match.team2_tournament_team_id = team_id
        match.team2_display_name = display_name
    match.updated_at = datetime.utcnow()


def _source_phase(session: Session, tournament_id: int, match_code: str) -> Optional[str]:
    for rt in resolve_templates(session, tournament_id):
        if rt.match_code == match_code:
            return rt.template.phase
    return None


def find_dependent_slots(
    session: Session, tournament_id: int, match_code: str, phase: Optional[str] = None
) -> List[Tuple[ResolvedTemplate, int, str]]:
    """Slots fed by a match: (target template, position 1|2, role winner|loser)."""
    if phase is None:
        phase = _source_phase(session, tournament_id, match_code)
        if phase is None:
            return []

    winner_expr = result_source(match_code, ROLE_WINNER)
    loser_expr = result_source(match_code, ROLE_LOSER)
    slots: List[Tuple[ResolvedTemplate, int, str]] = []
    for rt in resolve_templates(session, tournament_id, phase):
        for position in (1, 2):
            source = rt.source_for(position)
            if source == winner_expr:
                slots.append((rt, position, ROLE_WINNER))
            elif source == loser_expr:
                slots.append((rt, position, ROLE_LOSER))
    return slots


def apply_progression(session: Session, final: FinalMatch) -> int:
    """Write winner/loser of a confirmed match into downstream slots. Returns slots updated. Does not commit."""
    if final.is_draw or final.winner_tournament_team_id is None:
        return 0
    if final.team1_tournament_team_id is None or final.team2_tournament_team_id is None:
        return 0

    winner_id = final.winner_tournament_team_id
    loser_id = (
        final.team2_tournament_team_id
        if winner_id == final.team1_tournament_team_id
        else final.team1_tournament_team_id
    )
    source_teams = {final.team1_tournament_team_id, final.team2_tournament_team_id}

    updated = 0
    for rt, position, role in find_dependent_slots(session, final.tournament_id, final.match_code):
        target = get_live_match(session, final.tournament_id, rt.match_code)
        if target is None:
            logger.warning("Progression target %s not found for %s", rt.match_code, final.match_code)
            continue
        if is_confirmed(session, target.id):
            logger.warning("Progression target %s already confirmed; skipped", rt.match_code)
            continue

        team_id = winner_id if role == ROLE_WINNER else loser_id
        team = session.get(TournamentTeam, team_id)
        if team is None:
            continue

        current_id, current_name = get_slot(target, position)
        if current_id == team_id and current_name == team.display_name:
            continue
        placeholder = rt.display_name_for(position)
        if current_id is not None and current_name != placeholder and current_id not in source_teams:
            logger.info(
                "Slot %s/%s holds %s, not from %s; left unchanged", rt.match_code, position, current_id, final.match_code
            )
            continue

        set_slot(target, position, team.id, team.display_name)
        session.add(target)
        updated += 1
        logger.info("%s %s -> %s slot %s (%s)", final.match_code, role, rt.match_code, position, team.display_name)

    if updated:
        session.flush()
    return updated


def revert_progression(session: Session, match: LiveMatch) -> int:
    """Restore placeholders in downstream slots filled from this match. Does not commit."""
    source_teams = {match.team1_tournament_team_id, match.team2_tournament_team_id} - {None}
    reverted = 0
    for rt, position, _role in find_dependent_slots(session, match.tournament_id, match.match_code):
        target = get_live_match(session, match.tournament_id, rt.match_code)
        if target is None or is_confirmed(session, target.id):
            continue
        current_id, _ = get_slot(target, position)
        if current_id is not None and current_id in source_teams:
            set_slot(target, position, None, rt.display_name_for(position))
            session.add(target)
            reverted += 1
    if reverted:
        session.flush()
    return reverted


def reset_slot(session: Session, tournament_id: int, match_code: str, position: int) -> bool:
    """Put the template placeholder back into one unconfirmed slot. Does not commit."""
    target = get_live_match(session, tournament_id, match_code)
    if target is None or is_confirmed(session, target.id):
        return False
    for rt in resolve_templates(session, tournament_id):
        if rt.match_code == match_code:
            set_slot(target, position, None, rt.display_name_for(position))
            session.add(target)
            session.flush()
            return True
    return False


def recalculate_all_progression(session: Session, tournament_id: int, phase: str = PHASE_FINAL) -> Dict:
    """Replay progression for every confirmed match of a phase in execution order. Does not commit."""
    get_tournament(session, tournament_id)
    order = {
        rt.match_code: (rt.template.execution_priority, rt.match_code)
        for rt in resolve_templates(session, tournament_id, phase)
    }
    finals = session.exec(select(FinalMatch).where(FinalMatch.tournament_id == tournament_id)).all()
    finals = sorted((f for f in finals if f.match_code in order), key=lambda f: order[f.match_code])

    slots_updated = 0
    for final in finals:
        slots_updated += apply_progression(session, final)
    return {"matches_processed": len(finals), "slots_updated": slots_updated}
