"""
Match result workflow: live edits, confirmation, cancellation and their reversals.

Confirming copies the live match into FinalMatch and then refreshes everything that
depends on the result, in one unit of work:
  1. block rankings
  2. promotion of block-ranked teams once a preliminary block completes
  3. bracket progression into "<code>_winner" / "<code>_loser" slots
  4. tournament status
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from matchday.errors import ConflictError, InvalidStateError, MatchdayError, NotFoundError, ValidationFailedError
from matchday.models.final_match import FinalMatch
from matchday.models.live_match import (
    CANCEL_NO_COUNT,
    CANCEL_NO_SHOW_BOTH,
    CANCEL_NO_SHOW_TEAM1,
    CANCELLATION_TYPES,
    MATCH_CANCELLED,
    MATCH_COMPLETED,
    MATCH_ONGOING,
    MATCH_SCHEDULED,
    LiveMatch,
)
from matchday.models.match_block import MatchBlock
from matchday.models.match_template import PHASE_PRELIMINARY
from matchday.models.tournament_team import TournamentTeam
from matchday.services import progression_service, promotion_service, rules_service, standings_service
from matchday.services.score_parser import parse_total
from matchday.services.tournament_status import sync_tournament_status

logger = logging.getLogger(__name__)

# Live status only moves forward (cancel/uncancel have their own operations)
STATUS_TRANSITIONS = {
    MATCH_SCHEDULED: {MATCH_ONGOING, MATCH_COMPLETED},
    MATCH_ONGOING: {MATCH_COMPLETED},
    MATCH_COMPLETED: set(),
}


def get_live_match(session: Session, match_id: int) -> LiveMatch:
    match = session.get(LiveMatch, match_id)
    if not match:
        raise NotFoundError("Match not found")
    return match


def _validate_status_transition(current: str, new: str) -> None:
    if new == current:
        return
    if new == MATCH_CANCELLED:
        raise ValidationFailedError("Use the cancel operation to cancel a match")
    if new not in STATUS_TRANSITIONS:
        raise ValidationFailedError(f"Invalid match_status: {new}")
    if new not in STATUS_TRANSITIONS.get(current, set()):
        raise InvalidStateError(f"Cannot change match_status from {current} to {new}")


def _winner_from_scores(match: LiveMatch) -> Optional[int]:
    goals1, goals2 = parse_total(match.team1_scores), parse_total(match.team2_scores)
    if goals1 > goals2:
        return match.team1_tournament_team_id
    if goals2 > goals1:
        return match.team2_tournament_team_id
    return None


def update_live_match(session: Session, match_id: int, changes: Dict[str, Any]) -> LiveMatch:
    """Apply an edit to an unconfirmed live match and commit.

    When scores change and no winner is given, the winner is taken from the goal totals.
    """
    match = get_live_match(session, match_id)
    if progression_service.is_confirmed(session, match.id):
        raise InvalidStateError("Match is confirmed; unconfirm it before editing")
    if match.match_status == MATCH_CANCELLED:
        raise InvalidStateError("Match is cancelled; uncancel it before editing")

    for position in (1, 2):
        key = f"team{position}_tournament_team_id"
        if key in changes:
            team_id = changes[key]
            if team_id is None:
                continue
            team = session.get(TournamentTeam, team_id)
            if team is None or team.tournament_id != match.tournament_id:
                raise ValidationFailedError(f"Team {team_id} is not registered in this tournament")
            progression_service.set_slot(match, position, team.id, team.display_name)

    for key in ("team1_scores", "team2_scores", "court_number", "start_time", "tournament_date", "remarks"):
        if key in changes:
            setattr(match, key, changes[key])

    now = datetime.utcnow()
    if "match_status" in changes and changes["match_status"] is not None:
        new_status = changes["match_status"]
        _validate_status_transition(match.match_status, new_status)
        if new_status != match.match_status:
            if new_status == MATCH_ONGOING:
                match.actual_start_time = now
                match.current_period = 1
            elif new_status == MATCH_COMPLETED:
                match.actual_end_time = now
        match.match_status = new_status

    if changes.get("current_period") is not None:
        if match.match_status != MATCH_ONGOING:
            raise InvalidStateError("The period can only be changed while the match is ongoing")
        if changes["current_period"] < 1:
            raise ValidationFailedError("current_period must be at least 1")
        match.current_period = changes["current_period"]

    if "winner_tournament_team_id" in changes:
        winner_id = changes["winner_tournament_team_id"]
        if winner_id is not None and winner_id not in (
            match.team1_tournament_team_id,
            match.team2_tournament_team_id,
        ):
            raise ValidationFailedError("Winner must be one of the match participants")
        match.winner_tournament_team_id = winner_id
    elif "team1_scores" in changes or "team2_scores" in changes:
        match.winner_tournament_team_id = _winner_from_scores(match)

    if "is_draw" in changes and changes["is_draw"] is not None:
        match.is_draw = changes["is_draw"]
    if match.winner_tournament_team_id is not None:
        match.is_draw = False

    match.updated_at = now
    session.add(match)
    session.commit()
    session.refresh(match)
    return match


def _final_from_live(match: LiveMatch, confirmed_by: Optional[str]) -> FinalMatch:
    return FinalMatch(
        match_id=match.id,
        tournament_id=match.tournament_id,
        match_block_id=match.match_block_id,
        match_code=match.match_code,
        team1_tournament_team_id=match.team1_tournament_team_id,
        team2_tournament_team_id=match.team2_tournament_team_id,
        team1_display_name=match.team1_display_name,
        team2_display_name=match.team2_display_name,
        team1_scores=match.team1_scores,
        team2_scores=match.team2_scores,
        winner_tournament_team_id=match.winner_tournament_team_id,
        is_draw=match.winner_tournament_team_id is None,
        is_walkover=match.is_walkover,
        cancellation_type=match.cancellation_type,
        remarks=match.remarks,
        confirmed_by=confirmed_by,
    )


def _check_confirmable(session: Session, match: LiveMatch) -> None:
    if progression_service.is_confirmed(session, match.id):
        raise ConflictError(f"Match {match.match_code} is already confirmed")
    if match.match_status == MATCH_CANCELLED:
        raise InvalidStateError(f"Match {match.match_code} is cancelled")
    if match.team1_tournament_team_id is None or match.team2_tournament_team_id is None:
        raise InvalidStateError(f"Match {match.match_code} does not have both teams assigned")


def _mark_completed(match: LiveMatch) -> None:
    now = datetime.utcnow()
    match.match_status = MATCH_COMPLETED
    if match.actual_end_time is None:
        match.actual_end_time = now
    match.updated_at = now


def _flush_final(session: Session, final: FinalMatch) -> None:
    session.add(final)
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        raise ConflictError(f"Match {final.match_code} is already confirmed")


def _refresh_block(session: Session, block_id: int) -> Dict:
    """Rankings of the block, then promotion if a preliminary block just completed."""
    summary = standings_service.update_block_rankings(session, block_id)
    block = session.get(MatchBlock, block_id)
    promoted = 0
    if block.phase == PHASE_PRELIMINARY and standings_service.is_block_complete(session, block_id):
        try:
            promoted = promotion_service.promote_from_blocks(session, block.tournament_id)["slots_updated"]
        except MatchdayError:
            logger.exception("Promotion after block %s failed; result kept", block.block_name)
    return {"block_id": block_id, "lottery_required": summary["lottery_required"], "slots_promoted": promoted}


def _reopen_block(session: Session, block_id: int) -> Dict:
    """After a result is withdrawn: clear or recompute rankings, and take back the places
    of a preliminary block that is no longer complete."""
    cleared = standings_service.clear_rankings_if_incomplete(session, block_id)
    block = session.get(MatchBlock, block_id)
    retracted = promoted = 0
    if block.phase == PHASE_PRELIMINARY:
        if cleared:
            retracted = promotion_service.retract_block_promotions(session, block.tournament_id, block.block_name)
        promoted = promotion_service.promote_from_blocks(session, block.tournament_id)["slots_updated"]
    return {"rankings_cleared": cleared, "slots_retracted": retracted, "slots_promoted": promoted}


def confirm_match(session: Session, match_id: int, confirmed_by: Optional[str] = None) -> Dict:
    """Confirm a live match result and commit."""
    match = get_live_match(session, match_id)
    _check_confirmable(session, match)

    final = _final_from_live(match, confirmed_by)
    _mark_completed(match)
    session.add(match)
    _flush_final(session, final)

    block_summary = _refresh_block(session, match.match_block_id)
    progressed = progression_service.apply_progression(session, final)
    tournament_status = sync_tournament_status(session, match.tournament_id)
    session.commit()

    logger.info("Match %s confirmed by %s", match.match_code, confirmed_by or "-")
    return {
        "match_id": match.id,
        "match_code": match.match_code,
        "is_draw": final.is_draw,
        "winner_tournament_team_id": final.winner_tournament_team_id,
        "slots_progressed": progressed,
        "slots_promoted": block_summary["slots_promoted"],
        "lottery_required": block_summary["lottery_required"],
        "tournament_status": tournament_status,
    }


def confirm_matches(session: Session, match_ids: List[int], confirmed_by: Optional[str] = None) -> Dict:
    """Confirm several matches in one transaction. Matches that cannot be confirmed are skipped."""
    confirmed: List[FinalMatch] = []
    skipped: List[Dict[str, Any]] = []
    blocks: List[int] = []

    for match_id in match_ids:
        match = session.get(LiveMatch, match_id)
        if match is None:
            skipped.append({"match_id": match_id, "reason": "Match not found"})
            continue
        try:
            _check_confirmable(session, match)
        except MatchdayError as e:
            skipped.append({"match_id": match_id, "reason": e.message})
            continue
        final = _final_from_live(match, confirmed_by)
        _mark_completed(match)
        session.add(match)
        _flush_final(session, final)
        confirmed.append(final)
        if match.match_block_id not in blocks:
            blocks.append(match.match_block_id)

    for block_id in blocks:
        _refresh_block(session, block_id)
    progressed = sum(progression_service.apply_progression(session, f) for f in confirmed)
    tournament_ids = {f.tournament_id for f in confirmed}
    for tournament_id in sorted(tournament_ids):
        sync_tournament_status(session, tournament_id)
    session.commit()

    return {
        "confirmed": [f.match_id for f in confirmed],
        "skipped": skipped,
        "slots_progressed": progressed,
    }


def unconfirm_match(session: Session, match_id: int) -> Dict:
    """Remove a confirmed result and commit. The live match goes back to completed."""
    match = get_live_match(session, match_id)
    final = session.get(FinalMatch, match.id)
    if final is None:
        raise InvalidStateError("Match is not confirmed")
    if match.match_status == MATCH_CANCELLED:
        raise InvalidStateError("Cancelled matches are reverted with uncancel")

    reverted = progression_service.revert_progression(session, match)
    session.delete(final)
    match.match_status = MATCH_COMPLETED
    match.updated_at = datetime.utcnow()
    session.add(match)
    session.flush()

    block_summary = _reopen_block(session, match.match_block_id)
    tournament_status = sync_tournament_status(session, match.tournament_id)
    session.commit()

    logger.info("Match %s unconfirmed", match.match_code)
    return {
        "match_id": match.id,
        "match_code": match.match_code,
        "slots_reverted": reverted,
        "rankings_cleared": block_summary["rankings_cleared"],
        "slots_retracted": block_summary["slots_retracted"],
        "tournament_status": tournament_status,
    }


def apply_cancellation(
    session: Session, match_id: int, cancellation_type: str, remarks: Optional[str] = None
) -> Dict:
    """Cancel a match and refresh what depends on it. Does not commit.

    no_show_team1 / no_show_team2 record a walkover win for the other team using the
    tournament's walkover score; no_show_both records a 0-0 walkover draw; no_count
    records nothing.
    """
    if cancellation_type not in CANCELLATION_TYPES:
        raise ValidationFailedError(f"Invalid cancellation_type: {cancellation_type}")

    match = get_live_match(session, match_id)
    if match.match_status == MATCH_CANCELLED:
        raise InvalidStateError("Match is already cancelled")
    if progression_service.is_confirmed(session, match.id):
        raise InvalidStateError("Confirmed matches cannot be cancelled")
    if cancellation_type != CANCEL_NO_COUNT and (
        match.team1_tournament_team_id is None or match.team2_tournament_team_id is None
    ):
        raise ValidationFailedError("A walkover needs both teams assigned")

    match.match_status = MATCH_CANCELLED
    match.cancellation_type = cancellation_type
    if remarks is not None:
        match.remarks = remarks
    match.updated_at = datetime.utcnow()

    final: Optional[FinalMatch] = None
    if cancellation_type != CANCEL_NO_COUNT:
        walkover = rules_service.get_walkover_settings(session, match.tournament_id)
        match.is_walkover = True
        if cancellation_type == CANCEL_NO_SHOW_BOTH:
            match.team1_scores = match.team2_scores = "0"
            match.winner_tournament_team_id = None
            match.is_draw = True
        elif cancellation_type == CANCEL_NO_SHOW_TEAM1:
            match.team1_scores = str(walkover.loser_goals)
            match.team2_scores = str(walkover.winner_goals)
            match.winner_tournament_team_id = match.team2_tournament_team_id
            match.is_draw = False
        else:
            match.team1_scores = str(walkover.winner_goals)
            match.team2_scores = str(walkover.loser_goals)
            match.winner_tournament_team_id = match.team1_tournament_team_id
            match.is_draw = False
        final = _final_from_live(match, None)

    session.add(match)
    if final is not None:
        _flush_final(session, final)
    else:
        session.flush()

    block_summary = _refresh_block(session, match.match_block_id)
    progressed = progression_service.apply_progression(session, final) if final is not None else 0
    tournament_status = sync_tournament_status(session, match.tournament_id)

    return {
        "match_id": match.id,
        "match_code": match.match_code,
        "cancellation_type": cancellation_type,
        "walkover_recorded": final is not None,
        "slots_progressed": progressed,
        "slots_promoted": block_summary["slots_promoted"],
        "tournament_status": tournament_status,
    }


def cancel_match(
    session: Session, match_id: int, cancellation_type: str, remarks: Optional[str] = None
) -> Dict:
    """Cancel a match and commit."""
    result = apply_cancellation(session, match_id, cancellation_type, remarks)
    session.commit()
    logger.info("Match %s cancelled (%s)", result["match_code"], cancellation_type)
    return result


def uncancel_match(session: Session, match_id: int) -> Dict:
    """Undo a cancellation and commit. The match returns to scheduled with no result."""
    match = get_live_match(session, match_id)
    if match.match_status != MATCH_CANCELLED:
        raise InvalidStateError("Match is not cancelled")

    reverted = 0
    final = session.get(FinalMatch, match.id)
    if final is not None:
        reverted = progression_service.revert_progression(session, match)
        session.delete(final)

    match.match_status = MATCH_SCHEDULED
    match.cancellation_type = None
    match.is_walkover = False
    match.is_draw = False
    match.winner_tournament_team_id = None
    match.team1_scores = None
    match.team2_scores = None
    match.current_period = None
    match.actual_start_time = None
    match.actual_end_time = None
    match.updated_at = datetime.utcnow()
    session.add(match)
    session.flush()

    block_summary = _reopen_block(session, match.match_block_id)
    tournament_status = sync_tournament_status(session, match.tournament_id)
    session.commit()

    logger.info("Match %s uncancelled", match.match_code)
    return {
        "match_id": match.id,
        "match_code": match.match_code,
        "slots_reverted": reverted,
        "slots_retracted": block_summary["slots_retracted"],
        "tournament_status": tournament_status,
    }


def list_matches(session: Session, tournament_id: int, block_id: Optional[int] = None) -> List[Dict]:
    """Live matches with their confirmation state, in block then match number order."""
    query = select(LiveMatch).where(LiveMatch.tournament_id == tournament_id)
    if block_id is not None:
        query = query.where(LiveMatch.match_block_id == block_id)
    matches = session.exec(query.order_by(LiveMatch.match_block_id, LiveMatch.match_number)).all()
    confirmed = set(session.exec(select(FinalMatch.match_id).where(FinalMatch.tournament_id == tournament_id)).all())
    return [dict(m.model_dump(), is_confirmed=m.id in confirmed) for m in matches]
