"""
Team withdrawal requests.

Status only moves forward: active -> withdrawal_requested -> withdrawal_approved |
withdrawal_rejected. Approval settles the team's unconfirmed matches:
  scheduled  -> walkover win for the opponent (no-show of the withdrawn side)
  ongoing    -> cancelled without result (no_count)
  completed  -> left for an administrator to confirm
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlmodel import Session, select

from matchday.errors import InvalidStateError, MatchdayError, NotFoundError, ValidationFailedError
from matchday.models.final_match import FinalMatch
from matchday.models.live_match import (
    CANCEL_NO_COUNT,
    CANCEL_NO_SHOW_TEAM1,
    CANCEL_NO_SHOW_TEAM2,
    MATCH_CANCELLED,
    MATCH_COMPLETED,
    MATCH_ONGOING,
    MATCH_SCHEDULED,
    LiveMatch,
)
from matchday.models.tournament_team import (
    WITHDRAWAL_ACTIVE,
    WITHDRAWAL_APPROVED,
    WITHDRAWAL_REJECTED,
    WITHDRAWAL_REQUESTED,
    TournamentTeam,
)
from matchday.services import match_result_service, standings_service

logger = logging.getLogger(__name__)

ACTION_APPROVE = "approve"
ACTION_REJECT = "reject"

WITHDRAWAL_STATUSES = (WITHDRAWAL_ACTIVE, WITHDRAWAL_REQUESTED, WITHDRAWAL_APPROVED, WITHDRAWAL_REJECTED)


def get_entry(session: Session, tournament_team_id: int) -> TournamentTeam:
    entry = session.get(TournamentTeam, tournament_team_id)
    if entry is None:
        raise NotFoundError("Tournament team not found")
    return entry


def _team_matches(session: Session, entry: TournamentTeam) -> List[LiveMatch]:
    return list(
        session.exec(
            select(LiveMatch)
            .where(
                LiveMatch.tournament_id == entry.tournament_id,
                (LiveMatch.team1_tournament_team_id == entry.id) | (LiveMatch.team2_tournament_team_id == entry.id),
            )
            .order_by(LiveMatch.match_number)
        ).all()
    )


def request_withdrawal(session: Session, tournament_team_id: int, reason: str) -> TournamentTeam:
    entry = get_entry(session, tournament_team_id)
    if entry.withdrawal_status != WITHDRAWAL_ACTIVE:
        raise InvalidStateError(f"Withdrawal cannot be requested from status {entry.withdrawal_status}")
    if not reason or not reason.strip():
        raise ValidationFailedError("A withdrawal reason is required")

    now = datetime.utcnow()
    entry.withdrawal_status = WITHDRAWAL_REQUESTED
    entry.withdrawal_reason = reason.strip()
    entry.withdrawal_requested_at = now
    entry.updated_at = now
    session.add(entry)
    session.commit()
    session.refresh(entry)
    logger.info("Withdrawal requested for %s (tournament %s)", entry.team_name, entry.tournament_id)
    return entry


def _settle_matches(session: Session, entry: TournamentTeam) -> List[Dict]:
    actions: List[Dict] = []
    for match in _team_matches(session, entry):
        if match.match_status == MATCH_CANCELLED or session.get(FinalMatch, match.id) is not None:
            continue
        side = 1 if match.team1_tournament_team_id == entry.id else 2
        opponent_id = match.team2_tournament_team_id if side == 1 else match.team1_tournament_team_id

        if match.match_status == MATCH_SCHEDULED:
            if opponent_id is None:
                actions.append({"match_id": match.id, "match_code": match.match_code, "action": "no_opponent"})
                continue
            cancellation = CANCEL_NO_SHOW_TEAM1 if side == 1 else CANCEL_NO_SHOW_TEAM2
            match_result_service.apply_cancellation(session, match.id, cancellation, remarks="Team withdrawn")
            actions.append({"match_id": match.id, "match_code": match.match_code, "action": "walkover"})
        elif match.match_status == MATCH_ONGOING:
            match_result_service.apply_cancellation(session, match.id, CANCEL_NO_COUNT, remarks="Team withdrawn")
            actions.append({"match_id": match.id, "match_code": match.match_code, "action": "cancelled"})
        elif match.match_status == MATCH_COMPLETED:
            actions.append(
                {"match_id": match.id, "match_code": match.match_code, "action": "manual_confirmation_required"}
            )
    return actions


def process_withdrawal(
    session: Session,
    tournament_team_id: int,
    action: str,
    processed_by: Optional[str] = None,
    comment: Optional[str] = None,
) -> Dict:
    if action not in (ACTION_APPROVE, ACTION_REJECT):
        raise ValidationFailedError(f"Invalid action: {action}")
    entry = get_entry(session, tournament_team_id)
    if entry.withdrawal_status != WITHDRAWAL_REQUESTED:
        raise InvalidStateError(f"Withdrawal cannot be processed from status {entry.withdrawal_status}")

    now = datetime.utcnow()
    entry.withdrawal_status = WITHDRAWAL_APPROVED if action == ACTION_APPROVE else WITHDRAWAL_REJECTED
    entry.withdrawal_processed_at = now
    entry.withdrawal_processed_by = processed_by
    entry.withdrawal_admin_comment = comment
    entry.updated_at = now
    session.add(entry)

    # Approval and its walkovers are committed together
    match_actions: List[Dict] = []
    if action == ACTION_APPROVE:
        try:
            match_actions = _settle_matches(session, entry)
            standings_service.recalculate_all(session, entry.tournament_id)
        except MatchdayError:
            session.rollback()
            raise
    session.commit()

    session.refresh(entry)
    logger.info("Withdrawal of %s -> %s by %s", entry.team_name, entry.withdrawal_status, processed_by or "-")
    return {
        "tournament_team_id": entry.id,
        "withdrawal_status": entry.withdrawal_status,
        "match_actions": match_actions,
    }


def bulk_process(
    session: Session,
    tournament_team_ids: List[int],
    action: str,
    processed_by: Optional[str] = None,
    comment: Optional[str] = None,
) -> Dict:
    results: List[Dict] = []
    for tournament_team_id in tournament_team_ids:
        try:
            outcome = process_withdrawal(session, tournament_team_id, action, processed_by, comment)
            results.append({"tournament_team_id": tournament_team_id, "success": True, **outcome})
        except MatchdayError as e:
            session.rollback()
            results.append({"tournament_team_id": tournament_team_id, "success": False, "error": e.message})
    succeeded = sum(1 for r in results if r["success"])
    return {"processed": succeeded, "failed": len(results) - succeeded, "results": results}


def analyze_impact(session: Session, tournament_team_id: int) -> Dict:
    """What approving this withdrawal would do to the team's matches."""
    entry = get_entry(session, tournament_team_id)
    counts = {MATCH_SCHEDULED: 0, MATCH_ONGOING: 0, MATCH_COMPLETED: 0, "confirmed": 0, MATCH_CANCELLED: 0}
    affected: List[str] = []
    for match in _team_matches(session, entry):
        if session.get(FinalMatch, match.id) is not None and match.match_status != MATCH_CANCELLED:
            counts["confirmed"] += 1
            continue
        counts[match.match_status] = counts.get(match.match_status, 0) + 1
        if match.match_status in (MATCH_SCHEDULED, MATCH_ONGOING, MATCH_COMPLETED):
            affected.append(match.match_code)

    return {
        "tournament_team_id": entry.id,
        "team_name": entry.team_name,
        "withdrawal_status": entry.withdrawal_status,
        "scheduled_matches": counts[MATCH_SCHEDULED],
        "ongoing_matches": counts[MATCH_ONGOING],
        "completed_matches": counts[MATCH_COMPLETED],
        "confirmed_matches": counts["confirmed"],
        "cancelled_matches": counts[MATCH_CANCELLED],
        "affected_match_codes": affected,
        "assigned_block": entry.assigned_block,
    }


def list_requests(
    session: Session, tournament_id: Optional[int] = None, status: Optional[str] = WITHDRAWAL_REQUESTED
) -> List[TournamentTeam]:
    query = select(TournamentTeam)
    if tournament_id is not None:
        query = query.where(TournamentTeam.tournament_id == tournament_id)
    if status is not None:
        if status not in WITHDRAWAL_STATUSES:
            raise ValidationFailedError(f"Invalid withdrawal status: {status}")
        query = query.where(TournamentTeam.withdrawal_status == status)
    else:
        query = query.where(TournamentTeam.withdrawal_status != WITHDRAWAL_ACTIVE)
    return list(session.exec(query.order_by(TournamentTeam.withdrawal_requested_at, TournamentTeam.id)).all())


def withdrawal_statistics(session: Session, tournament_id: Optional[int] = None) -> Dict[str, int]:
    query = select(TournamentTeam)
    if tournament_id is not None:
        query = query.where(TournamentTeam.tournament_id == tournament_id)
    stats = {status: 0 for status in WITHDRAWAL_STATUSES}
    for entry in session.exec(query).all():
        stats[entry.withdrawal_status] = stats.get(entry.withdrawal_status, 0) + 1
    stats["total"] = sum(stats[s] for s in WITHDRAWAL_STATUSES)
    return stats
