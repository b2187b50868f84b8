"""
Step-wise deletion of all data belonging to a tournament.

Each step deletes from one table and commits on its own so a report can say exactly
what was removed. A failing step on a non-critical table is logged and skipped; a
failing step on a critical table stops the run and the tournament row is kept.
"""
import logging
import time
from dataclasses import dataclass
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from matchday.services.template_sources import get_tournament

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeletionStep:
    table: str
    description: str
    critical: bool = False
    key: str = "tournament_id"


DELETION_STEPS: List[DeletionStep] = [
    DeletionStep("tournamentplayer", "Tournament player entries"),
    DeletionStep("tournamentrule", "Tournament rules"),
    DeletionStep("matchoverride", "Match source overrides"),
    DeletionStep("finalmatch", "Confirmed match results", critical=True),
    DeletionStep("livematch", "Live matches", critical=True),
    DeletionStep("tournamentteam", "Team registrations"),
    DeletionStep("matchblock", "Match blocks", critical=True),
    DeletionStep("tournament", "Tournament", critical=True, key="id"),
]


def _run_step(session: Session, step_number: int, step: DeletionStep, tournament_id: int) -> Dict:
    started = time.perf_counter()
    report = {
        "step": step_number,
        "table": step.table,
        "description": step.description,
        "rows_deleted": 0,
        "success": False,
        "error": None,
    }
    try:
        result = session.execute(
            text(f"DELETE FROM {step.table} WHERE {step.key} = :tournament_id"),
            {"tournament_id": tournament_id},
        )
        session.commit()
        report["rows_deleted"] = result.rowcount or 0
        report["success"] = True
    except SQLAlchemyError as e:
        session.rollback()
        report["error"] = str(e)
        logger.error("Deletion step %s (%s) failed for tournament %s: %s", step_number, step.table, tournament_id, e)
    report["execution_time_ms"] = round((time.perf_counter() - started) * 1000, 2)
    return report


def delete_tournament_data(session: Session, tournament_id: int) -> Dict:
    """Delete a tournament and everything under it. Returns a per-step report."""
    tournament = get_tournament(session, tournament_id)
    tournament_name = tournament.name
    session.expunge_all()

    steps: List[Dict] = []
    aborted_at = None
    for number, step in enumerate(DELETION_STEPS, start=1):
        report = _run_step(session, number, step, tournament_id)
        steps.append(report)
        if not report["success"] and step.critical:
            aborted_at = step.table
            break

    total_deleted = sum(s["rows_deleted"] for s in steps)
    failed = [s["table"] for s in steps if not s["success"]]
    if aborted_at is not None:
        logger.error("Deletion of tournament %s aborted at %s", tournament_id, aborted_at)
    else:
        logger.info("Deleted tournament %s (%s rows, %s skipped steps)", tournament_id, total_deleted, len(failed))

    return {
        "success": aborted_at is None,
        "partial_deletion": aborted_at is not None,
        "tournament_id": tournament_id,
        "tournament_name": tournament_name,
        "aborted_at": aborted_at,
        "total_rows_deleted": total_deleted,
        "failed_steps": failed,
        "steps": steps,
    }
