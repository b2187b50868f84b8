"""Administrative maintenance endpoints."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlmodel import Session

from matchday.database import get_session
from matchday.errors import MatchdayError, http_error
from matchday.services.data_deletion_service import delete_tournament_data

logger = logging.getLogger(__name__)

router = APIRouter()


@router.delete("/admin/tournaments/{tournament_id}/data")
def delete_data(tournament_id: int, session: Session = Depends(get_session)):
    """Delete a tournament and everything under it, step by step.

    A failure on a critical table stops the run and returns 500 with the partial report.
    """
    try:
        report = delete_tournament_data(session, tournament_id)
    except MatchdayError as e:
        raise http_error(e)

    if report["partial_deletion"]:
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": f"Deletion stopped at {report['aborted_at']}",
                "partial_deletion": True,
                "data": report,
            },
        )
    return {"success": True, "data": report}
