from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from matchday.database import get_session
from matchday.errors import MatchdayError, http_error
from matchday.routes.participants import ParticipantResponse
from matchday.services import withdrawal_service
from matchday.services.withdrawal_service import ACTION_APPROVE, ACTION_REJECT

router = APIRouter()


class WithdrawalRequest(BaseModel):
    reason: str


class ProcessRequest(BaseModel):
    action: str
    processed_by: Optional[str] = None
    comment: Optional[str] = None

    @field_validator("action")
    @classmethod
    def validate_action(cls, v):
        if v not in (ACTION_APPROVE, ACTION_REJECT):
            raise ValueError("action must be 'approve' or 'reject'")
        return v


class BulkProcessRequest(ProcessRequest):
    tournament_team_ids: List[int]


@router.post("/participants/{participant_id}/withdrawal", response_model=ParticipantResponse)
def request_withdrawal(participant_id: int, data: WithdrawalRequest, session: Session = Depends(get_session)):
    try:
        return withdrawal_service.request_withdrawal(session, participant_id, data.reason)
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)


@router.get("/withdrawal-requests", response_model=List[ParticipantResponse])
def list_withdrawal_requests(
    tournament_id: Optional[int] = None,
    status: Optional[str] = "withdrawal_requested",
    session: Session = Depends(get_session),
):
    """Pending requests by default; pass status=all for every non-active registration"""
    try:
        return withdrawal_service.list_requests(session, tournament_id, None if status == "all" else status)
    except MatchdayError as e:
        raise http_error(e)


@router.get("/withdrawal-requests/{participant_id}/impact")
def withdrawal_impact(participant_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    try:
        return withdrawal_service.analyze_impact(session, participant_id)
    except MatchdayError as e:
        raise http_error(e)


@router.post("/withdrawal-requests/{participant_id}/process")
def process_withdrawal(
    participant_id: int, data: ProcessRequest, session: Session = Depends(get_session)
) -> Dict[str, Any]:
    try:
        result = withdrawal_service.process_withdrawal(
            session, participant_id, data.action, data.processed_by, data.comment
        )
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": result}


@router.post("/withdrawal-requests/bulk-process")
def bulk_process(data: BulkProcessRequest, session: Session = Depends(get_session)) -> Dict[str, Any]:
    result = withdrawal_service.bulk_process(
        session, data.tournament_team_ids, data.action, data.processed_by, data.comment
    )
    return {"success": result["failed"] == 0, "data": result}


@router.get("/withdrawal-statistics")
def withdrawal_statistics(
    tournament_id: Optional[int] = None, session: Session = Depends(get_session)
) -> Dict[str, int]:
    return withdrawal_service.withdrawal_statistics(session, tournament_id)
