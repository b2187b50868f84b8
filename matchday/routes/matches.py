"""
Live match editing and the result workflow: confirm, unconfirm, cancel, uncancel.
Confirming refreshes standings, promotion and bracket progression in one request.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import Session

from matchday.database import get_session
from matchday.errors import MatchdayError, http_error
from matchday.models.final_match import FinalMatch
from matchday.models.live_match import CANCELLATION_TYPES
from matchday.models.tournament import Tournament
from matchday.services import match_result_service

router = APIRouter()


class MatchUpdate(BaseModel):
    team1_tournament_team_id: Optional[int] = None
    team2_tournament_team_id: Optional[int] = None
    team1_scores: Optional[str] = None
    team2_scores: Optional[str] = None
    winner_tournament_team_id: Optional[int] = None
    is_draw: Optional[bool] = None
    match_status: Optional[str] = None
    current_period: Optional[int] = Field(default=None, ge=1)
    court_number: Optional[int] = None
    start_time: Optional[str] = None
    tournament_date: Optional[date] = None
    remarks: Optional[str] = None

    @field_validator("team1_scores", "team2_scores")
    @classmethod
    def validate_scores(cls, v):
        if v is None:
            return v
        parts = [p.strip() for p in v.split(",")]
        if not all(p.isdigit() for p in parts):
            raise ValueError("scores must be comma-separated non-negative integers")
        return ",".join(parts)


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    match_block_id: int
    match_number: int
    match_code: str
    tournament_date: Optional[date]
    court_number: Optional[int]
    start_time: Optional[str]
    team1_tournament_team_id: Optional[int]
    team2_tournament_team_id: Optional[int]
    team1_display_name: str
    team2_display_name: str
    team1_scores: Optional[str]
    team2_scores: Optional[str]
    winner_tournament_team_id: Optional[int]
    is_draw: bool
    is_walkover: bool
    match_status: str
    current_period: Optional[int] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    cancellation_type: Optional[str]
    remarks: Optional[str]
    is_confirmed: bool = False
    updated_at: datetime


class ConfirmRequest(BaseModel):
    confirmed_by: Optional[str] = None


class BulkConfirmRequest(BaseModel):
    match_ids: List[int]
    confirmed_by: Optional[str] = None


class CancelRequest(BaseModel):
    cancellation_type: str
    remarks: Optional[str] = None

    @field_validator("cancellation_type")
    @classmethod
    def validate_cancellation_type(cls, v):
        if v not in CANCELLATION_TYPES:
            raise ValueError(f"cancellation_type must be one of {', '.join(CANCELLATION_TYPES)}")
        return v


def _response(session: Session, match) -> MatchResponse:
    data = MatchResponse.model_validate(match)
    data.is_confirmed = session.get(FinalMatch, match.id) is not None
    return data


@router.get("/tournaments/{tournament_id}/matches", response_model=List[MatchResponse])
def list_matches(tournament_id: int, block_id: Optional[int] = None, session: Session = Depends(get_session)):
    """Live matches of a tournament in block, then match number order"""
    if not session.get(Tournament, tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")
    return match_result_service.list_matches(session, tournament_id, block_id)


@router.get("/matches/{match_id}", response_model=MatchResponse)
def get_match(match_id: int, session: Session = Depends(get_session)):
    try:
        return _response(session, match_result_service.get_live_match(session, match_id))
    except MatchdayError as e:
        raise http_error(e)


@router.patch("/matches/{match_id}", response_model=MatchResponse)
def update_match(match_id: int, data: MatchUpdate, session: Session = Depends(get_session)):
    """Edit teams, scores, winner, status or schedule of an unconfirmed match.
    If scores change without a winner, the winner follows the goal totals."""
    try:
        match = match_result_service.update_live_match(session, match_id, data.model_dump(exclude_unset=True))
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return _response(session, match)


@router.post("/matches/{match_id}/confirm")
def confirm_match(
    match_id: int, data: Optional[ConfirmRequest] = None, session: Session = Depends(get_session)
) -> Dict[str, Any]:
    try:
        result = match_result_service.confirm_match(session, match_id, data.confirmed_by if data else None)
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": result}


@router.post("/tournaments/{tournament_id}/matches/confirm")
def confirm_matches(
    tournament_id: int, data: BulkConfirmRequest, session: Session = Depends(get_session)
) -> Dict[str, Any]:
    """Confirm several matches at once; matches that cannot be confirmed are reported as skipped"""
    if not session.get(Tournament, tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")
    try:
        result = match_result_service.confirm_matches(session, data.match_ids, data.confirmed_by)
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": result}


@router.post("/matches/{match_id}/unconfirm")
def unconfirm_match(match_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    try:
        result = match_result_service.unconfirm_match(session, match_id)
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": result}


@router.post("/matches/{match_id}/cancel")
def cancel_match(match_id: int, data: CancelRequest, session: Session = Depends(get_session)) -> Dict[str, Any]:
    try:
        result = match_result_service.cancel_match(session, match_id, data.cancellation_type, data.remarks)
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": result}


@router.post("/matches/{match_id}/uncancel")
def uncancel_match(match_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    try:
        result = match_result_service.uncancel_match(session, match_id)
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": result}
