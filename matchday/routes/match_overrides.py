"""Administrator overrides of template team sources, per tournament and match code."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from matchday.database import get_session
from matchday.errors import MatchdayError, http_error
from matchday.services import override_service

router = APIRouter()


class OverrideCreate(BaseModel):
    match_code: str
    team1_source_override: Optional[str] = None
    team2_source_override: Optional[str] = None
    override_reason: Optional[str] = None
    overridden_by: Optional[str] = None


class OverrideUpdate(BaseModel):
    team1_source_override: Optional[str] = None
    team2_source_override: Optional[str] = None
    override_reason: Optional[str] = None
    overridden_by: Optional[str] = None


class BulkOverrideRequest(BaseModel):
    overrides: List[OverrideCreate]


class OverrideResponse(BaseModel):
    id: int
    tournament_id: int
    match_code: str
    team1_source_override: Optional[str]
    team2_source_override: Optional[str]
    override_reason: Optional[str]
    overridden_by: Optional[str]
    overridden_at: datetime
    original_team1_source: Optional[str] = None
    original_team2_source: Optional[str] = None
    team1_display_name: Optional[str] = None
    team2_display_name: Optional[str] = None
    round_name: Optional[str] = None
    phase: Optional[str] = None


@router.get("/tournaments/{tournament_id}/match-overrides", response_model=List[OverrideResponse])
def list_overrides(tournament_id: int, session: Session = Depends(get_session)):
    """Overrides with the template's original sources alongside"""
    try:
        return override_service.list_overrides(session, tournament_id)
    except MatchdayError as e:
        raise http_error(e)


@router.post("/tournaments/{tournament_id}/match-overrides", status_code=201)
def create_override(
    tournament_id: int, data: OverrideCreate, session: Session = Depends(get_session)
) -> Dict[str, Any]:
    try:
        override, replay = override_service.create_override(session, tournament_id, data.model_dump())
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": override.model_dump(), "applied": replay}


@router.put("/tournaments/{tournament_id}/match-overrides/{override_id}")
def update_override(
    tournament_id: int, override_id: int, data: OverrideUpdate, session: Session = Depends(get_session)
) -> Dict[str, Any]:
    try:
        override, replay = override_service.update_override(
            session, tournament_id, override_id, data.model_dump(exclude_unset=True)
        )
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": override.model_dump(), "applied": replay}


@router.delete("/tournaments/{tournament_id}/match-overrides/{override_id}")
def delete_override(tournament_id: int, override_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    try:
        result = override_service.delete_override(session, tournament_id, override_id)
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": result}


@router.delete("/tournaments/{tournament_id}/match-overrides")
def delete_all_overrides(tournament_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    try:
        result = override_service.delete_all_overrides(session, tournament_id)
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": result}


@router.post("/tournaments/{tournament_id}/match-overrides/bulk")
def bulk_overrides(
    tournament_id: int, data: BulkOverrideRequest, session: Session = Depends(get_session)
) -> Dict[str, Any]:
    """Create or update several overrides by match_code in one transaction"""
    try:
        saved, replay = override_service.bulk_upsert_overrides(
            session, tournament_id, [o.model_dump() for o in data.overrides]
        )
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": [o.model_dump() for o in saved], "applied": replay}
