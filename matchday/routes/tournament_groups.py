from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from matchday.database import get_session
from matchday.models.tournament import Tournament
from matchday.models.tournament_group import TournamentGroup
from matchday.routes.tournaments import TournamentResponse

router = APIRouter()


class TournamentGroupCreate(BaseModel):
    name: str
    organizer: Optional[str] = None
    venue: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class TournamentGroupUpdate(BaseModel):
    name: Optional[str] = None
    organizer: Optional[str] = None
    venue: Optional[str] = None
    description: Optional[str] = None


class TournamentGroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    organizer: Optional[str]
    venue: Optional[str]
    description: Optional[str]
    created_at: datetime


def _get_group(session: Session, group_id: int) -> TournamentGroup:
    group = session.get(TournamentGroup, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Tournament group not found")
    return group


@router.get("/tournament-groups", response_model=List[TournamentGroupResponse])
def list_groups(session: Session = Depends(get_session)):
    """List tournament groups, newest first"""
    return session.exec(select(TournamentGroup).order_by(TournamentGroup.created_at.desc(), TournamentGroup.id)).all()


@router.post("/tournament-groups", response_model=TournamentGroupResponse, status_code=201)
def create_group(data: TournamentGroupCreate, session: Session = Depends(get_session)):
    group = TournamentGroup(**data.model_dump())
    session.add(group)
    session.commit()
    session.refresh(group)
    return group


@router.get("/tournament-groups/{group_id}", response_model=TournamentGroupResponse)
def get_group(group_id: int, session: Session = Depends(get_session)):
    return _get_group(session, group_id)


@router.put("/tournament-groups/{group_id}", response_model=TournamentGroupResponse)
def update_group(group_id: int, data: TournamentGroupUpdate, session: Session = Depends(get_session)):
    group = _get_group(session, group_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(group, key, value)
    session.add(group)
    session.commit()
    session.refresh(group)
    return group


@router.delete("/tournament-groups/{group_id}", status_code=204)
def delete_group(group_id: int, session: Session = Depends(get_session)):
    """Delete a group. Groups that still hold tournaments cannot be deleted."""
    group = _get_group(session, group_id)
    has_tournaments = session.exec(select(Tournament.id).where(Tournament.group_id == group_id)).first()
    if has_tournaments is not None:
        raise HTTPException(status_code=409, detail="Group still has tournaments")
    session.delete(group)
    session.commit()
    return Response(status_code=204)


@router.get("/tournament-groups/{group_id}/tournaments", response_model=List[TournamentResponse])
def list_group_tournaments(group_id: int, session: Session = Depends(get_session)):
    _get_group(session, group_id)
    return session.exec(
        select(Tournament).where(Tournament.group_id == group_id).order_by(Tournament.event_start_date, Tournament.id)
    ).all()
