"""Tournament formats and their match templates."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlmodel import Session, select

from matchday.database import get_session
from matchday.errors import MatchdayError, http_error
from matchday.models.match_template import PHASE_FINAL, PHASE_PRELIMINARY, MatchTemplate
from matchday.models.tournament import Tournament
from matchday.models.tournament_format import FORMAT_LEAGUE, FORMAT_TOURNAMENT, TournamentFormat
from matchday.services.source_expression import parse_source

router = APIRouter()

_FORMAT_TYPES = (FORMAT_LEAGUE, FORMAT_TOURNAMENT)


class FormatCreate(BaseModel):
    name: str
    team_count: int
    preliminary_format_type: str = FORMAT_LEAGUE
    final_format_type: str = FORMAT_TOURNAMENT
    description: Optional[str] = None

    @field_validator("team_count")
    @classmethod
    def validate_team_count(cls, v):
        if v < 2:
            raise ValueError("team_count must be >= 2")
        return v

    @field_validator("preliminary_format_type", "final_format_type")
    @classmethod
    def validate_format_type(cls, v):
        if v not in _FORMAT_TYPES:
            raise ValueError(f"format type must be one of {', '.join(_FORMAT_TYPES)}")
        return v


class FormatUpdate(BaseModel):
    name: Optional[str] = None
    team_count: Optional[int] = None
    preliminary_format_type: Optional[str] = None
    final_format_type: Optional[str] = None
    description: Optional[str] = None

    @field_validator("preliminary_format_type", "final_format_type")
    @classmethod
    def validate_format_type(cls, v):
        if v is not None and v not in _FORMAT_TYPES:
            raise ValueError(f"format type must be one of {', '.join(_FORMAT_TYPES)}")
        return v


class FormatResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    team_count: int
    preliminary_format_type: str
    final_format_type: str
    description: Optional[str]
    created_at: datetime


class TemplateCreate(BaseModel):
    match_number: int
    match_code: str
    match_type: str = "normal"
    phase: str = PHASE_PRELIMINARY
    round_name: Optional[str] = None
    block_name: Optional[str] = None
    team1_source: Optional[str] = None
    team2_source: Optional[str] = None
    team1_display_name: str
    team2_display_name: str
    day_number: int = 1
    execution_priority: int = 1
    court_number: Optional[int] = None
    suggested_start_time: Optional[str] = None
    is_bye_match: bool = False
    winner_position: Optional[int] = None
    loser_position_start: Optional[int] = None
    loser_position_end: Optional[int] = None
    position_note: Optional[str] = None

    @field_validator("phase")
    @classmethod
    def validate_phase(cls, v):
        if v not in (PHASE_PRELIMINARY, PHASE_FINAL):
            raise ValueError("phase must be 'preliminary' or 'final'")
        return v

    @model_validator(mode="after")
    def validate_positions(self):
        if self.loser_position_start is not None and self.loser_position_end is not None:
            if self.loser_position_end < self.loser_position_start:
                raise ValueError("loser_position_end must be >= loser_position_start")
        return self


class TemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    format_id: int
    match_number: int
    match_code: str
    match_type: str
    phase: str
    round_name: Optional[str]
    block_name: Optional[str]
    team1_source: Optional[str]
    team2_source: Optional[str]
    team1_display_name: str
    team2_display_name: str
    day_number: int
    execution_priority: int
    court_number: Optional[int]
    suggested_start_time: Optional[str]
    is_bye_match: bool
    winner_position: Optional[int]
    loser_position_start: Optional[int]
    loser_position_end: Optional[int]
    position_note: Optional[str]


def _get_format(session: Session, format_id: int) -> TournamentFormat:
    fmt = session.get(TournamentFormat, format_id)
    if not fmt:
        raise HTTPException(status_code=404, detail="Tournament format not found")
    return fmt


@router.get("/tournament-formats", response_model=List[FormatResponse])
def list_formats(session: Session = Depends(get_session)):
    return session.exec(select(TournamentFormat).order_by(TournamentFormat.team_count, TournamentFormat.id)).all()


@router.post("/tournament-formats", response_model=FormatResponse, status_code=201)
def create_format(data: FormatCreate, session: Session = Depends(get_session)):
    fmt = TournamentFormat(**data.model_dump())
    session.add(fmt)
    session.commit()
    session.refresh(fmt)
    return fmt


@router.get("/tournament-formats/{format_id}", response_model=FormatResponse)
def get_format(format_id: int, session: Session = Depends(get_session)):
    return _get_format(session, format_id)


@router.put("/tournament-formats/{format_id}", response_model=FormatResponse)
def update_format(format_id: int, data: FormatUpdate, session: Session = Depends(get_session)):
    fmt = _get_format(session, format_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(fmt, key, value)
    session.add(fmt)
    session.commit()
    session.refresh(fmt)
    return fmt


@router.delete("/tournament-formats/{format_id}", status_code=204)
def delete_format(format_id: int, session: Session = Depends(get_session)):
    """Delete a format and its templates. Formats in use by a tournament cannot be deleted."""
    fmt = _get_format(session, format_id)
    in_use = session.exec(select(Tournament.id).where(Tournament.format_id == format_id)).first()
    if in_use is not None:
        raise HTTPException(status_code=409, detail="Format is used by a tournament")
    for template in session.exec(select(MatchTemplate).where(MatchTemplate.format_id == format_id)).all():
        session.delete(template)
    session.delete(fmt)
    session.commit()
    return Response(status_code=204)


@router.get("/tournament-formats/{format_id}/templates", response_model=List[TemplateResponse])
def list_templates(format_id: int, session: Session = Depends(get_session)):
    """Templates in play order: execution_priority, then match_number"""
    _get_format(session, format_id)
    return session.exec(
        select(MatchTemplate)
        .where(MatchTemplate.format_id == format_id)
        .order_by(MatchTemplate.execution_priority, MatchTemplate.match_number)
    ).all()


@router.post("/tournament-formats/{format_id}/templates", response_model=TemplateResponse, status_code=201)
def create_template(format_id: int, data: TemplateCreate, session: Session = Depends(get_session)):
    _get_format(session, format_id)
    try:
        parse_source(data.team1_source)
        parse_source(data.team2_source)
    except MatchdayError as e:
        raise http_error(e)

    existing = session.exec(
        select(MatchTemplate).where(MatchTemplate.format_id == format_id, MatchTemplate.match_code == data.match_code)
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail=f"Template {data.match_code} already exists for this format")

    template = MatchTemplate(format_id=format_id, **data.model_dump())
    session.add(template)
    session.commit()
    session.refresh(template)
    return template
