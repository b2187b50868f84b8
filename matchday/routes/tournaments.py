import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlmodel import Session, select

from matchday.database import get_session
from matchday.errors import MatchdayError, http_error
from matchday.models.match_template import PHASE_FINAL, PHASE_PRELIMINARY
from matchday.models.tournament import Tournament
from matchday.models.tournament_format import TournamentFormat
from matchday.models.tournament_group import TournamentGroup
from matchday.services import rules_service
from matchday.services.data_deletion_service import delete_tournament_data
from matchday.services.draw_service import generate_structure
from matchday.services.duplication_service import duplicate_tournament
from matchday.services.tournament_status import calculate_status

logger = logging.getLogger(__name__)

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    format_id: int
    group_id: Optional[int] = None
    venue: Optional[str] = None
    team_count: Optional[int] = None
    court_count: int = 1
    match_duration_minutes: int = 15
    break_duration_minutes: int = 5
    event_start_date: date
    event_end_date: date
    recruitment_start_date: Optional[date] = None
    recruitment_end_date: Optional[date] = None
    is_public: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("court_count")
    @classmethod
    def validate_court_count(cls, v):
        if v < 1:
            raise ValueError("court_count must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.event_end_date < self.event_start_date:
            raise ValueError("event_end_date must be >= event_start_date")
        if self.recruitment_start_date and self.recruitment_end_date:
            if self.recruitment_end_date < self.recruitment_start_date:
                raise ValueError("recruitment_end_date must be >= recruitment_start_date")
        return self


class TournamentUpdate(BaseModel):
    name: Optional[str] = None
    group_id: Optional[int] = None
    venue: Optional[str] = None
    court_count: Optional[int] = None
    match_duration_minutes: Optional[int] = None
    break_duration_minutes: Optional[int] = None
    event_start_date: Optional[date] = None
    event_end_date: Optional[date] = None
    recruitment_start_date: Optional[date] = None
    recruitment_end_date: Optional[date] = None
    is_public: Optional[bool] = None

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.event_start_date and self.event_end_date and self.event_end_date < self.event_start_date:
            raise ValueError("event_end_date must be >= event_start_date")
        return self


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    group_id: Optional[int]
    format_id: int
    name: str
    venue: Optional[str]
    team_count: int
    court_count: int
    match_duration_minutes: int
    break_duration_minutes: int
    event_start_date: date
    event_end_date: date
    recruitment_start_date: Optional[date]
    recruitment_end_date: Optional[date]
    status: str
    is_public: bool
    created_at: datetime
    updated_at: datetime


class TournamentStatusResponse(BaseModel):
    tournament_id: int
    status: str
    calculated_status: str


class DuplicateRequest(BaseModel):
    name: Optional[str] = None


class DuplicateResponse(BaseModel):
    tournament: TournamentResponse
    rules_copied: int
    teams_copied: int
    players_copied: int
    blocks_created: int
    matches_created: int
    slots_filled: int


class RuleUpdate(BaseModel):
    use_extra_time: Optional[bool] = None
    use_penalty: Optional[bool] = None
    win_points: Optional[int] = None
    draw_points: Optional[int] = None
    loss_points: Optional[int] = None
    walkover_winner_goals: Optional[int] = None
    walkover_loser_goals: Optional[int] = None
    tie_breaking_rules: Optional[List[str]] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_non_negative(self):
        for key in ("walkover_winner_goals", "walkover_loser_goals"):
            value = getattr(self, key)
            if value is not None and value < 0:
                raise ValueError(f"{key} must be >= 0")
        return self


class RuleResponse(BaseModel):
    tournament_id: int
    phase: str
    use_extra_time: bool = False
    use_penalty: bool = False
    win_points: int
    draw_points: int
    loss_points: int
    walkover_winner_goals: int
    walkover_loser_goals: int
    tie_breaking_rules: List[str]
    notes: Optional[str] = None
    is_default: bool = False


def _get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def _check_phase(phase: str) -> None:
    if phase not in (PHASE_PRELIMINARY, PHASE_FINAL):
        raise HTTPException(status_code=422, detail="phase must be 'preliminary' or 'final'")


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(group_id: Optional[int] = None, session: Session = Depends(get_session)):
    """List tournaments, optionally for one group"""
    query = select(Tournament)
    if group_id is not None:
        query = query.where(Tournament.group_id == group_id)
    return session.exec(query.order_by(Tournament.event_start_date.desc(), Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a tournament and generate its blocks and matches from the format templates"""
    fmt = session.get(TournamentFormat, data.format_id)
    if not fmt:
        raise HTTPException(status_code=404, detail="Tournament format not found")
    if data.group_id is not None and not session.get(TournamentGroup, data.group_id):
        raise HTTPException(status_code=404, detail="Tournament group not found")

    values = data.model_dump()
    if values.get("team_count") is None:
        values["team_count"] = fmt.team_count
    try:
        tournament = Tournament(**values)
        session.add(tournament)
        session.flush()
        generate_structure(session, tournament)
        session.commit()
        session.refresh(tournament)
        return tournament
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        session.rollback()
        logger.exception("Tournament creation failed")
        raise HTTPException(status_code=500, detail=f"Failed to create tournament: {str(e)}")


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    return _get_tournament(session, tournament_id)


@router.put("/tournaments/{tournament_id}", response_model=TournamentResponse)
def update_tournament(tournament_id: int, data: TournamentUpdate, session: Session = Depends(get_session)):
    tournament = _get_tournament(session, tournament_id)
    updates = data.model_dump(exclude_unset=True)

    start = updates.get("event_start_date", tournament.event_start_date)
    end = updates.get("event_end_date", tournament.event_end_date)
    if end < start:
        raise HTTPException(status_code=422, detail="event_end_date must be >= event_start_date")
    if updates.get("group_id") is not None and not session.get(TournamentGroup, updates["group_id"]):
        raise HTTPException(status_code=404, detail="Tournament group not found")

    for key, value in updates.items():
        setattr(tournament, key, value)
    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Delete a tournament and all data under it"""
    _get_tournament(session, tournament_id)
    report = delete_tournament_data(session, tournament_id)
    if not report["success"]:
        raise HTTPException(status_code=500, detail=f"Deletion stopped at {report['aborted_at']}")
    return Response(status_code=204)


@router.get("/tournaments/{tournament_id}/status", response_model=TournamentStatusResponse)
def get_tournament_status(tournament_id: int, session: Session = Depends(get_session)):
    tournament = _get_tournament(session, tournament_id)
    return TournamentStatusResponse(
        tournament_id=tournament.id,
        status=tournament.status,
        calculated_status=calculate_status(session, tournament),
    )


@router.post("/tournaments/{tournament_id}/duplicate", response_model=DuplicateResponse, status_code=201)
def duplicate(tournament_id: int, data: DuplicateRequest, session: Session = Depends(get_session)):
    """Copy setup and registrations into a new tournament; results are not copied"""
    _get_tournament(session, tournament_id)
    try:
        return duplicate_tournament(session, tournament_id, data.name)
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    except Exception as e:
        session.rollback()
        logger.exception("Tournament duplication failed")
        raise HTTPException(status_code=500, detail=f"Failed to duplicate tournament: {str(e)}")


def _rule_response(session: Session, tournament_id: int, phase: str) -> RuleResponse:
    rule = rules_service.get_rule(session, tournament_id, phase)
    points = rules_service.get_point_system(session, tournament_id, phase)
    walkover = rules_service.get_walkover_settings(session, tournament_id)
    return RuleResponse(
        tournament_id=tournament_id,
        phase=phase,
        use_extra_time=rule.use_extra_time if rule else False,
        use_penalty=rule.use_penalty if rule else False,
        win_points=points.win,
        draw_points=points.draw,
        loss_points=points.loss,
        walkover_winner_goals=rule.walkover_winner_goals if rule else walkover.winner_goals,
        walkover_loser_goals=rule.walkover_loser_goals if rule else walkover.loser_goals,
        tie_breaking_rules=rules_service.get_tie_breaking_rules(session, tournament_id, phase),
        notes=rule.notes if rule else None,
        is_default=rule is None,
    )


@router.get("/tournaments/{tournament_id}/rules/{phase}", response_model=RuleResponse)
def get_rules(tournament_id: int, phase: str, session: Session = Depends(get_session)):
    """Rules for one phase; defaults are returned when none are saved"""
    _get_tournament(session, tournament_id)
    _check_phase(phase)
    return _rule_response(session, tournament_id, phase)


@router.put("/tournaments/{tournament_id}/rules/{phase}", response_model=RuleResponse)
def update_rules(tournament_id: int, phase: str, data: RuleUpdate, session: Session = Depends(get_session)):
    _get_tournament(session, tournament_id)
    _check_phase(phase)
    try:
        rules_service.upsert_rule(session, tournament_id, phase, data.model_dump(exclude_unset=True))
        session.commit()
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return _rule_response(session, tournament_id, phase)
