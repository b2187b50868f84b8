"""Master teams and their player rosters."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from matchday.database import get_session
from matchday.models.player import Player
from matchday.models.team import Team
from matchday.models.tournament_player import TournamentPlayer

router = APIRouter()


class TeamCreate(BaseModel):
    name: str
    omission: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class TeamUpdate(BaseModel):
    name: Optional[str] = None
    omission: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    is_active: Optional[bool] = None


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    omission: Optional[str]
    contact_person: Optional[str]
    contact_email: Optional[str]
    contact_phone: Optional[str]
    is_active: bool
    created_at: datetime


class PlayerCreate(BaseModel):
    name: str
    jersey_number: Optional[int] = None

    @field_validator("jersey_number")
    @classmethod
    def validate_jersey(cls, v):
        if v is not None and not (0 <= v <= 999):
            raise ValueError("jersey_number must be between 0 and 999")
        return v


class PlayerUpdate(BaseModel):
    name: Optional[str] = None
    jersey_number: Optional[int] = None
    is_active: Optional[bool] = None


class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    team_id: int
    name: str
    jersey_number: Optional[int]
    is_active: bool


def _get_team(session: Session, team_id: int) -> Team:
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


def _get_player(session: Session, player_id: int) -> Player:
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return player


def _check_jersey(session: Session, team_id: int, jersey_number: Optional[int], player_id: Optional[int] = None):
    if jersey_number is None:
        return
    clash = session.exec(
        select(Player).where(
            Player.team_id == team_id, Player.jersey_number == jersey_number, Player.is_active == True  # noqa: E712
        )
    ).first()
    if clash and clash.id != player_id:
        raise HTTPException(status_code=409, detail=f"Jersey number {jersey_number} is already used by {clash.name}")


@router.get("/teams", response_model=List[TeamResponse])
def list_teams(session: Session = Depends(get_session)):
    return session.exec(select(Team).order_by(Team.name, Team.id)).all()


@router.post("/teams", response_model=TeamResponse, status_code=201)
def create_team(data: TeamCreate, session: Session = Depends(get_session)):
    team = Team(**data.model_dump())
    session.add(team)
    session.commit()
    session.refresh(team)
    return team


@router.get("/teams/{team_id}", response_model=TeamResponse)
def get_team(team_id: int, session: Session = Depends(get_session)):
    return _get_team(session, team_id)


@router.put("/teams/{team_id}", response_model=TeamResponse)
def update_team(team_id: int, data: TeamUpdate, session: Session = Depends(get_session)):
    team = _get_team(session, team_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(team, key, value)
    session.add(team)
    session.commit()
    session.refresh(team)
    return team


@router.get("/teams/{team_id}/players", response_model=List[PlayerResponse])
def list_players(team_id: int, session: Session = Depends(get_session)):
    """Active and inactive players; stable order by jersey number (nulls last), then name"""
    _get_team(session, team_id)
    players = session.exec(select(Player).where(Player.team_id == team_id)).all()
    return sorted(players, key=lambda p: (p.jersey_number is None, p.jersey_number or 0, p.name))


@router.post("/teams/{team_id}/players", response_model=PlayerResponse, status_code=201)
def create_player(team_id: int, data: PlayerCreate, session: Session = Depends(get_session)):
    _get_team(session, team_id)
    _check_jersey(session, team_id, data.jersey_number)
    player = Player(team_id=team_id, **data.model_dump())
    session.add(player)
    session.commit()
    session.refresh(player)
    return player


@router.put("/players/{player_id}", response_model=PlayerResponse)
def update_player(player_id: int, data: PlayerUpdate, session: Session = Depends(get_session)):
    player = _get_player(session, player_id)
    updates = data.model_dump(exclude_unset=True)
    if "jersey_number" in updates:
        _check_jersey(session, player.team_id, updates["jersey_number"], player.id)
    for key, value in updates.items():
        setattr(player, key, value)
    session.add(player)
    session.commit()
    session.refresh(player)
    return player


@router.delete("/players/{player_id}", status_code=204)
def delete_player(player_id: int, session: Session = Depends(get_session)):
    """Remove a player. Players entered in a tournament are deactivated instead."""
    player = _get_player(session, player_id)
    entered = session.exec(select(TournamentPlayer.id).where(TournamentPlayer.player_id == player_id)).first()
    if entered is not None:
        player.is_active = False
        session.add(player)
    else:
        session.delete(player)
    session.commit()
    return Response(status_code=204)
