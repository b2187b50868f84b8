"""Tournament registrations, their player entries and the block draw."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session, select

from matchday.database import get_session
from matchday.errors import MatchdayError, http_error
from matchday.models.final_match import FinalMatch
from matchday.models.live_match import LiveMatch
from matchday.models.player import Player
from matchday.models.team import Team
from matchday.models.tournament import Tournament
from matchday.models.tournament_player import TournamentPlayer
from matchday.models.tournament_team import TournamentTeam
from matchday.services import draw_service

router = APIRouter()


class ParticipantCreate(BaseModel):
    team_id: int
    team_name: Optional[str] = None
    team_omission: Optional[str] = None


class ParticipantUpdate(BaseModel):
    team_name: Optional[str] = None
    team_omission: Optional[str] = None


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    team_id: int
    team_name: str
    team_omission: Optional[str]
    assigned_block: Optional[str]
    block_position: Optional[int]
    withdrawal_status: str
    withdrawal_reason: Optional[str]
    withdrawal_requested_at: Optional[datetime]
    withdrawal_processed_at: Optional[datetime]
    withdrawal_processed_by: Optional[str]
    withdrawal_admin_comment: Optional[str]
    created_at: datetime


class PlayerEntry(BaseModel):
    player_id: int
    jersey_number: Optional[int] = None


class PlayerEntriesUpdate(BaseModel):
    players: List[PlayerEntry]


class PlayerEntryResponse(BaseModel):
    player_id: int
    name: str
    jersey_number: Optional[int]


class DrawAssignment(BaseModel):
    tournament_team_id: int
    block_name: str
    block_position: int


class DrawUpdate(BaseModel):
    assignments: List[DrawAssignment]


def _get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def _get_participant(session: Session, participant_id: int) -> TournamentTeam:
    entry = session.get(TournamentTeam, participant_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Participant not found")
    return entry


def _name_taken(session: Session, tournament_id: int, team_name: str, exclude_id: Optional[int] = None) -> bool:
    existing = session.exec(
        select(TournamentTeam).where(TournamentTeam.tournament_id == tournament_id, TournamentTeam.team_name == team_name)
    ).first()
    return existing is not None and existing.id != exclude_id


@router.get("/tournaments/{tournament_id}/participants", response_model=List[ParticipantResponse])
def list_participants(tournament_id: int, session: Session = Depends(get_session)):
    """Registrations in draw order (block, position), unassigned teams last"""
    _get_tournament(session, tournament_id)
    entries = session.exec(select(TournamentTeam).where(TournamentTeam.tournament_id == tournament_id)).all()
    return sorted(
        entries,
        key=lambda t: (t.assigned_block is None, t.assigned_block or "", t.block_position or 0, t.id),
    )


@router.post("/tournaments/{tournament_id}/participants", response_model=ParticipantResponse, status_code=201)
def register_participant(tournament_id: int, data: ParticipantCreate, session: Session = Depends(get_session)):
    """Register a master team. The same team may enter twice under a different team_name."""
    _get_tournament(session, tournament_id)
    team = session.get(Team, data.team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")

    team_name = (data.team_name or team.name).strip()
    if _name_taken(session, tournament_id, team_name):
        raise HTTPException(status_code=409, detail=f"Team name '{team_name}' is already registered in this tournament")

    entry = TournamentTeam(
        tournament_id=tournament_id,
        team_id=team.id,
        team_name=team_name,
        team_omission=data.team_omission or team.omission,
    )
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


@router.put("/participants/{participant_id}", response_model=ParticipantResponse)
def update_participant(participant_id: int, data: ParticipantUpdate, session: Session = Depends(get_session)):
    """Rename a registration. Unconfirmed matches pick up the new display name."""
    entry = _get_participant(session, participant_id)
    updates = data.model_dump(exclude_unset=True)
    if updates.get("team_name") and _name_taken(session, entry.tournament_id, updates["team_name"], entry.id):
        raise HTTPException(status_code=409, detail=f"Team name '{updates['team_name']}' is already registered")

    for key, value in updates.items():
        setattr(entry, key, value)
    entry.updated_at = datetime.utcnow()
    session.add(entry)

    confirmed = set(
        session.exec(select(FinalMatch.match_id).where(FinalMatch.tournament_id == entry.tournament_id)).all()
    )
    matches = session.exec(
        select(LiveMatch).where(
            LiveMatch.tournament_id == entry.tournament_id,
            (LiveMatch.team1_tournament_team_id == entry.id) | (LiveMatch.team2_tournament_team_id == entry.id),
        )
    ).all()
    for match in matches:
        if match.id in confirmed:
            continue
        if match.team1_tournament_team_id == entry.id:
            match.team1_display_name = entry.display_name
        if match.team2_tournament_team_id == entry.id:
            match.team2_display_name = entry.display_name
        session.add(match)

    session.commit()
    session.refresh(entry)
    return entry


@router.get("/participants/{participant_id}/players", response_model=List[PlayerEntryResponse])
def list_player_entries(participant_id: int, session: Session = Depends(get_session)):
    _get_participant(session, participant_id)
    rows = session.exec(
        select(TournamentPlayer, Player)
        .join(Player, Player.id == TournamentPlayer.player_id)
        .where(TournamentPlayer.tournament_team_id == participant_id)
    ).all()
    entries = [
        PlayerEntryResponse(
            player_id=player.id,
            name=player.name,
            jersey_number=tp.jersey_number if tp.jersey_number is not None else player.jersey_number,
        )
        for tp, player in rows
    ]
    return sorted(entries, key=lambda e: (e.jersey_number is None, e.jersey_number or 0, e.name))


@router.put("/participants/{participant_id}/players", response_model=List[PlayerEntryResponse])
def replace_player_entries(participant_id: int, data: PlayerEntriesUpdate, session: Session = Depends(get_session)):
    """Replace the tournament roster. Players must belong to the registered master team."""
    entry = _get_participant(session, participant_id)

    player_ids = [p.player_id for p in data.players]
    if len(set(player_ids)) != len(player_ids):
        raise HTTPException(status_code=422, detail="A player may be entered only once")
    numbers = [p.jersey_number for p in data.players if p.jersey_number is not None]
    if len(set(numbers)) != len(numbers):
        raise HTTPException(status_code=422, detail="Jersey numbers must be unique within the roster")

    for item in data.players:
        player = session.get(Player, item.player_id)
        if not player or player.team_id != entry.team_id:
            raise HTTPException(status_code=422, detail=f"Player {item.player_id} does not belong to this team")

    existing = session.exec(select(TournamentPlayer).where(TournamentPlayer.tournament_team_id == participant_id)).all()
    for row in existing:
        session.delete(row)
    session.flush()
    for item in data.players:
        session.add(
            TournamentPlayer(
                tournament_id=entry.tournament_id,
                tournament_team_id=entry.id,
                player_id=item.player_id,
                jersey_number=item.jersey_number,
            )
        )
    session.commit()
    return list_player_entries(participant_id, session)


@router.get("/tournaments/{tournament_id}/draw")
def get_draw(tournament_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    try:
        return draw_service.get_draw(session, tournament_id)
    except MatchdayError as e:
        raise http_error(e)


@router.put("/tournaments/{tournament_id}/draw")
def save_draw(tournament_id: int, data: DrawUpdate, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Replace the draw and fill draw-slot sources ("A1") in preliminary matches"""
    try:
        result = draw_service.apply_draw(session, tournament_id, [a.model_dump() for a in data.assignments])
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {**result, "draw": draw_service.get_draw(session, tournament_id)}
