from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from matchday.database import get_session
from matchday.errors import MatchdayError, http_error
from matchday.models.match_template import PHASE_FINAL, PHASE_PRELIMINARY
from matchday.services import progression_service, promotion_service, standings_service

router = APIRouter()


class ManualRanking(BaseModel):
    tournament_team_id: int
    position: Optional[int] = None


class ManualRankingsUpdate(BaseModel):
    rankings: List[ManualRanking]


@router.get("/tournaments/{tournament_id}/standings")
def get_standings(tournament_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Stored rankings of every block"""
    try:
        blocks = standings_service.get_tournament_standings(session, tournament_id)
    except MatchdayError as e:
        raise http_error(e)
    return {"tournament_id": tournament_id, "blocks": blocks}


@router.post("/tournaments/{tournament_id}/recalculate-standings")
def recalculate_standings(tournament_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Recompute every block, then re-run promotion from completed blocks"""
    try:
        result = standings_service.recalculate_all(session, tournament_id)
        promotion = promotion_service.promote_from_blocks(session, tournament_id)
        session.commit()
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {"success": True, "data": {**result, "slots_promoted": promotion["slots_updated"]}}


@router.post("/tournaments/{tournament_id}/recalculate-progression")
def recalculate_progression(tournament_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Replay winner/loser progression of all confirmed matches (repair)"""
    try:
        preliminary = progression_service.recalculate_all_progression(session, tournament_id, PHASE_PRELIMINARY)
        final = progression_service.recalculate_all_progression(session, tournament_id, PHASE_FINAL)
        session.commit()
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {
        "success": True,
        "data": {
            "matches_processed": preliminary["matches_processed"] + final["matches_processed"],
            "slots_updated": preliminary["slots_updated"] + final["slots_updated"],
        },
    }


@router.put("/blocks/{block_id}/manual-rankings")
def set_manual_rankings(
    block_id: int, data: ManualRankingsUpdate, session: Session = Depends(get_session)
) -> Dict[str, Any]:
    """Override stored positions (e.g. after a drawing of lots) and re-run promotion"""
    positions = {r.tournament_team_id: r.position for r in data.rankings}
    if len(positions) != len(data.rankings):
        raise HTTPException(status_code=422, detail="Each team may appear only once")
    try:
        block = standings_service.set_manual_rankings(session, block_id, positions)
        promotion = promotion_service.promote_from_blocks(session, block.tournament_id)
        session.commit()
        session.refresh(block)
    except MatchdayError as e:
        session.rollback()
        raise http_error(e)
    return {
        "success": True,
        "data": {
            "block_id": block.id,
            "team_rankings": block.team_rankings,
            "slots_promoted": promotion["slots_updated"],
        },
    }
