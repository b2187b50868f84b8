"""
Tournament structure and draw.

generate_structure() builds the blocks and live matches of a tournament from its
format templates. apply_draw() records each team's block and position and fills the
preliminary slots whose source is a draw slot ("A1" = block A, position 1).
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from sqlmodel import Session, select

from matchday.errors import InvalidStateError, ValidationFailedError
from matchday.models.final_match import FinalMatch
from matchday.models.live_match import LiveMatch
from matchday.models.match_block import MatchBlock
from matchday.models.match_template import PHASE_FINAL, PHASE_PRELIMINARY
from matchday.models.tournament import Tournament
from matchday.models.tournament_team import WITHDRAWAL_APPROVED, TournamentTeam
from matchday.services.progression_service import get_live_match, get_slot, is_confirmed, set_slot
from matchday.services.source_expression import KIND_DRAW_SLOT, match_source
from matchday.services.template_sources import get_templates, get_tournament, resolve_templates

logger = logging.getLogger(__name__)


def _final_block_key(template) -> str:
    return template.block_name or template.round_name or PHASE_FINAL


def generate_structure(session: Session, tournament: Tournament) -> Dict:
    """Create blocks and one live match per non-bye template. Does not commit."""
    templates = get_templates(session, tournament.format_id)
    if not templates:
        raise ValidationFailedError("Tournament format has no match templates")

    preliminary_names = sorted({t.block_name for t in templates if t.phase == PHASE_PRELIMINARY and t.block_name})
    final_names: List[str] = []
    round_names: Dict[str, Optional[str]] = {}
    for t in templates:
        if t.phase != PHASE_FINAL:
            continue
        key = _final_block_key(t)
        if key not in final_names:
            final_names.append(key)
            round_names[key] = t.round_name

    blocks: Dict[Tuple[str, str], MatchBlock] = {}
    order = 1
    for name in preliminary_names:
        blocks[(PHASE_PRELIMINARY, name)] = MatchBlock(
            tournament_id=tournament.id,
            phase=PHASE_PRELIMINARY,
            block_name=name,
            display_round_name=f"Block {name}",
            block_order=order,
        )
        order += 1
    for name in final_names:
        blocks[(PHASE_FINAL, name)] = MatchBlock(
            tournament_id=tournament.id,
            phase=PHASE_FINAL,
            block_name=name,
            display_round_name=round_names.get(name) or name,
            block_order=order,
        )
        order += 1
    for block in blocks.values():
        session.add(block)
    session.flush()

    created = 0
    for t in templates:
        if t.is_bye_match:
            continue
        if t.phase == PHASE_PRELIMINARY:
            block = blocks.get((PHASE_PRELIMINARY, t.block_name)) if t.block_name else None
            if block is None:
                raise ValidationFailedError(f"Preliminary template {t.match_code} has no block_name")
        else:
            block = blocks[(PHASE_FINAL, _final_block_key(t))]
        session.add(
            LiveMatch(
                tournament_id=tournament.id,
                match_block_id=block.id,
                match_number=t.match_number,
                match_code=t.match_code,
                tournament_date=tournament.event_start_date + timedelta(days=max(t.day_number, 1) - 1),
                court_number=t.court_number,
                start_time=t.suggested_start_time,
                team1_display_name=t.team1_display_name,
                team2_display_name=t.team2_display_name,
            )
        )
        created += 1
    session.flush()

    logger.info("Generated %s blocks and %s matches for tournament %s", len(blocks), created, tournament.id)
    return {"blocks_created": len(blocks), "matches_created": created}


def fill_draw_slots(session: Session, tournament_id: int) -> int:
    """Write drawn teams into preliminary slots sourced from a draw slot. Does not commit."""
    teams = session.exec(
        select(TournamentTeam).where(
            TournamentTeam.tournament_id == tournament_id,
            TournamentTeam.assigned_block.is_not(None),
            TournamentTeam.block_position.is_not(None),
        )
    ).all()
    by_slot = {(t.assigned_block, t.block_position): t for t in teams if t.withdrawal_status != WITHDRAWAL_APPROVED}

    updated = 0
    for rt in resolve_templates(session, tournament_id, PHASE_PRELIMINARY):
        for position in (1, 2):
            ref = match_source(rt.source_for(position))
            if ref is None or ref.kind != KIND_DRAW_SLOT:
                continue
            target = get_live_match(session, tournament_id, rt.match_code)
            if target is None or is_confirmed(session, target.id):
                continue
            team = by_slot.get((ref.block, ref.number))
            team_id = team.id if team else None
            display_name = team.display_name if team else rt.display_name_for(position)
            if get_slot(target, position) == (team_id, display_name):
                continue
            set_slot(target, position, team_id, display_name)
            session.add(target)
            updated += 1
    if updated:
        session.flush()
    return updated


def apply_draw(session: Session, tournament_id: int, assignments: List[Dict]) -> Dict:
    """Replace the draw of a tournament and commit.

    Each assignment is {"tournament_team_id", "block_name", "block_position"}.
    """
    get_tournament(session, tournament_id)
    confirmed_preliminary = session.exec(
        select(FinalMatch.match_id)
        .join(MatchBlock, MatchBlock.id == FinalMatch.match_block_id)
        .where(FinalMatch.tournament_id == tournament_id, MatchBlock.phase == PHASE_PRELIMINARY)
    ).first()
    if confirmed_preliminary is not None:
        raise InvalidStateError("The draw cannot change after preliminary results are confirmed")

    block_names = set(
        session.exec(
            select(MatchBlock.block_name).where(
                MatchBlock.tournament_id == tournament_id, MatchBlock.phase == PHASE_PRELIMINARY
            )
        ).all()
    )

    seen_slots = set()
    seen_teams = set()
    for a in assignments:
        block_name, position, team_id = a["block_name"], a["block_position"], a["tournament_team_id"]
        if block_name not in block_names:
            raise ValidationFailedError(f"Unknown block: {block_name}")
        if position is None or position < 1:
            raise ValidationFailedError("block_position must be >= 1")
        if (block_name, position) in seen_slots:
            raise ValidationFailedError(f"Duplicate position {position} in block {block_name}")
        if team_id in seen_teams:
            raise ValidationFailedError(f"Team {team_id} is assigned more than once")
        seen_slots.add((block_name, position))
        seen_teams.add(team_id)

    teams = {
        t.id: t
        for t in session.exec(select(TournamentTeam).where(TournamentTeam.tournament_id == tournament_id)).all()
    }
    missing = sorted(tid for tid in seen_teams if tid not in teams)
    if missing:
        raise ValidationFailedError(f"Teams not registered in this tournament: {missing}")

    now = datetime.utcnow()
    for team in teams.values():
        team.assigned_block = None
        team.block_position = None
    for a in assignments:
        team = teams[a["tournament_team_id"]]
        team.assigned_block = a["block_name"]
        team.block_position = a["block_position"]
    for team in teams.values():
        team.updated_at = now
        session.add(team)
    session.flush()

    slots_filled = fill_draw_slots(session, tournament_id)
    session.commit()
    logger.info("Draw applied for tournament %s (%s teams)", tournament_id, len(assignments))
    return {"teams_assigned": len(assignments), "slots_filled": slots_filled}


def get_draw(session: Session, tournament_id: int) -> Dict:
    get_tournament(session, tournament_id)
    blocks = session.exec(
        select(MatchBlock)
        .where(MatchBlock.tournament_id == tournament_id, MatchBlock.phase == PHASE_PRELIMINARY)
        .order_by(MatchBlock.block_order)
    ).all()
    teams = session.exec(
        select(TournamentTeam).where(TournamentTeam.tournament_id == tournament_id).order_by(TournamentTeam.id)
    ).all()

    def _entry(t: TournamentTeam) -> Dict:
        return {
            "tournament_team_id": t.id,
            "team_name": t.team_name,
            "team_omission": t.team_omission,
            "block_position": t.block_position,
            "withdrawal_status": t.withdrawal_status,
        }

    return {
        "blocks": [
            {
                "block_name": b.block_name,
                "teams": [
                    _entry(t)
                    for t in sorted(
                        (t for t in teams if t.assigned_block == b.block_name),
                        key=lambda t: t.block_position or 0,
                    )
                ],
            }
            for b in blocks
        ],
        "unassigned": [_entry(t) for t in teams if t.assigned_block is None],
    }
