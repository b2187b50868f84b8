"""
Promotion of block-ranked teams ("A_1", "B_2") into final-phase matches.

A block promotes only once it is complete. Slots are force-written from the stored
rankings, so manual ranking edits and override changes take effect on the next run.
When a block is reopened its promoted teams are taken back out of unconfirmed slots.
"""
import logging
from typing import Dict

from sqlmodel import Session, select

from matchday.models.match_block import MatchBlock
from matchday.models.match_template import PHASE_FINAL, PHASE_PRELIMINARY
from matchday.models.tournament_team import TournamentTeam
from matchday.services.progression_service import get_live_match, get_slot, is_confirmed, reset_slot, set_slot
from matchday.services.source_expression import KIND_BLOCK_RANK, match_source
from matchday.services.standings_service import get_team_at_position, is_block_complete
from matchday.services.template_sources import resolve_templates

logger = logging.getLogger(__name__)


def collect_block_promotions(session: Session, tournament_id: int) -> Dict[str, TournamentTeam]:
    """Map "A_1"-style sources referenced by final-phase templates to the team holding that place."""
    blocks = session.exec(
        select(MatchBlock).where(MatchBlock.tournament_id == tournament_id, MatchBlock.phase == PHASE_PRELIMINARY)
    ).all()
    complete = {
        b.block_name: b for b in blocks if b.team_rankings and is_block_complete(session, b.id)
    }

    promotions: Dict[str, TournamentTeam] = {}
    for rt in resolve_templates(session, tournament_id, PHASE_FINAL):
        for source in (rt.team1_source, rt.team2_source):
            ref = match_source(source)
            if ref is None or ref.kind != KIND_BLOCK_RANK or source in promotions:
                continue
            block = complete.get(ref.block)
            if block is None:
                continue
            entry = get_team_at_position(block, ref.number)
            if entry is None:
                logger.warning("No team at position %s in block %s", ref.number, ref.block)
                continue
            tied = [r for r in block.team_rankings if r.get("position") == ref.number]
            if len(tied) > 1:
                logger.warning(
                    "Block %s has %s teams tied at position %s; promoting %s",
                    ref.block,
                    len(tied),
                    ref.number,
                    entry.get("team_name"),
                )
            team = session.get(TournamentTeam, entry["tournament_team_id"])
            if team is not None:
                promotions[source] = team
    return promotions


def promote_from_blocks(session: Session, tournament_id: int) -> Dict:
    """Write promoted teams into unconfirmed final-phase slots. Does not commit."""
    promotions = collect_block_promotions(session, tournament_id)
    if not promotions:
        return {"slots_updated": 0, "promotions": {}}

    updated = 0
    for rt in resolve_templates(session, tournament_id, PHASE_FINAL):
        for position in (1, 2):
            team = promotions.get(rt.source_for(position))
            if team is None:
                continue
            target = get_live_match(session, tournament_id, rt.match_code)
            if target is None or is_confirmed(session, target.id):
                continue
            current_id, current_name = get_slot(target, position)
            if current_id == team.id and current_name == team.display_name:
                continue
            set_slot(target, position, team.id, team.display_name)
            session.add(target)
            updated += 1
            logger.info("Promoted %s into %s slot %s", team.display_name, rt.match_code, position)

    if updated:
        session.flush()
    return {
        "slots_updated": updated,
        "promotions": {source: team.id for source, team in sorted(promotions.items())},
    }


def retract_block_promotions(session: Session, tournament_id: int, block_name: str) -> int:
    """Put placeholders back into unconfirmed final-phase slots fed by a block's places.

    Used when a block stops being complete. Returns slots reset. Does not commit.
    """
    reset = 0
    for rt in resolve_templates(session, tournament_id, PHASE_FINAL):
        for position in (1, 2):
            ref = match_source(rt.source_for(position))
            if ref is None or ref.kind != KIND_BLOCK_RANK or ref.block != block_name:
                continue
            target = get_live_match(session, tournament_id, rt.match_code)
            if target is None or is_confirmed(session, target.id):
                continue
            current_id, _ = get_slot(target, position)
            if current_id is None:
                continue
            if reset_slot(session, tournament_id, rt.match_code, position):
                reset += 1
                logger.info("Block %s incomplete; %s slot %s back to placeholder", block_name, rt.match_code, position)
    return reset
