"""
Block standings.

League blocks are ranked from confirmed results (FinalMatch rows); knockout phases
are placed from the winner/loser positions on their templates. Results are stored
as JSON on MatchBlock.team_rankings so reads never recompute.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Set

from sqlmodel import Session, select

from matchday.errors import NotFoundError, ValidationFailedError
from matchday.models.final_match import FinalMatch
from matchday.models.live_match import CANCEL_NO_COUNT, MATCH_CANCELLED, LiveMatch
from matchday.models.match_block import MatchBlock
from matchday.models.match_template import PHASE_PRELIMINARY
from matchday.models.tournament_format import FORMAT_TOURNAMENT, TournamentFormat
from matchday.models.tournament_team import WITHDRAWAL_ACTIVE, TournamentTeam
from matchday.services import rules_service
from matchday.services.score_parser import parse_total
from matchday.services.template_sources import get_templates, get_tournament
from matchday.services.tie_breaking import RankingResult, ResultRow, TeamStanding, rank_standings, record_result

logger = logging.getLogger(__name__)


def get_block(session: Session, block_id: int) -> MatchBlock:
    block = session.get(MatchBlock, block_id)
    if not block:
        raise NotFoundError("Match block not found")
    return block


def block_format_type(session: Session, block: MatchBlock) -> str:
    tournament = get_tournament(session, block.tournament_id)
    fmt = session.get(TournamentFormat, tournament.format_id)
    if fmt is None:
        raise NotFoundError("Tournament format not found")
    return fmt.preliminary_format_type if block.phase == PHASE_PRELIMINARY else fmt.final_format_type


def _result_row(final: FinalMatch, walkover: rules_service.WalkoverSettings) -> ResultRow:
    if final.is_walkover:
        if final.is_draw or final.winner_tournament_team_id is None:
            goals1 = goals2 = 0
        elif final.winner_tournament_team_id == final.team1_tournament_team_id:
            goals1, goals2 = walkover.winner_goals, walkover.loser_goals
        else:
            goals1, goals2 = walkover.loser_goals, walkover.winner_goals
    else:
        goals1, goals2 = parse_total(final.team1_scores), parse_total(final.team2_scores)

    return ResultRow(
        team1_id=final.team1_tournament_team_id,
        team2_id=final.team2_tournament_team_id,
        team1_goals=goals1,
        team2_goals=goals2,
        winner_id=final.winner_tournament_team_id,
        is_draw=final.is_draw,
    )


def get_counted_results(session: Session, block: MatchBlock) -> List[FinalMatch]:
    """Confirmed results of a block that count for standings (both teams set, not a no-count cancellation)."""
    finals = session.exec(
        select(FinalMatch)
        .where(
            FinalMatch.match_block_id == block.id,
            FinalMatch.team1_tournament_team_id.is_not(None),
            FinalMatch.team2_tournament_team_id.is_not(None),
        )
        .order_by(FinalMatch.match_id)
    ).all()
    return [f for f in finals if f.cancellation_type != CANCEL_NO_COUNT]


def _block_participants(session: Session, block: MatchBlock, finals: List[FinalMatch]) -> List[TournamentTeam]:
    team_ids: Set[int] = set()

    if block.phase == PHASE_PRELIMINARY:
        assigned = session.exec(
            select(TournamentTeam).where(
                TournamentTeam.tournament_id == block.tournament_id,
                TournamentTeam.assigned_block == block.block_name,
                TournamentTeam.withdrawal_status == WITHDRAWAL_ACTIVE,
            )
        ).all()
        team_ids.update(t.id for t in assigned)

    live_matches = session.exec(select(LiveMatch).where(LiveMatch.match_block_id == block.id)).all()
    for m in live_matches:
        for tid in (m.team1_tournament_team_id, m.team2_tournament_team_id):
            if tid is not None:
                team_ids.add(tid)

    # Withdrawn teams stay in the table only through results they already have
    result_ids = {tid for f in finals for tid in (f.team1_tournament_team_id, f.team2_tournament_team_id)}
    teams = []
    for tid in sorted(team_ids | result_ids):
        team = session.get(TournamentTeam, tid)
        if team is None:
            continue
        if team.withdrawal_status != WITHDRAWAL_ACTIVE and tid not in result_ids:
            continue
        teams.append(team)
    return teams


def calculate_block_standings(session: Session, block_id: int) -> RankingResult:
    """League standings of one block from its confirmed results."""
    block = get_block(session, block_id)
    finals = get_counted_results(session, block)
    teams = _block_participants(session, block, finals)

    point_system = rules_service.get_point_system(session, block.tournament_id, block.phase)
    walkover = rules_service.get_walkover_settings(session, block.tournament_id)
    rules = rules_service.get_tie_breaking_rules(session, block.tournament_id, block.phase)

    standings: Dict[int, TeamStanding] = {
        t.id: TeamStanding(tournament_team_id=t.id, team_name=t.team_name, team_omission=t.team_omission)
        for t in teams
    }
    results = [_result_row(f, walkover) for f in finals]
    for row in results:
        record_result(standings, row, point_system)

    return rank_standings(list(standings.values()), results, rules, point_system)


def calculate_knockout_standings(session: Session, tournament_id: int, phase: str) -> List[TeamStanding]:
    """Placements of a knockout phase from template winner/loser positions.

    Confirmed matches are replayed in execution order so a later match (e.g. the
    3rd place play-off) refines an earlier shared placement. Teams without a
    decided placement get position None.
    """
    tournament = get_tournament(session, tournament_id)
    templates = {t.match_code: t for t in get_templates(session, tournament.format_id, phase)}
    blocks = session.exec(
        select(MatchBlock).where(MatchBlock.tournament_id == tournament_id, MatchBlock.phase == phase)
    ).all()
    block_ids = [b.id for b in blocks]
    if not block_ids:
        return []

    standings: Dict[int, TeamStanding] = {}

    def _standing(team_id: int) -> TeamStanding:
        if team_id not in standings:
            team = session.get(TournamentTeam, team_id)
            standings[team_id] = TeamStanding(
                tournament_team_id=team_id,
                team_name=team.team_name if team else f"Team {team_id}",
                team_omission=team.team_omission if team else None,
            )
        return standings[team_id]

    live_matches = session.exec(select(LiveMatch).where(LiveMatch.match_block_id.in_(block_ids))).all()
    for m in live_matches:
        for tid in (m.team1_tournament_team_id, m.team2_tournament_team_id):
            if tid is not None:
                _standing(tid)

    finals = session.exec(select(FinalMatch).where(FinalMatch.match_block_id.in_(block_ids))).all()
    finals = sorted(
        finals,
        key=lambda f: (
            templates[f.match_code].execution_priority if f.match_code in templates else 0,
            f.match_code,
        ),
    )
    for final in finals:
        if final.team1_tournament_team_id is None or final.team2_tournament_team_id is None:
            continue
        goals1, goals2 = parse_total(final.team1_scores), parse_total(final.team2_scores)
        for tid, gf, ga in (
            (final.team1_tournament_team_id, goals1, goals2),
            (final.team2_tournament_team_id, goals2, goals1),
        ):
            s = _standing(tid)
            s.matches_played += 1
            s.goals_for += gf
            s.goals_against += ga
            s.goal_difference = s.goals_for - s.goals_against
            if final.is_draw:
                s.draws += 1
            elif final.winner_tournament_team_id == tid:
                s.wins += 1
            else:
                s.losses += 1

        template = templates.get(final.match_code)
        if template is None or final.is_draw or final.winner_tournament_team_id is None:
            continue
        winner_id = final.winner_tournament_team_id
        loser_id = (
            final.team2_tournament_team_id
            if winner_id == final.team1_tournament_team_id
            else final.team1_tournament_team_id
        )
        if template.winner_position is not None:
            standings[winner_id].position = template.winner_position
            standings[winner_id].position_note = template.position_note
        if template.loser_position_start is not None:
            standings[loser_id].position = template.loser_position_start
            standings[loser_id].position_note = template.position_note

    return sorted(
        standings.values(),
        key=lambda s: (s.position is None, s.position or 0, s.team_name),
    )


def update_block_rankings(session: Session, block_id: int) -> Dict:
    """Recompute and store the rankings of a block. Does not commit.

    Knockout phases store the phase-wide placements on every block of that phase.
    """
    block = get_block(session, block_id)
    now = datetime.utcnow()

    if block_format_type(session, block) == FORMAT_TOURNAMENT:
        placements = calculate_knockout_standings(session, block.tournament_id, block.phase)
        rankings = [s.to_dict() for s in placements]
        phase_blocks = session.exec(
            select(MatchBlock).where(
                MatchBlock.tournament_id == block.tournament_id, MatchBlock.phase == block.phase
            )
        ).all()
        for b in phase_blocks:
            b.team_rankings = rankings
            b.updated_at = now
            session.add(b)
        lottery_required: List[List[int]] = []
    else:
        result = calculate_block_standings(session, block_id)
        rankings = [s.to_dict() for s in result.standings]
        block.team_rankings = rankings
        block.updated_at = now
        session.add(block)
        lottery_required = result.lottery_required

    session.flush()
    logger.info("Updated rankings for block %s (%s teams)", block.block_name, len(rankings))
    return {"block_id": block.id, "rankings": rankings, "lottery_required": lottery_required}


def is_block_complete(session: Session, block_id: int) -> bool:
    """True when every match with both teams assigned is confirmed or cancelled (and there is one)."""
    matches = session.exec(
        select(LiveMatch).where(
            LiveMatch.match_block_id == block_id,
            LiveMatch.team1_tournament_team_id.is_not(None),
            LiveMatch.team2_tournament_team_id.is_not(None),
        )
    ).all()
    if not matches:
        return False
    confirmed_ids = set(
        session.exec(select(FinalMatch.match_id).where(FinalMatch.match_block_id == block_id)).all()
    )
    return all(m.id in confirmed_ids or m.match_status == MATCH_CANCELLED for m in matches)


def clear_rankings_if_incomplete(session: Session, block_id: int) -> bool:
    """Drop stored rankings of an incomplete block; a complete block is recomputed instead."""
    block = get_block(session, block_id)
    if is_block_complete(session, block_id):
        update_block_rankings(session, block_id)
        return False
    block.team_rankings = None
    block.updated_at = datetime.utcnow()
    session.add(block)
    session.flush()
    return True


def recalculate_all(session: Session, tournament_id: int) -> Dict:
    """Recompute rankings of every block in a tournament. Does not commit."""
    get_tournament(session, tournament_id)
    blocks = session.exec(
        select(MatchBlock).where(MatchBlock.tournament_id == tournament_id).order_by(MatchBlock.block_order)
    ).all()
    updated: List[int] = []
    knockout_phases_done: Set[str] = set()
    for block in blocks:
        if block_format_type(session, block) == FORMAT_TOURNAMENT:
            if block.phase in knockout_phases_done:
                continue
            knockout_phases_done.add(block.phase)
        update_block_rankings(session, block.id)
        updated.append(block.id)
    return {"tournament_id": tournament_id, "blocks_updated": len(updated), "block_ids": updated}


def set_manual_rankings(session: Session, block_id: int, positions: Dict[int, int]) -> MatchBlock:
    """Replace stored positions (tournament_team_id -> position). Does not commit."""
    block = get_block(session, block_id)
    if not block.team_rankings:
        raise ValidationFailedError("Block has no rankings to adjust")

    known = {r["tournament_team_id"] for r in block.team_rankings}
    unknown = [tid for tid in positions if tid not in known]
    if unknown:
        raise ValidationFailedError(f"Teams not in block rankings: {sorted(unknown)}")
    if any(p is not None and p < 1 for p in positions.values()):
        raise ValidationFailedError("Positions must be >= 1")

    rankings = []
    for entry in block.team_rankings:
        entry = dict(entry)
        if entry["tournament_team_id"] in positions:
            entry["position"] = positions[entry["tournament_team_id"]]
        rankings.append(entry)
    rankings.sort(key=lambda r: (r.get("position") is None, r.get("position") or 0, r.get("team_name", "")))

    # Reassign so the JSON column is flagged as changed
    block.team_rankings = rankings
    block.updated_at = datetime.utcnow()
    session.add(block)
    session.flush()
    logger.info("Manual rankings applied to block %s", block.block_name)
    return block


def get_team_at_position(block: MatchBlock, position: int) -> Optional[Dict]:
    """First stored ranking entry at a position (ties keep stored order)."""
    for entry in block.team_rankings or []:
        if entry.get("position") == position:
            return entry
    return None


def get_tournament_standings(session: Session, tournament_id: int) -> List[Dict]:
    get_tournament(session, tournament_id)
    blocks = session.exec(
        select(MatchBlock)
        .where(MatchBlock.tournament_id == tournament_id)
        .order_by(MatchBlock.block_order, MatchBlock.block_name)
    ).all()
    return [
        {
            "block_id": b.id,
            "phase": b.phase,
            "block_name": b.block_name,
            "display_round_name": b.display_round_name,
            "team_rankings": b.team_rankings or [],
            "is_complete": is_block_complete(session, b.id),
            "updated_at": b.updated_at,
        }
        for b in blocks
    ]
