"""Copy a tournament's setup (rules, registrations, player entries, draw) into a new tournament."""
import logging
from datetime import datetime
from typing import Dict, Optional

from sqlmodel import Session, select

from matchday.models.tournament import STATUS_PLANNING, Tournament
from matchday.models.tournament_player import TournamentPlayer
from matchday.models.tournament_rule import TournamentRule
from matchday.models.tournament_team import WITHDRAWAL_APPROVED, WITHDRAWAL_ACTIVE, TournamentTeam
from matchday.services.draw_service import fill_draw_slots, generate_structure
from matchday.services.template_sources import get_tournament

logger = logging.getLogger(__name__)


def duplicate_tournament(session: Session, tournament_id: int, new_name: Optional[str] = None) -> Dict:
    """Create a copy without results and commit. Withdrawn teams are not carried over."""
    source = get_tournament(session, tournament_id)

    copy = Tournament(
        **source.model_dump(exclude={"id", "status", "created_at", "updated_at", "name", "is_public"}),
        name=new_name or f"{source.name} (copy)",
        status=STATUS_PLANNING,
        is_public=False,
    )
    session.add(copy)
    session.flush()

    rules = session.exec(select(TournamentRule).where(TournamentRule.tournament_id == tournament_id)).all()
    for rule in rules:
        session.add(
            TournamentRule(
                **rule.model_dump(exclude={"id", "tournament_id", "updated_at"}),
                tournament_id=copy.id,
            )
        )

    now = datetime.utcnow()
    team_map: Dict[int, int] = {}
    entries = session.exec(
        select(TournamentTeam).where(TournamentTeam.tournament_id == tournament_id).order_by(TournamentTeam.id)
    ).all()
    for entry in entries:
        if entry.withdrawal_status == WITHDRAWAL_APPROVED:
            continue
        new_entry = TournamentTeam(
            tournament_id=copy.id,
            team_id=entry.team_id,
            team_name=entry.team_name,
            team_omission=entry.team_omission,
            assigned_block=entry.assigned_block,
            block_position=entry.block_position,
            withdrawal_status=WITHDRAWAL_ACTIVE,
            created_at=now,
            updated_at=now,
        )
        session.add(new_entry)
        session.flush()
        team_map[entry.id] = new_entry.id

    players = session.exec(select(TournamentPlayer).where(TournamentPlayer.tournament_id == tournament_id)).all()
    copied_players = 0
    for player in players:
        if player.tournament_team_id not in team_map:
            continue
        session.add(
            TournamentPlayer(
                tournament_id=copy.id,
                tournament_team_id=team_map[player.tournament_team_id],
                player_id=player.player_id,
                jersey_number=player.jersey_number,
            )
        )
        copied_players += 1
    session.flush()

    structure = generate_structure(session, copy)
    slots_filled = fill_draw_slots(session, copy.id)
    session.commit()
    session.refresh(copy)

    logger.info("Tournament %s duplicated as %s", tournament_id, copy.id)
    return {
        "tournament": copy,
        "rules_copied": len(rules),
        "teams_copied": len(team_map),
        "players_copied": copied_players,
        "slots_filled": slots_filled,
        **structure,
    }
