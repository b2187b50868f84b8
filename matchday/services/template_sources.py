"""Template lookup for a tournament, with match overrides applied to the team sources."""
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlmodel import Session, select

from matchday.errors import NotFoundError
from matchday.models.match_override import MatchOverride
from matchday.models.match_template import MatchTemplate
from matchday.models.tournament import Tournament
from matchday.services.source_expression import effective_sources


@dataclass
class ResolvedTemplate:
    template: MatchTemplate
    team1_source: Optional[str]
    team2_source: Optional[str]
    override: Optional[MatchOverride] = None

    @property
    def match_code(self) -> str:
        return self.template.match_code

    def source_for(self, position: int) -> Optional[str]:
        return self.team1_source if position == 1 else self.team2_source

    def display_name_for(self, position: int) -> str:
        return self.template.team1_display_name if position == 1 else self.template.team2_display_name


def get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise NotFoundError("Tournament not found")
    return tournament


def get_overrides_by_code(session: Session, tournament_id: int) -> Dict[str, MatchOverride]:
    overrides = session.exec(select(MatchOverride).where(MatchOverride.tournament_id == tournament_id)).all()
    return {o.match_code: o for o in overrides}


def get_templates(session: Session, format_id: int, phase: Optional[str] = None) -> List[MatchTemplate]:
    query = select(MatchTemplate).where(MatchTemplate.format_id == format_id)
    if phase is not None:
        query = query.where(MatchTemplate.phase == phase)
    return list(session.exec(query.order_by(MatchTemplate.execution_priority, MatchTemplate.match_number)).all())


def resolve_templates(session: Session, tournament_id: int, phase: Optional[str] = None) -> List[ResolvedTemplate]:
    """Templates of the tournament's format, ordered by execution_priority, with effective sources."""
    tournament = get_tournament(session, tournament_id)
    overrides = get_overrides_by_code(session, tournament_id)
    resolved: List[ResolvedTemplate] = []
    for template in get_templates(session, tournament.format_id, phase):
        override = overrides.get(template.match_code)
        team1, team2 = effective_sources(template, override)
        resolved.append(ResolvedTemplate(template, team1, team2, override))
    return resolved


def find_template(session: Session, format_id: int, match_code: str) -> Optional[MatchTemplate]:
    return session.exec(
        select(MatchTemplate).where(MatchTemplate.format_id == format_id, MatchTemplate.match_code == match_code)
    ).first()
