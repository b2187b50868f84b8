"""Point system, walkover score and tie-break rule lookup, with defaults when no rule row exists."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from matchday.errors import ValidationFailedError
from matchday.models.match_template import PHASE_FINAL, PHASE_PRELIMINARY
from matchday.models.tournament_rule import TournamentRule

RULE_POINTS = "points"
RULE_GOAL_DIFFERENCE = "goal_difference"
RULE_GOALS_FOR = "goals_for"
RULE_WINS = "wins"
RULE_HEAD_TO_HEAD = "head_to_head"
RULE_LOTTERY = "lottery"

TIE_BREAKING_RULE_TYPES = (
    RULE_POINTS,
    RULE_GOAL_DIFFERENCE,
    RULE_GOALS_FOR,
    RULE_WINS,
    RULE_HEAD_TO_HEAD,
    RULE_LOTTERY,
)

DEFAULT_TIE_BREAKING_RULES = [
    RULE_POINTS,
    RULE_GOAL_DIFFERENCE,
    RULE_GOALS_FOR,
    RULE_HEAD_TO_HEAD,
    RULE_LOTTERY,
]


@dataclass(frozen=True)
class PointSystem:
    win: int = 3
    draw: int = 1
    loss: int = 0


@dataclass(frozen=True)
class WalkoverSettings:
    winner_goals: int = 3
    loser_goals: int = 0


def get_rule(session: Session, tournament_id: int, phase: str) -> Optional[TournamentRule]:
    return session.exec(
        select(TournamentRule).where(TournamentRule.tournament_id == tournament_id, TournamentRule.phase == phase)
    ).first()


def get_point_system(session: Session, tournament_id: int, phase: str = PHASE_PRELIMINARY) -> PointSystem:
    rule = get_rule(session, tournament_id, phase)
    if rule is None:
        return PointSystem()
    return PointSystem(win=rule.win_points, draw=rule.draw_points, loss=rule.loss_points)


def get_walkover_settings(session: Session, tournament_id: int) -> WalkoverSettings:
    """Walkover goals are configured on the preliminary rule row (the final row is a fallback)."""
    for phase in (PHASE_PRELIMINARY, PHASE_FINAL):
        rule = get_rule(session, tournament_id, phase)
        if rule is not None:
            return WalkoverSettings(winner_goals=rule.walkover_winner_goals, loser_goals=rule.walkover_loser_goals)
    return WalkoverSettings()


def get_tie_breaking_rules(session: Session, tournament_id: int, phase: str = PHASE_PRELIMINARY) -> List[str]:
    rule = get_rule(session, tournament_id, phase)
    if rule is None or not rule.tie_breaking_rules:
        return list(DEFAULT_TIE_BREAKING_RULES)
    return list(rule.tie_breaking_rules)


def validate_tie_breaking_rules(rules: List[str]) -> List[str]:
    if not rules:
        raise ValidationFailedError("At least one tie-breaking rule is required")
    unknown = [r for r in rules if r not in TIE_BREAKING_RULE_TYPES]
    if unknown:
        raise ValidationFailedError(f"Unknown tie-breaking rule(s): {', '.join(unknown)}")
    if len(set(rules)) != len(rules):
        raise ValidationFailedError("Tie-breaking rules must not repeat")
    if RULE_LOTTERY in rules and rules[-1] != RULE_LOTTERY:
        raise ValidationFailedError("'lottery' must be the last tie-breaking rule")
    return rules


def upsert_rule(session: Session, tournament_id: int, phase: str, values: Dict[str, Any]) -> TournamentRule:
    """Create or update the rule row for one phase. Caller commits."""
    if phase not in (PHASE_PRELIMINARY, PHASE_FINAL):
        raise ValidationFailedError(f"Invalid phase: {phase}")
    if values.get("tie_breaking_rules") is not None:
        validate_tie_breaking_rules(values["tie_breaking_rules"])

    rule = get_rule(session, tournament_id, phase)
    if rule is None:
        rule = TournamentRule(tournament_id=tournament_id, phase=phase)
    for key, value in values.items():
        setattr(rule, key, value)
    rule.updated_at = datetime.utcnow()
    session.add(rule)
    return rule
