"""
Ordering of league standings.

Rules are applied in the configured order. Stat rules (points, goal_difference,
goals_for, wins) split a tied group by descending value; head_to_head re-ranks a
tied group by a mini-league of the matches played among its members. Whatever is
still tied after the last rule shares a position (1, 2, 2, 4) and, if lottery is
configured, is reported as needing a draw of lots.

Teams that have not played yet are listed after everyone else.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from matchday.services.rules_service import (
    RULE_GOAL_DIFFERENCE,
    RULE_GOALS_FOR,
    RULE_HEAD_TO_HEAD,
    RULE_LOTTERY,
    RULE_POINTS,
    RULE_WINS,
    PointSystem,
)

_STAT_RULES = {
    RULE_POINTS: lambda s: s.points,
    RULE_GOAL_DIFFERENCE: lambda s: s.goal_difference,
    RULE_GOALS_FOR: lambda s: s.goals_for,
    RULE_WINS: lambda s: s.wins,
}


@dataclass
class TeamStanding:
    tournament_team_id: int
    team_name: str
    team_omission: Optional[str] = None
    position: Optional[int] = None
    points: int = 0
    matches_played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    position_note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamStanding":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass(frozen=True)
class ResultRow:
    """One counted result between two teams, goals already resolved (walkovers included)."""

    team1_id: int
    team2_id: int
    team1_goals: int
    team2_goals: int
    winner_id: Optional[int] = None
    is_draw: bool = False

    def outcome_for(self, team_id: int) -> int:
        """1 win, 0 draw, -1 loss. The recorded winner beats the goal count (penalty shoot-outs)."""
        if self.is_draw:
            return 0
        if self.winner_id is not None:
            return 1 if self.winner_id == team_id else -1
        goals_for, goals_against = (
            (self.team1_goals, self.team2_goals) if team_id == self.team1_id else (self.team2_goals, self.team1_goals)
        )
        return (goals_for > goals_against) - (goals_for < goals_against)


@dataclass
class RankingResult:
    standings: List[TeamStanding]
    lottery_required: List[List[int]] = field(default_factory=list)


def record_result(standings: Dict[int, TeamStanding], row: ResultRow, point_system: PointSystem) -> None:
    """Accumulate one result into both teams' standings. Unknown team ids are ignored."""
    for team_id, goals_for, goals_against in (
        (row.team1_id, row.team1_goals, row.team2_goals),
        (row.team2_id, row.team2_goals, row.team1_goals),
    ):
        standing = standings.get(team_id)
        if standing is None:
            continue
        standing.matches_played += 1
        standing.goals_for += goals_for
        standing.goals_against += goals_against
        standing.goal_difference = standing.goals_for - standing.goals_against
        outcome = row.outcome_for(team_id)
        if outcome > 0:
            standing.wins += 1
            standing.points += point_system.win
        elif outcome < 0:
            standing.losses += 1
            standing.points += point_system.loss
        else:
            standing.draws += 1
            standing.points += point_system.draw


def _head_to_head_keys(
    group: List[TeamStanding], results: Iterable[ResultRow], point_system: PointSystem
) -> Dict[int, Tuple[int, int, int]]:
    members = {s.tournament_team_id: TeamStanding(s.tournament_team_id, s.team_name) for s in group}
    for row in results:
        if row.team1_id in members and row.team2_id in members:
            record_result(members, row, point_system)
    return {tid: (s.points, s.goal_difference, s.goals_for) for tid, s in members.items()}


def _split(group: List[TeamStanding], key) -> List[List[TeamStanding]]:
    ordered = sorted(group, key=key, reverse=True)
    parts: List[List[TeamStanding]] = []
    for standing in ordered:
        if parts and key(parts[-1][0]) == key(standing):
            parts[-1].append(standing)
        else:
            parts.append([standing])
    return parts


def _order_group(
    group: List[TeamStanding],
    rules: List[str],
    results: List[ResultRow],
    point_system: PointSystem,
) -> List[List[TeamStanding]]:
    if len(group) <= 1 or not rules:
        return [group]

    rule, remaining = rules[0], rules[1:]
    if rule in _STAT_RULES:
        parts = _split(group, _STAT_RULES[rule])
    elif rule == RULE_HEAD_TO_HEAD:
        keys = _head_to_head_keys(group, results, point_system)
        parts = _split(group, lambda s: keys[s.tournament_team_id])
    else:
        # lottery or unknown: ties stay
        return [group]

    ordered: List[List[TeamStanding]] = []
    for part in parts:
        ordered.extend(_order_group(part, remaining, results, point_system))
    return ordered


def rank_standings(
    standings: List[TeamStanding],
    results: List[ResultRow],
    rules: List[str],
    point_system: PointSystem,
) -> RankingResult:
    if RULE_POINTS not in rules:
        rules = [RULE_POINTS] + list(rules)

    played = [s for s in standings if s.matches_played > 0]
    unplayed = sorted((s for s in standings if s.matches_played == 0), key=lambda s: s.team_name)

    ranked: List[TeamStanding] = []
    lottery_required: List[List[int]] = []
    position = 1
    for tied in _order_group(played, rules, results, point_system):
        tied = sorted(tied, key=lambda s: s.team_name)
        for standing in tied:
            standing.position = position
            ranked.append(standing)
        if len(tied) > 1 and RULE_LOTTERY in rules:
            lottery_required.append([s.tournament_team_id for s in tied])
        position += len(tied)

    for standing in unplayed:
        standing.position = position
        ranked.append(standing)
        position += 1

    return RankingResult(standings=ranked, lottery_required=lottery_required)
