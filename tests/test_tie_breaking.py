from matchday.services.rules_service import (
    DEFAULT_TIE_BREAKING_RULES,
    RULE_GOAL_DIFFERENCE,
    RULE_GOALS_FOR,
    RULE_LOTTERY,
    RULE_POINTS,
    PointSystem,
)
from matchday.services.tie_breaking import ResultRow, TeamStanding, rank_standings, record_result

POINTS = PointSystem(win=3, draw=1, loss=0)


def _standing(team_id, name, points, gf, ga, played=3):
    return TeamStanding(
        tournament_team_id=team_id,
        team_name=name,
        points=points,
        matches_played=played,
        goals_for=gf,
        goals_against=ga,
        goal_difference=gf - ga,
    )


def test_record_result_accumulates_both_teams():
    """A win gives the win points; goals and counts go to both teams"""
    standings = {1: TeamStanding(1, "Alpha"), 2: TeamStanding(2, "Bravo")}
    record_result(standings, ResultRow(1, 2, 3, 1), POINTS)

    assert standings[1].points == 3
    assert standings[1].wins == 1
    assert standings[1].goal_difference == 2
    assert standings[2].points == 0
    assert standings[2].losses == 1
    assert standings[2].goals_against == 3


def test_record_result_draw():
    standings = {1: TeamStanding(1, "Alpha"), 2: TeamStanding(2, "Bravo")}
    record_result(standings, ResultRow(1, 2, 1, 1, is_draw=True), POINTS)

    assert standings[1].points == 1
    assert standings[2].points == 1
    assert standings[1].draws == standings[2].draws == 1


def test_recorded_winner_beats_goal_count():
    """Level on goals but decided on penalties: the recorded winner takes the win"""
    standings = {1: TeamStanding(1, "Alpha"), 2: TeamStanding(2, "Bravo")}
    record_result(standings, ResultRow(1, 2, 1, 1, winner_id=2), POINTS)

    assert standings[2].wins == 1
    assert standings[2].points == 3
    assert standings[1].losses == 1


def test_points_then_goal_difference():
    """Points decide first, goal difference separates teams level on points"""
    standings = [
        _standing(1, "Alpha", 4, 3, 2),
        _standing(2, "Bravo", 6, 4, 1),
        _standing(3, "Charlie", 4, 5, 2),
    ]
    result = rank_standings(standings, [], DEFAULT_TIE_BREAKING_RULES, POINTS)

    assert [(s.team_name, s.position) for s in result.standings] == [("Bravo", 1), ("Charlie", 2), ("Alpha", 3)]
    assert result.lottery_required == []


def test_head_to_head_separates_otherwise_equal_teams():
    """Equal on points, goal difference and goals: the match between them decides"""
    standings = [
        _standing(1, "Papa", 4, 3, 2),
        _standing(2, "Quebec", 4, 3, 2),
        _standing(3, "Romeo", 1, 1, 5),
    ]
    results = [ResultRow(2, 1, 2, 1)]
    result = rank_standings(standings, results, DEFAULT_TIE_BREAKING_RULES, POINTS)

    assert [(s.team_name, s.position) for s in result.standings] == [("Quebec", 1), ("Papa", 2), ("Romeo", 3)]
    assert result.lottery_required == []


def test_unresolved_tie_shares_position_and_needs_lottery():
    """Without head-to-head the tie stays, the next team skips a place"""
    standings = [
        _standing(1, "Papa", 4, 3, 2),
        _standing(2, "Quebec", 4, 3, 2),
        _standing(3, "Romeo", 1, 1, 5),
    ]
    rules = [RULE_POINTS, RULE_GOAL_DIFFERENCE, RULE_GOALS_FOR, RULE_LOTTERY]
    result = rank_standings(standings, [ResultRow(2, 1, 2, 1)], rules, POINTS)

    assert [(s.team_name, s.position) for s in result.standings] == [("Papa", 1), ("Quebec", 1), ("Romeo", 3)]
    assert result.lottery_required == [[1, 2]]


def test_tie_without_lottery_rule_is_not_reported():
    standings = [_standing(1, "Papa", 3, 1, 1), _standing(2, "Quebec", 3, 1, 1)]
    result = rank_standings(standings, [], [RULE_POINTS], POINTS)

    assert [s.position for s in result.standings] == [1, 1]
    assert result.lottery_required == []


def test_points_rule_is_always_applied_first():
    """A rule list that leaves out points still ranks by points first"""
    standings = [_standing(1, "Papa", 0, 9, 0), _standing(2, "Quebec", 3, 1, 0)]
    result = rank_standings(standings, [], [RULE_GOALS_FOR], POINTS)

    assert [s.team_name for s in result.standings] == ["Quebec", "Papa"]


def test_teams_without_matches_come_last():
    """Unplayed teams follow the ranked teams in name order"""
    standings = [
        TeamStanding(3, "Zulu"),
        _standing(1, "Papa", 0, 0, 3, played=1),
        TeamStanding(4, "Echo"),
    ]
    result = rank_standings(standings, [], DEFAULT_TIE_BREAKING_RULES, POINTS)

    assert [(s.team_name, s.position) for s in result.standings] == [("Papa", 1), ("Echo", 2), ("Zulu", 3)]


def test_standing_dict_round_trip_ignores_unknown_keys():
    data = _standing(1, "Papa", 3, 2, 1).to_dict()
    data["legacy_field"] = "x"
    assert TeamStanding.from_dict(data).points == 3
