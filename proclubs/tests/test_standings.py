"""
Tests for standings and statistics derived from match results.
Pure functions: no database.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from proclubs.models import Match, Player, PlayerMatchStats, Team
from proclubs.services.standings import (
    compute_standings,
    qualification_zones,
    team_performance,
    team_records,
    top_scorers,
)

NOW = datetime(2024, 3, 1, 15, 0, tzinfo=timezone.utc)


def _team(tid: str) -> Team:
    return Team(id=tid, name=f"Team {tid}", short_name=tid, created_at=NOW, updated_at=NOW)


def _match(home, away, hs=None, as_=None, status="finished", day=1, group=None) -> Match:
    return Match(
        id=f"{home}-{away}-{day}",
        home_team_id=home,
        away_team_id=away,
        status=status,
        created_at=NOW,
        updated_at=NOW,
        match_date=NOW + timedelta(days=day),
        home_score=hs,
        away_score=as_,
        group_name=group,
    )


def test_every_registered_team_appears_with_zeros():
    rows = compute_standings([_team("A"), _team("B")], [])
    assert [r.team_id for r in rows] == ["A", "B"]
    for r in rows:
        assert (r.played, r.points, r.goals_for, r.goals_against) == (0, 0, 0, 0)
    assert [r.position for r in rows] == [1, 2]


def test_points_for_win_draw_and_loss():
    teams = [_team("A"), _team("B"), _team("C")]
    matches = [_match("A", "B", 2, 0, day=1), _match("B", "C", 1, 1, day=2)]
    rows = {r.team_id: r for r in compute_standings(teams, matches)}
    assert rows["A"].points == 3 and rows["A"].won == 1
    assert rows["B"].points == 1 and rows["B"].lost == 1 and rows["B"].drawn == 1
    assert rows["C"].points == 1 and rows["C"].drawn == 1
    assert rows["B"].played == 2
    assert rows["B"].goals_for == 1 and rows["B"].goals_against == 3
    assert rows["B"].goal_difference == -2


def test_sort_by_points_then_goal_difference():
    teams = [_team("A"), _team("B"), _team("C")]
    matches = [_match("A", "B", 2, 0, day=1), _match("B", "C", 1, 1, day=2)]
    rows = compute_standings(teams, matches)
    # B and C both have 1 point; C has the better goal difference
    assert [r.team_id for r in rows] == ["A", "C", "B"]
    assert [r.position for r in rows] == [1, 2, 3]


def test_goals_for_breaks_equal_goal_difference():
    teams = [_team("B"), _team("A"), _team("C"), _team("D")]
    matches = [_match("A", "C", 3, 1), _match("B", "D", 2, 0)]
    rows = compute_standings(teams, matches)
    assert [r.team_id for r in rows[:2]] == ["A", "B"]


def test_full_ties_keep_registration_order():
    teams = [_team("Z"), _team("Y"), _team("X")]
    matches = [_match("Z", "Y", 1, 1)]
    rows = compute_standings(teams, matches)
    assert [r.team_id for r in rows] == ["Z", "Y", "X"]


def test_only_finished_matches_with_scores_count():
    teams = [_team("A"), _team("B")]
    matches = [
        _match("A", "B", 3, 0, status="scheduled", day=1),
        _match("A", "B", None, None, status="finished", day=2),
        _match("A", "B", 2, 2, status="live", day=3),
    ]
    rows = compute_standings(teams, matches)
    assert all(r.played == 0 for r in rows)


def test_matches_against_unregistered_teams_are_skipped():
    teams = [_team("A"), _team("B")]
    matches = [_match("A", "OUTSIDER", 5, 0), _match("A", "B", 0, 1, day=2)]
    rows = {r.team_id: r for r in compute_standings(teams, matches)}
    assert rows["A"].played == 1
    assert rows["A"].goals_for == 0
    assert rows["B"].points == 3


def test_form_is_most_recent_first_and_capped():
    teams = [_team("A"), _team("B")]
    results = [(1, 0), (1, 1), (0, 2), (3, 0), (2, 2), (0, 1)]
    matches = [_match("A", "B", h, a, day=i) for i, (h, a) in enumerate(results, start=1)]
    rows = {r.team_id: r for r in compute_standings(teams, matches)}
    assert rows["A"].form == ["L", "D", "W", "L", "D"]
    assert rows["B"].form == ["W", "D", "L", "W", "D"]


def test_group_filter_only_counts_that_group():
    teams = [_team("A"), _team("B")]
    matches = [_match("A", "B", 1, 0, group="Group A"), _match("A", "B", 0, 4, day=2, group="Group B")]
    rows = {r.team_id: r for r in compute_standings(teams, matches, group_name="Group A")}
    assert rows["A"].points == 3
    assert rows["B"].points == 0


def test_to_dict_contains_goal_difference_and_form():
    rows = compute_standings([_team("A"), _team("B")], [_match("A", "B", 2, 1)])
    d = rows[0].to_dict()
    assert d["goal_difference"] == 1
    assert d["form"] == ["W"]
    assert "zone" not in d


def test_qualification_zones():
    teams = [_team(t) for t in "ABCDE"]
    rows = qualification_zones(compute_standings(teams, []), direct=2, playoff=2)
    assert [r.zone for r in rows] == ["direct", "direct", "playoff", "playoff", "eliminated"]
    assert rows[0].to_dict()["zone"] == "direct"


def test_team_records_ignore_draws():
    teams = [_team("A"), _team("B"), _team("C")]
    matches = [
        _match("A", "B", 2, 0),
        _match("B", "C", 1, 1, day=2),
        _match("C", "A", 3, 1, day=3),
        _match("A", "C", 9, 0, status="scheduled", day=4),
    ]
    records = {r["team_id"]: r for r in team_records(teams, matches, {"A": 11, "B": 9})}
    assert (records["A"]["wins"], records["A"]["losses"]) == (1, 1)
    assert (records["B"]["wins"], records["B"]["losses"]) == (0, 1)
    assert (records["C"]["wins"], records["C"]["losses"]) == (1, 0)
    assert records["A"]["players_count"] == 11
    assert records["C"]["players_count"] == 0


def test_team_performance_summary():
    matches = [
        _match("A", "B", 2, 0, day=1),
        _match("C", "A", 1, 1, day=2),
        _match("A", "D", 0, 3, day=3),
        _match("B", "C", 4, 0, day=4),
        _match("A", "B", 5, 5, status="scheduled", day=5),
    ]
    perf = team_performance("A", matches)
    assert perf["played"] == 3
    assert (perf["wins"], perf["draws"], perf["losses"]) == (1, 1, 1)
    assert perf["goals_for"] == 3
    assert perf["goals_against"] == 4
    assert perf["clean_sheets"] == 1
    assert perf["points"] == 4
    assert perf["form"] == ["L", "D", "W"]
    assert perf["recent_results"][0]["score"] == "0-3"
    assert perf["recent_results"][1]["score"] == "1-1"
    assert perf["recent_results"][1]["home"] is False


def _player(pid: str, team_id: str = "A") -> Player:
    return Player(
        id=pid, team_id=team_id, name=f"Player {pid}", position="FWD", number=9,
        status="active", created_at=NOW, updated_at=NOW,
    )


def _stat(pid: str, goals: int, rating=None, assists: int = 0, match_id: str = "m1") -> PlayerMatchStats:
    return PlayerMatchStats(
        id=f"{match_id}-{pid}", match_id=match_id, player_id=pid, team_id="A",
        status="approved", created_at=NOW, goals=goals, assists=assists, rating=rating,
    )


def test_top_scorers_aggregates_and_ranks():
    players = {p: _player(p) for p in ("p1", "p2", "p3")}
    rows = [
        _stat("p1", 1, rating=7.0, match_id="m1"),
        _stat("p1", 2, rating=8.5, assists=1, match_id="m2"),
        _stat("p2", 4, rating=None, match_id="m1"),
        _stat("p3", 0, rating=0, match_id="m1"),
    ]
    ranked = top_scorers(rows, players, {"A": _team("A")})
    assert [r["player_id"] for r in ranked] == ["p2", "p1", "p3"]
    assert [r["position"] for r in ranked] == [1, 2, 3]
    p1 = ranked[1]
    assert p1["goals"] == 3
    assert p1["assists"] == 1
    assert p1["appearances"] == 2
    assert p1["rating"] == 7.8
    assert p1["team_name"] == "Team A"
    assert ranked[0]["rating"] == 0
    assert ranked[2]["rating"] == 0


def test_top_scorers_limit_and_stable_ties():
    players = {f"p{i}": _player(f"p{i}") for i in range(12)}
    rows = [_stat(f"p{i}", 1) for i in range(12)]
    ranked = top_scorers(rows, players, limit=10)
    assert len(ranked) == 10
    assert [r["player_id"] for r in ranked] == [f"p{i}" for i in range(10)]
