"""
Tests for league points, season points and match fantasy points.
"""
from __future__ import annotations

import pytest

from proclubs.models import PlayerPosition
from proclubs.scoring import (
    CLEAN_SHEET_POINTS,
    GOAL_POINTS,
    MatchLine,
    SeasonTotals,
    fantasy_team_points,
    league_points,
    match_fantasy_points,
    season_points,
)


@pytest.mark.parametrize(
    "home,away,expected",
    [(2, 1, (3, 0)), (0, 3, (0, 3)), (1, 1, (1, 1)), (0, 0, (1, 1))],
)
def test_league_points(home, away, expected):
    assert league_points(home, away) == expected


def test_season_points_forward():
    totals = SeasonTotals(PlayerPosition.FWD, goals=2, assists=1, yellow_cards=1, clean_sheets=5)
    # Forwards earn nothing for clean sheets
    assert season_points(totals) == 2 * 4 + 3 - 1


def test_season_points_defender_clean_sheets_and_red_card():
    totals = SeasonTotals(PlayerPosition.DEF, clean_sheets=3, red_cards=1)
    assert season_points(totals) == 12 - 3


def test_season_points_empty():
    assert season_points(SeasonTotals(PlayerPosition.GK)) == 0


def test_match_points_forward_big_game():
    line = MatchLine(goals=2, assists=1, rating=8.7, minutes_played=90, motm=True)
    # rating 8 -> 3, appearance 2, assist 3, motm 3, goals 2 * 4
    assert match_fantasy_points(line, PlayerPosition.FWD) == 19


def test_match_points_goalkeeper_saves_and_penalty():
    line = MatchLine(rating=7.0, minutes_played=90, clean_sheet=True, saves=5, penalty_saves=1)
    # rating 2, appearance 2, clean sheet 6, saves 5 // 2, penalty save 5
    assert match_fantasy_points(line, PlayerPosition.GK) == 17


def test_match_points_penalties_can_go_negative():
    line = MatchLine(rating=5.9, minutes_played=30, red_cards=1, own_goals=1)
    assert match_fantasy_points(line, PlayerPosition.DEF) == 2 - 3 - 2


def test_saves_only_count_for_goalkeepers():
    line = MatchLine(saves=6, penalty_saves=1)
    assert match_fantasy_points(line, PlayerPosition.MID) == 0


def test_unused_substitute_scores_nothing():
    assert match_fantasy_points(MatchLine(), PlayerPosition.FWD) == 0


@pytest.mark.parametrize("position", list(PlayerPosition))
def test_goal_and_clean_sheet_weights_cover_every_position(position):
    assert position in GOAL_POINTS
    assert position in CLEAN_SHEET_POINTS
    line = MatchLine(goals=1, clean_sheet=True)
    assert match_fantasy_points(line, position) == GOAL_POINTS[position] + CLEAN_SHEET_POINTS[position]


# ---------- Fantasy squads ----------


def test_fantasy_captain_counts_double():
    points = {"a": 10, "b": 4, "c": 7}
    assert fantasy_team_points(points, ["a", "b", "c"], captain_id="a", vice_captain_id="b") == 21 + 10


def test_fantasy_vice_captain_steps_in_when_captain_did_not_play():
    points = {"b": 4, "c": 7}
    assert fantasy_team_points(points, ["a", "b", "c"], captain_id="a", vice_captain_id="c") == 11 + 7


def test_fantasy_captain_on_zero_keeps_armband():
    points = {"a": 0, "b": 6}
    assert fantasy_team_points(points, ["a", "b"], captain_id="a", vice_captain_id="b") == 6


def test_fantasy_bench_does_not_score():
    points = {"a": 5, "bench": 20}
    assert fantasy_team_points(points, ["a"], captain_id="a") == 10
