"""
Points for results and players.
League points per result, season points from player totals,
and fantasy points for a single match line.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from proclubs.models import PlayerPosition

# ---------- League table ----------
WIN_POINTS = 3
DRAW_POINTS = 1
LOSS_POINTS = 0

# ---------- Season points (player totals) ----------
SEASON_GOAL_POINTS = 4
SEASON_ASSIST_POINTS = 3
SEASON_CLEAN_SHEET_POINTS: dict[PlayerPosition, int] = {
    PlayerPosition.GK: 4,
    PlayerPosition.DEF: 4,
    PlayerPosition.MID: 1,
    PlayerPosition.FWD: 0,
}
SEASON_YELLOW_CARD_POINTS = -1
SEASON_RED_CARD_POINTS = -3

# ---------- Match fantasy points ----------
RATING_BONUS: dict[int, int] = {10: 5, 9: 4, 8: 3, 7: 2, 6: 1}
APPEARANCE_POINTS = 2
ASSIST_POINTS = 3
MOTM_POINTS = 3
RED_CARD_POINTS = -3
OWN_GOAL_POINTS = -2
PENALTY_SAVE_POINTS = 5
GOAL_POINTS: dict[PlayerPosition, int] = {
    PlayerPosition.GK: 10,
    PlayerPosition.DEF: 6,
    PlayerPosition.MID: 5,
    PlayerPosition.FWD: 4,
}
CLEAN_SHEET_POINTS: dict[PlayerPosition, int] = {
    PlayerPosition.GK: 6,
    PlayerPosition.DEF: 4,
    PlayerPosition.MID: 2,
    PlayerPosition.FWD: 0,
}


def league_points(home_score: int, away_score: int) -> tuple[int, int]:
    """(home_points, away_points) for a result: 3/0, 0/3 or 1/1."""
    if home_score > away_score:
        return WIN_POINTS, LOSS_POINTS
    if home_score < away_score:
        return LOSS_POINTS, WIN_POINTS
    return DRAW_POINTS, DRAW_POINTS


@dataclass
class SeasonTotals:
    position: PlayerPosition
    goals: int = 0
    assists: int = 0
    clean_sheets: int = 0
    yellow_cards: int = 0
    red_cards: int = 0


def season_points(totals: SeasonTotals) -> int:
    points = totals.goals * SEASON_GOAL_POINTS
    points += totals.assists * SEASON_ASSIST_POINTS
    points += totals.clean_sheets * SEASON_CLEAN_SHEET_POINTS[totals.position]
    points += totals.yellow_cards * SEASON_YELLOW_CARD_POINTS
    points += totals.red_cards * SEASON_RED_CARD_POINTS
    return points


@dataclass
class MatchLine:
    """One player's numbers for one match (input to match_fantasy_points)."""
    goals: int = 0
    assists: int = 0
    rating: float | None = None
    minutes_played: int = 0
    red_cards: int = 0
    clean_sheet: bool = False
    saves: int = 0
    penalty_saves: int = 0
    own_goals: int = 0
    motm: bool = False


def match_fantasy_points(line: MatchLine, position: PlayerPosition) -> int:
    """
    Fantasy points for one match line.
    Rating bonus uses the floored rating; goals and clean sheets are weighted by position.
    """
    points = 0
    if line.rating is not None:
        points += RATING_BONUS.get(math.floor(line.rating), 0)
    if line.minutes_played > 0:
        points += APPEARANCE_POINTS
    points += line.assists * ASSIST_POINTS
    if line.motm:
        points += MOTM_POINTS
    if line.red_cards:
        points += RED_CARD_POINTS
    points += line.goals * GOAL_POINTS[position]
    if line.clean_sheet:
        points += CLEAN_SHEET_POINTS[position]
    if position == PlayerPosition.GK:
        points += line.saves // 2
        points += line.penalty_saves * PENALTY_SAVE_POINTS
    points += line.own_goals * OWN_GOAL_POINTS
    return points


# ---------- Fantasy squads ----------
CAPTAIN_MULTIPLIER = 2


def fantasy_team_points(
    points_by_player: dict[str, int],
    starters: list[str],
    captain_id: str | None,
    vice_captain_id: str | None = None,
) -> int:
    """
    Squad total: starters' fantasy points, with the captain's counted CAPTAIN_MULTIPLIER times.
    The vice-captain takes the armband when the captain has not played (no entry in points_by_player).
    """
    total = sum(points_by_player.get(pid, 0) for pid in starters)
    armband = captain_id if captain_id in points_by_player else vice_captain_id
    if armband in starters and armband in points_by_player:
        total += points_by_player[armband] * (CAPTAIN_MULTIPLIER - 1)
    return total
