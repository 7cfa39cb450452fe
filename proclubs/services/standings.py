"""
Standings and statistics derived from match results.
Nothing here is stored: tables are recomputed from finished matches on every read.

Rules:
- Every registered team appears, even with no matches played.
- Only finished matches with both scores count, and only when both teams are registered.
- 3 points for a win, 1 for a draw, 0 for a loss.
- Sort by points, then goal difference, then goals for; remaining ties keep registration order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

from proclubs.models import Match, Player, PlayerMatchStats, Team
from proclubs.scoring import league_points

FORM_LENGTH = 5
TOP_SCORERS_LIMIT = 10

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class StandingRow:
    team_id: str
    team_name: str
    logo_url: str | None = None
    position: int = 0
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0
    form: list[str] = field(default_factory=list)
    zone: str | None = None

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self) -> dict[str, Any]:
        out = {
            "position": self.position,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "logo_url": self.logo_url,
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": self.goal_difference,
            "points": self.points,
            "form": list(self.form),
        }
        if self.zone is not None:
            out["zone"] = self.zone
        return out


def _kickoff(m: Match) -> datetime:
    return m.match_date or m.created_at or _EPOCH


def _result_for(m: Match, team_id: str) -> str:
    """W, D or L from team_id's point of view. Match must have a result."""
    if m.home_team_id == team_id:
        scored, conceded = m.home_score, m.away_score
    else:
        scored, conceded = m.away_score, m.home_score
    if scored > conceded:
        return "W"
    if scored < conceded:
        return "L"
    return "D"


def _form(matches: Iterable[Match], team_id: str) -> list[str]:
    """Last FORM_LENGTH results, most recent first."""
    played = sorted((m for m in matches if m.involves(team_id)), key=_kickoff, reverse=True)
    return [_result_for(m, team_id) for m in played[:FORM_LENGTH]]


def compute_standings(
    teams: list[Team],
    matches: list[Match],
    group_name: str | None = None,
) -> list[StandingRow]:
    """
    Build the league table for teams (in registration order) from matches.
    With group_name, only that group's matches are considered.
    """
    rows: dict[str, StandingRow] = {
        t.id: StandingRow(team_id=t.id, team_name=t.name, logo_url=t.logo_url) for t in teams
    }
    counted: list[Match] = []
    for m in matches:
        if not m.has_result:
            continue
        if group_name is not None and m.group_name != group_name:
            continue
        home = rows.get(m.home_team_id)
        away = rows.get(m.away_team_id)
        if home is None or away is None:
            continue
        counted.append(m)
        home_points, away_points = league_points(m.home_score, m.away_score)
        home.played += 1
        away.played += 1
        home.goals_for += m.home_score
        home.goals_against += m.away_score
        away.goals_for += m.away_score
        away.goals_against += m.home_score
        home.points += home_points
        away.points += away_points
        if m.home_score > m.away_score:
            home.won += 1
            away.lost += 1
        elif m.home_score < m.away_score:
            away.won += 1
            home.lost += 1
        else:
            home.drawn += 1
            away.drawn += 1

    # sorted() is stable, so equal rows stay in registration order
    ordered = sorted(
        rows.values(),
        key=lambda r: (r.points, r.goal_difference, r.goals_for),
        reverse=True,
    )
    for i, row in enumerate(ordered, start=1):
        row.position = i
        row.form = _form(counted, row.team_id)
    return ordered


def qualification_zones(rows: list[StandingRow], direct: int, playoff: int) -> list[StandingRow]:
    """Tag rows as direct / playoff / eliminated by table position."""
    for row in rows:
        if row.position <= direct:
            row.zone = "direct"
        elif row.position <= direct + playoff:
            row.zone = "playoff"
        else:
            row.zone = "eliminated"
    return rows


def team_records(
    teams: list[Team],
    matches: list[Match],
    player_counts: dict[str, int],
) -> list[dict[str, Any]]:
    """Per team: squad size, wins and losses. Draws count as neither."""
    out: list[dict[str, Any]] = []
    finished = [m for m in matches if m.has_result]
    for t in teams:
        wins = losses = 0
        for m in finished:
            if not m.involves(t.id):
                continue
            result = _result_for(m, t.id)
            if result == "W":
                wins += 1
            elif result == "L":
                losses += 1
        out.append({
            "team_id": t.id,
            "name": t.name,
            "short_name": t.short_name,
            "logo_url": t.logo_url,
            "players_count": player_counts.get(t.id, 0),
            "wins": wins,
            "losses": losses,
        })
    return out


def team_performance(team_id: str, matches: list[Match]) -> dict[str, Any]:
    """Summary of a team's finished matches across all competitions."""
    played = sorted(
        (m for m in matches if m.has_result and m.involves(team_id)),
        key=_kickoff,
        reverse=True,
    )
    wins = draws = losses = goals_for = goals_against = clean_sheets = 0
    recent: list[dict[str, Any]] = []
    for m in played:
        home = m.home_team_id == team_id
        scored = m.home_score if home else m.away_score
        conceded = m.away_score if home else m.home_score
        goals_for += scored
        goals_against += conceded
        if conceded == 0:
            clean_sheets += 1
        result = _result_for(m, team_id)
        if result == "W":
            wins += 1
        elif result == "D":
            draws += 1
        else:
            losses += 1
        if len(recent) < FORM_LENGTH:
            recent.append({
                "match_id": m.id,
                "date": m.match_date.isoformat() if m.match_date else None,
                "opponent_id": m.away_team_id if home else m.home_team_id,
                "home": home,
                "score": f"{scored}-{conceded}",
                "result": result,
            })
    return {
        "team_id": team_id,
        "played": len(played),
        "wins": wins,
        "draws": draws,
        "losses": losses,
        "goals_for": goals_for,
        "goals_against": goals_against,
        "goal_difference": goals_for - goals_against,
        "clean_sheets": clean_sheets,
        "points": wins * 3 + draws,
        "form": [r["result"] for r in recent],
        "recent_results": recent,
    }


def top_scorers(
    stat_rows: list[PlayerMatchStats],
    players: dict[str, Player],
    teams: dict[str, Team] | None = None,
    limit: int = TOP_SCORERS_LIMIT,
) -> list[dict[str, Any]]:
    """
    Aggregate approved stat lines by player and rank by goals.
    Rating is the mean of non-zero ratings, one decimal.
    """
    teams = teams or {}
    totals: dict[str, dict[str, Any]] = {}
    ratings: dict[str, list[float]] = {}
    for s in stat_rows:
        entry = totals.get(s.player_id)
        if entry is None:
            player = players.get(s.player_id)
            team_id = player.team_id if player else s.team_id
            team = teams.get(team_id)
            entry = {
                "player_id": s.player_id,
                "name": player.name if player else None,
                "position_played": player.position if player else None,
                "team_id": team_id,
                "team_name": team.name if team else None,
                "goals": 0,
                "assists": 0,
                "appearances": 0,
            }
            totals[s.player_id] = entry
            ratings[s.player_id] = []
        entry["goals"] += s.goals
        entry["assists"] += s.assists
        entry["appearances"] += 1
        if s.rating:
            ratings[s.player_id].append(s.rating)

    ordered = sorted(totals.values(), key=lambda e: e["goals"], reverse=True)[:limit]
    for i, entry in enumerate(ordered, start=1):
        rs = ratings[entry["player_id"]]
        entry["rating"] = round(sum(rs) / len(rs), 1) if rs else 0
        entry["position"] = i
    return ordered
