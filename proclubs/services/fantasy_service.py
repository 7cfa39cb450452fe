"""
Fantasy service: user squads picked from a competition's registered clubs.

A squad is 15 players (slots 1-11 start, 12-15 bench) bought with a fixed budget
at per-competition player prices. Points come from approved match stats; the
captain's points count double, or the vice-captain's when the captain has not played.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any

from proclubs.errors import NotFoundError
from proclubs.models import (
    Competition,
    CompetitionStatus,
    FantasySquadSlot,
    FantasyTeam,
    MatchStatus,
    Player,
    StatsStatus,
)
from proclubs.persistence.repositories import (
    CompetitionRepository,
    FantasyRepository,
    PlayerRepository,
    PlayerStatsRepository,
)
from proclubs.scoring import fantasy_team_points

logger = logging.getLogger(__name__)

SQUAD_SIZE = 15
STARTING_SLOTS = 11
DEFAULT_BUDGET = 100.0
DEFAULT_PRICE = 5.0


class FantasyValidationError(ValueError):
    """Squad breaks the size, slot, armband or budget rules."""


class FantasyService:
    """Fantasy squads, the player market and the leaderboard."""

    def __init__(self, budget: float = DEFAULT_BUDGET) -> None:
        self._budget = budget
        self._fantasy_repo = FantasyRepository()
        self._competition_repo = CompetitionRepository()
        self._player_repo = PlayerRepository()
        self._stats_repo = PlayerStatsRepository()

    def get_team(self, conn: sqlite3.Connection, team_id: str) -> FantasyTeam:
        team = self._fantasy_repo.get(conn, team_id)
        if team is None:
            raise NotFoundError("Fantasy team", team_id)
        return team

    def list_teams(
        self,
        conn: sqlite3.Connection,
        competition_id: str | None = None,
        user_id: str | None = None,
    ) -> list[FantasyTeam]:
        return self._fantasy_repo.list(conn, competition_id=competition_id, user_id=user_id)

    # ---------- Market ----------

    def _competition(self, conn: sqlite3.Connection, competition_id: str) -> Competition:
        competition = self._competition_repo.get(conn, competition_id)
        if competition is None:
            raise NotFoundError("Competition", competition_id)
        return competition

    def _eligible_players(self, conn: sqlite3.Connection, competition_id: str) -> dict[str, Player]:
        """Squad members of every club registered in the competition."""
        players: dict[str, Player] = {}
        for entry in self._competition_repo.list_teams(conn, competition_id):
            for p in self._player_repo.list(conn, team_id=entry.team_id):
                players[p.id] = p
        return players

    def _prices(self, conn: sqlite3.Connection, competition_id: str, player_ids: list[str]) -> dict[str, float]:
        stored = self._fantasy_repo.prices(conn, competition_id)
        return {pid: stored.get(pid, DEFAULT_PRICE) for pid in player_ids}

    def set_player_price(
        self, conn: sqlite3.Connection, competition_id: str, player_id: str, price: float
    ) -> dict[str, Any]:
        self._competition(conn, competition_id)
        if price <= 0:
            raise FantasyValidationError("price must be positive")
        if player_id not in self._eligible_players(conn, competition_id):
            raise FantasyValidationError("Player's club is not registered in this competition")
        self._fantasy_repo.set_price(conn, competition_id, player_id, price)
        logger.info("Fantasy price for %s in %s set to %.1f", player_id, competition_id, price)
        return {"competition_id": competition_id, "player_id": player_id, "price": price}

    def player_market(self, conn: sqlite3.Connection, competition_id: str) -> list[dict[str, Any]]:
        """Pickable players with price and competition fantasy points, best scorers first."""
        self._competition(conn, competition_id)
        players = self._eligible_players(conn, competition_id)
        prices = self._prices(conn, competition_id, list(players))
        points = self._competition_points(conn, competition_id)
        rows = [
            {**p.to_dict(), "price": prices[p.id], "fantasy_points": points.get(p.id, 0)}
            for p in players.values()
        ]
        rows.sort(key=lambda r: (-r["fantasy_points"], -r["price"], r["name"]))
        return rows

    # ---------- Squads ----------

    def _validate_squad(
        self,
        conn: sqlite3.Connection,
        competition_id: str,
        squad: list[FantasySquadSlot],
        budget: float,
    ) -> list[FantasySquadSlot]:
        if len(squad) != SQUAD_SIZE:
            raise FantasyValidationError(f"A squad has exactly {SQUAD_SIZE} players (got {len(squad)})")
        if sorted(s.slot for s in squad) != list(range(1, SQUAD_SIZE + 1)):
            raise FantasyValidationError(f"Slots must be 1-{SQUAD_SIZE} exactly once")
        player_ids = [s.player_id for s in squad]
        if len(set(player_ids)) != len(player_ids):
            raise FantasyValidationError("A player can only be picked once")

        captains = [s for s in squad if s.is_captain]
        vices = [s for s in squad if s.is_vice_captain]
        if len(captains) != 1 or len(vices) != 1:
            raise FantasyValidationError("Exactly one captain and one vice-captain required")
        if captains[0].player_id == vices[0].player_id:
            raise FantasyValidationError("Captain and vice-captain must be different players")
        if captains[0].slot > STARTING_SLOTS or vices[0].slot > STARTING_SLOTS:
            raise FantasyValidationError(f"Captain and vice-captain must start (slots 1-{STARTING_SLOTS})")

        eligible = self._eligible_players(conn, competition_id)
        for pid in player_ids:
            if pid not in eligible:
                if self._player_repo.get(conn, pid) is None:
                    raise NotFoundError("Player", pid)
                raise FantasyValidationError("Every pick must play for a club registered in this competition")

        cost = round(sum(self._prices(conn, competition_id, player_ids).values()), 2)
        if cost > budget:
            raise FantasyValidationError(f"Squad cost {cost} exceeds budget {budget}")
        return sorted(squad, key=lambda s: s.slot)

    def _check_open(self, competition: Competition) -> None:
        if competition.status == CompetitionStatus.COMPLETED:
            raise FantasyValidationError("The competition is completed; squads are locked")

    def create_team(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        competition_id: str,
        name: str,
        squad: list[FantasySquadSlot],
    ) -> FantasyTeam:
        """One squad per user and competition; a second raises sqlite3.IntegrityError."""
        competition = self._competition(conn, competition_id)
        self._check_open(competition)
        if not name.strip():
            raise FantasyValidationError("name is required")
        cleaned = self._validate_squad(conn, competition_id, squad, self._budget)
        team = self._fantasy_repo.create(conn, user_id, competition_id, name.strip(), self._budget, cleaned)
        logger.info("Fantasy team %s created by %s for %s", team.id, user_id, competition_id)
        return team

    def update_squad(
        self,
        conn: sqlite3.Connection,
        team_id: str,
        squad: list[FantasySquadSlot],
        name: str | None = None,
    ) -> FantasyTeam:
        team = self.get_team(conn, team_id)
        self._check_open(self._competition(conn, team.competition_id))
        cleaned = self._validate_squad(conn, team.competition_id, squad, team.budget)
        if name is not None:
            if not name.strip():
                raise FantasyValidationError("name is required")
            self._fantasy_repo.update(conn, team_id, name=name.strip())
        self._fantasy_repo.replace_squad(conn, team_id, cleaned)
        return self.get_team(conn, team_id)

    def delete_team(self, conn: sqlite3.Connection, team_id: str) -> None:
        self.get_team(conn, team_id)
        self._fantasy_repo.delete(conn, team_id)

    def squad_cost(self, conn: sqlite3.Connection, team: FantasyTeam) -> float:
        prices = self._prices(conn, team.competition_id, [s.player_id for s in team.squad])
        return round(sum(prices.values()), 2)

    # ---------- Points ----------

    def _competition_points(self, conn: sqlite3.Connection, competition_id: str) -> dict[str, int]:
        """Fantasy points per player from approved lines of finished matches."""
        rows = self._stats_repo.list_for_competition(
            conn, competition_id, status=StatsStatus.APPROVED, match_status=MatchStatus.FINISHED,
        )
        points: dict[str, int] = {}
        for r in rows:
            points[r.player_id] = points.get(r.player_id, 0) + r.fantasy_points
        return points

    def refresh_points(self, conn: sqlite3.Connection, competition_id: str) -> list[FantasyTeam]:
        """Recompute and store every squad's total for the competition."""
        self._competition(conn, competition_id)
        points = self._competition_points(conn, competition_id)
        for team in self._fantasy_repo.list(conn, competition_id=competition_id):
            starters = [s.player_id for s in team.squad if not s.is_bench]
            total = fantasy_team_points(points, starters, team.captain_id, team.vice_captain_id)
            if total != team.points:
                self._fantasy_repo.update(conn, team.id, points=total)
        return self._fantasy_repo.list(conn, competition_id=competition_id)

    def leaderboard(
        self, conn: sqlite3.Connection, competition_id: str, limit: int | None = None
    ) -> list[dict[str, Any]]:
        """Ranked squads; equal points share a rank."""
        teams = self.refresh_points(conn, competition_id)
        out: list[dict[str, Any]] = []
        rank = 0
        for i, team in enumerate(teams):
            if i == 0 or team.points != teams[i - 1].points:
                rank = i + 1
            out.append({
                "rank": rank,
                "fantasy_team_id": team.id,
                "user_id": team.user_id,
                "name": team.name,
                "points": team.points,
            })
        return out[:limit] if limit is not None else out
