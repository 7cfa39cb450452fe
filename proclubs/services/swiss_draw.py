"""
Swiss-model draw: every team plays matches_per_team rounds against different opponents.

Each round, a random team from the pool is paired with the first remaining valid
opponent. When no opponent is valid, the round's last pairing is undone and both
teams go back into the pool. The draw fails when a round has nothing left to undo
or the attempt budget runs out.

Home/away balancing caps home games at ceil(matches_per_team / 2).
"""
from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from proclubs.models import SwissConfig, Team

logger = logging.getLogger(__name__)

MAX_ATTEMPTS_PER_ROUND = 500


class SwissDrawError(ValueError):
    """The draw could not produce valid pairings."""


@dataclass
class DrawMatch:
    round: int
    home_team_id: str
    away_team_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"round": self.round, "home_team_id": self.home_team_id, "away_team_id": self.away_team_id}


@dataclass
class DrawResult:
    matches: list[DrawMatch] = field(default_factory=list)
    log: list[str] = field(default_factory=list)

    def rounds(self) -> dict[int, list[DrawMatch]]:
        out: dict[int, list[DrawMatch]] = {}
        for m in self.matches:
            out.setdefault(m.round, []).append(m)
        return out

    def to_dict(self) -> dict[str, Any]:
        return {"matches": [m.to_dict() for m in self.matches], "log": list(self.log)}


class SwissDrawEngine:
    """Runs one draw. Pass a seeded random.Random for a reproducible draw."""

    def __init__(self, rng: random.Random | None = None, max_attempts: int = MAX_ATTEMPTS_PER_ROUND) -> None:
        self._rng = rng or random.Random()
        self._max_attempts = max_attempts
        self._log: list[str] = []

    def _note(self, message: str, level: int = logging.DEBUG) -> None:
        self._log.append(f"{datetime.now(timezone.utc).isoformat()}: {message}")
        logger.log(level, message)

    def _fail(self, message: str) -> SwissDrawError:
        self._note(message, logging.WARNING)
        return SwissDrawError(message)

    # ---------- Rules ----------

    @staticmethod
    def _excluded(a: Team, b: Team, config: SwissConfig) -> bool:
        return any({x, y} == {a.id, b.id} for x, y in config.exclusions)

    @staticmethod
    def _already_drawn(a: Team, b: Team, matches: list[DrawMatch]) -> bool:
        return any({m.home_team_id, m.away_team_id} == {a.id, b.id} for m in matches)

    def is_valid_opponent(self, a: Team, b: Team, config: SwissConfig, matches: list[DrawMatch]) -> bool:
        if a.id == b.id:
            return False
        if self._excluded(a, b, config):
            self._note(f"{a.name} and {b.name} are excluded from playing each other")
            return False
        if self._already_drawn(a, b, matches):
            self._note(f"{a.name} and {b.name} have already been drawn together")
            return False
        if config.same_country_restriction and a.country and a.country == b.country:
            self._note(f"{a.name} and {b.name} share a country ({a.country})")
            return False
        return True

    def assign_home_away(self, a: Team, b: Team, config: SwissConfig, matches: list[DrawMatch]) -> tuple[str, str]:
        """Return (home_team_id, away_team_id)."""
        coin = self._rng.random() < 0.5
        if not config.home_away_balance:
            return (a.id, b.id) if coin else (b.id, a.id)
        a_home = sum(1 for m in matches if m.home_team_id == a.id)
        b_home = sum(1 for m in matches if m.home_team_id == b.id)
        max_home = math.ceil(config.matches_per_team / 2)
        if a_home >= max_home and b_home < max_home:
            return b.id, a.id
        if b_home >= max_home and a_home < max_home:
            return a.id, b.id
        if a_home != b_home:
            return (a.id, b.id) if a_home < b_home else (b.id, a.id)
        return (a.id, b.id) if coin else (b.id, a.id)

    # ---------- Draw ----------

    def _draw_round(self, rnd: int, teams: list[Team], config: SwissConfig, drawn: list[DrawMatch]) -> list[DrawMatch]:
        by_id = {t.id: t for t in teams}
        pool = list(teams)
        round_matches: list[DrawMatch] = []
        attempts = 0
        while len(pool) >= 2:
            attempts += 1
            if attempts > self._max_attempts:
                raise self._fail(f"Gave up on round {rnd} after {self._max_attempts} attempts")
            a = pool.pop(self._rng.randrange(len(pool)))
            opponent = next((b for b in pool if self.is_valid_opponent(a, b, config, drawn)), None)
            if opponent is not None:
                pool.remove(opponent)
                home, away = self.assign_home_away(a, opponent, config, drawn)
                round_matches.append(DrawMatch(rnd, home, away))
                self._note(f"Round {rnd}: {by_id[home].name} vs {by_id[away].name}")
                continue
            pool.append(a)
            self._note(f"No valid opponent for {a.name} in round {rnd}, backtracking")
            if not round_matches:
                raise self._fail(f"Unable to find valid pairings for round {rnd}")
            last = round_matches.pop()
            pool.extend([by_id[last.home_team_id], by_id[last.away_team_id]])
        return round_matches

    def run_draw(self, teams: list[Team], config: SwissConfig) -> DrawResult:
        """Draw config.matches_per_team rounds for teams. Raises SwissDrawError on failure."""
        self._log = []
        self._note("Starting Swiss model draw", logging.INFO)
        if len(teams) != config.number_of_teams:
            raise self._fail(f"Expected {config.number_of_teams} teams but found {len(teams)}")
        if config.matches_per_team < 1:
            raise self._fail("matches_per_team must be at least 1")
        if config.matches_per_team > len(teams) - 1:
            raise self._fail(
                f"{len(teams)} teams cannot each play {config.matches_per_team} different opponents"
            )
        drawn: list[DrawMatch] = []
        for rnd in range(1, config.matches_per_team + 1):
            drawn.extend(self._draw_round(rnd, teams, config, drawn))
        self._note(f"Draw completed: {len(drawn)} matches", logging.INFO)
        return DrawResult(matches=drawn, log=list(self._log))
