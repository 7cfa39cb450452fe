"""
Competition service: lifecycle, registration, fixtures, results and player stats.
Start competition: generate fixtures (or use the Swiss draw). Knockout cups advance round by round.
"""
from __future__ import annotations

import logging
import random
import sqlite3
from datetime import date, datetime, timezone
from typing import Any

from proclubs.errors import NotFoundError
from proclubs.models import (
    Competition,
    CompetitionStatus,
    CompetitionTeam,
    CompetitionType,
    Frequency,
    Match,
    MatchStage,
    MatchStatus,
    PlayerMatchStats,
    PlayerPosition,
    StatsStatus,
    SwissConfig,
    Team,
)
from proclubs.persistence.repositories import (
    CompetitionRepository,
    MatchRepository,
    PlayerRepository,
    PlayerStatsRepository,
    SwissConfigRepository,
    TeamRepository,
)
from proclubs.scoring import MatchLine, SeasonTotals, match_fantasy_points, season_points
from proclubs.services.scheduling import (
    Fixture,
    generate_fixtures,
    generate_knockout_round,
    kickoff,
    matchday_date,
)
from proclubs.services.standings import (
    compute_standings,
    qualification_zones,
    team_records,
    top_scorers,
)
from proclubs.services.swiss_draw import DrawResult, SwissDrawEngine

logger = logging.getLogger(__name__)

# ---------- Exceptions ----------


class CompetitionStateError(ValueError):
    """Operation not allowed in the competition's current status."""


class RegistrationError(ValueError):
    """Team cannot be registered or withdrawn."""


class ResultError(ValueError):
    """Invalid match result or player stat line."""


# ---------- Valid transitions ----------

_VALID_TRANSITIONS: dict[str, set[str]] = {
    CompetitionStatus.UPCOMING: {CompetitionStatus.ACTIVE},
    CompetitionStatus.ACTIVE: {CompetitionStatus.COMPLETED},
    CompetitionStatus.COMPLETED: set(),
}

# Fields that shape the fixture list; frozen once the competition starts
_STRUCTURAL_FIELDS = frozenset({
    "start_date", "max_teams", "frequency", "home_and_away", "number_of_groups", "third_place_playoff",
})

# Columns that always hold a value
_REQUIRED_FIELDS = frozenset({"name", "frequency", "home_and_away", "third_place_playoff"})

_KNOCKOUT_STAGES = (MatchStage.KNOCKOUT, MatchStage.THIRD_PLACE)
_OPEN_MATCH_STATUSES = (MatchStatus.SCHEDULED, MatchStatus.LIVE)

QUALIFIERS_PER_GROUP = 2
MAX_RATING = 10.0


def _winner(m: Match) -> str:
    return m.home_team_id if m.home_score > m.away_score else m.away_team_id


def _loser(m: Match) -> str:
    return m.away_team_id if m.home_score > m.away_score else m.home_team_id


# ---------- CompetitionService ----------


class CompetitionService:
    """
    Domain logic for competitions: status transitions, registration guards,
    fixture generation and result bookkeeping. Persistence is delegated to repositories.
    """

    def __init__(self) -> None:
        self._competition_repo = CompetitionRepository()
        self._team_repo = TeamRepository()
        self._match_repo = MatchRepository()
        self._player_repo = PlayerRepository()
        self._stats_repo = PlayerStatsRepository()
        self._swiss_repo = SwissConfigRepository()

    def get_competition(self, conn: sqlite3.Connection, competition_id: str) -> Competition:
        competition = self._competition_repo.get(conn, competition_id)
        if competition is None:
            raise NotFoundError("Competition", competition_id)
        return competition

    # ---------- CRUD with validation ----------

    @staticmethod
    def _validate_fields(competition_type: str, fields: dict[str, Any]) -> None:
        frequency = fields.get("frequency")
        if frequency is not None and frequency not in {f.value for f in Frequency}:
            raise ValueError(f"Unknown frequency: {frequency}")
        max_teams = fields.get("max_teams")
        if max_teams is not None and max_teams < 2:
            raise ValueError("max_teams must be at least 2")
        groups = fields.get("number_of_groups")
        if groups is not None:
            if competition_type != CompetitionType.CUP:
                raise ValueError("number_of_groups only applies to cups")
            if groups < 2:
                raise ValueError("A group stage needs at least 2 groups")
        start, end = fields.get("start_date"), fields.get("end_date")
        if start is not None and end is not None and end < start:
            raise ValueError("end_date must not be before start_date")

    def create_competition(self, conn: sqlite3.Connection, name: str, type: str, **fields: Any) -> Competition:
        if type not in {t.value for t in CompetitionType}:
            raise ValueError(f"Unknown competition type: {type}")
        self._validate_fields(type, fields)
        competition = self._competition_repo.create(conn, name, type, **fields)
        logger.info("Competition %s created (%s, %s)", competition.id, competition.name, competition.type)
        return competition

    def update_competition(self, conn: sqlite3.Connection, competition_id: str, **fields: Any) -> Competition:
        cleared = sorted(k for k in _REQUIRED_FIELDS if k in fields and fields[k] is None)
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        competition = self.get_competition(conn, competition_id)
        frozen = _STRUCTURAL_FIELDS & set(fields)
        if frozen and competition.status != CompetitionStatus.UPCOMING:
            raise CompetitionStateError(
                f"Cannot change {', '.join(sorted(frozen))} once the competition has started"
            )
        merged = {
            "start_date": competition.start_date,
            "end_date": competition.end_date,
            **fields,
        }
        self._validate_fields(competition.type, merged)
        if fields:
            self._competition_repo.update(conn, competition_id, **fields)
        return self.get_competition(conn, competition_id)

    def transition_status(self, conn: sqlite3.Connection, competition_id: str, new_status: str) -> None:
        """
        Transition competition to new_status if valid.
        Valid: upcoming -> active -> completed.
        """
        competition = self.get_competition(conn, competition_id)
        current = competition.status
        allowed = _VALID_TRANSITIONS.get(current, set())
        if new_status not in allowed:
            raise CompetitionStateError(
                f"Invalid transition: {current} -> {new_status}. Allowed from {current}: {sorted(allowed)}"
            )
        self._competition_repo.update_status(conn, competition_id, new_status)
        logger.info("Competition %s: %s -> %s", competition_id, current, new_status)

    # ---------- Registration ----------

    def registered_teams(self, conn: sqlite3.Connection, competition_id: str) -> list[Team]:
        """Registered teams in registration order."""
        entries = self._competition_repo.list_teams(conn, competition_id)
        teams = self._team_repo.get_many(conn, [e.team_id for e in entries])
        return [teams[e.team_id] for e in entries if e.team_id in teams]

    def register_team(self, conn: sqlite3.Connection, competition_id: str, team_id: str) -> CompetitionTeam:
        competition = self.get_competition(conn, competition_id)
        if self._team_repo.get(conn, team_id) is None:
            raise NotFoundError("Team", team_id)
        if competition.status != CompetitionStatus.UPCOMING:
            raise CompetitionStateError(
                f"Registration is closed (competition is {competition.status})"
            )
        if self._competition_repo.get_team_entry(conn, competition_id, team_id) is not None:
            raise RegistrationError("Team is already registered")
        if competition.max_teams is not None:
            if self._competition_repo.count_teams(conn, competition_id) >= competition.max_teams:
                raise RegistrationError("Competition is full")
        entry = self._competition_repo.add_team(conn, competition_id, team_id)
        logger.info("Team %s registered for competition %s", team_id, competition_id)
        self._discard_swiss_draw(conn, competition)
        return entry

    def withdraw_team(self, conn: sqlite3.Connection, competition_id: str, team_id: str) -> None:
        competition = self.get_competition(conn, competition_id)
        if competition.status != CompetitionStatus.UPCOMING:
            raise CompetitionStateError(
                f"Teams cannot withdraw once the competition is {competition.status}"
            )
        if self._competition_repo.get_team_entry(conn, competition_id, team_id) is None:
            raise NotFoundError("Registration", team_id)
        self._competition_repo.remove_team(conn, competition_id, team_id)
        logger.info("Team %s withdrew from competition %s", team_id, competition_id)
        self._discard_swiss_draw(conn, competition)

    # ---------- Swiss model ----------

    def _discard_swiss_draw(self, conn: sqlite3.Connection, competition: Competition) -> None:
        """A draw is only valid for the teams it was made with."""
        if competition.type != CompetitionType.SWISS:
            return
        removed = self._match_repo.delete_by_stage(conn, competition.id, MatchStage.SWISS)
        if removed:
            logger.info("Registrations changed; discarded %d drawn Swiss matches for %s", removed, competition.id)

    def save_swiss_config(self, conn: sqlite3.Connection, config: SwissConfig) -> SwissConfig:
        competition = self.get_competition(conn, config.competition_id)
        if competition.type != CompetitionType.SWISS:
            raise ValueError("Swiss configuration only applies to Swiss competitions")
        if competition.status != CompetitionStatus.UPCOMING:
            raise CompetitionStateError("Swiss configuration is locked once the competition starts")
        if config.number_of_teams < 2:
            raise ValueError("number_of_teams must be at least 2")
        if not 1 <= config.matches_per_team <= config.number_of_teams - 1:
            raise ValueError("matches_per_team must be between 1 and number_of_teams - 1")
        if config.direct_qualifiers < 0 or config.playoff_qualifiers < 0:
            raise ValueError("Qualifier counts must be >= 0")
        if config.direct_qualifiers + config.playoff_qualifiers > config.number_of_teams:
            raise ValueError("More qualifiers than teams")
        return self._swiss_repo.upsert(conn, config)

    def run_swiss_draw(self, conn: sqlite3.Connection, competition_id: str, seed: int | None = None) -> DrawResult:
        """
        Draw every round and persist the fixtures. Redrawing replaces the previous draw.
        Only allowed before the competition starts.
        """
        competition = self.get_competition(conn, competition_id)
        if competition.type != CompetitionType.SWISS:
            raise ValueError("Only Swiss competitions use the Swiss draw")
        if competition.status != CompetitionStatus.UPCOMING:
            raise CompetitionStateError("The draw must happen before the competition starts")
        config = self._swiss_repo.get(conn, competition_id)
        if config is None:
            raise NotFoundError("Swiss configuration", competition_id)
        teams = self.registered_teams(conn, competition_id)
        result = SwissDrawEngine(random.Random(seed)).run_draw(teams, config)

        removed = self._match_repo.delete_by_stage(conn, competition_id, MatchStage.SWISS)
        if removed:
            logger.info("Replaced %d previously drawn Swiss matches for %s", removed, competition_id)
        per_round: dict[int, int] = {}
        for m in result.matches:
            match_date = None
            if competition.start_date is not None:
                i = per_round.get(m.round, 0)
                per_round[m.round] = i + 1
                match_date = kickoff(matchday_date(competition.start_date, m.round, competition.frequency), i)
            self._match_repo.create(
                conn, m.home_team_id, m.away_team_id,
                competition_id=competition_id, stage=MatchStage.SWISS,
                match_date=match_date, round=m.round, commit=False,
            )
        conn.commit()
        logger.info("Swiss draw saved for %s: %d matches", competition_id, len(result.matches))
        return result

    # ---------- Start competition & fixtures ----------

    def _persist_fixtures(
        self,
        conn: sqlite3.Connection,
        competition_id: str,
        fixtures: list[Fixture],
        stage: str,
    ) -> list[Match]:
        created = [
            self._match_repo.create(
                conn, f.home_team_id, f.away_team_id,
                competition_id=competition_id,
                stage=f.stage or stage,
                match_date=f.match_date, matchday=f.matchday, round=f.round,
                group_name=f.group_name,
                commit=False,
            )
            for f in fixtures
        ]
        conn.commit()
        return created

    def start_competition(self, conn: sqlite3.Connection, competition_id: str, seed: int | None = None) -> Competition:
        """
        Freeze registrations, generate fixtures and move upcoming -> active.
        Swiss competitions play the fixtures already produced by the draw.
        """
        competition = self.get_competition(conn, competition_id)
        if competition.status != CompetitionStatus.UPCOMING:
            raise CompetitionStateError(f"Competition must be upcoming to start (current: {competition.status})")
        team_ids = [e.team_id for e in self._competition_repo.list_teams(conn, competition_id)]
        if len(team_ids) < 2:
            raise CompetitionStateError("Need at least 2 teams to start a competition")

        if competition.type == CompetitionType.SWISS:
            drawn = self._match_repo.list(conn, competition_id=competition_id)
            if not drawn:
                raise CompetitionStateError("Run the Swiss draw before starting the competition")
            config = self._swiss_repo.get(conn, competition_id)
            drawn_ids = {t for m in drawn for t in (m.home_team_id, m.away_team_id)}
            if config is None or len(team_ids) != config.number_of_teams or not drawn_ids <= set(team_ids):
                raise CompetitionStateError("The Swiss draw does not match the registered teams; run it again")
        else:
            plan = generate_fixtures(team_ids, competition, seed=seed)
            for group_name, members in plan.groups.items():
                for team_id in members:
                    self._competition_repo.set_group(conn, competition_id, team_id, group_name)
            if plan.groups:
                stage = MatchStage.GROUP
            elif competition.type == CompetitionType.CUP:
                stage = MatchStage.KNOCKOUT
            elif competition.type == CompetitionType.FRIENDLY:
                stage = MatchStage.FRIENDLY
            else:
                stage = MatchStage.LEAGUE
            self._persist_fixtures(conn, competition_id, plan.fixtures, stage)
            if plan.byes:
                logger.info("Byes into round 2 for %s: %s", competition_id, plan.byes)
            logger.info("Generated %d fixtures for %s", len(plan.fixtures), competition_id)

        self.transition_status(conn, competition_id, CompetitionStatus.ACTIVE)
        self._competition_repo.update_started_at(conn, competition_id, datetime.now(timezone.utc))
        return self.get_competition(conn, competition_id)

    # ---------- Results ----------

    def create_match(
        self,
        conn: sqlite3.Connection,
        home_team_id: str,
        away_team_id: str,
        match_date: datetime | None = None,
        venue: str | None = None,
    ) -> Match:
        """Ad-hoc friendly outside any competition."""
        if home_team_id == away_team_id:
            raise ValueError("A team cannot play itself")
        for team_id in (home_team_id, away_team_id):
            if self._team_repo.get(conn, team_id) is None:
                raise NotFoundError("Team", team_id)
        return self._match_repo.create(
            conn, home_team_id, away_team_id, stage=MatchStage.FRIENDLY, match_date=match_date, venue=venue,
        )

    def get_match(self, conn: sqlite3.Connection, match_id: str) -> Match:
        match = self._match_repo.get(conn, match_id)
        if match is None:
            raise NotFoundError("Match", match_id)
        return match

    def update_match(self, conn: sqlite3.Connection, match_id: str, **fields: Any) -> Match:
        """Reschedule, relocate or change status. Results go through record_result."""
        self.get_match(conn, match_id)
        status = fields.get("status")
        if status is not None:
            if status not in {s.value for s in MatchStatus}:
                raise ValueError(f"Unknown match status: {status}")
            if status == MatchStatus.FINISHED:
                raise ResultError("Record a result to finish a match")
        if fields:
            self._match_repo.update(conn, match_id, **fields)
        return self.get_match(conn, match_id)

    def _check_result_not_drawn_from(self, conn: sqlite3.Connection, match: Match) -> None:
        """
        Results that fed a later draw are final: group matches once the knockout
        stage exists, knockout matches once the next round exists.
        """
        if match.competition_id is None or match.stage not in (MatchStage.GROUP, MatchStage.KNOCKOUT):
            return
        knockout = [
            m for m in self._match_repo.list(conn, competition_id=match.competition_id)
            if m.stage in _KNOCKOUT_STAGES
        ]
        if match.stage == MatchStage.GROUP:
            locked = bool(knockout)
        else:
            locked = any(m.round > match.round for m in knockout)
        if locked:
            raise ResultError("The next round has already been drawn from this result")

    def record_result(self, conn: sqlite3.Connection, match_id: str, home_score: int, away_score: int) -> Match:
        """Set the final score and mark the match finished. Re-recording overwrites."""
        if home_score < 0 or away_score < 0:
            raise ResultError("Scores must be >= 0")
        match = self.get_match(conn, match_id)
        if match.status == MatchStatus.CANCELLED:
            raise ResultError("Cannot record a result for a cancelled match")
        if match.competition_id is not None:
            competition = self.get_competition(conn, match.competition_id)
            if competition.status != CompetitionStatus.ACTIVE:
                raise CompetitionStateError(
                    f"Results can only be recorded while the competition is active (current: {competition.status})"
                )
        if match.stage in _KNOCKOUT_STAGES and home_score == away_score:
            raise ResultError("Knockout matches need a winner")
        self._check_result_not_drawn_from(conn, match)
        self._match_repo.record_result(conn, match_id, home_score, away_score)
        logger.info("Result %s: %d-%d", match_id, home_score, away_score)
        return self.get_match(conn, match_id)

    # ---------- Knockout ----------

    def _group_qualifiers(self, conn: sqlite3.Connection, competition_id: str, matches: list[Match]) -> list[str]:
        """
        Top QUALIFIERS_PER_GROUP of each group, ordered for pairing:
        winner of one group meets the runner-up of the next.
        """
        entries = self._competition_repo.list_teams(conn, competition_id)
        teams = {t.id: t for t in self.registered_teams(conn, competition_id)}
        groups: dict[str, list[Team]] = {}
        for e in entries:
            if e.group_name is not None and e.team_id in teams:
                groups.setdefault(e.group_name, []).append(teams[e.team_id])
        tables = [
            compute_standings(members, matches, group_name=name)[:QUALIFIERS_PER_GROUP]
            for name, members in sorted(groups.items())
        ]
        winners = [t[0].team_id for t in tables]
        runners_up = [t[1].team_id for t in tables]
        runners_up = runners_up[1:] + runners_up[:1]
        ordered: list[str] = []
        for w, r in zip(winners, runners_up):
            ordered += [w, r]
        return ordered

    @staticmethod
    def _next_round_date(competition: Competition, matches: list[Match]) -> date | None:
        dates = [m.match_date for m in matches if m.match_date is not None]
        if not dates:
            return None
        return matchday_date(max(dates).date(), 2, competition.frequency)

    def advance_knockout(self, conn: sqlite3.Connection, competition_id: str) -> list[Match]:
        """
        Create the next knockout round once the latest one is finished.
        Group cups enter the knockout stage when every group match is done.
        After the final the competition is completed and no matches are created.
        """
        competition = self.get_competition(conn, competition_id)
        if competition.type != CompetitionType.CUP:
            raise CompetitionStateError("Only cups have knockout rounds")
        if competition.status != CompetitionStatus.ACTIVE:
            raise CompetitionStateError(f"Competition must be active (current: {competition.status})")
        matches = self._match_repo.list(conn, competition_id=competition_id)
        knockout = [m for m in matches if m.stage in _KNOCKOUT_STAGES]
        next_date = self._next_round_date(competition, matches)

        if competition.number_of_groups:
            group_matches = [m for m in matches if m.stage == MatchStage.GROUP]
            if any(m.status in _OPEN_MATCH_STATUSES for m in group_matches):
                raise CompetitionStateError("The group stage is not finished")
            entrants = self._group_qualifiers(conn, competition_id, group_matches)
            if not knockout:
                fixtures, _ = generate_knockout_round(entrants, 1, next_date)
                created = self._persist_fixtures(conn, competition_id, fixtures, MatchStage.KNOCKOUT)
                logger.info("Knockout stage drawn for %s: %d matches", competition_id, len(created))
                return created
        else:
            entrants = [e.team_id for e in self._competition_repo.list_teams(conn, competition_id)]

        if not knockout:
            raise CompetitionStateError("No knockout matches to advance from")
        latest = max(m.round for m in knockout)
        current = [m for m in knockout if m.round == latest]
        if any(m.status != MatchStatus.FINISHED for m in current):
            raise CompetitionStateError(f"Round {latest} is not finished")

        # Teams still in: byes carried forward first, then winners in match order
        alive = list(entrants)
        main_rounds = sorted({m.round for m in knockout if m.stage == MatchStage.KNOCKOUT})
        for rnd in main_rounds:
            played = [m for m in knockout if m.stage == MatchStage.KNOCKOUT and m.round == rnd]
            involved = {t for m in played for t in (m.home_team_id, m.away_team_id)}
            alive = [t for t in alive if t not in involved] + [_winner(m) for m in played]

        if len(alive) == 1:
            logger.info("Competition %s won by %s", competition_id, alive[0])
            self.complete_competition(conn, competition_id)
            return []

        fixtures, byes = generate_knockout_round(alive, latest + 1, next_date)
        main = [m for m in current if m.stage == MatchStage.KNOCKOUT]
        if len(alive) == 2 and len(main) == 2 and competition.third_place_playoff:
            losers = [_loser(m) for m in main]
            third = Fixture(losers[0], losers[1], round=latest + 1, stage=MatchStage.THIRD_PLACE)
            if next_date is not None:
                third.match_date = kickoff(next_date, len(fixtures))
            fixtures.append(third)
        created = self._persist_fixtures(conn, competition_id, fixtures, MatchStage.KNOCKOUT)
        if byes:
            logger.info("Round %d byes for %s: %s", latest + 1, competition_id, byes)
        logger.info("Round %d drawn for %s: %d matches", latest + 1, competition_id, len(created))
        return created

    def complete_competition(self, conn: sqlite3.Connection, competition_id: str) -> Competition:
        competition = self.get_competition(conn, competition_id)
        if competition.status == CompetitionStatus.ACTIVE:
            open_matches = [
                m for m in self._match_repo.list(conn, competition_id=competition_id)
                if m.status in _OPEN_MATCH_STATUSES
            ]
            if open_matches:
                raise CompetitionStateError(f"{len(open_matches)} matches are still scheduled or live")
        self.transition_status(conn, competition_id, CompetitionStatus.COMPLETED)
        return self.get_competition(conn, competition_id)

    # ---------- Player stats ----------

    def submit_player_stats(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        entries: list[dict[str, Any]],
    ) -> list[PlayerMatchStats]:
        """
        Record per-player lines for a finished match. Lines start pending and
        count toward season totals only after review.
        """
        match = self.get_match(conn, match_id)
        if match.status != MatchStatus.FINISHED:
            raise ResultError("Stats can only be submitted for finished matches")
        player_ids = [e["player_id"] for e in entries]
        if len(set(player_ids)) != len(player_ids):
            raise ResultError("Each player may appear only once per submission")
        players = self._player_repo.get_many(conn, player_ids)
        for e in entries:
            player = players.get(e["player_id"])
            if player is None:
                raise NotFoundError("Player", e["player_id"])
            if not match.involves(player.team_id):
                raise ResultError(f"{player.name} does not play for either team in this match")
            if self._stats_repo.get_by_match_player(conn, match_id, player.id) is not None:
                raise ResultError(f"Stats for {player.name} were already submitted")
            rating = e.get("rating")
            if rating is not None and not 0 <= rating <= MAX_RATING:
                raise ResultError("rating must be between 0 and 10")

        created: list[PlayerMatchStats] = []
        for e in entries:
            player = players[e["player_id"]]
            line = {k: v for k, v in e.items() if k != "player_id" and v is not None}
            points = match_fantasy_points(
                MatchLine(
                    goals=line.get("goals", 0),
                    assists=line.get("assists", 0),
                    rating=line.get("rating"),
                    minutes_played=line.get("minutes_played", 0),
                    red_cards=line.get("red_cards", 0),
                    clean_sheet=line.get("clean_sheet", False),
                    saves=line.get("saves", 0),
                    penalty_saves=line.get("penalty_saves", 0),
                    own_goals=line.get("own_goals", 0),
                    motm=line.get("motm", False),
                ),
                PlayerPosition(player.position),
            )
            created.append(
                self._stats_repo.create(conn, match_id, player.id, player.team_id, fantasy_points=points, **line)
            )
        logger.info("%d stat lines submitted for match %s", len(created), match_id)
        return created

    def review_player_stats(self, conn: sqlite3.Connection, stat_id: str, approve: bool) -> PlayerMatchStats:
        """Approve or reject a pending line. Approval adds it to the player's season totals."""
        stat = self._stats_repo.get(conn, stat_id)
        if stat is None:
            raise NotFoundError("Player stats", stat_id)
        if stat.status != StatsStatus.PENDING:
            raise ResultError(f"Stats already reviewed ({stat.status})")
        new_status = StatsStatus.APPROVED if approve else StatsStatus.REJECTED
        self._stats_repo.update_status(conn, stat_id, new_status)
        if approve:
            self._player_repo.add_season_totals(
                conn, stat.player_id,
                goals=stat.goals,
                assists=stat.assists,
                clean_sheets=1 if stat.clean_sheet else 0,
                yellow_cards=stat.yellow_cards,
                red_cards=stat.red_cards,
            )
            player = self._player_repo.get(conn, stat.player_id)
            if player is not None:
                points = season_points(SeasonTotals(
                    position=PlayerPosition(player.position),
                    goals=player.goals,
                    assists=player.assists,
                    clean_sheets=player.clean_sheets,
                    yellow_cards=player.yellow_cards,
                    red_cards=player.red_cards,
                ))
                self._player_repo.update(conn, player.id, points=points)
        logger.info("Stats %s %s", stat_id, new_status.value)
        return self._stats_repo.get(conn, stat_id)  # type: ignore[return-value]

    # ---------- Read models ----------

    def standings(self, conn: sqlite3.Connection, competition_id: str) -> dict[str, Any]:
        """
        League table for the competition. Cups with a drawn group stage get one
        table per group plus their knockout matches; Swiss tables carry qualification zones.
        """
        competition = self.get_competition(conn, competition_id)
        teams = self.registered_teams(conn, competition_id)
        matches = self._match_repo.list(conn, competition_id=competition_id)
        out: dict[str, Any] = {"competition_id": competition_id, "type": competition.type}

        entries = self._competition_repo.list_teams(conn, competition_id)
        by_id = {t.id: t for t in teams}
        groups: dict[str, list[Team]] = {}
        for e in entries:
            if e.group_name is not None and e.team_id in by_id:
                groups.setdefault(e.group_name, []).append(by_id[e.team_id])

        if groups:
            out["groups"] = [
                {
                    "group_name": name,
                    "standings": [r.to_dict() for r in compute_standings(members, matches, group_name=name)],
                }
                for name, members in sorted(groups.items())
            ]
        else:
            rows = compute_standings(teams, matches)
            if competition.type == CompetitionType.SWISS:
                config = self._swiss_repo.get(conn, competition_id)
                if config is not None:
                    qualification_zones(rows, config.direct_qualifiers, config.playoff_qualifiers)
            out["standings"] = [r.to_dict() for r in rows]
        if competition.type == CompetitionType.CUP:
            out["knockout"] = [m.to_dict() for m in matches if m.stage in _KNOCKOUT_STAGES]
        return out

    def top_scorers(self, conn: sqlite3.Connection, competition_id: str, limit: int = 10) -> list[dict[str, Any]]:
        self.get_competition(conn, competition_id)
        rows = self._stats_repo.list_for_competition(
            conn, competition_id, status=StatsStatus.APPROVED, match_status=MatchStatus.FINISHED,
        )
        players = self._player_repo.get_many(conn, list({r.player_id for r in rows}))
        teams = self._team_repo.get_many(conn, list({p.team_id for p in players.values()}))
        return top_scorers(rows, players, teams, limit=limit)

    def team_records(self, conn: sqlite3.Connection, competition_id: str) -> list[dict[str, Any]]:
        self.get_competition(conn, competition_id)
        teams = self.registered_teams(conn, competition_id)
        matches = self._match_repo.list(conn, competition_id=competition_id)
        counts = self._player_repo.count_by_team(conn, [t.id for t in teams])
        return team_records(teams, matches, counts)
