"""
Repository interfaces for Pro Clubs data.
No business logic; only read/write operations.
"""
from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Iterable

from proclubs.models import (
    Competition,
    CompetitionTeam,
    FantasySquadSlot,
    FantasyTeam,
    Lineup,
    LineupPlayer,
    Match,
    Player,
    PlayerMatchStats,
    SwissConfig,
    Team,
    User,
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_datetime(s: str | None) -> datetime | None:
    """Parse a stored ISO timestamp. Naive values are treated as UTC."""
    if s is None:
        return None
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_date(s: str | None) -> date | None:
    if s is None:
        return None
    return date.fromisoformat(s[:10])


def _to_db(value: Any) -> Any:
    """Convert a Python value to its column representation."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def _update(
    conn: sqlite3.Connection,
    table: str,
    key_col: str,
    key: str,
    fields: dict[str, Any],
    allowed: Iterable[str],
    touch: bool = True,
) -> None:
    allowed_set = set(allowed)
    unknown = set(fields) - allowed_set
    if unknown:
        raise ValueError(f"Cannot update {table} fields: {sorted(unknown)}")
    values = dict(fields)
    if touch:
        values["updated_at"] = _now()
    if not values:
        return
    assignments = ", ".join(f"{col} = ?" for col in values)
    args = [_to_db(v) for v in values.values()] + [key]
    conn.execute(f"UPDATE {table} SET {assignments} WHERE {key_col} = ?", args)
    conn.commit()


# ---------- UserRepository ----------


class UserRepository:
    """CRUD for users. Passwords arrive already hashed."""

    def create(
        self,
        conn: sqlite3.Connection,
        username: str,
        password_hash: str,
        display_name: str | None = None,
        role: str = "fan",
        team_id: str | None = None,
        id: str | None = None,
    ) -> User:
        uid = id or str(uuid.uuid4())
        now = _now()
        conn.execute(
            "INSERT INTO users (id, username, display_name, password_hash, role, team_id, created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (uid, username, display_name or username, password_hash, _to_db(role), team_id, now),
        )
        conn.commit()
        return self.get(conn, uid)  # type: ignore[return-value]

    @staticmethod
    def _from_row(r: sqlite3.Row) -> User:
        return User(
            id=r["id"],
            username=r["username"],
            display_name=r["display_name"],
            role=r["role"],
            created_at=_parse_datetime(r["created_at"]),
            password_hash=r["password_hash"],
            team_id=r["team_id"],
        )

    def get(self, conn: sqlite3.Connection, user_id: str) -> User | None:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._from_row(row) if row else None

    def get_by_username(self, conn: sqlite3.Connection, username: str) -> User | None:
        row = conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()
        return self._from_row(row) if row else None

    def list_all(self, conn: sqlite3.Connection, role: str | None = None) -> list[User]:
        if role:
            rows = conn.execute("SELECT * FROM users WHERE role = ? ORDER BY created_at", (_to_db(role),)).fetchall()
        else:
            rows = conn.execute("SELECT * FROM users ORDER BY created_at").fetchall()
        return [self._from_row(r) for r in rows]

    def update(self, conn: sqlite3.Connection, user_id: str, **fields: Any) -> None:
        _update(conn, "users", "id", user_id, fields, ("display_name", "role", "team_id"), touch=False)


# ---------- TeamRepository ----------


class TeamRepository:
    """CRUD for teams."""

    UPDATABLE = ("name", "short_name", "country", "logo_url", "description", "manager_id")

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        short_name: str,
        country: str | None = None,
        logo_url: str | None = None,
        description: str | None = None,
        manager_id: str | None = None,
        id: str | None = None,
    ) -> Team:
        tid = id or str(uuid.uuid4())
        now = _now()
        conn.execute(
            "INSERT INTO teams (id, name, short_name, country, logo_url, description, manager_id, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (tid, name, short_name, country, logo_url, description, manager_id, now, now),
        )
        conn.commit()
        return self.get(conn, tid)  # type: ignore[return-value]

    @staticmethod
    def _from_row(r: sqlite3.Row) -> Team:
        return Team(
            id=r["id"],
            name=r["name"],
            short_name=r["short_name"],
            created_at=_parse_datetime(r["created_at"]),
            updated_at=_parse_datetime(r["updated_at"]),
            country=r["country"],
            logo_url=r["logo_url"],
            description=r["description"],
            manager_id=r["manager_id"],
        )

    def get(self, conn: sqlite3.Connection, team_id: str) -> Team | None:
        row = conn.execute("SELECT * FROM teams WHERE id = ?", (team_id,)).fetchone()
        return self._from_row(row) if row else None

    def get_many(self, conn: sqlite3.Connection, team_ids: list[str]) -> dict[str, Team]:
        if not team_ids:
            return {}
        marks = ", ".join("?" for _ in team_ids)
        rows = conn.execute(f"SELECT * FROM teams WHERE id IN ({marks})", list(team_ids)).fetchall()
        return {r["id"]: self._from_row(r) for r in rows}

    def list_all(self, conn: sqlite3.Connection, search: str | None = None) -> list[Team]:
        if search:
            rows = conn.execute(
                "SELECT * FROM teams WHERE name LIKE ? OR short_name LIKE ? ORDER BY name",
                (f"%{search}%", f"%{search}%"),
            ).fetchall()
        else:
            rows = conn.execute("SELECT * FROM teams ORDER BY name").fetchall()
        return [self._from_row(r) for r in rows]

    def update(self, conn: sqlite3.Connection, team_id: str, **fields: Any) -> None:
        _update(conn, "teams", "id", team_id, fields, self.UPDATABLE)

    def delete(self, conn: sqlite3.Connection, team_id: str) -> None:
        conn.execute("DELETE FROM teams WHERE id = ?", (team_id,))
        conn.commit()


# ---------- PlayerRepository ----------


class PlayerRepository:
    """CRUD for players, plus season-total increments."""

    UPDATABLE = ("name", "position", "number", "status", "user_id", "team_id", "points")

    def create(
        self,
        conn: sqlite3.Connection,
        team_id: str,
        name: str,
        position: str,
        number: int,
        status: str = "active",
        user_id: str | None = None,
        id: str | None = None,
    ) -> Player:
        pid = id or str(uuid.uuid4())
        now = _now()
        conn.execute(
            "INSERT INTO players (id, team_id, user_id, name, position, number, status, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (pid, team_id, user_id, name, _to_db(position), number, _to_db(status), now, now),
        )
        conn.commit()
        return self.get(conn, pid)  # type: ignore[return-value]

    @staticmethod
    def _from_row(r: sqlite3.Row) -> Player:
        return Player(
            id=r["id"],
            team_id=r["team_id"],
            name=r["name"],
            position=r["position"],
            number=r["number"],
            status=r["status"],
            created_at=_parse_datetime(r["created_at"]),
            updated_at=_parse_datetime(r["updated_at"]),
            user_id=r["user_id"],
            goals=r["goals"],
            assists=r["assists"],
            clean_sheets=r["clean_sheets"],
            yellow_cards=r["yellow_cards"],
            red_cards=r["red_cards"],
            points=r["points"],
        )

    def get(self, conn: sqlite3.Connection, player_id: str) -> Player | None:
        row = conn.execute("SELECT * FROM players WHERE id = ?", (player_id,)).fetchone()
        return self._from_row(row) if row else None

    def get_many(self, conn: sqlite3.Connection, player_ids: list[str]) -> dict[str, Player]:
        if not player_ids:
            return {}
        marks = ", ".join("?" for _ in player_ids)
        rows = conn.execute(f"SELECT * FROM players WHERE id IN ({marks})", list(player_ids)).fetchall()
        return {r["id"]: self._from_row(r) for r in rows}

    def list(
        self,
        conn: sqlite3.Connection,
        team_id: str | None = None,
        position: str | None = None,
        status: str | None = None,
    ) -> list[Player]:
        clauses: list[str] = []
        args: list[Any] = []
        if team_id:
            clauses.append("team_id = ?")
            args.append(team_id)
        if position:
            clauses.append("position = ?")
            args.append(_to_db(position))
        if status:
            clauses.append("status = ?")
            args.append(_to_db(status))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = conn.execute(f"SELECT * FROM players{where} ORDER BY team_id, number", args).fetchall()
        return [self._from_row(r) for r in rows]

    def count_by_team(self, conn: sqlite3.Connection, team_ids: list[str]) -> dict[str, int]:
        if not team_ids:
            return {}
        marks = ", ".join("?" for _ in team_ids)
        rows = conn.execute(
            f"SELECT team_id, COUNT(*) AS n FROM players WHERE team_id IN ({marks}) GROUP BY team_id",
            list(team_ids),
        ).fetchall()
        return {r["team_id"]: r["n"] for r in rows}

    def leaderboard(self, conn: sqlite3.Connection, limit: int = 20) -> list[Player]:
        rows = conn.execute(
            "SELECT * FROM players ORDER BY points DESC, goals DESC, name LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._from_row(r) for r in rows]

    def update(self, conn: sqlite3.Connection, player_id: str, **fields: Any) -> None:
        _update(conn, "players", "id", player_id, fields, self.UPDATABLE)

    def add_season_totals(
        self,
        conn: sqlite3.Connection,
        player_id: str,
        goals: int = 0,
        assists: int = 0,
        clean_sheets: int = 0,
        yellow_cards: int = 0,
        red_cards: int = 0,
    ) -> None:
        conn.execute(
            "UPDATE players SET goals = goals + ?, assists = assists + ?, clean_sheets = clean_sheets + ?, "
            "yellow_cards = yellow_cards + ?, red_cards = red_cards + ?, updated_at = ? WHERE id = ?",
            (goals, assists, clean_sheets, yellow_cards, red_cards, _now(), player_id),
        )
        conn.commit()

    def delete(self, conn: sqlite3.Connection, player_id: str) -> None:
        conn.execute("DELETE FROM players WHERE id = ?", (player_id,))
        conn.commit()


# ---------- CompetitionRepository ----------


class CompetitionRepository:
    """CRUD for competitions and their team registrations."""

    UPDATABLE = (
        "name", "description", "start_date", "end_date", "max_teams", "frequency",
        "home_and_away", "number_of_groups", "third_place_playoff", "rules", "stream_link",
    )

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        type: str,
        id: str | None = None,
        **fields: Any,
    ) -> Competition:
        cid = id or str(uuid.uuid4())
        now = _now()
        unknown = set(fields) - set(self.UPDATABLE)
        if unknown:
            raise ValueError(f"Unknown competition fields: {sorted(unknown)}")
        cols = ["id", "name", "type", "status", "created_at", "updated_at"]
        args: list[Any] = [cid, name, _to_db(type), "upcoming", now, now]
        for col, value in fields.items():
            if value is None:
                continue
            cols.append(col)
            args.append(_to_db(value))
        marks = ", ".join("?" for _ in cols)
        conn.execute(f"INSERT INTO competitions ({', '.join(cols)}) VALUES ({marks})", args)
        conn.commit()
        return self.get(conn, cid)  # type: ignore[return-value]

    @staticmethod
    def _from_row(r: sqlite3.Row) -> Competition:
        return Competition(
            id=r["id"],
            name=r["name"],
            type=r["type"],
            status=r["status"],
            created_at=_parse_datetime(r["created_at"]),
            updated_at=_parse_datetime(r["updated_at"]),
            description=r["description"],
            start_date=_parse_date(r["start_date"]),
            end_date=_parse_date(r["end_date"]),
            max_teams=r["max_teams"],
            frequency=r["frequency"],
            home_and_away=bool(r["home_and_away"]),
            number_of_groups=r["number_of_groups"],
            third_place_playoff=bool(r["third_place_playoff"]),
            rules=r["rules"],
            stream_link=r["stream_link"],
            started_at=_parse_datetime(r["started_at"]),
        )

    def get(self, conn: sqlite3.Connection, competition_id: str) -> Competition | None:
        row = conn.execute("SELECT * FROM competitions WHERE id = ?", (competition_id,)).fetchone()
        return self._from_row(row) if row else None

    def list_all(
        self,
        conn: sqlite3.Connection,
        status: str | None = None,
        type: str | None = None,
    ) -> list[Competition]:
        clauses: list[str] = []
        args: list[Any] = []
        if status:
            clauses.append("status = ?")
            args.append(_to_db(status))
        if type:
            clauses.append("type = ?")
            args.append(_to_db(type))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = conn.execute(f"SELECT * FROM competitions{where} ORDER BY created_at DESC", args).fetchall()
        return [self._from_row(r) for r in rows]

    def update(self, conn: sqlite3.Connection, competition_id: str, **fields: Any) -> None:
        _update(conn, "competitions", "id", competition_id, fields, self.UPDATABLE)

    def update_status(self, conn: sqlite3.Connection, competition_id: str, status: str) -> None:
        _update(conn, "competitions", "id", competition_id, {"status": status}, ("status",))

    def update_started_at(self, conn: sqlite3.Connection, competition_id: str, started_at: datetime) -> None:
        _update(conn, "competitions", "id", competition_id, {"started_at": started_at}, ("started_at",))

    def delete(self, conn: sqlite3.Connection, competition_id: str) -> None:
        conn.execute("DELETE FROM competitions WHERE id = ?", (competition_id,))
        conn.commit()

    # ---------- Registrations ----------

    def add_team(self, conn: sqlite3.Connection, competition_id: str, team_id: str) -> CompetitionTeam:
        now = _now()
        conn.execute(
            "INSERT INTO competition_teams (competition_id, team_id, group_name, joined_at) VALUES (?, ?, NULL, ?)",
            (competition_id, team_id, now),
        )
        conn.commit()
        return CompetitionTeam(competition_id=competition_id, team_id=team_id, joined_at=_parse_datetime(now))

    def remove_team(self, conn: sqlite3.Connection, competition_id: str, team_id: str) -> None:
        conn.execute(
            "DELETE FROM competition_teams WHERE competition_id = ? AND team_id = ?",
            (competition_id, team_id),
        )
        conn.commit()

    def get_team_entry(self, conn: sqlite3.Connection, competition_id: str, team_id: str) -> CompetitionTeam | None:
        row = conn.execute(
            "SELECT * FROM competition_teams WHERE competition_id = ? AND team_id = ?",
            (competition_id, team_id),
        ).fetchone()
        if row is None:
            return None
        return CompetitionTeam(
            competition_id=row["competition_id"],
            team_id=row["team_id"],
            joined_at=_parse_datetime(row["joined_at"]),
            group_name=row["group_name"],
        )

    def list_teams(self, conn: sqlite3.Connection, competition_id: str) -> list[CompetitionTeam]:
        """Registrations in registration order."""
        rows = conn.execute(
            "SELECT * FROM competition_teams WHERE competition_id = ? ORDER BY joined_at, rowid",
            (competition_id,),
        ).fetchall()
        return [
            CompetitionTeam(
                competition_id=r["competition_id"],
                team_id=r["team_id"],
                joined_at=_parse_datetime(r["joined_at"]),
                group_name=r["group_name"],
            )
            for r in rows
        ]

    def count_teams(self, conn: sqlite3.Connection, competition_id: str) -> int:
        row = conn.execute(
            "SELECT COUNT(*) FROM competition_teams WHERE competition_id = ?",
            (competition_id,),
        ).fetchone()
        return row[0]

    def set_group(self, conn: sqlite3.Connection, competition_id: str, team_id: str, group_name: str | None) -> None:
        conn.execute(
            "UPDATE competition_teams SET group_name = ? WHERE competition_id = ? AND team_id = ?",
            (group_name, competition_id, team_id),
        )
        conn.commit()


# ---------- MatchRepository ----------


class MatchRepository:
    """CRUD for matches (fixtures and results)."""

    UPDATABLE = ("status", "match_date", "venue", "home_score", "away_score")

    def create(
        self,
        conn: sqlite3.Connection,
        home_team_id: str,
        away_team_id: str,
        competition_id: str | None = None,
        stage: str = "friendly",
        match_date: datetime | None = None,
        matchday: int | None = None,
        round: int | None = None,
        group_name: str | None = None,
        venue: str | None = None,
        status: str = "scheduled",
        id: str | None = None,
        commit: bool = True,
    ) -> Match:
        """Insert a fixture. Pass commit=False to batch inserts and commit once."""
        mid = id or str(uuid.uuid4())
        now = _now()
        conn.execute(
            "INSERT INTO matches (id, competition_id, stage, home_team_id, away_team_id, status, match_date, home_score, "
            "away_score, matchday, round, group_name, venue, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, NULL, NULL, ?, ?, ?, ?, ?, ?)",
            (mid, competition_id, _to_db(stage), home_team_id, away_team_id, _to_db(status), _to_db(match_date),
             matchday, round, group_name, venue, now, now),
        )
        if commit:
            conn.commit()
        return Match(
            id=mid, home_team_id=home_team_id, away_team_id=away_team_id, status=_to_db(status),
            created_at=_parse_datetime(now), updated_at=_parse_datetime(now),
            competition_id=competition_id, stage=_to_db(stage), match_date=_parse_datetime(_to_db(match_date)),
            matchday=matchday, round=round, group_name=group_name, venue=venue,
        )

    @staticmethod
    def _from_row(r: sqlite3.Row) -> Match:
        return Match(
            id=r["id"],
            home_team_id=r["home_team_id"],
            away_team_id=r["away_team_id"],
            status=r["status"],
            created_at=_parse_datetime(r["created_at"]),
            updated_at=_parse_datetime(r["updated_at"]),
            competition_id=r["competition_id"],
            stage=r["stage"],
            match_date=_parse_datetime(r["match_date"]),
            home_score=r["home_score"],
            away_score=r["away_score"],
            matchday=r["matchday"],
            round=r["round"],
            group_name=r["group_name"],
            venue=r["venue"],
        )

    def get(self, conn: sqlite3.Connection, match_id: str) -> Match | None:
        row = conn.execute("SELECT * FROM matches WHERE id = ?", (match_id,)).fetchone()
        return self._from_row(row) if row else None

    @staticmethod
    def _filters(
        competition_id: str | None,
        team_id: str | None,
        status: str | None,
    ) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        args: list[Any] = []
        if competition_id:
            clauses.append("competition_id = ?")
            args.append(competition_id)
        if team_id:
            clauses.append("(home_team_id = ? OR away_team_id = ?)")
            args.extend([team_id, team_id])
        if status:
            clauses.append("status = ?")
            args.append(_to_db(status))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, args

    def list(
        self,
        conn: sqlite3.Connection,
        competition_id: str | None = None,
        team_id: str | None = None,
        status: str | None = None,
        limit: int | None = None,
        offset: int = 0,
        descending: bool = False,
    ) -> list[Match]:
        """Matches ordered by kickoff (undated last), then matchday/round."""
        where, args = self._filters(competition_id, team_id, status)
        direction = "DESC" if descending else "ASC"
        sql = (
            f"SELECT * FROM matches{where} ORDER BY match_date IS NULL, match_date {direction}, "
            f"COALESCE(matchday, round, 0) {direction}, rowid {direction}"
        )
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            args = args + [limit, offset]
        rows = conn.execute(sql, args).fetchall()
        return [self._from_row(r) for r in rows]

    def count(
        self,
        conn: sqlite3.Connection,
        competition_id: str | None = None,
        team_id: str | None = None,
        status: str | None = None,
    ) -> int:
        where, args = self._filters(competition_id, team_id, status)
        return conn.execute(f"SELECT COUNT(*) FROM matches{where}", args).fetchone()[0]

    def record_result(self, conn: sqlite3.Connection, match_id: str, home_score: int, away_score: int) -> None:
        _update(
            conn, "matches", "id", match_id,
            {"home_score": home_score, "away_score": away_score, "status": "finished"},
            ("home_score", "away_score", "status"),
        )

    def update(self, conn: sqlite3.Connection, match_id: str, **fields: Any) -> None:
        _update(conn, "matches", "id", match_id, fields, self.UPDATABLE)

    def delete(self, conn: sqlite3.Connection, match_id: str) -> None:
        conn.execute("DELETE FROM matches WHERE id = ?", (match_id,))
        conn.commit()

    def delete_by_stage(self, conn: sqlite3.Connection, competition_id: str, stage: str) -> int:
        cur = conn.execute(
            "DELETE FROM matches WHERE competition_id = ? AND stage = ?",
            (competition_id, _to_db(stage)),
        )
        conn.commit()
        return cur.rowcount


# ---------- PlayerStatsRepository ----------


class PlayerStatsRepository:
    """CRUD for player_match_stats."""

    def create(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        player_id: str,
        team_id: str,
        fantasy_points: int = 0,
        id: str | None = None,
        **line: Any,
    ) -> PlayerMatchStats:
        sid = id or str(uuid.uuid4())
        now = _now()
        allowed = (
            "goals", "assists", "rating", "minutes_played", "yellow_cards", "red_cards",
            "clean_sheet", "saves", "penalty_saves", "own_goals", "motm",
        )
        unknown = set(line) - set(allowed)
        if unknown:
            raise ValueError(f"Unknown stat fields: {sorted(unknown)}")
        cols = ["id", "match_id", "player_id", "team_id", "status", "fantasy_points", "created_at"]
        args: list[Any] = [sid, match_id, player_id, team_id, "pending", fantasy_points, now]
        for col, value in line.items():
            cols.append(col)
            args.append(_to_db(value))
        marks = ", ".join("?" for _ in cols)
        conn.execute(f"INSERT INTO player_match_stats ({', '.join(cols)}) VALUES ({marks})", args)
        conn.commit()
        return self.get(conn, sid)  # type: ignore[return-value]

    @staticmethod
    def _from_row(r: sqlite3.Row) -> PlayerMatchStats:
        return PlayerMatchStats(
            id=r["id"],
            match_id=r["match_id"],
            player_id=r["player_id"],
            team_id=r["team_id"],
            status=r["status"],
            created_at=_parse_datetime(r["created_at"]),
            goals=r["goals"],
            assists=r["assists"],
            rating=r["rating"],
            minutes_played=r["minutes_played"],
            yellow_cards=r["yellow_cards"],
            red_cards=r["red_cards"],
            clean_sheet=bool(r["clean_sheet"]),
            saves=r["saves"],
            penalty_saves=r["penalty_saves"],
            own_goals=r["own_goals"],
            motm=bool(r["motm"]),
            fantasy_points=r["fantasy_points"],
        )

    def get(self, conn: sqlite3.Connection, stat_id: str) -> PlayerMatchStats | None:
        row = conn.execute("SELECT * FROM player_match_stats WHERE id = ?", (stat_id,)).fetchone()
        return self._from_row(row) if row else None

    def get_by_match_player(self, conn: sqlite3.Connection, match_id: str, player_id: str) -> PlayerMatchStats | None:
        row = conn.execute(
            "SELECT * FROM player_match_stats WHERE match_id = ? AND player_id = ?",
            (match_id, player_id),
        ).fetchone()
        return self._from_row(row) if row else None

    def list_by_match(self, conn: sqlite3.Connection, match_id: str) -> list[PlayerMatchStats]:
        rows = conn.execute(
            "SELECT * FROM player_match_stats WHERE match_id = ? ORDER BY team_id, created_at",
            (match_id,),
        ).fetchall()
        return [self._from_row(r) for r in rows]

    def list_by_status(self, conn: sqlite3.Connection, status: str) -> list[PlayerMatchStats]:
        rows = conn.execute(
            "SELECT * FROM player_match_stats WHERE status = ? ORDER BY created_at",
            (_to_db(status),),
        ).fetchall()
        return [self._from_row(r) for r in rows]

    def list_for_competition(
        self,
        conn: sqlite3.Connection,
        competition_id: str,
        status: str | None = None,
        match_status: str | None = None,
    ) -> list[PlayerMatchStats]:
        sql = (
            "SELECT s.* FROM player_match_stats s JOIN matches m ON m.id = s.match_id "
            "WHERE m.competition_id = ?"
        )
        args: list[Any] = [competition_id]
        if status:
            sql += " AND s.status = ?"
            args.append(_to_db(status))
        if match_status:
            sql += " AND m.status = ?"
            args.append(_to_db(match_status))
        sql += " ORDER BY s.created_at, s.rowid"
        return [self._from_row(r) for r in conn.execute(sql, args).fetchall()]

    def update_status(self, conn: sqlite3.Connection, stat_id: str, status: str) -> None:
        _update(conn, "player_match_stats", "id", stat_id, {"status": status}, ("status",), touch=False)


# ---------- LineupRepository ----------


class LineupRepository:
    """CRUD for lineups and lineup_players."""

    UPDATABLE = (
        "name", "formation", "is_default", "match_id", "verification_status", "submitted_at",
        "submission_deadline", "verified_by", "verified_at", "admin_override_allowed",
    )

    def create(
        self,
        conn: sqlite3.Connection,
        team_id: str,
        name: str,
        formation: str,
        players: list[LineupPlayer],
        is_default: bool = False,
        match_id: str | None = None,
        submission_deadline: datetime | None = None,
        id: str | None = None,
    ) -> Lineup:
        lid = id or str(uuid.uuid4())
        now = _now()
        conn.execute(
            "INSERT INTO lineups (id, team_id, name, formation, is_default, match_id, verification_status, "
            "submission_deadline, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, 'draft', ?, ?, ?)",
            (lid, team_id, name, formation, _to_db(is_default), match_id, _to_db(submission_deadline), now, now),
        )
        self._insert_players(conn, lid, players)
        conn.commit()
        return self.get(conn, lid)  # type: ignore[return-value]

    @staticmethod
    def _insert_players(conn: sqlite3.Connection, lineup_id: str, players: list[LineupPlayer]) -> None:
        for p in players:
            conn.execute(
                "INSERT INTO lineup_players (lineup_id, player_order, player_id, position, is_ai_player, ai_player_name) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (lineup_id, p.player_order, p.player_id, p.position, _to_db(p.is_ai_player), p.ai_player_name),
            )

    def _players(self, conn: sqlite3.Connection, lineup_id: str) -> list[LineupPlayer]:
        rows = conn.execute(
            "SELECT * FROM lineup_players WHERE lineup_id = ? ORDER BY player_order",
            (lineup_id,),
        ).fetchall()
        return [
            LineupPlayer(
                lineup_id=r["lineup_id"],
                player_id=r["player_id"],
                position=r["position"],
                player_order=r["player_order"],
                is_ai_player=bool(r["is_ai_player"]),
                ai_player_name=r["ai_player_name"],
            )
            for r in rows
        ]

    def _from_row(self, conn: sqlite3.Connection, r: sqlite3.Row) -> Lineup:
        return Lineup(
            id=r["id"],
            team_id=r["team_id"],
            name=r["name"],
            formation=r["formation"],
            verification_status=r["verification_status"],
            created_at=_parse_datetime(r["created_at"]),
            updated_at=_parse_datetime(r["updated_at"]),
            is_default=bool(r["is_default"]),
            match_id=r["match_id"],
            submitted_at=_parse_datetime(r["submitted_at"]),
            submission_deadline=_parse_datetime(r["submission_deadline"]),
            verified_by=r["verified_by"],
            verified_at=_parse_datetime(r["verified_at"]),
            admin_override_allowed=bool(r["admin_override_allowed"]),
            players=self._players(conn, r["id"]),
        )

    def get(self, conn: sqlite3.Connection, lineup_id: str) -> Lineup | None:
        row = conn.execute("SELECT * FROM lineups WHERE id = ?", (lineup_id,)).fetchone()
        return self._from_row(conn, row) if row else None

    def list(
        self,
        conn: sqlite3.Connection,
        team_id: str | None = None,
        status: str | None = None,
    ) -> list[Lineup]:
        clauses: list[str] = []
        args: list[Any] = []
        if team_id:
            clauses.append("team_id = ?")
            args.append(team_id)
        if status:
            clauses.append("verification_status = ?")
            args.append(_to_db(status))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        order = "submitted_at, created_at" if status else "created_at DESC"
        rows = conn.execute(f"SELECT * FROM lineups{where} ORDER BY {order}", args).fetchall()
        return [self._from_row(conn, r) for r in rows]

    def replace_players(self, conn: sqlite3.Connection, lineup_id: str, players: list[LineupPlayer]) -> None:
        conn.execute("DELETE FROM lineup_players WHERE lineup_id = ?", (lineup_id,))
        self._insert_players(conn, lineup_id, players)
        conn.commit()

    def update(self, conn: sqlite3.Connection, lineup_id: str, **fields: Any) -> None:
        _update(conn, "lineups", "id", lineup_id, fields, self.UPDATABLE)

    def clear_default(self, conn: sqlite3.Connection, team_id: str, except_id: str | None = None) -> None:
        conn.execute(
            "UPDATE lineups SET is_default = 0 WHERE team_id = ? AND id IS NOT ?",
            (team_id, except_id),
        )
        conn.commit()

    def delete(self, conn: sqlite3.Connection, lineup_id: str) -> None:
        conn.execute("DELETE FROM lineup_players WHERE lineup_id = ?", (lineup_id,))
        conn.execute("DELETE FROM lineups WHERE id = ?", (lineup_id,))
        conn.commit()


# ---------- SwissConfigRepository ----------


class SwissConfigRepository:
    """One Swiss-model config per competition."""

    def upsert(self, conn: sqlite3.Connection, config: SwissConfig) -> SwissConfig:
        conn.execute(
            "INSERT INTO swiss_configs (competition_id, number_of_teams, matches_per_team, same_country_restriction, "
            "home_away_balance, direct_qualifiers, playoff_qualifiers, tiebreakers, exclusions) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(competition_id) DO UPDATE SET number_of_teams = excluded.number_of_teams, "
            "matches_per_team = excluded.matches_per_team, same_country_restriction = excluded.same_country_restriction, "
            "home_away_balance = excluded.home_away_balance, direct_qualifiers = excluded.direct_qualifiers, "
            "playoff_qualifiers = excluded.playoff_qualifiers, tiebreakers = excluded.tiebreakers, "
            "exclusions = excluded.exclusions",
            (
                config.competition_id,
                config.number_of_teams,
                config.matches_per_team,
                _to_db(config.same_country_restriction),
                _to_db(config.home_away_balance),
                config.direct_qualifiers,
                config.playoff_qualifiers,
                json.dumps(list(config.tiebreakers)),
                json.dumps([list(e) for e in config.exclusions]),
            ),
        )
        conn.commit()
        return self.get(conn, config.competition_id)  # type: ignore[return-value]

    def get(self, conn: sqlite3.Connection, competition_id: str) -> SwissConfig | None:
        row = conn.execute("SELECT * FROM swiss_configs WHERE competition_id = ?", (competition_id,)).fetchone()
        if row is None:
            return None
        return SwissConfig(
            competition_id=row["competition_id"],
            number_of_teams=row["number_of_teams"],
            matches_per_team=row["matches_per_team"],
            direct_qualifiers=row["direct_qualifiers"],
            playoff_qualifiers=row["playoff_qualifiers"],
            same_country_restriction=bool(row["same_country_restriction"]),
            home_away_balance=bool(row["home_away_balance"]),
            tiebreakers=json.loads(row["tiebreakers"]),
            exclusions=[(a, b) for a, b in json.loads(row["exclusions"])],
        )


# ---------- FantasyRepository ----------


class FantasyRepository:
    """CRUD for fantasy_teams, fantasy_team_players and fantasy_player_prices."""

    UPDATABLE = ("name", "points")

    def create(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        competition_id: str,
        name: str,
        budget: float,
        squad: list[FantasySquadSlot],
        id: str | None = None,
    ) -> FantasyTeam:
        tid = id or str(uuid.uuid4())
        now = _now()
        conn.execute(
            "INSERT INTO fantasy_teams (id, user_id, competition_id, name, budget, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (tid, user_id, competition_id, name, budget, now, now),
        )
        self._insert_squad(conn, tid, squad)
        conn.commit()
        return self.get(conn, tid)  # type: ignore[return-value]

    @staticmethod
    def _insert_squad(conn: sqlite3.Connection, team_id: str, squad: list[FantasySquadSlot]) -> None:
        for s in squad:
            conn.execute(
                "INSERT INTO fantasy_team_players (fantasy_team_id, player_id, slot, is_captain, is_vice_captain) "
                "VALUES (?, ?, ?, ?, ?)",
                (team_id, s.player_id, s.slot, _to_db(s.is_captain), _to_db(s.is_vice_captain)),
            )

    def _squad(self, conn: sqlite3.Connection, team_id: str) -> list[FantasySquadSlot]:
        rows = conn.execute(
            "SELECT * FROM fantasy_team_players WHERE fantasy_team_id = ? ORDER BY slot",
            (team_id,),
        ).fetchall()
        return [
            FantasySquadSlot(
                player_id=r["player_id"],
                slot=r["slot"],
                is_captain=bool(r["is_captain"]),
                is_vice_captain=bool(r["is_vice_captain"]),
            )
            for r in rows
        ]

    def _from_row(self, conn: sqlite3.Connection, r: sqlite3.Row) -> FantasyTeam:
        return FantasyTeam(
            id=r["id"],
            user_id=r["user_id"],
            competition_id=r["competition_id"],
            name=r["name"],
            budget=r["budget"],
            created_at=_parse_datetime(r["created_at"]),
            updated_at=_parse_datetime(r["updated_at"]),
            points=r["points"],
            squad=self._squad(conn, r["id"]),
        )

    def get(self, conn: sqlite3.Connection, team_id: str) -> FantasyTeam | None:
        row = conn.execute("SELECT * FROM fantasy_teams WHERE id = ?", (team_id,)).fetchone()
        return self._from_row(conn, row) if row else None

    def get_for_user(self, conn: sqlite3.Connection, user_id: str, competition_id: str) -> FantasyTeam | None:
        row = conn.execute(
            "SELECT * FROM fantasy_teams WHERE user_id = ? AND competition_id = ?",
            (user_id, competition_id),
        ).fetchone()
        return self._from_row(conn, row) if row else None

    def list(
        self,
        conn: sqlite3.Connection,
        competition_id: str | None = None,
        user_id: str | None = None,
    ) -> list[FantasyTeam]:
        """Highest points first, then oldest."""
        clauses: list[str] = []
        args: list[Any] = []
        if competition_id:
            clauses.append("competition_id = ?")
            args.append(competition_id)
        if user_id:
            clauses.append("user_id = ?")
            args.append(user_id)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = conn.execute(
            f"SELECT * FROM fantasy_teams{where} ORDER BY points DESC, created_at, rowid", args
        ).fetchall()
        return [self._from_row(conn, r) for r in rows]

    def replace_squad(self, conn: sqlite3.Connection, team_id: str, squad: list[FantasySquadSlot]) -> None:
        conn.execute("DELETE FROM fantasy_team_players WHERE fantasy_team_id = ?", (team_id,))
        self._insert_squad(conn, team_id, squad)
        conn.commit()

    def update(self, conn: sqlite3.Connection, team_id: str, **fields: Any) -> None:
        _update(conn, "fantasy_teams", "id", team_id, fields, self.UPDATABLE)

    def delete(self, conn: sqlite3.Connection, team_id: str) -> None:
        conn.execute("DELETE FROM fantasy_team_players WHERE fantasy_team_id = ?", (team_id,))
        conn.execute("DELETE FROM fantasy_teams WHERE id = ?", (team_id,))
        conn.commit()

    # Prices

    def set_price(self, conn: sqlite3.Connection, competition_id: str, player_id: str, price: float) -> None:
        conn.execute(
            "INSERT INTO fantasy_player_prices (competition_id, player_id, price) VALUES (?, ?, ?) "
            "ON CONFLICT(competition_id, player_id) DO UPDATE SET price = excluded.price",
            (competition_id, player_id, price),
        )
        conn.commit()

    def prices(self, conn: sqlite3.Connection, competition_id: str) -> dict[str, float]:
        rows = conn.execute(
            "SELECT player_id, price FROM fantasy_player_prices WHERE competition_id = ?",
            (competition_id,),
        ).fetchall()
        return {r["player_id"]: r["price"] for r in rows}
