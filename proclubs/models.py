"""
Data models for the Pro Clubs backend.
Domain objects only; no persistence or API logic.

Competitions group registered teams and their matches; standings are derived
from finished matches and never stored. Lineups go through an admin
verification workflow before a match.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


# ---------- Enums ----------


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    PLAYER = "player"
    FAN = "fan"


class CompetitionType(str, Enum):
    LEAGUE = "league"
    CUP = "cup"
    SWISS = "swiss"
    FRIENDLY = "friendly"


class CompetitionStatus(str, Enum):
    """Lifecycle: upcoming → active → completed."""
    UPCOMING = "upcoming"    # Accepting registrations
    ACTIVE = "active"        # Fixtures generated, results being recorded
    COMPLETED = "completed"


class Frequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"


class MatchStage(str, Enum):
    LEAGUE = "league"
    GROUP = "group"
    KNOCKOUT = "knockout"
    THIRD_PLACE = "third_place"
    SWISS = "swiss"
    FRIENDLY = "friendly"


class PlayerPosition(str, Enum):
    GK = "GK"
    DEF = "DEF"
    MID = "MID"
    FWD = "FWD"


class PlayerStatus(str, Enum):
    ACTIVE = "active"
    INJURED = "injured"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"


class StatsStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LineupStatus(str, Enum):
    """Verification workflow: draft → pending → verified | rejected."""
    DRAFT = "draft"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


def _iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None


# ---------- User ----------
@dataclass
class User:
    """
    An account. password_hash is never serialized.
    team_id links players and managers to their club.
    """
    id: str
    username: str
    display_name: str
    role: str  # UserRole value
    created_at: datetime
    password_hash: str | None = None
    team_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "role": self.role,
            "team_id": self.team_id,
            "created_at": self.created_at.isoformat(),
        }


# ---------- Team ----------
@dataclass
class Team:
    id: str
    name: str
    short_name: str
    created_at: datetime
    updated_at: datetime
    country: str | None = None
    logo_url: str | None = None
    description: str | None = None
    manager_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "short_name": self.short_name,
            "country": self.country,
            "logo_url": self.logo_url,
            "description": self.description,
            "manager_id": self.manager_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


# ---------- Player ----------
@dataclass
class Player:
    """
    A squad member. Season totals (goals, assists, ...) only grow when
    per-match stats are approved; points is derived from them.
    """
    id: str
    team_id: str
    name: str
    position: str  # PlayerPosition value
    number: int
    status: str  # PlayerStatus value
    created_at: datetime
    updated_at: datetime
    user_id: str | None = None
    goals: int = 0
    assists: int = 0
    clean_sheets: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    points: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "team_id": self.team_id,
            "user_id": self.user_id,
            "name": self.name,
            "position": self.position,
            "number": self.number,
            "status": self.status,
            "goals": self.goals,
            "assists": self.assists,
            "clean_sheets": self.clean_sheets,
            "yellow_cards": self.yellow_cards,
            "red_cards": self.red_cards,
            "points": self.points,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


# ---------- Competition ----------
@dataclass
class Competition:
    """
    A league, cup, Swiss-model tournament or friendly series.
    Cups with number_of_groups run a group stage; without it they are straight knockout.
    """
    id: str
    name: str
    type: str  # CompetitionType value
    status: str  # CompetitionStatus value
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    max_teams: int | None = None
    frequency: str = Frequency.WEEKLY.value
    home_and_away: bool = False
    number_of_groups: int | None = None
    third_place_playoff: bool = False
    rules: str | None = None
    stream_link: str | None = None
    started_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "status": self.status,
            "description": self.description,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "max_teams": self.max_teams,
            "frequency": self.frequency,
            "home_and_away": self.home_and_away,
            "number_of_groups": self.number_of_groups,
            "third_place_playoff": self.third_place_playoff,
            "rules": self.rules,
            "stream_link": self.stream_link,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "started_at": _iso(self.started_at),
        }


# ---------- CompetitionTeam (join) ----------
@dataclass
class CompetitionTeam:
    competition_id: str
    team_id: str
    joined_at: datetime
    group_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "competition_id": self.competition_id,
            "team_id": self.team_id,
            "group_name": self.group_name,
            "joined_at": self.joined_at.isoformat(),
        }


# ---------- Match ----------
@dataclass
class Match:
    """
    A fixture. Scores are None until a result is recorded.
    matchday numbers league/group rounds; round numbers knockout and Swiss rounds.
    """
    id: str
    home_team_id: str
    away_team_id: str
    status: str  # MatchStatus value
    created_at: datetime
    updated_at: datetime
    competition_id: str | None = None
    stage: str = MatchStage.FRIENDLY.value
    match_date: datetime | None = None
    home_score: int | None = None
    away_score: int | None = None
    matchday: int | None = None
    round: int | None = None
    group_name: str | None = None
    venue: str | None = None

    @property
    def has_result(self) -> bool:
        return (
            self.status == MatchStatus.FINISHED
            and self.home_score is not None
            and self.away_score is not None
        )

    def involves(self, team_id: str) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "competition_id": self.competition_id,
            "stage": self.stage,
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "status": self.status,
            "match_date": _iso(self.match_date),
            "home_score": self.home_score,
            "away_score": self.away_score,
            "matchday": self.matchday,
            "round": self.round,
            "group_name": self.group_name,
            "venue": self.venue,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


# ---------- PlayerMatchStats ----------
@dataclass
class PlayerMatchStats:
    """Per-player line for one match. Counts toward totals only once approved."""
    id: str
    match_id: str
    player_id: str
    team_id: str
    status: str  # StatsStatus value
    created_at: datetime
    goals: int = 0
    assists: int = 0
    rating: float | None = None
    minutes_played: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    clean_sheet: bool = False
    saves: int = 0
    penalty_saves: int = 0
    own_goals: int = 0
    motm: bool = False
    fantasy_points: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "match_id": self.match_id,
            "player_id": self.player_id,
            "team_id": self.team_id,
            "status": self.status,
            "goals": self.goals,
            "assists": self.assists,
            "rating": self.rating,
            "minutes_played": self.minutes_played,
            "yellow_cards": self.yellow_cards,
            "red_cards": self.red_cards,
            "clean_sheet": self.clean_sheet,
            "saves": self.saves,
            "penalty_saves": self.penalty_saves,
            "own_goals": self.own_goals,
            "motm": self.motm,
            "fantasy_points": self.fantasy_points,
            "created_at": self.created_at.isoformat(),
        }


# ---------- Lineup ----------
@dataclass
class LineupPlayer:
    """
    One slot in a lineup. AI slots fill gaps with a named computer player
    (player_id is None).
    """
    position: str
    player_order: int
    player_id: str | None = None
    is_ai_player: bool = False
    ai_player_name: str | None = None
    lineup_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "lineup_id": self.lineup_id,
            "player_id": self.player_id,
            "position": self.position,
            "player_order": self.player_order,
            "is_ai_player": self.is_ai_player,
            "ai_player_name": self.ai_player_name,
        }


@dataclass
class Lineup:
    id: str
    team_id: str
    name: str
    formation: str
    verification_status: str  # LineupStatus value
    created_at: datetime
    updated_at: datetime
    is_default: bool = False
    match_id: str | None = None
    submitted_at: datetime | None = None
    submission_deadline: datetime | None = None
    verified_by: str | None = None
    verified_at: datetime | None = None
    admin_override_allowed: bool = False
    players: list[LineupPlayer] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "team_id": self.team_id,
            "name": self.name,
            "formation": self.formation,
            "is_default": self.is_default,
            "match_id": self.match_id,
            "verification_status": self.verification_status,
            "submitted_at": _iso(self.submitted_at),
            "submission_deadline": _iso(self.submission_deadline),
            "verified_by": self.verified_by,
            "verified_at": _iso(self.verified_at),
            "admin_override_allowed": self.admin_override_allowed,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "players": [p.to_dict() for p in self.players],
        }


# ---------- SwissConfig ----------
@dataclass
class SwissConfig:
    """
    Draw parameters for a Swiss-model competition.
    exclusions: list of (team_a_id, team_b_id) pairs that must not meet.
    """
    competition_id: str
    number_of_teams: int
    matches_per_team: int
    direct_qualifiers: int
    playoff_qualifiers: int
    same_country_restriction: bool = False
    home_away_balance: bool = True
    tiebreakers: list[str] = field(default_factory=lambda: ["points", "goal_difference", "goals_for"])
    exclusions: list[tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "competition_id": self.competition_id,
            "number_of_teams": self.number_of_teams,
            "matches_per_team": self.matches_per_team,
            "direct_qualifiers": self.direct_qualifiers,
            "playoff_qualifiers": self.playoff_qualifiers,
            "same_country_restriction": self.same_country_restriction,
            "home_away_balance": self.home_away_balance,
            "tiebreakers": list(self.tiebreakers),
            "exclusions": [list(e) for e in self.exclusions],
        }


# ---------- Fantasy ----------
@dataclass
class FantasySquadSlot:
    """
    One pick in a fantasy squad. Slots 1-11 start, 12-15 sit on the bench.
    Captain and vice-captain must be starters.
    """
    player_id: str
    slot: int
    is_captain: bool = False
    is_vice_captain: bool = False

    @property
    def is_bench(self) -> bool:
        return self.slot > 11

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "slot": self.slot,
            "is_captain": self.is_captain,
            "is_vice_captain": self.is_vice_captain,
            "is_bench": self.is_bench,
        }


@dataclass
class FantasyTeam:
    """A user's fantasy squad for one competition. points is refreshed from approved stats."""
    id: str
    user_id: str
    competition_id: str
    name: str
    budget: float
    created_at: datetime
    updated_at: datetime
    points: int = 0
    squad: list[FantasySquadSlot] = field(default_factory=list)

    @property
    def captain_id(self) -> str | None:
        return next((s.player_id for s in self.squad if s.is_captain), None)

    @property
    def vice_captain_id(self) -> str | None:
        return next((s.player_id for s in self.squad if s.is_vice_captain), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "competition_id": self.competition_id,
            "name": self.name,
            "budget": self.budget,
            "points": self.points,
            "squad": [s.to_dict() for s in self.squad],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
