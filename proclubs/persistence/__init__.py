"""
Persistence layer for Pro Clubs data.
No business logic; only read/write interfaces.
"""
from .db import ensure_admin, get_connection, get_db_path, init_db, set_db_path
from .repositories import (
    UserRepository,
    TeamRepository,
    PlayerRepository,
    CompetitionRepository,
    MatchRepository,
    PlayerStatsRepository,
    LineupRepository,
    SwissConfigRepository,
    FantasyRepository,
)

__all__ = [
    "ensure_admin",
    "get_connection",
    "get_db_path",
    "init_db",
    "set_db_path",
    "UserRepository",
    "TeamRepository",
    "PlayerRepository",
    "CompetitionRepository",
    "MatchRepository",
    "PlayerStatsRepository",
    "LineupRepository",
    "SwissConfigRepository",
    "FantasyRepository",
]
