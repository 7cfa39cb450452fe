"""
Database connection and initialization.
"""
from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from .schema import all_schema_sql

logger = logging.getLogger(__name__)

_db_path: Path | None = None


def set_db_path(path: str | Path | None) -> None:
    """Set the database path. Call before first get_connection if not using the configured one."""
    global _db_path
    _db_path = Path(path) if path is not None else None


def get_db_path() -> Path:
    """Return the current database path (explicit override, else settings)."""
    if _db_path is not None:
        return _db_path
    from proclubs.config import get_settings
    return get_settings().db_path


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """
    Return a new SQLite connection with foreign keys enforced.
    Use as context manager or ensure close() is called.
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str | Path | None = None) -> None:
    """Create or ensure all tables exist."""
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(all_schema_sql())
        conn.commit()
    finally:
        conn.close()
    logger.debug("Database initialized at %s", path)


def ensure_admin(conn: sqlite3.Connection, username: str, password_hash: str) -> bool:
    """
    Create an admin account with this username unless one exists.
    Returns True when a new admin was created.
    """
    row = conn.execute("SELECT id, role FROM users WHERE username = ?", (username,)).fetchone()
    if row is not None:
        if row["role"] != "admin":
            logger.warning("Bootstrap user %s exists but is not an admin (role=%s)", username, row["role"])
        return False
    now = datetime.now(timezone.utc).isoformat()
    conn.execute(
        "INSERT INTO users (id, username, display_name, password_hash, role, team_id, created_at) VALUES (?, ?, ?, ?, 'admin', NULL, ?)",
        (str(uuid.uuid4()), username, username, password_hash, now),
    )
    conn.commit()
    logger.info("Bootstrap admin %s created", username)
    return True
