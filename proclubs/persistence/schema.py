"""
SQLite schema for Pro Clubs entities.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def users_schema() -> str:
    """role: admin | manager | player | fan. team_id links players/managers to a club."""
    return """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        username TEXT NOT NULL UNIQUE,
        display_name TEXT NOT NULL,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'fan',
        team_id TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (team_id) REFERENCES teams(id) ON DELETE SET NULL
    );
    """


def teams_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        short_name TEXT NOT NULL,
        country TEXT,
        logo_url TEXT,
        description TEXT,
        manager_id TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (manager_id) REFERENCES users(id) ON DELETE SET NULL
    );
    """


def players_schema() -> str:
    """Squad members. Season totals are updated when match stats are approved."""
    return """
    CREATE TABLE IF NOT EXISTS players (
        id TEXT PRIMARY KEY,
        team_id TEXT NOT NULL,
        user_id TEXT,
        name TEXT NOT NULL,
        position TEXT NOT NULL,
        number INTEGER NOT NULL,
        status TEXT NOT NULL DEFAULT 'active',
        goals INTEGER NOT NULL DEFAULT 0,
        assists INTEGER NOT NULL DEFAULT 0,
        clean_sheets INTEGER NOT NULL DEFAULT 0,
        yellow_cards INTEGER NOT NULL DEFAULT 0,
        red_cards INTEGER NOT NULL DEFAULT 0,
        points INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (team_id) REFERENCES teams(id),
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_players_team_number ON players(team_id, number);
    CREATE INDEX IF NOT EXISTS ix_players_team ON players(team_id);
    """


def competitions_schema() -> str:
    """status: upcoming | active | completed. type: league | cup | swiss | friendly."""
    return """
    CREATE TABLE IF NOT EXISTS competitions (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        type TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'upcoming',
        description TEXT,
        start_date TEXT,
        end_date TEXT,
        max_teams INTEGER,
        frequency TEXT NOT NULL DEFAULT 'weekly',
        home_and_away INTEGER NOT NULL DEFAULT 0,
        number_of_groups INTEGER,
        third_place_playoff INTEGER NOT NULL DEFAULT 0,
        rules TEXT,
        stream_link TEXT,
        started_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_competitions_status ON competitions(status);
    """


def competition_teams_schema() -> str:
    """Registration join table. group_name set when a cup group stage is drawn."""
    return """
    CREATE TABLE IF NOT EXISTS competition_teams (
        competition_id TEXT NOT NULL,
        team_id TEXT NOT NULL,
        group_name TEXT,
        joined_at TEXT NOT NULL,
        PRIMARY KEY (competition_id, team_id),
        FOREIGN KEY (competition_id) REFERENCES competitions(id) ON DELETE CASCADE,
        FOREIGN KEY (team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_competition_teams_team ON competition_teams(team_id);
    """


def matches_schema() -> str:
    """
    Fixtures and results. competition_id NULL = friendly outside any competition.
    stage: league | group | knockout | third_place | swiss | friendly.
    """
    return """
    CREATE TABLE IF NOT EXISTS matches (
        id TEXT PRIMARY KEY,
        competition_id TEXT,
        stage TEXT NOT NULL DEFAULT 'friendly',
        home_team_id TEXT NOT NULL,
        away_team_id TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'scheduled',
        match_date TEXT,
        home_score INTEGER,
        away_score INTEGER,
        matchday INTEGER,
        round INTEGER,
        group_name TEXT,
        venue TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (competition_id) REFERENCES competitions(id) ON DELETE CASCADE,
        FOREIGN KEY (home_team_id) REFERENCES teams(id),
        FOREIGN KEY (away_team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_matches_competition ON matches(competition_id);
    CREATE INDEX IF NOT EXISTS ix_matches_home ON matches(home_team_id);
    CREATE INDEX IF NOT EXISTS ix_matches_away ON matches(away_team_id);
    CREATE INDEX IF NOT EXISTS ix_matches_date ON matches(match_date);
    """


def player_match_stats_schema() -> str:
    """status: pending | approved | rejected. Only approved rows feed statistics."""
    return """
    CREATE TABLE IF NOT EXISTS player_match_stats (
        id TEXT PRIMARY KEY,
        match_id TEXT NOT NULL,
        player_id TEXT NOT NULL,
        team_id TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        goals INTEGER NOT NULL DEFAULT 0,
        assists INTEGER NOT NULL DEFAULT 0,
        rating REAL,
        minutes_played INTEGER NOT NULL DEFAULT 0,
        yellow_cards INTEGER NOT NULL DEFAULT 0,
        red_cards INTEGER NOT NULL DEFAULT 0,
        clean_sheet INTEGER NOT NULL DEFAULT 0,
        saves INTEGER NOT NULL DEFAULT 0,
        penalty_saves INTEGER NOT NULL DEFAULT 0,
        own_goals INTEGER NOT NULL DEFAULT 0,
        motm INTEGER NOT NULL DEFAULT 0,
        fantasy_points INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        FOREIGN KEY (match_id) REFERENCES matches(id) ON DELETE CASCADE,
        FOREIGN KEY (player_id) REFERENCES players(id) ON DELETE CASCADE,
        FOREIGN KEY (team_id) REFERENCES teams(id)
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_stats_match_player ON player_match_stats(match_id, player_id);
    CREATE INDEX IF NOT EXISTS ix_stats_status ON player_match_stats(status);
    """


def lineups_schema() -> str:
    """verification_status: draft | pending | verified | rejected."""
    return """
    CREATE TABLE IF NOT EXISTS lineups (
        id TEXT PRIMARY KEY,
        team_id TEXT NOT NULL,
        name TEXT NOT NULL,
        formation TEXT NOT NULL,
        is_default INTEGER NOT NULL DEFAULT 0,
        match_id TEXT,
        verification_status TEXT NOT NULL DEFAULT 'draft',
        submitted_at TEXT,
        submission_deadline TEXT,
        verified_by TEXT,
        verified_at TEXT,
        admin_override_allowed INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (team_id) REFERENCES teams(id) ON DELETE CASCADE,
        FOREIGN KEY (match_id) REFERENCES matches(id) ON DELETE SET NULL,
        FOREIGN KEY (verified_by) REFERENCES users(id) ON DELETE SET NULL
    );
    CREATE INDEX IF NOT EXISTS ix_lineups_team ON lineups(team_id);
    CREATE INDEX IF NOT EXISTS ix_lineups_status ON lineups(verification_status);
    """


def lineup_players_schema() -> str:
    """player_id NULL for AI fill-ins (is_ai_player = 1, ai_player_name set)."""
    return """
    CREATE TABLE IF NOT EXISTS lineup_players (
        lineup_id TEXT NOT NULL,
        player_order INTEGER NOT NULL,
        player_id TEXT,
        position TEXT NOT NULL,
        is_ai_player INTEGER NOT NULL DEFAULT 0,
        ai_player_name TEXT,
        PRIMARY KEY (lineup_id, player_order),
        FOREIGN KEY (lineup_id) REFERENCES lineups(id) ON DELETE CASCADE,
        FOREIGN KEY (player_id) REFERENCES players(id) ON DELETE SET NULL
    );
    """


def swiss_configs_schema() -> str:
    """One config per Swiss competition. tiebreakers and exclusions stored as JSON."""
    return """
    CREATE TABLE IF NOT EXISTS swiss_configs (
        competition_id TEXT PRIMARY KEY,
        number_of_teams INTEGER NOT NULL,
        matches_per_team INTEGER NOT NULL,
        same_country_restriction INTEGER NOT NULL DEFAULT 0,
        home_away_balance INTEGER NOT NULL DEFAULT 1,
        direct_qualifiers INTEGER NOT NULL,
        playoff_qualifiers INTEGER NOT NULL,
        tiebreakers TEXT NOT NULL DEFAULT '[]',
        exclusions TEXT NOT NULL DEFAULT '[]',
        FOREIGN KEY (competition_id) REFERENCES competitions(id) ON DELETE CASCADE
    );
    """

def fantasy_player_prices_schema() -> str:
    """Market price per player and competition, in millions. Unpriced players use the default."""
    return """
    CREATE TABLE IF NOT EXISTS fantasy_player_prices (
        competition_id TEXT NOT NULL,
        player_id TEXT NOT NULL,
        price REAL NOT NULL,
        PRIMARY KEY (competition_id, player_id),
        FOREIGN KEY (competition_id) REFERENCES competitions(id) ON DELETE CASCADE,
        FOREIGN KEY (player_id) REFERENCES players(id) ON DELETE CASCADE
    );
    """


def fantasy_teams_schema() -> str:
    """One fantasy squad per user and competition."""
    return """
    CREATE TABLE IF NOT EXISTS fantasy_teams (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        competition_id TEXT NOT NULL,
        name TEXT NOT NULL,
        budget REAL NOT NULL,
        points INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
        FOREIGN KEY (competition_id) REFERENCES competitions(id) ON DELETE CASCADE
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_fantasy_teams_user_competition ON fantasy_teams(user_id, competition_id);
    CREATE INDEX IF NOT EXISTS ix_fantasy_teams_competition ON fantasy_teams(competition_id);
    """


def fantasy_team_players_schema() -> str:
    """slot 1-11 starting, 12-15 bench. One captain and one vice-captain per squad."""
    return """
    CREATE TABLE IF NOT EXISTS fantasy_team_players (
        fantasy_team_id TEXT NOT NULL,
        player_id TEXT NOT NULL,
        slot INTEGER NOT NULL,
        is_captain INTEGER NOT NULL DEFAULT 0,
        is_vice_captain INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (fantasy_team_id, player_id),
        FOREIGN KEY (fantasy_team_id) REFERENCES fantasy_teams(id) ON DELETE CASCADE,
        FOREIGN KEY (player_id) REFERENCES players(id) ON DELETE CASCADE
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_fantasy_team_players_slot ON fantasy_team_players(fantasy_team_id, slot);
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution. Order follows foreign-key dependencies."""
    return "\n".join([
        users_schema(),
        teams_schema(),
        players_schema(),
        competitions_schema(),
        competition_teams_schema(),
        matches_schema(),
        player_match_stats_schema(),
        lineups_schema(),
        lineup_players_schema(),
        swiss_configs_schema(),
        fantasy_player_prices_schema(),
        fantasy_teams_schema(),
        fantasy_team_players_schema(),
    ])
