"""
Runtime configuration loaded from environment variables.
Read once via get_settings(); tests call reset_settings() after patching the environment.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

_DEV_SECRET = "proclubs-dev-secret-change-in-production"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})")


@dataclass
class Settings:
    """Application settings. Build with Settings.from_env()."""
    db_path: Path
    jwt_secret_key: str
    access_token_expire_minutes: int = 60 * 24 * 7
    admin_username: str | None = None
    admin_password: str | None = None
    lineup_deadline_minutes: int = 60
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        db_path = os.environ.get("PROCLUBS_DB_PATH")
        origins = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
        settings = cls(
            db_path=Path(db_path) if db_path else _project_root() / "data" / "proclubs.db",
            jwt_secret_key=os.environ.get("JWT_SECRET_KEY", ""),
            access_token_expire_minutes=_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7),
            admin_username=os.environ.get("ADMIN_USERNAME") or None,
            admin_password=os.environ.get("ADMIN_PASSWORD") or None,
            lineup_deadline_minutes=_int_env("LINEUP_DEADLINE_MINUTES", 60),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            environment=os.environ.get("ENVIRONMENT", "development").lower(),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Fail fast on unsafe production settings; warn in development."""
        if self.is_production:
            if len(self.jwt_secret_key) < 32:
                raise ValueError("JWT_SECRET_KEY must be set and at least 32 characters in production")
        elif not self.jwt_secret_key:
            logger.warning("JWT_SECRET_KEY not set, using insecure development default")
            self.jwt_secret_key = _DEV_SECRET
        if self.lineup_deadline_minutes < 0:
            raise ValueError("LINEUP_DEADLINE_MINUTES must be >= 0")
        if bool(self.admin_username) != bool(self.admin_password):
            logger.warning("ADMIN_USERNAME and ADMIN_PASSWORD must both be set to bootstrap an admin")


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None


def configure_logging(level: str | None = None) -> None:
    """Install one stream handler on the root logger. Safe to call more than once."""
    root = logging.getLogger()
    if not any(getattr(h, "_proclubs", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._proclubs = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level or get_settings().log_level)
