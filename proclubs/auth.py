"""
Auth: hashed passwords and JWT access tokens.
Passwords never stored in plain text. Tokens carry the user id and role.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from passlib.context import CryptContext
from jose import JWTError, jwt

from proclubs.config import get_settings
from proclubs.errors import PermissionDeniedError
from proclubs.models import User, UserRole

# pbkdf2_sha256 avoids the bcrypt backend self-test and its 72-byte limit
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_access_token(subject: str, role: str | None = None, expires_minutes: int | None = None) -> str:
    settings = get_settings()
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode: dict[str, Any] = {"sub": subject, "exp": expire}
    if role is not None:
        to_encode["role"] = role
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> str | None:
    """Return the user id from a valid token, else None."""
    try:
        payload = jwt.decode(token, get_settings().jwt_secret_key, algorithms=[ALGORITHM])
        return payload.get("sub")
    except JWTError:
        return None


# ---------- Role checks ----------


def is_admin(user: User | None) -> bool:
    return user is not None and user.role == UserRole.ADMIN


def require_admin(user: User | None) -> None:
    if not is_admin(user):
        raise PermissionDeniedError("Admin access required")


def can_manage_team(user: User | None, team_id: str, manager_id: str | None = None) -> bool:
    """Admins manage every team; a manager manages the team linked to their account."""
    if user is None:
        return False
    if user.role == UserRole.ADMIN:
        return True
    if user.role != UserRole.MANAGER:
        return False
    return user.team_id == team_id or (manager_id is not None and manager_id == user.id)


def require_team_manager(user: User | None, team_id: str, manager_id: str | None = None) -> None:
    if not can_manage_team(user, team_id, manager_id):
        raise PermissionDeniedError("Only an admin or this team's manager can do that")
