"""
REST API for the Pro Clubs league backend.
Thin wrappers around services and persistence.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import asynccontextmanager, contextmanager
from datetime import date, datetime
from typing import Any, AsyncGenerator, Generator

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from proclubs import __version__
from proclubs.auth import (
    can_manage_team,
    create_access_token,
    decode_token,
    hash_password,
    require_admin,
    require_team_manager,
    verify_password,
)
from proclubs.config import configure_logging, get_settings
from proclubs.errors import NotFoundError, PermissionDeniedError
from proclubs.formations import list_formations
from proclubs.models import (
    FantasySquadSlot,
    FantasyTeam,
    LineupPlayer,
    Match,
    PlayerPosition,
    PlayerStatus,
    StatsStatus,
    SwissConfig,
    Team,
    User,
    UserRole,
)
from proclubs.persistence import (
    CompetitionRepository,
    MatchRepository,
    PlayerRepository,
    PlayerStatsRepository,
    SwissConfigRepository,
    TeamRepository,
    UserRepository,
    ensure_admin,
    get_connection,
    init_db,
)
from proclubs.services import CompetitionService, DeadlinePassedError, FantasyService, LineupService
from proclubs.services.standings import team_performance

logger = logging.getLogger(__name__)


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


# ---------- Startup: ensure DB and bootstrap admin ----------
def _ensure_db() -> None:
    init_db()
    settings = get_settings()
    if settings.admin_username and settings.admin_password:
        with db_conn() as conn:
            ensure_admin(conn, settings.admin_username, hash_password(settings.admin_password))


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    _ensure_db()
    logger.info("Pro Clubs API ready (environment=%s)", get_settings().environment)
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Pro Clubs League API",
    description="Competitions, fixtures, standings, squads and lineup verification",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Error mapping ----------


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


@app.exception_handler(NotFoundError)
async def _handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error(404, str(exc))


@app.exception_handler(PermissionDeniedError)
async def _handle_permission_denied(request: Request, exc: PermissionDeniedError) -> JSONResponse:
    return _error(403, str(exc) or "Permission denied")


@app.exception_handler(DeadlinePassedError)
async def _handle_deadline(request: Request, exc: DeadlinePassedError) -> JSONResponse:
    return _error(409, str(exc))


@app.exception_handler(sqlite3.IntegrityError)
async def _handle_integrity(request: Request, exc: sqlite3.IntegrityError) -> JSONResponse:
    logger.debug("Integrity error on %s %s: %s", request.method, request.url.path, exc)
    return _error(409, "This record already exists or references a missing record")


@app.exception_handler(ValueError)
async def _handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    return _error(400, str(exc))


# ---------- Request models ----------

security = HTTPBearer(auto_error=False)


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)
    display_name: str | None = Field(None, max_length=100)
    role: str = Field("fan", description="fan, player or manager")


class LoginRequest(BaseModel):
    username: str
    password: str


class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)
    display_name: str | None = None
    role: str = "fan"
    team_id: str | None = None


class UpdateUserRequest(BaseModel):
    display_name: str | None = None
    role: str | None = None
    team_id: str | None = None


class TeamRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    short_name: str = Field(..., min_length=1, max_length=10)
    country: str | None = None
    logo_url: str | None = None
    description: str | None = None
    manager_id: str | None = None


class TeamUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    short_name: str | None = Field(None, min_length=1, max_length=10)
    country: str | None = None
    logo_url: str | None = None
    description: str | None = None
    manager_id: str | None = None


class PlayerRequest(BaseModel):
    team_id: str
    name: str = Field(..., min_length=1, max_length=100)
    position: PlayerPosition
    number: int = Field(..., ge=1, le=99)
    status: PlayerStatus = PlayerStatus.ACTIVE
    user_id: str | None = None


class PlayerUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    position: PlayerPosition | None = None
    number: int | None = Field(None, ge=1, le=99)
    status: PlayerStatus | None = None
    user_id: str | None = None
    team_id: str | None = None


class CompetitionRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(..., description="league, cup, swiss or friendly")
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    max_teams: int | None = Field(None, ge=2)
    frequency: str = "weekly"
    home_and_away: bool = False
    number_of_groups: int | None = Field(None, ge=2)
    third_place_playoff: bool = False
    rules: str | None = None
    stream_link: str | None = None


class CompetitionUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    max_teams: int | None = Field(None, ge=2)
    frequency: str | None = None
    home_and_away: bool | None = None
    number_of_groups: int | None = Field(None, ge=2)
    third_place_playoff: bool | None = None
    rules: str | None = None
    stream_link: str | None = None


class RegisterTeamRequest(BaseModel):
    team_id: str


class SeedRequest(BaseModel):
    seed: int | None = Field(None, description="RNG seed for a reproducible draw")


class SwissConfigRequest(BaseModel):
    number_of_teams: int = Field(..., ge=2)
    matches_per_team: int = Field(..., ge=1)
    direct_qualifiers: int = Field(..., ge=0)
    playoff_qualifiers: int = Field(0, ge=0)
    same_country_restriction: bool = False
    home_away_balance: bool = True
    tiebreakers: list[str] = Field(default_factory=lambda: ["points", "goal_difference", "goals_for"])
    exclusions: list[tuple[str, str]] = Field(default_factory=list)


class MatchRequest(BaseModel):
    home_team_id: str
    away_team_id: str
    match_date: datetime | None = None
    venue: str | None = None


class MatchUpdateRequest(BaseModel):
    status: str | None = None
    match_date: datetime | None = None
    venue: str | None = None


class ResultRequest(BaseModel):
    home_score: int = Field(..., ge=0)
    away_score: int = Field(..., ge=0)


class StatLine(BaseModel):
    player_id: str
    goals: int = Field(0, ge=0)
    assists: int = Field(0, ge=0)
    rating: float | None = Field(None, ge=0, le=10)
    minutes_played: int = Field(0, ge=0, le=130)
    yellow_cards: int = Field(0, ge=0, le=2)
    red_cards: int = Field(0, ge=0, le=1)
    clean_sheet: bool = False
    saves: int = Field(0, ge=0)
    penalty_saves: int = Field(0, ge=0)
    own_goals: int = Field(0, ge=0)
    motm: bool = False


class StatsRequest(BaseModel):
    entries: list[StatLine] = Field(..., min_length=1)


class ReviewRequest(BaseModel):
    approve: bool


class LineupPlayerIn(BaseModel):
    position: str
    player_order: int | None = Field(None, ge=1, le=11, description="Defaults to list order")
    player_id: str | None = None
    is_ai_player: bool = False
    ai_player_name: str | None = None


class LineupUpdateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    formation: str
    players: list[LineupPlayerIn] = Field(default_factory=list)
    match_id: str | None = None
    is_default: bool = False


class LineupRequest(LineupUpdateRequest):
    team_id: str


class VerifyRequest(BaseModel):
    approve: bool = True


class OverrideRequest(BaseModel):
    allowed: bool


class FantasyPickIn(BaseModel):
    player_id: str
    slot: int | None = Field(None, ge=1, le=15, description="Defaults to list order; 1-11 start")
    is_captain: bool = False
    is_vice_captain: bool = False


class FantasySquadRequest(BaseModel):
    squad: list[FantasyPickIn]
    name: str | None = Field(None, min_length=1, max_length=100)


class FantasyTeamRequest(FantasySquadRequest):
    competition_id: str
    name: str = Field(..., min_length=1, max_length=100)


class PriceRequest(BaseModel):
    price: float = Field(..., gt=0, le=50)


# ---------- Auth dependencies ----------


def _get_current_user_id(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> str | None:
    """Return user_id from JWT or None if no/invalid token."""
    if credentials is None:
        return None
    return decode_token(credentials.credentials)


def _current_user(user_id: str | None = Depends(_get_current_user_id)) -> User | None:
    """Load the caller from the DB so role changes apply immediately."""
    if not user_id:
        return None
    with db_conn() as conn:
        return UserRepository().get(conn, user_id)


def _require_user(user: User | None = Depends(_current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Login required")
    return user


def _require_admin(user: User = Depends(_require_user)) -> User:
    require_admin(user)
    return user


def _get_team(conn: sqlite3.Connection, team_id: str) -> Team:
    team = TeamRepository().get(conn, team_id)
    if team is None:
        raise NotFoundError("Team", team_id)
    return team


def _require_manager_of(conn: sqlite3.Connection, user: User, team_id: str) -> Team:
    team = _get_team(conn, team_id)
    require_team_manager(user, team.id, team.manager_id)
    return team


def _patch_fields(req: BaseModel, required: tuple[str, ...] = ()) -> dict[str, Any]:
    """Fields the client sent. Required columns refuse an explicit null."""
    fields = req.model_dump(exclude_unset=True)
    cleared = [k for k in required if k in fields and fields[k] is None]
    if cleared:
        raise HTTPException(status_code=400, detail=f"{', '.join(cleared)} cannot be null")
    return fields


def _match_dicts(conn: sqlite3.Connection, matches: list[Match]) -> list[dict[str, Any]]:
    """Match dicts with team names attached."""
    ids = list({t for m in matches for t in (m.home_team_id, m.away_team_id)})
    teams = TeamRepository().get_many(conn, ids)
    out = []
    for m in matches:
        d = m.to_dict()
        home, away = teams.get(m.home_team_id), teams.get(m.away_team_id)
        d["home_team_name"] = home.name if home else None
        d["away_team_name"] = away.name if away else None
        out.append(d)
    return out


# ---------- Auth ----------

_SELF_SERVICE_ROLES = {UserRole.FAN.value, UserRole.PLAYER.value, UserRole.MANAGER.value}


@app.post("/signup")
def signup(req: SignupRequest) -> dict[str, Any]:
    """Create an account. Admin accounts can only be created by another admin."""
    if req.role not in _SELF_SERVICE_ROLES:
        raise HTTPException(status_code=403, detail=f"Cannot sign up with role '{req.role}'")
    with db_conn() as conn:
        user_repo = UserRepository()
        if user_repo.get_by_username(conn, req.username):
            raise HTTPException(status_code=400, detail="Username already taken")
        user = user_repo.create(
            conn, req.username, hash_password(req.password), display_name=req.display_name, role=req.role,
        )
        token = create_access_token(user.id, role=user.role)
        return {"user_id": user.id, "username": user.username, "role": user.role, "token": token}


@app.post("/login")
def login(req: LoginRequest) -> dict[str, Any]:
    """Login. Returns JWT token."""
    with db_conn() as conn:
        user = UserRepository().get_by_username(conn, req.username)
        if user is None or not user.password_hash or not verify_password(req.password, user.password_hash):
            raise HTTPException(status_code=401, detail="Invalid username or password")
        token = create_access_token(user.id, role=user.role)
        return {"user_id": user.id, "username": user.username, "role": user.role, "token": token}


@app.get("/me")
def me(user: User = Depends(_require_user)) -> dict[str, Any]:
    return user.to_dict()


# ---------- Users (admin) ----------


@app.get("/users")
def list_users(role: str | None = None, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"users": [u.to_dict() for u in UserRepository().list_all(conn, role=role)]}


@app.post("/users")
def create_user(req: CreateUserRequest, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    if req.role not in {r.value for r in UserRole}:
        raise HTTPException(status_code=400, detail=f"Unknown role: {req.role}")
    with db_conn() as conn:
        user_repo = UserRepository()
        if user_repo.get_by_username(conn, req.username):
            raise HTTPException(status_code=400, detail="Username already taken")
        user = user_repo.create(
            conn, req.username, hash_password(req.password),
            display_name=req.display_name, role=req.role, team_id=req.team_id,
        )
        logger.info("Admin %s created user %s (%s)", admin.username, user.username, user.role)
        return user.to_dict()


@app.patch("/users/{user_id}")
def update_user(user_id: str, req: UpdateUserRequest, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    fields = _patch_fields(req, ("display_name", "role"))
    if "role" in fields and fields["role"] not in {r.value for r in UserRole}:
        raise HTTPException(status_code=400, detail=f"Unknown role: {fields['role']}")
    with db_conn() as conn:
        user_repo = UserRepository()
        if user_repo.get(conn, user_id) is None:
            raise NotFoundError("User", user_id)
        if fields:
            user_repo.update(conn, user_id, **fields)
        return user_repo.get(conn, user_id).to_dict()


# ---------- Teams ----------


@app.get("/teams")
def list_teams(search: str | None = Query(None, description="Match on name or short name")) -> dict[str, Any]:
    with db_conn() as conn:
        teams = TeamRepository().list_all(conn, search=search)
        counts = PlayerRepository().count_by_team(conn, [t.id for t in teams])
        return {
            "teams": [{**t.to_dict(), "players_count": counts.get(t.id, 0)} for t in teams],
        }


@app.get("/teams/{team_id}")
def get_team(team_id: str) -> dict[str, Any]:
    """Team with its squad."""
    with db_conn() as conn:
        team = _get_team(conn, team_id)
        players = PlayerRepository().list(conn, team_id=team_id)
        out = team.to_dict()
        out["players"] = [p.to_dict() for p in players]
        return out


@app.post("/teams")
def create_team(req: TeamRequest, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        team = TeamRepository().create(conn, **req.model_dump())
        logger.info("Team %s created (%s)", team.id, team.name)
        return team.to_dict()


@app.patch("/teams/{team_id}")
def update_team(team_id: str, req: TeamUpdateRequest, user: User = Depends(_require_user)) -> dict[str, Any]:
    fields = _patch_fields(req, ("name", "short_name"))
    with db_conn() as conn:
        _require_manager_of(conn, user, team_id)
        if "manager_id" in fields:
            require_admin(user)
        team_repo = TeamRepository()
        if fields:
            team_repo.update(conn, team_id, **fields)
        return team_repo.get(conn, team_id).to_dict()


@app.delete("/teams/{team_id}")
def delete_team(team_id: str, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        _get_team(conn, team_id)
        TeamRepository().delete(conn, team_id)
        logger.info("Team %s deleted", team_id)
        return {"id": team_id, "deleted": True}


@app.get("/teams/{team_id}/performance")
def get_team_performance(team_id: str) -> dict[str, Any]:
    """Record, goals, clean sheets and form over every finished match."""
    with db_conn() as conn:
        _get_team(conn, team_id)
        matches = MatchRepository().list(conn, team_id=team_id, status="finished")
        return team_performance(team_id, matches)


@app.get("/teams/{team_id}/fixtures")
def get_team_fixtures(team_id: str, status: str | None = None) -> dict[str, Any]:
    with db_conn() as conn:
        _get_team(conn, team_id)
        matches = MatchRepository().list(conn, team_id=team_id, status=status)
        return {"team_id": team_id, "fixtures": _match_dicts(conn, matches)}


# ---------- Players ----------


@app.get("/players")
def list_players(
    team_id: str | None = None,
    position: PlayerPosition | None = None,
    status: PlayerStatus | None = None,
) -> dict[str, Any]:
    with db_conn() as conn:
        players = PlayerRepository().list(conn, team_id=team_id, position=position, status=status)
        return {"players": [p.to_dict() for p in players]}


@app.get("/players/leaderboard")
def players_leaderboard(limit: int = Query(20, ge=1, le=100)) -> dict[str, Any]:
    """Players ranked by season points."""
    with db_conn() as conn:
        players = PlayerRepository().leaderboard(conn, limit=limit)
        return {
            "players": [{**p.to_dict(), "rank": i} for i, p in enumerate(players, start=1)],
        }


@app.get("/players/{player_id}")
def get_player(player_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        player = PlayerRepository().get(conn, player_id)
        if player is None:
            raise NotFoundError("Player", player_id)
        return player.to_dict()


@app.post("/players")
def create_player(req: PlayerRequest, user: User = Depends(_require_user)) -> dict[str, Any]:
    with db_conn() as conn:
        _require_manager_of(conn, user, req.team_id)
        player = PlayerRepository().create(
            conn, req.team_id, req.name, req.position, req.number, status=req.status, user_id=req.user_id,
        )
        return player.to_dict()


@app.patch("/players/{player_id}")
def update_player(player_id: str, req: PlayerUpdateRequest, user: User = Depends(_require_user)) -> dict[str, Any]:
    fields = _patch_fields(req, ("name", "position", "number", "status", "team_id"))
    with db_conn() as conn:
        player_repo = PlayerRepository()
        player = player_repo.get(conn, player_id)
        if player is None:
            raise NotFoundError("Player", player_id)
        _require_manager_of(conn, user, player.team_id)
        if "team_id" in fields and fields["team_id"] != player.team_id:
            _require_manager_of(conn, user, fields["team_id"])
        if fields:
            player_repo.update(conn, player_id, **fields)
        return player_repo.get(conn, player_id).to_dict()


@app.delete("/players/{player_id}")
def delete_player(player_id: str, user: User = Depends(_require_user)) -> dict[str, Any]:
    with db_conn() as conn:
        player_repo = PlayerRepository()
        player = player_repo.get(conn, player_id)
        if player is None:
            raise NotFoundError("Player", player_id)
        _require_manager_of(conn, user, player.team_id)
        player_repo.delete(conn, player_id)
        return {"id": player_id, "deleted": True}


# ---------- Competitions ----------


@app.get("/competitions")
def list_competitions(status: str | None = None, type: str | None = None) -> dict[str, Any]:
    with db_conn() as conn:
        competition_repo = CompetitionRepository()
        competitions = competition_repo.list_all(conn, status=status, type=type)
        return {
            "competitions": [
                {**c.to_dict(), "teams_count": competition_repo.count_teams(conn, c.id)}
                for c in competitions
            ],
        }


@app.get("/competitions/{competition_id}")
def get_competition(competition_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        svc = CompetitionService()
        competition = svc.get_competition(conn, competition_id)
        out = competition.to_dict()
        out["teams"] = [t.to_dict() for t in svc.registered_teams(conn, competition_id)]
        config = SwissConfigRepository().get(conn, competition_id)
        if config is not None:
            out["swiss_config"] = config.to_dict()
        return out


@app.post("/competitions")
def create_competition(req: CompetitionRequest, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    fields = req.model_dump()
    name, type_ = fields.pop("name"), fields.pop("type")
    with db_conn() as conn:
        return CompetitionService().create_competition(conn, name, type_, **fields).to_dict()


@app.patch("/competitions/{competition_id}")
def update_competition(
    competition_id: str,
    req: CompetitionUpdateRequest,
    admin: User = Depends(_require_admin),
) -> dict[str, Any]:
    with db_conn() as conn:
        competition = CompetitionService().update_competition(
            conn, competition_id, **req.model_dump(exclude_unset=True)
        )
        return competition.to_dict()


@app.delete("/competitions/{competition_id}")
def delete_competition(competition_id: str, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    """Deletes registrations, matches, their stats and the Swiss config with it."""
    with db_conn() as conn:
        CompetitionService().get_competition(conn, competition_id)
        CompetitionRepository().delete(conn, competition_id)
        logger.info("Competition %s deleted", competition_id)
        return {"id": competition_id, "deleted": True}


@app.post("/competitions/{competition_id}/teams")
def register_team(
    competition_id: str,
    req: RegisterTeamRequest,
    user: User = Depends(_require_user),
) -> dict[str, Any]:
    """Register a team. Admins register any team; managers their own."""
    with db_conn() as conn:
        _require_manager_of(conn, user, req.team_id)
        return CompetitionService().register_team(conn, competition_id, req.team_id).to_dict()


@app.delete("/competitions/{competition_id}/teams/{team_id}")
def withdraw_team(competition_id: str, team_id: str, user: User = Depends(_require_user)) -> dict[str, Any]:
    with db_conn() as conn:
        _require_manager_of(conn, user, team_id)
        CompetitionService().withdraw_team(conn, competition_id, team_id)
        return {"competition_id": competition_id, "team_id": team_id, "withdrawn": True}


@app.get("/competitions/{competition_id}/teams")
def get_competition_teams(competition_id: str) -> dict[str, Any]:
    """Registered teams with squad size and win/loss record."""
    with db_conn() as conn:
        return {"competition_id": competition_id, "teams": CompetitionService().team_records(conn, competition_id)}


@app.post("/competitions/{competition_id}/start")
def start_competition(
    competition_id: str,
    req: SeedRequest | None = None,
    admin: User = Depends(_require_admin),
) -> dict[str, Any]:
    """Generate fixtures and open the competition for results."""
    with db_conn() as conn:
        competition = CompetitionService().start_competition(
            conn, competition_id, seed=req.seed if req else None
        )
        fixtures = MatchRepository().count(conn, competition_id=competition_id)
        return {**competition.to_dict(), "fixtures_count": fixtures}


@app.post("/competitions/{competition_id}/advance")
def advance_knockout(competition_id: str, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        svc = CompetitionService()
        created = svc.advance_knockout(conn, competition_id)
        competition = svc.get_competition(conn, competition_id)
        return {
            "competition_id": competition_id,
            "status": competition.status,
            "matches": _match_dicts(conn, created),
        }


@app.post("/competitions/{competition_id}/complete")
def complete_competition(competition_id: str, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        return CompetitionService().complete_competition(conn, competition_id).to_dict()


@app.get("/competitions/{competition_id}/standings")
def get_standings(competition_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return CompetitionService().standings(conn, competition_id)


@app.get("/competitions/{competition_id}/fixtures")
def get_competition_fixtures(competition_id: str, status: str | None = None) -> dict[str, Any]:
    with db_conn() as conn:
        CompetitionService().get_competition(conn, competition_id)
        matches = MatchRepository().list(conn, competition_id=competition_id, status=status)
        return {"competition_id": competition_id, "fixtures": _match_dicts(conn, matches)}


@app.get("/competitions/{competition_id}/top-scorers")
def get_top_scorers(competition_id: str, limit: int = Query(10, ge=1, le=50)) -> dict[str, Any]:
    with db_conn() as conn:
        return {
            "competition_id": competition_id,
            "top_scorers": CompetitionService().top_scorers(conn, competition_id, limit=limit),
        }


@app.put("/competitions/{competition_id}/swiss-config")
def put_swiss_config(
    competition_id: str,
    req: SwissConfigRequest,
    admin: User = Depends(_require_admin),
) -> dict[str, Any]:
    config = SwissConfig(competition_id=competition_id, **req.model_dump())
    with db_conn() as conn:
        return CompetitionService().save_swiss_config(conn, config).to_dict()


@app.post("/competitions/{competition_id}/swiss-draw")
def run_swiss_draw(
    competition_id: str,
    req: SeedRequest | None = None,
    admin: User = Depends(_require_admin),
) -> dict[str, Any]:
    with db_conn() as conn:
        result = CompetitionService().run_swiss_draw(conn, competition_id, seed=req.seed if req else None)
        return {"competition_id": competition_id, **result.to_dict()}


# ---------- Matches ----------


@app.get("/matches")
def list_matches(
    competition_id: str | None = None,
    team_id: str | None = None,
    status: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> dict[str, Any]:
    """Most recent first, paginated."""
    with db_conn() as conn:
        match_repo = MatchRepository()
        total = match_repo.count(conn, competition_id=competition_id, team_id=team_id, status=status)
        matches = match_repo.list(
            conn, competition_id=competition_id, team_id=team_id, status=status,
            limit=limit, offset=(page - 1) * limit, descending=True,
        )
        return {"matches": _match_dicts(conn, matches), "total": total, "page": page, "limit": limit}


@app.get("/matches/{match_id}")
def get_match(match_id: str) -> dict[str, Any]:
    """Match with its player stat lines."""
    with db_conn() as conn:
        match = CompetitionService().get_match(conn, match_id)
        out = _match_dicts(conn, [match])[0]
        out["player_stats"] = [s.to_dict() for s in PlayerStatsRepository().list_by_match(conn, match_id)]
        return out


@app.post("/matches")
def create_match(req: MatchRequest, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        match = CompetitionService().create_match(
            conn, req.home_team_id, req.away_team_id, match_date=req.match_date, venue=req.venue,
        )
        return match.to_dict()


@app.patch("/matches/{match_id}")
def update_match(match_id: str, req: MatchUpdateRequest, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        match = CompetitionService().update_match(conn, match_id, **_patch_fields(req, ("status",)))
        return match.to_dict()


@app.post("/matches/{match_id}/result")
def record_result(match_id: str, req: ResultRequest, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        return CompetitionService().record_result(conn, match_id, req.home_score, req.away_score).to_dict()


@app.post("/matches/{match_id}/stats")
def submit_stats(match_id: str, req: StatsRequest, user: User = Depends(_require_user)) -> dict[str, Any]:
    """Admins or either team's manager submit stat lines; they start pending."""
    with db_conn() as conn:
        svc = CompetitionService()
        match = svc.get_match(conn, match_id)
        teams = TeamRepository().get_many(conn, [match.home_team_id, match.away_team_id])
        if not any(can_manage_team(user, t.id, t.manager_id) for t in teams.values()):
            raise PermissionDeniedError("Only an admin or a manager of either team can submit stats")
        stats = svc.submit_player_stats(conn, match_id, [e.model_dump() for e in req.entries])
        return {"match_id": match_id, "stats": [s.to_dict() for s in stats]}


@app.get("/stats/pending")
def pending_stats(admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        rows = PlayerStatsRepository().list_by_status(conn, StatsStatus.PENDING)
        return {"stats": [s.to_dict() for s in rows]}


@app.post("/stats/{stat_id}/review")
def review_stats(stat_id: str, req: ReviewRequest, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        return CompetitionService().review_player_stats(conn, stat_id, req.approve).to_dict()


# ---------- Lineups ----------


def _lineup_players(entries: list[LineupPlayerIn]) -> list[LineupPlayer]:
    return [
        LineupPlayer(
            position=e.position,
            player_order=e.player_order if e.player_order is not None else i,
            player_id=e.player_id,
            is_ai_player=e.is_ai_player,
            ai_player_name=e.ai_player_name,
        )
        for i, e in enumerate(entries, start=1)
    ]


@app.get("/formations")
def get_formations() -> dict[str, Any]:
    return {
        "formations": [
            {"name": f.name, "category": f.category, "positions": list(f.positions)}
            for f in list_formations()
        ],
    }


@app.get("/lineups")
def list_lineups(team_id: str | None = None) -> dict[str, Any]:
    with db_conn() as conn:
        return {"lineups": [lu.to_dict() for lu in LineupService().list_lineups(conn, team_id=team_id)]}


@app.get("/lineups/pending")
def pending_lineups(admin: User = Depends(_require_admin)) -> dict[str, Any]:
    """Admin verification queue."""
    with db_conn() as conn:
        return {"lineups": [lu.to_dict() for lu in LineupService().pending_lineups(conn)]}


@app.get("/lineups/{lineup_id}")
def get_lineup(lineup_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return LineupService().get_lineup(conn, lineup_id).to_dict()


@app.post("/lineups")
def create_lineup(req: LineupRequest, user: User = Depends(_require_user)) -> dict[str, Any]:
    with db_conn() as conn:
        _require_manager_of(conn, user, req.team_id)
        lineup = LineupService().create_lineup(
            conn, req.team_id, req.name, req.formation, _lineup_players(req.players),
            match_id=req.match_id, is_default=req.is_default,
        )
        return lineup.to_dict()


@app.put("/lineups/{lineup_id}")
def update_lineup(lineup_id: str, req: LineupUpdateRequest, user: User = Depends(_require_user)) -> dict[str, Any]:
    with db_conn() as conn:
        svc = LineupService()
        _require_manager_of(conn, user, svc.get_lineup(conn, lineup_id).team_id)
        lineup = svc.update_lineup(
            conn, lineup_id, req.name, req.formation, _lineup_players(req.players),
            match_id=req.match_id, is_default=req.is_default,
        )
        return lineup.to_dict()


@app.post("/lineups/{lineup_id}/submit")
def submit_lineup(lineup_id: str, user: User = Depends(_require_user)) -> dict[str, Any]:
    with db_conn() as conn:
        svc = LineupService()
        _require_manager_of(conn, user, svc.get_lineup(conn, lineup_id).team_id)
        return svc.submit_lineup(conn, lineup_id).to_dict()


@app.post("/lineups/{lineup_id}/duplicate")
def duplicate_lineup(lineup_id: str, user: User = Depends(_require_user)) -> dict[str, Any]:
    with db_conn() as conn:
        svc = LineupService()
        _require_manager_of(conn, user, svc.get_lineup(conn, lineup_id).team_id)
        return svc.duplicate_lineup(conn, lineup_id).to_dict()


@app.delete("/lineups/{lineup_id}")
def delete_lineup(lineup_id: str, user: User = Depends(_require_user)) -> dict[str, Any]:
    with db_conn() as conn:
        svc = LineupService()
        _require_manager_of(conn, user, svc.get_lineup(conn, lineup_id).team_id)
        svc.delete_lineup(conn, lineup_id)
        return {"id": lineup_id, "deleted": True}


@app.post("/lineups/{lineup_id}/verify")
def verify_lineup(lineup_id: str, req: VerifyRequest, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        return LineupService().verify_lineup(conn, lineup_id, admin.id, approve=req.approve).to_dict()


@app.post("/lineups/{lineup_id}/override")
def set_lineup_override(lineup_id: str, req: OverrideRequest, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        return LineupService().set_override(conn, lineup_id, req.allowed).to_dict()


# ---------- Fantasy ----------


def _fantasy_squad(entries: list[FantasyPickIn]) -> list[FantasySquadSlot]:
    return [
        FantasySquadSlot(
            player_id=e.player_id,
            slot=e.slot if e.slot is not None else i,
            is_captain=e.is_captain,
            is_vice_captain=e.is_vice_captain,
        )
        for i, e in enumerate(entries, start=1)
    ]


def _require_fantasy_owner(conn: sqlite3.Connection, user: User, team_id: str) -> FantasyTeam:
    team = FantasyService().get_team(conn, team_id)
    if team.user_id != user.id and user.role != UserRole.ADMIN:
        raise PermissionDeniedError("Only the owner can change this fantasy team")
    return team


@app.get("/competitions/{competition_id}/fantasy/players")
def fantasy_market(competition_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return {"players": FantasyService().player_market(conn, competition_id)}


@app.put("/competitions/{competition_id}/fantasy/prices/{player_id}")
def set_fantasy_price(
    competition_id: str, player_id: str, req: PriceRequest, admin: User = Depends(_require_admin)
) -> dict[str, Any]:
    with db_conn() as conn:
        return FantasyService().set_player_price(conn, competition_id, player_id, req.price)


@app.get("/competitions/{competition_id}/fantasy/leaderboard")
def fantasy_leaderboard(competition_id: str, limit: int | None = Query(None, ge=1, le=500)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"leaderboard": FantasyService().leaderboard(conn, competition_id, limit=limit)}


@app.post("/fantasy/teams")
def create_fantasy_team(req: FantasyTeamRequest, user: User = Depends(_require_user)) -> dict[str, Any]:
    with db_conn() as conn:
        team = FantasyService().create_team(conn, user.id, req.competition_id, req.name, _fantasy_squad(req.squad))
        return team.to_dict()


@app.get("/fantasy/teams")
def list_fantasy_teams(competition_id: str | None = None, user_id: str | None = None) -> dict[str, Any]:
    with db_conn() as conn:
        teams = FantasyService().list_teams(conn, competition_id=competition_id, user_id=user_id)
        return {"teams": [t.to_dict() for t in teams]}


@app.get("/fantasy/teams/{team_id}")
def get_fantasy_team(team_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        svc = FantasyService()
        team = svc.get_team(conn, team_id)
        return {**team.to_dict(), "squad_cost": svc.squad_cost(conn, team)}


@app.put("/fantasy/teams/{team_id}/squad")
def update_fantasy_squad(team_id: str, req: FantasySquadRequest, user: User = Depends(_require_user)) -> dict[str, Any]:
    with db_conn() as conn:
        _require_fantasy_owner(conn, user, team_id)
        return FantasyService().update_squad(conn, team_id, _fantasy_squad(req.squad), name=req.name).to_dict()


@app.delete("/fantasy/teams/{team_id}")
def delete_fantasy_team(team_id: str, user: User = Depends(_require_user)) -> dict[str, Any]:
    with db_conn() as conn:
        _require_fantasy_owner(conn, user, team_id)
        FantasyService().delete_team(conn, team_id)
        return {"id": team_id, "deleted": True}


# ---------- Run with: uvicorn proclubs.api:app --reload (or the proclubs-api script) ----------
def main() -> None:
    import uvicorn

    uvicorn.run("proclubs.api:app", host="0.0.0.0", port=8000, log_level=get_settings().log_level.lower())
