"""
Lineup service: formation rules and the admin verification workflow.

Workflow: draft -> pending (manager submits) -> verified | rejected (admin decides).
A rejected lineup can be resubmitted. Editing a pending or verified lineup sends it
back to draft. Submission for a match closes LINEUP_DEADLINE_MINUTES before kickoff
unless an admin allows an override.
"""
from __future__ import annotations

import logging
import sqlite3
from collections import Counter
from datetime import datetime, timedelta, timezone

from proclubs.config import get_settings
from proclubs.errors import NotFoundError
from proclubs.formations import LINEUP_SIZE, get_formation
from proclubs.models import Lineup, LineupPlayer, LineupStatus, PlayerStatus
from proclubs.persistence.repositories import (
    LineupRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
)

logger = logging.getLogger(__name__)

# ---------- Exceptions ----------


class LineupStateError(ValueError):
    """Action not allowed in the lineup's current verification status."""


class LineupValidationError(ValueError):
    """Lineup does not fit its formation or squad."""


class DeadlinePassedError(ValueError):
    """Submission deadline for the match has passed."""


_SUBMITTABLE = {LineupStatus.DRAFT, LineupStatus.REJECTED}
_RESET_ON_EDIT = {LineupStatus.PENDING, LineupStatus.VERIFIED}


def _utc(dt: datetime | None) -> datetime:
    if dt is None:
        return datetime.now(timezone.utc)
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


class LineupService:
    """Lineup CRUD rules and verification. Persistence is delegated to repositories."""

    def __init__(self, deadline_minutes: int | None = None) -> None:
        self._lineup_repo = LineupRepository()
        self._player_repo = PlayerRepository()
        self._team_repo = TeamRepository()
        self._match_repo = MatchRepository()
        if deadline_minutes is None:
            deadline_minutes = get_settings().lineup_deadline_minutes
        self._deadline = timedelta(minutes=deadline_minutes)

    def get_lineup(self, conn: sqlite3.Connection, lineup_id: str) -> Lineup:
        lineup = self._lineup_repo.get(conn, lineup_id)
        if lineup is None:
            raise NotFoundError("Lineup", lineup_id)
        return lineup

    def list_lineups(self, conn: sqlite3.Connection, team_id: str | None = None) -> list[Lineup]:
        return self._lineup_repo.list(conn, team_id=team_id)

    def pending_lineups(self, conn: sqlite3.Connection) -> list[Lineup]:
        """Admin review queue, oldest submission first."""
        return self._lineup_repo.list(conn, status=LineupStatus.PENDING)

    # ---------- Validation ----------

    def _validate(
        self,
        conn: sqlite3.Connection,
        team_id: str,
        formation_name: str,
        players: list[LineupPlayer],
    ) -> list[LineupPlayer]:
        formation = get_formation(formation_name)
        if formation is None:
            raise LineupValidationError(f"Unknown formation: {formation_name}")
        if len(players) > LINEUP_SIZE:
            raise LineupValidationError(f"A lineup has at most {LINEUP_SIZE} players")

        slots = formation.position_counts()
        used = Counter(p.position for p in players)
        for position, count in used.items():
            if position not in slots:
                raise LineupValidationError(f"{position} is not a position in {formation.name}")
            if count > slots[position]:
                raise LineupValidationError(
                    f"{formation.name} has {slots[position]} {position} slot(s), got {count}"
                )

        orders = [p.player_order for p in players]
        if len(set(orders)) != len(orders) or any(not 1 <= o <= LINEUP_SIZE for o in orders):
            raise LineupValidationError(f"player_order must be unique and between 1 and {LINEUP_SIZE}")

        self._check_squad(conn, team_id, players)

        cleaned: list[LineupPlayer] = []
        for p in sorted(players, key=lambda p: p.player_order):
            if p.is_ai_player:
                if not p.ai_player_name or not p.ai_player_name.strip():
                    raise LineupValidationError("AI players need a name")
                cleaned.append(LineupPlayer(
                    position=p.position, player_order=p.player_order,
                    is_ai_player=True, ai_player_name=p.ai_player_name.strip(),
                ))
            else:
                cleaned.append(LineupPlayer(
                    position=p.position, player_order=p.player_order, player_id=p.player_id,
                ))
        return cleaned

    def _check_squad(self, conn: sqlite3.Connection, team_id: str, players: list[LineupPlayer]) -> None:
        """Every non-AI slot holds a distinct, active member of the team's squad."""
        real_ids = [p.player_id for p in players if not p.is_ai_player]
        if any(pid is None for pid in real_ids):
            raise LineupValidationError("Every non-AI slot needs a player_id")
        if len(set(real_ids)) != len(real_ids):
            raise LineupValidationError("A player can only appear once in a lineup")
        squad = self._player_repo.get_many(conn, real_ids)  # type: ignore[arg-type]
        for pid in real_ids:
            player = squad.get(pid)
            if player is None:
                raise NotFoundError("Player", pid)
            if player.team_id != team_id:
                raise LineupValidationError(f"{player.name} does not play for this team")
            if player.status != PlayerStatus.ACTIVE:
                raise LineupValidationError(f"{player.name} is not available ({player.status})")

    def _deadline_for(self, conn: sqlite3.Connection, team_id: str, match_id: str | None) -> datetime | None:
        if match_id is None:
            return None
        match = self._match_repo.get(conn, match_id)
        if match is None:
            raise NotFoundError("Match", match_id)
        if not match.involves(team_id):
            raise LineupValidationError("The team does not play in this match")
        if match.match_date is None:
            return None
        return match.match_date - self._deadline

    # ---------- CRUD ----------

    def create_lineup(
        self,
        conn: sqlite3.Connection,
        team_id: str,
        name: str,
        formation: str,
        players: list[LineupPlayer],
        match_id: str | None = None,
        is_default: bool = False,
    ) -> Lineup:
        if self._team_repo.get(conn, team_id) is None:
            raise NotFoundError("Team", team_id)
        cleaned = self._validate(conn, team_id, formation, players)
        deadline = self._deadline_for(conn, team_id, match_id)
        lineup = self._lineup_repo.create(
            conn, team_id, name, formation, cleaned,
            is_default=is_default, match_id=match_id, submission_deadline=deadline,
        )
        if is_default:
            self._lineup_repo.clear_default(conn, team_id, except_id=lineup.id)
        logger.info("Lineup %s created for team %s (%s)", lineup.id, team_id, formation)
        return lineup

    def update_lineup(
        self,
        conn: sqlite3.Connection,
        lineup_id: str,
        name: str,
        formation: str,
        players: list[LineupPlayer],
        match_id: str | None = None,
        is_default: bool = False,
    ) -> Lineup:
        """Replace a lineup. A pending or verified lineup goes back to draft."""
        lineup = self.get_lineup(conn, lineup_id)
        cleaned = self._validate(conn, lineup.team_id, formation, players)
        deadline = self._deadline_for(conn, lineup.team_id, match_id)
        fields = {
            "name": name,
            "formation": formation,
            "match_id": match_id,
            "is_default": is_default,
            "submission_deadline": deadline,
        }
        if lineup.verification_status in _RESET_ON_EDIT:
            fields.update(
                verification_status=LineupStatus.DRAFT,
                submitted_at=None,
                verified_by=None,
                verified_at=None,
            )
            logger.info("Lineup %s edited while %s, back to draft", lineup_id, lineup.verification_status)
        self._lineup_repo.update(conn, lineup_id, **fields)
        self._lineup_repo.replace_players(conn, lineup_id, cleaned)
        if is_default:
            self._lineup_repo.clear_default(conn, lineup.team_id, except_id=lineup_id)
        return self.get_lineup(conn, lineup_id)

    def duplicate_lineup(self, conn: sqlite3.Connection, lineup_id: str) -> Lineup:
        """Copy as a new draft named '<name> (Copy)', not default and not tied to a match."""
        source = self.get_lineup(conn, lineup_id)
        players = [
            LineupPlayer(
                position=p.position, player_order=p.player_order, player_id=p.player_id,
                is_ai_player=p.is_ai_player, ai_player_name=p.ai_player_name,
            )
            for p in source.players
        ]
        return self._lineup_repo.create(
            conn, source.team_id, f"{source.name} (Copy)", source.formation, players,
        )

    def delete_lineup(self, conn: sqlite3.Connection, lineup_id: str) -> None:
        self.get_lineup(conn, lineup_id)
        self._lineup_repo.delete(conn, lineup_id)

    # ---------- Workflow ----------

    def submit_lineup(self, conn: sqlite3.Connection, lineup_id: str, now: datetime | None = None) -> Lineup:
        lineup = self.get_lineup(conn, lineup_id)
        if lineup.verification_status not in _SUBMITTABLE:
            raise LineupStateError(f"Cannot submit a {lineup.verification_status} lineup")
        if len(lineup.players) != LINEUP_SIZE:
            raise LineupValidationError(
                f"A submitted lineup needs exactly {LINEUP_SIZE} players (has {len(lineup.players)})"
            )
        # The squad may have changed since the lineup was saved
        self._check_squad(conn, lineup.team_id, lineup.players)
        # Kickoff may have moved since the lineup was saved
        deadline = self._deadline_for(conn, lineup.team_id, lineup.match_id)
        now = _utc(now)
        if deadline is not None and now > deadline:
            if not lineup.admin_override_allowed:
                raise DeadlinePassedError("The submission deadline for this match has passed")
            logger.info("Lineup %s submitted after the deadline under admin override", lineup_id)
        self._lineup_repo.update(
            conn, lineup_id,
            verification_status=LineupStatus.PENDING,
            submission_deadline=deadline,
            submitted_at=now,
            verified_by=None,
            verified_at=None,
        )
        logger.info("Lineup %s submitted for verification", lineup_id)
        return self.get_lineup(conn, lineup_id)

    def verify_lineup(
        self,
        conn: sqlite3.Connection,
        lineup_id: str,
        admin_id: str,
        approve: bool = True,
        now: datetime | None = None,
    ) -> Lineup:
        lineup = self.get_lineup(conn, lineup_id)
        if lineup.verification_status != LineupStatus.PENDING:
            raise LineupStateError(f"Only pending lineups can be reviewed (current: {lineup.verification_status})")
        status = LineupStatus.VERIFIED if approve else LineupStatus.REJECTED
        self._lineup_repo.update(
            conn, lineup_id,
            verification_status=status,
            verified_by=admin_id,
            verified_at=_utc(now),
        )
        logger.info("Lineup %s %s by %s", lineup_id, status.value, admin_id)
        return self.get_lineup(conn, lineup_id)

    def set_override(self, conn: sqlite3.Connection, lineup_id: str, allowed: bool) -> Lineup:
        self.get_lineup(conn, lineup_id)
        self._lineup_repo.update(conn, lineup_id, admin_override_allowed=allowed)
        logger.info("Lineup %s deadline override %s", lineup_id, "enabled" if allowed else "disabled")
        return self.get_lineup(conn, lineup_id)
