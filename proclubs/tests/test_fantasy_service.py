"""
Tests for fantasy squads: squad rules, budget, captaincy and the leaderboard.
"""
from __future__ import annotations

import sqlite3

import pytest

from proclubs.errors import NotFoundError
from proclubs.models import FantasySquadSlot
from proclubs.persistence.db import get_connection, init_db, set_db_path
from proclubs.persistence.repositories import (
    CompetitionRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
    UserRepository,
)
from proclubs.services.competition_service import CompetitionService
from proclubs.services.fantasy_service import (
    DEFAULT_PRICE,
    FantasyService,
    FantasyValidationError,
)


@pytest.fixture
def db_conn(tmp_path):
    """Temporary DB with the full schema."""
    db_path = tmp_path / "fantasy_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()
        set_db_path(None)


@pytest.fixture
def service():
    return FantasyService()


@pytest.fixture
def league(db_conn):
    """A league with two registered clubs of 9 players each, one outside club and two users."""
    competitions = CompetitionService()
    teams = TeamRepository()
    players = PlayerRepository()
    users = UserRepository()
    competition = competitions.create_competition(db_conn, "Fantasy League", "league")
    club_ids = [teams.create(db_conn, f"Club {i}", f"C{i}").id for i in range(2)]
    for tid in club_ids:
        competitions.register_team(db_conn, competition.id, tid)
    outside = teams.create(db_conn, "Outside FC", "OUT").id
    player_ids = [
        players.create(db_conn, tid, f"Player {i}-{n}", "MID", n).id
        for i, tid in enumerate(club_ids)
        for n in range(1, 10)
    ]
    stranger = players.create(db_conn, outside, "Stranger", "FWD", 9).id
    return {
        "competition": competition,
        "clubs": club_ids,
        "players": player_ids,
        "stranger": stranger,
        "alice": users.create(db_conn, "alice", "x").id,
        "bob": users.create(db_conn, "bob", "x").id,
    }


def _squad(player_ids: list[str], captain: int = 0, vice: int = 1) -> list[FantasySquadSlot]:
    return [
        FantasySquadSlot(player_id=pid, slot=i + 1, is_captain=i == captain, is_vice_captain=i == vice)
        for i, pid in enumerate(player_ids)
    ]


def _approved_line(db_conn, league, player_id: str, **line) -> int:
    """Finish a match between the two clubs and approve one stat line; returns its fantasy points."""
    competitions = CompetitionService()
    home, away = league["clubs"]
    matches = MatchRepository()
    match = matches.create(db_conn, home, away, competition_id=league["competition"].id, stage="league")
    matches.record_result(db_conn, match.id, 1, 0)
    stat = competitions.submit_player_stats(db_conn, match.id, [{"player_id": player_id, **line}])[0]
    competitions.review_player_stats(db_conn, stat.id, approve=True)
    return stat.fantasy_points


# ---------- Squad rules ----------


def test_create_team(db_conn, service, league):
    team = service.create_team(db_conn, league["alice"], league["competition"].id, "Alice XI", _squad(league["players"][:15]))
    assert team.budget == 100.0
    assert len(team.squad) == 15
    assert team.captain_id == league["players"][0]
    assert team.vice_captain_id == league["players"][1]
    assert [s.is_bench for s in team.squad].count(True) == 4
    assert service.squad_cost(db_conn, team) == 15 * DEFAULT_PRICE


def test_squad_needs_fifteen_players(db_conn, service, league):
    with pytest.raises(FantasyValidationError, match="exactly 15"):
        service.create_team(db_conn, league["alice"], league["competition"].id, "Short", _squad(league["players"][:14]))


def test_slots_must_cover_one_to_fifteen(db_conn, service, league):
    squad = _squad(league["players"][:15])
    squad[14].slot = 16
    with pytest.raises(FantasyValidationError, match="Slots"):
        service.create_team(db_conn, league["alice"], league["competition"].id, "Gap", squad)


def test_duplicate_player_refused(db_conn, service, league):
    picks = league["players"][:14] + [league["players"][0]]
    with pytest.raises(FantasyValidationError, match="once"):
        service.create_team(db_conn, league["alice"], league["competition"].id, "Twice", _squad(picks))


def test_needs_one_captain_and_one_vice(db_conn, service, league):
    comp_id = league["competition"].id
    picks = league["players"][:15]
    with pytest.raises(FantasyValidationError, match="captain"):
        service.create_team(db_conn, league["alice"], comp_id, "No vice", _squad(picks, vice=-1))
    with pytest.raises(FantasyValidationError, match="different"):
        service.create_team(db_conn, league["alice"], comp_id, "Same", _squad(picks, captain=2, vice=2))
    with pytest.raises(FantasyValidationError, match="start"):
        service.create_team(db_conn, league["alice"], comp_id, "Bench armband", _squad(picks, captain=12))


def test_players_must_come_from_registered_clubs(db_conn, service, league):
    picks = league["players"][:14] + [league["stranger"]]
    with pytest.raises(FantasyValidationError, match="registered"):
        service.create_team(db_conn, league["alice"], league["competition"].id, "Ringer", _squad(picks))
    with pytest.raises(NotFoundError):
        service.create_team(
            db_conn, league["alice"], league["competition"].id, "Ghost", _squad(league["players"][:14] + ["nope"])
        )


def test_budget_enforced(db_conn, service, league):
    comp_id = league["competition"].id
    for pid in league["players"][:3]:
        service.set_player_price(db_conn, comp_id, pid, 15.0)
    # 3 * 15 + 12 * 5 = 105
    with pytest.raises(FantasyValidationError, match="exceeds budget"):
        service.create_team(db_conn, league["alice"], comp_id, "Galacticos", _squad(league["players"][:15]))
    team = service.create_team(db_conn, league["alice"], comp_id, "Sensible", _squad(league["players"][2:17]))
    assert service.squad_cost(db_conn, team) == 15.0 + 14 * DEFAULT_PRICE


def test_smaller_budget_from_service(db_conn, league):
    tight = FantasyService(budget=70.0)
    with pytest.raises(FantasyValidationError, match="exceeds budget 70.0"):
        tight.create_team(db_conn, league["alice"], league["competition"].id, "Broke", _squad(league["players"][:15]))


def test_price_rules(db_conn, service, league):
    comp_id = league["competition"].id
    with pytest.raises(FantasyValidationError):
        service.set_player_price(db_conn, comp_id, league["players"][0], 0)
    with pytest.raises(FantasyValidationError):
        service.set_player_price(db_conn, comp_id, league["stranger"], 6.0)
    service.set_player_price(db_conn, comp_id, league["players"][0], 9.5)
    market = {p["id"]: p for p in service.player_market(db_conn, comp_id)}
    assert league["stranger"] not in market
    assert market[league["players"][0]]["price"] == 9.5
    assert market[league["players"][1]]["price"] == DEFAULT_PRICE


def test_one_team_per_user_and_competition(db_conn, service, league):
    comp_id = league["competition"].id
    service.create_team(db_conn, league["alice"], comp_id, "First", _squad(league["players"][:15]))
    with pytest.raises(sqlite3.IntegrityError):
        service.create_team(db_conn, league["alice"], comp_id, "Second", _squad(league["players"][3:18]))
    service.create_team(db_conn, league["bob"], comp_id, "Bob XI", _squad(league["players"][:15]))
    assert len(service.list_teams(db_conn, competition_id=comp_id)) == 2
    assert len(service.list_teams(db_conn, user_id=league["alice"])) == 1


def test_update_squad_revalidates(db_conn, service, league):
    comp_id = league["competition"].id
    team = service.create_team(db_conn, league["alice"], comp_id, "Alice XI", _squad(league["players"][:15]))
    updated = service.update_squad(db_conn, team.id, _squad(league["players"][3:18], captain=4, vice=0), name="Renamed")
    assert updated.name == "Renamed"
    assert updated.captain_id == league["players"][7]
    assert {s.player_id for s in updated.squad} == set(league["players"][3:18])
    with pytest.raises(FantasyValidationError):
        service.update_squad(db_conn, team.id, _squad(league["players"][:10]))


def test_completed_competition_locks_squads(db_conn, service, league):
    comp_id = league["competition"].id
    team = service.create_team(db_conn, league["alice"], comp_id, "Alice XI", _squad(league["players"][:15]))
    CompetitionRepository().update_status(db_conn, comp_id, "completed")
    with pytest.raises(FantasyValidationError, match="locked"):
        service.update_squad(db_conn, team.id, _squad(league["players"][3:18]))
    with pytest.raises(FantasyValidationError, match="locked"):
        service.create_team(db_conn, league["bob"], comp_id, "Late", _squad(league["players"][:15]))


def test_delete_team(db_conn, service, league):
    team = service.create_team(db_conn, league["alice"], league["competition"].id, "Alice XI", _squad(league["players"][:15]))
    service.delete_team(db_conn, team.id)
    with pytest.raises(NotFoundError):
        service.get_team(db_conn, team.id)


# ---------- Points and leaderboard ----------


def test_captain_points_doubled(db_conn, service, league):
    comp_id = league["competition"].id
    captain, starter = league["players"][0], league["players"][5]
    team = service.create_team(db_conn, league["alice"], comp_id, "Alice XI", _squad(league["players"][:15]))
    captain_points = _approved_line(db_conn, league, captain, goals=1, minutes_played=90)
    starter_points = _approved_line(db_conn, league, starter, minutes_played=90)

    service.refresh_points(db_conn, comp_id)
    assert service.get_team(db_conn, team.id).points == 2 * captain_points + starter_points


def test_vice_captain_covers_absent_captain(db_conn, service, league):
    comp_id = league["competition"].id
    vice = league["players"][1]
    team = service.create_team(db_conn, league["alice"], comp_id, "Alice XI", _squad(league["players"][:15]))
    vice_points = _approved_line(db_conn, league, vice, goals=2, minutes_played=90)

    service.refresh_points(db_conn, comp_id)
    assert service.get_team(db_conn, team.id).points == 2 * vice_points


def test_bench_and_pending_lines_do_not_score(db_conn, service, league):
    comp_id = league["competition"].id
    bench = league["players"][12]
    team = service.create_team(db_conn, league["alice"], comp_id, "Alice XI", _squad(league["players"][:15]))
    _approved_line(db_conn, league, bench, goals=3, minutes_played=90)
    home, away = league["clubs"]
    matches = MatchRepository()
    match = matches.create(db_conn, home, away, competition_id=comp_id, stage="league")
    matches.record_result(db_conn, match.id, 2, 0)
    CompetitionService().submit_player_stats(db_conn, match.id, [{"player_id": league["players"][0], "goals": 2}])

    service.refresh_points(db_conn, comp_id)
    assert service.get_team(db_conn, team.id).points == 0


def test_leaderboard_ranks_by_points(db_conn, service, league):
    comp_id = league["competition"].id
    players = league["players"]
    alice = service.create_team(db_conn, league["alice"], comp_id, "Alice XI", _squad(players[:15]))
    bob = service.create_team(db_conn, league["bob"], comp_id, "Bob XI", _squad(players[15:18] + players[3:15]))
    _approved_line(db_conn, league, players[15], goals=1, minutes_played=90)

    board = service.leaderboard(db_conn, comp_id)
    assert [row["fantasy_team_id"] for row in board] == [bob.id, alice.id]
    assert [row["rank"] for row in board] == [1, 2]
    assert board[0]["points"] > 0
    assert board[1]["points"] == 0
    assert len(service.leaderboard(db_conn, comp_id, limit=1)) == 1


def test_leaderboard_shares_rank_on_equal_points(db_conn, service, league):
    comp_id = league["competition"].id
    service.create_team(db_conn, league["alice"], comp_id, "Alice XI", _squad(league["players"][:15]))
    service.create_team(db_conn, league["bob"], comp_id, "Bob XI", _squad(league["players"][3:18]))
    assert [row["rank"] for row in service.leaderboard(db_conn, comp_id)] == [1, 1]
