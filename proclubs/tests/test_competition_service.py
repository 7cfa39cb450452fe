"""
Tests for the competition service: lifecycle, registration guards, fixture
generation, knockout progression, player stats review and standings.
"""
from __future__ import annotations

from datetime import date

import pytest

from proclubs.errors import NotFoundError
from proclubs.models import CompetitionStatus, MatchStage, MatchStatus, StatsStatus, SwissConfig
from proclubs.persistence.db import get_connection, init_db, set_db_path
from proclubs.persistence.repositories import (
    CompetitionRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
)
from proclubs.services.competition_service import (
    CompetitionService,
    CompetitionStateError,
    RegistrationError,
    ResultError,
)
from proclubs.services.scheduling import FixtureGenerationError


@pytest.fixture
def db_conn(tmp_path):
    """Temporary DB with the full schema."""
    db_path = tmp_path / "competition_test.db"
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
    return CompetitionService()


def _make_teams(conn, n: int, countries: list[str] | None = None) -> list[str]:
    repo = TeamRepository()
    return [
        repo.create(conn, f"Club {i}", f"C{i}", country=countries[i] if countries else None).id
        for i in range(n)
    ]


def _competition_with_teams(conn, service, n: int, type_: str = "league", **fields):
    team_ids = _make_teams(conn, n)
    competition = service.create_competition(conn, f"{type_.title()} Test", type_, **fields)
    for tid in team_ids:
        service.register_team(conn, competition.id, tid)
    return competition, team_ids


def _finish_all(conn, service, competition_id: str, home: int = 2, away: int = 1) -> None:
    for m in MatchRepository().list(conn, competition_id=competition_id, status=MatchStatus.SCHEDULED):
        service.record_result(conn, m.id, home, away)


# ---------- Lifecycle and registration ----------


def test_create_competition_defaults(db_conn, service):
    competition = service.create_competition(db_conn, "Sunday League", "league", max_teams=8)
    assert competition.status == CompetitionStatus.UPCOMING
    assert competition.frequency == "weekly"
    assert competition.max_teams == 8
    assert competition.started_at is None


@pytest.mark.parametrize(
    "type_,fields",
    [
        ("tournament", {}),
        ("league", {"number_of_groups": 2}),
        ("cup", {"number_of_groups": 1}),
        ("league", {"max_teams": 1}),
        ("league", {"frequency": "daily"}),
        ("league", {"start_date": date(2024, 5, 1), "end_date": date(2024, 4, 1)}),
    ],
)
def test_create_competition_validation(db_conn, service, type_, fields):
    with pytest.raises(ValueError):
        service.create_competition(db_conn, "Bad", type_, **fields)


def test_register_and_withdraw(db_conn, service):
    competition, team_ids = _competition_with_teams(db_conn, service, 3)
    assert [t.id for t in service.registered_teams(db_conn, competition.id)] == team_ids
    service.withdraw_team(db_conn, competition.id, team_ids[1])
    assert [t.id for t in service.registered_teams(db_conn, competition.id)] == [team_ids[0], team_ids[2]]
    with pytest.raises(NotFoundError):
        service.withdraw_team(db_conn, competition.id, team_ids[1])


def test_register_twice_rejected(db_conn, service):
    competition, team_ids = _competition_with_teams(db_conn, service, 2)
    with pytest.raises(RegistrationError):
        service.register_team(db_conn, competition.id, team_ids[0])


def test_register_when_full(db_conn, service):
    competition, _ = _competition_with_teams(db_conn, service, 2, max_teams=2)
    extra = TeamRepository().create(db_conn, "Extra Club", "EXT").id
    with pytest.raises(RegistrationError):
        service.register_team(db_conn, competition.id, extra)


def test_register_unknown_team_or_competition(db_conn, service):
    competition = service.create_competition(db_conn, "League", "league")
    with pytest.raises(NotFoundError):
        service.register_team(db_conn, competition.id, "no-such-team")
    with pytest.raises(NotFoundError):
        service.register_team(db_conn, "no-such-competition", "x")


def test_invalid_transition(db_conn, service):
    competition = service.create_competition(db_conn, "League", "league")
    with pytest.raises(CompetitionStateError):
        service.transition_status(db_conn, competition.id, CompetitionStatus.COMPLETED)


def test_start_needs_two_teams(db_conn, service):
    competition, _ = _competition_with_teams(db_conn, service, 1)
    with pytest.raises(CompetitionStateError):
        service.start_competition(db_conn, competition.id)


def test_start_league_generates_dated_round_robin(db_conn, service):
    competition, team_ids = _competition_with_teams(
        db_conn, service, 4, start_date=date(2024, 9, 7), frequency="biweekly",
    )
    started = service.start_competition(db_conn, competition.id)
    assert started.status == CompetitionStatus.ACTIVE
    assert started.started_at is not None
    matches = MatchRepository().list(db_conn, competition_id=competition.id)
    assert len(matches) == 6
    assert all(m.stage == MatchStage.LEAGUE for m in matches)
    assert {m.match_date.date() for m in matches} == {date(2024, 9, 7), date(2024, 9, 21), date(2024, 10, 5)}
    # Registration is closed once started
    extra = TeamRepository().create(db_conn, "Late Club", "LC").id
    with pytest.raises(CompetitionStateError):
        service.register_team(db_conn, competition.id, extra)
    with pytest.raises(CompetitionStateError):
        service.withdraw_team(db_conn, competition.id, team_ids[0])
    with pytest.raises(CompetitionStateError):
        service.start_competition(db_conn, competition.id)


def test_structural_fields_frozen_after_start(db_conn, service):
    competition, _ = _competition_with_teams(db_conn, service, 2)
    service.start_competition(db_conn, competition.id)
    with pytest.raises(CompetitionStateError):
        service.update_competition(db_conn, competition.id, max_teams=16)
    updated = service.update_competition(db_conn, competition.id, name="Renamed", stream_link="https://twitch.tv/x")
    assert updated.name == "Renamed"
    assert updated.stream_link == "https://twitch.tv/x"


def test_update_refuses_null_for_required_fields(db_conn, service):
    competition = service.create_competition(db_conn, "Nullable", "league")
    for field in ("name", "frequency", "home_and_away"):
        with pytest.raises(ValueError):
            service.update_competition(db_conn, competition.id, **{field: None})
    updated = service.update_competition(db_conn, competition.id, description=None, max_teams=None)
    assert updated.name == "Nullable"
    assert updated.frequency == "weekly"


def test_complete_requires_all_matches_played(db_conn, service):
    competition, _ = _competition_with_teams(db_conn, service, 3)
    service.start_competition(db_conn, competition.id)
    with pytest.raises(CompetitionStateError):
        service.complete_competition(db_conn, competition.id)
    _finish_all(db_conn, service, competition.id)
    completed = service.complete_competition(db_conn, competition.id)
    assert completed.status == CompetitionStatus.COMPLETED
    match = MatchRepository().list(db_conn, competition_id=competition.id)[0]
    with pytest.raises(CompetitionStateError):
        service.record_result(db_conn, match.id, 1, 0)


# ---------- Results and standings ----------


def test_record_result_and_standings(db_conn, service):
    competition, team_ids = _competition_with_teams(db_conn, service, 2)
    service.start_competition(db_conn, competition.id)
    match = MatchRepository().list(db_conn, competition_id=competition.id)[0]
    updated = service.record_result(db_conn, match.id, 3, 1)
    assert updated.status == MatchStatus.FINISHED
    assert (updated.home_score, updated.away_score) == (3, 1)

    table = service.standings(db_conn, competition.id)["standings"]
    assert table[0]["team_id"] == match.home_team_id
    assert table[0]["points"] == 3
    assert table[0]["goal_difference"] == 2
    assert table[1]["points"] == 0

    # Re-recording overwrites the earlier score
    service.record_result(db_conn, match.id, 0, 0)
    table = service.standings(db_conn, competition.id)["standings"]
    assert [row["points"] for row in table] == [1, 1]


def test_record_result_validation(db_conn, service):
    competition, _ = _competition_with_teams(db_conn, service, 2)
    with pytest.raises(NotFoundError):
        service.record_result(db_conn, "missing", 1, 0)
    service.start_competition(db_conn, competition.id)
    match = MatchRepository().list(db_conn, competition_id=competition.id)[0]
    with pytest.raises(ResultError):
        service.record_result(db_conn, match.id, -1, 0)
    service.update_match(db_conn, match.id, status="cancelled")
    with pytest.raises(ResultError):
        service.record_result(db_conn, match.id, 1, 0)


def test_update_match_cannot_finish_without_result(db_conn, service):
    a, b = _make_teams(db_conn, 2)
    match = service.create_match(db_conn, a, b)
    with pytest.raises(ResultError):
        service.update_match(db_conn, match.id, status="finished")
    with pytest.raises(ValueError):
        service.update_match(db_conn, match.id, status="abandoned")
    moved = service.update_match(db_conn, match.id, venue="Stadium 2", status="postponed")
    assert moved.venue == "Stadium 2"
    assert moved.status == MatchStatus.POSTPONED


def test_friendly_outside_competition(db_conn, service):
    a, b = _make_teams(db_conn, 2)
    with pytest.raises(ValueError):
        service.create_match(db_conn, a, a)
    match = service.create_match(db_conn, a, b, venue="Home Ground")
    assert match.competition_id is None
    assert match.stage == MatchStage.FRIENDLY
    finished = service.record_result(db_conn, match.id, 2, 2)
    assert finished.has_result


def test_team_records(db_conn, service):
    competition, team_ids = _competition_with_teams(db_conn, service, 2)
    PlayerRepository().create(db_conn, team_ids[0], "Striker", "FWD", 9)
    service.start_competition(db_conn, competition.id)
    match = MatchRepository().list(db_conn, competition_id=competition.id)[0]
    service.record_result(db_conn, match.id, 1, 0)
    records = {r["team_id"]: r for r in service.team_records(db_conn, competition.id)}
    assert records[match.home_team_id]["wins"] == 1
    assert records[match.away_team_id]["losses"] == 1
    assert records[team_ids[0]]["players_count"] == 1


# ---------- Cups ----------


def test_knockout_cup_runs_to_completion_with_third_place(db_conn, service):
    competition, _ = _competition_with_teams(db_conn, service, 4, type_="cup", third_place_playoff=True)
    service.start_competition(db_conn, competition.id, seed=4)
    round_one = MatchRepository().list(db_conn, competition_id=competition.id)
    assert len(round_one) == 2
    assert all(m.stage == MatchStage.KNOCKOUT and m.round == 1 for m in round_one)

    with pytest.raises(CompetitionStateError):
        service.advance_knockout(db_conn, competition.id)
    with pytest.raises(ResultError):
        service.record_result(db_conn, round_one[0].id, 1, 1)
    for m in round_one:
        service.record_result(db_conn, m.id, 2, 0)

    created = service.advance_knockout(db_conn, competition.id)
    assert len(created) == 2
    final = next(m for m in created if m.stage == MatchStage.KNOCKOUT)
    third = next(m for m in created if m.stage == MatchStage.THIRD_PLACE)
    assert {final.home_team_id, final.away_team_id} == {m.home_team_id for m in round_one}
    assert {third.home_team_id, third.away_team_id} == {m.away_team_id for m in round_one}
    assert final.round == third.round == 2

    service.record_result(db_conn, final.id, 1, 0)
    service.record_result(db_conn, third.id, 0, 3)
    assert service.advance_knockout(db_conn, competition.id) == []
    assert service.get_competition(db_conn, competition.id).status == CompetitionStatus.COMPLETED

    knockout = service.standings(db_conn, competition.id)["knockout"]
    assert len(knockout) == 4


def test_knockout_cup_with_bye(db_conn, service):
    competition, team_ids = _competition_with_teams(db_conn, service, 5, type_="cup")
    service.start_competition(db_conn, competition.id, seed=1)
    round_one = MatchRepository().list(db_conn, competition_id=competition.id)
    assert len(round_one) == 2
    playing = {t for m in round_one for t in (m.home_team_id, m.away_team_id)}
    (bye_team,) = set(team_ids) - playing
    for m in round_one:
        service.record_result(db_conn, m.id, 1, 0)

    round_two = service.advance_knockout(db_conn, competition.id)
    # Three teams left: the bye team plays first, one winner sits out
    assert len(round_two) == 1
    assert round_two[0].home_team_id == bye_team
    service.record_result(db_conn, round_two[0].id, 0, 1)

    final = service.advance_knockout(db_conn, competition.id)
    assert len(final) == 1
    service.record_result(db_conn, final[0].id, 3, 2)
    assert service.advance_knockout(db_conn, competition.id) == []
    assert service.get_competition(db_conn, competition.id).status == CompetitionStatus.COMPLETED


def test_knockout_result_is_final_once_next_round_is_drawn(db_conn, service):
    competition, _ = _competition_with_teams(db_conn, service, 4, type_="cup")
    service.start_competition(db_conn, competition.id, seed=2)
    semis = MatchRepository().list(db_conn, competition_id=competition.id)
    for m in semis:
        service.record_result(db_conn, m.id, 2, 0)
    # Correcting a result is fine while the round is still open
    service.record_result(db_conn, semis[0].id, 3, 0)
    (final,) = service.advance_knockout(db_conn, competition.id)

    with pytest.raises(ResultError):
        service.record_result(db_conn, semis[0].id, 0, 1)
    assert {final.home_team_id, final.away_team_id} == {m.home_team_id for m in semis}

    service.record_result(db_conn, final.id, 2, 0)
    assert service.advance_knockout(db_conn, competition.id) == []
    assert service.get_competition(db_conn, competition.id).status == CompetitionStatus.COMPLETED


def test_group_results_are_final_once_knockout_is_drawn(db_conn, service):
    competition, _ = _competition_with_teams(db_conn, service, 8, type_="cup", number_of_groups=2)
    service.start_competition(db_conn, competition.id, seed=7)
    _finish_all(db_conn, service, competition.id)
    group_match = MatchRepository().list(db_conn, competition_id=competition.id)[0]
    service.advance_knockout(db_conn, competition.id)
    with pytest.raises(ResultError):
        service.record_result(db_conn, group_match.id, 0, 5)


def test_knockout_cup_needs_four_teams(db_conn, service):
    competition, _ = _competition_with_teams(db_conn, service, 3, type_="cup")
    with pytest.raises(FixtureGenerationError):
        service.start_competition(db_conn, competition.id)
    assert service.get_competition(db_conn, competition.id).status == CompetitionStatus.UPCOMING


def test_group_cup_group_stage_then_knockout(db_conn, service):
    competition, team_ids = _competition_with_teams(db_conn, service, 8, type_="cup", number_of_groups=2)
    service.start_competition(db_conn, competition.id, seed=7)
    matches = MatchRepository().list(db_conn, competition_id=competition.id)
    assert len(matches) == 12
    assert all(m.stage == MatchStage.GROUP for m in matches)
    entries = CompetitionRepository().list_teams(db_conn, competition.id)
    assert sorted({e.group_name for e in entries}) == ["Group A", "Group B"]

    table = service.standings(db_conn, competition.id)
    assert [g["group_name"] for g in table["groups"]] == ["Group A", "Group B"]
    assert all(len(g["standings"]) == 4 for g in table["groups"])
    assert table["knockout"] == []

    with pytest.raises(CompetitionStateError):
        service.advance_knockout(db_conn, competition.id)
    _finish_all(db_conn, service, competition.id)

    semis = service.advance_knockout(db_conn, competition.id)
    assert len(semis) == 2
    assert all(m.stage == MatchStage.KNOCKOUT and m.round == 1 for m in semis)
    group_of = {e.team_id: e.group_name for e in entries}
    # Group winners meet the runner-up of the other group
    for m in semis:
        assert group_of[m.home_team_id] != group_of[m.away_team_id]

    for m in semis:
        service.record_result(db_conn, m.id, 1, 0)
    final = service.advance_knockout(db_conn, competition.id)
    assert len(final) == 1
    service.record_result(db_conn, final[0].id, 2, 1)
    assert service.advance_knockout(db_conn, competition.id) == []
    assert service.get_competition(db_conn, competition.id).status == CompetitionStatus.COMPLETED


def test_advance_only_for_active_cups(db_conn, service):
    league, _ = _competition_with_teams(db_conn, service, 2)
    service.start_competition(db_conn, league.id)
    with pytest.raises(CompetitionStateError):
        service.advance_knockout(db_conn, league.id)
    cup = service.create_competition(db_conn, "Cup", "cup")
    with pytest.raises(CompetitionStateError):
        service.advance_knockout(db_conn, cup.id)


# ---------- Swiss ----------


def _swiss(db_conn, service, n: int = 6, per_team: int = 2):
    competition, team_ids = _competition_with_teams(db_conn, service, n, type_="swiss")
    config = SwissConfig(
        competition_id=competition.id, number_of_teams=n, matches_per_team=per_team,
        direct_qualifiers=2, playoff_qualifiers=2,
    )
    service.save_swiss_config(db_conn, config)
    return competition, team_ids


def test_swiss_draw_persists_and_redraw_replaces(db_conn, service):
    competition, _ = _swiss(db_conn, service)
    result = service.run_swiss_draw(db_conn, competition.id, seed=1)
    assert len(result.matches) == 6
    repo = MatchRepository()
    assert repo.count(db_conn, competition_id=competition.id) == 6
    service.run_swiss_draw(db_conn, competition.id, seed=2)
    matches = repo.list(db_conn, competition_id=competition.id)
    assert len(matches) == 6
    assert all(m.stage == MatchStage.SWISS for m in matches)
    assert sorted({m.round for m in matches}) == [1, 2]


def test_swiss_start_requires_draw(db_conn, service):
    competition, _ = _swiss(db_conn, service)
    with pytest.raises(CompetitionStateError):
        service.start_competition(db_conn, competition.id)
    service.run_swiss_draw(db_conn, competition.id, seed=3)
    started = service.start_competition(db_conn, competition.id)
    assert started.status == CompetitionStatus.ACTIVE
    with pytest.raises(CompetitionStateError):
        service.run_swiss_draw(db_conn, competition.id)


def test_withdrawal_discards_swiss_draw(db_conn, service):
    competition, team_ids = _swiss(db_conn, service)
    service.run_swiss_draw(db_conn, competition.id, seed=1)
    service.withdraw_team(db_conn, competition.id, team_ids[0])
    assert MatchRepository().count(db_conn, competition_id=competition.id) == 0
    with pytest.raises(CompetitionStateError):
        service.start_competition(db_conn, competition.id)
    assert service.get_competition(db_conn, competition.id).status == CompetitionStatus.UPCOMING


def test_new_registration_discards_swiss_draw(db_conn, service):
    competition, _ = _swiss(db_conn, service)
    service.run_swiss_draw(db_conn, competition.id, seed=1)
    late = TeamRepository().create(db_conn, "Late Club", "LC")
    service.register_team(db_conn, competition.id, late.id)
    assert MatchRepository().count(db_conn, competition_id=competition.id) == 0
    # Seven teams no longer fit a six-team draw
    with pytest.raises(CompetitionStateError):
        service.start_competition(db_conn, competition.id)


def test_swiss_start_checks_config_team_count(db_conn, service):
    competition, _ = _swiss(db_conn, service)
    service.run_swiss_draw(db_conn, competition.id, seed=4)
    service.save_swiss_config(db_conn, SwissConfig(competition.id, 8, 2, 2, 2))
    with pytest.raises(CompetitionStateError):
        service.start_competition(db_conn, competition.id)


def test_swiss_standings_have_zones(db_conn, service):
    competition, _ = _swiss(db_conn, service)
    service.run_swiss_draw(db_conn, competition.id, seed=5)
    service.start_competition(db_conn, competition.id)
    _finish_all(db_conn, service, competition.id)
    rows = service.standings(db_conn, competition.id)["standings"]
    assert [r["zone"] for r in rows] == ["direct", "direct", "playoff", "playoff", "eliminated", "eliminated"]


def test_swiss_config_validation(db_conn, service):
    league = service.create_competition(db_conn, "League", "league")
    with pytest.raises(ValueError):
        service.save_swiss_config(db_conn, SwissConfig(league.id, 4, 2, 1, 1))
    swiss = service.create_competition(db_conn, "Swiss", "swiss")
    with pytest.raises(ValueError):
        service.save_swiss_config(db_conn, SwissConfig(swiss.id, 4, 4, 1, 1))
    with pytest.raises(ValueError):
        service.save_swiss_config(db_conn, SwissConfig(swiss.id, 4, 2, 3, 2))
    with pytest.raises(NotFoundError):
        service.run_swiss_draw(db_conn, swiss.id)


# ---------- Player stats ----------


def _friendly_with_players(db_conn, service):
    a, b = _make_teams(db_conn, 2)
    players = PlayerRepository()
    striker = players.create(db_conn, a, "Striker", "FWD", 9)
    keeper = players.create(db_conn, b, "Keeper", "GK", 1)
    match = service.create_match(db_conn, a, b)
    return match, striker, keeper


def test_stats_require_finished_match(db_conn, service):
    match, striker, _ = _friendly_with_players(db_conn, service)
    with pytest.raises(ResultError):
        service.submit_player_stats(db_conn, match.id, [{"player_id": striker.id, "goals": 1}])


def test_stats_submit_and_approve_updates_totals(db_conn, service):
    match, striker, keeper = _friendly_with_players(db_conn, service)
    service.record_result(db_conn, match.id, 2, 0)
    lines = service.submit_player_stats(db_conn, match.id, [
        {"player_id": striker.id, "goals": 2, "assists": 1, "rating": 8.2, "minutes_played": 90},
        {"player_id": keeper.id, "saves": 4, "rating": 6.0, "minutes_played": 90},
    ])
    assert all(line.status == StatsStatus.PENDING for line in lines)
    by_player = {line.player_id: line for line in lines}
    # rating 3, appearance 2, assist 3, two goals at 4
    assert by_player[striker.id].fantasy_points == 16
    # rating 1, appearance 2, saves 4 // 2
    assert by_player[keeper.id].fantasy_points == 5

    # Pending lines do not touch season totals
    assert PlayerRepository().get(db_conn, striker.id).goals == 0

    approved = service.review_player_stats(db_conn, by_player[striker.id].id, approve=True)
    assert approved.status == StatsStatus.APPROVED
    player = PlayerRepository().get(db_conn, striker.id)
    assert (player.goals, player.assists) == (2, 1)
    assert player.points == 2 * 4 + 3

    rejected = service.review_player_stats(db_conn, by_player[keeper.id].id, approve=False)
    assert rejected.status == StatsStatus.REJECTED
    with pytest.raises(ResultError):
        service.review_player_stats(db_conn, by_player[keeper.id].id, approve=True)


def test_stats_validation(db_conn, service):
    match, striker, keeper = _friendly_with_players(db_conn, service)
    service.record_result(db_conn, match.id, 1, 0)
    outsider_team = TeamRepository().create(db_conn, "Elsewhere", "ELS").id
    outsider = PlayerRepository().create(db_conn, outsider_team, "Outsider", "MID", 8)
    with pytest.raises(ResultError):
        service.submit_player_stats(db_conn, match.id, [{"player_id": outsider.id}])
    with pytest.raises(ResultError):
        service.submit_player_stats(db_conn, match.id, [{"player_id": striker.id, "rating": 11}])
    with pytest.raises(ResultError):
        service.submit_player_stats(db_conn, match.id, [{"player_id": striker.id}, {"player_id": striker.id}])
    with pytest.raises(NotFoundError):
        service.submit_player_stats(db_conn, match.id, [{"player_id": "ghost"}])
    service.submit_player_stats(db_conn, match.id, [{"player_id": striker.id, "goals": 1}])
    with pytest.raises(ResultError):
        service.submit_player_stats(db_conn, match.id, [{"player_id": striker.id, "goals": 1}])


def test_top_scorers_count_only_approved_lines(db_conn, service):
    competition, team_ids = _competition_with_teams(db_conn, service, 2)
    players = PlayerRepository()
    home_striker = players.create(db_conn, team_ids[0], "Home Nine", "FWD", 9)
    away_striker = players.create(db_conn, team_ids[1], "Away Nine", "FWD", 9)
    service.start_competition(db_conn, competition.id)
    match = MatchRepository().list(db_conn, competition_id=competition.id)[0]
    service.record_result(db_conn, match.id, 3, 3)
    lines = service.submit_player_stats(db_conn, match.id, [
        {"player_id": home_striker.id, "goals": 3},
        {"player_id": away_striker.id, "goals": 3},
    ])
    service.review_player_stats(db_conn, lines[0].id, approve=True)
    scorers = service.top_scorers(db_conn, competition.id)
    assert [s["player_id"] for s in scorers] == [home_striker.id]
    assert scorers[0]["goals"] == 3
    assert scorers[0]["team_name"] == "Club 0"


# ---------- Repository cascade ----------


def test_deleting_competition_removes_matches_and_registrations(db_conn, service):
    competition, _ = _competition_with_teams(db_conn, service, 4)
    service.start_competition(db_conn, competition.id)
    CompetitionRepository().delete(db_conn, competition.id)
    assert MatchRepository().count(db_conn, competition_id=competition.id) == 0
    assert CompetitionRepository().count_teams(db_conn, competition.id) == 0
