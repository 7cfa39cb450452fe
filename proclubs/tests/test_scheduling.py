"""
Tests for fixture generation.
Round robin: no duplicate matchups, at most one game per team per matchday.
Dates: weekly / biweekly / monthly steps, kickoffs 30 minutes apart from 15:00.
"""
from __future__ import annotations

import random
from collections import Counter
from datetime import date, datetime, timezone

import pytest

from proclubs.models import Competition
from proclubs.services.scheduling import (
    BYE,
    FixtureGenerationError,
    create_groups,
    generate_fixtures,
    generate_group_fixtures,
    generate_knockout_round,
    generate_league_fixtures,
    kickoff,
    matchday_date,
    round_robin_pairings,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _competition(type_: str, **kwargs) -> Competition:
    return Competition(
        id="c1", name="Test", type=type_, status="upcoming", created_at=NOW, updated_at=NOW, **kwargs
    )


def test_round_robin_two_teams():
    """2 teams: 1 round, 1 match."""
    pairings = round_robin_pairings(["A", "B"])
    assert len(pairings) == 1
    r, h, a = pairings[0]
    assert r == 1
    assert {h, a} == {"A", "B"}


def test_round_robin_three_teams():
    """3 teams: add BYE, 3 rounds. Each real pair exactly once, each team one bye."""
    pairings = round_robin_pairings(["A", "B", "C"])
    real = [(h, a) for r, h, a in pairings if a is not None]
    byes = [h for r, h, a in pairings if a is None]
    assert len(real) == 3
    assert {tuple(sorted(p)) for p in real} == {("A", "B"), ("A", "C"), ("B", "C")}
    assert sorted(byes) == ["A", "B", "C"]
    assert BYE not in {t for p in real for t in p}


def test_round_robin_six_teams_each_pair_once_one_game_per_round():
    teams = list("ABCDEF")
    pairings = round_robin_pairings(teams)
    assert len(pairings) == 15
    pairs = Counter(tuple(sorted([h, a])) for _, h, a in pairings)
    assert all(c == 1 for c in pairs.values())
    assert len(pairs) == 15
    for rnd in range(1, 6):
        playing = [t for r, h, a in pairings if r == rnd for t in (h, a)]
        assert len(playing) == len(set(playing)) == 6


def test_round_robin_is_deterministic():
    assert round_robin_pairings(list("ABCDE")) == round_robin_pairings(list("ABCDE"))


def test_round_robin_empty():
    assert round_robin_pairings([]) == []


def test_matchday_dates_by_frequency():
    start = date(2024, 1, 31)
    assert matchday_date(start, 1, "weekly") == start
    assert matchday_date(start, 3, "weekly") == date(2024, 2, 14)
    assert matchday_date(start, 2, "biweekly") == date(2024, 2, 14)
    # Monthly clamps to the end of shorter months
    assert matchday_date(start, 2, "monthly") == date(2024, 2, 29)
    assert matchday_date(start, 3, "monthly") == date(2024, 3, 31)
    assert matchday_date(date(2024, 11, 15), 3, "monthly") == date(2025, 1, 15)


def test_unknown_frequency_rejected():
    with pytest.raises(FixtureGenerationError):
        matchday_date(date(2024, 1, 1), 2, "daily")


def test_kickoff_times_step_thirty_minutes():
    day = date(2024, 5, 4)
    assert kickoff(day, 0) == datetime(2024, 5, 4, 15, 0, tzinfo=timezone.utc)
    assert kickoff(day, 3) == datetime(2024, 5, 4, 16, 30, tzinfo=timezone.utc)


def test_league_fixtures_dated_per_matchday():
    fixtures = generate_league_fixtures(list("ABCD"), start_date=date(2024, 1, 6), frequency="weekly")
    assert len(fixtures) == 6
    assert {f.matchday for f in fixtures} == {1, 2, 3}
    day_one = [f for f in fixtures if f.matchday == 1]
    assert [f.match_date for f in day_one] == [
        datetime(2024, 1, 6, 15, 0, tzinfo=timezone.utc),
        datetime(2024, 1, 6, 15, 30, tzinfo=timezone.utc),
    ]
    assert all(f.match_date.date() == date(2024, 1, 20) for f in fixtures if f.matchday == 3)


def test_league_fixtures_without_start_date_are_undated():
    fixtures = generate_league_fixtures(list("ABC"))
    assert len(fixtures) == 3
    assert all(f.match_date is None for f in fixtures)


def test_home_and_away_mirrors_first_half():
    fixtures = generate_league_fixtures(list("ABCD"), home_and_away=True)
    assert len(fixtures) == 12
    assert max(f.matchday for f in fixtures) == 6
    first = {(f.home_team_id, f.away_team_id) for f in fixtures if f.matchday <= 3}
    second = {(f.home_team_id, f.away_team_id) for f in fixtures if f.matchday > 3}
    assert second == {(a, h) for h, a in first}


def test_league_needs_two_teams():
    with pytest.raises(FixtureGenerationError):
        generate_league_fixtures(["A"])


def test_create_groups_is_seeded_and_named():
    teams = [f"T{i}" for i in range(8)]
    g1 = create_groups(teams, 2, random.Random(7))
    g2 = create_groups(teams, 2, random.Random(7))
    assert g1 == g2
    assert list(g1) == ["Group A", "Group B"]
    assert sorted(t for members in g1.values() for t in members) == sorted(teams)
    assert all(len(members) == 4 for members in g1.values())


def test_create_groups_uneven_split():
    groups = create_groups([f"T{i}" for i in range(7)], 2, random.Random(1))
    assert [len(m) for m in groups.values()] == [4, 3]


def test_create_groups_never_leaves_a_single_team():
    groups = create_groups([f"T{i}" for i in range(7)], 3, random.Random(4))
    assert [len(m) for m in groups.values()] == [3, 2, 2]
    assert list(groups) == ["Group A", "Group B", "Group C"]


def test_create_groups_validation():
    with pytest.raises(FixtureGenerationError):
        create_groups(list("ABCD"), 1)
    with pytest.raises(FixtureGenerationError):
        create_groups(list("ABCDE"), 3)


def test_group_fixtures_tagged_with_group():
    groups = {"Group A": ["A", "B", "C"], "Group B": ["D", "E", "F"]}
    fixtures = generate_group_fixtures(groups, start_date=date(2024, 2, 3))
    assert len(fixtures) == 6
    for f in fixtures:
        members = groups[f.group_name]
        assert f.home_team_id in members and f.away_team_id in members
    # Both groups share matchday dates
    assert {f.match_date.date() for f in fixtures if f.matchday == 1} == {date(2024, 2, 3)}


def test_knockout_round_pairs_in_order_with_bye():
    fixtures, byes = generate_knockout_round(["A", "B", "C", "D", "E"], 2)
    assert [(f.home_team_id, f.away_team_id) for f in fixtures] == [("A", "B"), ("C", "D")]
    assert byes == ["E"]
    assert all(f.round == 2 for f in fixtures)


def test_knockout_round_needs_two_teams():
    with pytest.raises(FixtureGenerationError):
        generate_knockout_round(["A"], 1)


def test_generate_fixtures_dispatch():
    league = generate_fixtures(list("ABCD"), _competition("league", start_date=date(2024, 1, 1)))
    assert len(league.fixtures) == 6 and not league.groups and not league.byes

    cup = generate_fixtures(list("ABCDEFGH"), _competition("cup", number_of_groups=2), seed=3)
    assert set(cup.groups) == {"Group A", "Group B"}
    assert len(cup.fixtures) == 12

    knockout = generate_fixtures(list("ABCDE"), _competition("cup"), seed=3)
    assert len(knockout.fixtures) == 2
    assert len(knockout.byes) == 1
    assert all(f.round == 1 for f in knockout.fixtures)


def test_generate_fixtures_errors():
    with pytest.raises(FixtureGenerationError):
        generate_fixtures(["A"], _competition("league"))
    with pytest.raises(FixtureGenerationError):
        generate_fixtures(list("ABC"), _competition("cup"))
    with pytest.raises(FixtureGenerationError):
        generate_fixtures(list("ABC"), _competition("cup", number_of_groups=2))
    with pytest.raises(FixtureGenerationError):
        generate_fixtures(list("ABCD"), _competition("swiss"))
