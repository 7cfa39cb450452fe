"""
Fixture generation for leagues, cup group stages and knockout rounds.

Round-robin uses the circle method: fix the first slot and rotate the rest each
round. Every pair meets once and each team plays at most once per matchday.
With an odd number of teams a virtual BYE is added; the team drawn against it
sits the matchday out and no fixture is created.

Matchday k is dated start + (k-1) periods (7 days, 14 days or one calendar
month). Within a matchday the i-th fixture kicks off at 15:00 + 30*i minutes UTC.
Same inputs yield the same schedule; only group draws and the first knockout
round use the seeded RNG.
"""
from __future__ import annotations

import calendar
import logging
import random
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from proclubs.models import Competition, CompetitionType, Frequency

logger = logging.getLogger(__name__)

# Sentinel for bye when number of teams is odd
BYE = "BYE"

FIRST_KICKOFF = time(15, 0)
KICKOFF_INTERVAL_MINUTES = 30
MIN_KNOCKOUT_TEAMS = 4


class FixtureGenerationError(ValueError):
    """Fixtures cannot be generated for this team list and format."""


@dataclass
class Fixture:
    home_team_id: str
    away_team_id: str
    matchday: int | None = None
    round: int | None = None
    group_name: str | None = None
    match_date: datetime | None = None
    stage: str | None = None  # MatchStage value; None = the competition's default stage

    def to_dict(self) -> dict[str, Any]:
        return {
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "stage": self.stage,
            "matchday": self.matchday,
            "round": self.round,
            "group_name": self.group_name,
            "match_date": self.match_date.isoformat() if self.match_date else None,
        }


@dataclass
class FixturePlan:
    """Output of generate_fixtures: fixtures, group draw (cups) and first-round byes."""
    fixtures: list[Fixture] = field(default_factory=list)
    groups: dict[str, list[str]] = field(default_factory=dict)
    byes: list[str] = field(default_factory=list)


# ---------- Round robin ----------


def round_robin_pairings(team_ids: list[str]) -> list[tuple[int, str, str | None]]:
    """
    Round-robin pairings: (round_number, home_team_id, away_team_id).
    away_team_id is None when home_team_id has a bye (odd number of teams).
    The fixed team alternates home and away between rounds.
    """
    if not team_ids:
        return []
    ids = list(team_ids)
    if len(ids) % 2 == 1:
        ids.append(BYE)
    n = len(ids)
    order = list(range(n))
    result: list[tuple[int, str, str | None]] = []
    for rnd in range(1, n):
        for i in range(n // 2):
            home_id, away_id = ids[order[i]], ids[order[n - 1 - i]]
            if i == 0 and rnd % 2 == 0:
                home_id, away_id = away_id, home_id
            if home_id == BYE:
                result.append((rnd, away_id, None))
            elif away_id == BYE:
                result.append((rnd, home_id, None))
            else:
                result.append((rnd, home_id, away_id))
        # Keep slot 0, move the last slot to position 1
        order = [order[0], order[n - 1]] + order[1 : n - 1]
    return result


# ---------- Dates ----------


def _add_months(d: date, months: int) -> date:
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def matchday_date(start: date, matchday: int, frequency: str = Frequency.WEEKLY.value) -> date:
    """Date of a 1-based matchday."""
    steps = matchday - 1
    if frequency == Frequency.WEEKLY:
        return start + timedelta(days=7 * steps)
    if frequency == Frequency.BIWEEKLY:
        return start + timedelta(days=14 * steps)
    if frequency == Frequency.MONTHLY:
        return _add_months(start, steps)
    raise FixtureGenerationError(f"Unknown frequency: {frequency}")


def kickoff(day: date, index: int) -> datetime:
    """Kickoff of the index-th (0-based) fixture on a matchday."""
    first = datetime.combine(day, FIRST_KICKOFF, tzinfo=timezone.utc)
    return first + timedelta(minutes=KICKOFF_INTERVAL_MINUTES * index)


def _assign_dates(fixtures: list[Fixture], start: date | None, frequency: str) -> None:
    if start is None:
        return
    per_day: dict[int, int] = {}
    for f in fixtures:
        number = f.matchday if f.matchday is not None else f.round
        i = per_day.get(number, 0)
        per_day[number] = i + 1
        f.match_date = kickoff(matchday_date(start, number, frequency), i)


# ---------- League ----------


def generate_league_fixtures(
    team_ids: list[str],
    start_date: date | None = None,
    frequency: str = Frequency.WEEKLY.value,
    home_and_away: bool = False,
    group_name: str | None = None,
) -> list[Fixture]:
    """
    All-play-all fixtures. With home_and_away the second half repeats every round
    with venues swapped; matchday numbers continue from the first half.
    """
    if len(team_ids) < 2:
        raise FixtureGenerationError("Need at least 2 teams to generate fixtures")
    pairings = [(r, h, a) for r, h, a in round_robin_pairings(team_ids) if a is not None]
    fixtures = [Fixture(h, a, matchday=r, group_name=group_name) for r, h, a in pairings]
    if home_and_away:
        rounds = max(r for r, _, _ in pairings)
        fixtures += [Fixture(a, h, matchday=r + rounds, group_name=group_name) for r, h, a in pairings]
    _assign_dates(fixtures, start_date, frequency)
    return fixtures


# ---------- Cup groups ----------


def group_names(count: int) -> list[str]:
    return [f"Group {chr(ord('A') + i)}" for i in range(count)]


def create_groups(
    team_ids: list[str],
    number_of_groups: int,
    rng: random.Random | None = None,
) -> dict[str, list[str]]:
    """Shuffle teams and split them into groups whose sizes differ by at most one."""
    if number_of_groups < 2:
        raise FixtureGenerationError("A group stage needs at least 2 groups")
    if len(team_ids) < 2 * number_of_groups:
        raise FixtureGenerationError(
            f"Need at least {2 * number_of_groups} teams for {number_of_groups} groups (got {len(team_ids)})"
        )
    rng = rng or random.Random()
    shuffled = list(team_ids)
    rng.shuffle(shuffled)
    size, extra = divmod(len(shuffled), number_of_groups)
    groups: dict[str, list[str]] = {}
    start = 0
    for i, name in enumerate(group_names(number_of_groups)):
        end = start + size + (1 if i < extra else 0)
        groups[name] = shuffled[start:end]
        start = end
    return groups


def generate_group_fixtures(
    groups: dict[str, list[str]],
    start_date: date | None = None,
    frequency: str = Frequency.WEEKLY.value,
    home_and_away: bool = False,
) -> list[Fixture]:
    """Round robin inside each group; all groups share matchday dates."""
    fixtures: list[Fixture] = []
    for name, members in groups.items():
        if len(members) < 2:
            raise FixtureGenerationError(f"{name} has fewer than 2 teams")
        fixtures += generate_league_fixtures(members, None, frequency, home_and_away, group_name=name)
    fixtures.sort(key=lambda f: f.matchday)
    _assign_dates(fixtures, start_date, frequency)
    return fixtures


# ---------- Knockout ----------


def generate_knockout_round(
    team_ids: list[str],
    round_number: int,
    match_date: date | None = None,
    rng: random.Random | None = None,
) -> tuple[list[Fixture], list[str]]:
    """
    Pair teams in order (shuffled when rng is given).
    Returns (fixtures, byes); an odd team out gets a bye into the next round.
    """
    if len(team_ids) < 2:
        raise FixtureGenerationError("Need at least 2 teams for a knockout round")
    ids = list(team_ids)
    if rng is not None:
        rng.shuffle(ids)
    byes: list[str] = []
    if len(ids) % 2 == 1:
        byes.append(ids.pop())
    fixtures = [
        Fixture(ids[i], ids[i + 1], round=round_number)
        for i in range(0, len(ids), 2)
    ]
    if match_date is not None:
        for i, f in enumerate(fixtures):
            f.match_date = kickoff(match_date, i)
    return fixtures, byes


# ---------- Dispatch ----------


def generate_fixtures(
    team_ids: list[str],
    competition: Competition,
    seed: int | None = None,
) -> FixturePlan:
    """
    Fixtures for a league or cup competition.
    League: round robin. Cup with number_of_groups: group stage. Cup without: knockout round 1.
    """
    if len(team_ids) < 2:
        raise FixtureGenerationError("Need at least 2 teams to generate fixtures")
    rng = random.Random(seed)
    start = competition.start_date
    frequency = competition.frequency or Frequency.WEEKLY.value
    if competition.type in (CompetitionType.LEAGUE, CompetitionType.FRIENDLY):
        fixtures = generate_league_fixtures(team_ids, start, frequency, competition.home_and_away)
        plan = FixturePlan(fixtures=fixtures)
    elif competition.type == CompetitionType.CUP:
        if competition.number_of_groups:
            groups = create_groups(team_ids, competition.number_of_groups, rng)
            fixtures = generate_group_fixtures(groups, start, frequency, competition.home_and_away)
            plan = FixturePlan(fixtures=fixtures, groups=groups)
        else:
            if len(team_ids) < MIN_KNOCKOUT_TEAMS:
                raise FixtureGenerationError(f"A knockout cup needs at least {MIN_KNOCKOUT_TEAMS} teams")
            fixtures, byes = generate_knockout_round(team_ids, 1, start, rng)
            plan = FixturePlan(fixtures=fixtures, byes=byes)
    else:
        raise FixtureGenerationError(f"Fixtures for {competition.type} competitions come from the Swiss draw")
    logger.debug(
        "Generated %d fixtures for %s (%s, %d teams)",
        len(plan.fixtures), competition.id, competition.type, len(team_ids),
    )
    return plan
