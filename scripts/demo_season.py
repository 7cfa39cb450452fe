#!/usr/bin/env python3
"""
Demo season: create teams → run a league → record results → print the table.
Run from project root after `pip install -e .`: python3 scripts/demo_season.py
"""
from __future__ import annotations

import argparse
import random
from datetime import date
from pathlib import Path

from proclubs.config import configure_logging
from proclubs.persistence import (
    MatchRepository,
    PlayerRepository,
    TeamRepository,
    get_connection,
    init_db,
)
from proclubs.persistence.db import set_db_path
from proclubs.services import CompetitionService

PROJECT_ROOT = Path(__file__).resolve().parent.parent

CLUBS = [
    ("Northside Rovers", "NSR", "ENG"),
    ("Harbour Athletic", "HAT", "ENG"),
    ("Real Montaña", "RMO", "ESP"),
    ("Sporting Lagoa", "SPL", "POR"),
    ("Inter Vallée", "INV", "FRA"),
    ("Dynamo Kessel", "DYK", "GER"),
]
SQUAD = [("GK", 1), ("DEF", 4), ("DEF", 5), ("MID", 8), ("MID", 10), ("FWD", 9)]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play a demo Pro Clubs league season")
    parser.add_argument("--db", type=Path, default=PROJECT_ROOT / "data" / "demo_season.db")
    parser.add_argument("--seed", type=int, default=2024)
    parser.add_argument("--home-and-away", action="store_true")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging("WARNING")
    if args.db.exists():
        args.db.unlink()
    set_db_path(args.db)
    init_db(db_path=args.db)
    rng = random.Random(args.seed)

    conn = get_connection()
    try:
        team_repo = TeamRepository()
        player_repo = PlayerRepository()
        svc = CompetitionService()

        # 1. Clubs and squads
        team_ids = []
        for name, short, country in CLUBS:
            team = team_repo.create(conn, name, short, country=country)
            for position, number in SQUAD:
                player_repo.create(conn, team.id, f"{short} #{number}", position, number)
            team_ids.append(team.id)
        print(f"Created {len(team_ids)} clubs with {len(SQUAD)} players each")

        # 2. League
        competition = svc.create_competition(
            conn, "Demo League", "league",
            start_date=date(2024, 9, 7), home_and_away=args.home_and_away,
        )
        for team_id in team_ids:
            svc.register_team(conn, competition.id, team_id)
        svc.start_competition(conn, competition.id, seed=args.seed)
        fixtures = MatchRepository().list(conn, competition_id=competition.id)
        print(f"Generated {len(fixtures)} fixtures")

        # 3. Results, with the scorers' lines approved
        for match in fixtures:
            home, away = rng.randint(0, 4), rng.randint(0, 3)
            svc.record_result(conn, match.id, home, away)
            scorers = [
                (p, goals) for p, goals in (
                    (player_repo.list(conn, team_id=match.home_team_id, position="FWD")[0], home),
                    (player_repo.list(conn, team_id=match.away_team_id, position="FWD")[0], away),
                )
                if goals
            ]
            if scorers:
                lines = svc.submit_player_stats(conn, match.id, [
                    {"player_id": p.id, "goals": goals, "minutes_played": 90, "rating": 6.0 + goals}
                    for p, goals in scorers
                ])
                for line in lines:
                    svc.review_player_stats(conn, line.id, approve=True)
        svc.complete_competition(conn, competition.id)

        # 4. Table and scorers
        print(f"\n{'Pos':<4}{'Club':<20}{'P':>3}{'W':>3}{'D':>3}{'L':>3}{'GD':>5}{'Pts':>5}  Form")
        for row in svc.standings(conn, competition.id)["standings"]:
            print(
                f"{row['position']:<4}{row['team_name']:<20}{row['played']:>3}{row['won']:>3}"
                f"{row['drawn']:>3}{row['lost']:>3}{row['goal_difference']:>5}{row['points']:>5}  "
                f"{''.join(row['form'])}"
            )
        print("\nTop scorers:")
        for s in svc.top_scorers(conn, competition.id, limit=5):
            print(f"  {s['position']}. {s['name']} ({s['team_name']}): {s['goals']}")

        print("\nDemo season complete.")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
