#!/usr/bin/env python3
"""
Populate a database with demo teams, users, goals and activity.

Seeding is deterministic for a given --seed so screenshots and manual test
runs line up between machines.
"""

import argparse
import random
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from perftrack.core import config, dao
from perftrack.core.aggregation import days_in_period, ytd_range
from perftrack.core.db import init_db
from perftrack.core.errors import PerfTrackError
from perftrack.core.schema import DealStatus, InterviewStatus, MetricType, Role

TEAMS = ["North", "South"]
RECRUITERS_PER_TEAM = 3

FIRST_NAMES = ["Alex", "Sam", "Jordan", "Taylor", "Casey", "Riley", "Morgan", "Jamie"]
LAST_NAMES = ["Reed", "Patel", "Nguyen", "Okafor", "Silva", "Kowalski", "Haddad", "Lindqvist"]
COMPANIES = ["Acme Corp", "Globex", "Initech", "Umbrella", "Hooli"]
POSITIONS = ["Backend Engineer", "Data Analyst", "Product Manager", "QA Lead"]


def seed(today: date, rng: random.Random, verbose: bool = False) -> dict:
    """Create the demo data set and return how many rows of each kind were written."""
    counts = {"teams": 0, "users": 0, "daily_metrics": 0, "goals": 0, "interviews": 0, "deals": 0, "placements": 0}

    admin = dao.create_actor("admin@example.com", "Ada", "Admin", role=Role.ADMIN)
    counts["users"] += 1
    recruiters = []

    for team_index, team_name in enumerate(TEAMS):
        team = dao.create_team(team_name)
        counts["teams"] += 1

        manager = dao.create_actor(
            f"manager.{team_name.lower()}@example.com",
            FIRST_NAMES[team_index],
            LAST_NAMES[team_index],
            role=Role.MANAGER,
            team_id=team.id
        )
        dao.update_team(team.id, manager_ids=[manager.id])
        counts["users"] += 1

        for i in range(RECRUITERS_PER_TEAM):
            first = rng.choice(FIRST_NAMES)
            last = rng.choice(LAST_NAMES)
            recruiter = dao.create_actor(
                f"{first.lower()}.{last.lower()}.{team_index}{i}@example.com",
                first,
                last,
                role=Role.RECRUITER,
                team_id=team.id
            )
            recruiters.append(recruiter)
            counts["users"] += 1

        for metric, target in ((MetricType.SALES, 250000), (MetricType.FTI, 200), (MetricType.JO, 60)):
            dao.upsert_goal(today.year, metric, target, team_id=team.id)
            counts["goals"] += 1

    for metric, target in ((MetricType.SALES, 500000), (MetricType.PLACEMENTS, 25),
                           (MetricType.FTI, 400), (MetricType.JO, 120)):
        dao.upsert_goal(today.year, metric, target)
        counts["goals"] += 1

    start, end = ytd_range(today.year, today)
    for recruiter in recruiters:
        dao.upsert_goal(today.year, MetricType.RP, 100, user_id=recruiter.id, month=today.month)
        dao.upsert_goal(today.year, MetricType.MP, 60, user_id=recruiter.id, month=today.month)
        counts["goals"] += 2

        for offset in range(days_in_period(start, end)):
            day = start + timedelta(days=offset)
            if day.weekday() >= 5:
                continue
            placed = 1 if rng.random() < 0.02 else 0
            dao.upsert_daily_record(recruiter, day, {
                "rp": rng.randint(0, 8),
                "mp": rng.randint(0, 5),
                "subs": rng.randint(0, 3),
                "jo": rng.randint(0, 2),
                "fti": rng.randint(0, 2),
                "placement_count": placed,
                "placement_amount": placed * rng.choice([15000, 20000, 25000]),
            })
            counts["daily_metrics"] += 1

        for _ in range(rng.randint(2, 5)):
            when = datetime.combine(today + timedelta(days=rng.randint(-30, 30)), datetime.min.time()).replace(hour=10)
            dao.create_interview(
                recruiter,
                candidate_name=f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
                position=rng.choice(POSITIONS),
                company=rng.choice(COMPANIES),
                interview_date=when,
                status=rng.choice(list(InterviewStatus))
            )
            counts["interviews"] += 1

        for _ in range(rng.randint(1, 3)):
            placed_on = start + timedelta(days=rng.randint(0, max(days_in_period(start, end) - 1, 0)))
            fee = rng.choice([15000, 20000, 25000])
            candidate = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
            company = rng.choice(COMPANIES)
            dao.create_placement(recruiter, candidate, rng.choice(POSITIONS), company, placed_on, fee)
            dao.create_deal(
                recruiter,
                company=company,
                job_title=rng.choice(POSITIONS),
                candidate_name=candidate,
                amount=fee,
                status=rng.choice(list(DealStatus)),
                invoice_date=placed_on,
                payment_due_date=placed_on + timedelta(days=30)
            )
            counts["placements"] += 1
            counts["deals"] += 1

    if verbose:
        print(f"Admin user id: {admin.id}")
        for recruiter in recruiters:
            print(f"Recruiter {recruiter.full_name}: {recruiter.id}")
    return counts


def main():
    parser = argparse.ArgumentParser(
        description="Seed a PerfTrack database with demo data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                          # Seed the database at DB_PATH
  %(prog)s --db /tmp/demo.db        # Seed a specific database file
  %(prog)s --seed 7 --verbose       # Different data set, print user ids

Environment variables:
- DB_PATH=./data/perftrack.db (default)
        """
    )

    parser.add_argument(
        "--db",
        help="Database file to seed (default: DB_PATH)"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducible data (default: 42)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print the ids of created users"
    )

    args = parser.parse_args()

    if args.db:
        config.DB_PATH = args.db

    try:
        init_db()
        counts = seed(date.today(), random.Random(args.seed), verbose=args.verbose)
    except PerfTrackError as e:
        print(f"ERROR: Seeding failed: {e}")
        return 1

    print(f"Demo data written to {config.DB_PATH}")
    for name, count in counts.items():
        print(f"  {name}: {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
