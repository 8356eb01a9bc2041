#!/usr/bin/env python3
"""
Export the yearly tracking table to CSV from the command line.
"""

import argparse
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from perftrack.core import config, dao, reports
from perftrack.core.export import export_filename, yearly_tracking_csv


def main():
    parser = argparse.ArgumentParser(
        description="Export yearly placements, interviews, job orders and revenue per team",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --user <admin-id>                     # Current year, all teams
  %(prog)s --user <id> --year 2024 -o out.csv    # Specific year and file
  %(prog)s --user <id> --team <team-id>          # Single team

The export contains exactly what the given user may see.
        """
    )

    parser.add_argument(
        "--user", "-u",
        required=True,
        help="Id of the user the export is produced for"
    )

    parser.add_argument(
        "--year", "-y",
        type=int,
        default=date.today().year,
        help="Calendar year (default: current year)"
    )

    parser.add_argument(
        "--team", "-t",
        help="Restrict the export to one team"
    )

    parser.add_argument(
        "--output", "-o",
        help="Output file (default: yearly-tracking-<year>.csv, '-' for stdout)"
    )

    parser.add_argument(
        "--db",
        help="Database file to read (default: DB_PATH)"
    )

    args = parser.parse_args()

    if args.db:
        config.DB_PATH = args.db

    actor = dao.get_actor(args.user)
    if actor is None or not actor.is_active:
        print(f"ERROR: Unknown or inactive user: {args.user}")
        return 1

    tracking = reports.yearly_tracking(actor, args.year, args.team)
    content = yearly_tracking_csv(tracking["teams"])

    if args.output == "-":
        sys.stdout.write(content)
        return 0

    output = Path(args.output or export_filename(args.year))
    output.write_text(content, encoding="utf-8", newline="")
    print(f"Exported {len(tracking['teams'])} team(s) to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
