"""
CSV export of the yearly tracking table.
"""

import csv
import io
from typing import Any, Dict, Iterable, List

from .aggregation import MONTH_ABBREVIATIONS

# (row label, monthly key, ytd key) in output order
EXPORT_METRICS = [
    ("Placements", "placements", "ytd_placements"),
    ("Interviews", "interviews", "ytd_interviews"),
    ("Job Orders", "job_orders", "ytd_job_orders"),
    ("Revenue", "revenue", "ytd_revenue"),
]


def plain_number(value: Any) -> str:
    """Render a number without currency or thousands formatting; 12.0 -> '12'."""
    if value is None:
        return "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def export_header() -> List[str]:
    return ["Team", "Metric"] + MONTH_ABBREVIATIONS + ["YTD Total"]


def yearly_tracking_rows(teams: Iterable[Dict[str, Any]]) -> List[List[str]]:
    """Header plus one row per (team, metric)."""
    rows = [export_header()]
    for team in teams:
        monthly = team["monthly_data"]
        for label, key, ytd_key in EXPORT_METRICS:
            rows.append(
                [team["team_name"], label]
                + [plain_number(month[key]) for month in monthly]
                + [plain_number(team[ytd_key])]
            )
    return rows


def yearly_tracking_csv(teams: Iterable[Dict[str, Any]]) -> str:
    """Serialize yearly tracking data; identical input gives identical bytes."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(yearly_tracking_rows(teams))
    return buffer.getvalue()


def export_filename(year: int) -> str:
    return f"yearly-tracking-{year}.csv"
