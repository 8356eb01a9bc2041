"""
Period aggregation over daily records and dated rows.

All functions are pure: callers fetch and scope the rows, these only reduce.
Arrival order of rows does not matter except for the order in which keys first
appear in the result.
"""

import calendar
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from .schema import COUNTER_FIELDS, parse_date

MONTH_ABBREVIATIONS = list(calendar.month_abbr)[1:]


def _value(row: Any, name: str) -> Any:
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def _number(value: Any) -> float:
    """Missing or null counters count as zero."""
    return value if value else 0


@dataclass
class MetricTotals:
    """Running totals of the daily record counters."""
    rp: float = 0
    mp: float = 0
    subs: float = 0
    jo: float = 0
    fti: float = 0
    placement_count: float = 0
    placement_amount: float = 0
    record_count: int = 0

    def add(self, record: Any) -> "MetricTotals":
        for name in COUNTER_FIELDS:
            setattr(self, name, getattr(self, name) + _number(_value(record, name)))
        self.record_count += 1
        return self

    def merge(self, other: "MetricTotals") -> "MetricTotals":
        for name in COUNTER_FIELDS:
            setattr(self, name, getattr(self, name) + getattr(other, name))
        self.record_count += other.record_count
        return self

    def get(self, name: str) -> float:
        return getattr(self, name)

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def in_range(day: Optional[date], start: date, end: date) -> bool:
    return day is not None and start <= day <= end


def aggregate(
    records: Iterable[Any],
    start: date,
    end: date,
    group_key: Callable[[Any], Hashable],
    seed_keys: Optional[Iterable[Hashable]] = None,
    date_field: str = "date",
) -> Dict[Hashable, MetricTotals]:
    """
    Sum record counters over the inclusive range [start, end], grouped by key.

    Only keys observed in range appear, unless `seed_keys` pre-seeds zero
    entries (e.g. every active team member) so that idle entities still show.
    """
    totals: Dict[Hashable, MetricTotals] = {}
    for key in seed_keys or ():
        totals.setdefault(key, MetricTotals())

    for record in records:
        day = parse_date(_value(record, date_field))
        if not in_range(day, start, end):
            continue
        totals.setdefault(group_key(record), MetricTotals()).add(record)
    return totals


def total(records: Iterable[Any], start: date, end: date, date_field: str = "date") -> MetricTotals:
    """Sum every in-range record into a single total."""
    grouped = aggregate(records, start, end, lambda _: None, seed_keys=[None], date_field=date_field)
    return grouped[None]


def days_in_period(start: date, end: date) -> int:
    """Inclusive count of calendar days, weekends included."""
    if end < start:
        return 0
    return (end - start).days + 1


def daily_goal(target: float, start: date, end: date) -> float:
    """Spread a period target evenly over every calendar day of the period."""
    days = days_in_period(start, end)
    return target / days if days else 0.0


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def year_bounds(year: int) -> Tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def ytd_range(year: int, today: date) -> Tuple[date, date]:
    """Jan 1 of `year` to today; whole year for past years, empty for future ones."""
    start, end = year_bounds(year)
    if today.year == year:
        end = today
    elif today.year < year:
        end = start - timedelta(days=1)
    return start, end


def daily_series(
    records: Iterable[Any],
    start: date,
    end: date,
    fields: Sequence[str],
    daily_goals: Optional[Dict[str, float]] = None,
) -> List[Dict[str, Any]]:
    """One entry per calendar day with the day's values and the per-day goal."""
    by_day = aggregate(records, start, end, lambda r: parse_date(_value(r, "date")))
    daily_goals = daily_goals or {}

    series = []
    day = start
    while day <= end:
        day_totals = by_day.get(day, MetricTotals())
        entry = {"date": day.isoformat()}
        for name in fields:
            entry[name] = day_totals.get(name)
            entry[f"goal_{name}"] = daily_goals.get(name, 0.0)
        series.append(entry)
        day += timedelta(days=1)
    return series


def monthly_counts(rows: Iterable[Any], year: int, date_field: str) -> List[int]:
    """Number of rows per month (Jan..Dec) whose date falls in `year`."""
    counts = [0] * 12
    for row in rows:
        day = parse_date(_value(row, date_field))
        if day is not None and day.year == year:
            counts[day.month - 1] += 1
    return counts


def monthly_sums(rows: Iterable[Any], year: int, date_field: str, value_field: str) -> List[float]:
    """Sum of `value_field` per month (Jan..Dec) for rows dated in `year`."""
    sums: List[float] = [0] * 12
    for row in rows:
        day = parse_date(_value(row, date_field))
        if day is not None and day.year == year:
            sums[day.month - 1] += _number(_value(row, value_field))
    return sums
