"""
Period aggregation, date helpers and daily goal arithmetic.
"""

from datetime import date

import pytest

from perftrack.core.aggregation import (
    MetricTotals,
    aggregate,
    daily_goal,
    daily_series,
    days_in_period,
    month_bounds,
    monthly_counts,
    monthly_sums,
    total,
    ytd_range,
)
from perftrack.core.ranking import StatusTier, goal_ratio, status_tier
from perftrack.core.schema import DailyRecord


def record(user_id, day, team_id="t1", **counters):
    return DailyRecord(user_id=user_id, team_id=team_id, date=day, **counters)


class TestAggregate:
    """Grouped sums over an inclusive date range."""

    def test_march_example(self):
        records = [
            record("u1", date(2024, 3, 1), rp=10),
            record("u1", date(2024, 3, 15), rp=15),
            record("u1", date(2024, 3, 31), rp=20),
        ]
        start, end = month_bounds(2024, 3)
        totals = total(records, start, end)
        goal = 100

        assert totals.rp == 45
        assert daily_goal(goal, start, end) == pytest.approx(100 / 31)
        assert goal_ratio(totals.rp, goal) == pytest.approx(0.45)
        assert status_tier(goal_ratio(totals.rp, goal)) == StatusTier.BEHIND

    def test_range_is_inclusive_on_both_ends(self):
        records = [
            record("u1", date(2024, 2, 29), rp=1),
            record("u1", date(2024, 3, 1), rp=2),
            record("u1", date(2024, 3, 31), rp=4),
            record("u1", date(2024, 4, 1), rp=8),
        ]
        assert total(records, date(2024, 3, 1), date(2024, 3, 31)).rp == 6

    def test_groups_sum_to_per_record_total(self):
        records = [
            record("u1", date(2024, 5, 2), rp=3, mp=1),
            record("u2", date(2024, 5, 2), rp=5, mp=2),
            record("u1", date(2024, 5, 3), rp=7, mp=3),
        ]
        start, end = date(2024, 5, 1), date(2024, 5, 31)
        grouped = aggregate(records, start, end, lambda r: r.user_id)

        assert grouped["u1"].rp == 10
        assert grouped["u2"].rp == 5
        assert sum(t.rp for t in grouped.values()) == sum(r.rp for r in records)
        assert sum(t.record_count for t in grouped.values()) == len(records)

    def test_null_counters_count_as_zero(self):
        rows = [
            {"user_id": "u1", "date": "2024-05-02", "rp": None, "mp": 2},
            {"user_id": "u1", "date": "2024-05-03", "mp": 1},
        ]
        totals = total(rows, date(2024, 5, 1), date(2024, 5, 31))
        assert totals.rp == 0
        assert totals.mp == 3

    def test_seed_keys_show_idle_entities(self):
        records = [record("u1", date(2024, 5, 2), rp=3)]
        grouped = aggregate(records, date(2024, 5, 1), date(2024, 5, 31), lambda r: r.user_id,
                            seed_keys=["u2", "u1"])
        assert list(grouped) == ["u2", "u1"]
        assert grouped["u2"] == MetricTotals()

    def test_without_seed_only_observed_keys(self):
        records = [record("u1", date(2024, 6, 2), rp=3)]
        grouped = aggregate(records, date(2024, 5, 1), date(2024, 5, 31), lambda r: r.user_id)
        assert grouped == {}

    def test_order_of_arrival_does_not_change_totals(self):
        records = [record("u1", date(2024, 5, d), rp=d) for d in range(1, 10)]
        start, end = date(2024, 5, 1), date(2024, 5, 31)
        assert total(records, start, end) == total(list(reversed(records)), start, end)


class TestPeriods:
    """Calendar helpers."""

    def test_days_in_period_counts_weekends(self):
        assert days_in_period(date(2024, 3, 1), date(2024, 3, 31)) == 31
        assert days_in_period(date(2024, 2, 1), date(2024, 2, 29)) == 29

    def test_empty_period(self):
        assert days_in_period(date(2024, 3, 2), date(2024, 3, 1)) == 0
        assert daily_goal(100, date(2024, 3, 2), date(2024, 3, 1)) == 0.0

    def test_ytd_range(self):
        today = date(2024, 6, 15)
        assert ytd_range(2024, today) == (date(2024, 1, 1), today)
        assert ytd_range(2023, today) == (date(2023, 1, 1), date(2023, 12, 31))
        start, end = ytd_range(2025, today)
        assert days_in_period(start, end) == 0


class TestSeries:
    """Per-day series and month buckets."""

    def test_daily_series_covers_every_day(self):
        records = [record("u1", date(2024, 2, 3), rp=4), record("u2", date(2024, 2, 3), rp=1)]
        start, end = month_bounds(2024, 2)
        series = daily_series(records, start, end, ["rp"], {"rp": 2.5})

        assert len(series) == 29
        assert series[2] == {"date": "2024-02-03", "rp": 5, "goal_rp": 2.5}
        assert series[0]["rp"] == 0

    def test_monthly_counts_and_sums(self):
        rows = [
            {"placement_date": "2024-01-10", "fee_amount": 100},
            {"placement_date": "2024-01-20", "fee_amount": 50},
            {"placement_date": "2024-12-31", "fee_amount": 25},
            {"placement_date": "2023-12-31", "fee_amount": 1000},
        ]
        counts = monthly_counts(rows, 2024, "placement_date")
        sums = monthly_sums(rows, 2024, "placement_date", "fee_amount")

        assert counts[0] == 2 and counts[11] == 1 and sum(counts) == 3
        assert sums[0] == 150 and sums[11] == 25
