"""
Goal ratios, status tiers and stable ranking.
"""

import pytest

from perftrack.core.ranking import (
    StatusTier,
    goal_ratio,
    percent_to_goal,
    rank,
    status_tier,
    top_n,
)


class TestStatusTier:
    """Tier boundaries at 100% and 80% of goal."""

    @pytest.mark.parametrize("actual,goal,expected", [
        (100, 100, StatusTier.AHEAD),
        (150, 100, StatusTier.AHEAD),
        (80, 100, StatusTier.CAUTION),
        (99.99, 100, StatusTier.CAUTION),
        (79.99, 100, StatusTier.BEHIND),
        (0, 100, StatusTier.BEHIND),
    ])
    def test_boundaries(self, actual, goal, expected):
        assert status_tier(goal_ratio(actual, goal)) == expected

    def test_missing_goal_is_zero_ratio(self):
        assert goal_ratio(50, 0) == 0.0
        assert goal_ratio(50, None) == 0.0
        assert status_tier(goal_ratio(50, 0)) == StatusTier.BEHIND

    def test_percent(self):
        assert percent_to_goal(45, 100) == pytest.approx(45.0)


class TestRank:
    """Ranking by attainment."""

    def test_best_ratio_first_with_positions(self):
        entities = [
            {"name": "a", "goal": 100, "actual": 50},
            {"name": "b", "goal": 10, "actual": 12},
            {"name": "c", "goal": 40, "actual": 36},
        ]
        ranked = rank(entities, "goal", "actual")
        assert [e.entity["name"] for e in ranked] == ["b", "c", "a"]
        assert [e.rank for e in ranked] == [1, 2, 3]
        assert [e.status for e in ranked] == [StatusTier.AHEAD, StatusTier.CAUTION, StatusTier.BEHIND]
        assert ranked[1].percent == pytest.approx(90.0)

    def test_ties_keep_input_order(self):
        entities = [
            {"name": "first", "goal": 10, "actual": 5},
            {"name": "second", "goal": 20, "actual": 10},
            {"name": "third", "goal": 0, "actual": 99},
            {"name": "fourth", "goal": 4, "actual": 2},
        ]
        ranked = rank(entities, "goal", "actual")
        assert [e.entity["name"] for e in ranked] == ["first", "second", "fourth", "third"]

    def test_works_on_objects(self):
        class Row:
            def __init__(self, goal, actual):
                self.goal = goal
                self.actual = actual

        rows = [Row(10, 1), Row(10, 9)]
        assert rank(rows, "goal", "actual")[0].entity is rows[1]

    def test_empty(self):
        assert rank([], "goal", "actual") == []


class TestTopN:
    """Top performers by a raw value."""

    def test_highest_first_and_limited(self):
        rows = [{"id": i, "rp_total": v} for i, v in enumerate([5, 9, 1, 9, 7])]
        best = top_n(rows, "rp_total", 3)
        assert [r["id"] for r in best] == [1, 3, 4]

    def test_fewer_rows_than_limit(self):
        assert top_n([{"rp_total": 1}], "rp_total", 5) == [{"rp_total": 1}]
