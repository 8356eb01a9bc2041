"""
SQLite row store: filter algebra and single-row writes.
"""

import pytest

from perftrack.core import store
from perftrack.core.db import health_check
from perftrack.core.errors import StoreWriteError, UnknownColumnError


def add_team(name, team_id=None):
    row = {"name": name, "manager_ids": "[]", "created_at": "2024-01-01T00:00:00"}
    if team_id:
        row["id"] = team_id
    return store.insert("teams", row)


def add_goal(metric, target, user_id=None, month=None):
    return store.upsert("goals", {
        "user_id": user_id,
        "team_id": None,
        "year": 2024,
        "month": month,
        "metric_type": metric,
        "target_value": target,
        "created_at": "2024-01-01T00:00:00",
    }, on_conflict=["user_id", "team_id", "year", "month", "metric_type"])


class TestSchema:

    def test_health_check_after_init(self, test_db):
        assert health_check() is True


class TestQueries:
    """Equality, range, membership and ordering."""

    def test_insert_assigns_id(self, test_db):
        row = add_team("North")
        assert row["id"]
        assert store.table("teams").eq("id", row["id"]).first()["name"] == "North"

    def test_eq_none_matches_null(self, test_db):
        add_goal("sales", 10)
        add_goal("sales", 20, month=3)
        rows = store.table("goals").eq("month", None).execute()
        assert [r["target_value"] for r in rows] == [10]

    def test_range_is_inclusive(self, test_db):
        for month in (1, 2, 3, 4):
            add_goal("rp", month, month=month)
        rows = store.table("goals").gte("month", 2).lte("month", 3).order("month").execute()
        assert [r["month"] for r in rows] == [2, 3]

    def test_in_with_empty_list_matches_nothing(self, test_db):
        add_team("North")
        assert store.table("teams").in_("name", []).execute() == []
        assert len(store.table("teams").in_("name", ["North", "South"]).execute()) == 1

    def test_order_puts_nulls_last(self, test_db):
        add_goal("sales", 1)
        add_goal("sales", 2, month=5)
        add_goal("sales", 3, month=2)
        ascending = store.table("goals").order("month").execute()
        descending = store.table("goals").order("month", ascending=False).execute()
        assert [r["month"] for r in ascending] == [2, 5, None]
        assert [r["month"] for r in descending] == [5, 2, None]

    def test_unknown_column_rejected(self, test_db):
        with pytest.raises(UnknownColumnError):
            store.table("teams").eq("colour", "red")
        with pytest.raises(UnknownColumnError):
            store.table("widgets")


class TestWrites:
    """Inserts, updates, deletes and upserts."""

    def test_update_and_delete_return_counts(self, test_db):
        team = add_team("North")
        assert store.update("teams", {"name": "Northern"}, id=team["id"]) == 1
        assert store.update("teams", {"name": "x"}, id="missing") == 0
        assert store.delete("teams", id=team["id"]) == 1
        assert store.table("teams").execute() == []

    def test_update_requires_filter(self, test_db):
        with pytest.raises(ValueError):
            store.update("teams", {"name": "x"})

    def test_duplicate_insert_raises_store_write_error(self, test_db):
        add_team("North", team_id="t1")
        with pytest.raises(StoreWriteError) as excinfo:
            add_team("Again", team_id="t1")
        assert excinfo.value.table == "teams"
        assert store.table("teams").eq("id", "t1").first()["name"] == "North"

    def test_upsert_matches_null_keys(self, test_db):
        first = add_goal("sales", 100)
        second = add_goal("sales", 250)
        rows = store.table("goals").execute()
        assert len(rows) == 1
        assert second["id"] == first["id"]
        assert rows[0]["target_value"] == 250

    def test_goal_key_enforced_by_store(self, test_db):
        """A plain insert cannot add a second goal under an existing key."""
        goal = {
            "user_id": None, "team_id": None, "year": 2024, "month": 3,
            "metric_type": "rp", "target_value": 100, "created_at": "2024-01-01T00:00:00",
        }
        store.insert("goals", goal)
        with pytest.raises(StoreWriteError):
            store.insert("goals", dict(goal, target_value=50))

        rows = store.table("goals").eq("month", 3).execute()
        assert [r["target_value"] for r in rows] == [100]

    def test_goal_key_allows_other_months(self, test_db):
        goal = {
            "user_id": None, "team_id": None, "year": 2024, "month": 3,
            "metric_type": "rp", "target_value": 100, "created_at": "2024-01-01T00:00:00",
        }
        store.insert("goals", goal)
        store.insert("goals", dict(goal, month=None))
        assert len(store.table("goals").execute()) == 2

    def test_upsert_keeps_distinct_scopes(self, test_db):
        add_goal("sales", 100)
        add_goal("sales", 50, month=1)
        add_goal("sales", 10, user_id="u1")
        assert len(store.table("goals").execute()) == 3

    def test_upsert_keeps_created_at(self, test_db):
        add_goal("fti", 5)
        store.upsert("goals", {
            "user_id": None, "team_id": None, "year": 2024, "month": None,
            "metric_type": "fti", "target_value": 6, "created_at": "2030-01-01T00:00:00",
        }, on_conflict=["user_id", "team_id", "year", "month", "metric_type"])
        row = store.table("goals").first()
        assert row["created_at"] == "2024-01-01T00:00:00"
        assert row["target_value"] == 6
