"""
Shared fixtures: a throwaway database per test and a small organisation.
"""

import pytest

from perftrack.core import config, dao
from perftrack.core.db import init_db
from perftrack.core.schema import Role


@pytest.fixture
def test_db(tmp_path, monkeypatch):
    """Point the store at a fresh SQLite file for the duration of a test."""
    db_path = tmp_path / "perftrack_test.db"
    monkeypatch.setattr(config, "DB_PATH", str(db_path))
    init_db()
    yield str(db_path)


@pytest.fixture
def org(test_db):
    """
    Two teams with one manager each, two recruiters on the first team, one on
    the second, an admin, a manager without a team and an inactive recruiter.
    """
    north = dao.create_team("North")
    south = dao.create_team("South")

    people = {
        "north": north,
        "south": south,
        "admin": dao.create_actor("admin@example.com", "Ada", "Admin", role=Role.ADMIN),
        "manager": dao.create_actor("mgr.north@example.com", "Nora", "North", role=Role.MANAGER, team_id=north.id),
        "south_manager": dao.create_actor("mgr.south@example.com", "Sid", "South", role=Role.MANAGER, team_id=south.id),
        "orphan_manager": dao.create_actor("mgr.none@example.com", "Olly", "Orphan", role=Role.MANAGER),
        "alice": dao.create_actor("alice@example.com", "Alice", "Anders", role=Role.RECRUITER, team_id=north.id),
        "bob": dao.create_actor("bob@example.com", "Bob", "Baker", role=Role.RECRUITER, team_id=north.id),
        "carol": dao.create_actor("carol@example.com", "Carol", "Cruz", role=Role.RECRUITER, team_id=south.id),
        "inactive": dao.create_actor("gone@example.com", "Gus", "Gone", role=Role.RECRUITER,
                                     team_id=north.id, is_active=False),
    }
    return people
