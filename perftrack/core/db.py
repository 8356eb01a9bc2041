"""
SQLite connection handling and schema for the tracker collections.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator

from . import config

# Declared columns per collection; the store refuses anything else.
TABLE_COLUMNS = {
    "teams": ["id", "name", "manager_ids", "created_at"],
    "users": [
        "id", "email", "first_name", "last_name", "role", "team_id",
        "is_active", "created_at", "last_login",
    ],
    "daily_metrics": [
        "id", "user_id", "team_id", "date", "rp", "mp", "subs", "jo", "fti",
        "placement_amount", "placement_count", "notes", "created_at", "updated_at",
    ],
    "goals": [
        "id", "user_id", "team_id", "year", "month", "metric_type",
        "target_value", "created_at",
    ],
    "fti_schedules": [
        "id", "candidate_name", "position", "company", "interview_date", "status",
        "recruiter_id", "team_id", "notes", "created_at", "updated_at",
    ],
    "placements": [
        "id", "candidate_name", "position", "company", "placement_date",
        "fee_amount", "recruiter_id", "team_id", "created_at",
    ],
    "pipeline_deals": [
        "id", "company", "job_title", "candidate_name", "amount", "invoice_number",
        "invoice_date", "payment_due_date", "classification", "is_retainer",
        "candidate_source", "recruiter_id", "team_id", "status", "notes",
        "created_at", "updated_at",
    ],
}

SCHEMA = [
    '''
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        manager_ids TEXT NOT NULL DEFAULT '[]',  -- JSON list of user ids
        created_at TEXT NOT NULL
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        role TEXT NOT NULL CHECK (role IN ('admin', 'manager', 'recruiter')),
        team_id TEXT REFERENCES teams(id),
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TEXT NOT NULL,
        last_login TEXT
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS daily_metrics (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id),
        team_id TEXT NOT NULL REFERENCES teams(id),
        date TEXT NOT NULL,
        rp REAL NOT NULL DEFAULT 0,
        mp REAL NOT NULL DEFAULT 0,
        subs REAL NOT NULL DEFAULT 0,
        jo REAL NOT NULL DEFAULT 0,
        fti REAL NOT NULL DEFAULT 0,
        placement_amount REAL NOT NULL DEFAULT 0,
        placement_count REAL NOT NULL DEFAULT 0,
        notes TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (user_id, date)
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS goals (
        id TEXT PRIMARY KEY,
        user_id TEXT REFERENCES users(id),
        team_id TEXT REFERENCES teams(id),
        year INTEGER NOT NULL,
        month INTEGER CHECK (month IS NULL OR month BETWEEN 1 AND 12),
        metric_type TEXT NOT NULL,
        target_value REAL NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS fti_schedules (
        id TEXT PRIMARY KEY,
        candidate_name TEXT NOT NULL,
        position TEXT NOT NULL,
        company TEXT NOT NULL,
        interview_date TEXT,
        status TEXT NOT NULL DEFAULT 'submitted',
        recruiter_id TEXT NOT NULL REFERENCES users(id),
        team_id TEXT NOT NULL REFERENCES teams(id),
        notes TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS placements (
        id TEXT PRIMARY KEY,
        candidate_name TEXT NOT NULL,
        position TEXT NOT NULL,
        company TEXT NOT NULL,
        placement_date TEXT NOT NULL,
        fee_amount REAL NOT NULL DEFAULT 0,
        recruiter_id TEXT NOT NULL REFERENCES users(id),
        team_id TEXT NOT NULL REFERENCES teams(id),
        created_at TEXT NOT NULL
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS pipeline_deals (
        id TEXT PRIMARY KEY,
        company TEXT NOT NULL,
        job_title TEXT NOT NULL,
        candidate_name TEXT NOT NULL,
        amount REAL NOT NULL DEFAULT 0,
        invoice_number TEXT,
        invoice_date TEXT,
        payment_due_date TEXT,
        classification TEXT NOT NULL,
        is_retainer BOOLEAN NOT NULL DEFAULT FALSE,
        candidate_source TEXT NOT NULL,
        recruiter_id TEXT NOT NULL REFERENCES users(id),
        team_id TEXT NOT NULL REFERENCES teams(id),
        status TEXT NOT NULL DEFAULT 'pending',
        notes TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    ''',
    'CREATE INDEX IF NOT EXISTS idx_daily_metrics_date ON daily_metrics(date)',
    'CREATE INDEX IF NOT EXISTS idx_daily_metrics_team_date ON daily_metrics(team_id, date)',
    'CREATE INDEX IF NOT EXISTS idx_goals_scope ON goals(year, month, metric_type)',
    # One goal per (user, team, year, month, metric); NULL scopes compare equal
    '''
    CREATE UNIQUE INDEX IF NOT EXISTS idx_goals_key ON goals(
        COALESCE(user_id, ''), COALESCE(team_id, ''), year, COALESCE(month, 0), metric_type
    )
    ''',
    'CREATE INDEX IF NOT EXISTS idx_fti_team ON fti_schedules(team_id, interview_date)',
    'CREATE INDEX IF NOT EXISTS idx_placements_team ON placements(team_id, placement_date)',
    'CREATE INDEX IF NOT EXISTS idx_deals_team ON pipeline_deals(team_id, payment_due_date)',
]


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection with dict-like rows."""
    config.ensure_db_directory()
    conn = sqlite3.connect(config.DB_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db():
    """Initialize the database with required tables."""
    with get_db() as conn:
        cursor = conn.cursor()
        for statement in SCHEMA:
            cursor.execute(statement)
        conn.commit()


def health_check():
    """Check database health."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [row[0] for row in cursor.fetchall()]
            return all(table in table_names for table in TABLE_COLUMNS)
    except Exception:
        return False
