"""
Application configuration read from environment variables.
A local .env file is honoured for development.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/perftrack.db")

DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Comma separated list of origins allowed to call the API from a browser
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]

# Header carrying the acting user's id (set by the auth proxy in front of the API)
ACTOR_HEADER = os.getenv("ACTOR_HEADER", "X-User-Id")

TOP_PERFORMERS_LIMIT = int(os.getenv("TOP_PERFORMERS_LIMIT", "5"))

# Forecasting page defaults
FORECAST_TARGET_REVENUE = float(os.getenv("FORECAST_TARGET_REVENUE", "500000"))
FORECAST_AVG_PLACEMENT_FEE = float(os.getenv("FORECAST_AVG_PLACEMENT_FEE", "20000"))
FORECAST_INTERVIEWS_PER_PLACEMENT = float(os.getenv("FORECAST_INTERVIEWS_PER_PLACEMENT", "4"))
FORECAST_SUBMISSIONS_PER_INTERVIEW = float(os.getenv("FORECAST_SUBMISSIONS_PER_INTERVIEW", "3"))
FORECAST_JOB_ORDERS_PER_SUBMISSION = float(os.getenv("FORECAST_JOB_ORDERS_PER_SUBMISSION", "0.5"))
FORECAST_RP_PER_JOB_ORDER = float(os.getenv("FORECAST_RP_PER_JOB_ORDER", "5"))
FORECAST_MP_PER_JOB_ORDER = float(os.getenv("FORECAST_MP_PER_JOB_ORDER", "3"))

# Version string
VERSION = "1.0.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def ensure_db_directory():
    """Ensure the database directory exists."""
    Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def forecast_defaults():
    """Default funnel inputs for the forecasting page."""
    return {
        "target_revenue": FORECAST_TARGET_REVENUE,
        "avg_deal_size": FORECAST_AVG_PLACEMENT_FEE,
        "interviews_per_placement": FORECAST_INTERVIEWS_PER_PLACEMENT,
        "submissions_per_interview": FORECAST_SUBMISSIONS_PER_INTERVIEW,
        "job_orders_per_submission": FORECAST_JOB_ORDERS_PER_SUBMISSION,
        "rp_per_job_order": FORECAST_RP_PER_JOB_ORDER,
        "mp_per_job_order": FORECAST_MP_PER_JOB_ORDER,
    }


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if LOG_LEVEL not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        issues.append(f"Invalid LOG_LEVEL: {LOG_LEVEL}")

    if TOP_PERFORMERS_LIMIT < 1:
        issues.append("TOP_PERFORMERS_LIMIT must be >= 1")

    if FORECAST_AVG_PLACEMENT_FEE <= 0:
        issues.append("FORECAST_AVG_PLACEMENT_FEE must be > 0")

    for name, value in forecast_defaults().items():
        if name not in ("target_revenue", "avg_deal_size") and value <= 0:
            issues.append(f"FORECAST_{name.upper()} must be > 0")

    if not ACTOR_HEADER.strip():
        issues.append("ACTOR_HEADER cannot be empty")

    return issues
