"""
Data access for the tracker collections.

Reads never raise: a failed read is logged and treated as "no data" so the
page still renders over zero rows. Writes raise StoreWriteError (from the
store) and leave the previous row untouched.
"""

import json
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from . import store
from .access import RowPredicate
from .errors import MissingTeamError, NotFoundError, ReferentialIntegrityError
from .schema import (
    COUNTER_FIELDS,
    Actor,
    CandidateSource,
    DailyRecord,
    Deal,
    DealClassification,
    DealStatus,
    Goal,
    InterviewSchedule,
    InterviewStatus,
    MetricType,
    Placement,
    Role,
    Team,
)
from ..util.logging import audit_event, logger

# Marker for "do not filter on this column" where None means IS NULL
ANY = object()


def _now() -> str:
    return datetime.now().isoformat()


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _read(query: store.Query, table: str) -> List[Dict[str, Any]]:
    try:
        rows = query.execute()
    except Exception as e:
        logger.log_store_read(table, 0, query.filters, status="failed")
        logger.error(f"Failed to read {table}: {e}")
        return []
    logger.log_store_read(table, len(rows), query.filters)
    return rows


def _require_team(actor: Actor, what: str) -> str:
    if not actor.team_id:
        raise MissingTeamError(f"You must be assigned to a team to create {what}")
    return actor.team_id


# Users

def get_actor(user_id: str) -> Optional[Actor]:
    """Get a user by id."""
    if not user_id or not user_id.strip():
        return None
    rows = _read(store.table("users").eq("id", user_id.strip()), "users")
    return Actor.from_row(rows[0]) if rows else None


def list_actors(active_only: bool = False, team_id: Any = ANY, team_ids: Optional[Iterable[str]] = None) -> List[Actor]:
    """List users ordered by last name."""
    query = store.table("users").order("last_name")
    if active_only:
        query.eq("is_active", True)
    if team_id is not ANY:
        query.eq("team_id", team_id)
    if team_ids is not None:
        query.in_("team_id", team_ids)
    return [Actor.from_row(row) for row in _read(query, "users")]


def create_actor(email: str, first_name: str, last_name: str, role: Role = Role.RECRUITER,
                 team_id: Optional[str] = None, is_active: bool = True, user_id: Optional[str] = None) -> Actor:
    row = {
        "email": email.strip().lower(),
        "first_name": first_name,
        "last_name": last_name,
        "role": Role(role).value,
        "team_id": team_id or None,
        "is_active": is_active,
        "created_at": _now(),
    }
    if user_id:
        row["id"] = user_id
    stored = store.insert("users", row)
    audit_event("users.create", {"user_id": stored["id"]}, row)
    return Actor.from_row(stored)


def update_actor(user_id: str, **fields: Any) -> Actor:
    """Update profile/role/team/active fields of a user."""
    allowed = {"email", "first_name", "last_name", "role", "team_id", "is_active", "last_login"}
    values = {k: v for k, v in fields.items() if k in allowed}
    if "role" in values:
        values["role"] = Role(values["role"]).value
    if "team_id" in values:
        values["team_id"] = values["team_id"] or None
    if "email" in values:
        values["email"] = values["email"].strip().lower()

    if values and store.update("users", values, id=user_id) == 0:
        raise NotFoundError(f"User {user_id} not found")
    actor = get_actor(user_id)
    if actor is None:
        raise NotFoundError(f"User {user_id} not found")
    audit_event("users.update", {"user_id": user_id}, values)
    return actor


# Teams

def get_team(team_id: str) -> Optional[Team]:
    if not team_id:
        return None
    rows = _read(store.table("teams").eq("id", team_id), "teams")
    return Team.from_row(rows[0]) if rows else None


def list_teams(team_ids: Optional[Iterable[str]] = None) -> List[Team]:
    query = store.table("teams").order("name")
    if team_ids is not None:
        query.in_("id", team_ids)
    return [Team.from_row(row) for row in _read(query, "teams")]


def _unique(ids: Iterable[str]) -> List[str]:
    seen = []
    for item in ids:
        if item and item not in seen:
            seen.append(item)
    return seen


def create_team(name: str, manager_ids: Iterable[str] = ()) -> Team:
    row = {
        "name": name.strip(),
        "manager_ids": json.dumps(_unique(manager_ids)),
        "created_at": _now(),
    }
    stored = store.insert("teams", row)
    audit_event("teams.create", {"team_id": stored["id"]}, {"name": row["name"]})
    return Team.from_row(stored)


def update_team(team_id: str, name: Optional[str] = None, manager_ids: Optional[Iterable[str]] = None) -> Team:
    values = {}
    if name is not None:
        values["name"] = name.strip()
    if manager_ids is not None:
        values["manager_ids"] = json.dumps(_unique(manager_ids))
    if values and store.update("teams", values, id=team_id) == 0:
        raise NotFoundError(f"Team {team_id} not found")
    team = get_team(team_id)
    if team is None:
        raise NotFoundError(f"Team {team_id} not found")
    audit_event("teams.update", {"team_id": team_id}, values)
    return team


def delete_team(team_id: str) -> None:
    """Delete a team that no user references any more."""
    members = store.table("users").eq("team_id", team_id).execute()
    if members:
        raise ReferentialIntegrityError(
            "Cannot delete team with active members. Please reassign members first."
        )
    if store.delete("teams", id=team_id) == 0:
        raise NotFoundError(f"Team {team_id} not found")
    audit_event("teams.delete", {"team_id": team_id})


# Daily metrics

def get_daily_record(user_id: str, day: date) -> Optional[DailyRecord]:
    query = store.table("daily_metrics").eq("user_id", user_id).eq("date", day.isoformat())
    rows = _read(query, "daily_metrics")
    return DailyRecord.from_row(rows[0]) if rows else None


def list_daily_records(scope: RowPredicate, start: date, end: date,
                       user_ids: Optional[Iterable[str]] = None,
                       team_ids: Optional[Iterable[str]] = None) -> List[DailyRecord]:
    """Daily records visible under `scope` dated within [start, end]."""
    query = scope.apply(
        store.table("daily_metrics")
        .gte("date", start.isoformat())
        .lte("date", end.isoformat())
        .order("date")
    )
    if user_ids is not None:
        query.in_("user_id", user_ids)
    if team_ids is not None:
        query.in_("team_id", team_ids)
    return [DailyRecord.from_row(row) for row in _read(query, "daily_metrics")]


def upsert_daily_record(actor: Actor, day: date, counters: Dict[str, float], notes: Optional[str] = None) -> DailyRecord:
    """
    Create or overwrite the acting user's record for `day`.

    The record is attributed to the author's current team.
    """
    team_id = _require_team(actor, "daily metrics")
    for name in COUNTER_FIELDS:
        if (counters.get(name) or 0) < 0:
            raise ValueError(f"{name} cannot be negative")

    timestamp = _now()
    row = {
        "user_id": actor.id,
        "team_id": team_id,
        "date": day.isoformat(),
        "notes": notes or "",
        "created_at": timestamp,
        "updated_at": timestamp,
    }
    row.update({name: counters.get(name) or 0 for name in COUNTER_FIELDS})
    store.upsert("daily_metrics", row, on_conflict=["user_id", "date"])
    audit_event("daily_metrics.upsert", {"user_id": actor.id, "date": row["date"]}, row)
    return get_daily_record(actor.id, day)


# Goals

def list_goals(year: int, month: Any = ANY, user_id: Any = ANY, team_id: Any = ANY,
               user_ids: Optional[Iterable[str]] = None) -> List[Goal]:
    query = store.table("goals").eq("year", year)
    if month is not ANY:
        query.eq("month", month)
    if user_id is not ANY:
        query.eq("user_id", user_id)
    if team_id is not ANY:
        query.eq("team_id", team_id)
    if user_ids is not None:
        query.in_("user_id", user_ids)
    return [Goal.from_row(row) for row in _read(query, "goals")]


def goal_target(goals: Iterable[Goal], metric_type: MetricType, user_id: Optional[str] = None,
                team_id: Optional[str] = None, month: Optional[int] = None) -> float:
    """Target for an exact goal scope; a missing goal is a target of 0."""
    for goal in goals:
        if (goal.metric_type == metric_type and goal.user_id == user_id
                and goal.team_id == team_id and goal.month == month):
            return goal.target_value
    return 0


def upsert_goal(year: int, metric_type: MetricType, target_value: float, user_id: Optional[str] = None,
                team_id: Optional[str] = None, month: Optional[int] = None) -> Goal:
    if target_value < 0:
        raise ValueError("target_value cannot be negative")
    row = {
        "user_id": user_id,
        "team_id": team_id,
        "year": year,
        "month": month,
        "metric_type": MetricType(metric_type).value,
        "target_value": target_value,
        "created_at": _now(),
    }
    stored = store.upsert("goals", row, on_conflict=["user_id", "team_id", "year", "month", "metric_type"])
    audit_event("goals.upsert", {"goal_id": stored["id"]}, row)
    return Goal.from_row(stored)


# Interview schedules

def get_interview(interview_id: str) -> Optional[InterviewSchedule]:
    rows = _read(store.table("fti_schedules").eq("id", interview_id), "fti_schedules")
    return InterviewSchedule.from_row(rows[0]) if rows else None


def list_interviews(scope: RowPredicate, team_id: Optional[str] = None,
                    status: Optional[InterviewStatus] = None) -> List[InterviewSchedule]:
    """Interview board rows, newest first."""
    query = scope.apply(store.table("fti_schedules").order("created_at", ascending=False))
    if team_id:
        query.eq("team_id", team_id)
    if status:
        query.eq("status", InterviewStatus(status).value)
    return [InterviewSchedule.from_row(row) for row in _read(query, "fti_schedules")]


def list_interviews_between(team_ids: Iterable[str], start: date, end: date) -> List[InterviewSchedule]:
    """Interviews of the given teams with an interview date inside [start, end]."""
    query = (
        store.table("fti_schedules")
        .in_("team_id", team_ids)
        .gte("interview_date", start.isoformat())
        .lte("interview_date", f"{end.isoformat()}T23:59:59.999999")
    )
    return [InterviewSchedule.from_row(row) for row in _read(query, "fti_schedules")]


def create_interview(actor: Actor, candidate_name: str, position: str, company: str,
                     interview_date: Optional[datetime] = None,
                     status: InterviewStatus = InterviewStatus.SUBMITTED,
                     notes: Optional[str] = None) -> InterviewSchedule:
    team_id = _require_team(actor, "interviews")
    timestamp = _now()
    row = {
        "candidate_name": candidate_name,
        "position": position,
        "company": company,
        "interview_date": _iso(interview_date),
        "status": InterviewStatus(status).value,
        "recruiter_id": actor.id,
        "team_id": team_id,
        "notes": notes,
        "created_at": timestamp,
        "updated_at": timestamp,
    }
    stored = store.insert("fti_schedules", row)
    audit_event("fti_schedules.create", {"interview_id": stored["id"], "recruiter_id": actor.id}, row)
    return InterviewSchedule.from_row(stored)


def update_interview_status(interview_id: str, status: InterviewStatus) -> InterviewSchedule:
    """Any status may move to any other."""
    values = {"status": InterviewStatus(status).value, "updated_at": _now()}
    if store.update("fti_schedules", values, id=interview_id) == 0:
        raise NotFoundError(f"Interview {interview_id} not found")
    audit_event("fti_schedules.status", {"interview_id": interview_id}, values)
    return get_interview(interview_id)


# Placements

def list_placements(scope: RowPredicate, start: date, end: date,
                    team_ids: Optional[Iterable[str]] = None) -> List[Placement]:
    query = scope.apply(
        store.table("placements")
        .gte("placement_date", start.isoformat())
        .lte("placement_date", end.isoformat())
        .order("placement_date")
    )
    if team_ids is not None:
        query.in_("team_id", team_ids)
    return [Placement.from_row(row) for row in _read(query, "placements")]


def create_placement(actor: Actor, candidate_name: str, position: str, company: str,
                     placement_date: date, fee_amount: float) -> Placement:
    team_id = _require_team(actor, "placements")
    if fee_amount < 0:
        raise ValueError("fee_amount cannot be negative")
    row = {
        "candidate_name": candidate_name,
        "position": position,
        "company": company,
        "placement_date": placement_date.isoformat(),
        "fee_amount": fee_amount,
        "recruiter_id": actor.id,
        "team_id": team_id,
        "created_at": _now(),
    }
    stored = store.insert("placements", row)
    audit_event("placements.create", {"placement_id": stored["id"], "recruiter_id": actor.id}, row)
    return Placement.from_row(stored)


# Pipeline deals

def get_deal(deal_id: str) -> Optional[Deal]:
    rows = _read(store.table("pipeline_deals").eq("id", deal_id), "pipeline_deals")
    return Deal.from_row(rows[0]) if rows else None


def list_deals(scope: RowPredicate, team_id: Optional[str] = None,
               status: Optional[DealStatus] = None) -> List[Deal]:
    """Pipeline rows ordered by payment due date, undated deals last."""
    query = scope.apply(store.table("pipeline_deals").order("payment_due_date"))
    if team_id:
        query.eq("team_id", team_id)
    if status:
        query.eq("status", DealStatus(status).value)
    return [Deal.from_row(row) for row in _read(query, "pipeline_deals")]


def create_deal(actor: Actor, company: str, job_title: str, candidate_name: str, amount: float,
                classification: DealClassification = DealClassification.CANDIDATE_SOURCED,
                candidate_source: CandidateSource = CandidateSource.ATS,
                status: DealStatus = DealStatus.PENDING, is_retainer: bool = False,
                invoice_number: Optional[str] = None, invoice_date: Optional[date] = None,
                payment_due_date: Optional[date] = None, notes: Optional[str] = None) -> Deal:
    team_id = _require_team(actor, "deals")
    if amount < 0:
        raise ValueError("amount cannot be negative")
    timestamp = _now()
    row = {
        "company": company,
        "job_title": job_title,
        "candidate_name": candidate_name,
        "amount": amount,
        "invoice_number": invoice_number or None,
        "invoice_date": _iso(invoice_date),
        "payment_due_date": _iso(payment_due_date),
        "classification": DealClassification(classification).value,
        "is_retainer": bool(is_retainer),
        "candidate_source": CandidateSource(candidate_source).value,
        "recruiter_id": actor.id,
        "team_id": team_id,
        "status": DealStatus(status).value,
        "notes": notes,
        "created_at": timestamp,
        "updated_at": timestamp,
    }
    stored = store.insert("pipeline_deals", row)
    audit_event("pipeline_deals.create", {"deal_id": stored["id"], "recruiter_id": actor.id}, row)
    return Deal.from_row(stored)


def update_deal_status(deal_id: str, status: DealStatus) -> Deal:
    values = {"status": DealStatus(status).value, "updated_at": _now()}
    if store.update("pipeline_deals", values, id=deal_id) == 0:
        raise NotFoundError(f"Deal {deal_id} not found")
    audit_event("pipeline_deals.status", {"deal_id": deal_id}, values)
    return get_deal(deal_id)
