"""
Page-level views.

Each function takes the acting user explicitly, fetches the rows that user may
see, reduces them with the aggregation/ranking/forecast helpers and returns
plain dicts ready for JSON. Nothing here keeps state between calls.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from . import config, dao
from .access import (
    Capability,
    RowPredicate,
    ScopeKind,
    can_see_team,
    can_set_goal,
    has_capability,
    visible_scope,
)
from .aggregation import (
    MONTH_ABBREVIATIONS,
    aggregate,
    daily_goal,
    daily_series,
    month_bounds,
    monthly_counts,
    monthly_sums,
    total,
    year_bounds,
    ytd_range,
)
from .errors import PermissionDeniedError
from .forecast import FunnelRatios, allocate_to_teams, forecast, forecast_goals
from .ranking import goal_ratio, rank, status_tier, top_n
from .schema import OVERDUE, Actor, DealStatus, Goal, InterviewStatus, MetricType, Team
from ..util.logging import logger

DASHBOARD_KPIS = [
    ("Sales YTD", MetricType.SALES, "placement_amount"),
    ("Placements YTD", MetricType.PLACEMENTS, "placement_count"),
    ("FTI YTD", MetricType.FTI, "fti"),
    ("Job Orders YTD", MetricType.JO, "jo"),
]

TEAM_METRICS = [
    ("sales", MetricType.SALES, "placement_amount"),
    ("fti", MetricType.FTI, "fti"),
    ("jo", MetricType.JO, "jo"),
]


def visible_teams(actor: Actor) -> List[Team]:
    if has_capability(actor, Capability.VIEW_ALL):
        return dao.list_teams()
    if actor.team_id:
        return dao.list_teams(team_ids=[actor.team_id])
    return []


def _visible_users(actor: Actor, active_only: bool = True) -> List[Actor]:
    scope = visible_scope(actor, author_field="id")
    return [u for u in dao.list_actors(active_only=active_only) if scope(u)]


def _scope_goal_key(actor: Actor) -> Dict[str, Optional[str]]:
    """Which goal scope backs an actor's headline numbers."""
    scope = visible_scope(actor)
    if scope.kind == ScopeKind.ALL:
        return {"user_id": None, "team_id": None}
    if scope.kind == ScopeKind.TEAM:
        return {"user_id": None, "team_id": actor.team_id}
    return {"user_id": actor.id, "team_id": None}


def dashboard(actor: Actor, year: int, today: date) -> Dict[str, Any]:
    """KPI cards, team performance (admins) and top performers for `year`."""
    scope = visible_scope(actor)
    start, end = ytd_range(year, today)
    records = dao.list_daily_records(scope, start, end) if not scope.is_empty else []
    totals = total(records, start, end)

    goal_key = _scope_goal_key(actor)
    yearly_goals = dao.list_goals(year, month=None)
    kpis = []
    for label, metric, field in DASHBOARD_KPIS:
        actual = totals.get(field)
        goal = dao.goal_target(yearly_goals, metric, **goal_key)
        ratio = goal_ratio(actual, goal)
        kpis.append({
            "label": label,
            "metric": metric.value,
            "actual": actual,
            "goal": goal,
            "percent_to_goal": ratio * 100,
            "status": status_tier(ratio).value,
        })

    result = {
        "year": year,
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "kpis": kpis,
        "team_performance": [],
        "top_performers": top_performers(actor, records, start, end),
    }
    if has_capability(actor, Capability.VIEW_ALL):
        result["team_performance"] = team_performance(records, yearly_goals, start, end)
    return result


def team_performance(records: List[Any], yearly_goals: List[Goal], start: date, end: date) -> List[Dict[str, Any]]:
    """Per-team actuals against yearly team goals, ranked by sales attainment."""
    teams = dao.list_teams()
    by_team = aggregate(records, start, end, lambda r: r.team_id, seed_keys=[t.id for t in teams])

    rows = []
    for team in teams:
        team_totals = by_team[team.id]
        row = {"team_id": team.id, "team_name": team.name}
        for prefix, metric, field in TEAM_METRICS:
            actual = team_totals.get(field)
            goal = dao.goal_target(yearly_goals, metric, team_id=team.id)
            row[f"{prefix}_actual"] = actual
            row[f"{prefix}_goal"] = goal
            row[f"{prefix}_percent"] = goal_ratio(actual, goal) * 100
        rows.append(row)

    ranked = rank(rows, "sales_goal", "sales_actual")
    return [dict(entry.entity, rank=entry.rank, status=entry.status.value) for entry in ranked]


def top_performers(actor: Actor, records: List[Any], start: date, end: date) -> List[Dict[str, Any]]:
    """Visible active users with the most recruiting presentations."""
    users = _visible_users(actor)
    teams = {t.id: t.name for t in dao.list_teams()}
    by_user = aggregate(records, start, end, lambda r: r.user_id, seed_keys=[u.id for u in users])

    rows = [
        {
            "user_id": u.id,
            "name": u.full_name,
            "team_name": teams.get(u.team_id, "No Team"),
            "rp_total": by_user[u.id].rp,
        }
        for u in users
    ]
    best = top_n(rows, "rp_total", config.TOP_PERFORMERS_LIMIT)
    return [dict(row, rank=position) for position, row in enumerate(best, start=1)]


def daily_metrics(actor: Actor, day: date) -> Dict[str, Any]:
    """The actor's entry for `day`, their month at a glance, and team rankings."""
    start, end = month_bounds(day.year, day.month)
    own = RowPredicate(kind=ScopeKind.AUTHOR, value=actor.id)

    record = dao.get_daily_record(actor.id, day)
    records = dao.list_daily_records(own, start, end)
    goals = dao.list_goals(day.year, month=day.month, user_id=actor.id)
    month_totals = total(records, start, end)

    targets = {
        field: dao.goal_target(goals, metric, user_id=actor.id, month=day.month)
        for metric, field in ((MetricType.RP, "rp"), (MetricType.MP, "mp"))
    }
    progress = {}
    for field, target in targets.items():
        ratio = goal_ratio(month_totals.get(field), target)
        progress[field] = {
            "actual": month_totals.get(field),
            "goal": target,
            "daily_goal": daily_goal(target, start, end),
            "percent_to_goal": ratio * 100,
            "status": status_tier(ratio).value,
        }

    result = {
        "date": day.isoformat(),
        "record": record.to_dict() if record else None,
        "month": {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "totals": month_totals.as_dict(),
            "progress": progress,
            "series": daily_series(
                records, start, end, ["rp", "mp"],
                {field: daily_goal(target, start, end) for field, target in targets.items()},
            ),
        },
        "team_rankings": [],
    }
    if has_capability(actor, Capability.VIEW_TEAM):
        result["team_rankings"] = team_rankings(actor, day)
    return result


def team_rankings(actor: Actor, day: date) -> List[Dict[str, Any]]:
    """Monthly RP attainment of every visible active user, best first."""
    start, end = month_bounds(day.year, day.month)
    users = _visible_users(actor)
    user_ids = [u.id for u in users]
    records = dao.list_daily_records(visible_scope(actor), start, end, user_ids=user_ids)
    goals = dao.list_goals(day.year, month=day.month, user_ids=user_ids)
    by_user = aggregate(records, start, end, lambda r: r.user_id, seed_keys=user_ids)

    members = []
    for u in users:
        members.append({
            "user_id": u.id,
            "name": u.full_name,
            "monthly_rp": by_user[u.id].rp,
            "monthly_mp": by_user[u.id].mp,
            "rp_goal": dao.goal_target(goals, MetricType.RP, user_id=u.id, month=day.month),
            "mp_goal": dao.goal_target(goals, MetricType.MP, user_id=u.id, month=day.month),
        })

    return [
        dict(entry.entity, rank=entry.rank, rp_percent=entry.percent, status=entry.status.value)
        for entry in rank(members, "rp_goal", "monthly_rp")
    ]


def yearly_tracking(actor: Actor, year: int, team_id: Optional[str] = None) -> Dict[str, Any]:
    """Monthly placements, interviews, job orders and revenue per visible team."""
    if team_id:
        teams = [t for t in dao.list_teams(team_ids=[team_id]) if can_see_team(actor, t.id)]
    else:
        teams = visible_teams(actor)
    team_ids = [t.id for t in teams]
    start, end = year_bounds(year)

    recruiter_scope = visible_scope(actor, author_field="recruiter_id")
    placements = dao.list_placements(recruiter_scope, start, end, team_ids=team_ids) if team_ids else []
    interviews = [i for i in dao.list_interviews_between(team_ids, start, end) if recruiter_scope(i)]
    records = dao.list_daily_records(visible_scope(actor), start, end, team_ids=team_ids) if team_ids else []

    team_rows = []
    for team in teams:
        team_placements = [p for p in placements if p.team_id == team.id]
        placement_counts = monthly_counts(team_placements, year, "placement_date")
        interview_counts = monthly_counts([i for i in interviews if i.team_id == team.id], year, "interview_date")
        job_orders = monthly_sums([r for r in records if r.team_id == team.id], year, "date", "jo")
        revenue = monthly_sums(team_placements, year, "placement_date", "fee_amount")

        monthly_data = [
            {
                "month": index + 1,
                "month_name": name,
                "placements": placement_counts[index],
                "interviews": interview_counts[index],
                "job_orders": job_orders[index],
                "revenue": revenue[index],
            }
            for index, name in enumerate(MONTH_ABBREVIATIONS)
        ]
        team_rows.append({
            "team_id": team.id,
            "team_name": team.name,
            "monthly_data": monthly_data,
            "ytd_placements": sum(placement_counts),
            "ytd_interviews": sum(interview_counts),
            "ytd_job_orders": sum(job_orders),
            "ytd_revenue": sum(revenue),
        })

    return {
        "year": year,
        "teams": team_rows,
        "totals": {
            "placements": sum(t["ytd_placements"] for t in team_rows),
            "interviews": sum(t["ytd_interviews"] for t in team_rows),
            "job_orders": sum(t["ytd_job_orders"] for t in team_rows),
            "revenue": sum(t["ytd_revenue"] for t in team_rows),
        },
    }


def pipeline(actor: Actor, today: date, team_id: Optional[str] = None, status: Optional[str] = None) -> Dict[str, Any]:
    """Visible deals ordered by due date; overdue is derived from the due date."""
    scope = visible_scope(actor, author_field="recruiter_id")
    stored_status = DealStatus(status) if status and status != OVERDUE else None
    deals = dao.list_deals(scope, team_id=team_id, status=stored_status)
    if status == OVERDUE:
        deals = [d for d in deals if d.is_overdue(today)]

    overdue = [d for d in deals if d.is_overdue(today)]
    return {
        "deals": [d.to_dict(today) for d in deals],
        "total_amount": sum(d.amount for d in deals),
        "overdue_count": len(overdue),
        "overdue_amount": sum(d.amount for d in overdue),
    }


def interview_board(actor: Actor, team_id: Optional[str] = None, status: Optional[str] = None) -> Dict[str, Any]:
    """Visible interviews, newest first, with per-status counts."""
    scope = visible_scope(actor, author_field="recruiter_id")
    interviews = dao.list_interviews(scope, team_id=team_id, status=InterviewStatus(status) if status else None)
    counts = {s.value: 0 for s in InterviewStatus}
    for interview in interviews:
        counts[interview.status.value] += 1
    return {"interviews": [i.to_dict() for i in interviews], "status_counts": counts}


def forecast_view(actor: Actor, target_revenue: float, avg_deal_size: float,
                  ratios: Optional[Dict[str, float]] = None) -> Dict[str, Any]:
    """Required activity for a revenue target, split across visible teams."""
    result = forecast(target_revenue, avg_deal_size, FunnelRatios.from_mapping(ratios))
    allocations = []
    if has_capability(actor, Capability.VIEW_TEAM):
        allocations = allocate_to_teams(result, target_revenue, visible_teams(actor))
    return {
        "target_revenue": target_revenue,
        "avg_deal_size": avg_deal_size,
        "required": result.as_dict(),
        "team_allocations": allocations,
    }


def save_forecast_as_goals(actor: Actor, target_revenue: float, avg_deal_size: float, year: int, month: int,
                           ratios: Optional[Dict[str, float]] = None) -> List[Goal]:
    """Persist a forecast as company-wide monthly goals. Admin only."""
    if not has_capability(actor, Capability.VIEW_ALL):
        logger.log_access_denied(actor.id, Capability.VIEW_ALL.value, "forecast.goals")
        raise PermissionDeniedError("Only admins can save a forecast as goals")
    result = forecast(target_revenue, avg_deal_size, FunnelRatios.from_mapping(ratios))
    return [
        dao.upsert_goal(year, goal["metric_type"], goal["target_value"], month=month)
        for goal in forecast_goals(result, target_revenue)
    ]


def visible_goals(actor: Actor, year: int) -> List[Goal]:
    """Goals the actor may see: all, their team's and members', or their own."""
    scope = visible_scope(actor)
    goals = dao.list_goals(year)
    if scope.kind == ScopeKind.ALL:
        return goals
    if scope.kind == ScopeKind.TEAM:
        member_ids = {u.id for u in dao.list_actors(team_id=actor.team_id)}
        return [g for g in goals if g.team_id == actor.team_id or g.user_id in member_ids]
    if scope.kind == ScopeKind.AUTHOR:
        return [g for g in goals if g.user_id == actor.id]
    return []


def set_goal(actor: Actor, year: int, metric_type: MetricType, target_value: float,
             user_id: Optional[str] = None, team_id: Optional[str] = None, month: Optional[int] = None) -> Goal:
    goal_user = dao.get_actor(user_id) if user_id else None
    if not can_set_goal(actor, team_id, goal_user):
        logger.log_access_denied(actor.id, Capability.SET_GOALS.value, "goals")
        raise PermissionDeniedError("You cannot set goals for this scope")
    return dao.upsert_goal(year, metric_type, target_value, user_id=user_id, team_id=team_id, month=month)
