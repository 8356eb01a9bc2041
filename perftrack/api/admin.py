"""
User, team and goal management endpoints.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from .deps import current_actor, require_capability
from .schemas import GoalRequest, TeamRequest, TeamUpdateRequest, UserCreateRequest, UserUpdateRequest
from ..core import dao, reports
from ..core.access import Capability
from ..core.schema import Actor

router = APIRouter()


def _check_team(team_id: Optional[str]):
    if team_id and dao.get_team(team_id) is None:
        raise HTTPException(status_code=400, detail=f"Unknown team: {team_id}")


@router.get("/users")
def list_users(actor: Actor = Depends(require_capability(Capability.MANAGE_USERS))) -> List[Dict[str, Any]]:
    return [u.to_dict() for u in dao.list_actors()]


@router.post("/users")
def create_user(request: UserCreateRequest,
                actor: Actor = Depends(require_capability(Capability.MANAGE_USERS))) -> Dict[str, Any]:
    _check_team(request.team_id)
    user = dao.create_actor(
        email=request.email,
        first_name=request.first_name,
        last_name=request.last_name,
        role=request.role,
        team_id=request.team_id,
        is_active=request.is_active
    )
    return user.to_dict()


@router.patch("/users/{user_id}")
def update_user(user_id: str, request: UserUpdateRequest,
                actor: Actor = Depends(require_capability(Capability.MANAGE_USERS))) -> Dict[str, Any]:
    """Change a user's role, team or name. Only fields sent are touched."""
    fields = request.model_dump(exclude_unset=True)
    if "team_id" in fields:
        _check_team(fields["team_id"])
    return dao.update_actor(user_id, **fields).to_dict()


@router.post("/users/{user_id}/toggle-active")
def toggle_user_active(user_id: str,
                       actor: Actor = Depends(require_capability(Capability.MANAGE_USERS))) -> Dict[str, Any]:
    user = dao.get_actor(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == actor.id:
        raise HTTPException(status_code=400, detail="You cannot deactivate yourself")
    return dao.update_actor(user_id, is_active=not user.is_active).to_dict()


@router.get("/teams")
def list_teams(actor: Actor = Depends(current_actor)) -> List[Dict[str, Any]]:
    """Teams visible to the actor, with their member counts."""
    teams = reports.visible_teams(actor)
    members = dao.list_actors(team_ids=[t.id for t in teams])
    return [
        dict(t.to_dict(), member_count=sum(1 for m in members if m.team_id == t.id))
        for t in teams
    ]


@router.post("/teams")
def create_team(request: TeamRequest,
                actor: Actor = Depends(require_capability(Capability.MANAGE_TEAMS))) -> Dict[str, Any]:
    return dao.create_team(request.name, request.manager_ids).to_dict()


@router.patch("/teams/{team_id}")
def update_team(team_id: str, request: TeamUpdateRequest,
                actor: Actor = Depends(require_capability(Capability.MANAGE_TEAMS))) -> Dict[str, Any]:
    return dao.update_team(team_id, name=request.name, manager_ids=request.manager_ids).to_dict()


@router.delete("/teams/{team_id}")
def delete_team(team_id: str,
                actor: Actor = Depends(require_capability(Capability.MANAGE_TEAMS))) -> Dict[str, Any]:
    """Delete an empty team; teams with members are refused with 409."""
    dao.delete_team(team_id)
    return {"success": True, "team_id": team_id}


@router.get("/goals")
def list_goals(year: Optional[int] = Query(None), actor: Actor = Depends(current_actor)) -> List[Dict[str, Any]]:
    return [g.to_dict() for g in reports.visible_goals(actor, year or date.today().year)]


@router.post("/goals")
def set_goal(request: GoalRequest, actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    """Create or replace the goal for one (user, team, year, month, metric) scope."""
    goal = reports.set_goal(
        actor,
        year=request.year,
        metric_type=request.metric_type,
        target_value=request.target_value,
        user_id=request.user_id,
        team_id=request.team_id,
        month=request.month
    )
    return goal.to_dict()
