"""
Interview board, payment pipeline and placement endpoints.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from .deps import current_actor
from .schemas import (
    DealCreateRequest,
    DealStatusRequest,
    InterviewCreateRequest,
    InterviewStatusRequest,
    PlacementCreateRequest,
)
from ..core import dao, reports
from ..core.access import visible_scope
from ..core.aggregation import year_bounds
from ..core.schema import Actor

router = APIRouter()


def _ensure_visible(actor: Actor, row: Any, what: str):
    """Rows outside the actor's scope are reported as missing."""
    if row is None or not visible_scope(actor, author_field="recruiter_id")(row):
        raise HTTPException(status_code=404, detail=f"{what} not found")


@router.get("/interviews")
def interview_board(
    team_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="submitted, scheduled or completed"),
    actor: Actor = Depends(current_actor)
) -> Dict[str, Any]:
    return reports.interview_board(actor, team_id=team_id, status=status)


@router.post("/interviews")
def create_interview(request: InterviewCreateRequest, actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    interview = dao.create_interview(
        actor,
        candidate_name=request.candidate_name,
        position=request.position,
        company=request.company,
        interview_date=request.interview_date,
        status=request.status,
        notes=request.notes
    )
    return interview.to_dict()


@router.patch("/interviews/{interview_id}/status")
def update_interview_status(interview_id: str, request: InterviewStatusRequest,
                            actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    _ensure_visible(actor, dao.get_interview(interview_id), "Interview")
    return dao.update_interview_status(interview_id, request.status).to_dict()


@router.get("/deals")
def pipeline(
    team_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="pending, invoiced, paid or overdue"),
    actor: Actor = Depends(current_actor)
) -> Dict[str, Any]:
    return reports.pipeline(actor, date.today(), team_id=team_id, status=status)


@router.post("/deals")
def create_deal(request: DealCreateRequest, actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    deal = dao.create_deal(actor, **request.model_dump())
    return deal.to_dict(date.today())


@router.patch("/deals/{deal_id}/status")
def update_deal_status(deal_id: str, request: DealStatusRequest,
                       actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    _ensure_visible(actor, dao.get_deal(deal_id), "Deal")
    return dao.update_deal_status(deal_id, request.status).to_dict(date.today())


@router.get("/placements")
def list_placements(year: Optional[int] = Query(None), actor: Actor = Depends(current_actor)) -> List[Dict[str, Any]]:
    start, end = year_bounds(year or date.today().year)
    scope = visible_scope(actor, author_field="recruiter_id")
    return [p.to_dict() for p in dao.list_placements(scope, start, end)]


@router.post("/placements")
def create_placement(request: PlacementCreateRequest, actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    placement = dao.create_placement(
        actor,
        candidate_name=request.candidate_name,
        position=request.position,
        company=request.company,
        placement_date=request.placement_date,
        fee_amount=request.fee_amount
    )
    return placement.to_dict()
