"""
Request and response models for the tracker API.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.schema import (
    CandidateSource,
    DealClassification,
    DealStatus,
    InterviewStatus,
    MetricType,
    Role,
)


def _not_blank(name: str, v: str) -> str:
    if not v or not v.strip():
        raise ValueError(f'{name} cannot be empty')
    return v.strip()


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool


class ProfileUpdateRequest(BaseModel):
    first_name: str
    last_name: str

    @field_validator('first_name', 'last_name')
    @classmethod
    def names_must_not_be_empty(cls, v, info):
        return _not_blank(info.field_name, v)


class DailyMetricsRequest(BaseModel):
    date: date
    rp: float = Field(0, ge=0)
    mp: float = Field(0, ge=0)
    subs: float = Field(0, ge=0)
    jo: float = Field(0, ge=0)
    fti: float = Field(0, ge=0)
    placement_count: float = Field(0, ge=0)
    placement_amount: float = Field(0, ge=0)
    notes: Optional[str] = None

    def counters(self) -> Dict[str, float]:
        return self.model_dump(exclude={'date', 'notes'})


class ForecastRequest(BaseModel):
    target_revenue: float = Field(ge=0)
    avg_deal_size: float
    ratios: Optional[Dict[str, float]] = None

    @field_validator('avg_deal_size')
    @classmethod
    def deal_size_must_be_positive(cls, v):
        if v <= 0:
            raise ValueError('avg_deal_size must be greater than zero')
        return v


class ForecastGoalsRequest(ForecastRequest):
    year: int = Field(ge=2000, le=2100)
    month: int = Field(ge=1, le=12)


class GoalRequest(BaseModel):
    year: int = Field(ge=2000, le=2100)
    month: Optional[int] = Field(None, ge=1, le=12)
    metric_type: MetricType
    target_value: float = Field(ge=0)
    user_id: Optional[str] = None
    team_id: Optional[str] = None


class InterviewCreateRequest(BaseModel):
    candidate_name: str
    position: str
    company: str
    interview_date: Optional[datetime] = None
    status: InterviewStatus = InterviewStatus.SUBMITTED
    notes: Optional[str] = None

    @field_validator('candidate_name', 'position', 'company')
    @classmethod
    def fields_must_not_be_empty(cls, v, info):
        return _not_blank(info.field_name, v)


class InterviewStatusRequest(BaseModel):
    status: InterviewStatus


class DealCreateRequest(BaseModel):
    company: str
    job_title: str
    candidate_name: str
    amount: float = Field(ge=0)
    classification: DealClassification = DealClassification.CANDIDATE_SOURCED
    candidate_source: CandidateSource = CandidateSource.ATS
    status: DealStatus = DealStatus.PENDING
    is_retainer: bool = False
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    payment_due_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator('company', 'job_title', 'candidate_name')
    @classmethod
    def fields_must_not_be_empty(cls, v, info):
        return _not_blank(info.field_name, v)


class DealStatusRequest(BaseModel):
    status: DealStatus


class PlacementCreateRequest(BaseModel):
    candidate_name: str
    position: str
    company: str
    placement_date: date
    fee_amount: float = Field(ge=0)

    @field_validator('candidate_name', 'position', 'company')
    @classmethod
    def fields_must_not_be_empty(cls, v, info):
        return _not_blank(info.field_name, v)


class UserCreateRequest(BaseModel):
    email: str
    first_name: str
    last_name: str
    role: Role = Role.RECRUITER
    team_id: Optional[str] = None
    is_active: bool = True

    @field_validator('email')
    @classmethod
    def email_must_look_valid(cls, v):
        v = _not_blank('email', v)
        if '@' not in v:
            raise ValueError('email must contain @')
        return v.lower()


class UserUpdateRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[Role] = None
    team_id: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator('first_name', 'last_name')
    @classmethod
    def names_must_not_be_empty(cls, v, info):
        return _not_blank(info.field_name, v)

    # Only team_id may be cleared with an explicit null
    @field_validator('role', 'is_active')
    @classmethod
    def must_not_be_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        return v


class TeamRequest(BaseModel):
    name: str
    manager_ids: List[str] = []

    @field_validator('name')
    @classmethod
    def name_must_not_be_empty(cls, v):
        return _not_blank('name', v)


class TeamUpdateRequest(BaseModel):
    name: Optional[str] = None
    manager_ids: Optional[List[str]] = None

    @field_validator('name')
    @classmethod
    def name_must_not_be_empty(cls, v):
        return _not_blank('name', v)
