"""
In-memory shapes of the persisted collections.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    RECRUITER = "recruiter"


class MetricType(str, Enum):
    SALES = "sales"
    FTI = "fti"
    JO = "jo"
    RP = "rp"
    MP = "mp"
    SUBS = "subs"
    PLACEMENTS = "placements"


class InterviewStatus(str, Enum):
    SUBMITTED = "submitted"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class DealStatus(str, Enum):
    PENDING = "pending"
    INVOICED = "invoiced"
    PAID = "paid"


# Display-only status, never stored
OVERDUE = "overdue"


class DealClassification(str, Enum):
    CANDIDATE_SOURCED = "Candidate Sourced 25%"
    CANDIDATE_SUBMISSION = "Candidate Submission 25%"
    CLIENT_MP = "Client MP 25%"
    CLIENT_JO = "Client JO 25%"


class CandidateSource(str, Enum):
    ATS = "ATS"
    LINKEDIN_EMAIL = "LinkedIn Email"
    LINKEDIN_CR_MSG = "LinkedIn CR Msg"
    ZOOMINFO_COLD_CALL = "Zoominfo Cold Call"
    TALENT_BULLETIN_REPLY = "Reply from Talent Bulletin"
    REFERRAL = "Referral"
    WEBSITE = "Applied via Website"


# Counter fields carried by every daily record, in display order
COUNTER_FIELDS = ["rp", "mp", "subs", "jo", "fti", "placement_count", "placement_amount"]

# Goal metric -> daily record field it is measured against
METRIC_FIELDS = {
    MetricType.SALES: "placement_amount",
    MetricType.FTI: "fti",
    MetricType.JO: "jo",
    MetricType.RP: "rp",
    MetricType.MP: "mp",
    MetricType.SUBS: "subs",
    MetricType.PLACEMENTS: "placement_count",
}


def parse_date(value: Any) -> Optional[date]:
    """Accept a date, a datetime or an ISO string; None passes through."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass
class Actor:
    id: str
    email: str
    first_name: str
    last_name: str
    role: Role
    team_id: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    last_login: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Actor":
        return cls(
            id=row["id"],
            email=row["email"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            role=Role(row["role"]),
            team_id=row.get("team_id"),
            is_active=bool(row.get("is_active", True)),
            created_at=row.get("created_at"),
            last_login=row.get("last_login"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["role"] = self.role.value
        return data


@dataclass
class Team:
    id: str
    name: str
    manager_ids: List[str] = field(default_factory=list)
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Team":
        manager_ids = row.get("manager_ids") or "[]"
        if isinstance(manager_ids, str):
            manager_ids = json.loads(manager_ids)
        return cls(
            id=row["id"],
            name=row["name"],
            manager_ids=list(manager_ids),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DailyRecord:
    user_id: str
    team_id: str
    date: date
    rp: float = 0
    mp: float = 0
    subs: float = 0
    jo: float = 0
    fti: float = 0
    placement_count: float = 0
    placement_amount: float = 0
    notes: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DailyRecord":
        return cls(
            id=row.get("id"),
            user_id=row["user_id"],
            team_id=row["team_id"],
            date=parse_date(row["date"]),
            notes=row.get("notes"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            **{name: row.get(name) or 0 for name in COUNTER_FIELDS}
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


@dataclass
class Goal:
    year: int
    metric_type: MetricType
    target_value: float
    user_id: Optional[str] = None
    team_id: Optional[str] = None
    month: Optional[int] = None
    id: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Goal":
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            team_id=row.get("team_id"),
            year=int(row["year"]),
            month=row.get("month"),
            metric_type=MetricType(row["metric_type"]),
            target_value=row.get("target_value") or 0,
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["metric_type"] = self.metric_type.value
        return data


@dataclass
class InterviewSchedule:
    candidate_name: str
    position: str
    company: str
    recruiter_id: str
    team_id: str
    status: InterviewStatus = InterviewStatus.SUBMITTED
    interview_date: Optional[datetime] = None
    notes: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "InterviewSchedule":
        interview_date = row.get("interview_date")
        return cls(
            id=row.get("id"),
            candidate_name=row["candidate_name"],
            position=row["position"],
            company=row["company"],
            interview_date=datetime.fromisoformat(interview_date) if interview_date else None,
            status=InterviewStatus(row["status"]),
            recruiter_id=row["recruiter_id"],
            team_id=row["team_id"],
            notes=row.get("notes"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["interview_date"] = self.interview_date.isoformat() if self.interview_date else None
        return data


@dataclass
class Placement:
    candidate_name: str
    position: str
    company: str
    placement_date: date
    fee_amount: float
    recruiter_id: str
    team_id: str
    id: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Placement":
        return cls(
            id=row.get("id"),
            candidate_name=row["candidate_name"],
            position=row["position"],
            company=row["company"],
            placement_date=parse_date(row["placement_date"]),
            fee_amount=row.get("fee_amount") or 0,
            recruiter_id=row["recruiter_id"],
            team_id=row["team_id"],
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["placement_date"] = self.placement_date.isoformat()
        return data


@dataclass
class Deal:
    company: str
    job_title: str
    candidate_name: str
    amount: float
    recruiter_id: str
    team_id: str
    classification: DealClassification = DealClassification.CANDIDATE_SOURCED
    candidate_source: CandidateSource = CandidateSource.ATS
    status: DealStatus = DealStatus.PENDING
    is_retainer: bool = False
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    payment_due_date: Optional[date] = None
    notes: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def is_overdue(self, today: date) -> bool:
        """Past its due date and not yet paid."""
        if self.payment_due_date is None or self.status == DealStatus.PAID:
            return False
        return self.payment_due_date < today

    def effective_status(self, today: date) -> str:
        return OVERDUE if self.is_overdue(today) else self.status.value

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Deal":
        return cls(
            id=row.get("id"),
            company=row["company"],
            job_title=row["job_title"],
            candidate_name=row["candidate_name"],
            amount=row.get("amount") or 0,
            invoice_number=row.get("invoice_number"),
            invoice_date=parse_date(row.get("invoice_date")),
            payment_due_date=parse_date(row.get("payment_due_date")),
            classification=DealClassification(row["classification"]),
            is_retainer=bool(row.get("is_retainer")),
            candidate_source=CandidateSource(row["candidate_source"]),
            recruiter_id=row["recruiter_id"],
            team_id=row["team_id"],
            status=DealStatus(row["status"]),
            notes=row.get("notes"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self, today: Optional[date] = None) -> Dict[str, Any]:
        data = asdict(self)
        data["classification"] = self.classification.value
        data["candidate_source"] = self.candidate_source.value
        data["status"] = self.status.value
        data["invoice_date"] = self.invoice_date.isoformat() if self.invoice_date else None
        data["payment_due_date"] = self.payment_due_date.isoformat() if self.payment_due_date else None
        if today is not None:
            data["is_overdue"] = self.is_overdue(today)
            data["display_status"] = self.effective_status(today)
        return data
