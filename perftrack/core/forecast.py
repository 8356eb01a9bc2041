"""
Revenue-to-activity funnel forecasting.

Works backwards from a revenue target: placements, then interviews,
submissions and job orders, and finally the two top-of-funnel presentation
counts, each computed from job orders independently. Every stage is rounded
up so required activity is never under-provisioned.
"""

import math
from dataclasses import asdict, dataclass
from fractions import Fraction
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .errors import InvalidConfigurationError
from .schema import MetricType


def _exact(value: Any, name: str) -> Fraction:
    """Decimal-exact fraction, so 0.1 * 30 is 3 and not 3.0000000000000004."""
    if value is None:
        raise InvalidConfigurationError(f"{name} is required")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidConfigurationError(f"{name} must be a finite number")
    try:
        return Fraction(str(value))
    except (ValueError, ZeroDivisionError) as e:
        raise InvalidConfigurationError(f"{name} is not a number: {value!r}") from e


def _ceil(value: Fraction) -> int:
    return math.ceil(value)


@dataclass
class FunnelRatios:
    interviews_per_placement: float = 4
    submissions_per_interview: float = 3
    job_orders_per_submission: float = 0.5
    rp_per_job_order: float = 5
    mp_per_job_order: float = 3

    @classmethod
    def from_config(cls) -> "FunnelRatios":
        return cls(
            interviews_per_placement=config.FORECAST_INTERVIEWS_PER_PLACEMENT,
            submissions_per_interview=config.FORECAST_SUBMISSIONS_PER_INTERVIEW,
            job_orders_per_submission=config.FORECAST_JOB_ORDERS_PER_SUBMISSION,
            rp_per_job_order=config.FORECAST_RP_PER_JOB_ORDER,
            mp_per_job_order=config.FORECAST_MP_PER_JOB_ORDER,
        )

    @classmethod
    def from_mapping(cls, ratios: Optional[Dict[str, float]]) -> "FunnelRatios":
        """Build from a partial stage->ratio mapping; unnamed stages keep configured defaults."""
        base = asdict(cls.from_config())
        for name, value in (ratios or {}).items():
            if name not in base:
                raise InvalidConfigurationError(f"Unknown funnel stage ratio: {name}")
            base[name] = value
        return cls(**base)

    def validated(self) -> Dict[str, Fraction]:
        exact = {}
        for name, value in asdict(self).items():
            ratio = _exact(value, name)
            if ratio <= 0:
                raise InvalidConfigurationError(f"{name} must be greater than zero")
            exact[name] = ratio
        return exact


@dataclass
class ForecastResult:
    placements: int
    interviews: int
    submissions: int
    job_orders: int
    rp: int
    mp: int

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def forecast(target_revenue: float, avg_deal_size: float, ratios: Any = None) -> ForecastResult:
    """
    Required activity per funnel stage to reach `target_revenue`.

    `ratios` may be a FunnelRatios or a partial mapping of stage ratios.
    A non-positive average deal size is rejected rather than yielding an
    infinite placement count.
    """
    if not isinstance(ratios, FunnelRatios):
        ratios = FunnelRatios.from_mapping(ratios)

    target = _exact(target_revenue, "target_revenue")
    deal_size = _exact(avg_deal_size, "avg_deal_size")
    if deal_size <= 0:
        raise InvalidConfigurationError("avg_deal_size must be greater than zero")
    if target < 0:
        raise InvalidConfigurationError("target_revenue cannot be negative")

    r = ratios.validated()
    placements = _ceil(target / deal_size)
    interviews = _ceil(placements * r["interviews_per_placement"])
    submissions = _ceil(interviews * r["submissions_per_interview"])
    job_orders = _ceil(submissions * r["job_orders_per_submission"])

    return ForecastResult(
        placements=placements,
        interviews=interviews,
        submissions=submissions,
        job_orders=job_orders,
        rp=_ceil(job_orders * r["rp_per_job_order"]),
        mp=_ceil(job_orders * r["mp_per_job_order"]),
    )


def allocate_to_teams(result: ForecastResult, target_revenue: float, teams: Sequence[Any]) -> List[Dict[str, Any]]:
    """Split the forecast equally across teams, rounding each share up."""
    if not teams:
        return []
    share = Fraction(1, len(teams))
    revenue_share = _exact(target_revenue, "target_revenue") * share

    allocations = []
    for team in teams:
        team_id = team["id"] if isinstance(team, dict) else team.id
        team_name = team["name"] if isinstance(team, dict) else team.name
        allocation = {
            "team_id": team_id,
            "team_name": team_name,
            "target_revenue": float(revenue_share),
        }
        for stage, count in result.as_dict().items():
            allocation[stage] = _ceil(count * share)
        allocations.append(allocation)
    return allocations


def forecast_goals(result: ForecastResult, target_revenue: float) -> List[Dict[str, Any]]:
    """Goal rows (metric type -> target) representing a saved forecast."""
    return [
        {"metric_type": MetricType.SALES, "target_value": float(target_revenue)},
        {"metric_type": MetricType.PLACEMENTS, "target_value": result.placements},
        {"metric_type": MetricType.FTI, "target_value": result.interviews},
        {"metric_type": MetricType.JO, "target_value": result.job_orders},
        {"metric_type": MetricType.RP, "target_value": result.rp},
        {"metric_type": MetricType.MP, "target_value": result.mp},
        {"metric_type": MetricType.SUBS, "target_value": result.submissions},
    ]
