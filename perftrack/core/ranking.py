"""
Goal attainment ratios, status tiers and rankings.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Sequence

AHEAD_THRESHOLD = 1.0
CAUTION_THRESHOLD = 0.8


class StatusTier(str, Enum):
    AHEAD = "ahead"      # at or above goal (ahead / on track)
    CAUTION = "caution"
    BEHIND = "behind"


def _value(entity: Any, name: str) -> Any:
    if isinstance(entity, dict):
        return entity.get(name)
    return getattr(entity, name, None)


def goal_ratio(actual: float, goal: float) -> float:
    """actual / goal, or 0 when no positive goal exists."""
    if not goal or goal <= 0:
        return 0.0
    return (actual or 0) / goal


def percent_to_goal(actual: float, goal: float) -> float:
    return goal_ratio(actual, goal) * 100


def status_tier(ratio: float) -> StatusTier:
    if ratio >= AHEAD_THRESHOLD:
        return StatusTier.AHEAD
    if ratio >= CAUTION_THRESHOLD:
        return StatusTier.CAUTION
    return StatusTier.BEHIND


@dataclass
class RankedEntry:
    entity: Any
    ratio: float
    rank: int
    status: StatusTier

    @property
    def percent(self) -> float:
        return self.ratio * 100


def rank(entities: Sequence[Any], goal_field: str, actual_field: str) -> List[RankedEntry]:
    """
    Order entities by actual/goal, best first.

    The sort is stable: entities with equal ratios keep their input order.
    """
    ratios = [goal_ratio(_value(e, actual_field), _value(e, goal_field)) for e in entities]
    order = sorted(range(len(entities)), key=lambda i: -ratios[i])
    return [
        RankedEntry(entity=entities[i], ratio=ratios[i], rank=position, status=status_tier(ratios[i]))
        for position, i in enumerate(order, start=1)
    ]


def top_n(entities: Sequence[Any], field: str, n: int) -> List[Any]:
    """The `n` entities with the highest raw `field`, stable on ties."""
    return sorted(entities, key=lambda e: -(_value(e, field) or 0))[:n]
