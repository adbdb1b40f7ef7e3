"""
Value types shared by the risk engine.

DailyAggregateInput is the universal in-memory representation used by all
evaluators. It is a plain Python dataclass with no SQLModel or DB imports.
Evaluators take List[DailyAggregateInput] and return a CategoryRiskResult.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional


class RiskCategory(str, Enum):
    CARDIOVASCULAR = "CARDIOVASCULAR"
    SLEEP_QUALITY = "SLEEP_QUALITY"
    ACTIVITY_LEVEL = "ACTIVITY_LEVEL"
    OVERALL_WELLNESS = "OVERALL_WELLNESS"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class DailyAggregateInput:
    """
    One calendar day's summary for a user.
    Heart rates are optional (device may not have recorded them that day).
    """

    steps: int = 0
    active_energy: float = 0.0        # kcal
    sleep_duration: int = 0           # minutes
    average_heart_rate: Optional[float] = None  # bpm
    resting_heart_rate: Optional[float] = None  # bpm
    workout_count: int = 0
    workout_duration: int = 0         # minutes


@dataclass
class RiskFactor:
    """One contributing signal. Positive contribution increases risk."""
    name: str
    contribution: float
    description: str


@dataclass
class CategoryRiskResult:
    category: RiskCategory
    score: int                        # 0-100, higher = riskier
    level: RiskLevel
    confidence: float                 # 0.0-0.9
    factors: List[RiskFactor] = field(default_factory=list)


def aggregates_to_inputs(rows: Iterable[Any]) -> List[DailyAggregateInput]:
    """
    Convert persisted DailyAggregate rows (or anything with the same
    attributes) into DailyAggregateInput instances.

    This is the bridge between the persistence layer and the risk engine.
    """
    return [
        DailyAggregateInput(
            steps=row.steps,
            active_energy=row.active_energy,
            sleep_duration=row.sleep_duration,
            average_heart_rate=row.average_heart_rate,
            resting_heart_rate=row.resting_heart_rate,
            workout_count=row.workout_count,
            workout_duration=row.workout_duration,
        )
        for row in rows
    ]
