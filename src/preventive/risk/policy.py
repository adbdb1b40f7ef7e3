"""
Thresholding and confidence rules shared by every risk evaluator.

Score bands are fixed for all categories:
  0-33   low
  34-66  medium
  67-100 high
"""
import math
import statistics
from enum import Enum
from typing import Sequence

from preventive.risk.types import CategoryRiskResult, RiskCategory, RiskFactor, RiskLevel

LOW_MAX = 33
MEDIUM_MAX = 66

MAX_CONFIDENCE = 0.9
RAMP_FULL_DAYS = 14

FALLBACK_SCORE = 50
FALLBACK_CONFIDENCE = 0.1


class ConfidencePolicy(str, Enum):
    RAMP = "ramp"      # min(0.9, n / 14), used by the category evaluators
    TIERED = "tiered"  # stepped by sample count


def risk_level(score: float) -> RiskLevel:
    """Map a 0-100 score onto its risk band."""
    if score <= LOW_MAX:
        return RiskLevel.LOW
    if score <= MEDIUM_MAX:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def ramp_confidence(sample_count: int) -> float:
    return min(MAX_CONFIDENCE, sample_count / RAMP_FULL_DAYS)


def tiered_confidence(sample_count: int) -> float:
    if sample_count == 0:
        return 0.0
    if sample_count < 7:
        return 0.3
    if sample_count < 14:
        return 0.5
    if sample_count < 30:
        return 0.7
    return MAX_CONFIDENCE


def confidence(sample_count: int, policy: ConfidencePolicy = ConfidencePolicy.RAMP) -> float:
    """Confidence from the number of daily samples, never above 0.9."""
    if policy == ConfidencePolicy.TIERED:
        return tiered_confidence(sample_count)
    return ramp_confidence(sample_count)


def clamp_score(score: float) -> int:
    return int(max(0, min(100, score)))


def round_half_up(value: float) -> int:
    # round() is banker's rounding; 2.5 must become 3 here
    return math.floor(value + 0.5)


def insufficient_data(category: RiskCategory, subject: str) -> CategoryRiskResult:
    """Neutral result returned by every evaluator when there is no data."""
    return CategoryRiskResult(
        category=category,
        score=FALLBACK_SCORE,
        level=RiskLevel.MEDIUM,
        confidence=FALLBACK_CONFIDENCE,
        factors=[
            RiskFactor(
                name="Insufficient Data",
                contribution=0.0,
                description=f"Not enough data to assess {subject}",
            )
        ],
    )


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return statistics.fmean(values)


def population_variance(values: Sequence[float]) -> float:
    """Mean of squared deviations (divides by n, not n - 1)."""
    if not values:
        return 0.0
    return float(statistics.pvariance(values))
