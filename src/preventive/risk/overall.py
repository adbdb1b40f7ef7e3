"""
Overall wellness: a weighted blend of the category results.

  score      = round(Σ score_i * w_i / Σ w_i)
  confidence = min(confidence_i)      (weakest category limits the whole)
  level      = band of the rounded score

Factor selection is pluggable so callers can pick the richer
magnitude-ranked summary or the simpler first-factor summary.
"""
from enum import Enum
from typing import Dict, List

from preventive.risk.policy import FALLBACK_SCORE, risk_level, round_half_up
from preventive.risk.types import CategoryRiskResult, RiskCategory, RiskFactor, RiskLevel

CATEGORY_WEIGHTS: Dict[RiskCategory, float] = {
    RiskCategory.CARDIOVASCULAR: 0.35,
    RiskCategory.SLEEP_QUALITY: 0.35,
    RiskCategory.ACTIVITY_LEVEL: 0.30,
}
DEFAULT_WEIGHT = 0.25


class FactorSelection(str, Enum):
    MAGNITUDE = "magnitude"  # top 2 per category by |contribution|, 5 total
    FIRST = "first"          # first factor per category, 3 total


_SELECTION_LIMITS = {
    # (per category, overall)
    FactorSelection.MAGNITUDE: (2, 5),
    FactorSelection.FIRST: (1, 3),
}


def _select_factors(result: CategoryRiskResult, selection: FactorSelection) -> List[RiskFactor]:
    per_category, _ = _SELECTION_LIMITS[selection]
    if selection == FactorSelection.MAGNITUDE:
        # sorted() is stable, so equal magnitudes keep evaluation order
        ranked = sorted(result.factors, key=lambda f: abs(f.contribution), reverse=True)
        return ranked[:per_category]
    return list(result.factors[:per_category])


def calculate_overall_wellness(
    category_results: List[CategoryRiskResult],
    selection: FactorSelection = FactorSelection.MAGNITUDE,
) -> CategoryRiskResult:
    """
    Combine category results into one OVERALL_WELLNESS result.

    Args:
        category_results: results in any order; categories without a fixed
            weight count at 0.25.
        selection: factor summarisation strategy.

    Returns:
        CategoryRiskResult with category OVERALL_WELLNESS. An empty input
        yields score 50, medium, confidence 0 and no factors.
    """
    if not category_results:
        return CategoryRiskResult(
            category=RiskCategory.OVERALL_WELLNESS,
            score=FALLBACK_SCORE,
            level=RiskLevel.MEDIUM,
            confidence=0.0,
            factors=[],
        )

    weighted_sum = 0.0
    total_weight = 0.0
    min_confidence = 1.0
    all_factors: List[RiskFactor] = []

    for result in category_results:
        weight = CATEGORY_WEIGHTS.get(result.category, DEFAULT_WEIGHT)
        weighted_sum += result.score * weight
        total_weight += weight
        min_confidence = min(min_confidence, result.confidence)
        all_factors.extend(_select_factors(result, selection))

    _, overall_limit = _SELECTION_LIMITS[selection]
    overall_score = round_half_up(weighted_sum / total_weight)

    return CategoryRiskResult(
        category=RiskCategory.OVERALL_WELLNESS,
        score=overall_score,
        level=risk_level(overall_score),
        confidence=min_confidence,
        factors=all_factors[:overall_limit],
    )
