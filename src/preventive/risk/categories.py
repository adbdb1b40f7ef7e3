"""
Category risk evaluators: cardiovascular, sleep quality, activity level.

Each evaluator is a pure function of a window of daily aggregates
(conventionally the trailing 14 days; order does not matter) and returns a
CategoryRiskResult. Scores start from a per-category base, are nudged up or
down by each rule that fires, and are clamped to 0-100 only at the end.

Tiered rules are ordered tables evaluated first-match-wins. Several tables
have overlapping ranges (e.g. 12000 steps satisfies both ">= 10000" and
">= 7500"); the order of the table is what resolves the overlap, so do not
reorder entries.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from preventive.risk.overall import calculate_overall_wellness
from preventive.risk.policy import (
    ConfidencePolicy,
    clamp_score,
    confidence,
    insufficient_data,
    mean,
    population_variance,
    risk_level,
    round_half_up,
)
from preventive.risk.types import (
    CategoryRiskResult,
    DailyAggregateInput,
    RiskCategory,
    RiskFactor,
)


@dataclass(frozen=True)
class TierRule:
    """One row of an ordered threshold table."""
    predicate: Callable[[float], bool]
    adjustment: int
    name: str
    contribution: float
    describe: Callable[[float], str]


def apply_first_match(value: float, rules: List[TierRule]) -> Optional[Tuple[int, RiskFactor]]:
    """
    Return (adjustment, factor) for the first rule whose predicate accepts
    value, or None if no rule fires.
    """
    for rule in rules:
        if rule.predicate(value):
            factor = RiskFactor(
                name=rule.name,
                contribution=rule.contribution,
                description=rule.describe(value),
            )
            return rule.adjustment, factor
    return None


def _format_hours(minutes: float) -> str:
    return f"{round_half_up(minutes / 60)}"


def _format_tenths(value: float) -> str:
    # one decimal place, exact halves round up
    return f"{round_half_up(value * 10) / 10:.1f}"


def _format_steps(steps: float) -> str:
    return f"{round_half_up(steps):,}"


# ─── Cardiovascular ───────────────────────────────────────────────────────────

CARDIO_BASE_SCORE = 30
MIN_HR_SAMPLES_FOR_VARIABILITY = 7
HR_CONSISTENCY_VARIANCE = 5.0
SEDENTARY_STEPS = 3000

# (70, 80) and < 60 fall through with no factor.
RESTING_HR_RULES: List[TierRule] = [
    TierRule(
        predicate=lambda hr: hr > 80,
        adjustment=20,
        name="Elevated Resting Heart Rate",
        contribution=0.4,
        describe=lambda hr: f"Average resting HR of {round_half_up(hr)} bpm is above optimal range",
    ),
    TierRule(
        predicate=lambda hr: 60 <= hr <= 70,
        adjustment=-10,
        name="Healthy Resting Heart Rate",
        contribution=-0.2,
        describe=lambda hr: f"Average resting HR of {round_half_up(hr)} bpm is in optimal range",
    ),
]


def calculate_cardiovascular_risk(
    aggregates: List[DailyAggregateInput],
    confidence_policy: ConfidencePolicy = ConfidencePolicy.RAMP,
) -> CategoryRiskResult:
    """
    Score cardiovascular risk from resting HR, HR consistency and step count.

    Signals:
      - mean resting HR > 80 → +20; 60-70 → -10
      - population variance of average HR < 5 (needs >= 7 samples) → -5
      - mean steps < 3000 → +15
    """
    if not aggregates:
        return insufficient_data(RiskCategory.CARDIOVASCULAR, "cardiovascular health")

    factors: List[RiskFactor] = []
    score = CARDIO_BASE_SCORE

    resting_hrs = [a.resting_heart_rate for a in aggregates if a.resting_heart_rate is not None]
    if resting_hrs:
        matched = apply_first_match(mean(resting_hrs), RESTING_HR_RULES)
        if matched:
            adjustment, factor = matched
            score += adjustment
            factors.append(factor)

    heart_rates = [a.average_heart_rate for a in aggregates if a.average_heart_rate is not None]
    if len(heart_rates) >= MIN_HR_SAMPLES_FOR_VARIABILITY:
        if population_variance(heart_rates) < HR_CONSISTENCY_VARIANCE:
            score -= 5
            factors.append(RiskFactor(
                name="Consistent Heart Rate",
                contribution=-0.1,
                description="Your heart rate shows healthy consistency",
            ))

    avg_steps = mean([a.steps for a in aggregates])
    if avg_steps < SEDENTARY_STEPS:
        score += 15
        factors.append(RiskFactor(
            name="Sedentary Lifestyle",
            contribution=0.3,
            description="Very low daily step count may impact cardiovascular health",
        ))

    return _finish(RiskCategory.CARDIOVASCULAR, score, factors, len(aggregates), confidence_policy)


# ─── Sleep quality ────────────────────────────────────────────────────────────

SLEEP_BASE_SCORE = 25

# Durations in minutes. 360-420 and 540-600 fall through with no factor.
SLEEP_DURATION_RULES: List[TierRule] = [
    TierRule(
        predicate=lambda m: m < 300,
        adjustment=35,
        name="Severe Sleep Deficiency",
        contribution=0.7,
        describe=lambda m: f"Average sleep of {_format_hours(m)} hours is critically low",
    ),
    TierRule(
        predicate=lambda m: m < 360,
        adjustment=25,
        name="Insufficient Sleep",
        contribution=0.5,
        describe=lambda m: f"Average sleep of {_format_hours(m)} hours is below recommended",
    ),
    TierRule(
        predicate=lambda m: 420 <= m <= 540,
        adjustment=-15,
        name="Optimal Sleep Duration",
        contribution=-0.3,
        describe=lambda m: f"Average sleep of {_format_tenths(m / 60)} hours is in the healthy range",
    ),
    TierRule(
        predicate=lambda m: m > 600,
        adjustment=10,
        name="Excessive Sleep",
        contribution=0.2,
        describe=lambda m: "Sleeping too much can sometimes indicate underlying issues",
    ),
]

# Variance in minutes²: 3600 = 60 min spread, 900 = 30 min spread.
SLEEP_CONSISTENCY_RULES: List[TierRule] = [
    TierRule(
        predicate=lambda v: v > 3600,
        adjustment=15,
        name="Inconsistent Sleep Schedule",
        contribution=0.3,
        describe=lambda v: "Your sleep schedule varies significantly day to day",
    ),
    TierRule(
        predicate=lambda v: v < 900,
        adjustment=-10,
        name="Consistent Sleep Schedule",
        contribution=-0.2,
        describe=lambda v: "You maintain a regular sleep schedule",
    ),
]


def calculate_sleep_risk(
    aggregates: List[DailyAggregateInput],
    confidence_policy: ConfidencePolicy = ConfidencePolicy.RAMP,
) -> CategoryRiskResult:
    """Score sleep risk from mean nightly duration and its day-to-day variance."""
    if not aggregates:
        return insufficient_data(RiskCategory.SLEEP_QUALITY, "sleep quality")

    factors: List[RiskFactor] = []
    score = SLEEP_BASE_SCORE

    durations = [a.sleep_duration for a in aggregates]

    # Duration and consistency are independent checks; both may fire.
    for value, rules in (
        (mean(durations), SLEEP_DURATION_RULES),
        (population_variance(durations), SLEEP_CONSISTENCY_RULES),
    ):
        matched = apply_first_match(value, rules)
        if matched:
            adjustment, factor = matched
            score += adjustment
            factors.append(factor)

    return _finish(RiskCategory.SLEEP_QUALITY, score, factors, len(aggregates), confidence_policy)


# ─── Activity level ───────────────────────────────────────────────────────────

ACTIVITY_BASE_SCORE = 30

# ">= 10000" must stay ahead of ">= 7500": 12000 steps is "Excellent" only.
STEPS_RULES: List[TierRule] = [
    TierRule(
        predicate=lambda s: s < 3000,
        adjustment=30,
        name="Very Low Activity",
        contribution=0.6,
        describe=lambda s: f"Average of {_format_steps(s)} steps/day indicates sedentary lifestyle",
    ),
    TierRule(
        predicate=lambda s: s < 5000,
        adjustment=15,
        name="Low Activity",
        contribution=0.3,
        describe=lambda s: f"Average of {_format_steps(s)} steps/day is below recommended",
    ),
    TierRule(
        predicate=lambda s: s >= 10000,
        adjustment=-20,
        name="Excellent Activity Level",
        contribution=-0.4,
        describe=lambda s: f"Average of {_format_steps(s)} steps/day exceeds goals",
    ),
    TierRule(
        predicate=lambda s: s >= 7500,
        adjustment=-10,
        name="Good Activity Level",
        contribution=-0.2,
        describe=lambda s: f"Average of {_format_steps(s)} steps/day is healthy",
    ),
]

WORKOUT_FREQUENCY_RULES: List[TierRule] = [
    TierRule(
        predicate=lambda w: w < 1,
        adjustment=15,
        name="Infrequent Workouts",
        contribution=0.3,
        describe=lambda w: "Less than one workout per week",
    ),
    TierRule(
        predicate=lambda w: w >= 3,
        adjustment=-15,
        name="Regular Exercise",
        contribution=-0.3,
        describe=lambda w: f"{_format_tenths(w)} workouts per week is excellent",
    ),
]

ACTIVE_ENERGY_RULES: List[TierRule] = [
    TierRule(
        predicate=lambda e: e < 200,
        adjustment=10,
        name="Low Active Energy",
        contribution=0.2,
        describe=lambda e: "Low calorie burn from activity",
    ),
    TierRule(
        predicate=lambda e: e >= 500,
        adjustment=-10,
        name="High Active Energy",
        contribution=-0.2,
        describe=lambda e: "Good calorie burn from daily activities",
    ),
]


def calculate_activity_risk(
    aggregates: List[DailyAggregateInput],
    confidence_policy: ConfidencePolicy = ConfidencePolicy.RAMP,
) -> CategoryRiskResult:
    """
    Score activity risk from mean steps, workouts per week and active energy.

    workouts_per_week = (total workouts / days in window) * 7
    """
    if not aggregates:
        return insufficient_data(RiskCategory.ACTIVITY_LEVEL, "activity level")

    factors: List[RiskFactor] = []
    score = ACTIVITY_BASE_SCORE

    n = len(aggregates)
    avg_steps = mean([a.steps for a in aggregates])
    avg_energy = mean([a.active_energy for a in aggregates])
    workouts_per_week = (sum(a.workout_count for a in aggregates) / n) * 7

    for value, rules in (
        (avg_steps, STEPS_RULES),
        (workouts_per_week, WORKOUT_FREQUENCY_RULES),
        (avg_energy, ACTIVE_ENERGY_RULES),
    ):
        matched = apply_first_match(value, rules)
        if matched:
            adjustment, factor = matched
            score += adjustment
            factors.append(factor)

    return _finish(RiskCategory.ACTIVITY_LEVEL, score, factors, n, confidence_policy)


# ─── Shared ───────────────────────────────────────────────────────────────────

def _finish(
    category: RiskCategory,
    raw_score: float,
    factors: List[RiskFactor],
    sample_count: int,
    confidence_policy: ConfidencePolicy,
) -> CategoryRiskResult:
    final_score = clamp_score(raw_score)
    return CategoryRiskResult(
        category=category,
        score=final_score,
        level=risk_level(final_score),
        confidence=confidence(sample_count, confidence_policy),
        factors=factors,
    )


def calculate_category_risks(
    aggregates: List[DailyAggregateInput],
    confidence_policy: ConfidencePolicy = ConfidencePolicy.RAMP,
) -> List[CategoryRiskResult]:
    """
    Run all three evaluators and append the overall-wellness blend.

    Returns [cardiovascular, sleep, activity, overall].
    """
    results = [
        calculate_cardiovascular_risk(aggregates, confidence_policy),
        calculate_sleep_risk(aggregates, confidence_policy),
        calculate_activity_risk(aggregates, confidence_policy),
    ]
    results.append(calculate_overall_wellness(results))
    return results
