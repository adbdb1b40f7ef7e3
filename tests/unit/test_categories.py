"""Tests for the cardiovascular, sleep and activity risk evaluators."""
from dataclasses import replace
from typing import List

import pytest

from preventive.risk.categories import (
    calculate_activity_risk,
    calculate_cardiovascular_risk,
    calculate_category_risks,
    calculate_sleep_risk,
)
from preventive.risk.policy import ConfidencePolicy, risk_level
from preventive.risk.types import DailyAggregateInput, RiskCategory, RiskLevel


# ─── Helpers ──────────────────────────────────────────────────────────────────

def make_days(n: int = 14, **fields) -> List[DailyAggregateInput]:
    """
    n identical days of a moderately healthy user. Keyword overrides apply to
    every day.

    Defaults sit in the neutral gaps: 6000 steps (no steps tier), 300 kcal
    (no energy tier), 75 bpm resting (the silent 70-80 band). There are no
    workouts; use with_workouts() to reach a neutral 2/week.
    """
    base = DailyAggregateInput(
        steps=6000,
        active_energy=300.0,
        sleep_duration=450,
        average_heart_rate=None,
        resting_heart_rate=75.0,
        workout_count=0,
        workout_duration=0,
    )
    return [replace(base, **fields) for _ in range(n)]


def with_workouts(days: List[DailyAggregateInput], total: int) -> List[DailyAggregateInput]:
    """Spread `total` workouts one per day from the start of the window."""
    return [replace(d, workout_count=1 if i < total else 0) for i, d in enumerate(days)]


def factor_names(result) -> List[str]:
    return [f.name for f in result.factors]


EVALUATORS = [
    (calculate_cardiovascular_risk, RiskCategory.CARDIOVASCULAR),
    (calculate_sleep_risk, RiskCategory.SLEEP_QUALITY),
    (calculate_activity_risk, RiskCategory.ACTIVITY_LEVEL),
]


# ─── Shared behaviour ─────────────────────────────────────────────────────────

class TestAllEvaluators:
    @pytest.mark.parametrize("evaluator,category", EVALUATORS)
    def test_empty_input_fallback(self, evaluator, category):
        result = evaluator([])
        assert result.category == category
        assert result.score == 50
        assert result.level == RiskLevel.MEDIUM
        assert result.confidence == 0.1
        assert len(result.factors) == 1
        assert result.factors[0].name == "Insufficient Data"

    @pytest.mark.parametrize("evaluator,category", EVALUATORS)
    def test_deterministic(self, evaluator, category):
        days = make_days(10, steps=2500, sleep_duration=280, resting_heart_rate=90.0)
        assert evaluator(days) == evaluator(days)

    @pytest.mark.parametrize("evaluator,category", EVALUATORS)
    @pytest.mark.parametrize("days", [
        make_days(14, steps=0, active_energy=0.0, sleep_duration=0, resting_heart_rate=120.0),
        make_days(14, steps=30000, active_energy=2000.0, sleep_duration=480,
                  resting_heart_rate=62.0, average_heart_rate=70.0, workout_count=2),
        make_days(3, sleep_duration=900),
    ])
    def test_score_bounded_and_level_consistent(self, evaluator, category, days):
        result = evaluator(days)
        assert 0 <= result.score <= 100
        assert result.level == risk_level(result.score)
        assert 0.0 <= result.confidence <= 0.9

    @pytest.mark.parametrize("evaluator,category", EVALUATORS)
    def test_confidence_grows_with_window(self, evaluator, category):
        short = evaluator(make_days(7))
        full = evaluator(make_days(14))
        assert full.confidence >= short.confidence
        assert full.confidence == pytest.approx(0.9)
        assert short.confidence == pytest.approx(0.5)

    @pytest.mark.parametrize("evaluator,category", EVALUATORS)
    def test_tiered_confidence_policy(self, evaluator, category):
        result = evaluator(make_days(14), confidence_policy=ConfidencePolicy.TIERED)
        assert result.confidence == 0.7

    def test_input_order_does_not_matter(self):
        days = make_days(14)
        days = [replace(d, steps=1000 * (i + 1), sleep_duration=300 + 20 * i) for i, d in enumerate(days)]
        for evaluator, _ in EVALUATORS:
            assert evaluator(days) == evaluator(list(reversed(days)))


# ─── Cardiovascular ───────────────────────────────────────────────────────────

class TestCardiovascularRisk:
    def test_healthy_scenario(self):
        days = make_days(14, resting_heart_rate=65.0, average_heart_rate=70.0, steps=8000)
        result = calculate_cardiovascular_risk(days)
        assert result.category == RiskCategory.CARDIOVASCULAR
        assert result.score == 15  # 30 - 10 - 5
        assert result.level == RiskLevel.LOW
        assert result.confidence == pytest.approx(0.9)
        assert factor_names(result) == ["Healthy Resting Heart Rate", "Consistent Heart Rate"]

    def test_elevated_resting_hr(self):
        result = calculate_cardiovascular_risk(make_days(14, resting_heart_rate=86.0))
        assert result.score == 50
        factor = result.factors[0]
        assert factor.name == "Elevated Resting Heart Rate"
        assert factor.contribution == 0.4
        assert "86 bpm" in factor.description

    @pytest.mark.parametrize("resting_hr", [55.0, 59.9, 70.5, 75.0, 80.0])
    def test_resting_hr_neutral_gaps(self, resting_hr):
        """< 60 and (70, 80] contribute nothing."""
        result = calculate_cardiovascular_risk(make_days(14, resting_heart_rate=resting_hr))
        assert result.score == 30
        assert result.factors == []

    @pytest.mark.parametrize("resting_hr", [60.0, 70.0])
    def test_healthy_range_inclusive(self, resting_hr):
        result = calculate_cardiovascular_risk(make_days(14, resting_heart_rate=resting_hr))
        assert factor_names(result) == ["Healthy Resting Heart Rate"]

    def test_resting_hr_mean_ignores_missing_days(self):
        days = make_days(10, resting_heart_rate=None) + make_days(4, resting_heart_rate=90.0)
        result = calculate_cardiovascular_risk(days)
        assert factor_names(result) == ["Elevated Resting Heart Rate"]

    def test_no_heart_rate_data_is_skipped(self):
        result = calculate_cardiovascular_risk(make_days(14, resting_heart_rate=None, average_heart_rate=None))
        assert result.score == 30
        assert result.factors == []

    def test_hr_consistency_needs_seven_samples(self):
        days = make_days(6, average_heart_rate=70.0) + make_days(8, average_heart_rate=None)
        result = calculate_cardiovascular_risk(days)
        assert "Consistent Heart Rate" not in factor_names(result)

        days = make_days(7, average_heart_rate=70.0) + make_days(7, average_heart_rate=None)
        result = calculate_cardiovascular_risk(days)
        assert "Consistent Heart Rate" in factor_names(result)

    def test_variable_heart_rate_no_consistency_bonus(self):
        days = make_days(14)
        days = [replace(d, average_heart_rate=60.0 if i % 2 else 80.0) for i, d in enumerate(days)]
        result = calculate_cardiovascular_risk(days)
        assert "Consistent Heart Rate" not in factor_names(result)

    def test_sedentary_lifestyle(self):
        result = calculate_cardiovascular_risk(make_days(14, steps=2000))
        assert result.score == 45
        assert factor_names(result) == ["Sedentary Lifestyle"]

    def test_worst_case_tops_out_at_medium(self):
        result = calculate_cardiovascular_risk(make_days(14, resting_heart_rate=95.0, steps=1000))
        assert result.score == 65  # 30 + 20 + 15
        assert result.level == RiskLevel.MEDIUM


# ─── Sleep ────────────────────────────────────────────────────────────────────

class TestSleepRisk:
    def test_optimal_consistent_sleep(self):
        result = calculate_sleep_risk(make_days(14, sleep_duration=450))
        assert result.category == RiskCategory.SLEEP_QUALITY
        assert result.score == 0  # 25 - 15 - 10
        assert result.level == RiskLevel.LOW
        assert factor_names(result) == ["Optimal Sleep Duration", "Consistent Sleep Schedule"]
        assert "7.5 hours" in result.factors[0].description

    def test_duration_description_rounds_halves_up(self):
        # 435 min = 7.25 h
        result = calculate_sleep_risk(make_days(14, sleep_duration=435))
        assert result.factors[0].description == "Average sleep of 7.3 hours is in the healthy range"

    @pytest.mark.parametrize("minutes,name,score", [
        (240, "Severe Sleep Deficiency", 50),   # 25 + 35 - 10
        (299, "Severe Sleep Deficiency", 50),
        (300, "Insufficient Sleep", 40),        # 25 + 25 - 10
        (359, "Insufficient Sleep", 40),
        (420, "Optimal Sleep Duration", 0),
        (540, "Optimal Sleep Duration", 0),
        (660, "Excessive Sleep", 25),           # 25 + 10 - 10
    ])
    def test_duration_tiers(self, minutes, name, score):
        result = calculate_sleep_risk(make_days(14, sleep_duration=minutes))
        assert result.factors[0].name == name
        assert result.score == score

    @pytest.mark.parametrize("minutes", [360, 400, 541, 600])
    def test_duration_neutral_gaps(self, minutes):
        result = calculate_sleep_risk(make_days(14, sleep_duration=minutes))
        assert factor_names(result) == ["Consistent Sleep Schedule"]
        assert result.score == 15

    def test_severe_deficiency_takes_precedence(self):
        """< 300 also satisfies < 360; only the first tier applies."""
        result = calculate_sleep_risk(make_days(14, sleep_duration=200))
        assert "Insufficient Sleep" not in factor_names(result)

    def test_inconsistent_schedule(self):
        # Alternating 360 / 540: mean 450, variance 90² = 8100
        days = make_days(14)
        days = [replace(d, sleep_duration=360 if i % 2 else 540) for i, d in enumerate(days)]
        result = calculate_sleep_risk(days)
        assert factor_names(result) == ["Optimal Sleep Duration", "Inconsistent Sleep Schedule"]
        assert result.score == 25  # 25 - 15 + 15

    def test_moderate_variance_is_neutral(self):
        # Alternating 410 / 490: variance 40² = 1600
        days = make_days(14)
        days = [replace(d, sleep_duration=410 if i % 2 else 490) for i, d in enumerate(days)]
        result = calculate_sleep_risk(days)
        assert factor_names(result) == ["Optimal Sleep Duration"]

    def test_severe_and_inconsistent_is_high(self):
        days = make_days(14)
        days = [replace(d, sleep_duration=120 if i % 2 else 360) for i, d in enumerate(days)]
        result = calculate_sleep_risk(days)
        assert result.score == 75  # 25 + 35 + 15
        assert result.level == RiskLevel.HIGH


# ─── Activity ─────────────────────────────────────────────────────────────────

class TestActivityRisk:
    def test_very_active_scenario_clamps_to_zero(self):
        days = make_days(14, steps=12000, workout_count=1, active_energy=600.0)
        result = calculate_activity_risk(days)
        assert result.category == RiskCategory.ACTIVITY_LEVEL
        assert result.score == 0  # 30 - 20 - 15 - 10 = -15 → 0
        assert result.level == RiskLevel.LOW
        assert factor_names(result) == ["Excellent Activity Level", "Regular Exercise", "High Active Energy"]

    def test_excellent_excludes_good(self):
        """>= 10000 also satisfies >= 7500; only the first tier applies."""
        result = calculate_activity_risk(with_workouts(make_days(14, steps=15000), 4))
        assert factor_names(result) == ["Excellent Activity Level"]
        assert "15,000 steps/day" in result.factors[0].description

    @pytest.mark.parametrize("steps,name,score", [
        (1000, "Very Low Activity", 60),
        (2999, "Very Low Activity", 60),
        (3000, "Low Activity", 45),
        (4999, "Low Activity", 45),
        (7500, "Good Activity Level", 20),
        (9999, "Good Activity Level", 20),
        (10000, "Excellent Activity Level", 10),
    ])
    def test_steps_tiers(self, steps, name, score):
        # 4 workouts in 14 days = 2/week, 300 kcal: both neutral
        result = calculate_activity_risk(with_workouts(make_days(14, steps=steps), 4))
        assert factor_names(result) == [name]
        assert result.score == score

    @pytest.mark.parametrize("steps", [5000, 6000, 7499])
    def test_steps_neutral_gap(self, steps):
        result = calculate_activity_risk(with_workouts(make_days(14, steps=steps), 4))
        assert result.factors == []
        assert result.score == 30

    def test_infrequent_workouts(self):
        # 1 workout in 14 days = 0.5/week
        result = calculate_activity_risk(with_workouts(make_days(14), 1))
        assert factor_names(result) == ["Infrequent Workouts"]
        assert result.score == 45

    def test_regular_exercise_boundary(self):
        # 6 workouts in 14 days = exactly 3/week
        result = calculate_activity_risk(with_workouts(make_days(14), 6))
        assert factor_names(result) == ["Regular Exercise"]
        assert result.factors[0].description == "3.0 workouts per week is excellent"

    def test_workout_rate_description_rounds_halves_up(self):
        # 13 workouts in 28 days = 3.25/week
        result = calculate_activity_risk(with_workouts(make_days(28), 13))
        assert factor_names(result) == ["Regular Exercise"]
        assert result.factors[0].description == "3.3 workouts per week is excellent"

    @pytest.mark.parametrize("energy,name", [(150.0, "Low Active Energy"), (500.0, "High Active Energy")])
    def test_active_energy(self, energy, name):
        result = calculate_activity_risk(with_workouts(make_days(14, active_energy=energy), 4))
        assert factor_names(result) == [name]

    def test_sedentary_user_is_high(self):
        result = calculate_activity_risk(make_days(14, steps=1500, active_energy=80.0))
        assert result.score == 85  # 30 + 30 + 15 + 10
        assert result.level == RiskLevel.HIGH
        assert [f.contribution for f in result.factors] == [0.6, 0.3, 0.2]


# ─── Combined run ─────────────────────────────────────────────────────────────

class TestCalculateCategoryRisks:
    def test_returns_three_categories_then_overall(self):
        results = calculate_category_risks(make_days(14))
        assert [r.category for r in results] == [
            RiskCategory.CARDIOVASCULAR,
            RiskCategory.SLEEP_QUALITY,
            RiskCategory.ACTIVITY_LEVEL,
            RiskCategory.OVERALL_WELLNESS,
        ]

    def test_empty_window_overall_is_weighted_fallbacks(self):
        results = calculate_category_risks([])
        overall = results[-1]
        assert overall.score == 50
        assert overall.confidence == 0.1
        assert overall.level == RiskLevel.MEDIUM
