"""
RiskInsightsService: runs the risk engine against persisted daily aggregates.

Flow for one scoring run:
  1. Load the user's daily aggregates for the trailing scoring window
  2. Run the three category evaluators + overall blend (pure, no DB access)
  3. Persist one RiskScore row per category
  4. Feed the window through the DriftMonitor and write a ModelEvidenceLog
  5. If any category is high risk, raise an Insight carrying a coaching
     message that has passed the medical-language guardrails

An empty window produces no scores and no evidence.
"""
import json
import logging
from dataclasses import asdict
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Tuple

from sqlmodel import Session, select

from preventive.config import Settings, get_settings
from preventive.models.health import DailyAggregate
from preventive.models.risk import Insight, ModelEvidenceLog, RiskScore
from preventive.monitoring.drift import DriftAnalysis, DriftMonitor, ModelInput
from preventive.risk.categories import calculate_category_risks
from preventive.risk.explainability import (
    ExplanationContext,
    Locale,
    RiskExplanation,
    describe_trend,
    generate_coaching_from_risk,
    generate_explanation,
)
from preventive.risk.guardrails import apply_disclaimer, sanitize_output
from preventive.risk.types import (
    CategoryRiskResult,
    RiskCategory,
    RiskFactor,
    RiskLevel,
    aggregates_to_inputs,
)

logger = logging.getLogger(__name__)

_INSIGHT_CATEGORY_NAMES = {
    RiskCategory.CARDIOVASCULAR: "cardiovascular health",
    RiskCategory.SLEEP_QUALITY: "sleep quality",
    RiskCategory.ACTIVITY_LEVEL: "activity level",
    RiskCategory.OVERALL_WELLNESS: "overall wellness",
}


def _first_day(now: datetime, days: int) -> date:
    """First calendar day of the trailing `days`-day window ending on now's date."""
    return now.date() - timedelta(days=days - 1)


class RiskScoreNotFoundError(LookupError):
    """No risk score with the given id belongs to the user."""


class RiskInsightsService:
    """Scores users, stores results, and answers history/explanation queries."""

    def __init__(self, engine, monitor: DriftMonitor, settings: Optional[Settings] = None):
        """
        Args:
            engine: SQLAlchemy engine (SQLModel create_engine result).
            monitor: long-lived DriftMonitor shared by every scoring run.
            settings: defaults to get_settings().
        """
        self.engine = engine
        self.monitor = monitor
        self.settings = settings or get_settings()

    # ─── Scoring ──────────────────────────────────────────────────────────────

    def calculate_risk_scores(self, user_id: int, now: Optional[datetime] = None) -> List[RiskScore]:
        """
        Score the user's trailing window and persist the results.

        Returns:
            Persisted RiskScore rows in order [cardio, sleep, activity, overall],
            or an empty list if the user has no aggregates in the window.
        """
        now = now or datetime.now(timezone.utc)
        rows = self._load_window(user_id, now)
        if not rows:
            logger.info("No daily aggregates for user %s; skipping risk calculation", user_id)
            return []

        inputs = aggregates_to_inputs(rows)
        results = calculate_category_risks(inputs)
        scores = self._store_scores(user_id, results, now)

        analysis = self.monitor.analyze_drift(ModelInput(aggregates=inputs))
        self._log_model_evidence(analysis, results, now)

        high_risk = [r for r in results if r.level == RiskLevel.HIGH]
        if high_risk:
            self._create_risk_insight(user_id, high_risk[0], now)

        logger.info(
            "Calculated risk for user %s over %d days: %s",
            user_id,
            len(rows),
            ", ".join(f"{r.category.value}={r.score}" for r in results),
        )
        return scores

    def _load_window(self, user_id: int, now: datetime) -> List[DailyAggregate]:
        since = _first_day(now, self.settings.scoring_window_days)
        with Session(self.engine) as s:
            return list(s.exec(
                select(DailyAggregate)
                .where(DailyAggregate.user_id == user_id)
                .where(DailyAggregate.record_date >= since)
                .order_by(DailyAggregate.record_date.desc())
            ).all())

    def _store_scores(
        self, user_id: int, results: List[CategoryRiskResult], now: datetime
    ) -> List[RiskScore]:
        scores = [
            RiskScore(
                user_id=user_id,
                model_version=self.settings.risk_model_version,
                category=result.category.value,
                level=result.level.value,
                score=result.score,
                confidence=result.confidence,
                factors_json=json.dumps([asdict(f) for f in result.factors]),
                created_at=now,
            )
            for result in results
        ]
        with Session(self.engine) as s:
            for score in scores:
                s.add(score)
            s.commit()
            for score in scores:
                s.refresh(score)
        return scores

    def _log_model_evidence(
        self, analysis: DriftAnalysis, results: List[CategoryRiskResult], now: datetime
    ) -> None:
        output_summary = {
            "categories": [
                {"category": r.category.value, "score": r.score, "level": r.level.value}
                for r in results
            ]
        }
        log = ModelEvidenceLog(
            model_version=self.settings.risk_model_version,
            input_hash=analysis.input_hash,
            input_summary_json=json.dumps(asdict(analysis.input_summary)),
            output_summary_json=json.dumps(output_summary),
            drift_score=analysis.drift_score,
            is_anomaly=analysis.is_anomaly,
            created_at=now,
        )
        with Session(self.engine) as s:
            s.add(log)
            s.commit()

        if analysis.is_anomaly:
            logger.warning("Anomalous model input %s", analysis.input_hash)

    def _create_risk_insight(self, user_id: int, top_risk: CategoryRiskResult, now: datetime) -> None:
        category_name = _INSIGHT_CATEGORY_NAMES.get(top_risk.category, top_risk.category.value)
        headline = f"Your {category_name} indicators suggest areas for improvement."
        top_factor = max(top_risk.factors, key=lambda f: f.contribution, default=None)
        coaching = generate_coaching_from_risk(top_risk.level, top_factor, self.settings.locale)

        guarded = sanitize_output(f"{headline} {coaching}")
        if guarded.passed:
            description = guarded.modified
        else:
            logger.warning("Insight text rejected by guardrails: %s", "; ".join(guarded.violations))
            description = apply_disclaimer(headline)

        insight = Insight(
            user_id=user_id,
            title="Health Insight",
            description=description,
            action_target="/insights",
            created_at=now,
        )
        with Session(self.engine) as s:
            s.add(insight)
            s.commit()

    # ─── Queries ──────────────────────────────────────────────────────────────

    def get_latest_risk_scores(self, user_id: int) -> List[RiskScore]:
        """Most recent score per category, overall first."""
        categories = [
            RiskCategory.OVERALL_WELLNESS,
            RiskCategory.CARDIOVASCULAR,
            RiskCategory.SLEEP_QUALITY,
            RiskCategory.ACTIVITY_LEVEL,
        ]
        latest: List[RiskScore] = []
        with Session(self.engine) as s:
            for category in categories:
                score = s.exec(
                    select(RiskScore)
                    .where(RiskScore.user_id == user_id)
                    .where(RiskScore.category == category.value)
                    .order_by(RiskScore.created_at.desc(), RiskScore.id.desc())
                ).first()
                if score:
                    latest.append(score)
        return latest

    def get_risk_history(
        self,
        user_id: int,
        category: Optional[str] = None,
        days: int = 30,
        limit: int = 30,
        now: Optional[datetime] = None,
    ) -> List[RiskScore]:
        """Scores from the last `days` days, newest first."""
        since = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        query = (
            select(RiskScore)
            .where(RiskScore.user_id == user_id)
            .where(RiskScore.created_at >= since)
        )
        if category:
            query = query.where(RiskScore.category == category)
        query = query.order_by(RiskScore.created_at.desc(), RiskScore.id.desc()).limit(limit)

        with Session(self.engine) as s:
            return list(s.exec(query).all())

    def get_risk_score(self, user_id: int, score_id: int) -> RiskScore:
        """
        Raises:
            RiskScoreNotFoundError: if the id is unknown or belongs to another user.
        """
        with Session(self.engine) as s:
            score = s.get(RiskScore, score_id)
        if score is None or score.user_id != user_id:
            raise RiskScoreNotFoundError(f"Risk score {score_id} not found")
        return score

    def get_explanation(
        self,
        user_id: int,
        score_id: int,
        locale: Optional[str] = None,
    ) -> RiskExplanation:
        """Explain a stored score, with a trend if an earlier score exists."""
        score = self.get_risk_score(user_id, score_id)
        locale = Locale(locale or self.settings.locale)

        explanation = generate_explanation(ExplanationContext(
            category=score.category,
            level=RiskLevel(score.level),
            score=score.score,
            confidence=score.confidence,
            factors=[RiskFactor(**f) for f in score.factors()],
            locale=locale,
        ))

        previous = self._previous_score(score)
        if previous is not None:
            period_days = max(1, (score.created_at - previous.created_at).days)
            explanation.trend = describe_trend(score.score, previous.score, period_days, locale)
        return explanation

    def _previous_score(self, score: RiskScore) -> Optional[RiskScore]:
        with Session(self.engine) as s:
            return s.exec(
                select(RiskScore)
                .where(RiskScore.user_id == score.user_id)
                .where(RiskScore.category == score.category)
                .where(RiskScore.created_at < score.created_at)
                .order_by(RiskScore.created_at.desc())
            ).first()

    def active_user_ids(self, now: Optional[datetime] = None) -> List[int]:
        """Users with at least one daily aggregate in the last active_user_days."""
        since = _first_day(now or datetime.now(timezone.utc), self.settings.active_user_days)
        with Session(self.engine) as s:
            rows = s.exec(
                select(DailyAggregate.user_id)
                .where(DailyAggregate.record_date >= since)
                .distinct()
            ).all()
        return sorted(rows)

    # ─── Maintenance ──────────────────────────────────────────────────────────

    def cleanup_old_records(self, now: Optional[datetime] = None) -> Tuple[int, int]:
        """
        Delete scores and evidence older than their retention windows.

        Returns:
            (risk scores deleted, evidence logs deleted)
        """
        now = now or datetime.now(timezone.utc)
        score_cutoff = now - timedelta(days=self.settings.risk_score_retention_days)
        evidence_cutoff = now - timedelta(days=self.settings.evidence_retention_days)

        with Session(self.engine) as s:
            old_scores = s.exec(
                select(RiskScore).where(RiskScore.created_at < score_cutoff)
            ).all()
            old_evidence = s.exec(
                select(ModelEvidenceLog).where(ModelEvidenceLog.created_at < evidence_cutoff)
            ).all()
            for row in [*old_scores, *old_evidence]:
                s.delete(row)
            s.commit()
        scores_deleted, evidence_deleted = len(old_scores), len(old_evidence)

        logger.info(
            "Cleaned up %d old risk scores and %d old model evidence logs",
            scores_deleted,
            evidence_deleted,
        )
        return scores_deleted, evidence_deleted

    def check_drift(self, now: Optional[datetime] = None) -> Optional[float]:
        """
        Average drift score of the last day's evidence for the active model.

        Returns None when no evidence in that day carried a drift score.
        """
        since = (now or datetime.now(timezone.utc)) - timedelta(days=1)
        with Session(self.engine) as s:
            drift_scores = s.exec(
                select(ModelEvidenceLog.drift_score)
                .where(ModelEvidenceLog.model_version == self.settings.risk_model_version)
                .where(ModelEvidenceLog.created_at >= since)
            ).all()

        scored = [d for d in drift_scores if d is not None]
        if not scored:
            logger.info("No recent model evidence for drift analysis")
            return None

        avg_drift = sum(scored) / len(scored)
        if avg_drift > self.settings.drift_alert_threshold:
            logger.warning("High model drift detected: %.2f", avg_drift)
        else:
            logger.info("Model drift within normal range: %.2f", avg_drift)
        return avg_drift
