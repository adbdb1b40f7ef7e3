"""
Input drift and anomaly monitoring for the risk model.

Every scoring run can be fed through DriftMonitor.analyze_drift(), which:
  1. Fingerprints the input (rounded values, so near-identical windows
     share a hash)
  2. Summarises it (counts and rounded means only, no identifiers)
  3. Flags obviously impossible inputs as anomalies (sanity bounds)
  4. Scores drift as the z-score of the window's mean steps against the
     running history of previously accepted windows
  5. Folds non-anomalous inputs into that running history

The running history lives on the DriftMonitor instance and is guarded by a
lock: the scheduler calls into the same monitor from worker threads.
"""
import hashlib
import json
import math
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

from preventive.risk.policy import round_half_up

DEFAULT_MIN_SAMPLES = 100

# Sanity bounds on window means
MAX_AVG_STEPS = 50000
MAX_AVG_SLEEP_MINUTES = 720
MAX_AVG_ENERGY_KCAL = 5000


class AggregateLike(Protocol):
    steps: int
    sleep_duration: int
    active_energy: float
    average_heart_rate: Optional[float]
    resting_heart_rate: Optional[float]


@dataclass
class UserProfile:
    age: Optional[int] = None
    gender: Optional[str] = None
    activity_level: Optional[str] = None


@dataclass
class ModelInput:
    aggregates: List[AggregateLike]
    profile: Optional[UserProfile] = None


@dataclass
class InputSummary:
    data_point_count: int
    avg_steps: int
    avg_sleep: int
    avg_energy: int
    has_heart_rate_data: bool


@dataclass
class DriftAnalysis:
    input_hash: str
    input_summary: InputSummary
    drift_score: Optional[float]  # None until enough history, 0-1 otherwise
    is_anomaly: bool
    timestamp: datetime


@dataclass
class InputStats:
    """Running sums over accepted input summaries."""
    count: int = 0
    steps_sum: float = 0.0
    steps_squared_sum: float = 0.0
    sleep_sum: float = 0.0
    sleep_squared_sum: float = 0.0


# ─── Pure helpers ──────────────────────────────────────────────────────────────

def _round_to(value: float, step: int) -> int:
    return round_half_up(value / step) * step


def generate_input_hash(model_input: ModelInput) -> str:
    """
    Fingerprint an input for deduplication and tracking (not security).

    Steps are rounded to the nearest 100, sleep and energy to the nearest 10.
    Returns the first 16 hex chars of a SHA-256 over compact JSON.
    """
    normalized = {
        "aggregatesHash": [
            {
                "s": _round_to(a.steps, 100),
                "sl": _round_to(a.sleep_duration, 10),
                "e": _round_to(a.active_energy, 10),
            }
            for a in model_input.aggregates
        ],
        "hasProfile": model_input.profile is not None,
    }
    payload = json.dumps(normalized, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def generate_input_summary(model_input: ModelInput) -> InputSummary:
    aggregates = model_input.aggregates
    if not aggregates:
        return InputSummary(
            data_point_count=0,
            avg_steps=0,
            avg_sleep=0,
            avg_energy=0,
            has_heart_rate_data=False,
        )

    n = len(aggregates)
    return InputSummary(
        data_point_count=n,
        avg_steps=round_half_up(sum(a.steps for a in aggregates) / n),
        avg_sleep=round_half_up(sum(a.sleep_duration for a in aggregates) / n),
        avg_energy=round_half_up(sum(a.active_energy for a in aggregates) / n),
        has_heart_rate_data=any(a.average_heart_rate is not None for a in aggregates),
    )


def is_input_anomaly(model_input: ModelInput) -> bool:
    summary = generate_input_summary(model_input)
    return (
        summary.avg_steps > MAX_AVG_STEPS
        or summary.avg_sleep > MAX_AVG_SLEEP_MINUTES
        or summary.avg_energy > MAX_AVG_ENERGY_KCAL
        or summary.data_point_count == 0
    )


# ─── Monitor ───────────────────────────────────────────────────────────────────

class DriftMonitor:
    """Owns the running input statistics used for drift scoring."""

    def __init__(
        self,
        min_samples: int = DEFAULT_MIN_SAMPLES,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            min_samples: accepted inputs required before drift is scored.
            clock: returns the analysis timestamp (defaults to UTC now).
        """
        self.min_samples = min_samples
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._stats = InputStats()
        self._lock = threading.Lock()

    @property
    def stats(self) -> InputStats:
        """Snapshot copy of the running statistics."""
        with self._lock:
            return replace(self._stats)

    def calculate_drift_score(self, model_input: ModelInput) -> Optional[float]:
        """
        Drift of this input's mean steps against accepted history, in [0, 1].

        Returns None with fewer than min_samples accepted inputs, or when the
        historical spread is zero.
        """
        with self._lock:
            return self._drift_score_locked(model_input)

    def update_input_stats(self, model_input: ModelInput) -> None:
        with self._lock:
            self._update_locked(model_input)

    def analyze_drift(self, model_input: ModelInput) -> DriftAnalysis:
        """
        Full drift analysis for model evidence logging.

        Side effect: a non-anomalous input is folded into the running stats
        after its own drift score is computed.
        """
        input_hash = generate_input_hash(model_input)
        summary = generate_input_summary(model_input)
        is_anomaly = is_input_anomaly(model_input)

        with self._lock:
            drift_score = self._drift_score_locked(model_input)
            if not is_anomaly:
                self._update_locked(model_input)

        return DriftAnalysis(
            input_hash=input_hash,
            input_summary=summary,
            drift_score=drift_score,
            is_anomaly=is_anomaly,
            timestamp=self._clock(),
        )

    def reset_input_stats(self) -> None:
        """Zero the running statistics (tests, retraining)."""
        with self._lock:
            self._stats = InputStats()

    # ─── Internal helpers (caller holds the lock) ──────────────────────────────

    def _drift_score_locked(self, model_input: ModelInput) -> Optional[float]:
        stats = self._stats
        if stats.count < self.min_samples:
            return None

        summary = generate_input_summary(model_input)
        steps_mean = stats.steps_sum / stats.count
        # E[x²] - E[x]² can dip just below zero from float error
        steps_variance = max(0.0, stats.steps_squared_sum / stats.count - steps_mean ** 2)
        steps_std = math.sqrt(steps_variance)

        if steps_std == 0:
            return None

        z_score = abs((summary.avg_steps - steps_mean) / steps_std)
        return min(1.0, z_score / 3)

    def _update_locked(self, model_input: ModelInput) -> None:
        summary = generate_input_summary(model_input)
        stats = self._stats
        stats.count += 1
        stats.steps_sum += summary.avg_steps
        stats.steps_squared_sum += summary.avg_steps ** 2
        stats.sleep_sum += summary.avg_sleep
        stats.sleep_squared_sum += summary.avg_sleep ** 2
