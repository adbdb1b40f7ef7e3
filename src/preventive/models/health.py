"""Daily aggregate model: one row per user per calendar day."""
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class DailyAggregate(SQLModel, table=True):
    """Per-day rollup of a user's health samples, written by the ingestion layer."""

    __table_args__ = (UniqueConstraint("user_id", "record_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(default=1, index=True)
    record_date: date = Field(index=True)

    steps: int = 0
    active_energy: float = 0.0  # kcal
    sleep_duration: int = 0  # minutes
    average_heart_rate: Optional[float] = None  # bpm
    resting_heart_rate: Optional[float] = None  # bpm
    workout_count: int = 0
    workout_duration: int = 0  # minutes

    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
