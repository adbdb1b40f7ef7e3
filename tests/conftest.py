"""Shared test fixtures."""
from datetime import date, timedelta
from typing import Callable, Generator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from preventive.models.health import DailyAggregate  # noqa: F401
from preventive.models.risk import Insight, ModelEvidenceLog, RiskScore  # noqa: F401
from preventive.config import Settings
from preventive.monitoring.drift import DriftMonitor
from preventive.services.risk_insights import RiskInsightsService


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="settings")
def settings_fixture() -> Settings:
    return Settings(database_url="sqlite:///:memory:", user_id=1)


@pytest.fixture(name="monitor")
def monitor_fixture() -> DriftMonitor:
    return DriftMonitor(min_samples=100)


@pytest.fixture(name="service")
def service_fixture(engine, monitor, settings) -> RiskInsightsService:
    return RiskInsightsService(engine=engine, monitor=monitor, settings=settings)


@pytest.fixture(name="seed_days")
def seed_days_fixture(engine) -> Callable[..., int]:
    """
    Insert `days` consecutive DailyAggregate rows ending at `end`.

    Field overrides apply to every row.
    """
    def _seed(days: int = 14, end: date = date(2025, 3, 14), user_id: int = 1, **fields):
        values = dict(
            steps=8000,
            active_energy=350.0,
            sleep_duration=450,
            average_heart_rate=72.0,
            resting_heart_rate=65.0,
            workout_count=0,
            workout_duration=0,
        )
        values.update(fields)
        rows = [
            DailyAggregate(user_id=user_id, record_date=end - timedelta(days=i), **values)
            for i in range(days)
        ]
        with Session(engine) as s:
            for row in rows:
                s.add(row)
            s.commit()
        return len(rows)

    return _seed
