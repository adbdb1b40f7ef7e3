"""SQLModel engine singleton."""
from sqlmodel import SQLModel, create_engine

from preventive.config import get_settings

_engine = None


def get_engine():
    """Return the module-level engine, creating it on first call."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False},  # SQLite only; safe for FastAPI
        )
        # Import all models so metadata is populated before create_all
        from preventive.models.health import DailyAggregate  # noqa
        from preventive.models.risk import Insight, ModelEvidenceLog, RiskScore  # noqa
        SQLModel.metadata.create_all(_engine)
    return _engine
