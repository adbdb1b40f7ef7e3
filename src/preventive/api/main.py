"""FastAPI application factory."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import SQLModel

from preventive.api.routes import risk_insights
from preventive.config import get_settings
from preventive.db.engine import get_engine
from preventive.monitoring.drift import DriftMonitor
from preventive.services.risk_insights import RiskInsightsService


def create_app() -> FastAPI:
    """Build and return the FastAPI app."""

    engine = get_engine()
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables on startup (idempotent)
        SQLModel.metadata.create_all(engine)
        yield

    app = FastAPI(
        title="Preventive Health Risk API",
        description="Rule-based risk insights over daily health aggregates",
        version="0.1.0",
        lifespan=lifespan,
    )

    # One monitor per process; its running stats live as long as the app.
    app.state.risk_service = RiskInsightsService(
        engine=engine,
        monitor=DriftMonitor(min_samples=settings.drift_min_samples),
        settings=settings,
    )

    app.include_router(risk_insights.router, prefix="/risk-insights", tags=["risk-insights"])

    return app


# Module-level app instance for uvicorn
app = create_app()
