from typing import Optional

from pydantic_settings import BaseSettings

from preventive.risk.explainability import Locale


class Settings(BaseSettings):
    database_url: str = "sqlite:///./preventive.db"
    user_id: int = 1  # single-user MVP; multi-user: swap for JWT claim
    locale: Locale = Locale.EN  # en | th

    risk_model_version: str = "v1.0.0"
    scoring_window_days: int = 14
    active_user_days: int = 7

    drift_min_samples: int = 100
    drift_alert_threshold: float = 0.7

    risk_score_retention_days: int = 90
    evidence_retention_days: int = 30

    # Cron hours (UTC)
    risk_calculation_hour: int = 6
    drift_check_hour: int = 3
    cleanup_hour: int = 2

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
