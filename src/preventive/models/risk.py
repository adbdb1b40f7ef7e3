"""Risk scoring output models: scores, model evidence, insights."""
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlmodel import Field, SQLModel


class RiskScore(SQLModel, table=True):
    """One category score produced by a scoring run."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(default=1, index=True)
    model_version: str
    category: str = Field(index=True)  # RiskCategory value
    level: str  # RiskLevel value
    score: int
    confidence: float
    factors_json: str = "[]"  # list of {name, contribution, description}
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)

    def factors(self) -> List[Dict[str, Any]]:
        return json.loads(self.factors_json or "[]")


class ModelEvidenceLog(SQLModel, table=True):
    """Input fingerprint, drift analysis and outputs of one scoring run."""

    id: Optional[int] = Field(default=None, primary_key=True)
    model_version: str = Field(index=True)
    input_hash: str
    input_summary_json: str
    output_summary_json: str
    drift_score: Optional[float] = None
    is_anomaly: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)


class Insight(SQLModel, table=True):
    """User-facing insight raised when a category scores high risk."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(default=1, index=True)
    insight_type: str = "RISK"
    title: str
    description: str
    priority: str = "HIGH"
    actionable: bool = True
    action_target: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
