"""Risk score, history and explanation routes."""
from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from preventive.config import get_settings
from preventive.models.risk import RiskScore
from preventive.risk.explainability import Locale
from preventive.services.risk_insights import RiskInsightsService, RiskScoreNotFoundError

router = APIRouter()


class CalculateResponse(BaseModel):
    message: str
    scores: List[RiskScore]


def get_risk_service(request: Request) -> RiskInsightsService:
    """FastAPI dependency returning the app's long-lived service."""
    return request.app.state.risk_service


def get_current_user_id() -> int:
    return get_settings().user_id


@router.get("/", response_model=List[RiskScore])
def latest_risk_scores(
    user_id: int = Depends(get_current_user_id),
    service: RiskInsightsService = Depends(get_risk_service),
):
    """Latest score for each category."""
    return service.get_latest_risk_scores(user_id)


@router.get("/history", response_model=List[RiskScore])
def risk_history(
    category: Optional[str] = None,
    days: int = 30,
    limit: int = 30,
    user_id: int = Depends(get_current_user_id),
    service: RiskInsightsService = Depends(get_risk_service),
):
    """Scores from the last `days` days, newest first."""
    return service.get_risk_history(user_id, category=category, days=days, limit=limit)


@router.post("/calculate", response_model=CalculateResponse)
def calculate_risk_scores(
    user_id: int = Depends(get_current_user_id),
    service: RiskInsightsService = Depends(get_risk_service),
):
    """Run a scoring pass now over the trailing window."""
    scores = service.calculate_risk_scores(user_id)
    message = (
        "Risk scores calculated successfully"
        if scores
        else "Insufficient data for risk calculation"
    )
    return CalculateResponse(message=message, scores=scores)


@router.get("/{score_id}", response_model=RiskScore)
def get_risk_score(
    score_id: int,
    user_id: int = Depends(get_current_user_id),
    service: RiskInsightsService = Depends(get_risk_service),
):
    try:
        return service.get_risk_score(user_id, score_id)
    except RiskScoreNotFoundError:
        raise HTTPException(status_code=404, detail="Risk score not found")


@router.get("/{score_id}/explain")
def explain_risk_score(
    score_id: int,
    locale: Optional[Locale] = None,
    user_id: int = Depends(get_current_user_id),
    service: RiskInsightsService = Depends(get_risk_service),
):
    """Human-readable explanation with recommendations and trend."""
    try:
        explanation = service.get_explanation(user_id, score_id, locale=locale)
    except RiskScoreNotFoundError:
        raise HTTPException(status_code=404, detail="Risk score not found")
    return asdict(explanation)
