"""
Human-readable explanations for risk scores, in English or Thai.

  generate_explanation()         summary + top 3 factors + disclaimer
  describe_trend()               improving / stable / declining between scores
  generate_coaching_from_risk()  short coaching message for a risk level
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from preventive.risk.guardrails import DISCLAIMER, apply_disclaimer
from preventive.risk.policy import round_half_up
from preventive.risk.types import RiskFactor, RiskLevel


class Locale(str, Enum):
    EN = "en"
    TH = "th"


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


STABLE_CHANGE = 5  # score points
PRIMARY_FACTOR_COUNT = 3
LIMITED_DATA_CONFIDENCE = 0.5

LEVEL_DESCRIPTIONS: Dict[Locale, Dict[RiskLevel, str]] = {
    Locale.EN: {
        RiskLevel.LOW: "Your indicators are in a healthy range.",
        RiskLevel.MEDIUM: "Some areas could benefit from attention.",
        RiskLevel.HIGH: "Several factors warrant focused improvement.",
    },
    Locale.TH: {
        RiskLevel.LOW: "ตัวชี้วัดของคุณอยู่ในเกณฑ์ปกติ",
        RiskLevel.MEDIUM: "มีบางด้านที่ควรให้ความสนใจ",
        RiskLevel.HIGH: "มีหลายปัจจัยที่ควรปรับปรุง",
    },
}

CATEGORY_NAMES: Dict[Locale, Dict[str, str]] = {
    Locale.EN: {
        "OVERALL_WELLNESS": "Overall Wellness",
        "CARDIOVASCULAR": "Cardiovascular Health",
        "SLEEP_QUALITY": "Sleep Quality",
        "ACTIVITY_LEVEL": "Activity Level",
    },
    Locale.TH: {
        "OVERALL_WELLNESS": "สุขภาพโดยรวม",
        "CARDIOVASCULAR": "สุขภาพหัวใจ",
        "SLEEP_QUALITY": "คุณภาพการนอน",
        "ACTIVITY_LEVEL": "การเคลื่อนไหว",
    },
}

LIMITED_DATA_NOTE = {
    Locale.EN: " (Limited data available)",
    Locale.TH: " (ข้อมูลมีจำกัด)",
}

DISCLAIMERS = {
    Locale.EN: DISCLAIMER,
    Locale.TH: (
        "ข้อมูลนี้มีวัตถุประสงค์เพื่อการศึกษาเท่านั้น และไม่ถือเป็นคำแนะนำทางการแพทย์ "
        "กรุณาปรึกษาแพทย์สำหรับคำแนะนำเฉพาะบุคคล"
    ),
}

# Keyed by RiskFactor.name as produced by the category evaluators
RECOMMENDATIONS: Dict[Locale, Dict[str, str]] = {
    Locale.EN: {
        "Low Activity": "Try to add a 10-minute walk to your daily routine.",
        "Very Low Activity": "Start with small changes like taking stairs or parking farther away.",
        "Insufficient Sleep": "Aim to get to bed 30 minutes earlier tonight.",
        "Severe Sleep Deficiency": "Prioritize sleep as a key health goal.",
        "Inconsistent Sleep Schedule": "Try to wake up and go to bed at similar times each day.",
        "Elevated Resting Heart Rate": "Consider incorporating relaxation techniques or light cardio.",
        "Infrequent Workouts": "Start with even 15 minutes of exercise a few times per week.",
        "Sedentary Lifestyle": "Set hourly reminders to stand up and move around.",
    },
    Locale.TH: {
        "Low Activity": "ลองเพิ่มการเดิน 10 นาทีในชีวิตประจำวัน",
        "Very Low Activity": "เริ่มจากการเปลี่ยนแปลงเล็กๆ เช่น เดินขึ้นบันได",
        "Insufficient Sleep": "พยายามเข้านอนเร็วขึ้น 30 นาทีคืนนี้",
        "Severe Sleep Deficiency": "ให้ความสำคัญกับการนอนหลับเป็นเป้าหมายหลัก",
        "Inconsistent Sleep Schedule": "พยายามตื่นและนอนเวลาเดียวกันทุกวัน",
        "Elevated Resting Heart Rate": "ลองฝึกเทคนิคผ่อนคลายหรือคาร์ดิโอเบาๆ",
        "Infrequent Workouts": "เริ่มจากออกกำลังกาย 15 นาทีสัปดาห์ละหลายครั้ง",
        "Sedentary Lifestyle": "ตั้งเตือนทุกชั่วโมงให้ลุกขึ้นเคลื่อนไหว",
    },
}

COACHING_MESSAGES: Dict[Locale, Dict[RiskLevel, str]] = {
    Locale.EN: {
        RiskLevel.LOW: "You're doing great! Keep up your healthy habits.",
        RiskLevel.MEDIUM: "There's room for improvement. Small changes can make a big difference.",
        RiskLevel.HIGH: "Let's focus on key areas to improve your wellbeing.",
    },
    Locale.TH: {
        RiskLevel.LOW: "คุณทำได้ดีมาก! รักษาพฤติกรรมสุขภาพดีไว้นะ",
        RiskLevel.MEDIUM: "มีโอกาสปรับปรุง การเปลี่ยนแปลงเล็กๆ สร้างความแตกต่างได้",
        RiskLevel.HIGH: "มาโฟกัสพื้นที่สำคัญเพื่อปรับปรุงสุขภาพกันเถอะ",
    },
}


@dataclass
class ExplanationContext:
    category: str
    level: RiskLevel
    score: int
    confidence: float
    factors: List[RiskFactor]
    locale: Locale = Locale.EN


@dataclass
class FactorExplanation:
    factor: RiskFactor
    explanation: str
    recommendation: Optional[str] = None


@dataclass
class RiskTrend:
    direction: TrendDirection
    change: int
    period: str


@dataclass
class RiskExplanation:
    summary: str
    primary_factors: List[FactorExplanation]
    disclaimer: str
    trend: Optional[RiskTrend] = None


def get_recommendation(factor_name: str, locale: Locale = Locale.EN) -> Optional[str]:
    return RECOMMENDATIONS[Locale(locale)].get(factor_name)


def generate_explanation(context: ExplanationContext) -> RiskExplanation:
    """
    Explain a scored category.

    The summary names the category and its level, with a limited-data note
    when confidence < 0.5. The three largest factors by |contribution| are
    listed with their recommendation, if one exists.
    """
    locale = Locale(context.locale)
    level = RiskLevel(context.level)
    category_name = CATEGORY_NAMES[locale].get(context.category, context.category)

    summary = f"{category_name}: {LEVEL_DESCRIPTIONS[locale][level]}"
    if context.confidence < LIMITED_DATA_CONFIDENCE:
        summary += LIMITED_DATA_NOTE[locale]

    ranked = sorted(context.factors, key=lambda f: abs(f.contribution), reverse=True)
    primary_factors = [
        FactorExplanation(
            factor=factor,
            explanation=factor.description,
            recommendation=get_recommendation(factor.name, locale),
        )
        for factor in ranked[:PRIMARY_FACTOR_COUNT]
    ]

    return RiskExplanation(
        summary=summary,
        primary_factors=primary_factors,
        disclaimer=DISCLAIMERS[locale],
    )


def describe_trend(
    current_score: float,
    previous_score: float,
    period_days: int,
    locale: Locale = Locale.EN,
) -> RiskTrend:
    """Lower scores are better, so a falling score is an improvement."""
    change = previous_score - current_score
    if abs(change) < STABLE_CHANGE:
        direction = TrendDirection.STABLE
    elif change > 0:
        direction = TrendDirection.IMPROVING
    else:
        direction = TrendDirection.DECLINING

    if Locale(locale) == Locale.TH:
        period = f"ในช่วง {period_days} วันที่ผ่านมา"
    else:
        period = f"over the last {period_days} days"

    return RiskTrend(direction=direction, change=abs(round_half_up(change)), period=period)


def generate_coaching_from_risk(
    level: RiskLevel,
    top_factor: Optional[RiskFactor] = None,
    locale: Locale = Locale.EN,
) -> str:
    locale = Locale(locale)
    message = COACHING_MESSAGES[locale][RiskLevel(level)]

    if top_factor is not None:
        recommendation = get_recommendation(top_factor.name, locale)
        if recommendation:
            message += f"\n\n💡 {recommendation}"

    return apply_disclaimer(message)
