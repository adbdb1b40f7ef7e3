"""
Safety guardrails for risk-related text shown to users.

Risk insights are educational, never diagnostic. Text is rejected if it
contains diagnostic or prescriptive phrasing, and gets the standard
disclaimer appended if it talks about risk at all.
"""
from dataclasses import dataclass, field
from typing import List, Optional

DISCLAIMER = (
    "This information is for educational purposes only and does not constitute "
    "medical advice. Please consult a healthcare professional for personalized guidance."
)

FORBIDDEN_PHRASES = [
    "you have",
    "you are diagnosed",
    "diagnosis",
    "disease",
    "condition",
    "treatment",
    "medication",
    "prescription",
    "cure",
    "consult a doctor immediately",
    "medical emergency",
    "you should take",
    "you need to take",
]

DISCLAIMER_TRIGGERS = [
    "risk",
    "symptoms",
    "concerning",
    "elevated",
    "abnormal",
    "irregular",
]


@dataclass
class GuardrailResult:
    passed: bool
    violations: List[str] = field(default_factory=list)
    requires_disclaimer: bool = False
    modified: Optional[str] = None  # set by sanitize_output when passed


def check_medical_language(text: str) -> GuardrailResult:
    """Flag forbidden phrases and note whether a disclaimer is needed."""
    lower = text.lower()
    violations = [
        f'Contains forbidden phrase: "{phrase}"'
        for phrase in FORBIDDEN_PHRASES
        if phrase in lower
    ]
    requires_disclaimer = any(trigger in lower for trigger in DISCLAIMER_TRIGGERS)
    return GuardrailResult(
        passed=not violations,
        violations=violations,
        requires_disclaimer=requires_disclaimer,
    )


def apply_disclaimer(text: str) -> str:
    return f"{text}\n\n*{DISCLAIMER}*"


def sanitize_output(text: str) -> GuardrailResult:
    """
    Check text and, if it passes, return it (with disclaimer when required)
    in `modified`. Failing text is returned unmodified with its violations.
    Text that already carries the disclaimer is not given a second one.
    """
    result = check_medical_language(text)
    if not result.passed:
        return result

    needs_footer = result.requires_disclaimer and DISCLAIMER not in text
    result.modified = apply_disclaimer(text) if needs_footer else text
    return result
