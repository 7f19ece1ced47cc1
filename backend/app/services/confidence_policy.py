"""
Confidence and review policy.

Turns the tier that produced a category into the persisted confidence
and review flag.
"""

import math
from dataclasses import dataclass
from typing import Optional

from app.config import settings
from app.models.category import Category, CategorizationMethod

LEARNED_CONFIDENCE = 1.0
DEFAULT_CATEGORY = Category.other


@dataclass(frozen=True)
class CategorizationOutcome:
    category: Category
    method: Optional[CategorizationMethod]  # None when no tier produced a result
    confidence: float
    needs_review: bool


def clamp_confidence(value: Optional[float]) -> float:
    if value is None:
        return 0.0
    value = float(value)
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def apply_review_policy(
    method: Optional[CategorizationMethod],
    category: Optional[Category] = None,
    raw_confidence: Optional[float] = None,
    threshold: Optional[float] = None
) -> CategorizationOutcome:
    """
    Learned patterns are ground truth: confidence 1.0, never reviewed.
    Rule and AI results are reviewed below the threshold.
    No result means "Other" at 0.0, always reviewed.
    """
    if threshold is None:
        threshold = settings.review_threshold

    if method is None or category is None:
        return CategorizationOutcome(
            category=DEFAULT_CATEGORY,
            method=None,
            confidence=0.0,
            needs_review=True
        )

    if method == CategorizationMethod.learned_pattern:
        return CategorizationOutcome(
            category=category,
            method=method,
            confidence=LEARNED_CONFIDENCE,
            needs_review=False
        )

    confidence = clamp_confidence(raw_confidence)
    return CategorizationOutcome(
        category=category,
        method=method,
        confidence=confidence,
        needs_review=confidence < threshold
    )
