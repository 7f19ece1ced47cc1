"""
Category and categorizer API endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.ai.classifier import AIClassifier, LLMClassifier, get_ai_classifier
from app.config import settings
from app.dependencies import get_db, get_current_user_id
from app.models.category import Category
from app.schemas.category import CategoryList, CategoryResponse, CategorizationStats
from app.services.learned_pattern_store import LearnedPatternStore
from app.services.rule_classifier import RuleClassifier, get_rule_classifier

router = APIRouter(tags=["categories"])


@router.get("/categories", response_model=CategoryList)
def list_categories():
    """List the closed set of categories."""
    items = [CategoryResponse(name=c.name, value=c.value) for c in Category]
    return CategoryList(items=items, total=len(items))


@router.get("/categorization/stats", response_model=CategorizationStats)
def get_categorization_stats(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    rule_classifier: RuleClassifier = Depends(get_rule_classifier),
    ai_classifier: Optional[AIClassifier] = Depends(get_ai_classifier)
):
    """Learned pattern count for the user plus categorizer configuration."""
    circuit_state = None
    if isinstance(ai_classifier, LLMClassifier):
        circuit_state = ai_classifier.breaker.state

    return CategorizationStats(
        learned_patterns=LearnedPatternStore(db).count(user_id),
        rules=len(rule_classifier.rules),
        review_threshold=settings.review_threshold,
        ai_enabled=ai_classifier is not None,
        ai_provider=settings.ai_provider if ai_classifier is not None else None,
        ai_model=settings.ai_model if ai_classifier is not None else None,
        ai_circuit_state=circuit_state
    )
