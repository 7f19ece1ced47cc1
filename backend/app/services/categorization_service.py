"""
Categorization orchestrator.

Resolves a transaction's category through the tiers in strict order:
learned pattern, rule table, AI fallback, default. Tier failures are
logged and fall through to the next tier; a transaction always ends up
with a category.
"""

import logging
import re
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.ai.classifier import AIClassifier
from app.exceptions import AIProviderError, LearnedStoreUnavailable
from app.models.category import CategorizationMethod
from app.models.transaction import Transaction
from app.services.confidence_policy import CategorizationOutcome, apply_review_policy
from app.services.learned_pattern_store import LearnedPatternStore
from app.services.merchant_normalizer import normalize_merchant_token
from app.services.rule_classifier import RuleClassifier

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def build_ai_text(raw_description: str, merchant_name: Optional[str] = None) -> str:
    """Lightly cleaned text sent to the AI tier."""
    description = _WHITESPACE.sub(" ", raw_description or "").strip()
    merchant = _WHITESPACE.sub(" ", merchant_name or "").strip()
    if merchant and merchant.lower() not in description.lower():
        return f"{merchant} - {description}"
    return description


class CategorizationEngine:
    """
    Per-transaction categorization pipeline.

    Holds no locks; independent transactions can be categorized
    concurrently on separate sessions.
    """

    def __init__(
        self,
        db: Session,
        rule_classifier: RuleClassifier,
        ai_classifier: Optional[AIClassifier] = None,
        review_threshold: Optional[float] = None
    ):
        self.db = db
        self.store = LearnedPatternStore(db)
        self.rule_classifier = rule_classifier
        self.ai_classifier = ai_classifier
        self.review_threshold = review_threshold

    async def resolve(
        self,
        user_id: str,
        raw_description: str,
        merchant_name: Optional[str] = None
    ) -> CategorizationOutcome:
        """Run the tiers for one description without persisting anything."""
        token = normalize_merchant_token(raw_description)

        try:
            learned = self.store.lookup(user_id, token)
        except LearnedStoreUnavailable as e:
            logger.warning("Learned pattern store unavailable, using rules: %s", e.message)
            learned = None

        if learned is not None:
            logger.debug("Learned pattern hit for %r -> %s", token, learned.value)
            return self._outcome(CategorizationMethod.learned_pattern, learned)

        match = self.rule_classifier.classify(token)
        if match is not None:
            logger.debug("Rule %s matched %r -> %s", match.rule_name, token, match.category.value)
            return self._outcome(CategorizationMethod.rule_based, match.category, match.confidence)

        if self.ai_classifier is not None:
            try:
                result = await self.ai_classifier.classify(build_ai_text(raw_description, merchant_name))
            except AIProviderError as e:
                logger.warning("AI fallback gave no result for %r: %s", token, e.message)
            else:
                return self._outcome(CategorizationMethod.ai_fallback, result.category, result.confidence)

        return self._outcome(None)

    async def categorize(self, transaction: Transaction, commit: bool = True) -> Transaction:
        """Resolve and write the categorization fields of one transaction."""
        outcome = await self.resolve(
            transaction.user_id,
            transaction.raw_description,
            transaction.merchant_name
        )
        apply_outcome(transaction, outcome)

        if commit:
            self.db.commit()
            self.db.refresh(transaction)
        return transaction

    async def categorize_many(self, transactions: Iterable[Transaction]) -> List[Transaction]:
        """Categorize an ingestion batch and commit once."""
        categorized = []
        for transaction in transactions:
            categorized.append(await self.categorize(transaction, commit=False))
        self.db.commit()
        return categorized

    def _outcome(self, method, category=None, confidence=None) -> CategorizationOutcome:
        return apply_review_policy(method, category, confidence, threshold=self.review_threshold)


def apply_outcome(transaction: Transaction, outcome: CategorizationOutcome) -> bool:
    """Write an outcome onto a transaction. Returns True if any field changed."""
    changed = (
        transaction.category != outcome.category
        or transaction.categorization_method != outcome.method
        or transaction.confidence != outcome.confidence
        or transaction.needs_review != outcome.needs_review
        or transaction.categorized_at is None
    )
    if changed:
        transaction.category = outcome.category
        transaction.categorization_method = outcome.method
        transaction.confidence = outcome.confidence
        transaction.needs_review = outcome.needs_review
        transaction.categorized_at = datetime.utcnow()
    return changed
