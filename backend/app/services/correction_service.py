"""
User correction handling.
"""

import logging
from datetime import datetime
from typing import Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import InvalidCategoryError, LearnedStoreUnavailable, TransactionNotFound
from app.models.category import Category, CategorizationMethod
from app.models.transaction import Transaction
from app.services.confidence_policy import apply_review_policy
from app.services.learned_pattern_store import LearnedPatternStore
from app.services.merchant_normalizer import normalize_merchant_token

logger = logging.getLogger(__name__)


def validate_category(value: Union[str, Category]) -> Category:
    category = Category.from_value(value) if value is not None else None
    if category is None:
        raise InvalidCategoryError(
            f"Unknown category: {value!r}",
            details={"allowed": [c.value for c in Category]}
        )
    return category


def correct_category(
    db: Session,
    user_id: str,
    transaction_id: str,
    new_category: Union[str, Category]
) -> Transaction:
    """
    Apply a user's correction to one transaction and learn it.

    Future transactions for this user with the same merchant token resolve
    through the learned tier. Other existing transactions are left alone
    until a bulk re-categorization is requested.
    """
    category = validate_category(new_category)

    transaction = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.user_id == user_id
    ).first()
    if not transaction:
        raise TransactionNotFound(f"Transaction {transaction_id} not found")

    # Always re-derive the token from the stored description
    token = normalize_merchant_token(transaction.raw_description)
    old_category = transaction.category

    try:
        LearnedPatternStore(db).upsert(
            user_id,
            token,
            category,
            amount=transaction.amount,
            transaction_id=transaction.id
        )

        outcome = apply_review_policy(CategorizationMethod.learned_pattern, category)
        transaction.category = outcome.category
        transaction.categorization_method = outcome.method
        transaction.confidence = outcome.confidence
        transaction.needs_review = outcome.needs_review
        transaction.categorized_at = datetime.utcnow()

        db.commit()
    except LearnedStoreUnavailable:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise LearnedStoreUnavailable("Could not save correction", details={"error": str(e)}) from e

    db.refresh(transaction)
    logger.info(
        "Correction for user %s on %s: %s -> %s (token %r)",
        user_id,
        transaction.id,
        old_category.value if old_category else None,
        category.value,
        token
    )
    return transaction
