"""
Durable per-user store of merchant token to category mappings.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import LearnedStoreUnavailable
from app.models.category import Category
from app.models.learned_pattern import LearnedPattern
from app.services.merchant_normalizer import normalize_merchant_token

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class LearnedPatternStore:
    """
    Learned patterns keyed by (user_id, merchant_token).

    Writes are a single INSERT ... ON CONFLICT DO UPDATE statement so
    concurrent corrections for the same key serialize in the database
    and the last write wins.
    """

    def __init__(self, db: Session):
        self.db = db

    def lookup(self, user_id: str, merchant_token: str) -> Optional[Category]:
        """
        Return the learned category for this user and token, if any.

        Runs in a savepoint so a failed read leaves the caller's transaction
        usable.
        """
        try:
            with self.db.begin_nested():
                category = self.db.query(LearnedPattern.category).filter(
                    LearnedPattern.user_id == user_id,
                    LearnedPattern.merchant_token == merchant_token
                ).scalar()
        except SQLAlchemyError as e:
            raise LearnedStoreUnavailable(
                "Learned pattern lookup failed",
                details={"user_id": user_id, "error": str(e)}
            ) from e
        return category

    def upsert(
        self,
        user_id: str,
        merchant_token: str,
        category: Category,
        amount: Optional[Decimal] = None,
        transaction_id: Optional[str] = None
    ) -> None:
        """Insert or overwrite the pattern for (user_id, merchant_token). Does not commit."""
        now = datetime.utcnow()
        values = {
            "user_id": user_id,
            "merchant_token": merchant_token,
            "category": category,
            "amount": amount,
            "transaction_id": transaction_id,
            "corrected_at": now,
        }

        try:
            insert = self._insert_for_dialect()
            stmt = insert(LearnedPattern).values(id=str(uuid.uuid4()), **values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[LearnedPattern.user_id, LearnedPattern.merchant_token],
                set_={
                    "category": stmt.excluded.category,
                    "amount": stmt.excluded.amount,
                    "transaction_id": stmt.excluded.transaction_id,
                    "corrected_at": stmt.excluded.corrected_at,
                }
            )
            self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise LearnedStoreUnavailable(
                "Learned pattern write failed",
                details={"user_id": user_id, "merchant_token": merchant_token, "error": str(e)}
            ) from e

        logger.info("Learned pattern stored for user %s: %r -> %s", user_id, merchant_token, category.value)

    def list_for_user(self, user_id: str, limit: int = 100) -> List[LearnedPattern]:
        """Newest corrections first."""
        try:
            return self.db.query(LearnedPattern).filter(
                LearnedPattern.user_id == user_id
            ).order_by(LearnedPattern.corrected_at.desc()).limit(limit).all()
        except SQLAlchemyError as e:
            raise LearnedStoreUnavailable("Learned pattern listing failed", details={"error": str(e)}) from e

    def delete(self, user_id: str, merchant_token: str) -> bool:
        """Forget a learned pattern. Returns False when nothing matched. Does not commit."""
        token = normalize_merchant_token(merchant_token)
        try:
            deleted = self.db.query(LearnedPattern).filter(
                LearnedPattern.user_id == user_id,
                LearnedPattern.merchant_token == token
            ).delete(synchronize_session=False)
        except SQLAlchemyError as e:
            raise LearnedStoreUnavailable("Learned pattern delete failed", details={"error": str(e)}) from e

        if deleted:
            logger.info("Deleted learned pattern for user %s: %r", user_id, token)
        return bool(deleted)

    def count(self, user_id: Optional[str] = None) -> int:
        query = self.db.query(func.count(LearnedPattern.id))
        if user_id:
            query = query.filter(LearnedPattern.user_id == user_id)
        return query.scalar() or 0

    def _insert_for_dialect(self):
        dialect = self.db.get_bind().dialect.name
        insert = _DIALECT_INSERTS.get(dialect)
        if insert is None:
            raise LearnedStoreUnavailable(
                f"Atomic upsert is not supported on dialect {dialect!r}",
                details={"dialect": dialect}
            )
        return insert
