"""
Learned pattern database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Numeric, Enum, Index, UniqueConstraint
from app.config import MERCHANT_TOKEN_COLUMN_LENGTH
from app.database import Base
from app.models.category import Category


class LearnedPattern(Base):
    """Per-user merchant token to category mapping written by user corrections."""

    __tablename__ = "learned_patterns"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False)
    merchant_token = Column(String(MERCHANT_TOKEN_COLUMN_LENGTH), nullable=False)
    category = Column(Enum(Category), nullable=False)
    amount = Column(Numeric(12, 2), nullable=True)  # Informational, not used for matching
    transaction_id = Column(String(36), nullable=True)
    corrected_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "merchant_token", name="uq_learned_pattern_user_token"),
        Index("idx_learned_pattern_user_category", "user_id", "category"),
    )
