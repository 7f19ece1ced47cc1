"""
Transaction database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Date, Numeric, Text, Float, Enum, Index
from app.database import Base
from app.models.category import Category, CategorizationMethod


class Transaction(Base):
    """Transaction model. Ledger sync owns the row; the engine writes the categorization fields."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    hash = Column(String(64), unique=True, nullable=False, index=True)  # For deduplication
    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)  # Negative = expense, positive = income
    raw_description = Column(Text, nullable=False)
    merchant_name = Column(String(255), nullable=True)

    # Categorization fields
    category = Column(Enum(Category), nullable=True)
    categorization_method = Column(Enum(CategorizationMethod), nullable=True)
    confidence = Column(Float, default=0.0, nullable=False)
    needs_review = Column(Boolean, default=True, nullable=False)
    categorized_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Indexes for common queries
    __table_args__ = (
        Index("idx_transaction_user_date", "user_id", "date"),
        Index("idx_transaction_user_review", "user_id", "needs_review"),
    )
