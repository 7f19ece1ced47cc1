"""
Transaction schemas.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal

from app.models.category import Category, CategorizationMethod


class TransactionSyncItem(BaseModel):
    """Raw transaction record delivered by ledger sync."""
    external_id: Optional[str] = Field(None, max_length=255, description="Provider transaction id, used for deduplication")
    date: date
    amount: Decimal
    raw_description: str = ""
    merchant_name: Optional[str] = None


class TransactionSyncRequest(BaseModel):
    transactions: List[TransactionSyncItem] = Field(..., min_length=1)


class TransactionResponse(BaseModel):
    id: str
    user_id: str
    date: date
    amount: Decimal
    raw_description: str
    merchant_name: Optional[str]
    category: Optional[Category]
    categorization_method: Optional[CategorizationMethod]
    confidence: float
    needs_review: bool
    categorized_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionListResponse(BaseModel):
    items: List[TransactionResponse]
    total: int
    page: int
    pages: int


class TransactionSyncResponse(BaseModel):
    imported: int
    skipped: int
    needs_review: int
    items: List[TransactionResponse]


class CategoryCorrection(BaseModel):
    # Plain string so unknown values reach the validator and get a clear error
    category: str
