"""
Learned pattern schemas.
"""

from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from app.models.category import Category


class LearnedPatternResponse(BaseModel):
    merchant_token: str
    category: Category
    amount: Optional[Decimal]
    transaction_id: Optional[str]
    corrected_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LearnedPatternList(BaseModel):
    patterns: List[LearnedPatternResponse]
    total: int
