"""
Category and categorizer schemas.
"""

from pydantic import BaseModel
from typing import List, Optional


class CategoryResponse(BaseModel):
    name: str
    value: str


class CategoryList(BaseModel):
    items: List[CategoryResponse]
    total: int


class CategorizationStats(BaseModel):
    learned_patterns: int
    rules: int
    review_threshold: float
    ai_enabled: bool
    ai_provider: Optional[str]
    ai_model: Optional[str]
    ai_circuit_state: Optional[str]
