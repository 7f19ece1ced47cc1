"""
Pydantic schemas package.
"""

from app.schemas.category import (
    CategoryResponse,
    CategoryList,
    CategorizationStats,
)
from app.schemas.learned_pattern import (
    LearnedPatternResponse,
    LearnedPatternList,
)
from app.schemas.recategorization import (
    RecategorizeRequest,
    RecategorizationJobResponse,
)
from app.schemas.transaction import (
    TransactionSyncItem,
    TransactionSyncRequest,
    TransactionSyncResponse,
    TransactionResponse,
    TransactionListResponse,
    CategoryCorrection,
)

__all__ = [
    "CategoryResponse",
    "CategoryList",
    "CategorizationStats",
    "LearnedPatternResponse",
    "LearnedPatternList",
    "RecategorizeRequest",
    "RecategorizationJobResponse",
    "TransactionSyncItem",
    "TransactionSyncRequest",
    "TransactionSyncResponse",
    "TransactionResponse",
    "TransactionListResponse",
    "CategoryCorrection",
]
