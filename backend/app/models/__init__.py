"""
Database models package.
"""

from app.models.category import Category, CategorizationMethod
from app.models.transaction import Transaction
from app.models.learned_pattern import LearnedPattern
from app.models.recategorization_job import RecategorizationJob, JobStatus

__all__ = [
    "Category",
    "CategorizationMethod",
    "Transaction",
    "LearnedPattern",
    "RecategorizationJob",
    "JobStatus",
]
