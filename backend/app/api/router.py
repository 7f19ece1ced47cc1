"""
Main API router.
"""

from fastapi import APIRouter
from app.api import categories, learned_patterns, recategorize, transactions

api_router = APIRouter()

api_router.include_router(transactions.router)
api_router.include_router(learned_patterns.router)
api_router.include_router(recategorize.router)
api_router.include_router(categories.router)
