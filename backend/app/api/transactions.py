"""
Transaction API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import Optional
from datetime import date

from app.dependencies import get_db, get_current_user_id, get_categorization_engine
from app.exceptions import InvalidCategoryError, LearnedStoreUnavailable, TransactionNotFound
from app.models.category import Category
from app.models.transaction import Transaction
from app.schemas.transaction import (
    CategoryCorrection,
    TransactionListResponse,
    TransactionResponse,
    TransactionSyncRequest,
    TransactionSyncResponse,
)
from app.services.categorization_service import CategorizationEngine
from app.services.correction_service import correct_category
from app.services.sync_service import ingest_transactions

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _paginate(query, page: int, per_page: int) -> TransactionListResponse:
    total = query.count()

    query = query.order_by(Transaction.date.desc(), Transaction.id)
    query = query.offset((page - 1) * per_page).limit(per_page)

    transactions = query.all()
    pages = (total + per_page - 1) // per_page

    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        page=page,
        pages=pages
    )


def _get_user_transaction(db: Session, user_id: str, transaction_id: str) -> Transaction:
    transaction = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.user_id == user_id
    ).first()
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction


@router.post("/sync", response_model=TransactionSyncResponse, status_code=201)
async def sync_transactions(
    request: TransactionSyncRequest,
    user_id: str = Depends(get_current_user_id),
    engine: CategorizationEngine = Depends(get_categorization_engine)
):
    """Ingest a batch of raw transactions from ledger sync and categorize them"""
    return await ingest_transactions(engine, user_id, request.transactions)


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    category: Optional[Category] = None,
    needs_review: Optional[bool] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """List transactions with filtering and pagination"""
    query = db.query(Transaction).filter(Transaction.user_id == user_id)

    if category:
        query = query.filter(Transaction.category == category)
    if needs_review is not None:
        query = query.filter(Transaction.needs_review == needs_review)
    if start_date:
        query = query.filter(Transaction.date >= start_date)
    if end_date:
        query = query.filter(Transaction.date <= end_date)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Transaction.raw_description.ilike(search_term),
                Transaction.merchant_name.ilike(search_term)
            )
        )

    return _paginate(query, page, per_page)


@router.get("/needs-review", response_model=TransactionListResponse)
def list_needs_review(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Transactions flagged for human review"""
    query = db.query(Transaction).filter(
        Transaction.user_id == user_id,
        Transaction.needs_review == True
    )
    return _paginate(query, page, per_page)


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get a single transaction"""
    return TransactionResponse.model_validate(_get_user_transaction(db, user_id, transaction_id))


@router.post("/{transaction_id}/categorize", response_model=TransactionResponse)
async def categorize_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    engine: CategorizationEngine = Depends(get_categorization_engine)
):
    """Re-run categorization for one transaction against current patterns and rules"""
    transaction = _get_user_transaction(engine.db, user_id, transaction_id)
    transaction = await engine.categorize(transaction)
    return TransactionResponse.model_validate(transaction)


@router.put("/{transaction_id}/category", response_model=TransactionResponse)
def correct_transaction_category(
    transaction_id: str,
    correction: CategoryCorrection,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Correct a transaction's category and learn the merchant for future transactions"""
    try:
        transaction = correct_category(db, user_id, transaction_id, correction.category)
    except InvalidCategoryError as e:
        raise HTTPException(status_code=422, detail={"message": e.message, **e.details})
    except TransactionNotFound:
        raise HTTPException(status_code=404, detail="Transaction not found")
    except LearnedStoreUnavailable:
        raise HTTPException(status_code=503, detail="Could not save correction, please retry")

    return TransactionResponse.model_validate(transaction)
