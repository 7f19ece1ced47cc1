"""
Ingestion of raw transactions delivered by ledger sync.
"""

import logging
import uuid
from typing import List, Set

from app.models.transaction import Transaction
from app.schemas.transaction import TransactionSyncItem, TransactionSyncResponse, TransactionResponse
from app.services.categorization_service import CategorizationEngine
from app.services.deduplication_service import generate_transaction_hash, is_duplicate

logger = logging.getLogger(__name__)


async def ingest_transactions(
    engine: CategorizationEngine,
    user_id: str,
    records: List[TransactionSyncItem]
) -> TransactionSyncResponse:
    """Store new transactions, skip duplicates, and categorize each new one."""
    db = engine.db
    new_transactions: List[Transaction] = []
    seen: Set[str] = set()
    skipped = 0

    for record in records:
        txn_hash = generate_transaction_hash(
            record.date,
            record.amount,
            record.raw_description,
            user_id,
            record.external_id or ""
        )

        if txn_hash in seen or is_duplicate(db, txn_hash):
            skipped += 1
            continue
        seen.add(txn_hash)

        transaction = Transaction(
            id=str(uuid.uuid4()),
            user_id=user_id,
            hash=txn_hash,
            date=record.date,
            amount=record.amount,
            raw_description=record.raw_description,
            merchant_name=record.merchant_name,
        )
        db.add(transaction)
        new_transactions.append(transaction)

    await engine.categorize_many(new_transactions)
    for transaction in new_transactions:
        db.refresh(transaction)

    needs_review = sum(1 for t in new_transactions if t.needs_review)
    logger.info(
        "Synced %d transactions for user %s (%d skipped, %d need review)",
        len(new_transactions), user_id, skipped, needs_review
    )

    return TransactionSyncResponse(
        imported=len(new_transactions),
        skipped=skipped,
        needs_review=needs_review,
        items=[TransactionResponse.model_validate(t) for t in new_transactions]
    )
