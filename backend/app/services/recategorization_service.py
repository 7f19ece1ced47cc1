"""
Bulk re-categorization jobs.

A job walks a user's transactions in id order, one batch at a time,
re-deriving every categorization from the current learned patterns and
rules. The last processed id is committed with each batch so an
interrupted job resumes where it stopped. No lock is taken; newly synced
transactions keep being categorized normally while a job runs.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.ai.classifier import AIClassifier
from app.config import settings
from app.exceptions import JobNotFound, JobStateError
from app.models.recategorization_job import RecategorizationJob, JobStatus
from app.models.transaction import Transaction
from app.services.categorization_service import CategorizationEngine, apply_outcome
from app.services.rule_classifier import RuleClassifier

logger = logging.getLogger(__name__)

FINISHED_STATUSES = (JobStatus.completed, JobStatus.cancelled, JobStatus.failed)


def is_stale(job: RecategorizationJob, now: Optional[datetime] = None) -> bool:
    """
    True for a running job whose worker has stopped checkpointing.

    Every batch commit bumps updated_at, so a running job that has not been
    touched for job_stale_seconds has no live worker behind it.
    """
    if job.status != JobStatus.running:
        return False
    now = now or datetime.utcnow()
    heartbeat = job.updated_at or job.created_at
    return now - heartbeat > timedelta(seconds=settings.job_stale_seconds)


def start_job(
    db: Session,
    user_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> RecategorizationJob:
    """Create a pending job. The caller schedules run_job."""
    job = RecategorizationJob(
        user_id=user_id,
        status=JobStatus.pending,
        start_date=start_date,
        end_date=end_date
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("Created recategorization job %s for user %s", job.id, user_id)
    return job


def get_job(db: Session, user_id: str, job_id: str) -> RecategorizationJob:
    job = db.query(RecategorizationJob).filter(
        RecategorizationJob.id == job_id,
        RecategorizationJob.user_id == user_id
    ).first()
    if not job:
        raise JobNotFound(f"Recategorization job {job_id} not found")
    return job


def cancel_job(db: Session, user_id: str, job_id: str) -> RecategorizationJob:
    """
    Request cancellation. A running job stops before its next batch;
    a pending or stale one is cancelled immediately.
    """
    job = get_job(db, user_id, job_id)
    if job.status in FINISHED_STATUSES:
        raise JobStateError(f"Job {job_id} is already {job.status.value}")

    job.cancel_requested = True
    if job.status == JobStatus.pending or is_stale(job):
        job.status = JobStatus.cancelled
        job.finished_at = datetime.utcnow()
    db.commit()
    db.refresh(job)
    return job


def prepare_resume(db: Session, user_id: str, job_id: str) -> RecategorizationJob:
    """
    Re-arm a cancelled, failed or stale running job so run_job continues
    from its checkpoint.
    """
    job = get_job(db, user_id, job_id)
    if job.status not in (JobStatus.cancelled, JobStatus.failed) and not is_stale(job):
        raise JobStateError(f"Job {job_id} is {job.status.value} and cannot be resumed")
    if job.status == JobStatus.running:
        logger.warning("Job %s stopped checkpointing at %s, resuming", job.id, job.last_transaction_id)

    job.status = JobStatus.pending
    job.cancel_requested = False
    job.error_message = None
    job.finished_at = None
    db.commit()
    db.refresh(job)
    return job


def _next_batch(db: Session, job: RecategorizationJob, batch_size: int):
    query = db.query(Transaction).filter(Transaction.user_id == job.user_id)
    if job.start_date:
        query = query.filter(Transaction.date >= job.start_date)
    if job.end_date:
        query = query.filter(Transaction.date <= job.end_date)
    if job.last_transaction_id:
        query = query.filter(Transaction.id > job.last_transaction_id)
    return query.order_by(Transaction.id).limit(batch_size).all()


async def run_job(
    engine: CategorizationEngine,
    job_id: str,
    batch_size: Optional[int] = None
) -> RecategorizationJob:
    """
    Process a job to completion, cancellation or failure.

    Failures are recorded on the job (status failed, error_message) so the
    caller polling the job sees them.
    """
    db = engine.db
    batch_size = batch_size or settings.bulk_batch_size

    job = db.get(RecategorizationJob, job_id)
    if job is None:
        raise JobNotFound(f"Recategorization job {job_id} not found")
    if job.status != JobStatus.pending:
        raise JobStateError(f"Job {job_id} is {job.status.value}, expected pending")

    job.status = JobStatus.running
    db.commit()
    logger.info("Recategorization job %s started (checkpoint %s)", job.id, job.last_transaction_id)

    try:
        while True:
            # Cancellation may be requested from another session
            db.refresh(job)
            if job.cancel_requested:
                job.status = JobStatus.cancelled
                job.finished_at = datetime.utcnow()
                db.commit()
                logger.info("Recategorization job %s cancelled after %d transactions", job.id, job.processed)
                return job

            batch = _next_batch(db, job, batch_size)
            if not batch:
                break

            changed = 0
            for transaction in batch:
                outcome = await engine.resolve(
                    transaction.user_id,
                    transaction.raw_description,
                    transaction.merchant_name
                )
                if apply_outcome(transaction, outcome):
                    changed += 1

            job.processed += len(batch)
            job.changed += changed
            job.last_transaction_id = batch[-1].id
            db.commit()
            logger.debug("Job %s checkpoint at %s (%d processed)", job.id, job.last_transaction_id, job.processed)

        job.status = JobStatus.completed
        job.finished_at = datetime.utcnow()
        db.commit()
        logger.info(
            "Recategorization job %s completed: %d processed, %d changed",
            job.id, job.processed, job.changed
        )
    except Exception as e:
        logger.exception("Recategorization job %s failed", job_id)
        db.rollback()
        job = db.get(RecategorizationJob, job_id)
        job.status = JobStatus.failed
        job.error_message = str(e)
        job.finished_at = datetime.utcnow()
        db.commit()

    return job


async def run_job_in_background(
    session_factory: Callable[[], Session],
    job_id: str,
    rule_classifier: RuleClassifier,
    ai_classifier: Optional[AIClassifier] = None
) -> None:
    """Entry point for background tasks: runs the job on its own session."""
    db = session_factory()
    try:
        engine = CategorizationEngine(db, rule_classifier, ai_classifier)
        await run_job(engine, job_id)
    finally:
        db.close()
