"""
Bulk re-categorization API endpoints.
"""

from typing import Callable, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from app.ai.classifier import AIClassifier, get_ai_classifier
from app.dependencies import get_db, get_current_user_id, get_session_factory
from app.exceptions import JobNotFound, JobStateError
from app.schemas.recategorization import RecategorizeRequest, RecategorizationJobResponse
from app.services import recategorization_service
from app.services.rule_classifier import RuleClassifier, get_rule_classifier

router = APIRouter(prefix="/recategorize", tags=["recategorize"])


@router.post("", response_model=RecategorizationJobResponse, status_code=202)
def start_recategorization(
    background_tasks: BackgroundTasks,
    request: Optional[RecategorizeRequest] = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    rule_classifier: RuleClassifier = Depends(get_rule_classifier),
    ai_classifier: Optional[AIClassifier] = Depends(get_ai_classifier)
):
    """Start re-categorizing the user's history. Poll the returned job for progress."""
    request = request or RecategorizeRequest()
    job = recategorization_service.start_job(db, user_id, request.start_date, request.end_date)

    background_tasks.add_task(
        recategorization_service.run_job_in_background,
        session_factory,
        job.id,
        rule_classifier,
        ai_classifier
    )
    return RecategorizationJobResponse.model_validate(job)


@router.get("/{job_id}", response_model=RecategorizationJobResponse)
def get_recategorization_job(
    job_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    try:
        job = recategorization_service.get_job(db, user_id, job_id)
    except JobNotFound:
        raise HTTPException(status_code=404, detail="Job not found")
    return RecategorizationJobResponse.model_validate(job)


@router.post("/{job_id}/cancel", response_model=RecategorizationJobResponse)
def cancel_recategorization_job(
    job_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Stop a job before its next batch. Already processed batches stay applied."""
    try:
        job = recategorization_service.cancel_job(db, user_id, job_id)
    except JobNotFound:
        raise HTTPException(status_code=404, detail="Job not found")
    except JobStateError as e:
        raise HTTPException(status_code=409, detail=e.message)
    return RecategorizationJobResponse.model_validate(job)


@router.post("/{job_id}/resume", response_model=RecategorizationJobResponse, status_code=202)
def resume_recategorization_job(
    job_id: str,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    rule_classifier: RuleClassifier = Depends(get_rule_classifier),
    ai_classifier: Optional[AIClassifier] = Depends(get_ai_classifier)
):
    """Continue a cancelled, failed or stalled job from its checkpoint."""
    try:
        job = recategorization_service.prepare_resume(db, user_id, job_id)
    except JobNotFound:
        raise HTTPException(status_code=404, detail="Job not found")
    except JobStateError as e:
        raise HTTPException(status_code=409, detail=e.message)

    background_tasks.add_task(
        recategorization_service.run_job_in_background,
        session_factory,
        job.id,
        rule_classifier,
        ai_classifier
    )
    return RecategorizationJobResponse.model_validate(job)
