"""
Learned pattern API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db, get_current_user_id
from app.exceptions import LearnedStoreUnavailable
from app.schemas.learned_pattern import LearnedPatternList, LearnedPatternResponse
from app.services.learned_pattern_store import LearnedPatternStore

router = APIRouter(prefix="/learned-patterns", tags=["learned-patterns"])


@router.get("", response_model=LearnedPatternList)
def list_learned_patterns(
    limit: int = Query(100, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """List the user's learned merchant patterns, newest first."""
    store = LearnedPatternStore(db)
    try:
        patterns = store.list_for_user(user_id, limit=limit)
        total = store.count(user_id)
    except LearnedStoreUnavailable:
        raise HTTPException(status_code=503, detail="Learned patterns are unavailable")

    return LearnedPatternList(
        patterns=[LearnedPatternResponse.model_validate(p) for p in patterns],
        total=total
    )


@router.delete("/{merchant_token}", status_code=204)
def delete_learned_pattern(
    merchant_token: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Forget a learned pattern. Already categorized transactions keep their category."""
    try:
        deleted = LearnedPatternStore(db).delete(user_id, merchant_token)
        db.commit()
    except LearnedStoreUnavailable:
        db.rollback()
        raise HTTPException(status_code=503, detail="Could not delete pattern, please retry")

    if not deleted:
        raise HTTPException(status_code=404, detail="Learned pattern not found")
    return None
