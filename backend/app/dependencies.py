"""
FastAPI dependencies.
"""

from typing import Callable, Generator, Optional
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.ai.classifier import AIClassifier, get_ai_classifier
from app.database import SessionLocal
from app.services.categorization_service import CategorizationEngine
from app.services.rule_classifier import RuleClassifier, get_rule_classifier


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database sessions.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> Callable[[], Session]:
    """Session factory for work that outlives the request (background jobs)."""
    return SessionLocal


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    Owning user of the request. Authentication happens upstream; the
    platform forwards the user id in the X-User-Id header.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="X-User-Id header is required")
    return x_user_id.strip()


def get_categorization_engine(
    db: Session = Depends(get_db),
    rule_classifier: RuleClassifier = Depends(get_rule_classifier),
    ai_classifier: Optional[AIClassifier] = Depends(get_ai_classifier)
) -> CategorizationEngine:
    return CategorizationEngine(db, rule_classifier, ai_classifier)
