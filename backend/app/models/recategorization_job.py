"""
Bulk re-categorization job model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Date, Enum, Text
import enum
from app.database import Base


class JobStatus(str, enum.Enum):
    """Job status enumeration."""
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


class RecategorizationJob(Base):
    """Checkpointed job re-running categorization over a user's history."""

    __tablename__ = "recategorization_jobs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    status = Column(Enum(JobStatus), nullable=False, default=JobStatus.pending)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    last_transaction_id = Column(String(36), nullable=True)  # Checkpoint
    processed = Column(Integer, default=0, nullable=False)
    changed = Column(Integer, default=0, nullable=False)
    cancel_requested = Column(Boolean, default=False, nullable=False)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    finished_at = Column(DateTime, nullable=True)
