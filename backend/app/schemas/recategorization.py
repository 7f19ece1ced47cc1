"""
Bulk re-categorization job schemas.
"""

from pydantic import BaseModel, ConfigDict, model_validator
from typing import Optional
from datetime import date, datetime

from app.models.recategorization_job import JobStatus


class RecategorizeRequest(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class RecategorizationJobResponse(BaseModel):
    id: str
    user_id: str
    status: JobStatus
    start_date: Optional[date]
    end_date: Optional[date]
    last_transaction_id: Optional[str]
    processed: int
    changed: int
    cancel_requested: bool
    error_message: Optional[str]
    created_at: datetime
    updated_at: datetime
    finished_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)
