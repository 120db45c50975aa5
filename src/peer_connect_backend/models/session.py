'''
Models for booking and reading tutoring sessions.
'''
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..database.db_enums import SessionStatus


class SessionBook(BaseModel):
    """
    Payload of POST /sessions/book.
    Exactly one of subject_id / custom_subject must be given; the service
    enforces it so the client gets a SubjectRequired error.
    """
    tutor_id: UUID
    session_date: date
    start_time: time
    end_time: time
    subject_id: Optional[int] = None
    custom_subject: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None

    @field_validator('custom_subject')
    @classmethod
    def _blank_is_missing(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class SessionReschedule(BaseModel):
    session_date: date
    start_time: time
    end_time: time


class SessionRead(BaseModel):
    """
    Pydantic model for reading a session.
    Requires the `subject` relationship to be loaded for `subject_name`.
    """
    id: UUID
    student_id: UUID
    tutor_id: UUID
    subject_id: Optional[int] = None
    custom_subject: Optional[str] = None
    subject_name: Optional[str] = None
    session_date: date
    start_time: time
    end_time: time
    hourly_rate: Decimal
    total_cost: Decimal
    status: SessionStatus
    has_review: bool
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
