'''

'''
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str

    @field_validator('comment')
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("comment must not be empty")
        return value


class ReviewRead(BaseModel):
    id: UUID
    session_id: UUID
    student_id: UUID
    tutor_id: UUID
    rating: int
    comment: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TutorReviewSummary(BaseModel):
    """Aggregated view of a tutor's reviews, as shown on their public profile."""
    tutor_id: UUID
    average_rating: Decimal
    total_reviews: int
    rating_distribution: dict[int, int]
    completed_sessions: int
    reviews: list[ReviewRead]
