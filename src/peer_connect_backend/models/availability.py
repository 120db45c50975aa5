'''

'''
from datetime import date, time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AvailabilitySlotWrite(BaseModel):
    """
    One calendar date offered (or withdrawn) by a tutor.
    start_time/end_time are optional bounds inside that date.
    """
    date: date
    is_available: bool = True
    start_time: Optional[time] = None
    end_time: Optional[time] = None


class AvailabilityUpdate(BaseModel):
    """Payload of PUT /availability/me. Each date is upserted."""
    slots: list[AvailabilitySlotWrite] = Field(..., min_length=1)


class AvailabilitySlotRead(BaseModel):
    id: UUID
    tutor_id: UUID
    date: date
    is_available: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    model_config = ConfigDict(from_attributes=True)
