'''
Account models: what signup accepts and the lean account view.
The role-specific profile views live in models/profile.py.
'''
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..database.db_enums import UserRole


class UserRead(BaseModel):
    """
    Base Pydantic model for reading account data.
    Corresponds to the db_models.Users ORM model.
    """
    id: UUID
    email: str
    role: UserRole
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool
    profile_completed: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    """
    Pydantic model for validating the JSON payload of a signup.
    The role is fixed by the endpoint used and never changes afterwards.
    """
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)


class StudentCreate(UserCreate):
    """Student signup. The school may be given now or on profile completion."""
    school: Optional[str] = None


class TutorCreate(UserCreate):
    """Tutor signup."""
    pass
