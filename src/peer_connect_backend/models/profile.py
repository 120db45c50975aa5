'''
Profile models for both roles.
The read side is a tagged union discriminated by `role`.
'''
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..database.db_enums import (
    CampusLocation,
    AcademicLevel,
    LearningStyle,
    StudentLevel,
)


class ProfileBase(BaseModel):
    """Fields shared by student and tutor profiles."""
    id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    campus_location: Optional[CampusLocation] = None
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    profile_completed: bool = False
    profile_completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StudentProfileRead(ProfileBase):
    """
    Pydantic model for reading a Student profile.
    Built from db_models.Students; the subject rows are flattened to their names.
    """
    role: Literal['student'] = 'student'
    school: Optional[str] = None
    academic_level: Optional[AcademicLevel] = None
    preferred_learning_style: Optional[LearningStyle] = None
    subjects_of_interest: list[str] = Field(default_factory=list)

    @field_validator('subjects_of_interest', mode='before')
    @classmethod
    def _flatten_subjects(cls, value: Any) -> Any:
        return [getattr(item, 'subject', item) for item in value or []]


class TutorProfileRead(ProfileBase):
    """
    Pydantic model for reading a Tutor profile.
    `average_rating` and `total_reviews` are derived from reviews and read-only.
    """
    role: Literal['tutor'] = 'tutor'
    preferred_student_level: Optional[StudentLevel] = None
    hourly_rate: Decimal = Decimal('0.00')
    years_experience: int = 0
    average_rating: Decimal = Decimal('0.00')
    total_reviews: int = 0
    is_verified_tutor: bool = False
    specializations: list[str] = Field(default_factory=list)
    teaching_styles: list[LearningStyle] = Field(default_factory=list)

    @field_validator('specializations', mode='before')
    @classmethod
    def _flatten_specializations(cls, value: Any) -> Any:
        return [getattr(item, 'subject', item) for item in value or []]

    @field_validator('teaching_styles', mode='before')
    @classmethod
    def _flatten_styles(cls, value: Any) -> Any:
        return [getattr(item, 'teaching_style', item) for item in value or []]


ProfileRead = Annotated[Union[StudentProfileRead, TutorProfileRead], Field(discriminator='role')]


class ProfileCommonUpdate(BaseModel):
    campus_location: CampusLocation
    bio: Optional[str] = None
    profile_picture: Optional[str] = None


class StudentProfileUpdate(ProfileCommonUpdate):
    """
    Payload of PUT /profiles/student/me.
    Submitting it replaces the subject set and completes the profile.
    """
    school: str
    academic_level: AcademicLevel
    preferred_learning_style: LearningStyle
    subjects_of_interest: list[str]


class TutorProfileUpdate(ProfileCommonUpdate):
    """
    Payload of PUT /profiles/tutor/me.
    Count and range rules are enforced by the ProfileService.
    """
    preferred_student_level: StudentLevel
    hourly_rate: Decimal = Field(..., decimal_places=2)
    years_experience: int
    specializations: list[str]
    teaching_styles: list[LearningStyle]


class LearningSubjectRead(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)
