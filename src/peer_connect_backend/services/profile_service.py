'''
Profile completion and lookup for students and tutors, plus the
learning-subject catalog.
'''
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Callable, Iterable, Union
from uuid import UUID
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole
from ..common.config import settings
from ..common.exceptions import InvalidProfileError, NotFoundError, UnauthorizedError
from ..common.logger import log
from ..models import profile as profile_models
from .user_service import UserService, ROLE_MODELS

MIN_STUDENT_SUBJECTS = 2
MIN_TUTOR_SPECIALIZATIONS = 3
MIN_TUTOR_TEACHING_STYLES = 2


def dedupe_subjects(subjects: Iterable[str]) -> list[str]:
    """Trims each name and drops case-insensitive duplicates, keeping first-seen order."""
    seen: set[str] = set()
    unique = []
    for subject in subjects:
        cleaned = subject.strip()
        if cleaned and cleaned.casefold() not in seen:
            seen.add(cleaned.casefold())
            unique.append(cleaned)
    return unique


def _sync_children(current: list, wanted: list[str], key: str, factory: Callable[[str], object]) -> list:
    """
    Builds the new child collection, reusing rows whose value is kept so the
    unique (owner, value) constraints never see a delete+insert of the same value.
    """
    existing = {getattr(child, key): child for child in current}
    return [existing[value] if value in existing else factory(value) for value in wanted]


def to_profile_read(user: db_models.Users) -> Union[profile_models.StudentProfileRead, profile_models.TutorProfileRead]:
    if user.role == UserRole.STUDENT.value:
        return profile_models.StudentProfileRead.model_validate(user)
    return profile_models.TutorProfileRead.model_validate(user)


class ProfileService(UserService):
    """
    Service for reading and completing role-specific profiles.
    """
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        super().__init__(db)

    async def get_profile_orm(self, user_id: UUID) -> db_models.Users:
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"Profile {user_id} not found.")
        return user

    async def get_profile(self, user_id: UUID) -> profile_models.ProfileRead:
        """Returns the tagged profile union for any user id."""
        log.info(f"Fetching profile for user {user_id}.")
        return to_profile_read(await self.get_profile_orm(user_id))

    async def list_completed_profiles(self, role: UserRole) -> list[db_models.Users]:
        """All completed, active profiles of one role."""
        model = ROLE_MODELS[UserRole(role).value]
        log.info(f"Loading completed {UserRole(role).value} profiles.")
        stmt = select(model).where(
            model.profile_completed.is_(True),
            model.is_active.is_(True),
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    def _apply_common(self, user: db_models.Users, data: profile_models.ProfileCommonUpdate):
        user.campus_location = data.campus_location.value
        user.bio = data.bio
        user.profile_picture = data.profile_picture
        if not user.profile_completed:
            user.profile_completed = True
            user.profile_completed_at = datetime.now(timezone.utc)

    async def complete_student_profile(
        self,
        current_user: db_models.Users,
        data: profile_models.StudentProfileUpdate
    ) -> profile_models.StudentProfileRead:
        """
        Writes the student's profile and marks it completed.
        The subjects-of-interest set is replaced by the submitted one.
        """
        log.info(f"User {current_user.id} completing a student profile.")
        if current_user.role != UserRole.STUDENT.value:
            log.warning(f"User {current_user.id} ({current_user.role}) tried to write a student profile.")
            raise UnauthorizedError("Only students can write a student profile.")

        subjects = dedupe_subjects(data.subjects_of_interest)
        if len(subjects) < MIN_STUDENT_SUBJECTS:
            raise InvalidProfileError(f"Select at least {MIN_STUDENT_SUBJECTS} distinct subjects of interest.")
        if not data.school.strip():
            raise InvalidProfileError("School is required.")

        try:
            student: db_models.Students = current_user
            student.school = data.school.strip()
            student.academic_level = data.academic_level.value
            student.preferred_learning_style = data.preferred_learning_style.value
            student.subjects_of_interest = _sync_children(
                student.subjects_of_interest, subjects, 'subject',
                lambda s: db_models.StudentSubjectsOfInterest(subject=s)
            )
            self._apply_common(student, data)
            await self.db.flush()
            log.info(f"Student profile {student.id} completed.")
            return profile_models.StudentProfileRead.model_validate(student)
        except Exception as e:
            log.error(f"Failed to complete student profile {current_user.id}: {e}", exc_info=True)
            raise

    async def complete_tutor_profile(
        self,
        current_user: db_models.Users,
        data: profile_models.TutorProfileUpdate
    ) -> profile_models.TutorProfileRead:
        """
        Writes the tutor's profile and marks it completed.
        Rating fields are derived from reviews and are never written here.
        """
        log.info(f"User {current_user.id} completing a tutor profile.")
        if current_user.role != UserRole.TUTOR.value:
            log.warning(f"User {current_user.id} ({current_user.role}) tried to write a tutor profile.")
            raise UnauthorizedError("Only tutors can write a tutor profile.")

        specializations = dedupe_subjects(data.specializations)
        styles = list(dict.fromkeys(style.value for style in data.teaching_styles))
        if len(specializations) < MIN_TUTOR_SPECIALIZATIONS:
            raise InvalidProfileError(f"Select at least {MIN_TUTOR_SPECIALIZATIONS} distinct specializations.")
        if len(styles) < MIN_TUTOR_TEACHING_STYLES:
            raise InvalidProfileError(f"Select at least {MIN_TUTOR_TEACHING_STYLES} distinct teaching styles.")
        if not (Decimal('0') <= data.hourly_rate <= Decimal(str(settings.MAX_HOURLY_RATE))):
            raise InvalidProfileError(f"Hourly rate must be between 0 and {settings.MAX_HOURLY_RATE}.")
        if data.years_experience < 0:
            raise InvalidProfileError("Years of experience cannot be negative.")

        try:
            tutor: db_models.Tutors = current_user
            tutor.preferred_student_level = data.preferred_student_level.value
            tutor.hourly_rate = data.hourly_rate
            tutor.years_experience = data.years_experience
            tutor.specializations = _sync_children(
                tutor.specializations, specializations, 'subject',
                lambda s: db_models.TutorSpecializations(subject=s)
            )
            tutor.teaching_styles = _sync_children(
                tutor.teaching_styles, styles, 'teaching_style',
                lambda s: db_models.TutorTeachingStyles(teaching_style=s)
            )
            self._apply_common(tutor, data)
            await self.db.flush()
            log.info(f"Tutor profile {tutor.id} completed.")
            return profile_models.TutorProfileRead.model_validate(tutor)
        except Exception as e:
            log.error(f"Failed to complete tutor profile {current_user.id}: {e}", exc_info=True)
            raise

    # --- Learning subjects ---

    async def list_subjects(self) -> list[profile_models.LearningSubjectRead]:
        result = await self.db.execute(select(db_models.LearningSubjects).order_by(db_models.LearningSubjects.name))
        return [profile_models.LearningSubjectRead.model_validate(s) for s in result.scalars().all()]

    async def get_subject(self, subject_id: int) -> db_models.LearningSubjects:
        subject = await self.db.get(db_models.LearningSubjects, subject_id)
        if subject is None:
            raise NotFoundError(f"Learning subject {subject_id} not found.")
        return subject
