'''
Account lookups and signup for both roles.
'''
from typing import Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole
from ..common.logger import log
from ..models import user as user_models
from ..common.security_utils import HashedPassword

ROLE_MODELS: dict[str, type[db_models.Users]] = {
    UserRole.STUDENT.value: db_models.Students,
    UserRole.TUTOR.value: db_models.Tutors,
}


class UserService:
    """
    Base service for user-related database operations.
    """
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def _fetch_polymorphic(self, where_clause) -> db_models.Users | None:
        """
        Two-step fetch: read the role first, then load the matching subclass
        (Students or Tutors) so every role-specific column is populated.
        """
        role = (await self.db.execute(select(db_models.Users.role).where(where_clause))).scalar_one_or_none()
        if role is None:
            return None
        model = ROLE_MODELS.get(role)
        if model is None:
            log.warning(f"Unknown role '{role}' encountered while fetching a user.")
            return None
        result = await self.db.execute(select(model).where(where_clause))
        return result.scalars().first()

    async def get_user_by_email(self, email: str) -> db_models.Users | None:
        """
        Fetches the complete polymorphic user object (Students or Tutors) by email.
        """
        log.info(f"Fetching full user profile for email: {email}")
        try:
            return await self._fetch_polymorphic(db_models.Users.email == email)
        except Exception as e:
            log.error(f"Database error fetching full user by email {email}: {e}", exc_info=True)
            raise

    async def get_user_by_id(self, user_id: UUID) -> db_models.Users | None:
        """
        Fetches the complete polymorphic user object by ID.
        """
        log.info(f"Fetching full user profile for ID: {user_id}")
        try:
            return await self._fetch_polymorphic(db_models.Users.id == user_id)
        except Exception as e:
            log.error(f"Database error fetching full user by ID {user_id}: {e}", exc_info=True)
            raise

    async def _get_user_by_email_with_password(self, email: str) -> db_models.Users | None:
        """ Fetches the base user object including the password hash. """
        log.info(f"Fetching user with password for auth: {email}")
        try:
            stmt = select(db_models.Users).filter(db_models.Users.email == email)
            result = await self.db.execute(stmt)
            return result.scalars().first()
        except Exception as e:
            log.error(f"Database error fetching user with password for {email}: {e}", exc_info=True)
            raise

    async def _ensure_email_free(self, email: str):
        existing = (await self.db.execute(
            select(db_models.Users.id).where(db_models.Users.email == email)
        )).first()
        if existing:
            log.warning(f"Signup rejected: email {email} already registered.")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered."
            )

    async def create_student(self, student_data: user_models.StudentCreate) -> user_models.UserRead:
        """
        Creates a new student account (sign-up). The profile starts incomplete.
        """
        log.info(f"Attempting to create student {student_data.email}.")
        await self._ensure_email_free(student_data.email)

        new_student = db_models.Students(
            email=student_data.email,
            password=HashedPassword.get_hash(student_data.password),
            first_name=student_data.first_name,
            last_name=student_data.last_name,
            school=student_data.school,
            subjects_of_interest=[],
        )
        self.db.add(new_student)
        await self.db.flush()
        log.info(f"Student {new_student.id} created.")
        return user_models.UserRead.model_validate(new_student)

    async def create_tutor(self, tutor_data: user_models.TutorCreate) -> user_models.UserRead:
        """
        Creates a new tutor account (sign-up). The profile starts incomplete.
        """
        log.info(f"Attempting to create tutor {tutor_data.email}.")
        await self._ensure_email_free(tutor_data.email)

        new_tutor = db_models.Tutors(
            email=tutor_data.email,
            password=HashedPassword.get_hash(tutor_data.password),
            first_name=tutor_data.first_name,
            last_name=tutor_data.last_name,
            specializations=[],
            teaching_styles=[],
        )
        self.db.add(new_tutor)
        await self.db.flush()
        log.info(f"Tutor {new_tutor.id} created.")
        return user_models.UserRead.model_validate(new_tutor)
