'''
Session lifecycle: booking, the confirm/reject/cancel/complete/reschedule
transitions, and session reads for participants.
'''
from datetime import date, datetime, time
from decimal import Decimal
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import NotificationType, SessionStatus, UserRole
from ..common.clock import Clock
from ..common.config import settings
from ..common.exceptions import (
    InvalidAvailabilityError,
    InvalidTransitionError,
    NotFoundError,
    PeerConnectError,
    SubjectRequiredError,
    UnauthorizedError,
)
from ..common.logger import log
from ..core import scheduling
from ..models import session as session_models
from .availability_service import AvailabilityService
from .notification_service import NotificationService
from .profile_service import ProfileService


class SessionService:
    """
    Service for booking tutoring sessions and moving them through their states.
    Every guard runs before the first write; the request transaction is
    committed by get_db_session, so a raised error leaves nothing behind.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        clock: Annotated[Clock, Depends(Clock)],
        availability_service: Annotated[AvailabilityService, Depends(AvailabilityService)],
        notification_service: Annotated[NotificationService, Depends(NotificationService)],
        profile_service: Annotated[ProfileService, Depends(ProfileService)]
    ):
        self.db = db
        self.clock = clock
        self.availability_service = availability_service
        self.notification_service = notification_service
        self.profile_service = profile_service

    # --- Internal helpers ---

    async def _load_session(self, session_id: UUID) -> db_models.TutoringSessions:
        stmt = select(db_models.TutoringSessions).options(
            selectinload(db_models.TutoringSessions.subject),
            selectinload(db_models.TutoringSessions.student),
            selectinload(db_models.TutoringSessions.tutor),
        ).filter(db_models.TutoringSessions.id == session_id)
        session = (await self.db.execute(stmt)).scalars().first()
        if session is None:
            raise NotFoundError(f"Session {session_id} not found.")
        return session

    @staticmethod
    def _participant_role(session: db_models.TutoringSessions, user: db_models.Users) -> str:
        """The role the user plays in this session; Unauthorized for outsiders."""
        if user.id == session.student_id:
            return UserRole.STUDENT.value
        if user.id == session.tutor_id:
            return UserRole.TUTOR.value
        log.warning(f"User {user.id} is not a participant of session {session.id}.")
        raise UnauthorizedError("You are not a participant of this session.")

    async def _lock_tutor_schedule(self, tutor_id: UUID):
        """
        Bumps the tutor's booking_sequence. The UPDATE holds the tutor row's
        write lock until the transaction ends, serializing schedule writes.
        """
        tutors = db_models.Tutors.__table__
        result = await self.db.execute(
            update(tutors)
            .where(tutors.c.id == tutor_id)
            .values(booking_sequence=tutors.c.booking_sequence + 1)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Tutor {tutor_id} not found.")

    async def _current_hourly_rate(self, tutor_id: UUID) -> Decimal:
        tutors = db_models.Tutors.__table__
        rate = (await self.db.execute(
            select(tutors.c.hourly_rate).where(tutors.c.id == tutor_id)
        )).scalar_one()
        return Decimal(rate)

    async def _check_availability(
        self,
        tutor_id: UUID,
        session_date: date,
        start: time,
        end: time,
        exclude_session_id: Optional[UUID] = None
    ):
        """
        Raises InvalidAvailabilityError unless the tutor offers `session_date`,
        the range fits the slot's bounds and it overlaps no pending/confirmed session.
        Must run after _lock_tutor_schedule so the reads are current.
        """
        if session_date < self.clock.today():
            raise InvalidAvailabilityError(f"{session_date.isoformat()} is in the past.")

        slot = await self.availability_service.get_slot(tutor_id, session_date)
        if slot is None or not slot.is_available:
            raise InvalidAvailabilityError(f"Tutor is not available on {session_date.isoformat()}.")
        if not scheduling.within_bounds(start, end, slot.start_time, slot.end_time):
            raise InvalidAvailabilityError(
                f"Requested time is outside the tutor's hours on {session_date.isoformat()}."
            )

        stmt = select(
            db_models.TutoringSessions.id,
            db_models.TutoringSessions.start_time,
            db_models.TutoringSessions.end_time,
        ).where(
            db_models.TutoringSessions.tutor_id == tutor_id,
            db_models.TutoringSessions.session_date == session_date,
            db_models.TutoringSessions.status.in_([s.value for s in SessionStatus.blocking()]),
        )
        if exclude_session_id is not None:
            stmt = stmt.where(db_models.TutoringSessions.id != exclude_session_id)
        for other_id, other_start, other_end in (await self.db.execute(stmt)).all():
            if scheduling.overlaps(start, end, other_start, other_end):
                log.info(f"Requested range conflicts with session {other_id}.")
                raise InvalidAvailabilityError("The tutor already has a session at that time.")

    async def _to_read(self, session: db_models.TutoringSessions) -> session_models.SessionRead:
        await self.db.flush()
        return session_models.SessionRead.model_validate(session)

    # --- Booking ---

    async def book(self, current_user: db_models.Users, data: session_models.SessionBook) -> session_models.SessionRead:
        """
        Creates a pending session for the calling student.
        """
        log.info(f"User {current_user.id} booking tutor {data.tutor_id} on {data.session_date} {data.start_time}-{data.end_time}.")
        if current_user.role != UserRole.STUDENT.value:
            log.warning(f"User {current_user.id} ({current_user.role}) tried to book a session.")
            raise UnauthorizedError("Only students can book sessions.")

        if (data.subject_id is None) == (data.custom_subject is None):
            raise SubjectRequiredError("Provide exactly one of subject_id or custom_subject.")

        subject = None
        if data.subject_id is not None:
            subject = await self.profile_service.get_subject(data.subject_id)

        scheduling.validate_duration(data.start_time, data.end_time, settings.MIN_SESSION_MINUTES)

        tutor = (await self.db.execute(
            select(db_models.Tutors).where(db_models.Tutors.id == data.tutor_id)
        )).scalars().first()
        if tutor is None or not tutor.is_active or not tutor.profile_completed:
            # a tutor without a completed profile has no rate to bill at
            raise NotFoundError(f"Tutor {data.tutor_id} not found.")

        try:
            await self._lock_tutor_schedule(tutor.id)
            await self._check_availability(tutor.id, data.session_date, data.start_time, data.end_time)

            rate = await self._current_hourly_rate(tutor.id)
            session = db_models.TutoringSessions(
                student_id=current_user.id,
                tutor_id=tutor.id,
                subject_id=data.subject_id,
                custom_subject=data.custom_subject,
                session_date=data.session_date,
                start_time=data.start_time,
                end_time=data.end_time,
                hourly_rate=rate,
                total_cost=scheduling.compute_cost(data.start_time, data.end_time, rate),
                notes=data.notes,
                status=SessionStatus.PENDING.value,
                has_review=False,
            )
            session.subject = subject
            self.db.add(session)
            await self.db.flush()

            await self.notification_service.session_requested(session, current_user, tutor)
            await self.notification_service.session_booked(session, current_user, tutor)
            log.info(f"Session {session.id} booked (pending), cost {session.total_cost}.")
            return await self._to_read(session)
        except PeerConnectError:
            raise
        except Exception as e:
            log.error(f"Unexpected error while booking tutor {data.tutor_id}: {e}", exc_info=True)
            raise

    # --- Transitions ---

    async def confirm(self, session_id: UUID, current_user: db_models.Users) -> session_models.SessionRead:
        log.info(f"User {current_user.id} confirming session {session_id}.")
        session = await self._load_session(session_id)
        role = self._participant_role(session, current_user)
        session.status = scheduling.check_transition('confirm', session.status, role).value
        await self.notification_service.session_confirmed(session, session.student, session.tutor)
        return await self._to_read(session)

    async def reject(self, session_id: UUID, current_user: db_models.Users) -> session_models.SessionRead:
        log.info(f"User {current_user.id} rejecting session {session_id}.")
        session = await self._load_session(session_id)
        role = self._participant_role(session, current_user)
        session.status = scheduling.check_transition('reject', session.status, role).value
        await self.notification_service.session_rejected(session, session.student, session.tutor)
        return await self._to_read(session)

    async def cancel(self, session_id: UUID, current_user: db_models.Users) -> session_models.SessionRead:
        log.info(f"User {current_user.id} cancelling session {session_id}.")
        session = await self._load_session(session_id)
        role = self._participant_role(session, current_user)
        session.status = scheduling.check_transition('cancel', session.status, role).value
        await self.notification_service.session_changed_by(
            NotificationType.SESSION_CANCELLED, session, session.student, session.tutor, role
        )
        return await self._to_read(session)

    async def complete(self, session_id: UUID, current_user: db_models.Users) -> session_models.SessionRead:
        log.info(f"User {current_user.id} completing session {session_id}.")
        session = await self._load_session(session_id)
        role = self._participant_role(session, current_user)
        target = scheduling.check_transition('complete', session.status, role)
        ends_at = datetime.combine(session.session_date, session.end_time, tzinfo=self.clock.tz)
        if ends_at > self.clock.now():
            raise InvalidTransitionError("A session cannot be completed before it ends.")
        session.status = target.value
        session.has_review = False
        await self.notification_service.session_completed(session, session.student, session.tutor)
        return await self._to_read(session)

    async def reschedule(
        self,
        session_id: UUID,
        current_user: db_models.Users,
        data: session_models.SessionReschedule
    ) -> session_models.SessionRead:
        """
        Moves a confirmed session to a new date/time, re-validated against the
        tutor's live availability. The cost is recomputed at the current rate.
        """
        log.info(f"User {current_user.id} rescheduling session {session_id} to {data.session_date} {data.start_time}-{data.end_time}.")
        session = await self._load_session(session_id)
        role = self._participant_role(session, current_user)
        target = scheduling.check_transition('reschedule', session.status, role)
        scheduling.validate_duration(data.start_time, data.end_time, settings.MIN_SESSION_MINUTES)

        try:
            await self._lock_tutor_schedule(session.tutor_id)
            await self._check_availability(
                session.tutor_id, data.session_date, data.start_time, data.end_time,
                exclude_session_id=session.id
            )
            rate = await self._current_hourly_rate(session.tutor_id)

            session.session_date = data.session_date
            session.start_time = data.start_time
            session.end_time = data.end_time
            session.hourly_rate = rate
            session.total_cost = scheduling.compute_cost(data.start_time, data.end_time, rate)
            session.status = target.value

            await self.notification_service.session_changed_by(
                NotificationType.SESSION_RESCHEDULED, session, session.student, session.tutor, role
            )
            log.info(f"Session {session.id} rescheduled, new cost {session.total_cost}.")
            return await self._to_read(session)
        except PeerConnectError:
            raise
        except Exception as e:
            log.error(f"Unexpected error while rescheduling session {session_id}: {e}", exc_info=True)
            raise

    # --- Reads ---

    async def get_session(self, session_id: UUID, current_user: db_models.Users) -> session_models.SessionRead:
        log.info(f"User {current_user.id} fetching session {session_id}.")
        session = await self._load_session(session_id)
        self._participant_role(session, current_user)
        return session_models.SessionRead.model_validate(session)

    async def list_sessions(
        self,
        current_user: db_models.Users,
        status: Optional[SessionStatus] = None
    ) -> list[session_models.SessionRead]:
        """The user's sessions (as student or tutor), newest first."""
        log.info(f"Listing sessions for user {current_user.id} (status={status}).")
        stmt = select(db_models.TutoringSessions).options(
            selectinload(db_models.TutoringSessions.subject)
        ).where(or_(
            db_models.TutoringSessions.student_id == current_user.id,
            db_models.TutoringSessions.tutor_id == current_user.id,
        ))
        if status is not None:
            stmt = stmt.where(db_models.TutoringSessions.status == SessionStatus(status).value)
        stmt = stmt.order_by(
            db_models.TutoringSessions.session_date.desc(),
            db_models.TutoringSessions.start_time.desc(),
        )
        result = await self.db.execute(stmt)
        return [session_models.SessionRead.model_validate(s) for s in result.scalars().all()]
