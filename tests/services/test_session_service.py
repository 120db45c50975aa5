import asyncio
import pytest
from datetime import datetime, time
from decimal import Decimal
from uuid import uuid4
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# --- Import models and services ---
from src.peer_connect_backend.database import models as db_models
from src.peer_connect_backend.database.db_enums import NotificationType, SessionStatus
from src.peer_connect_backend.common.clock import Clock
from src.peer_connect_backend.common.exceptions import (
    InvalidAvailabilityError,
    InvalidDurationError,
    InvalidTransitionError,
    NotFoundError,
    SubjectRequiredError,
    UnauthorizedError,
)
from src.peer_connect_backend.models import session as session_models
from src.peer_connect_backend.services.availability_service import AvailabilityService
from src.peer_connect_backend.services.notification_service import NotificationService
from src.peer_connect_backend.services.profile_service import ProfileService
from src.peer_connect_backend.services.session_service import SessionService

from tests.constants import TODAY, TOMORROW, NEXT_WEEK, YESTERDAY
from tests.database import factories

from pprint import pp as pprint


def book_payload(tutor_id, **overrides) -> session_models.SessionBook:
    data = dict(
        tutor_id=tutor_id,
        session_date=TOMORROW,
        start_time=time(10, 0),
        end_time=time(12, 0),
        custom_subject="Mathematics",
    )
    data.update(overrides)
    return session_models.SessionBook(**data)


async def sessions_of(db: AsyncSession, tutor_id) -> list[db_models.TutoringSessions]:
    result = await db.execute(
        select(db_models.TutoringSessions).where(db_models.TutoringSessions.tutor_id == tutor_id)
    )
    return list(result.scalars().all())


async def notifications_of(db: AsyncSession, user_id) -> list[db_models.Notifications]:
    result = await db.execute(
        select(db_models.Notifications).where(db_models.Notifications.user_id == user_id)
    )
    return list(result.scalars().all())


def build_session_service(db: AsyncSession, clock: Clock) -> SessionService:
    """A SessionService bound to its own session, as one request would get."""
    return SessionService(
        db=db,
        clock=clock,
        availability_service=AvailabilityService(db=db, clock=clock),
        notification_service=NotificationService(db=db),
        profile_service=ProfileService(db=db),
    )


@pytest.fixture
async def pending_session_orm(db_session, test_student_orm, tutor_available_tomorrow) -> db_models.TutoringSessions:
    session = factories.TutoringSessionFactory.create(
        student_id=test_student_orm.id,
        tutor_id=tutor_available_tomorrow.tutor_id,
        status=SessionStatus.PENDING.value,
    )
    await db_session.commit()
    return session


@pytest.mark.anyio
class TestBookSession:

    async def test_book_happy_path(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability
    ):
        """50.00/h for 10:00-12:00 is a pending session costing 100.00."""
        print("\n--- Testing book (Happy Path) ---")
        result = await session_service.book(test_student_orm, book_payload(tutor_available_tomorrow.tutor_id))
        pprint(result.model_dump())

        assert isinstance(result, session_models.SessionRead)
        assert result.status == SessionStatus.PENDING
        assert result.hourly_rate == Decimal("50.00")
        assert result.total_cost == Decimal("100.00")
        assert result.has_review is False
        assert result.subject_name == "Mathematics"
        assert result.student_id == test_student_orm.id

        tutor_notes = await notifications_of(db_session, tutor_available_tomorrow.tutor_id)
        student_notes = await notifications_of(db_session, test_student_orm.id)
        assert [n.type for n in tutor_notes] == [NotificationType.SESSION_REQUEST.value]
        assert [n.type for n in student_notes] == [NotificationType.SESSION_BOOKED.value]
        assert tutor_notes[0].data['session_id'] == str(result.id)

    async def test_book_with_catalog_subject(
        self,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability,
        learning_subjects: dict[str, db_models.LearningSubjects]
    ):
        print("\n--- Testing book with a subject_id ---")
        calculus = learning_subjects["Calculus"]
        result = await session_service.book(
            test_student_orm,
            book_payload(tutor_available_tomorrow.tutor_id, subject_id=calculus.id, custom_subject=None)
        )
        assert result.subject_id == calculus.id
        assert result.custom_subject is None
        assert result.subject_name == "Calculus"

    async def test_book_without_subject_fails(
        self,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability
    ):
        print("\n--- Testing book with no subject ---")
        with pytest.raises(SubjectRequiredError):
            await session_service.book(
                test_student_orm, book_payload(tutor_available_tomorrow.tutor_id, custom_subject="   ")
            )

    async def test_book_with_both_subjects_fails(
        self,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability,
        learning_subjects: dict[str, db_models.LearningSubjects]
    ):
        with pytest.raises(SubjectRequiredError):
            await session_service.book(
                test_student_orm,
                book_payload(tutor_available_tomorrow.tutor_id, subject_id=learning_subjects["Physics"].id)
            )

    async def test_book_unknown_subject_id(
        self,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability
    ):
        with pytest.raises(NotFoundError):
            await session_service.book(
                test_student_orm,
                book_payload(tutor_available_tomorrow.tutor_id, subject_id=9999, custom_subject=None)
            )

    async def test_book_as_tutor_forbidden(
        self,
        session_service: SessionService,
        test_other_tutor_orm: db_models.Tutors,
        tutor_available_tomorrow: db_models.TutorAvailability
    ):
        print("\n--- Testing book as TUTOR (Forbidden) ---")
        with pytest.raises(UnauthorizedError):
            await session_service.book(test_other_tutor_orm, book_payload(tutor_available_tomorrow.tutor_id))

    async def test_book_too_short(
        self,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability
    ):
        with pytest.raises(InvalidDurationError):
            await session_service.book(
                test_student_orm,
                book_payload(tutor_available_tomorrow.tutor_id, end_time=time(10, 30))
            )

    async def test_book_end_before_start(
        self,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability
    ):
        with pytest.raises(InvalidDurationError):
            await session_service.book(
                test_student_orm,
                book_payload(tutor_available_tomorrow.tutor_id, start_time=time(14, 0), end_time=time(12, 0))
            )

    async def test_book_unknown_tutor(self, session_service: SessionService, test_student_orm: db_models.Students):
        with pytest.raises(NotFoundError):
            await session_service.book(test_student_orm, book_payload(uuid4()))

    async def test_book_tutor_with_incomplete_profile(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students
    ):
        """A signed-up tutor who never completed a profile cannot be booked, even with a slot."""
        print("\n--- Testing book of a tutor with an incomplete profile ---")
        tutor = factories.TutorFactory.create(
            profile_completed=False,
            profile_completed_at=None,
            hourly_rate=Decimal("0.00"),
            subjects=[],
            styles=[],
        )
        factories.AvailabilityFactory.create(tutor_id=tutor.id, date=TOMORROW)
        await db_session.flush()

        with pytest.raises(NotFoundError):
            await session_service.book(test_student_orm, book_payload(tutor.id))
        assert await sessions_of(db_session, tutor.id) == []

    async def test_book_date_not_offered_writes_nothing(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability
    ):
        """NEXT_WEEK has no availability record, so nothing may be created."""
        print("\n--- Testing book on a date without availability ---")
        with pytest.raises(InvalidAvailabilityError) as e:
            await session_service.book(
                test_student_orm, book_payload(tutor_available_tomorrow.tutor_id, session_date=NEXT_WEEK)
            )
        print(f"--- Correctly raised {e.value.error_kind}: {e.value.detail} ---")

        assert await sessions_of(db_session, tutor_available_tomorrow.tutor_id) == []
        assert await notifications_of(db_session, tutor_available_tomorrow.tutor_id) == []

    async def test_book_withdrawn_date(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability
    ):
        tutor_available_tomorrow.is_available = False
        await db_session.flush()
        with pytest.raises(InvalidAvailabilityError):
            await session_service.book(test_student_orm, book_payload(tutor_available_tomorrow.tutor_id))

    async def test_book_past_date(
        self,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        test_tutor_orm: db_models.Tutors
    ):
        factories.AvailabilityFactory.create(tutor_id=test_tutor_orm.id, date=YESTERDAY)
        with pytest.raises(InvalidAvailabilityError):
            await session_service.book(
                test_student_orm, book_payload(test_tutor_orm.id, session_date=YESTERDAY)
            )

    async def test_book_today_is_allowed(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        test_tutor_orm: db_models.Tutors
    ):
        factories.AvailabilityFactory.create(tutor_id=test_tutor_orm.id, date=TODAY)
        await db_session.flush()
        result = await session_service.book(test_student_orm, book_payload(test_tutor_orm.id, session_date=TODAY))
        assert result.session_date == TODAY

    async def test_book_outside_slot_hours(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability
    ):
        tutor_available_tomorrow.start_time = time(9, 0)
        tutor_available_tomorrow.end_time = time(12, 0)
        await db_session.flush()

        with pytest.raises(InvalidAvailabilityError):
            await session_service.book(
                test_student_orm,
                book_payload(tutor_available_tomorrow.tutor_id, start_time=time(11, 0), end_time=time(13, 0))
            )
        result = await session_service.book(test_student_orm, book_payload(tutor_available_tomorrow.tutor_id))
        assert result.start_time == time(10, 0)

    async def test_book_overlapping_existing_session(
        self,
        session_service: SessionService,
        test_other_student_orm: db_models.Students,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        """The tutor already has a confirmed 10:00-12:00 session tomorrow."""
        print("\n--- Testing book overlapping a confirmed session ---")
        with pytest.raises(InvalidAvailabilityError):
            await session_service.book(
                test_other_student_orm,
                book_payload(confirmed_session_orm.tutor_id, start_time=time(11, 0), end_time=time(13, 0))
            )

    async def test_book_back_to_back_is_allowed(
        self,
        session_service: SessionService,
        test_other_student_orm: db_models.Students,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        result = await session_service.book(
            test_other_student_orm,
            book_payload(confirmed_session_orm.tutor_id, start_time=time(12, 0), end_time=time(13, 0))
        )
        assert result.total_cost == Decimal("50.00")

    async def test_cancelled_session_frees_the_range(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_other_student_orm: db_models.Students,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        confirmed_session_orm.status = SessionStatus.CANCELLED.value
        await db_session.flush()
        result = await session_service.book(
            test_other_student_orm, book_payload(confirmed_session_orm.tutor_id)
        )
        assert result.status == SessionStatus.PENDING

    async def test_concurrent_bookings_only_one_wins(
        self,
        db_session: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
        mock_clock: Clock,
        test_student_orm: db_models.Students,
        test_other_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability
    ):
        """Two students racing for the same tutor range: exactly one session is created."""
        print("\n--- Testing two concurrent bookings of the same range ---")
        tutor_id = tutor_available_tomorrow.tutor_id

        async def attempt(student):
            async with session_factory() as session:
                service = build_session_service(session, mock_clock)
                try:
                    result = await service.book(student, book_payload(tutor_id))
                    await session.commit()
                    return result
                except Exception:
                    await session.rollback()
                    raise

        results = await asyncio.gather(
            attempt(test_student_orm), attempt(test_other_student_orm), return_exceptions=True
        )
        pprint(results)

        booked = [r for r in results if isinstance(r, session_models.SessionRead)]
        refused = [r for r in results if isinstance(r, InvalidAvailabilityError)]
        assert len(booked) == 1
        assert len(refused) == 1

        rows = await sessions_of(db_session, tutor_id)
        assert len(rows) == 1
        assert rows[0].id == booked[0].id


@pytest.mark.anyio
class TestSessionTransitions:

    async def test_tutor_confirms_pending(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_tutor_orm: db_models.Tutors,
        pending_session_orm: db_models.TutoringSessions
    ):
        print("\n--- Testing confirm by TUTOR ---")
        result = await session_service.confirm(pending_session_orm.id, test_tutor_orm)
        assert result.status == SessionStatus.CONFIRMED

        notes = await notifications_of(db_session, pending_session_orm.student_id)
        assert [n.type for n in notes] == [NotificationType.SESSION_CONFIRMED.value]

    async def test_student_cannot_confirm(
        self,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        pending_session_orm: db_models.TutoringSessions
    ):
        with pytest.raises(InvalidTransitionError):
            await session_service.confirm(pending_session_orm.id, test_student_orm)

    async def test_confirm_twice_fails(
        self,
        session_service: SessionService,
        test_tutor_orm: db_models.Tutors,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        with pytest.raises(InvalidTransitionError):
            await session_service.confirm(confirmed_session_orm.id, test_tutor_orm)

    async def test_tutor_rejects_pending(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_tutor_orm: db_models.Tutors,
        pending_session_orm: db_models.TutoringSessions
    ):
        result = await session_service.reject(pending_session_orm.id, test_tutor_orm)
        assert result.status == SessionStatus.REJECTED
        notes = await notifications_of(db_session, pending_session_orm.student_id)
        assert [n.type for n in notes] == [NotificationType.SESSION_REJECTED.value]

    async def test_outsider_is_unauthorized(
        self,
        session_service: SessionService,
        test_other_tutor_orm: db_models.Tutors,
        pending_session_orm: db_models.TutoringSessions
    ):
        print("\n--- Testing confirm by a non-participant ---")
        with pytest.raises(UnauthorizedError):
            await session_service.confirm(pending_session_orm.id, test_other_tutor_orm)

    async def test_unknown_session(self, session_service: SessionService, test_tutor_orm: db_models.Tutors):
        with pytest.raises(NotFoundError):
            await session_service.confirm(uuid4(), test_tutor_orm)

    async def test_student_cancels_and_tutor_is_told(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        print("\n--- Testing cancel by STUDENT ---")
        result = await session_service.cancel(confirmed_session_orm.id, test_student_orm)
        assert result.status == SessionStatus.CANCELLED

        tutor_notes = await notifications_of(db_session, confirmed_session_orm.tutor_id)
        assert len(tutor_notes) == 1
        assert tutor_notes[0].type == NotificationType.SESSION_CANCELLED.value
        assert tutor_notes[0].data['cancelled_by'] == 'student'
        pprint(tutor_notes[0].data)
        assert await notifications_of(db_session, test_student_orm.id) == []

    async def test_tutor_cancels_pending(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_tutor_orm: db_models.Tutors,
        pending_session_orm: db_models.TutoringSessions
    ):
        result = await session_service.cancel(pending_session_orm.id, test_tutor_orm)
        assert result.status == SessionStatus.CANCELLED
        student_notes = await notifications_of(db_session, pending_session_orm.student_id)
        assert student_notes[0].data['cancelled_by'] == 'tutor'

    async def test_cancel_terminal_session_fails(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        confirmed_session_orm.status = SessionStatus.COMPLETED.value
        await db_session.flush()
        with pytest.raises(InvalidTransitionError):
            await session_service.cancel(confirmed_session_orm.id, test_student_orm)

    async def test_complete_before_session_date_fails(
        self,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        """confirmed_session_orm takes place tomorrow."""
        with pytest.raises(InvalidTransitionError):
            await session_service.complete(confirmed_session_orm.id, test_student_orm)

    async def test_complete_later_today_fails_until_it_ends(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        mock_clock: Clock,
        test_student_orm: db_models.Students,
        test_tutor_orm: db_models.Tutors
    ):
        """An 18:00-19:00 session today cannot be completed at 09:00, only after 19:00."""
        session = factories.TutoringSessionFactory.create(
            student_id=test_student_orm.id,
            tutor_id=test_tutor_orm.id,
            session_date=TODAY,
            start_time=time(18, 0),
            end_time=time(19, 0),
        )
        await db_session.flush()

        with pytest.raises(InvalidTransitionError):
            await session_service.complete(session.id, test_student_orm)
        assert session.status == SessionStatus.CONFIRMED.value

        mock_clock.now.return_value = datetime.combine(TODAY, time(19, 0), tzinfo=mock_clock.tz)
        result = await session_service.complete(session.id, test_student_orm)
        assert result.status == SessionStatus.COMPLETED

    async def test_student_completes_todays_session(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        test_tutor_orm: db_models.Tutors
    ):
        """The clock reads 09:00; the 07:00-08:00 session is over."""
        print("\n--- Testing complete by STUDENT ---")
        session = factories.TutoringSessionFactory.create(
            student_id=test_student_orm.id,
            tutor_id=test_tutor_orm.id,
            session_date=TODAY,
            start_time=time(7, 0),
            end_time=time(8, 0),
        )
        await db_session.flush()

        result = await session_service.complete(session.id, test_student_orm)
        assert result.status == SessionStatus.COMPLETED
        assert result.has_review is False

        notes = await notifications_of(db_session, test_tutor_orm.id)
        assert [n.type for n in notes] == [NotificationType.SESSION_COMPLETED.value]

    async def test_tutor_cannot_complete(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        test_tutor_orm: db_models.Tutors
    ):
        session = factories.TutoringSessionFactory.create(
            student_id=test_student_orm.id, tutor_id=test_tutor_orm.id, session_date=TODAY
        )
        await db_session.flush()
        with pytest.raises(InvalidTransitionError):
            await session_service.complete(session.id, test_tutor_orm)


@pytest.mark.anyio
class TestReschedule:

    async def test_reschedule_recomputes_cost_at_current_rate(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        test_tutor_orm: db_models.Tutors
    ):
        """A 1h session at 45.00/h moved to a 2h range costs 90.00."""
        print("\n--- Testing reschedule (Happy Path) ---")
        test_tutor_orm.hourly_rate = Decimal("45.00")
        factories.AvailabilityFactory.create(tutor_id=test_tutor_orm.id, date=TOMORROW)
        factories.AvailabilityFactory.create(tutor_id=test_tutor_orm.id, date=NEXT_WEEK)
        session = factories.TutoringSessionFactory.create(
            student_id=test_student_orm.id,
            tutor_id=test_tutor_orm.id,
            start_time=time(14, 0),
            end_time=time(15, 0),
            hourly_rate=Decimal("45.00"),
            total_cost=Decimal("45.00"),
        )
        await db_session.flush()

        result = await session_service.reschedule(
            session.id,
            test_student_orm,
            session_models.SessionReschedule(session_date=NEXT_WEEK, start_time=time(14, 0), end_time=time(16, 0))
        )
        pprint(result.model_dump())
        assert result.session_date == NEXT_WEEK
        assert result.status == SessionStatus.CONFIRMED
        assert result.total_cost == Decimal("90.00")

        tutor_notes = await notifications_of(db_session, test_tutor_orm.id)
        assert [n.type for n in tutor_notes] == [NotificationType.SESSION_RESCHEDULED.value]
        assert tutor_notes[0].data['rescheduled_by'] == 'student'

    async def test_reschedule_may_overlap_its_own_range(
        self,
        session_service: SessionService,
        test_tutor_orm: db_models.Tutors,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        result = await session_service.reschedule(
            confirmed_session_orm.id,
            test_tutor_orm,
            session_models.SessionReschedule(session_date=TOMORROW, start_time=time(11, 0), end_time=time(13, 0))
        )
        assert result.start_time == time(11, 0)

    async def test_reschedule_to_unavailable_date_leaves_session_unchanged(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        with pytest.raises(InvalidAvailabilityError):
            await session_service.reschedule(
                confirmed_session_orm.id,
                test_student_orm,
                session_models.SessionReschedule(session_date=NEXT_WEEK, start_time=time(10, 0), end_time=time(12, 0))
            )
        assert confirmed_session_orm.session_date == TOMORROW
        assert confirmed_session_orm.start_time == time(10, 0)
        assert confirmed_session_orm.total_cost == Decimal("100.00")

    async def test_reschedule_pending_fails(
        self,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        pending_session_orm: db_models.TutoringSessions
    ):
        with pytest.raises(InvalidTransitionError):
            await session_service.reschedule(
                pending_session_orm.id,
                test_student_orm,
                session_models.SessionReschedule(session_date=TOMORROW, start_time=time(14, 0), end_time=time(15, 0))
            )

    async def test_concurrent_reschedules_only_one_wins(
        self,
        db_session: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
        mock_clock: Clock,
        test_student_orm: db_models.Students,
        test_other_student_orm: db_models.Students,
        tutor_available_tomorrow: db_models.TutorAvailability
    ):
        """Two confirmed sessions (08-09, 15-16) moved into 12-13 at once: only one lands there."""
        print("\n--- Testing two concurrent reschedules into the same range ---")
        tutor_id = tutor_available_tomorrow.tutor_id
        morning = factories.TutoringSessionFactory.create(
            student_id=test_student_orm.id, tutor_id=tutor_id, start_time=time(8, 0), end_time=time(9, 0)
        )
        afternoon = factories.TutoringSessionFactory.create(
            student_id=test_other_student_orm.id, tutor_id=tutor_id, start_time=time(15, 0), end_time=time(16, 0)
        )
        await db_session.commit()
        moves = [(morning.id, test_student_orm), (afternoon.id, test_other_student_orm)]

        async def attempt(session_id, student):
            async with session_factory() as session:
                service = build_session_service(session, mock_clock)
                try:
                    result = await service.reschedule(
                        session_id,
                        student,
                        session_models.SessionReschedule(session_date=TOMORROW, start_time=time(12, 0), end_time=time(13, 0))
                    )
                    await session.commit()
                    return result
                except Exception:
                    await session.rollback()
                    raise

        results = await asyncio.gather(*(attempt(*move) for move in moves), return_exceptions=True)
        pprint(results)

        moved = [r for r in results if isinstance(r, session_models.SessionRead)]
        refused = [r for r in results if isinstance(r, InvalidAvailabilityError)]
        assert len(moved) == 1
        assert len(refused) == 1

        db_session.expire_all()
        at_noon = [s for s in await sessions_of(db_session, tutor_id) if s.start_time == time(12, 0)]
        assert [s.id for s in at_noon] == [moved[0].id]


@pytest.mark.anyio
class TestSessionReads:

    async def test_list_sessions_newest_first(
        self,
        db_session: AsyncSession,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        later = factories.TutoringSessionFactory.create(
            student_id=test_student_orm.id,
            tutor_id=confirmed_session_orm.tutor_id,
            session_date=NEXT_WEEK,
            status=SessionStatus.PENDING.value,
        )
        await db_session.flush()

        sessions = await session_service.list_sessions(test_student_orm)
        assert [s.id for s in sessions] == [later.id, confirmed_session_orm.id]

        pending = await session_service.list_sessions(test_student_orm, status=SessionStatus.PENDING)
        assert [s.id for s in pending] == [later.id]

    async def test_tutor_sees_own_sessions(
        self,
        session_service: SessionService,
        test_tutor_orm: db_models.Tutors,
        test_other_tutor_orm: db_models.Tutors,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        assert len(await session_service.list_sessions(test_tutor_orm)) == 1
        assert await session_service.list_sessions(test_other_tutor_orm) == []

    async def test_get_session_requires_participant(
        self,
        session_service: SessionService,
        test_student_orm: db_models.Students,
        test_other_student_orm: db_models.Students,
        confirmed_session_orm: db_models.TutoringSessions
    ):
        result = await session_service.get_session(confirmed_session_orm.id, test_student_orm)
        assert result.id == confirmed_session_orm.id
        with pytest.raises(UnauthorizedError):
            await session_service.get_session(confirmed_session_orm.id, test_other_student_orm)
