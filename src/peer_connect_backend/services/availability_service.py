'''
Tutor availability calendar: one record per (tutor, date).
'''
from datetime import date
from typing import Annotated, Iterable, Optional
from uuid import UUID
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole
from ..common.clock import Clock
from ..common.exceptions import InvalidAvailabilityError, NotFoundError, UnauthorizedError
from ..common.logger import log
from ..models import availability as availability_models


class AvailabilityService:
    """
    Service for reading and writing a tutor's date-indexed availability.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        clock: Annotated[Clock, Depends(Clock)]
    ):
        self.db = db
        self.clock = clock

    async def set_availability(
        self,
        current_user: db_models.Users,
        data: availability_models.AvailabilityUpdate
    ) -> list[availability_models.AvailabilitySlotRead]:
        """
        Upserts one record per submitted date for the calling tutor.
        Past dates and inverted time bounds are rejected before anything is written.
        """
        log.info(f"Tutor {current_user.id} setting availability for {len(data.slots)} date(s).")
        if current_user.role != UserRole.TUTOR.value:
            log.warning(f"User {current_user.id} ({current_user.role}) tried to set tutor availability.")
            raise UnauthorizedError("Only tutors can publish availability.")

        today = self.clock.today()
        # a date submitted twice keeps its last entry
        slots_by_date = {slot.date: slot for slot in data.slots}
        for slot in slots_by_date.values():
            if slot.date < today:
                raise InvalidAvailabilityError(f"Cannot set availability for past date {slot.date.isoformat()}.")
            if slot.start_time is not None and slot.end_time is not None and slot.end_time <= slot.start_time:
                raise InvalidAvailabilityError(f"End time must be after start time on {slot.date.isoformat()}.")

        try:
            stmt = select(db_models.TutorAvailability).where(
                db_models.TutorAvailability.tutor_id == current_user.id,
                db_models.TutorAvailability.date.in_(list(slots_by_date)),
            )
            existing = {row.date: row for row in (await self.db.execute(stmt)).scalars().all()}

            for slot_date, slot in slots_by_date.items():
                row = existing.get(slot_date)
                if row is None:
                    row = db_models.TutorAvailability(tutor_id=current_user.id, date=slot_date)
                    self.db.add(row)
                    existing[slot_date] = row
                row.is_available = slot.is_available
                row.start_time = slot.start_time
                row.end_time = slot.end_time

            await self.db.flush()
            return [
                availability_models.AvailabilitySlotRead.model_validate(existing[d])
                for d in sorted(slots_by_date)
            ]
        except Exception as e:
            log.error(f"Failed to set availability for tutor {current_user.id}: {e}", exc_info=True)
            raise

    async def list_availability(
        self,
        tutor_id: UUID,
        from_date: Optional[date] = None,
        only_available: bool = False
    ) -> list[availability_models.AvailabilitySlotRead]:
        log.info(f"Listing availability for tutor {tutor_id} (from={from_date}, only_available={only_available}).")
        tutors = db_models.Tutors.__table__
        tutor_exists = (await self.db.execute(
            select(tutors.c.id).where(tutors.c.id == tutor_id)
        )).first()
        if not tutor_exists:
            raise NotFoundError(f"Tutor {tutor_id} not found.")

        stmt = select(db_models.TutorAvailability).where(db_models.TutorAvailability.tutor_id == tutor_id)
        if from_date is not None:
            stmt = stmt.where(db_models.TutorAvailability.date >= from_date)
        if only_available:
            stmt = stmt.where(db_models.TutorAvailability.is_available.is_(True))
        stmt = stmt.order_by(db_models.TutorAvailability.date)
        result = await self.db.execute(stmt)
        return [availability_models.AvailabilitySlotRead.model_validate(row) for row in result.scalars().all()]

    async def get_slot(self, tutor_id: UUID, slot_date: date) -> db_models.TutorAvailability | None:
        """Live read of one tutor date; used by booking and rescheduling."""
        stmt = select(db_models.TutorAvailability).where(
            db_models.TutorAvailability.tutor_id == tutor_id,
            db_models.TutorAvailability.date == slot_date,
        )
        return (await self.db.execute(stmt)).scalars().first()

    async def tutors_with_future_availability(self, tutor_ids: Iterable[UUID], today: date) -> set[UUID]:
        """Ids among `tutor_ids` having at least one available date on or after `today`."""
        tutor_ids = list(tutor_ids)
        if not tutor_ids:
            return set()
        stmt = select(db_models.TutorAvailability.tutor_id).where(
            db_models.TutorAvailability.tutor_id.in_(tutor_ids),
            db_models.TutorAvailability.is_available.is_(True),
            db_models.TutorAvailability.date >= today,
        ).distinct()
        return set((await self.db.execute(stmt)).scalars().all())
