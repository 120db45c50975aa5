'''
Notification emitter and inbox.
Emitting only stages a row in the caller's transaction, so a notification
commits (or rolls back) together with the transition that produced it.
'''
from typing import Annotated, Any, Optional
from uuid import UUID
from fastapi import Depends
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import NotificationType, UserRole
from ..common.exceptions import NotFoundError
from ..common.logger import log
from ..models import notification as notification_models


class NotificationService:
    """
    Service for creating and reading user notifications.
    """
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def emit(
        self,
        notification_type: NotificationType,
        recipient_id: UUID,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None
    ) -> db_models.Notifications | None:
        """
        Stages a notification for `recipient_id`.
        Never raises: a failed notification must not fail the calling operation.
        """
        try:
            notification = db_models.Notifications(
                user_id=recipient_id,
                type=NotificationType(notification_type).value,
                title=title,
                message=message,
                data=data or {},
                is_read=False,
            )
            self.db.add(notification)
            log.info(f"Notification '{notification.type}' staged for user {recipient_id}.")
            return notification
        except Exception as e:
            log.error(f"Failed to stage notification '{notification_type}' for user {recipient_id}: {e}", exc_info=True)
            return None

    # --- Session lifecycle templates ---

    @staticmethod
    def _session_data(session: db_models.TutoringSessions, **extra) -> dict[str, Any]:
        data = {
            'session_id': str(session.id),
            'subject': session.subject_name,
            'session_date': session.session_date.isoformat(),
            'start_time': session.start_time.isoformat(timespec='minutes'),
            'end_time': session.end_time.isoformat(timespec='minutes'),
        }
        data.update(extra)
        return data

    async def session_requested(self, session, student: db_models.Students, tutor: db_models.Tutors):
        await self.emit(
            NotificationType.SESSION_REQUEST,
            tutor.id,
            'New Session Request',
            f"You have a new session request from {student.full_name} for {session.subject_name}.",
            self._session_data(
                session,
                student_id=str(student.id),
                student_name=student.full_name,
                total_cost=str(session.total_cost),
            ),
        )

    async def session_booked(self, session, student: db_models.Students, tutor: db_models.Tutors):
        await self.emit(
            NotificationType.SESSION_BOOKED,
            student.id,
            'Session Booked',
            f"Your session request with {tutor.full_name} for {session.subject_name} has been sent.",
            self._session_data(session, tutor_id=str(tutor.id), tutor_name=tutor.full_name),
        )

    async def session_confirmed(self, session, student: db_models.Students, tutor: db_models.Tutors):
        await self.emit(
            NotificationType.SESSION_CONFIRMED,
            student.id,
            'Session Confirmed',
            f"Your session with {tutor.full_name} for {session.subject_name} has been confirmed.",
            self._session_data(session, tutor_id=str(tutor.id), tutor_name=tutor.full_name),
        )

    async def session_rejected(self, session, student: db_models.Students, tutor: db_models.Tutors):
        await self.emit(
            NotificationType.SESSION_REJECTED,
            student.id,
            'Session Declined',
            f"Your session request with {tutor.full_name} for {session.subject_name} was declined.",
            self._session_data(session, tutor_id=str(tutor.id), tutor_name=tutor.full_name),
        )

    async def session_completed(self, session, student: db_models.Students, tutor: db_models.Tutors):
        await self.emit(
            NotificationType.SESSION_COMPLETED,
            tutor.id,
            'Session Completed',
            f"Your session with {student.full_name} for {session.subject_name} has been completed.",
            self._session_data(session, student_id=str(student.id), student_name=student.full_name),
        )

    async def session_changed_by(
        self,
        notification_type: NotificationType,
        session,
        student: db_models.Students,
        tutor: db_models.Tutors,
        actor_role: str
    ):
        """Cancelled / rescheduled: tells the participant who did not act."""
        if actor_role == UserRole.STUDENT.value:
            recipient, actor = tutor, student
        else:
            recipient, actor = student, tutor
        verb = 'cancelled' if notification_type == NotificationType.SESSION_CANCELLED else 'rescheduled'
        await self.emit(
            notification_type,
            recipient.id,
            f"Session {verb.capitalize()}",
            f"Your session with {actor.full_name} for {session.subject_name} has been {verb}.",
            self._session_data(session, **{f"{verb}_by": actor_role, 'other_user_name': actor.full_name}),
        )

    async def review_received(self, review: db_models.SessionReviews, student: db_models.Students, tutor_id: UUID):
        await self.emit(
            NotificationType.REVIEW_RECEIVED,
            tutor_id,
            'New Review Received',
            f"{student.full_name} left you a {review.rating}-star review.",
            {
                'session_id': str(review.session_id),
                'review_id': str(review.id),
                'rating': review.rating,
                'student_name': student.full_name,
            },
        )

    # --- Inbox ---

    async def list_notifications(
        self,
        current_user: db_models.Users,
        unread_only: bool = False,
        limit: int = 50
    ) -> list[notification_models.NotificationRead]:
        log.info(f"Listing notifications for user {current_user.id} (unread_only={unread_only}).")
        stmt = select(db_models.Notifications).where(db_models.Notifications.user_id == current_user.id)
        if unread_only:
            stmt = stmt.where(db_models.Notifications.is_read.is_(False))
        stmt = stmt.order_by(db_models.Notifications.created_at.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return [notification_models.NotificationRead.model_validate(n) for n in result.scalars().all()]

    async def mark_as_read(self, notification_id: UUID, current_user: db_models.Users) -> notification_models.NotificationRead:
        log.info(f"User {current_user.id} marking notification {notification_id} as read.")
        notification = await self.db.get(db_models.Notifications, notification_id)
        # another user's notification is reported as missing
        if notification is None or notification.user_id != current_user.id:
            raise NotFoundError(f"Notification {notification_id} not found.")
        notification.is_read = True
        await self.db.flush()
        return notification_models.NotificationRead.model_validate(notification)

    async def mark_all_as_read(self, current_user: db_models.Users) -> notification_models.MarkedRead:
        log.info(f"User {current_user.id} marking all notifications as read.")
        stmt = (
            update(db_models.Notifications)
            .where(
                db_models.Notifications.user_id == current_user.id,
                db_models.Notifications.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session='fetch')
        )
        result = await self.db.execute(stmt)
        return notification_models.MarkedRead(updated=result.rowcount or 0)

    async def unread_count(self, current_user: db_models.Users) -> notification_models.UnreadCount:
        stmt = select(func.count()).select_from(db_models.Notifications).where(
            db_models.Notifications.user_id == current_user.id,
            db_models.Notifications.is_read.is_(False),
        )
        count = (await self.db.execute(stmt)).scalar_one()
        return notification_models.UnreadCount(count=count)
