'''
Session reviews and the tutor rating they feed.
'''
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated
from uuid import UUID
from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import SessionStatus
from ..common.exceptions import NotFoundError, PeerConnectError, ReviewNotAllowedError, UnauthorizedError
from ..common.logger import log
from ..models import review as review_models
from .notification_service import NotificationService


class ReviewService:
    """
    Service for reviewing completed sessions and summarizing tutor reviews.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        notification_service: Annotated[NotificationService, Depends(NotificationService)]
    ):
        self.db = db
        self.notification_service = notification_service

    async def _refresh_tutor_rating(self, tutor_id: UUID) -> db_models.Tutors:
        """Recomputes average_rating / total_reviews from every review of the tutor."""
        stmt = select(func.avg(db_models.SessionReviews.rating), func.count(db_models.SessionReviews.id)).where(
            db_models.SessionReviews.tutor_id == tutor_id
        )
        average, total = (await self.db.execute(stmt)).one()
        tutor = await self.db.get(db_models.Tutors, tutor_id)
        tutor.average_rating = Decimal(str(average or 0)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        tutor.total_reviews = total
        return tutor

    async def submit_review(
        self,
        session_id: UUID,
        current_user: db_models.Users,
        review_data: review_models.ReviewCreate
    ) -> review_models.ReviewRead:
        """
        Records the student's review of a completed session, exactly once,
        and folds it into the tutor's rating.
        """
        log.info(f"User {current_user.id} reviewing session {session_id}.")
        session = await self.db.get(db_models.TutoringSessions, session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found.")
        if current_user.id != session.student_id:
            log.warning(f"User {current_user.id} tried to review session {session_id} they did not attend as student.")
            raise UnauthorizedError("Only the session's student can review it.")
        if session.status != SessionStatus.COMPLETED.value:
            raise ReviewNotAllowedError("Only completed sessions can be reviewed.")
        if session.has_review:
            raise ReviewNotAllowedError("This session has already been reviewed.")

        try:
            review = db_models.SessionReviews(
                session_id=session.id,
                student_id=session.student_id,
                tutor_id=session.tutor_id,
                rating=review_data.rating,
                comment=review_data.comment,
            )
            self.db.add(review)
            session.has_review = True
            try:
                await self.db.flush()
            except IntegrityError:
                # a concurrent review of the same session won the unique constraint
                log.warning(f"Duplicate review rejected for session {session_id}.")
                raise ReviewNotAllowedError("This session has already been reviewed.")

            tutor = await self._refresh_tutor_rating(session.tutor_id)
            await self.notification_service.review_received(review, current_user, session.tutor_id)
            await self.db.flush()
            log.info(f"Review {review.id} saved; tutor {tutor.id} now at {tutor.average_rating} over {tutor.total_reviews}.")
            return review_models.ReviewRead.model_validate(review)
        except PeerConnectError:
            raise
        except Exception as e:
            log.error(f"Unexpected error while reviewing session {session_id}: {e}", exc_info=True)
            raise

    async def get_tutor_review_summary(self, tutor_id: UUID) -> review_models.TutorReviewSummary:
        log.info(f"Building review summary for tutor {tutor_id}.")
        tutor = await self.db.get(db_models.Tutors, tutor_id)
        if tutor is None:
            raise NotFoundError(f"Tutor {tutor_id} not found.")

        reviews = (await self.db.execute(
            select(db_models.SessionReviews)
            .where(db_models.SessionReviews.tutor_id == tutor_id)
            .order_by(db_models.SessionReviews.created_at.desc())
        )).scalars().all()

        distribution = {stars: 0 for stars in range(1, 6)}
        for review in reviews:
            distribution[review.rating] += 1

        completed = (await self.db.execute(
            select(func.count(db_models.TutoringSessions.id)).where(
                db_models.TutoringSessions.tutor_id == tutor_id,
                db_models.TutoringSessions.status == SessionStatus.COMPLETED.value,
            )
        )).scalar_one()

        return review_models.TutorReviewSummary(
            tutor_id=tutor.id,
            average_rating=tutor.average_rating,
            total_reviews=tutor.total_reviews,
            rating_distribution=distribution,
            completed_sessions=completed,
            reviews=[review_models.ReviewRead.model_validate(r) for r in reviews],
        )
