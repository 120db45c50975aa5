'''
API endpoint for tutor review summaries.
'''
from typing import Annotated, Any
from uuid import UUID
from fastapi import APIRouter, Depends

from ..database import models as db_models
from ..models import review as review_models
from ..services.security import verify_token_and_get_user
from ..services.review_service import ReviewService

class ReviewsAPI:
    def __init__(self):
        self.router = APIRouter(
            prefix="/reviews",
            tags=["Reviews"]
        )
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/tutors/{tutor_id}",
                self.get_tutor_reviews,
                methods=["GET"],
                response_model=review_models.TutorReviewSummary)

    async def get_tutor_reviews(
        self,
        tutor_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        review_service: Annotated[ReviewService, Depends(ReviewService)]
    ) -> Any:
        """Average, distribution and the list of a tutor's reviews."""
        return await review_service.get_tutor_review_summary(tutor_id)

# Instantiate the class and export its router
reviews_api = ReviewsAPI()
router = reviews_api.router
