'''
API endpoints for booking and managing tutoring sessions.
'''
from typing import Annotated, Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status

from ..database import models as db_models
from ..database.db_enums import SessionStatus
from ..models import session as session_models
from ..models import review as review_models
from ..services.security import verify_token_and_get_user
from ..services.session_service import SessionService
from ..services.review_service import ReviewService

class SessionsAPI:
    """
    A class to encapsulate the session lifecycle endpoints.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/sessions",
            tags=["Sessions"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
                "/book",
                self.book_session,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=session_models.SessionRead)

        self.router.add_api_route(
                "/",
                self.list_sessions,
                methods=["GET"],
                response_model=List[session_models.SessionRead])

        self.router.add_api_route(
                "/{session_id}",
                self.get_session,
                methods=["GET"],
                response_model=session_models.SessionRead)

        for action in ("confirm", "reject", "cancel", "complete"):
            self.router.add_api_route(
                    f"/{{session_id}}/{action}",
                    getattr(self, f"{action}_session"),
                    methods=["POST"],
                    response_model=session_models.SessionRead)

        self.router.add_api_route(
                "/{session_id}/reschedule",
                self.reschedule_session,
                methods=["POST"],
                response_model=session_models.SessionRead)

        self.router.add_api_route(
                "/{session_id}/review",
                self.review_session,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=review_models.ReviewRead)

    async def book_session(
        self,
        booking: session_models.SessionBook,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        session_service: Annotated[SessionService, Depends(SessionService)]
    ) -> Any:
        """
        Books a session with a tutor. Restricted to Students; starts as pending.
        """
        return await session_service.book(current_user, booking)

    async def list_sessions(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        session_service: Annotated[SessionService, Depends(SessionService)],
        status: Optional[SessionStatus] = None
    ) -> Any:
        return await session_service.list_sessions(current_user, status)

    async def get_session(
        self,
        session_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        session_service: Annotated[SessionService, Depends(SessionService)]
    ) -> Any:
        return await session_service.get_session(session_id, current_user)

    async def confirm_session(
        self,
        session_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        session_service: Annotated[SessionService, Depends(SessionService)]
    ) -> Any:
        """Tutor accepts a pending request."""
        return await session_service.confirm(session_id, current_user)

    async def reject_session(
        self,
        session_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        session_service: Annotated[SessionService, Depends(SessionService)]
    ) -> Any:
        """Tutor declines a pending request."""
        return await session_service.reject(session_id, current_user)

    async def cancel_session(
        self,
        session_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        session_service: Annotated[SessionService, Depends(SessionService)]
    ) -> Any:
        return await session_service.cancel(session_id, current_user)

    async def complete_session(
        self,
        session_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        session_service: Annotated[SessionService, Depends(SessionService)]
    ) -> Any:
        """Student marks a confirmed session as held."""
        return await session_service.complete(session_id, current_user)

    async def reschedule_session(
        self,
        session_id: UUID,
        reschedule_data: session_models.SessionReschedule,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        session_service: Annotated[SessionService, Depends(SessionService)]
    ) -> Any:
        return await session_service.reschedule(session_id, current_user, reschedule_data)

    async def review_session(
        self,
        session_id: UUID,
        review_data: review_models.ReviewCreate,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        review_service: Annotated[ReviewService, Depends(ReviewService)]
    ) -> Any:
        """Student reviews a completed session, once."""
        return await review_service.submit_review(session_id, current_user, review_data)

# Instantiate the class and export its router
sessions_api = SessionsAPI()
router = sessions_api.router
