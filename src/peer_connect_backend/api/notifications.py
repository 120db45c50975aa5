'''
API endpoints for the signed-in user's notifications.
'''
from typing import Annotated, Any, List
from uuid import UUID
from fastapi import APIRouter, Depends

from ..database import models as db_models
from ..models import notification as notification_models
from ..services.security import verify_token_and_get_user
from ..services.notification_service import NotificationService

class NotificationsAPI:
    """
    A class to encapsulate the notification inbox endpoints.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/notifications",
            tags=["Notifications"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
                "/",
                self.list_notifications,
                methods=["GET"],
                response_model=List[notification_models.NotificationRead])

        self.router.add_api_route(
                "/unread-count",
                self.unread_count,
                methods=["GET"],
                response_model=notification_models.UnreadCount)

        self.router.add_api_route(
                "/read-all",
                self.mark_all_as_read,
                methods=["POST"],
                response_model=notification_models.MarkedRead)

        self.router.add_api_route(
                "/{notification_id}/read",
                self.mark_as_read,
                methods=["POST"],
                response_model=notification_models.NotificationRead)

    async def list_notifications(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        notification_service: Annotated[NotificationService, Depends(NotificationService)],
        unread_only: bool = False
    ) -> Any:
        return await notification_service.list_notifications(current_user, unread_only=unread_only)

    async def unread_count(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        notification_service: Annotated[NotificationService, Depends(NotificationService)]
    ) -> Any:
        return await notification_service.unread_count(current_user)

    async def mark_as_read(
        self,
        notification_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        notification_service: Annotated[NotificationService, Depends(NotificationService)]
    ) -> Any:
        return await notification_service.mark_as_read(notification_id, current_user)

    async def mark_all_as_read(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        notification_service: Annotated[NotificationService, Depends(NotificationService)]
    ) -> Any:
        return await notification_service.mark_all_as_read(current_user)

# Instantiate the class and export its router
notifications_api = NotificationsAPI()
router = notifications_api.router
