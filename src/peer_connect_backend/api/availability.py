'''
API endpoints for tutor availability.
'''
from datetime import date
from typing import Annotated, Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends

from ..database import models as db_models
from ..models import availability as availability_models
from ..services.security import verify_token_and_get_user
from ..services.availability_service import AvailabilityService

class AvailabilityAPI:
    """
    A class to encapsulate the availability calendar endpoints.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/availability",
            tags=["Availability"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
                "/me",
                self.list_my_availability,
                methods=["GET"],
                response_model=List[availability_models.AvailabilitySlotRead])

        self.router.add_api_route(
                "/me",
                self.set_my_availability,
                methods=["PUT"],
                response_model=List[availability_models.AvailabilitySlotRead])

        self.router.add_api_route(
                "/{tutor_id}",
                self.list_tutor_availability,
                methods=["GET"],
                response_model=List[availability_models.AvailabilitySlotRead])

    async def list_my_availability(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        availability_service: Annotated[AvailabilityService, Depends(AvailabilityService)],
        from_date: Optional[date] = None
    ) -> Any:
        return await availability_service.list_availability(current_user.id, from_date=from_date)

    async def set_my_availability(
        self,
        availability_data: availability_models.AvailabilityUpdate,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        availability_service: Annotated[AvailabilityService, Depends(AvailabilityService)]
    ) -> Any:
        """
        Upserts the caller's availability, one entry per date. Restricted to Tutors.
        """
        return await availability_service.set_availability(current_user, availability_data)

    async def list_tutor_availability(
        self,
        tutor_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        availability_service: Annotated[AvailabilityService, Depends(AvailabilityService)],
        from_date: Optional[date] = None,
        only_available: bool = True
    ) -> Any:
        """
        A tutor's calendar as shown to students. By default only dates still offered.
        """
        return await availability_service.list_availability(tutor_id, from_date=from_date, only_available=only_available)

# Instantiate the class and export its router
availability_api = AvailabilityAPI()
router = availability_api.router
