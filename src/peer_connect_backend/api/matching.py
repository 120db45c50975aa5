'''
API endpoints for the matching engine.
'''
from decimal import Decimal
from typing import Annotated, Any, Optional
from fastapi import APIRouter, Depends, Query

from ..database import models as db_models
from ..database.db_enums import UserRole
from ..models import matching as matching_models
from ..services.security import verify_token_and_get_user
from ..services.matching_service import MatchingService

class MatchingAPI:
    """
    A class to encapsulate the tutor/student match searches.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/matching",
            tags=["Matching"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
                "/findTutors",
                self.find_tutors,
                methods=["GET"],
                response_model=matching_models.MatchList)

        self.router.add_api_route(
                "/findStudents",
                self.find_students,
                methods=["GET"],
                response_model=matching_models.MatchList)

    async def find_tutors(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        matching_service: Annotated[MatchingService, Depends(MatchingService)],
        min_rate: Annotated[Optional[Decimal], Query(ge=0)] = None,
        max_rate: Annotated[Optional[Decimal], Query(ge=0)] = None,
        verified_only: bool = False
    ) -> Any:
        """
        Ranked tutors for the signed-in student. An empty list is a valid answer.
        """
        return await matching_service.find_matches_for_api(
            current_user, UserRole.STUDENT,
            min_rate=min_rate, max_rate=max_rate, verified_only=verified_only
        )

    async def find_students(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        matching_service: Annotated[MatchingService, Depends(MatchingService)]
    ) -> Any:
        """
        Ranked students for the signed-in tutor.
        """
        return await matching_service.find_matches_for_api(current_user, UserRole.TUTOR)

# Instantiate the class and export its router
matching_api = MatchingAPI()
router = matching_api.router
