'''
API endpoints for reading and completing profiles.
'''
from typing import Annotated, Any
from uuid import UUID
from fastapi import APIRouter, Depends

from ..database import models as db_models
from ..models import profile as profile_models
from ..services.security import verify_token_and_get_user
from ..services.profile_service import ProfileService

class ProfilesAPI:
    """
    A class to encapsulate the profile endpoints of both roles.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/profiles",
            tags=["Profiles"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
                "/me",
                self.get_my_profile,
                methods=["GET"],
                response_model=profile_models.ProfileRead)

        self.router.add_api_route(
                "/student/me",
                self.complete_student_profile,
                methods=["PUT"],
                response_model=profile_models.StudentProfileRead)

        self.router.add_api_route(
                "/tutor/me",
                self.complete_tutor_profile,
                methods=["PUT"],
                response_model=profile_models.TutorProfileRead)

        self.router.add_api_route(
                "/{user_id}",
                self.get_profile,
                methods=["GET"],
                response_model=profile_models.ProfileRead)

    async def get_my_profile(
        self,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        profile_service: Annotated[ProfileService, Depends(ProfileService)]
    ) -> Any:
        return await profile_service.get_profile(current_user.id)

    async def get_profile(
        self,
        user_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        profile_service: Annotated[ProfileService, Depends(ProfileService)]
    ) -> Any:
        """
        Retrieves any user's public profile. Requires a signed-in user.
        """
        return await profile_service.get_profile(user_id)

    async def complete_student_profile(
        self,
        profile_data: profile_models.StudentProfileUpdate,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        profile_service: Annotated[ProfileService, Depends(ProfileService)]
    ) -> Any:
        """
        Writes and completes the caller's student profile. Restricted to Students.
        """
        return await profile_service.complete_student_profile(current_user, profile_data)

    async def complete_tutor_profile(
        self,
        profile_data: profile_models.TutorProfileUpdate,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        profile_service: Annotated[ProfileService, Depends(ProfileService)]
    ) -> Any:
        """
        Writes and completes the caller's tutor profile. Restricted to Tutors.
        """
        return await profile_service.complete_tutor_profile(current_user, profile_data)

# Instantiate the class and export its router
profiles_api = ProfilesAPI()
router = profiles_api.router
