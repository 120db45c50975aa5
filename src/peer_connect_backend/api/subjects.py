'''
API endpoint for the learning-subject catalog.
'''
from typing import Annotated, Any, List
from fastapi import APIRouter, Depends

from ..models import profile as profile_models
from ..services.profile_service import ProfileService

class SubjectsAPI:
    def __init__(self):
        self.router = APIRouter(
            prefix="/subjects",
            tags=["Subjects"]
        )
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.list_subjects,
                methods=["GET"],
                response_model=List[profile_models.LearningSubjectRead])

    async def list_subjects(
        self,
        profile_service: Annotated[ProfileService, Depends(ProfileService)]
    ) -> Any:
        """Public list of the subjects a session can be booked for."""
        return await profile_service.list_subjects()

# Instantiate the class and export its router
subjects_api = SubjectsAPI()
router = subjects_api.router
