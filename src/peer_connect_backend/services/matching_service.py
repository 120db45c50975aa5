'''
Matching entry points: loads the seeker and the opposite-role pool,
then delegates the scoring to core.matching.
'''
from decimal import Decimal
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends

from ..database.db_enums import UserRole
from ..common.clock import Clock
from ..common.exceptions import ProfileIncompleteError, UnauthorizedError
from ..common.logger import log
from ..core.matching import MatchingWeights, ScoredCandidate, rank_candidates
from ..models import matching as matching_models
from ..models.profile import TutorProfileRead
from .availability_service import AvailabilityService
from .profile_service import ProfileService, to_profile_read


def get_matching_weights() -> MatchingWeights:
    """Dependency returning the weights configured in settings."""
    return MatchingWeights.from_settings()


class MatchingService:
    """
    Service computing ranked matches. Nothing is persisted; every call
    recomputes from the current profiles and availability.
    """
    def __init__(
        self,
        profile_service: Annotated[ProfileService, Depends(ProfileService)],
        availability_service: Annotated[AvailabilityService, Depends(AvailabilityService)],
        clock: Annotated[Clock, Depends(Clock)],
        weights: Annotated[MatchingWeights, Depends(get_matching_weights)]
    ):
        self.profile_service = profile_service
        self.availability_service = availability_service
        self.clock = clock
        self.weights = weights

    async def find_matches(
        self,
        seeker_id: UUID,
        seeker_role: UserRole,
        min_rate: Optional[Decimal] = None,
        max_rate: Optional[Decimal] = None,
        verified_only: bool = False
    ) -> list[ScoredCandidate]:
        """
        Ranks every completed profile of the opposite role for the seeker.
        The rate/verified filters only narrow a student's tutor search.
        """
        seeker_role = UserRole(seeker_role)
        log.info(f"Finding matches for {seeker_role.value} {seeker_id}.")

        seeker_orm = await self.profile_service.get_profile_orm(seeker_id)
        if seeker_orm.role != seeker_role.value:
            log.warning(f"User {seeker_id} ({seeker_orm.role}) requested matches as {seeker_role.value}.")
            raise UnauthorizedError(f"Only {seeker_role.value}s can run this search.")
        if not seeker_orm.profile_completed:
            raise ProfileIncompleteError("Complete your profile before searching for matches.")
        seeker = to_profile_read(seeker_orm)

        candidate_role = UserRole.TUTOR if seeker_role == UserRole.STUDENT else UserRole.STUDENT
        candidates = [to_profile_read(c) for c in await self.profile_service.list_completed_profiles(candidate_role)]

        if seeker_role == UserRole.STUDENT:
            candidates = [
                c for c in candidates
                if isinstance(c, TutorProfileRead)
                and (min_rate is None or c.hourly_rate >= min_rate)
                and (max_rate is None or c.hourly_rate <= max_rate)
                and (not verified_only or c.is_verified_tutor)
            ]
            tutor_ids = [c.id for c in candidates]
        else:
            tutor_ids = [seeker.id]

        available = await self.availability_service.tutors_with_future_availability(tutor_ids, self.clock.today())
        ranked = rank_candidates(seeker, candidates, available, self.weights)
        log.info(f"{len(ranked)} match(es) for {seeker_role.value} {seeker_id} out of {len(candidates)} candidate(s).")
        return ranked

    async def find_matches_for_api(self, current_user, seeker_role: UserRole, **filters) -> matching_models.MatchList:
        ranked = await self.find_matches(current_user.id, seeker_role, **filters)
        matches = [
            matching_models.MatchRead(
                candidate=scored.candidate,
                match_percentage=scored.match_percentage,
                match_details=scored.match_details,
            )
            for scored in ranked
        ]
        return matching_models.MatchList(matches=matches, total=len(matches))
