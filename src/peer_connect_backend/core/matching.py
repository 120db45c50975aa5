'''
This file holds the compatibility scoring between a seeker and the
profiles of the opposite role. It is pure: it works on profile read
models and a precomputed set of available tutors, and touches no database.
'''
import math
from decimal import Decimal
from typing import Iterable, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, computed_field

from ..common.config import settings
from ..database.db_enums import AcademicLevel, LEVELS_ADMITTED_BY
from ..models.matching import MatchDimension
from ..models.profile import StudentProfileRead, TutorProfileRead

Profile = Union[StudentProfileRead, TutorProfileRead]


class MatchingWeights(BaseModel):
    """Maximum points of each scoring dimension. Defaults add up to 100."""
    subjects: float = 40.0
    location: float = 20.0
    level_style: float = 20.0
    availability: float = 10.0
    reputation: float = 10.0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_settings(cls) -> 'MatchingWeights':
        return cls(
            subjects=settings.MATCH_WEIGHT_SUBJECTS,
            location=settings.MATCH_WEIGHT_LOCATION,
            level_style=settings.MATCH_WEIGHT_LEVEL_STYLE,
            availability=settings.MATCH_WEIGHT_AVAILABILITY,
            reputation=settings.MATCH_WEIGHT_REPUTATION,
        )

    @property
    def total(self) -> float:
        return self.subjects + self.location + self.level_style + self.availability + self.reputation


class ScoredCandidate(BaseModel):
    """A candidate together with its unrounded score and per-dimension breakdown."""
    candidate: Profile
    score: float
    match_details: dict[str, MatchDimension]

    @computed_field
    @property
    def match_percentage(self) -> int:
        # half-up rounding, kept inside [1, 100]
        return min(100, max(1, math.floor(self.score + 0.5)))

    def __repr__(self) -> str:
        return f"ScoredCandidate(id={self.candidate.id!r}, score={self.score:.2f}, pct={self.match_percentage})"


def normalize_subjects(subjects: Iterable[str]) -> set[str]:
    """Case-insensitive, whitespace-trimmed subject set."""
    return {s.strip().casefold() for s in subjects if s and s.strip()}


def subjects_of(profile: Profile) -> set[str]:
    if isinstance(profile, StudentProfileRead):
        return normalize_subjects(profile.subjects_of_interest)
    return normalize_subjects(profile.specializations)


def _split_pair(seeker: Profile, candidate: Profile) -> tuple[StudentProfileRead, TutorProfileRead]:
    if isinstance(seeker, StudentProfileRead):
        return seeker, candidate
    return candidate, seeker


def _level_admitted(student: StudentProfileRead, tutor: TutorProfileRead) -> bool:
    if tutor.preferred_student_level is None or student.academic_level is None:
        return False
    return AcademicLevel(student.academic_level) in LEVELS_ADMITTED_BY[tutor.preferred_student_level]


def score_candidate(
    seeker: Profile,
    candidate: Profile,
    tutor_has_future_availability: bool,
    weights: MatchingWeights,
) -> ScoredCandidate | None:
    """
    Scores one candidate against the seeker.
    Returns None when the pair shares no subject; such candidates are never returned.
    """
    seeker_subjects = subjects_of(seeker)
    common = seeker_subjects & subjects_of(candidate)
    if not common:
        return None

    student, tutor = _split_pair(seeker, candidate)
    details: dict[str, MatchDimension] = {}

    details['subjects'] = MatchDimension(
        points=weights.subjects * len(common) / len(seeker_subjects),
        max_points=weights.subjects,
        description=f"{len(common)} of {len(seeker_subjects)} subjects in common: {', '.join(sorted(common))}",
    )

    same_campus = seeker.campus_location is not None and seeker.campus_location == candidate.campus_location
    details['location'] = MatchDimension(
        points=weights.location if same_campus else 0.0,
        max_points=weights.location,
        description="Same campus" if same_campus else "Different campus",
    )

    if isinstance(seeker, StudentProfileRead):
        fits = _level_admitted(student, tutor)
        description = (
            "Tutor teaches your academic level" if fits
            else "Tutor prefers a different academic level"
        )
    else:
        fits = student.preferred_learning_style is not None and student.preferred_learning_style in tutor.teaching_styles
        description = (
            "Student's learning style matches your teaching styles" if fits
            else "Student's learning style is not among your teaching styles"
        )
    details['level_style'] = MatchDimension(
        points=weights.level_style if fits else 0.0,
        max_points=weights.level_style,
        description=description,
    )

    details['availability'] = MatchDimension(
        points=weights.availability if tutor_has_future_availability else 0.0,
        max_points=weights.availability,
        description="Tutor has upcoming availability" if tutor_has_future_availability else "Tutor has no upcoming availability",
    )

    rating = tutor.average_rating or Decimal('0')
    details['reputation'] = MatchDimension(
        points=weights.reputation * float(rating) / 5.0,
        max_points=weights.reputation,
        description=f"Rated {rating:.2f}/5 from {tutor.total_reviews} reviews" if tutor.total_reviews else "Not rated yet",
    )

    return ScoredCandidate(
        candidate=candidate,
        score=sum(d.points for d in details.values()),
        match_details=details,
    )


def _candidate_rating(candidate: Profile) -> Decimal:
    if isinstance(candidate, TutorProfileRead):
        return candidate.average_rating or Decimal('0')
    return Decimal('0')


def rank_candidates(
    seeker: Profile,
    candidates: Iterable[Profile],
    available_tutor_ids: set[UUID],
    weights: MatchingWeights,
) -> list[ScoredCandidate]:
    """
    Scores every candidate, drops those without a common subject and orders the rest
    by score desc, then the candidate's rating desc, then id. The order is total,
    so the same inputs always give the same list.
    """
    scored = []
    for candidate in candidates:
        if candidate.id == seeker.id:
            continue
        _, tutor = _split_pair(seeker, candidate)
        result = score_candidate(seeker, candidate, tutor.id in available_tutor_ids, weights)
        if result is not None:
            scored.append(result)

    scored.sort(key=lambda s: (-s.score, -_candidate_rating(s.candidate), str(s.candidate.id)))
    return scored
