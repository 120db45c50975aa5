'''
Response shapes of the matching endpoints.
'''
from pydantic import BaseModel

from .profile import ProfileRead


class MatchDimension(BaseModel):
    """Partial credit earned on one scoring dimension."""
    points: float
    max_points: float
    description: str


class MatchRead(BaseModel):
    candidate: ProfileRead
    match_percentage: int
    match_details: dict[str, MatchDimension]


class MatchList(BaseModel):
    matches: list[MatchRead]
    total: int
