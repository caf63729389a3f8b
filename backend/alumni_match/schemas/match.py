from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from alumni_match.schemas.profile import Profile


class CriterionKind(str, Enum):
    CAREER_SIMILARITY = "career_similarity"
    SKILL_COMPLEMENT = "skill_complement"
    GEOGRAPHIC_PROXIMITY = "geographic_proximity"
    MENTORSHIP_FIT = "mentorship_fit"


class Criterion(BaseModel):
    kind: CriterionKind
    weight: float = Field(default=1.0, ge=0)

    class Config:
        frozen = True


# Applied when a request does not say which criteria to use
DEFAULT_CRITERIA = [
    Criterion(kind=CriterionKind.CAREER_SIMILARITY, weight=0.30),
    Criterion(kind=CriterionKind.SKILL_COMPLEMENT, weight=0.25),
    Criterion(kind=CriterionKind.MENTORSHIP_FIT, weight=0.25),
    Criterion(kind=CriterionKind.GEOGRAPHIC_PROXIMITY, weight=0.20),
]


class MatchResult(BaseModel):
    candidate_id: str
    score: float
    reasons: list[str] = []
    matched_criteria: list[CriterionKind] = []
    insight: Optional[str] = None

    # Explainability detail, not part of the public response
    subscores: dict[CriterionKind, float] = Field(default_factory=dict, exclude=True)
    semantic: float = Field(default=0.0, exclude=True)
    embedding_source: str = Field(default="", exclude=True)


class MatchRequest(BaseModel):
    seeker: Profile
    candidates: list[Profile]
    criteria: Optional[list[Criterion]] = None
    limit: Optional[int] = Field(default=None, ge=1)


class MatchResponse(BaseModel):
    matches: list[MatchResult]
    total_count: int
    criteria: list[Criterion]
