from alumni_match.schemas.profile import Profile, ProfileRole, Skill, SkillLevel
from alumni_match.schemas.match import (
    Criterion,
    CriterionKind,
    DEFAULT_CRITERIA,
    MatchRequest,
    MatchResponse,
    MatchResult,
)

__all__ = [
    "Profile",
    "ProfileRole",
    "Skill",
    "SkillLevel",
    "Criterion",
    "CriterionKind",
    "DEFAULT_CRITERIA",
    "MatchRequest",
    "MatchResponse",
    "MatchResult",
]
