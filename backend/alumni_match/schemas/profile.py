from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel


class SkillLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


# Used to pick a candidate's strongest skills for reasons and insights
SKILL_LEVEL_RANK = {
    SkillLevel.BEGINNER: 0,
    SkillLevel.INTERMEDIATE: 1,
    SkillLevel.ADVANCED: 2,
    SkillLevel.EXPERT: 3,
}


class ProfileRole(str, Enum):
    STUDENT = "student"
    ALUMNI = "alumni"


class Skill(BaseModel):
    name: str
    level: SkillLevel = SkillLevel.INTERMEDIATE

    class Config:
        frozen = True


class Profile(BaseModel):
    """
    Seeker or candidate profile as supplied by the caller.

    Every field except ``id`` has an empty default so partially filled
    records still score; a missing field simply contributes nothing to the
    sub-score that reads it.

    ``updated_at`` is the freshness token for cached embeddings. When it is
    absent a hash of the profile text is used instead.
    """

    id: str
    role: ProfileRole = ProfileRole.STUDENT
    name: str = ""
    category: str = ""
    skills: list[Skill] = []
    interests: list[str] = []
    location: str = ""
    years_experience: float = 0
    is_mentor: bool = False
    is_seeking_mentorship: bool = False
    mentor_categories: list[str] = []
    bio: Optional[str] = None

    # Candidate-only fields
    current_role: Optional[str] = None
    current_company: Optional[str] = None
    industry: Optional[str] = None

    updated_at: Optional[Union[datetime, str]] = None

    class Config:
        frozen = True

    @property
    def skill_names(self) -> list[str]:
        return [s.name for s in self.skills if s.name.strip()]
