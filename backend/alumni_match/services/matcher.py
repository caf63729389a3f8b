"""
Profile Matching Sub-scores - Rule-Based Compatibility Signals

Each function compares a seeker with one candidate along a single dimension
and returns a value in [0, 1]. They are pure: no I/O, no shared state.

Sub-scores:
    - Career Similarity: category match, interests found in role/industry,
      experience alignment for alumni-to-alumni matching
    - Skill Complement: shared skills balanced against new skills to learn
    - Geographic Proximity: tiered city / state / region matching
    - Mentorship Fit: availability, seeking flag, experience gap, topic overlap

The rule tables below are plain data; tune them without touching the
scoring code.

Complexity Analysis:
    - skill_complement: O(s*c) where s, c = seeker and candidate skill counts
    - everything else: O(i*m) at most, i = interests, m = mentor categories
"""

from typing import Callable, Dict, List, Optional

from alumni_match.schemas.match import CriterionKind
from alumni_match.schemas.profile import Profile, ProfileRole

# Career similarity increments
CAREER_CATEGORY_MATCH = 0.4
CAREER_INTEREST_MATCH = 0.3
CAREER_PEER_EXPERIENCE_BONUS = 0.3
CAREER_PEER_DECAY_PER_YEAR = 0.05

# Skill complement: weights and cap on how many new skills count
SKILL_OVERLAP_WEIGHT = 0.4
SKILL_COMPLEMENT_WEIGHT = 0.6
SKILL_COMPLEMENT_CAP = 5

# Geographic tiers
GEO_EXACT = 1.0
GEO_SAME_STATE = 0.7
GEO_SAME_REGION = 0.5
GEO_DISTANT = 0.2

# Trailing location tokens grouped into regions
REGIONS: Dict[str, frozenset] = {
    "west_coast": frozenset({"ca", "california", "wa", "washington", "or", "oregon"}),
    "east_coast": frozenset({"ny", "new york", "ma", "massachusetts", "ct", "connecticut"}),
    "texas": frozenset({"tx", "texas"}),
}

# Mentorship fit increments
MENTOR_BASE = 0.5
MENTOR_SEEKING_BONUS = 0.3
MENTOR_EXPERIENCE_BONUS = 0.2
MENTOR_TOPIC_BONUS = 0.2
MENTOR_EXPERIENCE_GAP = (3, 15)  # inclusive, candidate minus seeker years


def _norm(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def _overlaps(a: str, b: str) -> bool:
    """Case-folded substring match in either direction."""
    return bool(a) and bool(b) and (a in b or b in a)


def calculate_career_similarity(seeker: Profile, candidate: Profile) -> float:
    """
    Career path alignment between seeker and candidate.

    Algorithm:
        1. +0.4 when the categories (department) match exactly
        2. +0.3 for every seeker interest found in the candidate's
           current role or industry
        3. Alumni seekers only: +max(0, 0.3 - 0.05 * |years difference|)

    Returns:
        Score clamped to [0, 1]
    """
    score = 0.0

    seeker_category = _norm(seeker.category)
    if seeker_category and seeker_category == _norm(candidate.category):
        score += CAREER_CATEGORY_MATCH

    role = _norm(candidate.current_role)
    industry = _norm(candidate.industry)
    for interest in seeker.interests:
        interest = _norm(interest)
        if interest and (interest in role or interest in industry):
            score += CAREER_INTEREST_MATCH

    if seeker.role == ProfileRole.ALUMNI:
        gap = abs(seeker.years_experience - candidate.years_experience)
        score += max(0.0, CAREER_PEER_EXPERIENCE_BONUS - gap * CAREER_PEER_DECAY_PER_YEAR)

    return min(score, 1.0)


def shared_skills(seeker: Profile, candidate: Profile) -> List[str]:
    """Seeker skills that match a candidate skill, in seeker order."""
    candidate_skills = [_norm(s) for s in candidate.skill_names]
    return [
        name for name in seeker.skill_names
        if any(_overlaps(_norm(name), other) for other in candidate_skills)
    ]


def new_skills(seeker: Profile, candidate: Profile) -> List[str]:
    """Candidate skills the seeker does not have, in candidate order."""
    seeker_skills = [_norm(s) for s in seeker.skill_names]
    return [
        name for name in candidate.skill_names
        if not any(_overlaps(_norm(name), own) for own in seeker_skills)
    ]


def calculate_skill_complement(seeker: Profile, candidate: Profile) -> float:
    """
    Balance shared ground with learning opportunity.

    Formula:
        overlap = |shared| / max(|seeker skills|, 1)
        complement = min(|new skills| / 5, 1)
        score = 0.4 * overlap + 0.6 * complement

    A candidate without skills scores 0.
    """
    if not candidate.skill_names:
        return 0.0

    overlap_ratio = len(shared_skills(seeker, candidate)) / max(len(seeker.skill_names), 1)
    complement_ratio = min(len(new_skills(seeker, candidate)) / SKILL_COMPLEMENT_CAP, 1.0)

    score = overlap_ratio * SKILL_OVERLAP_WEIGHT + complement_ratio * SKILL_COMPLEMENT_WEIGHT
    return min(score, 1.0)


def _trailing_token(location: str) -> str:
    return location.split(",")[-1].strip()


def region_of(location: str) -> Optional[str]:
    """Name of the region containing the location's trailing token, if any."""
    token = _trailing_token(_norm(location))
    for region, members in REGIONS.items():
        if token in members:
            return region
    return None


def calculate_geographic_proximity(seeker: Profile, candidate: Profile) -> float:
    """
    Tiered location match, case-insensitive.

    Tiers:
        1.0 exact location, 0.7 same trailing token (state),
        0.5 same enumerated region, 0.2 anything else.

    A missing location on either side scores 0.
    """
    seeker_location = _norm(seeker.location)
    candidate_location = _norm(candidate.location)
    if not seeker_location or not candidate_location:
        return 0.0

    if seeker_location == candidate_location:
        return GEO_EXACT

    if _trailing_token(seeker_location) == _trailing_token(candidate_location):
        return GEO_SAME_STATE

    seeker_region = region_of(seeker_location)
    if seeker_region is not None and seeker_region == region_of(candidate_location):
        return GEO_SAME_REGION

    return GEO_DISTANT


def mentorship_topics_match(seeker: Profile, candidate: Profile) -> bool:
    """True when a seeker interest overlaps one of the candidate's mentor categories."""
    topics = seeker.interests or ([seeker.category] if seeker.category else [])
    categories = [_norm(c) for c in candidate.mentor_categories]
    return any(
        _overlaps(_norm(topic), category)
        for topic in topics
        for category in categories
    )


def calculate_mentorship_fit(seeker: Profile, candidate: Profile) -> float:
    """
    How well the candidate could mentor the seeker.

    Returns 0 unless the candidate is available as a mentor. Otherwise
    0.5 base, +0.3 when the seeker wants mentorship, +0.2 when the candidate
    is 3-15 years ahead, +0.2 when topics overlap. Clamped to 1.0.
    """
    if not candidate.is_mentor:
        return 0.0

    score = MENTOR_BASE

    if seeker.is_seeking_mentorship:
        score += MENTOR_SEEKING_BONUS

    gap = candidate.years_experience - seeker.years_experience
    low, high = MENTOR_EXPERIENCE_GAP
    if low <= gap <= high:
        score += MENTOR_EXPERIENCE_BONUS

    if mentorship_topics_match(seeker, candidate):
        score += MENTOR_TOPIC_BONUS

    return min(score, 1.0)


SUBSCORE_CALCULATORS: Dict[CriterionKind, Callable[[Profile, Profile], float]] = {
    CriterionKind.CAREER_SIMILARITY: calculate_career_similarity,
    CriterionKind.SKILL_COMPLEMENT: calculate_skill_complement,
    CriterionKind.GEOGRAPHIC_PROXIMITY: calculate_geographic_proximity,
    CriterionKind.MENTORSHIP_FIT: calculate_mentorship_fit,
}


def calculate_subscore(kind: CriterionKind, seeker: Profile, candidate: Profile) -> float:
    """Dispatch to the calculator for ``kind``."""
    return SUBSCORE_CALCULATORS[kind](seeker, candidate)
