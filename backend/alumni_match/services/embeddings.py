"""
Profile Text & Similarity Helpers

Turns a Profile into the text that gets embedded, and compares the results.

Key Functions:
    - profile_text(): Profile → single descriptive string
    - cosine_similarity(): Compare two vectors (-1 to 1)
    - lexical_similarity(): Word-overlap fallback when vectors are not comparable
"""

import re
from typing import List, Sequence

import numpy as np

from alumni_match.schemas.profile import Profile

_WORD_RE = re.compile(r"[a-z0-9+#]+")


def profile_text(profile: Profile) -> str:
    """
    Build the text representation of a profile used for embeddings.

    Only fields that are set are included, so two sparse profiles do not
    look similar just because they share empty labels.
    """
    parts: List[str] = []

    if profile.category:
        parts.append(f"Department: {profile.category}")
    if profile.current_role:
        parts.append(f"Current Position: {profile.current_role}")
    if profile.current_company:
        parts.append(f"Company: {profile.current_company}")
    if profile.industry:
        parts.append(f"Industry: {profile.industry}")
    if profile.location:
        parts.append(f"Location: {profile.location}")
    if profile.bio:
        parts.append(f"Bio: {profile.bio.strip()}")
    if profile.interests:
        parts.append(f"Career Interests: {', '.join(profile.interests)}")
    if profile.skills:
        skills = ", ".join(f"{s.name} ({s.level.value})" for s in profile.skills)
        parts.append(f"Skills: {skills}")
    if profile.is_mentor and profile.mentor_categories:
        parts.append(f"Mentoring in: {', '.join(profile.mentor_categories)}")

    return ". ".join(parts)


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """
    Calculate cosine similarity between two embedding vectors.

    Formula: cos(θ) = (a · b) / (||a|| × ||b||)

    Returns:
        Similarity score from -1 (opposite) to 1 (identical).
        Returns 0.0 if either vector has zero magnitude or the
        dimensions differ.
    """
    if len(vec1) == 0 or len(vec1) != len(vec2):
        return 0.0

    a = np.asarray(vec1, dtype=np.float64)
    b = np.asarray(vec2, dtype=np.float64)

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b))


def lexical_similarity(text1: str, text2: str) -> float:
    """
    Word-overlap similarity in [0, 1].

    Counts the words of ``text1`` that also occur in ``text2`` and divides
    by the size of the combined vocabulary.
    """
    words1 = _WORD_RE.findall(text1.lower())
    words2 = _WORD_RE.findall(text2.lower())
    if not words1 or not words2:
        return 0.0

    vocabulary = set(words1) | set(words2)
    present = set(words2)
    common = sum(1 for word in words1 if word in present)
    return min(common / len(vocabulary), 1.0)
