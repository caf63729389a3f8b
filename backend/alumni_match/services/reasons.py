"""
Match Explanations - Reasons and Narrative Insights

Reasons are short templated strings naming the attribute that made a
criterion fire. Insights are a longer narrative sentence or two, used for
presentation only and never for scoring.

Key Classes:
    - generate_reasons(): Ordered, capped list of reason strings
    - TemplateInsightGenerator: Deterministic templates by score bucket
    - OpenAIInsightGenerator: Chat-model insight, falls back to templates
    - get_insight_generator(): Factory keyed by settings.insight_provider

Notable Thresholds (a criterion "fires" above these):
    | Criterion            | Threshold | Extra condition      |
    |----------------------|-----------|----------------------|
    | career_similarity    | 0.7       |                      |
    | skill_complement     | 0.6       |                      |
    | geographic_proximity | 0.8       |                      |
    | mentorship_fit       | 0.7       | candidate is mentor  |
"""

import logging
from typing import Dict, List, Optional, Protocol, Tuple

from alumni_match.schemas.match import Criterion, CriterionKind
from alumni_match.schemas.profile import Profile, SKILL_LEVEL_RANK
from alumni_match.services.matcher import shared_skills

logger = logging.getLogger(__name__)

NOTABLE_THRESHOLDS: Dict[CriterionKind, float] = {
    CriterionKind.CAREER_SIMILARITY: 0.7,
    CriterionKind.SKILL_COMPLEMENT: 0.6,
    CriterionKind.GEOGRAPHIC_PROXIMITY: 0.8,
    CriterionKind.MENTORSHIP_FIT: 0.7,
}

# (exclusive lower bound, sentence), checked in order
QUALITY_BUCKETS: List[Tuple[float, str]] = [
    (0.8, "Excellent overall compatibility"),
    (0.6, "Strong professional alignment"),
]

GENERIC_INSIGHT = "Good potential for professional networking and career insights."

MAX_REASONS = 4


def is_notable(kind: CriterionKind, score: float, candidate: Profile) -> bool:
    """Whether a sub-score is high enough to be reported."""
    if score <= NOTABLE_THRESHOLDS[kind]:
        return False
    if kind == CriterionKind.MENTORSHIP_FIT:
        return candidate.is_mentor
    return True


def top_skills(profile: Profile, count: int = 3) -> List[str]:
    """Strongest skills first; ties keep the profile's order."""
    ranked = sorted(
        enumerate(profile.skills),
        key=lambda pair: (-SKILL_LEVEL_RANK[pair[1].level], pair[0]),
    )
    return [skill.name for _, skill in ranked[:count]]


def _format_years(years: float) -> str:
    return f"{years:g}"


def _criterion_reason(kind: CriterionKind, seeker: Profile, candidate: Profile) -> str:
    if kind == CriterionKind.CAREER_SIMILARITY:
        field = candidate.industry or candidate.category or "your field"
        return f"Strong career alignment in {field}"

    if kind == CriterionKind.SKILL_COMPLEMENT:
        shared = shared_skills(seeker, candidate)
        if shared:
            return f"Shares skills in {', '.join(shared[:3])}"
        return f"Complementary skills in {', '.join(top_skills(candidate))}"

    if kind == CriterionKind.GEOGRAPHIC_PROXIMITY:
        return f"Both located in {candidate.location or 'a similar area'}"

    return (
        f"Excellent mentorship match - "
        f"{_format_years(candidate.years_experience)}+ years experience"
    )


def notable_criteria(
    criteria: List[Criterion],
    subscores: Dict[CriterionKind, float],
    candidate: Profile,
) -> List[CriterionKind]:
    """Kinds that fired, in criteria order, without duplicates.

    Zero-weight criteria never fire since they did not contribute.
    """
    fired: List[CriterionKind] = []
    for criterion in criteria:
        kind = criterion.kind
        if criterion.weight <= 0 or kind in fired or kind not in subscores:
            continue
        if is_notable(kind, subscores[kind], candidate):
            fired.append(kind)
    return fired


def generate_reasons(
    seeker: Profile,
    candidate: Profile,
    fired: List[CriterionKind],
    score: float,
    max_reasons: int = MAX_REASONS,
) -> List[str]:
    """
    Build the ordered reason list for one match.

    Order: one reason per fired criterion, then "same city" when the
    locations match exactly and the geography reason did not already say
    so, then the score-bucket sentence. The list is truncated to
    ``max_reasons``.
    """
    reasons = [_criterion_reason(kind, seeker, candidate) for kind in fired]

    same_city = bool(seeker.location.strip()) and _same_location(seeker, candidate)
    if same_city and CriterionKind.GEOGRAPHIC_PROXIMITY not in fired:
        reasons.append("Located in the same city")

    for bound, sentence in QUALITY_BUCKETS:
        if score > bound:
            reasons.append(sentence)
            break

    return reasons[:max_reasons]


class InsightGenerator(Protocol):
    async def generate(self, seeker: Profile, candidate: Profile, score: float) -> str:
        ...


class TemplateInsightGenerator:
    """
    Deterministic narrative insights.

    The sentence set depends on the score bucket and on which candidate
    attributes are present; the choice inside a bucket is keyed on the
    candidate id so repeated runs give the same text.
    """

    def _sentences(self, seeker: Profile, candidate: Profile) -> List[str]:
        position = candidate.current_role or "This professional"
        company = candidate.current_company or "their company"
        years = (
            _format_years(candidate.years_experience)
            if candidate.years_experience else "several"
        )
        sentences = [
            f"{position} at {company} could provide valuable industry insights "
            f"and career guidance.",
            f"Strong alignment in {candidate.category or 'your field'} with "
            f"{years} years of experience to share.",
            "Excellent networking opportunity with potential for skill development "
            "and mentorship.",
            f"Career trajectory suggests great potential for learning about the "
            f"{candidate.industry or 'industry'} landscape.",
        ]
        if seeker.location and _same_location(seeker, candidate):
            sentences.append(
                "Geographic proximity could enable in-person meetings and local "
                "networking opportunities."
            )
        return sentences

    async def generate(self, seeker: Profile, candidate: Profile, score: float) -> str:
        try:
            sentences = self._sentences(seeker, candidate)
            if score > 0.8:
                return " ".join(sentences[:2])
            pool = sentences[:3] if score > 0.6 else sentences
            index = sum(candidate.id.encode("utf-8")) % len(pool)
            return pool[index]
        except Exception as e:
            logger.warning(f"Insight template failed for {candidate.id}: {e}")
            return GENERIC_INSIGHT


def _same_location(seeker: Profile, candidate: Profile) -> bool:
    return seeker.location.strip().lower() == candidate.location.strip().lower()


class OpenAIInsightGenerator:
    """
    Chat-model insights with template fallback.

    Any API error or empty answer yields the template insight instead.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        fallback: Optional[TemplateInsightGenerator] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.fallback = fallback or TemplateInsightGenerator()
        self._client = None

    def _get_client(self):
        """Get or create async OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    def _prompt(self, seeker: Profile, candidate: Profile, score: float) -> str:
        seeker_skills = ", ".join(seeker.skill_names) or "Not specified"
        candidate_skills = ", ".join(candidate.skill_names) or "Not specified"
        interests = ", ".join(seeker.interests) or "Not specified"
        return (
            "Analyze this professional match and provide insights:\n\n"
            "Seeker Profile:\n"
            f"- Department: {seeker.category or 'N/A'}\n"
            f"- Skills: {seeker_skills}\n"
            f"- Career Interests: {interests}\n\n"
            "Candidate Profile:\n"
            f"- Position: {candidate.current_role or 'Not specified'}\n"
            f"- Company: {candidate.current_company or 'Not specified'}\n"
            f"- Industry: {candidate.industry or 'Not specified'}\n"
            f"- Experience: {_format_years(candidate.years_experience)} years\n"
            f"- Skills: {candidate_skills}\n\n"
            f"Match Score: {score * 100:.1f}%\n\n"
            "Provide a 2-3 sentence insight about why this is a good match and "
            "what value the candidate could provide. Focus on career guidance, "
            "skill development, or networking opportunities."
        )

    async def generate(self, seeker: Profile, candidate: Profile, score: float) -> str:
        try:
            client = self._get_client()
            response = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": self._prompt(seeker, candidate, score)}],
                max_tokens=150,
                temperature=0.7,
            )
            content = (response.choices[0].message.content or "").strip()
            if content:
                return content
            logger.warning(f"Empty insight from {self.model} for {candidate.id}")
        except Exception as e:
            logger.warning(f"Insight request failed for {candidate.id}: {e}")

        return await self.fallback.generate(seeker, candidate, score)


def get_insight_generator(
    provider_name: str = "template",
    api_key: Optional[str] = None,
    model_name: Optional[str] = None,
) -> InsightGenerator:
    """
    Factory for insight generators.

    Raises:
        ValueError: If provider is unknown or the OpenAI key is missing
    """
    provider_name = provider_name.lower()

    if provider_name == "template":
        return TemplateInsightGenerator()

    elif provider_name == "openai":
        if not api_key:
            raise ValueError("OpenAI insights require api_key")
        return OpenAIInsightGenerator(api_key=api_key, model=model_name or "gpt-4o-mini")

    else:
        raise ValueError(
            f"Unknown insight provider: {provider_name}. "
            f"Supported: template, openai"
        )
