"""
Matching Engine - Weighted Multi-Criteria Ranking with Semantic Blending

Ranks a pool of candidate profiles for one seeker.

Match Score Composition:
    rule     = Σ(subscore(kind) × weight) / Σ(weight)
    semantic = cosine(embed(seeker), embed(candidate))
    final    = rule × 0.7 + semantic × 0.3      when Σ(weight) > 0
             = semantic                          otherwise

    final is clamped to [0, 1]; candidates under the admission threshold
    (0.3) are dropped; the rest are sorted by score descending, then by
    candidate id, and truncated to the limit.

Degradation:
    - Provider error or timeout for a profile → deterministic HashEmbeddings
      vector for that profile only (not cached, so the provider is retried)
    - Seeker and candidate vectors from different providers → lexical
      word-overlap similarity instead of a cross-space cosine
    - Unexpected failure while scoring a candidate → candidate skipped
    - rank() itself never raises; on total failure it returns []

Concurrency:
    Candidates are scored with asyncio.gather. Provider calls share one
    semaphore per rank() call (settings.max_concurrency) and each call is
    bounded by settings.embedding_timeout_seconds. Insight calls for the
    returned matches share the same semaphore and are bounded by
    settings.insight_timeout_seconds; a timeout yields the generic insight.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from alumni_match.config import Settings, get_settings
from alumni_match.schemas.match import Criterion, CriterionKind, DEFAULT_CRITERIA, MatchResult
from alumni_match.schemas.profile import Profile
from alumni_match.services.cache import RedisVectorStore, VectorCache, hash_content
from alumni_match.services.embedding_providers import (
    EmbeddingProvider,
    HashEmbeddings,
    ProviderUnavailable,
    get_embedding_provider,
)
from alumni_match.services.embeddings import cosine_similarity, lexical_similarity, profile_text
from alumni_match.services.matcher import calculate_subscore
from alumni_match.services.reasons import (
    InsightGenerator,
    GENERIC_INSIGHT,
    generate_reasons,
    get_insight_generator,
    notable_criteria,
)

logger = logging.getLogger(__name__)

LEXICAL_SOURCE = "lexical"


@dataclass
class ProfileEmbedding:
    """A profile's text and the vector used for it in this call."""
    text: str
    vector: List[float]
    source: str


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class MatchingEngine:
    """
    Ranks candidates for a seeker.

    All collaborators are injected; the engine keeps no module-level state.

    Attributes:
        provider: Primary embedding provider
        fallback: Deterministic provider used when the primary fails
        cache: VectorCache memoizing primary-provider vectors
        insights: Optional insight generator; None disables insights
        settings: Blend ratio, threshold, limits and timeouts

    Example:
        >>> engine = MatchingEngine(provider=HashEmbeddings(dimensions=256))
        >>> matches = await engine.rank(seeker, candidates, limit=5)
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        cache: Optional[VectorCache] = None,
        fallback: Optional[EmbeddingProvider] = None,
        insights: Optional[InsightGenerator] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.provider = provider
        self.cache = cache if cache is not None else VectorCache()
        self.fallback = fallback or HashEmbeddings(dimensions=provider.dimensions)
        self.insights = insights
        self.settings = settings or get_settings()

    # ==================== Criteria ====================

    @staticmethod
    def resolve_criteria(criteria: Optional[Sequence[Criterion]]) -> List[Criterion]:
        """None selects the defaults; an explicit empty list stays empty."""
        if criteria is None:
            return list(DEFAULT_CRITERIA)
        return list(criteria)

    # ==================== Embeddings ====================

    def freshness_token(self, profile: Profile, text: str) -> str:
        """
        Token that changes whenever the profile's vector must be recomputed.

        Uses ``updated_at`` when the caller supplies it, a hash of the
        profile text otherwise. Prefixed with the provider name so vectors
        from different providers never share a key.
        """
        if profile.updated_at is not None:
            version = str(profile.updated_at)
        else:
            version = hash_content(text)
        return f"{self.provider.name}:{self.provider.dimensions}:{version}"

    async def _embed_profile(
        self,
        profile: Profile,
        semaphore: asyncio.Semaphore,
    ) -> ProfileEmbedding:
        text = profile_text(profile)
        token = self.freshness_token(profile, text)

        cached = await self.cache.get(profile.id, token)
        if cached is not None:
            return ProfileEmbedding(text=text, vector=cached.vector, source=cached.source)

        try:
            async with semaphore:
                vector = await asyncio.wait_for(
                    self.provider.embed(text),
                    timeout=self.settings.embedding_timeout_seconds,
                )
        except asyncio.TimeoutError:
            logger.warning(
                f"Embedding timed out for profile {profile.id} after "
                f"{self.settings.embedding_timeout_seconds}s, using fallback"
            )
            return await self._fallback_embedding(text)
        except ProviderUnavailable as e:
            logger.warning(f"Embedding provider unavailable for profile {profile.id}: {e}")
            return await self._fallback_embedding(text)
        except Exception as e:
            logger.warning(f"Embedding failed for profile {profile.id}: {e}")
            return await self._fallback_embedding(text)

        entry = await self.cache.set(profile.id, token, vector, self.provider.name)
        return ProfileEmbedding(text=text, vector=entry.vector, source=entry.source)

    async def _fallback_embedding(self, text: str) -> ProfileEmbedding:
        vector = await self.fallback.embed(text)
        return ProfileEmbedding(text=text, vector=vector, source=self.fallback.name)

    @staticmethod
    def semantic_similarity(seeker: ProfileEmbedding, candidate: ProfileEmbedding) -> float:
        """Cosine when both vectors share a provider, word overlap otherwise."""
        if seeker.source == candidate.source:
            return cosine_similarity(seeker.vector, candidate.vector)
        return lexical_similarity(seeker.text, candidate.text)

    # ==================== Scoring ====================

    def blend(
        self,
        subscores: Dict[CriterionKind, float],
        criteria: Sequence[Criterion],
        semantic: float,
    ) -> float:
        """
        Combine weighted sub-scores with the semantic signal.

        Falls back to the semantic signal alone when the weights sum to 0.
        """
        total_weight = sum(c.weight for c in criteria)
        if total_weight <= 0:
            return clamp(semantic)

        total_score = sum(subscores[c.kind] * c.weight for c in criteria)
        rule_score = total_score / total_weight
        semantic_weight = self.settings.semantic_weight
        return clamp(rule_score * (1 - semantic_weight) + semantic * semantic_weight)

    def _score_pair(
        self,
        seeker: Profile,
        candidate: Profile,
        seeker_embedding: ProfileEmbedding,
        candidate_embedding: ProfileEmbedding,
        criteria: List[Criterion],
    ) -> MatchResult:
        subscores = {
            c.kind: calculate_subscore(c.kind, seeker, candidate) for c in criteria
        }
        semantic = self.semantic_similarity(seeker_embedding, candidate_embedding)
        score = self.blend(subscores, criteria, semantic)

        fired = notable_criteria(criteria, subscores, candidate)
        reasons = generate_reasons(
            seeker, candidate, fired, score, max_reasons=self.settings.max_reasons
        )

        if seeker_embedding.source == candidate_embedding.source:
            source = candidate_embedding.source
        else:
            source = LEXICAL_SOURCE

        return MatchResult(
            candidate_id=candidate.id,
            score=score,
            reasons=reasons,
            matched_criteria=fired,
            subscores=subscores,
            semantic=semantic,
            embedding_source=source,
        )

    async def _score_candidate_safely(
        self,
        seeker: Profile,
        seeker_embedding: ProfileEmbedding,
        candidate: Profile,
        criteria: List[Criterion],
        semaphore: asyncio.Semaphore,
    ) -> Optional[MatchResult]:
        try:
            candidate_embedding = await self._embed_profile(candidate, semaphore)
            return self._score_pair(
                seeker, candidate, seeker_embedding, candidate_embedding, criteria
            )
        except Exception:
            logger.exception(f"Skipping candidate {candidate.id}: scoring failed")
            return None

    async def _attach_insight(
        self,
        result: MatchResult,
        seeker: Profile,
        candidate: Profile,
        semaphore: asyncio.Semaphore,
    ) -> None:
        if self.insights is None:
            return
        try:
            async with semaphore:
                result.insight = await asyncio.wait_for(
                    self.insights.generate(seeker, candidate, result.score),
                    timeout=self.settings.insight_timeout_seconds,
                )
        except asyncio.TimeoutError:
            logger.warning(
                f"Insight generation timed out for {candidate.id} after "
                f"{self.settings.insight_timeout_seconds}s"
            )
            result.insight = GENERIC_INSIGHT
        except Exception as e:
            logger.warning(f"Insight generation failed for {candidate.id}: {e}")
            result.insight = GENERIC_INSIGHT

    # ==================== Public API ====================

    async def score_candidate(
        self,
        seeker: Profile,
        candidate: Profile,
        criteria: Optional[Sequence[Criterion]] = None,
    ) -> MatchResult:
        """
        Score one seeker/candidate pair without threshold or ranking.

        Args:
            seeker: Profile requesting matches
            candidate: Profile being scored
            criteria: Weighted criteria; None selects the defaults

        Returns:
            MatchResult with reasons, and an insight when enabled
        """
        resolved = self.resolve_criteria(criteria)
        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrency))

        seeker_embedding, candidate_embedding = await asyncio.gather(
            self._embed_profile(seeker, semaphore),
            self._embed_profile(candidate, semaphore),
        )
        result = self._score_pair(
            seeker, candidate, seeker_embedding, candidate_embedding, resolved
        )
        await self._attach_insight(result, seeker, candidate, semaphore)
        return result

    async def rank(
        self,
        seeker: Profile,
        candidates: Sequence[Profile],
        criteria: Optional[Sequence[Criterion]] = None,
        limit: Optional[int] = None,
    ) -> List[MatchResult]:
        """
        Rank candidates for a seeker.

        Args:
            seeker: Profile requesting matches
            candidates: Pool to score
            criteria: Weighted criteria; None selects the defaults, an empty
                list (or all-zero weights) ranks on semantic similarity only
            limit: Maximum results (default settings.default_limit)

        Returns:
            Admitted matches, best first. Empty when nothing qualifies or
            when ranking fails outright.
        """
        try:
            return await self._rank(seeker, candidates, criteria, limit)
        except Exception:
            logger.exception(f"Ranking failed for seeker {seeker.id}")
            return []

    async def _rank(
        self,
        seeker: Profile,
        candidates: Sequence[Profile],
        criteria: Optional[Sequence[Criterion]],
        limit: Optional[int],
    ) -> List[MatchResult]:
        resolved = self.resolve_criteria(criteria)
        limit = self.settings.default_limit if limit is None else limit
        if limit <= 0 or not candidates:
            return []

        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrency))
        seeker_embedding = await self._embed_profile(seeker, semaphore)

        scored = await asyncio.gather(*(
            self._score_candidate_safely(
                seeker, seeker_embedding, candidate, resolved, semaphore
            )
            for candidate in candidates
        ))

        threshold = self.settings.admission_threshold
        admitted = [
            (result, candidate)
            for result, candidate in zip(scored, candidates)
            if result is not None and result.score >= threshold
        ]
        admitted.sort(key=lambda pair: (-pair[0].score, pair[0].candidate_id))
        top = admitted[:limit]

        await asyncio.gather(*(
            self._attach_insight(result, seeker, candidate, semaphore)
            for result, candidate in top
        ))

        logger.info(
            f"Ranked {len(candidates)} candidates for {seeker.id}: "
            f"{len(admitted)} admitted, {len(top)} returned"
        )
        return [result for result, _ in top]


def build_engine(settings: Optional[Settings] = None) -> MatchingEngine:
    """
    Construct an engine from settings.

    A configured OpenAI provider without an API key degrades to the
    deterministic provider with a warning rather than failing start-up.
    """
    settings = settings or get_settings()

    provider_name = settings.embedding_provider.lower()
    if provider_name == "openai" and not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set, using deterministic hash embeddings")
        provider_name = "hash"

    model_name = (
        settings.local_embedding_model if provider_name == "local"
        else settings.embedding_model
    )
    provider = get_embedding_provider(
        provider_name,
        api_key=settings.openai_api_key,
        model_name=model_name,
        dimensions=settings.embedding_dimensions,
    )

    insight_name = settings.insight_provider.lower()
    if insight_name == "openai" and not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set, using template insights")
        insight_name = "template"
    insights = get_insight_generator(
        insight_name,
        api_key=settings.openai_api_key,
        model_name=settings.insight_model,
    )

    store = RedisVectorStore(settings.redis_url) if settings.redis_url else None

    return MatchingEngine(
        provider=provider,
        cache=VectorCache(store=store),
        insights=insights,
        settings=settings,
    )
