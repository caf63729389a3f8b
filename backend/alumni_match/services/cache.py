"""
Profile Vector Caching

Two layers keep the engine from re-embedding unchanged profiles:
- VectorCache: in-process memo keyed by (profile id, freshness token)
- RedisVectorStore: optional shared layer (24hr TTL) consulted on a miss

Cache Key Pattern:
    - emb:{profile_id}:{token_hash} - Embedding vectors in Redis

A profile whose freshness token changes misses both layers and the stale
in-process entry is replaced on the next write. Races between concurrent
writers are harmless: the last write wins and every writer stores an
equivalent vector.

Usage:
    cache = VectorCache(store=RedisVectorStore("redis://localhost:6379"))

    cached = await cache.get(profile.id, token)
    if cached is None:
        vector = await provider.embed(text)
        await cache.set(profile.id, token, vector, provider.name)
"""

import json
import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)

EMBEDDING_TTL_SECONDS = 86400  # 24 hours


def hash_content(*args: Any) -> str:
    """
    Generate a 16-character hex hash from content.

    Handles strings, dicts, lists, and other JSON-serializable types.
    Dict keys are sorted for consistent hashing.

    Args:
        *args: Content to hash (will be JSON serialized)

    Returns:
        16-character hex string
    """
    content = json.dumps(args, sort_keys=True, default=str)
    return hashlib.sha256(content.encode()).hexdigest()[:16]


@dataclass
class CachedVector:
    """An embedding together with the token and provider that produced it."""
    token: str
    vector: List[float]
    source: str


class RedisVectorStore:
    """
    Shared Redis layer for profile embeddings.

    Provides graceful degradation when Redis is unavailable,
    returning None / False instead of raising exceptions.

    Attributes:
        redis: Async Redis client
    """

    def __init__(self, redis_url: str, ttl: int = EMBEDDING_TTL_SECONDS):
        self.redis_url = redis_url
        self.ttl = ttl
        self.redis: Optional[redis.Redis] = None

    async def _ensure_connected(self) -> Optional[redis.Redis]:
        """Ensure Redis connection is established."""
        if self.redis is None:
            try:
                self.redis = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True
                )
            except Exception as e:
                logger.warning(f"Failed to connect to Redis: {e}")
                return None
        return self.redis

    @staticmethod
    def _key(profile_id: str, token: str) -> str:
        return f"emb:{profile_id}:{hash_content(token)}"

    async def get_embedding(
        self,
        profile_id: str,
        token: str
    ) -> Optional[CachedVector]:
        """
        Get cached embedding for a profile version.

        Returns:
            CachedVector or None on miss/error
        """
        try:
            client = await self._ensure_connected()
            if not client:
                return None

            cached = await client.get(self._key(profile_id, token))
            if not cached:
                return None

            data = json.loads(cached)
            return CachedVector(token=token, vector=data["vector"], source=data["source"])

        except Exception as e:
            logger.warning(f"Redis get error (embedding store): {e}")
            return None

    async def set_embedding(
        self,
        profile_id: str,
        token: str,
        vector: List[float],
        source: str
    ) -> bool:
        """
        Cache embedding for a profile version.

        Returns:
            True if cached successfully, False otherwise
        """
        try:
            client = await self._ensure_connected()
            if not client:
                return False

            payload = json.dumps({"vector": vector, "source": source})
            await client.setex(self._key(profile_id, token), self.ttl, payload)
            return True

        except Exception as e:
            logger.warning(f"Redis set error (embedding store): {e}")
            return False

    async def invalidate_embedding(self, profile_id: str, token: str) -> bool:
        """Delete one profile version. Returns True if a key was removed."""
        try:
            client = await self._ensure_connected()
            if not client:
                return False

            result = await client.delete(self._key(profile_id, token))
            return result > 0

        except Exception as e:
            logger.warning(f"Redis delete error: {e}")
            return False

    async def health_check(self) -> bool:
        """Check Redis connection health."""
        try:
            client = await self._ensure_connected()
            if not client:
                return False

            await client.ping()
            return True

        except Exception as e:
            logger.warning(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.close()
            self.redis = None


class VectorCache:
    """
    In-process embedding memo with an optional shared store behind it.

    One entry is kept per profile id. A lookup with a different freshness
    token than the stored one is a miss, and the next ``set`` replaces the
    stale entry. No other eviction is performed.

    Attributes:
        store: Optional RedisVectorStore consulted on in-process misses
        stats: Hit/miss counters
    """

    def __init__(self, store: Optional[RedisVectorStore] = None):
        self.store = store
        self._entries: Dict[str, CachedVector] = {}
        self.stats: Dict[str, int] = {"hits": 0, "misses": 0, "store_hits": 0}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, profile_id: str, token: str) -> Optional[CachedVector]:
        """
        Look up the vector for a profile version.

        Args:
            profile_id: Profile identifier
            token: Freshness token of the profile being scored

        Returns:
            CachedVector on hit, None on miss or stale entry
        """
        entry = self._entries.get(profile_id)
        if entry is not None and entry.token == token:
            self.stats["hits"] += 1
            return entry

        if self.store is not None:
            stored = await self.store.get_embedding(profile_id, token)
            if stored is not None:
                self.stats["store_hits"] += 1
                self._entries[profile_id] = stored
                return stored

        self.stats["misses"] += 1
        return None

    async def set(
        self,
        profile_id: str,
        token: str,
        vector: List[float],
        source: str
    ) -> CachedVector:
        """Store a vector, replacing any entry for an older token."""
        entry = CachedVector(token=token, vector=list(vector), source=source)
        self._entries[profile_id] = entry

        if self.store is not None:
            await self.store.set_embedding(profile_id, token, entry.vector, source)

        return entry

    def invalidate(self, profile_id: str) -> bool:
        """Drop the in-process entry for a profile. Returns True if one existed."""
        return self._entries.pop(profile_id, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics including hit rate.

        Store hits count as hits for the hit rate.
        """
        hits = self.stats["hits"] + self.stats["store_hits"]
        misses = self.stats["misses"]
        total = hits + misses

        return {
            "entries": len(self._entries),
            "hits": self.stats["hits"],
            "store_hits": self.stats["store_hits"],
            "misses": misses,
            "total": total,
            "hit_rate": hits / total if total > 0 else 0.0,
        }
