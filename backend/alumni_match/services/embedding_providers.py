"""
Embedding Providers - Interchangeable Text Vectorizers for Profile Matching

This module provides a unified interface for profile embeddings. The ranking
engine only depends on the EmbeddingProvider protocol, so the remote, local
and offline variants can be swapped without touching the scoring code.

Provider Comparison:
    | Provider        | Model                     | Dimensions | Network |
    |-----------------|---------------------------|------------|---------|
    | OpenAIEmbeddings| text-embedding-3-small    | 1536       | Yes     |
    | LocalEmbeddings | nomic-embed-text-v1.5     | 768        | No      |
    | HashEmbeddings  | (SHA-256 derived)         | any        | No      |

Key Classes:
    - EmbeddingProvider: Protocol every provider satisfies
    - OpenAIEmbeddings: OpenAI API provider
    - LocalEmbeddings: Local sentence-transformers models
    - HashEmbeddings: Deterministic fallback, stable across processes
    - ProviderUnavailable: Raised by providers that cannot produce a vector

Failure Model:
    Remote and local providers raise ProviderUnavailable on any failure
    (timeout, quota, missing model, malformed response). The ranking engine
    catches it and substitutes HashEmbeddings for that profile only.
"""

import asyncio
import hashlib
import logging
from typing import List, Optional, Dict, Any, Protocol, runtime_checkable

import numpy as np

logger = logging.getLogger(__name__)


# Model dimension mappings
MODEL_DIMENSIONS: Dict[str, int] = {
    # OpenAI models
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    # Local models
    "nomic-ai/nomic-embed-text-v1.5": 768,
    "BAAI/bge-large-en-v1.5": 1024,
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "sentence-transformers/all-mpnet-base-v2": 768,
}


class ProviderUnavailable(Exception):
    """The embedding provider could not produce a vector."""


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Protocol defining the embedding provider interface.

    All embedding providers must implement:
    - name: Short identifier recorded with every vector
    - dimensions: Embedding vector size
    - embed(): Single text to embedding
    - embed_batch(): Multiple texts to embeddings
    """

    name: str

    @property
    def dimensions(self) -> int:
        """Return the embedding vector dimensions."""
        ...

    async def embed(self, text: str) -> List[float]:
        """Embed a single text string."""
        ...

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Embed multiple text strings efficiently."""
        ...


class OpenAIEmbeddings:
    """
    OpenAI API embeddings provider.

    Attributes:
        model: OpenAI embedding model name
        api_key: OpenAI API key

    Example:
        >>> provider = OpenAIEmbeddings(api_key="sk-...")
        >>> embedding = await provider.embed("Software engineer mentoring in AI")
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small"
    ) -> None:
        self.api_key = api_key
        self.model = model
        self._client = None

    def _get_client(self):
        """Get or create async OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    @property
    def dimensions(self) -> int:
        """Return embedding dimensions for current model."""
        return MODEL_DIMENSIONS.get(self.model, 1536)

    async def _create(self, inputs: List[str]) -> List[List[float]]:
        client = self._get_client()
        try:
            response = await client.embeddings.create(
                input=inputs,
                model=self.model,
            )
            vectors = [list(d.embedding) for d in response.data]
        except Exception as e:
            raise ProviderUnavailable(f"OpenAI embedding request failed: {e}") from e

        if len(vectors) != len(inputs):
            raise ProviderUnavailable(
                f"OpenAI returned {len(vectors)} embeddings for {len(inputs)} inputs"
            )
        for vector in vectors:
            if len(vector) != self.dimensions:
                raise ProviderUnavailable(
                    f"OpenAI returned a {len(vector)}-dim vector, "
                    f"expected {self.dimensions}"
                )
        return vectors

    async def embed(self, text: str) -> List[float]:
        """
        Embed a single text string.

        Args:
            text: Text to embed

        Returns:
            List of floats representing the embedding vector

        Raises:
            ProviderUnavailable: On any API failure or malformed response
        """
        text = text.replace("\n", " ").strip()
        if not text:
            return [0.0] * self.dimensions

        vectors = await self._create([text])
        return vectors[0]

    async def embed_batch(
        self,
        texts: List[str],
        batch_size: int = 100
    ) -> List[List[float]]:
        """
        Embed multiple texts with automatic batching.

        Args:
            texts: List of texts to embed
            batch_size: Maximum texts per API call (default 100)

        Returns:
            List of embedding vectors in same order as input
        """
        cleaned_texts = [t.replace("\n", " ").strip() for t in texts]

        # Track empty text indices
        non_empty_indices = [i for i, t in enumerate(cleaned_texts) if t]
        non_empty_texts = [cleaned_texts[i] for i in non_empty_indices]

        result = [[0.0] * self.dimensions for _ in texts]
        if not non_empty_texts:
            return result

        all_embeddings = []
        for i in range(0, len(non_empty_texts), batch_size):
            batch = non_empty_texts[i:i + batch_size]
            all_embeddings.extend(await self._create(batch))

        for idx, emb in zip(non_empty_indices, all_embeddings):
            result[idx] = emb

        return result


class LocalEmbeddings:
    """
    Local embeddings using sentence-transformers.

    Runs embedding models locally without API calls. Useful for offline
    operation and for keeping profile data on the host.

    Attributes:
        model_name: HuggingFace model name/path
        dimensions: Embedding vector size
    """

    name = "local"

    def __init__(
        self,
        model_name: str = "nomic-ai/nomic-embed-text-v1.5",
        lazy_load: bool = True
    ) -> None:
        """
        Initialize local embeddings provider.

        Args:
            model_name: HuggingFace model name or path
            lazy_load: If True, defer model loading until first use
        """
        self.model_name = model_name
        self._model = None
        self._lazy_load = lazy_load

        if not lazy_load:
            self._load_model()

    def _load_model(self) -> None:
        """Load the embedding model."""
        if self._model is not None:
            return

        try:
            from sentence_transformers import SentenceTransformer
            logger.info(f"Loading embedding model: {self.model_name}")
            self._model = SentenceTransformer(self.model_name, trust_remote_code=True)
            logger.info("Embedding model loaded successfully")
        except ImportError:
            logger.warning(
                "sentence-transformers not installed. "
                "Install with: pip install alumni-matcher[local]"
            )
            self._model = None
        except Exception as e:
            logger.error(f"Failed to load embedding model: {e}")
            self._model = None

    @property
    def model(self):
        """Get model, loading lazily if needed."""
        if self._model is None and self._lazy_load:
            self._load_model()
        return self._model

    @property
    def dimensions(self) -> int:
        """Return embedding dimensions for current model."""
        return MODEL_DIMENSIONS.get(self.model_name, 768)

    async def embed(self, text: str) -> List[float]:
        """
        Embed a single text string.

        Raises:
            ProviderUnavailable: If the model could not be loaded
        """
        text = text.strip()
        if not text:
            return [0.0] * self.dimensions

        model = self.model
        if model is None:
            raise ProviderUnavailable(f"Local model {self.model_name} is not loaded")

        # Run in executor to avoid blocking
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, lambda: model.encode(text).tolist()
        )

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Embed multiple texts, empty ones map to zero vectors."""
        cleaned_texts = [t.strip() for t in texts]

        if all(not t for t in cleaned_texts):
            return [[0.0] * self.dimensions for _ in texts]

        model = self.model
        if model is None:
            raise ProviderUnavailable(f"Local model {self.model_name} is not loaded")

        loop = asyncio.get_running_loop()
        embeddings = await loop.run_in_executor(
            None, lambda: model.encode(cleaned_texts).tolist()
        )

        for i, text in enumerate(cleaned_texts):
            if not text:
                embeddings[i] = [0.0] * self.dimensions

        return embeddings


class HashEmbeddings:
    """
    Deterministic offline embedding provider.

    Each vector is built from SHA-256 digests of the text, so the same text
    gives a bit-identical vector in every process and on every machine. The
    vectors carry no semantic meaning; they keep ranking deterministic when
    no real model is reachable and make tests reproducible.

    Entries lie in [-0.5, 0.5). Empty text maps to the zero vector.

    Attributes:
        dimensions: Configurable embedding dimensions
    """

    name = "hash"

    # Each SHA-256 digest yields four 64-bit words
    _WORDS_PER_DIGEST = 4

    def __init__(self, dimensions: int = 1536) -> None:
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        """Return configured dimensions."""
        return self._dimensions

    def _text_to_embedding(self, text: str) -> List[float]:
        """Generate deterministic embedding from text digests."""
        text = text.strip()
        if not text:
            return [0.0] * self._dimensions

        encoded = text.encode("utf-8")
        blocks = -(-self._dimensions // self._WORDS_PER_DIGEST)
        digest = b"".join(
            hashlib.sha256(block.to_bytes(4, "big") + encoded).digest()
            for block in range(blocks)
        )
        words = np.frombuffer(digest, dtype=">u8")[:self._dimensions]
        # Top 53 bits give an exact float64 in [0, 1)
        unit = (words >> np.uint64(11)).astype(np.float64) / float(1 << 53)
        return (unit - 0.5).tolist()

    async def embed(self, text: str) -> List[float]:
        """Embed text using the deterministic hash-based method."""
        return self._text_to_embedding(text)

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Embed multiple texts."""
        return [self._text_to_embedding(t) for t in texts]


def get_embedding_provider(
    provider_name: str = "openai",
    api_key: Optional[str] = None,
    model_name: Optional[str] = None,
    lazy_load: bool = True,
    **kwargs: Any
) -> EmbeddingProvider:
    """
    Factory function to create embedding provider instances.

    Args:
        provider_name: Provider type - "openai", "local", or "hash"
        api_key: API key for cloud providers (required for OpenAI)
        model_name: Optional model name override
        lazy_load: For local models, defer loading until first use
        **kwargs: Additional provider-specific arguments ("dimensions" for hash)

    Returns:
        EmbeddingProvider instance

    Raises:
        ValueError: If provider is unknown or required args missing

    Example:
        >>> provider = get_embedding_provider("openai", api_key="sk-...")
        >>> provider = get_embedding_provider("hash", dimensions=256)
    """
    provider_name = provider_name.lower()

    if provider_name == "openai":
        if not api_key:
            raise ValueError("OpenAI embeddings require api_key")
        return OpenAIEmbeddings(
            api_key=api_key,
            model=model_name or "text-embedding-3-small"
        )

    elif provider_name == "local":
        return LocalEmbeddings(
            model_name=model_name or "nomic-ai/nomic-embed-text-v1.5",
            lazy_load=lazy_load
        )

    elif provider_name == "hash":
        dimensions = kwargs.get("dimensions", 1536)
        return HashEmbeddings(dimensions=dimensions)

    else:
        raise ValueError(
            f"Unknown embedding provider: {provider_name}. "
            f"Supported: openai, local, hash"
        )
