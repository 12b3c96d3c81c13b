"""Deterministic offline embeddings.

The generator derives a pseudo-vector from a 32-bit rolling hash of the
text, so identical text always maps to the identical unit vector. It has no
semantic quality; it keeps search available when the embedding service is
unconfigured or failing, and makes the whole system testable offline.
"""

import math

import structlog

from skillsearch.providers.base import EmbeddingProvider, ProviderConfig

logger = structlog.get_logger(__name__)

DEFAULT_DIMENSION = 1024


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def rolling_hash(text: str) -> int:
    """Signed 32-bit ``hash * 31 + code`` over the UTF-16 code units of text."""
    h = 0
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = _to_int32((h << 5) - h + code_unit)
    return h


def fallback_embedding(text: str, dimension: int = DEFAULT_DIMENSION) -> list[float]:
    """Build the deterministic unit-length embedding for ``text``."""
    h = rolling_hash(text.lower())
    shifted = h >> 8

    vector = [
        math.sin(h * (i + 1) * 0.01)
        + math.cos(h * (i + 1) * 0.02)
        + math.sin(shifted * (i + 1) * 0.005)
        for i in range(dimension)
    ]

    magnitude = math.sqrt(sum(v * v for v in vector))
    if magnitude > 0:
        return [v / magnitude for v in vector]
    return vector


class HashEmbeddingProvider(EmbeddingProvider):
    """Embedding provider backed only by the deterministic generator."""

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        self._dimension = config.dimension
        logger.info("hash_embedding_provider_initialized", dimension=self._dimension)

    async def embed_text(self, text: str) -> list[float]:
        return fallback_embedding(text, self._dimension)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [fallback_embedding(text, self._dimension) for text in texts]

    def get_dimension(self) -> int:
        return self._dimension

    def get_max_tokens(self) -> int:
        # No tokenizer involved; any length hashes
        return 8192
