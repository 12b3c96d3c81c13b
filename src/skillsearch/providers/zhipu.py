"""Zhipu AI embedding provider over HTTP.

Calls the ``/embeddings`` endpoint of the Zhipu open platform (``embedding-3``
returns 1024-dimensional vectors).

Availability over accuracy: every failure (transport error, timeout,
non-2xx status, malformed payload, non-zero ``code``, empty ``data``) is
logged and answered with the deterministic fallback embedding instead of
raising. Callers never see an embedding error.
"""

import asyncio
from typing import Any, Optional

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError

from skillsearch.providers.base import EmbeddingProvider, ProviderConfig
from skillsearch.providers.fallback import fallback_embedding

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://open.bigmodel.cn/api/paas/v4"
DEFAULT_MODEL = "embedding-3"

MODEL_METADATA = {
    "embedding-2": {"dimension": 1024, "max_tokens": 512},
    "embedding-3": {"dimension": 1024, "max_tokens": 8192},
}


class EmbeddingItem(BaseModel):
    embedding: list[float] = Field(..., min_length=1)
    index: int = 0


class EmbeddingResponse(BaseModel):
    """Response body of the embeddings endpoint."""

    code: int = 0
    msg: Optional[str] = None
    data: list[EmbeddingItem] = Field(default_factory=list)
    model: Optional[str] = None
    usage: Optional[dict[str, Any]] = None


class EmbeddingRequestFailed(Exception):
    """Internal signal that a request must fall back; never escapes this module."""


class ZhipuEmbeddingProvider(EmbeddingProvider):
    """Embedding provider for the Zhipu embeddings API.

    Without an API key the provider never touches the network and serves
    the fallback generator directly.

    Example:
        config = ProviderConfig(
            provider_type="zhipu",
            model_name="embedding-3",
            api_key="...",
        )
        async with ZhipuEmbeddingProvider(config) as provider:
            vector = await provider.embed_text("react best practices")
    """

    def __init__(self, config: ProviderConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        super().__init__(config)
        self.model_name = config.model_name or DEFAULT_MODEL
        self.api_key = config.api_key or None
        self.timeout = config.timeout
        self.batch_size = config.batch_size

        metadata = MODEL_METADATA.get(self.model_name)
        self._dimension = config.dimension
        self._max_tokens = metadata["max_tokens"] if metadata else 8192
        if metadata is None:
            logger.warning(
                "unknown_zhipu_embedding_model",
                model_name=self.model_name,
                known_models=list(MODEL_METADATA),
            )

        if client is not None:
            self.client: Optional[httpx.AsyncClient] = client
        elif self.api_key:
            self.client = httpx.AsyncClient(
                base_url=config.base_url or DEFAULT_BASE_URL,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        else:
            self.client = None
            logger.warning(
                "zhipu_api_key_missing",
                detail="serving deterministic fallback embeddings",
            )

        logger.info(
            "zhipu_embedding_provider_initialized",
            model_name=self.model_name,
            dimension=self._dimension,
            online=self.client is not None,
        )

    async def embed_text(self, text: str) -> list[float]:
        """Embed one text, falling back to the hash generator on any failure."""
        if self.client is None or not text.strip():
            return fallback_embedding(text, self._dimension)

        try:
            response = await self._request(text)
        except EmbeddingRequestFailed as e:
            logger.warning("embedding_fallback_used", reason=str(e), text_length=len(text))
            return fallback_embedding(text, self._dimension)

        return response.data[0].embedding

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts in input order.

        Texts are sent in requests of at most ``batch_size`` inputs; the
        service may return items out of order, so each request's items are
        re-sorted by ``index``. A failed request falls back for its own texts
        only.
        """
        if not texts:
            return []
        if self.client is None:
            return [fallback_embedding(text, self._dimension) for text in texts]

        embeddings: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            try:
                response = await self._request(batch)
                if len(response.data) != len(batch):
                    raise EmbeddingRequestFailed(
                        f"expected {len(batch)} embeddings, got {len(response.data)}"
                    )
            except EmbeddingRequestFailed as e:
                logger.warning(
                    "embedding_batch_fallback_used",
                    reason=str(e),
                    batch_size=len(batch),
                    batch_index=start // self.batch_size,
                )
                embeddings.extend(fallback_embedding(text, self._dimension) for text in batch)
                continue

            ordered = sorted(response.data, key=lambda item: item.index)
            embeddings.extend(item.embedding for item in ordered)

        logger.debug("batch_embeddings_generated", total_texts=len(texts))
        return embeddings

    async def _request(self, payload_input: str | list[str]) -> EmbeddingResponse:
        payload = {
            "model": self.model_name,
            "input": payload_input,
            "encoding_format": "float",
        }

        try:
            response = await asyncio.wait_for(
                self.client.post("/embeddings", json=payload),
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = EmbeddingResponse.model_validate(response.json())
        except asyncio.TimeoutError as e:
            raise EmbeddingRequestFailed(f"timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise EmbeddingRequestFailed(
                f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise EmbeddingRequestFailed(f"transport error: {e}") from e
        except (ValueError, ValidationError) as e:
            raise EmbeddingRequestFailed(f"malformed response: {e}") from e

        if body.code != 0:
            raise EmbeddingRequestFailed(f"service returned code {body.code}: {body.msg}")
        if not body.data:
            raise EmbeddingRequestFailed("service returned no embeddings")

        if body.usage:
            logger.debug(
                "zhipu_embedding_generated",
                tokens_used=body.usage.get("total_tokens"),
                model=self.model_name,
            )
        return body

    def get_dimension(self) -> int:
        return self._dimension

    def get_max_tokens(self) -> int:
        return self._max_tokens

    async def close(self) -> None:
        """Close the HTTP client connection."""
        if self.client is not None:
            logger.debug("closing_zhipu_embedding_provider", model_name=self.model_name)
            await self.client.aclose()
