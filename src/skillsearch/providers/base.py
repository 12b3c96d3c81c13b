"""Abstract base classes for embedding and LLM providers.

Why this exists:
- Allows swapping between the hosted embedding service and the offline
  hash-based generator
- Enables testing with stub providers
- Providers receive all settings through ProviderConfig, never from the
  environment

How to extend:
1. Subclass EmbeddingProvider or LLMProvider
2. Implement all abstract methods
3. Register in the factory in skillsearch.providers
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field


class ProviderConfig(BaseModel):
    """Base configuration for all providers."""

    provider_type: str
    model_name: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    dimension: int = Field(default=1024, gt=0)
    timeout: float = Field(default=30.0, gt=0)
    batch_size: int = Field(default=64, gt=0)
    extra_params: dict[str, Any] = Field(default_factory=dict)


class EmbeddingProvider(ABC):
    """Abstract interface for embedding providers.

    Implementations must handle:
    - Single text embedding
    - Batch text embedding, returned in input order
    - Model metadata (dimension, max tokens)
    """

    def __init__(self, config: ProviderConfig) -> None:
        """Initialize provider with configuration."""
        self.config = config

    @abstractmethod
    async def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        Args:
            text: Input text to embed

        Returns:
            Embedding vector
        """

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts.

        Args:
            texts: List of input texts

        Returns:
            List of embedding vectors, one per input text, in input order
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the embedding dimension for this model."""

    @abstractmethod
    def get_max_tokens(self) -> int:
        """Return the maximum token length for this model."""

    async def close(self) -> None:
        """Release network clients or other resources."""

    async def __aenter__(self) -> "EmbeddingProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class LLMProvider(ABC):
    """Abstract interface for chat-completion providers."""

    def __init__(self, config: ProviderConfig) -> None:
        """Initialize provider with configuration."""
        self.config = config

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Generate text completion.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Generated text

        Raises:
            ProviderError: If generation fails
        """

    async def close(self) -> None:
        """Release network clients or other resources."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, message: str, provider: str, original_error: Optional[Exception] = None):
        self.message = message
        self.provider = provider
        self.original_error = original_error
        super().__init__(self.message)
