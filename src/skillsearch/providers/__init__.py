"""Provider abstractions: embeddings and LLM backends."""

from skillsearch.providers.base import EmbeddingProvider, LLMProvider, ProviderConfig, ProviderError
from skillsearch.providers.fallback import HashEmbeddingProvider, fallback_embedding


def create_embedding_provider(config: ProviderConfig) -> EmbeddingProvider:
    """Factory function to create embedding providers based on configuration.

    Args:
        config: Provider configuration with provider_type

    Returns:
        Initialized embedding provider

    Raises:
        ValueError: If provider_type is unknown

    Example:
        config = ProviderConfig(provider_type="hash", model_name="fallback")
        provider = create_embedding_provider(config)
    """
    provider_type = config.provider_type.lower()

    if provider_type == "zhipu":
        from skillsearch.providers.zhipu import ZhipuEmbeddingProvider

        return ZhipuEmbeddingProvider(config)

    elif provider_type == "hash":
        return HashEmbeddingProvider(config)

    else:
        raise ValueError(
            f"Unknown embedding provider type: '{provider_type}'. "
            f"Supported types: zhipu, hash"
        )


def create_llm_provider(config: ProviderConfig) -> LLMProvider:
    """Factory function to create chat-completion providers.

    Raises:
        ValueError: If provider_type is unknown
        ProviderError: If the provider cannot be initialized
    """
    provider_type = config.provider_type.lower()

    if provider_type == "zhipu":
        from skillsearch.providers.zhipu_llm import ZhipuLLMProvider

        return ZhipuLLMProvider(config)

    raise ValueError(
        f"Unknown LLM provider type: '{provider_type}'. Supported types: zhipu"
    )


__all__ = [
    "EmbeddingProvider",
    "HashEmbeddingProvider",
    "LLMProvider",
    "ProviderConfig",
    "ProviderError",
    "create_embedding_provider",
    "create_llm_provider",
    "fallback_embedding",
]
