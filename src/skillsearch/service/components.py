"""Component initialization service.

Provides helper functions that turn AppConfig sections into ready-to-use
providers, stores and pipelines.
"""

from typing import Optional

from skillsearch.config.loader import load_config
from skillsearch.config.schema import AppConfig, EmbeddingConfig, LLMConfig
from skillsearch.pipelines.embedding import EmbeddingPipeline
from skillsearch.pipelines.localization import LocalizationPipeline
from skillsearch.pipelines.search import SearchPipeline
from skillsearch.providers import (
    EmbeddingProvider,
    LLMProvider,
    ProviderConfig,
    create_embedding_provider,
    create_llm_provider,
)
from skillsearch.storage import SkillStore, StorageConfig, create_skill_store


def embedding_provider_config(config: EmbeddingConfig) -> ProviderConfig:
    return ProviderConfig(
        provider_type=config.provider.value,
        model_name=config.model_name,
        api_key=config.api_key,
        base_url=config.base_url,
        dimension=config.dimension,
        timeout=config.timeout,
        batch_size=config.batch_size,
        extra_params=config.extra_params,
    )


def llm_provider_config(config: LLMConfig) -> ProviderConfig:
    return ProviderConfig(
        provider_type=config.provider.value,
        model_name=config.model_name,
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=config.timeout,
        extra_params=config.extra_params,
    )


def build_embedding_provider(config: AppConfig) -> EmbeddingProvider:
    return create_embedding_provider(embedding_provider_config(config.embedding))


def build_llm_provider(config: AppConfig) -> LLMProvider:
    """Create the chat provider.

    Raises:
        ProviderError: If no API key is configured
    """
    return create_llm_provider(llm_provider_config(config.llm))


async def initialize_store(config: AppConfig) -> SkillStore:
    """Create and initialize the configured skill store."""
    store = create_skill_store(
        StorageConfig(
            store_type=config.store.store_type.value,
            connection_string=config.store.connection_string,
            extra_params=config.store.extra_params,
        )
    )
    await store.initialize()
    return store


async def _initialize_store_for(config: AppConfig, provider: EmbeddingProvider | LLMProvider) -> SkillStore:
    """Initialize the store, closing the already-built provider if that fails."""
    try:
        return await initialize_store(config)
    except Exception:
        await provider.close()
        raise


async def initialize_search(
    config: Optional[AppConfig] = None,
    config_path: str | None = None,
) -> SearchPipeline:
    """Initialize a search pipeline with its provider and store.

    Args:
        config: Loaded configuration; loaded from config_path when omitted
        config_path: Optional path to config file

    Returns:
        SearchPipeline; close its store and provider when done
    """
    config = config or load_config(config_path=config_path)
    embedding_provider = build_embedding_provider(config)
    store = await _initialize_store_for(config, embedding_provider)
    return SearchPipeline(config, embedding_provider, store)


async def initialize_embedding_refresh(config: AppConfig, request_delay: float = 0.0) -> EmbeddingPipeline:
    embedding_provider = build_embedding_provider(config)
    store = await _initialize_store_for(config, embedding_provider)
    return EmbeddingPipeline(config, embedding_provider, store, request_delay=request_delay)


async def initialize_localization(config: AppConfig) -> LocalizationPipeline:
    llm_provider = build_llm_provider(config)
    store = await _initialize_store_for(config, llm_provider)
    return LocalizationPipeline(config, llm_provider, store)
