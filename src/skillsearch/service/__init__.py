"""Service layer - component wiring.

This module contains helpers that assemble configured components:
- initialize_store: Store initialization helper
- initialize_search / initialize_embedding_refresh / initialize_localization:
  Pipeline construction from AppConfig
"""

from skillsearch.service.components import (
    build_embedding_provider,
    build_llm_provider,
    initialize_embedding_refresh,
    initialize_localization,
    initialize_search,
    initialize_store,
)

__all__ = [
    "build_embedding_provider",
    "build_llm_provider",
    "initialize_embedding_refresh",
    "initialize_localization",
    "initialize_search",
    "initialize_store",
]
