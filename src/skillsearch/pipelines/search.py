"""Search pipeline: candidate fetch, retrieval and pagination.

Why this exists:
- Orchestrates the full query flow for the three search modes
- Owns the candidate-fetch rules for each mode
- Exposes embedding generation and staleness checks to callers

How to use:
    from skillsearch.pipelines.search import SearchPipeline

    pipeline = SearchPipeline(config, embedding_provider, store)
    response = await pipeline.search("react", SearchMode.HYBRID, SearchOptions(limit=12))
"""

from datetime import timedelta
from typing import Any, Optional

from skillsearch.config.schema import AppConfig
from skillsearch.core.freshness import is_stale
from skillsearch.core.text import normalize
from skillsearch.entities import (
    CandidateOrder,
    CandidateQuery,
    SearchMode,
    SearchOptions,
    SearchResponse,
    SearchResult,
    Skill,
    TextContainsFilter,
    TextPrefixFilter,
)
from skillsearch.entities.filters import NAME_FIELDS
from skillsearch.observability.logging import get_logger
from skillsearch.providers.base import EmbeddingProvider
from skillsearch.retrieval import HybridRetriever, KeywordRetriever, SemanticRetriever
from skillsearch.storage.base import SkillStore

logger = get_logger(__name__)

MIN_SUGGESTION_LENGTH = 2


class SearchError(ValueError):
    """Exception raised for invalid search requests."""


class SearchPipeline:
    """Pipeline for searching the skill catalogue."""

    def __init__(
        self,
        config: AppConfig,
        embedding_provider: EmbeddingProvider,
        store: SkillStore,
    ):
        """Initialize the search pipeline.

        Args:
            config: Application configuration
            embedding_provider: Provider for query and skill embeddings
            store: Source of candidate skills
        """
        self.config = config
        self.embedding_provider = embedding_provider
        self.store = store

        search_config = config.search
        self.freshness_window = timedelta(days=search_config.freshness_days)
        self.keyword = KeywordRetriever(require_match=search_config.keyword_require_match)
        self.semantic = SemanticRetriever(
            embedding_provider,
            threshold=search_config.semantic_threshold,
            use_stored_embeddings=search_config.use_stored_embeddings,
            freshness_window=self.freshness_window,
        )
        self.hybrid = HybridRetriever(
            self.keyword,
            self.semantic,
            keyword_weight=search_config.keyword_weight,
            semantic_weight=search_config.semantic_weight,
        )

    async def search(
        self,
        query: Any,
        mode: SearchMode | str = SearchMode.HYBRID,
        options: Optional[SearchOptions] = None,
    ) -> SearchResponse:
        """Search skills.

        An empty, whitespace-only or non-string query returns an empty
        response without touching the store or any retriever.

        Args:
            query: Raw query text
            mode: keyword, semantic or hybrid
            options: Pagination and structural filters

        Returns:
            One page of results and the pagination total

        Raises:
            SearchError: If mode is not a known search mode
        """
        if not isinstance(query, str) or not query.strip():
            return SearchResponse(results=[], total=0)

        try:
            mode = SearchMode(mode)
        except ValueError as e:
            raise SearchError(f"Unknown search mode: {mode!r}") from e

        options = (options or SearchOptions(limit=self.config.search.default_limit)).clamped()
        trimmed = query.strip()

        logger.info("search_started", mode=mode.value, limit=options.limit, offset=options.offset)

        if options.limit == 0:
            results: list[SearchResult] = []
        elif mode == SearchMode.KEYWORD:
            results = await self._search_keyword(trimmed, options)
        elif mode == SearchMode.SEMANTIC:
            results = await self._search_semantic(trimmed, options)
        else:
            results = await self._search_hybrid(trimmed, options)

        total = await self._count_total(trimmed, options) if results else 0

        logger.info("search_completed", mode=mode.value, result_count=len(results), total=total)
        return SearchResponse(results=results, total=total)

    async def _search_keyword(self, query: str, options: SearchOptions) -> list[SearchResult]:
        candidates = await self.store.fetch_candidates(
            self._keyword_query(query, options, limit=options.limit, offset=options.offset)
        )
        return await self.keyword.search(query, candidates)

    async def _search_semantic(self, query: str, options: SearchOptions) -> list[SearchResult]:
        candidates = await self.store.fetch_candidates(self._semantic_query(options))
        results = await self.semantic.search(query, candidates)
        return results[options.offset : options.offset + options.limit]

    async def _search_hybrid(self, query: str, options: SearchOptions) -> list[SearchResult]:
        depth = 2 * (options.offset + options.limit)
        keyword_candidates = await self.store.fetch_candidates(
            self._keyword_query(query, options, limit=depth, offset=0)
        )
        semantic_candidates = await self.store.fetch_candidates(self._semantic_query(options))

        candidates = _union(keyword_candidates, semantic_candidates)
        return await self.hybrid.search(query, candidates, limit=options.limit, offset=options.offset)

    def _keyword_query(
        self, query: str, options: SearchOptions, limit: int, offset: int
    ) -> CandidateQuery:
        return CandidateQuery.for_options(
            category_slug=options.category_slug,
            tag_slugs=options.tag_slugs,
            min_popularity=options.min_popularity,
            extra=[TextContainsFilter(text=query)],
            limit=limit,
            offset=offset,
            order_by=CandidateOrder.POPULARITY,
        )

    def _semantic_query(self, options: SearchOptions) -> CandidateQuery:
        return CandidateQuery.for_options(
            category_slug=options.category_slug,
            tag_slugs=options.tag_slugs,
            min_popularity=options.min_popularity,
            limit=self.config.search.semantic_candidate_limit,
        )

    async def _count_total(self, query: str, options: SearchOptions) -> int:
        """Count active skills whose name or localized name contains the query."""
        return await self.store.count(
            CandidateQuery.for_options(
                category_slug=options.category_slug,
                tag_slugs=options.tag_slugs,
                min_popularity=options.min_popularity,
                extra=[TextContainsFilter(text=query, fields=NAME_FIELDS)],
            )
        )

    async def suggest(self, query: Any, limit: int = 5) -> list[str]:
        """Suggest skill names starting with the query.

        Returns:
            Distinct names or localized names, at most ``limit``
        """
        if not isinstance(query, str) or len(query.strip()) < MIN_SUGGESTION_LENGTH or limit <= 0:
            return []

        prefix = query.strip()
        skills = await self.store.fetch_candidates(
            CandidateQuery.for_options(
                extra=[TextPrefixFilter(text=prefix, fields=NAME_FIELDS)],
                limit=limit,
            )
        )

        lowered = prefix.lower()
        suggestions: dict[str, None] = {}
        for skill in skills:
            for name in (skill.name, skill.name_localized):
                if name and name.lower().startswith(lowered):
                    suggestions.setdefault(name, None)

        return list(suggestions)[:limit]

    async def generate_embedding(self, text: str) -> list[float]:
        """Embed normalized text with the configured provider."""
        return await self.embedding_provider.embed_text(normalize(text))

    def is_embedding_stale(self, skill: Skill) -> bool:
        return is_stale(skill, window=self.freshness_window)


def _union(first: list[Skill], second: list[Skill]) -> list[Skill]:
    """Concatenate two candidate lists, dropping repeated ids."""
    seen: set[str] = set()
    merged = []
    for skill in [*first, *second]:
        if skill.id not in seen:
            seen.add(skill.id)
            merged.append(skill)
    return merged
