"""Unit tests for SearchPipeline."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from skillsearch.config.schema import AppConfig
from skillsearch.entities import SearchMode, SearchOptions, SearchResponse, Skill
from skillsearch.pipelines.search import SearchError, SearchPipeline
from skillsearch.storage.base import SkillStore


@pytest.fixture
def pipeline(memory_store, keyed_provider):
    return SearchPipeline(AppConfig(), keyed_provider, memory_store)


@pytest.mark.asyncio
class TestSearchPipeline:
    """Test SearchPipeline.search()."""

    @pytest.mark.parametrize("query", ["", "   ", None, 42])
    async def test_empty_query_short_circuits(self, keyed_provider, query):
        store = AsyncMock(spec=SkillStore)
        pipeline = SearchPipeline(AppConfig(), keyed_provider, store)

        response = await pipeline.search(query)

        assert response == SearchResponse(results=[], total=0)
        store.fetch_candidates.assert_not_awaited()
        store.count.assert_not_awaited()
        assert keyed_provider.embed_text_calls == []

    async def test_invalid_mode(self, pipeline):
        with pytest.raises(SearchError, match="Unknown search mode"):
            await pipeline.search("react", "fuzzy")

    async def test_keyword_mode(self, pipeline):
        response = await pipeline.search("react", SearchMode.KEYWORD)

        assert [r.skill.id for r in response.results] == ["react", "hooks"]
        assert response.results[0].score == pytest.approx(260.0)
        assert response.results[0].match_reason == "name match, localized name match, description match"
        # Only the React skill mentions the query in a name field
        assert response.total == 1

    async def test_mode_as_string(self, pipeline):
        response = await pipeline.search("react", "keyword")
        assert [r.skill.id for r in response.results] == ["react", "hooks"]

    async def test_semantic_mode(self, pipeline):
        response = await pipeline.search("react", SearchMode.SEMANTIC)

        assert [r.skill.id for r in response.results] == ["react", "hooks"]
        assert [r.score for r in response.results] == pytest.approx([100.0, 80.0])
        assert all(r.match_reason == "AI semantic match" for r in response.results)

    async def test_hybrid_mode(self, pipeline):
        response = await pipeline.search("react")

        assert [r.skill.id for r in response.results] == ["react", "hooks"]
        assert response.results[0].score == pytest.approx(0.6 * 260 + 0.4 * 100)
        assert response.results[1].score == pytest.approx(0.6 * 66 + 0.4 * 80)
        assert response.results[0].match_reasons[-1] == "AI semantic match"
        assert response.total == 1

    async def test_hybrid_includes_semantic_only_matches(self, memory_store, keyed_provider_factory):
        provider = keyed_provider_factory(
            vectors={"widgets": [1.0, 0.0], "component": [1.0, 0.0]}, default=[0.0, 1.0]
        )
        pipeline = SearchPipeline(AppConfig(), provider, memory_store)

        response = await pipeline.search("ui widgets")

        assert [r.skill.id for r in response.results] == ["vue"]
        assert response.results[0].match_reasons == ["AI semantic match"]
        assert response.results[0].score == pytest.approx(40.0)

    @pytest.mark.parametrize("mode", list(SearchMode))
    async def test_pagination(self, pipeline, mode):
        first = await pipeline.search("react", mode, SearchOptions(limit=1, offset=0))
        second = await pipeline.search("react", mode, SearchOptions(limit=1, offset=1))

        assert [r.skill.id for r in first.results] == ["react"]
        assert [r.skill.id for r in second.results] == ["hooks"]

    async def test_zero_limit(self, pipeline):
        response = await pipeline.search("react", SearchMode.KEYWORD, SearchOptions(limit=0))
        assert response == SearchResponse(results=[], total=0)

    async def test_negative_pagination_clamped(self, pipeline):
        response = await pipeline.search("react", SearchMode.KEYWORD, SearchOptions(limit=5, offset=-3))
        assert [r.skill.id for r in response.results] == ["react", "hooks"]

    async def test_category_filter(self, pipeline):
        response = await pipeline.search("react", SearchMode.HYBRID, SearchOptions(category_slug="frontend"))
        assert [r.skill.id for r in response.results] == ["react"]

    async def test_min_popularity_filter(self, pipeline):
        response = await pipeline.search("patterns", SearchMode.KEYWORD, SearchOptions(min_popularity=100))
        assert [r.skill.id for r in response.results] == ["vue"]

    async def test_negative_min_popularity_clamped(self, pipeline):
        response = await pipeline.search("patterns", SearchMode.KEYWORD, SearchOptions(min_popularity=-1))
        assert {r.skill.id for r in response.results} == {"vue", "react"}

    async def test_localized_query(self, pipeline):
        response = await pipeline.search("最佳", SearchMode.KEYWORD)

        assert [r.skill.id for r in response.results] == ["react"]
        assert response.results[0].match_reasons == ["localized name match"]
        assert response.total == 1

    async def test_no_results(self, pipeline):
        response = await pipeline.search("angular", SearchMode.KEYWORD)
        assert response == SearchResponse(results=[], total=0)

    async def test_inactive_never_returned(self, pipeline):
        for mode in SearchMode:
            response = await pipeline.search("legacy", mode)
            assert all(r.skill.id != "legacy" for r in response.results)


@pytest.mark.asyncio
class TestSuggestions:
    """Test SearchPipeline.suggest()."""

    async def test_prefix_matches_names(self, pipeline):
        assert await pipeline.suggest("re") == ["React Best Practices", "React 最佳实践"]

    async def test_case_insensitive_and_trimmed(self, pipeline):
        assert await pipeline.suggest("  VUE ") == ["Vue Guide"]

    async def test_too_short(self, pipeline):
        assert await pipeline.suggest("r") == []
        assert await pipeline.suggest(" r ") == []

    async def test_limit(self, pipeline):
        assert await pipeline.suggest("re", limit=1) == ["React Best Practices"]

    async def test_non_string(self, pipeline):
        assert await pipeline.suggest(None) == []


@pytest.mark.asyncio
class TestEmbeddingHelpers:
    async def test_generate_embedding_normalizes(self, pipeline, keyed_provider):
        vector = await pipeline.generate_embedding("React, Hooks!")

        assert keyed_provider.embed_text_calls == ["react hooks"]
        assert vector == [0.8, 0.6]

    async def test_is_embedding_stale(self, pipeline):
        assert pipeline.is_embedding_stale(Skill(name="a"))
        fresh = Skill(name="a", embedding=[0.1], embedding_updated_at=datetime.now(timezone.utc))
        assert not pipeline.is_embedding_stale(fresh)
