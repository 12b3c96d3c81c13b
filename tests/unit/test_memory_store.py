"""Unit tests for InMemorySkillStore."""

from datetime import datetime, timezone

import pytest

from skillsearch.entities import CandidateOrder, CandidateQuery, Skill, TextContainsFilter
from skillsearch.storage import StorageConfig, create_skill_store
from skillsearch.storage.memory import InMemorySkillStore


@pytest.mark.asyncio
class TestInMemorySkillStore:
    """Test InMemorySkillStore functionality."""

    async def test_factory(self):
        store = create_skill_store(StorageConfig(store_type="memory"))
        assert isinstance(store, InMemorySkillStore)

    async def test_unknown_store_type(self):
        with pytest.raises(ValueError, match="Unknown skill store type"):
            create_skill_store(StorageConfig(store_type="postgres"))

    async def test_get_skill(self, memory_store):
        skill = await memory_store.get_skill("react")
        assert skill.name == "React Best Practices"
        assert await memory_store.get_skill("missing") is None

    async def test_returns_copies(self, memory_store):
        skill = await memory_store.get_skill("react")
        skill.stars = 9999

        assert (await memory_store.get_skill("react")).stars == 50

    async def test_upsert_replaces(self, memory_store):
        await memory_store.upsert_skill(Skill(id="react", name="React Renamed"))

        assert (await memory_store.get_skill("react")).name == "React Renamed"
        assert await memory_store.count(CandidateQuery()) == 4

    async def test_fetch_active_by_popularity(self, memory_store):
        skills = await memory_store.fetch_candidates(
            CandidateQuery.for_options(order_by=CandidateOrder.POPULARITY)
        )
        assert [s.id for s in skills] == ["vue", "react", "hooks"]

    async def test_fetch_text_with_pagination(self, memory_store):
        query = CandidateQuery.for_options(
            extra=[TextContainsFilter(text="REACT")],
            order_by=CandidateOrder.POPULARITY,
            limit=1,
            offset=1,
        )
        assert [s.id for s in await memory_store.fetch_candidates(query)] == ["hooks"]
        assert await memory_store.count(query) == 2

    async def test_update_embedding(self, memory_store):
        now = datetime.now(timezone.utc)
        assert await memory_store.update_embedding("react", [0.1, 0.2], now)

        skill = await memory_store.get_skill("react")
        assert skill.embedding == [0.1, 0.2]
        assert skill.embedding_updated_at == now

    async def test_update_embedding_missing(self, memory_store):
        assert not await memory_store.update_embedding("missing", [0.1], datetime.now(timezone.utc))
