"""Unit tests for SQLiteSkillStore."""

from datetime import datetime, timedelta, timezone

import pytest

from skillsearch.entities import (
    CandidateOrder,
    CandidateQuery,
    EmbeddingUpdatedBeforeFilter,
    HasEmbeddingFilter,
    Label,
    Skill,
    StaleEmbeddingFilter,
    TextContainsFilter,
    TextPrefixFilter,
)
from skillsearch.entities.filters import NAME_FIELDS
from skillsearch.storage import StorageConfig, StorageError, create_skill_store
from skillsearch.storage.memory import InMemorySkillStore
from skillsearch.storage.sqlite import SQLiteSkillStore

NOW = datetime(2026, 3, 1, 12, 30, tzinfo=timezone.utc)


@pytest.mark.asyncio
class TestSQLiteSkillStore:
    """Test SQLiteSkillStore functionality."""

    @pytest.fixture
    async def store(self, tmp_path, catalogue):
        """Create a SQLiteSkillStore with the catalogue loaded."""
        store = SQLiteSkillStore(
            StorageConfig(store_type="sqlite", connection_string=f"sqlite:///{tmp_path / 'skills.db'}")
        )
        await store.initialize()
        await store.upsert_skills(catalogue)
        yield store
        await store.close()

    async def test_factory(self, tmp_path):
        store = create_skill_store(
            StorageConfig(store_type="sqlite", connection_string=str(tmp_path / "x.db"))
        )
        assert isinstance(store, SQLiteSkillStore)
        assert store.db_path == str(tmp_path / "x.db")

    async def test_uninitialized_store_raises(self, tmp_path):
        store = SQLiteSkillStore(StorageConfig(store_type="sqlite", connection_string=str(tmp_path / "x.db")))
        with pytest.raises(StorageError, match="not initialized"):
            await store.get_skill("react")

    async def test_round_trip(self, store, catalogue):
        skill = await store.get_skill("react")

        assert skill == catalogue[0]
        assert skill.categories[0].name_localized == "前端"
        assert skill.tag_slugs == {"react"}

    async def test_get_missing(self, store):
        assert await store.get_skill("missing") is None

    async def test_upsert_replaces_fields_and_labels(self, store):
        await store.upsert_skill(
            Skill(id="react", name="React", tags=[Label(slug="ui", name="UI")], stars=1)
        )

        skill = await store.get_skill("react")
        assert skill.name == "React"
        assert skill.categories == []
        assert skill.tag_slugs == {"ui"}
        assert await store.count(CandidateQuery()) == 4

    async def test_active_filter(self, store):
        ids = {s.id for s in await store.fetch_candidates(CandidateQuery.for_options())}
        assert ids == {"react", "vue", "hooks"}
        assert await store.count(CandidateQuery()) == 4

    async def test_popularity_order_and_pagination(self, store):
        query = CandidateQuery.for_options(order_by=CandidateOrder.POPULARITY, limit=2, offset=1)
        assert [s.id for s in await store.fetch_candidates(query)] == ["react", "hooks"]

    async def test_structural_filters(self, store):
        by_category = await store.fetch_candidates(CandidateQuery.for_options(category_slug="frontend"))
        assert {s.id for s in by_category} == {"react", "vue"}

        by_tag = await store.fetch_candidates(CandidateQuery.for_options(tag_slugs=["react"]))
        assert {s.id for s in by_tag} == {"react", "hooks"}

        popular = await store.fetch_candidates(CandidateQuery.for_options(min_popularity=50))
        assert {s.id for s in popular} == {"react", "vue"}

    async def test_text_contains_is_case_insensitive(self, store):
        query = CandidateQuery.for_options(extra=[TextContainsFilter(text="HOOKS")])
        assert [s.id for s in await store.fetch_candidates(query)] == ["hooks"]

    async def test_text_contains_folds_non_ascii(self, store):
        await store.upsert_skill(Skill(id="cafe", name="CAFÉ Menu"))
        query = CandidateQuery.for_options(extra=[TextContainsFilter(text="café")])
        assert [s.id for s in await store.fetch_candidates(query)] == ["cafe"]

    async def test_text_contains_on_localized_name(self, store):
        query = CandidateQuery.for_options(extra=[TextContainsFilter(text="最佳", fields=NAME_FIELDS)])
        assert [s.id for s in await store.fetch_candidates(query)] == ["react"]

    async def test_text_prefix(self, store):
        query = CandidateQuery.for_options(extra=[TextPrefixFilter(text="re")])
        assert [s.id for s in await store.fetch_candidates(query)] == ["react"]

    async def test_update_embedding(self, store):
        assert await store.update_embedding("react", [0.25, -0.5], NOW)

        skill = await store.get_skill("react")
        assert skill.embedding == [0.25, -0.5]
        assert skill.embedding_updated_at == NOW

    async def test_update_embedding_missing(self, store):
        assert not await store.update_embedding("missing", [0.1], NOW)

    async def test_embedding_filters(self, store):
        await store.update_embedding("react", [0.1], NOW)
        await store.update_embedding("vue", [0.1], NOW - timedelta(days=10))
        cutoff = NOW - timedelta(days=7)

        with_embedding = await store.count(CandidateQuery.for_options(extra=[HasEmbeddingFilter()]))
        outdated = await store.fetch_candidates(
            CandidateQuery.for_options(extra=[EmbeddingUpdatedBeforeFilter(before=cutoff)])
        )
        stale = await store.fetch_candidates(
            CandidateQuery.for_options(extra=[StaleEmbeddingFilter(before=cutoff)])
        )

        assert with_embedding == 2
        assert [s.id for s in outdated] == ["vue"]
        assert {s.id for s in stale} == {"vue", "hooks"}

    async def test_persists_across_connections(self, tmp_path, catalogue):
        config = StorageConfig(store_type="sqlite", connection_string=str(tmp_path / "p.db"))
        async with SQLiteSkillStore(config) as store:
            await store.upsert_skill(catalogue[0])

        async with SQLiteSkillStore(config) as store:
            assert (await store.get_skill("react")).name == "React Best Practices"


@pytest.mark.asyncio
class TestStoreParity:
    """SQLite must return what the in-memory reference returns."""

    QUERIES = [
        CandidateQuery.for_options(),
        CandidateQuery.for_options(order_by=CandidateOrder.POPULARITY, limit=2),
        CandidateQuery.for_options(extra=[TextContainsFilter(text="patterns")]),
        CandidateQuery.for_options(category_slug="frontend", min_popularity=100),
        CandidateQuery.for_options(tag_slugs=["react"], extra=[TextPrefixFilter(text="hoo")]),
        CandidateQuery(),
    ]

    @pytest.mark.parametrize("query", QUERIES)
    async def test_same_results(self, tmp_path, catalogue, query):
        reference = InMemorySkillStore(StorageConfig(store_type="memory"))
        sqlite = SQLiteSkillStore(StorageConfig(store_type="sqlite", connection_string=str(tmp_path / "s.db")))
        for store in (reference, sqlite):
            await store.initialize()
            await store.upsert_skills(catalogue)

        expected = [s.id for s in await reference.fetch_candidates(query)]
        actual = [s.id for s in await sqlite.fetch_candidates(query)]

        assert actual == expected
        assert await sqlite.count(query) == await reference.count(query)

        await sqlite.close()
