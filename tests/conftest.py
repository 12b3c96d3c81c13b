"""Shared fixtures and test doubles."""

import pytest

from skillsearch.entities import Label, Skill
from skillsearch.providers.base import EmbeddingProvider, ProviderConfig
from skillsearch.storage.base import StorageConfig
from skillsearch.storage.memory import InMemorySkillStore


class KeyedEmbeddingProvider(EmbeddingProvider):
    """Returns the vector of the first key contained in the text.

    Lets tests pin exact cosine similarities without a real model.
    """

    def __init__(self, vectors: dict[str, list[float]], default: list[float]):
        super().__init__(ProviderConfig(provider_type="keyed", model_name="keyed", dimension=len(default)))
        self.vectors = vectors
        self.default = default
        self.embed_text_calls: list[str] = []
        self.embed_batch_calls: list[list[str]] = []

    def _lookup(self, text: str) -> list[float]:
        for key, vector in self.vectors.items():
            if key in text:
                return vector
        return self.default

    async def embed_text(self, text: str) -> list[float]:
        self.embed_text_calls.append(text)
        return self._lookup(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.embed_batch_calls.append(list(texts))
        return [self._lookup(text) for text in texts]

    def get_dimension(self) -> int:
        return len(self.default)

    def get_max_tokens(self) -> int:
        return 8192


@pytest.fixture
def catalogue() -> list[Skill]:
    """A small catalogue with one inactive skill."""
    frontend = Label(slug="frontend", name="Frontend", name_localized="前端")
    return [
        Skill(
            id="react",
            name="React Best Practices",
            name_localized="React 最佳实践",
            description="Patterns for building React apps",
            stars=50,
            rating=4.0,
            categories=[frontend],
            tags=[Label(slug="react", name="React")],
        ),
        Skill(
            id="vue",
            name="Vue Guide",
            description="Component patterns",
            stars=200,
            rating=5.0,
            categories=[frontend],
        ),
        Skill(
            id="hooks",
            name="Hooks Cookbook",
            description="Recipes for react hooks",
            stars=10,
            rating=3.0,
            tags=[Label(slug="react", name="React")],
        ),
        Skill(
            id="legacy",
            name="React Legacy",
            description="Old react class components",
            stars=500,
            rating=5.0,
            is_active=False,
        ),
    ]


@pytest.fixture
async def memory_store(catalogue):
    """InMemorySkillStore preloaded with the catalogue."""
    store = InMemorySkillStore(StorageConfig(store_type="memory"))
    await store.initialize()
    await store.upsert_skills(catalogue)
    yield store
    await store.close()


@pytest.fixture
def keyed_provider() -> KeyedEmbeddingProvider:
    """Query "react" matches the React skill exactly and Hooks at 0.8."""
    return KeyedEmbeddingProvider(
        vectors={
            "hooks": [0.8, 0.6],
            "react": [1.0, 0.0],
        },
        default=[0.0, 1.0],
    )


@pytest.fixture
def keyed_provider_factory():
    return KeyedEmbeddingProvider
