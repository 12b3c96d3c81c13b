"""Abstract base class for skill storage backends.

Why this exists:
- The search engines only need candidate fetches, counts and upserts
- Separates typed filter semantics (skillsearch.entities.filters) from
  their translation to a backend
- Enables testing with the in-memory implementation

How to extend:
1. Subclass SkillStore
2. Implement all abstract methods, honouring every CandidateFilter kind
3. Register in the factory in skillsearch.storage
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from skillsearch.entities import CandidateQuery, Skill


class StorageConfig(BaseModel):
    """Base configuration for storage backends."""

    store_type: str
    connection_string: str | None = None
    extra_params: dict[str, Any] = {}


class SkillStore(ABC):
    """Abstract interface for skill storage backends."""

    def __init__(self, config: StorageConfig) -> None:
        """Initialize storage with configuration."""
        self.config = config

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the store (create tables, etc.)."""

    @abstractmethod
    async def upsert_skill(self, skill: Skill) -> None:
        """Insert a skill or replace the stored skill with the same id."""

    async def upsert_skills(self, skills: list[Skill]) -> int:
        """Upsert several skills.

        Returns:
            Number of skills written
        """
        for skill in skills:
            await self.upsert_skill(skill)
        return len(skills)

    @abstractmethod
    async def get_skill(self, skill_id: str) -> Skill | None:
        """Retrieve a skill by ID.

        Returns:
            Skill if found, None otherwise
        """

    @abstractmethod
    async def fetch_candidates(self, query: CandidateQuery) -> list[Skill]:
        """Return skills matching every filter, ordered and paginated.

        Args:
            query: Filters, ordering, offset and limit

        Returns:
            Matching skills
        """

    @abstractmethod
    async def count(self, query: CandidateQuery) -> int:
        """Count skills matching every filter, ignoring pagination."""

    @abstractmethod
    async def update_embedding(
        self, skill_id: str, embedding: list[float], updated_at: datetime
    ) -> bool:
        """Store a freshly generated embedding.

        Returns:
            True if the skill exists and was updated, False otherwise
        """

    @abstractmethod
    async def close(self) -> None:
        """Close connections and cleanup resources."""

    async def __aenter__(self) -> "SkillStore":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class StorageError(Exception):
    """Base exception for storage errors."""

    def __init__(self, message: str, storage_type: str, original_error: Exception | None = None):
        self.message = message
        self.storage_type = storage_type
        self.original_error = original_error
        super().__init__(self.message)
