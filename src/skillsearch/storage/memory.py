"""In-memory skill store for testing and development.

Filters are evaluated with ``CandidateQuery.matches``, which defines the
reference semantics every other backend must reproduce.
"""

from datetime import datetime

from skillsearch.entities import CandidateQuery, Skill
from skillsearch.storage.base import SkillStore, StorageConfig


class InMemorySkillStore(SkillStore):
    """Stores skills in a dict keyed by id, preserving insertion order."""

    def __init__(self, config: StorageConfig) -> None:
        super().__init__(config)
        self.skills: dict[str, Skill] = {}

    async def initialize(self) -> None:
        pass

    async def upsert_skill(self, skill: Skill) -> None:
        self.skills[skill.id] = skill.model_copy(deep=True)

    async def get_skill(self, skill_id: str) -> Skill | None:
        skill = self.skills.get(skill_id)
        return skill.model_copy(deep=True) if skill else None

    async def fetch_candidates(self, query: CandidateQuery) -> list[Skill]:
        matching = [s for s in self.skills.values() if query.matches(s)]
        return [s.model_copy(deep=True) for s in query.paginate(matching)]

    async def count(self, query: CandidateQuery) -> int:
        return sum(1 for s in self.skills.values() if query.matches(s))

    async def update_embedding(
        self, skill_id: str, embedding: list[float], updated_at: datetime
    ) -> bool:
        skill = self.skills.get(skill_id)
        if skill is None:
            return False
        self.skills[skill_id] = skill.model_copy(
            update={"embedding": list(embedding), "embedding_updated_at": updated_at}
        )
        return True

    async def close(self) -> None:
        self.skills.clear()
