"""Semantic retrieval: cosine similarity between query and skill embeddings."""

from datetime import timedelta
from typing import Optional

from skillsearch.core.freshness import DEFAULT_FRESHNESS_WINDOW, is_stale
from skillsearch.core.similarity import cosine_similarity
from skillsearch.core.text import normalize
from skillsearch.entities import SearchResult, Skill
from skillsearch.observability.logging import get_logger
from skillsearch.providers.base import EmbeddingProvider
from skillsearch.retrieval.base import Retriever, rank

logger = get_logger(__name__)

SEMANTIC_REASON = "AI semantic match"
DEFAULT_THRESHOLD = 0.3


def skill_search_text(skill: Skill) -> str:
    """Normalized text embedded for a skill at query time."""
    return normalize(
        f"{skill.name} {skill.name_localized or ''} "
        f"{skill.description} {skill.description_localized or ''}"
    )


class SemanticRetriever(Retriever):
    """Ranks candidates by embedding similarity to the query.

    Only candidates with similarity strictly above ``threshold`` survive,
    scored as ``similarity * 100``.

    Args:
        embedding_provider: Embeds the query and the candidates
        threshold: Exclusive similarity floor in [0, 1]
        use_stored_embeddings: Reuse a skill's stored embedding when it is
            fresh instead of embedding its text on every query
        freshness_window: Age after which a stored embedding is ignored
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        threshold: float = DEFAULT_THRESHOLD,
        use_stored_embeddings: bool = False,
        freshness_window: timedelta = DEFAULT_FRESHNESS_WINDOW,
    ) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {threshold}")

        self.embedding_provider = embedding_provider
        self.threshold = threshold
        self.use_stored_embeddings = use_stored_embeddings
        self.freshness_window = freshness_window

    async def search(
        self, query: str, candidates: list[Skill], limit: Optional[int] = None
    ) -> list[SearchResult]:
        normalized_query = normalize(query)
        if not normalized_query:
            return []

        active = [skill for skill in candidates if skill.is_active]
        if not active:
            return []

        query_vector = await self.embedding_provider.embed_text(normalized_query)
        vectors = await self._candidate_vectors(active)

        results = []
        for skill, vector in zip(active, vectors):
            similarity = cosine_similarity(query_vector, vector)
            if similarity > self.threshold:
                results.append(
                    SearchResult(
                        skill=skill,
                        score=similarity * 100,
                        match_reasons=[SEMANTIC_REASON],
                    )
                )

        logger.debug(
            "semantic_search_scored",
            candidates=len(active),
            above_threshold=len(results),
            threshold=self.threshold,
        )
        return rank(results, limit)

    async def _candidate_vectors(self, skills: list[Skill]) -> list[list[float]]:
        """Embeddings for each skill, in order; one batch call for the misses."""
        vectors: list[Optional[list[float]]] = [None] * len(skills)
        pending: list[int] = []

        for i, skill in enumerate(skills):
            if self.use_stored_embeddings and not is_stale(skill, window=self.freshness_window):
                vectors[i] = skill.embedding
            else:
                pending.append(i)

        if pending:
            texts = [skill_search_text(skills[i]) for i in pending]
            embedded = await self.embedding_provider.embed_batch(texts)
            for i, vector in zip(pending, embedded):
                vectors[i] = vector

        return vectors
