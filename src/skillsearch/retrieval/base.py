"""Common interface of the retrieval engines."""

from abc import ABC, abstractmethod
from typing import Optional

from skillsearch.entities import SearchResult, Skill


class Retriever(ABC):
    """Scores a candidate set against a query.

    Candidates arrive already filtered by the store; retrievers still skip
    inactive skills so no path can ever return one.
    """

    @abstractmethod
    async def search(
        self, query: str, candidates: list[Skill], limit: Optional[int] = None
    ) -> list[SearchResult]:
        """Return results sorted by descending score, at most ``limit`` long."""


def rank(results: list[SearchResult], limit: Optional[int] = None) -> list[SearchResult]:
    """Sort by descending score; ties keep candidate order."""
    ranked = sorted(results, key=lambda r: r.score, reverse=True)
    return ranked if limit is None else ranked[:limit]
