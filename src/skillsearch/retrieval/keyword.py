"""Keyword retrieval: substring matching with fixed field weights."""

from typing import Optional

from skillsearch.entities import SearchResult, Skill
from skillsearch.observability.logging import get_logger
from skillsearch.retrieval.base import Retriever, rank

logger = get_logger(__name__)

# (score, reason) aligned with Skill.display_fields
FIELD_WEIGHTS: tuple[tuple[float, str], ...] = (
    (100.0, "name match"),
    (90.0, "localized name match"),
    (50.0, "description match"),
    (45.0, "localized description match"),
    (30.0, "content match"),
)

MAX_STARS_BOOST = 20.0
MAX_RATING_BOOST = 15.0


def popularity_boost(skill: Skill) -> float:
    """Boost added to every keyword score: up to 20 for stars, 15 for rating."""
    return min(skill.stars / 10, MAX_STARS_BOOST) + min(skill.rating * 5, MAX_RATING_BOOST)


def score_skill(query: str, skill: Skill) -> tuple[float, list[str]]:
    """Score one skill against a raw query.

    Matching is case-insensitive substring containment of the query as
    given (no normalization). The popularity boost is always included.

    Returns:
        Tuple of (score, match reasons)
    """
    needle = query.lower()
    score = 0.0
    reasons: list[str] = []

    for value, (weight, reason) in zip(skill.display_fields, FIELD_WEIGHTS):
        if value and needle in value.lower():
            score += weight
            reasons.append(reason)

    return score + popularity_boost(skill), reasons


class KeywordRetriever(Retriever):
    """Scores candidates by which display fields contain the query.

    Args:
        require_match: Drop candidates that match no field. With False,
            such candidates are kept with only their popularity boost.
    """

    def __init__(self, require_match: bool = True) -> None:
        self.require_match = require_match

    async def search(
        self, query: str, candidates: list[Skill], limit: Optional[int] = None
    ) -> list[SearchResult]:
        if not query.strip():
            return []

        results = []
        for skill in candidates:
            if not skill.is_active:
                continue
            score, reasons = score_skill(query, skill)
            if self.require_match and not reasons:
                continue
            results.append(SearchResult(skill=skill, score=score, match_reasons=reasons))

        logger.debug(
            "keyword_search_scored",
            candidates=len(candidates),
            matched=len(results),
        )
        return rank(results, limit)
