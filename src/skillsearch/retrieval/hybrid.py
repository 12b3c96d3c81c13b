"""Hybrid retrieval: weighted linear fusion of keyword and semantic scores.

Scores are fused as ``keyword_weight * keyword_score + semantic_weight *
semantic_score``; a skill found by only one path gets only that path's
weighted score. This is a fixed-weight sum, not a rank-based fusion.
"""

import asyncio
from typing import Optional

from skillsearch.entities import SearchResult, Skill
from skillsearch.observability.logging import get_logger
from skillsearch.retrieval.base import Retriever, rank
from skillsearch.retrieval.keyword import KeywordRetriever
from skillsearch.retrieval.semantic import SemanticRetriever

logger = get_logger(__name__)

DEFAULT_KEYWORD_WEIGHT = 0.6
DEFAULT_SEMANTIC_WEIGHT = 0.4


def merge_results(
    keyword_results: list[SearchResult],
    semantic_results: list[SearchResult],
    keyword_weight: float = DEFAULT_KEYWORD_WEIGHT,
    semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
    limit: Optional[int] = None,
) -> list[SearchResult]:
    """Merge two result lists by skill id.

    Weighted scores of a skill present in both lists are summed and its
    reasons concatenated, keyword reasons first. Merging is commutative in
    the scores; only reason order depends on which list is keyword.
    """
    merged: dict[str, SearchResult] = {}

    for results, weight in ((keyword_results, keyword_weight), (semantic_results, semantic_weight)):
        for result in results:
            key = result.skill.id
            existing = merged.get(key)
            if existing is None:
                merged[key] = SearchResult(
                    skill=result.skill,
                    score=result.score * weight,
                    match_reasons=list(result.match_reasons),
                )
            else:
                existing.score += result.score * weight
                existing.match_reasons.extend(result.match_reasons)

    return rank(list(merged.values()), limit)


class HybridRetriever(Retriever):
    """Runs keyword and semantic retrieval concurrently and fuses the scores.

    Each path is asked for twice the requested depth so the merge has
    enough material from both sides.
    """

    def __init__(
        self,
        keyword: KeywordRetriever,
        semantic: SemanticRetriever,
        keyword_weight: float = DEFAULT_KEYWORD_WEIGHT,
        semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
    ) -> None:
        self.keyword = keyword
        self.semantic = semantic
        self.keyword_weight = keyword_weight
        self.semantic_weight = semantic_weight

    async def search(
        self,
        query: str,
        candidates: list[Skill],
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[SearchResult]:
        depth = None if limit is None else 2 * (offset + limit)

        keyword_results, semantic_results = await asyncio.gather(
            self.keyword.search(query, candidates, depth),
            self.semantic.search(query, candidates, depth),
        )

        merged = merge_results(
            keyword_results,
            semantic_results,
            keyword_weight=self.keyword_weight,
            semantic_weight=self.semantic_weight,
        )

        logger.debug(
            "hybrid_results_merged",
            keyword_count=len(keyword_results),
            semantic_count=len(semantic_results),
            merged_count=len(merged),
        )

        end = None if limit is None else offset + limit
        return merged[offset:end]
