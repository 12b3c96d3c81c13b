"""Entities - Domain models for the skill search system.

This module contains pure domain entities without business logic:
- Skill: A searchable catalogue entry
- Label: A category or tag attached to a skill
- SearchResult: A retrieved skill with relevance score
- CandidateQuery: Typed filters for fetching candidate skills
"""

from skillsearch.entities.filters import (
    ActiveFilter,
    CandidateFilter,
    CandidateOrder,
    CandidateQuery,
    CategoryFilter,
    EmbeddingUpdatedBeforeFilter,
    HasEmbeddingFilter,
    MinPopularityFilter,
    StaleEmbeddingFilter,
    TagFilter,
    TextContainsFilter,
    TextField,
    TextPrefixFilter,
)
from skillsearch.entities.search_result import (
    SearchMode,
    SearchOptions,
    SearchResponse,
    SearchResult,
)
from skillsearch.entities.skill import Label, Skill

__all__ = [
    "ActiveFilter",
    "CandidateFilter",
    "CandidateOrder",
    "CandidateQuery",
    "CategoryFilter",
    "EmbeddingUpdatedBeforeFilter",
    "HasEmbeddingFilter",
    "Label",
    "MinPopularityFilter",
    "SearchMode",
    "SearchOptions",
    "SearchResponse",
    "SearchResult",
    "Skill",
    "StaleEmbeddingFilter",
    "TagFilter",
    "TextContainsFilter",
    "TextField",
    "TextPrefixFilter",
]
