"""SearchResult entity - a skill paired with its relevance score."""

from enum import Enum

from pydantic import BaseModel, Field

from skillsearch.entities.skill import Skill


class SearchMode(str, Enum):
    """Retrieval paths a search can use."""

    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


class SearchResult(BaseModel):
    """A retrieved skill with relevance score.

    Scores are not normalized: keyword scores are additive field weights plus
    a popularity boost, semantic scores are similarity percentages, and hybrid
    scores are weighted sums of both.
    """

    skill: Skill
    score: float = Field(..., ge=0.0, description="Relevance score (unbounded above)")
    match_reasons: list[str] = Field(default_factory=list)

    @property
    def match_reason(self) -> str:
        return ", ".join(self.match_reasons)


class SearchOptions(BaseModel):
    """Pagination and structural filters for a search call."""

    limit: int = 12
    offset: int = 0
    category_slug: str | None = None
    tag_slugs: list[str] | None = None
    min_popularity: int | None = None

    def clamped(self) -> "SearchOptions":
        """Return a copy with negative limit, offset and min_popularity raised to zero."""
        update = {"limit": max(int(self.limit), 0), "offset": max(int(self.offset), 0)}
        if self.min_popularity is not None:
            update["min_popularity"] = max(int(self.min_popularity), 0)
        return self.model_copy(update=update)


class SearchResponse(BaseModel):
    """One page of search results plus the total used for pagination."""

    results: list[SearchResult] = Field(default_factory=list)
    total: int = 0
