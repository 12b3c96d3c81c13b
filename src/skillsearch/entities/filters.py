"""Typed candidate filters shared by every skill store.

A ``CandidateQuery`` is a conjunction of filter predicates. Each predicate is
a member of the ``CandidateFilter`` tagged union, discriminated on ``kind``,
so stores can translate it (SQL for SQLite) or evaluate it in Python
(``CandidateQuery.matches``) with the same semantics.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from skillsearch.entities.skill import Skill


class TextField(str, Enum):
    """Skill fields that text filters may inspect."""

    NAME = "name"
    NAME_LOCALIZED = "name_localized"
    DESCRIPTION = "description"
    DESCRIPTION_LOCALIZED = "description_localized"
    CONTENT = "content"


ALL_TEXT_FIELDS: tuple[TextField, ...] = tuple(TextField)
NAME_FIELDS: tuple[TextField, ...] = (TextField.NAME, TextField.NAME_LOCALIZED)


class ActiveFilter(BaseModel):
    kind: Literal["active"] = "active"
    is_active: bool = True

    def matches(self, skill: Skill) -> bool:
        return skill.is_active == self.is_active


class CategoryFilter(BaseModel):
    """Skill belongs to at least one of the given category slugs."""

    kind: Literal["category"] = "category"
    slugs: list[str] = Field(..., min_length=1)

    def matches(self, skill: Skill) -> bool:
        return bool(skill.category_slugs & set(self.slugs))


class TagFilter(BaseModel):
    """Skill carries at least one of the given tag slugs."""

    kind: Literal["tag"] = "tag"
    slugs: list[str] = Field(..., min_length=1)

    def matches(self, skill: Skill) -> bool:
        return bool(skill.tag_slugs & set(self.slugs))


class MinPopularityFilter(BaseModel):
    kind: Literal["min_popularity"] = "min_popularity"
    min_stars: int = Field(..., ge=0)

    def matches(self, skill: Skill) -> bool:
        return skill.stars >= self.min_stars


class TextContainsFilter(BaseModel):
    """Case-insensitive substring match on any of the listed fields."""

    kind: Literal["text_contains"] = "text_contains"
    text: str = Field(..., min_length=1)
    fields: tuple[TextField, ...] = ALL_TEXT_FIELDS

    def matches(self, skill: Skill) -> bool:
        needle = self.text.lower()
        for field in self.fields:
            value = getattr(skill, field.value)
            if value and needle in value.lower():
                return True
        return False


class TextPrefixFilter(BaseModel):
    """Case-insensitive prefix match on any of the listed fields."""

    kind: Literal["text_prefix"] = "text_prefix"
    text: str = Field(..., min_length=1)
    fields: tuple[TextField, ...] = NAME_FIELDS

    def matches(self, skill: Skill) -> bool:
        prefix = self.text.lower()
        for field in self.fields:
            value = getattr(skill, field.value)
            if value and value.lower().startswith(prefix):
                return True
        return False


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class HasEmbeddingFilter(BaseModel):
    kind: Literal["has_embedding"] = "has_embedding"
    present: bool = True

    def matches(self, skill: Skill) -> bool:
        return bool(skill.embedding) == self.present


class EmbeddingUpdatedBeforeFilter(BaseModel):
    """Embedding timestamp exists and is older than ``before``."""

    kind: Literal["embedding_updated_before"] = "embedding_updated_before"
    before: datetime

    def matches(self, skill: Skill) -> bool:
        updated = skill.embedding_updated_at
        return updated is not None and _aware(updated) < _aware(self.before)


class StaleEmbeddingFilter(BaseModel):
    """Embedding missing, timestamp missing, or timestamp older than ``before``."""

    kind: Literal["stale_embedding"] = "stale_embedding"
    before: datetime

    def matches(self, skill: Skill) -> bool:
        if not skill.embedding or skill.embedding_updated_at is None:
            return True
        return _aware(skill.embedding_updated_at) < _aware(self.before)


CandidateFilter = Annotated[
    Union[
        ActiveFilter,
        CategoryFilter,
        TagFilter,
        MinPopularityFilter,
        TextContainsFilter,
        TextPrefixFilter,
        HasEmbeddingFilter,
        EmbeddingUpdatedBeforeFilter,
        StaleEmbeddingFilter,
    ],
    Field(discriminator="kind"),
]


class CandidateOrder(str, Enum):
    """Ordering applied by the store before pagination."""

    NONE = "none"
    POPULARITY = "popularity"  # stars desc, then rating desc


class CandidateQuery(BaseModel):
    """A conjunction of filters plus pagination for a candidate fetch."""

    filters: list[CandidateFilter] = Field(default_factory=list)
    limit: int | None = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)
    order_by: CandidateOrder = CandidateOrder.NONE

    def matches(self, skill: Skill) -> bool:
        return all(f.matches(skill) for f in self.filters)

    def paginate(self, skills: list[Skill]) -> list[Skill]:
        """Apply ordering, offset and limit to an already filtered list."""
        if self.order_by == CandidateOrder.POPULARITY:
            skills = sorted(skills, key=lambda s: (-s.stars, -s.rating))
        end = None if self.limit is None else self.offset + self.limit
        return skills[self.offset : end]

    @classmethod
    def for_options(
        cls,
        category_slug: str | None = None,
        tag_slugs: list[str] | None = None,
        min_popularity: int | None = None,
        extra: list | None = None,
        **kwargs,
    ) -> "CandidateQuery":
        """Build the active-only query with the usual structural filters."""
        filters: list = [ActiveFilter()]
        if category_slug:
            filters.append(CategoryFilter(slugs=[category_slug]))
        if tag_slugs:
            filters.append(TagFilter(slugs=list(tag_slugs)))
        if min_popularity:
            filters.append(MinPopularityFilter(min_stars=min_popularity))
        if extra:
            filters.extend(extra)
        return cls(filters=filters, **kwargs)
