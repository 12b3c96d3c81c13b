"""Skill entity - a searchable catalogue entry."""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class Label(BaseModel):
    """A category or tag attached to a skill, identified by its slug."""

    slug: str = Field(..., min_length=1)
    name: str
    name_localized: str | None = None


class Skill(BaseModel):
    """A skill record as seen by the search engines.

    Keyword matching runs over ``display_fields``; semantic matching embeds
    the name and description fields. ``stars`` and ``rating`` feed the
    popularity boost.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    slug: str | None = None
    name: str
    name_localized: str | None = None
    description: str = ""
    description_localized: str | None = None
    content: str | None = Field(None, description="Long-form SKILL.md body")
    stars: int = Field(default=0, ge=0)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    embedding: list[float] | None = None
    embedding_updated_at: datetime | None = None
    is_active: bool = True
    categories: list[Label] = Field(default_factory=list)
    tags: list[Label] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Skill name cannot be empty")
        return v

    @property
    def display_fields(self) -> tuple[str | None, ...]:
        """Keyword-searchable fields in scoring order."""
        return (
            self.name,
            self.name_localized,
            self.description,
            self.description_localized,
            self.content,
        )

    @property
    def category_slugs(self) -> set[str]:
        return {c.slug for c in self.categories}

    @property
    def tag_slugs(self) -> set[str]:
        return {t.slug for t in self.tags}
