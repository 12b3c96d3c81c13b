"""Embedding refresh pipeline: regenerate stale stored embeddings.

Why this exists:
- Semantic search can reuse stored embeddings instead of embedding every
  candidate per query
- Keeps stored embeddings within the freshness window

Skills are processed one at a time, with an optional pause between
requests, to stay under embedding-service rate limits. Search never waits
on this pipeline.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field

from skillsearch.config.schema import AppConfig
from skillsearch.core.freshness import is_stale, utcnow
from skillsearch.core.text import normalize
from skillsearch.entities import (
    ActiveFilter,
    CandidateQuery,
    EmbeddingUpdatedBeforeFilter,
    HasEmbeddingFilter,
    Skill,
    StaleEmbeddingFilter,
)
from skillsearch.observability.logging import get_logger
from skillsearch.providers.base import EmbeddingProvider, ProviderError
from skillsearch.storage.base import SkillStore, StorageError

logger = get_logger(__name__)

MAX_CONTENT_CHARS = 2000


def skill_embedding_text(skill: Skill) -> str:
    """Normalized text stored as a skill's embedding source.

    Includes the first 2000 characters of the long-form content.
    """
    parts = [
        skill.name,
        skill.name_localized or "",
        skill.description,
        skill.description_localized or "",
    ]
    if skill.content:
        parts.append(skill.content[:MAX_CONTENT_CHARS])
    return normalize("\n\n".join(parts))


class RefreshItem(BaseModel):
    skill_id: str
    skill_name: str
    success: bool
    skipped: bool = False
    error: Optional[str] = None


class RefreshReport(BaseModel):
    """Outcome of one refresh run."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    remaining: int = 0
    total: int = 0
    items: list[RefreshItem] = Field(default_factory=list)


class EmbeddingStatus(BaseModel):
    """Embedding coverage of the active catalogue."""

    total: int
    with_embedding: int
    without_embedding: int
    outdated: int

    @property
    def coverage(self) -> float:
        """Percentage of active skills that have an embedding."""
        return (self.with_embedding / self.total) * 100 if self.total else 0.0


class EmbeddingPipeline:
    """Regenerates and stores skill embeddings."""

    def __init__(
        self,
        config: AppConfig,
        embedding_provider: EmbeddingProvider,
        store: SkillStore,
        request_delay: float = 0.0,
    ):
        """Initialize the refresh pipeline.

        Args:
            config: Application configuration
            embedding_provider: Provider used to generate embeddings
            store: Store holding the skills
            request_delay: Seconds to wait between embedding requests
        """
        self.config = config
        self.embedding_provider = embedding_provider
        self.store = store
        self.request_delay = request_delay
        self.freshness_window = timedelta(days=config.search.freshness_days)

    async def refresh(
        self,
        skill_id: Optional[str] = None,
        force: bool = False,
        limit: int = 10,
    ) -> RefreshReport:
        """Regenerate embeddings.

        Args:
            skill_id: Refresh only this skill
            force: Regenerate even when the stored embedding is fresh
            limit: Maximum number of skills to process in a batch run

        Returns:
            Report of processed, failed and remaining skills

        Raises:
            StorageError: If skill_id does not exist
        """
        if skill_id is not None:
            return await self._refresh_one(skill_id, force)

        now = utcnow()
        query = self._selection_query(now, force)
        total = await self.store.count(query)
        skills = await self.store.fetch_candidates(query.model_copy(update={"limit": max(limit, 0)}))

        report = RefreshReport(total=total)
        for i, skill in enumerate(skills):
            if i and self.request_delay:
                await asyncio.sleep(self.request_delay)
            report.items.append(await self._regenerate(skill))

        report.processed = len(report.items)
        report.succeeded = sum(1 for item in report.items if item.success)
        report.failed = report.processed - report.succeeded
        report.remaining = max(total - report.processed, 0)

        logger.info(
            "embedding_refresh_completed",
            processed=report.processed,
            succeeded=report.succeeded,
            failed=report.failed,
            remaining=report.remaining,
        )
        return report

    async def _refresh_one(self, skill_id: str, force: bool) -> RefreshReport:
        skill = await self.store.get_skill(skill_id)
        if skill is None:
            raise StorageError(f"Skill '{skill_id}' not found", storage_type=type(self.store).__name__)

        if not force and not is_stale(skill, window=self.freshness_window):
            logger.info("embedding_up_to_date", skill_id=skill_id)
            item = RefreshItem(skill_id=skill.id, skill_name=skill.name, success=True, skipped=True)
            return RefreshReport(total=1, items=[item])

        item = await self._regenerate(skill)
        return RefreshReport(
            processed=1,
            succeeded=1 if item.success else 0,
            failed=0 if item.success else 1,
            total=1,
            items=[item],
        )

    async def _regenerate(self, skill: Skill) -> RefreshItem:
        """Embed one skill and store the vector; failures are reported, not raised."""
        try:
            vector = await self.embedding_provider.embed_text(skill_embedding_text(skill))
            await self.store.update_embedding(skill.id, vector, utcnow())
        except (ProviderError, StorageError) as e:
            logger.error("embedding_regeneration_failed", skill_id=skill.id, error=str(e))
            return RefreshItem(skill_id=skill.id, skill_name=skill.name, success=False, error=str(e))

        logger.debug("embedding_regenerated", skill_id=skill.id, dimension=len(vector))
        return RefreshItem(skill_id=skill.id, skill_name=skill.name, success=True)

    def _selection_query(self, now: datetime, force: bool) -> CandidateQuery:
        filters: list = [ActiveFilter()]
        if not force:
            filters.append(StaleEmbeddingFilter(before=now - self.freshness_window))
        return CandidateQuery(filters=filters)

    async def status(self) -> EmbeddingStatus:
        """Count active skills by embedding state."""
        cutoff = utcnow() - self.freshness_window
        active = ActiveFilter()

        total = await self.store.count(CandidateQuery(filters=[active]))
        with_embedding = await self.store.count(
            CandidateQuery(filters=[active, HasEmbeddingFilter(present=True)])
        )
        outdated = await self.store.count(
            CandidateQuery(filters=[active, EmbeddingUpdatedBeforeFilter(before=cutoff)])
        )

        return EmbeddingStatus(
            total=total,
            with_embedding=with_embedding,
            without_embedding=total - with_embedding,
            outdated=outdated,
        )
