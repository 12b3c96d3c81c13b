"""Embedding freshness policy.

Stale embeddings are still used for search; staleness only decides which
skills the refresh pipeline regenerates.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from skillsearch.entities import Skill

DEFAULT_FRESHNESS_WINDOW = timedelta(days=7)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def embedding_age(skill: Skill, now: Optional[datetime] = None) -> Optional[timedelta]:
    """Age of the stored embedding, or None when it was never generated."""
    if skill.embedding_updated_at is None:
        return None
    return _as_utc(now or utcnow()) - _as_utc(skill.embedding_updated_at)


def is_stale(
    skill: Skill,
    now: Optional[datetime] = None,
    window: timedelta = DEFAULT_FRESHNESS_WINDOW,
) -> bool:
    """Whether a skill's embedding should be regenerated.

    True when the embedding or its timestamp is missing, or when it is older
    than ``window``.
    """
    if not skill.embedding:
        return True
    age = embedding_age(skill, now)
    if age is None:
        return True
    return age > window
