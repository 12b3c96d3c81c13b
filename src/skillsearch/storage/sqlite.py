"""SQLite skill store.

Provides persistent storage for skills, their categories and tags, and
their embeddings. Uses aiosqlite for async operations.

Case-insensitive text filters go through a registered ``py_lower`` SQL
function so that non-ASCII text folds exactly like ``str.lower`` in the
in-memory store (SQLite's built-in ``lower`` is ASCII-only).
"""

import json
import os
from datetime import datetime, timezone
from typing import Any, Optional

import aiosqlite

from skillsearch.entities import (
    ActiveFilter,
    CandidateOrder,
    CandidateQuery,
    CategoryFilter,
    EmbeddingUpdatedBeforeFilter,
    HasEmbeddingFilter,
    Label,
    MinPopularityFilter,
    Skill,
    StaleEmbeddingFilter,
    TagFilter,
    TextContainsFilter,
    TextPrefixFilter,
)
from skillsearch.storage.base import SkillStore, StorageConfig, StorageError

# Fixed-width UTC timestamps so that string comparison orders them correctly
_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def _format_ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_TS_FORMAT)


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _py_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


class SQLiteSkillStore(SkillStore):
    """SQLite skill store implementation."""

    def __init__(self, config: StorageConfig) -> None:
        """Initialize SQLite skill store."""
        super().__init__(config)

        conn_str = config.connection_string
        if conn_str is None:
            db_dir = os.path.expanduser("~/.skillsearch")
            os.makedirs(db_dir, exist_ok=True)
            self.db_path = os.path.join(db_dir, "skills.db")
        elif conn_str.startswith("sqlite:///"):
            self.db_path = os.path.expanduser(conn_str.replace("sqlite:///", ""))
        else:
            self.db_path = os.path.expanduser(conn_str)

        self.connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Open the database and create tables."""
        try:
            if self.db_path != ":memory:":
                parent = os.path.dirname(self.db_path)
                if parent:
                    os.makedirs(parent, exist_ok=True)

            self.connection = await aiosqlite.connect(self.db_path)
            self.connection.row_factory = aiosqlite.Row
            await self.connection.create_function("py_lower", 1, _py_lower, deterministic=True)
            await self.connection.execute("PRAGMA foreign_keys = ON")

            await self.connection.execute("""
                CREATE TABLE IF NOT EXISTS skills (
                    id TEXT PRIMARY KEY,
                    slug TEXT,
                    name TEXT NOT NULL,
                    name_localized TEXT,
                    description TEXT NOT NULL,
                    description_localized TEXT,
                    content TEXT,
                    stars INTEGER NOT NULL DEFAULT 0,
                    rating REAL NOT NULL DEFAULT 0,
                    embedding TEXT,
                    embedding_updated_at TEXT,
                    is_active INTEGER NOT NULL DEFAULT 1
                )
            """)

            await self.connection.execute("""
                CREATE TABLE IF NOT EXISTS skill_labels (
                    skill_id TEXT NOT NULL,
                    kind TEXT NOT NULL CHECK (kind IN ('category', 'tag')),
                    slug TEXT NOT NULL,
                    name TEXT NOT NULL,
                    name_localized TEXT,
                    position INTEGER NOT NULL,
                    PRIMARY KEY (skill_id, kind, slug),
                    FOREIGN KEY (skill_id) REFERENCES skills(id) ON DELETE CASCADE
                )
            """)

            await self.connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_skills_active_stars ON skills(is_active, stars)"
            )
            await self.connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_skill_labels_slug ON skill_labels(kind, slug)"
            )

            await self.connection.commit()

        except Exception as e:
            raise StorageError(
                f"Failed to initialize SQLite skill store: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    def _require_connection(self) -> aiosqlite.Connection:
        if not self.connection:
            raise StorageError("Database not initialized", storage_type="sqlite")
        return self.connection

    async def upsert_skill(self, skill: Skill) -> None:
        """Insert or replace a skill together with its labels."""
        conn = self._require_connection()

        try:
            await conn.execute(
                """
                INSERT INTO skills (
                    id, slug, name, name_localized, description, description_localized,
                    content, stars, rating, embedding, embedding_updated_at, is_active
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    slug = excluded.slug,
                    name = excluded.name,
                    name_localized = excluded.name_localized,
                    description = excluded.description,
                    description_localized = excluded.description_localized,
                    content = excluded.content,
                    stars = excluded.stars,
                    rating = excluded.rating,
                    embedding = excluded.embedding,
                    embedding_updated_at = excluded.embedding_updated_at,
                    is_active = excluded.is_active
                """,
                (
                    skill.id,
                    skill.slug,
                    skill.name,
                    skill.name_localized,
                    skill.description,
                    skill.description_localized,
                    skill.content,
                    skill.stars,
                    skill.rating,
                    json.dumps(skill.embedding) if skill.embedding else None,
                    _format_ts(skill.embedding_updated_at) if skill.embedding_updated_at else None,
                    1 if skill.is_active else 0,
                ),
            )

            await conn.execute("DELETE FROM skill_labels WHERE skill_id = ?", (skill.id,))
            label_rows = [
                (skill.id, kind, label.slug, label.name, label.name_localized, position)
                for kind, labels in (("category", skill.categories), ("tag", skill.tags))
                for position, label in enumerate(labels)
            ]
            if label_rows:
                await conn.executemany(
                    """
                    INSERT INTO skill_labels (skill_id, kind, slug, name, name_localized, position)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    label_rows,
                )

            await conn.commit()
        except Exception as e:
            await conn.rollback()
            raise StorageError(
                f"Failed to upsert skill: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    async def get_skill(self, skill_id: str) -> Optional[Skill]:
        """Retrieve a skill by ID."""
        conn = self._require_connection()

        try:
            cursor = await conn.execute("SELECT * FROM skills WHERE id = ?", (skill_id,))
            row = await cursor.fetchone()
            if not row:
                return None
            return (await self._rows_to_skills([row]))[0]
        except Exception as e:
            raise StorageError(
                f"Failed to get skill: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    async def fetch_candidates(self, query: CandidateQuery) -> list[Skill]:
        """Return matching skills, ordered and paginated in SQL."""
        conn = self._require_connection()
        where, params = self._build_where(query)

        if query.order_by == CandidateOrder.POPULARITY:
            order = "ORDER BY stars DESC, rating DESC, rowid"
        else:
            order = "ORDER BY rowid"

        sql = f"SELECT * FROM skills {where} {order} LIMIT ? OFFSET ?"
        params.extend([query.limit if query.limit is not None else -1, query.offset])

        try:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
            return await self._rows_to_skills(rows)
        except Exception as e:
            raise StorageError(
                f"Failed to fetch candidates: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    async def count(self, query: CandidateQuery) -> int:
        """Count matching skills."""
        conn = self._require_connection()
        where, params = self._build_where(query)

        try:
            cursor = await conn.execute(f"SELECT COUNT(*) FROM skills {where}", params)
            row = await cursor.fetchone()
            return row[0]
        except Exception as e:
            raise StorageError(
                f"Failed to count skills: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    async def update_embedding(
        self, skill_id: str, embedding: list[float], updated_at: datetime
    ) -> bool:
        """Store an embedding and its timestamp."""
        conn = self._require_connection()

        try:
            cursor = await conn.execute(
                "UPDATE skills SET embedding = ?, embedding_updated_at = ? WHERE id = ?",
                (json.dumps(embedding), _format_ts(updated_at), skill_id),
            )
            await conn.commit()
            return cursor.rowcount > 0
        except Exception as e:
            raise StorageError(
                f"Failed to update embedding: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    def _build_where(self, query: CandidateQuery) -> tuple[str, list[Any]]:
        """Translate the typed filters into a WHERE clause."""
        clauses: list[str] = []
        params: list[Any] = []

        for f in query.filters:
            if isinstance(f, ActiveFilter):
                clauses.append("is_active = ?")
                params.append(1 if f.is_active else 0)
            elif isinstance(f, (CategoryFilter, TagFilter)):
                kind = "category" if isinstance(f, CategoryFilter) else "tag"
                placeholders = ", ".join("?" for _ in f.slugs)
                clauses.append(
                    "EXISTS (SELECT 1 FROM skill_labels l WHERE l.skill_id = skills.id "
                    f"AND l.kind = ? AND l.slug IN ({placeholders}))"
                )
                params.append(kind)
                params.extend(f.slugs)
            elif isinstance(f, MinPopularityFilter):
                clauses.append("stars >= ?")
                params.append(f.min_stars)
            elif isinstance(f, TextContainsFilter):
                needle = f.text.lower()
                parts = [f"instr(py_lower({field.value}), ?) > 0" for field in f.fields]
                clauses.append("(" + " OR ".join(parts) + ")")
                params.extend(needle for _ in f.fields)
            elif isinstance(f, TextPrefixFilter):
                prefix = f.text.lower()
                parts = [f"instr(py_lower({field.value}), ?) = 1" for field in f.fields]
                clauses.append("(" + " OR ".join(parts) + ")")
                params.extend(prefix for _ in f.fields)
            elif isinstance(f, HasEmbeddingFilter):
                clauses.append("embedding IS NOT NULL" if f.present else "embedding IS NULL")
            elif isinstance(f, EmbeddingUpdatedBeforeFilter):
                clauses.append("(embedding_updated_at IS NOT NULL AND embedding_updated_at < ?)")
                params.append(_format_ts(f.before))
            elif isinstance(f, StaleEmbeddingFilter):
                clauses.append(
                    "(embedding IS NULL OR embedding_updated_at IS NULL OR embedding_updated_at < ?)"
                )
                params.append(_format_ts(f.before))
            else:
                raise StorageError(
                    f"Unsupported filter kind: {getattr(f, 'kind', type(f).__name__)}",
                    storage_type="sqlite",
                )

        where = "WHERE " + " AND ".join(clauses) if clauses else ""
        return where, params

    async def _rows_to_skills(self, rows: list[aiosqlite.Row]) -> list[Skill]:
        if not rows:
            return []

        ids = [row["id"] for row in rows]
        placeholders = ", ".join("?" for _ in ids)
        cursor = await self.connection.execute(
            f"SELECT * FROM skill_labels WHERE skill_id IN ({placeholders}) "
            "ORDER BY skill_id, kind, position",
            ids,
        )
        labels: dict[tuple[str, str], list[Label]] = {}
        for label_row in await cursor.fetchall():
            labels.setdefault((label_row["skill_id"], label_row["kind"]), []).append(
                Label(
                    slug=label_row["slug"],
                    name=label_row["name"],
                    name_localized=label_row["name_localized"],
                )
            )

        return [
            Skill(
                id=row["id"],
                slug=row["slug"],
                name=row["name"],
                name_localized=row["name_localized"],
                description=row["description"],
                description_localized=row["description_localized"],
                content=row["content"],
                stars=row["stars"],
                rating=row["rating"],
                embedding=json.loads(row["embedding"]) if row["embedding"] else None,
                embedding_updated_at=_parse_ts(row["embedding_updated_at"]),
                is_active=bool(row["is_active"]),
                categories=labels.get((row["id"], "category"), []),
                tags=labels.get((row["id"], "tag"), []),
            )
            for row in rows
        ]

    async def close(self) -> None:
        """Close database connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None
