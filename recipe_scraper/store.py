"""Recipe store.

The pipeline only needs four operations from persistence (``RecipeStore``).
``SQLiteRecipeStore`` implements them on a single SQLite file; blocking calls
run in a worker thread so they do not stall the event loop.
"""

import asyncio
import json
import logging
import re
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, TypeVar

from recipe_scraper.adapters.base import ExtractedRecord
from recipe_scraper.catalog import ID_PREFIX, SOURCE, recipe_id_for_slug, to_app_recipe
from recipe_scraper.errors import PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECENT_DAYS = 7

SCHEMA = """
CREATE TABLE IF NOT EXISTS recipes (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    normalized_name TEXT NOT NULL,
    source TEXT,
    source_url TEXT,
    data TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_recipes_source ON recipes(source);
"""


class RecipeStore(Protocol):
    async def exists(self, slug: str) -> bool: ...

    async def save(self, record: ExtractedRecord) -> Optional[str]: ...

    async def cleanup_duplicates(self) -> int: ...

    async def stats(self) -> Dict[str, Any]: ...


def normalize_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", (name or "").lower())


def empty_stats() -> Dict[str, Any]:
    return {"total_recipes": 0, "tasty_recipes": 0, "recently_scraped": 0, "tasty_percentage": 0.0}


class SQLiteRecipeStore:
    """SQLite-backed store.

    Thread safety: one connection opened with check_same_thread=False; every
    statement runs under ``_lock``, so worker threads never interleave.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(SCHEMA)
        return self._conn

    async def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        def call() -> T:
            with self._lock:
                return fn(self._connection())
        return await asyncio.to_thread(call)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    async def exists(self, slug: str) -> bool:
        doc_id = recipe_id_for_slug(slug)
        try:
            return await self._run(
                lambda conn: conn.execute("SELECT 1 FROM recipes WHERE id = ?", (doc_id,)).fetchone() is not None
            )
        except sqlite3.Error as e:
            raise PersistenceError(f"Existence check failed for {slug}: {e}") from e

    async def save(self, record: ExtractedRecord) -> Optional[str]:
        """Insert the record; returns its id (also when it was already stored) or None on failure."""
        app_recipe = to_app_recipe(record)
        doc_id = app_recipe["id"]

        def insert(conn: sqlite3.Connection) -> bool:
            if conn.execute("SELECT 1 FROM recipes WHERE id = ?", (doc_id,)).fetchone():
                return False
            now = datetime.now(timezone.utc).isoformat()
            with conn:
                conn.execute(
                    "INSERT INTO recipes (id, name, normalized_name, source, source_url, data, created_at, updated_at)"
                    " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        doc_id,
                        app_recipe["name"],
                        normalize_name(app_recipe["name"]),
                        app_recipe["source"],
                        app_recipe["sourceUrl"],
                        json.dumps(app_recipe, ensure_ascii=False),
                        now,
                        now,
                    ),
                )
            return True

        logger.debug(f"Saving recipe: {record.title}")
        try:
            inserted = await self._run(insert)
        except sqlite3.Error as e:
            logger.error(f"Failed to save recipe {record.title}: {e}")
            return None

        if inserted:
            logger.info(f"Recipe saved successfully: {record.title} (ID: {doc_id})")
        else:
            logger.info(f"Recipe already exists, skipping: {record.title}")
        return doc_id

    async def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        row = await self._run(
            lambda conn: conn.execute("SELECT data FROM recipes WHERE id = ?", (doc_id,)).fetchone()
        )
        return json.loads(row["data"]) if row else None

    async def cleanup_duplicates(self) -> int:
        """Delete recipes whose normalized name was already seen (oldest row wins)."""
        def cleanup(conn: sqlite3.Connection) -> int:
            rows = conn.execute(
                "SELECT id, normalized_name FROM recipes WHERE source = ? ORDER BY created_at, id",
                (SOURCE,),
            ).fetchall()
            seen = set()
            duplicates = []
            for row in rows:
                if row["normalized_name"] in seen:
                    duplicates.append((row["id"],))
                else:
                    seen.add(row["normalized_name"])
            if duplicates:
                with conn:
                    conn.executemany("DELETE FROM recipes WHERE id = ?", duplicates)
            return len(duplicates)

        logger.info("Checking for duplicate recipes...")
        try:
            removed = await self._run(cleanup)
        except sqlite3.Error as e:
            logger.error(f"Error cleaning up duplicates: {e}")
            return 0
        if removed:
            logger.info(f"Removed {removed} duplicate recipes")
        return removed

    async def stats(self) -> Dict[str, Any]:
        since = (datetime.now(timezone.utc) - timedelta(days=RECENT_DAYS)).isoformat()

        def collect(conn: sqlite3.Connection) -> Dict[str, Any]:
            total = conn.execute("SELECT COUNT(*) FROM recipes").fetchone()[0]
            tasty = conn.execute(
                "SELECT COUNT(*) FROM recipes WHERE id LIKE ?", (f"{ID_PREFIX}%",)
            ).fetchone()[0]
            recent = conn.execute(
                "SELECT COUNT(*) FROM recipes WHERE id LIKE ? AND created_at >= ?",
                (f"{ID_PREFIX}%", since),
            ).fetchone()[0]
            return {
                "total_recipes": total,
                "tasty_recipes": tasty,
                "recently_scraped": recent,
                "tasty_percentage": round(tasty / total * 100, 1) if total else 0.0,
            }

        try:
            return await self._run(collect)
        except sqlite3.Error as e:
            logger.error(f"Error getting scraping stats: {e}")
            return empty_stats()
