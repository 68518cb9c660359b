"""Favorites / comparison list persistence.

Independent of the shard cache: clearing shards never touches favorites.
The store holds at most one entry per property key (UNIQUE constraint), so
adding twice is a no-op and removing a missing key is a no-op.
"""

import asyncio
import functools
import json
import logging
import sqlite3
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from ..config import config
from ..errors import CacheUnavailableError
from ..models.property import FavoriteEntry, ListingCategory, PropertyRecord, RecordSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


def favorite_from_record(record: PropertyRecord) -> FavoriteEntry:
    """Denormalize a record into a favorite entry."""
    return FavoriteEntry(
        id=f"fav-{int(time.time() * 1000)}-{record.key}",
        property_key=record.key,
        address=record.address_display,
        price=record.price_display,
        image_url=record.image_url,
        category=record.category,
        city=record.city,
        region=record.region,
        source=record.source,
        raw=record.model_dump(mode="json"),
    )


class FavoritesStore:
    """Asynchronous SQLite store of favorited properties.

    Example:
        store = FavoritesStore()
        await store.add(record)
        await store.has(record.key)  # True
        await store.toggle(record)   # False, removed again
    """

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        db_name: Optional[str] = None,
    ):
        self.cache_dir = Path(cache_dir) if cache_dir else config.cache_dir
        self.db_path = self.cache_dir / (db_name or config.favorites_db_name)
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        if not self._initialized:
            self._init_db()
        return sqlite3.connect(self.db_path)

    def _init_db(self) -> None:
        """Initialize the database schema."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS favorites (
                    id TEXT PRIMARY KEY,
                    property_key TEXT NOT NULL UNIQUE,
                    category TEXT NOT NULL,
                    source TEXT NOT NULL,
                    data JSON NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_created ON favorites(created_at)"
            )
            conn.commit()
        self._initialized = True

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(func, *args))
        except (sqlite3.Error, OSError) as e:
            raise CacheUnavailableError("favorites", f"{self.db_path}: {e}") from e

    # Sync implementations

    def _add_sync(self, entry: FavoriteEntry) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO favorites
                (id, property_key, category, source, data, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    entry.property_key,
                    entry.category.value,
                    entry.source.value,
                    entry.model_dump_json(),
                    entry.created_at.isoformat(),
                ),
            )
            conn.commit()
            return cursor.rowcount > 0

    def _remove_sync(self, property_key: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM favorites WHERE property_key = ?", (property_key,)
            )
            conn.commit()
            return cursor.rowcount > 0

    def _get_sync(self, property_key: str) -> Optional[FavoriteEntry]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data FROM favorites WHERE property_key = ?", (property_key,)
            ).fetchone()
        return FavoriteEntry.model_validate_json(row[0]) if row else None

    def _list_sync(self) -> list[FavoriteEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT data FROM favorites ORDER BY created_at DESC"
            ).fetchall()
        return [FavoriteEntry.model_validate_json(row[0]) for row in rows]

    def _clear_sync(self) -> int:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM favorites")
            conn.commit()
            return cursor.rowcount

    # Public async API

    async def add(self, record: PropertyRecord) -> FavoriteEntry:
        """Favorite a record. Adding an already favorited key is a no-op.

        Returns:
            The stored entry (the existing one if already favorited)
        """
        entry = favorite_from_record(record)
        if await self._run(self._add_sync, entry):
            logger.info(f"Added favorite {record.key}")
            return entry
        existing = await self.get(record.key)
        return existing or entry

    async def remove(self, property_key: str) -> bool:
        """Remove a favorite. Returns False (not an error) if it was absent."""
        removed = await self._run(self._remove_sync, property_key)
        if removed:
            logger.info(f"Removed favorite {property_key}")
        return removed

    async def has(self, property_key: str) -> bool:
        return await self.get(property_key) is not None

    async def get(self, property_key: str) -> Optional[FavoriteEntry]:
        return await self._run(self._get_sync, property_key)

    async def list(self) -> list[FavoriteEntry]:
        """All favorites, newest first."""
        return await self._run(self._list_sync)

    async def toggle(self, record: PropertyRecord) -> bool:
        """Flip favorite state for a record.

        Returns:
            True if the record is now favorited, False if it was removed
        """
        if await self.remove(record.key):
            return False
        await self.add(record)
        return True

    async def clear(self) -> int:
        return await self._run(self._clear_sync)
