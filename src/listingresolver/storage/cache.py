"""SQLite-based shard cache for transformed, ordered shards.

This module provides a persistent cache for ShardCacheEntry objects keyed by
(domain, location key, category), enabling:
- Repeat list views without any network call
- Stable ordering across loads within a session
- Offline browsing of previously loaded shards

Entries never expire unless a TTL is configured; they are replaced wholesale
on reload and evicted by explicit clearing. Entries written under a different
schema version, or that no longer deserialize, are treated as misses and
dropped.
"""

import asyncio
import functools
import json
import logging
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from pydantic import ValidationError

from ..config import config
from ..errors import CacheUnavailableError
from ..models.property import ListingCategory, PropertyRecord, ShardCacheEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA_VERSION = 1


class ShardCache:
    """Asynchronous SQLite cache for shards.

    All sqlite work runs in the default executor with a fresh connection per
    operation, so the event loop never blocks. Each write is a single
    INSERT OR REPLACE transaction: last write wins per key.

    Example:
        cache = ShardCache()

        await cache.put(entry)
        cached = await cache.get("residential_miami_sale")

        stats = await cache.get_stats()

    Raises:
        CacheUnavailableError: From any operation when the database cannot
            be opened, read or written. Callers decide whether to degrade.
    """

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        db_name: Optional[str] = None,
        ttl_hours: Optional[int] = None,
    ):
        """Initialize the shard cache.

        Args:
            cache_dir: Directory for the cache database.
                      Defaults to Settings.cache_dir
            db_name: Name of the SQLite database file
            ttl_hours: Optional expiry in hours (default: no expiry)
        """
        self.cache_dir = Path(cache_dir) if cache_dir else config.cache_dir
        self.db_path = self.cache_dir / (db_name or config.cache_db_name)
        self.ttl_hours = ttl_hours if ttl_hours is not None else config.cache_ttl_hours
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
                CREATE TABLE IF NOT EXISTS shards (
                    key TEXT PRIMARY KEY,
                    domain TEXT NOT NULL,
                    location_key TEXT NOT NULL,
                    category TEXT NOT NULL,
                    schema_version INTEGER NOT NULL,
                    records JSON NOT NULL,
                    record_count INTEGER NOT NULL,
                    fetched_at TIMESTAMP NOT NULL,
                    shuffle_marker REAL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_location ON shards(location_key)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_fetched ON shards(fetched_at)"
            )
            conn.commit()
        self._initialized = True

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking sqlite operation in the default executor."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(func, *args))
        except (sqlite3.Error, OSError) as e:
            raise CacheUnavailableError("shard-cache", f"{self.db_path}: {e}") from e

    def _serialize_records(self, records: list[PropertyRecord]) -> str:
        return json.dumps([record.model_dump(mode="json") for record in records])

    def _deserialize_records(self, data: str) -> list[PropertyRecord]:
        return [PropertyRecord.model_validate(item) for item in json.loads(data)]

    def _is_expired(self, fetched_at: datetime) -> bool:
        if self.ttl_hours is None:
            return False
        return datetime.now() - fetched_at > timedelta(hours=self.ttl_hours)

    # Sync implementations

    def _get_sync(self, key: str) -> Optional[ShardCacheEntry]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT domain, location_key, category, schema_version,
                       records, fetched_at, shuffle_marker
                FROM shards WHERE key = ?
                """,
                (key,),
            ).fetchone()

        if row is None:
            return None

        domain, location_key, category, version, records, fetched_at, marker = row
        if version != SCHEMA_VERSION:
            logger.info(f"Dropping cache entry {key} with schema version {version}")
            self._delete_sync(key)
            return None

        try:
            fetched = datetime.fromisoformat(fetched_at)
            if self._is_expired(fetched):
                logger.debug(f"Cache entry expired: {key}")
                self._delete_sync(key)
                return None

            return ShardCacheEntry(
                domain=domain,
                location_key=location_key,
                category=ListingCategory(category),
                records=self._deserialize_records(records),
                fetched_at=fetched,
                shuffle_marker=marker,
            )
        except (json.JSONDecodeError, ValidationError, ValueError, TypeError) as e:
            logger.warning(f"Dropping unreadable cache entry {key}: {e}")
            self._delete_sync(key)
            return None

    def _put_sync(self, entry: ShardCacheEntry) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO shards
                (key, domain, location_key, category, schema_version,
                 records, record_count, fetched_at, shuffle_marker)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.cache_key,
                    entry.domain,
                    entry.location_key,
                    entry.category.value,
                    SCHEMA_VERSION,
                    self._serialize_records(entry.records),
                    len(entry.records),
                    entry.fetched_at.isoformat(),
                    entry.shuffle_marker,
                ),
            )
            conn.commit()

    def _delete_sync(self, key: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM shards WHERE key = ?", (key,))
            conn.commit()
            return cursor.rowcount > 0

    def _clear_sync(self, location_key: Optional[str]) -> int:
        with self._connect() as conn:
            if location_key:
                cursor = conn.execute(
                    "DELETE FROM shards WHERE location_key = ?",
                    (location_key,),
                )
            else:
                cursor = conn.execute("DELETE FROM shards")
            conn.commit()
            return cursor.rowcount

    def _stats_sync(self) -> dict:
        with self._connect() as conn:
            total = conn.execute("SELECT COUNT(*) FROM shards").fetchone()[0]
            records = conn.execute(
                "SELECT COALESCE(SUM(record_count), 0) FROM shards"
            ).fetchone()[0]
            by_location = dict(
                conn.execute(
                    "SELECT location_key, COUNT(*) FROM shards GROUP BY location_key"
                ).fetchall()
            )
            dates = conn.execute(
                "SELECT MIN(fetched_at), MAX(fetched_at) FROM shards"
            ).fetchone()

        size_bytes = self.db_path.stat().st_size if self.db_path.exists() else 0

        return {
            "total_entries": total,
            "total_records": records,
            "by_location": by_location,
            "oldest_entry": dates[0],
            "newest_entry": dates[1],
            "storage_bytes": size_bytes,
            "storage_mb": round(size_bytes / (1024 * 1024), 2),
        }

    # Public async API

    async def get(self, key: str) -> Optional[ShardCacheEntry]:
        """Get a cached shard by composite key.

        Args:
            key: Composite key from make_cache_key()

        Returns:
            ShardCacheEntry if present, readable and not expired, None otherwise
        """
        entry = await self._run(self._get_sync, key)
        if entry is not None:
            logger.debug(f"Cache hit: {key} ({len(entry.records)} records)")
        else:
            logger.debug(f"Cache miss: {key}")
        return entry

    async def put(self, entry: ShardCacheEntry) -> None:
        """Store (or replace) a transformed shard."""
        await self._run(self._put_sync, entry)
        logger.debug(f"Cached {len(entry.records)} records under {entry.cache_key}")

    async def delete(self, key: str) -> bool:
        """Evict one entry. Returns True if something was deleted."""
        return await self._run(self._delete_sync, key)

    async def clear(self, location_key: Optional[str] = None) -> int:
        """Clear all or location-specific entries.

        Args:
            location_key: If specified, only clear this location's shards

        Returns:
            Number of entries deleted
        """
        deleted = await self._run(self._clear_sync, location_key)
        logger.info(f"Cleared {deleted} cached shards")
        return deleted

    async def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dict with entry and record counts, per-location counts,
            date range, and storage size
        """
        return await self._run(self._stats_sync)
