"""Tests for the SQLite shard cache."""

import asyncio
import sqlite3
from datetime import datetime, timedelta

import pytest

from listingresolver.errors import CacheUnavailableError
from listingresolver.models.property import ListingCategory, PropertyRecord, ShardCacheEntry
from listingresolver.storage.cache import ShardCache


def make_entry(location_key: str, category=ListingCategory.SALE, count: int = 3, **kwargs):
    records = [
        PropertyRecord(
            key=f"{location_key}-{i}",
            category=category,
            location_key=location_key,
            city="City",
            region="ST",
            price=100000 + i,
        )
        for i in range(count)
    ]
    return ShardCacheEntry(
        domain="residential",
        location_key=location_key,
        category=category,
        records=records,
        **kwargs,
    )


class TestGetPut:
    """Test storing and reading shards."""

    def test_miss(self, shard_cache: ShardCache):
        assert asyncio.run(shard_cache.get("residential_miami_sale")) is None

    def test_round_trip_keeps_order(self, shard_cache: ShardCache):
        entry = make_entry("miami", count=5, shuffle_marker=1234.5)

        async def scenario():
            await shard_cache.put(entry)
            return await shard_cache.get(entry.cache_key)

        cached = asyncio.run(scenario())

        assert cached is not None
        assert [r.key for r in cached.records] == [r.key for r in entry.records]
        assert cached.records == entry.records
        assert cached.shuffle_marker == 1234.5
        assert cached.category == ListingCategory.SALE

    def test_put_replaces(self, shard_cache: ShardCache):
        async def scenario():
            await shard_cache.put(make_entry("miami", count=5))
            await shard_cache.put(make_entry("miami", count=2))
            return await shard_cache.get("residential_miami_sale")

        cached = asyncio.run(scenario())
        assert len(cached.records) == 2

    def test_categories_are_separate(self, shard_cache: ShardCache):
        async def scenario():
            await shard_cache.put(make_entry("miami", ListingCategory.LEASE))
            return await shard_cache.get("residential_miami_sale")

        assert asyncio.run(scenario()) is None

    def test_no_expiry_by_default(self, shard_cache: ShardCache):
        entry = make_entry("miami", fetched_at=datetime.now() - timedelta(days=365))

        async def scenario():
            await shard_cache.put(entry)
            return await shard_cache.get(entry.cache_key)

        assert asyncio.run(scenario()) is not None

    def test_ttl_expiry(self, tmp_path):
        cache = ShardCache(cache_dir=tmp_path, ttl_hours=1)
        entry = make_entry("miami", fetched_at=datetime.now() - timedelta(hours=2))

        async def scenario():
            await cache.put(entry)
            return await cache.get(entry.cache_key), await cache.get_stats()

        cached, stats = asyncio.run(scenario())
        assert cached is None
        assert stats["total_entries"] == 0


class TestDefensiveReads:
    """Test handling of entries this version cannot read."""

    def _corrupt(self, cache: ShardCache, sql: str) -> None:
        with sqlite3.connect(cache.db_path) as conn:
            conn.execute(sql)
            conn.commit()

    def test_schema_version_mismatch_is_miss(self, shard_cache: ShardCache):
        entry = make_entry("miami")
        asyncio.run(shard_cache.put(entry))
        self._corrupt(shard_cache, "UPDATE shards SET schema_version = 0")

        async def scenario():
            return await shard_cache.get(entry.cache_key), await shard_cache.get_stats()

        cached, stats = asyncio.run(scenario())
        assert cached is None
        assert stats["total_entries"] == 0

    def test_unreadable_records_are_miss(self, shard_cache: ShardCache):
        entry = make_entry("miami")
        asyncio.run(shard_cache.put(entry))
        self._corrupt(shard_cache, "UPDATE shards SET records = 'not json'")

        assert asyncio.run(shard_cache.get(entry.cache_key)) is None

    def test_invalid_records_are_miss(self, shard_cache: ShardCache):
        entry = make_entry("miami")
        asyncio.run(shard_cache.put(entry))
        self._corrupt(shard_cache, """UPDATE shards SET records = '[{"key": "x"}]'""")

        assert asyncio.run(shard_cache.get(entry.cache_key)) is None

    def test_unparseable_timestamp_is_miss(self, shard_cache: ShardCache):
        entry = make_entry("miami")
        asyncio.run(shard_cache.put(entry))
        self._corrupt(shard_cache, "UPDATE shards SET fetched_at = 'garbage'")

        async def scenario():
            return await shard_cache.get(entry.cache_key), await shard_cache.get_stats()

        cached, stats = asyncio.run(scenario())
        assert cached is None
        assert stats["total_entries"] == 0


class TestMaintenance:
    """Test delete, clear and statistics."""

    def test_delete(self, shard_cache: ShardCache):
        entry = make_entry("miami")

        async def scenario():
            await shard_cache.put(entry)
            first = await shard_cache.delete(entry.cache_key)
            second = await shard_cache.delete(entry.cache_key)
            return first, second, await shard_cache.get(entry.cache_key)

        assert asyncio.run(scenario()) == (True, False, None)

    def test_clear_by_location(self, shard_cache: ShardCache):
        async def scenario():
            await shard_cache.put(make_entry("miami"))
            await shard_cache.put(make_entry("miami", ListingCategory.LEASE))
            await shard_cache.put(make_entry("houston"))
            removed = await shard_cache.clear("miami")
            return removed, await shard_cache.get_stats()

        removed, stats = asyncio.run(scenario())
        assert removed == 2
        assert stats["by_location"] == {"houston": 1}

    def test_clear_all(self, shard_cache: ShardCache):
        async def scenario():
            await shard_cache.put(make_entry("miami"))
            await shard_cache.put(make_entry("houston"))
            return await shard_cache.clear()

        assert asyncio.run(scenario()) == 2

    def test_stats(self, shard_cache: ShardCache):
        async def scenario():
            await shard_cache.put(make_entry("miami", count=4))
            await shard_cache.put(make_entry("houston", count=6))
            return await shard_cache.get_stats()

        stats = asyncio.run(scenario())
        assert stats["total_entries"] == 2
        assert stats["total_records"] == 10
        assert stats["by_location"] == {"miami": 1, "houston": 1}
        assert stats["oldest_entry"] <= stats["newest_entry"]
        assert stats["storage_bytes"] > 0


class TestUnavailable:
    """Test failures to open the database."""

    def test_unusable_directory(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        cache = ShardCache(cache_dir=blocker)

        with pytest.raises(CacheUnavailableError):
            asyncio.run(cache.get("residential_miami_sale"))
