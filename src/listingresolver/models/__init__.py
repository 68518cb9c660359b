"""Data models for listingresolver."""

from listingresolver.models.property import (
    PRICE_ON_REQUEST,
    FavoriteEntry,
    ListingCategory,
    PropertyRecord,
    RecordSource,
    ShardCacheEntry,
    make_cache_key,
)

__all__ = [
    "PRICE_ON_REQUEST",
    "ListingCategory",
    "RecordSource",
    "PropertyRecord",
    "ShardCacheEntry",
    "FavoriteEntry",
    "make_cache_key",
]
