"""Storage modules for client-side persistence.

This package provides the shard cache (transformed, ordered shards keyed by
domain/location/category) and the independent favorites store.
"""

from .cache import ShardCache
from .favorites import FavoritesStore, favorite_from_record

__all__ = ["ShardCache", "FavoritesStore", "favorite_from_record"]
