"""Shard loading, transformation and ordering.

Main Components:
    - ShardLoader: cache-first loader for (category, location) shards
    - OrderRandomizer: session-gated Fisher-Yates ordering
    - transform_shard: raw shard elements -> PropertyRecord

Example usage:
    from listingresolver.shards import ShardLoader

    loader = ShardLoader(session, cache=ShardCache())
    records = await loader.load(ListingCategory.LEASE, "chicago")
"""

from .loader import ShardLoader
from .randomizer import OrderRandomizer, shuffle_key
from .transform import extract_records, to_record, transform_shard

__all__ = [
    "ShardLoader",
    "OrderRandomizer",
    "shuffle_key",
    "extract_records",
    "to_record",
    "transform_shard",
]
