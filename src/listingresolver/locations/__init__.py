"""Location catalog and free-text location resolution."""

from .catalog import (
    LOCATION_CATALOG,
    LocationEntry,
    all_shards,
    get_location,
    shard_reference,
    supported_locations,
)
from .resolver import normalize_location, require_location, resolve_location

__all__ = [
    "LOCATION_CATALOG",
    "LocationEntry",
    "all_shards",
    "get_location",
    "shard_reference",
    "supported_locations",
    "normalize_location",
    "require_location",
    "resolve_location",
]
