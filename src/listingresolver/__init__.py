"""Listing data resolution and caching.

Main Components:
    - resolve_location: free-text location -> catalog key
    - ShardLoader: cache-first loading of (category, location) shards
    - PropertyResolver: identifier -> PropertyRecord via four tiers
    - FavoritesStore: persistent favorites list
    - ListingBrowser: list view glue with last-request-wins loading
"""

from .browser import BrowseState, ListingBrowser, Page, paginate
from .errors import (
    CacheUnavailableError,
    ListingError,
    LocationNotFoundError,
    RecordNotFoundError,
    ShardLoadError,
)
from .locations import resolve_location, supported_locations
from .models import FavoriteEntry, ListingCategory, PropertyRecord, ShardCacheEntry
from .resolution import PropertyResolver, RecordStoreClient, decode, encode
from .session import SessionContext
from .shards import OrderRandomizer, ShardLoader
from .storage import FavoritesStore, ShardCache

__version__ = "0.1.0"

__all__ = [
    "BrowseState",
    "ListingBrowser",
    "Page",
    "paginate",
    "ListingError",
    "LocationNotFoundError",
    "ShardLoadError",
    "RecordNotFoundError",
    "CacheUnavailableError",
    "resolve_location",
    "supported_locations",
    "ListingCategory",
    "PropertyRecord",
    "ShardCacheEntry",
    "FavoriteEntry",
    "PropertyResolver",
    "RecordStoreClient",
    "encode",
    "decode",
    "SessionContext",
    "OrderRandomizer",
    "ShardLoader",
    "FavoritesStore",
    "ShardCache",
]
