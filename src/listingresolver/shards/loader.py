"""Dataset shard loader.

Loads one (category, location) shard: local cache first, then the network.
A cache hit is returned exactly as stored, so identifiers minted from one
listing keep pointing at the same records for every later reader of the
cache. A network load is transformed, ordered by the session randomizer and
written back to the cache only after both steps succeed.
"""

import logging
from collections.abc import Iterable
from typing import Any, Optional

import httpx

from ..config import config
from ..errors import CacheUnavailableError, ShardLoadError
from ..locations.catalog import shard_reference
from ..models.property import (
    ListingCategory,
    PropertyRecord,
    ShardCacheEntry,
    make_cache_key,
)
from ..session import SessionContext
from ..storage.cache import ShardCache
from .randomizer import OrderRandomizer
from .transform import extract_records, transform_shard

logger = logging.getLogger(__name__)


class ShardLoader:
    """Cache-first loader for pre-partitioned listing shards.

    Failures are raised once as ShardLoadError and never retried here; the
    caller owns the retry affordance. An empty shard is a valid result.

    Example:
        async with ShardLoader(SessionContext(), cache=ShardCache()) as loader:
            records = await loader.load(ListingCategory.SALE, "miami-beach")
    """

    def __init__(
        self,
        session: SessionContext,
        cache: Optional[ShardCache] = None,
        randomizer: Optional[OrderRandomizer] = None,
        base_url: Optional[str] = None,
        domain: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the loader.

        Args:
            session: Visit-scoped state (shuffle markers)
            cache: Shard cache; None runs network-only
            randomizer: Ordering policy (defaults to Settings.always_randomize)
            base_url: Root URL for shard references (default Settings.shard_base_url)
            domain: Cache key domain tag (default Settings.domain_tag)
            timeout: Request timeout in seconds
            client: Pre-built httpx client (tests inject a MockTransport here)
        """
        self.session = session
        self.cache = cache
        self.randomizer = randomizer or OrderRandomizer(config.always_randomize)
        self.base_url = (base_url or config.shard_base_url).rstrip("/")
        self.domain = domain or config.domain_tag
        self.timeout = timeout or config.request_timeout
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Accept": "application/json"},
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def fetch_shard(self, reference: str) -> Any:
        """Fetch and JSON-decode one shard resource.

        Raises:
            ShardLoadError: On transport error, non-success status or bad JSON
        """
        client = await self._get_client()
        url = f"{self.base_url}/{reference.lstrip('/')}"
        logger.info(f"Fetching shard: {url}")

        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            raise ShardLoadError(reference, f"Request failed: {e}") from e

        if not response.is_success:
            raise ShardLoadError(
                reference,
                f"HTTP error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ShardLoadError(reference, f"Invalid JSON: {e}") from e

    async def _read_cache(self, key: str) -> Optional[ShardCacheEntry]:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(key)
        except CacheUnavailableError as e:
            logger.warning(f"Shard cache unavailable, loading from network: {e}")
            return None

    async def _write_cache(self, entry: ShardCacheEntry) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.put(entry)
        except CacheUnavailableError as e:
            logger.warning(f"Shard cache unavailable, result not cached: {e}")

    async def load(
        self,
        category: ListingCategory,
        location_key: str,
    ) -> list[PropertyRecord]:
        """Load the ordered records for one shard.

        Args:
            category: sale or lease
            location_key: Canonical catalog key (see locations.resolve_location)

        Returns:
            Ordered PropertyRecord list (possibly empty)

        Raises:
            ShardLoadError: If the shard is unknown or cannot be fetched
        """
        key = make_cache_key(self.domain, location_key, category)

        cached = await self._read_cache(key)
        if cached is not None and cached.records:
            logger.debug(f"Serving {key} from cache")
            return list(cached.records)

        reference = shard_reference(category, location_key)
        if reference is None:
            raise ShardLoadError(
                f"{category.value}/{location_key}", "No shard published for this location"
            )

        payload = await self.fetch_shard(reference)
        try:
            items = extract_records(payload)
        except ValueError as e:
            raise ShardLoadError(reference, str(e)) from e

        records = transform_shard(items, category, location_key)
        records, marker = self.randomizer.shuffle(
            records, self.session, location_key, category
        )

        await self._write_cache(
            ShardCacheEntry(
                domain=self.domain,
                location_key=location_key,
                category=category,
                records=records,
                shuffle_marker=marker,
            )
        )
        logger.info(f"Loaded {len(records)} records from {reference}")
        return list(records)

    async def load_all(
        self,
        location_key: str,
        categories: Optional[Iterable[ListingCategory]] = None,
    ) -> list[PropertyRecord]:
        """Load several categories for one location as a single list.

        Shards that fail to load are skipped. Records appearing in more than
        one shard are kept once, first occurrence wins.

        Args:
            location_key: Canonical catalog key
            categories: Categories to combine (default: every category)

        Raises:
            ShardLoadError: If every requested shard failed
        """
        categories = list(categories or ListingCategory)
        combined: list[PropertyRecord] = []
        seen: set[str] = set()
        errors: list[ShardLoadError] = []

        for category in categories:
            try:
                records = await self.load(category, location_key)
            except ShardLoadError as e:
                logger.warning(f"Skipping {location_key}/{category.value}: {e}")
                errors.append(e)
                continue

            for record in records:
                if record.key in seen:
                    continue
                seen.add(record.key)
                combined.append(record)

        if errors and len(errors) == len(categories):
            raise errors[-1]

        logger.info(f"Combined {len(combined)} records for {location_key}")
        return combined

    async def close(self) -> None:
        """Close the HTTP client if this loader created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ShardLoader":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
