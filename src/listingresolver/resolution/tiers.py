"""Resolution tiers for the property resolver.

Each tier answers "materialize the record this identifier points at" from one
kind of source, cheapest first:

    0. TransientTier      - the record stashed by the list view in this session
    1. HintedReloadTier   - reload the hinted shard and index by ordinal
    2. ExhaustiveScanTier - scan every known shard for the native key
    3. RecordStoreTier    - ask the durable record store

Tiers return None for "not here" and may raise ListingError for failures;
the resolver treats both as "try the next tier".
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..errors import ShardLoadError
from ..locations.catalog import all_shards
from ..models.property import PropertyRecord
from ..session import SessionContext
from ..shards.loader import ShardLoader
from .codec import PropertyHint
from .record_store import RecordStoreClient, is_durable_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionRequest:
    """Everything known about an identifier before any tier runs.

    Attributes:
        identifier: The id as received (URL path segment)
        hint: Decoded codec hint, None if the id is not codec-shaped
        location_key: Catalog key recovered from the hint's location
        native_key: Native listing key, if one is recoverable
    """

    identifier: str
    hint: Optional[PropertyHint] = None
    location_key: Optional[str] = None
    native_key: Optional[str] = None

    @property
    def is_durable(self) -> bool:
        return is_durable_id(self.identifier)


class ResolutionTier(ABC):
    """Abstract base class for resolution tiers.

    Attributes:
        name: Identifier used in logs and statistics
        priority: Lower values are tried first
    """

    name: str
    priority: int

    @abstractmethod
    async def resolve(self, request: ResolutionRequest) -> Optional[PropertyRecord]:
        """Return the record, or None if this tier cannot find it."""

    def is_available(self) -> bool:
        return True


class TransientTier(ResolutionTier):
    """Exact, free lookup in the session's transient store."""

    name = "transient"
    priority = 0

    def __init__(self, session: SessionContext):
        self.session = session

    async def resolve(self, request: ResolutionRequest) -> Optional[PropertyRecord]:
        return self.session.recall(request.identifier)


class HintedReloadTier(ResolutionTier):
    """Reload the hinted shard and take the record at the hinted ordinal.

    Best effort: a reshuffled or resized shard may hold a different record at
    that position. When a native key is known, a record with another key at
    the ordinal counts as a miss.
    """

    name = "hinted"
    priority = 1

    def __init__(self, loader: ShardLoader):
        self.loader = loader

    async def resolve(self, request: ResolutionRequest) -> Optional[PropertyRecord]:
        hint = request.hint
        if hint is None or request.location_key is None:
            return None

        records = await self.loader.load(hint.category, request.location_key)
        if hint.ordinal >= len(records):
            logger.debug(
                f"Ordinal {hint.ordinal} out of range for "
                f"{request.location_key}/{hint.category.value} ({len(records)} records)"
            )
            return None

        record = records[hint.ordinal]
        if request.native_key and record.key != request.native_key:
            logger.debug(f"Ordinal {hint.ordinal} now holds {record.key}, not {request.native_key}")
            return None
        return record


class ExhaustiveScanTier(ResolutionTier):
    """Scan every known shard for the record.

    Only a native key identifies a record across shards; without one the
    tier misses. Shards for the hinted location are scanned first.
    Unloadable shards are skipped.
    """

    name = "scan"
    priority = 2

    def __init__(self, loader: ShardLoader):
        self.loader = loader

    async def resolve(self, request: ResolutionRequest) -> Optional[PropertyRecord]:
        native_key = request.native_key
        if native_key is None:
            return None

        for category, location_key in all_shards(prioritize=request.location_key):
            try:
                records = await self.loader.load(category, location_key)
            except ShardLoadError as e:
                logger.debug(f"Scan skipping shard: {e}")
                continue

            for record in records:
                if record.key == native_key:
                    return record

        return None


class RecordStoreTier(ResolutionTier):
    """Look the record up in the durable record store."""

    name = "store"
    priority = 3

    def __init__(self, client: RecordStoreClient):
        self.client = client

    def is_available(self) -> bool:
        return self.client.is_available()

    async def resolve(self, request: ResolutionRequest) -> Optional[PropertyRecord]:
        if request.is_durable:
            return await self.client.get_by_id(request.identifier)
        if request.native_key:
            return await self.client.get_by_native_key(request.native_key)
        return None
