"""Property resolution orchestrator.

PropertyResolver turns an opaque identifier (as found in a detail-page URL)
back into a PropertyRecord. It tries its tiers in priority order and stops at
the first one that produces a record. Tier failures are logged and treated as
"try the next tier"; only exhausting every tier yields "not found".
"""

import logging
from collections import Counter
from typing import Any, Optional

from ..errors import ListingError, RecordNotFoundError
from ..locations.resolver import resolve_location
from ..models.property import PropertyRecord
from ..session import SessionContext
from ..shards.loader import ShardLoader
from .codec import decode
from .record_store import RecordStoreClient, is_durable_id
from .tiers import (
    ExhaustiveScanTier,
    HintedReloadTier,
    RecordStoreTier,
    ResolutionRequest,
    ResolutionTier,
    TransientTier,
)

logger = logging.getLogger(__name__)


class PropertyResolver:
    """Resolves identifiers through transient, hinted, scan and store tiers.

    When the record is known to live in the durable store (the identifier is
    a store id, or a native key is available) the store tier is consulted
    before the exhaustive scan, since the store is authoritative for those
    records and the scan is the most expensive tier.

    Example:
        resolver = PropertyResolver(session, loader, RecordStoreClient())
        record = await resolver.resolve("sale_miami_42")
        if record is None:
            ...  # render "not found"
    """

    def __init__(
        self,
        session: SessionContext,
        loader: ShardLoader,
        record_store: Optional[RecordStoreClient] = None,
        tiers: Optional[list[ResolutionTier]] = None,
    ):
        """Initialize the resolver.

        Args:
            session: Session whose transient store backs the first tier
            loader: Shard loader used by the hinted and scan tiers
            record_store: Durable store client (default from Settings)
            tiers: Explicit tier list, replacing the default four
        """
        self.session = session
        self.loader = loader
        self.record_store = record_store or RecordStoreClient()
        if tiers is None:
            tiers = [
                TransientTier(session),
                HintedReloadTier(loader),
                ExhaustiveScanTier(loader),
                RecordStoreTier(self.record_store),
            ]
        self._tiers = sorted(tiers, key=lambda t: t.priority)
        self._attempts: Counter[str] = Counter()
        self._hits: Counter[str] = Counter()

    def build_request(
        self,
        identifier: str,
        native_key: Optional[str] = None,
    ) -> ResolutionRequest:
        """Decode what the identifier tells us before any tier runs.

        An identifier that is neither codec-shaped nor a store id is taken to
        be a native listing key.
        """
        hint = decode(identifier)
        location_key = None
        if hint is not None:
            location_key = resolve_location(hint.location) or hint.location
        elif native_key is None and not is_durable_id(identifier):
            native_key = identifier

        return ResolutionRequest(
            identifier=identifier,
            hint=hint,
            location_key=location_key,
            native_key=native_key,
        )

    def _tier_order(self, request: ResolutionRequest) -> list[ResolutionTier]:
        tiers = [t for t in self._tiers if t.is_available()]
        if not (request.is_durable or request.native_key):
            return tiers

        store = [t for t in tiers if isinstance(t, RecordStoreTier)]
        rest = [t for t in tiers if not isinstance(t, RecordStoreTier)]
        scan_at = next(
            (i for i, t in enumerate(rest) if isinstance(t, ExhaustiveScanTier)),
            len(rest),
        )
        return rest[:scan_at] + store + rest[scan_at:]

    async def resolve(
        self,
        identifier: str,
        native_key: Optional[str] = None,
    ) -> Optional[PropertyRecord]:
        """Resolve an identifier to a record.

        Args:
            identifier: Codec id, store id or native listing key
            native_key: Native key carried alongside the id, if known

        Returns:
            PropertyRecord, or None if no tier could produce it
        """
        if not identifier:
            return None

        request = self.build_request(identifier, native_key)

        for tier in self._tier_order(request):
            self._attempts[tier.name] += 1
            try:
                record = await tier.resolve(request)
            except ListingError as e:
                logger.warning(f"Tier {tier.name} failed for {identifier}: {e}")
                continue
            except Exception as e:
                logger.error(f"Unexpected error in tier {tier.name} for {identifier}: {e}")
                continue

            if record is None:
                logger.debug(f"Tier {tier.name} missed {identifier}")
                continue

            self._hits[tier.name] += 1
            logger.info(f"Resolved {identifier} via {tier.name} tier ({record.key})")
            if not isinstance(tier, TransientTier):
                self.session.stash(identifier, record)
            return record

        logger.info(f"Could not resolve {identifier}")
        return None

    async def require(
        self,
        identifier: str,
        native_key: Optional[str] = None,
    ) -> PropertyRecord:
        """Like resolve(), but raise RecordNotFoundError instead of returning None."""
        record = await self.resolve(identifier, native_key)
        if record is None:
            raise RecordNotFoundError(identifier)
        return record

    def get_stats(self) -> dict[str, dict[str, Any]]:
        """Per-tier attempt and hit counts."""
        stats = {}
        for tier in self._tiers:
            attempts = self._attempts[tier.name]
            hits = self._hits[tier.name]
            stats[tier.name] = {
                "attempts": attempts,
                "hits": hits,
                "hit_rate": round(hits / attempts, 3) if attempts else 0.0,
            }
        return stats

    async def close(self) -> None:
        """Close the loader and record store clients."""
        for closeable in (self.loader, self.record_store):
            try:
                await closeable.close()
            except Exception as e:
                logger.debug(f"Error closing {type(closeable).__name__}: {e}")

    async def __aenter__(self) -> "PropertyResolver":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
