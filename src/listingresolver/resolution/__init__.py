"""Identifier codec and multi-tier property resolution."""

from .codec import PropertyHint, decode, encode, is_identifier
from .record_store import RecordStoreClient, adapt_store_property, is_durable_id
from .resolver import PropertyResolver
from .tiers import (
    ExhaustiveScanTier,
    HintedReloadTier,
    RecordStoreTier,
    ResolutionRequest,
    ResolutionTier,
    TransientTier,
)

__all__ = [
    "PropertyHint",
    "encode",
    "decode",
    "is_identifier",
    "RecordStoreClient",
    "adapt_store_property",
    "is_durable_id",
    "PropertyResolver",
    "ResolutionRequest",
    "ResolutionTier",
    "TransientTier",
    "HintedReloadTier",
    "ExhaustiveScanTier",
    "RecordStoreTier",
]
