"""Static location catalog and shard reference table.

Each supported location maps to exactly one shard per listing category.
Shard references are relative to ``Settings.shard_base_url``.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..models.property import ListingCategory


@dataclass(frozen=True)
class LocationEntry:
    key: str
    name: str
    region: str
    aliases: tuple[str, ...] = field(default_factory=tuple)


LOCATION_CATALOG: dict[str, LocationEntry] = {
    entry.key: entry
    for entry in (
        LocationEntry("miami", "Miami", "FL"),
        LocationEntry("miami-beach", "Miami Beach", "FL"),
        LocationEntry("new-york", "New York", "NY", ("nyc", "new york city", "manhattan")),
        LocationEntry("los-angeles", "Los Angeles", "CA", ("la", "l.a.")),
        LocationEntry("las-vegas", "Las Vegas", "NV", ("vegas",)),
        LocationEntry("chicago", "Chicago", "IL"),
        LocationEntry("houston", "Houston", "TX"),
        LocationEntry("philadelphia", "Philadelphia", "PA", ("philly",)),
        LocationEntry("phoenix", "Phoenix", "AZ"),
        LocationEntry("san-antonio", "San Antonio", "TX"),
    )
}

# (category, location key) -> shard file name
SHARD_FILES: dict[tuple[ListingCategory, str], str] = {
    (ListingCategory.SALE, "miami"): "miami_sale.json",
    (ListingCategory.LEASE, "miami"): "miami_rental.json",
    (ListingCategory.SALE, "miami-beach"): "miami_beach_sale.json",
    (ListingCategory.LEASE, "miami-beach"): "miami_beach_rental.json",
    (ListingCategory.SALE, "new-york"): "new_york_sale.json",
    (ListingCategory.LEASE, "new-york"): "newyork_rental.json",
    (ListingCategory.SALE, "los-angeles"): "losangeles_sale.json",
    (ListingCategory.LEASE, "los-angeles"): "losangeles_rental.json",
    (ListingCategory.SALE, "las-vegas"): "las_vegas_sale.json",
    (ListingCategory.LEASE, "las-vegas"): "lasvegas_rental.json",
    (ListingCategory.SALE, "chicago"): "chicago_sale.json",
    (ListingCategory.LEASE, "chicago"): "chicago_rental.json",
    (ListingCategory.SALE, "houston"): "houston_sale.json",
    (ListingCategory.LEASE, "houston"): "houston_rental.json",
    (ListingCategory.SALE, "philadelphia"): "philadelphia_sale.json",
    (ListingCategory.LEASE, "philadelphia"): "philadelphia_rental.json",
    (ListingCategory.SALE, "phoenix"): "phoenix_sale.json",
    (ListingCategory.LEASE, "phoenix"): "phoenix_rental.json",
    (ListingCategory.SALE, "san-antonio"): "san-antonio_sale.json",
    (ListingCategory.LEASE, "san-antonio"): "san_antonio_rental.json",
}


def get_location(key: str) -> Optional[LocationEntry]:
    """Get a catalog entry by its canonical key."""
    return LOCATION_CATALOG.get(key)


def supported_locations() -> list[str]:
    """Display names of every supported location, catalog order."""
    return [entry.name for entry in LOCATION_CATALOG.values()]


def shard_reference(category: ListingCategory, location_key: str) -> Optional[str]:
    """Physical shard reference for a (category, location) pair.

    Returns:
        Relative path such as "residential/sale/miami_sale.json", or None
        if no shard is published for the pair.
    """
    filename = SHARD_FILES.get((category, location_key))
    if filename is None:
        return None
    return f"residential/{category.value}/{filename}"


def all_shards(
    prioritize: Optional[str] = None,
) -> list[tuple[ListingCategory, str]]:
    """Every known (category, location key) pair.

    Args:
        prioritize: Location key whose shards (both categories) come first

    Returns:
        Pairs in scan order
    """
    pairs = list(SHARD_FILES)
    if prioritize:
        pairs.sort(key=lambda pair: pair[1] != prioritize)
    return pairs
