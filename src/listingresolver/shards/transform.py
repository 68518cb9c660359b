"""Shard payload parsing and raw record -> PropertyRecord transformation."""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from ..locations.catalog import get_location
from ..models.property import (
    PRICE_ON_REQUEST,
    ListingCategory,
    PropertyRecord,
    RecordSource,
)
from .raw import LISTING_STATE_VALUES, RawListing, to_number

logger = logging.getLogger(__name__)

# Object fields that conventionally wrap the record array
WRAPPER_FIELDS = ("properties", "listings", "results", "data")


def extract_records(payload: Any) -> list[Any]:
    """Return the record array from a shard payload.

    Accepts a bare array or an object wrapping one under a conventional field.

    Raises:
        ValueError: If no array can be found
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for field_name in WRAPPER_FIELDS:
            value = payload.get(field_name)
            if isinstance(value, list):
                return value
    raise ValueError(f"Expected an array of records, got {type(payload).__name__}")


def _first(*values: Any) -> str:
    for value in values:
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _price(raw: RawListing) -> Any:
    for candidate in (raw.list_price, raw.price):
        number = to_number(candidate)
        if number:
            return number
    return PRICE_ON_REQUEST


def _region(raw: RawListing, address_region: Optional[str]) -> Optional[str]:
    if address_region:
        return address_region
    # Some shards use "state" for the listing state (Sale/Lease), not the region
    if raw.state and raw.state.strip().lower() not in LISTING_STATE_VALUES:
        return raw.state
    return None


def to_record(
    item: dict[str, Any],
    category: ListingCategory,
    location_key: str,
    index: int,
) -> PropertyRecord:
    """Transform one raw shard element into a PropertyRecord.

    Category always comes from the request since shards are single-category.
    City and region are backfilled from the catalog entry when missing.

    Raises:
        ValidationError: If the element does not fit any known raw shape
    """
    raw = RawListing.model_validate(item)
    address = raw.structured_address()
    location = get_location(location_key)

    lat, lng = raw.coordinates_pair()
    bit = to_number(raw.bit)

    return PropertyRecord(
        key=raw.native_key() or f"{category.value}-{location_key}-{index}",
        category=category,
        source=RecordSource.SHARD,
        location_key=location_key,
        bit=int(bit) if bit is not None else None,
        street=_first(address.street, address.street_address),
        city=_first(address.locality, address.city, raw.city, location.name if location else location_key),
        region=_first(
            _region(raw, _first(address.region, address.state) or None),
            location.region if location else None,
            "",
        ),
        postal_code=_first(address.postal_code, address.zipcode, raw.zipcode, raw.zip),
        latitude=lat,
        longitude=lng,
        price=_price(raw),
        property_type=_first(raw.property_type, raw.property_type_alt, "Residential"),
        bedrooms=to_number(raw.beds if raw.beds is not None else raw.bedrooms),
        bathrooms=to_number(raw.baths if raw.baths is not None else raw.bathrooms),
        area_sqft=to_number(_first(raw.sqft, raw.square_footage, raw.living_area) or None),
        image_url=raw.image_url(),
        raw=raw.unmodeled(),
    )


def transform_shard(
    items: list[Any],
    category: ListingCategory,
    location_key: str,
) -> list[PropertyRecord]:
    """Transform every element of a shard, skipping elements that are not records."""
    records = []
    skipped = 0
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            skipped += 1
            continue
        try:
            records.append(to_record(item, category, location_key, index))
        except ValidationError as e:
            skipped += 1
            logger.warning(f"Skipping malformed record {index} in {location_key}/{category.value}: {e}")

    if skipped:
        logger.info(f"Skipped {skipped} of {len(items)} records in {location_key}/{category.value}")
    return records
