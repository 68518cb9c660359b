"""Property, cache and favorite data models."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, Field, computed_field

PRICE_ON_REQUEST = "on_request"


class ListingCategory(str, Enum):
    """Which shard family a listing belongs to."""

    SALE = "sale"
    LEASE = "lease"

    @classmethod
    def parse(cls, value: str) -> "ListingCategory":
        """Parse loose category input ("rent", "ForLease", "Sale", ...)."""
        lowered = value.strip().lower()
        if "lease" in lowered or "rent" in lowered:
            return cls.LEASE
        if "sale" in lowered or "buy" in lowered:
            return cls.SALE
        raise ValueError(f"Unknown listing category: {value!r}")


class RecordSource(str, Enum):
    """Subsystem that produced a record."""

    SHARD = "shard"
    STORE = "store"


class PropertyRecord(BaseModel):
    """Canonical property listing.

    Every record handed to callers has city, region and category filled in,
    even when the raw shard omitted them. Records are frozen: a reload replaces
    them wholesale instead of mutating.
    """

    # Identification
    key: str = Field(..., description="Native id, or a positional fallback")
    category: ListingCategory = Field(..., description="sale or lease")
    source: RecordSource = Field(default=RecordSource.SHARD)
    location_key: str | None = Field(
        default=None, description="Catalog key of the shard the record came from"
    )
    bit: int | None = Field(
        default=None, ge=0, description="Global bit number stamped on the raw record"
    )

    # Location
    street: str = Field(default="", description="Street address")
    city: str = Field(..., description="City name")
    region: str = Field(..., description="State / region")
    postal_code: str = Field(default="")
    latitude: float | None = Field(default=None)
    longitude: float | None = Field(default=None)

    # Pricing
    price: Union[float, Literal["on_request"]] = Field(
        default=PRICE_ON_REQUEST, description="Asking price or rent, or on-request sentinel"
    )

    # Details
    property_type: str = Field(default="Residential")
    bedrooms: float | None = Field(default=None, ge=0)
    bathrooms: float | None = Field(default=None, ge=0)
    area_sqft: float | None = Field(default=None, ge=0)
    image_url: str | None = Field(default=None, description="Primary photo")

    # Unmodeled fields
    raw: dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @computed_field  # type: ignore[prop-decorator]
    @property
    def price_display(self) -> str:
        """Formatted price, e.g. "$1,250,000" or "Price on request"."""
        if self.price == PRICE_ON_REQUEST:
            return "Price on request"
        return f"${self.price:,.0f}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def address_display(self) -> str:
        parts = [self.street, self.city]
        tail = " ".join(p for p in (self.region, self.postal_code) if p)
        if tail:
            parts.append(tail)
        return ", ".join(p for p in parts if p)


class ShardCacheEntry(BaseModel):
    """Cached, already transformed and ordered shard."""

    domain: str
    location_key: str
    category: ListingCategory
    records: list[PropertyRecord] = Field(default_factory=list)
    fetched_at: datetime = Field(default_factory=datetime.now)
    shuffle_marker: float | None = Field(
        default=None, description="Session marker of the shuffle that produced this order"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cache_key(self) -> str:
        return make_cache_key(self.domain, self.location_key, self.category)


class FavoriteEntry(BaseModel):
    """A user-chosen property, denormalized at the time it was favorited."""

    id: str = Field(..., description="Synthetic local id")
    property_key: str = Field(..., description="Native id or derived fallback")
    address: str = Field(default="")
    price: str = Field(default="Price on request")
    image_url: str | None = None
    category: ListingCategory
    city: str = Field(default="")
    region: str = Field(default="")
    source: RecordSource = Field(default=RecordSource.SHARD)
    raw: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)


def make_cache_key(domain: str, location_key: str, category: ListingCategory | str) -> str:
    """Composite shard cache key, e.g. "residential_miami-beach_sale"."""
    category_value = category.value if isinstance(category, ListingCategory) else category
    return f"{domain}_{location_key}_{category_value}".lower().replace(" ", "_")
