"""Raw shard record shapes.

Shard payloads are heterogeneous: address may be a flat string or a nested
object, photos may be strings or ``{"href": ...}`` objects, coordinates may be
flat or nested. These models pin each variant down once at the ingestion
boundary so nothing past ``transform`` inspects raw shapes again.
"""

import re
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Values seen in a raw "state" field that describe the listing, not a region
LISTING_STATE_VALUES = {"sale", "lease", "for sale", "for rent", "for lease", "rent"}


class RawAddress(BaseModel):
    """Structured address (two naming schemes appear in shards)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    street: Optional[str] = None
    street_address: Optional[str] = Field(default=None, alias="streetAddress")
    locality: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, alias="postalCode")
    zipcode: Optional[str] = None


class RawPhoto(BaseModel):
    model_config = ConfigDict(extra="ignore")

    href: Optional[str] = None


class RawCoordinates(BaseModel):
    model_config = ConfigDict(extra="ignore")

    latitude: Any = None
    longitude: Any = None


class RawListing(BaseModel):
    """One element of a shard array, as published."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    # Identification
    zpid: Union[str, int, None] = None
    property_id: Union[str, int, None] = Field(default=None, alias="propertyId")
    id: Union[str, int, None] = None
    bit: Any = None

    # Address: tagged as str | RawAddress
    address: Union[RawAddress, str, None] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Union[str, int, None] = None
    zip: Union[str, int, None] = None

    # Pricing
    list_price: Any = Field(default=None, alias="listPrice")
    price: Any = None

    # Details
    beds: Any = None
    bedrooms: Any = None
    baths: Any = None
    bathrooms: Any = None
    sqft: Any = None
    square_footage: Any = Field(default=None, alias="squareFootage")
    living_area: Any = Field(default=None, alias="livingArea")
    property_type: Optional[str] = None
    property_type_alt: Optional[str] = Field(default=None, alias="propertyType")

    # Images: direct field, photos (str | RawPhoto), images array
    img_src: Optional[str] = Field(default=None, alias="imgSrc")
    image: Optional[str] = None
    photos: Optional[list[Union[RawPhoto, str, None]]] = None
    images: Optional[list[Any]] = None

    # Coordinates: flat or nested
    latitude: Any = None
    longitude: Any = None
    coordinates: Optional[RawCoordinates] = None

    def native_key(self) -> Optional[str]:
        for value in (self.zpid, self.property_id, self.id):
            if value is not None and str(value).strip():
                return str(value).strip()
        return None

    def image_url(self) -> Optional[str]:
        """Primary image: direct field, first photo (href or string), first image."""
        direct = self.img_src or self.image
        if direct:
            return direct
        if self.photos:
            first = self.photos[0]
            if isinstance(first, RawPhoto) and first.href:
                return first.href
            if isinstance(first, str) and first:
                return first
        if self.images:
            first_image = self.images[0]
            if isinstance(first_image, str) and first_image:
                return first_image
        return None

    def structured_address(self) -> RawAddress:
        if isinstance(self.address, RawAddress):
            return self.address
        return RawAddress(street=self.address or None)

    def coordinates_pair(self) -> tuple[Optional[float], Optional[float]]:
        lat, lng = to_number(self.latitude, signed=True), to_number(self.longitude, signed=True)
        if (lat is None or lng is None) and self.coordinates is not None:
            lat = lat if lat is not None else to_number(self.coordinates.latitude, signed=True)
            lng = lng if lng is not None else to_number(self.coordinates.longitude, signed=True)
        return lat, lng

    def unmodeled(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


def to_number(value: Any, signed: bool = False) -> Optional[float]:
    """Best-effort numeric coercion ("$1,200,000" -> 1200000.0).

    Returns None for missing, unparseable, or (unless signed) negative values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = re.sub(r"[^\d.\-]" if signed else r"[^\d.]", "", value)
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if number != number:  # NaN
        return None
    if not signed and number < 0:
        return None
    return number
