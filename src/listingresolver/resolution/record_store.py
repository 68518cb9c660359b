"""Client for the durable record store (administrator-entered listings).

The store answers ``GET {base}/api/properties/{id}`` where ``id`` is either
the durable primary id (a UUID) or a native listing key, and replies
``{"success": true, "property": {...}}``. A 404 means "not stored here".
"""

import logging
import re
from typing import Any, Optional
from urllib.parse import quote

import httpx

from ..config import config
from ..errors import ListingError
from ..models.property import (
    PRICE_ON_REQUEST,
    ListingCategory,
    PropertyRecord,
    RecordSource,
)
from ..shards.raw import to_number

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_durable_id(value: str) -> bool:
    """True if value looks like a durable-store primary id."""
    return bool(UUID_PATTERN.match(value or ""))


def adapt_store_property(data: dict[str, Any]) -> PropertyRecord:
    """Convert a record store row into a PropertyRecord."""
    address = data.get("address")
    if isinstance(address, dict):
        street = address.get("streetAddress") or address.get("street") or ""
        city = data.get("city") or address.get("city") or ""
        region = data.get("state") or address.get("state") or ""
    else:
        street = address or ""
        city = data.get("city") or ""
        region = data.get("state") or ""

    status = str(data.get("status") or data.get("listing_type") or "For Sale").lower()
    category = (
        ListingCategory.LEASE
        if "rent" in status or "lease" in status
        else ListingCategory.SALE
    )

    images = data.get("images")
    image_url = images[0] if isinstance(images, list) and images else data.get("image_url")

    price = to_number(data.get("price"))

    return PropertyRecord(
        key=str(data.get("zpid") or data.get("id")),
        category=category,
        source=RecordSource.STORE,
        street=str(street),
        city=str(city),
        region=str(region),
        postal_code=str(data.get("zip") or data.get("zipcode") or ""),
        latitude=to_number(data.get("latitude"), signed=True),
        longitude=to_number(data.get("longitude"), signed=True),
        price=price if price else PRICE_ON_REQUEST,
        property_type=data.get("property_type") or "Residential",
        bedrooms=to_number(data.get("beds")),
        bathrooms=to_number(data.get("baths")),
        area_sqft=to_number(data.get("sqft") or data.get("living_area")),
        image_url=image_url if isinstance(image_url, str) else None,
        raw={"store_id": data.get("id"), "description": data.get("description")},
    )


class RecordStoreClient:
    """Request/response client for the durable record store.

    Example:
        store = RecordStoreClient("https://example.com")
        record = await store.get_by_native_key("123456")
    """

    name = "record-store"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        base = base_url if base_url is not None else config.record_store_url
        self.base_url = base.rstrip("/") if base else None
        self.timeout = timeout or config.request_timeout
        self._client = client
        self._owns_client = client is None

    def is_available(self) -> bool:
        """Check if a store URL is configured."""
        return bool(self.base_url)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
            self._owns_client = True
        return self._client

    async def _fetch(self, identifier: str) -> Optional[PropertyRecord]:
        """Fetch one record.

        Returns:
            PropertyRecord, or None if the store does not hold it

        Raises:
            ListingError: On transport errors or unexpected responses
        """
        if not self.is_available():
            raise ListingError(self.name, "No record store configured")

        client = await self._get_client()
        url = f"{self.base_url}/api/properties/{quote(identifier, safe='')}"
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            raise ListingError(self.name, f"Request failed: {e}") from e

        if response.status_code == 404:
            return None
        if not response.is_success:
            raise ListingError(self.name, f"HTTP error: {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise ListingError(self.name, f"Invalid JSON: {e}") from e

        data = body.get("property") if isinstance(body, dict) else None
        if not isinstance(data, dict) or not body.get("success", True):
            return None
        if not (data.get("zpid") or data.get("id")):
            return None
        return adapt_store_property(data)

    async def get_by_id(self, store_id: str) -> Optional[PropertyRecord]:
        """Fetch by durable primary id."""
        return await self._fetch(store_id)

    async def get_by_native_key(self, key: str) -> Optional[PropertyRecord]:
        """Fetch by native listing key."""
        return await self._fetch(key)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
