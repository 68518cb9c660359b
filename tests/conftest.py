"""Pytest fixtures and test utilities."""

import random
from typing import Any, Optional

import httpx
import pytest

from listingresolver.models.property import ListingCategory, PropertyRecord
from listingresolver.resolution.record_store import RecordStoreClient
from listingresolver.session import SessionContext
from listingresolver.shards.loader import ShardLoader
from listingresolver.shards.randomizer import OrderRandomizer
from listingresolver.storage.cache import ShardCache
from listingresolver.storage.favorites import FavoritesStore

SHARD_BASE_URL = "http://shards.test"
STORE_BASE_URL = "http://store.test"

MIAMI_SALE_PATH = "/residential/sale/miami_sale.json"
MIAMI_LEASE_PATH = "/residential/lease/miami_rental.json"
BEACH_SALE_PATH = "/residential/sale/miami_beach_sale.json"


class FakeHost:
    """MockTransport handler serving JSON bodies by path and counting requests."""

    def __init__(
        self,
        payloads: Optional[dict[str, Any]] = None,
        statuses: Optional[dict[str, int]] = None,
    ):
        self.payloads = dict(payloads or {})
        self.statuses = dict(statuses or {})
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)
        if path in self.statuses:
            return httpx.Response(self.statuses[path], text="error")
        if path in self.payloads:
            return httpx.Response(200, json=self.payloads[path])
        return httpx.Response(404, json={"success": False, "error": "Not found"})

    def count(self, path: str) -> int:
        return self.requests.count(path)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def miami_sale_payload() -> list[dict]:
    """Ten sale listings with zpids 1001-1010 and global bits 40-49."""
    return [
        {
            "zpid": str(1001 + i),
            "bit": 40 + i,
            "address": {
                "streetAddress": f"{100 + i} Ocean Dr",
                "city": "Miami",
                "state": "FL",
                "zipcode": "33139",
            },
            "price": 500000 + i * 10000,
            "beds": 2,
            "baths": 2,
            "imgSrc": f"https://img.test/sale/{i}.jpg",
        }
        for i in range(10)
    ]


@pytest.fixture
def miami_lease_payload() -> dict:
    """Five rentals wrapped in an object, flat address strings, no bits."""
    return {
        "properties": [
            {
                "id": 2001 + i,
                "address": f"{i + 1} Brickell Ave",
                "price": "$2,500",
                "bedrooms": 1,
                "photos": [{"href": f"https://img.test/lease/{i}.jpg"}],
            }
            for i in range(5)
        ]
    }


@pytest.fixture
def beach_sale_payload() -> list[dict]:
    """Three Miami Beach listings without city or region fields."""
    return [
        {"propertyId": f"MB-{i}", "address": f"{i} Collins Ave", "listPrice": 900000}
        for i in range(3)
    ]


@pytest.fixture
def shard_host(miami_sale_payload, miami_lease_payload, beach_sale_payload) -> FakeHost:
    """Shard host publishing the Miami and Miami Beach fixtures."""
    return FakeHost(
        {
            MIAMI_SALE_PATH: miami_sale_payload,
            MIAMI_LEASE_PATH: miami_lease_payload,
            BEACH_SALE_PATH: beach_sale_payload,
        }
    )


@pytest.fixture
def session() -> SessionContext:
    """Fresh session."""
    return SessionContext("test-session")


@pytest.fixture
def randomizer() -> OrderRandomizer:
    """Seeded randomizer with no always-randomize locations."""
    return OrderRandomizer(rng=random.Random(42))


@pytest.fixture
def shard_cache(tmp_path) -> ShardCache:
    """Shard cache in a temporary directory."""
    return ShardCache(cache_dir=tmp_path, db_name="shards.db")


@pytest.fixture
def favorites(tmp_path) -> FavoritesStore:
    """Favorites store in a temporary directory."""
    return FavoritesStore(cache_dir=tmp_path, db_name="favorites.db")


@pytest.fixture
def loader(session, shard_cache, randomizer, shard_host) -> ShardLoader:
    """Loader wired to the fake shard host and a temporary cache."""
    return ShardLoader(
        session,
        cache=shard_cache,
        randomizer=randomizer,
        base_url=SHARD_BASE_URL,
        domain="residential",
        client=shard_host.client(),
    )


@pytest.fixture
def no_store() -> RecordStoreClient:
    """Record store client with no URL configured."""
    return RecordStoreClient(base_url="")


@pytest.fixture
def sample_record() -> PropertyRecord:
    """Sample sale record."""
    return PropertyRecord(
        key="1001",
        category=ListingCategory.SALE,
        location_key="miami",
        street="100 Ocean Dr",
        city="Miami",
        region="FL",
        postal_code="33139",
        price=1250000,
        bedrooms=3,
        bathrooms=2,
        image_url="https://img.test/1001.jpg",
    )


@pytest.fixture
def lease_record() -> PropertyRecord:
    """Sample lease record without a price."""
    return PropertyRecord(
        key="2001",
        category=ListingCategory.LEASE,
        location_key="miami",
        street="1 Brickell Ave",
        city="Miami",
        region="FL",
    )
