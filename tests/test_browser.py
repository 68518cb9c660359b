"""Tests for the listing browser."""

import asyncio

import pytest

from listingresolver.browser import ListingBrowser, paginate
from listingresolver.models.property import ListingCategory, PropertyRecord
from listingresolver.resolution.codec import encode
from listingresolver.resolution.resolver import PropertyResolver
from listingresolver.session import SessionContext
from listingresolver.shards.loader import ShardLoader

from conftest import FakeHost

SALE = ListingCategory.SALE


def make_records(count: int, location_key: str = "miami") -> list[PropertyRecord]:
    return [
        PropertyRecord(
            key=f"{location_key}-{i}",
            category=SALE,
            location_key=location_key,
            city="City",
            region="ST",
        )
        for i in range(count)
    ]


class GatedLoader:
    """Loader whose loads finish only when the test opens their gate."""

    def __init__(self):
        self.gates: dict[str, asyncio.Event] = {}

    def gate(self, location_key: str) -> asyncio.Event:
        return self.gates.setdefault(location_key, asyncio.Event())

    async def load(self, category, location_key):
        await self.gate(location_key).wait()
        return make_records(2, location_key)


class TestPaginate:
    """Test page slicing and clamping."""

    def test_pages(self):
        records = make_records(45)

        page = paginate(records, 2)

        assert page.total_pages == 3
        assert [r.key for r in page.items] == [f"miami-{i}" for i in range(20, 40)]
        assert (page.start_item, page.end_item, page.offset) == (21, 40, 20)

    def test_clamps_page(self):
        records = make_records(45)

        assert paginate(records, 99).page == 3
        assert len(paginate(records, 99).items) == 5
        assert paginate(records, 0).page == 1

    def test_empty(self):
        page = paginate([], 3)

        assert page.page == 1
        assert page.total_pages == 1
        assert page.items == []
        assert (page.start_item, page.end_item) == (0, 0)

    def test_per_page(self):
        assert paginate(make_records(5), 1, per_page=2).total_pages == 3
        with pytest.raises(ValueError):
            paginate(make_records(5), 1, per_page=0)


class TestShow:
    """Test search results and error states."""

    def test_loads_location(self, session: SessionContext, loader: ShardLoader):
        browser = ListingBrowser(session, loader)

        state = asyncio.run(browser.show("Miami Beach, FL", SALE))

        assert state.ok
        assert state.location_key == "miami-beach"
        assert len(state.records) == 3
        assert browser.state is state

    def test_unknown_location(self, session: SessionContext, loader: ShardLoader):
        browser = ListingBrowser(session, loader)

        state = asyncio.run(browser.show("Atlantis", SALE))

        assert not state.ok
        assert 'No data for "Atlantis"' in state.error
        assert "Miami" in state.suggestions
        assert state.retryable is False

    def test_load_failure_is_retryable(self, session, shard_cache, randomizer):
        host = FakeHost(statuses={"/residential/sale/houston_sale.json": 502})
        loader = ShardLoader(
            session, cache=shard_cache, randomizer=randomizer,
            base_url="http://shards.test", client=host.client(),
        )
        browser = ListingBrowser(session, loader)

        async def scenario():
            first = await browser.show("Houston", SALE)
            host.statuses.clear()
            host.payloads["/residential/sale/houston_sale.json"] = [{"zpid": 1}]
            second = await browser.retry()
            return first, second

        first, second = asyncio.run(scenario())

        assert first.retryable
        assert first.records == []
        assert "502" in first.error
        assert second.ok
        assert [r.key for r in second.records] == ["1"]

    def test_empty_shard_is_not_an_error(self, session, shard_cache, randomizer):
        host = FakeHost({"/residential/lease/phoenix_rental.json": {"properties": []}})
        loader = ShardLoader(
            session, cache=shard_cache, randomizer=randomizer,
            base_url="http://shards.test", client=host.client(),
        )
        browser = ListingBrowser(session, loader)

        state = asyncio.run(browser.show("Phoenix, AZ", ListingCategory.LEASE))

        assert state.ok
        assert state.records == []


class TestLastRequestWins:
    """Test that late results never replace newer ones."""

    def test_late_first_result_discarded(self, session: SessionContext):
        loader = GatedLoader()
        browser = ListingBrowser(session, loader)

        async def scenario():
            first = asyncio.create_task(browser.show("Houston", SALE))
            await asyncio.sleep(0)
            second = asyncio.create_task(browser.show("Chicago", SALE))
            await asyncio.sleep(0)

            loader.gate("chicago").set()
            second_state = await second
            loader.gate("houston").set()
            first_state = await first
            return first_state, second_state

        first_state, second_state = asyncio.run(scenario())

        assert first_state is None
        assert second_state.location_key == "chicago"
        assert browser.state.location_key == "chicago"

    def test_early_first_result_still_superseded(self, session: SessionContext):
        loader = GatedLoader()
        browser = ListingBrowser(session, loader)

        async def scenario():
            first = asyncio.create_task(browser.show("Houston", SALE))
            await asyncio.sleep(0)
            second = asyncio.create_task(browser.show("Chicago", SALE))
            await asyncio.sleep(0)

            loader.gate("houston").set()
            first_state = await first
            loader.gate("chicago").set()
            await second
            return first_state

        first_state = asyncio.run(scenario())

        assert first_state is None
        assert browser.state.location_key == "chicago"
        assert browser.latest_request_id == 2


class TestSelect:
    """Test selection and hand-off to the detail view."""

    def test_select_stashes_record(self, session: SessionContext, loader: ShardLoader):
        browser = ListingBrowser(session, loader)

        state = asyncio.run(browser.show("miami", SALE))
        identifier = browser.select(4)

        assert identifier == encode(SALE, "miami", 4)
        assert session.recall(identifier) == state.records[4]

    def test_selected_record_resolves_from_stash(
        self, session: SessionContext, loader: ShardLoader, no_store, shard_host: FakeHost
    ):
        browser = ListingBrowser(session, loader)
        resolver = PropertyResolver(session, loader, no_store)

        async def scenario():
            state = await browser.show("miami", SALE)
            identifier = browser.select(6)
            return state, await resolver.resolve(identifier)

        state, record = asyncio.run(scenario())

        assert record == state.records[6]
        assert resolver.get_stats()["transient"]["hits"] == 1
        assert len(shard_host.requests) == 1

    def test_select_out_of_range(self, session: SessionContext, loader: ShardLoader):
        browser = ListingBrowser(session, loader)

        with pytest.raises(LookupError):
            browser.select(0)

        asyncio.run(browser.show("miami", SALE))
        with pytest.raises(LookupError):
            browser.select(10)
