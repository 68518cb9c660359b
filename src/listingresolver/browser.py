"""List-view glue: location search, pagination and record selection.

ListingBrowser is what a UI drives. It turns free-text location input into a
loaded shard, keeps only the newest request's result when loads overlap, and
mints shareable identifiers for selected records.
"""

import logging
import math
from typing import Any, Optional

from pydantic import BaseModel, Field

from .errors import LocationNotFoundError, ShardLoadError
from .locations.resolver import require_location
from .models.property import ListingCategory, PropertyRecord
from .resolution.codec import encode
from .session import SessionContext
from .shards.loader import ShardLoader

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 20


class Page(BaseModel):
    """One page of an ordered record list."""

    items: list[PropertyRecord] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=DEFAULT_PER_PAGE, ge=1)
    total_pages: int = Field(default=1, ge=1)
    total_count: int = Field(default=0, ge=0)

    @property
    def start_item(self) -> int:
        """1-based position of the first item on the page (0 if empty)."""
        if not self.total_count:
            return 0
        return (self.page - 1) * self.per_page + 1

    @property
    def end_item(self) -> int:
        return min(self.page * self.per_page, self.total_count)

    @property
    def offset(self) -> int:
        """Ordinal of the first item within the full list."""
        return (self.page - 1) * self.per_page


def paginate(
    records: list[PropertyRecord],
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
) -> Page:
    """Slice records into a page, clamping page into the valid range."""
    if per_page < 1:
        raise ValueError(f"per_page must be positive, got {per_page}")

    total_pages = max(1, math.ceil(len(records) / per_page))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * per_page
    return Page(
        items=records[start : start + per_page],
        page=page,
        per_page=per_page,
        total_pages=total_pages,
        total_count=len(records),
    )


class BrowseState(BaseModel):
    """Outcome of one location search.

    Exactly one of ``records`` (possibly empty) or ``error`` is meaningful:
    an empty shard is a valid result, a failed load is not.
    """

    request_id: int
    query: str
    category: ListingCategory
    location_key: Optional[str] = None
    records: list[PropertyRecord] = Field(default_factory=list)
    error: Optional[str] = None
    suggestions: list[str] = Field(default_factory=list)
    retryable: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class ListingBrowser:
    """Drives list views with last-request-wins semantics.

    Every call to show() takes a new request id. When it completes after a
    newer call has started, its result is discarded and never becomes the
    current state.

    Example:
        browser = ListingBrowser(session, loader)
        state = await browser.show("Miami Beach, FL", ListingCategory.SALE)
        page = browser.page(1)
        identifier = browser.select(page.offset)
    """

    def __init__(self, session: SessionContext, loader: ShardLoader):
        self.session = session
        self.loader = loader
        self.state: Optional[BrowseState] = None
        self._request_id = 0

    @property
    def latest_request_id(self) -> int:
        return self._request_id

    async def show(
        self,
        location_text: str,
        category: ListingCategory = ListingCategory.SALE,
    ) -> Optional[BrowseState]:
        """Search one location and make the result the current state.

        Returns:
            The new BrowseState, or None if a newer request superseded this one
        """
        self._request_id += 1
        request_id = self._request_id
        state_args: dict[str, Any] = {
            "request_id": request_id,
            "query": location_text,
            "category": category,
        }

        try:
            location_key = require_location(location_text)
            state_args["location_key"] = location_key
            records = await self.loader.load(category, location_key)
            state = BrowseState(records=records, **state_args)
        except LocationNotFoundError as e:
            state = BrowseState(error=e.message, suggestions=e.suggestions, **state_args)
        except ShardLoadError as e:
            logger.warning(f"Load failed for {location_text!r}: {e}")
            state = BrowseState(error=str(e), retryable=True, **state_args)

        if request_id != self._request_id:
            logger.debug(
                f"Discarding stale result for request {request_id} "
                f"(latest is {self._request_id})"
            )
            return None

        self.state = state
        return state

    async def retry(self) -> Optional[BrowseState]:
        """Re-run the current search (the retry affordance after a failed load)."""
        if self.state is None:
            return None
        return await self.show(self.state.query, self.state.category)

    def page(self, page: int = 1, per_page: int = DEFAULT_PER_PAGE) -> Page:
        if self.state is None:
            return paginate([], page, per_page)
        return paginate(self.state.records, page, per_page)

    def select(self, ordinal: int) -> str:
        """Mint an identifier for the record at ordinal and stash the record.

        Args:
            ordinal: Position in the full current list (not within a page)

        Raises:
            LookupError: If there is no current list or ordinal is out of range
        """
        if self.state is None or self.state.location_key is None:
            raise LookupError("No listing loaded")
        if not 0 <= ordinal < len(self.state.records):
            raise LookupError(f"No record at position {ordinal}")

        record = self.state.records[ordinal]
        identifier = encode(self.state.category, self.state.location_key, ordinal)
        self.session.stash(identifier, record)
        return identifier
