"""Session-scoped ordering of freshly loaded shards.

A shard is shuffled when its location is on the always-randomize list or
when the session has not shuffled that key yet. Otherwise the order is left
alone so a list does not re-order while the user paginates within one visit.
"""

import logging
import random
from collections.abc import Iterable
from typing import Optional, TypeVar

from ..models.property import ListingCategory
from ..session import SessionContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


def shuffle_key(location_key: str, category: ListingCategory) -> str:
    """Session marker key for a shard, e.g. "shuffle-miami-sale"."""
    return f"shuffle-{location_key}-{category.value}"


class OrderRandomizer:
    """Fisher-Yates shuffling gated by per-session markers.

    Args:
        always_randomize: Location keys reshuffled on every fresh load
        rng: Random source (inject a seeded Random for reproducible tests)
    """

    def __init__(
        self,
        always_randomize: Iterable[str] = (),
        rng: Optional[random.Random] = None,
    ):
        self.always_randomize = frozenset(always_randomize)
        self.rng = rng or random.Random()

    def should_shuffle(
        self,
        session: SessionContext,
        location_key: str,
        category: ListingCategory,
    ) -> bool:
        if location_key in self.always_randomize:
            return True
        return session.shuffle_marker(shuffle_key(location_key, category)) is None

    def permute(self, items: list[T]) -> list[T]:
        """Uniform in-place permutation; returns the same list."""
        for i in range(len(items) - 1, 0, -1):
            j = self.rng.randint(0, i)
            items[i], items[j] = items[j], items[i]
        return items

    def shuffle(
        self,
        items: list[T],
        session: SessionContext,
        location_key: str,
        category: ListingCategory,
    ) -> tuple[list[T], Optional[float]]:
        """Apply the session policy to a freshly loaded shard.

        Returns:
            (items, marker): the possibly reordered list and the session
            marker written for this shuffle, or None if order was kept
        """
        if not self.should_shuffle(session, location_key, category):
            logger.debug(f"Keeping order for {location_key}/{category.value}")
            return items, None

        self.permute(items)
        marker = session.mark_shuffled(shuffle_key(location_key, category))
        logger.debug(f"Shuffled {len(items)} records for {location_key}/{category.value}")
        return items, marker
