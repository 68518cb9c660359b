"""Shareable property identifiers.

Format: ``<category>_<location>_<ordinal>``, with the location percent-encoded
so the whole identifier is URL-safe, e.g. ``sale_miami-beach_42`` or
``lease_Houston%2C%20TX_7``. Decoding parses from both ends (category up to
the first underscore, ordinal after the last one), so locations may contain
underscores.

Decoding is a pure parse. It never raises: anything malformed yields None,
which callers treat as "no hint available".
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, unquote

from ..models.property import ListingCategory

DELIMITER = "_"

_ORDINAL_SUFFIX = re.compile(r"_(\d+)$", re.ASCII)


@dataclass(frozen=True)
class PropertyHint:
    """Decoded identifier: where the record was when the id was minted."""

    category: ListingCategory
    location: str
    ordinal: int


def encode(category: ListingCategory | str, location: str, ordinal: int) -> str:
    """Build an opaque, URL-safe identifier.

    Args:
        category: sale or lease
        location: Catalog key, or the location as originally typed
        ordinal: Position of the record in the shard at encoding time

    Raises:
        ValueError: For an unknown category, empty location or negative ordinal
    """
    category = ListingCategory(category)
    if not location:
        raise ValueError("location must not be empty")
    if isinstance(ordinal, bool) or not isinstance(ordinal, int) or ordinal < 0:
        raise ValueError(f"ordinal must be a non-negative integer, got {ordinal!r}")
    return DELIMITER.join((category.value, quote(location, safe="-."), str(ordinal)))


def decode(identifier: str) -> Optional[PropertyHint]:
    """Parse an identifier produced by encode().

    Accepts both the encoded form and a URL-decoded copy of it.

    Returns:
        PropertyHint, or None if the identifier is malformed
    """
    if not isinstance(identifier, str) or not identifier:
        return None

    text = unquote(identifier)

    match = _ORDINAL_SUFFIX.search(text)
    if match is None:
        return None
    try:
        ordinal = int(match.group(1))
    except ValueError:  # beyond the interpreter's int digit limit
        return None

    head = text[: match.start()]
    category_text, sep, location = head.partition(DELIMITER)
    if not sep or not location:
        return None

    try:
        category = ListingCategory(category_text.lower())
    except ValueError:
        return None

    return PropertyHint(category=category, location=location, ordinal=ordinal)


def is_identifier(value: str) -> bool:
    return decode(value) is not None
