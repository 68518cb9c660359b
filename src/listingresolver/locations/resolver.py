"""Free-text location to catalog key resolution.

Pure function over the static catalog: no network or disk access.

Matching order:
    1. Normalize (lower-case, trim, URL-decode, drop a trailing
       ", <state>" qualifier, collapse to a hyphenated slug)
    2. Exact match against catalog keys, display names and aliases
    3. Substring match in either direction against catalog keys,
       longest key first so "miami-beach" beats "miami"
"""

import logging
import re
from typing import Optional
from urllib.parse import unquote_plus

from ..errors import LocationNotFoundError
from .catalog import LOCATION_CATALOG, supported_locations

logger = logging.getLogger(__name__)

# State qualifiers accepted after a comma: full names and abbreviations
STATE_SYNONYMS: dict[str, str] = {
    "fl": "florida",
    "ny": "new york",
    "ca": "california",
    "nv": "nevada",
    "il": "illinois",
    "tx": "texas",
    "pa": "pennsylvania",
    "az": "arizona",
}
_QUALIFIERS = set(STATE_SYNONYMS) | set(STATE_SYNONYMS.values()) | {"usa", "us"}


def _slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value).strip("-")


def normalize_location(value: str) -> str:
    """Normalize free text to a catalog-comparable slug.

    Example:
        "Miami%20Beach, FL" -> "miami-beach"
    """
    text = value.lower().strip()
    # Best-effort; unquote_plus never raises on malformed escapes
    text = unquote_plus(text).strip()

    parts = [p.strip() for p in text.split(",")]
    while len(parts) > 1 and (parts[-1] in _QUALIFIERS or not parts[-1]):
        parts.pop()
    return _slugify(",".join(parts))


def _exact_lookup() -> dict[str, str]:
    lookup: dict[str, str] = {}
    for entry in LOCATION_CATALOG.values():
        lookup[entry.key] = entry.key
        lookup[_slugify(entry.name.lower())] = entry.key
        for alias in entry.aliases:
            lookup[_slugify(alias)] = entry.key
    return lookup


_EXACT = _exact_lookup()
_KEYS_LONGEST_FIRST = sorted(LOCATION_CATALOG, key=len, reverse=True)


def resolve_location(value: str) -> Optional[str]:
    """Resolve free text to a canonical location key.

    Args:
        value: Location as typed, e.g. "Miami Beach, FL" or "new%20york"

    Returns:
        Catalog key such as "miami-beach", or None if nothing matches
    """
    if not value:
        return None

    slug = normalize_location(value)
    if not slug:
        return None

    if slug in _EXACT:
        return _EXACT[slug]

    for key in _KEYS_LONGEST_FIRST:
        if key in slug or slug in key:
            logger.debug(f"Partial location match: {value!r} -> {key}")
            return key

    return None


def require_location(value: str) -> str:
    """Like resolve_location, but raise with suggestions on no match.

    Raises:
        LocationNotFoundError: If nothing in the catalog matches
    """
    key = resolve_location(value)
    if key is None:
        raise LocationNotFoundError(value, supported_locations())
    return key
