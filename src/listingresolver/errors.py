"""Exception taxonomy for listing resolution.

Only ShardLoadError and LocationNotFoundError are meant to reach users
directly. Resolution tiers convert their failures into "try the next tier";
the shard loader converts CacheUnavailableError into network-only operation.
"""

from typing import Optional


class ListingError(Exception):
    """Base exception for listing errors.

    Attributes:
        source: Component that raised the error
        message: Error description
    """

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"[{source}] {message}")


class LocationNotFoundError(ListingError):
    """Raised when free-text input matches no catalog location."""

    def __init__(self, query: str, suggestions: Optional[list[str]] = None):
        self.query = query
        self.suggestions = suggestions or []
        message = f'No data for "{query}"'
        if self.suggestions:
            message += f". Try one of: {', '.join(self.suggestions)}"
        super().__init__("locations", message)


class ShardLoadError(ListingError):
    """Raised when a shard cannot be fetched or parsed.

    Distinct from an empty shard, which is a valid (empty) result.
    """

    def __init__(
        self,
        reference: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        self.reference = reference
        self.status_code = status_code
        super().__init__("shards", f"{reference}: {message}")


class RecordNotFoundError(ListingError):
    """Raised when every resolution tier failed for an identifier."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(
            "resolver",
            f'Property "{identifier}" not found, it may have been removed',
        )


class CacheUnavailableError(ListingError):
    """Raised when a persistent local store cannot be opened or written."""

    def __init__(self, store: str, message: str):
        self.store = store
        super().__init__(store, message)
