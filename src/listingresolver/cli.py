"""Command line interface for listing search and resolution.

Run via: listing-resolver <command>
Or:      python -m listingresolver.cli <command>
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .browser import BrowseState, ListingBrowser, Page
from .errors import CacheUnavailableError, ListingError
from .locations.catalog import LOCATION_CATALOG
from .models.property import FavoriteEntry, ListingCategory
from .resolution.codec import encode
from .resolution.record_store import RecordStoreClient
from .resolution.resolver import PropertyResolver
from .session import SessionContext
from .shards.loader import ShardLoader
from .storage.cache import ShardCache
from .storage.favorites import FavoritesStore

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _category(lease: bool) -> ListingCategory:
    return ListingCategory.LEASE if lease else ListingCategory.SALE


def print_page(state: BrowseState, page: Page) -> None:
    """Print one page of search results as a table."""
    title = f"{state.location_key} / {state.category.value}"
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Identifier")
    table.add_column("Address", max_width=40)
    table.add_column("Price", justify="right")
    table.add_column("Beds", justify="right")
    table.add_column("Baths", justify="right")

    for offset, record in enumerate(page.items):
        ordinal = page.offset + offset
        table.add_row(
            str(ordinal),
            encode(state.category, state.location_key, ordinal),
            record.address_display[:40],
            record.price_display,
            f"{record.bedrooms:g}" if record.bedrooms is not None else "-",
            f"{record.bathrooms:g}" if record.bathrooms is not None else "-",
        )

    console.print(table)
    console.print(
        f"[dim]Showing {page.start_item}-{page.end_item} of {page.total_count} "
        f"(page {page.page}/{page.total_pages})[/dim]"
    )


def print_favorites(entries: list[FavoriteEntry]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Key")
    table.add_column("Address", max_width=40)
    table.add_column("City")
    table.add_column("Category")
    table.add_column("Price", justify="right")
    table.add_column("Added")
    for entry in entries:
        table.add_row(
            entry.property_key,
            entry.address[:40],
            entry.city,
            entry.category.value,
            entry.price,
            entry.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


async def run_search(location: str, lease: bool, page: int) -> int:
    session = SessionContext()
    async with ShardLoader(session, cache=ShardCache()) as loader:
        browser = ListingBrowser(session, loader)
        state = await browser.show(location, _category(lease))

    if state is None:
        return 1
    if not state.ok:
        console.print(f"[red]{state.error}[/red]")
        if state.retryable:
            console.print("[dim]Check your connection and run the search again.[/dim]")
        return 1
    if not state.records:
        console.print(f"[yellow]No listings for {state.location_key} right now.[/yellow]")
        return 0

    print_page(state, browser.page(page))
    return 0


async def run_resolve(identifier: str, native_key: str | None) -> int:
    session = SessionContext()
    loader = ShardLoader(session, cache=ShardCache())
    async with PropertyResolver(session, loader, RecordStoreClient()) as resolver:
        record = await resolver.resolve(identifier, native_key=native_key)
        stats = resolver.get_stats()

    if record is None:
        console.print(f"[red]Property {identifier} not found, it may have been removed.[/red]")
        console.print("[dim]Try a new search: listing-resolver search LOCATION[/dim]")
        return 1

    console.print(f"[bold]{record.address_display}[/bold]")
    console.print(f"  Key:      {record.key}")
    console.print(f"  Category: {record.category.value}")
    console.print(f"  Price:    {record.price_display}")
    console.print(f"  Type:     {record.property_type}")
    if record.bedrooms is not None:
        console.print(f"  Beds:     {record.bedrooms:g}")
    if record.bathrooms is not None:
        console.print(f"  Baths:    {record.bathrooms:g}")
    if record.area_sqft is not None:
        console.print(f"  Area:     {record.area_sqft:,.0f} sqft")
    if record.image_url:
        console.print(f"  Image:    {record.image_url}")

    resolved_by = [name for name, tier in stats.items() if tier["hits"]]
    console.print(f"[dim]Resolved via: {', '.join(resolved_by)}[/dim]")
    return 0


async def run_favorites(action: str, target: str | None) -> int:
    store = FavoritesStore()

    if action == "list":
        entries = await store.list()
        if not entries:
            console.print("[yellow]No favorites saved.[/yellow]")
            return 0
        print_favorites(entries)
        return 0

    if not target:
        console.print(f"[red]favorites {action} needs an argument[/red]")
        return 2

    if action == "remove":
        if await store.remove(target):
            console.print(f"Removed {target}")
        else:
            console.print(f"[dim]{target} was not a favorite[/dim]")
        return 0

    session = SessionContext()
    loader = ShardLoader(session, cache=ShardCache())
    async with PropertyResolver(session, loader, RecordStoreClient()) as resolver:
        record = await resolver.resolve(target)
    if record is None:
        console.print(f"[red]Property {target} not found.[/red]")
        return 1

    entry = await store.add(record)
    console.print(f"Saved {entry.property_key}: {entry.address} ({entry.price})")
    return 0


async def run_cache(action: str) -> int:
    cache = ShardCache()

    if action == "clear":
        removed = await cache.clear()
        console.print(f"Cleared {removed} cached shards")
        return 0

    stats = await cache.get_stats()
    console.print("[bold]Shard cache[/bold]")
    console.print(f"  Entries:  {stats['total_entries']}")
    console.print(f"  Records:  {stats['total_records']}")
    console.print(f"  Size:     {stats['storage_mb']} MB")
    if stats["oldest_entry"]:
        console.print(f"  Oldest:   {stats['oldest_entry']}")
        console.print(f"  Newest:   {stats['newest_entry']}")
    for location_key, count in sorted(stats["by_location"].items()):
        console.print(f"    {location_key}: {count}")
    return 0


def run_locations() -> int:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Key")
    table.add_column("Name")
    table.add_column("Region")
    table.add_column("Aliases")
    for entry in LOCATION_CATALOG.values():
        table.add_row(entry.key, entry.name, entry.region, ", ".join(entry.aliases))
    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="listing-resolver",
        description="Search residential listing shards and resolve shared property ids",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  listing-resolver search "Miami Beach, FL"
  listing-resolver search houston --lease --page 2
  listing-resolver resolve sale_miami-beach_4
  listing-resolver favorites add sale_miami-beach_4
  listing-resolver cache stats

Environment variables (LISTINGS_ prefix) configure URLs and cache location.
        """,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="List properties for a location")
    search.add_argument("location", help="Free-text location, e.g. 'Miami Beach, FL'")
    search.add_argument("--lease", action="store_true", help="Rentals instead of sales")
    search.add_argument("--page", type=int, default=1, help="Page number (default 1)")

    resolve = commands.add_parser("resolve", help="Show the property behind an identifier")
    resolve.add_argument("identifier", help="Shared identifier, store id or listing key")
    resolve.add_argument("--native-key", help="Native listing key, if known")

    favorites = commands.add_parser("favorites", help="Manage saved properties")
    favorites.add_argument("action", choices=["list", "add", "remove"])
    favorites.add_argument(
        "target",
        nargs="?",
        help="Identifier to add, or property key to remove",
    )

    cache = commands.add_parser("cache", help="Inspect or clear the shard cache")
    cache.add_argument("action", choices=["stats", "clear"])

    commands.add_parser("locations", help="List supported locations")

    return parser


def main() -> None:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args()

    setup_logging(verbose=args.verbose)

    try:
        if args.command == "search":
            code = asyncio.run(run_search(args.location, args.lease, args.page))
        elif args.command == "resolve":
            code = asyncio.run(run_resolve(args.identifier, args.native_key))
        elif args.command == "favorites":
            code = asyncio.run(run_favorites(args.action, args.target))
        elif args.command == "cache":
            code = asyncio.run(run_cache(args.action))
        else:
            code = run_locations()
    except CacheUnavailableError as e:
        console.print(f"[red]Local storage unavailable: {e.message}[/red]")
        sys.exit(1)
    except ListingError as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)

    sys.exit(code)


if __name__ == "__main__":
    main()
