"""Command-line interface for the property catalog."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from estate_catalog.client import CatalogClient, CatalogClientError
from estate_catalog.config import settings
from estate_catalog.derivation import (
    cover_photo,
    derive_address,
    derive_listing_meta,
    derive_price,
    derive_title,
    display_photos,
    is_publicly_available,
)
from estate_catalog.favorites import FavoriteSet
from estate_catalog.hierarchy import classify, display_amenities
from estate_catalog.logging_setup import setup_logging
from estate_catalog.storage import SqliteKeyValueStore
from estate_catalog.utils import resolve_media_url

app = typer.Typer(
    name="estate",
    help="Inspect catalog listings and manage local favorites",
    add_completion=False,
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging before any command runs."""
    setup_logging("DEBUG" if verbose else None)


@app.command()
def init(
    database_url: Optional[str] = typer.Option(None, "--db", help="Database URL for local state"),
):
    """Initialize the local database."""
    SqliteKeyValueStore(database_url or settings.database_url)
    console.print("[green]✓ Database initialized[/green]")


@app.command()
def show(
    property_id: int = typer.Argument(..., help="Property id"),
    base_url: Optional[str] = typer.Option(None, "--api", help="API base URL"),
):
    """Show the derived listing card of a property."""

    async def load():
        async with CatalogClient(base_url=base_url) as client:
            record = await client.get_record(property_id)
            parent = None
            if classify(record).is_child:
                parent = await client.get_record(record.parent_id)
            return record, parent

    try:
        record, parent = asyncio.run(load())
    except CatalogClientError as e:
        console.print(f"[red]✗ Could not load property {property_id}: {e}[/red]")
        raise typer.Exit(1)

    position = classify(record)
    kind = "Container" if position.is_container else ("Unit" if position.is_child else "Listing")

    table = Table(title=derive_title(record), show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Kind", kind)
    table.add_row("Price", derive_price(record))
    table.add_row("Address", derive_address(record, parent))
    table.add_row("Details", " · ".join(item.value for item in derive_listing_meta(record)))
    table.add_row("Available", "yes" if is_publicly_available(record) else "no")
    table.add_row("Amenities", ", ".join(display_amenities(record, parent)) or "-")
    photos = display_photos(record)
    if photos:
        table.add_row("Cover", resolve_media_url(cover_photo(record), base_url) or "-")
        table.add_row("Photos", str(len(photos)))

    console.print(table)


@app.command()
def children(
    parent_id: int = typer.Argument(..., help="Container property id"),
    base_url: Optional[str] = typer.Option(None, "--api", help="API base URL"),
):
    """List the units of a container."""

    async def load():
        async with CatalogClient(base_url=base_url) as client:
            return await client.children_of(parent_id)

    try:
        units = asyncio.run(load())
    except CatalogClientError as e:
        console.print(f"[red]✗ Could not load units of {parent_id}: {e}[/red]")
        raise typer.Exit(1)

    if not units:
        console.print("[yellow]No units found[/yellow]")
        return

    table = Table(title=f"Units of {parent_id}")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Title")
    table.add_column("Price", style="green")
    table.add_column("Details")

    for unit in units:
        table.add_row(
            str(unit.property_id or "-"),
            derive_title(unit),
            derive_price(unit),
            " · ".join(item.value for item in derive_listing_meta(unit)),
        )

    console.print(table)


@app.command()
def favorite(
    property_id: int = typer.Argument(..., help="Property id to toggle"),
    database_url: Optional[str] = typer.Option(None, "--db", help="Database URL for local state"),
):
    """Add or remove a property from favorites."""
    favorites = FavoriteSet(SqliteKeyValueStore(database_url or settings.database_url))

    if favorites.toggle(property_id):
        console.print(f"[green]★ {property_id} added to favorites[/green]")
    else:
        console.print(f"[yellow]☆ {property_id} removed from favorites[/yellow]")


@app.command()
def favorites(
    database_url: Optional[str] = typer.Option(None, "--db", help="Database URL for local state"),
):
    """List favorite property ids."""
    ids = FavoriteSet(SqliteKeyValueStore(database_url or settings.database_url)).ids

    if not ids:
        console.print("[yellow]No favorites yet[/yellow]")
        return

    for property_id in ids:
        console.print(f"★ {property_id}")


if __name__ == "__main__":
    app()
