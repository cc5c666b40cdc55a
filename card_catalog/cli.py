"""Command-line interface for the card catalog: identify, grade and organize cards."""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .core.types import Card, GradingReport, IdentificationResult, ImageInput
from .grading.service import GradingService
from .resolve.client import RecognitionClient
from .resolve.orchestrator import CardResolver
from .store.collection import CollectionStore
from .store.writer import csv_exporter
from .utils.error_handler import CardCatalogError, ConfigurationError, InvalidInputError
from .utils.log import configure_logging, get_logger
from .utils.validation import validate_file_path

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Rich console
console = Console()

app = typer.Typer(
    name="card-catalog",
    help="Card Catalog - Identify, price, grade and organize collectible cards",
    add_completion=False
)

DB_OPTION = typer.Option(None, "--db", help="Collection database path")
TOKEN_OPTION = typer.Option(None, "--token", "-t", envvar="XIMILAR_API_TOKEN",
                            help="Recognition API token (overrides configuration)")


def _load_image(source: str, is_url: bool) -> ImageInput:
    if is_url:
        return ImageInput.from_url(source)
    return ImageInput.from_path(validate_file_path(source, must_exist=True))


async def _identify(image: ImageInput, token: Optional[str]) -> IdentificationResult:
    async with RecognitionClient(token=token) as client:
        return await CardResolver(client).identify(image)


async def _assess(front: ImageInput, back: Optional[ImageInput], mode: Optional[str],
                  token: Optional[str]) -> GradingReport:
    async with RecognitionClient(token=token) as client:
        return await GradingService(client).assess(front, back, mode)


def _card_table(card: Card, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Name", card.name)
    for label, value in (
        ("Year", card.year),
        ("Set", card.set_name),
        ("Card Number", card.card_number),
        ("Category", card.subcategory),
        ("Team", card.team),
        ("Rarity", card.rarity),
        ("Grade", card.grade),
        ("Grade Company", card.grade_company),
        ("Publisher", card.publisher),
    ):
        if value:
            table.add_row(label, value)
    table.add_row("Price", f"{card.price:.2f}" if card.price is not None else "[dim]n/a[/dim]")
    if card.listings:
        table.add_row("Listings", str(len(card.listings)))
    if card.id:
        table.add_row("ID", card.id)
    return table


def _fail(error: CardCatalogError) -> None:
    console.print(f"[red]❌ {error.message}[/red]")
    logger.error("Command failed", error=str(error), error_type=type(error).__name__)
    raise typer.Exit(1)


@app.command()
def identify(
    image: str = typer.Argument(..., help="Image file path, or URL with --url"),
    url: bool = typer.Option(False, "--url", help="Treat IMAGE as a remote URL"),
    save: bool = typer.Option(False, "--save", "-s", help="Add the identified card to the collection"),
    folder: Optional[str] = typer.Option(None, "--folder", "-f", help="Folder id for the saved card"),
    token: Optional[str] = TOKEN_OPTION,
    db: Optional[str] = DB_OPTION,
):
    """Identify a card image and optionally save it to the collection."""
    console.print(Panel.fit(
        "[bold blue]Card Catalog - IDENTIFY[/bold blue]\n"
        "[dim]OCR → detect → classify → identify → fallbacks[/dim]",
        border_style="blue"
    ))

    try:
        image_input = _load_image(image, url)
        with console.status("[bold green]Identifying card...", spinner="dots"):
            result = asyncio.run(_identify(image_input, token))
    except (InvalidInputError, ConfigurationError) as e:
        _fail(e)

    if not result.identified:
        console.print("[yellow]⚠ No card identified. Try another image.[/yellow]")
        return

    card = result.card
    card.image_uri = image_input.image_uri
    if save:
        try:
            card.folder_id = folder
            card = CollectionStore(db).add_card(card)
        except CardCatalogError as e:
            _fail(e)
        console.print("[green]✓ Card saved to collection[/green]")

    console.print(_card_table(card, f"Identified via {result.step.value}"))


@app.command()
def grade(
    front: str = typer.Argument(..., help="Front image file path"),
    back: Optional[str] = typer.Option(None, "--back", "-b", help="Back image file path"),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="Condition mode: ebay, psa, bgs, sgc, cgc"),
    card_id: Optional[str] = typer.Option(None, "--card", help="Collection card to attach the back image to"),
    token: Optional[str] = TOKEN_OPTION,
    db: Optional[str] = DB_OPTION,
):
    """Run grade, condition and centering assessments concurrently."""
    try:
        front_image = _load_image(front, False)
        back_image = _load_image(back, False) if back else None
        with console.status("[bold green]Grading card...", spinner="dots"):
            report = asyncio.run(_assess(front_image, back_image, mode, token))
    except CardCatalogError as e:
        _fail(e)

    table = Table(title="Grading Results")
    table.add_column("Assessment", style="cyan")
    table.add_column("Value", style="white")

    if report.grade:
        for label in ("corners", "edges", "surface", "centering", "final"):
            value = getattr(report.grade, label)
            table.add_row(label.capitalize(), f"{value:g}" if value is not None else "-")
        if report.grade.condition:
            table.add_row("Condition", report.grade.condition)
    else:
        table.add_row("Grade", "[red]unavailable[/red]")

    if report.condition:
        scale = ""
        if report.condition.scale_value is not None and report.condition.max_scale_value is not None:
            scale = f" ({report.condition.scale_value:g}/{report.condition.max_scale_value:g})"
        table.add_row("Condition label", f"{report.condition.label or '-'}{scale}")
    else:
        table.add_row("Condition label", "[red]unavailable[/red]")

    if report.centering:
        table.add_row("Left/Right", report.centering.left_right or "-")
        table.add_row("Top/Bottom", report.centering.top_bottom or "-")
    else:
        table.add_row("Centering detail", "[red]unavailable[/red]")

    console.print(table)

    if card_id and back_image is not None:
        try:
            CollectionStore(db).update_card(card_id, back_image_uri=back_image.image_uri)
        except CardCatalogError as e:
            _fail(e)
        console.print("[green]✓ Back image attached to card[/green]")


@app.command()
def cards(
    folder: Optional[str] = typer.Option(None, "--folder", "-f", help="Only cards in this folder"),
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Search name, set and card number"),
    sport: Optional[str] = typer.Option(None, "--sport", help="Only this sport or category"),
    year: Optional[str] = typer.Option(None, "--year", help="Only cards from this year"),
    db: Optional[str] = DB_OPTION,
):
    """List or search the collection."""
    collection = CollectionStore(db).search_cards(query=query, subcategory=sport, year=year, folder_id=folder)
    if not collection:
        console.print("[yellow]⚠ No cards in collection[/yellow]")
        return

    table = Table(title=f"{len(collection)} cards")
    for column in ("ID", "Name", "Year", "Set", "Number", "Price", "Folder"):
        table.add_column(column)
    for card in collection:
        table.add_row(
            card.id, card.name, card.year or "", card.set_name or "", card.card_number or "",
            f"{card.price:.2f}" if card.price is not None else "", card.folder_id or "",
        )
    console.print(table)


@app.command()
def folders(db: Optional[str] = DB_OPTION):
    """List folders."""
    items = CollectionStore(db).list_folders()
    if not items:
        console.print("[yellow]⚠ No folders[/yellow]")
        return
    table = Table(title="Folders")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Created")
    for item in items:
        table.add_row(item.id, item.name, item.created_at)
    console.print(table)


@app.command("folder-create")
def folder_create(name: str = typer.Argument(...), db: Optional[str] = DB_OPTION):
    """Create a folder."""
    try:
        created = CollectionStore(db).create_folder(name)
    except CardCatalogError as e:
        _fail(e)
    console.print(f"[green]✓ Folder created: {created.name} ({created.id})[/green]")


@app.command("folder-delete")
def folder_delete(folder_id: str = typer.Argument(...), db: Optional[str] = DB_OPTION):
    """Delete a folder; its cards stay in the collection."""
    if CollectionStore(db).delete_folder(folder_id):
        console.print("[green]✓ Folder deleted[/green]")
    else:
        console.print(f"[yellow]⚠ No folder with id {folder_id}[/yellow]")


@app.command()
def move(
    card_id: str = typer.Argument(...),
    folder_id: Optional[str] = typer.Argument(None, help="Target folder; omit to remove from its folder"),
    db: Optional[str] = DB_OPTION,
):
    """Move a card into a folder."""
    try:
        CollectionStore(db).move_card_to_folder(card_id, folder_id)
    except CardCatalogError as e:
        _fail(e)
    console.print("[green]✓ Card moved[/green]")


@app.command()
def delete(card_id: str = typer.Argument(...), db: Optional[str] = DB_OPTION):
    """Delete a card from the collection."""
    if CollectionStore(db).delete_card(card_id):
        console.print("[green]✓ Card deleted[/green]")
    else:
        console.print(f"[yellow]⚠ No card with id {card_id}[/yellow]")


@app.command()
def export(
    path: Optional[Path] = typer.Argument(None, help="CSV file to write"),
    card_ids: Optional[List[str]] = typer.Option(None, "--card", "-c", help="Export only these cards (repeatable)"),
    db: Optional[str] = DB_OPTION,
):
    """Export the collection, or selected cards, to CSV."""
    target = path or csv_exporter.default_path()
    try:
        store = CollectionStore(db)
        collection = store.select_cards(card_ids) if card_ids else store.list_cards()
        written = csv_exporter.export(collection, target)
    except CardCatalogError as e:
        _fail(e)
    console.print(f"[green]✓ Exported {len(collection)} cards to {written}[/green]")


@app.command()
def share(
    card_ids: List[str] = typer.Argument(..., help="Cards to share"),
    db: Optional[str] = DB_OPTION,
):
    """Print a plain-text summary of the selected cards."""
    try:
        selected = CollectionStore(db).select_cards(card_ids)
    except CardCatalogError as e:
        _fail(e)
    console.print(csv_exporter.share_text(selected), markup=False, highlight=False)


if __name__ == "__main__":
    app()
