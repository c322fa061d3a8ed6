"""CLI tool for ingesting schedule PDFs without the API server."""
import asyncio
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..agents import orchestrator, slot_extractor
from ..exceptions import IngestionError, OpenSlotsError
from ..models import ExtractedSchedule, SourceType
from ..services import fetch_bytes, heuristic_parser, pdf_text_extractor, source_tracker

app = typer.Typer()
console = Console()


def create_slot_table(schedule: ExtractedSchedule) -> Table:
    """Create a rich table listing extracted slots."""
    table = Table(title=f"{schedule.gym_name} ({schedule.area_name or '地域不明'})")
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Time", style="white")
    table.add_column("Sport", style="magenta")
    table.add_column("Status")

    status_colors = {
        "available": "green",
        "few": "yellow",
        "full": "red",
        "closed": "dim",
    }
    for slot in schedule.slots:
        color = status_colors.get(slot.status.value, "white")
        table.add_row(
            slot.date,
            f"{slot.start_time}-{slot.end_time}",
            slot.sport_name,
            f"[{color}]{slot.status.value}[/{color}]",
        )
    return table


async def read_document(location: str) -> bytes:
    """Read a PDF from a local path or download it from a URL."""
    if location.startswith(("http://", "https://")):
        return await fetch_bytes(location)
    return Path(location).read_bytes()


@app.command()
def ingest(
    source_id: str = typer.Argument(..., help="Registered source id"),
    url: str = typer.Argument(..., help="URL of the schedule PDF"),
):
    """
    Run the full ingestion pipeline for one source.

    Examples:

        python -m openslots.cli.ingest ingest 20250101_120000_ab12cd34 https://example.jp/schedule.pdf
    """
    console.print(f"\n[bold cyan]Ingesting:[/bold cyan] {url}\n")

    try:
        result = asyncio.run(orchestrator.ingest(source_id, url))
    except IngestionError as e:
        console.print(
            Panel(
                f"[red]{e}[/red]\n\nStage: {e.stage}",
                title="[red]Ingestion Failed",
                border_style="red",
            )
        )
        raise typer.Exit(1)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="cyan bold", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("Gym", result.gym_id)
    table.add_row("Extractor", result.extractor.value)
    table.add_row("Slots Extracted", str(result.slots_extracted))
    table.add_row("Slots Added", f"[green]{result.slots_added}[/green]")
    table.add_row("Slots Failed", f"[red]{result.slots_failed}[/red]")
    console.print(Panel(table, title="[green]Ingestion Complete", border_style="green"))

    for error in result.errors:
        console.print(f"  [yellow]-[/yellow] {error}")


@app.command()
def parse(
    location: str = typer.Argument(..., help="Local PDF path or URL"),
    heuristic: bool = typer.Option(False, help="Use the rule-based parser instead of the LLM"),
):
    """
    Extract slots from a PDF and print them without storing anything.

    Examples:

        python -m openslots.cli.ingest parse ./schedule.pdf --heuristic
    """

    async def run() -> ExtractedSchedule:
        data = await read_document(location)
        text = pdf_text_extractor.extract_text(data)
        if heuristic:
            return heuristic_parser.parse_document(text, location)
        return await slot_extractor.extract(text, location)

    try:
        schedule = asyncio.run(run())
    except (OpenSlotsError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(create_slot_table(schedule))
    details: List[str] = []
    if schedule.address:
        details.append(f"Address: {schedule.address}")
    if schedule.tel:
        details.append(f"Tel: {schedule.tel}")
    for line in details:
        console.print(f"[cyan]{line}[/cyan]")
    console.print(f"\n[cyan]{len(schedule.slots)} slots[/cyan]")


@app.command("register-source")
def register_source(
    url: str = typer.Argument(..., help="Document URL to track"),
    type: SourceType = typer.Option(SourceType.PDF, "--type", help="pdf or web"),
):
    """Register a document URL and print its source id."""
    source = source_tracker.register_source(url, type)
    console.print(f"[green]Source:[/green] {source.id}  {source.url}")


if __name__ == "__main__":
    app()
