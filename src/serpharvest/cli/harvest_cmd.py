"""CLI commands for the search and enrichment sessions."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from serpharvest.exceptions import HarvestError

console = Console()


def search(
    queries: List[str] = typer.Argument(..., help="One or more search queries, run one after another."),
    pages: Optional[int] = typer.Option(None, "--pages", "-p", help="Result pages to process per query."),
    min_delay: Optional[float] = typer.Option(None, "--min-delay", help="Minimum delay between actions (seconds)."),
    max_delay: Optional[float] = typer.Option(None, "--max-delay", help="Maximum delay between actions (seconds)."),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", help="Directory for results files."),
    headful: bool = typer.Option(False, "--headful", help="Show the browser window."),
) -> None:
    """Search each query and save the harvested links."""
    from serpharvest.harvester.orchestrator import run_search
    from serpharvest.models.search import SearchConfig
    from serpharvest.settings import get_settings

    defaults = get_settings().search
    overrides = {"headless": False} if headful else None

    for query in queries:
        try:
            config = SearchConfig(
                query=query,
                num_pages=pages if pages is not None else defaults.num_pages,
                min_delay=min_delay if min_delay is not None else defaults.min_delay,
                max_delay=max_delay if max_delay is not None else defaults.max_delay,
            )
        except ValidationError as e:
            console.print(f"[red]✗[/red] Invalid search parameters for {query!r}: {e}")
            raise typer.Exit(code=2)

        console.print(Panel(f"[bold]Searching:[/bold] {config.query}", title="serpharvest", border_style="blue"))
        try:
            with console.status("Running search session..."):
                outcome = run_search(config, browser_overrides=overrides, output_dir=output_dir)
        except HarvestError as e:
            console.print(f"[red]✗[/red] Search failed: {e}")
            raise typer.Exit(code=1)
        except Exception as e:
            console.print(f"[red]✗[/red] Search failed: {type(e).__name__}: {e}")
            raise typer.Exit(code=1)

        console.print(
            f"[green]✓[/green] {outcome.response.pages_processed} page(s), "
            f"{outcome.response.total_links} link(s) → {outcome.results_path}"
        )


def process(
    results_file: Path = typer.Argument(..., help="Results file written by a previous search."),
    headful: bool = typer.Option(False, "--headful", help="Show the browser window."),
) -> None:
    """Revisit every harvested URL and extract further links."""
    from serpharvest.harvester.orchestrator import process_search_results

    overrides = {"headless": False} if headful else None
    try:
        with console.status("Processing results..."):
            outcome = process_search_results(results_file, browser_overrides=overrides)
    except HarvestError as e:
        console.print(f"[red]✗[/red] Processing failed: {e}")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[red]✗[/red] Processing failed: {type(e).__name__}: {e}")
        raise typer.Exit(code=1)

    table = Table(title=f"Enrichment: {outcome.original_query}")
    table.add_column("URL", overflow="fold")
    table.add_column("Links", justify="right")
    table.add_column("Error", style="red", overflow="fold")
    for item in outcome.processed:
        table.add_row(item.original_url, str(len(item.extracted_links)), item.error or "")
    console.print(table)
    console.print(f"[green]✓[/green] Saved to {outcome.processed_path}")
