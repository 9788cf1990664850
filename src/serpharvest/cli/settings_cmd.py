"""CLI commands for inspecting and checking the resolved harvester settings."""

from __future__ import annotations

import json
import re
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from serpharvest.settings.config import Settings

settings_app = typer.Typer(help="Inspect and check the resolved harvester settings.")
console = Console()

SECTIONS = ("browser", "search", "interaction", "enrichment", "output", "api")


def _window(problems: list[tuple[str, str]], section: str, low_name: str, low: float, high_name: str, high: float):
    if low < 0:
        problems.append((f"{section}.{low_name}", f"must not be negative (got {low})"))
    if low > high:
        problems.append((f"{section}.{low_name}", f"exceeds {section}.{high_name} ({low} > {high})"))


def settings_problems(settings: Settings) -> list[tuple[str, str]]:
    """Return ``(field, problem)`` pairs for values the harvester cannot run with."""
    problems: list[tuple[str, str]] = []

    search = settings.search
    if search.num_pages < 1:
        problems.append(("search.num_pages", f"must be at least 1 (got {search.num_pages})"))
    if search.max_links_per_page < 0:
        problems.append(("search.max_links_per_page", "must be 0 (unlimited) or positive"))
    if not search.engine_url.startswith(("http://", "https://")):
        problems.append(("search.engine_url", f"not an http(s) URL: {search.engine_url!r}"))
    if not search.query_input_selector.strip():
        problems.append(("search.query_input_selector", "must not be empty"))
    _window(problems, "search", "min_delay", search.min_delay, "max_delay", search.max_delay)

    interaction = settings.interaction
    _window(
        problems, "interaction", "typing_delay_min_ms", interaction.typing_delay_min_ms,
        "typing_delay_max_ms", interaction.typing_delay_max_ms,
    )
    _window(
        problems, "interaction", "scroll_min_px", interaction.scroll_min_px,
        "scroll_max_px", interaction.scroll_max_px,
    )
    _window(
        problems, "interaction", "mouse_step_pause_min", interaction.mouse_step_pause_min,
        "mouse_step_pause_max", interaction.mouse_step_pause_max,
    )
    _window(
        problems, "interaction", "submit_pause_min", interaction.submit_pause_min,
        "submit_pause_max", interaction.submit_pause_max,
    )
    if interaction.mouse_steps < 1:
        problems.append(("interaction.mouse_steps", "must be at least 1"))

    enrichment = settings.enrichment
    try:
        re.compile(enrichment.select_all_pattern)
    except re.error as e:
        problems.append(("enrichment.select_all_pattern", f"invalid regex: {e}"))
    if not any(s.strip() for s in enrichment.trigger_selectors):
        problems.append(("enrichment.trigger_selectors", "no dropdown trigger selectors configured"))
    if not any(s.strip() for s in enrichment.menu_item_selectors):
        problems.append(("enrichment.menu_item_selectors", "no menu item selectors configured"))
    for name in ("settle_timeout_ms", "expand_wait_ms", "click_timeout_ms"):
        if getattr(enrichment, name) <= 0:
            problems.append((f"enrichment.{name}", "must be positive"))

    if settings.api.rate_limit_requests > 0 and settings.api.rate_limit_window_sec <= 0:
        problems.append(("api.rate_limit_window_sec", "must be positive when rate limiting is enabled"))

    return problems


@settings_app.command("show")
def show_settings(
    section: Optional[str] = typer.Option(None, "--section", "-s", help=f"One of: {', '.join(SECTIONS)}."),
) -> None:
    """Print the resolved settings as JSON."""
    from serpharvest.settings import get_settings

    data = get_settings().model_dump(mode="json")
    if section is not None:
        if section not in SECTIONS:
            console.print(f"[red]Unknown section {section!r}; expected one of {', '.join(SECTIONS)}[/red]")
            raise typer.Exit(code=2)
        data = data[section]
    console.print_json(json.dumps(data, default=str))


@settings_app.command("validate")
def validate_settings() -> None:
    """Load the settings and check the search, interaction and enrichment values."""
    from serpharvest.settings import get_settings

    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[red]✗[/red] Settings could not be loaded: {e}")
        raise typer.Exit(code=1)

    problems = settings_problems(settings)
    if problems:
        table = Table(title=f"Settings problems ({settings.env})")
        table.add_column("Field", style="cyan")
        table.add_column("Problem", style="red")
        for field, problem in problems:
            table.add_row(field, problem)
        console.print(table)
        raise typer.Exit(code=1)

    console.print("[green]✓[/green] Settings are valid.")
    console.print(f"  Environment: {settings.env}")
    console.print(f"  Search engine: {settings.search.engine_url} ({settings.search.num_pages} pages)")
    console.print(f"  Results dir: {settings.output.results_dir}")
