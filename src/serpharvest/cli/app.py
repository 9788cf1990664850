"""Unified CLI entry point for serpharvest.

Config precedence: settings.default.toml -> settings.<env>.toml -> settings.local.toml
-> env vars (SERPHARVEST_* with double underscores) -> CLI flags.
"""

from __future__ import annotations

from typing import Optional

import typer

from serpharvest.cli.harvest_cmd import process, search
from serpharvest.cli.settings_cmd import settings_app

try:
    from importlib.metadata import version

    VERSION = version("serpharvest")
except Exception:
    VERSION = "unknown"

APP_HELP = (
    "serpharvest: human-paced search-results link harvesting. "
    "Config precedence: settings.default.toml -> settings.local.toml -> env vars (SERPHARVEST_* with __) -> CLI flags."
)

app = typer.Typer(add_completion=True, help=APP_HELP)

app.command("search")(search)
app.command("process")(process)
app.add_typer(settings_app, name="settings")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address."),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port."),
) -> None:
    """Run the HTTP API server."""
    import uvicorn

    from serpharvest.settings import get_settings

    settings = get_settings()
    uvicorn.run(
        "serpharvest.api.app:create_app",
        factory=True,
        host=host or settings.api.host,
        port=port or settings.api.port,
        log_config=None,
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level."),
) -> None:
    """Configure logging; show help when no subcommand is provided."""
    if version:
        typer.echo(f"serpharvest {VERSION}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    from serpharvest.logging_config import configure_logging
    from serpharvest.settings import get_settings

    settings = get_settings()
    configure_logging(log_level or settings.log_level, settings.log_format)


if __name__ == "__main__":
    app()
