"""linear-mcp CLI: serve the MCP server and manage its local state."""

import locale
import logging
import signal
from typing import Annotated

import typer
from rich import print as rprint
from rich.table import Table

from linear_mcp.log import configure_logging
from linear_mcp.media import DiskMediaCache, remove_cache_dir
from linear_mcp.providers.linear import LinearProvider
from linear_mcp.server import create_server
from linear_mcp.settings import ServerSettings, get_settings
from linear_mcp.tools import LinearTools

logger = logging.getLogger(__name__)

app = typer.Typer(help="Linear MCP server: tickets, comments, teams and search for AI agents", no_args_is_help=True)

WorkspaceOpt = Annotated[
    str | None,
    typer.Option("--workspace", "-w", help="Profile name from ~/.config/linear-mcp/config.toml"),
]


def build_tools(settings: ServerSettings) -> LinearTools:
    if settings.api_key is None:
        raise RuntimeError("api_key is required")
    client = LinearProvider(settings.api_key.get_secret_value())
    media = DiskMediaCache(settings.cache_dir, fetch=client.fetch_attachment)
    return LinearTools(
        client,
        media,
        page_size=settings.page_size,
        my_issues_concurrency=settings.my_issues_concurrency,
        search_concurrency=settings.search_concurrency,
    )


def _handle_sigterm(signum: int, frame: object) -> None:
    logger.info("Received SIGTERM, cleaning up...")
    raise SystemExit(0)


@app.command("serve")
def serve(workspace: WorkspaceOpt = None) -> None:
    """Run the MCP server on stdio."""
    settings = get_settings(workspace=workspace)
    configure_logging(settings.log_level)

    try:
        # Timestamps follow the user's locale
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error as exc:
        logger.warning("Could not apply the environment locale, using the C locale: %s", exc)

    tools = build_tools(settings)
    server = create_server(tools)
    signal.signal(signal.SIGTERM, _handle_sigterm)

    logger.info("Linear MCP Server running on stdio")
    try:
        server.run(transport="stdio")
    except KeyboardInterrupt:
        logger.info("Received SIGINT, cleaning up...")
    finally:
        tools.media.dispose()


@app.command("clear-cache")
def clear_cache(workspace: WorkspaceOpt = None) -> None:
    """Delete the downloaded image cache."""
    settings = get_settings(workspace=workspace, require_api_key=False)
    configure_logging(settings.log_level)
    if remove_cache_dir(settings.cache_dir):
        rprint(f"[green]✓[/green] Removed {settings.cache_dir}")
    else:
        rprint(f"[dim]Nothing to remove at {settings.cache_dir}[/dim]")


@app.command("config-show")
def config_show(workspace: WorkspaceOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings(workspace=workspace, require_api_key=False)

    def mask(val: str | None, prefix: str = "") -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"{prefix}...{val[-5:]}"

    table = Table(title="Linear MCP Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_workspace", settings.default_workspace or "[dim](not set)[/dim]")
    table.add_row(
        "api_key",
        mask(settings.api_key.get_secret_value() if settings.api_key else None, prefix="lin_api_"),
    )
    table.add_row("cache_dir", str(settings.cache_dir))
    table.add_row("page_size", str(settings.page_size))
    table.add_row("my_issues_concurrency", str(settings.my_issues_concurrency))
    table.add_row("search_concurrency", str(settings.search_concurrency))
    table.add_row("log_level", settings.log_level)

    rprint(table)
