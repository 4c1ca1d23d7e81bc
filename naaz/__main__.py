"""CLI for naaz: configuration check, cache maintenance and the API server."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from naaz.api import create_app
from naaz.app import Services
from naaz.cache import CacheService
from naaz.config import FEATURE_FLAGS, load_settings
from naaz.errors import ConfigError

app = typer.Typer(name="naaz", help="Naaz storefront services")
console = Console()


@app.command("check-config")
def check_config(
    environment: Optional[str] = typer.Option(None, "--env", help="Override VITE_NODE_ENV"),
) -> None:
    """Validate the environment and print the effective settings."""
    overrides = {"node_env": environment} if environment else {}
    try:
        settings = load_settings(**overrides)
    except ConfigError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(code=1) from e

    table = Table(title=f"naaz {settings.app_version} ({settings.node_env})")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("supabase_url", settings.supabase_url)
    table.add_row("api_timeout", f"{settings.api_timeout} ms")
    table.add_row("cache_dir", str(settings.cache_dir))
    table.add_row("error tracking", str(settings.tracker_config().enabled))
    for flag in FEATURE_FLAGS:
        table.add_row(f"feature:{flag}", str(settings.is_feature_enabled(flag)))
    console.print(table)

    missing = settings.missing_required()
    if missing:
        console.print(f"[yellow]Missing: {', '.join(missing)}[/yellow]")
        if settings.is_production:
            raise typer.Exit(code=1)


@app.command("cache-cleanup")
def cache_cleanup() -> None:
    """Drop expired and stale-version entries from every cache tier."""

    async def run() -> int:
        cache = CacheService.from_settings(load_settings())
        await cache.initialize()
        try:
            return await cache.cleanup()
        finally:
            await cache.dispose()

    removed = asyncio.run(run())
    console.print(f"Removed {removed} cache entries")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
    local: bool = typer.Option(False, "--local", help="Use the in-process backend"),
) -> None:
    """Run the HTTP API."""
    settings = load_settings()
    services = Services.local(settings) if local else Services.from_settings(settings)
    uvicorn.run(create_app(services), host=host, port=port)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
