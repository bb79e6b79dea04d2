"""Database connectivity commands."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine

from resource_model.config import MysqlSettings

console = Console()


def _get_engine(settings: MysqlSettings) -> AsyncEngine:
    from resource_model.db.engine import get_engine

    return get_engine(settings)


def ping() -> None:
    """Check that MySQL accepts connections with the configured settings."""
    settings = MysqlSettings.from_env()
    engine = _get_engine(settings)

    async def _run() -> None:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        finally:
            await engine.dispose()

    console.print(f"Connecting to {settings.redacted_url()}...")
    try:
        asyncio.run(_run())
    except (DBAPIError, OSError) as exc:
        console.print(f"[red]Database is not reachable: {escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc
    console.print("[green]Database is reachable.[/green]")
