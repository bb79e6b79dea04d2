"""Inspect registered column types and model columns."""

from __future__ import annotations

import importlib
from collections.abc import Sequence
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from resource_model.db.presets import UNSET
from resource_model.db.types import get_type_registry
from resource_model.model.mysql import MysqlModel

console = Console()


def _render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def _load_model(target: str) -> MysqlModel:
    module_name, sep, class_name = target.partition(":")
    if not sep or not module_name or not class_name:
        console.print(f"[red]Expected MODULE:CLASS, got {target!r}.[/red]")
        raise typer.Exit(1)

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        console.print(f"[red]Cannot import {module_name}: {exc}[/red]")
        raise typer.Exit(1) from exc

    model_cls = getattr(module, class_name, None)
    if not isinstance(model_cls, type) or not issubclass(model_cls, MysqlModel):
        console.print(f"[red]{target} is not a MysqlModel subclass.[/red]")
        raise typer.Exit(1)
    return model_cls()


def types() -> None:
    """List the registered custom column types."""
    registry = get_type_registry()
    rows = []
    for name in registry.names():
        column_type = registry.get(name)
        rows.append((name, column_type.base_type.__name__, column_type.behaviors.length or ""))
    _render_table(["name", "base", "length"], rows)


def fields(
    target: Annotated[str, typer.Argument(help="Model class as MODULE:CLASS.")],
) -> None:
    """Print a model's columns after presets are applied."""
    model = _load_model(target)
    rows = []
    for name, decl in model.database_fields.items():
        column = decl.to_column(name)
        default = "" if decl.default_value is UNSET else repr(decl.default_value)
        rows.append((name, repr(column.type), "yes" if column.nullable else "no", default, "PK" if decl.primary_key else ""))

    console.print(f"[bold]{model.name}[/bold] ({model.mysql_table})")
    _render_table(["column", "type", "nullable", "default", "key"], rows)
