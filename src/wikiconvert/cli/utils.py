"""
CLI utility helpers: output formatting and async bridging.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from wikiconvert.core.errors import ConverterError

console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion from a synchronous Typer command."""
    return asyncio.run(coro)


def output_error(error: ConverterError, *, as_json: bool = False) -> None:
    """Render a ``ConverterError`` and exit with status 1."""
    if as_json:
        console.print_json(json.dumps(error.to_dict(), default=str))
    else:
        kind = getattr(error, "kind", None)
        code = kind.value if kind is not None else error.category.value
        err_console.print(f"[bold red]Error[/bold red] ({code}): {escape(error.message)}")
    raise typer.Exit(code=1)


def output_dict(data: dict[str, Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a flat dict as JSON or a two-column Rich table."""
    if as_json:
        console.print_json(json.dumps(data, default=str))
        return
    table = Table(title=title or None, show_header=False, pad_edge=False)
    table.add_column("Key", style="bold")
    table.add_column("Value", overflow="fold")
    for key, value in data.items():
        table.add_row(str(key), "" if value is None else str(value))
    console.print(table)
