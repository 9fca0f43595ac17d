"""
CLI: ``wikiconvert config`` — configuration inspection.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError
from rich.markup import escape

from wikiconvert.cli.utils import console, err_console

app = typer.Typer(no_args_is_help=True)


def _flatten(prefix: str, value: object, out: dict[str, object]) -> None:
    if isinstance(value, dict):
        for key, nested in value.items():
            _flatten(f"{prefix}__{key}" if prefix else str(key), nested, out)
    else:
        out[prefix] = value


@app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show current configuration."""
    from wikiconvert.core.settings import get_settings

    settings = get_settings()

    if format == "json":
        console.print_json(settings.model_dump_json())
        return

    flat: dict[str, object] = {}
    _flatten("", settings.model_dump(), flat)

    if format == "env":
        for key, value in sorted(flat.items()):
            console.print(f"WIKICONVERT_{key.upper()}={value}", markup=False, highlight=False, soft_wrap=True)
        return

    from rich.table import Table

    table = Table(title="Settings")
    table.add_column("Setting")
    table.add_column("Value", overflow="fold")
    for key, value in sorted(flat.items()):
        table.add_row(key, str(value))
    console.print(table)


@app.command("validate")
def validate_config() -> None:
    """Reload configuration from the environment and report errors."""
    from wikiconvert.core.settings import get_settings

    try:
        settings = get_settings(_force_reload=True)
    except ValidationError as e:
        err_console.print(f"[red]Configuration Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    console.print(f"[green]✓ Configuration valid[/green] ({len(settings.channels)} channels)")
