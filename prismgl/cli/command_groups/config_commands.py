"""Renderer preference commands (show/set/reset/scale)."""

from __future__ import annotations

import json
from typing import Callable

import typer
from rich.console import Console
from rich.table import Table

from prismgl.services.sync_service import ApplyResult, RendererSyncService
from prismgl.storage.preference_store import PREFERENCE_KEYS, scale_from_slider, slider_from_scale
from prismgl.utils.exceptions import ValidationError


def _parse_value(raw: str):
    """JSON literal when it parses (true, 30, 1.25), plain string otherwise."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def register_config_commands(
    app: typer.Typer,
    console: Console,
    make_service: Callable[[], RendererSyncService],
) -> None:
    """Register the config command group."""
    config_app = typer.Typer(help="Renderer preferences (show/set/reset/scale)")
    app.add_typer(config_app, name="config")

    def _report(result: ApplyResult) -> None:
        if result.ok:
            console.print(f"[dim]Manifest rewritten: {result.manifest_path}[/dim]")
        else:
            console.print(f"[yellow]Preferences saved but manifest not rewritten:[/yellow] {result.error}")

    @config_app.command("show")
    def config_show(
        as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
    ) -> None:
        values = make_service().store.all()
        if as_json:
            console.print(json.dumps(values, indent=2))
            return
        table = Table(title="Renderer preferences")
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        table.add_column("Default", style="dim")
        for key, spec in PREFERENCE_KEYS.items():
            value = values[key]
            shown = f"{value} ({slider_from_scale(value)}%)" if key == "resolution_scale" else str(value)
            table.add_row(key, shown, str(spec.default))
        console.print(table)

    @config_app.command("set")
    def config_set(
        key: str = typer.Argument(..., help=f"One of: {', '.join(PREFERENCE_KEYS)}"),
        value: str = typer.Argument(..., help="JSON value or plain string"),
    ) -> None:
        service = make_service()
        try:
            result = service.apply({key: _parse_value(value)})
        except ValidationError as e:
            console.print(f"[red]{e.message}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]✓[/green] Set {key} = {result.changed[key]}")
        _report(result)

    @config_app.command("reset")
    def config_reset() -> None:
        result = make_service().reset()
        console.print("[green]✓[/green] Preferences reset to defaults")
        _report(result)

    @config_app.command("scale")
    def config_scale(
        percent: int = typer.Argument(..., min=0, max=100, help="Slider position 0..100"),
    ) -> None:
        """Set the render scale from a 0..100 slider position."""
        scale = scale_from_slider(percent)
        result = make_service().apply({"resolution_scale": scale})
        console.print(f"[green]✓[/green] Render scale {result.changed['resolution_scale']:.2f}x ({percent}%)")
        _report(result)
