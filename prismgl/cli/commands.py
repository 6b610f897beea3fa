"""CLI commands for prismgl.

The CLI is the single entry point: top-level commands (install, status, serve, info)
plus the config command group that edits renderer preferences.
"""

from __future__ import annotations

import errno
import socket
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from prismgl import __logo__, __version__
from prismgl.cli.command_groups.config_commands import register_config_commands
from prismgl.cli.shared.logging_utils import configure_console_logging, ensure_rotating_log_file
from prismgl.config.access import get_config
from prismgl.config.schema import Config
from prismgl.infra.device_abi import device_info, supported_abis
from prismgl.plugins.core.types import MANIFEST_FILENAME, InstallStatus
from prismgl.plugins.installer import installed_artifacts
from prismgl.plugins.manifest import read_manifest
from prismgl.plugins.native.runtime import load_native_runtime
from prismgl.services.sync_service import RendererSyncService
from prismgl.storage.preference_store import PreferenceStore
from prismgl.utils.exceptions import PrismGLError, recover

app = typer.Typer(
    name="prismgl",
    help=f"{__logo__} prismgl - PrismGL renderer installer and discovery endpoint",
    no_args_is_help=True,
)

console = Console()


def _setup_logging(config: Config, command: str) -> Path | None:
    configure_console_logging("DEBUG" if config.logging.level.upper() == "DEBUG" else "WARNING")
    if not config.logging.file:
        return None
    return ensure_rotating_log_file(command, level=config.logging.level, log_dir=config.logs_path)


def make_sync_service(config: Config, install_dir: Path | None = None) -> RendererSyncService:
    """Service wired from app config; the CLI process never binds the native runtime for apply."""
    return RendererSyncService(
        PreferenceStore(config.preferences_db_path),
        install_dir or config.install_path,
        native_lib_dir=config.native_lib_path,
        abis=config.runtime.abis or None,
    )


def _bind_error(host: str, port: int) -> str | None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
        except OSError as e:
            if e.errno == errno.EADDRINUSE:
                return f"Port {port} is already in use on {host}"
            raise
    return None


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} prismgl v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """prismgl - PrismGL renderer installer and discovery endpoint."""
    pass


@app.command()
def install(
    target: str = typer.Option(None, "--target", "-t", help="Install directory (default: paths.installDir)"),
):
    """Stage libPrismGL.so and config.json into the shared install directory."""
    config = get_config()
    _setup_logging(config, "install")
    target_dir = Path(target).expanduser() if target else config.install_path
    result = make_sync_service(config, target_dir).install()

    if result.status is InstallStatus.FAILED:
        console.print(f"[red]✗ {result.status.label}[/red] ({escape(result.error or '')})")
        raise typer.Exit(1)
    if result.fully_installed:
        console.print(f"[green]✓[/green] {result.status.label}")
    else:
        console.print(f"[yellow]![/yellow] {result.status.label} [dim](abi: {result.abi or 'unknown'})[/dim]")
    console.print(f"  Directory: [cyan]{result.target_dir}[/cyan]")
    console.print(f"  Manifest: {result.manifest_path}")
    if result.library_path:
        console.print(f"  Library: {result.library_path}")


def _gpu_name(config: Config) -> str | None:
    library = config.runtime_library_path
    if not config.runtime.auto_initialize or not library.is_file():
        return None
    try:
        bridge = load_native_runtime(library)
    except (PrismGLError, OSError) as e:
        console.print(f"[dim]Native runtime unavailable: {e}[/dim]")
        return None
    if not bridge.initialize(config.cache_path):
        return None
    try:
        return bridge.query_device_profile()
    finally:
        bridge.shutdown()


@app.command()
def status():
    """Show installation status and device info."""
    config = get_config()
    artifacts = installed_artifacts(config.install_path)
    manifest_path = artifacts[MANIFEST_FILENAME]

    console.print(f"{__logo__} PrismGL Status\n")
    if all(path is not None for path in artifacts.values()):
        console.print("[green]✓ Installed and Ready[/green]")
    elif manifest_path is not None:
        console.print(f"[yellow]! {InstallStatus.LIBRARY_MISSING.label}[/yellow]")
    else:
        console.print("[red]✗ Not Installed[/red]")
    console.print(f"Install dir: [cyan]{config.install_path}[/cyan]")
    for name, path in artifacts.items():
        console.print(f"  {name}: {'[green]✓[/green]' if path else '[dim]missing[/dim]'}")
    if manifest_path is not None:
        manifest = recover(read_manifest, manifest_path, default=None, context="Reading staged manifest")
        if manifest is None:
            console.print("  [yellow]config.json is unreadable; run [cyan]prismgl install[/cyan] to regenerate it[/yellow]")
        else:
            cfg = manifest.config
            console.print(
                f"  [dim]{cfg.target_fps} fps, scale {cfg.resolution_scale:.2f}, backend {cfg.backend.value}[/dim]"
            )

    table = Table(title="Device")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    info = device_info()
    table.add_row("Device", info["device"])
    table.add_row("Machine", info["model"])
    table.add_row("System", info["system"])
    table.add_row("ABIs", ", ".join(supported_abis(config.runtime.abis or None)) or "unknown")
    table.add_row("GPU", _gpu_name(config) or "unknown")
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option(None, "--host", "-h", help="Bind host (default: discovery.host)"),
    port: int = typer.Option(None, "--port", "-p", help="Bind port (default: discovery.port)"),
):
    """Run the read-only discovery endpoint over the install directory."""
    import uvicorn

    from prismgl.api.server import create_discovery_app

    config = get_config()
    host = host or config.discovery.host
    port = port or config.discovery.port
    error = _bind_error(host, port)
    if error:
        console.print(f"[red]{error}.[/red] Use [cyan]--port[/cyan] to choose another port.")
        raise typer.Exit(1)

    log_path = _setup_logging(config, "serve")
    console.print(f"{__logo__} Serving PrismGL discovery on http://{host}:{port}/ ({config.install_path})")
    if log_path:
        console.print(f"[dim]Logs: {log_path}[/dim]")
    uvicorn.run(create_discovery_app(config.install_path), host=host, port=port, log_level="warning")


@app.command()
def info(
    url: str = typer.Option(None, "--url", "-u", help="Discovery endpoint URL (default: from config)"),
):
    """Query a running discovery endpoint and print the renderer info row."""
    import httpx

    from prismgl.api.client import DiscoveryClient

    config = get_config()
    base_url = url or f"http://{config.discovery.host}:{config.discovery.port}"
    try:
        with DiscoveryClient(base_url) as client:
            row = client.query_info()
    except PrismGLError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]Cannot reach {base_url}:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Renderer @ {base_url}")
    for column in row.COLUMNS:
        table.add_column(column)
    table.add_row(*row.row())
    console.print(table)


register_config_commands(app=app, console=console, make_service=lambda: make_sync_service(get_config()))


if __name__ == "__main__":
    app()
