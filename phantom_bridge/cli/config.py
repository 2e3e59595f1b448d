"""phantom-bridge config command - Configuration management."""

import os
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.syntax import Syntax

from phantom_bridge.cli.error_handler import handle_errors
from phantom_bridge.cli.exit_codes import ExitCode

app = typer.Typer(help="Manage phantom-bridge configuration.")
console = Console()


def _config_path() -> Path:
    from phantom_bridge.config import CONFIG_DIR, CONFIG_FILE, ENV_PREFIX

    # Check for environment variable override
    config_dir = Path(os.environ.get(f"{ENV_PREFIX}CONFIG_DIR", CONFIG_DIR))
    return config_dir / CONFIG_FILE


@app.command("show")
@handle_errors
def show_config(
    format: str = typer.Option(
        "table",
        "--format",
        "-f",
        help="Output format (table, yaml, json).",
    ),
) -> None:
    """Show current configuration.

    Example:
        phantom-bridge config show
        phantom-bridge config show --format yaml
    """
    from phantom_bridge.config import get_config, export_config_yaml, export_config_json

    config = get_config()

    if format == "yaml":
        console.print(Syntax(export_config_yaml(config), "yaml", theme="monokai"))
        return
    elif format == "json":
        console.print(Syntax(export_config_json(config), "json", theme="monokai"))
        return
    elif format != "table":
        console.print(f"[red]Unknown format: {format}[/red]")
        raise typer.Exit(code=ExitCode.GENERAL_ERROR)

    console.print("[bold]phantom-bridge Configuration[/bold]")
    console.print()

    process = config.process
    sections = {
        "process": [
            ("engine", process.engine),
            ("bin_path", process.bin_path or "auto-detect"),
            ("port", str(process.port)),
            ("url", process.url),
            ("startup_timeout", str(process.startup_timeout)),
            ("probe_interval", str(process.probe_interval)),
            ("request_timeout", str(process.request_timeout) if process.request_timeout else "none"),
            ("env_vars", ", ".join(sorted(process.env_vars)) or "None"),
        ],
        "logging": [
            ("level", config.logging.level),
            ("format", config.logging.format),
            ("file", str(config.logging.file) if config.logging.file else ""),
        ],
        "paths": [
            ("config_dir", str(config.config_dir)),
        ],
    }

    for sec, rows in sections.items():
        table = Table(title=sec.capitalize())
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")

        for key, value in rows:
            table.add_row(key, value)

        console.print(table)
        console.print()


@app.command("path")
def config_path() -> None:
    """Show configuration file path.

    Example:
        phantom-bridge config path
    """
    path = _config_path()
    console.print(f"[bold]Config directory:[/bold] {path.parent}")
    console.print(f"[bold]Config file:[/bold] {path}")
    console.print(f"[bold]Exists:[/bold] {path.exists()}")


@app.command("init")
@handle_errors
def init_config(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration.",
    ),
) -> None:
    """Write a configuration file with default values.

    Example:
        phantom-bridge config init
        phantom-bridge config init --force
    """
    from phantom_bridge.config import BridgeConfig, save_config, clear_config_cache

    path = _config_path()
    if path.exists() and not force:
        console.print(f"[yellow]Configuration already exists at {path}[/yellow]")
        console.print("Use --force to overwrite")
        raise typer.Exit(code=ExitCode.GENERAL_ERROR)

    config = BridgeConfig(config_dir=path.parent)
    save_config(config, path)
    clear_config_cache()

    console.print(f"[green]✓[/green] Configuration initialized at {path}")


@app.command("validate")
@handle_errors
def validate_config() -> None:
    """Validate current configuration.

    Example:
        phantom-bridge config validate
    """
    from phantom_bridge.config import get_config, validate_config as do_validate

    config = get_config()

    console.print("[bold]Validating configuration...[/bold]")
    console.print()

    path = _config_path()
    note = "" if path.exists() else " [dim](using defaults)[/dim]"
    console.print(f"  [green]✓[/green] Config file {path}{note}")

    all_passed = True
    errors = do_validate(config)

    if errors:
        console.print()
        console.print("[bold yellow]Validation Results:[/bold yellow]")
        for error in errors:
            if error.severity == "error":
                status = "[red]✗[/red]"
                all_passed = False
            else:
                status = "[yellow]![/yellow]"
            console.print(f"  {status} \\[{error.severity.upper()}] {error.field}: {error.message}")

    console.print()
    if all_passed:
        console.print("[green]Configuration is valid[/green]")
    else:
        console.print("[red]Configuration has errors[/red]")
        raise typer.Exit(code=ExitCode.CONFIGURATION_ERROR)
