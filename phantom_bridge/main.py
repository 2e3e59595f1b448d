"""Main CLI entry point for phantom-bridge."""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from phantom_bridge import __app_name__, __version__
from phantom_bridge.cli import config, engine, page
from phantom_bridge.cli.exit_codes import ExitCode
from phantom_bridge.config import LoggingConfig, get_config
from phantom_bridge.errors import ConfigurationError

# Create the main Typer app
app = typer.Typer(
    name=__app_name__,
    help="phantom-bridge - Drive a headless PhantomJS engine from Python.",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register command groups
app.add_typer(page.app, name="page")
app.add_typer(engine.app, name="engine")
app.add_typer(config.app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"{__app_name__} v{__version__}")
        raise typer.Exit(code=ExitCode.SUCCESS)


def _setup_logging(
    verbose: bool = False,
    debug: bool = False,
    quiet: bool = False,
    log_file: Optional[Path] = None,
    defaults: Optional[LoggingConfig] = None,
) -> None:
    """Set up logging configuration based on CLI options.

    Args:
        verbose: Enable INFO level logging
        debug: Enable DEBUG level logging
        quiet: Only log errors
        log_file: Optional log file path
        defaults: Configured level, format and file used when no flag is given
    """
    defaults = defaults or LoggingConfig()

    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.getLevelName(defaults.level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    log_file = log_file or defaults.file

    if debug:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
    else:
        format_str = defaults.format

    handlers: list[logging.Handler] = []

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log debug to file
        handlers.append(file_handler)

    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        handlers.append(console_handler)
    elif not log_file:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=logging.DEBUG if log_file else level,
        format=format_str,
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured: level={logging.getLevelName(level)}, debug={debug}")


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output (INFO level logging).",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode (DEBUG level logging, engine lifecycle included).",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output.",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log to file (logs DEBUG level regardless of console settings).",
    ),
) -> None:
    """phantom-bridge - Drive a headless PhantomJS engine from Python.

    [bold]Commands:[/bold]

    • [cyan]page[/cyan] - Open pages and read them back
    • [cyan]engine[/cyan] - Inspect, run and probe dispatcher engines
    • [cyan]config[/cyan] - Manage configuration

    [bold]Examples:[/bold]

        phantom-bridge page content https://example.com
        phantom-bridge engine ping --port 20202
        phantom-bridge config show --format yaml
    """
    if quiet and verbose:
        console.print("[red]Error:[/red] --quiet and --verbose are mutually exclusive")
        raise typer.Exit(code=ExitCode.GENERAL_ERROR)

    if quiet and debug:
        console.print("[red]Error:[/red] --quiet and --debug are mutually exclusive")
        raise typer.Exit(code=ExitCode.GENERAL_ERROR)

    # A broken config file is reported by the command that loads it
    try:
        logging_defaults = get_config().logging
    except ConfigurationError:
        logging_defaults = LoggingConfig()

    _setup_logging(
        verbose=verbose,
        debug=debug,
        quiet=quiet,
        log_file=log_file,
        defaults=logging_defaults,
    )

    logger = logging.getLogger(__name__)
    logger.debug(f"{__app_name__} v{__version__} starting")


if __name__ == "__main__":
    app()
