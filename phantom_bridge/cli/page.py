"""phantom-bridge page command - Drive a single web page."""

import dataclasses
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from phantom_bridge.cli.error_handler import handle_errors
from phantom_bridge.config import ProcessConfig, get_config
from phantom_bridge.runtime.process import Process
from phantom_bridge.runtime.protocol import OpenSettings, Rect

app = typer.Typer(help="Open pages in a supervised engine.")
console = Console()


def _process_config(
    engine: Optional[str],
    bin_path: Optional[str],
    port: Optional[int],
) -> ProcessConfig:
    """Configured process settings with command-line overrides applied."""
    overrides = {
        key: value
        for key, value in (("engine", engine), ("bin_path", bin_path), ("port", port))
        if value is not None
    }
    return dataclasses.replace(get_config().process, **overrides)


EngineOption = typer.Option(None, "--engine", "-e", help="Engine to run (phantomjs, python).")
BinPathOption = typer.Option(None, "--bin-path", help="Path to the engine binary.")
PortOption = typer.Option(None, "--port", "-p", help="Port for the engine's dispatcher.")
MethodOption = typer.Option("GET", "--method", "-m", help="HTTP method used to load the page.")


@app.command("content")
@handle_errors
def page_content(
    url: str = typer.Argument(..., help="URL to open."),
    method: str = MethodOption,
    engine: Optional[str] = EngineOption,
    bin_path: Optional[str] = BinPathOption,
    port: Optional[int] = PortOption,
) -> None:
    """Open a page and print its markup.

    Example:
        phantom-bridge page content https://example.com
        phantom-bridge page content file:///tmp/index.html --engine python
    """
    with Process(_process_config(engine, bin_path, port)) as process:
        with process.create_web_page() as page:
            page.open(url, OpenSettings(method=method.upper()))
            content = page.content()

    # Markup goes out verbatim so it can be piped
    typer.echo(content)


@app.command("clip")
@handle_errors
def page_clip(
    url: str = typer.Argument(..., help="URL to open."),
    top: int = typer.Option(0, "--top", help="Top edge of the clip rectangle."),
    left: int = typer.Option(0, "--left", help="Left edge of the clip rectangle."),
    width: int = typer.Option(0, "--width", help="Width of the clip rectangle."),
    height: int = typer.Option(0, "--height", help="Height of the clip rectangle."),
    engine: Optional[str] = EngineOption,
    bin_path: Optional[str] = BinPathOption,
    port: Optional[int] = PortOption,
) -> None:
    """Set a page's clip rectangle and print what the engine reports back.

    Example:
        phantom-bridge page clip https://example.com --width 800 --height 600
    """
    rect = Rect(top=top, left=left, width=width, height=height)

    with Process(_process_config(engine, bin_path, port)) as process:
        with process.create_web_page() as page:
            page.open(url)
            page.set_clip_rect(rect)
            reported = page.clip_rect()

    table = Table(title="Clip rectangle")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for key, value in reported.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)
