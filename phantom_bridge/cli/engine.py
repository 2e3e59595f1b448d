"""phantom-bridge engine command - Inspect and run dispatcher engines."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from phantom_bridge.cli.error_handler import handle_errors
from phantom_bridge.cli.exit_codes import ExitCode
from phantom_bridge.config import get_config
from phantom_bridge.engine.scripts import dispatcher_script
from phantom_bridge.errors import ConfigurationError
from phantom_bridge.runtime.client import RPCClient
from phantom_bridge.runtime.discovery import EngineType, describe_engine

app = typer.Typer(help="Inspect and run dispatcher engines.")
console = Console()


def _engine(name: Optional[str]) -> EngineType:
    """Parse an engine name, falling back to the configured one."""
    try:
        return EngineType.parse(name or get_config().process.engine)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


@app.command("script")
@handle_errors
def engine_script(
    engine: Optional[str] = typer.Option(
        None,
        "--engine",
        "-e",
        help="Engine whose dispatcher to print (phantomjs, python).",
    ),
) -> None:
    """Print the dispatcher script injected into the engine.

    Example:
        phantom-bridge engine script > dispatcher.js
        phantom-bridge engine script --engine python
    """
    script = dispatcher_script(_engine(engine))
    typer.echo(script.source, nl=False)


@app.command("info")
@handle_errors
def engine_info(
    engine: Optional[str] = typer.Option(None, "--engine", "-e", help="Engine to look up."),
    bin_path: Optional[str] = typer.Option(None, "--bin-path", help="Path to the engine binary."),
) -> None:
    """Show which engine binary would be started.

    Example:
        phantom-bridge engine info
    """
    process = get_config().process
    info = describe_engine(_engine(engine), bin_path or process.bin_path)

    table = Table(title="Engine")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("engine", info.type.value)
    table.add_row("executable", info.executable)
    table.add_row("version", info.version or "unknown")
    console.print(table)


@app.command("serve")
@handle_errors
def engine_serve(
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on."),
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
) -> None:
    """Run the Python dispatcher in the foreground.

    Useful for poking at the RPC API by hand.

    Example:
        phantom-bridge engine serve --port 20202
        curl -X POST localhost:20202/webpage/create
    """
    from phantom_bridge.engine.server import serve

    port = port or get_config().process.port
    console.print(f"[bold]Serving dispatcher on[/bold] http://{host}:{port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]")
    serve(port, host=host)


@app.command("ping")
@handle_errors
def engine_ping(
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Dispatcher port."),
    timeout: float = typer.Option(2.0, "--timeout", "-t", help="Seconds to wait for a reply."),
) -> None:
    """Check whether a dispatcher is answering.

    Exits with a non-zero code when it is not.

    Example:
        phantom-bridge engine ping --port 20202
    """
    url = f"http://localhost:{port or get_config().process.port}"
    with RPCClient(url, timeout=timeout) as client:
        alive = client.ping()

    if alive:
        console.print(f"[green]✓[/green] {url} is ready")
        return

    console.print(f"[red]✗[/red] {url} is not answering")
    raise typer.Exit(code=ExitCode.TRANSPORT_ERROR)
