"""
Engine process supervision.

Materializes the dispatcher script, starts the engine subprocess with the
agreed port, waits until the dispatcher answers, and owns the subprocess
and script file until ``close()``.
"""

from __future__ import annotations

import io
import logging
import os
import subprocess
import tempfile
import threading
from enum import Enum, auto
from pathlib import Path
from typing import IO, Any, Optional, Union

import httpx

from phantom_bridge.config import ProcessConfig
from phantom_bridge.engine.scripts import DispatcherScript, dispatcher_script
from phantom_bridge.errors import (
    ConfigurationError,
    ReadinessTimeoutError,
    SpawnError,
    TeardownError,
)

from .client import RPCClient
from .discovery import EngineType, discover_binary
from .handle import WebPage
from .probe import ReadinessProber
from .protocol import PORT_ENV_VAR

logger = logging.getLogger(__name__)

# Seconds to wait for a killed engine to be reaped
KILL_WAIT_TIMEOUT = 10.0

Sink = Union[None, int, IO[Any]]


class ProcessState(Enum):
    """State of the engine subprocess."""

    NOT_STARTED = auto()
    STARTING = auto()
    READY = auto()
    ERROR = auto()
    STOPPED = auto()


class Process:
    """
    A supervised engine process running the injected dispatcher.

    ``open()`` and ``close()`` are meant to be called by the owner of the
    process, not concurrently. Once the process is ready, pages created
    from it can be driven from several threads.

    Example:
        with Process(ProcessConfig(port=20202)) as process:
            page = process.create_web_page()
            page.open("https://example.com")
            print(page.content())
            page.close()
    """

    def __init__(
        self,
        config: Optional[ProcessConfig] = None,
        *,
        script: Optional[DispatcherScript] = None,
        stdout: Sink = None,
        stderr: Sink = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._config = config or ProcessConfig()
        self._script = script
        self._transport = transport
        self.stdout = stdout
        self.stderr = stderr

        self._state = ProcessState.NOT_STARTED
        self._path: Optional[Path] = None
        self._popen: Optional[subprocess.Popen] = None
        self._pumps: list[threading.Thread] = []
        self._client: Optional[RPCClient] = None

    @property
    def config(self) -> ProcessConfig:
        return self._config

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def url(self) -> str:
        """The dispatcher's base URL. Pure function of the port."""
        return f"http://localhost:{self._config.port}"

    @property
    def state(self) -> ProcessState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == ProcessState.READY

    @property
    def script_path(self) -> Optional[Path]:
        return self._path

    @property
    def pid(self) -> Optional[int]:
        return self._popen.pid if self._popen is not None else None

    @property
    def client(self) -> RPCClient:
        if self._client is None:
            raise RuntimeError(f"Process not open (state: {self._state.name})")
        return self._client

    def open(self) -> None:
        """
        Start the engine and wait until its dispatcher answers.

        After a failure the process must be closed before it can be
        opened again.

        Raises:
            ConfigurationError: If the configured engine is unknown
            SpawnError: If the script or the subprocess could not be created
            ReadinessTimeoutError: If the dispatcher never answered; the
                subprocess is left running for ``close()`` to clean up
            RuntimeError: If the process is already open
        """
        if self._state not in (ProcessState.NOT_STARTED, ProcessState.STOPPED):
            raise RuntimeError(f"Cannot open process in state: {self._state.name}")

        self._state = ProcessState.STARTING
        try:
            engine = EngineType.parse(self._config.engine)
        except ValueError as e:
            self._state = ProcessState.ERROR
            raise ConfigurationError(str(e)) from e

        try:
            bin_path = discover_binary(engine, self._config.bin_path)
            self._write_script(engine)
            self._spawn(bin_path)
        except SpawnError:
            self._state = ProcessState.ERROR
            raise

        self._client = RPCClient(
            self.url,
            timeout=self._config.request_timeout,
            transport=self._transport,
        )
        prober = ReadinessProber(
            self._client.ping,
            interval=self._config.probe_interval,
            deadline=self._config.startup_timeout,
        )
        try:
            prober.wait()
        except ReadinessTimeoutError:
            self._state = ProcessState.ERROR
            logger.error(f"Engine at {self.url} did not become ready")
            raise

        self._state = ProcessState.READY
        logger.info(f"Engine started (pid {self.pid}) at {self.url}")

    def close(self) -> None:
        """
        Kill the engine, reap it, and delete the dispatcher script.

        Every step runs even when an earlier one fails. Safe to call more
        than once, and before ``open()``. If the engine could not be reaped
        the process stays in ERROR and a later ``close()`` retries the reap.

        Raises:
            TeardownError: Carrying the first failure encountered
        """
        errors: list[Exception] = []

        if self._popen is not None:
            popen = self._popen
            try:
                popen.kill()
            except OSError as e:
                logger.warning(f"Failed to kill engine (pid {popen.pid}): {e}")
                errors.append(e)
            try:
                popen.wait(timeout=KILL_WAIT_TIMEOUT)
            except (OSError, subprocess.TimeoutExpired) as e:
                # Keep the handle so a later close() can reap it
                logger.warning(f"Failed to reap engine (pid {popen.pid}): {e}")
                errors.append(e)
            else:
                self._popen = None
                logger.debug(f"Engine process {popen.pid} stopped")

        for pump in self._pumps:
            pump.join(timeout=1.0)
        self._pumps = []

        if self._client is not None:
            client, self._client = self._client, None
            try:
                client.close()
            except Exception as e:
                logger.warning(f"Failed to close RPC client: {e}")
                errors.append(e)

        if self._path is not None:
            path, self._path = self._path, None
            try:
                path.unlink()
                logger.debug(f"Removed dispatcher script {path}")
            except OSError as e:
                logger.warning(f"Failed to remove dispatcher script {path}: {e}")
                errors.append(e)

        if self._popen is not None:
            self._state = ProcessState.ERROR
        elif self._state != ProcessState.NOT_STARTED:
            self._state = ProcessState.STOPPED

        if errors:
            first = errors[0]
            raise TeardownError(
                f"Failed to clean up engine process: {first}",
                details={"errors": len(errors)},
            ) from first

    def ping(self) -> bool:
        """Check whether the dispatcher is answering."""
        if self._client is None:
            return False
        return self._client.ping()

    def create_web_page(self) -> WebPage:
        """Allocate a new page inside the engine."""
        if not self.is_ready:
            raise RuntimeError(f"Process not ready (state: {self._state.name})")
        return WebPage.create(self.client)

    # Context manager support
    def __enter__(self) -> "Process":
        try:
            self.open()
        except BaseException:
            try:
                self.close()
            except TeardownError as e:
                logger.warning(f"Cleanup after failed open also failed: {e}")
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Private methods

    def _write_script(self, engine: EngineType) -> None:
        """Write the dispatcher to a fresh temporary file."""
        script = self._script or dispatcher_script(engine)
        try:
            fd, name = tempfile.mkstemp(prefix=f"{engine.value}-", suffix=script.suffix)
        except OSError as e:
            raise SpawnError(f"Failed to create dispatcher script: {e}") from e

        path = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(script.source)
        except OSError as e:
            self._discard_script(path)
            raise SpawnError(f"Failed to write dispatcher script {path}: {e}") from e

        self._path = path
        logger.debug(f"Wrote dispatcher script {path}")

    def _spawn(self, bin_path: str) -> None:
        """Start the engine with the script path as its only argument."""
        assert self._path is not None

        env = self._config.subprocess_env()
        env[PORT_ENV_VAR] = str(self._config.port)
        args = [bin_path, str(self._path)]

        stdout_arg, stdout_sink = _sink_arg(self.stdout)
        stderr_arg, stderr_sink = _sink_arg(self.stderr)

        logger.debug(f"Starting engine: {' '.join(args)}")
        try:
            popen = subprocess.Popen(args, env=env, stdout=stdout_arg, stderr=stderr_arg)
        except (OSError, ValueError) as e:
            path, self._path = self._path, None
            self._discard_script(path)
            raise SpawnError(
                f"Failed to start engine: {e}",
                details={"bin_path": bin_path},
            ) from e

        self._popen = popen
        if stdout_sink is not None:
            self._start_pump(popen.stdout, stdout_sink, "stdout")
        if stderr_sink is not None:
            self._start_pump(popen.stderr, stderr_sink, "stderr")

    def _start_pump(self, stream: Optional[IO[bytes]], sink: IO[Any], name: str) -> None:
        if stream is None:
            return
        thread = threading.Thread(
            target=_pump,
            args=(stream, sink),
            name=f"engine-{name}-pump",
            daemon=True,
        )
        thread.start()
        self._pumps.append(thread)

    @staticmethod
    def _discard_script(path: Path) -> None:
        try:
            path.unlink()
        except OSError as e:
            logger.warning(f"Failed to remove dispatcher script {path}: {e}")


def _sink_arg(sink: Sink) -> tuple[Any, Optional[IO[Any]]]:
    """Map a caller-supplied sink to a Popen argument.

    Returns:
        The value for Popen and, when output must be copied by a pump
        thread, the sink to copy into
    """
    if sink is None or isinstance(sink, int):
        return sink, None
    try:
        sink.fileno()
    except (AttributeError, OSError, ValueError):
        return subprocess.PIPE, sink
    return sink, None


def _pump(stream: IO[bytes], sink: IO[Any]) -> None:
    """Copy engine output into ``sink`` until the pipe closes."""
    binary = isinstance(sink, (io.RawIOBase, io.BufferedIOBase))
    with stream:
        for line in iter(stream.readline, b""):
            try:
                sink.write(line if binary else line.decode("utf-8", errors="replace"))
            except (OSError, ValueError) as e:
                logger.debug(f"Dropping engine output: {e}")
                return
