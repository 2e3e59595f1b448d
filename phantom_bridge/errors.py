"""Error taxonomy for the bridge.

Every failure the host can observe is one of these types, so callers can
decide locally whether to retry, abort, or surface the problem. Nothing in
the core retries on its own.
"""

from __future__ import annotations

from typing import Any, Optional

from phantom_bridge.cli.exit_codes import ExitCode


class BridgeError(Exception):
    """Base exception for the bridge.

    Attributes:
        message: Error message
        exit_code: Exit code used by the CLI when this error escapes a command
        details: Optional dictionary of additional error details
    """

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(BridgeError):
    """Invalid configuration file or values."""

    exit_code = ExitCode.CONFIGURATION_ERROR


class SpawnError(BridgeError):
    """The dispatcher script or the engine subprocess could not be created."""

    exit_code = ExitCode.SPAWN_ERROR


class ReadinessTimeoutError(BridgeError, TimeoutError):
    """The dispatcher never answered the liveness probe within the deadline."""

    exit_code = ExitCode.READINESS_TIMEOUT


class TransportError(BridgeError):
    """The HTTP exchange with the dispatcher failed before a status arrived."""

    exit_code = ExitCode.TRANSPORT_ERROR


class NotFoundError(BridgeError):
    """The dispatcher does not know the requested path."""

    exit_code = ExitCode.NOT_FOUND

    def __init__(self, message: str, path: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.path = path


class ReleasedHandleError(NotFoundError):
    """An operation was attempted through a handle that was already closed."""


class RemoteError(BridgeError):
    """The dispatcher's handler faulted.

    ``message`` is the raw response body, verbatim, so the engine-side cause
    can be read without another round trip.
    """

    exit_code = ExitCode.REMOTE_ERROR

    def __init__(self, message: str, path: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.path = path


class ProtocolError(BridgeError):
    """The response did not match the shape the client expected."""

    exit_code = ExitCode.PROTOCOL_ERROR


class NavigationError(BridgeError):
    """A page navigation finished with a status other than ``success``."""

    exit_code = ExitCode.NAVIGATION_ERROR

    def __init__(self, url: str, status: str) -> None:
        super().__init__(f"Failed to open {url}", details={"status": status})
        self.url = url
        self.status = status


class TeardownError(BridgeError):
    """Killing the subprocess or deleting its script failed during close."""

    exit_code = ExitCode.TEARDOWN_ERROR
