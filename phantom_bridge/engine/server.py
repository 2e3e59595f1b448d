"""HTTP front end for the Python engine's dispatcher."""

from __future__ import annotations

import logging
import os
import sys
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Optional

from phantom_bridge.runtime.protocol import PORT_ENV_VAR

from .dispatcher import Dispatcher

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"


def make_handler(dispatcher: Dispatcher) -> Callable[..., BaseHTTPRequestHandler]:
    class DispatcherHandler(BaseHTTPRequestHandler):
        def _handle(self) -> None:
            content_length = int(self.headers.get("Content-Length", "0") or 0)
            body = self.rfile.read(content_length) if content_length > 0 else b""

            reply = dispatcher.dispatch(self.command, self.path, body)

            self.send_response(reply.status)
            self.send_header("Content-Length", str(len(reply.body)))
            if reply.body:
                self.send_header("Content-Type", reply.content_type)
            self.end_headers()
            if reply.body:
                self.wfile.write(reply.body)

        do_GET = _handle  # noqa: N815
        do_POST = _handle  # noqa: N815
        do_PUT = _handle  # noqa: N815
        do_DELETE = _handle  # noqa: N815

        def log_message(self, fmt: str, *args: object) -> None:
            logger.debug(fmt % args)

    return DispatcherHandler


def create_server(
    port: int,
    dispatcher: Optional[Dispatcher] = None,
    host: str = DEFAULT_HOST,
) -> ThreadingHTTPServer:
    """Bind a threaded HTTP server that feeds every request to ``dispatcher``."""
    handler = make_handler(dispatcher or Dispatcher())
    return ThreadingHTTPServer((host, port), handler)


def serve(
    port: int,
    dispatcher: Optional[Dispatcher] = None,
    host: str = DEFAULT_HOST,
) -> None:
    """Serve the RPC API until interrupted."""
    server = create_server(port, dispatcher, host)
    logger.info(f"Dispatcher listening on http://{host}:{port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
        logger.info("Dispatcher stopped")


def main() -> None:
    """Entry point of the injected bootstrap script.

    Reads the port from the environment the supervisor prepared.
    """
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    port_value = os.environ.get(PORT_ENV_VAR)
    if not port_value:
        logger.error(f"{PORT_ENV_VAR} is not set")
        raise SystemExit(2)

    serve(int(port_value))


if __name__ == "__main__":
    main()
