"""
RPC client.

One transport for every remote operation: serialize the body to JSON, send
it to ``base_url + path`` and map the outcome to a typed result or error.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, TypeVar

import httpx

from phantom_bridge.errors import (
    NotFoundError,
    ProtocolError,
    RemoteError,
    TransportError,
)

from .protocol import Envelope, Operation, Operations

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RPCClient:
    """
    HTTP/JSON client for a dispatcher at ``base_url``.

    The client holds no session state beyond the connection pool, so one
    instance may be shared by several threads, each issuing independent
    round trips.

    Example:
        client = RPCClient("http://localhost:20202")
        created = client.call(Operations.WEBPAGE_CREATE)
        print(created.id)
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = base_url
        self._client = httpx.Client(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def invoke(
        self,
        method: str,
        path: str,
        body: Optional[dict[str, Any]] = None,
        response_type: Optional[type[T]] = None,
    ) -> Optional[T]:
        """
        Send one request and decode the reply.

        Args:
            method: HTTP method
            path: RPC path, e.g. ``/webpage/content``
            body: Optional JSON object sent as the request body
            response_type: Optional class with a ``from_dict`` constructor

        Returns:
            The decoded response, or None when no response type was given

        Raises:
            NotFoundError: The dispatcher answered 404
            RemoteError: The dispatcher answered 500; message is the body text
            ProtocolError: Any other non-success status, or an undecodable body
            TransportError: The exchange failed before a status arrived
        """
        envelope = Envelope(method=method, path=path, body=body)
        response = self._send(envelope)

        if response.status_code == 404:
            raise NotFoundError(f"not found: {path}", path=path)
        if response.status_code == 500:
            raise RemoteError(response.text, path=path)
        if not response.is_success:
            raise ProtocolError(
                f"unexpected status: {response.status_code}",
                details={"path": path, "status": response.status_code},
            )

        if response_type is None:
            return None
        return self._decode(path, response, response_type)

    def call(self, operation: Operation, body: Optional[dict[str, Any]] = None) -> Any:
        """Invoke an entry of the RPC table."""
        return self.invoke(operation.method, operation.path, body, operation.response_type)

    def ping(self) -> bool:
        """Check whether the dispatcher is up.

        Returns:
            True only when ``/ping`` answered 200
        """
        try:
            response = self._client.request(Operations.PING.method, Operations.PING.path)
        except httpx.HTTPError as e:
            logger.debug(f"Ping failed: {e}")
            return False
        if response.status_code != 200:
            logger.debug(f"Ping returned unexpected status: {response.status_code}")
            return False
        return True

    def close(self) -> None:
        """Release pooled connections."""
        self._client.close()

    def __enter__(self) -> "RPCClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Private methods

    def _send(self, envelope: Envelope) -> httpx.Response:
        logger.debug(f"RPC {envelope.method} {envelope.path}")
        try:
            return self._client.request(
                envelope.method,
                envelope.path,
                content=envelope.to_json(),
            )
        except httpx.HTTPError as e:
            raise TransportError(
                f"{envelope.method} {envelope.path} failed: {e}",
                details={"url": f"{self._base_url}{envelope.path}"},
            ) from e

    @staticmethod
    def _decode(path: str, response: httpx.Response, response_type: type[T]) -> T:
        try:
            data = json.loads(response.content)
            return response_type.from_dict(data)  # type: ignore[attr-defined]
        except (ValueError, KeyError, TypeError) as e:
            raise ProtocolError(
                f"invalid response body for {path}: {e}",
                details={"path": path},
            ) from e
