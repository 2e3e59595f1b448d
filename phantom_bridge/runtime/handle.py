"""Host-side handles to objects living inside the engine."""

from __future__ import annotations

import logging
from typing import Any, Optional

from phantom_bridge.errors import NavigationError, ReleasedHandleError

from .client import RPCClient
from .protocol import (
    OpenRequest,
    OpenSettings,
    Operation,
    Operations,
    Rect,
    RefRequest,
    SetClipRectRequest,
)

logger = logging.getLogger(__name__)


class Ref:
    """A registry id paired with the client that owns it.

    A ref has no behavior of its own. Two refs are equal when their ids
    are equal; there is no cached remote state to compare.
    """

    __slots__ = ("_client", "_id", "_released")

    def __init__(self, client: RPCClient, ref_id: str):
        self._client = client
        self._id = ref_id
        self._released = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def client(self) -> RPCClient:
        return self._client

    @property
    def released(self) -> bool:
        return self._released

    def call(self, operation: Operation, body: Optional[dict[str, Any]] = None) -> Any:
        """Issue an operation on behalf of this ref.

        Raises:
            ReleasedHandleError: If the ref was already released
        """
        if self._released:
            raise ReleasedHandleError(
                f"ref {self._id} was released", path=operation.path
            )
        return self._client.call(operation, body if body is not None else RefRequest(self._id).to_dict())

    def mark_released(self) -> None:
        self._released = True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ref):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        state = " released" if self._released else ""
        return f"<Ref id={self._id}{state}>"


class WebPage:
    """An object returned from ``webpage.create()`` inside the engine.

    Every read is a fresh round trip; nothing is cached on the host.
    """

    def __init__(self, ref: Ref):
        self._ref = ref

    @classmethod
    def create(cls, client: RPCClient) -> "WebPage":
        """Allocate a new page in the engine."""
        created = client.call(Operations.WEBPAGE_CREATE)
        logger.debug(f"Created webpage ref {created.id}")
        return cls(Ref(client, created.id))

    @property
    def ref(self) -> Ref:
        return self._ref

    @property
    def id(self) -> str:
        return self._ref.id

    def open(self, url: str, settings: Optional[OpenSettings] = None) -> None:
        """Navigate to ``url``.

        Raises:
            NavigationError: If the engine reports any status but ``success``
        """
        request = OpenRequest(ref=self._ref.id, url=url, settings=settings)
        response = self._ref.call(Operations.WEBPAGE_OPEN, request.to_dict())
        if not response.is_success:
            raise NavigationError(url, response.status)

    def can_go_back(self) -> bool:
        return self._ref.call(Operations.WEBPAGE_CAN_GO_BACK).value

    def can_go_forward(self) -> bool:
        return self._ref.call(Operations.WEBPAGE_CAN_GO_FORWARD).value

    def clip_rect(self) -> Rect:
        """Return the clipping rectangle used when rendering."""
        return self._ref.call(Operations.WEBPAGE_CLIP_RECT).value

    def set_clip_rect(self, rect: Rect) -> None:
        """Set the clipping rectangle used when rendering."""
        request = SetClipRectRequest(ref=self._ref.id, rect=rect)
        self._ref.call(Operations.WEBPAGE_SET_CLIP_RECT, request.to_dict())

    def content(self) -> str:
        """Return the page markup."""
        return self._ref.call(Operations.WEBPAGE_CONTENT).value

    def close(self) -> None:
        """Release the page and its engine-side resources.

        The ref is only marked released once the engine acknowledged the
        close, so a failed close can be retried.
        """
        self._ref.call(Operations.WEBPAGE_CLOSE)
        self._ref.mark_released()
        logger.debug(f"Closed webpage ref {self._ref.id}")

    def __enter__(self) -> "WebPage":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self._ref.released:
            self.close()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WebPage):
            return NotImplemented
        return self._ref == other._ref

    def __hash__(self) -> int:
        return hash(self._ref)

    def __repr__(self) -> str:
        return f"<WebPage ref={self._ref.id}>"
