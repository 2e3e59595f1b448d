"""
RPC dispatcher for the Python engine.

A single entry point routes each request by path to a named handler. A
handler that raises is turned into a 500 whose body is
``"<path>: <fault message>"`` so the host can surface the original cause.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

from phantom_bridge.runtime.protocol import (
    NOT_FOUND_BODY,
    PING_BODY,
    OpenSettings,
    Operations,
    Rect,
)

from .pages import MemoryPage
from .registry import RefRegistry

logger = logging.getLogger(__name__)


@dataclass
class Reply:
    """Status and body sent back for one request."""

    status: int = 200
    body: bytes = b""
    content_type: str = "application/json"

    @classmethod
    def json(cls, payload: dict[str, Any], status: int = 200) -> "Reply":
        return cls(status=status, body=json.dumps(payload).encode("utf-8"))

    @classmethod
    def text(cls, text: str, status: int = 200) -> "Reply":
        return cls(
            status=status,
            body=text.encode("utf-8"),
            content_type="text/plain; charset=utf-8",
        )

    @classmethod
    def empty(cls) -> "Reply":
        return cls(status=200)


@dataclass
class Request:
    """One inbound RPC."""

    method: str
    path: str
    body: bytes = b""

    def json(self) -> dict[str, Any]:
        if not self.body:
            return {}
        data = json.loads(self.body.decode("utf-8"))
        if not isinstance(data, dict):
            raise ValueError("request body must be a JSON object")
        return data

    def require(self, name: str) -> Any:
        data = self.json()
        if name not in data:
            raise ValueError(f"missing field: {name}")
        return data[name]


@dataclass
class EngineContext:
    """State shared by every handler of one engine process."""

    registry: RefRegistry = field(default_factory=RefRegistry)
    page_factory: Callable[[], Any] = MemoryPage


Handler = Callable[[EngineContext, Request], Reply]


# Handlers

def handle_ping(ctx: EngineContext, request: Request) -> Reply:
    return Reply.text(PING_BODY)


def handle_webpage_create(ctx: EngineContext, request: Request) -> Reply:
    ref_id = ctx.registry.create(ctx.page_factory())
    return Reply.json({"ref": {"id": ref_id}})


def handle_webpage_open(ctx: EngineContext, request: Request) -> Reply:
    msg = request.json()
    page = ctx.registry.resolve(request.require("ref"))
    url = request.require("url")
    settings = OpenSettings.from_dict(msg.get("settings"))
    status = page.open(url, settings)
    return Reply.json({"status": status})


def handle_webpage_can_go_back(ctx: EngineContext, request: Request) -> Reply:
    page = ctx.registry.resolve(request.require("ref"))
    return Reply.json({"value": page.can_go_back})


def handle_webpage_can_go_forward(ctx: EngineContext, request: Request) -> Reply:
    page = ctx.registry.resolve(request.require("ref"))
    return Reply.json({"value": page.can_go_forward})


def handle_webpage_clip_rect(ctx: EngineContext, request: Request) -> Reply:
    page = ctx.registry.resolve(request.require("ref"))
    return Reply.json({"value": page.clip_rect.to_dict()})


def handle_webpage_set_clip_rect(ctx: EngineContext, request: Request) -> Reply:
    page = ctx.registry.resolve(request.require("ref"))
    page.clip_rect = Rect.from_dict(request.require("rect"))
    return Reply.empty()


def handle_webpage_content(ctx: EngineContext, request: Request) -> Reply:
    page = ctx.registry.resolve(request.require("ref"))
    return Reply.json({"value": page.content})


def handle_webpage_close(ctx: EngineContext, request: Request) -> Reply:
    ref_id = request.require("ref")
    page = ctx.registry.resolve(ref_id)
    # the entry must outlive a failed teardown so the close can be retried
    page.close()
    ctx.registry.remove(ref_id)
    return Reply.empty()


DEFAULT_ROUTES: dict[str, Handler] = {
    Operations.PING.path: handle_ping,
    Operations.WEBPAGE_CREATE.path: handle_webpage_create,
    Operations.WEBPAGE_OPEN.path: handle_webpage_open,
    Operations.WEBPAGE_CAN_GO_BACK.path: handle_webpage_can_go_back,
    Operations.WEBPAGE_CAN_GO_FORWARD.path: handle_webpage_can_go_forward,
    Operations.WEBPAGE_CLIP_RECT.path: handle_webpage_clip_rect,
    Operations.WEBPAGE_SET_CLIP_RECT.path: handle_webpage_set_clip_rect,
    Operations.WEBPAGE_CONTENT.path: handle_webpage_content,
    Operations.WEBPAGE_CLOSE.path: handle_webpage_close,
}


class Dispatcher:
    """
    Routes requests to handlers.

    Example:
        dispatcher = Dispatcher()
        reply = dispatcher.dispatch("POST", "/webpage/create", b"")
        assert reply.status == 200
    """

    def __init__(
        self,
        context: Optional[EngineContext] = None,
        routes: Optional[dict[str, Handler]] = None,
    ):
        self._context = context or EngineContext()
        self._routes: dict[str, Handler] = dict(DEFAULT_ROUTES if routes is None else routes)

    @property
    def context(self) -> EngineContext:
        return self._context

    @property
    def paths(self) -> list[str]:
        return sorted(self._routes)

    def route(self, path: str, handler: Handler) -> None:
        """Register ``handler`` for ``path``, replacing any existing one."""
        self._routes[path] = handler

    def dispatch(self, method: str, path: str, body: bytes = b"") -> Reply:
        """Handle one request and never raise."""
        route_path = urlsplit(path).path
        handler = self._routes.get(route_path)
        if handler is None:
            logger.debug(f"No handler for {method} {route_path}")
            return Reply.text(NOT_FOUND_BODY, status=404)

        try:
            return handler(self._context, Request(method=method, path=route_path, body=body))
        except Exception as e:
            logger.warning(f"Handler for {route_path} failed: {e}")
            return Reply.text(f"{route_path}: {e}", status=500)
