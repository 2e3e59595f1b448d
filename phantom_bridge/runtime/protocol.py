"""
HTTP/JSON RPC protocol.

Defines the request envelope shared by every call, the typed request and
response bodies for each page operation, and the table of operations the
dispatcher understands. The client never builds per-operation HTTP logic:
operations differ only in path, request shape and response shape.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional


def _require(data: Any, key: str) -> Any:
    if not isinstance(data, dict):
        raise TypeError(f"expected a JSON object, got {type(data).__name__}")
    if key not in data:
        raise ValueError(f"missing field: {key}")
    return data[key]


def _require_int(data: Any, key: str) -> int:
    value = _require(data, key)
    # bool is an int subclass but never a valid coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"field {key} must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise TypeError(f"field {key} must be an integer")
        value = int(value)
    return value


@dataclass
class Envelope:
    """Method, path and optional JSON body of one RPC."""

    method: str
    path: str
    body: Optional[dict[str, Any]] = None

    def to_json(self) -> Optional[str]:
        """Serialize the body, or None when the call has no body."""
        if self.body is None:
            return None
        return json.dumps(self.body)


@dataclass(frozen=True)
class Rect:
    """A clipping rectangle used when rendering a page."""

    top: int = 0
    left: int = 0
    width: int = 0
    height: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "top": self.top,
            "left": self.left,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Rect":
        return cls(
            top=_require_int(data, "top"),
            left=_require_int(data, "left"),
            width=_require_int(data, "width"),
            height=_require_int(data, "height"),
        )


@dataclass
class OpenSettings:
    """Settings passed along with ``webpage/open``."""

    method: str = "GET"

    def to_dict(self) -> dict[str, Any]:
        return {"method": self.method}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "OpenSettings":
        if not data:
            return cls()
        return cls(method=str(data.get("method", "GET")).upper())


# Request bodies

@dataclass
class RefRequest:
    """Body of every call that only names an existing object."""

    ref: str

    def to_dict(self) -> dict[str, Any]:
        return {"ref": self.ref}


@dataclass
class OpenRequest:
    """Body of ``webpage/open``."""

    ref: str
    url: str
    settings: Optional[OpenSettings] = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"ref": self.ref, "url": self.url}
        if self.settings is not None:
            body["settings"] = self.settings.to_dict()
        return body


@dataclass
class SetClipRectRequest:
    """Body of ``webpage/set_clip_rect``."""

    ref: str
    rect: Rect

    def to_dict(self) -> dict[str, Any]:
        return {"ref": self.ref, "rect": self.rect.to_dict()}


# Response bodies

@dataclass
class CreateResponse:
    """``{"ref": {"id": "<string>"}}``"""

    id: str

    @classmethod
    def from_dict(cls, data: Any) -> "CreateResponse":
        ref = _require(data, "ref")
        ref_id = _require(ref, "id")
        if not isinstance(ref_id, (str, int)) or isinstance(ref_id, bool):
            raise TypeError("ref.id must be a string")
        return cls(id=str(ref_id))


@dataclass
class OpenResponse:
    """``{"status": "success" | other}``"""

    status: str

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    @classmethod
    def from_dict(cls, data: Any) -> "OpenResponse":
        status = _require(data, "status")
        if not isinstance(status, str):
            raise TypeError("status must be a string")
        return cls(status=status)


@dataclass
class BoolValue:
    value: bool

    @classmethod
    def from_dict(cls, data: Any) -> "BoolValue":
        value = _require(data, "value")
        if not isinstance(value, bool):
            raise TypeError("value must be a boolean")
        return cls(value=value)


@dataclass
class StringValue:
    value: str

    @classmethod
    def from_dict(cls, data: Any) -> "StringValue":
        value = _require(data, "value")
        if not isinstance(value, str):
            raise TypeError("value must be a string")
        return cls(value=value)


@dataclass
class RectValue:
    value: Rect = field(default_factory=Rect)

    @classmethod
    def from_dict(cls, data: Any) -> "RectValue":
        return cls(value=Rect.from_dict(_require(data, "value")))


@dataclass(frozen=True)
class Operation:
    """One entry of the RPC table: where to send it and how to read the reply."""

    method: str
    path: str
    response_type: Optional[type] = None


class Operations:
    """The RPC surface served by the dispatcher."""

    PING: ClassVar[Operation] = Operation("GET", "/ping")
    WEBPAGE_CREATE: ClassVar[Operation] = Operation("POST", "/webpage/create", CreateResponse)
    WEBPAGE_OPEN: ClassVar[Operation] = Operation("POST", "/webpage/open", OpenResponse)
    WEBPAGE_CAN_GO_BACK: ClassVar[Operation] = Operation("POST", "/webpage/can_go_back", BoolValue)
    WEBPAGE_CAN_GO_FORWARD: ClassVar[Operation] = Operation("POST", "/webpage/can_go_forward", BoolValue)
    WEBPAGE_CLIP_RECT: ClassVar[Operation] = Operation("POST", "/webpage/clip_rect", RectValue)
    WEBPAGE_SET_CLIP_RECT: ClassVar[Operation] = Operation("POST", "/webpage/set_clip_rect")
    WEBPAGE_CONTENT: ClassVar[Operation] = Operation("POST", "/webpage/content", StringValue)
    WEBPAGE_CLOSE: ClassVar[Operation] = Operation("POST", "/webpage/close")

    @classmethod
    def all(cls) -> list[Operation]:
        return [
            value for value in vars(cls).values() if isinstance(value, Operation)
        ]


# Environment variable the injected dispatcher reads its port from
PORT_ENV_VAR = "PORT"

# Body of a successful liveness probe
PING_BODY = "ok"

# Body of the 404 answer for unmatched paths
NOT_FOUND_BODY = "not found"
