"""
In-memory page used by the Python engine.

Plays the part of PhantomJS's ``webpage`` object: it loads markup from
``about:``, ``data:``, ``file:`` and ``http(s):`` URLs, keeps a navigation
history and a clip rectangle, and can be closed.
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, unquote_to_bytes, urlsplit
from urllib.request import url2pathname

import httpx

from phantom_bridge.runtime.protocol import OpenSettings, Rect

logger = logging.getLogger(__name__)

BLANK_CONTENT = "<html><head></head><body></body></html>"

STATUS_SUCCESS = "success"
STATUS_FAIL = "fail"


class PageClosedError(RuntimeError):
    """Raised when a closed page is used."""


class MemoryPage:
    """A minimal browser page held in engine memory."""

    def __init__(self, fetch_timeout: float = 30.0):
        self._fetch_timeout = fetch_timeout
        self._history: list[str] = []
        self._index = -1
        self._content = BLANK_CONTENT
        self._clip_rect = Rect()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def url(self) -> str:
        if self._index < 0:
            return "about:blank"
        return self._history[self._index]

    @property
    def content(self) -> str:
        self._check_open()
        return self._content

    @property
    def clip_rect(self) -> Rect:
        self._check_open()
        return self._clip_rect

    @clip_rect.setter
    def clip_rect(self, rect: Rect) -> None:
        self._check_open()
        self._clip_rect = rect

    @property
    def can_go_back(self) -> bool:
        self._check_open()
        return self._index > 0

    @property
    def can_go_forward(self) -> bool:
        self._check_open()
        return self._index < len(self._history) - 1

    def open(self, url: str, settings: Optional[OpenSettings] = None) -> str:
        """Load ``url`` and return the navigation status.

        Returns:
            ``success`` when the page loaded, ``fail`` otherwise
        """
        self._check_open()
        settings = settings or OpenSettings()
        try:
            markup = self._load(url, settings)
        except (OSError, ValueError, httpx.HTTPError) as e:
            logger.info(f"Failed to open {url}: {e}")
            return STATUS_FAIL

        # a new navigation drops the forward history
        del self._history[self._index + 1:]
        self._history.append(url)
        self._index = len(self._history) - 1
        self._content = markup
        return STATUS_SUCCESS

    def close(self) -> None:
        self._check_open()
        self._closed = True
        self._history.clear()
        self._index = -1
        self._content = BLANK_CONTENT

    def _check_open(self) -> None:
        if self._closed:
            raise PageClosedError("page is closed")

    def _load(self, url: str, settings: OpenSettings) -> str:
        parts = urlsplit(url)
        scheme = parts.scheme.lower()

        if scheme == "about":
            return BLANK_CONTENT

        if scheme == "data":
            header, sep, payload = url[len("data:"):].partition(",")
            if not sep:
                raise ValueError("malformed data URL")
            if header.endswith(";base64"):
                return base64.b64decode(unquote_to_bytes(payload)).decode("utf-8")
            return unquote(payload)

        if scheme == "file":
            return Path(url2pathname(parts.path)).read_text(encoding="utf-8")

        if scheme in ("http", "https"):
            response = httpx.request(
                settings.method,
                url,
                follow_redirects=True,
                timeout=self._fetch_timeout,
            )
            response.raise_for_status()
            return response.text

        raise ValueError(f"unsupported URL scheme: {scheme or url}")
