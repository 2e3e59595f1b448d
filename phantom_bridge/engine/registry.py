"""Reference registry: the engine's table of objects the host holds ids for."""

from __future__ import annotations

import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)


class UnknownRefError(KeyError):
    """Raised when resolving an id that was never issued or already removed."""

    def __init__(self, ref_id: str):
        super().__init__(ref_id)
        self.ref_id = ref_id

    def __str__(self) -> str:
        return f"unknown ref: {self.ref_id}"


class RefRegistry:
    """Maps opaque string ids to live objects.

    Ids come from a counter that only moves forward, so an id is never
    handed out twice, even after its entry was removed. Removal is the only
    way an entry disappears.

    Example:
        registry = RefRegistry()
        ref_id = registry.create(page)
        assert registry.resolve(ref_id) is page
        registry.remove(ref_id)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._last_id = 0
        self._refs: dict[str, Any] = {}

    def create(self, obj: Any) -> str:
        """Store ``obj`` under a new id and return the id."""
        with self._lock:
            self._last_id += 1
            ref_id = str(self._last_id)
            self._refs[ref_id] = obj
        logger.debug(f"Registered ref {ref_id} ({type(obj).__name__})")
        return ref_id

    def resolve(self, ref_id: Any) -> Any:
        """Return the object stored under ``ref_id``.

        Raises:
            UnknownRefError: If the id is not live
        """
        key = str(ref_id)
        with self._lock:
            try:
                return self._refs[key]
            except KeyError:
                raise UnknownRefError(key) from None

    def remove(self, ref_id: Any) -> bool:
        """Delete the entry for ``ref_id``.

        Returns:
            True if an entry was removed, False if it was already gone
        """
        key = str(ref_id)
        with self._lock:
            removed = key in self._refs
            self._refs.pop(key, None)
        if removed:
            logger.debug(f"Removed ref {key}")
        return removed

    def __contains__(self, ref_id: object) -> bool:
        with self._lock:
            return str(ref_id) in self._refs

    def __len__(self) -> int:
        with self._lock:
            return len(self._refs)

    @property
    def ids(self) -> list[str]:
        with self._lock:
            return list(self._refs)
