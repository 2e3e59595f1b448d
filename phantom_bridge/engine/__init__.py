"""Engine side of the bridge.

The dispatcher maps RPC paths to handlers over a registry of live engine
objects. ``shim.js`` is the same dispatcher for PhantomJS; the Python
modules here serve it from a plain Python process.
"""

from phantom_bridge.engine.registry import RefRegistry, UnknownRefError
from phantom_bridge.engine.pages import MemoryPage, PageClosedError
from phantom_bridge.engine.dispatcher import (
    DEFAULT_ROUTES,
    Dispatcher,
    EngineContext,
    Reply,
    Request,
)
from phantom_bridge.engine.server import create_server, serve

__all__ = [
    # Registry
    "RefRegistry",
    "UnknownRefError",
    # Pages
    "MemoryPage",
    "PageClosedError",
    # Dispatcher
    "DEFAULT_ROUTES",
    "Dispatcher",
    "EngineContext",
    "Reply",
    "Request",
    # Server
    "create_server",
    "serve",
]
