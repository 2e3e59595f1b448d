"""Host side of the bridge.

Supervises the engine subprocess and talks to its dispatcher with
JSON over HTTP. Engine objects are reached through remote handles.
"""

from phantom_bridge.runtime.protocol import (
    Envelope,
    OpenSettings,
    Operation,
    Operations,
    Rect,
)
from phantom_bridge.runtime.client import RPCClient
from phantom_bridge.runtime.discovery import (
    EngineInfo,
    EngineType,
    describe_engine,
    discover_binary,
)
from phantom_bridge.runtime.probe import ReadinessProber
from phantom_bridge.runtime.handle import Ref, WebPage
from phantom_bridge.runtime.process import Process, ProcessState

__all__ = [
    # Protocol
    "Envelope",
    "OpenSettings",
    "Operation",
    "Operations",
    "Rect",
    # Client
    "RPCClient",
    # Discovery
    "EngineInfo",
    "EngineType",
    "describe_engine",
    "discover_binary",
    # Readiness
    "ReadinessProber",
    # Handles
    "Ref",
    "WebPage",
    # Process
    "Process",
    "ProcessState",
]
