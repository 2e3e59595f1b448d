"""Shared fixtures for phantom-bridge tests."""

import os
import socket

import httpx
import pytest

from phantom_bridge.config import ENV_PREFIX, clear_config_cache
from phantom_bridge.engine.dispatcher import Dispatcher
from phantom_bridge.runtime.client import RPCClient


def dispatcher_transport(dispatcher: Dispatcher) -> httpx.MockTransport:
    """Serve httpx requests from an in-process dispatcher."""

    def handler(request: httpx.Request) -> httpx.Response:
        reply = dispatcher.dispatch(request.method, request.url.path, request.content)
        return httpx.Response(
            reply.status,
            content=reply.body,
            headers={"Content-Type": reply.content_type},
        )

    return httpx.MockTransport(handler)


@pytest.fixture
def dispatcher() -> Dispatcher:
    """A dispatcher with a fresh registry."""
    return Dispatcher()


@pytest.fixture
def client(dispatcher):
    """An RPC client wired to the in-process dispatcher."""
    rpc = RPCClient("http://localhost:20202", transport=dispatcher_transport(dispatcher))
    yield rpc
    rpc.close()


@pytest.fixture
def free_port() -> int:
    """A TCP port nothing is listening on right now."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point configuration at an empty directory with no env overrides."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key)
    monkeypatch.setenv(f"{ENV_PREFIX}CONFIG_DIR", str(tmp_path))
    clear_config_cache()
    yield tmp_path
    clear_config_cache()
