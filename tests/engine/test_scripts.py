"""Tests for rendering dispatcher scripts."""

from pathlib import Path

import pytest

import phantom_bridge
from phantom_bridge.engine.scripts import (
    DispatcherScript,
    dispatcher_script,
    phantomjs_script,
    python_script,
)
from phantom_bridge.runtime.discovery import EngineType
from phantom_bridge.runtime.protocol import Operations


class TestPhantomJSScript:
    """Tests for the JavaScript dispatcher."""

    def test_routes_every_operation(self):
        """Test that the shim routes every path in the RPC table."""
        source = phantomjs_script()

        for operation in Operations.all():
            assert f"'{operation.path}'" in source

    def test_reads_port_from_env(self):
        """Test that the shim listens on the port from the environment."""
        assert "system.env['PORT']" in phantomjs_script()

    def test_dispatcher_script_suffix(self):
        """Test that PhantomJS gets a .js file."""
        script = dispatcher_script(EngineType.PHANTOMJS)

        assert script == DispatcherScript(source=phantomjs_script(), suffix=".js")


class TestPythonScript:
    """Tests for the Python bootstrap."""

    def test_bootstrap_imports_server(self):
        """Test that the bootstrap starts the dispatcher server."""
        source = python_script()

        assert "from phantom_bridge.engine.server import main" in source
        assert source.rstrip().endswith("main()")

    def test_bootstrap_points_at_package_root(self):
        """Test that the bootstrap imports this copy of the package."""
        package_root = Path(phantom_bridge.__file__).resolve().parent.parent

        assert repr(str(package_root)) in python_script()

    def test_bootstrap_compiles(self):
        """Test that the rendered bootstrap is valid Python."""
        compile(python_script(), "<bootstrap>", "exec")

    def test_dispatcher_script_by_name(self):
        """Test that engines can be named by string."""
        script = dispatcher_script("python")

        assert script.suffix == ".py"

    def test_unknown_engine(self):
        """Test that unknown engines are rejected."""
        with pytest.raises(ValueError, match="Unknown engine"):
            dispatcher_script("rhino")
