"""Dispatcher scripts injected into the engine process.

Scripts are rendered per run so the host binding and the dispatcher it
talks to always come from the same package version.
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Union

from phantom_bridge import __version__
from phantom_bridge.runtime.discovery import EngineType

SHIM_RESOURCE = "shim.js"

PYTHON_BOOTSTRAP = '''\
"""Dispatcher bootstrap generated by phantom-bridge {version}."""
import sys

sys.path.insert(0, {package_root!r})

from phantom_bridge.engine.server import main

main()
'''


@dataclass(frozen=True)
class DispatcherScript:
    """Source of a dispatcher and the file suffix its engine expects."""

    source: str
    suffix: str


def phantomjs_script() -> str:
    """Return the JavaScript dispatcher run by PhantomJS."""
    return resources.files(__package__).joinpath(SHIM_RESOURCE).read_text(encoding="utf-8")


def python_script() -> str:
    """Return a bootstrap that serves the Python dispatcher.

    The bootstrap puts this package's parent directory first on
    ``sys.path`` so the engine imports the same copy as the host.
    """
    package_root = str(Path(__file__).resolve().parent.parent.parent)
    return PYTHON_BOOTSTRAP.format(version=__version__, package_root=package_root)


def dispatcher_script(engine: Union[str, EngineType]) -> DispatcherScript:
    """Render the dispatcher script for ``engine``."""
    engine = EngineType.parse(engine)
    if engine is EngineType.PYTHON:
        return DispatcherScript(source=python_script(), suffix=".py")
    return DispatcherScript(source=phantomjs_script(), suffix=".js")
