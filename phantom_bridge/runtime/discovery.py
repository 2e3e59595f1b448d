"""
Engine discovery.

Locates the executable that runs the injected dispatcher script for each
supported engine and reports its version.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from phantom_bridge.errors import SpawnError

logger = logging.getLogger(__name__)


class EngineType(Enum):
    """Script engines the supervisor knows how to drive."""

    PHANTOMJS = "phantomjs"
    PYTHON = "python"

    @classmethod
    def parse(cls, value: Union[str, "EngineType"]) -> "EngineType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            known = ", ".join(e.value for e in cls)
            raise ValueError(f"Unknown engine: {value} (expected one of: {known})")


@dataclass
class EngineInfo:
    """Information about a discovered engine binary."""

    type: EngineType
    executable: str
    version: Optional[str] = None

    @property
    def display_name(self) -> str:
        version_str = f" v{self.version}" if self.version else ""
        return f"{self.type.value}{version_str}"


DEFAULT_BIN_PATH = "phantomjs"

# Overrides PATH lookup for the PhantomJS binary
PHANTOMJS_BIN_ENV_VAR = "PHANTOMJS_BIN"


def discover_binary(
    engine: Union[str, EngineType] = EngineType.PHANTOMJS,
    explicit: Optional[str] = None,
) -> str:
    """
    Find the executable for ``engine``.

    Args:
        engine: Engine type
        explicit: Path configured by the caller; used as-is when it resolves

    Returns:
        Path to the executable

    Raises:
        SpawnError: If no executable can be found
    """
    engine = EngineType.parse(engine)

    if explicit:
        resolved = shutil.which(explicit) or (explicit if Path(explicit).is_file() else None)
        if resolved:
            return resolved
        raise SpawnError(f"Engine binary not found: {explicit}")

    if engine is EngineType.PYTHON:
        return sys.executable

    env_bin = os.environ.get(PHANTOMJS_BIN_ENV_VAR)
    if env_bin:
        return discover_binary(engine, env_bin)

    path = shutil.which(DEFAULT_BIN_PATH)
    if path:
        logger.info(f"Discovered engine binary: {path}")
        return path

    raise SpawnError(
        "No PhantomJS binary found. Install phantomjs, set "
        f"{PHANTOMJS_BIN_ENV_VAR}, or use the python engine."
    )


def get_binary_version(executable: str, timeout: float = 5.0) -> Optional[str]:
    """Return the first token printed by ``executable --version``."""
    try:
        result = subprocess.run(
            [executable, "--version"],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Failed to get version for {executable}: {e}")
        return None

    # Python prints "Python 3.x.y"; phantomjs prints "2.1.1"
    output = (result.stdout or result.stderr).strip()
    if not output:
        return None
    tokens = output.split()
    return tokens[-1] if tokens[0].lower() == "python" and len(tokens) > 1 else tokens[0]


def describe_engine(
    engine: Union[str, EngineType] = EngineType.PHANTOMJS,
    explicit: Optional[str] = None,
) -> EngineInfo:
    """Discover an engine and collect its version."""
    engine = EngineType.parse(engine)
    executable = discover_binary(engine, explicit)
    return EngineInfo(type=engine, executable=executable, version=get_binary_version(executable))
