"""Readiness probing for a freshly spawned engine."""

from __future__ import annotations

import logging
import time
from typing import Callable

from phantom_bridge.errors import ReadinessTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_PROBE_INTERVAL = 1.0
DEFAULT_PROBE_DEADLINE = 30.0


class ReadinessProber:
    """Poll a liveness check until it succeeds or a deadline passes.

    A failing probe, whether it raised or returned False, only means the
    engine is not ready yet. Only the deadline is fatal.

    Example:
        prober = ReadinessProber(client.ping, interval=0.5, deadline=10.0)
        prober.wait()
    """

    def __init__(
        self,
        probe: Callable[[], bool],
        interval: float = DEFAULT_PROBE_INTERVAL,
        deadline: float = DEFAULT_PROBE_DEADLINE,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._probe = probe
        self._interval = interval
        self._deadline = deadline
        self._clock = clock
        self._sleep = sleep

    def wait(self) -> int:
        """Block until the probe succeeds.

        Returns:
            Number of probe attempts made

        Raises:
            ReadinessTimeoutError: If no probe succeeded before the deadline
        """
        expires_at = self._clock() + self._deadline
        attempts = 0

        while True:
            attempts += 1
            if self._attempt():
                logger.debug(f"Engine ready after {attempts} probe(s)")
                return attempts

            remaining = expires_at - self._clock()
            if remaining <= 0:
                break
            self._sleep(min(self._interval, remaining))
            if self._clock() >= expires_at:
                break

        raise ReadinessTimeoutError(
            f"engine did not become ready within {self._deadline}s",
            details={"attempts": attempts},
        )

    def _attempt(self) -> bool:
        try:
            return bool(self._probe())
        except Exception as e:
            logger.debug(f"Probe attempt failed: {e}")
            return False
