"""Frame admission: interval throttle plus single-flight guard.

Frames that arrive while another frame is being processed, or sooner than
``frame_interval_ms`` after the last admitted frame, are dropped rather than
queued, so the engine always works on the freshest frame.
"""

import logging
import threading
import time
from typing import Callable, Optional

from .config_loader import ThrottleConfig

logger = logging.getLogger(__name__)


class FrameGate:
    """Non-blocking admission gate for incoming frames.

    Args:
        config: Throttle configuration. If None, uses model defaults.
        clock: Monotonic clock returning seconds (injectable for tests).
    """

    def __init__(
        self,
        config: Optional[ThrottleConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config if config is not None else ThrottleConfig()
        self._clock = clock
        self._in_flight = threading.Lock()
        self._last_admitted: Optional[float] = None

    @property
    def interval_seconds(self) -> float:
        return self.config.frame_interval_ms / 1000.0

    def try_acquire(self) -> bool:
        """Admit a frame if none is in flight and the interval has elapsed.

        Returns:
            True if the caller may process the frame and must later call
            :meth:`release`, False if the frame should be dropped.
        """
        if not self._in_flight.acquire(blocking=False):
            logger.debug("Frame dropped: previous frame still in flight")
            return False

        now = self._clock()
        if self._last_admitted is not None and now - self._last_admitted < self.interval_seconds:
            self._in_flight.release()
            return False

        self._last_admitted = now
        return True

    def release(self) -> None:
        """Mark the in-flight frame as finished.

        Raises:
            RuntimeError: If no frame is in flight.
        """
        self._in_flight.release()

    def is_busy(self) -> bool:
        return self._in_flight.locked()
