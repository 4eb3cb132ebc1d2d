"""
Controller liveness monitor.

A background thread that periodically checks whether the lock holder is still
sending heartbeats, and releases the lock when it has gone quiet for longer
than the controller timeout. Call .stop() from your main on exit.
"""

import logging
import threading
import time
from typing import Callable, Optional

from .rd_config import CONTROLLER_TIMEOUT_SECS, MONITOR_INTERVAL_SECS
from .rd_lock import ControlLock
from .rd_registry import SessionRegistry

logger = logging.getLogger(__name__)


class LivenessMonitor:
    """Periodic sweep over the lock holder's last-contact timestamp."""

    def __init__(
        self,
        registry: SessionRegistry,
        control_lock: ControlLock,
        guard: threading.RLock,
        clock: Callable[[], float] = time.monotonic,
        timeout_secs: float = CONTROLLER_TIMEOUT_SECS,
        interval_secs: float = MONITOR_INTERVAL_SECS,
    ) -> None:
        self._registry = registry
        self._lock = control_lock
        self._guard = guard
        self._clock = clock
        self.timeout_secs = timeout_secs
        self.interval_secs = interval_secs
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def sweep(self) -> Optional[str]:
        """
        One monitor tick. Returns the release reason when the holder was
        dropped, None otherwise.
        """
        with self._guard:
            if not self._lock.is_held:
                return None

            holder = self._lock.holder()
            if holder is None:
                reason = "active session missing"
                self._lock.release(reason)
                return reason

            elapsed = self._clock() - holder.last_seen
            if elapsed > self.timeout_secs:
                # The timed-out session stays connected but is skipped for this promotion
                reason = "heartbeat timeout"
                self._lock.release(reason, exclude_session_id=holder.session_id)
                return reason
            return None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()

        def run():
            while not self._stop.wait(self.interval_secs):
                try:
                    self.sweep()
                except Exception as e:
                    logger.error(f"Liveness sweep failed: {e}")

        self._thread = threading.Thread(target=run, name="liveness-monitor", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
