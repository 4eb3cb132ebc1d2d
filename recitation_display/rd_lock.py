"""
Control lock: which controller session may change what the display shows.

First controller to declare itself wins. When the holder goes away (disconnect
or liveness timeout) the next controller in connection order is promoted on
the spot, without having to ask again.
"""

import logging
import time
from typing import Callable, Optional

from .rd_models import LockStatus, SessionInfo
from .rd_registry import SessionRegistry

logger = logging.getLogger(__name__)


def _module_log(msg: str, level: str = "info") -> None:
    getattr(logger, level, logger.info)(msg)


class ControlLock:
    """Single-holder authorization over the shared position state."""

    def __init__(
        self,
        registry: SessionRegistry,
        clock: Callable[[], float] = time.monotonic,
        on_change: Optional[Callable[[], None]] = None,
        log: Optional[Callable[..., None]] = None,
    ) -> None:
        self._registry = registry
        self._clock = clock
        self._on_change = on_change
        self._log = log or _module_log
        self.holder_id: Optional[int] = None

    @property
    def is_held(self) -> bool:
        return self.holder_id is not None

    def holder(self) -> Optional[SessionInfo]:
        return self._registry.get(self.holder_id)

    def is_holder(self, session: Optional[SessionInfo]) -> bool:
        return session is not None and self.holder_id is not None and session.session_id == self.holder_id

    def claim(self, session: SessionInfo) -> bool:
        """Take the lock if it is free. Returns True only when ownership changed."""
        if not session.is_controller or self.holder_id is not None:
            return False
        session.last_seen = self._clock()
        self.holder_id = session.session_id
        self._log(f"Controller #{session.session_id} is now active")
        self._changed()
        return True

    def refresh(self, session: SessionInfo) -> bool:
        """Liveness refresh; only the holder's timestamp counts."""
        if not self.is_holder(session):
            return False
        session.last_seen = self._clock()
        return True

    def release(self, reason: str, exclude_session_id: Optional[int] = None) -> Optional[int]:
        """
        Drop the current holder and promote the first remaining controller
        (other than exclude_session_id). Returns the promoted id, if any.
        """
        if self.holder_id is None:
            return None

        released_id = self.holder_id
        self.holder_id = None
        self._log(f"Released controller #{released_id} ({reason})")

        for session in self._registry.controllers():
            if session.session_id == exclude_session_id:
                continue
            self.holder_id = session.session_id
            session.last_seen = self._clock()
            self._log(f"Promoted controller #{session.session_id} after release")
            break

        self._changed()
        return self.holder_id

    def status_for(self, session: Optional[SessionInfo]) -> LockStatus:
        if session is None or not session.is_controller:
            return LockStatus()
        active = session.session_id == self.holder_id
        return LockStatus(
            is_active_controller=active,
            locked_by_another=self.holder_id is not None and not active,
        )

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
