"""
State broadcaster: fans out state and lock-status messages to sessions.

Everything is a full-state push. The transport is a plain callable
emit(handle, message) supplied by the web layer, so this module never touches
Socket.IO directly.
"""

import logging
from typing import Any, Callable, Dict, Optional

from .rd_lock import ControlLock
from .rd_models import Role, SessionInfo
from .rd_registry import SessionRegistry

logger = logging.getLogger(__name__)

Emit = Callable[[Any, Dict[str, Any]], None]


class StateBroadcaster:
    def __init__(
        self,
        registry: SessionRegistry,
        control_lock: ControlLock,
        emit: Emit,
        log: Optional[Callable[..., None]] = None,
    ) -> None:
        self._registry = registry
        self._lock = control_lock
        self._emit = emit
        self._log = log

    # ----- single session -----

    def send(self, session: SessionInfo, message: Dict[str, Any]) -> bool:
        """Send one message; a failing transport is logged, never raised."""
        try:
            self._emit(session._handle, message)
            return True
        except Exception as e:
            text = f"Send failed to session #{session.session_id}: {e}"
            if self._log is not None:
                self._log(text, level="warning")
            else:
                logger.warning(text)
            return False

    def send_error(self, session: SessionInfo, message: str) -> None:
        self.send(session, {"type": "error", "message": message})

    def lock_status_message(self, session: SessionInfo) -> Dict[str, Any]:
        status = self._lock.status_for(session)
        return {
            "type": "lock-status",
            "controllerConnected": self._lock.is_held,
            "isActiveController": status.is_active_controller,
            "lockedByAnother": status.locked_by_another,
        }

    def connectivity_message(self) -> Dict[str, Any]:
        return {"type": "viewer-connectivity", "controllerConnected": self._lock.is_held}

    def send_lock_status(self, session: SessionInfo) -> None:
        """Controllers get their personal lock record; everyone else the connectivity flag."""
        if session.is_controller:
            self.send(session, self.lock_status_message(session))
        else:
            self.send(session, self.connectivity_message())

    # ----- fan-out -----

    def broadcast_state(self, position_state: Dict[str, Any], content_payload: Dict[str, Any]) -> int:
        message = {
            "type": "state-update",
            "positionState": position_state,
            "contentPayload": content_payload,
        }
        delivered = 0
        for session in self._registry:
            if self.send(session, message):
                delivered += 1
        return delivered

    def broadcast_lock_status(self) -> None:
        connectivity = self.connectivity_message()
        for session in self._registry:
            if session.is_controller:
                self.send(session, self.lock_status_message(session))
            elif session.role is Role.VIEWER:
                self.send(session, connectivity)
