"""
Session registry: every live real-time connection, its role and liveness.

Sessions are kept in connection order. The control lock relies on that order
when it picks the next controller to promote.
"""

import itertools
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterator, Optional

from .rd_models import Role, SessionInfo


class SessionRegistry:
    """In-memory table of connected sessions (no locking; the coordinator serializes access)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._ids = itertools.count(1)
        self._sessions: "OrderedDict[int, SessionInfo]" = OrderedDict()

    def register(self, handle: Any = None) -> SessionInfo:
        """Create a session with a fresh id; ids are never reused."""
        session = SessionInfo(session_id=next(self._ids), last_seen=self._clock())
        session._handle = handle
        self._sessions[session.session_id] = session
        return session

    def set_role(self, session_id: int, role: Role) -> bool:
        """
        Assign a role once. Later calls are ignored so a session cannot flip
        between viewer and controller mid-connection.
        """
        session = self._sessions.get(session_id)
        if session is None or session.role is not Role.UNSPECIFIED:
            return False
        session.role = role
        return True

    def unregister(self, session_id: int) -> Optional[SessionInfo]:
        return self._sessions.pop(session_id, None)

    def get(self, session_id: Optional[int]) -> Optional[SessionInfo]:
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    def find_by_handle(self, handle: Any) -> Optional[SessionInfo]:
        for session in self._sessions.values():
            if session._handle == handle:
                return session
        return None

    def controllers(self) -> Iterator[SessionInfo]:
        return (s for s in self._sessions.values() if s.role is Role.CONTROLLER)

    def __iter__(self) -> Iterator[SessionInfo]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def counts(self) -> Dict[str, int]:
        controllers = sum(1 for s in self._sessions.values() if s.role is Role.CONTROLLER)
        viewers = sum(1 for s in self._sessions.values() if s.role is Role.VIEWER)
        return {"total": len(self._sessions), "controllers": controllers, "viewers": viewers}
