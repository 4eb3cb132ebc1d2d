"""
Coordinator: the system's in-memory state + operations.
- Owns the position state, session registry and control lock
- Routes inbound real-time messages (authorization checked once, centrally)
- Builds bootstrap snapshots for sockets and HTTP
- Keeps a structured in-memory log for the UI

Every public entry point runs under one re-entrant guard, so a message
handler, a disconnect and a monitor tick can never interleave.
"""

import logging
import threading
import time
from collections import deque
from typing import Any, Callable, Dict, Optional

from .rd_broadcast import Emit, StateBroadcaster
from .rd_commands import (
    Command, DeclareRole, Heartbeat, MessageParseError, RequestBootstrap,
    SetMode, SetScripturePosition, SetSupplicationPosition, Step, parse_message,
)
from .rd_config import (
    CONTROLLER_TIMEOUT_SECS, DEFAULT_DISPLAY_CONFIG, HEARTBEAT_INTERVAL_SECS,
    LOG_MAX, MONITOR_INTERVAL_SECS,
)
from .rd_content import ContentStore
from .rd_lock import ControlLock
from .rd_models import PositionState, Role, SessionInfo, utcnow_iso
from .rd_monitor import LivenessMonitor
from .rd_position import (
    apply_step, clamp_scripture, derive_content_payload, initial_state,
    scripture_payload, state_summary, with_domain, with_scripture, with_supplication,
)
from .rd_registry import SessionRegistry
from .rd_version import VERSION

logger = logging.getLogger(__name__)

NOT_A_CONTROLLER = "Only control clients can update state."
LOCKED_BY_ANOTHER = "Controller lock active on another device."
INVALID_MESSAGE = "Invalid JSON message"


class DisplayCoordinator:
    """Single owner of display state, sessions and the control lock."""

    def __init__(
        self,
        store: ContentStore,
        emit: Emit,
        display_config: Optional[Dict[str, Any]] = None,
        clock: Callable[[], float] = time.monotonic,
        controller_timeout_secs: float = CONTROLLER_TIMEOUT_SECS,
        heartbeat_interval_secs: float = HEARTBEAT_INTERVAL_SECS,
        monitor_interval_secs: float = MONITOR_INTERVAL_SECS,
        urls: Optional[Dict[str, str]] = None,
    ) -> None:
        self.store = store
        self.display_config = display_config if display_config is not None else dict(DEFAULT_DISPLAY_CONFIG)
        self.urls = urls or {"controlUrl": "", "displayUrl": ""}
        self.heartbeat_interval_secs = heartbeat_interval_secs

        # Serializes every read/write of the shared state below
        self.guard = threading.RLock()

        # System log
        self.logs: deque = deque(maxlen=LOG_MAX)

        self.registry = SessionRegistry(clock)
        self.control_lock = ControlLock(self.registry, clock, on_change=self._lock_changed, log=self.log)
        self.broadcaster = StateBroadcaster(self.registry, self.control_lock, emit, log=self.log)
        self.monitor = LivenessMonitor(
            self.registry, self.control_lock, self.guard, clock,
            timeout_secs=controller_timeout_secs, interval_secs=monitor_interval_secs,
        )

        self.state: PositionState = initial_state(store)

        self._handlers = {
            DeclareRole: self._on_declare_role,
            Heartbeat: self._on_heartbeat,
            RequestBootstrap: self._on_request_bootstrap,
            SetMode: self._on_set_mode,
            SetScripturePosition: self._on_set_scripture,
            SetSupplicationPosition: self._on_set_supplication,
            Step: self._on_step,
        }

    # ---------------- Utilities ----------------

    def log(self, msg: str, level: str = "info", source: str = "controller") -> None:
        """Append a structured log entry and forward it to the module logger."""
        entry = {"ts": utcnow_iso(), "level": level, "source": source, "msg": msg}
        self.logs.appendleft(entry)
        getattr(logger, level, logger.info)(msg)

    def clear_logs(self) -> None:
        self.logs.clear()
        self.log("System logs cleared by user")

    # ---------------- Connections ----------------

    def connect(self, handle: Any) -> SessionInfo:
        with self.guard:
            session = self.registry.register(handle)
            self.log(f"Session #{session.session_id} connected", source="session")
            self.broadcaster.send(session, {"type": "connected", "sessionId": session.session_id})
            return session

    def disconnect(self, handle: Any) -> Optional[SessionInfo]:
        """Remove the session; if it held the lock, release and promote the next controller."""
        with self.guard:
            session = self.registry.find_by_handle(handle)
            if session is None:
                return None
            self.registry.unregister(session.session_id)
            self.log(f"Session #{session.session_id} ({session.role.value}) disconnected", source="session")
            if self.control_lock.holder_id == session.session_id:
                self.control_lock.release("socket disconnected", exclude_session_id=session.session_id)
            return session

    # ---------------- Command routing ----------------

    def handle_message(self, handle: Any, raw: Any) -> None:
        """Parse and route one inbound payload from the session behind handle."""
        with self.guard:
            session = self.registry.find_by_handle(handle)
            if session is None:
                return
            try:
                command = parse_message(raw)
            except MessageParseError as e:
                self.log(f"Rejected malformed message from session #{session.session_id}: {e}",
                         level="warning", source="session")
                self.broadcaster.send_error(session, INVALID_MESSAGE)
                return
            if command is None:
                return
            self.dispatch(session, command)

    def dispatch(self, session: SessionInfo, command: Command) -> None:
        with self.guard:
            if command.requires_lock_holder:
                if not self._authorize(session):
                    return
                self.control_lock.refresh(session)
            self._handlers[type(command)](session, command)

    def _authorize(self, session: SessionInfo) -> bool:
        """Only the lock holder may mutate; everyone else gets an error plus a status resync."""
        if not session.is_controller:
            self.broadcaster.send_error(session, NOT_A_CONTROLLER)
            self.broadcaster.send_lock_status(session)
            return False
        if not self.control_lock.is_holder(session):
            self.broadcaster.send_error(session, LOCKED_BY_ANOTHER)
            self.broadcaster.send_lock_status(session)
            return False
        return True

    def _on_declare_role(self, session: SessionInfo, command: DeclareRole) -> None:
        if self.registry.set_role(session.session_id, command.role):
            self.log(f"Session #{session.session_id} declared role {command.role.value}", source="session")
        if session.is_controller:
            self.control_lock.claim(session)
        self.send_bootstrap(session)

    def _on_heartbeat(self, session: SessionInfo, command: Heartbeat) -> None:
        self.control_lock.refresh(session)

    def _on_request_bootstrap(self, session: SessionInfo, command: RequestBootstrap) -> None:
        self.send_bootstrap(session)

    def _on_set_mode(self, session: SessionInfo, command: SetMode) -> None:
        self._apply(session, with_domain(self.store, self.state, command.mode))

    def _on_set_scripture(self, session: SessionInfo, command: SetScripturePosition) -> None:
        self._apply(session, with_scripture(self.store, self.state, command.section_index, command.sub_index))

    def _on_set_supplication(self, session: SessionInfo, command: SetSupplicationPosition) -> None:
        self._apply(session, with_supplication(self.store, self.state, command.handle, command.line_index))

    def _on_step(self, session: SessionInfo, command: Step) -> None:
        self._apply(session, apply_step(self.store, self.state, command.direction))

    def _apply(self, session: SessionInfo, next_state: PositionState) -> bool:
        """Store next_state and broadcast it, unless nothing actually changed."""
        if next_state == self.state:
            return False
        self.state = next_state
        self.log(f"controller #{session.session_id} -> {state_summary(next_state)}", source="state")
        self.broadcast_state()
        return True

    # ---------------- Broadcasts ----------------

    def content_payload(self) -> Dict[str, Any]:
        return derive_content_payload(self.store, self.state)

    def broadcast_state(self) -> None:
        with self.guard:
            self.broadcaster.broadcast_state(self.state.to_dict(), self.content_payload())

    def _lock_changed(self) -> None:
        self.broadcaster.broadcast_lock_status()

    # ---------------- Bootstrap ----------------

    def bootstrap_payload(self, session: SessionInfo) -> Dict[str, Any]:
        with self.guard:
            status = self.control_lock.status_for(session)
            return {
                "type": "bootstrap",
                "positionState": self.state.to_dict(),
                "contentPayload": self.content_payload(),
                "sections": self.store.list_sections(),
                "supplications": self.store.list_supplications(),
                "config": self.display_config,
                "dataset": dict(self.store.dataset),
                "connectionInfo": {
                    "sessionId": session.session_id if session.session_id > 0 else None,
                    "controllerConnected": self.control_lock.is_held,
                    "isActiveController": status.is_active_controller,
                    "lockedByAnother": status.locked_by_another,
                    "controlUrl": self.urls.get("controlUrl", ""),
                    "displayUrl": self.urls.get("displayUrl", ""),
                    "controllerTimeoutMs": int(self.monitor.timeout_secs * 1000),
                    "heartbeatIntervalMs": int(self.heartbeat_interval_secs * 1000),
                    "sessions": self.registry.counts(),
                },
            }

    def bootstrap_for_role(self, role: Role) -> Dict[str, Any]:
        """Point-in-time snapshot for a client that has not connected a socket yet."""
        return self.bootstrap_payload(SessionInfo(session_id=-1, role=role))

    def send_bootstrap(self, session: SessionInfo) -> None:
        self.broadcaster.send(session, self.bootstrap_payload(session))

    # ---------------- Read-only helpers for HTTP ----------------

    def scripture_lookup(self, section_index: Any = None, sub_index: Any = None) -> Dict[str, Any]:
        """Clamped single-verse payload; missing arguments default to the current position."""
        with self.guard:
            current = self.state.scripture
            position = clamp_scripture(
                self.store,
                current.section_index if section_index is None else section_index,
                current.sub_index if sub_index is None else sub_index,
            )
            return scripture_payload(self.store, position)

    def snapshot(self) -> Dict[str, Any]:
        """Current system state consumed by the status page."""
        with self.guard:
            return {
                "positionState": self.state.to_dict(),
                "contentPayload": self.content_payload(),
                "holder": self.control_lock.holder_id,
                "sessions": [
                    dict(s.to_dict(), isHolder=s.session_id == self.control_lock.holder_id)
                    for s in self.registry
                ],
                "counts": self.registry.counts(),
                "version": VERSION,
            }
