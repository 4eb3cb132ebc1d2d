#!/usr/bin/env python3
"""
Recitation Display – Flask + Socket.IO Interface
------------------------------------------------
Responsibilities:
- Serves the display and control pages from the public directory
- Exposes REST APIs (bootstrap, catalogues, state, logs, health)
- Bridges the Socket.IO "message" event to the DisplayCoordinator

Notes:
- This file does NOT start the liveness monitor; use recitation_display_main.py.
- One coordinator per app, built in create_app() and kept in app.extensions.
"""

import os
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from flask import Blueprint, Flask, current_app, jsonify, redirect, request, send_from_directory
from flask_socketio import Namespace, SocketIO

from recitation_display.rd_config import PUBLIC_DIR
from recitation_display.rd_content import ContentStore, load_content_store, load_display_config
from recitation_display.rd_coordinator import DisplayCoordinator
from recitation_display.rd_models import Role, utcnow_iso
from recitation_display.rd_version import VERSION

EXTENSION_KEY = "recitation_display"

# Track when this process started
START_TIME = utcnow_iso()

bp = Blueprint("recitation_display", __name__)


def _coordinator() -> DisplayCoordinator:
    return current_app.extensions[EXTENSION_KEY]


# ---------------------------- Pages ----------------------------

@bp.get("/")
def index():
    return redirect("/display")


@bp.get("/display")
def display_page():
    """Full-screen projector page."""
    return send_from_directory(current_app.config["PUBLIC_DIR"], "display.html")


@bp.get("/control")
def control_page():
    """Phone/tablet remote."""
    return send_from_directory(current_app.config["PUBLIC_DIR"], "control.html")


@bp.get("/health")
def health():
    """Health check endpoint - shows version and service status"""
    coordinator = _coordinator()
    return jsonify({
        "service": "recitation-display",
        "version": VERSION,
        "pid": os.getpid(),
        "started_at": START_TIME,
        "uptime": _calculate_uptime(START_TIME),
        "sections": coordinator.store.total_sections(),
        "supplications": len(coordinator.store.list_supplications()),
        "sessions": coordinator.registry.counts(),
        "status": "healthy",
    })


def _calculate_uptime(start_time_iso: str) -> str:
    try:
        start = datetime.fromisoformat(start_time_iso)
    except ValueError:
        return "Unknown"
    delta = datetime.now(timezone.utc) - start
    hours, remainder = divmod(int(delta.total_seconds()), 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}h {minutes}m {seconds}s"


# ---------------------------- Content --------------------------

@bp.get("/api/bootstrap")
def api_bootstrap():
    """Snapshot for a page that has not opened its socket yet (?role=controller|viewer)."""
    role_arg = (request.args.get("role") or "").strip().lower()
    role = Role.CONTROLLER if role_arg in ("controller", "control") else Role.VIEWER
    return jsonify(_coordinator().bootstrap_for_role(role))


@bp.get("/api/sections")
def api_sections():
    return jsonify({"sections": _coordinator().store.list_sections()})


@bp.get("/api/supplications")
def api_supplications():
    return jsonify({"supplications": _coordinator().store.list_supplications()})


@bp.get("/api/scripture")
def api_scripture():
    """Clamped single-verse lookup; omitted arguments use the current position."""
    payload = _coordinator().scripture_lookup(request.args.get("section"), request.args.get("sub"))
    return jsonify(payload)


# ---------------------------- State ----------------------------

@bp.get("/api/state")
def api_state():
    return jsonify(_coordinator().snapshot())


# ---------------------------- Logs -----------------------------

@bp.get("/api/logs")
def api_logs():
    """Return recent logs (limit=n). Front-end polls this periodically."""
    try:
        limit = int(request.args.get("limit", 100))
    except ValueError:
        limit = 100
    return jsonify({"events": list(_coordinator().logs)[:limit]})


@bp.post("/api/logs/clear")
def api_logs_clear():
    """Clear the in-memory system log."""
    _coordinator().clear_logs()
    return jsonify({"success": True})


# ---------------------------- Socket.IO ------------------------

class DisplayNamespace(Namespace):
    """
    Default-namespace handlers. Every socket is one session; request.sid is
    the transport handle the coordinator stores and later emits to.
    """

    def __init__(self, namespace: str, coordinator: DisplayCoordinator):
        super().__init__(namespace)
        self.coordinator = coordinator

    def on_connect(self, auth=None):
        self.coordinator.connect(request.sid)

    def on_disconnect(self, reason=None):
        self.coordinator.disconnect(request.sid)

    def on_message(self, data):
        self.coordinator.handle_message(request.sid, data)

    def on_json(self, data):
        self.coordinator.handle_message(request.sid, data)


# ---------------------------- App factory ----------------------

def create_app(
    store: Optional[ContentStore] = None,
    display_config: Optional[Dict[str, Any]] = None,
    urls: Optional[Dict[str, str]] = None,
    clock: Callable[[], float] = time.monotonic,
    public_dir: str = PUBLIC_DIR,
    **coordinator_options: Any,
) -> Tuple[Flask, SocketIO]:
    """
    Build the Flask app, its Socket.IO server and the coordinator behind both.

    Content and display config are loaded from the data directory unless
    passed in. Remaining keyword arguments go to DisplayCoordinator
    (controller_timeout_secs, heartbeat_interval_secs, monitor_interval_secs).
    """
    app = Flask(__name__)
    app.config["PUBLIC_DIR"] = public_dir

    socketio = SocketIO(app, cors_allowed_origins="*", async_mode="threading")

    def emit(handle: Any, message: Dict[str, Any]) -> None:
        socketio.emit("message", message, to=handle, namespace="/")

    coordinator = DisplayCoordinator(
        store if store is not None else load_content_store(),
        emit,
        display_config=display_config if display_config is not None else load_display_config(),
        clock=clock,
        urls=urls,
        **coordinator_options,
    )
    app.extensions[EXTENSION_KEY] = coordinator

    app.register_blueprint(bp)
    socketio.on_namespace(DisplayNamespace("/", coordinator))
    return app, socketio


def get_coordinator(app: Flask) -> DisplayCoordinator:
    return app.extensions[EXTENSION_KEY]
