#!/usr/bin/env python3
"""
Recitation Display – Main Application Launcher
-------------------------------------------------
Starts:
  1) The controller liveness monitor (background thread)
  2) The Flask + Socket.IO web server (display, control, REST API)

Key characteristics:
- Content and display config loaded once from the data directory
- Clean signal handling (Ctrl+C and SIGTERM)
- Graceful shutdown: the monitor is always stopped on exit
- CLI flags with environment fallbacks

CLI:
  python recitation_display_main.py --host 0.0.0.0 --port 5173 --debug 0
ENV:
  RECITATION_DISPLAY_HOST, RECITATION_DISPLAY_PORT, RECITATION_DISPLAY_DEBUG
"""

import argparse
import logging
import signal
import sys

from recitation_display.rd_config import DATA_DIR, DEBUG, HOST, PORT
from recitation_display.rd_content import load_content_store, load_display_config
from recitation_display.rd_network import build_urls, get_lan_ipv4
from recitation_display.rd_version import VERSION
from recitation_display_web import create_app, get_coordinator


def _signal_handler(signum, frame):
    """Turn SIGTERM into the same exit path as Ctrl+C."""
    del frame
    raise KeyboardInterrupt(f"signal {signum}")


def _parse_args() -> argparse.Namespace:
    """Parse CLI args with environment-based defaults."""
    parser = argparse.ArgumentParser(description="Recitation Display - Server Launcher")
    parser.add_argument("--host", default=HOST, help="Bind host (default env RECITATION_DISPLAY_HOST)")
    parser.add_argument("--port", type=int, default=PORT, help="Port (default env RECITATION_DISPLAY_PORT)")
    parser.add_argument("--debug", type=lambda v: bool(int(v)), default=DEBUG, help="Flask debug (0/1)")
    return parser.parse_args()


def main() -> int:
    """Load content, boot the monitor and the server, shut down cleanly."""
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    signal.signal(signal.SIGINT, signal.default_int_handler)
    try:
        signal.signal(signal.SIGTERM, _signal_handler)
    except (AttributeError, ValueError):
        # Not available on every platform
        pass

    store = load_content_store(DATA_DIR)
    display_config = load_display_config(DATA_DIR)
    urls = build_urls(get_lan_ipv4(), args.port)

    app, socketio = create_app(store=store, display_config=display_config, urls=urls)
    coordinator = get_coordinator(app)

    print(f"=== Recitation Display {VERSION} ===")
    print(f"Display: {urls['displayUrl']}")
    print(f"Control: {urls['controlUrl']}")
    print("Press Ctrl+C to stop")

    coordinator.log(f"Loaded {len(store.list_supplications())} dua file(s), dataset: {store.dataset.get('type')}")
    coordinator.log(f"Display URL: {urls['displayUrl']}")
    coordinator.log(f"Control URL: {urls['controlUrl']}")

    coordinator.monitor.start()
    try:
        # use_reloader=False prevents a second process with its own coordinator
        socketio.run(app, host=args.host, port=args.port, debug=args.debug,
                     use_reloader=False, allow_unsafe_werkzeug=True)
    except KeyboardInterrupt:
        pass
    finally:
        coordinator.log("Shutting down Recitation Display…")
        coordinator.monitor.stop()
        print("System shutdown complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
