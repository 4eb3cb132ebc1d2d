"""
Recitation display tunables: bind address, controller liveness timings,
log ring size, and where content and page assets live.

Scalar settings can be overridden with RECITATION_DISPLAY_* environment variables;
the display-config defaults are merged under data/config.json instead.
"""

import os

ROOT_DIR: str = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Network
HOST: str = os.getenv("RECITATION_DISPLAY_HOST", "0.0.0.0")
PORT: int = int(os.getenv("RECITATION_DISPLAY_PORT", "5173"))
DEBUG: bool = bool(int(os.getenv("RECITATION_DISPLAY_DEBUG", "0")))

# Controller liveness
CONTROLLER_TIMEOUT_SECS: float = float(os.getenv("RECITATION_DISPLAY_CONTROLLER_TIMEOUT_SECS", "30"))
HEARTBEAT_INTERVAL_SECS: float = float(os.getenv("RECITATION_DISPLAY_HEARTBEAT_INTERVAL_SECS", "10"))
MONITOR_INTERVAL_SECS: float = float(os.getenv("RECITATION_DISPLAY_MONITOR_INTERVAL_SECS", "5"))

# Logs
LOG_MAX: int = int(os.getenv("RECITATION_DISPLAY_LOG_MAX", "1000"))

# Content + page assets
DATA_DIR: str = os.getenv("RECITATION_DISPLAY_DATA_DIR", os.path.join(ROOT_DIR, "data"))
QURAN_FILE: str = os.getenv("RECITATION_DISPLAY_QURAN_FILE", "")
PUBLIC_DIR: str = os.getenv("RECITATION_DISPLAY_PUBLIC_DIR", os.path.join(ROOT_DIR, "public"))

# Display config defaults (merged under data/config.json)
DEFAULT_DISPLAY_CONFIG = {
    "brandText": "Al Zahraa Centre",
    "logoPath": "",
    "accentColor": "#5f7a69",
    "safeMargin": "4vw",
}
