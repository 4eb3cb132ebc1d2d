"""
Dataclasses and small model helpers used throughout the system.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict


def utcnow_iso() -> str:
    """UTC timestamp in ISO 8601 format (seconds precision)."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class Role(str, Enum):
    UNSPECIFIED = "unspecified"
    VIEWER = "viewer"
    CONTROLLER = "controller"


class Domain(str, Enum):
    SCRIPTURE = "scripture"
    SUPPLICATION = "supplication"


class Direction(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"


@dataclass
class SessionInfo:
    """
    Represents one real-time connection.

    Note: _handle is the transport address (Socket.IO sid); not serialized.
    """
    session_id: int
    role: Role = Role.UNSPECIFIED
    last_seen: float = 0.0
    connected_at: str = field(default_factory=utcnow_iso)
    _handle: Any = field(default=None, repr=False, compare=False)

    @property
    def is_controller(self) -> bool:
        return self.role is Role.CONTROLLER

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "role": self.role.value,
            "connectedAt": self.connected_at,
        }


@dataclass(frozen=True)
class ScripturePosition:
    section_index: int = 1
    sub_index: int = 1


@dataclass(frozen=True)
class SupplicationPosition:
    handle: str = ""
    line_index: int = 1


@dataclass(frozen=True)
class PositionState:
    """
    The single shared cursor.

    Both domain positions are kept while the other domain is active so that
    switching back resumes where it left off.
    """
    domain: Domain = Domain.SCRIPTURE
    scripture: ScripturePosition = field(default_factory=ScripturePosition)
    supplication: SupplicationPosition = field(default_factory=SupplicationPosition)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.domain.value,
            "scripture": {
                "sectionIndex": self.scripture.section_index,
                "subIndex": self.scripture.sub_index,
            },
            "supplication": {
                "handle": self.supplication.handle,
                "lineIndex": self.supplication.line_index,
            },
        }


@dataclass(frozen=True)
class LockStatus:
    is_active_controller: bool = False
    locked_by_another: bool = False


@dataclass(frozen=True)
class LookupResult:
    """What the content store returns for a single position."""
    text: str = ""
    transliteration: str = ""
    translation: str = ""
    found: bool = False
