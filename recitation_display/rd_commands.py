"""
Inbound real-time messages.

Each message type maps to one small frozen dataclass. Mutating commands carry
requires_lock_holder = True; the coordinator checks that flag once before
dispatching, so individual handlers never re-check authorization.
"""

import json
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Union

from .rd_models import Direction, Role


class MessageParseError(ValueError):
    """Inbound payload is not a JSON object with a string 'type'."""


@dataclass(frozen=True)
class DeclareRole:
    TYPE: ClassVar[str] = "declare-role"
    requires_lock_holder: ClassVar[bool] = False
    role: Role = Role.VIEWER


@dataclass(frozen=True)
class Heartbeat:
    TYPE: ClassVar[str] = "heartbeat"
    requires_lock_holder: ClassVar[bool] = False


@dataclass(frozen=True)
class RequestBootstrap:
    TYPE: ClassVar[str] = "request-bootstrap"
    requires_lock_holder: ClassVar[bool] = False


@dataclass(frozen=True)
class SetMode:
    TYPE: ClassVar[str] = "set-mode"
    requires_lock_holder: ClassVar[bool] = True
    mode: Any = None


@dataclass(frozen=True)
class SetScripturePosition:
    TYPE: ClassVar[str] = "set-scripture-position"
    requires_lock_holder: ClassVar[bool] = True
    section_index: Any = None
    sub_index: Any = None


@dataclass(frozen=True)
class SetSupplicationPosition:
    TYPE: ClassVar[str] = "set-supplication-position"
    requires_lock_holder: ClassVar[bool] = True
    handle: Any = None
    line_index: Any = None


@dataclass(frozen=True)
class Step:
    TYPE: ClassVar[str] = "step"
    requires_lock_holder: ClassVar[bool] = True
    direction: Direction = Direction.NEXT


Command = Union[
    DeclareRole, Heartbeat, RequestBootstrap,
    SetMode, SetScripturePosition, SetSupplicationPosition, Step,
]


def _role(value: Any) -> Role:
    return Role.CONTROLLER if value == Role.CONTROLLER.value else Role.VIEWER


def _direction(value: Any) -> Direction:
    return Direction.PREVIOUS if value in ("previous", "prev") else Direction.NEXT


_BUILDERS = {
    DeclareRole.TYPE: lambda m: DeclareRole(role=_role(m.get("role"))),
    Heartbeat.TYPE: lambda m: Heartbeat(),
    RequestBootstrap.TYPE: lambda m: RequestBootstrap(),
    SetMode.TYPE: lambda m: SetMode(mode=m.get("mode")),
    SetScripturePosition.TYPE: lambda m: SetScripturePosition(
        section_index=m.get("sectionIndex"), sub_index=m.get("subIndex")),
    SetSupplicationPosition.TYPE: lambda m: SetSupplicationPosition(
        handle=m.get("handle"), line_index=m.get("lineIndex")),
    Step.TYPE: lambda m: Step(direction=_direction(m.get("direction"))),
}


def decode(raw: Any) -> Dict[str, Any]:
    """JSON text/bytes or an already-decoded mapping -> dict."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MessageParseError(str(e)) from e
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise MessageParseError(str(e)) from e
    if not isinstance(raw, dict):
        raise MessageParseError("message must be a JSON object")
    return raw


def parse_message(raw: Any) -> Optional[Command]:
    """
    Build a command from an inbound payload.

    Raises MessageParseError for anything that is not a JSON object with a
    string type. Returns None for well-formed messages of an unknown type,
    which callers ignore.
    """
    message = decode(raw)
    kind = message.get("type")
    if not isinstance(kind, str):
        raise MessageParseError("message has no type")
    builder = _BUILDERS.get(kind)
    if builder is None:
        return None
    return builder(message)
