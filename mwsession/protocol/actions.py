"""
Actions are outputs from the session state machine.

The session executes actions by calling the handler bundle (write, close,
state change and upper-layer callbacks).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..wire.frames import Frame
from .state import SessionState


@dataclass(frozen=True)
class Action:
    """Base class for all protocol actions."""
    pass


# === State ===

@dataclass(frozen=True)
class ChangeState(Action):
    """Announce a state transition to the on_state_change handler."""
    state: SessionState
    info: Any = None


@dataclass(frozen=True)
class StoreProperty(Action):
    """Record a server-reported value in the session properties."""
    key: str
    value: Any


# === Transport ===

@dataclass(frozen=True)
class SendFrame(Action):
    """Encode a frame and hand it to io_write."""
    frame: Frame


@dataclass(frozen=True)
class SendLogin(Action):
    """Build a Login frame from the session credentials and send it."""
    login_type: int
    server_key: bytes = field(default=b"", repr=False)
    continuation: bytes = b""


@dataclass(frozen=True)
class CloseTransport(Action):
    """Call io_close."""
    pass


# === Upper layer ===

@dataclass(frozen=True)
class Deliver(Action):
    """Forward a post-login frame to the upper-layer handlers."""
    frame: Frame


# === Logging ===

@dataclass(frozen=True)
class Log(Action):
    """Emit a log message."""
    level: str  # "debug", "info", "warn", "error"
    message: str
