"""
Events are inputs to the session state machine.

The session turns caller operations and decoded frames into events.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..wire.frames import Frame


# Reason codes carried by the ChannelDestroy sent on stop
REASON_NORMAL = 0x00000000
REASON_PROTOCOL_ERROR = 0x80000001
REASON_TRANSPORT_ERROR = 0x80000002


@dataclass(frozen=True)
class Event:
    """Base class for all session events."""
    pass


# === Session Lifecycle ===

@dataclass(frozen=True)
class StartSession(Event):
    """Begin the handshake with the given client identity."""
    major: int
    minor: int
    login_type: int
    local_host: str = ""


@dataclass(frozen=True)
class StopSession(Event):
    """Stop the session. reason is None for a caller-requested stop."""
    reason: Exception | None = None
    code: int = REASON_NORMAL
    notify_server: bool = True


@dataclass(frozen=True)
class ForceLogin(Event):
    """Log in to the current server despite a redirect."""
    pass


# === Transport Events ===

@dataclass(frozen=True)
class FrameReceived(Event):
    """The framer decoded a complete frame."""
    frame: Frame
