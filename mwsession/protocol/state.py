"""
Session protocol state representation.

ProtocolState is immutable (frozen dataclass) to enable pure functional
transitions. SessionState is the externally visible lifecycle stage.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class SessionState(Enum):
    """Session lifecycle stages."""

    # Handshake
    STARTING = auto()       # Sending handshake
    HANDSHAKE = auto()      # Handshake sent, waiting for ack
    HANDSHAKE_ACK = auto()  # Ack received, sending login

    # Login
    LOGIN = auto()          # Login sent, waiting for ack
    LOGIN_REDIR = auto()    # Server redirected us elsewhere
    LOGIN_CONT = auto()     # Login continued (challenge answered or forced)
    LOGIN_ACK = auto()      # Login accepted

    # Active session
    STARTED = auto()

    # Teardown
    STOPPING = auto()
    STOPPED = auto()

    # Never started
    UNKNOWN = auto()


TERMINAL_STATES = frozenset({SessionState.STOPPING, SessionState.STOPPED})


@dataclass(frozen=True)
class ProtocolState:
    """
    Immutable protocol state.

    Credentials are not part of it; the session supplies them when it
    executes a SendLogin action.
    """

    state: SessionState = SessionState.UNKNOWN

    # Set once the handshake frame has been queued for the transport
    handshake_sent: bool = False
    login_type: int = 0

    # Reported by the server in the handshake ack
    server_major: int | None = None
    server_minor: int | None = None
    server_key: bytes = b""

    # Login progress
    redirect_host: str | None = None
    login_id: str | None = None

    # Why the session stopped (if it did)
    last_error: Exception | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
