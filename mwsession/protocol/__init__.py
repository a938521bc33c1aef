"""
Session Protocol - Pure functional state machine.

This module contains the handshake/login logic separated from I/O concerns.
The SessionProtocol.step() function is the core: it takes state and event,
returns new state and actions to execute.
"""
from .state import ProtocolState, SessionState, TERMINAL_STATES
from .events import (
    Event,
    StartSession,
    StopSession,
    ForceLogin,
    FrameReceived,
    REASON_NORMAL,
    REASON_PROTOCOL_ERROR,
    REASON_TRANSPORT_ERROR,
)
from .actions import (
    Action,
    ChangeState,
    StoreProperty,
    SendFrame,
    SendLogin,
    CloseTransport,
    Deliver,
    Log,
)
from .machine import SessionProtocol

__all__ = [
    # State
    "ProtocolState",
    "SessionState",
    "TERMINAL_STATES",
    # Events
    "Event",
    "StartSession",
    "StopSession",
    "ForceLogin",
    "FrameReceived",
    "REASON_NORMAL",
    "REASON_PROTOCOL_ERROR",
    "REASON_TRANSPORT_ERROR",
    # Actions
    "Action",
    "ChangeState",
    "StoreProperty",
    "SendFrame",
    "SendLogin",
    "CloseTransport",
    "Deliver",
    "Log",
    # Protocol
    "SessionProtocol",
]
