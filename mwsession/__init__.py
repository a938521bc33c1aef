from . import properties
from .config import SessionConfig, load_config, merged_config
from .errors import (
    SessionError,
    ProtocolError,
    FrameCorrupt,
    UnexpectedFrame,
    InvalidHandler,
    AlreadyStarted,
    SessionClosed,
    TransportWriteFailed,
    ServerStopped,
    TransportError,
    TransportConnectionError,
)
from .handler import SessionHandler
from .protocol import SessionState
from .session import Session
from .client import SocketClient

__all__ = [
    "properties",
    "SessionConfig",
    "load_config",
    "merged_config",
    "SessionError",
    "ProtocolError",
    "FrameCorrupt",
    "UnexpectedFrame",
    "InvalidHandler",
    "AlreadyStarted",
    "SessionClosed",
    "TransportWriteFailed",
    "ServerStopped",
    "TransportError",
    "TransportConnectionError",
    "SessionHandler",
    "SessionState",
    "Session",
    "SocketClient",
]

__version__ = "0.1.0"
