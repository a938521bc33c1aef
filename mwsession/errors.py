"""
Session error taxonomy.

Protocol errors (FrameCorrupt, UnexpectedFrame) and TransportWriteFailed are
never raised out of receive()/send(); the session stops and reports them as the
info of the STOPPING/STOPPED state change. Usage-contract errors are raised
synchronously at the call site.
"""
from __future__ import annotations


class SessionError(Exception):
    """Base class for all session errors."""


class ProtocolError(SessionError):
    """The byte stream or frame sequence violates the protocol."""


class FrameCorrupt(ProtocolError):
    """Malformed bytes: bad length, unknown type tag, or truncated body."""


class UnexpectedFrame(ProtocolError):
    """A well-formed frame arrived in a state that does not expect it."""

    def __init__(self, frame: object, state: object):
        super().__init__(f"{type(frame).__name__} not expected in state {state}")
        self.frame = frame
        self.state = state


class InvalidHandler(SessionError):
    """A mandatory handler callback (io_write, io_close) is missing."""


class AlreadyStarted(SessionError):
    """start() was called on a session that has already been started."""


class SessionClosed(SessionError):
    """An operation was attempted after the session stopped or was freed."""


class TransportWriteFailed(SessionError):
    """The io_write callback reported failure."""


class ServerStopped(SessionError):
    """The server closed the session (ChannelDestroy on channel 0)."""

    def __init__(self, reason: int):
        super().__init__(f"server closed the session, reason 0x{reason:08x}")
        self.reason = reason


# Transport-layer errors

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""
