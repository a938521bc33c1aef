"""
Session handler bundle.

The session talks to the outside world only through these callbacks.
io_write and io_close are mandatory; every other slot is optional and is
checked before it is called.

    io_write(data) -> int | bool | None
        Write all of data. A negative int or False means failure; anything
        else (including None) means success.
    io_close()
        Release the transport. Must be safe if it never connected.
    on_state_change(state, info)
        Advisory; an exception it raises is logged, not propagated. info is
        the redirect host for LOGIN_REDIR and the stop reason (an exception,
        or None) for STOPPING/STOPPED.
    on_admin(text)
    on_set_user_status(frame)
    on_set_privacy_info(frame)
    on_channel_message(frame)
        Post-login frames forwarded by the session.
    clear()
        Called once when the session is freed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import InvalidHandler
from .protocol.state import SessionState
from .wire.frames import Frame, SetPrivacyList, SetUserStatus


@dataclass
class SessionHandler:
    io_write: Optional[Callable[[bytes], Any]] = None
    io_close: Optional[Callable[[], None]] = None
    on_state_change: Optional[Callable[[SessionState, Any], None]] = None
    on_admin: Optional[Callable[[str], None]] = None
    on_set_user_status: Optional[Callable[[SetUserStatus], None]] = None
    on_set_privacy_info: Optional[Callable[[SetPrivacyList], None]] = None
    on_channel_message: Optional[Callable[[Frame], None]] = None
    clear: Optional[Callable[[], None]] = None

    def validate(self) -> None:
        if not callable(self.io_write):
            raise InvalidHandler("io_write handler is required")
        if not callable(self.io_close):
            raise InvalidHandler("io_close handler is required")


def write_failed(result: Any) -> bool:
    """Interpret an io_write return value."""
    if result is False:
        return True
    return isinstance(result, int) and not isinstance(result, bool) and result < 0
