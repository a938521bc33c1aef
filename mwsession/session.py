"""
Session - Executes protocol actions.

The session bridges the pure functional protocol to the outside world:
- Inbound bytes are framed by a FrameDecoder and fed to the state machine
- Actions returned by the machine are executed against the handler bundle
  (io_write, io_close, on_state_change, upper-layer callbacks)

Errors are handler-driven: protocol and write failures stop the session and
are reported through on_state_change, never raised from receive()/send().
An exception raised by an advisory callback (on_state_change and the
upper-layer slots) is logged at error level and the session carries on.

Threading: callbacks run synchronously on the calling thread. A call to
stop(), free() or receive() made from inside a callback is queued and
processed once the current dispatch finishes; send() writes immediately.
Public operations hold a per-session RLock.
"""
from __future__ import annotations

import threading
from collections import deque
from typing import Any, Callable, Deque, Optional

from . import properties
from .config import SessionConfig
from .crypto.auth import LoginAuthenticator
from .errors import (
    AlreadyStarted,
    FrameCorrupt,
    SessionClosed,
    SessionError,
    TransportWriteFailed,
)
from .handler import SessionHandler, write_failed
from .logs import Logger, stdlib_logger
from .protocol import (
    REASON_PROTOCOL_ERROR,
    REASON_TRANSPORT_ERROR,
    TERMINAL_STATES,
    Action,
    ChangeState,
    CloseTransport,
    Deliver,
    Event,
    ForceLogin,
    FrameReceived,
    Log,
    ProtocolState,
    SendFrame,
    SendLogin,
    SessionProtocol,
    SessionState,
    StartSession,
    StopSession,
    StoreProperty,
)
from .wire import (
    Admin,
    ChannelDestroy,
    ChannelSend,
    Frame,
    FrameDecoder,
    Keepalive,
    Login,
    SetPrivacyList,
    SetUserStatus,
    pack_frame,
)


class Session:
    """
    A client session with a community server.

    Usage:
        session = Session(SessionHandler(io_write=sock_write, io_close=sock_close))
        session.set_property(properties.AUTH_USER_ID, "alice")
        session.set_property(properties.AUTH_PASSWORD, "secret")
        session.start()              # writes the handshake
        session.receive(chunk)       # for every chunk read from the socket
        ...
        session.stop()
        session.free()
    """

    def __init__(
        self,
        handler: SessionHandler,
        config: SessionConfig | None = None,
        logger: Logger | None = None,
    ):
        handler.validate()
        self._handler = handler
        self._config = config or SessionConfig()
        self._logger = logger or stdlib_logger(__name__)

        # Protocol state (machine view) and last announced state (caller view)
        self._protocol_state = ProtocolState()
        self._state = SessionState.UNKNOWN
        self.stop_reason: Optional[Exception] = None

        self._properties: dict[str, Any] = {}
        self._client_data: Any = None
        self._client_cleanup: Optional[Callable[[Any], None]] = None

        self._decoder = FrameDecoder(self._config.max_frame_size)
        self._authenticator = LoginAuthenticator(
            encrypt=self._config.encrypt_password,
            debug_callback=lambda msg: self._logger("debug", msg),
        )

        self._events: Deque[Event] = deque()
        self._lock = threading.RLock()
        self._dispatching = False
        self._started = False
        self._io_closed = False
        self._free_pending = False
        self._freed = False

    # === Properties ===

    @property
    def state(self) -> SessionState:
        """Most recently announced state."""
        return self._state

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def handler(self) -> SessionHandler:
        return self._handler

    @property
    def is_started(self) -> bool:
        return self._state == SessionState.STARTED

    @property
    def is_stopped(self) -> bool:
        return self._state == SessionState.STOPPED

    @property
    def is_freed(self) -> bool:
        return self._freed

    @property
    def redirect_host(self) -> str | None:
        return self._protocol_state.redirect_host

    # === Session properties and client data ===

    def set_property(self, key: str, value: Any) -> None:
        """
        Store a session property.

        Auth properties must be set before start(); setting them later has
        no effect on a login already sent.
        """
        with self._lock:
            self._check_not_freed()
            self._properties[key] = value
            shown = "<hidden>" if key in properties.SENSITIVE else repr(value)
            self._logger("debug", f"[Session] Property {key} = {shown}")

    def get_property(self, key: str, default: Any = None) -> Any:
        return self._properties.get(key, default)

    def remove_property(self, key: str) -> None:
        with self._lock:
            self._properties.pop(key, None)

    def set_client_data(self, data: Any, cleanup: Optional[Callable[[Any], None]] = None) -> None:
        """
        Associate caller data with the session.

        cleanup(data) runs exactly once, from free(), if data is not None.
        Replacing the data drops the previous pair without calling its cleanup.
        """
        with self._lock:
            self._check_not_freed()
            self._client_data = data
            self._client_cleanup = cleanup

    def get_client_data(self) -> Any:
        return self._client_data

    # === Lifecycle ===

    def start(self) -> None:
        """Send the handshake and begin the login sequence."""
        with self._lock:
            self._check_open()
            if self._started:
                raise AlreadyStarted("session already started")
            self._started = True

            major = self._properties.setdefault(properties.CLIENT_VER_MAJOR, self._config.client_major)
            minor = self._properties.setdefault(properties.CLIENT_VER_MINOR, self._config.client_minor)
            login_type = self._properties.setdefault(properties.CLIENT_TYPE_ID, self._config.login_type)
            local_host = self._properties.setdefault(properties.CLIENT_HOST, self._config.local_host)

            if not self._properties.get(properties.AUTH_USER_ID):
                self._logger("warn", "[Session] Starting without a user id")

            self._events.append(StartSession(major, minor, login_type, local_host))
            self._pump()

    def stop(self, reason: Exception | None = None, code: int = 0) -> None:
        """
        Stop the session: announce STOPPING, notify the server, call
        io_close once, announce STOPPED. Later calls do nothing.
        """
        with self._lock:
            if self._freed or self._state == SessionState.STOPPED:
                return
            self._events.append(StopSession(reason=reason, code=code))
            self._pump()

    def free(self) -> None:
        """
        Release the session. Stops it if needed, then runs the client data
        cleanup and the handler's clear(). Only the first call has effect.
        """
        with self._lock:
            if self._freed:
                return
            if self._dispatching:
                self._free_pending = True
                return
            self._release()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc) -> None:
        self.free()

    # === Data path ===

    def receive(self, data: bytes) -> None:
        """Feed bytes read from the transport."""
        with self._lock:
            self._check_open()
            if not data:
                return
            self._decoder.feed(data)
            self._pump()

    def send(self, frame: Frame) -> None:
        """
        Encode frame and write it. A failed write stops the session; the
        failure is reported through on_state_change, not raised.
        """
        with self._lock:
            self._check_open()
            self._write_frame(frame)
            self._pump()

    def send_keepalive(self) -> None:
        self.send(Keepalive())

    def force_login(self) -> None:
        """After a redirect, log in to the current server anyway."""
        with self._lock:
            self._check_open()
            if self._protocol_state.state != SessionState.LOGIN_REDIR:
                raise SessionError(f"session was not redirected (state {self._state.name})")
            self._events.append(ForceLogin())
            self._pump()

    # === Event pump ===

    def _pump(self) -> None:
        """
        Drain queued events, then decode and dispatch buffered frames until
        more bytes are needed or the session stops.
        """
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while True:
                if self._events:
                    self._dispatch(self._events.popleft())
                    continue

                if self._protocol_state.is_terminal:
                    self._decoder.reset()
                    break

                try:
                    frame = self._decoder.next_frame()
                except FrameCorrupt as e:
                    self._decoder.reset()
                    self._events.append(StopSession(reason=e, code=REASON_PROTOCOL_ERROR))
                    continue

                if frame is None:
                    break
                self._dispatch(FrameReceived(frame))
        finally:
            self._dispatching = False

        if self._free_pending:
            self._free_pending = False
            self._release()

    def _dispatch(self, event: Event) -> None:
        new_state, actions = SessionProtocol.step(self._protocol_state, event)
        self._protocol_state = new_state

        for action in actions:
            self._execute(action)

    # === Action Execution ===

    def _execute(self, action: Action) -> None:
        """Execute a single action."""

        match action:
            case Log(level, message):
                self._logger(level, message)

            case ChangeState(state, info):
                self._state = state
                if state in TERMINAL_STATES and info is not None:
                    self.stop_reason = info
                self._logger("debug", f"[Session] State -> {state.name}")
                if self._handler.on_state_change:
                    self._notify(self._handler.on_state_change, state, info)

            case StoreProperty(key, value):
                self._properties[key] = value

            case SendFrame(frame):
                self._write_frame(frame)

            case SendLogin(login_type, server_key, continuation):
                self._write_frame(self._build_login(login_type, server_key, continuation))

            case CloseTransport():
                if not self._io_closed:
                    self._io_closed = True
                    self._handler.io_close()

            case Deliver(frame):
                self._deliver(frame)

            case _:
                self._logger("warn", f"[Session] Unknown action: {action}")

    def _build_login(self, login_type: int, server_key: bytes, continuation: bytes) -> Login:
        user_id = self._properties.get(properties.AUTH_USER_ID) or ""
        auth_type, auth_data = self._authenticator.auth_data(
            self._properties.get(properties.AUTH_PASSWORD),
            token=self._properties.get(properties.AUTH_TOKEN),
            server_key=server_key,
        )
        return Login(
            login_type=login_type,
            user_id=str(user_id),
            auth_type=auth_type,
            auth_data=auth_data,
            continuation=continuation,
        )

    def _write_frame(self, frame: Frame) -> bool:
        data = pack_frame(frame)
        self._logger("debug", f"[Session] Writing {type(frame).__name__} ({len(data)} bytes)")

        try:
            result = self._handler.io_write(data)
        except OSError as e:
            self._logger("error", f"[Session] io_write raised: {e}")
            result = -1

        if not write_failed(result):
            return True

        self._logger("error", f"[Session] Failed to write {type(frame).__name__}")
        if self._state not in TERMINAL_STATES:
            error = TransportWriteFailed(f"io_write returned {result!r} for {type(frame).__name__}")
            self._events.append(
                StopSession(reason=error, code=REASON_TRANSPORT_ERROR, notify_server=False)
            )
        return False

    def _deliver(self, frame: Frame) -> None:
        h = self._handler
        match frame:
            case Admin(text=text):
                callback, arg = h.on_admin, text
            case SetUserStatus():
                callback, arg = h.on_set_user_status, frame
            case SetPrivacyList():
                callback, arg = h.on_set_privacy_info, frame
            case ChannelSend() | ChannelDestroy():
                callback, arg = h.on_channel_message, frame
            case _:
                callback, arg = None, frame

        if callback is None:
            self._logger("debug", f"[Session] No handler for {type(frame).__name__}, dropped")
            return
        self._notify(callback, arg)

    def _notify(self, callback: Callable[..., None], *args: Any) -> None:
        """Run an advisory callback, logging instead of raising."""
        try:
            callback(*args)
        except Exception as e:
            name = getattr(callback, "__name__", repr(callback))
            self._logger("error", f"[Session] Callback {name} failed: {e!r}")

    # === Teardown ===

    def _release(self) -> None:
        if self._state != SessionState.STOPPED:
            self._events.append(StopSession())
            self._pump()
            # stop() re-entered free() from a callback; _pump already released
            if self._freed:
                return

        self._freed = True
        data, cleanup = self._client_data, self._client_cleanup
        self._client_data = None
        self._client_cleanup = None
        if data is not None and cleanup is not None:
            cleanup(data)

        if self._handler.clear:
            self._handler.clear()

        self._properties.clear()
        self._decoder.reset()
        self._events.clear()
        self._logger("debug", "[Session] Freed")

    def _check_not_freed(self) -> None:
        if self._freed:
            raise SessionClosed("session has been freed")

    def _check_open(self) -> None:
        self._check_not_freed()
        if self._state == SessionState.STOPPED:
            raise SessionClosed("session is stopped")
