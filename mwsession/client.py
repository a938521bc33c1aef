"""
Socket client - connects a Session to a server over TCP and logs in.

It doesn't do anything after logging in. It shows:
- opening a socket to the host
- using the socket to feed data to the session
- a session handler that lets the session write to and close the socket
- following a login redirect with a fresh session
"""
from __future__ import annotations

from typing import Callable, Optional

from . import properties
from .config import SessionConfig
from .errors import TransportConnectionError
from .handler import SessionHandler
from .logs import Logger, stdlib_logger
from .protocol import SessionState
from .session import Session
from .transport import ITransport, TcpTransport


MAX_REDIRECTS = 3

STATE_MESSAGES: dict[SessionState, str] = {
    SessionState.STARTING: "[2] Sending Handshake",
    SessionState.HANDSHAKE: "[3] Waiting for Handshake Acknowledgement",
    SessionState.HANDSHAKE_ACK: "[4] Handshake Acknowledged, Sending Login",
    SessionState.LOGIN: "[5] Waiting for Login Acknowledgement",
    SessionState.LOGIN_REDIR: "[6] Login redirected",
    SessionState.LOGIN_CONT: "[7] Forcing login",
    SessionState.LOGIN_ACK: "[8] Login Acknowledged",
    SessionState.STARTED: "[9] Starting services",
    SessionState.STOPPING: "Stopping session",
    SessionState.STOPPED: "Session stopped",
    SessionState.UNKNOWN: "Session unknown.  Your guess is as good as mine!",
}

TransportFactory = Callable[[str, int, SessionConfig, Logger], ITransport]


def _tcp_factory(host: str, port: int, config: SessionConfig, logger: Logger) -> ITransport:
    transport = TcpTransport(host, port, read_size=config.read_size,
                             timeout=config.connect_timeout, logger=logger)
    transport.connect()
    return transport


class SocketClient:
    """
    Owns one transport and one session at a time.

    The client registers itself as the session's client data; the session
    detaches it again when freed.
    """

    def __init__(
        self,
        host: str,
        user_id: str,
        password: str,
        config: SessionConfig | None = None,
        logger: Logger | None = None,
        transport_factory: TransportFactory | None = None,
    ):
        self.host = host
        self.user_id = user_id
        self._password = password
        self.config = config or SessionConfig()
        self._logger = logger or stdlib_logger(__name__)
        self._transport_factory = transport_factory or _tcp_factory

        self.session: Optional[Session] = None
        self.transport: Optional[ITransport] = None
        self.states: list[SessionState] = []
        self._redirect: Optional[str] = None

    # === Session handler ===

    def _io_write(self, data: bytes) -> int:
        # socket was already closed, so we can't possibly write to it
        if self.transport is None:
            return -1
        return self.transport.write(data)

    def _io_close(self) -> None:
        if self.transport is not None:
            self.transport.close()

    def _on_state_change(self, state: SessionState, info) -> None:
        self.states.append(state)
        message = STATE_MESSAGES[state]
        if info is not None:
            message = f"{message} ({info})"
        self._logger("info", message)

        if state == SessionState.LOGIN_REDIR:
            # reconnect elsewhere once this session is down
            self._redirect = info
            self.session.stop()

    def _on_admin(self, text: str) -> None:
        self._logger("warn", f"Admin message: {text}")

    @staticmethod
    def _detach(client: "SocketClient") -> None:
        client.session = None

    # === Lifecycle ===

    def _new_session(self) -> Session:
        handler = SessionHandler(
            io_write=self._io_write,
            io_close=self._io_close,
            on_state_change=self._on_state_change,
            on_admin=self._on_admin,
        )
        session = Session(handler, config=self.config, logger=self._logger)
        session.set_property(properties.AUTH_USER_ID, self.user_id)
        session.set_property(properties.AUTH_PASSWORD, self._password)
        session.set_client_data(self, SocketClient._detach)
        return session

    def _on_receive(self, data: bytes) -> None:
        self._logger("debug", f"Received {len(data)} bytes from {self.host}")
        if self.session is not None and not self.session.is_stopped:
            self.session.receive(data)

    def run(self) -> Optional[Exception]:
        """
        Connect, log in and pump data until the session stops or the server
        hangs up. Follows up to MAX_REDIRECTS login redirects.

        Returns the stop reason of the last session (None for a clean stop).
        Raises TransportConnectionError if a connection cannot be opened.
        """
        host = self.host
        for _ in range(MAX_REDIRECTS + 1):
            self._redirect = None
            self.transport = self._transport_factory(host, self.config.port, self.config, self._logger)
            session = self.session = self._new_session()
            try:
                session.start()
                self.transport.run(self._on_receive)
                if not session.is_stopped:
                    session.stop(TransportConnectionError(f"connection to {host} closed"))
                reason = session.stop_reason
            finally:
                session.free()
                self.transport.close()
                self.transport = None

            if self._redirect is None:
                return reason
            host = self._redirect
            self._logger("info", f"Redirected to {host}")

        raise TransportConnectionError(f"too many redirects (last: {host})")
