"""
TCP transport.

Blocking socket with a read loop, the Python counterpart of a run-loop socket
source: each read of up to read_size bytes is handed to the receive callback.
"""
from __future__ import annotations

import socket
from typing import Callable, Optional

from ..errors import TransportConnectionError
from ..logs import Logger, null_logger
from .interface import ITransport


class TcpTransport(ITransport):

    def __init__(self, host: str, port: int, read_size: int = 2048,
                 timeout: Optional[float] = None,
                 logger: Optional[Logger] = None):
        self.host = host
        self.port = port
        self.read_size = read_size
        self.timeout = timeout
        self._logger = logger or null_logger
        self._sock: Optional[socket.socket] = None

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def connect(self) -> None:
        if self._sock is not None:
            raise TransportConnectionError(f"already connected to {self.host}:{self.port}")
        try:
            sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as e:
            raise TransportConnectionError(f"unable to connect to {self.host}:{self.port}: {e}") from e
        # reads block until data or close
        sock.settimeout(None)
        self._sock = sock
        self._logger("info", f"[TcpTransport] Connected to {self.host}:{self.port}")

    def write(self, data: bytes) -> int:
        # socket was already closed, so we can't possibly write to it
        if self._sock is None:
            return -1
        try:
            self._sock.sendall(data)
        except OSError as e:
            self._logger("error", f"[TcpTransport] Error sending {len(data)} bytes: {e}")
            return -1
        self._logger("debug", f"[TcpTransport] Wrote {len(data)} bytes")
        return 0

    def run(self, on_receive: Callable[[bytes], None]) -> None:
        while self._sock is not None:
            try:
                data = self._sock.recv(self.read_size)
            except OSError as e:
                if self._sock is None:
                    break
                raise TransportConnectionError(f"read from {self.host}:{self.port} failed: {e}") from e
            if not data:
                self._logger("info", "[TcpTransport] Connection closed by peer")
                break
            self._logger("debug", f"[TcpTransport] Received {len(data)} bytes")
            on_receive(data)

    def close(self) -> None:
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # peer already gone
            pass
        sock.close()
        self._logger("info", f"[TcpTransport] Closed connection to {self.host}:{self.port}")
