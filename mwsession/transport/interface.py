"""
Transport interface - the byte stream under a session.

The transport handles:
- Connecting and tearing down the underlying stream
- Writing whole byte strings
- Delivering inbound chunks to a receive callback

Framing is not its concern; chunks may split or join frames arbitrarily.
"""
from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class ITransport(Protocol):
    """
    Transport layer interface.

    write() must attempt to write every byte before returning.
    close() must be safe to call more than once and before connect.
    """

    # === TX Path ===

    def write(self, data: bytes) -> int:
        """Write data. Returns 0 on success, negative on failure."""
        ...

    # === RX Path ===

    def run(self, on_receive: Callable[[bytes], None]) -> None:
        """Read until closed, passing each chunk to on_receive."""
        ...

    # === Status ===

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently connected."""
        ...

    # === Lifecycle ===

    def close(self) -> None:
        """Release the underlying connection."""
        ...
