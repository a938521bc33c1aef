"""
Incremental frame decoder.

Transport reads do not line up with message boundaries. FrameDecoder keeps
the unconsumed tail of every chunk and prepends it to the next one, so a frame
split across any number of reads decodes exactly as if it arrived whole.
"""
from __future__ import annotations

import struct

from ..errors import FrameCorrupt
from .codec import HEADER_SIZE, LENGTH_SIZE, unpack_message
from .frames import KEEPALIVE_BYTE, Frame, Keepalive


DEFAULT_MAX_FRAME_SIZE = 1024 * 1024


def decode(buffer: bytes, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE) -> tuple[Frame, int] | None:
    """
    Decode the first frame in buffer.

    Returns (frame, consumed_bytes), or None when buffer holds only part of
    a frame. Raises FrameCorrupt on a malformed length or message.
    """
    if not buffer:
        return None

    if buffer[0] & KEEPALIVE_BYTE:
        if buffer[0] != KEEPALIVE_BYTE:
            raise FrameCorrupt(f"invalid lead byte 0x{buffer[0]:02x}")
        return (Keepalive(), 1)

    if len(buffer) < LENGTH_SIZE:
        return None

    (length,) = struct.unpack_from("!I", buffer)
    if length < HEADER_SIZE or length > max_frame_size:
        raise FrameCorrupt(f"invalid message length {length}")

    end = LENGTH_SIZE + length
    if len(buffer) < end:
        return None

    return (unpack_message(bytes(buffer[LENGTH_SIZE:end])), end)


class FrameDecoder:
    """
    Stateful wrapper around decode().

    Usage:
        decoder = FrameDecoder()
        decoder.feed(chunk)
        while (frame := decoder.next_frame()) is not None:
            handle(frame)
    """

    def __init__(self, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE):
        self.max_frame_size = max_frame_size
        self._buf = bytearray()

    @property
    def buffered(self) -> int:
        """Number of bytes held waiting for the rest of a frame."""
        return len(self._buf)

    def feed(self, data: bytes) -> None:
        self._buf += data

    def next_frame(self) -> Frame | None:
        """Pop the next complete frame, or None if more bytes are needed."""
        result = decode(self._buf, self.max_frame_size)
        if result is None:
            return None
        frame, consumed = result
        del self._buf[:consumed]
        return frame

    def reset(self) -> None:
        self._buf.clear()
