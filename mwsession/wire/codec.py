"""
Frame codec.

    pack_frame(frame)   -> bytes            (length prefix included)
    unpack_message(buf) -> Frame            (buf is one message, no prefix)

Layout of a message (all integers big-endian):

    [u32 length][u16 type][u16 options][u32 channel][opaque attribs?][body]

The attribs block is present only when the ATTRIBS option bit is set.
A keepalive is the single byte 0x80 with no prefix.
"""
from __future__ import annotations

import struct
from typing import Callable

from ..errors import FrameCorrupt
from .frames import (
    KEEPALIVE_BYTE,
    Admin,
    ChannelDestroy,
    ChannelSend,
    Frame,
    FrameOption,
    FrameType,
    Handshake,
    HandshakeAck,
    Keepalive,
    Login,
    LoginAck,
    LoginContinue,
    LoginRedirect,
    SetPrivacyList,
    SetUserStatus,
)


LENGTH_SIZE = 4
HEADER_SIZE = 8

_U8 = struct.Struct("!B")
_U16 = struct.Struct("!H")
_U32 = struct.Struct("!I")
_HEADER = struct.Struct("!HHI")


class Writer:
    """Append-only builder for message bodies."""

    def __init__(self):
        self._buf = bytearray()

    def u8(self, value: int) -> "Writer":
        self._buf += _U8.pack(value)
        return self

    def u16(self, value: int) -> "Writer":
        self._buf += _U16.pack(value)
        return self

    def u32(self, value: int) -> "Writer":
        self._buf += _U32.pack(value)
        return self

    def raw(self, value: bytes) -> "Writer":
        self._buf += value
        return self

    def boolean(self, value: bool) -> "Writer":
        return self.u8(1 if value else 0)

    def string(self, value: str) -> "Writer":
        data = value.encode("utf-8")
        self.u16(len(data))
        self._buf += data
        return self

    def opaque(self, value: bytes) -> "Writer":
        self.u32(len(value))
        self._buf += value
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buf)


class Reader:
    """Cursor over a message. Every short read raises FrameCorrupt."""

    def __init__(self, data: bytes):
        self._data = memoryview(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def _take(self, n: int) -> memoryview:
        if n > self.remaining:
            raise FrameCorrupt(f"need {n} bytes, {self.remaining} left")
        chunk = self._data[self._pos:self._pos + n]
        self._pos += n
        return chunk

    def u8(self) -> int:
        return _U8.unpack(self._take(1))[0]

    def u16(self) -> int:
        return _U16.unpack(self._take(2))[0]

    def u32(self) -> int:
        return _U32.unpack(self._take(4))[0]

    def boolean(self) -> bool:
        return self.u8() != 0

    def string(self) -> str:
        raw = self._take(self.u16())
        try:
            return bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise FrameCorrupt(f"invalid utf-8 in string: {e}") from e

    def opaque(self) -> bytes:
        return bytes(self._take(self.u32()))

    def expect_end(self) -> None:
        if self.remaining:
            raise FrameCorrupt(f"{self.remaining} trailing bytes after body")


# =============================================================================
# Encoding
# =============================================================================

def _encode_body(frame: Frame, w: Writer) -> None:
    match frame:
        case Handshake():
            (w.u16(frame.major).u16(frame.minor).u32(frame.srvrcalc_addr)
              .u16(frame.login_type).u32(frame.loclcalc_addr)
              .string(frame.local_host))
        case HandshakeAck():
            (w.u16(frame.major).u16(frame.minor).u32(frame.srvrcalc_addr)
              .u32(frame.magic).opaque(frame.server_key))
        case Login():
            (w.u16(frame.login_type).string(frame.user_id)
              .u16(frame.auth_type).opaque(frame.auth_data)
              .opaque(frame.continuation))
        case LoginAck():
            w.string(frame.user_id).string(frame.login_id).u16(frame.login_type)
        case LoginRedirect():
            w.string(frame.host).string(frame.server_id)
        case LoginContinue():
            w.opaque(frame.challenge)
        case ChannelDestroy():
            w.u32(frame.reason).opaque(frame.data)
        case ChannelSend():
            w.u16(frame.message_type).opaque(frame.data)
        case SetUserStatus():
            w.u16(frame.status).u32(frame.time).string(frame.description)
        case SetPrivacyList():
            w.boolean(frame.deny).u32(len(frame.users))
            for user in frame.users:
                w.string(user)
        case Admin():
            w.string(frame.text)
        case _:
            raise TypeError(f"cannot encode {type(frame).__name__}")


def pack_frame(frame: Frame) -> bytes:
    """Serialize a frame to wire bytes, length prefix included."""

    if isinstance(frame, Keepalive):
        return bytes([KEEPALIVE_BYTE])

    if frame.TYPE is None:
        raise TypeError(f"cannot encode {type(frame).__name__}")

    w = Writer()
    w.raw(_HEADER.pack(frame.TYPE, frame.options, frame.channel))
    if frame.attribs:
        w.opaque(frame.attribs)
    _encode_body(frame, w)

    message = w.getvalue()
    return _U32.pack(len(message)) + message


# =============================================================================
# Decoding
# =============================================================================

def _decode_handshake(r: Reader, **hdr) -> Handshake:
    return Handshake(
        major=r.u16(), minor=r.u16(), srvrcalc_addr=r.u32(),
        login_type=r.u16(), loclcalc_addr=r.u32(), local_host=r.string(),
        **hdr,
    )


def _decode_handshake_ack(r: Reader, **hdr) -> HandshakeAck:
    return HandshakeAck(
        major=r.u16(), minor=r.u16(), srvrcalc_addr=r.u32(),
        magic=r.u32(), server_key=r.opaque(), **hdr,
    )


def _decode_login(r: Reader, **hdr) -> Login:
    return Login(
        login_type=r.u16(), user_id=r.string(), auth_type=r.u16(),
        auth_data=r.opaque(), continuation=r.opaque(), **hdr,
    )


def _decode_login_ack(r: Reader, **hdr) -> LoginAck:
    return LoginAck(user_id=r.string(), login_id=r.string(), login_type=r.u16(), **hdr)


def _decode_login_redirect(r: Reader, **hdr) -> LoginRedirect:
    return LoginRedirect(host=r.string(), server_id=r.string(), **hdr)


def _decode_login_continue(r: Reader, **hdr) -> LoginContinue:
    return LoginContinue(challenge=r.opaque(), **hdr)


def _decode_channel_destroy(r: Reader, **hdr) -> ChannelDestroy:
    return ChannelDestroy(reason=r.u32(), data=r.opaque(), **hdr)


def _decode_channel_send(r: Reader, **hdr) -> ChannelSend:
    return ChannelSend(message_type=r.u16(), data=r.opaque(), **hdr)


def _decode_set_user_status(r: Reader, **hdr) -> SetUserStatus:
    return SetUserStatus(status=r.u16(), time=r.u32(), description=r.string(), **hdr)


def _decode_set_privacy_list(r: Reader, **hdr) -> SetPrivacyList:
    deny = r.boolean()
    count = r.u32()
    # each entry needs at least its u16 length
    if count * 2 > r.remaining:
        raise FrameCorrupt(f"privacy list claims {count} users in {r.remaining} bytes")
    users = tuple(r.string() for _ in range(count))
    return SetPrivacyList(deny=deny, users=users, **hdr)


def _decode_admin(r: Reader, **hdr) -> Admin:
    return Admin(text=r.string(), **hdr)


_DECODERS: dict[FrameType, Callable[..., Frame]] = {
    FrameType.HANDSHAKE: _decode_handshake,
    FrameType.HANDSHAKE_ACK: _decode_handshake_ack,
    FrameType.LOGIN: _decode_login,
    FrameType.LOGIN_ACK: _decode_login_ack,
    FrameType.LOGIN_REDIRECT: _decode_login_redirect,
    FrameType.LOGIN_CONTINUE: _decode_login_continue,
    FrameType.CHANNEL_DESTROY: _decode_channel_destroy,
    FrameType.CHANNEL_SEND: _decode_channel_send,
    FrameType.SET_USER_STATUS: _decode_set_user_status,
    FrameType.SET_PRIVACY_LIST: _decode_set_privacy_list,
    FrameType.ADMIN: _decode_admin,
}


def unpack_message(message: bytes) -> Frame:
    """Deserialize one message (without its length prefix) into a frame."""

    if len(message) < HEADER_SIZE:
        raise FrameCorrupt(f"message of {len(message)} bytes is shorter than the header")

    r = Reader(message)
    type_code, options, channel = r.u16(), r.u16(), r.u32()

    try:
        frame_type = FrameType(type_code)
    except ValueError:
        raise FrameCorrupt(f"unknown message type 0x{type_code:04x}") from None

    attribs = r.opaque() if options & FrameOption.ATTRIBS else b""
    hdr = {
        "channel": channel,
        "options": FrameOption(options),
        "attribs": attribs,
    }

    frame = _DECODERS[frame_type](r, **hdr)
    r.expect_end()
    return frame


def unpack_frame(data: bytes) -> Frame:
    """Deserialize exactly one complete frame, length prefix included."""

    if data == bytes([KEEPALIVE_BYTE]):
        return Keepalive()
    if len(data) < LENGTH_SIZE:
        raise FrameCorrupt("frame shorter than its length prefix")
    (length,) = _U32.unpack_from(data)
    if length != len(data) - LENGTH_SIZE:
        raise FrameCorrupt(f"length prefix {length} does not match {len(data) - LENGTH_SIZE} bytes")
    return unpack_message(data[LENGTH_SIZE:])
