"""
Frames are the discrete protocol units exchanged with the server.

Each frame is an immutable dataclass. The header fields (channel, options,
attribs) are keyword-only and shared by every frame type; the body fields are
specific to the type. Encoding and decoding live in codec.py.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import ClassVar


class FrameType(IntEnum):
    """Message type codes carried in the frame header."""

    HANDSHAKE = 0x0000
    LOGIN = 0x0001
    CHANNEL_DESTROY = 0x0003
    CHANNEL_SEND = 0x0004
    SET_USER_STATUS = 0x0009
    SET_PRIVACY_LIST = 0x000B
    LOGIN_CONTINUE = 0x0016
    LOGIN_REDIRECT = 0x0018
    ADMIN = 0x0019
    HANDSHAKE_ACK = 0x8000
    LOGIN_ACK = 0x8001


class FrameOption(IntFlag):
    """Header option bits."""

    NONE = 0x0000
    ENCRYPT = 0x4000
    ATTRIBS = 0x8000


KEEPALIVE_BYTE = 0x80


@dataclass(frozen=True)
class Frame:
    """Base class for all frames."""

    TYPE: ClassVar[FrameType | None] = None

    channel: int = field(default=0, kw_only=True)
    options: FrameOption = field(default=FrameOption.NONE, kw_only=True)
    attribs: bytes = field(default=b"", kw_only=True)

    def __post_init__(self):
        # the ATTRIBS bit mirrors whether attribs are present
        options = FrameOption(self.options) & ~FrameOption.ATTRIBS
        if self.attribs:
            options |= FrameOption.ATTRIBS
        object.__setattr__(self, "options", options)


@dataclass(frozen=True)
class Keepalive(Frame):
    """Single-byte keepalive; has no header or body on the wire."""
    pass


# === Handshake ===

@dataclass(frozen=True)
class Handshake(Frame):
    """Client hello, the first frame of every session."""
    TYPE: ClassVar[FrameType] = FrameType.HANDSHAKE

    major: int
    minor: int
    login_type: int
    srvrcalc_addr: int = 0
    loclcalc_addr: int = 0
    local_host: str = ""


@dataclass(frozen=True)
class HandshakeAck(Frame):
    """Server reply to Handshake; may carry the server's public key."""
    TYPE: ClassVar[FrameType] = FrameType.HANDSHAKE_ACK

    major: int
    minor: int
    srvrcalc_addr: int = 0
    magic: int = 0
    server_key: bytes = b""


# === Login ===

@dataclass(frozen=True)
class Login(Frame):
    """Client credentials."""
    TYPE: ClassVar[FrameType] = FrameType.LOGIN

    login_type: int
    user_id: str
    auth_type: int
    auth_data: bytes = field(default=b"", repr=False)
    continuation: bytes = b""


@dataclass(frozen=True)
class LoginAck(Frame):
    """Login accepted."""
    TYPE: ClassVar[FrameType] = FrameType.LOGIN_ACK

    user_id: str
    login_id: str
    login_type: int = 0


@dataclass(frozen=True)
class LoginRedirect(Frame):
    """Server asks the client to log in somewhere else."""
    TYPE: ClassVar[FrameType] = FrameType.LOGIN_REDIRECT

    host: str
    server_id: str = ""


@dataclass(frozen=True)
class LoginContinue(Frame):
    """
    Login continuation.

    Server to client: a challenge the client must answer with a fresh Login.
    Client to server: force a login after a redirect (empty challenge).
    """
    TYPE: ClassVar[FrameType] = FrameType.LOGIN_CONTINUE

    challenge: bytes = b""


# === Post-login ===

@dataclass(frozen=True)
class ChannelDestroy(Frame):
    """Close a channel. On channel 0 this ends the whole session."""
    TYPE: ClassVar[FrameType] = FrameType.CHANNEL_DESTROY

    reason: int = 0
    data: bytes = b""


@dataclass(frozen=True)
class ChannelSend(Frame):
    """Service data on an open channel."""
    TYPE: ClassVar[FrameType] = FrameType.CHANNEL_SEND

    message_type: int
    data: bytes = b""


@dataclass(frozen=True)
class SetUserStatus(Frame):
    TYPE: ClassVar[FrameType] = FrameType.SET_USER_STATUS

    status: int
    time: int = 0
    description: str = ""


@dataclass(frozen=True)
class SetPrivacyList(Frame):
    TYPE: ClassVar[FrameType] = FrameType.SET_PRIVACY_LIST

    deny: bool = False
    users: tuple[str, ...] = ()


@dataclass(frozen=True)
class Admin(Frame):
    """Broadcast text from the server administrator."""
    TYPE: ClassVar[FrameType] = FrameType.ADMIN

    text: str
