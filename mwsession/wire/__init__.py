"""
Wire layer: frame types, codec and the incremental decoder.
"""
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
from .codec import pack_frame, unpack_frame, unpack_message
from .framer import DEFAULT_MAX_FRAME_SIZE, FrameDecoder, decode

__all__ = [
    # Frames
    "Frame",
    "FrameType",
    "FrameOption",
    "KEEPALIVE_BYTE",
    "Keepalive",
    "Handshake",
    "HandshakeAck",
    "Login",
    "LoginAck",
    "LoginRedirect",
    "LoginContinue",
    "ChannelDestroy",
    "ChannelSend",
    "SetUserStatus",
    "SetPrivacyList",
    "Admin",
    # Codec
    "pack_frame",
    "unpack_frame",
    "unpack_message",
    # Framer
    "DEFAULT_MAX_FRAME_SIZE",
    "FrameDecoder",
    "decode",
]
