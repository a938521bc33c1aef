"""
Tests for the incremental frame decoder.
"""
import struct

import pytest

from mwsession.errors import FrameCorrupt
from mwsession.wire import (
    Admin,
    ChannelSend,
    FrameDecoder,
    Keepalive,
    LoginAck,
    decode,
    pack_frame,
)


class TestDecode:

    def test_empty_buffer_is_incomplete(self):
        assert decode(b"") is None

    def test_partial_length_is_incomplete(self):
        assert decode(b"\x00\x00") is None

    def test_partial_body_is_incomplete(self):
        data = pack_frame(Admin(text="hello"))
        assert decode(data[:-1]) is None

    def test_complete_frame_reports_consumed(self):
        data = pack_frame(Admin(text="hello"))
        frame, consumed = decode(data + b"\x80")
        assert frame == Admin(text="hello")
        assert consumed == len(data)

    def test_keepalive(self):
        assert decode(b"\x80") == (Keepalive(), 1)

    def test_bad_lead_byte(self):
        with pytest.raises(FrameCorrupt, match="lead byte"):
            decode(b"\x81\x00\x00\x00")

    def test_length_below_header(self):
        with pytest.raises(FrameCorrupt, match="invalid message length"):
            decode(struct.pack("!I", 3) + b"abc")

    def test_length_above_limit(self):
        with pytest.raises(FrameCorrupt, match="invalid message length"):
            decode(struct.pack("!I", 4096), max_frame_size=1024)


class TestFrameDecoder:

    def test_frame_split_at_every_boundary(self):
        frame = LoginAck(user_id="alice", login_id="L1", login_type=3)
        data = pack_frame(frame)

        for cut in range(1, len(data)):
            decoder = FrameDecoder()
            decoder.feed(data[:cut])
            assert decoder.next_frame() is None
            assert decoder.buffered == cut
            decoder.feed(data[cut:])
            assert decoder.next_frame() == frame
            assert decoder.buffered == 0

    def test_several_frames_in_one_chunk(self):
        frames = [Admin(text="one"), Keepalive(), ChannelSend(message_type=2, data=b"x", channel=9)]
        decoder = FrameDecoder()
        decoder.feed(b"".join(pack_frame(f) for f in frames))

        got = []
        while (frame := decoder.next_frame()) is not None:
            got.append(frame)
        assert got == frames

    def test_tail_is_retained(self):
        first, second = pack_frame(Admin(text="a")), pack_frame(Admin(text="b"))
        decoder = FrameDecoder()
        decoder.feed(first + second[:5])
        assert decoder.next_frame() == Admin(text="a")
        assert decoder.next_frame() is None
        assert decoder.buffered == 5

    def test_reset_drops_buffer(self):
        decoder = FrameDecoder()
        decoder.feed(b"\x00\x00\x00")
        decoder.reset()
        assert decoder.buffered == 0
