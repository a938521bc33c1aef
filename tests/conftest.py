"""
Pytest configuration for mwsession tests.

This file provides fixtures and utilities for testing.
"""
import pytest
import sys
from pathlib import Path

# Ensure mwsession package is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from mwsession import Session, SessionConfig, SessionHandler, properties
from mwsession.wire import HandshakeAck, LoginAck, pack_frame, unpack_frame


class Recorder:
    """Handler stub that records everything the session does."""

    def __init__(self, write_result=0):
        self.write_result = write_result
        self.writes: list[bytes] = []
        self.close_calls = 0
        self.states = []
        self.infos = []
        self.admin = []
        self.user_status = []
        self.privacy = []
        self.channel = []
        self.clear_calls = 0
        # hooks tests can set to act from inside a callback
        self.on_state = None

    def io_write(self, data):
        self.writes.append(data)
        return self.write_result

    def io_close(self):
        self.close_calls += 1

    def on_state_change(self, state, info):
        self.states.append(state)
        self.infos.append(info)
        if self.on_state:
            self.on_state(state, info)

    def clear(self):
        self.clear_calls += 1

    def handler(self) -> SessionHandler:
        return SessionHandler(
            io_write=self.io_write,
            io_close=self.io_close,
            on_state_change=self.on_state_change,
            on_admin=self.admin.append,
            on_set_user_status=self.user_status.append,
            on_set_privacy_info=self.privacy.append,
            on_channel_message=self.channel.append,
            clear=self.clear,
        )

    @property
    def frames(self):
        """Decoded writes."""
        return [unpack_frame(w) for w in self.writes]


class LogCapture:
    """Logger callable that keeps (level, message) pairs."""

    def __init__(self):
        self.records: list[tuple[str, str]] = []

    def __call__(self, level, message):
        self.records.append((level, message))

    @property
    def text(self) -> str:
        return "\n".join(m for _, m in self.records)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def log_capture():
    return LogCapture()


@pytest.fixture
def plain_config():
    """Config that never encrypts, so login frames carry the password."""
    return SessionConfig(encrypt_password=False)


@pytest.fixture
def session(recorder, plain_config, log_capture):
    s = Session(recorder.handler(), config=plain_config, logger=log_capture)
    s.set_property(properties.AUTH_USER_ID, "alice")
    s.set_property(properties.AUTH_PASSWORD, "s3cret")
    return s


@pytest.fixture
def handshake_ack_bytes():
    return pack_frame(HandshakeAck(major=0x001E, minor=0x001D, srvrcalc_addr=0x0A000001))


@pytest.fixture
def login_ack_bytes():
    return pack_frame(LoginAck(user_id="alice", login_id="login-42", login_type=0x1003))


@pytest.fixture
def server_keypair():
    """Generate X25519 keypair for the server side of encrypted logins."""
    from dissononce.dh.x25519.x25519 import X25519DH
    return X25519DH().generate_keypair()
