"""
Tests for the pure session state machine.

No session, no I/O: each test steps a ProtocolState and inspects actions.
"""
import pytest

from mwsession import properties
from mwsession.errors import ServerStopped, UnexpectedFrame
from mwsession.protocol import (
    ChangeState,
    CloseTransport,
    Deliver,
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
from mwsession.wire import (
    Admin,
    ChannelDestroy,
    Handshake,
    HandshakeAck,
    Keepalive,
    LoginAck,
    LoginContinue,
    LoginRedirect,
)


def _states(actions):
    return [a.state for a in actions if isinstance(a, ChangeState)]


def _sent(actions):
    return [a.frame for a in actions if isinstance(a, SendFrame)]


def _step_all(state, *events):
    actions = []
    for event in events:
        state, new = SessionProtocol.step(state, event)
        actions += new
    return state, actions


START = StartSession(major=0x1E, minor=0x1D, login_type=0x1003, local_host="box")
ACK = FrameReceived(HandshakeAck(major=0x1E, minor=0x19, server_key=b"k" * 32))


class TestHandshake:

    def test_start_sends_handshake(self):
        state, actions = SessionProtocol.step(ProtocolState(), START)

        assert state.state == SessionState.HANDSHAKE
        assert state.handshake_sent
        assert _states(actions) == [SessionState.STARTING, SessionState.HANDSHAKE]
        assert _sent(actions) == [Handshake(major=0x1E, minor=0x1D, login_type=0x1003, local_host="box")]

    def test_handshake_announced_after_send(self):
        _, actions = SessionProtocol.step(ProtocolState(), START)
        kinds = [type(a) for a in actions if not isinstance(a, Log)]
        assert kinds == [ChangeState, SendFrame, ChangeState]

    def test_ack_stores_version_and_sends_login(self):
        state, actions = _step_all(ProtocolState(), START, ACK)

        assert state.state == SessionState.LOGIN
        assert state.server_major == 0x1E and state.server_minor == 0x19
        assert StoreProperty(properties.SERVER_VER_MINOR, 0x19) in actions
        logins = [a for a in actions if isinstance(a, SendLogin)]
        assert logins == [SendLogin(0x1003, server_key=b"k" * 32)]
        assert _states(actions)[-2:] == [SessionState.HANDSHAKE_ACK, SessionState.LOGIN]

    def test_start_twice_is_ignored_by_machine(self):
        state, _ = SessionProtocol.step(ProtocolState(), START)
        again, actions = SessionProtocol.step(state, START)
        assert again == state
        assert all(isinstance(a, Log) for a in actions)


class TestLogin:

    @pytest.fixture
    def in_login(self):
        state, _ = _step_all(ProtocolState(), START, ACK)
        return state

    def test_login_ack_reaches_started(self, in_login):
        state, actions = SessionProtocol.step(in_login, FrameReceived(LoginAck(user_id="a", login_id="L9")))
        assert state.state == SessionState.STARTED
        assert state.login_id == "L9"
        assert _states(actions) == [SessionState.LOGIN_ACK, SessionState.STARTED]

    def test_redirect(self, in_login):
        state, actions = SessionProtocol.step(in_login, FrameReceived(LoginRedirect(host="10.1.1.1")))
        assert state.state == SessionState.LOGIN_REDIR
        assert state.redirect_host == "10.1.1.1"
        assert actions[-1] == ChangeState(SessionState.LOGIN_REDIR, "10.1.1.1")

    def test_force_login_after_redirect(self, in_login):
        state, _ = SessionProtocol.step(in_login, FrameReceived(LoginRedirect(host="10.1.1.1")))
        state, actions = SessionProtocol.step(state, ForceLogin())
        assert state.state == SessionState.LOGIN_CONT
        assert _sent(actions) == [LoginContinue()]

        state, actions = SessionProtocol.step(state, FrameReceived(LoginAck(user_id="a", login_id="L")))
        assert state.state == SessionState.STARTED

    def test_continue_resends_login_with_challenge(self, in_login):
        state, actions = SessionProtocol.step(in_login, FrameReceived(LoginContinue(challenge=b"abc")))
        assert state.state == SessionState.LOGIN_CONT
        assert SendLogin(0x1003, server_key=b"k" * 32, continuation=b"abc") in actions
        assert _states(actions) == [SessionState.LOGIN_CONT]

    def test_redirect_not_accepted_in_login_cont(self, in_login):
        state, _ = SessionProtocol.step(in_login, FrameReceived(LoginContinue(challenge=b"abc")))
        state, actions = SessionProtocol.step(state, FrameReceived(LoginRedirect(host="x")))
        assert state.state == SessionState.STOPPED
        assert isinstance(state.last_error, UnexpectedFrame)


class TestUnexpected:

    def test_login_ack_during_handshake_stops(self):
        state, _ = SessionProtocol.step(ProtocolState(), START)
        state, actions = SessionProtocol.step(state, FrameReceived(LoginAck(user_id="a", login_id="L")))

        assert state.state == SessionState.STOPPED
        assert _states(actions) == [SessionState.STOPPING, SessionState.STOPPED]
        assert isinstance(actions[0].info, UnexpectedFrame)
        assert sum(isinstance(a, CloseTransport) for a in actions) == 1

    def test_frames_after_stop_are_dropped(self):
        state, _ = _step_all(ProtocolState(), START, StopSession())
        again, actions = SessionProtocol.step(state, FrameReceived(Admin(text="late")))
        assert again == state
        assert not _states(actions)

    def test_handshake_ack_when_started_is_unexpected(self):
        state, _ = _step_all(
            ProtocolState(), START, ACK, FrameReceived(LoginAck(user_id="a", login_id="L"))
        )
        state, _ = SessionProtocol.step(state, ACK)
        assert state.state == SessionState.STOPPED


class TestStarted:

    @pytest.fixture
    def started(self):
        state, _ = _step_all(
            ProtocolState(), START, ACK, FrameReceived(LoginAck(user_id="a", login_id="L"))
        )
        return state

    def test_admin_is_delivered(self, started):
        state, actions = SessionProtocol.step(started, FrameReceived(Admin(text="hi")))
        assert state == started
        assert actions == [Deliver(Admin(text="hi"))]

    def test_channel_destroy_on_service_channel_is_delivered(self, started):
        frame = ChannelDestroy(reason=0, channel=5)
        _, actions = SessionProtocol.step(started, FrameReceived(frame))
        assert actions == [Deliver(frame)]

    def test_keepalive_ignored(self, started):
        state, actions = SessionProtocol.step(started, FrameReceived(Keepalive()))
        assert state == started and actions == []


class TestStop:

    def test_stop_sends_destroy_then_closes(self):
        state, _ = SessionProtocol.step(ProtocolState(), START)
        state, actions = SessionProtocol.step(state, StopSession())

        kinds = [type(a) for a in actions if not isinstance(a, Log)]
        assert kinds == [ChangeState, SendFrame, CloseTransport, ChangeState]
        assert _sent(actions) == [ChannelDestroy(reason=0)]

    def test_stop_before_start_sends_nothing(self):
        state, actions = SessionProtocol.step(ProtocolState(), StopSession())
        assert state.state == SessionState.STOPPED
        assert _sent(actions) == []
        assert any(isinstance(a, CloseTransport) for a in actions)

    def test_stop_is_idempotent(self):
        state, _ = _step_all(ProtocolState(), START, StopSession())
        again, actions = SessionProtocol.step(state, StopSession())
        assert again == state and actions == []

    def test_write_failure_stop_does_not_notify_server(self):
        state, _ = SessionProtocol.step(ProtocolState(), START)
        _, actions = SessionProtocol.step(state, StopSession(reason=RuntimeError("x"), notify_server=False))
        assert _sent(actions) == []

    def test_server_destroy_on_channel_zero(self):
        state, _ = _step_all(ProtocolState(), START, ACK)
        state, actions = SessionProtocol.step(state, FrameReceived(ChannelDestroy(reason=0x80000200)))

        assert state.state == SessionState.STOPPED
        assert isinstance(state.last_error, ServerStopped)
        assert state.last_error.reason == 0x80000200
        assert _sent(actions) == []
