"""
Session Protocol State Machine.

This is the handshake/login logic, implemented as a pure function:
    step(state, event) -> (new_state, actions)

No I/O, no side effects. The session executes the returned actions.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Callable

from .. import properties
from ..errors import ServerStopped, UnexpectedFrame
from ..wire.frames import (
    Admin,
    ChannelDestroy,
    ChannelSend,
    Frame,
    Handshake,
    HandshakeAck,
    Keepalive,
    LoginAck,
    LoginContinue,
    LoginRedirect,
    SetPrivacyList,
    SetUserStatus,
)
from .state import ProtocolState, SessionState
from .events import (
    REASON_PROTOCOL_ERROR,
    Event,
    ForceLogin,
    FrameReceived,
    StartSession,
    StopSession,
)
from .actions import (
    Action,
    ChangeState,
    CloseTransport,
    Deliver,
    Log,
    SendFrame,
    SendLogin,
    StoreProperty,
)


# Type alias for the step function signature
StepResult = tuple[ProtocolState, list[Action]]


class SessionProtocol:
    """
    Pure functional state machine for the session handshake and login.

    Usage:
        state = ProtocolState()
        state, actions = SessionProtocol.step(state, StartSession(0x1e, 0x1d, 0x1003))
        # session executes actions...
        state, actions = SessionProtocol.step(state, FrameReceived(handshake_ack))
        # etc.
    """

    @staticmethod
    def step(state: ProtocolState, event: Event) -> StepResult:
        """
        Process an event and return (new_state, actions).

        This is the ONLY entry point for protocol logic.
        """

        if isinstance(event, FrameReceived):
            return _step_frame(state, event.frame)

        handler = _HANDLERS.get((state.state, type(event)))
        if handler:
            return handler(state, event)

        handler = _GLOBAL_HANDLERS.get(type(event))
        if handler:
            return handler(state, event)

        return (state, [Log("warn", f"[SessionProtocol] Ignoring {type(event).__name__} in {state.state.name}")])


def _step_frame(state: ProtocolState, frame: Frame) -> StepResult:
    if state.is_terminal:
        return (state, [Log("debug", f"[SessionProtocol] Dropping {type(frame).__name__} after stop")])

    handler = _FRAME_HANDLERS.get((state.state, type(frame)))
    if handler:
        return handler(state, frame)

    handler = _GLOBAL_FRAME_HANDLERS.get(type(frame))
    if handler:
        return handler(state, frame)

    error = UnexpectedFrame(frame, state.state)
    return _stop(state, StopSession(reason=error, code=REASON_PROTOCOL_ERROR))


# =============================================================================
# Event handlers
# =============================================================================

def _handle_unknown_start(state: ProtocolState, event: StartSession) -> StepResult:
    """UNKNOWN + StartSession -> send handshake, await ack."""

    handshake = Handshake(
        major=event.major,
        minor=event.minor,
        login_type=event.login_type,
        local_host=event.local_host,
    )
    return (
        replace(
            state,
            state=SessionState.HANDSHAKE,
            handshake_sent=True,
            login_type=event.login_type,
            last_error=None,
        ),
        [
            ChangeState(SessionState.STARTING),
            Log("info", f"[SessionProtocol] Sending handshake (client {event.major:#06x}.{event.minor:#06x})"),
            SendFrame(handshake),
            ChangeState(SessionState.HANDSHAKE),
        ]
    )


def _handle_redir_force_login(state: ProtocolState, event: ForceLogin) -> StepResult:
    """LOGIN_REDIR + ForceLogin -> stay on this server, await login ack."""
    return (
        replace(state, state=SessionState.LOGIN_CONT, redirect_host=None),
        [
            Log("info", f"[SessionProtocol] Ignoring redirect to {state.redirect_host}, forcing login"),
            SendFrame(LoginContinue()),
            ChangeState(SessionState.LOGIN_CONT),
        ]
    )


def _stop(state: ProtocolState, event: StopSession) -> StepResult:
    """Any non-terminal state + StopSession -> STOPPING, close, STOPPED."""

    if state.is_terminal:
        return (state, [])

    actions: list[Action] = [ChangeState(SessionState.STOPPING, event.reason)]
    if event.reason is None:
        actions.append(Log("info", "[SessionProtocol] Stopping session"))
    else:
        actions.append(Log("error", f"[SessionProtocol] Stopping session: {event.reason}"))

    if event.notify_server and state.handshake_sent:
        actions.append(SendFrame(ChannelDestroy(reason=event.code)))

    actions += [
        CloseTransport(),
        ChangeState(SessionState.STOPPED, event.reason),
    ]
    return (replace(state, state=SessionState.STOPPED, last_error=event.reason), actions)


# =============================================================================
# Frame handlers
# =============================================================================

def _handle_handshake_ack(state: ProtocolState, frame: HandshakeAck) -> StepResult:
    """HANDSHAKE + HandshakeAck -> record server version, send login."""
    return (
        replace(
            state,
            state=SessionState.LOGIN,
            server_major=frame.major,
            server_minor=frame.minor,
            server_key=frame.server_key,
        ),
        [
            Log("info", f"[SessionProtocol] Handshake acknowledged (server {frame.major:#06x}.{frame.minor:#06x})"),
            StoreProperty(properties.SERVER_VER_MAJOR, frame.major),
            StoreProperty(properties.SERVER_VER_MINOR, frame.minor),
            ChangeState(SessionState.HANDSHAKE_ACK),
            SendLogin(state.login_type, server_key=frame.server_key),
            ChangeState(SessionState.LOGIN),
        ]
    )


def _handle_login_ack(state: ProtocolState, frame: LoginAck) -> StepResult:
    """LOGIN / LOGIN_CONT + LoginAck -> STARTED."""
    return (
        replace(state, state=SessionState.STARTED, login_id=frame.login_id),
        [
            Log("info", f"[SessionProtocol] Login acknowledged for {frame.user_id}"),
            StoreProperty(properties.SERVER_LOGIN_ID, frame.login_id),
            ChangeState(SessionState.LOGIN_ACK),
            ChangeState(SessionState.STARTED),
        ]
    )


def _handle_login_redirect(state: ProtocolState, frame: LoginRedirect) -> StepResult:
    """LOGIN + LoginRedirect -> LOGIN_REDIR, caller reconnects or forces login."""
    return (
        replace(state, state=SessionState.LOGIN_REDIR, redirect_host=frame.host),
        [
            Log("info", f"[SessionProtocol] Login redirected to {frame.host}"),
            ChangeState(SessionState.LOGIN_REDIR, frame.host),
        ]
    )


def _handle_login_continue(state: ProtocolState, frame: LoginContinue) -> StepResult:
    """LOGIN + LoginContinue -> answer the challenge with a fresh login."""
    return (
        replace(state, state=SessionState.LOGIN_CONT),
        [
            Log("info", f"[SessionProtocol] Login continuation ({len(frame.challenge)} byte challenge)"),
            ChangeState(SessionState.LOGIN_CONT),
            SendLogin(state.login_type, server_key=state.server_key, continuation=frame.challenge),
        ]
    )


def _handle_started_deliver(state: ProtocolState, frame: Frame) -> StepResult:
    """STARTED + service frame -> hand to the upper layer."""
    return (state, [Deliver(frame)])


def _handle_channel_destroy(state: ProtocolState, frame: ChannelDestroy) -> StepResult:
    """Channel 0 destroy ends the session (login refused, server shutdown)."""
    if frame.channel == 0:
        error = ServerStopped(frame.reason)
        return _stop(state, StopSession(reason=error, code=frame.reason, notify_server=False))

    if state.state == SessionState.STARTED:
        return (state, [Deliver(frame)])

    return _stop(state, StopSession(reason=UnexpectedFrame(frame, state.state), code=REASON_PROTOCOL_ERROR))


def _handle_keepalive(state: ProtocolState, frame: Keepalive) -> StepResult:
    return (state, [])


# =============================================================================
# Handler dispatch tables
# =============================================================================

# State-specific event handlers: (state, event_type) -> handler
_HANDLERS: dict[tuple, Callable[[ProtocolState, Event], StepResult]] = {
    (SessionState.UNKNOWN, StartSession): _handle_unknown_start,
    (SessionState.LOGIN_REDIR, ForceLogin): _handle_redir_force_login,
}

# Global event handlers: event_type -> handler
_GLOBAL_HANDLERS: dict[type, Callable[[ProtocolState, Event], StepResult]] = {
    StopSession: _stop,
}

# State-specific frame handlers: (state, frame_type) -> handler
_FRAME_HANDLERS: dict[tuple, Callable[[ProtocolState, Frame], StepResult]] = {
    # Handshake
    (SessionState.HANDSHAKE, HandshakeAck): _handle_handshake_ack,

    # Login
    (SessionState.LOGIN, LoginAck): _handle_login_ack,
    (SessionState.LOGIN, LoginRedirect): _handle_login_redirect,
    (SessionState.LOGIN, LoginContinue): _handle_login_continue,
    (SessionState.LOGIN_CONT, LoginAck): _handle_login_ack,

    # Started
    (SessionState.STARTED, Admin): _handle_started_deliver,
    (SessionState.STARTED, ChannelSend): _handle_started_deliver,
    (SessionState.STARTED, SetUserStatus): _handle_started_deliver,
    (SessionState.STARTED, SetPrivacyList): _handle_started_deliver,
}

# Global frame handlers: frame_type -> handler (any non-terminal state)
_GLOBAL_FRAME_HANDLERS: dict[type, Callable[[ProtocolState, Frame], StepResult]] = {
    Keepalive: _handle_keepalive,
    ChannelDestroy: _handle_channel_destroy,
}
