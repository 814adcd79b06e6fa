"""
Session controller. Owns the roster and transcript and applies the chat
protocol to every envelope published on the session bus.

    users    -> roster replaced wholesale, order kept
    message  -> one ChatMessage appended to the transcript
    register -> outbound only; ignored if it ever comes back

Listeners are told which message type changed the state, and only when it
actually did.
"""

import logging
from typing import Callable, Optional, Protocol

from yewchat.bus import SessionBus
from yewchat.errors import ProtocolDecodeError
from yewchat.models.envelope import Envelope, MessageType
from yewchat.models.session import ChatMessage, SessionState, UserProfile
from yewchat.transport.envelope import (
    decode_chat_message,
    encode_envelope,
    message_envelope,
    register_envelope,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[MessageType], None]


class Transport(Protocol):
    def send(self, text: str) -> bool: ...

    async def close(self) -> None: ...


class SessionController:
    def __init__(self, transport: Transport, bus: SessionBus, username: str):
        self._transport = transport
        self._username = username
        self._state = SessionState()
        self._listeners: list[StateListener] = []
        self._closed = False
        self._unsubscribe: Optional[Callable[[], None]] = bus.subscribe(self.handle_envelope)

        # The server learns who we are before anything else goes out.
        if self._send(register_envelope(username)):
            logger.debug("Registered as %r", username)

    @property
    def username(self) -> str:
        return self._username

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def state(self) -> SessionState:
        """Snapshot of the current state; mutating it does not affect the session."""
        return self._state.model_copy(deep=True)

    def current_roster(self) -> tuple[UserProfile, ...]:
        return tuple(self._state.roster)

    def current_transcript(self) -> tuple[ChatMessage, ...]:
        return tuple(self._state.transcript)

    def find_profile(self, name: str) -> Optional[UserProfile]:
        """Roster lookup by name. None when the user is not (or no longer) online."""
        for profile in self._state.roster:
            if profile.name == name:
                return profile
        return None

    def sender_profile(self, message: ChatMessage) -> Optional[UserProfile]:
        return self.find_profile(message.sender)

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Subscribe to state changes. Returns a cleanup function."""
        self._listeners.append(listener)
        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def handle_envelope(self, envelope: Envelope) -> bool:
        """Apply one inbound envelope. Returns True if the state changed."""
        if self._closed:
            return False

        if envelope.message_type is MessageType.USERS:
            self._state.roster = [UserProfile(name=name) for name in envelope.data_array or []]
            logger.debug("Roster replaced: %d user(s) online", len(self._state.roster))
        elif envelope.message_type is MessageType.MESSAGE:
            decoded = decode_chat_message(envelope.data or "")
            if isinstance(decoded, ProtocolDecodeError):
                logger.warning("Dropping chat message (%s): %s", decoded.code, decoded)
                return False
            self._state.transcript.append(decoded)
            logger.debug("Message from %s appended (transcript length %d)", decoded.sender, len(self._state.transcript))
        else:
            logger.debug("Ignoring inbound %s envelope", envelope.message_type.value)
            return False

        for listener in list(self._listeners):
            listener(envelope.message_type)
        return True

    def submit_message(self, text: str) -> bool:
        """Send a chat message. The text goes out as-is; there is no local echo.

        Returns False if the transport did not accept the frame or the session
        is closed.
        """
        if self._closed:
            logger.warning("Session for %r is closed; message not sent", self._username)
            return False
        return self._send(message_envelope(text))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()
        await self._transport.close()

    def _send(self, envelope: Envelope) -> bool:
        return self._transport.send(encode_envelope(envelope))
