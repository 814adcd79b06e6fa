"""
ChatClient builds and tears down one chat session. The bus, transport and
session controller are created together on connect() and discarded together
on disconnect().
"""

from typing import Any, Callable, Optional

from yewchat.bus import SessionBus
from yewchat.errors import SessionError, TransportConnectionError
from yewchat.models.session import ChatMessage, UserProfile
from yewchat.session import SessionController, StateListener
from yewchat.transport.websocket import (
    DEFAULT_ENDPOINT,
    DEFAULT_MAX_QUEUE,
    DEFAULT_OPEN_TIMEOUT,
    WebSocketTransport,
)


class ChatClient:
    """Async chat client for a YewChat server."""

    def __init__(
        self,
        username: str,
        endpoint: str = DEFAULT_ENDPOINT,
        max_queue: int = DEFAULT_MAX_QUEUE,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT,
    ):
        self._username = username
        self._endpoint = endpoint
        self._max_queue = max_queue
        self._open_timeout = open_timeout

        self._bus: Optional[SessionBus] = None
        self._transport: Optional[WebSocketTransport] = None
        self._session: Optional[SessionController] = None

    @property
    def username(self) -> str:
        return self._username

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def connected(self) -> bool:
        return self._transport is not None and self._transport.connected

    @property
    def session(self) -> SessionController:
        self._ensure_connected()
        return self._session  # type: ignore[return-value]

    async def connect(self) -> None:
        if self._session is not None:
            return
        if not self._username:
            raise SessionError("A non-empty username is required to join the chat.")

        bus = SessionBus()
        transport = WebSocketTransport(
            self._endpoint, bus,
            max_queue=self._max_queue,
            open_timeout=self._open_timeout,
        )
        await transport.connect()
        self._bus = bus
        self._transport = transport
        self._session = SessionController(transport, bus, self._username)

    async def disconnect(self) -> None:
        if self._session is not None:
            await self._session.close()
        if self._bus is not None:
            self._bus.close()
        self._session = None
        self._transport = None
        self._bus = None

    async def __aenter__(self) -> "ChatClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    def submit_message(self, text: str) -> bool:
        return self.session.submit_message(text)

    def current_roster(self) -> tuple[UserProfile, ...]:
        return self.session.current_roster()

    def current_transcript(self) -> tuple[ChatMessage, ...]:
        return self.session.current_transcript()

    def find_profile(self, name: str) -> Optional[UserProfile]:
        return self.session.find_profile(name)

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        return self.session.add_listener(listener)

    async def flush(self) -> None:
        """Wait for queued outbound messages to reach the socket."""
        if self._transport is not None:
            await self._transport.flush()

    async def wait_closed(self) -> Optional[TransportConnectionError]:
        """Wait for the session to end. Returns the error if the connection was lost."""
        if self._transport is None:
            raise SessionError("Not connected. Call connect() first.")
        return await self._transport.wait_closed()

    def _ensure_connected(self) -> None:
        if self._session is None:
            raise SessionError("Not connected. Call connect() first.")
