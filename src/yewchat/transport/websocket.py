"""
WebSocket transport — one connection to the chat server per session.

Inbound frames are decoded in the reader task and published on the session bus
in arrival order. Outbound text goes through a bounded queue drained by the
sender task, so send() never blocks and never raises.

The transport does not reconnect. Connection loss is reported to close
handlers and through wait_closed(); callers build a new session to retry.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from websockets.asyncio.client import ClientConnection
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from yewchat.bus import SessionBus
from yewchat.errors import ProtocolDecodeError, TransportConnectionError, TransportSendError
from yewchat.transport.envelope import decode_envelope

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "ws://127.0.0.1:8080"
DEFAULT_MAX_QUEUE = 64
DEFAULT_OPEN_TIMEOUT = 10.0

CloseHandler = Callable[[Optional[TransportConnectionError]], None]


class WebSocketTransport:
    def __init__(
        self,
        endpoint: str,
        bus: SessionBus,
        max_queue: int = DEFAULT_MAX_QUEUE,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT,
    ):
        self._endpoint = endpoint
        self._bus = bus
        self._max_queue = max_queue
        self._open_timeout = open_timeout
        self._ws: Optional[ClientConnection] = None
        self._outbox: Optional[asyncio.Queue[str]] = None
        self._reader: Optional[asyncio.Task[None]] = None
        self._sender: Optional[asyncio.Task[None]] = None
        self._closing = False
        self._closed = asyncio.Event()
        self._close_error: Optional[TransportConnectionError] = None
        self._close_handlers: list[CloseHandler] = []

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._closing and not self._closed.is_set()

    @property
    def close_error(self) -> Optional[TransportConnectionError]:
        """Why the connection ended; None while open or after a local close()."""
        return self._close_error

    def add_close_handler(self, handler: CloseHandler) -> Callable[[], None]:
        """Called once when the connection ends. Returns a cleanup function."""
        self._close_handlers.append(handler)
        def remove() -> None:
            try:
                self._close_handlers.remove(handler)
            except ValueError:
                pass
        return remove

    async def connect(self) -> None:
        """Open the socket and start the reader and sender tasks."""
        if self._closing or self._closed.is_set():
            raise TransportConnectionError("Transport already closed; create a new one to reconnect")
        if self._ws is not None:
            return

        try:
            self._ws = await ws_connect(self._endpoint, open_timeout=self._open_timeout)
        except (OSError, asyncio.TimeoutError, InvalidHandshake, InvalidURI) as e:
            raise TransportConnectionError(
                f"Could not connect to {self._endpoint}: {e}",
                details={"endpoint": self._endpoint},
            ) from e

        self._outbox = asyncio.Queue(maxsize=self._max_queue)
        self._reader = asyncio.create_task(self._read_loop(self._ws))
        self._sender = asyncio.create_task(self._send_loop(self._ws, self._outbox))
        logger.info("Connected to %s", self._endpoint)

    def send(self, text: str) -> bool:
        """Queue a text frame for the socket. Returns False (and logs) if it was not accepted."""
        if not self.connected or self._outbox is None:
            self._report_send_failure("transport is not open")
            return False
        try:
            self._outbox.put_nowait(text)
        except asyncio.QueueFull:
            self._report_send_failure(f"outbound queue is full ({self._max_queue} frames)")
            return False
        return True

    async def flush(self) -> None:
        """Wait until every queued frame has been handed to the socket, or the connection ends."""
        if self._outbox is None:
            return
        joined = asyncio.ensure_future(self._outbox.join())
        ended = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({joined, ended}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            joined.cancel()
            ended.cancel()

    async def wait_closed(self) -> Optional[TransportConnectionError]:
        await self._closed.wait()
        return self._close_error

    async def close(self) -> None:
        if self._closing or self._closed.is_set():
            return
        self._closing = True
        if self._ws is None:
            self._finish(None)
            return

        logger.info("Closing connection to %s", self._endpoint)
        await self._ws.close()
        tasks = [t for t in (self._reader, self._sender) if t is not None]
        await asyncio.gather(*tasks, return_exceptions=True)
        self._finish(None)

    async def _read_loop(self, ws: ClientConnection) -> None:
        error: Optional[TransportConnectionError] = None
        try:
            async for frame in ws:
                self._dispatch(frame)
        except ConnectionClosed as e:
            if not self._closing:
                error = TransportConnectionError(f"Connection lost: {e}", details=self._close_details(ws))
        else:
            if not self._closing:
                error = TransportConnectionError("Server closed the connection", details=self._close_details(ws))
        finally:
            if self._sender is not None:
                self._sender.cancel()
            self._finish(error)

    async def _send_loop(self, ws: ClientConnection, outbox: "asyncio.Queue[str]") -> None:
        while True:
            text = await outbox.get()
            try:
                await ws.send(text)
            except ConnectionClosed as e:
                self._report_send_failure(f"connection closed before the frame was sent ({e})")
                return
            finally:
                outbox.task_done()
            logger.debug("Sent frame: %s", text)

    def _dispatch(self, frame: Any) -> None:
        decoded = decode_envelope(frame)
        if isinstance(decoded, ProtocolDecodeError):
            logger.warning("Dropping inbound frame (%s): %s", decoded.code, decoded)
            return
        logger.debug("Received %s envelope", decoded.message_type.value)
        self._bus.publish(decoded)

    def _finish(self, error: Optional[TransportConnectionError]) -> None:
        if self._closed.is_set():
            return
        self._closing = True
        self._close_error = error
        self._closed.set()
        if error is not None:
            logger.warning("Connection to %s ended (%s): %s", self._endpoint, error.code, error)
        else:
            logger.info("Connection to %s closed", self._endpoint)
        for handler in list(self._close_handlers):
            handler(error)

    @staticmethod
    def _close_details(ws: ClientConnection) -> dict[str, Any]:
        return {"code": ws.close_code, "reason": ws.close_reason}

    @staticmethod
    def _report_send_failure(reason: str) -> None:
        err = TransportSendError(f"Frame dropped: {reason}")
        logger.warning("Send failed (%s): %s", err.code, err)


async def connect(endpoint: str, bus: SessionBus, **kwargs: Any) -> WebSocketTransport:
    """Open a transport to `endpoint` publishing inbound envelopes on `bus`."""
    transport = WebSocketTransport(endpoint, bus, **kwargs)
    await transport.connect()
    return transport
