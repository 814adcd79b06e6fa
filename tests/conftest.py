"""Shared test fixtures."""

import asyncio
import json
from typing import Any

import pytest
import pytest_asyncio
from websockets.asyncio.server import ServerConnection, serve

from yewchat.bus import SessionBus
from yewchat.session import SessionController


class FakeTransport:
    """Records outbound frames instead of writing them to a socket."""

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.accept = True
        self.closed = False

    def send(self, text: str) -> bool:
        if not self.accept or self.closed:
            return False
        self.sent.append(text)
        return True

    async def close(self) -> None:
        self.closed = True

    def sent_json(self) -> list[dict[str, Any]]:
        return [json.loads(frame) for frame in self.sent]


class FakeChatServer:
    """Minimal YewChat peer: records what clients send, pushes frames on demand."""

    def __init__(self) -> None:
        self.endpoint = ""
        self.connections: list[ServerConnection] = []
        self.inbox: asyncio.Queue[str] = asyncio.Queue()
        self.client_connected = asyncio.Event()

    async def handler(self, ws: ServerConnection) -> None:
        self.connections.append(ws)
        self.client_connected.set()
        async for frame in ws:
            await self.inbox.put(frame)

    async def next_frame(self, timeout: float = 2.0) -> dict[str, Any]:
        return json.loads(await asyncio.wait_for(self.inbox.get(), timeout=timeout))

    async def push(self, frame: str) -> None:
        await self.client_connected.wait()
        for ws in list(self.connections):
            await ws.send(frame)

    async def push_json(self, payload: dict[str, Any]) -> None:
        await self.push(json.dumps(payload))

    async def drop_clients(self) -> None:
        for ws in list(self.connections):
            await ws.close()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def bus() -> SessionBus:
    return SessionBus()


@pytest.fixture
def controller(transport: FakeTransport, bus: SessionBus) -> SessionController:
    return SessionController(transport, bus, "alice")


@pytest_asyncio.fixture
async def chat_server():
    server = FakeChatServer()
    async with serve(server.handler, "127.0.0.1", 0) as ws_server:
        port = list(ws_server.sockets)[0].getsockname()[1]
        server.endpoint = f"ws://127.0.0.1:{port}"
        yield server
