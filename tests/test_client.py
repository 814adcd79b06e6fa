"""ChatClient end-to-end against a local websockets server."""

import asyncio
import json

import pytest

from yewchat import ChatClient, SessionError, TransportConnectionError
from yewchat.models.envelope import MessageType
from yewchat.models.session import ChatMessage


def change_waiter(client: ChatClient, kind: MessageType) -> asyncio.Event:
    """Register before pushing, so a fast reader cannot beat the listener."""
    changed = asyncio.Event()
    client.add_listener(lambda k: changed.set() if k is kind else None)
    return changed


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_empty_username_is_rejected(self, chat_server):
        client = ChatClient("", endpoint=chat_server.endpoint)
        with pytest.raises(SessionError):
            await client.connect()
        assert not client.connected

    def test_session_requires_connect(self):
        client = ChatClient("alice")
        with pytest.raises(SessionError):
            client.session
        with pytest.raises(SessionError):
            client.submit_message("hi")

    @pytest.mark.asyncio
    async def test_wait_closed_requires_connect(self):
        with pytest.raises(SessionError):
            await ChatClient("alice").wait_closed()

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        client = ChatClient("alice", endpoint="ws://127.0.0.1:1", open_timeout=2.0)
        with pytest.raises(TransportConnectionError):
            await client.connect()
        assert not client.connected

    @pytest.mark.asyncio
    async def test_register_is_first_frame(self, chat_server):
        async with ChatClient("alice", endpoint=chat_server.endpoint) as client:
            assert client.connected
            assert await chat_server.next_frame() == {"messageType": "register", "dataArray": None, "data": "alice"}

    @pytest.mark.asyncio
    async def test_disconnect_tears_down_session(self, chat_server):
        client = ChatClient("alice", endpoint=chat_server.endpoint)
        await client.connect()
        session = client.session
        await client.disconnect()

        assert not client.connected
        assert session.closed
        with pytest.raises(SessionError):
            client.session
        await client.disconnect()


class TestChat:
    @pytest.mark.asyncio
    async def test_roster_and_transcript_follow_the_server(self, chat_server):
        async with ChatClient("alice", endpoint=chat_server.endpoint) as client:
            await chat_server.next_frame()

            changed = change_waiter(client, MessageType.USERS)
            await chat_server.push_json({"messageType": "users", "dataArray": ["alice", "bob"]})
            await asyncio.wait_for(changed.wait(), timeout=2.0)
            assert [p.name for p in client.current_roster()] == ["alice", "bob"]

            changed = change_waiter(client, MessageType.MESSAGE)
            await chat_server.push_json({
                "messageType": "message",
                "data": json.dumps({"from": "bob", "message": "hi alice"}),
            })
            await asyncio.wait_for(changed.wait(), timeout=2.0)
            assert client.current_transcript() == (ChatMessage(sender="bob", body="hi alice"),)
            assert client.find_profile("bob") is not None

            changed = change_waiter(client, MessageType.USERS)
            await chat_server.push_json({"messageType": "users", "dataArray": ["alice"]})
            await asyncio.wait_for(changed.wait(), timeout=2.0)
            assert client.find_profile("bob") is None
            assert client.session.sender_profile(client.current_transcript()[0]) is None

    @pytest.mark.asyncio
    async def test_submit_message_reaches_server_as_raw_text(self, chat_server):
        async with ChatClient("alice", endpoint=chat_server.endpoint) as client:
            await chat_server.next_frame()
            assert client.submit_message("hello") is True
            await client.flush()
            assert await chat_server.next_frame() == {"messageType": "message", "dataArray": None, "data": "hello"}
            assert client.current_transcript() == ()

    @pytest.mark.asyncio
    async def test_connection_loss_ends_session(self, chat_server):
        async with ChatClient("alice", endpoint=chat_server.endpoint) as client:
            await chat_server.next_frame()
            await chat_server.drop_clients()

            error = await asyncio.wait_for(client.wait_closed(), timeout=2.0)
            assert isinstance(error, TransportConnectionError)
            assert not client.connected
            assert client.submit_message("anyone?") is False
