"""
yewchat — chat session client for YewChat servers.

Keeps a WebSocket session open, tracks who is online and what has been said,
and sends chat messages.
"""

from yewchat.client import ChatClient
from yewchat.bus import SessionBus
from yewchat.session import SessionController
from yewchat.errors import (
    YewChatError,
    ProtocolDecodeError,
    TransportSendError,
    TransportConnectionError,
    SessionError,
)
from yewchat.models.envelope import Envelope, MessageType
from yewchat.models.session import ChatMessage, SessionState, UserProfile, avatar_url

__version__ = "0.1.0"
__all__ = [
    "ChatClient",
    "SessionBus",
    "SessionController",
    "YewChatError",
    "ProtocolDecodeError",
    "TransportSendError",
    "TransportConnectionError",
    "SessionError",
    "Envelope",
    "MessageType",
    "ChatMessage",
    "SessionState",
    "UserProfile",
    "avatar_url",
]
