"""
Envelope encoding and decoding.

Decoding never raises on bad input: the outcome is either the decoded value or
a ProtocolDecodeError describing why the frame was rejected.
"""

from typing import Iterable, Union

from pydantic import ValidationError

from yewchat.errors import ProtocolDecodeError
from yewchat.models.envelope import Envelope, MessageType
from yewchat.models.session import ChatMessage

DecodedEnvelope = Union[Envelope, ProtocolDecodeError]
DecodedChatMessage = Union[ChatMessage, ProtocolDecodeError]


def encode_envelope(envelope: Envelope) -> str:
    """Serialize to the wire form: messageType, dataArray, data (nulls kept)."""
    return envelope.model_dump_json(by_alias=True)


def decode_envelope(raw: Union[str, bytes]) -> DecodedEnvelope:
    """Inbound frames are matched on wire names only (messageType, dataArray, data)."""
    try:
        return Envelope.model_validate_json(raw, by_alias=True, by_name=False)
    except ValidationError as e:
        return ProtocolDecodeError(f"Invalid envelope: {_summarize(e)}", raw=_as_text(raw))


def decode_chat_message(data: str) -> DecodedChatMessage:
    """Decode the nested {"from", "message"} payload of an inbound message envelope."""
    try:
        return ChatMessage.model_validate_json(data, by_alias=True, by_name=False)
    except ValidationError as e:
        return ProtocolDecodeError(f"Invalid chat message payload: {_summarize(e)}", raw=data)


def register_envelope(username: str) -> Envelope:
    return Envelope(message_type=MessageType.REGISTER, data=username)


def message_envelope(text: str) -> Envelope:
    """Outbound chat message. data is the raw text; the server stamps the sender."""
    return Envelope(message_type=MessageType.MESSAGE, data=text)


def users_envelope(names: Iterable[str]) -> Envelope:
    return Envelope(message_type=MessageType.USERS, data_array=list(names))


def _summarize(error: ValidationError) -> str:
    first = error.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{loc}: {first.get('msg', 'invalid')}"


def _as_text(raw: Union[str, bytes]) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw
