"""
yewchat error types.

Decode and send errors are handled inside the session and only logged;
connection errors are the one condition surfaced to callers.
"""

from typing import Any, Optional


class YewChatError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ProtocolDecodeError(YewChatError):
    """An inbound frame that is not a valid envelope (or chat payload)."""

    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__("protocol_decode_error", message, {"raw": raw} if raw is not None else None)

    @property
    def raw(self) -> Optional[str]:
        return self.details.get("raw") if self.details else None


class TransportSendError(YewChatError):
    def __init__(self, message: str):
        super().__init__("transport_send_error", message)


class TransportConnectionError(YewChatError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("transport_connection_error", message, details)


class SessionError(YewChatError):
    def __init__(self, message: str, code: str = "session_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)
