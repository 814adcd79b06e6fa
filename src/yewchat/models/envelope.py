"""
Wire envelope exchanged with the chat server.

    { "messageType": "register" | "users" | "message",
      "dataArray": [string, ...] | null,
      "data": string | null }
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MessageType(str, Enum):
    USERS = "users"
    REGISTER = "register"
    MESSAGE = "message"


class Envelope(BaseModel):
    model_config = ConfigDict(validate_by_name=True, validate_by_alias=True, frozen=True)

    message_type: MessageType = Field(alias="messageType")
    data_array: Optional[list[str]] = Field(default=None, alias="dataArray")
    data: Optional[str] = None

    @model_validator(mode="after")
    def _check_payload(self) -> "Envelope":
        # users carries dataArray, register/message carry data; never both
        if self.message_type is MessageType.USERS:
            if self.data_array is None:
                raise ValueError("users envelope requires dataArray")
            if self.data is not None:
                raise ValueError("users envelope must not carry data")
        else:
            if self.data is None:
                raise ValueError(f"{self.message_type.value} envelope requires data")
            if self.data_array is not None:
                raise ValueError(f"{self.message_type.value} envelope must not carry dataArray")
        return self
