"""
Session state models: user roster and chat transcript.
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field

AVATAR_URL_TEMPLATE = "https://avatars.dicebear.com/api/adventurer-neutral/{name}.svg"


def avatar_url(name: str) -> str:
    return AVATAR_URL_TEMPLATE.format(name=name)


class UserProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def avatar_url(self) -> str:
        return avatar_url(self.name)


class ChatMessage(BaseModel):
    """Inbound chat line. Wire shape: {"from": ..., "message": ...}."""

    model_config = ConfigDict(validate_by_name=True, validate_by_alias=True, frozen=True)

    sender: str = Field(alias="from")
    body: str = Field(alias="message")


class SessionState(BaseModel):
    roster: list[UserProfile] = Field(default_factory=list)      # replaced on every users envelope
    transcript: list[ChatMessage] = Field(default_factory=list)  # append-only
