"""Wire schemas for messages relayed to connected players."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter


class ReadRequest(BaseModel):
    """A single reference to present, optionally with its text or audio."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    reference: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("reference", "ref"),
        serialization_alias="reference",
    )
    text: Optional[str] = None
    audio_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("audioUrl", "audio_url"),
        serialization_alias="audioUrl",
    )
    source_user: str = Field(
        default="anon",
        validation_alias=AliasChoices("sourceUser", "source_user", "user"),
        serialization_alias="sourceUser",
    )


class ReadMessage(ReadRequest):
    type: Literal["read"] = "read"


class BulkMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["bulk"] = "bulk"
    items: list[ReadRequest] = Field(default_factory=list)


class ClearMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["clear"] = "clear"


RelayMessage = Annotated[
    Union[ReadMessage, BulkMessage, ClearMessage],
    Field(discriminator="type"),
]

relay_message_adapter: TypeAdapter[Union[ReadMessage, BulkMessage, ClearMessage]] = (
    TypeAdapter(RelayMessage)
)


def to_wire(message: BaseModel) -> dict[str, Any]:
    """Dump a message using its camelCase wire names, omitting empty fields."""

    return message.model_dump(by_alias=True, exclude_none=True)


class InjectRequest(BaseModel):
    """Body of a manual injection; every field is optional so that a missing
    reference can be reported as a validation failure of our own."""

    reference: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("reference", "ref")
    )
    text: Optional[str] = None
    audio_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("audioUrl", "audio_url")
    )
    source_user: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("sourceUser", "source_user", "user")
    )


class BulkInjectRequest(BaseModel):
    items: list[InjectRequest] = Field(default_factory=list)


__all__ = [
    "BulkInjectRequest",
    "BulkMessage",
    "ClearMessage",
    "InjectRequest",
    "ReadMessage",
    "ReadRequest",
    "RelayMessage",
    "relay_message_adapter",
    "to_wire",
]
