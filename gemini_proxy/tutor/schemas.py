from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class RequestEnvelope(BaseModel):
    endpoint: str = Field(min_length=1)
    payload: dict[str, Any]

    model_config = ConfigDict(extra="allow")


class CharacterRef(BaseModel):
    name: str

    model_config = ConfigDict(extra="allow")


class Persona(CharacterRef):
    prompt: str


class ModeRef(BaseModel):
    label: str

    model_config = ConfigDict(extra="allow")


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str

    model_config = ConfigDict(extra="allow")


class ChatPayload(BaseModel):
    character: Persona
    mode: ModeRef
    subject: str
    # The last message is the turn being answered; the rest is history.
    messages: list[ChatMessage] = Field(min_length=1)

    model_config = ConfigDict(extra="allow")


class BundlePayload(BaseModel):
    subject: str
    grade: str | int | float
    character: CharacterRef
    # Passed to the model as a hint only; replies are not checked against it.
    output_schema: Any = Field(default=None, alias="schema")

    model_config = ConfigDict(extra="allow", populate_by_name=True)
