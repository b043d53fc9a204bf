from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

MODEL_ROLE = "model"


class Endpoint(str, Enum):
    CHAT = "chat"
    BUNDLE = "bundle"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)


def map_role(role: str) -> str:
    """Translate a client-side conversational role into Gemini's vocabulary."""

    if role == "assistant":
        return MODEL_ROLE
    return role


@dataclass(slots=True, frozen=True)
class HistoryTurn:
    role: str
    text: str


@dataclass(slots=True)
class GenerationRequest:
    instruction: str
    history: list[HistoryTurn] = field(default_factory=list)
