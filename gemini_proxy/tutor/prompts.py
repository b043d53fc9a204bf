"""Prompt synthesis for the tutor endpoints.

Each builder turns a validated payload into a ``GenerationRequest``: one
instruction string for the current turn plus, for chat, the earlier turns as
structured history with Gemini roles.
"""

from __future__ import annotations

import json

from gemini_proxy.core.types import GenerationRequest, HistoryTurn, map_role

from .schemas import BundlePayload, ChatPayload


def build_chat_request(payload: ChatPayload) -> GenerationRequest:
    *earlier, current = payload.messages
    character = payload.character

    instruction = (
        f"Act as {character.name} ({character.prompt}). "
        f'The mode is "{payload.mode.label}". '
        f'The subject is "{payload.subject}". '
        f'The student says: "{current.content}". '
        "Reply concisely and directly."
    )

    history = [
        HistoryTurn(role=map_role(message.role), text=message.content)
        for message in earlier
    ]
    return GenerationRequest(instruction=instruction, history=history)


def build_bundle_request(payload: BundlePayload) -> GenerationRequest:
    parts = [
        f"Create a JSON study package for {payload.subject}, "
        f"grade {_format_grade(payload.grade)}, "
        f"with the tutor {payload.character.name}.",
        "Reply with a single JSON document and nothing else.",
    ]

    if payload.output_schema is not None:
        parts.append(
            "The JSON must follow this shape: "
            + json.dumps(payload.output_schema, ensure_ascii=False)
        )

    return GenerationRequest(instruction=" ".join(parts))


def _format_grade(grade: str | int | float) -> str:
    if isinstance(grade, float) and grade.is_integer():
        return str(int(grade))
    return str(grade)
