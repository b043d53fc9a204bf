from __future__ import annotations

import logging
from typing import Protocol

from google import genai
from google.genai import types

from gemini_proxy.config import Settings

from .errors import ConfigurationError, UpstreamError
from .types import GenerationRequest

logger = logging.getLogger(__name__)

_HARM_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)


class ModelClient(Protocol):
    async def generate(self, request: GenerationRequest) -> str: ...


class GeminiModelClient:
    """Sends a synthesized prompt, plus optional history, to Gemini."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client: genai.Client | None = None

    async def generate(self, request: GenerationRequest) -> str:
        client = self._get_client()

        logger.info(
            "Calling %s (history=%d turns)",
            self._settings.gemini_model,
            len(request.history),
        )
        response = await client.aio.models.generate_content(
            model=self._settings.gemini_model,
            contents=build_contents(request),
            config=self._generation_config(),
        )

        text = response.text
        if not text:
            raise UpstreamError(
                message="Gemini returned an empty response.",
                details=_describe_empty_response(response),
                status_code=502,
            )
        return text

    def _get_client(self) -> genai.Client:
        if not self._settings.gemini_api_key:
            raise ConfigurationError(
                message="GEMINI_API_KEY is not configured on the server.",
            )

        if self._client is None:
            self._client = genai.Client(api_key=self._settings.gemini_api_key)
        return self._client

    def _generation_config(self) -> types.GenerateContentConfig:
        settings = self._settings
        return types.GenerateContentConfig(
            temperature=settings.temperature,
            top_k=settings.top_k,
            top_p=settings.top_p,
            max_output_tokens=settings.max_output_tokens,
            safety_settings=[
                types.SafetySetting(category=category, threshold=settings.safety_threshold)
                for category in _HARM_CATEGORIES
            ],
        )


def build_contents(request: GenerationRequest) -> list[types.Content]:
    contents = [
        types.Content(role=turn.role, parts=[types.Part(text=turn.text)])
        for turn in request.history
    ]
    contents.append(
        types.Content(role="user", parts=[types.Part(text=request.instruction)])
    )
    return contents


def _describe_empty_response(response: types.GenerateContentResponse) -> str:
    feedback = response.prompt_feedback
    if feedback is not None and feedback.block_reason:
        return f"Prompt blocked (reason={feedback.block_reason})."

    if response.candidates:
        finish_reason = response.candidates[0].finish_reason
        if finish_reason:
            return f"No text in candidate (finish_reason={finish_reason})."

    return "No candidates returned."
