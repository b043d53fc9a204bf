from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from gemini_proxy.config import Settings
from gemini_proxy.core.cors import resolve_allow_origin
from gemini_proxy.core.errors import (
    ConfigurationError,
    InvalidRequestError,
    NormalizationError,
    UpstreamError,
    map_upstream_error,
)
from gemini_proxy.core.generation import GeminiModelClient, build_contents
from gemini_proxy.core.types import Endpoint, GenerationRequest, HistoryTurn, map_role
from gemini_proxy.tutor.adapter import dispatch
from gemini_proxy.tutor.normalize import normalize_bundle, normalize_chat, strip_fences
from gemini_proxy.tutor.prompts import build_bundle_request, build_chat_request
from gemini_proxy.tutor.schemas import BundlePayload, ChatPayload, RequestEnvelope

DOCUMENT = {"title": "Fractions", "cards": [{"front": "1/2", "back": "0.5"}]}


@pytest.mark.parametrize(
    "text",
    [
        json.dumps(DOCUMENT),
        f"```json\n{json.dumps(DOCUMENT)}\n```",
        f"```\n{json.dumps(DOCUMENT)}\n```",
        f"```JSON\n{json.dumps(DOCUMENT, indent=2)}\n```\n```",
    ],
)
def test_fence_variants_parse_to_same_document(text: str):
    assert normalize_bundle(text) == DOCUMENT


def test_strip_fences_is_idempotent():
    samples = ["```json\n[1, 2]\n```", "plain", "`````json`", "``` ```json ```"]

    for sample in samples:
        once = strip_fences(sample)
        assert strip_fences(once) == once


def test_strip_fences_removes_markers_only():
    assert strip_fences('```json\n{"code": "x = 1"}\n```') == '{"code": "x = 1"}'
    assert strip_fences("no fences here") == "no fences here"


def test_normalize_bundle_rejects_prose():
    with pytest.raises(NormalizationError) as excinfo:
        normalize_bundle("Here is your study package!")

    assert excinfo.value.status_code == 500
    assert "Here is your study package" not in str(excinfo.value.details)


def test_normalize_bundle_rejects_non_finite_constants():
    with pytest.raises(NormalizationError):
        normalize_bundle('{"ratio": Infinity}')


def test_normalize_chat_wraps_text_verbatim():
    assert normalize_chat("```json\n{}\n```") == {"reply": "```json\n{}\n```"}


@pytest.mark.parametrize(
    ("role", "expected"),
    [("assistant", "model"), ("user", "user"), ("model", "model"), ("system", "system")],
)
def test_map_role(role: str, expected: str):
    assert map_role(role) == expected


def test_resolve_allow_origin():
    allowed = ["https://a.example", "https://b.example"]

    assert resolve_allow_origin("https://b.example", allowed) == "https://b.example"
    assert resolve_allow_origin("https://c.example", allowed) == "https://a.example"
    assert resolve_allow_origin(None, allowed) == "https://a.example"
    assert resolve_allow_origin("https://c.example", []) == "*"


def test_chat_prompt_uses_persona_mode_and_final_turn():
    payload = ChatPayload.model_validate(
        {
            "character": {"name": "Newton", "prompt": "a physicist who loves apples"},
            "mode": {"label": "Quiz"},
            "subject": "gravity",
            "messages": [
                {"role": "user", "content": "Why do things fall?"},
                {"role": "assistant", "content": "What do you think?"},
                {"role": "user", "content": "Because of mass?"},
            ],
        }
    )

    request = build_chat_request(payload)

    assert "Newton (a physicist who loves apples)" in request.instruction
    assert '"Quiz"' in request.instruction
    assert '"gravity"' in request.instruction
    assert 'The student says: "Because of mass?"' in request.instruction
    assert "concise" in request.instruction
    assert request.history == [
        HistoryTurn(role="user", text="Why do things fall?"),
        HistoryTurn(role="model", text="What do you think?"),
    ]


def test_single_message_chat_has_no_history():
    payload = ChatPayload.model_validate(
        {
            "character": {"name": "Ada", "prompt": "tutor"},
            "mode": {"label": "Explain"},
            "subject": "loops",
            "messages": [{"role": "user", "content": "What is a loop?"}],
        }
    )

    assert build_chat_request(payload).history == []


def test_bundle_prompt_mentions_subject_grade_and_tutor():
    payload = BundlePayload.model_validate(
        {"subject": "geometry", "grade": 7.0, "character": {"name": "Euclid"}}
    )

    request = build_bundle_request(payload)

    assert "geometry" in request.instruction
    assert "grade 7," in request.instruction
    assert "Euclid" in request.instruction
    assert "shape" not in request.instruction
    assert request.history == []


def test_dispatch_selects_variant():
    envelope = RequestEnvelope(
        endpoint="bundle",
        payload={"subject": "history", "grade": 10, "character": {"name": "Herodotus"}},
    )

    prepared = dispatch(envelope)

    assert prepared.endpoint is Endpoint.BUNDLE
    assert "grade 10" in prepared.generation.instruction


def test_dispatch_rejects_unknown_endpoint():
    with pytest.raises(InvalidRequestError) as excinfo:
        dispatch(RequestEnvelope(endpoint="CHAT", payload={}))

    assert excinfo.value.message == 'Invalid endpoint. Use "chat" or "bundle".'


def test_dispatch_rejects_unknown_role():
    envelope = RequestEnvelope(
        endpoint="chat",
        payload={
            "character": {"name": "Ada", "prompt": "tutor"},
            "mode": {"label": "Explain"},
            "subject": "loops",
            "messages": [{"role": "teacher", "content": "Hi"}],
        },
    )

    with pytest.raises(InvalidRequestError) as excinfo:
        dispatch(envelope)

    assert excinfo.value.message.startswith("Invalid payload: payload.messages.0.role")


def test_map_upstream_error_mirrors_api_status():
    exc = genai_errors.ServerError(
        503,
        {"error": {"code": 503, "message": "Overloaded", "status": "UNAVAILABLE"}},
    )

    mapped = map_upstream_error(exc)

    assert isinstance(mapped, UpstreamError)
    assert mapped.status_code == 503
    assert mapped.details == "Overloaded"


def test_map_upstream_error_keeps_proxy_errors():
    original = ConfigurationError(message="missing key")

    assert map_upstream_error(original) is original


def test_build_contents_appends_instruction_as_user_turn():
    request = GenerationRequest(
        instruction="Answer this",
        history=[HistoryTurn("user", "Hi"), HistoryTurn("model", "Hello")],
    )

    contents = build_contents(request)

    assert [content.role for content in contents] == ["user", "model", "user"]
    assert contents[-1].parts[0].text == "Answer this"


class _FakeModels:
    def __init__(self, response: types.GenerateContentResponse):
        self.response = response
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        return self.response


def _client_with_response(response: types.GenerateContentResponse):
    settings = Settings(_env_file=None, GEMINI_API_KEY="test-key", GEMINI_MODEL="gemini-test")
    client = GeminiModelClient(settings)
    models = _FakeModels(response)
    client._client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return client, models


def test_gemini_client_returns_text_and_sends_config():
    response = types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(role="model", parts=[types.Part(text="42")]),
            )
        ]
    )
    client, models = _client_with_response(response)

    text = asyncio.run(client.generate(GenerationRequest(instruction="Question")))

    assert text == "42"
    call = models.calls[0]
    assert call["model"] == "gemini-test"
    assert call["config"].temperature == 0.9
    assert call["config"].max_output_tokens == 8192
    assert len(call["config"].safety_settings) == 4


def test_gemini_client_empty_reply_is_upstream_error():
    response = types.GenerateContentResponse(
        candidates=[types.Candidate(finish_reason=types.FinishReason.SAFETY)]
    )
    client, _ = _client_with_response(response)

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(client.generate(GenerationRequest(instruction="Question")))

    assert excinfo.value.status_code == 502
    assert "finish_reason" in excinfo.value.details


def test_gemini_client_without_key_is_configuration_error():
    client = GeminiModelClient(Settings(_env_file=None, GEMINI_API_KEY=None))

    with pytest.raises(ConfigurationError):
        asyncio.run(client.generate(GenerationRequest(instruction="Question")))
