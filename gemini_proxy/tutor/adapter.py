from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from gemini_proxy.core.errors import InvalidRequestError, map_upstream_error
from gemini_proxy.core.generation import ModelClient
from gemini_proxy.core.types import Endpoint, GenerationRequest

from .normalize import normalize_bundle, normalize_chat
from .prompts import build_bundle_request, build_chat_request
from .schemas import BundlePayload, ChatPayload, RequestEnvelope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointVariant:
    payload_model: type[BaseModel]
    synthesize: Callable[[Any], GenerationRequest]
    normalize: Callable[[str], Any]


# One entry per endpoint; nothing else needs to change to add a variant.
_VARIANTS: dict[Endpoint, EndpointVariant] = {
    Endpoint.CHAT: EndpointVariant(ChatPayload, build_chat_request, normalize_chat),
    Endpoint.BUNDLE: EndpointVariant(BundlePayload, build_bundle_request, normalize_bundle),
}


@dataclass
class PreparedRequest:
    endpoint: Endpoint
    variant: EndpointVariant
    generation: GenerationRequest


def dispatch(envelope: RequestEnvelope) -> PreparedRequest:
    endpoint = _resolve_endpoint(envelope.endpoint)
    variant = _VARIANTS[endpoint]

    try:
        payload = variant.payload_model.model_validate(envelope.payload)
    except ValidationError as exc:
        raise _payload_error(exc) from exc

    return PreparedRequest(
        endpoint=endpoint,
        variant=variant,
        generation=variant.synthesize(payload),
    )


async def run_pipeline(envelope: RequestEnvelope, client: ModelClient) -> Any:
    prepared = dispatch(envelope)
    logger.info(
        "Dispatching %s request (history=%d turns)",
        prepared.endpoint.value,
        len(prepared.generation.history),
    )

    try:
        text = await client.generate(prepared.generation)
    except Exception as exc:
        logger.exception("Model call failed for %s request", prepared.endpoint.value)
        raise map_upstream_error(exc) from exc

    return prepared.variant.normalize(text)


def _resolve_endpoint(value: str) -> Endpoint:
    try:
        return Endpoint(value)
    except ValueError:
        accepted = " or ".join(f'"{tag}"' for tag in Endpoint.values())
        raise InvalidRequestError(
            message=f"Invalid endpoint. Use {accepted}.",
            details=f"Received endpoint '{value}'.",
        ) from None


def _payload_error(exc: ValidationError) -> InvalidRequestError:
    first_error = exc.errors()[0]
    location = ".".join(str(part) for part in ("payload", *first_error["loc"]))
    return InvalidRequestError(
        message=f"Invalid payload: {location}: {first_error['msg']}",
        details=[
            {"loc": ["payload", *error["loc"]], "msg": error["msg"]}
            for error in exc.errors()
        ],
    )
