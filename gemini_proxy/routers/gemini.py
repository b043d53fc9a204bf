from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from gemini_proxy.core.generation import ModelClient
from gemini_proxy.dependencies import get_model_client
from gemini_proxy.tutor.adapter import run_pipeline
from gemini_proxy.tutor.schemas import RequestEnvelope

router = APIRouter(prefix="/api", tags=["gemini"])


@router.post("/gemini")
async def gemini(
    envelope: RequestEnvelope,
    client: ModelClient = Depends(get_model_client),
) -> Any:
    return await run_pipeline(envelope, client)
