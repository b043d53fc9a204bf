from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from gemini_proxy.config import Settings
from gemini_proxy.dependencies import get_app_settings

router = APIRouter(prefix="/api", tags=["internal"])


@router.get("/health")
async def health(settings: Settings = Depends(get_app_settings)) -> dict[str, str]:
    return {
        "status": "ok",
        "name": settings.service_name,
        "version": settings.service_version,
        "time": _utc_timestamp(),
    }


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
