from __future__ import annotations

from typing import Sequence

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

ALLOW_METHODS = "POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization"
PREFLIGHT_MAX_AGE = 86400


def resolve_allow_origin(origin: str | None, allowed: Sequence[str]) -> str:
    if origin and origin in allowed:
        return origin
    if allowed:
        return allowed[0]
    return "*"


def cors_headers(origin: str | None, allowed: Sequence[str]) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": resolve_allow_origin(origin, allowed),
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
    }


class CORSGateMiddleware(BaseHTTPMiddleware):
    """Attach CORS headers to every response for the exact paths in ``paths``.

    Preflight requests are answered here and never reach the router.
    """

    def __init__(
        self,
        app: ASGIApp,
        allowed_origins: Sequence[str],
        paths: Sequence[str],
    ) -> None:
        super().__init__(app)
        self.allowed_origins = list(allowed_origins)
        self.paths = tuple(paths)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path not in self.paths:
            return await call_next(request)

        headers = cors_headers(request.headers.get("origin"), self.allowed_origins)

        if request.method == "OPTIONS":
            headers["Access-Control-Max-Age"] = str(PREFLIGHT_MAX_AGE)
            return Response(status_code=204, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
