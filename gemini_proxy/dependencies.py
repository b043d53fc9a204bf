from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gemini_proxy.config import Settings
from gemini_proxy.core.errors import (
    InvalidRequestError,
    MethodNotAllowedError,
    ProxyError,
)
from gemini_proxy.core.generation import ModelClient

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_model_client(request: Request) -> ModelClient:
    return request.app.state.model_client


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ProxyError)
    async def handle_proxy_error(
        _request: Request,
        exc: ProxyError,
    ) -> JSONResponse:
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        first_error = errors[0] if errors else None

        proxy_error = InvalidRequestError(
            message=first_error["msg"] if first_error else "Invalid request",
            details=[
                {"loc": list(error["loc"]), "msg": error["msg"]} for error in errors
            ]
            or None,
        )
        return _error_response(proxy_error)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(
        _request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        if exc.status_code == 405:
            allow = (exc.headers or {}).get("Allow", "")
            return _error_response(
                MethodNotAllowedError(
                    message="Method Not Allowed",
                    details=f"Use {allow}" if allow else None,
                    allow=allow,
                )
            )

        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=exc.headers,
        )


def _error_response(exc: ProxyError) -> JSONResponse:
    # Server-side failures are logged where they are raised.
    if exc.status_code < 500:
        logger.info("Request rejected with %d: %s", exc.status_code, exc.message)

    headers = None
    if isinstance(exc, MethodNotAllowedError) and exc.allow:
        headers = {"Allow": exc.allow}

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_error(),
        headers=headers,
    )
