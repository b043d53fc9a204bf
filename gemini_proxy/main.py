from __future__ import annotations

from fastapi import FastAPI

from gemini_proxy.config import Settings, get_settings
from gemini_proxy.core.cors import CORSGateMiddleware
from gemini_proxy.core.generation import GeminiModelClient, ModelClient
from gemini_proxy.dependencies import register_exception_handlers
from gemini_proxy.routers import gemini, health

PROXY_PATH = "/api/gemini"


def create_app(
    settings: Settings | None = None,
    model_client: ModelClient | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="gemini-tutor-proxy",
        version=settings.service_version,
        docs_url="/docs",
        redoc_url=None,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.model_client = model_client or GeminiModelClient(settings)

    register_exception_handlers(app)
    app.add_middleware(
        CORSGateMiddleware,
        allowed_origins=settings.allowed_origins,
        paths=(PROXY_PATH,),
    )

    app.include_router(gemini.router)
    app.include_router(health.router)

    return app


app = create_app()
