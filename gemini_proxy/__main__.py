"""Entry point for running the Gemini proxy."""

import logging

import uvicorn

from gemini_proxy.config import get_settings
from gemini_proxy.main import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting Gemini proxy on %s:%s", settings.app_host, settings.app_port)

    uvicorn.run(
        create_app(settings),
        host=settings.app_host,
        port=settings.app_port,
    )


if __name__ == "__main__":
    main()
