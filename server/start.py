"""Start the Truco rooms server with uvicorn."""

from __future__ import annotations

import logging

import uvicorn

from .settings import ServerSettings

logger = logging.getLogger(__name__)


def main() -> None:
    settings = ServerSettings.from_env()
    logger.info("Starting Truco rooms on %s:%s", settings.host, settings.port)
    uvicorn.run(
        "server.game_service:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
