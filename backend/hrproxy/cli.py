"""``hrproxy`` console entry point."""

import logging

import uvicorn

from .config import get_settings
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def run() -> None:
    """Validate configuration, then serve the application with uvicorn.

    Exits with status 1 before binding a listener when configuration is invalid
    (for example when ``BASE_URL`` is missing).
    """
    configure_logging()
    try:
        settings = get_settings()
    except RuntimeError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc

    logger.info("Server listening on http://%s:%s", settings.host, settings.port)
    uvicorn.run("hrproxy.main:app", host=settings.host, port=settings.port, log_config=None)
