import logging
import os
from logging.config import dictConfig

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# httpx logs every request line at INFO, which duplicates upstream telemetry.
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging() -> None:
    """Install the proxy's stream handler and levels from HRPROXY_* flags."""
    level = os.getenv("HRPROXY_LOG_LEVEL", "INFO").upper()
    debug_http = os.getenv("HRPROXY_DEBUG_HTTP", "0") == "1"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": os.getenv("HRPROXY_LOG_FORMAT", DEFAULT_LOG_FORMAT),
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                name: {"level": "DEBUG" if debug_http else "WARNING"}
                for name in _NOISY_LOGGERS
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )

    if debug_http:
        logging.getLogger("uvicorn.access").setLevel(logging.DEBUG)
