from __future__ import annotations

import logging

from cookka.core.settings import Settings

# Loggers that follow LOG_LEVEL directly.
_SERVER_LOGGERS = ("uvicorn.error", "uvicorn.access", "cookka")
# SDK transport loggers are noisy at INFO (one line per Gemini request).
_TRANSPORT_LOGGERS = ("httpx", "google_genai")


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName((settings.log_level or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    for name in _SERVER_LOGGERS:
        logging.getLogger(name).setLevel(level)
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
