"""Logging setup for the API process."""

import logging
import sys

from alerthub.config import get_settings

_PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_JSON_FORMAT = (
    '{"timestamp":"%(asctime)s","level":"%(levelname)s",'
    '"logger":"%(name)s","message":"%(message)s"}'
)


def configure_logging() -> logging.Logger:
    """Attach a stdout handler to the ``alerthub`` logger tree."""

    settings = get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = logging.Formatter(_JSON_FORMAT if settings.log_json else _PLAIN_FORMAT)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logger = logging.getLogger("alerthub")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False

    uvicorn_handler = logging.StreamHandler(sys.stdout)
    uvicorn_handler.setFormatter(formatter)
    logging.getLogger("uvicorn.access").handlers = [uvicorn_handler]
    logging.getLogger("uvicorn.error").handlers = [uvicorn_handler]

    return logger
