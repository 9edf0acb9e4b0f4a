"""Logging configuration helpers."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"

# Both libraries log every request at INFO, including Azure request URLs.
NOISY_LOGGERS = ("httpx", "openai")


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Attach one stream handler to the ``carbcal`` logger and set its level.

    Repeated calls only update the level. The HTTP client libraries are held
    at WARNING unless the application itself runs at DEBUG.
    """
    logger = logging.getLogger("carbcal")
    logger.setLevel(level)
    library_level = logging.DEBUG if logger.level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
