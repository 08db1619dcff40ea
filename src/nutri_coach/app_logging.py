"""Logging setup for the coaching service."""

import logging

LOGGER_NAME = "nutri_coach"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(funcName)s]: %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach one stream handler to the service logger and set its level.

    Calling it again only updates the level, so the app factory can run more
    than once (tests build several apps) without duplicating output.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
