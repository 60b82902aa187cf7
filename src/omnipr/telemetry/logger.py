"""Logging wrapper for OmniPR."""

import logging


def get_logger(name: str) -> logging.Logger:
    """Return a logger that writes to stderr with a default format.

    A handler is only attached when neither the logger nor the root logger
    has one, so applications that configure logging keep control.
    """
    logger = logging.getLogger(name)
    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger
