"""Logging configuration helpers."""

import logging

# Logs request URLs, which carry the bot token.
_QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure the ``animal_identifier`` logger with a single stream handler.

    ``level`` accepts a number or a name such as ``"DEBUG"``. HTTP client
    loggers are held at WARNING regardless of ``level``.
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.strip().upper(), logging.INFO)
    logger = logging.getLogger("animal_identifier")
    logger.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s: %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
