"""Process-wide logging setup."""

import logging
import sys

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_ROOT_LOGGER = "keygate"


def configure_logging(level_name: str = "INFO") -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Safe to call more than once; the handler is only added the first time.
    """
    level = getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level)

    if not any(getattr(h, "_keygate", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._keygate = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
