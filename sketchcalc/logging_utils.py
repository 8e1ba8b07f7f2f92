import logging
from typing import Optional

LOGGER_NAME = "sketchcalc"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO", formatter: Optional[logging.Formatter] = None) -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Calling it again only updates the level, so uvicorn reloads do not stack handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not any(getattr(h, "_sketchcalc", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(formatter or logging.Formatter(LOG_FORMAT))
        handler._sketchcalc = True
        logger.addHandler(handler)
    return logger
