import logging
from typing import Optional

from .config import settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name or "mediscan")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        # one handler per logger, don't double-print through root
        logger.propagate = False
    logger.setLevel(settings.log_level.upper())
    return logger
