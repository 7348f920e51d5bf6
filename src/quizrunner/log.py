import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configure_logging(config: Optional[Settings] = None) -> logging.Logger:
    """Attach a handler to the package logger, once."""
    config = config or default_settings
    logger = logging.getLogger("quizrunner")
    logger.setLevel(logging.DEBUG if config.DEBUG else logging.INFO)
    if logger.handlers:
        return logger

    if config.LOG_TO_FILE:
        if not os.path.exists(config.LOG_DIR):
            os.makedirs(config.LOG_DIR)
        log_path = os.path.join(config.LOG_DIR, config.LOG_FILE)
        handler: logging.Handler = RotatingFileHandler(
            log_path, maxBytes=5_000_000, backupCount=3
        )
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
