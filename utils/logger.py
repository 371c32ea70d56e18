"""
Logging for the contact-intake service: plain text lines on stdout.

Request access lines come from AccessLogMiddleware on the "contact.access"
logger, so uvicorn's own access logger is turned down to WARNING.
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ACCESS_LOGGER_NAME = "contact.access"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Configure the root logger from LOG_LEVEL; unknown names fall back to INFO."""
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level: {logging.getLevelName(level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
