import logging
import os
from logging.handlers import RotatingFileHandler

from config import settings

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger from LOG_LEVEL."""
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


def setup_api_logger(log_path: str | None = None) -> logging.Logger:
    """Return the `tripmate.api` logger used for request failures.

    Writes to a rotating file at `log_path` (defaults to <LOG_DIR>/api.log),
    5 MB per file, five backups kept.
    """
    if log_path is None:
        logs_dir = os.path.abspath(settings.LOG_DIR)
        os.makedirs(logs_dir, exist_ok=True)
        log_path = os.path.join(logs_dir, 'api.log')

    logger = logging.getLogger('tripmate.api')
    logger.setLevel(logging.INFO)

    # handlers survive app reloads in the same process
    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        handler = RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=5, encoding='utf-8')
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
