import os
import logging
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logger(name: str, log_file: str | None = None, level: int | str = logging.INFO) -> logging.Logger:
    """
    Create and return a logger for the console.
    - Writes to `log_file` through a rotating handler when a path is given.
    - Falls back to stderr otherwise (tests, one-off scripts).
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding multiple handlers if setup_logger is called twice
    if not logger.handlers:
        if log_file:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            # 1 MB per file, keep 3 backups
            handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        else:
            handler = logging.StreamHandler()

        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


def init_app_logging(app) -> logging.Logger:
    """Configure the console's root logger from the app config."""
    return setup_logger("smc_admin", app.config.get("LOG_FILE"), app.config.get("LOG_LEVEL", "INFO"))


def get_logger(name: str) -> logging.Logger:
    """Child of the console logger, so module loggers share its handlers."""
    return logging.getLogger(f"smc_admin.{name}")
