# pokematchup/logger.py
# One named logger for the app; everything goes through log_action()

import logging
import os
from logging.handlers import RotatingFileHandler

from pokematchup import config

LOGGER_NAME = "pokematchup"

_logger = logging.getLogger(LOGGER_NAME)

def setup_logging(level: str | int | None = None, log_dir: str | None = None) -> logging.Logger:
    """Attach a rotating file handler and a console handler (once)."""
    level = level if level is not None else config.LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level)
        if not isinstance(level, int):
            level = logging.INFO
    _logger.setLevel(level)

    log_dir = log_dir or config.LOG_DIR
    if not any(isinstance(h, RotatingFileHandler) for h in _logger.handlers):
        try:
            os.makedirs(log_dir, exist_ok=True)
            fh = RotatingFileHandler(os.path.join(log_dir, "pokematchup.log"),
                                     maxBytes=512_000, backupCount=3, encoding="utf-8")
            fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
            _logger.addHandler(fh)
        except OSError as e:
            _logger.warning("file logging disabled: %s", e)

    if not any(type(h) is logging.StreamHandler for h in _logger.handlers):
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        _logger.addHandler(ch)

    for bad in config.invalid_values():
        _logger.warning("ignored invalid setting %s, using default", bad)
    return _logger

def log_action(message: str, level: int = logging.INFO):
    _logger.log(level, message)
