"""Logger factory shared by the API, the pages and the admin console."""
from __future__ import annotations

import logging
import threading

import config

_LOCK = threading.Lock()


def get_logger(name: str = "library") -> logging.Logger:
    with _LOCK:
        logger = logging.getLogger(name)
        level = getattr(logging, config.log_level_name(), logging.INFO)
        logger.setLevel(level)
        if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("[library] %(asctime)s %(levelname)s %(name)s %(message)s"))
            logger.addHandler(handler)
        logger.propagate = False
        return logger


__all__ = ["get_logger"]
