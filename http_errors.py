"""Catch-all for persistence failures, shared by the API and the pages."""
from __future__ import annotations

from contextlib import contextmanager

from fastapi import HTTPException

from logging_setup import get_logger

logger = get_logger("library.storage")


@contextmanager
def storage_call(message: str):
    """Turn any persistence failure into a generic 500 carrying ``message``."""
    try:
        yield
    except HTTPException:
        raise
    except Exception:
        logger.exception(message)
        raise HTTPException(status_code=500, detail=message)
