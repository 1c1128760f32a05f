"""Application start-up: logging first, then the wired context."""

from __future__ import annotations

from typing import Optional

from .config import BaseConfig
from .context import AppContext, Notifier, create_app_context
from .logging_config import setup_logging


def start(config: Optional[BaseConfig] = None, *, notifier: Optional[Notifier] = None) -> AppContext:
    """Boot the application and return its context.

    The caller owns the context and must call ``shutdown()`` when done.
    """

    config = config or BaseConfig()
    logger = setup_logging(config)
    logger.info("NovaBudget starting", extra={"dev_mode": config.DEV_MODE})
    ctx = create_app_context(config, notifier=notifier)
    logger.info("Application context ready", extra={"database": config.DATABASE_URL})
    return ctx
