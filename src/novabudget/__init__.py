"""NovaBudget personal budget tracker package."""

from __future__ import annotations

from .config import BaseConfig, InMemoryConfig
from .context import AppContext, create_app_context

__all__ = ["AppContext", "BaseConfig", "InMemoryConfig", "create_app_context"]
