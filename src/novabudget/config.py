"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "NovaBudget"
    DB_FILENAME = "novabudget.db"
    MIN_PASSWORD_LENGTH = 6
    RECENT_TRANSACTIONS = 5
    BAR_MIN_HEIGHT = 10
    BUDGET_WARNING_PERCENT = 70
    BUDGET_DANGER_PERCENT = 90

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("NOVABUDGET_DEV_MODE", default=True)
        self.CURRENCY_LABEL = os.getenv("NOVABUDGET_CURRENCY_LABEL", "Rs.")
        self.DATABASE_URL = os.getenv("NOVABUDGET_DATABASE_URL", self._build_sqlite_url())

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("NOVABUDGET_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to user-local storage.
            fallback_path = Path.home() / f".{self.APP_NAME.lower()}"
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if not self.DATABASE_URL.startswith("sqlite"):
            return {}
        connect_args: dict[str, Any] = {"check_same_thread": False}
        engine_options: dict[str, Any] = {"connect_args": connect_args}
        if self.DATABASE_URL in {"sqlite://", "sqlite:///:memory:"}:
            from sqlalchemy.pool import StaticPool

            # One shared connection, otherwise every session sees an empty database.
            engine_options["poolclass"] = StaticPool
        return engine_options


class InMemoryConfig(BaseConfig):
    """Throwaway in-memory database with a quiet console; used by tests."""

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = False
        self.DATABASE_URL = "sqlite://"
