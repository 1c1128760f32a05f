"""SQLite-backed storage for the ledger: engine, tables and unit-of-work sessions."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, NamedTuple, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig
from ..logging_config import get_logger

logger = get_logger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


class Database(NamedTuple):
    engine: Engine
    session_factory: SessionFactory


def create_db_engine(config: BaseConfig) -> Engine:
    return create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())


def init_database(engine: Engine) -> None:
    """Create the users, accounts, transactions and budgets tables if missing."""

    from .. import models  # noqa: F401  (registers the tables on SQLModel.metadata)

    SQLModel.metadata.create_all(engine)


def create_session_factory(engine: Engine) -> SessionFactory:
    """Each ``with factory() as session`` block is one unit of work.

    Leaving the block commits; an exception rolls everything in it back.
    Loaded rows stay readable after commit so they can be handed to snapshots.
    """

    @contextmanager
    def unit_of_work() -> Iterator[Session]:
        with Session(engine, expire_on_commit=False) as session:
            try:
                yield session
            except Exception:
                session.rollback()
                raise
            session.commit()

    return unit_of_work


def bootstrap_database(config: Optional[BaseConfig] = None) -> Database:
    """Open the configured database, creating its tables on first run."""

    config = config or BaseConfig()
    engine = create_db_engine(config)
    init_database(engine)
    logger.debug("Database ready", extra={"database": engine.url.render_as_string(hide_password=True)})
    return Database(engine, create_session_factory(engine))
