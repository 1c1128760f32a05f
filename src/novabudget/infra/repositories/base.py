"""Shared plumbing for user-scoped SQLModel collections."""

from __future__ import annotations

from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from ...errors import MissingReferenceError, RemoteWriteError
from ...logging_config import get_logger
from ..feed import ChangeFeed, ErrorListener, SnapshotListener, Subscription

ModelT = TypeVar("ModelT", bound=SQLModel)

logger = get_logger(__name__)

# Columns callers may never overwrite through update().
_PROTECTED_FIELDS = frozenset({"id", "user_id", "created_at"})


class SQLModelCollection(Generic[ModelT]):
    """A per-user collection supporting CRUD, ordered queries and subscriptions.

    Every successful write publishes on the change feed after the commit, so
    subscribers never observe uncommitted rows.
    """

    model: type[ModelT]
    collection: str

    def __init__(self, session_factory: Callable[[], Session], feed: ChangeFeed):
        """Initialize with a session factory and the feed to publish on."""
        self.session_factory = session_factory
        self.feed = feed

    def default_order(self) -> Sequence[Any]:
        return (self.model.id,)  # type: ignore[attr-defined]

    def get(self, doc_id: int, *, user_id: int) -> Optional[ModelT]:
        """Retrieve a document by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(self.model)
                .where(self.model.id == doc_id)  # type: ignore[attr-defined]
                .where(self.model.user_id == user_id)  # type: ignore[attr-defined]
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def query(self, *, user_id: int, order_by: Optional[Sequence[Any]] = None) -> list[ModelT]:
        """List every document for a user, ordered."""
        with self.session_factory() as session:
            statement = (
                select(self.model)
                .where(self.model.user_id == user_id)  # type: ignore[attr-defined]
                .order_by(*(order_by or self.default_order()))
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def add(self, document: ModelT, *, user_id: int) -> ModelT:
        """Insert a new document."""
        try:
            with self.session_factory() as session:
                document.user_id = user_id  # type: ignore[attr-defined]
                session.add(document)
                session.commit()
                session.refresh(document)
                session.expunge(document)
        except SQLAlchemyError as exc:
            logger.error(
                "Add failed", exc_info=True, extra={"collection": self.collection, "user_id": user_id}
            )
            raise RemoteWriteError(f"Failed to save {self.collection[:-1]}") from exc
        self.feed.publish(self.collection, user_id)
        return document

    def update(self, doc_id: int, fields: dict[str, Any], *, user_id: int) -> ModelT:
        """Apply a partial update; raises MissingReferenceError when the row is gone."""
        unknown = set(fields) - set(self.model.model_fields)
        if unknown or _PROTECTED_FIELDS & set(fields):
            raise ValueError(f"Cannot update fields: {sorted(unknown | (_PROTECTED_FIELDS & set(fields)))}")
        try:
            with self.session_factory() as session:
                obj = session.exec(
                    select(self.model)
                    .where(self.model.id == doc_id)  # type: ignore[attr-defined]
                    .where(self.model.user_id == user_id)  # type: ignore[attr-defined]
                ).first()
                if obj is None:
                    raise MissingReferenceError(f"{self.collection[:-1].capitalize()} {doc_id} not found")
                for key, value in fields.items():
                    setattr(obj, key, value)
                session.add(obj)
                session.commit()
                session.refresh(obj)
                session.expunge(obj)
        except SQLAlchemyError as exc:
            logger.error(
                "Update failed",
                exc_info=True,
                extra={"collection": self.collection, "doc_id": doc_id, "user_id": user_id},
            )
            raise RemoteWriteError(f"Failed to update {self.collection[:-1]}") from exc
        self.feed.publish(self.collection, user_id)
        return obj

    def delete(self, doc_id: int, *, user_id: int) -> bool:
        """Delete a document by ID; returns False if it did not exist."""
        try:
            with self.session_factory() as session:
                obj = session.exec(
                    select(self.model)
                    .where(self.model.id == doc_id)  # type: ignore[attr-defined]
                    .where(self.model.user_id == user_id)  # type: ignore[attr-defined]
                ).first()
                if obj is None:
                    return False
                session.delete(obj)
                session.commit()
        except SQLAlchemyError as exc:
            logger.error(
                "Delete failed",
                exc_info=True,
                extra={"collection": self.collection, "doc_id": doc_id, "user_id": user_id},
            )
            raise RemoteWriteError(f"Failed to delete {self.collection[:-1]}") from exc
        self.feed.publish(self.collection, user_id)
        return True

    def subscribe(
        self,
        *,
        user_id: int,
        on_change: SnapshotListener,
        on_error: Optional[ErrorListener] = None,
        order_by: Optional[Sequence[Any]] = None,
    ) -> Subscription:
        """Listen for snapshots of this collection; the first arrives immediately."""
        return self.feed.subscribe(
            self.collection,
            user_id,
            lambda: self.query(user_id=user_id, order_by=order_by),
            on_change,
            on_error,
        )
