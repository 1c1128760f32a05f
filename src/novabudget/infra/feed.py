"""In-process change notification for user-scoped collections.

Repositories publish after every committed write; subscribers re-run their
query and receive a full snapshot of the collection. A failing query is
reported to that subscriber's error callback only.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from ..errors import SubscriptionError
from ..logging_config import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """Current contents of one collection for one user."""

    collection: str
    user_id: int
    documents: tuple[T, ...]

    def __len__(self) -> int:
        return len(self.documents)

    def __iter__(self):
        return iter(self.documents)


SnapshotListener = Callable[[Snapshot[Any]], None]
ErrorListener = Callable[[SubscriptionError], None]
QueryFn = Callable[[], Sequence[Any]]


class Subscription:
    """Handle returned by ``subscribe``; calling it (or ``cancel``) stops delivery."""

    def __init__(
        self,
        feed: "ChangeFeed",
        *,
        collection: str,
        user_id: int,
        query: QueryFn,
        on_change: SnapshotListener,
        on_error: Optional[ErrorListener],
    ) -> None:
        self._feed = feed
        self.collection = collection
        self.user_id = user_id
        self._query = query
        self._on_change = on_change
        self._on_error = on_error
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._feed._remove(self)

    __call__ = cancel

    def refresh(self) -> None:
        """Re-run the query and deliver a snapshot if still subscribed."""

        if not self._active:
            return
        try:
            documents = tuple(self._query())
        except Exception as exc:
            logger.exception(
                "Snapshot query failed",
                extra={"collection": self.collection, "user_id": self.user_id},
            )
            self._report(SubscriptionError(self.collection, exc))
            return
        # A cancel may land while the query runs.
        if not self._active:
            return
        try:
            self._on_change(Snapshot(self.collection, self.user_id, documents))
        except Exception as exc:
            logger.exception(
                "Snapshot listener failed",
                extra={"collection": self.collection, "user_id": self.user_id},
            )
            self._report(SubscriptionError(self.collection, exc))

    def _report(self, error: SubscriptionError) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("Subscription error handler failed")


class ChangeFeed:
    """Observer registry keyed by (collection, user_id)."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._subscriptions: dict[tuple[str, int], list[Subscription]] = {}

    def subscribe(
        self,
        collection: str,
        user_id: int,
        query: QueryFn,
        on_change: SnapshotListener,
        on_error: Optional[ErrorListener] = None,
    ) -> Subscription:
        """Register a listener and deliver the current snapshot immediately."""

        subscription = Subscription(
            self,
            collection=collection,
            user_id=user_id,
            query=query,
            on_change=on_change,
            on_error=on_error,
        )
        with self._lock:
            self._subscriptions.setdefault((collection, user_id), []).append(subscription)
        logger.debug("Subscribed", extra={"collection": collection, "user_id": user_id})
        subscription.refresh()
        return subscription

    def publish(self, collection: str, user_id: int) -> None:
        """Notify every subscriber of a collection that it changed."""

        with self._lock:
            targets = list(self._subscriptions.get((collection, user_id), ()))
        for subscription in targets:
            subscription.refresh()

    def subscriber_count(self, collection: str, user_id: int) -> int:
        with self._lock:
            return len(self._subscriptions.get((collection, user_id), ()))

    def _remove(self, subscription: Subscription) -> None:
        key = (subscription.collection, subscription.user_id)
        with self._lock:
            bucket = self._subscriptions.get(key)
            if not bucket:
                return
            if subscription in bucket:
                bucket.remove(subscription)
            if not bucket:
                del self._subscriptions[key]
        logger.debug(
            "Unsubscribed",
            extra={"collection": subscription.collection, "user_id": subscription.user_id},
        )
