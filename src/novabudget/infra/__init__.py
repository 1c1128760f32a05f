"""Persistence and change-notification infrastructure."""

from .feed import ChangeFeed, Snapshot, Subscription
from .store import DocumentStore

__all__ = ["ChangeFeed", "DocumentStore", "Snapshot", "Subscription"]
