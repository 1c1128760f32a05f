"""SQLModel implementation of the accounts collection."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ...errors import RemoteWriteError
from ...logging_config import get_logger
from ...models.account import Account
from .base import SQLModelCollection

logger = get_logger(__name__)


class SQLModelAccountRepository(SQLModelCollection[Account]):
    """SQLModel-based account repository implementation."""

    model = Account
    collection = "accounts"

    def default_order(self) -> Sequence[Any]:
        return (Account.created_at, Account.id)

    def increment_balance(self, account_id: int, delta: Decimal, *, user_id: int) -> bool:
        """Atomically add ``delta`` to an account balance.

        Runs as a single ``UPDATE ... SET balance = balance + :delta`` so
        concurrent increments never lose each other. Returns False (and
        changes nothing) when the account no longer exists.
        """
        statement = (
            update(Account)
            .where(Account.id == account_id)  # type: ignore[arg-type]
            .where(Account.user_id == user_id)  # type: ignore[arg-type]
            .values(balance=Account.balance + delta)
        )
        try:
            with self.session_factory() as session:
                result = session.connection().execute(statement)
                session.commit()
                matched = result.rowcount
        except SQLAlchemyError as exc:
            logger.error(
                "Balance increment failed",
                exc_info=True,
                extra={"account_id": account_id, "delta": str(delta), "user_id": user_id},
            )
            raise RemoteWriteError("Failed to update account balance") from exc
        if not matched:
            return False
        self.feed.publish(self.collection, user_id)
        return True

    def get_balance(self, account_id: int, *, user_id: int) -> Decimal | None:
        """Return the stored balance, or None for an unknown account."""
        account = self.get(account_id, user_id=user_id)
        return None if account is None else account.balance
