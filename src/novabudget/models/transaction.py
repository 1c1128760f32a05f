"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..constants.categories import Category, TransactionType


class Transaction(SQLModel, table=True):
    """A single expense, income or transfer entry.

    Amounts are always positive; the sign applied to an account balance comes
    from ``type``. Account ids are plain references rather than foreign keys
    so that deleting an account leaves its history in place.
    """

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    type: TransactionType = Field(nullable=False)
    amount: Decimal = Field(max_digits=14, decimal_places=2)
    account_id: int = Field(nullable=False, index=True)
    to_account_id: Optional[int] = Field(default=None, index=True)
    category: Category = Field(default=Category.OTHER, nullable=False)
    description: str = Field(default="", max_length=255)
    occurred_on: date = Field(nullable=False, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
