"""Account model holding a running balance."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..constants.categories import AccountType


class Account(SQLModel, table=True):
    """A cash, bank, savings or credit account owned by one user.

    ``balance`` starts at the opening amount and afterwards only moves through
    balance increments issued by the reconciler.
    """

    __tablename__: ClassVar[str] = "account"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=128)
    type: AccountType = Field(default=AccountType.BANK, nullable=False)
    balance: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
