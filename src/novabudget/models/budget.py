"""Budgeting tables."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..constants.categories import Category


class Budget(SQLModel, table=True):
    """Monthly spending limit for one category."""

    __tablename__: ClassVar[str] = "budget"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    category: Category = Field(nullable=False, index=True)
    limit: Decimal = Field(max_digits=14, decimal_places=2)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # TODO(@budgeting): enforce one budget per category per user.
