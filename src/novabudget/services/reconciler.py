"""Keep account balances consistent with the transaction ledger.

Every transaction maps to one or two signed balance deltas:

* expense:  ``-amount`` on ``account_id``
* income:   ``+amount`` on ``account_id``
* transfer: ``-amount`` on ``account_id`` and ``+amount`` on ``to_account_id``

Create writes the record first and then applies its deltas. Update and
delete first reverse the stored deltas, then touch the record (and update
re-applies the new deltas). There is no multi-document transaction around
these steps; a crash in between leaves an orphaned record rather than a
phantom balance change. Deltas aimed at accounts that no longer exist are
skipped, leaving every surviving account correct.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Collection, Iterable, Iterator, Optional

from ..constants.categories import Category, TransactionType
from ..domain.repositories import DocumentStoreLike
from ..errors import (
    MissingReferenceError,
    MutationInProgressError,
    RemoteWriteError,
    SessionExpiredError,
    ValidationError,
)
from ..logging_config import get_logger
from ..models.account import Account
from ..models.transaction import Transaction
from .ledger_store import LedgerStore

logger = get_logger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class BalanceDelta:
    """Signed adjustment to one account's balance."""

    account_id: int
    amount: Decimal

    def reversed(self) -> "BalanceDelta":
        return BalanceDelta(self.account_id, -self.amount)


@dataclass
class ReconcileResult:
    """What a reconciler call wrote and which deltas had nowhere to go."""

    transaction: Optional[Transaction]
    applied: list[BalanceDelta] = field(default_factory=list)
    skipped: list[BalanceDelta] = field(default_factory=list)


@dataclass(frozen=True)
class TransactionDraft:
    """User-entered transaction fields before validation."""

    type: TransactionType
    amount: Any
    account_id: Optional[int]
    to_account_id: Optional[int] = None
    category: Any = Category.OTHER
    description: str = ""
    occurred_on: date = field(default_factory=date.today)

    @classmethod
    def from_transaction(cls, txn: Transaction) -> "TransactionDraft":
        return cls(
            type=TransactionType(txn.type),
            amount=txn.amount,
            account_id=txn.account_id,
            to_account_id=txn.to_account_id,
            category=txn.category,
            description=txn.description,
            occurred_on=txn.occurred_on,
        )

    def to_fields(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "amount": self.amount,
            "account_id": self.account_id,
            "to_account_id": self.to_account_id,
            "category": self.category,
            "description": self.description,
            "occurred_on": self.occurred_on,
        }


def parse_amount(value: Any) -> Decimal:
    """Return a positive two-decimal amount or raise ValidationError."""

    if value is None or isinstance(value, bool):
        raise ValidationError("Please enter an amount", field="amount")
    try:
        amount = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount must be a number", field="amount") from None
    if not amount.is_finite():
        raise ValidationError("Amount must be a number", field="amount")
    try:
        amount = amount.quantize(CENT)
    except InvalidOperation:
        raise ValidationError("Amount is too large", field="amount") from None
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero", field="amount")
    return amount


def compute_deltas(
    txn_type: TransactionType | str,
    amount: Decimal,
    account_id: int,
    to_account_id: Optional[int] = None,
) -> list[BalanceDelta]:
    """Signed balance deltas implied by a transaction."""

    txn_type = TransactionType(txn_type)
    amount = Decimal(amount)
    if txn_type is TransactionType.EXPENSE:
        return [BalanceDelta(account_id, -amount)]
    if txn_type is TransactionType.INCOME:
        return [BalanceDelta(account_id, amount)]
    if to_account_id is None:
        raise ValidationError("Transfer needs a destination account", field="to_account_id")
    return [BalanceDelta(account_id, -amount), BalanceDelta(to_account_id, amount)]


def reverse_deltas(deltas: Iterable[BalanceDelta]) -> list[BalanceDelta]:
    return [delta.reversed() for delta in deltas]


def deltas_for(txn: Transaction) -> list[BalanceDelta]:
    return compute_deltas(txn.type, txn.amount, txn.account_id, txn.to_account_id)


def parse_account_id(value: Any, *, field: str) -> int:
    """Coerce a selected account id to int; blanks and junk are not a selection."""

    if value is None or isinstance(value, bool):
        raise ValidationError("Please select account(s)", field=field)
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError("Please select account(s)", field=field) from None


def normalize_draft(draft: TransactionDraft) -> TransactionDraft:
    """Check field-level rules that need no account lookup."""

    try:
        txn_type = TransactionType(draft.type)
    except ValueError:
        raise ValidationError(f"Unknown transaction type: {draft.type}", field="type") from None
    amount = parse_amount(draft.amount)
    account_id = parse_account_id(draft.account_id, field="account_id")

    if txn_type is TransactionType.TRANSFER:
        to_account_id = parse_account_id(draft.to_account_id, field="to_account_id")
        if to_account_id == account_id:
            raise ValidationError(
                "Cannot transfer to the same account", field="to_account_id"
            )
        category = Category.TRANSFER
    else:
        category = Category.parse(draft.category)
        if category is Category.TRANSFER:
            raise ValidationError(
                "The transfer category is reserved for transfers", field="category"
            )
        to_account_id = None

    if not isinstance(draft.occurred_on, date):
        raise ValidationError("Please pick a date", field="occurred_on")

    return replace(
        draft,
        type=txn_type,
        amount=amount,
        account_id=account_id,
        to_account_id=to_account_id,
        category=category,
        description=(draft.description or "").strip(),
    )


def validate_transaction(
    draft: TransactionDraft,
    accounts: Iterable[Account],
    *,
    carried: Collection[Optional[int]] = (),
) -> TransactionDraft:
    """Normalise a draft and check its accounts against the user's accounts.

    Ids in ``carried`` are exempt from the existence check; an edit may keep
    pointing at an account that has since been deleted.
    """

    clean = normalize_draft(draft)
    known = {account.id for account in accounts}
    for field_name in ("account_id", "to_account_id"):
        account_id = getattr(clean, field_name)
        if account_id is None or account_id in carried:
            continue
        if account_id not in known:
            raise ValidationError("Selected account does not exist", field=field_name)
    return clean


class BalanceReconciler:
    """Create, edit and delete transactions while keeping balances in step."""

    def __init__(self, store: DocumentStoreLike, ledger: LedgerStore) -> None:
        self._store = store
        self._ledger = ledger
        self._busy = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    @contextmanager
    def _mutation(self) -> Iterator[int]:
        if not self._busy.acquire(blocking=False):
            raise MutationInProgressError("Another change is still being saved")
        try:
            user_id = self._ledger.user_id
            if user_id is None:
                raise SessionExpiredError("Please sign in first")
            yield user_id
        finally:
            self._busy.release()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def create(self, draft: TransactionDraft) -> ReconcileResult:
        """Validate, persist the record, then apply its deltas."""

        with self._mutation() as user_id:
            clean = validate_transaction(draft, self._ledger.accounts)

            txn = Transaction(user_id=user_id, **clean.to_fields())
            saved = self._store.transactions.add(txn, user_id=user_id)
            logger.info(
                "Transaction recorded",
                extra={"transaction_id": saved.id, "type": clean.type.value, "amount": str(clean.amount)},
            )

            result = ReconcileResult(transaction=saved)
            self._apply(deltas_for(saved), user_id=user_id, result=result)
            return result

    def update(self, transaction_id: int, **changes: Any) -> ReconcileResult:
        """Reverse the old deltas, write the new fields, apply the new deltas."""

        with self._mutation() as user_id:
            old = self._ledger.transaction(transaction_id)
            if old is None:
                raise MissingReferenceError(f"Transaction {transaction_id} not found")

            unknown = set(changes) - set(TransactionDraft.__dataclass_fields__)
            if unknown:
                raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
            draft = replace(TransactionDraft.from_transaction(old), **changes)
            clean = validate_transaction(
                draft, self._ledger.accounts, carried={old.account_id, old.to_account_id}
            )

            old_deltas = deltas_for(old)
            result = ReconcileResult(transaction=None)
            reversal = ReconcileResult(transaction=None)
            try:
                self._apply(reverse_deltas(old_deltas), user_id=user_id, result=reversal)
            except RemoteWriteError:
                self._compensate(reversal.applied, user_id=user_id)
                raise
            result.applied.extend(reversal.applied)
            result.skipped.extend(reversal.skipped)

            try:
                saved = self._store.transactions.update(
                    transaction_id, clean.to_fields(), user_id=user_id
                )
            except (RemoteWriteError, MissingReferenceError):
                self._compensate(reversal.applied, user_id=user_id)
                raise
            result.transaction = saved
            logger.info("Transaction updated", extra={"transaction_id": transaction_id})

            self._apply(deltas_for(saved), user_id=user_id, result=result)
            return result

    def delete(self, transaction_id: int) -> ReconcileResult:
        """Reverse the deltas, then remove the record."""

        with self._mutation() as user_id:
            old = self._ledger.transaction(transaction_id)
            if old is None:
                raise MissingReferenceError(f"Transaction {transaction_id} not found")

            result = ReconcileResult(transaction=old)
            try:
                self._apply(reverse_deltas(deltas_for(old)), user_id=user_id, result=result)
                deleted = self._store.transactions.delete(transaction_id, user_id=user_id)
            except RemoteWriteError:
                self._compensate(result.applied, user_id=user_id)
                raise
            if not deleted:
                # Removed elsewhere after the cache saw it; its reversal already happened there.
                self._compensate(result.applied, user_id=user_id)
                raise MissingReferenceError(f"Transaction {transaction_id} not found")
            logger.info("Transaction deleted", extra={"transaction_id": transaction_id})
            return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _apply(
        self, deltas: Iterable[BalanceDelta], *, user_id: int, result: ReconcileResult
    ) -> None:
        for delta in deltas:
            if delta.amount == 0:
                continue
            found = self._store.accounts.increment_balance(
                delta.account_id, delta.amount, user_id=user_id
            )
            if found:
                result.applied.append(delta)
                logger.debug(
                    "Balance adjusted",
                    extra={"account_id": delta.account_id, "delta": str(delta.amount)},
                )
            else:
                result.skipped.append(delta)
                logger.warning(
                    "Skipped balance adjustment for missing account",
                    extra={"account_id": delta.account_id, "delta": str(delta.amount)},
                )

    def _compensate(self, applied: list[BalanceDelta], *, user_id: int) -> None:
        """Undo already-applied deltas after the record write failed."""

        for delta in reverse_deltas(applied):
            try:
                self._store.accounts.increment_balance(
                    delta.account_id, delta.amount, user_id=user_id
                )
            except RemoteWriteError:
                logger.error(
                    "Could not restore balance after failed write",
                    exc_info=True,
                    extra={"account_id": delta.account_id, "delta": str(delta.amount)},
                )
