"""Pytest configuration and shared fixtures for NovaBudget tests.

Provides an isolated SQLite database per test, a document store bound to it,
a signed-in user with an attached ledger store, and small data factories.
"""

from __future__ import annotations

import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlmodel import SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from novabudget.models import Account, Budget, Transaction, User  # noqa: F401
from novabudget.constants.categories import AccountType, Category, TransactionType
from novabudget.config import InMemoryConfig
from novabudget.context import create_app_context
from novabudget.infra.database import create_session_factory
from novabudget.infra.store import DocumentStore
from novabudget.services import ledger_service
from novabudget.services.ledger_store import LedgerStore
from novabudget.services.reconciler import BalanceReconciler, TransactionDraft


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the one the application builds."""

    return create_session_factory(db_engine)


@pytest.fixture
def user(session_factory) -> User:
    """A persisted user to scope data to."""

    with session_factory() as session:
        row = User(email="tester@example.com", password_hash="dummy-hash")
        session.add(row)
        session.commit()
        session.refresh(row)
        session.expunge(row)
    return row


@pytest.fixture
def store(session_factory) -> DocumentStore:
    return DocumentStore.from_session_factory(session_factory)


@pytest.fixture
def ledger(store, user):
    """Ledger store attached to the test user."""

    ledger_store = LedgerStore(store)
    ledger_store.attach(user.id)
    yield ledger_store
    ledger_store.detach()


@pytest.fixture
def reconciler(store, ledger) -> BalanceReconciler:
    return BalanceReconciler(store, ledger)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def account_factory(store, user):
    """Factory for creating accounts through the service layer."""

    def _create_account(
        name: str = "Test Account",
        balance: Decimal | int | str = Decimal("0"),
        type: AccountType = AccountType.BANK,
    ) -> Account:
        return ledger_service.create_account(
            store, user_id=user.id, name=name, type=type, balance=balance
        )

    return _create_account


@pytest.fixture
def balance_of(store, user):
    """Read an account balance straight from the database."""

    def _balance(account: Account | int) -> Decimal | None:
        account_id = account if isinstance(account, int) else account.id
        return store.accounts.get_balance(account_id, user_id=user.id)

    return _balance


def make_draft(
    type: TransactionType | str,
    amount,
    account_id,
    to_account_id=None,
    category: Category | str = Category.OTHER,
    description: str = "",
    occurred_on: date | None = None,
) -> TransactionDraft:
    """Build a draft with sensible defaults for tests."""

    return TransactionDraft(
        type=type,
        amount=amount,
        account_id=account_id,
        to_account_id=to_account_id,
        category=category,
        description=description,
        occurred_on=occurred_on or date(2025, 3, 14),
    )


def make_txn(
    type: TransactionType,
    amount,
    occurred_on: date,
    *,
    category: Category = Category.OTHER,
    account_id: int = 1,
    to_account_id: int | None = None,
    txn_id: int | None = None,
) -> Transaction:
    """Unsaved transaction for pure aggregation tests."""

    return Transaction(
        id=txn_id,
        user_id=1,
        type=type,
        amount=Decimal(str(amount)),
        account_id=account_id,
        to_account_id=to_account_id,
        category=category,
        occurred_on=occurred_on,
    )


# =============================================================================
# Application Context
# =============================================================================


@pytest.fixture
def notifications() -> list[tuple[str, str]]:
    return []


@pytest.fixture
def app_ctx(monkeypatch: pytest.MonkeyPatch, tmp_path, notifications):
    """Fully wired application context on an in-memory database."""

    monkeypatch.setenv("NOVABUDGET_DATA_DIR", str(tmp_path / "instance"))
    ctx = create_app_context(
        InMemoryConfig(), notifier=lambda message, level: notifications.append((message, level))
    )
    yield ctx
    ctx.shutdown()
