"""Document store collections: CRUD, scoping, ordering and balance increments."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from novabudget.constants.categories import AccountType, Category, TransactionType
from novabudget.errors import MissingReferenceError, RemoteWriteError
from novabudget.models import Account, Budget, User
from tests.conftest import make_txn


@pytest.fixture
def other_user(session_factory) -> User:
    with session_factory() as session:
        row = User(email="someone@example.com", password_hash="dummy-hash")
        session.add(row)
        session.commit()
        session.refresh(row)
        session.expunge(row)
    return row


def test_account_crud(store, user):
    account = store.accounts.add(
        Account(name="Savings", type=AccountType.SAVINGS, balance=Decimal("250.50"), user_id=user.id),
        user_id=user.id,
    )
    assert account.id is not None

    fetched = store.accounts.get(account.id, user_id=user.id)
    assert fetched.name == "Savings"
    assert fetched.type is AccountType.SAVINGS
    assert fetched.balance == Decimal("250.50")

    renamed = store.accounts.update(account.id, {"name": "Rainy day"}, user_id=user.id)
    assert renamed.name == "Rainy day"

    assert store.accounts.delete(account.id, user_id=user.id) is True
    assert store.accounts.get(account.id, user_id=user.id) is None
    assert store.accounts.delete(account.id, user_id=user.id) is False


def test_collections_are_scoped_per_user(store, user, other_user):
    mine = store.accounts.add(Account(name="Mine", user_id=user.id), user_id=user.id)
    store.accounts.add(Account(name="Theirs", user_id=other_user.id), user_id=other_user.id)

    assert [a.name for a in store.accounts.query(user_id=user.id)] == ["Mine"]
    assert store.accounts.get(mine.id, user_id=other_user.id) is None
    assert store.accounts.delete(mine.id, user_id=other_user.id) is False
    assert store.accounts.increment_balance(mine.id, Decimal("5"), user_id=other_user.id) is False
    assert store.accounts.get_balance(mine.id, user_id=user.id) == Decimal("0")


def test_add_stamps_owner(store, user, other_user):
    account = store.accounts.add(Account(name="Forged", user_id=other_user.id), user_id=user.id)
    assert account.user_id == user.id


def test_increment_balance_is_additive(store, user):
    account = store.accounts.add(
        Account(name="Bank", balance=Decimal("100"), user_id=user.id), user_id=user.id
    )

    assert store.accounts.increment_balance(account.id, Decimal("-30.25"), user_id=user.id)
    assert store.accounts.increment_balance(account.id, Decimal("10"), user_id=user.id)
    assert store.accounts.get_balance(account.id, user_id=user.id) == Decimal("79.75")


def test_increment_missing_account_changes_nothing(store, user):
    published = []
    store.feed.subscribe(
        "accounts", user.id, lambda: [], lambda snapshot: published.append(len(snapshot))
    )
    published.clear()

    assert store.accounts.increment_balance(404, Decimal("10"), user_id=user.id) is False
    assert store.accounts.get_balance(404, user_id=user.id) is None
    assert published == []


def test_update_missing_row_raises(store, user):
    with pytest.raises(MissingReferenceError):
        store.budgets.update(99, {"limit": Decimal("10")}, user_id=user.id)


@pytest.mark.parametrize("field", ["id", "user_id", "created_at", "no_such_column"])
def test_update_rejects_protected_and_unknown_fields(store, user, field):
    account = store.accounts.add(Account(name="Bank", user_id=user.id), user_id=user.id)
    with pytest.raises(ValueError):
        store.accounts.update(account.id, {field: 1}, user_id=user.id)


def test_write_failure_is_wrapped(store, user):
    # name is NOT NULL; the constraint fires on flush.
    with pytest.raises(RemoteWriteError, match="Failed to save account"):
        store.accounts.add(Account(name=None, user_id=user.id), user_id=user.id)


def test_transactions_order_newest_first(store, user):
    for day in (5, 20, 12, 20):
        store.transactions.add(
            make_txn(TransactionType.EXPENSE, day, date(2025, 6, day)), user_id=user.id
        )

    rows = store.transactions.query(user_id=user.id)
    assert [t.occurred_on.day for t in rows] == [20, 20, 12, 5]
    # Same day: the later insert comes first.
    assert rows[0].id > rows[1].id


def test_transaction_filters(store, user):
    store.transactions.add(
        make_txn(TransactionType.EXPENSE, 10, date(2025, 1, 15), account_id=1), user_id=user.id
    )
    store.transactions.add(
        make_txn(TransactionType.TRANSFER, 20, date(2025, 2, 1), account_id=2, to_account_id=1),
        user_id=user.id,
    )
    store.transactions.add(
        make_txn(TransactionType.INCOME, 30, date(2025, 3, 1), account_id=3), user_id=user.id
    )

    january = store.transactions.filter_by_date_range(
        date(2025, 1, 1), date(2025, 1, 31), user_id=user.id
    )
    assert [t.amount for t in january] == [Decimal("10")]

    touching = store.transactions.filter_by_account(1, user_id=user.id)
    assert sorted(t.amount for t in touching) == [Decimal("10"), Decimal("20")]


def test_budget_for_category(store, user):
    store.budgets.add(
        Budget(category=Category.FOOD, limit=Decimal("100"), user_id=user.id), user_id=user.id
    )
    store.budgets.add(
        Budget(category=Category.BILLS, limit=Decimal("50"), user_id=user.id), user_id=user.id
    )

    found = store.budgets.get_for_category(Category.BILLS, user_id=user.id)
    assert found.limit == Decimal("50")
    assert store.budgets.get_for_category(Category.HEALTH, user_id=user.id) is None


def test_subscription_sees_only_committed_state(store, user):
    sizes = []
    handle = store.accounts.subscribe(
        user_id=user.id, on_change=lambda snapshot: sizes.append(len(snapshot))
    )
    store.accounts.add(Account(name="One", user_id=user.id), user_id=user.id)
    store.accounts.add(Account(name="Two", user_id=user.id), user_id=user.id)
    handle()
    store.accounts.add(Account(name="Three", user_id=user.id), user_id=user.id)

    assert sizes == [0, 1, 2]
    assert not handle.active
