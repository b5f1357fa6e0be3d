"""Tests for the in-memory ledger store and its JSON blob."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from kakeibo.models.ledger import (
    Category,
    SavingsGoal,
    Transaction,
    TransactionPatch,
    TransactionType,
)
from kakeibo.services.storage import DuplicateError, InMemoryLedgerStore, NotFoundError


def expense(amount, on=date(2024, 3, 10), category=Category.FOOD):
    return Transaction(
        amount=Decimal(-amount),
        category=category,
        date=on,
        type=TransactionType.EXPENSE,
    )


class TestTransactions:
    """Add, query, update and remove."""

    def test_year_query_after_add_and_remove(self):
        """A transaction is visible for its year until removed."""
        store = InMemoryLedgerStore()
        t = store.add_transaction(expense(500))

        assert t in store.transactions_for_year(2024)
        assert t in store.transactions_for_year("2024")
        assert store.transactions_for_year(2023) == []

        assert store.remove_transaction(t.id)
        assert t not in store.transactions_for_year(2024)
        assert not store.remove_transaction(t.id)

    def test_year_query_keeps_insertion_order(self):
        """Results come back in the order they were added."""
        store = InMemoryLedgerStore()
        later = store.add_transaction(expense(100, on=date(2024, 12, 31)))
        earlier = store.add_transaction(expense(200, on=date(2024, 1, 1)))
        store.add_transaction(expense(300, on=date(2025, 1, 1)))

        assert store.transactions_for_year(2024) == [later, earlier]

    def test_duplicate_id_rejected(self):
        store = InMemoryLedgerStore()
        t = store.add_transaction(expense(100))
        with pytest.raises(DuplicateError):
            store.add_transaction(t)

    def test_update_keeps_id_and_position(self):
        """A patch replaces fields but not identity or order."""
        store = InMemoryLedgerStore()
        first = store.add_transaction(expense(100))
        second = store.add_transaction(expense(200))

        updated = store.update_transaction(
            first.id, TransactionPatch(amount=Decimal("-150"), category=Category.SHOPPING)
        )

        assert updated.id == first.id
        assert updated.amount == Decimal("-150")
        assert updated.category == Category.SHOPPING
        assert store.all_transactions() == [updated, second]

    def test_update_cannot_break_sign_rule(self):
        """A patch that flips the sign without the type is refused."""
        store = InMemoryLedgerStore()
        t = store.add_transaction(expense(100))
        with pytest.raises(ValueError):
            store.update_transaction(t.id, TransactionPatch(amount=Decimal("100")))
        assert store.get_transaction(t.id) == t

    def test_update_unknown(self):
        with pytest.raises(NotFoundError):
            InMemoryLedgerStore().update_transaction(uuid4(), TransactionPatch())

    def test_clear(self):
        store = InMemoryLedgerStore()
        store.add_transaction(expense(100))
        store.clear()
        assert store.all_transactions() == []


class TestSavingsGoals:

    def test_add_and_update_goal(self):
        """Goals can be topped up."""
        store = InMemoryLedgerStore()
        goal = store.add_goal(SavingsGoal(
            title="旅行", target=Decimal("100000"), deadline=date(2024, 12, 1)
        ))

        updated = store.update_goal(goal.id, current=Decimal("25000"))

        assert updated.id == goal.id
        assert store.list_goals()[0].current == Decimal("25000")

    def test_update_unknown_goal(self):
        with pytest.raises(NotFoundError):
            InMemoryLedgerStore().update_goal(uuid4(), current=1)


class TestBlob:
    """JSON persistence boundary."""

    def test_blob_restores_everything(self):
        """A loaded blob reproduces transactions and goals."""
        store = InMemoryLedgerStore()
        t = store.add_transaction(expense(298))
        goal = store.add_goal(SavingsGoal(
            title="PC", target=Decimal("200000"), deadline=date(2025, 6, 1)
        ))

        restored = InMemoryLedgerStore()
        restored.load_blob(store.to_blob())

        assert restored.all_transactions() == [t]
        assert restored.list_goals() == [goal]
        assert restored.transactions_for_year(2024) == [t]

    def test_blob_replaces_existing_state(self):
        """Loading a blob is a restore, not a merge."""
        empty_blob = InMemoryLedgerStore().to_blob()
        store = InMemoryLedgerStore()
        store.add_transaction(expense(100))

        store.load_blob(empty_blob)

        assert store.all_transactions() == []
