"""Tests for committing staged items and for manual entry."""

import asyncio
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from kakeibo.audit import AuditLogger
from kakeibo.capture import CaptureSession
from kakeibo.models.audit import AuditEventType
from kakeibo.models.ledger import (
    CandidateItem,
    Category,
    TransactionPatch,
    TransactionType,
)
from kakeibo.orchestrator import CommitProcess, InvalidEntryError, ManualEntryFlow
from kakeibo.services.storage import (
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    NotFoundError,
)

TODAY = date(2024, 5, 1)


def session_with(*prices, category=Category.OTHER):
    session = CaptureSession()
    session.begin_capture()
    for price in prices:
        session.staging.append(CandidateItem(name=f"item {price}", price=price, category=category))
    return session


class TestCommitProcess:
    """Staged items to ledger transactions."""

    def test_zero_priced_items_are_skipped(self):
        """Only positive prices become expenses, in staging order."""
        store = InMemoryLedgerStore()
        session = session_with(298, 0, 450)

        count = asyncio.run(CommitProcess(store).commit(session, today=TODAY))

        assert count == 2
        transactions = store.all_transactions()
        assert [t.amount for t in transactions] == [Decimal("-298"), Decimal("-450")]
        assert all(t.type == TransactionType.EXPENSE for t in transactions)
        assert all(t.date == TODAY for t in transactions)
        assert len({t.id for t in transactions}) == 2

    def test_category_is_carried_over(self):
        """Each transaction keeps the category chosen during review."""
        store = InMemoryLedgerStore()
        session = session_with(500, category=Category.FOOD)

        asyncio.run(CommitProcess(store).commit(session, today=TODAY))

        assert store.all_transactions()[0].category == Category.FOOD

    def test_empty_session_commits_nothing(self):
        """Committing nothing is fine and leaves the store alone."""
        store = InMemoryLedgerStore()
        session = CaptureSession()

        assert asyncio.run(CommitProcess(store).commit(session, today=TODAY)) == 0
        assert store.all_transactions() == []

    def test_commit_closes_the_session(self):
        """Staging is reset and the session closed afterwards."""
        store = InMemoryLedgerStore()
        session = session_with(100, 200)

        asyncio.run(CommitProcess(store).commit(session, today=TODAY))

        assert len(session.staging) == 0
        assert not session.is_open

    def test_commit_is_audited(self):
        """Every saved transaction and the commit itself are logged."""
        store = InMemoryLedgerStore()
        storage = InMemoryAuditStorage()
        session = session_with(100, 0)

        asyncio.run(CommitProcess(store, AuditLogger(storage)).commit(session, today=TODAY))

        events = asyncio.run(storage.get_events_by_correlation_id(session.session_id))
        types = [e.event_type for e in events]
        assert types.count(AuditEventType.TRANSACTION_SAVED) == 1
        assert AuditEventType.ITEMS_COMMITTED in types

    def test_discard_writes_nothing(self):
        """Discarding closes the session without touching the store."""
        store = InMemoryLedgerStore()
        session = session_with(100)

        asyncio.run(CommitProcess(store).discard(session))

        assert store.all_transactions() == []
        assert not session.is_open


class TestManualEntryFlow:
    """Hand-entered transactions."""

    def test_expense_is_stored_negative(self):
        """The sign follows the type, not what was typed."""
        store = InMemoryLedgerStore()
        flow = ManualEntryFlow(store)

        t = asyncio.run(flow.record("1,200", Category.FOOD, TODAY, TransactionType.EXPENSE))

        assert t.amount == Decimal("-1200")
        assert store.get_transaction(t.id) == t

    def test_income_is_stored_positive(self):
        """A negative number typed for income is still income."""
        flow = ManualEntryFlow(InMemoryLedgerStore())
        t = asyncio.run(flow.record(-50000, "other", TODAY, "income"))
        assert t.amount == Decimal("50000")
        assert t.type == TransactionType.INCOME

    @pytest.mark.parametrize("amount", ["0", "", "abc", "nan", 0])
    def test_rejects_zero_and_non_numeric(self, amount):
        """Zero and non-numeric amounts are refused."""
        store = InMemoryLedgerStore()
        with pytest.raises(InvalidEntryError):
            asyncio.run(ManualEntryFlow(store).record(amount, Category.FOOD, TODAY))
        assert store.all_transactions() == []

    def test_rejects_unknown_category(self):
        with pytest.raises(InvalidEntryError):
            asyncio.run(ManualEntryFlow(InMemoryLedgerStore()).record(100, "groceries", TODAY))

    def test_update_and_delete(self):
        """Edits are applied in place and deletions are audited."""
        store = InMemoryLedgerStore()
        storage = InMemoryAuditStorage()
        flow = ManualEntryFlow(store, AuditLogger(storage))
        t = asyncio.run(flow.record(300, Category.OTHER, TODAY))

        updated = asyncio.run(flow.update(t.id, TransactionPatch(category=Category.HOBBIES)))
        assert updated.id == t.id
        assert updated.category == Category.HOBBIES

        assert asyncio.run(flow.delete(t.id))
        assert not asyncio.run(flow.delete(t.id))

        types = [e.event_type for e in asyncio.run(storage.get_recent_events())]
        assert AuditEventType.TRANSACTION_UPDATED in types
        assert AuditEventType.TRANSACTION_DELETED in types

    def test_update_unknown_transaction(self):
        with pytest.raises(NotFoundError):
            asyncio.run(ManualEntryFlow(InMemoryLedgerStore()).update(
                uuid4(), TransactionPatch(category=Category.FOOD)
            ))
