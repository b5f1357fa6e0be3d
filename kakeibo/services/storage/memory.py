"""
In-Memory Storage Implementation

The ledger lives in ordered dicts keyed by id. Transactions are frozen
pydantic models, so handing them out never lets a caller mutate the store.

Persistence is a JSON blob produced from a LedgerSnapshot; writing it to
disk, browser storage or anything else is left to the caller.
"""

from typing import Any, Optional
from uuid import UUID

from kakeibo.models.audit import AuditEvent
from kakeibo.models.ledger import (
    LedgerSnapshot,
    SavingsGoal,
    Transaction,
    TransactionPatch,
)
from kakeibo.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStoreInterface,
    NotFoundError,
)


class InMemoryLedgerStore(LedgerStoreInterface):
    """Ledger store backed by process memory."""

    def __init__(self, snapshot: Optional[LedgerSnapshot] = None):
        self._transactions: dict[UUID, Transaction] = {}
        self._goals: dict[UUID, SavingsGoal] = {}
        if snapshot is not None:
            self._restore(snapshot)

    def _restore(self, snapshot: LedgerSnapshot) -> None:
        self._transactions = {t.id: t for t in snapshot.transactions}
        self._goals = {g.id: g for g in snapshot.savings}

    def add_transaction(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._transactions:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        self._transactions[transaction.id] = transaction
        return transaction

    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    def update_transaction(
        self,
        transaction_id: UUID,
        patch: TransactionPatch,
    ) -> Transaction:
        current = self._transactions.get(transaction_id)
        if current is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        updated = patch.apply_to(current)
        # Reassigning an existing key keeps its insertion position
        self._transactions[transaction_id] = updated
        return updated

    def remove_transaction(self, transaction_id: UUID) -> bool:
        return self._transactions.pop(transaction_id, None) is not None

    def transactions_for_year(self, year: int | str) -> list[Transaction]:
        # Year matched as a string prefix of the ISO date
        prefix = str(year)
        return [
            t for t in self._transactions.values()
            if t.date.isoformat()[:4] == prefix
        ]

    def all_transactions(self) -> list[Transaction]:
        return list(self._transactions.values())

    def add_goal(self, goal: SavingsGoal) -> SavingsGoal:
        if goal.id in self._goals:
            raise DuplicateError(f"Savings goal already exists: {goal.id}")
        self._goals[goal.id] = goal
        return goal

    def update_goal(self, goal_id: UUID, **changes: Any) -> SavingsGoal:
        current = self._goals.get(goal_id)
        if current is None:
            raise NotFoundError(f"Savings goal not found: {goal_id}")

        changes.pop("id", None)
        updated = SavingsGoal(**{**current.model_dump(), **changes})
        self._goals[goal_id] = updated
        return updated

    def list_goals(self) -> list[SavingsGoal]:
        return list(self._goals.values())

    def clear(self) -> None:
        self._transactions.clear()
        self._goals.clear()

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            transactions=self.all_transactions(),
            savings=self.list_goals(),
        )

    def to_blob(self) -> str:
        return self.snapshot().model_dump_json()

    def load_blob(self, blob: str) -> None:
        self._restore(LedgerSnapshot.model_validate_json(blob))


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit storage kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
