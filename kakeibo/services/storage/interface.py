"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the ledger store.
The receipt pipeline only ever talks to this interface, which lets us:
1. Keep the in-memory store for tests and the single-user app
2. Swap in a real database later
3. Keep business logic decoupled from persistence

Persistence itself is a key-value blob (to_blob/from_blob); how and where
that blob is written is the host application's business.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from kakeibo.models.ledger import SavingsGoal, Transaction, TransactionPatch
from kakeibo.models.audit import AuditEvent


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Writes must be visible to subsequent reads within the same process.
    Reads return transactions in insertion order.
    """

    @abstractmethod
    def add_transaction(self, transaction: Transaction) -> Transaction:
        """
        Append a transaction to the ledger.

        Raises:
            DuplicateError: If a transaction with the same id exists
        """

    @abstractmethod
    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """Retrieve a transaction by id, or None."""

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: UUID,
        patch: TransactionPatch,
    ) -> Transaction:
        """
        Replace category/date/amount/type of an existing transaction.

        The id is immutable and the ledger position is preserved.

        Returns:
            The updated transaction

        Raises:
            NotFoundError: If the transaction doesn't exist
            ValueError: If the patched transaction breaks the sign invariant
        """

    @abstractmethod
    def remove_transaction(self, transaction_id: UUID) -> bool:
        """
        Delete a transaction.

        Returns:
            True if something was deleted, False if the id was unknown
        """

    @abstractmethod
    def transactions_for_year(self, year: int | str) -> list[Transaction]:
        """Transactions whose date falls in `year`, in insertion order."""

    @abstractmethod
    def all_transactions(self) -> list[Transaction]:
        """Every transaction in insertion order."""

    @abstractmethod
    def add_goal(self, goal: SavingsGoal) -> SavingsGoal:
        """Add a savings goal."""

    @abstractmethod
    def update_goal(self, goal_id: UUID, **changes: Any) -> SavingsGoal:
        """
        Update fields of a savings goal.

        Raises:
            NotFoundError: If the goal doesn't exist
        """

    @abstractmethod
    def list_goals(self) -> list[SavingsGoal]:
        """Every savings goal in insertion order."""

    @abstractmethod
    def clear(self) -> None:
        """Erase all transactions and goals."""

    @abstractmethod
    def to_blob(self) -> str:
        """Serialize the whole ledger to a JSON blob."""

    @abstractmethod
    def load_blob(self, blob: str) -> None:
        """Replace the ledger contents with a previously saved blob."""


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Returns True if stored."""

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """All events for one capture session, in chronological order."""

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """The most recent events, newest first."""


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
