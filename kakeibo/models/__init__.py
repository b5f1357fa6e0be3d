"""
Data Models Package

This package contains all Pydantic models used by the household ledger.
All data flowing through the receipt pipeline must conform to these schemas.
"""

from kakeibo.models.ledger import (
    CATEGORY_EMOJI,
    CATEGORY_NAMES,
    CandidateItem,
    Category,
    EngineId,
    EngineResult,
    ExtractionFailure,
    FailureKind,
    LedgerSnapshot,
    ReceiptSummary,
    SavingsGoal,
    Transaction,
    TransactionPatch,
    TransactionType,
)
from kakeibo.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "CATEGORY_EMOJI",
    "CATEGORY_NAMES",
    "CandidateItem",
    "Category",
    "EngineId",
    "EngineResult",
    "ExtractionFailure",
    "FailureKind",
    "LedgerSnapshot",
    "ReceiptSummary",
    "SavingsGoal",
    "Transaction",
    "TransactionPatch",
    "TransactionType",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
