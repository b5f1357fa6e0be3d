"""
Core Data Models for the Household Ledger

These models define the schemas for everything flowing through the
receipt pipeline and the ledger:
1. Transactions and savings goals (owned by the ledger store)
2. Candidate items (ephemeral, edited in the staging session)
3. Engine results (uniform output of every extraction engine)

DESIGN DECISION: Amounts on transactions are signed Decimals.
The sign and the transaction type must always agree, and we refuse
to build a Transaction that breaks this rather than "fixing" it.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS
# =============================================================================

class Category(str, Enum):
    """Spending/income categories used across the ledger."""
    FOOD = "food"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    HOBBIES = "hobbies"
    UTILITY = "utility"
    OTHER = "other"

    @property
    def emoji(self) -> str:
        return CATEGORY_EMOJI[self]

    @property
    def display_name(self) -> str:
        return CATEGORY_NAMES[self]


CATEGORY_EMOJI = {
    Category.FOOD: "🍕",
    Category.TRANSPORT: "🚌",
    Category.SHOPPING: "🛍️",
    Category.HOBBIES: "🎮",
    Category.UTILITY: "💡",
    Category.OTHER: "🏷️",
}

CATEGORY_NAMES = {
    Category.FOOD: "Food",
    Category.TRANSPORT: "Transport",
    Category.SHOPPING: "Shopping",
    Category.HOBBIES: "Hobbies",
    Category.UTILITY: "Utilities",
    Category.OTHER: "Other",
}


class TransactionType(str, Enum):
    """Direction of a transaction."""
    EXPENSE = "expense"
    INCOME = "income"


class EngineId(str, Enum):
    """
    Identifiers of the extraction engines.

    The values are the strings used in configuration.
    """
    LOCAL_OCR = "local-ocr"
    CLOUD_VISION = "cloud-vision"
    LOCAL_LLM = "local-llm"


class FailureKind(str, Enum):
    """Why an extraction produced no usable items."""
    MISSING_CREDENTIALS = "missing_credentials"
    TRANSPORT_FAILURE = "transport_failure"
    MALFORMED_RESPONSE = "malformed_response"
    NO_ITEMS_EXTRACTED = "no_items_extracted"

    @property
    def classification(self) -> str:
        """
        Coarse bucket shown to the user.

        Transport and malformed-response failures share one bucket;
        from the user's side both mean "the call did not give us data".
        """
        if self is FailureKind.MISSING_CREDENTIALS:
            return "missing-credentials"
        if self is FailureKind.NO_ITEMS_EXTRACTED:
            return "no-items-found"
        return "network/parse-error"


# =============================================================================
# LEDGER MODELS
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger entry.

    CRITICAL: amount < 0 means expense, amount > 0 means income.
    A zero amount is never stored.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID (immutable)"
    )
    amount: Decimal = Field(
        ...,
        description="Signed amount: negative for expenses, positive for income"
    )
    category: Category
    date: dt.date
    type: TransactionType

    @model_validator(mode='after')
    def validate_sign(self) -> 'Transaction':
        """Sign of the amount must match the transaction type."""
        if self.amount == 0:
            raise ValueError("Transaction amount cannot be zero")
        if self.type == TransactionType.EXPENSE and self.amount > 0:
            raise ValueError("Expense transactions must have a negative amount")
        if self.type == TransactionType.INCOME and self.amount < 0:
            raise ValueError("Income transactions must have a positive amount")
        return self


class TransactionPatch(BaseModel):
    """Fields a manual edit may replace. The id is never patchable."""

    amount: Optional[Decimal] = None
    category: Optional[Category] = None
    date: Optional[dt.date] = None
    type: Optional[TransactionType] = None

    def apply_to(self, transaction: Transaction) -> Transaction:
        """Return a new, re-validated Transaction with the patch applied."""
        changes = self.model_dump(exclude_none=True)
        return Transaction(**{**transaction.model_dump(), **changes})


class SavingsGoal(BaseModel):
    """A savings target. current <= target is not enforced."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(..., min_length=1, max_length=100)
    target: Decimal = Field(..., gt=0)
    current: Decimal = Field(default=Decimal("0"), ge=0)
    deadline: dt.date
    emoji: str = Field(default="🎯", max_length=8)


# =============================================================================
# RECEIPT PIPELINE MODELS
# =============================================================================

class CandidateItem(BaseModel):
    """
    An unconfirmed line item awaiting user review.

    Items with price == 0 are never committed.
    Assignments are validated so field edits can't corrupt the item.
    """
    model_config = ConfigDict(validate_assignment=True)

    item_id: int = Field(
        default=0,
        ge=0,
        description="Stable id assigned by the staging session"
    )
    name: str = Field(
        default="",
        max_length=200,
        description="Free-text item name (may be empty)"
    )
    price: int = Field(
        default=0,
        ge=0,
        description="Price in whole currency units"
    )
    category: Category = Category.OTHER
    emoji: Optional[str] = Field(
        default=None,
        description="Provisional tag; derived from category when unset"
    )
    quantity: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Quantity as reported by an LLM engine (display only)"
    )

    @field_validator('name', mode='before')
    @classmethod
    def coerce_name(cls, v) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @property
    def display_emoji(self) -> str:
        return self.emoji or self.category.emoji

    @property
    def is_accepted(self) -> bool:
        return self.price > 0


class ReceiptSummary(BaseModel):
    """
    Receipt-level fields reported by an LLM engine.

    These are informational only. They never gate acceptance of items.
    """

    store_name: Optional[str] = None
    purchase_date: Optional[str] = None
    total_amount: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None


class ExtractionFailure(BaseModel):
    """Why an extraction failed, in a form the UI can act on."""

    kind: FailureKind
    message: str

    @property
    def classification(self) -> str:
        return self.kind.classification


class EngineResult(BaseModel):
    """
    Uniform output of every extraction engine.

    Exactly one of `items` (non-empty) or `failure` is meaningful.
    """

    engine: EngineId
    items: list[CandidateItem] = Field(default_factory=list)
    failure: Optional[ExtractionFailure] = None
    receipt: Optional[ReceiptSummary] = None

    @model_validator(mode='after')
    def validate_shape(self) -> 'EngineResult':
        if self.failure is None and not self.items:
            raise ValueError("A successful engine result needs at least one item")
        if self.failure is not None and self.items:
            raise ValueError("A failed engine result cannot carry items")
        return self

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(
        cls,
        engine: EngineId,
        items: list[CandidateItem],
        receipt: Optional[ReceiptSummary] = None,
    ) -> 'EngineResult':
        return cls(engine=engine, items=items, receipt=receipt)

    @classmethod
    def failed(
        cls,
        engine: EngineId,
        kind: FailureKind,
        message: str,
    ) -> 'EngineResult':
        return cls(
            engine=engine,
            failure=ExtractionFailure(kind=kind, message=message),
        )


class LedgerSnapshot(BaseModel):
    """Serializable state of the whole ledger (the key-value blob)."""

    transactions: list[Transaction] = Field(default_factory=list)
    savings: list[SavingsGoal] = Field(default_factory=list)
