"""
Receipt Extraction Prompt and Response Parsing

Shared by the cloud-vision and local-llm engines: both send the same
system instruction with the image, and both get back text that should
contain one JSON object.

The model's `items` list is trusted as-is. We don't re-derive totals
from it; total_amount/tax_amount/purchase_date are kept only as an
informational ReceiptSummary.
"""

import json
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from kakeibo.models.ledger import CandidateItem, Category, ReceiptSummary
from kakeibo.services.extraction.base import (
    MalformedResponseError,
    NoItemsExtractedError,
)

RECEIPT_EXTRACTION_PROMPT = """You are a receipt reader for a household budgeting app.

Read the receipt in the image and respond with ONLY a JSON object in this exact format:
{
  "store_name": "name of the store",
  "purchase_date": "YYYY-MM-DD",
  "total_amount": 0,
  "tax_amount": 0,
  "items": [
    {"name": "item name as printed", "quantity": 1, "price": 0}
  ]
}

Rules:
- "price" is the final amount paid for that line, tax included, as a number without currency symbols.
- The "price" values in "items" MUST sum to "total_amount".
- Keep item names in the language printed on the receipt.
- Do not include subtotal, tax, total, change or payment lines as items.
- If a field can't be read, use null. If no items can be read, return an empty "items" list.
- Do not wrap the JSON in explanations."""

USER_INSTRUCTION = "Extract the line items from this receipt."

_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*|\s*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` and a trailing ``` if present."""
    return _FENCE.sub("", text.strip())


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).replace(",", "").replace("¥", "").strip())
    except (InvalidOperation, ValueError):
        return None
    return amount if amount.is_finite() else None


def _to_price(value: Any) -> Optional[int]:
    """Whole, non-negative price, or None if unreadable."""
    amount = _to_decimal(value)
    if amount is None:
        return None
    return max(0, int(amount.to_integral_value()))


def parse_receipt_response(
    text: str,
    default_category: Category,
) -> tuple[list[CandidateItem], ReceiptSummary]:
    """
    Parse model output into candidate items.

    Raises:
        MalformedResponseError: Not a JSON object
        NoItemsExtractedError: `items` missing, empty, or nothing readable in it
    """
    body = strip_code_fences(text or "")
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Response is not valid JSON: {e}")

    if not isinstance(data, dict):
        raise MalformedResponseError("Response JSON is not an object")

    raw_items = data.get("items")
    if raw_items is None or raw_items == []:
        raise NoItemsExtractedError("The model found no items on the receipt")
    if not isinstance(raw_items, list):
        raise MalformedResponseError("'items' is not a list")

    items = []
    for entry in raw_items:
        if not isinstance(entry, dict):
            continue
        price = _to_price(entry.get("price"))
        if price is None:
            continue
        items.append(CandidateItem(
            name=str(entry.get("name") or "")[:200],
            price=price,
            category=default_category,
            quantity=_quantity(entry.get("quantity")),
        ))

    if not items:
        raise NoItemsExtractedError("None of the returned items had a readable price")

    receipt = ReceiptSummary(
        store_name=str(data["store_name"]) if data.get("store_name") else None,
        purchase_date=str(data["purchase_date"]) if data.get("purchase_date") else None,
        total_amount=_to_decimal(data.get("total_amount")),
        tax_amount=_to_decimal(data.get("tax_amount")),
    )
    return items, receipt


def _quantity(value: Any) -> Optional[Decimal]:
    quantity = _to_decimal(value)
    if quantity is None or quantity < 0:
        return None
    return quantity
