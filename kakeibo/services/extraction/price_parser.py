"""
Price-Line Heuristic Parser

Turns raw OCR text into (name, price) pairs by looking for a price at the
end of each line, e.g. "おにぎり 150円" or "BREAD ¥1,280".

This is a heuristic, not a guarantee. It will miss prices OCR mangled and
it will happily read a phone number at the end of a line as a price.
Both are reconciled by the user in the review step.
"""

import re
import unicodedata
from dataclasses import dataclass

UNKNOWN_ITEM_NAME = "unknown item"

# optional currency symbol, 2-10 chars of digits/thousands separators,
# optional unit suffix, anchored at end of line. The amount must be the
# whole trailing number, so long barcodes never match on their tail.
PRICE_PATTERN = re.compile(
    r"[¥￥$]?\s*(?<![0-9,，])(?P<amount>[0-9][0-9,，]{1,9})\s*(?:円|yen)?\s*$",
    re.IGNORECASE,
)

_SEPARATORS = re.compile(r"[,，]")


@dataclass(frozen=True)
class ParsedLine:
    """A line that looked like 'name ... price'."""

    name: str
    price: int
    source_line: str


def parse_price(text: str) -> int | None:
    """Parse a price string with separators. Returns None if not a positive int."""
    digits = _SEPARATORS.sub("", text)
    try:
        value = int(digits)
    except ValueError:
        return None
    return value if value > 0 else None


def parse_price_line(line: str) -> ParsedLine | None:
    """
    Parse a single OCR line, or return None if it carries no price.

    The line is NFKC-normalized first so full-width digits and yen signs
    from Japanese OCR output match the ASCII pattern.
    """
    stripped = unicodedata.normalize("NFKC", line).strip()
    if not stripped:
        return None

    match = PRICE_PATTERN.search(stripped)
    if match is None:
        return None

    price = parse_price(match.group("amount"))
    if price is None:
        return None

    name = stripped[:match.start()].strip() or UNKNOWN_ITEM_NAME
    return ParsedLine(name=name, price=price, source_line=stripped)


def parse_price_lines(text: str) -> list[ParsedLine]:
    """
    Parse multi-line OCR text.

    Lines without a qualifying trailing price are dropped. Every returned
    entry has price > 0.
    """
    parsed = []
    for line in text.splitlines():
        result = parse_price_line(line)
        if result is not None:
            parsed.append(result)
    return parsed
