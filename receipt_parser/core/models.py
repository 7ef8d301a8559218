"""
Data models for receipt parsing.
"""

import datetime as dt
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import List, Dict, Optional

UNKNOWN_MERCHANT = "Unknown Merchant"


class Category(str, Enum):
    """Closed set of receipt categories."""
    GROCERIES = "Groceries"
    TRANSPORTATION = "Transportation"
    DINING = "Dining"
    HEALTHCARE = "Healthcare"
    CLOTHING = "Clothing"
    GENERAL = "General"


CATEGORIES = [c.value for c in Category]


@dataclass
class ReceiptFields:
    """Structured fields parsed out of one receipt's OCR text."""
    date: str
    merchant: str
    category: str
    amount: float
    description: str
    raw_text: str = ""

    def to_dict(self):
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class AmountCandidate:
    """A provisional amount found while scanning the text."""
    value: float
    matched_text: str
    priority: int
    pattern: str = ""
    position: int = 0


@dataclass
class ParseTrace:
    """
    Diagnostic record of the decisions taken while parsing one text.

    Pass an instance to parse() (or any extractor) to have it filled in;
    parsing never depends on it.
    """
    date_attempts: List[Dict] = field(default_factory=list)
    date_found: bool = False
    amount_candidates: List[AmountCandidate] = field(default_factory=list)
    amount_selected: Optional[AmountCandidate] = None
    merchant_lines: List[Dict] = field(default_factory=list)
    merchant_source: str = ""
    category_rule: Optional[str] = None
    item_hits: List[Dict] = field(default_factory=list)
    description_source: str = ""

    def to_dict(self):
        return asdict(self)


def failed_receipt(reason: str, today: Optional[dt.date] = None) -> ReceiptFields:
    """Sentinel record for a file whose OCR produced no usable text."""
    today = today or dt.date.today()
    return ReceiptFields(
        date=today.isoformat(),
        merchant=UNKNOWN_MERCHANT,
        category=Category.GENERAL.value,
        amount=0.0,
        description=f"OCR failed: {reason}",
        raw_text="",
    )
