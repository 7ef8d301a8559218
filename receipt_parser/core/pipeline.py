"""
Receipt text parsing pipeline: raw OCR text in, ReceiptFields out.
"""

import datetime as dt
from typing import Optional, Tuple

from .models import ReceiptFields, ParseTrace
from .parsers import extract_date, extract_amount, extract_merchant
from .categorization import classify, describe


def parse(raw_text: str, today: Optional[dt.date] = None,
          trace: Optional[ParseTrace] = None) -> ReceiptFields:
    """
    Parse OCR text into structured receipt fields.

    Never raises for text it cannot make sense of: every field falls back
    to its default (today's date, "Unknown Merchant", 0.0, General).

    Args:
        raw_text: Text returned by the OCR provider
        today: Date used when no date is found (defaults to the current date)
        trace: Optional ParseTrace to collect intermediate decisions
    """
    text = raw_text or ""

    date, date_found = extract_date(text, today=today, trace=trace)
    amount = extract_amount(text, trace=trace)
    merchant = extract_merchant(text, trace=trace)

    category = classify(text, merchant, trace=trace)
    description = describe(text, merchant, amount, date, date_found, trace=trace)

    return ReceiptFields(
        date=date,
        merchant=merchant,
        category=category,
        amount=amount,
        description=description,
        raw_text=text,
    )


def parse_with_trace(raw_text: str, today: Optional[dt.date] = None) -> Tuple[ReceiptFields, ParseTrace]:
    """Parse and return the diagnostic trace alongside the fields."""
    trace = ParseTrace()
    return parse(raw_text, today=today, trace=trace), trace
