"""
Receipt Parser

Turns receipt scans into structured records: OCR text is parsed into date,
merchant, amount, category and description, stored per user and exported
to spreadsheets.
"""

__version__ = "1.0.0"
__author__ = "Receipt Parser Contributors"

from receipt_parser.core.models import ReceiptFields, Category
from receipt_parser.core.pipeline import parse, parse_with_trace

__all__ = ["ReceiptFields", "Category", "parse", "parse_with_trace"]
