"""
Utility functions and constants for receipt processing.
"""

import datetime as dt
import hashlib
import math
import re
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Optional

# File type constants
IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp"}
PDF_EXTS = {".pdf"}

CURRENCY_SYMBOLS = "$£€¥₹"
CURRENCY_CODES = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥", "INR": "₹", "ZAR": "R"}

# Pattern constants for parsing.
# Each table is ordered: earlier entries win over later ones.
_YMD = r"\d{4}[./-]\d{1,2}[./-]\d{1,2}"
_DMY = r"\d{1,2}[./-]\d{1,2}[./-]\d{2,4}"
_MONTH = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?"
_MONTH_DAY_YEAR = rf"{_MONTH}\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}"
_DAY_MONTH_YEAR = rf"\d{{1,2}}(?:st|nd|rd|th)?\s+{_MONTH},?\s+\d{{4}}"

DATE_PATTERNS = [
    # "Date Issued: 2024-03-15", "Date: 03/15/2024", "Date: 5 Jan 2024"
    ("labeled", rf"\bdate(?:\s+issued)?\s*[:\-]?\s*({_YMD}|{_DMY}|{_MONTH_DAY_YEAR}|{_DAY_MONTH_YEAR})"),
    ("year_first", rf"\b({_YMD})\b"),
    ("numeric", r"\b(\d{1,2}[./-]\d{1,2}[./-]\d{4})\b"),
    ("numeric_short_year", r"\b(\d{1,2}[./-]\d{1,2}[./-]\d{2})\b"),
    ("month_day_year", rf"\b({_MONTH_DAY_YEAR})\b"),
    ("day_month_year", rf"\b({_DAY_MONTH_YEAR})\b"),
]

DATE_MIN_YEAR = 1900   # exclusive
DATE_MAX_YEAR = 2030   # exclusive

# Amount with optional space/comma thousands separators and up to 2 decimals
_NUM = r"(\d{1,3}(?:[, ]\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)"
_CUR = r"(?:[$£€¥₹]|\bR|USD|ZAR|EUR|GBP|INR)"

# (name, pattern, priority, flags); a priority of None means "scale by magnitude"
AMOUNT_PATTERNS = [
    ("balance_due", rf"\bbalance\s+due\b\s*[:\-=]?\s*{_CUR}?\s*{_NUM}", 10, re.IGNORECASE),
    ("labeled_total", rf"\b(?:grand\s+)?(?:total|amount|sum|due)\b\s*[:\-=]?\s*{_CUR}?\s*{_NUM}", 8, re.IGNORECASE),
    ("currency_prefix", rf"(?:[$£€¥₹]|\bR)\s?{_NUM}", 7, 0),
    ("currency_suffix", rf"{_NUM}\s?(?:[$£€¥₹]|\b(?:USD|EUR|GBP|ZAR|INR|JPY)\b)", 6, 0),
    ("invoice_total", rf"\binvoice\s+total\b\s*[:\-=]?\s*{_CUR}?\s*{_NUM}", 6, re.IGNORECASE),
    # 5+ digits with no currency marker next to it
    ("bare_number", r"(?<![\d.,$£€¥₹])(?<!R )(?<!R)(\d{5,}(?:\.\d{1,2})?)(?![\d,]|\.\d)", None, 0),
]

AMOUNT_MAX = 10 ** 8

MERCHANT_SCAN_LINES = 5
MERCHANT_MAX_LEN = 50

MERCHANT_SKIP_WORDS = r"receipt|thank|address|phone|www"
DATE_LIKE_PATTERN = r"\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2,4}"

# Shapes of a business name line, tried in order
MERCHANT_PATTERNS = [
    ("capitalized", r"^[A-Z][A-Za-z\s&'.,()\-]{2,39}$", 0),
    ("business_suffix", r"\b(?:LLC|Inc|Corp|Ltd|Pty|Restaurant|Store|Market|Shop)\b", re.IGNORECASE),
    ("alphabetic", r"^[A-Za-z\s]{4,30}$", 0),
]


def slugify(s: str) -> str:
    """Convert string to filesystem-safe slug."""
    return re.sub(r"[^a-z0-9]+", "-", s.lower()).strip("-")


def normalize_amount(s: str) -> Optional[float]:
    """
    Normalize an amount string to float.

    Commas without a period are thousands separators. With both present,
    the digits after the last period are the decimals and commas before it
    are dropped.
    """
    if not s:
        return None
    s = s.replace(" ", "")
    if "," in s and "." not in s:
        s = s.replace(",", "")
    elif "," in s and "." in s:
        whole, _, decimals = s.rpartition(".")
        s = whole.replace(",", "") + "." + decimals
    try:
        value = float(s)
    except ValueError:
        return None
    if math.isnan(value):
        return None
    return value


def round_money(value: float) -> float:
    """Round half-up to 2 decimal places."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def detect_currency(text: str, default: str = "$") -> str:
    """
    Return the currency symbol for the text.

    A symbol (or the Rand "R" before a number) wins; otherwise the first ISO
    code (USD, EUR, ...) is mapped to its symbol.
    """
    m = re.search(r"[$£€¥₹]|\bR(?=\s?\d)", text or "")
    if m:
        return m.group(0)
    m = re.search(rf"\b({'|'.join(CURRENCY_CODES)})\b", text or "")
    return CURRENCY_CODES[m.group(1)] if m else default


def sha1_file(path: Path) -> str:
    """Calculate SHA1 hash of file."""
    h = hashlib.sha1()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def get_current_week() -> str:
    """Return current week in ISO format: YYYY-Www (e.g., 2025-W43)."""
    return dt.date.today().strftime("%Y-W%U")


def money_fmt(v: Optional[float], symbol: str = "$") -> str:
    """Format amount as currency."""
    return f"{symbol}{v:,.2f}" if v is not None else ""
