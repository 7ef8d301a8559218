"""
Parsers for extracting information from receipt text.
"""

import re
import datetime as dt
from typing import Optional, List, Tuple

from .models import AmountCandidate, ParseTrace, UNKNOWN_MERCHANT
from .utils import (DATE_PATTERNS, DATE_MIN_YEAR, DATE_MAX_YEAR,
                    AMOUNT_PATTERNS, AMOUNT_MAX,
                    MERCHANT_PATTERNS, MERCHANT_SCAN_LINES, MERCHANT_MAX_LEN,
                    MERCHANT_SKIP_WORDS, DATE_LIKE_PATTERN, CURRENCY_SYMBOLS,
                    normalize_amount, round_money)

_DATE_RES = [(name, re.compile(pat, re.IGNORECASE)) for name, pat in DATE_PATTERNS]
_AMOUNT_RES = [(name, re.compile(pat, flags | re.MULTILINE), priority)
               for name, pat, priority, flags in AMOUNT_PATTERNS]
_MERCHANT_RES = [(name, re.compile(pat, flags)) for name, pat, flags in MERCHANT_PATTERNS]

_MONTHS = {m: i for i, m in enumerate(
    ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"], 1)}


def _expand_year(y: int) -> int:
    if y < 100:
        return 2000 + y if y < 50 else 1900 + y
    return y


def _date_options(value: str) -> List[dt.date]:
    """All calendar dates a matched date string can stand for, most likely first."""
    v = re.sub(r"[.\-]", "/", value.strip())
    options = []

    m = re.fullmatch(r"(\d{4})/(\d{1,2})/(\d{1,2})", v)
    if m:
        orders = [(int(m.group(1)), int(m.group(2)), int(m.group(3)))]
    else:
        m = re.fullmatch(r"(\d{1,2})/(\d{1,2})/(\d{2,4})", v)
        if m:
            a, b, y = int(m.group(1)), int(m.group(2)), _expand_year(int(m.group(3)))
            # month-first, then day-first
            orders = [(y, a, b), (y, b, a)]
        else:
            m = re.search(r"([a-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})", value, re.IGNORECASE)
            if m and m.group(1)[:3].lower() in _MONTHS:
                orders = [(int(m.group(3)), _MONTHS[m.group(1)[:3].lower()], int(m.group(2)))]
            else:
                m = re.search(r"(\d{1,2})(?:st|nd|rd|th)?\s+([a-z]+)\.?,?\s+(\d{4})", value, re.IGNORECASE)
                if not m or m.group(2)[:3].lower() not in _MONTHS:
                    return []
                orders = [(int(m.group(3)), _MONTHS[m.group(2)[:3].lower()], int(m.group(1)))]

    for y, mo, d in orders:
        try:
            options.append(dt.date(y, mo, d))
        except ValueError:
            continue
    return options


def extract_date(text: str, today: Optional[dt.date] = None,
                 trace: Optional[ParseTrace] = None) -> Tuple[str, bool]:
    """
    Extract the receipt date.

    Patterns are tried in order (labeled dates first, then numeric, then
    month names). Within a pattern, matches are visited in order of
    appearance and the first one that forms a valid date with a year in
    (1900, 2030) wins.

    Returns:
        Tuple of (ISO date, found). When nothing is found the date is today.
    """
    for name, rx in _DATE_RES:
        for m in rx.finditer(text or ""):
            value = m.group(1)
            for candidate in _date_options(value):
                accepted = DATE_MIN_YEAR < candidate.year < DATE_MAX_YEAR
                if trace is not None:
                    trace.date_attempts.append({
                        "pattern": name, "text": value,
                        "date": candidate.isoformat(), "accepted": accepted,
                    })
                if accepted:
                    if trace is not None:
                        trace.date_found = True
                    return candidate.isoformat(), True

    today = today or dt.date.today()
    return today.isoformat(), False


def _magnitude_priority(value: float) -> int:
    if value > 100_000:
        return 5
    if value > 50_000:
        return 4
    if value > 10_000:
        return 3
    return 1


def find_amount_candidates(text: str) -> List[AmountCandidate]:
    """Scan the text with every amount pattern, in table order."""
    candidates = []
    for name, rx, priority in _AMOUNT_RES:
        for m in rx.finditer(text or ""):
            value = normalize_amount(m.group(1))
            if value is None or value <= 0 or value >= AMOUNT_MAX:
                continue
            candidates.append(AmountCandidate(
                value=value,
                matched_text=m.group(0).strip(),
                priority=priority if priority is not None else _magnitude_priority(value),
                pattern=name,
                position=m.start(),
            ))
    return candidates


def extract_amount(text: str, trace: Optional[ParseTrace] = None) -> float:
    """
    Extract the payable total from receipt text.

    Every candidate gets the priority of the pattern that found it; the
    winner is the highest priority, then the highest value. The sort is
    stable, so exact ties keep the earliest scanned candidate.
    """
    candidates = find_amount_candidates(text)
    if trace is not None:
        trace.amount_candidates = list(candidates)
    if not candidates:
        return 0.0

    ranked = sorted(candidates, key=lambda c: (-c.priority, -c.value))
    best = ranked[0]
    if trace is not None:
        trace.amount_selected = best
    return round_money(best.value)


def _excluded_line(ln: str) -> Optional[str]:
    """Reason a line cannot be a merchant name, or None."""
    if ln[0].isdigit():
        return "leading digit"
    if re.search(MERCHANT_SKIP_WORDS, ln, re.IGNORECASE):
        return "keyword"
    if "@" in ln:
        return "email"
    if any(sym in ln for sym in CURRENCY_SYMBOLS):
        return "currency"
    if re.search(DATE_LIKE_PATTERN, ln):
        return "date"
    return None


def extract_merchant(text: str, trace: Optional[ParseTrace] = None) -> str:
    """
    Extract the merchant name from the top of the receipt.

    Looks at the first few non-empty lines for one shaped like a business
    name. Falls back to the first line anywhere that merely survives the
    basic exclusions, then to "Unknown Merchant".
    """
    lines = [ln.strip() for ln in (text or "").splitlines() if ln.strip()]

    for ln in lines[:MERCHANT_SCAN_LINES]:
        reason = _excluded_line(ln)
        if reason:
            if trace is not None:
                trace.merchant_lines.append({"line": ln, "skipped": reason})
            continue
        for name, rx in _MERCHANT_RES:
            if rx.search(ln):
                if trace is not None:
                    trace.merchant_lines.append({"line": ln, "matched": name})
                    trace.merchant_source = name
                return ln[:MERCHANT_MAX_LEN]
        if trace is not None:
            trace.merchant_lines.append({"line": ln, "skipped": "no business shape"})

    # Last resort: any line passing the basic exclusions
    for ln in lines:
        if (3 <= len(ln) < MERCHANT_MAX_LEN and not ln[0].isdigit() and "@" not in ln
                and not any(sym in ln for sym in CURRENCY_SYMBOLS)):
            if trace is not None:
                trace.merchant_source = "fallback"
            return ln

    if trace is not None:
        trace.merchant_source = "default"
    return UNKNOWN_MERCHANT
