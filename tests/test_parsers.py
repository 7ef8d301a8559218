import datetime as dt

import pytest

from receipt_parser.core.models import ParseTrace
from receipt_parser.core.parsers import extract_date, extract_amount, extract_merchant
from receipt_parser.core.utils import normalize_amount, round_money

TODAY = dt.date(2024, 6, 1)


@pytest.mark.parametrize("text,expected", [
    ("Date: 03/15/2024", "2024-03-15"),
    ("Date Issued: 2024-03-15", "2024-03-15"),
    ("Date: 03/15/24", "2024-03-15"),
    ("Paid on 15.03.2024", "2024-03-15"),
    ("Paid on 2024/3/5", "2024-03-05"),
    ("Jan 5, 2024", "2024-01-05"),
    ("5 January 2024", "2024-01-05"),
    ("Date: 5 Jan 2024", "2024-01-05"),
])
def test_extract_date_formats(text, expected):
    assert extract_date(text, today=TODAY) == (expected, True)


def test_labeled_date_wins_over_earlier_generic_date():
    text = "Printed 2023-01-02\nDate Issued: 2024-03-15"
    assert extract_date(text, today=TODAY) == ("2024-03-15", True)


def test_ambiguous_numeric_date_is_month_first():
    assert extract_date("03/04/2024", today=TODAY) == ("2024-03-04", True)


def test_day_first_date_when_month_first_is_invalid():
    assert extract_date("15/03/2024", today=TODAY) == ("2024-03-15", True)


def test_out_of_range_year_falls_back_to_today():
    assert extract_date("Date: 01/01/2035", today=TODAY) == ("2024-06-01", False)


def test_no_date_falls_back_to_today():
    assert extract_date("", today=TODAY) == ("2024-06-01", False)
    date, found = extract_date("nothing here")
    assert not found
    assert date == dt.date.today().isoformat()


def test_extract_date_trace():
    trace = ParseTrace()
    extract_date("Date: 01/01/2035\n02/03/2024", today=TODAY, trace=trace)
    assert trace.date_found
    assert trace.date_attempts[0]["accepted"] is False
    assert trace.date_attempts[-1]["date"] == "2024-02-03"


@pytest.mark.parametrize("raw,expected", [
    ("1,234", 1234.0),
    ("218,040.00", 218040.0),
    ("1 234.50", 1234.5),
    ("55.23", 55.23),
    ("abc", None),
    ("", None),
])
def test_normalize_amount(raw, expected):
    assert normalize_amount(raw) == expected


def test_round_money_rounds_half_up():
    assert round_money(2.675) == 2.68
    assert round_money(0.125) == 0.13


def test_balance_due_outranks_bare_large_number():
    text = "ACME Holdings\nInvoice No 2024001\nBalance Due: R 1,234.56"
    assert extract_amount(text) == 1234.56


def test_rand_thousands_separator():
    assert extract_amount("Total: R218,040.00") == 218040.00


def test_subtotal_is_not_a_labeled_total():
    assert extract_amount("Subtotal 10.00\nTax 1.50\nTotal 12.50") == 12.50


def test_currency_prefix_and_suffix():
    assert extract_amount("Fuel: $55.23") == 55.23
    assert extract_amount("Betrag 45.90 EUR") == 45.90


def test_highest_value_wins_within_priority():
    assert extract_amount("Coffee $5.00\nCake $12.00") == 12.00


def test_bare_numbers_scaled_by_magnitude():
    trace = ParseTrace()
    assert extract_amount("Ref 60000\nRef 250000", trace=trace) == 250000.00
    priorities = {c.value: c.priority for c in trace.amount_candidates}
    assert priorities == {60000.0: 4, 250000.0: 5}


def test_amounts_out_of_range_are_dropped():
    assert extract_amount("Account 123456789") == 0.0
    assert extract_amount("Total: $0.00") == 0.0


def test_no_amount_is_zero():
    assert extract_amount("") == 0.0
    assert extract_amount("Thank you for shopping") == 0.0


def test_equal_candidates_keep_scan_order():
    trace = ParseTrace()
    assert extract_amount("Total: $20.00\nAmount: $20.00", trace=trace) == 20.00
    assert trace.amount_selected.pattern == "labeled_total"
    assert trace.amount_selected.position == 0


def test_receipt_line_skipped_for_merchant():
    text = "Receipt #20394\nFresh Market\n123 Main St"
    assert extract_merchant(text) == "Fresh Market"


def test_merchant_skips_contact_lines():
    text = "www.bakery.com\ninfo@bakery.com\nPhone: 555 0100\nCorner Bakery"
    assert extract_merchant(text) == "Corner Bakery"


def test_merchant_with_business_suffix():
    assert extract_merchant("ACME TRADING (PTY) LTD 2019\nTotal R 50") == "ACME TRADING (PTY) LTD 2019"


def test_long_merchant_is_truncated():
    line = "Mega Store " + "a" * 60
    merchant = extract_merchant(line)
    assert merchant == line[:50]
    assert len(merchant) == 50


def test_merchant_fallback_without_business_shape():
    assert extract_merchant("kiosk #7\n$3.00") == "kiosk #7"


def test_merchant_fallback_beyond_first_lines():
    text = "1 Main Road\n2 Oak Ave\n3 Elm St\n4 Pine Rd\n5 Ash Ln\nkiosk #7"
    trace = ParseTrace()
    assert extract_merchant(text, trace=trace) == "kiosk #7"
    assert trace.merchant_source == "fallback"


def test_unknown_merchant():
    assert extract_merchant("") == "Unknown Merchant"
    assert extract_merchant("$5.00\n12/01/2024") == "Unknown Merchant"


@pytest.mark.parametrize("text,expected", [
    ("2029-12-31", ("2029-12-31", True)),
    ("2030-01-01", ("2024-06-01", False)),
    ("1900-12-31", ("2024-06-01", False)),
    ("1901-01-01", ("1901-01-01", True)),
])
def test_year_bounds_are_exclusive(text, expected):
    assert extract_date(text, today=TODAY) == expected


def test_magnitude_priority_boundaries():
    trace = ParseTrace()
    extract_amount("Ref 100000\nRef 100001\nRef 50000\nRef 50001\nRef 10000\nRef 10001", trace=trace)
    priorities = {c.value: c.priority for c in trace.amount_candidates}
    assert priorities == {100000.0: 4, 100001.0: 5, 50000.0: 3, 50001.0: 4,
                          10000.0: 1, 10001.0: 3}


@pytest.mark.parametrize("text,expected", [
    ("Paid £12.50", 12.50),
    ("Paid €9.99", 9.99),
    ("Paid ¥1,200", 1200.00),
    ("Paid ₹450.00", 450.00),
])
def test_currency_symbol_prefixes(text, expected):
    trace = ParseTrace()
    assert extract_amount(text, trace=trace) == expected
    assert trace.amount_selected.pattern == "currency_prefix"
