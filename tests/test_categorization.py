import pytest

from receipt_parser.core.categorization import classify, itemize, describe
from receipt_parser.core.models import ParseTrace


def test_dining_checked_before_healthcare():
    text = "Corner Restaurant\nPharmacy vouchers accepted\nTotal $20.00"
    assert classify(text, "Corner Restaurant") == "Dining"


def test_groceries_checked_before_transportation():
    text = "Checkers\nFuel rewards points earned"
    assert classify(text, "Checkers") == "Groceries"


@pytest.mark.parametrize("merchant,expected", [
    ("Checkers Hyper", "Groceries"),
    ("Engen Garage", "Transportation"),
    ("Starbucks", "Dining"),
    ("Dis-Chem", "Healthcare"),
    ("Zara", "Clothing"),
    ("Acme", "General"),
])
def test_classify_by_merchant(merchant, expected):
    assert classify("misc items", merchant) == expected


def test_classify_by_text_only():
    trace = ParseTrace()
    assert classify("shell\nfuel 40l", "Unknown Merchant", trace=trace) == "Transportation"
    assert trace.category_rule == "Transportation:shell"


def test_itemize_keeps_first_appearance_order():
    text = "Red bricks x 200\nCement 50kg\nBrick ties"
    assert itemize(text) == [("building", "Building materials", ["brick", "cement"])]


def test_itemized_description_lists_first_four():
    text = "Cement 50kg x 10\nBuilding sand\nRed bricks\nPaint white 5L\nTile adhesive"
    desc = describe(text, "Build It", 1500.0, "2024-03-01", True)
    assert desc == "Building materials (cement, sand, brick, paint and more)"


def test_itemized_description_exactly_four():
    text = "Cement\nSand\nGravel\nTimber"
    desc = describe(text, "Build It", 0.0, "2024-03-01", False)
    assert desc == "Building materials (cement, sand, gravel, timber)"


def test_itemized_description_multiple_domains():
    text = "Bread\nMilk\nPrinter paper"
    desc = describe(text, "Corner Shop", 10.0, "2024-03-01", False)
    assert desc == "Food items (bread, milk); Office supplies (printer, paper)"


def test_domain_with_more_hits_comes_first():
    text = "Printer paper\nToner\nBread"
    desc = describe(text, "Corner Shop", 10.0, "2024-03-01", False)
    assert desc == "Office supplies (printer, paper, toner); Food items (bread)"


def test_vehicle_auction_description():
    text = ("Bidvest Auctions\nLot No: 4512\n2015 Toyota Corolla 1.6\n"
            "Date: 2024-03-15\nBalance Due: R 85,000.00")
    trace = ParseTrace()
    desc = describe(text, "Bidvest Auctions", 85000.0, "2024-03-15", True, trace=trace)
    assert desc == "Auction purchase - Lot 4512 - 2015 Toyota Corolla 1.6 - R85,000.00 on 2024-03-15"
    assert trace.description_source == "vehicle"


def test_vehicle_description_without_date():
    desc = describe("Vehicle release note", "Motor City", 0.0, "2024-06-01", False)
    assert desc == "Vehicle purchase"


def test_invoice_description():
    text = "Smith Builders\nPro-Forma Invoice\nDate: 2024-02-01\nTotal: $300.00"
    desc = describe(text, "Smith Builders", 300.0, "2024-02-01", True)
    assert desc == "Invoice payment - $300.00 on 2024-02-01"


def test_generic_description():
    assert describe("Corner Kiosk", "Corner Kiosk", 0.0, "2024-01-01", False) == "Purchase from Corner Kiosk"
    assert describe("Shell\nFuel: $55.23", "Shell", 55.23, "2024-03-15", True) == "Purchase from Shell - $55.23"


@pytest.mark.parametrize("text,merchant", [
    ("Corner Bakery\nMobile: 082 555 0100\nWhite loaf\nTotal: R 25.00", "Corner Bakery"),
    ("Acme Hardware\nToll Free 0800 123 456\nHammer\nTotal: $25.00", "Acme Hardware"),
    ("Huber Bakery\nRye loaf\nTotal: $4.00", "Huber Bakery"),
    ("Rinaldi Tailors\nHem alteration\nTotal: $12.00", "Rinaldi Tailors"),
])
def test_contact_lines_and_lookalike_names_stay_general(text, merchant):
    assert classify(text, merchant) == "General"


def test_toll_and_uber_phrases_are_transportation():
    assert classify("N1 Toll Plaza\nClass 1", "N1 Toll Plaza") == "Transportation"
    assert classify("Thanks for your Uber trip\nTotal R 85.00", "Unknown Merchant") == "Transportation"


def test_overlapping_item_keywords_listed_once():
    assert describe("Brake pads x2", "Auto Spares", 0.0, "2024-03-01", False) == "Automotive (brake pad)"
    assert itemize("Brake pads x2\nBrake fluid") == [("automotive", "Automotive", ["brake pad", "brake"])]
