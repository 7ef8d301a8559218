"""
Categorization and description logic for receipts based on keyword tables.
"""

import re
from typing import Dict, List, Optional, Tuple

from .models import Category, ParseTrace
from .utils import detect_currency, money_fmt

# Business classification, checked in this order; first hit wins.
# Every keyword is tested as a lowercase substring of both merchant and text.
CATEGORY_KEYWORDS = [
    (Category.GROCERIES, {
        "merchants": ["walmart", "kroger", "safeway", "whole foods", "trader joe", "aldi stores",
                      "aldi süd", "aldi nord", "lidl", "costco", "publix", "fresh market",
                      "pick n pay", "checkers", "shoprite", "woolworths", "tesco", "sainsbury"],
        "keywords": ["grocery", "groceries", "supermarket", "hypermarket", "fresh produce"],
    }),
    (Category.TRANSPORTATION, {
        "merchants": ["shell", "chevron", "exxon", "mobil oil", "texaco", "engen", "sasol",
                      "caltex", "uber trip", "uber ride", "uber technologies", "lyft",
                      "greyhound"],
        "keywords": ["fuel", "petrol", "diesel", "gasoline", "gas station", "parking",
                     "taxi", "toll fee", "toll road", "toll plaza", "toll gate", "transit",
                     "airline", "train ticket"],
    }),
    (Category.DINING, {
        "merchants": ["starbucks", "mcdonald", "kfc", "burger king", "nando", "wimpy",
                      "subway", "domino", "pizza hut"],
        "keywords": ["restaurant", "cafe", "café", "coffee", "bistro", "diner", "grill",
                     "steakhouse", "takeaway", "eatery", "pizza", "burger"],
    }),
    (Category.HEALTHCARE, {
        "merchants": ["cvs", "walgreens", "clicks", "dis-chem", "dischem", "boots pharmacy"],
        "keywords": ["pharmacy", "clinic", "hospital", "medical", "doctor", "dental",
                     "dentist", "prescription", "optometrist"],
    }),
    (Category.CLOTHING, {
        "merchants": ["h&m", "zara", "uniqlo", "nike", "adidas", "mr price", "edgars",
                      "truworths", "old navy"],
        "keywords": ["clothing", "apparel", "fashion", "boutique", "footwear", "shoes",
                     "jeans"],
    }),
]

# Itemization domains, used only to enrich the description.
ITEM_KEYWORDS = [
    ("building", "Building materials", [
        "cement", "sand", "brick", "concrete", "timber", "plywood", "gravel", "aggregate",
        "rebar", "steel", "paint", "primer", "tile", "grout", "plaster", "drywall",
        "gypsum", "roofing", "lumber", "nail", "screw", "pvc pipe", "insulation",
        "mortar", "sealant", "door frame", "window frame", "wheelbarrow", "shovel",
        "ladder",
    ]),
    ("medical", "Medical supplies", [
        "bandage", "gauze", "syringe", "thermometer", "antiseptic", "paracetamol",
        "ibuprofen", "aspirin", "antibiotic", "vitamin", "tablet", "capsule", "ointment",
        "insulin", "inhaler", "face mask", "sanitizer", "consultation", "x-ray",
        "stethoscope", "wheelchair", "crutch", "catheter", "cough syrup",
    ]),
    ("automotive", "Automotive", [
        "tyre", "tire", "brake pad", "brake", "oil filter", "air filter", "engine oil",
        "spark plug", "battery", "wiper", "radiator", "coolant", "clutch", "gearbox",
        "exhaust", "headlight", "alternator", "shock absorber", "wheel alignment",
        "wheel balancing", "transmission fluid", "car wash", "service kit", "fan belt",
    ]),
    ("food", "Food items", [
        "bread", "milk", "egg", "cheese", "butter", "chicken", "beef", "pork", "rice",
        "pasta", "flour", "sugar", "coffee", "tea", "juice", "apple", "banana", "tomato",
        "potato", "onion", "cereal", "yogurt", "yoghurt", "sandwich", "burger", "pizza",
        "fries", "salad", "soup", "snack",
    ]),
    ("office", "Office supplies", [
        "paper", "printer", "toner", "ink", "cartridge", "stapler", "staple", "pen",
        "pencil", "envelope", "folder", "binder", "notebook", "marker", "highlighter",
        "calculator", "sticky notes", "tape", "scissors", "whiteboard", "clipboard",
        "desk", "office chair",
    ]),
]

MAX_LISTED_ITEMS = 4

VEHICLE_KEYWORDS = ["vehicle", "auction", "chassis", "vin", "odometer", "mileage",
                    "engine no", "registration no"]
INVOICE_KEYWORDS = ["invoice", "pro-forma", "proforma", "pro forma"]

_ITEM_RES = [
    (domain, label, [(kw, re.compile(rf"\b{re.escape(kw)}(?:s|es)?\b")) for kw in keywords])
    for domain, label, keywords in ITEM_KEYWORDS
]
_LOT_RE = re.compile(r"\blot\s*(?:no\.?|number|#)?\s*[:\-]?\s*#?\s*(\d[\w\-]*)", re.IGNORECASE)
_VEHICLE_RE = re.compile(r"\b((?:19|20)\d{2})[ \t]+([A-Z][A-Za-z\-]+(?:[ \t]+[A-Z0-9][A-Za-z0-9.\-]*){0,2})")


def _has_word(words: List[str], text: str) -> bool:
    return any(re.search(rf"\b{re.escape(w)}(?:s|es)?\b", text) for w in words)


def classify(text: str, merchant: str, trace: Optional[ParseTrace] = None) -> str:
    """
    Classify a receipt into one of the fixed categories.

    Groups are checked in order (Groceries, Transportation, Dining,
    Healthcare, Clothing); the first with a keyword in the merchant name or
    the text wins. Defaults to General.
    """
    m = (merchant or "").lower()
    t = (text or "").lower()

    for category, group in CATEGORY_KEYWORDS:
        for kw in group["merchants"] + group["keywords"]:
            if kw in m or kw in t:
                if trace is not None:
                    trace.category_rule = f"{category.value}:{kw}"
                return category.value

    return Category.GENERAL.value


def itemize(text: str) -> List[Tuple[str, str, List[str]]]:
    """
    Find item keywords line by line.

    Returns:
        List of (domain, label, keywords) for every domain with a hit, keywords
        distinct and in order of first appearance.
    """
    hits: Dict[str, List[str]] = {domain: [] for domain, _, _ in ITEM_KEYWORDS}
    for line in (text or "").lower().splitlines():
        # leftmost first, longest first at the same position
        found = sorted(
            (m.start(), m.start() - m.end(), m.end(), domain, kw)
            for domain, _, patterns in _ITEM_RES
            for kw, rx in patterns
            for m in rx.finditer(line)
        )
        covered_to = -1
        for start, _, end, domain, kw in found:
            if start < covered_to:
                # part of a longer keyword, e.g. "brake" in "brake pads"
                continue
            covered_to = end
            if kw not in hits[domain]:
                hits[domain].append(kw)

    return [(domain, label, hits[domain]) for domain, label, _ in ITEM_KEYWORDS if hits[domain]]


def _itemized_description(items: List[Tuple[str, str, List[str]]]) -> str:
    # most hits first; the stable sort keeps taxonomy order among equals
    ordered = sorted(items, key=lambda item: -len(item[2]))
    parts = []
    for _, label, keywords in ordered:
        listed = ", ".join(keywords[:MAX_LISTED_ITEMS])
        if len(keywords) > MAX_LISTED_ITEMS:
            listed += " and more"
        parts.append(f"{label} ({listed})")
    return "; ".join(parts)


def _contextual_description(text: str, merchant: str) -> Tuple[str, str]:
    """Return (description, source) when no item keywords were found."""
    t = (text or "").lower()

    if _has_word(VEHICLE_KEYWORDS, t):
        desc = "Auction purchase" if "auction" in t else "Vehicle purchase"
        lot = _LOT_RE.search(text)
        if lot:
            desc += f" - Lot {lot.group(1)}"
        vehicle = _VEHICLE_RE.search(text)
        if vehicle:
            desc += f" - {vehicle.group(1)} {vehicle.group(2)}"
        return desc, "vehicle"

    if any(kw in t for kw in INVOICE_KEYWORDS):
        return "Invoice payment", "invoice"

    return f"Purchase from {merchant}", "merchant"


def describe(text: str, merchant: str, amount: float, date: str, date_found: bool,
             trace: Optional[ParseTrace] = None) -> str:
    """
    Build a human-readable description.

    Item keywords give "Label (kw1, kw2, ...)". Otherwise a phrase from the
    receipt context is used, followed by the amount and, for vehicle and
    invoice phrases, the receipt date.
    """
    items = itemize(text)
    if trace is not None:
        trace.item_hits = [{"domain": d, "keywords": kws} for d, _, kws in items]

    if items:
        if trace is not None:
            trace.description_source = "items"
        return _itemized_description(items)

    desc, source = _contextual_description(text, merchant)
    if trace is not None:
        trace.description_source = source
    if amount and amount > 0:
        desc += f" - {money_fmt(amount, detect_currency(text))}"
    if date_found and source != "merchant":
        desc += f" on {date}"
    return desc
