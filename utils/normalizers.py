"""
Field normalizers for manifest rows.

Every function here is total: any string (including "" and None) gives a
result, never an exception. Used to turn RawRow cells into ManifestItem
fields.
"""

import math
import re
from typing import Optional

from models.manifest import Condition


# ===================
# DESCRIPTION CLEANING
# ===================

# Matched against the upper-cased text; longest first
MARKETING_PREFIXES = (
    "FACTORY SEALED ",
    "BRAND NEW ",
    "BNIB ",
    "NIB ",
    "NEW ",
)
MARKETING_SUFFIXES = (
    " - BRAND NEW",
    " - NEW",
    " (NEW)",
    " [NEW]",
)

ALLOWED_PUNCTUATION = set("-.$[]()/&")

_WHITESPACE = re.compile(r"\s+")


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _strip_marketing(text: str) -> str:
    changed = True
    while changed:
        changed = False
        upper = text.upper()
        for prefix in MARKETING_PREFIXES:
            if upper.startswith(prefix):
                text = text[len(prefix):].strip()
                changed = True
                break
        upper = text.upper()
        for suffix in MARKETING_SUFFIXES:
            if upper.endswith(suffix):
                text = text[:-len(suffix)].strip()
                changed = True
                break
    return text


def _clean_once(text: str) -> str:
    text = _strip_marketing(_collapse(text))
    text = "".join(
        c if c.isalnum() or c.isspace() or c in ALLOWED_PUNCTUATION else " "
        for c in text
    )
    return _collapse(text)


def clean_description(description: Optional[str]) -> str:
    """
    Clean a free-text item description.

    - "  BRAND NEW  Apple   iPhone 14 " → "Apple iPhone 14"
    - "Samsung 65\" QLED - NEW" → "Samsung 65 QLED"
    - "Dyson V8 (NEW)" → "Dyson V8"

    Repeats until nothing changes, so cleaning a cleaned value is a no-op.

    Args:
        description: Raw description cell

    Returns:
        Cleaned description, "" if nothing is left
    """
    text = description or ""
    while True:
        cleaned = _clean_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned


# ===================
# BRAND EXTRACTION
# ===================

# Priority order matters: first group with a hit wins
BRAND_GROUPS = (
    ("electronics", (
        "Apple", "Samsung", "Sony", "LG", "Canon", "Nikon", "Bose", "Beats",
        "Dell", "HP", "Lenovo", "Microsoft", "Google", "Insignia", "Vizio",
        "TCL", "Asus", "Acer", "JBL", "Nintendo",
    )),
    ("plumbing_home", (
        "Kohler", "Moen", "Delta", "Grohe", "American Standard", "Pfister",
        "Hampton Bay", "Home Decorators Collection", "Glacier Bay",
    )),
    ("tools", (
        "DeWalt", "Milwaukee", "Bosch", "Makita", "Ryobi", "Craftsman",
        "Black+Decker", "Black & Decker", "Husky", "Ridgid",
    )),
    ("appliances", (
        "Dyson", "KitchenAid", "Whirlpool", "Frigidaire", "GE", "Cuisinart",
        "Hamilton Beach", "Ninja", "Shark", "iRobot", "Keurig", "Instant Pot",
    )),
    ("fashion", (
        "Nike", "Adidas", "Under Armour", "Levi's", "Ralph Lauren", "Calvin Klein",
        "Michael Kors", "Coach", "Puma", "North Face",
    )),
)


def _compile_group(brands: tuple[str, ...]) -> re.Pattern:
    alternatives = "|".join(re.escape(b) for b in sorted(brands, key=len, reverse=True))
    return re.compile(rf"(?<![\w+])({alternatives})(?![\w+])", re.IGNORECASE)


BRAND_PATTERNS = tuple(
    (group, _compile_group(brands), {b.lower(): b for b in brands})
    for group, brands in BRAND_GROUPS
)

UNKNOWN_BRAND = "Unknown"


def extract_brand(description: Optional[str]) -> str:
    """
    Guess the brand from a description.

    Known brands are searched group by group. Without a hit, the first
    capitalized word longer than two characters that does not start with a
    digit is used.

    Args:
        description: Item description (cleaned or raw)

    Returns:
        Canonical brand name, a capitalized word, or "Unknown"
    """
    text = description or ""

    for _group, pattern, canonical in BRAND_PATTERNS:
        match = pattern.search(text)
        if match:
            return canonical[match.group(1).lower()]

    for word in text.split():
        word = word.strip(".,;:()[]\"'")
        if len(word) > 2 and not word[0].isdigit() and word[0].isupper():
            return word

    return UNKNOWN_BRAND


# ===================
# CONDITION
# ===================

# Order is significant: "like new" must win over "new"
CONDITION_RULES = (
    (("like new", "excellent"), Condition.LIKE_NEW),
    (("new", "sealed"), Condition.NEW),
    (("very good", "good"), Condition.GOOD),
    (("fair", "acceptable"), Condition.FAIR),
    (("poor", "damaged"), Condition.POOR),
    (("return", "ret"), Condition.CUSTOMER_RETURN),
    (("refurb", "renewed"), Condition.REFURBISHED),
)


def normalize_condition(condition: Optional[str]) -> Condition:
    """
    Map free-text condition onto the fixed vocabulary.

    - "Brand New / Sealed" → New
    - "LIKE NEW" → Like New
    - "Customer Returns" → Customer Return
    - "" → Unknown
    """
    text = (condition or "").lower()
    for needles, normalized in CONDITION_RULES:
        if any(needle in text for needle in needles):
            return normalized
    return Condition.UNKNOWN


# Whole-word phrases looked for in a description when the manifest has no
# condition column. First phrase in this order wins; the phrase itself is
# then mapped through normalize_condition.
DESCRIPTION_CONDITION_TERMS = (
    "like new",
    "refurbished",
    "customer return",
    "customer returns",
    "new",
    "sealed",
    "damaged",
    "excellent",
    "very good",
    "good",
    "fair",
    "poor",
)

_DESCRIPTION_CONDITION_PATTERNS = tuple(
    (re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE), term)
    for term in DESCRIPTION_CONDITION_TERMS
)


def extract_condition(description: Optional[str]) -> Condition:
    """
    Infer a condition from words in the description.

    - "NEW Apple iPhone 14" → New
    - "Refurbished Dyson V8" → Refurbished
    - "Used drill, good shape" → Good
    - "Goodyear tire" → Unknown
    """
    text = description or ""
    for pattern, term in _DESCRIPTION_CONDITION_PATTERNS:
        if pattern.search(text):
            return normalize_condition(term)
    return Condition.UNKNOWN


# ===================
# NUMBERS
# ===================

_CURRENCY_NOISE = re.compile(r"[$£€¥₹,\s]")
_LEADING_INT = re.compile(r"^[+-]?\d+")


def parse_price(value: Optional[str]) -> float:
    """
    Parse a currency cell into a non-negative amount.

    - "$1,299.99" → 1299.99
    - "£45" → 45.0
    - "N/A" → 0.0
    """
    cleaned = _CURRENCY_NOISE.sub("", value or "")
    try:
        amount = float(cleaned)
    except ValueError:
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def parse_quantity(value: Optional[str]) -> int:
    """Leading integer of a quantity cell; missing, invalid or < 1 gives 1."""
    match = _LEADING_INT.match((value or "").replace(",", "").strip())
    if not match:
        return 1
    quantity = int(match.group(0))
    return quantity if quantity >= 1 else 1


_QUANTITY_IN_TEXT = re.compile(r"\b(?:qty|quantity|count|pcs?|pieces?)\s*:?\s*(\d+)", re.IGNORECASE)


def extract_quantity(description: Optional[str]) -> Optional[int]:
    """
    Quantity written into a description.

    - "Drill bits Qty: 4" → 4
    - "Socket set PCS 12" → 12
    - "12 pcs socket set" → None (number must follow the label)

    Returns None when there is no usable quantity, so callers can default.
    """
    match = _QUANTITY_IN_TEXT.search(description or "")
    if not match:
        return None
    quantity = int(match.group(1))
    return quantity if quantity >= 1 else None
