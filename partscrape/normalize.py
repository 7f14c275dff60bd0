"""Text normalization for names, prices, ratings and dimensions.

Every function here is pure and never raises on unmatched input: a value
that cannot be parsed comes back as ``None``.
"""

import re
from typing import Optional, Tuple

__all__ = [
    "collapse_whitespace",
    "normalize_category_name",
    "normalize_product_name",
    "normalize_price",
    "parse_user_rating",
    "parse_pack_count",
    "normalize_dimension",
    "strip_to_number",
    "to_snake_case",
]

# "Widget (55)" -> listing pages append a review count to the name
TRAILING_COUNT_RE = re.compile(r"\s*\(\d+\)\s*$")
WHITESPACE_RE = re.compile(r"\s+")
PRICE_STRIP_RE = re.compile(r"[^\d.]")
# "(168 Ratings, 4.5 Average)" / "(1 Rating, 3.0 Average)"
RATING_RE = re.compile(r"(\d+)\s+Ratings?.*?(\d+(?:\.\d+)?)\s+Average", re.IGNORECASE)
PACK_RE = re.compile(r"(\d+)[-\s]?Pack", re.IGNORECASE)
DIMENSION_RE = re.compile(r'^\+?\s*(.*?\d)\s*(?:mm|cm|in|")?$', re.IGNORECASE)
UNIT_ONLY_RE = re.compile(r'^\+?\s*(?:mm|cm|in|")?$', re.IGNORECASE)
NUMBER_STRIP_RE = re.compile(r"[^\d.\-]")


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


def normalize_category_name(text: Optional[str]) -> Optional[str]:
    """Turn anchor text like "CPU Coolers" into "cpu_coolers"."""
    if not text:
        return None
    cleaned = WHITESPACE_RE.sub("_", text.strip()).lower()
    return cleaned or None


def normalize_product_name(name: Optional[str]) -> Optional[str]:
    """Drop a trailing "(N)" count and collapse internal whitespace."""
    if not name:
        return None
    cleaned = TRAILING_COUNT_RE.sub("", name)
    cleaned = collapse_whitespace(cleaned)
    return cleaned or None


def normalize_price(price: Optional[str]) -> Optional[str]:
    """Keep only digits and the decimal point: "$1,299.00" -> "1299.00"."""
    if not price:
        return None
    return PRICE_STRIP_RE.sub("", price) or None


def parse_user_rating(text: Optional[str]) -> Tuple[Optional[int], Optional[float]]:
    """Parse "(N Ratings, F Average)" into (N, F), or (None, None)."""
    if not text:
        return None, None
    match = RATING_RE.search(text)
    if not match:
        return None, None
    return int(match.group(1)), float(match.group(2))


def parse_pack_count(name: Optional[str]) -> Optional[int]:
    """Find the integer in a "3-Pack" / "3 Pack" token."""
    if not name:
        return None
    match = PACK_RE.search(name)
    return int(match.group(1)) if match else None


def normalize_dimension(value: Optional[str]) -> Optional[str]:
    """Strip a unit suffix and a leading "+" sign: "+ 158 mm" -> "158".

    A unit is only stripped after a number, so text tokens like "Twin" or
    "Built-in" survive. Idempotent: a value that carries no unit or sign is
    returned unchanged.
    """
    if value is None:
        return None
    text = value.strip()
    if UNIT_ONLY_RE.match(text):
        return None
    match = DIMENSION_RE.match(text)
    return match.group(1).strip() if match else text


def strip_to_number(text: Optional[str]):
    """Strip non-numeric characters and convert to int or float.

    Returns None when nothing numeric remains.
    """
    if text is None:
        return None
    cleaned = NUMBER_STRIP_RE.sub("", text.replace(",", ""))
    # A lone "-" or "." left over from text like "N/A" or "-"
    cleaned = cleaned.strip(".")
    if not cleaned or cleaned == "-" or not any(c.isdigit() for c in cleaned):
        return None
    # Hyphens inside the token are range separators, keep the first number
    if cleaned.count("-") > (1 if cleaned.startswith("-") else 0):
        head = cleaned[1:] if cleaned.startswith("-") else cleaned
        first = head.split("-")[0]
        cleaned = ("-" + first) if cleaned.startswith("-") else first
    if cleaned.count(".") > 1:
        return None
    try:
        if "." in cleaned:
            return float(cleaned)
        return int(cleaned)
    except ValueError:
        return None


def to_snake_case(label: str) -> str:
    """Convert a spec label to a canonical field name."""
    cleaned = re.sub(r"[^\w\s]", "", label.lower())
    cleaned = re.sub(r"\s+", "_", cleaned.strip())
    return re.sub(r"_+", "_", cleaned)
