"""
Best-effort parsing helpers for untyped catalog cells.

Every helper here is total: malformed input resolves to a default, never an
exception, so one dirty cell can't abort a row.
"""
import math
import re
import unicodedata
from typing import Any, List, Optional

_LEADING_NUMBER = re.compile(r'^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))')
_PAREN_URL = re.compile(r'\((https://[^)\s]+)\)')


def clean_text(value: Any) -> str:
    """Coerce a cell to a stripped string; None becomes empty"""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def optional_text(value: Any) -> Optional[str]:
    """Like clean_text but keeps absence as None"""
    text = clean_text(value)
    return text or None


def parse_float(value: Any, default: float = 0.0) -> float:
    """
    Parse the leading number of a cell ("250g" -> 250.0).
    Missing, non-numeric and non-finite values give the default.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_NUMBER.match(clean_text(value))
        if not match:
            return default
        number = float(match.group(1))

    if math.isnan(number) or math.isinf(number):
        return default
    return number


def parse_int(value: Any, default: int = 0) -> int:
    """Parse the leading integer of a cell, truncating any fraction"""
    number = parse_float(value, default=math.nan)
    if math.isnan(number):
        return default
    return int(number)


def strip_currency_symbol(text: str) -> str:
    """Remove a single leading currency symbol ("$1,200" -> "1,200")"""
    text = text.strip()
    if text and unicodedata.category(text[0]) == "Sc":
        return text[1:].lstrip()
    return text


def parse_price(value: Any, default: int = 0) -> int:
    """
    Parse a currency-formatted price into whole units.
    "$1,200" -> 1200, "980" -> 980, "N/A" -> default
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return parse_int(value, default)

    text = strip_currency_symbol(clean_text(value)).replace(",", "")
    return parse_int(text, default)


def is_affirmative(value: Any, token: str) -> bool:
    """True only when the cell is exactly the affirmative token"""
    if value is True:
        return True
    return clean_text(value) == token


def extract_parenthesized_urls(markup: Any) -> List[str]:
    """
    Pull image links out of free-text markup such as
    "front.jpg (https://cdn.example/a) back.jpg (https://cdn.example/b)"
    """
    text = clean_text(markup)
    if not text:
        return []
    return _PAREN_URL.findall(text)


def normalize_identifier(value: str) -> str:
    """
    Lower-case an identifier and collapse anything non-alphanumeric to '-'
    ("Happy Paws Co." -> "happy-paws-co")
    """
    normalized = unicodedata.normalize('NFKC', clean_text(value)).lower()
    normalized = re.sub(r'[^\w]+|_+', '-', normalized)
    return normalized.strip('-') or "unknown"


def truncate(text: str, limit: int) -> str:
    """Cut text to at most `limit` characters"""
    return text[:limit] if text else ""
