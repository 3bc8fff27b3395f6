"""Coercion helpers for loosely typed record values."""

import math
import re
from typing import Any

TRUE_STRINGS = {"true", "1", "yes", "y", "on", "si"}


def clean_text(text: Any) -> str | None:
    """Clean and normalize text."""
    if text is None or isinstance(text, (dict, list, tuple, set)):
        return None

    # Remove extra whitespace
    text = " ".join(str(text).split())
    return text.strip() or None


def coerce_bool(value: Any) -> bool:
    """
    Interpret a legacy flag value.

    Accepts real booleans, numbers (non-zero is true) and the usual textual
    spellings ("true", "1", "yes", ...). Anything unrecognised is false.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return False


def parse_number(value: Any) -> float | None:
    """
    Parse a numeric value that may arrive as text.

    Returns:
        The number, or None when nothing numeric can be read
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
        if math.isnan(number) or math.isinf(number):
            return None
        return number

    if not isinstance(value, str):
        return None

    # Drop thousand separators and currency noise
    text = value.strip().replace(",", "")
    match = re.search(r"-?\d+(?:\.\d+)?", text)
    if match:
        try:
            return float(match.group())
        except ValueError:
            pass

    return None


def parse_int(value: Any) -> int | None:
    """Parse an integer id or count, tolerating numeric strings."""
    number = parse_number(value)
    if number is None:
        return None
    return int(number)


def capitalize_first(text: str | None) -> str | None:
    """Upper-case the first character and keep the rest untouched."""
    if not text:
        return None
    return text[0].upper() + text[1:]


def format_grouped(number: float) -> str:
    """Format a number with thousand separators ("1,500" / "1,500.25")."""
    if float(number).is_integer():
        return f"{int(number):,}"
    formatted = f"{number:,.3f}".rstrip("0").rstrip(".")
    return formatted


def format_plain(number: float | None) -> str | None:
    """Render a measurement without a trailing ".0"."""
    if number is None:
        return None
    if float(number).is_integer():
        return str(int(number))
    return f"{number:g}"
