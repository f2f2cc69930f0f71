"""Persian/Latin digit normalization and amount parsing."""

import math

PERSIAN_DIGITS = "۰۱۲۳۴۵۶۷۸۹"
ARABIC_INDIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"
LATIN_DIGITS = "0123456789"

# Comma and the Persian thousands separator (U+066C).
GROUP_SEPARATORS = ",٬"

_DIGIT_TABLE = str.maketrans(
    PERSIAN_DIGITS + ARABIC_INDIC_DIGITS, LATIN_DIGITS + LATIN_DIGITS
)
_SEPARATOR_TABLE = str.maketrans("", "", GROUP_SEPARATORS)


def normalize_digits(text: str) -> str:
    """Replace Persian and Arabic-Indic digits with Latin digits.

    Args:
        text: Any string.

    Returns:
        The same string with only digit characters translated.
    """
    return text.translate(_DIGIT_TABLE)


def parse_amount(text: str) -> float:
    """Parse a possibly grouped, possibly Persian numeric string.

    Args:
        text: Amount text such as ``"1,234,567"`` or ``"۱۲۳۴۵۶۷"``.

    Returns:
        The numeric value, or ``0`` when the text is not a finite number.
    """
    cleaned = normalize_digits(text.translate(_SEPARATOR_TABLE)).strip()
    try:
        value = float(cleaned)
    except ValueError:
        return 0
    if not math.isfinite(value):
        return 0
    return value
