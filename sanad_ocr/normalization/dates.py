"""Date token normalization to ``YYYY-MM-DD``.

Years in the Persian-calendar range are shifted by a fixed offset. This is
an approximation, not a Jalali-to-Gregorian conversion: month and day are
kept as printed, so the resulting calendar date is wrong. Reviewers correct
the date before a document is confirmed.
"""

import re

from .digits import normalize_digits

DATE_PATTERN = r"\d{4}[/\-]\d{1,2}[/\-]\d{1,2}"

PERSIAN_YEAR_RANGE = (1300, 1500)
PERSIAN_YEAR_OFFSET = 621

_DATE_PARTS = re.compile(r"(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})")


def is_persian_year(year: int) -> bool:
    """Return whether a year looks like a Persian-calendar year."""
    low, high = PERSIAN_YEAR_RANGE
    return low <= year <= high


def normalize_date(token: str) -> str:
    """Normalize a ``YYYY/MM/DD``-shaped token to ``YYYY-MM-DD``.

    Args:
        token: Date text, Persian or Latin digits, ``/`` or ``-`` separated.

    Returns:
        Zero-padded ``YYYY-MM-DD`` string. Persian-range years have
        ``PERSIAN_YEAR_OFFSET`` subtracted. Tokens without a date shape
        are returned with ``/`` replaced by ``-``.
    """
    latin = normalize_digits(token)
    match = _DATE_PARTS.search(latin)
    if not match:
        return latin.replace("/", "-")

    year = int(match.group(1))
    month = match.group(2).zfill(2)
    day = match.group(3).zfill(2)

    if is_persian_year(year):
        year -= PERSIAN_YEAR_OFFSET

    return f"{year:04d}-{month}-{day}"
