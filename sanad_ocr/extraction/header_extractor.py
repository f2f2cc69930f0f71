"""Header field extraction using ordered regex cascades.

Each field has an ordered list of matchers. A matcher is a plain callable
that takes text and returns the matched value or ``None``; the first
accepted match wins. The first lines of the document are searched before
the full text.
"""

import re
from collections.abc import Callable, Sequence

from sanad_ocr.normalization.dates import DATE_PATTERN, normalize_date
from sanad_ocr.normalization.digits import parse_amount
from sanad_ocr.normalization.text import split_lines
from sanad_ocr.utils.config import ExtractionConfig
from sanad_ocr.utils.logger import get_logger

from .models import HeaderFields

logger = get_logger(__name__)

Matcher = Callable[[str], str | None]

PLAUSIBLE_YEAR_RANGES: tuple[tuple[int, int], ...] = ((1300, 1500), (1900, 2100))

TABLE_HEADER_WORDS: tuple[str, ...] = (
    "ردیف",
    "کد حساب",
    "مبلغ",
    "جزء",
    "بدهکار",
    "بستانکار",
    "جمع",
)

_COLON = r"\s*[:：]"
_DESCRIPTION_END = r"(?=\s+(?:ردیف|کد|مبلغ|بدهکار|بستانکار|جمع|شماره)|$)"
_AMOUNT = r"(\d[\d,٬]*)"


def regex_matcher(
    pattern: str,
    accept: Callable[[str], bool] | None = None,
    flags: int = 0,
) -> Matcher:
    """Build a matcher returning group 1 of the first accepted match.

    Args:
        pattern: Regular expression with one capture group.
        accept: Optional predicate; rejected candidates are skipped.
        flags: Extra ``re`` flags. ``re.MULTILINE`` is always set.

    Returns:
        Matcher callable.
    """
    compiled = re.compile(pattern, flags | re.MULTILINE)

    def match(text: str) -> str | None:
        for found in compiled.finditer(text):
            value = " ".join(found.group(1).split())
            if accept is None or accept(value):
                return value
        return None

    return match


def is_plausible_date(value: str) -> bool:
    """Accept dates whose year is in a Persian or Gregorian range."""
    year = int(value[:4])
    return any(low <= year <= high for low, high in PLAUSIBLE_YEAR_RANGES)


def doc_number_matchers() -> list[Matcher]:
    return [
        regex_matcher(rf"شماره\s*سند(?:\s*حسابداری)?(?:{_COLON})?\s*(\d+)"),
        regex_matcher(rf"سند\s*شماره(?:{_COLON})?\s*(\d+)"),
        regex_matcher(rf"شماره{_COLON}\s*(\d+)"),
        regex_matcher(r"(?:\bNo\.?|#)\s*[:：]?\s*(\d+)", flags=re.IGNORECASE),
    ]


def doc_date_matchers() -> list[Matcher]:
    return [
        regex_matcher(
            rf"تاریخ\s*سند(?:{_COLON})?\s*({DATE_PATTERN})", accept=is_plausible_date
        ),
        regex_matcher(rf"تاریخ(?:{_COLON})?\s*({DATE_PATTERN})", accept=is_plausible_date),
        regex_matcher(rf"({DATE_PATTERN})", accept=is_plausible_date),
    ]


def description_matchers(min_length: int = 5) -> list[Matcher]:
    # A column-header line such as "ردیف کد حساب شرح مبلغ جزء ..." is not a
    # description, so candidates holding table header words are rejected.
    def acceptable(value: str) -> bool:
        if len(value) <= min_length:
            return False
        return not any(word in value for word in TABLE_HEADER_WORDS)

    return [
        regex_matcher(rf"شرح{_COLON}\s*(.+?){_DESCRIPTION_END}", accept=acceptable),
        regex_matcher(
            rf"شرح\s*(?:سند(?:{_COLON})?|[:：])\s*(.+?){_DESCRIPTION_END}",
            accept=acceptable,
        ),
    ]


def printed_total_matchers(side: str) -> list[Matcher]:
    """Matchers for the document's own summary totals.

    Args:
        side: ``"بدهکار"`` (debit) or ``"بستانکار"`` (credit).
    """
    return [
        regex_matcher(rf"جمع\s*(?:کل\s*)?(?:مبلغ\s*)?{side}(?:{_COLON})?\s*{_AMOUNT}"),
        regex_matcher(rf"جمع\s*کل{_COLON}?\s*{side}\s*{_AMOUNT}"),
    ]


def first_match(matchers: Sequence[Matcher], texts: Sequence[str]) -> str | None:
    """Try each text in turn, and each matcher in order within a text."""
    for text in texts:
        for matcher in matchers:
            value = matcher(text)
            if value is not None:
                return value
    return None


class HeaderExtractor:
    """Extracts document number, date, description and printed totals.

    Args:
        config: Extraction configuration.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()
        self.doc_number_matchers = doc_number_matchers()
        self.doc_date_matchers = doc_date_matchers()
        self.description_matchers = description_matchers(self.config.min_text_length)
        self.debit_total_matchers = printed_total_matchers("بدهکار")
        self.credit_total_matchers = printed_total_matchers("بستانکار")

    def extract(self, text: str) -> HeaderFields:
        """Extract header fields from canonical OCR text.

        Args:
            text: Raw OCR text of the selected attempt.

        Returns:
            Header fields; fields with no match are ``None``.
        """
        lines = [line.replace("،", ":").replace("؛", ":") for line in split_lines(text)]
        head = "\n".join(lines[: self.config.header_line_count])
        full = "\n".join(lines)
        searched = (head, full)

        fields = HeaderFields(
            doc_number=first_match(self.doc_number_matchers, searched),
            description=first_match(self.description_matchers, searched),
        )

        date = first_match(self.doc_date_matchers, searched)
        if date is not None:
            fields.doc_date = normalize_date(date)

        debit_total = first_match(self.debit_total_matchers, (full,))
        if debit_total is not None:
            fields.printed_total_debit = parse_amount(debit_total)
        credit_total = first_match(self.credit_total_matchers, (full,))
        if credit_total is not None:
            fields.printed_total_credit = parse_amount(credit_total)

        logger.info(
            "Header extraction: number=%s date=%s description=%s",
            fields.doc_number,
            fields.doc_date,
            "found" if fields.description else None,
        )
        return fields
