"""Ledger table reconstruction from line-oriented OCR text.

The table region is located by header marker words and ends at the
"total debit/credit" summary line. Each line in between is parsed by a
fixed sequence of steps over an immutable ``RowDraft``: row number,
account codes, amounts, then leftover descriptive text. Later steps read
what earlier steps found, so the order of ``ROW_STEPS`` matters.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, replace

from sanad_ocr.normalization.dates import DATE_PATTERN
from sanad_ocr.normalization.digits import parse_amount
from sanad_ocr.normalization.text import split_lines
from sanad_ocr.utils.config import ExtractionConfig
from sanad_ocr.utils.logger import get_logger

from .account_codes import Allocation, CodeLevel, allocate_amount, classify_account_code
from .models import TableRow

logger = get_logger(__name__)

TABLE_HEADER_MARKERS: tuple[str, ...] = (
    "ردیف",
    "کد حساب",
    "شرح",
    "جزء",
    "بدهکار",
    "بستانکار",
)
TOTAL_MARKER = "جمع"
SIDE_MARKERS: tuple[str, ...] = ("بدهکار", "بستانکار")

# Header line count assumed when no marker line is found.
DEFAULT_TABLE_START = 3

STRUCTURAL_KEYWORDS: tuple[str, ...] = (
    "کد حساب",
    "ردیف",
    "کد",
    "شرح",
    "مبلغ",
    "جزء",
    "بدهکار",
    "بستانکار",
    "جمع",
    "ریال",
)

_ROW_NUMBER = re.compile(r"^(\d+)(?![\d,٬/])")
_STANDALONE_NUMBER = re.compile(r"(?<![\d,٬./])\d+(?![\d,٬./])")
# At least two separator groups, as in 1,500,000.
_GROUPED_AMOUNT = re.compile(r"(?<![\d,٬])\d{1,3}(?:[,٬]\d{3}){2,}(?![\d,٬])")
_NUMERIC_RUN = re.compile(r"\d+(?:[,٬.]\d+)*")
_DATE = re.compile(DATE_PATTERN)
_KEYWORDS = re.compile(
    r"(?<!\w)(?:" + "|".join(re.escape(k) for k in STRUCTURAL_KEYWORDS) + r")(?!\w)"
)
_RULE_CHARS = re.compile(r"[|│¦_:]+")


@dataclass(frozen=True)
class Token:
    """A numeric substring of a line and its position."""

    text: str
    start: int
    end: int


@dataclass(frozen=True)
class Amount:
    """A monetary amount found in a line."""

    token: Token
    value: float


@dataclass(frozen=True)
class RowDraft:
    """Everything parsed from one candidate line so far."""

    line: str
    row_number: Token | None = None
    kol: Token | None = None
    moeen: Token | None = None
    tafzili: Token | None = None
    unclassified: tuple[Token, ...] = ()
    amounts: tuple[Amount, ...] = ()
    details: str | None = None

    @property
    def has_code(self) -> bool:
        return any(code is not None for code in (self.kol, self.moeen, self.tafzili))

    @property
    def amount_values(self) -> list[float]:
        """Distinct amount values, largest first."""
        return sorted({amount.value for amount in self.amounts}, reverse=True)


RowStep = Callable[[RowDraft, ExtractionConfig], RowDraft]


def read_row_number(draft: RowDraft, config: ExtractionConfig) -> RowDraft:
    """Take a leading integer in [1, max_row_number] as the printed row number."""
    match = _ROW_NUMBER.match(draft.line)
    if not match:
        return draft
    if not 1 <= int(match.group(1)) <= config.max_row_number:
        return draft
    return replace(draft, row_number=Token(match.group(1), match.start(1), match.end(1)))


def _tokens_outside_dates(pattern: re.Pattern[str], line: str) -> list[Token]:
    dates = [(m.start(), m.end()) for m in _DATE.finditer(line)]
    return [
        Token(m.group(0), m.start(), m.end())
        for m in pattern.finditer(line)
        if not any(start <= m.start() < end for start, end in dates)
    ]


def _standalone_numbers(line: str) -> list[Token]:
    return _tokens_outside_dates(_STANDALONE_NUMBER, line)


def read_account_codes(draft: RowDraft, config: ExtractionConfig) -> RowDraft:
    """Fill the kol, moeen and tafzili slots left to right, first match wins."""
    slots: dict[CodeLevel, Token | None] = {level: None for level in CodeLevel}
    unclassified: list[Token] = []

    for token in _standalone_numbers(draft.line):
        if draft.row_number is not None and token.start == draft.row_number.start:
            continue
        level = classify_account_code(token.text)
        if level is not None and slots[level] is None:
            slots[level] = token
        else:
            unclassified.append(token)

    return replace(
        draft,
        kol=slots[CodeLevel.KOL],
        moeen=slots[CodeLevel.MOEEN],
        tafzili=slots[CodeLevel.TAFZILI],
        unclassified=tuple(unclassified),
    )


def read_amounts(draft: RowDraft, config: ExtractionConfig) -> RowDraft:
    """Collect grouped numbers and leftover digit runs as amounts.

    Digit runs already taken as row number or account code are not
    amounts. Values below ``min_amount`` are noise and dropped.
    """
    candidates = [
        Token(m.group(0), m.start(), m.end()) for m in _GROUPED_AMOUNT.finditer(draft.line)
    ]
    candidates.extend(draft.unclassified)
    candidates.sort(key=lambda token: token.start)

    amounts: list[Amount] = []
    for token in candidates:
        value = parse_amount(token.text)
        if value >= config.min_amount:
            amounts.append(Amount(token, value))
    return replace(draft, amounts=tuple(amounts))


def read_details(draft: RowDraft, config: ExtractionConfig) -> RowDraft:
    """Keep the text left after removing numbers and structural keywords.

    Every numeric token outside a date is removed: the row number, codes
    and amounts, and also figures below the amount floor.
    """
    pieces: list[str] = []
    cursor = 0
    for token in _tokens_outside_dates(_NUMERIC_RUN, draft.line):
        pieces.append(draft.line[cursor : token.start])
        cursor = token.end
    pieces.append(draft.line[cursor:])

    remainder = _KEYWORDS.sub(" ", " ".join(pieces))
    remainder = " ".join(_RULE_CHARS.sub(" ", remainder).split())
    if len(remainder) > config.min_text_length:
        return replace(draft, details=remainder)
    return draft


ROW_STEPS: tuple[RowStep, ...] = (
    read_row_number,
    read_account_codes,
    read_amounts,
    read_details,
)


def parse_row(line: str, config: ExtractionConfig) -> RowDraft:
    """Run every row step over one line."""
    draft = RowDraft(line=line)
    for step in ROW_STEPS:
        draft = step(draft, config)
    return draft


def is_valid_row(draft: RowDraft, config: ExtractionConfig) -> bool:
    """A row needs an account code, or amounts summing to ``min_row_amount``."""
    if draft.has_code:
        return True
    values = draft.amount_values
    return bool(values) and sum(values) >= config.min_row_amount


def to_table_row(draft: RowDraft, order: int) -> TableRow:
    """Convert an accepted draft into a ``TableRow``."""
    values = draft.amount_values
    kol_code = draft.kol.text if draft.kol else None
    allocation = allocate_amount(kol_code, values[0]) if values else Allocation()

    return TableRow(
        order=order,
        row_number=draft.row_number.text if draft.row_number else None,
        kol_code=kol_code,
        moeen_code=draft.moeen.text if draft.moeen else None,
        tafzili_code=draft.tafzili.text if draft.tafzili else None,
        tafzili_details=draft.details,
        partial_amount=allocation.partial_amount,
        debit=allocation.debit,
        credit=allocation.credit,
    )


def is_total_line(line: str) -> bool:
    """Whether a line is the debit/credit summary that closes the table."""
    return TOTAL_MARKER in line and any(side in line for side in SIDE_MARKERS)


def find_table_bounds(lines: list[str]) -> tuple[int, int]:
    """Locate the table rows as a half-open line index range.

    Args:
        lines: Non-empty, trimmed lines.

    Returns:
        ``(start, end)``; ``start == end`` when there is no table.
    """
    start = next(
        (
            index + 1
            for index, line in enumerate(lines)
            if not is_total_line(line)
            and any(marker in line for marker in TABLE_HEADER_MARKERS)
        ),
        None,
    )
    if start is None:
        if len(lines) <= DEFAULT_TABLE_START:
            return 0, 0
        start = DEFAULT_TABLE_START

    end = len(lines)
    for index in range(start, len(lines)):
        if is_total_line(lines[index]):
            end = index
            break
    return start, end


class TableReconstructor:
    """Rebuilds the ledger table of a cover sheet from OCR text.

    Args:
        config: Extraction thresholds.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()

    def reconstruct(self, text: str) -> list[TableRow]:
        """Parse canonical OCR text into ordered table rows."""
        return self.reconstruct_lines(split_lines(text))

    def reconstruct_lines(self, lines: list[str]) -> list[TableRow]:
        """Parse already split, normalized lines into ordered table rows."""
        start, end = find_table_bounds(lines)
        rows: list[TableRow] = []

        for line in lines[start:end]:
            draft = parse_row(line, self.config)
            if not is_valid_row(draft, self.config):
                logger.debug("Dropped table line: %s", line)
                continue
            rows.append(to_table_row(draft, order=len(rows) + 1))

        logger.info(
            "Reconstructed %d table rows from lines %d-%d", len(rows), start, end
        )
        return rows
