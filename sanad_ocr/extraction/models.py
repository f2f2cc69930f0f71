"""Result types produced by header and table extraction."""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class TableRow:
    """One accounting row of a cover sheet's ledger table."""

    order: int
    row_number: str | None = None
    kol_code: str | None = None
    moeen_code: str | None = None
    tafzili_code: str | None = None
    kol_description: str | None = None
    moeen_description: str | None = None
    tafzili_description: str | None = None
    tafzili_details: str | None = None
    partial_amount: float = 0.0
    debit: float = 0.0
    credit: float = 0.0
    is_sub_row: bool = False
    parent_row_index: int | None = None


@dataclass
class HeaderFields:
    """Header fields found above the ledger table."""

    doc_number: str | None = None
    doc_date: str | None = None
    description: str | None = None
    printed_total_debit: float | None = None
    printed_total_credit: float | None = None


@dataclass
class ExtractionResult:
    """Structured cover sheet returned to the reviewer.

    ``total_debit`` and ``total_credit`` are computed from ``table_rows``
    on every access, so they stay consistent after rows are edited.
    """

    doc_number: str | None = None
    doc_date: str | None = None
    description: str | None = None
    table_rows: list[TableRow] = field(default_factory=list)
    raw_text: str = ""
    printed_total_debit: float | None = None
    printed_total_credit: float | None = None
    selected_variant: str | None = None
    selected_page_seg_mode: int | None = None
    selected_score: float = 0.0

    @property
    def total_debit(self) -> float:
        return sum(row.debit for row in self.table_rows)

    @property
    def total_credit(self) -> float:
        return sum(row.credit for row in self.table_rows)

    @property
    def is_balanced(self) -> bool:
        """Whether the extracted rows' debit and credit totals agree."""
        return self.total_debit == self.total_credit

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON-compatible types, totals included."""
        data = asdict(self)
        data["total_debit"] = self.total_debit
        data["total_credit"] = self.total_credit
        data["is_balanced"] = self.is_balanced
        return data
