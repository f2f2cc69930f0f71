"""Account-code classification and debit/credit allocation policy.

Persian charts of accounts use three code levels: kol (general ledger,
4 digits), moeen (sub-ledger, 6 digits) and tafzili (detail, 3-5 digits).
The shape rules below are heuristics; a 4-digit tafzili code is always
read as kol.
"""

from dataclasses import dataclass
from enum import StrEnum

from sanad_ocr.normalization.dates import is_persian_year


class CodeLevel(StrEnum):
    """Hierarchy level of an account code."""

    KOL = "kol"
    MOEEN = "moeen"
    TAFZILI = "tafzili"


KOL_RANGE = (1000, 9999)
MOEEN_RANGE = (100_000, 999_999)
TAFZILI_RANGE = (100, 99_999)

DEBIT_KOL_RANGE = (1000, 3000)
CREDIT_KOL_RANGE = (3000, 6000)


@dataclass(frozen=True)
class Allocation:
    """How a row's main amount is split across amount columns."""

    partial_amount: float = 0.0
    debit: float = 0.0
    credit: float = 0.0


def _is_kol_shaped(token: str, value: int) -> bool:
    return len(token) == 4 and KOL_RANGE[0] <= value <= KOL_RANGE[1]


def _is_moeen_shaped(token: str, value: int) -> bool:
    return len(token) == 6 and MOEEN_RANGE[0] <= value <= MOEEN_RANGE[1]


def classify_account_code(token: str) -> CodeLevel | None:
    """Classify a digit string by length and range.

    Args:
        token: Latin digit string.

    Returns:
        The code level, or ``None`` when the token fits none. Year-like
        values (1300-1500) are never kol codes.
    """
    if not token.isdigit():
        return None
    value = int(token)

    if _is_kol_shaped(token, value):
        return None if is_persian_year(value) else CodeLevel.KOL
    if _is_moeen_shaped(token, value):
        return CodeLevel.MOEEN
    if 3 <= len(token) <= 5 and TAFZILI_RANGE[0] <= value <= TAFZILI_RANGE[1]:
        return CodeLevel.TAFZILI
    return None


def allocate_amount(kol_code: str | None, amount: float) -> Allocation:
    """Assign a row's main amount to debit or credit by kol range.

    Kol codes in [1000, 3000) are debit-side, [3000, 6000) credit-side.
    Any other kol code, or no kol code, only fills the partial amount.

    Args:
        kol_code: The row's kol code, if any.
        amount: The row's main amount.

    Returns:
        Allocation of the amount.
    """
    if kol_code is None:
        return Allocation(partial_amount=amount)

    value = int(kol_code)
    if DEBIT_KOL_RANGE[0] <= value < DEBIT_KOL_RANGE[1]:
        return Allocation(partial_amount=amount, debit=amount)
    if CREDIT_KOL_RANGE[0] <= value < CREDIT_KOL_RANGE[1]:
        return Allocation(partial_amount=amount, credit=amount)
    return Allocation(partial_amount=amount)
