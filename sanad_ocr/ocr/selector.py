"""Heuristic scoring of OCR attempts.

An attempt scores higher for longer text, higher engine confidence,
ledger keywords, multi-digit numbers, and date-shaped tokens.
"""

import re

from sanad_ocr.normalization.dates import DATE_PATTERN
from sanad_ocr.utils.logger import get_logger

from .runner import OCRAttempt

logger = get_logger(__name__)

KEYWORDS: tuple[str, ...] = (
    "ردیف",
    "تاریخ",
    "شرح",
    "کد حساب",
    "بدهکار",
    "بستانکار",
    "شماره سند",
    "جمع",
)

_NUMBER = re.compile(r"\d{3,}")
_DATE = re.compile(DATE_PATTERN)


def score_text(text: str, confidence: float) -> float:
    """Score OCR output text.

    Args:
        text: Raw OCR text.
        confidence: Engine confidence, 0-100.

    Returns:
        Heuristic quality score; higher is better.
    """
    score = min(len(text) / 100, 10)
    score += min(confidence / 10, 10)
    score += 2 * sum(1 for keyword in KEYWORDS if keyword in text)
    score += 0.5 * len(_NUMBER.findall(text))
    score += 5 * len(_DATE.findall(text))
    return score


def score_attempt(attempt: OCRAttempt) -> float:
    """Score one OCR attempt."""
    return score_text(attempt.raw_text, attempt.confidence)


def select_best(attempts: list[OCRAttempt]) -> tuple[OCRAttempt, float]:
    """Pick the highest-scoring attempt; ties go to the earliest.

    Args:
        attempts: Non-empty list of attempts.

    Returns:
        Tuple of (winning attempt, its score).

    Raises:
        ValueError: If ``attempts`` is empty.
    """
    if not attempts:
        raise ValueError("No OCR attempts to select from")

    best, best_score = attempts[0], score_attempt(attempts[0])
    for attempt in attempts[1:]:
        score = score_attempt(attempt)
        if score > best_score:
            best, best_score = attempt, score

    logger.info(
        "Selected attempt variant=%s psm=%d with score %.2f",
        best.variant.value,
        best.page_seg_mode,
        best_score,
    )
    return best, best_score
