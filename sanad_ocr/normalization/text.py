"""Line-level cleanup of Persian OCR text."""

import re

from .digits import normalize_digits

# Tesseract sometimes emits Arabic letter forms for their Persian twins.
_LETTER_TABLE = str.maketrans({"ي": "ی", "ى": "ی", "ك": "ک", "ة": "ه"})
_SPACES = re.compile(r"[ \t\xa0]+")


def normalize_persian_text(text: str) -> str:
    """Latin digits, Persian letter forms, single spaces."""
    return _SPACES.sub(" ", normalize_digits(text).translate(_LETTER_TABLE))


def split_lines(text: str) -> list[str]:
    """Normalize text and return its non-empty, trimmed lines."""
    lines = (line.strip() for line in normalize_persian_text(text).splitlines())
    return [line for line in lines if line]
