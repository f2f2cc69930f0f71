"""Shared test fixtures for the cover-sheet OCR test suite."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

SAMPLE_LINES = [
    "شماره سند: 1025",
    "تاریخ سند: 1402/05/10",
    "شرح: خرید ملزومات",
    "1  1201  230000  موجودی نقد  500000",
]


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.full((200, 300), 230, dtype=np.uint8)
    image[80:120, 40:260] = 20
    return image


@pytest.fixture
def sample_image_path(tmp_path: Path, sample_image: np.ndarray) -> Path:
    """Write the synthetic image as a PNG and return its path."""
    path = tmp_path / "cover.png"
    Image.fromarray(sample_image).save(path, format="PNG")
    return path


@pytest.fixture
def sample_text() -> str:
    """Minimal cover sheet as OCR would return it."""
    return "\n".join(SAMPLE_LINES)


@pytest.fixture
def ledger_text() -> str:
    """A fuller cover sheet with a table header and summary line."""
    return "\n".join(
        [
            "سند حسابداری",
            "شماره سند: ۲۰۴۸",
            "تاریخ سند: ۱۴۰۲/۰۷/۱۵",
            "شرح: پرداخت حقوق کارکنان مهر ماه",
            "ردیف کد حساب شرح مبلغ جزء بدهکار بستانکار",
            "1 8101 810105 هزینه حقوق و دستمزد 120,000,000",
            "2 1101 110102 101 بانک ملت شعبه مرکزی 45,000,000",
            "3 3201 320101 حقوق پرداختنی 75,000,000",
            "توضیحات",
            "جمع بدهکار: 45,000,000",
            "جمع بستانکار: 75,000,000",
        ]
    )


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
