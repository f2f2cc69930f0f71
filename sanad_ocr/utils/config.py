"""Configuration management for the accounting-document OCR system.

Loads and validates YAML configuration with sensible defaults
for preprocessing, OCR, and table extraction settings.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PreprocessingConfig(BaseModel):
    """Configuration for the two image enhancement pipelines."""

    binarize_threshold: int = 128
    sharpen_amount: float = 1.0
    strong_sharpen_amount: float = 2.0
    brightness: float = 1.1
    linear_alpha: float = 1.2
    linear_beta: float = -25.0
    gamma: float = 1.2
    blur_kernel_size: int = 3


class OCRConfig(BaseModel):
    """Configuration for Tesseract OCR attempts."""

    tesseract_cmd: str | None = None
    lang: str = "fas"
    oem: int = 1
    primary_psm_modes: list[int] = Field(default_factory=lambda: [6, 4, 3, 11])
    alternative_psm_modes: list[int] = Field(default_factory=lambda: [6, 4])
    char_whitelist: str | None = None
    preserve_interword_spaces: bool = True


class ExtractionConfig(BaseModel):
    """Configuration for header and table extraction."""

    header_line_count: int = 10
    min_amount: float = 10_000
    min_row_amount: float = 1_000
    min_text_length: int = 5
    max_row_number: int = 1_000


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
