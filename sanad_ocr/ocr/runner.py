"""Multi-pass OCR over preprocessed image variants.

Runs every (image variant, page segmentation mode) pair from the
configured candidate set against one session and collects the attempts
that succeed.
"""

import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from sanad_ocr.preprocessing.pipeline import ImageVariant, PreparedImages
from sanad_ocr.utils.config import OCRConfig
from sanad_ocr.utils.logger import get_logger

from .tesseract_engine import Recognition, RecognitionConfig

logger = get_logger(__name__)


class NoOCRResultError(RuntimeError):
    """Raised when no OCR attempt produced a result."""


class OCRSession(Protocol):
    def reconfigure_and_recognize(
        self, image_path: Path, parameters: RecognitionConfig, timeout: float = 0
    ) -> Recognition: ...

    def close(self) -> None: ...


@dataclass
class OCRAttempt:
    """Raw output of one (variant, page segmentation mode) attempt."""

    variant: ImageVariant
    page_seg_mode: int
    raw_text: str
    confidence: float


class MultiPassRunner:
    """Runs the OCR candidate set sequentially against one session.

    Args:
        config: OCR configuration holding the page segmentation modes
            tried for each image variant.
    """

    def __init__(self, config: OCRConfig) -> None:
        self.config = config

    def candidates(self) -> list[tuple[ImageVariant, int]]:
        """Return the (variant, psm) pairs in the order they are tried."""
        pairs = [(ImageVariant.PRIMARY, psm) for psm in self.config.primary_psm_modes]
        pairs += [
            (ImageVariant.ALTERNATIVE, psm) for psm in self.config.alternative_psm_modes
        ]
        return pairs

    def _parameters(self, psm: int) -> RecognitionConfig:
        return RecognitionConfig(
            psm=psm,
            oem=self.config.oem,
            char_whitelist=self.config.char_whitelist,
            preserve_interword_spaces=self.config.preserve_interword_spaces,
        )

    def run(
        self,
        images: PreparedImages,
        session: OCRSession,
        deadline: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[OCRAttempt]:
        """Run all candidate attempts and collect the successful ones.

        Args:
            images: Preprocessed image paths keyed by variant.
            session: OCR session reused for every attempt.
            deadline: Absolute ``time.monotonic()`` value after which no
                further attempt starts.
            cancel_event: When set, remaining attempts are skipped.

        Returns:
            Successful attempts in the order they ran.

        Raises:
            NoOCRResultError: If no attempt succeeded.
        """
        attempts: list[OCRAttempt] = []

        for variant, psm in self.candidates():
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("OCR cancelled, skipping remaining attempts")
                break

            timeout = 0.0
            if deadline is not None:
                timeout = deadline - time.monotonic()
                if timeout <= 0:
                    logger.warning("OCR deadline reached, skipping remaining attempts")
                    break

            image_path = images.paths.get(variant, images.source)
            try:
                recognition = session.reconfigure_and_recognize(
                    image_path, self._parameters(psm), timeout=timeout
                )
            except Exception as exc:
                logger.warning(
                    "OCR attempt failed (variant=%s, psm=%d): %s",
                    variant.value,
                    psm,
                    exc,
                )
                continue

            attempts.append(
                OCRAttempt(
                    variant=variant,
                    page_seg_mode=psm,
                    raw_text=recognition.text,
                    confidence=recognition.confidence,
                )
            )
            logger.info(
                "OCR attempt variant=%s psm=%d: %d chars, confidence %.1f",
                variant.value,
                psm,
                len(recognition.text),
                recognition.confidence,
            )

        if not attempts:
            raise NoOCRResultError("No OCR result available")
        return attempts
