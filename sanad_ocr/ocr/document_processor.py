"""End-to-end extraction pipeline for one cover-sheet image.

Combines preprocessing, multi-pass OCR, attempt selection, and header and
table extraction into a single call.
"""

import threading
import time
from collections.abc import Callable
from pathlib import Path

from sanad_ocr.extraction.header_extractor import HeaderExtractor
from sanad_ocr.extraction.models import ExtractionResult
from sanad_ocr.extraction.table_reconstructor import TableReconstructor
from sanad_ocr.preprocessing.pipeline import PreprocessingPipeline
from sanad_ocr.utils.config import AppConfig, OCRConfig
from sanad_ocr.utils.logger import get_logger

from .runner import MultiPassRunner, OCRSession
from .selector import select_best
from .tesseract_engine import TesseractSession

logger = get_logger(__name__)

SessionFactory = Callable[[OCRConfig], OCRSession]


class DocumentProcessor:
    """Turns a scanned cover-sheet image into an ``ExtractionResult``.

    Args:
        config: Application configuration object.
        session_factory: Creates the OCR session used for one call.
            Defaults to a Tesseract session.
    """

    def __init__(
        self,
        config: AppConfig,
        session_factory: SessionFactory = TesseractSession.from_config,
    ) -> None:
        self.config = config
        self.session_factory = session_factory
        self.preprocessing = PreprocessingPipeline(config.preprocessing)
        self.runner = MultiPassRunner(config.ocr)
        self.header_extractor = HeaderExtractor(config.extraction)
        self.table_reconstructor = TableReconstructor(config.extraction)

    def process(
        self,
        image_path: Path,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ExtractionResult:
        """Extract header fields and table rows from an image.

        Args:
            image_path: Path to a JPEG or PNG image.
            timeout: Seconds allowed for all OCR attempts together.
            cancel_event: Stops remaining OCR attempts when set.

        Returns:
            Best-effort extraction result.

        Raises:
            NoOCRResultError: If no OCR attempt succeeded.
        """
        image_path = Path(image_path)
        deadline = time.monotonic() + timeout if timeout is not None else None
        logger.info("Processing cover sheet: %s", image_path)

        images = self.preprocessing.prepare(image_path)
        try:
            session = self.session_factory(self.config.ocr)
            try:
                attempts = self.runner.run(
                    images, session, deadline=deadline, cancel_event=cancel_event
                )
            finally:
                session.close()
        finally:
            images.cleanup()

        best, score = select_best(attempts)
        header = self.header_extractor.extract(best.raw_text)
        rows = self.table_reconstructor.reconstruct(best.raw_text)

        result = ExtractionResult(
            doc_number=header.doc_number,
            doc_date=header.doc_date,
            description=header.description,
            table_rows=rows,
            raw_text=best.raw_text,
            printed_total_debit=header.printed_total_debit,
            printed_total_credit=header.printed_total_credit,
            selected_variant=best.variant.value,
            selected_page_seg_mode=best.page_seg_mode,
            selected_score=score,
        )
        logger.info(
            "Extracted %d rows from %s (debit %.0f, credit %.0f)",
            len(rows),
            image_path.name,
            result.total_debit,
            result.total_credit,
        )
        return result
