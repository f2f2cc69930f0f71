"""Tesseract OCR session used for multi-pass recognition.

A session is configured before each recognition call (page segmentation
mode, engine mode, whitelist), so one session handle is used strictly
sequentially. Create one session per extraction call.
"""

import threading
from dataclasses import dataclass
from pathlib import Path

import pytesseract
from PIL import Image

from sanad_ocr.utils.config import OCRConfig
from sanad_ocr.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RecognitionConfig:
    """Per-call Tesseract parameters."""

    psm: int = 6
    oem: int = 1
    char_whitelist: str | None = None
    preserve_interword_spaces: bool = True

    def to_cli(self) -> str:
        """Render the parameters as a Tesseract command-line config string."""
        parts = [f"--oem {self.oem}", f"--psm {self.psm}"]
        if self.preserve_interword_spaces:
            parts.append("-c preserve_interword_spaces=1")
        if self.char_whitelist:
            parts.append(f"-c tessedit_char_whitelist={self.char_whitelist}")
        return " ".join(parts)


@dataclass
class Recognition:
    """Text and mean word confidence (0-100) of one recognition call."""

    text: str
    confidence: float


class TesseractSession:
    """Stateful wrapper around ``pytesseract`` for one extraction call.

    Args:
        lang: Tesseract language code; fixed for the session.
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
    """

    def __init__(self, lang: str = "fas", tesseract_cmd: str | None = None) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.lang = lang
        self.parameters = RecognitionConfig()
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_config(cls, config: OCRConfig) -> "TesseractSession":
        """Create a session from the OCR section of the app config."""
        return cls(lang=config.lang, tesseract_cmd=config.tesseract_cmd)

    def __enter__(self) -> "TesseractSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the session. Further recognition calls raise."""
        self._closed = True

    def set_parameters(self, parameters: RecognitionConfig) -> None:
        """Select the parameters used by the next ``recognize`` call."""
        self.parameters = parameters

    def recognize(self, image_path: Path, timeout: float = 0) -> Recognition:
        """Run Tesseract on an image with the current parameters.

        Args:
            image_path: Image to recognize.
            timeout: Seconds before Tesseract is killed; ``0`` disables it.

        Returns:
            Recognized text and mean confidence of words with positive
            confidence.

        Raises:
            RuntimeError: If the session is closed or Tesseract times out.
            pytesseract.TesseractError: If Tesseract fails.
        """
        if self._closed:
            raise RuntimeError("OCR session is closed")

        config = self.parameters.to_cli()
        with Image.open(image_path) as image:
            text = pytesseract.image_to_string(
                image, lang=self.lang, config=config, timeout=timeout
            )
            data = pytesseract.image_to_data(
                image,
                lang=self.lang,
                config=config,
                timeout=timeout,
                output_type=pytesseract.Output.DICT,
            )

        confidences = [
            float(conf)
            for conf, word in zip(data["conf"], data["text"])
            if float(conf) > 0 and str(word).strip()
        ]
        confidence = sum(confidences) / len(confidences) if confidences else 0.0

        logger.debug(
            "Recognized %d words (psm=%d) with mean confidence %.1f",
            len(confidences),
            self.parameters.psm,
            confidence,
        )
        return Recognition(text=text, confidence=confidence)

    def reconfigure_and_recognize(
        self, image_path: Path, parameters: RecognitionConfig, timeout: float = 0
    ) -> Recognition:
        """Set parameters and recognize as one step, serialized per session."""
        with self._lock:
            self.set_parameters(parameters)
            return self.recognize(image_path, timeout=timeout)
