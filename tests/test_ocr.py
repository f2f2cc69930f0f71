"""Tests for the Tesseract session, multi-pass runner and selector."""

import threading
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sanad_ocr.ocr.runner import MultiPassRunner, NoOCRResultError, OCRAttempt
from sanad_ocr.ocr.selector import KEYWORDS, score_attempt, score_text, select_best
from sanad_ocr.ocr.tesseract_engine import (
    Recognition,
    RecognitionConfig,
    TesseractSession,
)
from sanad_ocr.preprocessing.pipeline import ImageVariant, PreparedImages
from sanad_ocr.utils.config import OCRConfig


def _mock_tesseract_data() -> dict:
    """Create mock pytesseract word data."""
    return {
        "text": ["", "شماره", "سند", "", "1025"],
        "conf": [-1, 90, 80, -1, 70],
    }


def _attempt(
    text: str,
    confidence: float = 50.0,
    variant: ImageVariant = ImageVariant.PRIMARY,
    psm: int = 6,
) -> OCRAttempt:
    return OCRAttempt(
        variant=variant, page_seg_mode=psm, raw_text=text, confidence=confidence
    )


def _prepared(tmp_path: Path) -> PreparedImages:
    source = tmp_path / "cover.png"
    return PreparedImages(
        source=source,
        paths={
            ImageVariant.PRIMARY: tmp_path / "cover_primary.png",
            ImageVariant.ALTERNATIVE: tmp_path / "cover_alternative.png",
        },
    )


class FakeSession:
    """OCR session returning scripted results per (image, psm)."""

    def __init__(self, outcomes: dict | None = None, default: str = "text") -> None:
        self.outcomes = outcomes or {}
        self.default = default
        self.calls: list[tuple[str, int, float]] = []
        self.closed = False

    def reconfigure_and_recognize(
        self, image_path: Path, parameters: RecognitionConfig, timeout: float = 0
    ) -> Recognition:
        self.calls.append((Path(image_path).name, parameters.psm, timeout))
        outcome = self.outcomes.get((Path(image_path).name, parameters.psm), self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return Recognition(text=outcome, confidence=60.0)

    def close(self) -> None:
        self.closed = True


class TestRecognitionConfig:
    """Tests for Tesseract parameter rendering."""

    def test_default_cli(self) -> None:
        assert RecognitionConfig(psm=4).to_cli() == (
            "--oem 1 --psm 4 -c preserve_interword_spaces=1"
        )

    def test_whitelist(self) -> None:
        cli = RecognitionConfig(
            psm=6, char_whitelist="0123456789", preserve_interword_spaces=False
        ).to_cli()
        assert cli == "--oem 1 --psm 6 -c tessedit_char_whitelist=0123456789"


class TestTesseractSession:
    """Tests for the TesseractSession class (mocked)."""

    @patch("sanad_ocr.ocr.tesseract_engine.pytesseract")
    def test_recognize(self, mock_pytesseract: MagicMock, sample_image_path: Path) -> None:
        mock_pytesseract.image_to_string.return_value = "شماره سند 1025"
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()
        mock_pytesseract.Output.DICT = "dict"

        session = TesseractSession(lang="fas")
        session.set_parameters(RecognitionConfig(psm=4))
        result = session.recognize(sample_image_path)

        assert result.text == "شماره سند 1025"
        assert result.confidence == pytest.approx(80.0)
        _, kwargs = mock_pytesseract.image_to_string.call_args
        assert kwargs["lang"] == "fas"
        assert "--psm 4" in kwargs["config"]

    @patch("sanad_ocr.ocr.tesseract_engine.pytesseract")
    def test_recognize_no_words(
        self, mock_pytesseract: MagicMock, sample_image_path: Path
    ) -> None:
        mock_pytesseract.image_to_string.return_value = ""
        mock_pytesseract.image_to_data.return_value = {"text": [], "conf": []}

        result = TesseractSession().recognize(sample_image_path)
        assert result.text == ""
        assert result.confidence == 0.0

    @patch("sanad_ocr.ocr.tesseract_engine.pytesseract")
    def test_reconfigure_and_recognize(
        self, mock_pytesseract: MagicMock, sample_image_path: Path
    ) -> None:
        mock_pytesseract.image_to_string.return_value = "x"
        mock_pytesseract.image_to_data.return_value = {"text": ["x"], "conf": ["55"]}

        session = TesseractSession()
        result = session.reconfigure_and_recognize(
            sample_image_path, RecognitionConfig(psm=11), timeout=3.0
        )
        assert session.parameters.psm == 11
        assert result.confidence == 55.0
        _, kwargs = mock_pytesseract.image_to_data.call_args
        assert kwargs["timeout"] == 3.0

    def test_closed_session_raises(self, sample_image_path: Path) -> None:
        with TesseractSession() as session:
            pass
        with pytest.raises(RuntimeError):
            session.recognize(sample_image_path)

    def test_custom_tesseract_cmd(self) -> None:
        with patch("sanad_ocr.ocr.tesseract_engine.pytesseract") as mock_pt:
            TesseractSession.from_config(OCRConfig(tesseract_cmd="/usr/bin/tesseract"))
            assert mock_pt.pytesseract.tesseract_cmd == "/usr/bin/tesseract"


class TestMultiPassRunner:
    """Tests for running the candidate set of OCR attempts."""

    def setup_method(self) -> None:
        self.runner = MultiPassRunner(OCRConfig())

    def test_candidates_order(self) -> None:
        assert self.runner.candidates() == [
            (ImageVariant.PRIMARY, 6),
            (ImageVariant.PRIMARY, 4),
            (ImageVariant.PRIMARY, 3),
            (ImageVariant.PRIMARY, 11),
            (ImageVariant.ALTERNATIVE, 6),
            (ImageVariant.ALTERNATIVE, 4),
        ]

    def test_runs_every_candidate(self, tmp_path: Path) -> None:
        session = FakeSession()
        attempts = self.runner.run(_prepared(tmp_path), session)

        assert len(attempts) == 6
        assert [c[0] for c in session.calls] == ["cover_primary.png"] * 4 + [
            "cover_alternative.png"
        ] * 2
        assert attempts[-1].variant is ImageVariant.ALTERNATIVE
        assert attempts[-1].page_seg_mode == 4

    def test_failed_attempt_is_skipped(self, tmp_path: Path) -> None:
        session = FakeSession(
            outcomes={
                ("cover_primary.png", 6): RuntimeError("tesseract crashed"),
                ("cover_alternative.png", 4): RuntimeError("timeout"),
            }
        )
        attempts = self.runner.run(_prepared(tmp_path), session)
        assert len(attempts) == 4
        assert (ImageVariant.PRIMARY, 6) not in [
            (a.variant, a.page_seg_mode) for a in attempts
        ]

    def test_all_attempts_fail(self, tmp_path: Path) -> None:
        session = FakeSession(default=RuntimeError("no tessdata"))
        with pytest.raises(NoOCRResultError):
            self.runner.run(_prepared(tmp_path), session)

    def test_missing_variant_uses_source(self, tmp_path: Path) -> None:
        images = PreparedImages(source=tmp_path / "cover.png")
        session = FakeSession()
        self.runner.run(images, session)
        assert {c[0] for c in session.calls} == {"cover.png"}

    def test_cancel_before_start(self, tmp_path: Path) -> None:
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(NoOCRResultError):
            self.runner.run(_prepared(tmp_path), FakeSession(), cancel_event=cancel)

    def test_cancel_keeps_completed_attempts(self, tmp_path: Path) -> None:
        cancel = threading.Event()

        class CancellingSession(FakeSession):
            def reconfigure_and_recognize(self, image_path, parameters, timeout=0):
                result = super().reconfigure_and_recognize(image_path, parameters, timeout)
                if len(self.calls) == 2:
                    cancel.set()
                return result

        attempts = self.runner.run(
            _prepared(tmp_path), CancellingSession(), cancel_event=cancel
        )
        assert len(attempts) == 2

    def test_expired_deadline(self, tmp_path: Path) -> None:
        with pytest.raises(NoOCRResultError):
            self.runner.run(
                _prepared(tmp_path), FakeSession(), deadline=time.monotonic() - 1
            )

    def test_deadline_passed_as_timeout(self, tmp_path: Path) -> None:
        session = FakeSession()
        self.runner.run(_prepared(tmp_path), session, deadline=time.monotonic() + 60)
        assert all(0 < timeout <= 60 for _, _, timeout in session.calls)


class TestSelector:
    """Tests for attempt scoring and selection."""

    def test_length_signal_capped(self) -> None:
        assert score_text("a" * 5000, 0) == 10

    def test_confidence_signal(self) -> None:
        assert score_text("", 85) == pytest.approx(8.5)
        assert score_text("", 250) == 10

    def test_keyword_hits_counted_once(self) -> None:
        text = "جمع جمع جمع"
        assert score_text(text, 0) == pytest.approx(len(text) / 100 + 2)

    def test_all_keywords(self) -> None:
        text = " ".join(KEYWORDS)
        assert score_text(text, 0) == pytest.approx(len(text) / 100 + 2 * len(KEYWORDS))

    def test_numbers_and_dates(self) -> None:
        # One date (5) plus its 4-digit year run (0.5) plus "12345" (0.5).
        text = "1402/05/10 12345 12"
        assert score_text(text, 0) == pytest.approx(len(text) / 100 + 6.0)

    def test_highest_score_wins(self) -> None:
        weak = _attempt("abc", confidence=10)
        strong = _attempt("شماره سند 1025 تاریخ 1402/05/10", confidence=80, psm=4)
        best, score = select_best([weak, strong])
        assert best is strong
        assert score == score_attempt(strong)

    def test_tie_returns_first(self) -> None:
        first = _attempt("same text", psm=6)
        second = _attempt("same text", psm=4, variant=ImageVariant.ALTERNATIVE)
        best, _ = select_best([first, second])
        assert best is first

    def test_empty_raises(self) -> None:
        with pytest.raises(ValueError):
            select_best([])
