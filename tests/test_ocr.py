"""Tests for the Tesseract wrapper and OCR line reconstruction."""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from docscan.errors import RecognitionError
from docscan.ocr.line_reconstructor import LineGroup, group_lines
from docscan.ocr.tesseract_engine import (
    BoundingBox,
    OCRResult,
    OCRWord,
    TesseractEngine,
    mean_confidence,
)


def _word(text: str, key: tuple[int, int, int, int], confidence: float = 90.0) -> OCRWord:
    page, block, par, line = key
    return OCRWord(
        text=text,
        confidence=confidence,
        page_num=page,
        block_num=block,
        par_num=par,
        line_num=line,
    )


def _mock_tesseract_data() -> dict:
    """Create mock pytesseract image_to_data output."""
    return {
        "level": [1, 2, 3, 4, 5, 5, 5, 4, 5],
        "page_num": [1, 1, 1, 1, 1, 1, 1, 1, 1],
        "block_num": [0, 1, 1, 1, 1, 1, 1, 1, 1],
        "par_num": [0, 0, 1, 1, 1, 1, 1, 1, 1],
        "line_num": [0, 0, 0, 1, 1, 1, 1, 2, 2],
        "word_num": [0, 0, 0, 0, 1, 2, 3, 0, 1],
        "left": [0, 0, 0, 0, 10, 70, 130, 0, 10],
        "top": [0, 0, 0, 0, 10, 10, 10, 0, 50],
        "width": [0, 0, 0, 0, 50, 50, 5, 0, 40],
        "height": [0, 0, 0, 0, 20, 20, 20, 0, 20],
        "conf": [-1, -1, -1, -1, 95, 88, 10, -1, 72],
        "text": ["", "", "", "", "Hello", "World", " ", "", "Test"],
    }


class TestOCRWord:
    """Tests for the OCRWord value type."""

    def test_defaults(self) -> None:
        word = OCRWord(text="x")
        assert word.confidence == 0.0
        assert word.line_key == (0, 0, 0, 0)
        assert word.bbox is None

    def test_blank_detection(self) -> None:
        assert OCRWord(text="  \t").is_blank
        assert not OCRWord(text="a").is_blank


class TestMeanConfidence:
    """Tests for the document-level confidence score."""

    def test_empty(self) -> None:
        assert mean_confidence([]) == 0

    def test_ignores_blank_words(self) -> None:
        words = [OCRWord("a", 80), OCRWord(" ", 0), OCRWord("b", 91)]
        assert mean_confidence(words) == 86


class TestTesseractEngine:
    """Tests for the TesseractEngine class (mocked)."""

    @patch("docscan.ocr.tesseract_engine.pytesseract")
    def test_recognize(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = "Hello World\nTest\n"
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()
        mock_pytesseract.Output.DICT = "dict"

        engine = TesseractEngine(default_lang="eng")
        result = engine.recognize(np.zeros((100, 200), dtype=np.uint8))

        assert isinstance(result, OCRResult)
        assert result.text == "Hello World\nTest"
        assert [w.text for w in result.words] == ["Hello", "World", " ", "Test"]
        assert result.words[0].line_key == (1, 1, 1, 1)
        assert result.words[3].line_key == (1, 1, 1, 2)
        assert result.words[0].bbox == BoundingBox(10, 10, 60, 30)
        assert result.mean_confidence == round((95 + 88 + 72) / 3)
        assert result.language == "eng"

    @patch("docscan.ocr.tesseract_engine.pytesseract")
    def test_confidence_kept_on_percent_scale(self, mock_pytesseract: MagicMock) -> None:
        data = _mock_tesseract_data()
        mock_pytesseract.image_to_string.return_value = ""
        mock_pytesseract.image_to_data.return_value = data
        result = TesseractEngine().recognize(np.zeros((10, 10), dtype=np.uint8))
        assert result.words[0].confidence == 95.0

    @patch("docscan.ocr.tesseract_engine.pytesseract")
    def test_progress_is_monotonic(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = ""
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()
        seen: list[float] = []

        TesseractEngine().recognize(np.zeros((10, 10), dtype=np.uint8), seen.append)

        assert seen[0] == 0.0
        assert seen[-1] == 1.0
        assert seen == sorted(seen)
        assert all(0.0 <= p <= 1.0 for p in seen)

    @patch("docscan.ocr.tesseract_engine.pytesseract")
    def test_engine_failure_raises_recognition_error(
        self, mock_pytesseract: MagicMock
    ) -> None:
        mock_pytesseract.TesseractError = RuntimeError
        mock_pytesseract.TesseractNotFoundError = EnvironmentError
        mock_pytesseract.image_to_string.side_effect = RuntimeError("tesseract crashed")

        with pytest.raises(RecognitionError, match="tesseract crashed"):
            TesseractEngine().recognize(np.zeros((10, 10), dtype=np.uint8))

    def test_custom_tesseract_cmd(self) -> None:
        with patch("docscan.ocr.tesseract_engine.pytesseract") as mock_pt:
            TesseractEngine(tesseract_cmd="/usr/bin/tesseract")
            assert mock_pt.pytesseract.tesseract_cmd == "/usr/bin/tesseract"

    def test_is_ready_checks_executable(self) -> None:
        with patch("docscan.ocr.tesseract_engine.shutil.which", return_value=None):
            assert TesseractEngine().is_ready() is False
        with patch(
            "docscan.ocr.tesseract_engine.shutil.which", return_value="/usr/bin/tesseract"
        ):
            assert TesseractEngine().is_ready() is True


class TestGroupLines:
    """Tests for reading-order line reconstruction."""

    def test_empty_input(self) -> None:
        assert group_lines([]) == []

    def test_blank_word_dropped(self) -> None:
        words = [
            _word("Total", (0, 0, 0, 0)),
            _word("  ", (0, 0, 0, 0)),
            _word("Due", (0, 0, 0, 1)),
        ]
        lines = group_lines(words)
        assert len(lines) == 2
        assert [w.text for w in lines[0].words] == ["Total"]
        assert [w.text for w in lines[1].words] == ["Due"]

    def test_word_count_preserved(self) -> None:
        words = [
            _word("a", (1, 1, 1, 1)),
            _word("", (1, 1, 1, 1)),
            _word("b", (1, 1, 1, 1)),
            _word(" ", (1, 1, 1, 2)),
            _word("c", (1, 2, 1, 1)),
        ]
        lines = group_lines(words)
        grouped = sum(len(line.words) for line in lines)
        blanks = sum(1 for w in words if w.is_blank)
        assert grouped + blanks == len(words)

    def test_blank_word_does_not_split_line(self) -> None:
        words = [
            _word("a", (1, 1, 1, 1)),
            _word(" ", (1, 1, 1, 9)),
            _word("b", (1, 1, 1, 1)),
        ]
        lines = group_lines(words)
        assert len(lines) == 1
        assert lines[0].text == "a b"

    def test_boundaries_only_at_key_changes(self) -> None:
        words = [
            _word("one", (1, 1, 1, 1)),
            _word("two", (1, 1, 1, 1)),
            _word("three", (1, 1, 2, 1)),
            _word("four", (2, 1, 1, 1)),
        ]
        lines = group_lines(words)
        assert [line.text for line in lines] == ["one two", "three", "four"]
        for line in lines:
            assert len({w.line_key for w in line.words}) == 1

    def test_interleaved_keys_are_not_resorted(self) -> None:
        words = [
            _word("a", (1, 1, 1, 1)),
            _word("b", (1, 1, 1, 2)),
            _word("c", (1, 1, 1, 1)),
        ]
        assert [line.text for line in group_lines(words)] == ["a", "b", "c"]

    def test_all_blank_input(self) -> None:
        assert group_lines([_word(" ", (0, 0, 0, 0)), _word("", (0, 0, 0, 1))]) == []


class TestLineGroup:
    """Tests for the LineGroup helpers."""

    def test_key_text_and_confidence(self) -> None:
        line = LineGroup((_word("Net", (1, 2, 3, 4), 80), _word("30", (1, 2, 3, 4), 60)))
        assert line.key == (1, 2, 3, 4)
        assert line.text == "Net 30"
        assert line.mean_confidence == pytest.approx(70.0)

    def test_low_confidence_words(self) -> None:
        line = LineGroup((_word("ok", (0, 0, 0, 0), 95), _word("bl0r", (0, 0, 0, 0), 40)))
        assert [w.text for w in line.low_confidence_words(70)] == ["bl0r"]
        assert line.low_confidence_words(30) == []
