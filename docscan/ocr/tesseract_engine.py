"""Tesseract OCR engine wrapper with word-level extraction.

Provides recognized text plus a word list carrying the page, block,
paragraph and line indices needed to rebuild reading-order lines.
"""

import shutil
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import pytesseract
from PIL import Image

from docscan.errors import RecognitionError
from docscan.utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class BoundingBox:
    """Word bounding box as left, top, right and bottom pixel edges."""

    x0: int
    y0: int
    x1: int
    y1: int


@dataclass(frozen=True)
class OCRWord:
    """A single word recognized by OCR.

    Confidence is on Tesseract's 0-100 scale. Index fields default to 0
    and ``bbox`` to ``None`` when the engine does not report them.
    """

    text: str
    confidence: float = 0.0
    line_num: int = 0
    par_num: int = 0
    block_num: int = 0
    page_num: int = 0
    bbox: BoundingBox | None = None

    @property
    def line_key(self) -> tuple[int, int, int, int]:
        return (self.page_num, self.block_num, self.par_num, self.line_num)

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass
class OCRResult:
    """Complete OCR result for one image."""

    text: str
    words: list[OCRWord]
    language: str
    mean_confidence: int


def mean_confidence(words: list[OCRWord]) -> int:
    """Return the rounded mean confidence of the non-blank words, or 0."""
    scored = [w.confidence for w in words if not w.is_blank]
    if not scored:
        return 0
    return round(sum(scored) / len(scored))


class OCREngine(ABC):
    """Interface for the OCR collaborator consumed by the pipeline."""

    @abstractmethod
    def is_ready(self) -> bool:
        """Return True if the engine can recognize images."""

    @abstractmethod
    def recognize(
        self, image: np.ndarray, progress: ProgressCallback | None = None
    ) -> OCRResult:
        """Recognize text in an image.

        Args:
            image: Input image as a numpy array.
            progress: Optional callback receiving non-decreasing fractions
                in ``[0, 1]``.

        Raises:
            RecognitionError: If recognition fails.
        """


class TesseractEngine(OCREngine):
    """Wrapper around Tesseract OCR.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: OCR language code.
        psm: Tesseract page segmentation mode.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        psm: int = 3,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.psm = psm

    def is_ready(self) -> bool:
        cmd = pytesseract.pytesseract.tesseract_cmd
        return shutil.which(cmd) is not None

    def recognize(
        self, image: np.ndarray, progress: ProgressCallback | None = None
    ) -> OCRResult:
        config = f"--psm {self.psm}"
        _report(progress, 0.0)

        try:
            pil_image = Image.fromarray(image)
            text = pytesseract.image_to_string(
                pil_image, lang=self.default_lang, config=config
            )
            _report(progress, 0.5)
            data = pytesseract.image_to_data(
                pil_image,
                lang=self.default_lang,
                config=config,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as exc:
            raise RecognitionError(f"Tesseract recognition failed: {exc}") from exc

        words = _parse_words(data)
        _report(progress, 1.0)

        result = OCRResult(
            text=text.strip(),
            words=words,
            language=self.default_lang,
            mean_confidence=mean_confidence(words),
        )
        logger.info(
            "OCR extracted %d words with mean confidence %d",
            len(words),
            result.mean_confidence,
        )
        return result


def _report(progress: ProgressCallback | None, fraction: float) -> None:
    if progress is not None:
        progress(fraction)


def _parse_words(data: dict) -> list[OCRWord]:
    """Convert ``image_to_data`` output into word records.

    Rows with a confidence of -1 are Tesseract's page, block, paragraph
    and line markers, not words, and are skipped. Blank word rows are kept
    so the line reconstructor can account for them.
    """
    words: list[OCRWord] = []
    for i in range(len(data["text"])):
        conf = float(data["conf"][i])
        if conf < 0:
            continue
        left, top = int(data["left"][i]), int(data["top"][i])
        words.append(
            OCRWord(
                text=str(data["text"][i]),
                confidence=conf,
                line_num=int(data["line_num"][i]),
                par_num=int(data["par_num"][i]),
                block_num=int(data["block_num"][i]),
                page_num=int(data["page_num"][i]),
                bbox=BoundingBox(
                    x0=left,
                    y0=top,
                    x1=left + int(data["width"][i]),
                    y1=top + int(data["height"][i]),
                ),
            )
        )
    return words
