"""Shared test fixtures for the document scan test suite."""

import re
from pathlib import Path

import cv2
import numpy as np
import pytest

from docscan.ocr.tesseract_engine import OCREngine, OCRResult, OCRWord, mean_confidence

INVOICE_TEXT = "INVOICE\nInvoice No: 1023\nBill To: Acme\nTotal: $500"


def page_count(pdf_bytes: bytes) -> int:
    """Count the page objects in a rendered PDF."""
    return len(re.findall(rb"/Type\s*/Page\b", pdf_bytes))


@pytest.fixture
def blank_image() -> np.ndarray:
    """A uniform gray BGR image with no edges at all."""
    return np.full((300, 400, 3), 128, dtype=np.uint8)


@pytest.fixture
def document_photo() -> np.ndarray:
    """A bright, slightly skewed page on a dark background."""
    image = np.full((600, 500, 3), 30, dtype=np.uint8)
    page = np.array([[100, 80], [420, 110], [400, 540], [80, 510]], dtype=np.int32)
    cv2.fillPoly(image, [page], (235, 235, 235))
    return image


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


class FakeOCREngine(OCREngine):
    """OCR collaborator returning canned text and recording its input."""

    def __init__(self, text: str = INVOICE_TEXT, words: list[OCRWord] | None = None) -> None:
        self.text = text
        self.words = words if words is not None else [
            OCRWord(text=token, confidence=90.0, line_num=i)
            for i, line in enumerate(text.split("\n"))
            for token in line.split()
        ]
        self.images: list[np.ndarray] = []

    def is_ready(self) -> bool:
        return True

    def recognize(self, image, progress=None) -> OCRResult:
        self.images.append(image)
        if progress is not None:
            progress(0.0)
            progress(1.0)
        return OCRResult(
            text=self.text,
            words=self.words,
            language="eng",
            mean_confidence=mean_confidence(self.words),
        )


@pytest.fixture
def fake_ocr() -> FakeOCREngine:
    return FakeOCREngine()
