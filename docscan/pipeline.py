"""End-to-end document pipeline.

Scans a photographed page (or rectifies a region the user marked), runs
OCR on the rectified image (the original when no boundary was found),
and derives display lines, sections and a document type from the result.
"""

import io
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from docscan.analysis.doc_classifier import (
    ConfidenceTier,
    DocumentType,
    classify_document,
)
from docscan.analysis.section_segmenter import Section, segment_sections
from docscan.errors import InvalidImageError
from docscan.ocr.line_reconstructor import LineGroup, group_lines
from docscan.ocr.tesseract_engine import (
    OCREngine,
    OCRWord,
    ProgressCallback,
    TesseractEngine,
)
from docscan.scanning.geometry import Point
from docscan.scanning.scanner import DocumentScanner, ScanOutcome
from docscan.utils.config import AppConfig
from docscan.utils.logger import get_logger, log_stage

logger = get_logger(__name__)

UNTITLED = "Untitled"
TITLE_LENGTH = 60


@dataclass
class DocumentRecord:
    """Record handed to the document store and the exporters.

    ``doc_type`` defaults to ``"Other"`` and ``mean_confidence`` to 0
    when a caller has no classification or OCR score to report.
    """

    title: str
    raw_text: str
    sections: list[Section]
    scanned_found: bool = False
    doc_type: str = DocumentType.OTHER.value
    mean_confidence: int = 0


@dataclass
class DocumentResult:
    """Everything the pipeline derived from one image."""

    source_file: str
    title: str
    raw_text: str
    sections: list[Section]
    scanned_found: bool
    doc_type: DocumentType
    type_confidence: ConfidenceTier
    mean_confidence: int
    words: list[OCRWord]
    lines: list[LineGroup]
    scan_outcome: ScanOutcome = ScanOutcome.NOT_FOUND
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_record(self) -> DocumentRecord:
        return DocumentRecord(
            title=self.title,
            raw_text=self.raw_text,
            sections=list(self.sections),
            scanned_found=self.scanned_found,
            doc_type=self.doc_type.value,
            mean_confidence=self.mean_confidence,
        )


def derive_title(text: str, max_length: int = TITLE_LENGTH) -> str:
    """Use the first non-empty line of the text as a title."""
    for line in text.split("\n"):
        line = line.strip()
        if line:
            return line[:max_length]
    return UNTITLED


def load_image(source: Path | bytes) -> np.ndarray:
    """Decode an image file or raw bytes into an RGB (or grayscale) array.

    EXIF orientation is applied so phone photos come out upright.

    Raises:
        InvalidImageError: If the data cannot be decoded or is empty.
    """
    try:
        with Image.open(io.BytesIO(source) if isinstance(source, bytes) else source) as img:
            upright = ImageOps.exif_transpose(img)
            if upright.mode not in ("RGB", "L"):
                upright = upright.convert("RGB")
            image = np.array(upright)
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImageError(f"Cannot decode image: {exc}") from exc

    if image.size == 0:
        raise InvalidImageError("Image has zero size")
    return image


class DocumentPipeline:
    """Scan, recognize and analyze a single document image.

    Args:
        config: Application configuration.
        scanner: Boundary detector. Built from ``config.scan`` if omitted.
        ocr_engine: OCR collaborator. A :class:`TesseractEngine` built from
            ``config.ocr`` if omitted.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        scanner: DocumentScanner | None = None,
        ocr_engine: OCREngine | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.scanner = scanner or DocumentScanner(self.config.scan)
        self.ocr_engine = ocr_engine or TesseractEngine(
            tesseract_cmd=self.config.ocr.tesseract_cmd,
            default_lang=self.config.ocr.default_lang,
            psm=self.config.ocr.psm,
        )

    def process(
        self,
        source: Path | bytes,
        filename: str = "document",
        progress: ProgressCallback | None = None,
        corners: Sequence[Point] | None = None,
    ) -> DocumentResult:
        """Process a document image from a file path or bytes.

        Args:
            source: Path to an image file, or raw image bytes.
            filename: Display name for the source document.
            progress: Optional OCR progress callback.
            corners: Manual crop corners in image pixels. When given,
                boundary detection is skipped.

        Returns:
            Complete document processing results.

        Raises:
            InvalidImageError: If the image cannot be decoded or the crop
                corners are invalid.
            RecognitionError: If OCR fails.
        """
        logger.info("Processing document: %s", filename)
        image = load_image(source)
        return self.process_image(image, filename, progress, corners)

    def process_image(
        self,
        image: np.ndarray,
        filename: str = "document",
        progress: ProgressCallback | None = None,
        corners: Sequence[Point] | None = None,
    ) -> DocumentResult:
        """Process an already decoded image, see :meth:`process`."""
        with log_stage(logger, "scan"):
            if corners is not None:
                scan = self.scanner.crop(image, corners)
            else:
                scan = self.scanner.scan(image)
        if scan.outcome is ScanOutcome.NOT_FOUND:
            logger.info("%s: no page boundary detected, running OCR on full photo", filename)

        scanned_found = scan.found
        scan_outcome = scan.outcome
        with log_stage(logger, "ocr"):
            ocr = self.ocr_engine.recognize(scan.image, progress)
        del scan

        with log_stage(logger, "analysis"):
            lines = group_lines(ocr.words)
            sections = segment_sections(ocr.text)
            classification = classify_document(ocr.text)

        result = DocumentResult(
            source_file=filename,
            title=derive_title(ocr.text),
            raw_text=ocr.text,
            sections=sections,
            scanned_found=scanned_found,
            doc_type=classification.type,
            type_confidence=classification.confidence,
            mean_confidence=ocr.mean_confidence,
            words=ocr.words,
            lines=lines,
            scan_outcome=scan_outcome,
        )
        logger.info(
            "Processed %s: %d lines, %d sections, type %s",
            filename,
            len(lines),
            len(sections),
            result.doc_type,
        )
        return result
