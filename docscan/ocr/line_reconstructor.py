"""Rebuild reading-order lines from a flat OCR word list.

Tesseract emits words in reading order tagged with page, block,
paragraph and line indices. Contiguous runs sharing all four indices
form one display line. Words are never re-sorted, so an engine that
interleaves lines out of order produces split lines.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from docscan.utils.logger import get_logger

from .tesseract_engine import OCRWord

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineGroup:
    """Words sharing one (page, block, paragraph, line) key, in emission order."""

    words: tuple[OCRWord, ...]

    @property
    def key(self) -> tuple[int, int, int, int]:
        return self.words[0].line_key

    @property
    def text(self) -> str:
        return " ".join(w.text.strip() for w in self.words)

    @property
    def mean_confidence(self) -> float:
        return sum(w.confidence for w in self.words) / len(self.words)

    def low_confidence_words(self, threshold: float = 70.0) -> list[OCRWord]:
        """Return words whose confidence falls below ``threshold``."""
        return [w for w in self.words if w.confidence < threshold]


def group_lines(words: Iterable[OCRWord]) -> list[LineGroup]:
    """Group OCR words into lines.

    Blank words are dropped before grouping, so they neither open nor
    close a line.

    Args:
        words: Words in the order the OCR engine emitted them.

    Returns:
        Non-empty line groups in input order.
    """
    lines: list[LineGroup] = []
    current: list[OCRWord] = []
    current_key: tuple[int, int, int, int] | None = None
    dropped = 0

    for word in words:
        if word.is_blank:
            dropped += 1
            continue
        if word.line_key != current_key:
            if current:
                lines.append(LineGroup(tuple(current)))
            current = []
            current_key = word.line_key
        current.append(word)

    if current:
        lines.append(LineGroup(tuple(current)))

    logger.debug("Grouped words into %d lines (%d blank dropped)", len(lines), dropped)
    return lines
