"""Keyword-scored document type classification.

Each category earns two points per keyword found in the text, a fixed
bonus when its characteristic phrase pattern matches, and (for receipts
and invoices) a bonus for money cues. The best-scoring category wins if
it clears a minimum score, otherwise the document is ``Other``.
"""

import re
from dataclasses import dataclass
from enum import StrEnum

from docscan.utils.logger import get_logger

logger = get_logger(__name__)


class DocumentType(StrEnum):
    """Supported document types."""

    RECEIPT = "Receipt"
    INVOICE = "Invoice"
    CONTRACT = "Contract"
    ID = "ID"
    OTHER = "Other"


class ConfidenceTier(StrEnum):
    """Coarse bucket summarizing a classification score."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class ClassificationResult:
    """Best document type guess with its confidence tier."""

    type: DocumentType
    confidence: ConfidenceTier


@dataclass(frozen=True)
class CategoryRule:
    """Scoring rule for one document type."""

    doc_type: DocumentType
    keywords: tuple[str, ...]
    pattern: re.Pattern[str]
    pattern_bonus: int
    money_bonus: bool = False


KEYWORD_POINTS = 2
MONEY_BONUS = 2
MIN_SCORE = 4
MEDIUM_SCORE = 7
HIGH_SCORE = 10

MONEY_RE = re.compile(r"(\$|฿|บาท|usd|thb|total|subtotal|tax|vat)", re.IGNORECASE)

# Order matters: on equal scores the earlier category wins.
CATEGORY_RULES: list[CategoryRule] = [
    CategoryRule(
        DocumentType.RECEIPT,
        keywords=("receipt", "cashier", "change", "store", "branch"),
        pattern=re.compile(
            r"(receipt|thank you for your purchase|cashier)", re.IGNORECASE
        ),
        pattern_bonus=4,
        money_bonus=True,
    ),
    CategoryRule(
        DocumentType.INVOICE,
        keywords=(
            "invoice",
            "bill to",
            "ship to",
            "due date",
            "terms",
            "purchase order",
        ),
        pattern=re.compile(r"(invoice\s*(no|#|number)|inv\s*(no|#))", re.IGNORECASE),
        pattern_bonus=5,
        money_bonus=True,
    ),
    CategoryRule(
        DocumentType.CONTRACT,
        keywords=(
            "agreement",
            "hereby",
            "whereas",
            "liability",
            "indemnify",
            "governing law",
            "jurisdiction",
            "signature",
        ),
        pattern=re.compile(
            r"(agreement|party\s*a|party\s*b|hereby|terms and conditions"
            r"|witnesseth|governing law|signature)",
            re.IGNORECASE,
        ),
        pattern_bonus=6,
    ),
    CategoryRule(
        DocumentType.ID,
        keywords=(
            "passport",
            "national",
            "identity",
            "citizen",
            "dob",
            "date of birth",
            "expiry",
            "issued",
        ),
        pattern=re.compile(
            r"(national id|id no|passport|date of birth|dob|expiry|issued|sex|height)",
            re.IGNORECASE,
        ),
        pattern_bonus=6,
    ),
]


def score_category(text: str, rule: CategoryRule) -> int:
    """Score ``text`` against a single category rule.

    Args:
        text: Raw document text.
        rule: Category keywords and bonus pattern.

    Returns:
        Non-negative integer score.
    """
    lower = text.lower()
    score = KEYWORD_POINTS * sum(1 for k in rule.keywords if k in lower)
    if rule.pattern.search(text):
        score += rule.pattern_bonus
    if rule.money_bonus and MONEY_RE.search(text):
        score += MONEY_BONUS
    return score


def score_document(text: str) -> dict[DocumentType, int]:
    """Score the text against every category, in priority order."""
    return {rule.doc_type: score_category(text, rule) for rule in CATEGORY_RULES}


def confidence_tier(score: int) -> ConfidenceTier:
    """Map a winning score to its confidence tier."""
    if score >= HIGH_SCORE:
        return ConfidenceTier.HIGH
    if score >= MEDIUM_SCORE:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


def classify_document(text: str | None) -> ClassificationResult:
    """Guess the document type of recognized text.

    Args:
        text: Raw OCR text. ``None`` is treated as empty.

    Returns:
        The strictly best-scoring type and its tier, or ``Other``/``Low``
        when no category reaches the minimum score.
    """
    scores = score_document(text or "")

    best_type, best_score = DocumentType.OTHER, -1
    for doc_type, score in scores.items():
        if score > best_score:
            best_type, best_score = doc_type, score

    if best_score < MIN_SCORE:
        logger.debug("No category reached %d points: %s", MIN_SCORE, scores)
        return ClassificationResult(DocumentType.OTHER, ConfidenceTier.LOW)

    result = ClassificationResult(best_type, confidence_tier(best_score))
    logger.info(
        "Classified document as %s (%s, score=%d)",
        result.type,
        result.confidence,
        best_score,
    )
    return result
