"""Pydantic request/response schemas for the FastAPI endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from docscan.analysis.doc_classifier import ConfidenceTier, DocumentType
from docscan.scanning.scanner import ScanOutcome


class SectionSchema(BaseModel):
    """A labeled section of document text."""

    heading: str
    content: str


class WordResponse(BaseModel):
    """A recognized word with its confidence."""

    text: str
    confidence: float
    low_confidence: bool = False


class LineResponse(BaseModel):
    """A reconstructed reading-order line."""

    text: str
    mean_confidence: float
    words: list[WordResponse]


class ScanResponse(BaseModel):
    """Response schema for a document scan request."""

    success: bool
    document_id: str | None = None
    title: str
    raw_text: str
    sections: list[SectionSchema]
    scanned_found: bool
    scan_outcome: ScanOutcome
    doc_type: DocumentType
    type_confidence: ConfidenceTier
    mean_confidence: int
    lines: list[LineResponse]
    processing_time_ms: float


class DocumentCreateRequest(BaseModel):
    """Request body for storing a processed document."""

    title: str = "Untitled"
    raw_text: str
    sections: list[SectionSchema]
    scanned_found: bool = False
    doc_type: str = DocumentType.OTHER.value
    mean_confidence: int = 0


class DocumentResponse(BaseModel):
    """A stored document."""

    id: str
    created_at: datetime
    title: str
    raw_text: str
    sections: list[SectionSchema]
    scanned_found: bool
    doc_type: str
    mean_confidence: int


class ExportRequest(BaseModel):
    """Request body for rendering a document export."""

    title: str = "OCR Document"
    doc_type: str = DocumentType.OTHER.value
    mean_confidence: int = 0
    sections: list[SectionSchema] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    opencv_available: bool
