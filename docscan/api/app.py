"""FastAPI application for the document scan API.

Provides endpoints for scanning a photographed document, storing and
searching processed documents, and exporting them to DOCX, Markdown or PDF.
"""

import time
from datetime import date
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, Query, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from docscan import __version__
from docscan.analysis.section_segmenter import Section
from docscan.errors import InvalidImageError, RecognitionError
from docscan.export.renderers import (
    ExportPayload,
    render_docx,
    render_markdown,
    render_pdf,
)
from docscan.pipeline import DocumentPipeline, DocumentRecord, DocumentResult
from docscan.scanning.geometry import parse_corners
from docscan.scanning.scanner import is_ready as opencv_ready
from docscan.storage.document_store import DocumentStore, StoredDocument
from docscan.utils.config import AppConfig, load_config
from docscan.utils.logger import get_logger

from .schemas import (
    DocumentCreateRequest,
    DocumentResponse,
    ExportRequest,
    HealthResponse,
    LineResponse,
    ScanResponse,
    SectionSchema,
    WordResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="Document Scan API",
    description="Detect, rectify, OCR and classify photographed documents",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/tiff",
    "image/webp",
    "image/bmp",
    "application/octet-stream",
}

_DOCX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)


def _get_pipeline(config: AppConfig | None = None) -> DocumentPipeline:
    """Build the processing pipeline without touching the document store."""
    return DocumentPipeline(config or load_config())


def _get_components() -> tuple[DocumentPipeline, DocumentStore, AppConfig]:
    """Initialize and return shared processing components.

    Returns:
        Tuple of (pipeline, document_store, config).
    """
    config = load_config()
    pipeline = _get_pipeline(config)
    store = DocumentStore(config.storage.db_path)
    return pipeline, store, config


def _to_response(doc: StoredDocument) -> DocumentResponse:
    return DocumentResponse(**doc.model_dump())


def _line_responses(result: DocumentResult, threshold: float) -> list[LineResponse]:
    return [
        LineResponse(
            text=line.text,
            mean_confidence=line.mean_confidence,
            words=[
                WordResponse(
                    text=w.text,
                    confidence=w.confidence,
                    low_confidence=w.confidence < threshold,
                )
                for w in line.words
            ],
        )
        for line in result.lines
    ]


def _sections(schemas: list[SectionSchema]) -> list[Section]:
    return [Section(heading=s.heading, content=s.content) for s in schemas]


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    pipeline = _get_pipeline()
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=pipeline.ocr_engine.is_ready(),
        opencv_available=opencv_ready(),
    )


@app.post("/scan", response_model=ScanResponse)
async def scan_document(
    file: Annotated[UploadFile, File(...)],
    save: Annotated[bool, Query()] = False,
    corners: Annotated[str | None, Query()] = None,
) -> ScanResponse:
    """Scan, recognize and classify an uploaded document photo.

    Args:
        file: Uploaded image (PNG, JPEG, TIFF, WebP or BMP).
        save: Whether to store the result in the document store.
        corners: Manual crop as ``x1,y1,...,x4,y4`` in image pixels.
            Skips automatic boundary detection.

    Returns:
        Recognized text, sections, lines and document type.
    """
    start_time = time.time()

    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )

    try:
        crop = parse_corners(corners) if corners else None
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        pipeline, store, config = _get_components()
        content = await file.read()
        result = pipeline.process(content, file.filename or "document", corners=crop)

        document_id = None
        if save and result.raw_text.strip():
            document_id = store.insert(result.to_record()).id

        return ScanResponse(
            success=True,
            document_id=document_id,
            title=result.title,
            raw_text=result.raw_text,
            sections=[
                SectionSchema(heading=s.heading, content=s.content)
                for s in result.sections
            ],
            scanned_found=result.scanned_found,
            scan_outcome=result.scan_outcome,
            doc_type=result.doc_type,
            type_confidence=result.type_confidence,
            mean_confidence=result.mean_confidence,
            lines=_line_responses(result, config.ocr.low_confidence_threshold),
            processing_time_ms=(time.time() - start_time) * 1000,
        )

    except InvalidImageError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RecognitionError as exc:
        logger.error("Recognition failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except Exception as exc:
        logger.error("Scan failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/documents", response_model=DocumentResponse)
async def create_document(body: DocumentCreateRequest) -> DocumentResponse:
    """Store a processed document."""
    if not body.raw_text.strip():
        raise HTTPException(status_code=400, detail="Missing raw_text")

    _, store, _ = _get_components()
    record = DocumentRecord(
        title=body.title,
        raw_text=body.raw_text,
        sections=_sections(body.sections),
        scanned_found=body.scanned_found,
        doc_type=body.doc_type,
        mean_confidence=body.mean_confidence,
    )
    return _to_response(store.insert(record))


@app.get("/documents", response_model=list[DocumentResponse])
async def search_documents(
    q: Annotated[str | None, Query()] = None,
    date_from: Annotated[date | None, Query(alias="from")] = None,
    date_to: Annotated[date | None, Query(alias="to")] = None,
) -> list[DocumentResponse]:
    """Search stored documents by text and creation date, newest first."""
    _, store, config = _get_components()
    docs = store.search(q, date_from, date_to, limit=config.storage.search_limit)
    return [_to_response(d) for d in docs]


def _payload(body: ExportRequest) -> ExportPayload:
    return ExportPayload(
        title=body.title,
        doc_type=body.doc_type,
        mean_confidence=body.mean_confidence,
        sections=_sections(body.sections),
    )


@app.post("/export/docx")
async def export_docx(body: ExportRequest) -> Response:
    """Render a document as DOCX."""
    return Response(
        content=render_docx(_payload(body)),
        media_type=_DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="ocr.docx"'},
    )


@app.post("/export/markdown")
async def export_markdown(body: ExportRequest) -> Response:
    """Render a document as Markdown."""
    return Response(
        content=render_markdown(_payload(body)),
        media_type="text/markdown",
        headers={"Content-Disposition": 'attachment; filename="ocr.md"'},
    )


@app.post("/export/pdf")
async def export_pdf(body: ExportRequest) -> Response:
    """Render a document as a paginated A4 PDF."""
    return Response(
        content=render_pdf(_payload(body)),
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="ocr.pdf"'},
    )
