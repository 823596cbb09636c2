"""Command-line interface for scanning document photos.

Provides subcommands to scan a single photo, batch-process a folder into
CSV, search the document store, and manage the local history.
"""

import argparse
import csv
import json
import sys
import time
from dataclasses import asdict
from datetime import date
from pathlib import Path

from docscan.errors import DocScanError
from docscan.pipeline import DocumentPipeline, DocumentResult
from docscan.scanning.geometry import Quadrilateral, parse_corners
from docscan.storage.document_store import DocumentStore, StoredDocument
from docscan.storage.history import LocalHistory
from docscan.utils.config import AppConfig, load_config
from docscan.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.tiff", "*.tif", "*.webp", "*.bmp")
_CSV_COLUMNS = [
    "filename",
    "status",
    "title",
    "doc_type",
    "type_confidence",
    "scanned_found",
    "mean_confidence",
    "section_count",
    "processing_time_s",
    "error",
]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported image files in a directory.

    Args:
        input_dir: Directory to scan for images.

    Returns:
        Sorted list of image file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def result_to_dict(result: DocumentResult, threshold: float = 70.0) -> dict[str, object]:
    """Convert a pipeline result into a JSON-serializable dict.

    Args:
        result: Pipeline output.
        threshold: Words below this confidence are listed per line.

    Returns:
        Dictionary with text, sections, lines and classification.
    """
    return {
        "filename": result.source_file,
        "title": result.title,
        "doc_type": result.doc_type.value,
        "type_confidence": result.type_confidence.value,
        "scanned_found": result.scanned_found,
        "scan_outcome": result.scan_outcome.value,
        "mean_confidence": result.mean_confidence,
        "sections": [asdict(s) for s in result.sections],
        "lines": [
            {
                "text": line.text,
                "mean_confidence": round(line.mean_confidence, 1),
                "low_confidence_words": [
                    w.text for w in line.low_confidence_words(threshold)
                ],
            }
            for line in result.lines
        ],
        "raw_text": result.raw_text,
    }


def scan_single(
    file_path: Path,
    config: AppConfig,
    save: bool = False,
    corners: Quadrilateral | None = None,
) -> dict[str, object]:
    """Process a single photo and return structured results.

    Args:
        file_path: Path to the image file.
        config: Application configuration.
        save: Whether to store the result and add it to the local history.
        corners: Manual crop corners. Skips automatic boundary detection.

    Returns:
        Result dictionary, see :func:`result_to_dict`.
    """
    pipeline = DocumentPipeline(config)
    result = pipeline.process(file_path, file_path.name, corners=corners)

    if save:
        if result.raw_text.strip():
            store = DocumentStore(config.storage.db_path)
            stored = store.insert(result.to_record())
            LocalHistory(config.storage.history_path).save(stored)
        else:
            logger.warning("Nothing recognized in %s, not saving", file_path.name)

    return result_to_dict(result, config.ocr.low_confidence_threshold)


def process_folder(
    input_dir: Path,
    output_csv: Path,
    config: AppConfig,
    verbose: bool = False,
) -> dict[str, int]:
    """Process all photos in a folder and export a summary CSV.

    Args:
        input_dir: Directory containing image files.
        output_csv: Path for the output CSV file.
        config: Application configuration.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    pipeline = DocumentPipeline(config)

    files = _find_documents(input_dir)
    if not files:
        logger.warning("No images found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d images to process", len(files))

    rows: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            result = pipeline.process(file_path, file_path.name)
        except DocScanError as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            rows.append({"filename": file_path.name, "status": "failed", "error": str(exc)})
            failed += 1
            continue

        rows.append(
            {
                "filename": file_path.name,
                "status": "success",
                "title": result.title,
                "doc_type": result.doc_type.value,
                "type_confidence": result.type_confidence.value,
                "scanned_found": result.scanned_found,
                "mean_confidence": result.mean_confidence,
                "section_count": len(result.sections),
                "processing_time_s": round(time.time() - start_time, 2),
                "error": None,
            }
        )
        successful += 1

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write batch results to a CSV file.

    Args:
        rows: List of result dictionaries.
        output_path: Path for the output CSV file.
    """
    if not rows:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _corners_arg(value: str) -> Quadrilateral:
    try:
        return parse_corners(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def _print_documents(docs: list[StoredDocument]) -> None:
    if not docs:
        print("No saved documents.")
        return
    for doc in docs:
        print(
            f"{doc.created_at:%Y-%m-%d %H:%M}  {doc.id[:8]}  "
            f"[{doc.doc_type} | {doc.mean_confidence}%]  {doc.title}"
        )


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Document photo scanner and OCR",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    scan_parser = subparsers.add_parser("scan", help="Scan a single document photo")
    scan_parser.add_argument("file", type=Path, help="Image file to process")
    scan_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    scan_parser.add_argument(
        "--save", action="store_true", help="Store the result and add it to history"
    )
    scan_parser.add_argument(
        "--corners",
        type=_corners_arg,
        help="Manual crop as x1,y1,x2,y2,x3,y3,x4,y4 in image pixels",
    )

    batch_parser = subparsers.add_parser("batch", help="Process a folder of photos")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with images")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    search_parser = subparsers.add_parser("search", help="Search stored documents")
    search_parser.add_argument("-q", "--query", help="Text to search for")
    search_parser.add_argument(
        "--from", dest="date_from", type=date.fromisoformat, help="First day (YYYY-MM-DD)"
    )
    search_parser.add_argument(
        "--to", dest="date_to", type=date.fromisoformat, help="Last day (YYYY-MM-DD)"
    )

    history_parser = subparsers.add_parser("history", help="Manage local history")
    history_parser.add_argument("action", choices=["list", "clear"])

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "scan":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            result = scan_single(args.file, config, save=args.save, corners=args.corners)
        except DocScanError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        output_str = json.dumps(result, indent=2)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, config, args.verbose)
    elif args.command == "search":
        store = DocumentStore(config.storage.db_path)
        _print_documents(
            store.search(
                args.query, args.date_from, args.date_to, limit=config.storage.search_limit
            )
        )
    elif args.command == "history":
        history = LocalHistory(config.storage.history_path)
        if args.action == "clear":
            history.clear()
            print("Local history cleared.")
        else:
            _print_documents(history.list())
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
