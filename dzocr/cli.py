"""Command-line interface for correcting, extracting and batch-processing
Algerian legal documents.

Subcommands:
    correct   correct OCR text from a file or stdin
    detect    report the language of a text
    extract   OCR one document and map it onto a form (JSON output)
    batch     process a folder of documents into a CSV file
    serve     run the HTTP API
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

import uvicorn

from dzocr.api.app import app
from dzocr.correction.pipeline import TextCorrector
from dzocr.extraction.legal_entities import LegalEntityExtractor
from dzocr.language.detector import select_ocr_profile
from dzocr.mapping.mapper import FieldMapper, build_mapper
from dzocr.ocr.document_processor import SUPPORTED_EXTENSIONS, DocumentProcessor
from dzocr.utils.config import AppConfig, load_config
from dzocr.utils.logger import get_logger, setup_logging
from dzocr.validation.review import MappingReviewer
from dzocr.validation.rules_engine import RulesEngine

logger = get_logger(__name__)

_META_COLUMNS = [
    "filename",
    "status",
    "page_count",
    "language",
    "document_type",
    "processing_time_s",
    "overall_confidence",
    "review_score",
    "ready_for_approval",
    "validation_passed",
    "error",
]


class _Pipeline:
    """Components needed to turn a document into a reviewed form mapping."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.corrector = TextCorrector(config.correction, config.language)
        self.processor = DocumentProcessor(config, corrector=self.corrector)
        self.extractor = LegalEntityExtractor(detector=self.corrector.detector)
        self.mapper: FieldMapper = build_mapper(config.mapping)
        self.rules_engine = RulesEngine(Path(config.validation.rules_path))
        self.reviewer = MappingReviewer(
            confidence_threshold=config.validation.confidence_threshold,
            approval_score=config.validation.approval_score,
        )

    def run(self, file_path: Path, form_id: str | None) -> dict[str, object]:
        """OCR, extract, map, validate and review one document."""
        doc_result = self.processor.process(file_path, file_path.name)
        text = doc_result.combined_text
        publication = self.extractor.extract(text)
        mapping = self.mapper.map(publication, form_id)

        rules_key = (
            publication.document_type
            if mapping.form_id == self.config.mapping.default_form
            else mapping.form_id
        )
        validation = self.rules_engine.validate(
            mapping.as_dict(), rules_key, mapping.confidences()
        )
        review = self.reviewer.review(mapping, text)

        return {
            "filename": file_path.name,
            "page_count": doc_result.page_count,
            "failed_pages": doc_result.failed_pages,
            "language": doc_result.language.to_dict(),
            "publication": publication.to_dict(),
            "form_id": mapping.form_id,
            "fields": {
                f.name: {
                    "value": f.value,
                    "confidence": f.confidence,
                    "source": f.source,
                    "status": f.validation_status,
                }
                for f in mapping.fields
            },
            "overall_confidence": round(mapping.overall_confidence, 3),
            "validation_passed": validation.all_valid,
            "review": review.to_dict(),
            "corrected_text": text,
        }


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _find_documents(input_dir: Path) -> list[Path]:
    """Supported document files in a directory, sorted by name."""
    return sorted(
        p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
    )


def correct_text(text: str, config: AppConfig, as_json: bool = False) -> str:
    """Correct OCR text and format the output.

    Args:
        text: Raw OCR text.
        config: Application configuration.
        as_json: Return the full correction report as JSON.

    Returns:
        Corrected text, or the JSON report.
    """
    result = TextCorrector(config.correction, config.language).correct(text)
    if as_json:
        return json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
    return result.corrected_text


def detect_text_language(text: str, config: AppConfig) -> dict[str, object]:
    corrector = TextCorrector(config.correction, config.language)
    report = corrector.detector.detect(text).to_dict()
    report["ocr_profile"] = select_ocr_profile(text)
    return report


def process_folder(
    input_dir: Path,
    output_csv: Path,
    config: AppConfig,
    form_id: str | None = None,
    verbose: bool = False,
) -> dict[str, int]:
    """Process all documents in a folder and export results to CSV.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        config: Application configuration.
        form_id: Target form; matched per document when ``None``.
        verbose: Print per-file progress.

    Returns:
        Summary dict with total, successful and failed counts.
    """
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))
    pipeline = _Pipeline(config)

    rows: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            result = pipeline.run(file_path, form_id)
        except Exception as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            rows.append({"filename": file_path.name, "status": "failed", "error": str(exc)})
            failed += 1
            continue

        rows.append(_csv_row(result, time.time() - start_time))
        successful += 1

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _csv_row(result: dict[str, object], elapsed: float) -> dict[str, object]:
    review = result["review"]
    row: dict[str, object] = {
        "filename": result["filename"],
        "status": "success",
        "page_count": result["page_count"],
        "language": result["language"]["language"],
        "document_type": result["publication"]["document_type"],
        "processing_time_s": round(elapsed, 2),
        "overall_confidence": result["overall_confidence"],
        "review_score": review["score"],
        "ready_for_approval": review["ready_for_approval"],
        "validation_passed": result["validation_passed"],
        "error": None,
    }
    for name, mapped in result["fields"].items():
        row[name] = mapped["value"]
    return row


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write result rows, metadata columns first, then field columns."""
    if not rows:
        return

    all_keys: set[str] = set()
    for row in rows:
        all_keys.update(row.keys())

    field_columns = sorted(all_keys - set(_META_COLUMNS))
    columns = [c for c in _META_COLUMNS if c in all_keys] + field_columns

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def extract_single(
    file_path: Path, config: AppConfig, form_id: str | None = None
) -> dict[str, object]:
    """Process one document and return its structured result."""
    return _Pipeline(config).run(file_path, form_id)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dzocr",
        description="OCR correction and extraction for Algerian legal documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="Configuration YAML file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    correct_parser = subparsers.add_parser("correct", help="Correct OCR text")
    correct_parser.add_argument("source", help="Text file, or - for stdin")
    correct_parser.add_argument(
        "--json", action="store_true", help="Print the full correction report"
    )

    detect_parser = subparsers.add_parser("detect", help="Detect the language of a text")
    detect_parser.add_argument("source", help="Text file, or - for stdin")

    single_parser = subparsers.add_parser("extract", help="Process a single document")
    single_parser.add_argument("file", type=Path, help="Document file to process")
    single_parser.add_argument("-f", "--form", dest="form_id", help="Target form id")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with documents")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument("-f", "--form", dest="form_id", help="Target form id")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.command == "serve":
        setup_logging("DEBUG" if args.verbose else config.log_level)
        uvicorn.run(app, host=args.host, port=args.port)
        return

    # stdout carries command output, so only warnings are logged by default
    setup_logging("DEBUG" if args.verbose else "WARNING")

    if args.command in ("correct", "detect"):
        if args.source != "-" and not Path(args.source).exists():
            print(f"Error: {args.source} does not exist", file=sys.stderr)
            sys.exit(1)
        text = _read_text(args.source)
        if args.command == "correct":
            print(correct_text(text, config, as_json=args.json))
        else:
            print(json.dumps(detect_text_language(text, config), ensure_ascii=False, indent=2))

    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            result = extract_single(args.file, config, args.form_id)
        except KeyError as exc:
            print(f"Error: {exc.args[0]}", file=sys.stderr)
            sys.exit(1)
        output_str = json.dumps(result, ensure_ascii=False, indent=2)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str, encoding="utf-8")
            print(f"Output written to {args.output}")
        else:
            print(output_str)

    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, config, args.form_id, args.verbose)

    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
