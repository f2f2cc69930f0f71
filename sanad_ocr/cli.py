"""Command-line interface for cover-sheet extraction and CSV export.

Provides subcommands for extracting a single image to JSON and for
processing folders of scanned cover sheets into a CSV summary.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from sanad_ocr.ocr.document_processor import DocumentProcessor
from sanad_ocr.utils.config import load_config
from sanad_ocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg")
_CSV_COLUMNS = [
    "filename",
    "status",
    "doc_number",
    "doc_date",
    "description",
    "row_count",
    "total_debit",
    "total_credit",
    "is_balanced",
    "processing_time_s",
    "error",
]


def _find_images(input_dir: Path) -> list[Path]:
    """Find all supported image files in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of image paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def process_folder(
    input_dir: Path,
    output_csv: Path,
    timeout: float | None = None,
    verbose: bool = False,
) -> dict[str, int]:
    """Process all cover-sheet images in a folder and export a CSV summary.

    Args:
        input_dir: Directory containing images.
        output_csv: Path for the output CSV file.
        timeout: Per-image OCR time limit in seconds.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    config = load_config()
    processor = DocumentProcessor(config)

    files = _find_images(input_dir)
    if not files:
        logger.warning("No images found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d images to process", len(files))

    results: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            result = _summarize(file_path, processor, timeout)
            result["processing_time_s"] = round(time.time() - start_time, 2)
            results.append(result)
            successful += 1
        except Exception as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            results.append(
                {
                    "filename": file_path.name,
                    "status": "failed",
                    "error": str(exc),
                }
            )
            failed += 1

    _write_csv(results, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _summarize(
    file_path: Path, processor: DocumentProcessor, timeout: float | None
) -> dict[str, object]:
    """Extract one image and flatten the result into a CSV line.

    Args:
        file_path: Path to the image.
        processor: Document processor instance.
        timeout: OCR time limit in seconds.

    Returns:
        Dictionary keyed by CSV column.
    """
    extraction = processor.process(file_path, timeout=timeout)
    return {
        "filename": file_path.name,
        "status": "success",
        "doc_number": extraction.doc_number,
        "doc_date": extraction.doc_date,
        "description": extraction.description,
        "row_count": len(extraction.table_rows),
        "total_debit": extraction.total_debit,
        "total_credit": extraction.total_credit,
        "is_balanced": extraction.is_balanced,
        "error": None,
    }


def _write_csv(results: list[dict[str, object]], output_path: Path) -> None:
    """Write extraction summaries to a UTF-8 CSV file.

    Args:
        results: List of result dictionaries.
        output_path: Path for the output CSV file.
    """
    if not results:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8-sig") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch processing summary to stdout.

    Args:
        summary: Counts of total, successful, and failed images.
        output_csv: Path to the output CSV.
    """
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def extract_single(file_path: Path, timeout: float | None = None) -> dict[str, object]:
    """Process a single image and return the result as plain data.

    Args:
        file_path: Path to the image.
        timeout: OCR time limit in seconds.

    Returns:
        Dictionary with the filename and every extracted field.
    """
    config = load_config()
    processor = DocumentProcessor(config)
    extraction = processor.process(file_path, timeout=timeout)
    return {"filename": file_path.name, **extraction.to_dict()}


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Accounting cover-sheet OCR",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--log-file", type=Path, help="Also write log records to this file"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of images")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with images")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "--timeout", type=float, help="Per-image OCR time limit in seconds"
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    single_parser = subparsers.add_parser("extract", help="Process a single image")
    single_parser.add_argument("file", type=Path, help="Image file to process")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    single_parser.add_argument(
        "--timeout", type=float, help="OCR time limit in seconds"
    )

    args = parser.parse_args(argv)

    config = load_config()
    setup_logging(config.log_level, log_file=args.log_file)

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, args.timeout, args.verbose)
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        result = extract_single(args.file, args.timeout)
        output_str = json.dumps(result, indent=2, ensure_ascii=False)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str, encoding="utf-8")
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
