#!/usr/bin/env python
"""
Command-line interface for the PDF layout reconstruction engine.

Usage:
    pdfrecon --input <pdf> --output <output_dir> [options]

Examples:
    # Reconstruct a PDF as HTML and JSON
    pdfrecon --input report.pdf --output ./output

    # All formats, first three pages only
    pdfrecon --input report.pdf --output ./output --format all --pages 1-3
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List

from . import __version__

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("pdfrecon")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INPUT_REJECTED = 2
EXIT_NO_CONTENT = 3
EXIT_INTERRUPTED = 130


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="pdfrecon",
        description="PDF layout reconstruction - rebuild headings, lists, tables and images as markup",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Reconstruct a PDF as HTML and JSON:
    pdfrecon --input report.pdf --output ./output

  Export every format:
    pdfrecon --input report.pdf --output ./output --format all

  Process only specific pages:
    pdfrecon --input report.pdf --output ./output --pages 1-3,5
        """
    )

    # Required arguments
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input PDF file"
    )

    parser.add_argument(
        "--output", "-o",
        required=True,
        help="Output directory for generated files"
    )

    # Optional arguments
    parser.add_argument(
        "--format", "-f",
        nargs="+",
        default=["html", "json"],
        choices=["html", "markdown", "json", "all"],
        help="Output format(s) (default: html json)"
    )

    parser.add_argument(
        "--pages",
        type=str,
        default=None,
        help="Page range to process, e.g., '1-5' or '1,3,5' (default: all)"
    )

    parser.add_argument(
        "--max-size-mb",
        type=float,
        default=None,
        help="Maximum input size in MB (default: 50)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (tracebacks for page failures)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def parse_page_range(page_str: str, max_pages: int) -> List[int]:
    """
    Parse a page range string like '1-3,5' into sorted page numbers.

    Pages beyond max_pages are dropped.

    Raises:
        ValueError: If a part is not a number or a start-end range
    """
    pages = set()

    for part in page_str.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start_str, end_str = part.split("-", 1)
            start, end = int(start_str), int(end_str)
            if start < 1 or end < start:
                raise ValueError(f"Invalid page range: {part}")
            pages.update(range(start, min(end, max_pages) + 1))
        else:
            page = int(part)
            if page < 1:
                raise ValueError(f"Invalid page number: {part}")
            if page <= max_pages:
                pages.add(page)

    return sorted(pages)


def check_dependencies() -> bool:
    """Check if required dependencies are available."""
    missing = []

    try:
        import cv2  # noqa: F401
    except ImportError:
        missing.append("opencv-python-headless")

    try:
        import numpy  # noqa: F401
    except ImportError:
        missing.append("numpy")

    try:
        import fitz  # noqa: F401
    except ImportError:
        missing.append("PyMuPDF")

    try:
        import pdf2image  # noqa: F401
    except ImportError:
        missing.append("pdf2image")

    if missing:
        logger.error("Missing required dependencies:")
        for dep in missing:
            logger.error(f"  - {dep}")
        logger.error("\nInstall with: pip install -e .")
        return False

    return True


def run_pipeline(args) -> int:
    """Run the reconstruction pipeline."""
    from .config import get_config
    from .exceptions import InputRejectedError, NoExtractableContentError
    from .utils.assembler import DocumentAssembler
    from .utils.export import DocumentExporter
    from .utils.io import detect_input_type, ensure_dir, read_input
    from .utils.pdf_source import open_source

    start_time = time.time()

    config = get_config()
    if args.max_size_mb is not None:
        config.max_input_bytes = int(args.max_size_mb * 1024 * 1024)
    if args.debug:
        config.debug_mode = True

    input_path = Path(args.input)
    input_type = detect_input_type(input_path)
    logger.info(f"Input type detected: {input_type}")

    if input_type != "pdf":
        logger.error(f"Unsupported input: {input_path}")
        return EXIT_INPUT_REJECTED

    try:
        data = read_input(input_path, config.max_input_bytes)
        source = open_source(data, config)
    except InputRejectedError as e:
        logger.error(f"Input rejected: {e}")
        return EXIT_INPUT_REJECTED

    with source:
        pages = None
        if args.pages:
            try:
                pages = parse_page_range(args.pages, source.page_count)
            except ValueError as e:
                logger.error(f"Invalid --pages value: {e}")
                return EXIT_FAILURE
            logger.info(f"Processing pages: {pages}")

        assembler = DocumentAssembler(config)

        logger.info("Processing document...")
        try:
            document = assembler.process_document(
                source,
                source_file=str(input_path),
                pages=pages
            )
        except NoExtractableContentError as e:
            logger.error(str(e))
            return EXIT_NO_CONTENT

    # Export to requested formats
    output_dir = ensure_dir(args.output)
    exporter = DocumentExporter(output_dir, input_path.stem, config.export)
    export_results = exporter.export(document, args.format)

    # Print summary
    elapsed = time.time() - start_time
    metrics = document.metrics

    if not args.quiet:
        print("\n" + "=" * 60)
        print("LAYOUT RECONSTRUCTION COMPLETE")
        print("=" * 60)
        print(f"Source: {input_path}")
        print(f"Output: {output_dir}")
        print(f"Pages processed: {metrics.pages_processed}/{metrics.pages_total} "
              f"(failed: {metrics.pages_failed}, rasterized: {metrics.pages_rasterized})")
        print(f"Processing time: {elapsed:.2f}s")
        print()
        print("Blocks:")
        print(f"  Headings: {metrics.headings}")
        print(f"  Paragraphs: {metrics.paragraphs}")
        print(f"  List items: {metrics.list_items}")
        print(f"  Tables: {metrics.tables}")
        print(f"  Images: {metrics.images} (dropped: {metrics.images_dropped})")
        print()
        for fmt, path in export_results.items():
            print(f"  {fmt}: {path}")
        print("=" * 60)

    return EXIT_OK


def main(argv=None):
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args(argv)

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    if not check_dependencies():
        sys.exit(EXIT_FAILURE)

    try:
        exit_code = run_pipeline(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.debug:
            raise
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
