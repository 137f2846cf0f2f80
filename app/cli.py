"""
Batch command-line driver.

Usage:
    receipt-extract --dir ./receipts --output ./output/receipts_data --format csv
    python -m app.cli -d ./receipts -f accounting --ocr tesseract
"""
from __future__ import annotations

import argparse
import logging
import sys

from app.batch import find_image_files, process_files
from app.config import settings
from app.errors import ReceiptError
from app.exporters import EXPORT_FORMATS, save_receipts
from app.ocr import get_ocr_client

logger = logging.getLogger("app.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract structured data from receipt images"
    )
    parser.add_argument(
        "--dir", "-d", dest="directory", default=settings.RECEIPTS_DIR,
        help="Directory containing receipt images",
    )
    parser.add_argument(
        "--output", "-o", default=settings.OUTPUT_PATH,
        help="Output path without extension",
    )
    parser.add_argument(
        "--format", "-f", dest="fmt", choices=EXPORT_FORMATS,
        default=settings.OUTPUT_FORMAT,
    )
    parser.add_argument(
        "--ocr", choices=["vision", "tesseract"], default=settings.OCR_PROVIDER,
        help="OCR provider",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s  %(name)-30s  %(levelname)-5s  %(message)s",
    )

    logger.info("Processing directory: %s", args.directory)
    try:
        files = find_image_files(args.directory)
        logger.info("Found %d image files", len(files))
        receipts = process_files(files, get_ocr_client(args.ocr))
    except ReceiptError as e:
        logger.error("%s", e.message)
        return 1
    except Exception:
        logger.exception("Run failed")
        return 1

    if not receipts:
        logger.warning("No receipts were processed")
        return 0

    path = save_receipts(receipts, args.output, args.fmt)
    logger.info("Done: %d receipts written to %s", len(receipts), path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
