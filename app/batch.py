"""
Directory orchestration: image files → OCR → receipts.

A failure on one image is logged and that image is skipped; only a missing
directory or an empty one stops the run.
"""
from __future__ import annotations

import logging
from pathlib import Path

from app.config import settings
from app.errors import DirectoryNotFound, NoImageFiles
from app.ocr import OcrClient, preprocess_image
from app.pipeline import process_text
from app.schemas import Receipt

logger = logging.getLogger(__name__)


def find_image_files(
    directory: str | Path, extensions: list[str] | None = None
) -> list[Path]:
    """Image files directly under *directory*, sorted by name."""
    root = Path(directory)
    if not root.is_dir():
        raise DirectoryNotFound(str(directory))

    allowed = {ext.lower() for ext in (extensions or settings.IMAGE_EXTENSIONS)}
    files = sorted(
        p for p in root.iterdir() if p.is_file() and p.suffix.lower() in allowed
    )
    if not files:
        raise NoImageFiles(str(directory))
    return files


def process_image(path: Path, ocr: OcrClient) -> Receipt:
    image_bytes = path.read_bytes()
    processed = preprocess_image(image_bytes)
    text = ocr.detect_text(processed)
    return process_text(text, path.stem)


def process_files(files: list[Path], ocr: OcrClient) -> list[Receipt]:
    receipts: list[Receipt] = []
    for path in files:
        logger.info("Processing: %s", path.name)
        try:
            receipt = process_image(path, ocr)
        except Exception:
            logger.exception("  Failed: %s", path.name)
            continue
        receipts.append(receipt)
        logger.info(
            "  OK: %s, %d円, %s", receipt.store_name, receipt.amount, receipt.date
        )

    logger.info("Parsed %d of %d images", len(receipts), len(files))
    return receipts


def process_directory(directory: str | Path, ocr: OcrClient) -> list[Receipt]:
    files = find_image_files(directory)
    logger.info("Processing %d image files in %s", len(files), directory)
    return process_files(files, ocr)
