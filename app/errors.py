"""
Error taxonomy for image- and run-level failures.

Field-level problems never surface here: extraction degrades to sentinel
or absent values instead.
"""
from __future__ import annotations


class ReceiptError(Exception):
    """Base exception for receipt processing failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class EmptyOcrResult(ReceiptError):
    """Raised when the OCR collaborator produced no text for an image."""

    def __init__(self, source_id: str | None = None):
        self.source_id = source_id
        label = source_id or "input"
        super().__init__(f"No text detected: {label}")


class OcrError(ReceiptError):
    """Raised when the OCR service itself reports a failure."""


class DirectoryNotFound(ReceiptError):
    """Raised when the configured input directory does not exist."""

    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(f"Directory not found: {directory}")


class NoImageFiles(ReceiptError):
    """Raised when the input directory holds no supported image files."""

    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(f"No image files found in: {directory}")
