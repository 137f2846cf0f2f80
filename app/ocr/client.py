"""
OCR clients.

Each client turns an image buffer into a single unstructured text block,
or ``None`` when nothing was detected. Service failures raise
:class:`~app.errors.OcrError`.

Vision:    pip install google-cloud-vision   (uses application default credentials)
Tesseract: sudo apt install tesseract-ocr tesseract-ocr-jpn
"""
from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from typing import Optional

from app.config import settings
from app.errors import OcrError

logger = logging.getLogger(__name__)


class OcrClient(ABC):
    @abstractmethod
    def detect_text(self, image_bytes: bytes) -> Optional[str]:
        """Return the full detected text, or ``None`` when there is none."""


class VisionOcrClient(OcrClient):
    """Google Cloud Vision ``text_detection``."""

    def __init__(self, language_hints: list[str] | None = None):
        from google.cloud import vision

        self._vision = vision
        self._client = vision.ImageAnnotatorClient()
        self._language_hints = language_hints or settings.OCR_LANGUAGE_HINTS

    def detect_text(self, image_bytes: bytes) -> Optional[str]:
        response = self._client.text_detection(
            image=self._vision.Image(content=image_bytes),
            image_context={"language_hints": self._language_hints},
        )
        if response.error.message:
            raise OcrError(f"Vision API error: {response.error.message}")

        annotations = response.text_annotations
        if not annotations:
            return None
        # The first annotation holds the full detected text
        return annotations[0].description or None


class TesseractOcrClient(OcrClient):
    """Local OCR via Tesseract."""

    def __init__(self, lang: str | None = None):
        import pytesseract

        self._pytesseract = pytesseract
        self._lang = lang or settings.TESSERACT_LANG

    def detect_text(self, image_bytes: bytes) -> Optional[str]:
        from PIL import Image

        image = Image.open(io.BytesIO(image_bytes))
        try:
            text = self._pytesseract.image_to_string(image, lang=self._lang)
        except self._pytesseract.TesseractError as e:
            raise OcrError(f"Tesseract error: {e}") from e
        return text if text.strip() else None


OCR_PROVIDERS = {
    "vision": VisionOcrClient,
    "tesseract": TesseractOcrClient,
}


def get_ocr_client(provider: str | None = None) -> OcrClient:
    provider = provider or settings.OCR_PROVIDER
    if provider not in OCR_PROVIDERS:
        raise ValueError(f"Unknown OCR provider: {provider}")
    logger.info("Using OCR provider: %s", provider)
    return OCR_PROVIDERS[provider]()
