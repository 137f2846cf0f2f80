from app.ocr.client import (  # noqa: F401
    OcrClient,
    TesseractOcrClient,
    VisionOcrClient,
    get_ocr_client,
)
from app.ocr.preprocess import preprocess_image  # noqa: F401
