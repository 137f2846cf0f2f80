"""
Receipt photo preprocessing before OCR.

Applies EXIF-based rotation, grayscale, contrast normalisation and
sharpening. An image Pillow cannot decode is passed through unchanged so
the OCR service still gets a chance to read it.
"""
import io
import logging

from PIL import Image, ImageFilter, ImageOps

logger = logging.getLogger(__name__)


def preprocess_image(image_bytes: bytes) -> bytes:
    """Return PNG bytes of the corrected image, or *image_bytes* on failure."""
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image = ImageOps.exif_transpose(image)
        image = ImageOps.grayscale(image)
        image = ImageOps.autocontrast(image)
        image = image.filter(ImageFilter.SHARPEN)

        output = io.BytesIO()
        image.save(output, format="PNG")
        return output.getvalue()
    except (OSError, ValueError) as e:  # UnidentifiedImageError is an OSError
        logger.warning("Image preprocessing failed, using original: %s", e)
        return image_bytes
