# answerfill/processors/image_embedder.py
"""
Image Embedder.

Checks the format tag and the format Pillow detects in the bytes, decodes the
image once (Pillow) to learn its pixel size and makes sure PyMuPDF can load
it. PyMuPDF embeds the original bytes when the image is drawn.
Placement and scaling are decided by the continuation manager.
"""

import io
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from PIL import Image, UnidentifiedImageError

from answerfill.models.types import ImageAsset, ImageFormat
from answerfill.services.exceptions import ImageDecodeError, UnsupportedImageFormatError
from .pdf_font_manager import _get_pymupdf

# Module logger
logger = logging.getLogger(__name__)


# Pillow format name -> embeddable format
_DETECTED_FORMATS = {
    "PNG": ImageFormat.PNG,
    "JPEG": ImageFormat.JPEG,
}


@dataclass(frozen=True)
class EmbeddedImage:
    """Decoded image ready to draw; width/height are its natural size in points."""
    data: bytes
    format: ImageFormat
    width: float
    height: float

    def scaled_to_fit(self, max_width: float, max_height: float) -> tuple[float, float]:
        """Natural size, shrunk (never enlarged) to fit the bounds, aspect ratio kept."""
        width, height = self.width, self.height
        if width > max_width or height > max_height:
            scale = min(max_width / width, max_height / height)
            width, height = width * scale, height * scale
        return width, height


class ImageEmbedder:
    """Decodes PNG/JPEG assets."""

    def decode(self, asset: ImageAsset) -> EmbeddedImage:
        """
        Decode one asset.

        The bytes decide the format: a JPEG tagged "png" is embedded as JPEG,
        while data of any other kind is rejected whatever its tag says.

        Raises:
            UnsupportedImageFormatError: tag or detected format is not PNG/JPEG
            ImageDecodeError: bytes cannot be decoded or have no area
        """
        if asset.format is None:
            raise UnsupportedImageFormatError(asset.format_tag)

        try:
            with Image.open(io.BytesIO(asset.data)) as img:
                detected = img.format
                img.verify()
                width, height = (float(v) for v in img.size)
        except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
            raise ImageDecodeError(f"Could not decode {asset.format.value} image: {e}") from e

        image_format = _DETECTED_FORMATS.get(detected or "")
        if image_format is None:
            raise UnsupportedImageFormatError(detected or "unknown")

        if width <= 0 or height <= 0:
            raise ImageDecodeError(f"Image has no area ({width:.0f}x{height:.0f})")

        self._check_drawable(asset.data, image_format)
        return EmbeddedImage(data=asset.data, format=image_format, width=width, height=height)

    @staticmethod
    def _check_drawable(data: bytes, image_format: ImageFormat) -> None:
        """Load the bytes the way PyMuPDF will when drawing them."""
        pymupdf = _get_pymupdf()
        try:
            pymupdf.Pixmap(data)
        except Exception as e:
            # Also catches PyMuPDF-specific exceptions (mupdf.FzErrorFormat, etc.),
            # which don't inherit from standard exception types
            raise ImageDecodeError(f"PyMuPDF cannot load {image_format.value} image: {e}") from e

    def embed(self, asset: ImageAsset) -> Optional[EmbeddedImage]:
        """Decode ``asset``; log a warning and return None if it cannot be used."""
        try:
            return self.decode(asset)
        except UnsupportedImageFormatError as e:
            logger.warning("Skipping image: %s", e)
        except ImageDecodeError as e:
            logger.warning("Could not embed image: %s", e)
        return None

    def embed_all(self, assets: Iterable[ImageAsset]) -> list[EmbeddedImage]:
        """Embeddable images of ``assets``, in their original order."""
        embedded = []
        for asset in assets:
            image = self.embed(asset)
            if image is not None:
                embedded.append(image)
        return embedded
