"""
Image preparation for Aether.

Turns uploaded X-rays, ultrasound scans and prescription scans (images or
PDFs) into a compact JPEG attachment for the vision model.
"""

import io
from dataclasses import dataclass

import pdfplumber
from PIL import Image

from aether.config import settings
from aether.utils.logger import get_logger

logger = get_logger("image_processor")


@dataclass(frozen=True)
class ImageAttachment:
    """Encoded image sent alongside a prompt."""

    data: bytes
    mime_type: str = "image/jpeg"
    width: int = 0
    height: int = 0


class ImageProcessor:
    """
    Prepares images for the vision model.

    Handles:
    - Loading from bytes
    - Conversion to RGB
    - Downscaling to the configured maximum dimension
    - Rendering the first page of a PDF
    """

    JPEG_QUALITY = 90

    def __init__(
        self,
        max_dimension: int = settings.max_image_dimension,
        pdf_resolution: int = settings.pdf_render_resolution
    ):
        self.max_dimension = max_dimension
        self.pdf_resolution = pdf_resolution

    def prepare_image(self, content: bytes) -> ImageAttachment:
        """
        Load an uploaded image and encode it as JPEG.

        Args:
            content: Raw image bytes

        Returns:
            ImageAttachment
        """
        with Image.open(io.BytesIO(content)) as image:
            original_size = image.size
            attachment = self._encode(image)

        logger.info(
            "Image prepared",
            original_size=original_size,
            size=(attachment.width, attachment.height),
            bytes=len(attachment.data)
        )
        return attachment

    def render_pdf(self, content: bytes) -> ImageAttachment:
        """
        Render the first page of a PDF and encode it as JPEG.

        Args:
            content: Raw PDF bytes

        Returns:
            ImageAttachment
        """
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            page = pdf.pages[0]
            rendered = page.to_image(resolution=self.pdf_resolution).original
            attachment = self._encode(rendered)

        logger.info(
            "PDF page rendered",
            resolution=self.pdf_resolution,
            size=(attachment.width, attachment.height)
        )
        return attachment

    def prepare(self, content: bytes, file_type: str) -> ImageAttachment:
        """Prepare an upload already classified as 'pdf' or 'image'."""
        if file_type == "pdf":
            return self.render_pdf(content)
        return self.prepare_image(content)

    def _encode(self, image: Image.Image) -> ImageAttachment:
        if image.mode != "RGB":
            image = image.convert("RGB")

        if max(image.size) > self.max_dimension:
            image = image.copy()
            image.thumbnail((self.max_dimension, self.max_dimension), Image.Resampling.LANCZOS)

        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=self.JPEG_QUALITY)
        return ImageAttachment(
            data=buffer.getvalue(),
            mime_type="image/jpeg",
            width=image.width,
            height=image.height
        )


# Singleton instance
image_processor = ImageProcessor()
