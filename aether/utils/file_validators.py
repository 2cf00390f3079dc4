"""
File validation utilities for Aether.

Handles validation of uploaded prescriptions and scans including:
- File size limits
- File extension validation
- Content signature checks
- Corruption detection
"""

import io
from pathlib import Path
from typing import Optional

import pdfplumber
from PIL import Image

from aether.config import settings


class FileValidationError(Exception):
    """Raised when file validation fails."""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR"):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class FileValidator:
    """
    Validates uploaded files.

    Ensures files are:
    - Non-empty and within size limits
    - Have allowed extensions
    - Are not corrupt
    - Carry a signature matching their extension
    """

    MIN_IMAGE_DIMENSION = 50
    MAX_IMAGE_DIMENSION = 10000

    def __init__(self):
        self.max_file_size = settings.max_file_size_bytes
        self.pdf_extensions = settings.pdf_extensions
        self.image_extensions = settings.image_extensions

    def validate_file_size(self, file_content: bytes, filename: str) -> None:
        """
        Check that the file is non-empty and within size limits.

        Raises:
            FileValidationError: If the file is empty or too large
        """
        if not file_content:
            raise FileValidationError(
                f"File '{filename}' is empty",
                error_code="EMPTY_FILE"
            )
        if len(file_content) > self.max_file_size:
            raise FileValidationError(
                f"File '{filename}' exceeds maximum size of {settings.max_file_size_mb}MB",
                error_code="FILE_TOO_LARGE"
            )

    def validate_extension(self, filename: str, allowed_extensions: list[str]) -> None:
        """
        Check if file has an allowed extension.

        Raises:
            FileValidationError: If extension not allowed
        """
        ext = Path(filename).suffix.lower()
        if ext not in allowed_extensions:
            raise FileValidationError(
                f"File extension '{ext}' not allowed. "
                f"Allowed: {', '.join(allowed_extensions)}",
                error_code="INVALID_EXTENSION"
            )

    def detect_mime_type(self, file_content: bytes) -> str:
        """Detect the MIME type of file content using file signatures."""
        if file_content[:4] == b'%PDF':
            return 'application/pdf'
        if file_content[:8] == b'\x89PNG\r\n\x1a\n':
            return 'image/png'
        if file_content[:2] == b'\xff\xd8':
            return 'image/jpeg'
        if file_content[:4] == b'RIFF' and file_content[8:12] == b'WEBP':
            return 'image/webp'
        return 'application/octet-stream'

    def validate_pdf(self, file_content: bytes, filename: str) -> None:
        """
        Validate a PDF file.

        Raises:
            FileValidationError: If the PDF is invalid, corrupt or empty
        """
        self.validate_extension(filename, self.pdf_extensions)
        self.validate_file_size(file_content, filename)

        if self.detect_mime_type(file_content) != 'application/pdf':
            raise FileValidationError(
                f"File '{filename}' is not a valid PDF",
                error_code="INVALID_CONTENT"
            )

        try:
            with pdfplumber.open(io.BytesIO(file_content)) as pdf:
                page_count = len(pdf.pages)
        except Exception as e:
            raise FileValidationError(
                f"PDF validation failed: {e}",
                error_code="CORRUPT_FILE"
            ) from e

        if page_count == 0:
            raise FileValidationError("PDF has no pages", error_code="EMPTY_PDF")

    def validate_image(self, file_content: bytes, filename: str) -> None:
        """
        Validate an image file (X-ray, ultrasound, prescription scan).

        Raises:
            FileValidationError: If the image is invalid, corrupt or badly sized
        """
        self.validate_extension(filename, self.image_extensions)
        self.validate_file_size(file_content, filename)

        try:
            img = Image.open(io.BytesIO(file_content))
            img.verify()

            # verify() leaves the image unusable, reopen for dimensions
            width, height = Image.open(io.BytesIO(file_content)).size
        except Exception as e:
            raise FileValidationError(
                f"Image validation failed: {e}",
                error_code="CORRUPT_FILE"
            ) from e

        if width < self.MIN_IMAGE_DIMENSION or height < self.MIN_IMAGE_DIMENSION:
            raise FileValidationError(
                "Image dimensions too small for analysis",
                error_code="IMAGE_TOO_SMALL"
            )
        if width > self.MAX_IMAGE_DIMENSION or height > self.MAX_IMAGE_DIMENSION:
            raise FileValidationError(
                "Image dimensions too large",
                error_code="IMAGE_TOO_LARGE"
            )

    def get_file_type(self, filename: Optional[str]) -> str:
        """
        Determine the type of file based on extension.

        Returns:
            One of: 'pdf', 'image', 'unknown'
        """
        ext = Path(filename or "").suffix.lower()

        if ext in self.pdf_extensions:
            return 'pdf'
        if ext in self.image_extensions:
            return 'image'
        return 'unknown'

    def validate(
        self,
        file_content: bytes,
        filename: Optional[str],
        allowed_types: tuple[str, ...] = ("pdf", "image")
    ) -> str:
        """
        Validate any supported upload.

        Args:
            file_content: Raw file bytes
            filename: Original filename
            allowed_types: File types accepted by the caller

        Returns:
            The file type, 'pdf' or 'image'

        Raises:
            FileValidationError: If the file is unsupported or invalid
        """
        filename = filename or "upload"
        file_type = self.get_file_type(filename)

        if file_type not in allowed_types:
            raise FileValidationError(
                f"Unsupported file type: {filename}",
                error_code="UNSUPPORTED_FILE_TYPE"
            )

        if file_type == 'pdf':
            self.validate_pdf(file_content, filename)
        else:
            self.validate_image(file_content, filename)

        return file_type


# Singleton instance for easy access
file_validator = FileValidator()
