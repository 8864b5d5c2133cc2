"""
File validation utilities for upload and viewer requests.
"""

import logging
from pathlib import Path
from typing import Optional

from kmzview.core.errors import FileTooLargeError, ValidationError

logger = logging.getLogger(__name__)


# KMZ files are zip archives
MAGIC_NUMBERS = {
    ".kmz": [b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08"],
}

KMZ_EXTENSIONS = (".kmz",)


def validate_filename(filename: Optional[str]) -> str:
    """
    Validate an uploaded filename before it is used as a storage name.

    Args:
        filename: Filename sent by the client

    Returns:
        The filename, unchanged

    Raises:
        ValidationError: If the name is empty or could escape the upload directory
    """
    if not filename or not filename.strip():
        raise ValidationError("Filename is required", field="file")

    if "/" in filename or "\\" in filename or ".." in filename:
        raise ValidationError(
            f"Invalid filename: {filename!r}",
            field="file",
            suggestions=["Upload the file under a plain name without path components"],
        )

    return filename


def validate_file_extension(filename: str, allowed_extensions: tuple[str, ...]) -> str:
    """
    Validate that the file has an allowed extension.

    Args:
        filename: The name of the file to validate
        allowed_extensions: Tuple of allowed file extensions (with dots)

    Returns:
        The lowercase file extension (with dot)

    Raises:
        ValidationError: If the file extension is not allowed
    """
    extension = Path(filename).suffix.lower()

    if not extension:
        raise ValidationError("File has no extension", field="file")

    if extension not in allowed_extensions:
        raise ValidationError(
            f"File type '{extension}' not allowed. "
            f"Allowed types: {', '.join(allowed_extensions)}",
            field="file",
        )

    return extension


def validate_magic_number(file_content: bytes, extension: str) -> None:
    """
    Validate file content using magic number (file signature) detection.

    Args:
        file_content: The first bytes of the file
        extension: The file extension (with dot, lowercase)

    Raises:
        ValidationError: If magic number doesn't match expected file type
    """
    expected_signatures = MAGIC_NUMBERS.get(extension, [])

    if not expected_signatures:
        logger.warning(f"No magic number validation available for {extension}")
        return

    for signature in expected_signatures:
        if file_content.startswith(signature):
            return

    raise ValidationError(
        f"File content does not match expected format for '{extension}' files. "
        f"File may be corrupted or mislabeled.",
        field="file",
    )


def validate_file_size(file_size: int, max_size_bytes: int) -> None:
    """
    Validate that the file size is within allowed limits.

    Args:
        file_size: Size of the file in bytes
        max_size_bytes: Maximum allowed size in bytes

    Raises:
        ValidationError: If the file is empty
        FileTooLargeError: If the file is too large
    """
    if file_size <= 0:
        raise ValidationError("File is empty", field="file")

    if file_size > max_size_bytes:
        raise FileTooLargeError(file_size, max_size_bytes)


def validate_kmz_upload(filename: Optional[str], content: bytes, max_size_bytes: int) -> str:
    """
    Run every check a KMZ sent to the viewer endpoints must pass.

    Returns:
        The validated filename
    """
    filename = validate_filename(filename)
    extension = validate_file_extension(filename, KMZ_EXTENSIONS)
    validate_file_size(len(content), max_size_bytes)
    validate_magic_number(content, extension)
    return filename
