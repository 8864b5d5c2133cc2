"""
File upload API endpoint.

Stores any uploaded file in the upload directory under its original name
and answers in plain text.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, UploadFile, status
from fastapi.responses import PlainTextResponse

from kmzview.core.config import settings
from kmzview.core.errors import FileTooLargeError, StorageError
from kmzview.core.storage import storage_service
from kmzview.core.validation import validate_filename
from kmzview.models.errors import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["upload"])

UPLOAD_SUCCESS_MESSAGE = "File uploaded successfully."
UPLOAD_FAILURE_MESSAGE = "File processing error."


@router.post(
    "/upload",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid filename"},
        413: {"model": ErrorResponse, "description": "File too large"},
        500: {"description": "The file could not be stored"},
    },
    summary="Upload a file",
    description=(
        "Store a file in the server upload directory under its original name. "
        f"Maximum file size: {settings.max_upload_size_mb}MB."
    ),
)
async def upload_file(
    file: Annotated[UploadFile, File(description="File to upload")],
) -> PlainTextResponse:
    """
    Upload a file.

    An existing upload with the same name is replaced.

    Args:
        file: The uploaded file (multipart/form-data field ``file``)

    Returns:
        Plain-text confirmation, or a plain-text 500 if the file could not be stored

    Raises:
        ValidationError: If the filename is missing or contains path components
        FileTooLargeError: If the file exceeds the configured size limit
    """
    logger.info(f"Received upload request for file: {file.filename}")

    filename = validate_filename(file.filename)

    file_content = await file.read()
    if len(file_content) > settings.max_upload_size_bytes:
        raise FileTooLargeError(len(file_content), settings.max_upload_size_bytes)

    try:
        await storage_service.save_file(file_content, filename)
    except StorageError as e:
        logger.error(f"Upload of {filename} failed: {e}")
        return PlainTextResponse(
            UPLOAD_FAILURE_MESSAGE,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return PlainTextResponse(UPLOAD_SUCCESS_MESSAGE)
