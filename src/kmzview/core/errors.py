"""
Custom exception hierarchy for kmzview.

Only fatal, user-visible failures are raised. Per-link problems met while
walking a KMZ are reported as skip outcomes instead (see
``kmzview.core.kmz.outcomes``).
"""

from typing import Any, Dict, List, Optional


class KmzViewException(Exception):
    """
    Base exception for all kmzview-specific errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        status_code: HTTP status code for API responses
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for API responses.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"status_code={self.status_code})"
        )


class ValidationError(KmzViewException):
    """
    Raised when input validation fails.

    Maps to HTTP 400 Bad Request.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if field:
            error_details["field"] = field

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=error_details,
            suggestions=suggestions or ["Check the input format and try again"],
        )


class FileTooLargeError(ValidationError):
    """
    Raised when an uploaded file exceeds the configured size limit.

    Maps to HTTP 413 Request Entity Too Large.
    """

    def __init__(self, file_size: int, max_size: int):
        max_mb = max_size / (1024 * 1024)
        actual_mb = file_size / (1024 * 1024)
        super().__init__(
            message=(
                f"File size ({actual_mb:.2f}MB) exceeds maximum allowed size of {max_mb:.0f}MB"
            ),
            field="file",
            details={"file_size": file_size, "max_size": max_size},
            suggestions=["Upload a smaller file"],
        )
        self.error_code = "FILE_TOO_LARGE"
        self.status_code = 413


class ArchiveError(KmzViewException):
    """
    Raised when the uploaded bytes cannot be opened as a KMZ (zip) archive.

    Maps to HTTP 422 Unprocessable Entity.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        default_suggestions = [
            "Verify the file is a KMZ (zip) archive",
            "Re-export the file from Google Earth",
        ]

        super().__init__(
            message=message,
            error_code="ARCHIVE_ERROR",
            status_code=422,
            details=details,
            suggestions=suggestions or default_suggestions,
        )


class NoRootDocumentError(KmzViewException):
    """Raised when a KMZ archive holds no KML document at all."""

    def __init__(self, message: str = "No KML file found in the KMZ archive."):
        super().__init__(
            message=message,
            error_code="NO_KML_DOCUMENT",
            status_code=422,
            suggestions=["Make sure the archive contains a .kml document"],
        )


class ParseError(KmzViewException):
    """
    Raised when a KML document that must be readable is not well-formed XML.

    Maps to HTTP 422 Unprocessable Entity.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        line_number: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if path is not None:
            error_details["path"] = path
        if line_number:
            error_details["line_number"] = line_number

        default_suggestions = [
            "Check for XML syntax errors",
            "Try opening the file in Google Earth to validate it",
        ]

        super().__init__(
            message=message,
            error_code="PARSE_ERROR",
            status_code=422,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class LoadError(KmzViewException):
    """
    Generic failure of the top-level load-and-render sequence.

    Raised once at the session boundary for unexpected exceptions; the
    original exception is chained and logged.
    """

    def __init__(self, message: str = "Failed to process KMZ file."):
        super().__init__(
            message=message,
            error_code="LOAD_FAILED",
            status_code=500,
            suggestions=["Check the server log for details"],
        )


class StorageError(KmzViewException):
    """
    Raised when file storage operations fail.

    Maps to HTTP 500 Internal Server Error.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        file_path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        if file_path:
            error_details["file_path"] = file_path

        super().__init__(
            message=message,
            error_code="STORAGE_ERROR",
            status_code=500,
            details=error_details,
            suggestions=suggestions or ["Try uploading the file again"],
        )


class ConfigurationError(KmzViewException):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if config_key:
            error_details["config_key"] = config_key

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            details=error_details,
            suggestions=["Check environment variables are set correctly"],
        )
