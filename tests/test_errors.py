"""
Tests for the custom exception hierarchy.
"""

import pytest

from kmzview.core.errors import (
    ArchiveError,
    ConfigurationError,
    FileTooLargeError,
    KmzViewException,
    LoadError,
    NoRootDocumentError,
    ParseError,
    StorageError,
    ValidationError,
)


class TestKmzViewException:
    """Tests for the base exception."""

    def test_basic_exception(self):
        exc = KmzViewException(message="Something broke", error_code="BROKEN")

        assert exc.message == "Something broke"
        assert exc.error_code == "BROKEN"
        assert exc.status_code == 500
        assert exc.details == {}
        assert exc.suggestions == []
        assert str(exc) == "BROKEN: Something broke"

    def test_to_dict(self):
        exc = KmzViewException(
            message="Bad",
            error_code="BAD",
            status_code=400,
            details={"x": 1},
            suggestions=["fix it"],
        )

        assert exc.to_dict() == {
            "error_code": "BAD",
            "message": "Bad",
            "details": {"x": 1},
            "suggestions": ["fix it"],
        }

    def test_repr(self):
        exc = KmzViewException(message="Bad", error_code="BAD", status_code=400)
        assert repr(exc) == (
            "KmzViewException(error_code='BAD', message='Bad', status_code=400)"
        )


class TestSubclasses:
    """Tests for the specific exceptions."""

    def test_validation_error_with_field(self):
        exc = ValidationError("Invalid", field="file")

        assert exc.status_code == 400
        assert exc.error_code == "VALIDATION_ERROR"
        assert exc.details == {"field": "file"}

    def test_file_too_large(self):
        exc = FileTooLargeError(file_size=3 * 1024 * 1024, max_size=1024 * 1024)

        assert isinstance(exc, ValidationError)
        assert exc.status_code == 413
        assert exc.error_code == "FILE_TOO_LARGE"
        assert exc.details["max_size"] == 1024 * 1024
        assert "3.00MB" in exc.message

    def test_archive_error(self):
        exc = ArchiveError("Invalid KMZ file")
        assert exc.status_code == 422
        assert exc.suggestions

    def test_no_root_document_default_message(self):
        exc = NoRootDocumentError()
        assert exc.message == "No KML file found in the KMZ archive."
        assert exc.status_code == 422

    def test_parse_error_details(self):
        exc = ParseError("Bad XML", path="doc.kml", line_number=7)

        assert exc.details == {"path": "doc.kml", "line_number": 7}
        assert exc.error_code == "PARSE_ERROR"

    def test_load_error_default_message(self):
        exc = LoadError()
        assert exc.message == "Failed to process KMZ file."
        assert exc.error_code == "LOAD_FAILED"

    def test_storage_error_details(self):
        exc = StorageError("Disk full", operation="save", file_path="/tmp/x")
        assert exc.details == {"operation": "save", "file_path": "/tmp/x"}

    def test_configuration_error(self):
        exc = ConfigurationError("Missing", config_key="KMZVIEW_PORT")
        assert exc.details == {"config_key": "KMZVIEW_PORT"}

    @pytest.mark.parametrize(
        "exc",
        [
            ValidationError("x"),
            ArchiveError("x"),
            NoRootDocumentError(),
            ParseError("x"),
            LoadError(),
            StorageError("x"),
            ConfigurationError("x"),
        ],
    )
    def test_all_inherit_from_base(self, exc):
        assert isinstance(exc, KmzViewException)
