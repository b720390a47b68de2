"""
Conversion Errors
=================

Exception hierarchy for the e-invoice rendering pipeline.

Exception Hierarchy:
    ConversionError (base)
    ├── ClassificationError      - input is not a supported XML dialect
    ├── UnknownLanguageError     - no label table for the requested language
    ├── TransformFailure         - structural or presentation XSLT failed
    └── ExportFailure            - PDF backend or artifact streaming failed

Every error carries a stable ``kind`` so the HTTP layer and the CLI can
translate it into a structured response without inspecting messages.
"""

from typing import Any, Dict, Optional


class ConversionError(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional context
    """

    kind = "exception"
    client_error = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Structured form used in API responses."""
        return {"error": "Exception", "kind": self.kind, "message": self.message}


class ClassificationError(ConversionError):
    """Raised when the root element matches none of the supported dialects."""

    kind = "unrecognized_format"
    client_error = True

    HINT = "Is it a UBL 2.1 or UN/CEFACT 2016b XML file or PDF you are trying to open?"

    def __init__(self, root_name: Optional[str] = None, reason: Optional[str] = None):
        details: Dict[str, Any] = {}
        if root_name is not None:
            details["root_element"] = root_name
        if reason:
            details["reason"] = reason
        super().__init__(self.HINT, details)
        self.root_name = root_name

    def to_dict(self) -> Dict[str, Any]:
        return {"error": "File format not recognized", "kind": self.kind, "message": self.message}


class UnknownLanguageError(ConversionError):
    """Raised when no label table exists for a language code."""

    kind = "unknown_language"
    client_error = True

    def __init__(self, language: str, available: Optional[list] = None):
        super().__init__(
            f"No translations available for language '{language}'",
            {"language": language, "available": available or []},
        )
        self.language = language

    def to_dict(self) -> Dict[str, Any]:
        return {"error": "Unsupported language", "kind": self.kind, "message": self.message}


class TransformFailure(ConversionError):
    """Raised when an XSLT transformation (structural or presentation) fails."""

    kind = "transform_failure"

    def __init__(self, message: str, stylesheet: Optional[str] = None):
        super().__init__(message, {"stylesheet": stylesheet} if stylesheet else None)
        self.stylesheet = stylesheet


class ExportFailure(ConversionError):
    """Raised when the PDF backend or the artifact delivery fails."""

    kind = "export_failure"
