"""
Custom Exceptions Module.

Exception Hierarchy:
    GuiasPagamentoError (base)
    ├── SourceError                      document could not be turned into text
    │   ├── DocumentNotFoundError
    │   ├── CorruptedFileError
    │   ├── RasterizationError
    │   └── OCRError
    │       ├── OCREngineNotAvailableError
    │       └── OCRProcessingError
    ├── ValidationError                  record used where a valid one is required
    ├── EncodingPreconditionError        export refused before encoding
    │   ├── InvalidDebtorConfigError
    │   └── EmptyBatchError
    └── OutputError
        ├── ExportWriteError
        └── ReportExportError

Missing mandatory fields after extraction are not an exception: the record
ends in ``needs_review`` with its ``missing_fields`` list.
"""

from typing import List, Optional


class GuiasPagamentoError(Exception):
    """
    Base exception for all errors raised by the pipeline.

    Attributes:
        message: Human-readable error message.
        details: Additional context for diagnostics.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# SOURCE ERRORS
# =============================================================================

class SourceError(GuiasPagamentoError):
    """Base exception for documents that cannot be read. Fatal per document."""
    pass


class DocumentNotFoundError(SourceError):
    """Raised when the input file does not exist."""

    def __init__(self, filepath: str):
        super().__init__(f"File not found: {filepath}", {"filepath": filepath})


class CorruptedFileError(SourceError):
    """Raised when a document appears to be corrupted or unreadable."""

    def __init__(self, filepath: str, reason: Optional[str] = None):
        message = f"Corrupted or unreadable file: {filepath}"
        super().__init__(message, {"filepath": filepath, "reason": reason})


class RasterizationError(SourceError):
    """Raised when a PDF page cannot be rendered to an image."""

    def __init__(self, page_index: int, reason: Optional[str] = None):
        message = f"Cannot rasterize page {page_index + 1}"
        super().__init__(message, {"page": page_index + 1, "reason": reason})


class OCRError(SourceError):
    """Base exception for OCR-related errors."""
    pass


class OCREngineNotAvailableError(OCRError):
    """Raised when the configured OCR engine is not installed."""

    def __init__(self, engine_name: str):
        super().__init__(f"OCR engine not available: {engine_name}", {"engine": engine_name})


class OCRProcessingError(OCRError):
    """Raised when OCR ran but produced no usable text."""

    def __init__(self, source: str, reason: Optional[str] = None):
        message = f"OCR failed for: {source}"
        super().__init__(message, {"source": source, "reason": reason})

    @property
    def reason(self) -> Optional[str]:
        return self.details.get("reason")


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(GuiasPagamentoError):
    """Raised when a record does not satisfy the mandatory-field rules."""

    def __init__(self, field: str, value: object = None, reason: Optional[str] = None):
        message = f"Validation failed for field '{field}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, {"field": field, "value": value})
        self.field = field
        self.reason = reason


# =============================================================================
# EXPORT PRECONDITIONS
# =============================================================================

class EncodingPreconditionError(GuiasPagamentoError):
    """Base exception for exports refused before any encoding happens."""
    pass


class InvalidDebtorConfigError(EncodingPreconditionError):
    """Raised when debtor name/IBAN/BIC do not pass validation."""

    def __init__(self, problems: List[str]):
        super().__init__("Invalid debtor configuration: " + "; ".join(problems))
        self.problems = list(problems)


class EmptyBatchError(EncodingPreconditionError):
    """Raised when there are no successfully processed records to export."""

    def __init__(self, export_format: str):
        super().__init__(
            f"No successfully processed payments to export as {export_format}",
            {"format": export_format}
        )


# =============================================================================
# OUTPUT ERRORS
# =============================================================================

class OutputError(GuiasPagamentoError):
    """Base exception for output handling errors."""
    pass


class ExportWriteError(OutputError):
    """Raised when an export file cannot be written."""

    def __init__(self, filepath: str, reason: Optional[str] = None):
        super().__init__(
            f"Failed to write export file: {filepath}",
            {"filepath": filepath, "reason": reason}
        )


class ReportExportError(OutputError):
    """Raised when the Excel review report cannot be written."""

    def __init__(self, filepath: str, reason: Optional[str] = None):
        super().__init__(
            f"Failed to export review report: {filepath}",
            {"filepath": filepath, "reason": reason}
        )


__all__ = [
    'GuiasPagamentoError',
    'SourceError',
    'DocumentNotFoundError',
    'CorruptedFileError',
    'RasterizationError',
    'OCRError',
    'OCREngineNotAvailableError',
    'OCRProcessingError',
    'ValidationError',
    'EncodingPreconditionError',
    'InvalidDebtorConfigError',
    'EmptyBatchError',
    'OutputError',
    'ExportWriteError',
    'ReportExportError',
]
