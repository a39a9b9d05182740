"""
Extraction Module.

Payment record data model and the rule-based Field Extractor.
"""

from .payment_record import (
    MANDATORY_FIELDS,
    DocumentOrigin,
    PaymentRecord,
    PaymentStatus,
    normalize_reference,
)
from .extraction_result import ExtractedField, ExtractionResult, FieldDiagnostic
from .diagnostics import CollectingDiagnosticsSink, DiagnosticsSink, LoggingDiagnosticsSink
from .rules import FIELD_RULES, FieldRule
from .field_extractor import FieldExtractor

__all__ = [
    'PaymentRecord',
    'PaymentStatus',
    'DocumentOrigin',
    'normalize_reference',
    'ExtractedField',
    'ExtractionResult',
    'FieldDiagnostic',
    'DiagnosticsSink',
    'LoggingDiagnosticsSink',
    'CollectingDiagnosticsSink',
    'FieldRule',
    'FIELD_RULES',
    'FieldExtractor',
    'MANDATORY_FIELDS',
]
