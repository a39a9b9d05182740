"""
Diagnostics sinks for the Field Extractor.

The extractor reports one :class:`FieldDiagnostic` per field to whatever
sink it was built with, so OCR misreads can be traced in production logs
and asserted on in tests without global state.
"""

import logging
from typing import List, Optional, Protocol

from guias_pagamento.utils.logger import get_logger
from .extraction_result import FieldDiagnostic


class DiagnosticsSink(Protocol):
    """Receiver of per-field extraction diagnostics."""

    def record(self, diagnostic: FieldDiagnostic) -> None:
        ...


class LoggingDiagnosticsSink:
    """
    Writes each diagnostic to a logger.

    Matched fields are logged at INFO; unmatched fields at WARNING when
    they are mandatory and at DEBUG otherwise.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        mandatory_fields: Optional[List[str]] = None
    ) -> None:
        self.logger = logger or get_logger(__name__)
        self.mandatory_fields = set(mandatory_fields or [])

    def record(self, diagnostic: FieldDiagnostic) -> None:
        if diagnostic.matched:
            self.logger.info(
                "Extraction: %s = %r (rule #%s %s, raw=%r)",
                diagnostic.field,
                diagnostic.value,
                diagnostic.rule_index,
                diagnostic.rule,
                diagnostic.raw,
            )
            return

        level = logging.WARNING if diagnostic.field in self.mandatory_fields else logging.DEBUG
        if diagnostic.rule:
            self.logger.log(
                level,
                "Extraction: %s rejected (rule #%s %s, raw=%r): %s",
                diagnostic.field,
                diagnostic.rule_index,
                diagnostic.rule,
                diagnostic.raw,
                diagnostic.rejected,
            )
        else:
            self.logger.log(level, "Extraction: %s not found", diagnostic.field)


class CollectingDiagnosticsSink:
    """Keeps diagnostics in memory, in the order they were reported."""

    def __init__(self) -> None:
        self.diagnostics: List[FieldDiagnostic] = []

    def record(self, diagnostic: FieldDiagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def for_field(self, name: str) -> Optional[FieldDiagnostic]:
        for diagnostic in self.diagnostics:
            if diagnostic.field == name:
                return diagnostic
        return None

    def clear(self) -> None:
        self.diagnostics.clear()
