"""
Field Extractor Module.

Runs the ordered rule lists from :mod:`rules` over the text of a payment
guide and produces an :class:`ExtractionResult`.

Approach:
    For every field the rules are tried in priority order and the first
    rule that matches wins. The captured text is then cleaned by a
    field-specific cleaner; if cleaning fails (an 11-digit reference, a
    malformed amount) the field is left unmatched rather than filled with
    a wrong value. No voting or scoring happens across rules.

Every attempt is reported to the injected diagnostics sink.
"""

import time
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

from guias_pagamento.postprocessor.normalizers import (
    AmountNormalizer,
    DateNormalizer,
    DigitsNormalizer,
    TextNormalizer,
)
from guias_pagamento.utils.logger import get_logger
from .diagnostics import DiagnosticsSink, LoggingDiagnosticsSink
from .extraction_result import ExtractedField, ExtractionResult, FieldDiagnostic
from .payment_record import MANDATORY_FIELDS, DocumentOrigin, normalize_reference
from .rules import FIELD_RULES, FieldRule

# Initialize module logger
logger = get_logger(__name__)

# A cleaner returns (value, None) on success or (None, reason) on rejection
Cleaner = Callable[[str], Tuple[Optional[object], Optional[str]]]


class FieldExtractor:
    """
    Rule-based payment guide field extractor.

    Attributes:
        rules: Ordered rule list per field name
        sink: Receiver of per-field diagnostics

    Example:
        >>> extractor = FieldExtractor()
        >>> result = extractor.extract("NIF: 123456789 ...")
        >>> result.tax_id
        '123456789'
    """

    def __init__(
        self,
        sink: Optional[DiagnosticsSink] = None,
        rules: Optional[Dict[str, List[FieldRule]]] = None
    ) -> None:
        """
        Initialize the extractor.

        Args:
            sink: Diagnostics receiver. Defaults to a sink that logs under
                this module's logger.
            rules: Override of the rule table, mainly for tests.
        """
        self.sink = sink or LoggingDiagnosticsSink(mandatory_fields=MANDATORY_FIELDS)
        self.rules = rules or FIELD_RULES

        self._amounts = AmountNormalizer()
        self._dates = DateNormalizer()
        self._nif = DigitsNormalizer(9)
        self._tax_code = DigitsNormalizer(3)

        self._cleaners: Dict[str, Cleaner] = {
            "document_number": self._clean_document_number,
            "tax_id": self._clean_tax_id,
            "taxpayer_name": self._clean_taxpayer_name,
            "payment_reference": self._clean_payment_reference,
            "amount": self._clean_amount,
            "due_date": self._clean_due_date,
            "tax_code": self._clean_tax_code,
            "period": self._clean_period,
        }

    def extract(
        self,
        text: str,
        origin: Optional[DocumentOrigin] = None
    ) -> ExtractionResult:
        """
        Extract every known field from the document text.

        Args:
            text: Raw document text (native layer or OCR output).
            origin: Where the text came from, carried into the result.

        Returns:
            ExtractionResult with one ExtractedField and one diagnostic
            per field, in rule-table order.
        """
        start_time = time.time()
        text = text or ""
        result = ExtractionResult(raw_text=text, origin=origin)

        for field_name, rules in self.rules.items():
            extracted, diagnostic = self._extract_field(field_name, rules, text)
            result.fields[field_name] = extracted
            result.diagnostics.append(diagnostic)
            self.sink.record(diagnostic)

        found = len(result.fields) - len(result.unmatched_fields)
        logger.debug(
            f"Extraction complete: {found}/{len(result.fields)} fields, "
            f"time: {time.time() - start_time:.3f}s"
        )
        return result

    def _extract_field(
        self,
        field_name: str,
        rules: List[FieldRule],
        text: str
    ) -> Tuple[ExtractedField, FieldDiagnostic]:
        """First matching rule wins; its value is cleaned or the field is dropped."""
        cleaner = self._cleaners.get(field_name, self._clean_passthrough)

        for index, rule in enumerate(rules):
            raw = rule.search(text)
            if raw is None:
                continue

            value, rejected = cleaner(raw)
            if rejected is not None:
                return ExtractedField.unmatched(), FieldDiagnostic(
                    field=field_name,
                    matched=False,
                    rule=rule.name,
                    rule_index=index,
                    raw=raw,
                    rejected=rejected,
                )

            return (
                ExtractedField(value=value, matched=True, rule=rule.name, rule_index=index),
                FieldDiagnostic(
                    field=field_name,
                    matched=True,
                    rule=rule.name,
                    rule_index=index,
                    raw=raw,
                    value=str(value),
                ),
            )

        return ExtractedField.unmatched(), FieldDiagnostic(field=field_name, matched=False)

    # -------------------------------------------------------------------------
    # Field cleaners
    # -------------------------------------------------------------------------

    def _clean_tax_id(self, raw: str) -> Tuple[Optional[str], Optional[str]]:
        value = self._nif.normalize(raw)
        if value is None:
            return None, "NIF is not 9 digits"
        return value, None

    def _clean_payment_reference(self, raw: str) -> Tuple[Optional[str], Optional[str]]:
        value = normalize_reference(raw)
        if not value:
            return None, "reference does not normalize to 15 digits"
        return value, None

    def _clean_amount(self, raw: str) -> Tuple[Optional[Decimal], Optional[str]]:
        value = self._amounts.normalize(raw)
        if value is None:
            return None, "malformed amount"
        if value <= 0:
            return None, "amount is not positive"
        return value, None

    def _clean_due_date(self, raw: str) -> Tuple[Optional[str], Optional[str]]:
        value = self._dates.normalize(raw)
        if value is None:
            return None, "unparseable date"
        return value, None

    def _clean_tax_code(self, raw: str) -> Tuple[Optional[str], Optional[str]]:
        value = self._tax_code.normalize(raw)
        if value is None:
            return None, "tax code is not 3 digits"
        return value, None

    @staticmethod
    def _clean_document_number(raw: str) -> Tuple[Optional[str], Optional[str]]:
        value = TextNormalizer.clean_document_number(raw)
        return (value, None) if value else (None, "empty document number")

    @staticmethod
    def _clean_taxpayer_name(raw: str) -> Tuple[Optional[str], Optional[str]]:
        value = TextNormalizer.clean_text(raw)
        return (value, None) if value else (None, "empty name")

    @staticmethod
    def _clean_period(raw: str) -> Tuple[Optional[str], Optional[str]]:
        value = TextNormalizer.clean_period(raw)
        return (value, None) if value else (None, "empty period")

    @staticmethod
    def _clean_passthrough(raw: str) -> Tuple[Optional[str], Optional[str]]:
        value = raw.strip()
        return (value, None) if value else (None, "empty value")
