"""
Extraction Result Data Classes.

Per-field outcome of running the ordered rule lists over a document's
text, plus the aggregate result handed to the Record Validator.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Generic, List, Optional, TypeVar

from .payment_record import DocumentOrigin

T = TypeVar("T")


@dataclass(frozen=True)
class FieldDiagnostic:
    """
    Trace of one field's match attempt.

    Attributes:
        field: Field name (e.g. "tax_id")
        matched: Whether a clean value was produced
        rule: Name of the rule that fired, if any
        rule_index: Priority position of that rule (0 = most specific)
        raw: Text captured by the rule before cleaning
        value: Cleaned value as a string
        rejected: Reason the captured text was discarded
    """

    field: str
    matched: bool
    rule: Optional[str] = None
    rule_index: Optional[int] = None
    raw: Optional[str] = None
    value: Optional[str] = None
    rejected: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'field': self.field,
            'matched': self.matched,
            'rule': self.rule,
            'rule_index': self.rule_index,
            'raw': self.raw,
            'value': self.value,
            'rejected': self.rejected,
        }


@dataclass(frozen=True)
class ExtractedField(Generic[T]):
    """Value of one field plus which rule produced it."""

    value: Optional[T] = None
    matched: bool = False
    rule: Optional[str] = None
    rule_index: Optional[int] = None

    @classmethod
    def unmatched(cls) -> 'ExtractedField[T]':
        return cls()


@dataclass
class ExtractionResult:
    """
    Everything the Field Extractor learned from one document.

    Attributes:
        fields: Extracted field per field name
        diagnostics: Ordered trace, one entry per field
        raw_text: Text the rules ran over
        origin: native text layer or OCR
    """

    fields: Dict[str, ExtractedField] = field(default_factory=dict)
    diagnostics: List[FieldDiagnostic] = field(default_factory=list)
    raw_text: str = ""
    origin: Optional[DocumentOrigin] = None

    def value(self, name: str, default: Any = "") -> Any:
        extracted = self.fields.get(name)
        if extracted is None or not extracted.matched:
            return default
        return extracted.value

    @property
    def tax_id(self) -> str:
        return self.value("tax_id")

    @property
    def payment_reference(self) -> str:
        return self.value("payment_reference")

    @property
    def amount(self) -> Optional[Decimal]:
        return self.value("amount", None)

    @property
    def unmatched_fields(self) -> List[str]:
        return [name for name, extracted in self.fields.items() if not extracted.matched]
