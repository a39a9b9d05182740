"""
Payment Record Data Class.

The central entity of the pipeline: one record per payment guide, created
``pending`` when the document is queued and moved once to a terminal
state (``success``, ``error`` or ``needs_review``) after extraction.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

REFERENCE_LENGTH = 15
ENTITY_LENGTH = 3

# Fields whose absence sends a record to review
MANDATORY_FIELDS = ["tax_id", "payment_reference", "amount"]

_REFERENCE_RE = re.compile(r'^\d{15}$')


class PaymentStatus(str, Enum):
    """Lifecycle state of a payment record."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"
    NEEDS_REVIEW = "needs_review"

    @property
    def is_terminal(self) -> bool:
        return self in (PaymentStatus.SUCCESS, PaymentStatus.ERROR, PaymentStatus.NEEDS_REVIEW)


class DocumentOrigin(str, Enum):
    """Where the raw text of a document came from."""

    NATIVE = "native"
    OCR = "ocr"


def normalize_reference(value: Optional[str]) -> str:
    """
    Normalize a payment reference to exactly 15 digits, or ``""``.

    Dots and whitespace separators are removed; anything that is not then
    a 15-digit string is treated as absent rather than kept partially.

    Example:
        >>> normalize_reference("156.080.671.478.311")
        '156080671478311'
        >>> normalize_reference("15608067147")
        ''
    """
    if not value:
        return ""
    cleaned = re.sub(r'[\s.\-]', '', str(value))
    return cleaned if _REFERENCE_RE.match(cleaned) else ""


@dataclass
class PaymentRecord:
    """
    Structured data extracted from one payment guide.

    Attributes:
        source_file: File name shown in the batch list
        document_number: Guide number, optional
        tax_id: NIF, 9 digits (mandatory)
        taxpayer_name: Free text, optional
        payment_reference: Exactly 15 digits or empty (mandatory)
        amount: EUR amount with 2 decimal places (mandatory, > 0)
        due_date: ISO date YYYY-MM-DD, optional
        tax_code: 3-digit tax code, optional
        period: Tax period such as "2025/09T", optional
        status: Lifecycle state
        raw_text: Document text, kept only while the record needs review
        missing_fields: Mandatory fields that could not be extracted
        error: Human-readable message for error / needs_review records
        origin: Whether the text came from the PDF text layer or OCR
        diagnostics: Per-field extraction trace

    ``payment_reference`` is normalized on every assignment and ``entity``
    is always derived from it.

    Example:
        >>> record = PaymentRecord(payment_reference="156.080.671.478.311")
        >>> record.entity
        '156'
    """

    source_file: str = ""
    document_number: str = ""
    tax_id: str = ""
    taxpayer_name: str = ""
    payment_reference: str = ""
    amount: Optional[Decimal] = None
    due_date: str = ""
    tax_code: str = ""
    period: str = ""
    status: PaymentStatus = PaymentStatus.PENDING
    raw_text: Optional[str] = None
    missing_fields: List[str] = field(default_factory=list)
    error: Optional[str] = None
    origin: Optional[DocumentOrigin] = None
    diagnostics: List[Any] = field(default_factory=list, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "payment_reference":
            value = normalize_reference(value)
        elif name == "amount" and value is not None and not isinstance(value, Decimal):
            value = Decimal(str(value))
        super().__setattr__(name, value)

    @property
    def entity(self) -> str:
        """Entity code: the first three digits of the payment reference."""
        return self.payment_reference[:ENTITY_LENGTH]

    @property
    def is_exportable(self) -> bool:
        """Only ``success`` records may reach an encoder."""
        return self.status == PaymentStatus.SUCCESS

    def mark_processing(self) -> None:
        """Move a queued record into processing."""
        self.status = PaymentStatus.PROCESSING
        self.error = None

    def mark_error(self, message: str) -> None:
        """Terminal failure before extraction could run; no partial data is kept."""
        self.document_number = ""
        self.tax_id = ""
        self.taxpayer_name = ""
        self.payment_reference = ""
        self.amount = None
        self.due_date = ""
        self.tax_code = ""
        self.period = ""
        self.raw_text = None
        self.missing_fields = []
        self.status = PaymentStatus.ERROR
        self.error = message

    def to_dict(self) -> Dict[str, Any]:
        """
        Flat dictionary suitable for JSON, console listing and reports.
        """
        return {
            'source_file': self.source_file,
            'document_number': self.document_number,
            'tax_id': self.tax_id,
            'taxpayer_name': self.taxpayer_name,
            'payment_reference': self.payment_reference,
            'entity': self.entity,
            'amount': f"{self.amount:.2f}" if self.amount is not None else None,
            'due_date': self.due_date,
            'tax_code': self.tax_code,
            'period': self.period,
            'status': self.status.value,
            'missing_fields': list(self.missing_fields),
            'error': self.error,
            'origin': self.origin.value if self.origin else None,
        }

    def __repr__(self) -> str:
        return (
            f"PaymentRecord("
            f"file={self.source_file!r}, "
            f"nif={self.tax_id!r}, "
            f"ref={self.payment_reference!r}, "
            f"amount={self.amount}, "
            f"status={self.status.value})"
        )
