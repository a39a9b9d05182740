"""
Output Batch Module.

Encoders never see a mutable :class:`PaymentRecord`. They receive an
:class:`OutputBatch` of :class:`ValidatedPaymentRecord` snapshots, and a
snapshot can only be built from a ``success`` record that passes the
mandatory-field checks.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Iterator, Tuple

from guias_pagamento.extraction.payment_record import ENTITY_LENGTH, PaymentRecord, PaymentStatus
from guias_pagamento.postprocessor.normalizers import CENTS, AmountNormalizer
from guias_pagamento.postprocessor.processor import RecordValidator
from guias_pagamento.utils.exceptions import ValidationError
from guias_pagamento.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class ValidatedPaymentRecord:
    """
    Immutable, export-ready view of a successful payment record.

    Attributes:
        tax_id: NIF, 9 digits
        payment_reference: 15 digits
        amount: EUR amount, quantized to cents
        document_number, taxpayer_name, due_date, tax_code, period:
            Optional fields, "" when absent
        source_file: File the record came from
    """

    tax_id: str
    payment_reference: str
    amount: Decimal
    document_number: str = ""
    taxpayer_name: str = ""
    due_date: str = ""
    tax_code: str = ""
    period: str = ""
    source_file: str = ""

    @property
    def entity(self) -> str:
        return self.payment_reference[:ENTITY_LENGTH]

    @property
    def amount_cents(self) -> int:
        return AmountNormalizer.to_cents(self.amount)

    @classmethod
    def from_record(cls, record: PaymentRecord) -> 'ValidatedPaymentRecord':
        """
        Snapshot a record for export.

        Raises:
            ValidationError: If the record is not ``success`` or a
                mandatory field is invalid.
        """
        if record.status != PaymentStatus.SUCCESS:
            raise ValidationError(
                "status", record.status.value, "only success records can be exported"
            )

        outcome = RecordValidator().validate(record)
        if not outcome.is_success:
            first = outcome.missing_fields[0]
            raise ValidationError(first, getattr(record, first), outcome.messages.get(first))

        return cls(
            tax_id=record.tax_id,
            payment_reference=record.payment_reference,
            amount=record.amount.quantize(CENTS),
            document_number=record.document_number or "",
            taxpayer_name=record.taxpayer_name or "",
            due_date=record.due_date or "",
            tax_code=record.tax_code or "",
            period=record.period or "",
            source_file=record.source_file or "",
        )


@dataclass(frozen=True)
class OutputBatch:
    """
    Ordered records consumed by exactly one encoder.

    Control totals are derived from the records on every access, never
    stored separately.

    Example:
        >>> batch = OutputBatch.from_records(records)
        >>> batch.count, batch.total_amount
        (3, Decimal('15.00'))
    """

    records: Tuple[ValidatedPaymentRecord, ...] = ()

    @classmethod
    def from_records(cls, records: Iterable[PaymentRecord]) -> 'OutputBatch':
        """Keep the ``success`` records, in input order; skip the rest."""
        validated = []
        skipped = 0
        for record in records:
            if record.status == PaymentStatus.SUCCESS:
                validated.append(ValidatedPaymentRecord.from_record(record))
            else:
                skipped += 1

        if skipped:
            logger.info(f"{skipped} record(s) not exportable (status other than success)")
        return cls(tuple(validated))

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def total_amount(self) -> Decimal:
        return sum((record.amount for record in self.records), Decimal("0.00")).quantize(CENTS)

    @property
    def total_cents(self) -> int:
        return sum(record.amount_cents for record in self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def __iter__(self) -> Iterator[ValidatedPaymentRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)
