"""
Record Validator Module.

Decides the terminal status of a payment record after extraction:

    - success       NIF, payment reference and amount are all present and valid
    - needs_review  at least one of them is missing; the raw text is kept so
                    someone can fill the gap by hand
    - error         set elsewhere, when the document never produced text

Also implements the review correction that moves a ``needs_review`` record
back to ``success`` once the missing values have been supplied.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from guias_pagamento.extraction.extraction_result import ExtractionResult
from guias_pagamento.extraction.payment_record import MANDATORY_FIELDS, PaymentRecord, PaymentStatus
from guias_pagamento.utils.exceptions import ValidationError
from guias_pagamento.utils.logger import get_logger
from .normalizers import AmountNormalizer
from .validators import AmountValidator, DateValidator, NIFValidator, ReferenceValidator

# Initialize module logger
logger = get_logger(__name__)

FIELD_LABELS = {
    "tax_id": "NIF",
    "payment_reference": "Referência de pagamento",
    "amount": "Valor",
}

# Fields a reviewer may correct; entity is derived and never set directly
CORRECTABLE_FIELDS = (
    "document_number",
    "tax_id",
    "taxpayer_name",
    "payment_reference",
    "amount",
    "due_date",
    "tax_code",
    "period",
)


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of validating one record.

    Attributes:
        status: success or needs_review
        missing_fields: Mandatory fields that are absent or invalid
        messages: Validator message per missing field
    """

    status: PaymentStatus
    missing_fields: List[str] = field(default_factory=list)
    messages: Dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == PaymentStatus.SUCCESS

    def describe(self) -> Optional[str]:
        """Human-readable summary for the batch list, None on success."""
        if self.is_success:
            return None
        labels = ", ".join(FIELD_LABELS.get(name, name) for name in self.missing_fields)
        return f"Campos em falta: {labels}"


class RecordValidator:
    """
    Mandatory-field check for payment records.

    :meth:`validate` is pure: it looks at a record and returns an outcome
    without touching it. :meth:`apply` builds the record for an extraction
    result and stamps the outcome on it.

    Example:
        >>> validator = RecordValidator()
        >>> record = validator.apply(extraction, source_file="guia.pdf")
        >>> record.status
        <PaymentStatus.SUCCESS: 'success'>
    """

    def __init__(self) -> None:
        self.nif_validator = NIFValidator()
        self.reference_validator = ReferenceValidator()
        self.amount_validator = AmountValidator()
        self.date_validator = DateValidator()
        self.amount_normalizer = AmountNormalizer()

    def validate(self, record: PaymentRecord) -> ValidationOutcome:
        """
        Compute the status of a record from its mandatory fields.

        Args:
            record: Record to inspect. Not modified.

        Returns:
            ValidationOutcome with status and missing field names in
            a fixed order (tax_id, payment_reference, amount).
        """
        checks = {
            "tax_id": self.nif_validator.validate(record.tax_id),
            "payment_reference": self.reference_validator.validate(record.payment_reference),
            "amount": self.amount_validator.validate(record.amount),
        }

        missing = [name for name in MANDATORY_FIELDS if not checks[name][0]]
        messages = {name: checks[name][1] for name in missing}

        if missing:
            return ValidationOutcome(PaymentStatus.NEEDS_REVIEW, missing, messages)
        return ValidationOutcome(PaymentStatus.SUCCESS)

    def apply(
        self,
        extraction: ExtractionResult,
        record: Optional[PaymentRecord] = None,
        source_file: str = ""
    ) -> PaymentRecord:
        """
        Fill a record from an extraction result and set its terminal status.

        Args:
            extraction: Output of the Field Extractor.
            record: Existing record (e.g. the queued one) to update in place.
                A new record is created when omitted.
            source_file: File name for a newly created record.

        Returns:
            The populated record.
        """
        if record is None:
            record = PaymentRecord(source_file=source_file)

        record.document_number = extraction.value("document_number")
        record.tax_id = extraction.value("tax_id")
        record.taxpayer_name = extraction.value("taxpayer_name")
        record.payment_reference = extraction.value("payment_reference")
        record.amount = extraction.value("amount", None)
        record.due_date = extraction.value("due_date")
        record.tax_code = extraction.value("tax_code")
        record.period = extraction.value("period")
        record.origin = extraction.origin
        record.diagnostics = list(extraction.diagnostics)

        outcome = self.validate(record)
        self._stamp(record, outcome, extraction.raw_text)
        self._log_outcome(record, outcome)
        return record

    def _stamp(self, record: PaymentRecord, outcome: ValidationOutcome, raw_text: str) -> None:
        record.status = outcome.status
        record.missing_fields = list(outcome.missing_fields)
        record.error = outcome.describe()
        # Raw text is only kept for the manual review screen
        record.raw_text = raw_text if outcome.status == PaymentStatus.NEEDS_REVIEW else None

    def _log_outcome(self, record: PaymentRecord, outcome: ValidationOutcome) -> None:
        if outcome.is_success:
            logger.info(
                f"{record.source_file or 'document'}: success "
                f"(NIF {record.tax_id}, ref {record.payment_reference}, {record.amount:.2f} EUR)"
            )
            if not NIFValidator.has_valid_check_digit(record.tax_id):
                logger.warning(f"{record.source_file}: NIF {record.tax_id} fails the check digit")
            return

        logger.warning(
            f"{record.source_file or 'document'}: needs review, "
            f"missing {', '.join(outcome.missing_fields)}"
        )
        for name, message in outcome.messages.items():
            logger.debug(f"  {name}: {message}")

    def apply_review_correction(self, record: PaymentRecord, **corrections: Any) -> PaymentRecord:
        """
        Apply manually corrected values to a record awaiting review.

        Args:
            record: A ``needs_review`` record. Not modified.
            **corrections: New values keyed by field name (tax_id,
                payment_reference, amount, ...).

        Returns:
            A copy of the record with the corrections applied, status
            ``success`` and the raw text cleared.

        Raises:
            ValidationError: If the record is not awaiting review, an
                unknown field is given, the due date is not
                YYYY-MM-DD, or mandatory fields are still invalid after
                the correction.
        """
        if record.status != PaymentStatus.NEEDS_REVIEW:
            raise ValidationError(
                "status", record.status.value, "only records awaiting review can be corrected"
            )

        unknown = sorted(set(corrections) - set(CORRECTABLE_FIELDS))
        if unknown:
            raise ValidationError(unknown[0], corrections[unknown[0]], "field cannot be corrected")

        # Reviewers type amounts the way the guide prints them ("1.234,56")
        amount = corrections.get("amount")
        if isinstance(amount, str):
            parsed = self.amount_normalizer.normalize(amount)
            if parsed is None:
                raise ValidationError("amount", amount, "malformed amount")
            corrections["amount"] = parsed

        due_date = corrections.get("due_date")
        if due_date:
            valid, message = self.date_validator.validate(due_date)
            if not valid:
                raise ValidationError("due_date", due_date, message)

        corrected = replace(record, **corrections)

        outcome = self.validate(corrected)
        if not outcome.is_success:
            first = outcome.missing_fields[0]
            raise ValidationError(
                first, getattr(corrected, first), outcome.messages.get(first)
            )

        corrected.status = PaymentStatus.SUCCESS
        corrected.missing_fields = []
        corrected.error = None
        corrected.raw_text = None

        logger.info(f"{record.source_file}: review correction applied ({', '.join(sorted(corrections))})")
        return corrected


def apply_review_correction(record: PaymentRecord, **corrections: Any) -> PaymentRecord:
    """Module-level shortcut for :meth:`RecordValidator.apply_review_correction`."""
    return RecordValidator().apply_review_correction(record, **corrections)
