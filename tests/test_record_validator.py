"""Tests for record validation and review corrections."""
from decimal import Decimal

import pytest

from guias_pagamento.extraction import (
    CollectingDiagnosticsSink,
    DocumentOrigin,
    FieldExtractor,
    PaymentRecord,
    PaymentStatus,
)
from guias_pagamento.postprocessor import RecordValidator, apply_review_correction
from guias_pagamento.utils.exceptions import ValidationError


@pytest.fixture
def extractor() -> FieldExtractor:
    return FieldExtractor(sink=CollectingDiagnosticsSink())


@pytest.fixture
def validator() -> RecordValidator:
    return RecordValidator()


def test_short_guide_end_to_end(extractor, validator, short_guide_text):
    """Extraction plus validation of a minimal guide yields an exportable record."""

    extraction = extractor.extract(short_guide_text, DocumentOrigin.NATIVE)
    record = validator.apply(extraction, source_file="guia.pdf")

    assert record.tax_id == "123456789"
    assert record.payment_reference == "156080671478311"
    assert record.entity == "156"
    assert record.amount == Decimal("110.40")
    assert record.status == PaymentStatus.SUCCESS
    assert record.missing_fields == []
    assert record.raw_text is None
    assert record.error is None
    assert record.origin == DocumentOrigin.NATIVE
    assert len(record.diagnostics) == len(extraction.diagnostics)


def test_missing_nif_needs_review(extractor, validator, no_nif_text):
    """No NIF: needs_review, tax_id listed as missing, raw text kept for the reviewer."""

    record = validator.apply(extractor.extract(no_nif_text), source_file="sem_nif.pdf")

    assert record.status == PaymentStatus.NEEDS_REVIEW
    assert record.missing_fields == ["tax_id"]
    assert record.raw_text == no_nif_text
    assert record.error == "Campos em falta: NIF"
    assert record.amount == Decimal("25.00")
    assert record.payment_reference == "156080671478311"


def test_malformed_amount_needs_review(extractor, validator):
    """A malformed amount is reported missing, never stored wrong."""

    text = "NIF: 123456789\n156080671478311\nVALOR A PAGAR: 1,2,3"
    record = validator.apply(extractor.extract(text))

    assert record.status == PaymentStatus.NEEDS_REVIEW
    assert record.missing_fields == ["amount"]
    assert record.amount is None


def test_space_grouped_amount_is_read_in_full(extractor, validator):
    """OCR output with spaces between thousands keeps the whole amount."""

    text = "NIF: 123456789\n156.080.671.478.311\nVALOR A PAGAR: 1 234,56 €"
    record = validator.apply(extractor.extract(text))

    assert record.status == PaymentStatus.SUCCESS
    assert record.amount == Decimal("1234.56")


def test_ragged_amount_needs_review(extractor, validator):
    text = "NIF: 123456789\n156.080.671.478.311\nVALOR A PAGAR: 12 34,56 €"
    record = validator.apply(extractor.extract(text))

    assert record.status == PaymentStatus.NEEDS_REVIEW
    assert record.missing_fields == ["amount"]
    assert record.amount is None


def test_validate_is_pure(validator, make_record):
    """validate() reports without touching the record."""

    record = make_record(tax_id="", status=PaymentStatus.PROCESSING)

    outcome = validator.validate(record)

    assert outcome.status == PaymentStatus.NEEDS_REVIEW
    assert outcome.missing_fields == ["tax_id"]
    assert "tax_id" in outcome.messages
    assert record.status == PaymentStatus.PROCESSING
    assert record.missing_fields == []


def test_missing_fields_keep_fixed_order(validator):
    """All three missing: NIF, reference, amount in that order."""

    outcome = validator.validate(PaymentRecord())

    assert outcome.missing_fields == ["tax_id", "payment_reference", "amount"]
    assert outcome.describe() == "Campos em falta: NIF, Referência de pagamento, Valor"


def test_apply_updates_queued_record_in_place(extractor, validator, guide_text):
    """The pipeline passes its pending record; the same object is filled."""

    queued = PaymentRecord(source_file="guia.pdf")
    returned = validator.apply(extractor.extract(guide_text), record=queued)

    assert returned is queued
    assert queued.status == PaymentStatus.SUCCESS
    assert queued.source_file == "guia.pdf"


def test_review_correction_moves_record_to_success(extractor, validator, no_nif_text):
    """Supplying the missing NIF completes the record."""

    record = validator.apply(extractor.extract(no_nif_text))

    corrected = validator.apply_review_correction(record, tax_id="123456789")

    assert corrected.status == PaymentStatus.SUCCESS
    assert corrected.tax_id == "123456789"
    assert corrected.missing_fields == []
    assert corrected.raw_text is None
    assert corrected.error is None
    # The original stays untouched
    assert record.status == PaymentStatus.NEEDS_REVIEW
    assert record.tax_id == ""


def test_review_correction_parses_typed_amount(make_record):
    """Reviewers may type the amount as printed on the guide."""

    record = make_record(amount=None, status=PaymentStatus.NEEDS_REVIEW, missing_fields=["amount"])

    corrected = apply_review_correction(record, amount="1.234,56")

    assert corrected.amount == Decimal("1234.56")
    assert corrected.status == PaymentStatus.SUCCESS


def test_review_correction_normalizes_reference(make_record):
    """A dotted reference typed by hand is stored as 15 digits."""

    record = make_record(payment_reference="", status=PaymentStatus.NEEDS_REVIEW)

    corrected = apply_review_correction(record, payment_reference="156.080.671.478.311")

    assert corrected.payment_reference == "156080671478311"
    assert corrected.entity == "156"


def test_review_correction_rejects_invalid_values(make_record):
    """A correction that still leaves a mandatory field invalid is refused."""

    record = make_record(tax_id="", status=PaymentStatus.NEEDS_REVIEW)

    with pytest.raises(ValidationError) as exc_info:
        apply_review_correction(record, tax_id="12345")

    assert exc_info.value.field == "tax_id"


def test_review_correction_rejects_malformed_amount(make_record):
    record = make_record(amount=None, status=PaymentStatus.NEEDS_REVIEW)

    with pytest.raises(ValidationError, match="malformed amount"):
        apply_review_correction(record, amount="1,2,3")


def test_review_correction_accepts_iso_due_date(make_record):
    record = make_record(tax_id="", status=PaymentStatus.NEEDS_REVIEW)

    corrected = apply_review_correction(record, tax_id="123456789", due_date="2025-10-20")

    assert corrected.due_date == "2025-10-20"
    assert corrected.status == PaymentStatus.SUCCESS


@pytest.mark.parametrize("due_date", ["20/10/2025", "2025-02-30"])
def test_review_correction_rejects_bad_due_date(make_record, due_date):
    """Due dates are stored as real YYYY-MM-DD dates only."""

    record = make_record(tax_id="", status=PaymentStatus.NEEDS_REVIEW)

    with pytest.raises(ValidationError) as exc_info:
        apply_review_correction(record, tax_id="123456789", due_date=due_date)

    assert exc_info.value.field == "due_date"


def test_review_correction_requires_needs_review(make_record):
    """Success and error records cannot be corrected."""

    with pytest.raises(ValidationError):
        apply_review_correction(make_record(), tax_id="123456789")

    with pytest.raises(ValidationError):
        apply_review_correction(make_record(status=PaymentStatus.ERROR), tax_id="123456789")


def test_review_correction_rejects_unknown_fields(make_record):
    record = make_record(tax_id="", status=PaymentStatus.NEEDS_REVIEW)

    with pytest.raises(ValidationError) as exc_info:
        apply_review_correction(record, entity="999")

    assert exc_info.value.field == "entity"


def test_mark_error_drops_partial_data(make_record):
    """An error record carries no extracted values."""

    record = make_record(document_number="2025 1", raw_text="texto")

    record.mark_error("OCR failed for: scan.pdf")

    assert record.status == PaymentStatus.ERROR
    assert record.error == "OCR failed for: scan.pdf"
    assert record.tax_id == ""
    assert record.payment_reference == ""
    assert record.amount is None
    assert record.raw_text is None
    assert record.entity == ""
