"""Tests for amount, date, digit and reference normalization."""
from decimal import Decimal

import pytest

from guias_pagamento.extraction import PaymentRecord, normalize_reference
from guias_pagamento.postprocessor import (
    AmountNormalizer,
    DateNormalizer,
    DigitsNormalizer,
    TextNormalizer,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1.234,56", Decimal("1234.56")),
        ("3,00", Decimal("3.00")),
        ("110,40", Decimal("110.40")),
        ("€ 1.234.567,89", Decimal("1234567.89")),
        ("1.234", Decimal("1234.00")),
        ("110.40", Decimal("110.40")),
        ("25,5", Decimal("25.50")),
        ("42", Decimal("42.00")),
        ("1 234,56", Decimal("1234.56")),
        ("€ 12 500", Decimal("12500.00")),
        ("1 234 567,89 €", Decimal("1234567.89")),
    ],
)
def test_amount_normalizer_reads_portuguese_amounts(raw, expected):
    """Dots or single spaces group thousands and the comma marks decimals."""

    assert AmountNormalizer().normalize(raw) == expected


@pytest.mark.parametrize(
    "raw", ["1,2,3", "12.34.5", "abc", "", None, "1.23,456", "12 34,56", "1 2345,00", "1 234.567"]
)
def test_amount_normalizer_rejects_malformed_text(raw):
    """Anything that is not clearly an amount yields None rather than a guess."""

    assert AmountNormalizer().normalize(raw) is None


def test_amount_to_cents():
    """Cents are exact integers, used by the fixed-width export."""

    assert AmountNormalizer.to_cents(Decimal("1234.56")) == 123456
    assert AmountNormalizer.to_cents(Decimal("0.10")) == 10


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2025-10-31", "2025-10-31"),
        ("31/10/2025", "2025-10-31"),
        ("20-10-2025", "2025-10-20"),
        ("2025.10.31", "2025-10-31"),
    ],
)
def test_date_normalizer_outputs_iso(raw, expected):
    """Both year-first and day-first guide dates become ISO dates."""

    assert DateNormalizer().normalize(raw) == expected


def test_date_normalizer_rejects_impossible_dates():
    """Out-of-range and unparseable dates are dropped."""

    normalizer = DateNormalizer()
    assert normalizer.normalize("99/99/2025") is None
    assert normalizer.normalize("01/01/1890") is None


def test_digits_normalizer_enforces_length():
    """Separators are stripped and the length must match exactly."""

    assert DigitsNormalizer(15).normalize("156.080.671.478.311") == "156080671478311"
    assert DigitsNormalizer(9).normalize("12345678901") is None
    assert DigitsNormalizer(15, pad=True).normalize("12533167452") == "000012533167452"


def test_text_normalizer_cleans_period_and_names():
    """Periods lose inner spaces; names collapse whitespace."""

    assert TextNormalizer.clean_period("2025 / 09t") == "2025/09T"
    assert TextNormalizer.clean_text("  EMPRESA   EXEMPLO\tLDA. ") == "EMPRESA EXEMPLO LDA"
    assert TextNormalizer.clean_document_number("2025  1234567") == "2025 1234567"


def test_normalize_reference_is_fifteen_digits_or_empty():
    """A reference is never kept at any other length."""

    assert normalize_reference("156 080 671 478 311") == "156080671478311"
    assert normalize_reference("15608067147831") == ""
    assert normalize_reference("1560806714783111") == ""
    assert normalize_reference(None) == ""


def test_record_entity_follows_reference():
    """Entity is always the first three digits of the current reference."""

    record = PaymentRecord(payment_reference="156.080.671.478.311")
    assert record.entity == "156"

    record.payment_reference = "247000000000001"
    assert record.entity == "247"

    record.payment_reference = "123"
    assert record.payment_reference == ""
    assert record.entity == ""
