"""Tests for the PS2 fixed-width encoder."""
from datetime import date, datetime
from decimal import Decimal

import pytest

from guias_pagamento.extraction import PaymentRecord, PaymentStatus
from guias_pagamento.output_handler import (
    OutputBatch,
    PS2Config,
    PS2Encoder,
    ValidatedPaymentRecord,
    parse_footer,
    parse_header,
    validate_ps2_batch,
)

NOW = datetime(2025, 10, 19, 9, 0, 0)


@pytest.fixture
def batch(success_records) -> OutputBatch:
    return OutputBatch.from_records(success_records)


@pytest.fixture
def encoder() -> PS2Encoder:
    return PS2Encoder(PS2Config(account_number="0035 0000 0000 0000 0000 1", execution_date=date(2025, 10, 20)))


def test_every_record_is_80_characters(encoder, batch):
    lines = encoder.encode(batch, now=NOW).decode("ascii").split("\n")

    assert lines[-1] == ""
    assert len(lines[:-1]) == 5
    assert all(len(line) == 80 for line in lines[:-1])
    assert [line[:4] for line in lines[:-1]] == ["PS21", "PS22", "PS22", "PS22", "PS29"]


def test_footer_for_three_payments_totalling_15_euros(encoder, batch):
    """Count zero-padded to 8 digits and total in cents zero-padded to 17."""

    footer = encoder.render(batch, now=NOW)[-1]

    assert footer[:6] == "PS2947"
    assert footer[6:14] == "00000003"
    assert footer[14:31] == "1500".zfill(17)
    assert footer[31:] == "0" * 49


def test_header_layout(encoder, batch):
    header = encoder.render(batch, now=NOW)[0]

    assert header[:6] == "PS2147"
    assert header[6:27] == "003500000000000000001"
    assert header[27:35] == "20251019"
    assert header[35:43] == "20251020"
    assert header[43:46] == "EUR"
    assert parse_header(header) == (3, 1500)


def test_detail_layout(encoder, batch):
    """Entity, cents, NIF, reference, due date and tax code at fixed columns."""

    detail = encoder.render(batch, now=NOW)[3]

    assert detail[:6] == "PS2247"
    assert detail[6:9] == "156"
    assert detail[9:22] == "0000000000250"
    assert detail[22:31] == "123456789"
    assert detail[31:46] == "156000000000002"
    assert detail[46:54] == "20251020"
    assert detail[54:57] == "041"
    assert detail[57:] == " " * 23


def test_optional_detail_fields_are_zero_filled(encoder, batch):
    detail = encoder.render(batch, now=NOW)[1]

    assert detail[46:54] == "00000000"
    assert detail[54:57] == "000"


def test_missing_account_is_zero_filled(batch):
    header = PS2Encoder().render(batch, now=NOW)[0]

    assert header[6:27] == "0" * 21
    assert header[35:43] == "20251019"


@pytest.mark.parametrize("size", [0, 1, 2, 7, 25])
def test_footer_totals_match_batch(size):
    """Count and cents read back from the footer equal the batch totals."""

    records = [
        PaymentRecord(
            tax_id="123456789",
            payment_reference=f"{156000000000000 + index}",
            amount=Decimal(index * 37 + 1) / 100,
            status=PaymentStatus.SUCCESS,
        )
        for index in range(size)
    ]
    batch = OutputBatch.from_records(records)

    content = PS2Encoder().encode(batch, now=NOW).decode("ascii")
    footer = content.splitlines()[-1]

    assert parse_footer(footer) == (batch.count, batch.total_cents)
    assert batch.total_cents == sum(index * 37 + 1 for index in range(size))


def test_amount_too_large_for_field_is_refused():
    """Overflowing a numeric field is an error, never a truncation."""

    record = ValidatedPaymentRecord(
        tax_id="123456789",
        payment_reference="156080671478311",
        amount=Decimal("99999999999999.99"),
    )
    batch = OutputBatch((record,))

    with pytest.raises(ValueError):
        PS2Encoder().render(batch, now=NOW)


def test_parse_footer_rejects_other_records(encoder, batch):
    header = encoder.render(batch, now=NOW)[0]

    with pytest.raises(ValueError):
        parse_footer(header)
    with pytest.raises(ValueError):
        parse_footer("PS29")


def test_validate_ps2_batch(batch):
    assert validate_ps2_batch(batch) == []
    assert validate_ps2_batch(OutputBatch()) == ["Sem pagamentos para processar"]
    assert validate_ps2_batch(batch, PS2Config(account_number="1" * 22)) == [
        "Conta ordenante com mais de 21 dígitos"
    ]


def test_ps2_config_from_settings():
    from config import ConfigurationManager

    config = ConfigurationManager()
    config.set("ps2.account_number", "003500000000000000001")
    config.set("ps2.execution_date", "2025-10-31")

    ps2_config = PS2Config.from_config()

    assert ps2_config.account_number == "003500000000000000001"
    assert ps2_config.execution_date == date(2025, 10, 31)
