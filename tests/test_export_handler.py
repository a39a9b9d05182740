"""Tests for export preconditions, file writing and the review report."""
from datetime import date
from unittest.mock import patch

import pytest

from guias_pagamento.extraction import PaymentStatus
from guias_pagamento.output_handler import DebtorConfig, ExportHandler, PS2Config, parse_footer
from guias_pagamento.utils.exceptions import (
    EmptyBatchError,
    EncodingPreconditionError,
    ExportWriteError,
    InvalidDebtorConfigError,
)

VALID_DEBTOR = DebtorConfig(name="EMPRESA EXEMPLO LDA", iban="PT50000201231234567890154")


@pytest.fixture
def handler(tmp_path) -> ExportHandler:
    return ExportHandler(
        output_dir=str(tmp_path),
        debtor=VALID_DEBTOR,
        ps2_config=PS2Config(account_number="003500000000000000001"),
        execution_date=date(2025, 10, 20),
    )


@pytest.fixture
def mixed_records(success_records, make_record):
    review = make_record(tax_id="", status=PaymentStatus.NEEDS_REVIEW, source_file="review.pdf")
    error = make_record(status=PaymentStatus.ERROR, source_file="error.pdf")
    error.mark_error("File not found: error.pdf")
    return [success_records[0], review, success_records[1], error, success_records[2]]


def test_sepa_export_writes_dated_file(handler, success_records, tmp_path):
    path = handler.export(success_records, "sepa")

    assert path == str(tmp_path / f"SEPA_{date.today().isoformat()}.xml")
    content = (tmp_path / path).read_bytes()
    assert content.startswith(b'<?xml version="1.0" encoding="UTF-8"?>')
    assert b"<NbOfTxs>3</NbOfTxs>" in content


def test_ps2_export_only_contains_success_records(handler, mixed_records, tmp_path):
    """needs_review and error records stay out of the bank file."""

    path = handler.export(mixed_records, "ps2", filename="lote.ps2")

    lines = (tmp_path / "lote.ps2").read_text(encoding="ascii").splitlines()
    assert path.endswith("lote.ps2")
    assert len(lines) == 5
    assert parse_footer(lines[-1]) == (3, 1500)


def test_export_all_formats(handler, success_records):
    written = handler.export_all(success_records, ["sepa", "ps2"])

    assert set(written) == {"sepa", "ps2"}
    assert written["ps2"].endswith(".ps2")


def test_empty_batch_is_refused(handler, make_record, tmp_path):
    """Nothing exportable: the export fails, no file appears."""

    records = [make_record(tax_id="", status=PaymentStatus.NEEDS_REVIEW)]

    with pytest.raises(EmptyBatchError):
        handler.export(records, "sepa")
    with pytest.raises(EncodingPreconditionError):
        handler.export([], "ps2")

    assert list(tmp_path.iterdir()) == []


def test_invalid_debtor_is_refused(success_records, tmp_path):
    handler = ExportHandler(output_dir=str(tmp_path), debtor=DebtorConfig(name="EMPRESA", iban="PT50 123"))

    with pytest.raises(InvalidDebtorConfigError) as exc_info:
        handler.export(success_records, "sepa")

    assert exc_info.value.problems == ["IBAN do devedor inválido"]


def test_failed_export_leaves_records_untouched(handler, mixed_records):
    """Export problems never change the batch."""

    before = [(record.status, record.error) for record in mixed_records]
    handler.debtor = DebtorConfig()

    with pytest.raises(InvalidDebtorConfigError):
        handler.export(mixed_records, "sepa")

    assert [(record.status, record.error) for record in mixed_records] == before


def test_unknown_format(handler, success_records):
    with pytest.raises(ValueError):
        handler.export(success_records, "csv")


def test_write_failure_is_reported(handler, success_records):
    with patch("pathlib.Path.write_bytes", side_effect=PermissionError("read-only")):
        with pytest.raises(ExportWriteError) as exc_info:
            handler.export(success_records, "sepa")

    assert exc_info.value.details["reason"] == "read-only"


def test_default_filenames(handler):
    today = date(2025, 10, 19)

    assert handler.default_filename("sepa", today) == "SEPA_2025-10-19.xml"
    assert handler.default_filename("ps2", today) == "PS2_2025-10-19.ps2"


def test_review_report(handler, mixed_records, tmp_path):
    """Every record is listed with its status; the summary counts statuses."""

    openpyxl = pytest.importorskip("openpyxl")

    path = handler.export_report(mixed_records, filename="relatorio.xlsx")

    workbook = openpyxl.load_workbook(path)
    assert workbook.sheetnames == ["Guias", "Resumo"]

    sheet = workbook["Guias"]
    assert sheet.max_row == len(mixed_records) + 1
    headers = [cell.value for cell in sheet[1]]
    status_column = headers.index("Estado") + 1
    statuses = [sheet.cell(row=row, column=status_column).value for row in range(2, sheet.max_row + 1)]
    assert statuses == ["success", "needs_review", "success", "error", "success"]
