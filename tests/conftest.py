"""Shared fixtures: sample guide texts, records and fake text sources."""
import logging
import sys
import threading
import time
from decimal import Decimal
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

# Ensure repository root is on sys.path for module resolution
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import ConfigurationManager
from guias_pagamento.extraction import DocumentOrigin, PaymentRecord, PaymentStatus
from guias_pagamento.input_handler import DocumentText
from guias_pagamento.utils.exceptions import OCRProcessingError
from guias_pagamento.utils.logger import APP_LOGGER_NAME


NATIVE_GUIDE_TEXT = """AUTORIDADE TRIBUTÁRIA E ADUANEIRA
DOCUMENTO DE PAGAMENTO
NÚMERO DO DOCUMENTO
2025 1234567
NÚMERO DE IDENTIFICAÇÃO FISCAL
123456789
NOME
EMPRESA EXEMPLO LDA
Código do imposto: 041
Período: 2025/09T
Data limite de pagamento: 20-10-2025
Referência para pagamento: 156 080 671 478 311
VALOR A PAGAR: 1.234,56 €
"""

SHORT_GUIDE_TEXT = (
    "NÚMERO DE IDENTIFICAÇÃO FISCAL\n123456789\n... 156.080.671.478.311 ... VALOR A PAGAR 110,40"
)

NO_NIF_TEXT = (
    "DOCUMENTO DE PAGAMENTO\n"
    "Referência: 156.080.671.478.311\n"
    "Importância a pagar: 25,00 €\n"
)


@pytest.fixture(autouse=True)
def reset_config():
    """Give every test a fresh configuration and an unconfigured app logger."""

    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.handlers.clear()
    app_logger.setLevel(logging.NOTSET)
    app_logger.propagate = True


@pytest.fixture
def guide_text() -> str:
    """Native text layer of a complete payment guide."""

    return NATIVE_GUIDE_TEXT


@pytest.fixture
def short_guide_text() -> str:
    """Minimal guide: NIF under its header, dotted reference, amount."""

    return SHORT_GUIDE_TEXT


@pytest.fixture
def no_nif_text() -> str:
    """Guide with reference and amount but no NIF anywhere."""

    return NO_NIF_TEXT


@pytest.fixture
def make_record() -> Callable[..., PaymentRecord]:
    """Factory for records in any status; defaults to an exportable one."""

    def _make(
        amount: str = "5.00",
        tax_id: str = "123456789",
        payment_reference: str = "156080671478311",
        status: PaymentStatus = PaymentStatus.SUCCESS,
        **fields
    ) -> PaymentRecord:
        return PaymentRecord(
            tax_id=tax_id,
            payment_reference=payment_reference,
            amount=Decimal(amount) if amount is not None else None,
            status=status,
            **fields
        )

    return _make


@pytest.fixture
def success_records(make_record):
    """Three exportable records totalling 15.00 EUR."""

    return [
        make_record("5.00", source_file="a.pdf", document_number="2025 1", period="2025/09T"),
        make_record("7.50", tax_id="500000000", payment_reference="247000000000001", source_file="b.pdf"),
        make_record("2.50", payment_reference="156000000000002", source_file="c.pdf", due_date="2025-10-20", tax_code="041"),
    ]


class FakeTextSource:
    """
    Stand-in for TextSourceAdapter keyed by file name.

    Each entry is either the document text, an exception to raise, or a
    (text, delay) pair to make documents finish out of order.
    """

    def __init__(self, documents: Dict[str, object]) -> None:
        self.documents = documents
        self.calls = []
        self._lock = threading.Lock()

    def read(self, source, filename: Optional[str] = None) -> DocumentText:
        name = filename or Path(source).name
        with self._lock:
            self.calls.append(name)

        entry = self.documents[name]
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, tuple):
            text, delay = entry
            time.sleep(delay)
        else:
            text = entry
        return DocumentText(text, DocumentOrigin.NATIVE, name)

    def collect_files(self, directory, recursive: bool = False):
        return sorted(Path(directory) / name for name in self.documents)


@pytest.fixture
def fake_source_factory():
    """Build a FakeTextSource from a {name: text | exception | (text, delay)} map."""

    return FakeTextSource


@pytest.fixture
def ocr_failure() -> OCRProcessingError:
    """The error the text source raises when OCR produced nothing."""

    return OCRProcessingError("scan.pdf", "OCR produced no text")
