"""Tests for the Text Source Adapter (native text with OCR fallback)."""
from unittest.mock import MagicMock

import pytest
from PIL import Image

from guias_pagamento.extraction import DocumentOrigin
from guias_pagamento.input_handler import PDFProcessor, TextSourceAdapter
from guias_pagamento.ocr_engine import OCRResult
from guias_pagamento.utils.exceptions import (
    CorruptedFileError,
    DocumentNotFoundError,
    OCRProcessingError,
    RasterizationError,
    SourceError,
)

PDF_BYTES = b"%PDF-1.4 fake"


@pytest.fixture
def pdf_processor() -> MagicMock:
    processor = MagicMock(spec=PDFProcessor)
    processor.get_metadata.return_value = {"file_size_bytes": len(PDF_BYTES)}
    processor.rasterize_page.return_value = Image.new("RGB", (40, 20), color="white")
    return processor


@pytest.fixture
def ocr_engine() -> MagicMock:
    engine = MagicMock()
    engine.recognize.return_value = OCRResult.ok("NIF: 123456789 texto reconhecido por OCR")
    return engine


@pytest.fixture
def adapter(pdf_processor, ocr_engine) -> TextSourceAdapter:
    return TextSourceAdapter(pdf_processor=pdf_processor, ocr_engine=ocr_engine)


def test_native_text_is_used_when_long_enough(adapter, pdf_processor, ocr_engine, guide_text):
    """A real text layer never triggers OCR."""

    pdf_processor.extract_text.return_value = guide_text

    document = adapter.read(PDF_BYTES, filename="guia.pdf")

    assert document.origin == DocumentOrigin.NATIVE
    assert document.text == guide_text
    assert document.filename == "guia.pdf"
    pdf_processor.rasterize_page.assert_not_called()
    ocr_engine.recognize.assert_not_called()


def test_short_text_falls_back_to_ocr(adapter, pdf_processor, ocr_engine):
    """Metadata noise below the threshold sends the first page to OCR."""

    pdf_processor.extract_text.return_value = "   Microsoft Word - guia   "

    document = adapter.read(PDF_BYTES, filename="scan.pdf")

    assert document.origin == DocumentOrigin.OCR
    assert document.text.startswith("NIF: 123456789")
    assert document.metadata["ocr"]["success"] is True
    pdf_processor.rasterize_page.assert_called_once_with(PDF_BYTES)
    ocr_engine.recognize.assert_called_once()


@pytest.mark.parametrize("length, origin", [(50, DocumentOrigin.NATIVE), (49, DocumentOrigin.OCR)])
def test_threshold_counts_trimmed_characters(adapter, pdf_processor, length, origin):
    """Exactly 50 trimmed characters is enough; surrounding whitespace is not counted."""

    pdf_processor.extract_text.return_value = "\n  " + "x" * length + "  \n"

    assert adapter.read(PDF_BYTES).origin == origin


def test_custom_threshold(pdf_processor, ocr_engine):
    pdf_processor.extract_text.return_value = "x" * 20
    adapter = TextSourceAdapter(pdf_processor, ocr_engine, native_text_threshold=10)

    assert adapter.read(PDF_BYTES).origin == DocumentOrigin.NATIVE


def test_ocr_failure_becomes_source_error(adapter, pdf_processor, ocr_engine):
    """Empty text and failed OCR end as a SourceError carrying the OCR reason."""

    pdf_processor.extract_text.return_value = ""
    ocr_engine.recognize.return_value = OCRResult.failure("Tesseract failed: por.traineddata missing")

    with pytest.raises(OCRProcessingError) as exc_info:
        adapter.read(PDF_BYTES, filename="scan.pdf")

    assert isinstance(exc_info.value, SourceError)
    assert exc_info.value.reason == "Tesseract failed: por.traineddata missing"
    assert "scan.pdf" in str(exc_info.value)


def test_rasterization_failure_is_a_source_error(adapter, pdf_processor):
    pdf_processor.extract_text.return_value = ""
    pdf_processor.rasterize_page.side_effect = RasterizationError(0, "broken page")

    with pytest.raises(SourceError):
        adapter.read(PDF_BYTES)


def test_read_from_path(adapter, pdf_processor, guide_text, tmp_path):
    """Paths are read from disk and named after the file."""

    pdf_path = tmp_path / "guia.pdf"
    pdf_path.write_bytes(PDF_BYTES)
    pdf_processor.extract_text.return_value = guide_text

    document = adapter.read(pdf_path)

    assert document.filename == "guia.pdf"
    pdf_processor.extract_text.assert_called_once_with(PDF_BYTES)


def test_missing_and_empty_files(adapter, tmp_path):
    """Unreadable inputs raise SourceError subclasses."""

    with pytest.raises(DocumentNotFoundError):
        adapter.read(tmp_path / "nao_existe.pdf")

    empty = tmp_path / "vazio.pdf"
    empty.write_bytes(b"")
    with pytest.raises(CorruptedFileError):
        adapter.read(empty)

    with pytest.raises(CorruptedFileError):
        adapter.read(b"")


def test_collect_files_sorted_pdfs_only(adapter, tmp_path):
    for name in ["b.pdf", "a.PDF", "notas.txt"]:
        (tmp_path / name).write_bytes(PDF_BYTES)
    nested = tmp_path / "sub"
    nested.mkdir()
    (nested / "c.pdf").write_bytes(PDF_BYTES)

    assert [p.name for p in adapter.collect_files(tmp_path)] == ["a.PDF", "b.pdf"]
    assert [p.name for p in adapter.collect_files(tmp_path, recursive=True)] == ["a.PDF", "b.pdf", "c.pdf"]

    with pytest.raises(DocumentNotFoundError):
        adapter.collect_files(tmp_path / "missing")


class TestPDFProcessor:
    """Against real PDFs built with PyMuPDF."""

    @pytest.fixture
    def pdf_with_text(self) -> bytes:
        fitz = pytest.importorskip("fitz")
        doc = fitz.open()
        page = doc.new_page(width=595, height=842)
        page.insert_text((72, 72), "NIF: 123456789")
        page.insert_text((72, 100), "VALOR A PAGAR: 110,40")
        data = doc.tobytes()
        doc.close()
        return data

    def test_extract_text(self, pdf_with_text):
        text = PDFProcessor().extract_text(pdf_with_text)

        assert "NIF: 123456789" in text
        assert "110,40" in text

    def test_rasterize_at_double_scale(self, pdf_with_text):
        """Pages are rendered at 2x the PDF point size by default."""

        image = PDFProcessor().rasterize_page(pdf_with_text)

        assert image.mode == "RGB"
        assert image.size == (1190, 1684)

    def test_unreadable_pdf(self):
        """Garbage has no text layer and cannot be rendered."""

        processor = PDFProcessor()

        assert processor.extract_text(b"not a pdf") == ""
        with pytest.raises(RasterizationError):
            processor.rasterize_page(b"not a pdf")
