"""
Text Source Adapter Module.

Turns a payment guide (file path or raw PDF bytes) into text:

    1. Read the native text layer of the PDF.
    2. If it holds fewer than ``native_text_threshold`` characters after
       trimming (default 50, enough to tell real text from PDF metadata
       noise), render the first page at 2x and hand it to OCR.

Usage:
    from guias_pagamento.input_handler import TextSourceAdapter

    adapter = TextSourceAdapter()
    document = adapter.read("guia.pdf")
    print(document.origin, document.char_count)

Classes:
    DocumentText: Text of one document with its origin
    TextSourceAdapter: Native-text-then-OCR reader
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from config import get_config
from guias_pagamento.extraction.payment_record import DocumentOrigin
from guias_pagamento.ocr_engine import OCREngine
from guias_pagamento.utils.exceptions import (
    CorruptedFileError,
    DocumentNotFoundError,
    OCRProcessingError,
)
from guias_pagamento.utils.helpers import preview
from guias_pagamento.utils.logger import get_logger
from .pdf_processor import PDFProcessor

# Initialize module logger
logger = get_logger(__name__)


@dataclass
class DocumentText:
    """
    Raw text of one document.

    Attributes:
        text: Native text layer or OCR output
        origin: native or ocr
        filename: Source file name, when known
        metadata: File size, page count and OCR timing for the debug log
    """

    text: str
    origin: DocumentOrigin
    filename: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def char_count(self) -> int:
        return len(self.text)

    def __repr__(self) -> str:
        return (
            f"DocumentText(filename='{self.filename}', "
            f"origin='{self.origin.value}', "
            f"chars={self.char_count})"
        )


class TextSourceAdapter:
    """
    Reads payment guides, falling back to OCR for image-only PDFs.

    Attributes:
        supported_extensions: File extensions accepted by :meth:`collect_files`
        native_text_threshold: Minimum trimmed length of a usable text layer
        pdf_processor: PDFProcessor for text extraction and rendering

    Example:
        >>> adapter = TextSourceAdapter()
        >>> document = adapter.read("guia.pdf")
        >>> document.origin
        <DocumentOrigin.NATIVE: 'native'>
    """

    PDF_EXTENSIONS = {'.pdf'}

    def __init__(
        self,
        pdf_processor: Optional[PDFProcessor] = None,
        ocr_engine: Optional[OCREngine] = None,
        native_text_threshold: Optional[int] = None
    ) -> None:
        """
        Initialize the adapter.

        Args:
            pdf_processor: PDF processor to use. Created from config if None.
            ocr_engine: OCR engine to use. Created on first OCR fallback if None.
            native_text_threshold: Override of ``input.pdf.native_text_threshold``.
        """
        self.supported_extensions = {
            ext.lower()
            for ext in get_config("input.supported_extensions", list(self.PDF_EXTENSIONS))
        }
        self.native_text_threshold = (
            native_text_threshold
            if native_text_threshold is not None
            else get_config("input.pdf.native_text_threshold", 50)
        )
        self.pdf_processor = pdf_processor or PDFProcessor()
        self._ocr_engine = ocr_engine

        logger.debug(
            f"TextSourceAdapter initialized (threshold={self.native_text_threshold}, "
            f"extensions={sorted(self.supported_extensions)})"
        )

    @property
    def ocr_engine(self) -> OCREngine:
        if self._ocr_engine is None:
            self._ocr_engine = OCREngine()
        return self._ocr_engine

    def validate_file(self, filepath: Union[str, Path]) -> Path:
        """
        Validate that a file exists and is not empty.

        Raises:
            DocumentNotFoundError: If the file does not exist.
            CorruptedFileError: If the path is not a file or is empty.
        """
        path = Path(filepath)

        if not path.exists():
            raise DocumentNotFoundError(str(filepath))

        if not path.is_file():
            raise CorruptedFileError(str(filepath), "Path is not a file")

        if path.stat().st_size == 0:
            raise CorruptedFileError(str(filepath), "File is empty")

        return path

    def read(self, source: Union[str, Path, bytes], filename: Optional[str] = None) -> DocumentText:
        """
        Get the text of a document.

        Args:
            source: Path to a PDF file, or the PDF bytes.
            filename: Display name when ``source`` is bytes.

        Returns:
            DocumentText with origin ``native`` or ``ocr``.

        Raises:
            SourceError: If the file cannot be read, the page cannot be
                rasterized, or OCR fails. Callers turn this into an
                ``error`` record for the document.
        """
        if isinstance(source, (bytes, bytearray)):
            return self.read_bytes(bytes(source), filename or "")

        path = self.validate_file(source)
        logger.info(f"Reading PDF file: {path.name}")
        try:
            data = path.read_bytes()
        except OSError as e:
            raise CorruptedFileError(str(path), str(e))

        return self.read_bytes(data, filename or path.name)

    def read_bytes(self, data: bytes, filename: str = "") -> DocumentText:
        """Same as :meth:`read` for PDF bytes already in memory."""
        if not data:
            raise CorruptedFileError(filename or "<bytes>", "Document is empty")

        metadata = self.pdf_processor.get_metadata(data)
        logger.debug(f"PDF read: {metadata}")

        text = self.pdf_processor.extract_text(data)
        logger.info(f"Text extraction result: {len(text)} characters")
        logger.debug(f"Text preview: {preview(text)}")

        if len(text.strip()) >= self.native_text_threshold:
            return DocumentText(text, DocumentOrigin.NATIVE, filename, metadata)

        logger.info("Text extraction insufficient, starting OCR process")
        return self._read_with_ocr(data, filename, metadata)

    def _read_with_ocr(self, data: bytes, filename: str, metadata: Dict[str, Any]) -> DocumentText:
        # RasterizationError propagates as a SourceError
        image = self.pdf_processor.rasterize_page(data)
        logger.debug(f"Page rendered: {image.size[0]}x{image.size[1]}")

        result = self.ocr_engine.recognize(image)
        metadata['ocr'] = result.to_dict()

        if not result.success:
            raise OCRProcessingError(filename or "<bytes>", result.error)

        logger.info(f"OCR completed: {result.char_count} characters")
        logger.debug(f"OCR preview: {preview(result.text)}")
        return DocumentText(result.text, DocumentOrigin.OCR, filename, metadata)

    def collect_files(
        self,
        directory: Union[str, Path],
        recursive: bool = False
    ) -> List[Path]:
        """
        List the supported documents in a directory, sorted by name.

        Args:
            directory: Directory containing payment guides.
            recursive: Whether to search subdirectories.

        Raises:
            DocumentNotFoundError: If the directory does not exist.
        """
        directory = Path(directory)

        if not directory.is_dir():
            raise DocumentNotFoundError(str(directory))

        pattern = "**/*" if recursive else "*"
        files = [
            path for path in directory.glob(pattern)
            if path.is_file() and path.suffix.lower() in self.supported_extensions
        ]

        files = sorted(set(files))
        logger.info(f"Found {len(files)} files to process in {directory}")
        return files
