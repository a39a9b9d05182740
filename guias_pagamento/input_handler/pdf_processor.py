"""
PDF Processor Module.

Two low-level operations on the raw bytes of a payment guide:
    - Native text-layer extraction (pdfplumber)
    - Rasterization of a single page for OCR (PyMuPDF, with pdf2image
      as a fallback renderer)

Text extraction never raises: a PDF whose text layer cannot be read is
treated as having no text, which sends it to OCR. Rasterization failures
are reported as :class:`RasterizationError`.
"""

import io
from typing import Any, Dict, Optional

from PIL import Image

from config import get_config
from guias_pagamento.utils.logger import get_logger
from guias_pagamento.utils.exceptions import RasterizationError

# Initialize module logger
logger = get_logger(__name__)

# PDF user space is 72 points per inch
PDF_BASE_DPI = 72.0


class PDFProcessor:
    """
    Processor for PDF payment guides.

    Attributes:
        raster_scale: Upscale factor applied when rendering a page for OCR
        raster_page: Zero-based index of the page handed to OCR

    Example:
        >>> processor = PDFProcessor()
        >>> text = processor.extract_text(pdf_bytes)
        >>> image = processor.rasterize_page(pdf_bytes, page_index=0)
    """

    def __init__(self, raster_scale: Optional[float] = None) -> None:
        """Initialize the PDF processor with configuration."""
        self.raster_scale = raster_scale or get_config("input.pdf.raster_scale", 2.0)
        self.raster_page = get_config("input.pdf.raster_page", 0)

        # Check for required libraries
        self._check_dependencies()

        logger.debug(f"PDFProcessor initialized (scale={self.raster_scale})")

    def _check_dependencies(self) -> None:
        """Look up the PDF libraries; each missing one only disables its step."""
        try:
            import pdfplumber
            self._pdfplumber = pdfplumber
        except ImportError:
            logger.warning("pdfplumber not available. Install with: pip install pdfplumber")
            self._pdfplumber = None

        try:
            import fitz  # PyMuPDF
            self._pymupdf = fitz
        except ImportError:
            logger.debug("PyMuPDF not available. Using pdf2image for rasterization.")
            self._pymupdf = None

        try:
            import pdf2image
            self._pdf2image = pdf2image
        except ImportError:
            logger.debug("pdf2image not available.")
            self._pdf2image = None

    def extract_text(self, data: bytes) -> str:
        """
        Extract the embedded text of every page.

        Args:
            data: Raw PDF bytes.

        Returns:
            Page texts joined by newlines, or "" when the PDF has no text
            layer or cannot be parsed.
        """
        if self._pdfplumber is None:
            return ""

        try:
            with self._pdfplumber.open(io.BytesIO(data)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            return "\n".join(pages)
        except Exception as e:
            logger.warning(f"Text extraction failed: {e}")
            return ""

    def rasterize_page(
        self,
        data: bytes,
        page_index: Optional[int] = None,
        scale: Optional[float] = None
    ) -> Image.Image:
        """
        Render one page to an RGB image.

        Args:
            data: Raw PDF bytes.
            page_index: Zero-based page index (default: configured page).
            scale: Upscale factor (default: configured scale, 2.0).

        Returns:
            PIL Image of the page.

        Raises:
            RasterizationError: If no renderer is available or the page
                cannot be rendered.
        """
        page_index = self.raster_page if page_index is None else page_index
        scale = scale or self.raster_scale

        if self._pymupdf is not None:
            return self._rasterize_with_pymupdf(data, page_index, scale)
        if self._pdf2image is not None:
            return self._rasterize_with_pdf2image(data, page_index, scale)

        raise RasterizationError(page_index, "no PDF renderer installed (PyMuPDF or pdf2image)")

    def _rasterize_with_pymupdf(self, data: bytes, page_index: int, scale: float) -> Image.Image:
        logger.debug(f"Rendering page {page_index + 1} with PyMuPDF at {scale}x")

        try:
            doc = self._pymupdf.open(stream=data, filetype="pdf")
            try:
                page = doc.load_page(page_index)
                matrix = self._pymupdf.Matrix(scale, scale)
                pix = page.get_pixmap(matrix=matrix)
                img_data = pix.tobytes("png")
            finally:
                doc.close()

            image = Image.open(io.BytesIO(img_data))
            if image.mode != 'RGB':
                image = image.convert('RGB')
            return image

        except Exception as e:
            logger.error(f"PyMuPDF rasterization failed: {e}")
            raise RasterizationError(page_index, str(e))

    def _rasterize_with_pdf2image(self, data: bytes, page_index: int, scale: float) -> Image.Image:
        logger.debug(f"Rendering page {page_index + 1} with pdf2image at {scale}x")

        try:
            images = self._pdf2image.convert_from_bytes(
                data,
                dpi=int(PDF_BASE_DPI * scale),
                first_page=page_index + 1,
                last_page=page_index + 1,
                fmt='png'
            )
        except Exception as e:
            logger.error(f"pdf2image rasterization failed: {e}")
            raise RasterizationError(page_index, str(e))

        if not images:
            raise RasterizationError(page_index, "page not found")

        image = images[0]
        return image.convert('RGB') if image.mode != 'RGB' else image

    def get_metadata(self, data: bytes) -> Dict[str, Any]:
        """
        Basic PDF metadata for the debug log.

        Args:
            data: Raw PDF bytes.

        Returns:
            Dictionary with size and, when readable, page count and creator.
        """
        metadata: Dict[str, Any] = {'file_size_bytes': len(data)}

        if self._pymupdf is not None:
            try:
                doc = self._pymupdf.open(stream=data, filetype="pdf")
                try:
                    metadata['total_pages'] = len(doc)
                    pdf_metadata = doc.metadata or {}
                    metadata['pdf_creator'] = pdf_metadata.get('creator', '')
                    metadata['pdf_producer'] = pdf_metadata.get('producer', '')
                finally:
                    doc.close()
            except Exception as e:
                logger.debug(f"Could not extract PDF metadata: {e}")

        return metadata
