"""
Main OCR Engine Module.

Single entry point for turning a page image into text. The engine
creates a backend for each call and terminates it afterwards, so a long
batch never holds on to a stale Tesseract instance.

Usage:
    from guias_pagamento.ocr_engine import OCREngine

    engine = OCREngine()
    result = engine.recognize(image)

    if result.success:
        print(result.text)
    else:
        print(result.error)
"""

import io
import time
from typing import Any, Callable, Optional, Union

from PIL import Image

from config import get_config
from guias_pagamento.utils.logger import get_logger
from guias_pagamento.utils.exceptions import OCRError
from .ocr_result import OCRResult
from .tesseract_backend import TesseractBackend

# Initialize module logger
logger = get_logger(__name__)


class OCREngine:
    """
    OCR engine with a typed, non-raising result.

    Every failure mode (Tesseract missing, language data missing, timeout,
    unreadable image, empty output) ends up as ``OCRResult.failure`` with
    the underlying message preserved.

    Attributes:
        backend_name: Name of the OCR backend
        language: Language code passed to the backend
        tessdata_dir: Language model directory passed to the backend

    Example:
        >>> engine = OCREngine()
        >>> result = engine.recognize(image)
        >>> result.success, len(result.text)
        (True, 1834)
    """

    SUPPORTED_BACKENDS = ['tesseract']

    def __init__(
        self,
        backend: Optional[str] = None,
        language: Optional[str] = None,
        tessdata_dir: Optional[str] = None,
        backend_factory: Optional[Callable[..., Any]] = None
    ) -> None:
        """
        Initialize the OCR engine.

        Args:
            backend: OCR backend to use. If None, uses configuration.
            language: Language code. If None, uses ``ocr.tesseract.lang``.
            tessdata_dir: Language model directory. If None, uses config.
            backend_factory: Callable building a backend from
                ``(language=..., tessdata_dir=...)``; replaces the default
                Tesseract backend (used by tests).
        """
        self.backend_name = backend or get_config("ocr.engine", "tesseract")

        # Normalize backend name
        if self.backend_name == "pytesseract":
            self.backend_name = "tesseract"

        if self.backend_name not in self.SUPPORTED_BACKENDS:
            logger.warning(
                f"Unknown backend '{self.backend_name}', falling back to tesseract"
            )
            self.backend_name = "tesseract"

        self.language = language or get_config("ocr.tesseract.lang", "por")
        self.tessdata_dir = tessdata_dir or get_config("ocr.tesseract.tessdata_dir", None)
        self._backend_factory = backend_factory or TesseractBackend

        logger.debug(f"OCR Engine configured with backend: {self.backend_name} ({self.language})")

    def _create_backend(self):
        return self._backend_factory(language=self.language, tessdata_dir=self.tessdata_dir)

    def recognize(self, image: Union[Image.Image, bytes]) -> OCRResult:
        """
        Recognize the text of an image.

        Args:
            image: PIL Image, or encoded image bytes (PNG, JPEG...).

        Returns:
            OCRResult; ``success`` is False when recognition failed or
            produced no text.
        """
        start_time = time.time()
        meta = {'engine': self.backend_name, 'language': self.language}

        if isinstance(image, (bytes, bytearray)):
            try:
                image = Image.open(io.BytesIO(image))
            except Exception as e:
                return OCRResult.failure(f"Failed to load image: {e}", **meta)

        if not isinstance(image, Image.Image):
            return OCRResult.failure("Invalid image input", **meta)

        backend = None
        try:
            backend = self._create_backend()
            text = backend.recognize(image)
        except OCRError as e:
            logger.error(f"OCR failed: {e}")
            return OCRResult.failure(
                str(e), processing_time=time.time() - start_time, **meta
            )
        finally:
            if backend is not None:
                backend.terminate()

        processing_time = time.time() - start_time

        if not text or not text.strip():
            logger.warning(f"OCR produced no text ({processing_time:.2f}s)")
            return OCRResult.failure(
                "OCR produced no text", processing_time=processing_time, **meta
            )

        logger.info(f"OCR completed: {len(text)} chars ({processing_time:.2f}s)")
        return OCRResult.ok(text, processing_time=processing_time, **meta)
