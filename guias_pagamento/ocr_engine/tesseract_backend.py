"""
Tesseract OCR Backend.

Recognizes the text of a rasterized payment guide with Tesseract through
pytesseract. Portuguese ("por") is the default language; the traineddata
directory can be pointed elsewhere with ``ocr.tesseract.tessdata_dir``.

Requirements:
    - Tesseract OCR installed on the system, with the por language data
    - pytesseract Python package
"""

from typing import Optional

from PIL import Image

from config import get_config
from guias_pagamento.utils.logger import get_logger
from guias_pagamento.utils.exceptions import OCREngineNotAvailableError, OCRProcessingError

# Initialize module logger
logger = get_logger(__name__)


class TesseractBackend:
    """
    Tesseract OCR backend implementation.

    Attributes:
        language: Tesseract language code (e.g., "por")
        tessdata_dir: Directory holding the language models, or None for
            the Tesseract default
        psm: Page Segmentation Mode (1-13)
        oem: OCR Engine Mode (0-3)
        timeout: Seconds before a recognition call is killed (0 = none)

    Example:
        >>> backend = TesseractBackend()
        >>> text = backend.recognize(image)
        >>> backend.terminate()
    """

    def __init__(
        self,
        language: Optional[str] = None,
        tessdata_dir: Optional[str] = None
    ) -> None:
        """Initialize the Tesseract backend with configuration."""
        self.language = language or get_config("ocr.tesseract.lang", "por")
        self.tessdata_dir = tessdata_dir or get_config("ocr.tesseract.tessdata_dir", None)
        self.psm = get_config("ocr.tesseract.psm", 3)
        self.oem = get_config("ocr.tesseract.oem", 3)
        self.timeout = get_config("ocr.tesseract.timeout", 0)
        self.extra_config = get_config("ocr.tesseract.config", "")
        self.version: Optional[str] = None
        self._closed = False

        self._check_dependencies()

        logger.debug(
            f"TesseractBackend initialized (lang={self.language}, "
            f"psm={self.psm}, oem={self.oem})"
        )

    def _check_dependencies(self) -> None:
        """
        Check if Tesseract is available.

        Raises:
            OCREngineNotAvailableError: If Tesseract is not installed.
        """
        try:
            import pytesseract
            self._pytesseract = pytesseract

            # Test Tesseract is accessible
            self.version = str(pytesseract.get_tesseract_version())
            logger.debug(f"Tesseract version: {self.version}")

        except ImportError:
            raise OCREngineNotAvailableError(
                "pytesseract (install with: pip install pytesseract)"
            )
        except Exception as e:
            raise OCREngineNotAvailableError(
                f"Tesseract OCR (not installed or not in PATH): {e}"
            )

    def _build_config(self) -> str:
        """
        Build Tesseract configuration string.

        Returns:
            Configuration string for Tesseract.
        """
        config_parts = [
            f"--psm {self.psm}",
            f"--oem {self.oem}"
        ]

        if self.tessdata_dir:
            config_parts.append(f'--tessdata-dir "{self.tessdata_dir}"')

        if self.extra_config:
            config_parts.append(self.extra_config)

        return ' '.join(config_parts)

    def recognize(self, image: Image.Image) -> str:
        """
        Recognize the text of an image.

        Args:
            image: PIL Image to process.

        Returns:
            Recognized text, stripped.

        Raises:
            OCRProcessingError: If the backend was terminated or Tesseract
                fails (missing language data, timeout, bad image).
        """
        if self._closed:
            raise OCRProcessingError("image", "backend already terminated")

        try:
            # Ensure image is in correct format
            if image.mode not in ('RGB', 'L'):
                image = image.convert('RGB')

            config = self._build_config()
            logger.debug(f"Running Tesseract OCR (lang={self.language}, config: {config})")

            text = self._pytesseract.image_to_string(
                image,
                lang=self.language,
                config=config,
                timeout=self.timeout,
            )
            return text.strip()

        except self._pytesseract.TesseractError as e:
            raise OCRProcessingError("image", f"Tesseract failed: {e}")
        except RuntimeError as e:
            # pytesseract reports timeouts as a plain RuntimeError
            raise OCRProcessingError("image", f"Tesseract timed out: {e}")
        except Exception as e:
            raise OCRProcessingError("image", str(e))

    def terminate(self) -> None:
        """Release the backend; later recognize() calls fail."""
        if not self._closed:
            logger.debug("Tesseract backend terminated")
        self._closed = True

    @property
    def is_terminated(self) -> bool:
        return self._closed
