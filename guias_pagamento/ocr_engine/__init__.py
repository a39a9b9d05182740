"""
OCR Engine Module.

Fallback text source for image-only payment guides:
    - Tesseract backend (pytesseract), Portuguese by default
    - Typed success/failure result instead of exceptions
"""

from .engine import OCREngine
from .tesseract_backend import TesseractBackend
from .ocr_result import OCRResult

__all__ = ['OCREngine', 'TesseractBackend', 'OCRResult']
