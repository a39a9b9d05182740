"""
Input Handler Module.

This module provides functionality for:
    - Loading payment guides from disk or memory
    - Reading the native PDF text layer
    - Rendering image-only PDFs for OCR
"""

from .handler import DocumentText, TextSourceAdapter
from .pdf_processor import PDFProcessor

__all__ = ['TextSourceAdapter', 'DocumentText', 'PDFProcessor']
