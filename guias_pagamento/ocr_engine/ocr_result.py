"""
OCR Result Data Class.

Typed outcome of one recognition call: either text, or a failure reason.
OCR is a slow call that fails for ordinary reasons (missing language
data, a timeout, an unreadable scan), so callers branch on ``success``
instead of catching exceptions.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class OCRResult:
    """
    Output of the OCR engine for one image.

    Attributes:
        text: Recognized text (empty on failure)
        success: Whether recognition produced usable text
        error: Failure reason when ``success`` is False
        engine: Backend that ran ("tesseract")
        language: Language code used
        processing_time: Seconds spent in recognition
        metadata: Backend-specific details

    Example:
        >>> result = OCRResult.failure("Tesseract not installed")
        >>> result.success
        False
    """

    text: str = ""
    success: bool = False
    error: Optional[str] = None
    engine: str = "tesseract"
    language: str = "por"
    processing_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, text: str, **kwargs: Any) -> 'OCRResult':
        return cls(text=text, success=True, **kwargs)

    @classmethod
    def failure(cls, reason: str, **kwargs: Any) -> 'OCRResult':
        return cls(text="", success=False, error=reason, **kwargs)

    @property
    def char_count(self) -> int:
        return len(self.text.strip())

    def is_empty(self) -> bool:
        return self.char_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'error': self.error,
            'engine': self.engine,
            'language': self.language,
            'char_count': self.char_count,
            'processing_time': round(self.processing_time, 3),
            'metadata': self.metadata,
        }

    def __repr__(self) -> str:
        if self.success:
            return f"OCRResult(ok, {self.char_count} chars, {self.processing_time:.2f}s)"
        return f"OCRResult(failed: {self.error})"
