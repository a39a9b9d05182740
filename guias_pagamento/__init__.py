"""
Guias de Pagamento - Source Package.

Turns Portuguese tax payment guides (PDF, native text or scanned) into
validated payment records and exports them as bank files.

Modules:
    - input_handler: PDF text layer and rasterization (Text Source Adapter)
    - ocr_engine: Tesseract fallback for image-only guides
    - extraction: Payment record model and rule-based Field Extractor
    - postprocessor: Normalization, validation and review corrections
    - output_handler: SEPA XML and PS2 encoders, export files, review report
    - pipeline: Concurrent, order-preserving batch processing

Architecture:
    PDF → Text Source → Field Extractor → Record Validator → SEPA | PS2
"""

__version__ = "1.0.1"

__all__ = [
    'input_handler',
    'ocr_engine',
    'extraction',
    'postprocessor',
    'output_handler',
    'pipeline',
    'utils'
]
