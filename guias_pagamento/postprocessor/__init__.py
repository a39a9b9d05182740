"""
Post-Processing Module.

This module provides functionality for:
    - Amount, date and digit-run normalization
    - NIF, payment reference, amount, IBAN and BIC validation
    - Mandatory-field validation of payment records
    - Review corrections for records that need manual input
"""

from .processor import RecordValidator, ValidationOutcome, apply_review_correction
from .validators import (
    AmountValidator,
    BICValidator,
    DateValidator,
    IBANValidator,
    NIFValidator,
    ReferenceValidator,
)
from .normalizers import AmountNormalizer, DateNormalizer, DigitsNormalizer, TextNormalizer

__all__ = [
    'RecordValidator',
    'ValidationOutcome',
    'apply_review_correction',
    'NIFValidator',
    'ReferenceValidator',
    'AmountValidator',
    'DateValidator',
    'IBANValidator',
    'BICValidator',
    'AmountNormalizer',
    'DateNormalizer',
    'DigitsNormalizer',
    'TextNormalizer',
]
