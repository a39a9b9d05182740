"""
Data Normalizers Module.

Turn text captured by the extraction rules into clean values:
    - Portuguese-formatted amounts ("1.234,56") into Decimal
    - Dates into ISO format (YYYY-MM-DD)
    - Digit runs with OCR separators into plain digit strings
    - Periods and names into tidy single-line text

Every normalizer returns None when the input cannot be read with
confidence; callers treat that as "field not found".
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional

from dateutil import parser as date_parser

from config import get_config
from guias_pagamento.utils.helpers import digits_only
from guias_pagamento.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

CENTS = Decimal("0.01")


class AmountNormalizer:
    """
    Normalizes Portuguese amount strings to Decimal with 2 decimal places.

    Dots or single spaces are thousands separators and the comma is the
    decimal mark. A lone dot followed by exactly two digits ("110.40") is
    read as a decimal point since it cannot be a thousands group. Anything
    else that does not fit these shapes is rejected instead of guessed.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.normalize("1.234,56")
        Decimal('1234.56')
        >>> normalizer.normalize("3,00")
        Decimal('3.00')
        >>> normalizer.normalize("1,2,3") is None
        True
    """

    CURRENCY_SYMBOLS = ['€', 'EUR', 'Eur', 'eur']

    _PT_AMOUNT = re.compile(r'^(?:\d{1,3}(?:\.\d{3})+|\d{1,3}(?: \d{3})+|\d+)(?:,\d{1,2})?$')
    _DOT_DECIMAL = re.compile(r'^\d+\.\d{2}$')

    def normalize(self, amount_str: Optional[str]) -> Optional[Decimal]:
        """
        Parse an amount string.

        Args:
            amount_str: Raw amount text (e.g. "€ 1.234,56").

        Returns:
            Decimal rounded to cents, or None if malformed.
        """
        if not amount_str:
            return None

        cleaned = self._clean_amount_string(amount_str)
        if not cleaned:
            return None

        if self._DOT_DECIMAL.match(cleaned):
            numeric = cleaned
        elif self._PT_AMOUNT.match(cleaned):
            numeric = cleaned.replace('.', '').replace(' ', '').replace(',', '.')
        else:
            logger.debug(f"Malformed amount: {amount_str!r}")
            return None

        try:
            return Decimal(numeric).quantize(CENTS, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            logger.debug(f"Could not parse amount: {amount_str!r}")
            return None

    def _clean_amount_string(self, amount_str: str) -> str:
        """Drop currency markers and trailing punctuation; collapse inner spaces."""
        for symbol in self.CURRENCY_SYMBOLS:
            amount_str = amount_str.replace(symbol, '')
        amount_str = re.sub(r'\s+', ' ', amount_str).strip()
        return amount_str.strip('.,;:').strip()

    @staticmethod
    def to_cents(amount: Decimal) -> int:
        """Integer cents of an amount; used by the fixed-width encoder."""
        return int((amount.quantize(CENTS, rounding=ROUND_HALF_UP) * 100).to_integral_value())


class DateNormalizer:
    """
    Normalizes date strings to ISO format (YYYY-MM-DD).

    Portuguese guides print dates either as YYYY-MM-DD or DD-MM-YYYY with
    "-", "/" or "." separators; ambiguous inputs are read day-first.

    Example:
        >>> DateNormalizer().normalize("20/10/2025")
        '2025-10-20'
    """

    MIN_YEAR = 2000
    MAX_YEAR = 2100

    def __init__(self) -> None:
        self.output_format = get_config("postprocessing.date.output_format", "%Y-%m-%d")
        self.input_formats: List[str] = get_config(
            "postprocessing.date.input_formats",
            [
                "%Y-%m-%d",
                "%Y/%m/%d",
                "%Y.%m.%d",
                "%d-%m-%Y",
                "%d/%m/%Y",
                "%d.%m.%Y",
            ]
        )

    def normalize(self, date_str: Optional[str]) -> Optional[str]:
        """
        Normalize a date string.

        Returns:
            ISO date string, or None when the date cannot be parsed or
            falls outside a plausible range.
        """
        if not date_str:
            return None

        date_str = re.sub(r'\s+', '', date_str)

        parsed = self._try_explicit_formats(date_str)
        if parsed is None:
            parsed = self._try_dateutil_parser(date_str)

        if parsed is None or not (self.MIN_YEAR <= parsed.year <= self.MAX_YEAR):
            logger.debug(f"Could not parse date: {date_str!r}")
            return None

        return parsed.strftime(self.output_format)

    def _try_explicit_formats(self, date_str: str) -> Optional[datetime]:
        for fmt in self.input_formats:
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue
        return None

    def _try_dateutil_parser(self, date_str: str) -> Optional[datetime]:
        try:
            return date_parser.parse(date_str, dayfirst=True)
        except (ValueError, OverflowError):
            return None


class DigitsNormalizer:
    """
    Strips separators from digit runs and enforces an exact length.

    Example:
        >>> DigitsNormalizer(15).normalize("156.080.671.478.311")
        '156080671478311'
        >>> DigitsNormalizer(15, pad=True).normalize("12533167452")
        '000012533167452'
    """

    def __init__(self, length: int, pad: bool = False) -> None:
        self.length = length
        self.pad = pad

    def normalize(self, value: Optional[str]) -> Optional[str]:
        digits = digits_only(value or "")
        if self.pad and 0 < len(digits) < self.length:
            digits = digits.zfill(self.length)
        if len(digits) != self.length:
            return None
        return digits


class TextNormalizer:
    """Cleans free-text values such as taxpayer names and periods."""

    @staticmethod
    def clean_text(text: Optional[str]) -> Optional[str]:
        """Collapse whitespace and trim punctuation; None if nothing is left."""
        if not text:
            return None
        cleaned = ' '.join(text.split()).strip(' .,;:-')
        return cleaned or None

    @staticmethod
    def clean_period(text: Optional[str]) -> Optional[str]:
        """"2025 / 09T" -> "2025/09T"."""
        if not text:
            return None
        cleaned = re.sub(r'\s+', '', text).upper()
        return cleaned or None

    @staticmethod
    def clean_document_number(text: Optional[str]) -> Optional[str]:
        """Keep the digit groups of a document number, single-spaced."""
        if not text:
            return None
        groups = re.findall(r'\d+', text)
        return ' '.join(groups) or None
