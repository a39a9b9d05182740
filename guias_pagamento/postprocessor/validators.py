"""
Data Validators Module.

Shape checks for the fields of a payment record and for the debtor
account data used when exporting.

Each validator exposes ``validate(value) -> (is_valid, message)`` and an
``is_valid`` shortcut.
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from guias_pagamento.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class NIFValidator:
    """
    Validates Portuguese tax identification numbers.

    A NIF is mandatory-valid when it is exactly 9 digits. The mod-11 check
    digit is reported separately through :meth:`has_valid_check_digit`
    so that a misread digit can be flagged without rejecting the record.

    Example:
        >>> NIFValidator().validate("123456789")
        (True, 'Valid NIF')
    """

    _NIF_RE = re.compile(r'^\d{9}$')

    def is_valid(self, value: Optional[str]) -> bool:
        valid, _ = self.validate(value)
        return valid

    def validate(self, value: Optional[str]) -> Tuple[bool, str]:
        if not value:
            return False, "NIF is empty"
        if not self._NIF_RE.match(value):
            return False, f"NIF must be exactly 9 digits: {value!r}"
        return True, "Valid NIF"

    @staticmethod
    def has_valid_check_digit(value: str) -> bool:
        """Mod-11 check digit used by the Portuguese tax authority."""
        if not value or not value.isdigit() or len(value) != 9:
            return False
        total = sum(int(digit) * weight for digit, weight in zip(value[:8], range(9, 1, -1)))
        check = 11 - (total % 11)
        if check >= 10:
            check = 0
        return check == int(value[8])


class ReferenceValidator:
    """Validates that a payment reference is exactly 15 digits."""

    _REFERENCE_RE = re.compile(r'^\d{15}$')

    def is_valid(self, value: Optional[str]) -> bool:
        valid, _ = self.validate(value)
        return valid

    def validate(self, value: Optional[str]) -> Tuple[bool, str]:
        if not value:
            return False, "Payment reference is empty"
        if not self._REFERENCE_RE.match(value):
            return False, f"Payment reference must be exactly 15 digits: {value!r}"
        return True, "Valid payment reference"


class AmountValidator:
    """
    Validates payment amounts.

    Checks for:
        - Numeric value
        - Strictly positive
        - At most two decimal places
        - Below a sanity ceiling
    """

    MAX_AMOUNT = Decimal("999999999.99")

    def is_valid(self, value: object) -> bool:
        valid, _ = self.validate(value)
        return valid

    def validate(self, value: object) -> Tuple[bool, str]:
        if value is None or value == "":
            return False, "Amount is empty"

        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation:
            return False, f"Could not parse amount: {value!r}"

        if not amount.is_finite():
            return False, f"Could not parse amount: {value!r}"
        if amount <= 0:
            return False, "Amount must be greater than zero"
        if amount > self.MAX_AMOUNT:
            return False, f"Amount {amount} exceeds maximum"
        if amount.as_tuple().exponent < -2:
            return False, f"Amount {amount} has more than 2 decimal places"

        return True, "Valid amount"


class DateValidator:
    """Validates ISO dates (YYYY-MM-DD)."""

    _ISO_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')

    def validate(self, value: Optional[str]) -> Tuple[bool, str]:
        if not value:
            return False, "Date is empty"
        if not self._ISO_RE.match(value):
            return False, f"Date must be YYYY-MM-DD: {value!r}"
        try:
            datetime.strptime(value, "%Y-%m-%d")
        except ValueError as e:
            return False, f"Invalid date: {e}"
        return True, "Valid date"

    def is_valid(self, value: Optional[str]) -> bool:
        valid, _ = self.validate(value)
        return valid


class IBANValidator:
    """
    Validates the debtor IBAN for Portuguese accounts.

    Spaces are ignored and letters upper-cased; the result must be "PT"
    followed by 23 digits.

    Example:
        >>> IBANValidator().is_valid("PT50 0002 0123 1234 5678 9015 4")
        True
    """

    _PT_IBAN_RE = re.compile(r'^PT\d{23}$')

    @staticmethod
    def clean(iban: Optional[str]) -> str:
        return re.sub(r'\s', '', iban or '').upper()

    def validate(self, iban: Optional[str]) -> Tuple[bool, str]:
        if not iban:
            return False, "IBAN is empty"
        if not self._PT_IBAN_RE.match(self.clean(iban)):
            return False, "IBAN must be PT followed by 23 digits"
        return True, "Valid IBAN"

    def is_valid(self, iban: Optional[str]) -> bool:
        valid, _ = self.validate(iban)
        return valid


class BICValidator:
    """Validates a BIC/SWIFT code: 8 or 11 alphanumeric characters."""

    _BIC_RE = re.compile(r'^[A-Z]{6}[A-Z0-9]{2}(?:[A-Z0-9]{3})?$')

    def validate(self, bic: Optional[str]) -> Tuple[bool, str]:
        if not bic:
            return False, "BIC is empty"
        if not self._BIC_RE.match(bic.strip().upper()):
            return False, "BIC must have 8 or 11 alphanumeric characters"
        return True, "Valid BIC"

    def is_valid(self, bic: Optional[str]) -> bool:
        valid, _ = self.validate(bic)
        return valid
