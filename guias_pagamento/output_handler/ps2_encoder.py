"""
PS2 Encoder Module.

Fixed-width batch file for payments to the State. Every record is exactly
80 ASCII characters; numeric fields are right-justified and zero-padded;
amounts are integer cents.

Record layout (1-based column ranges):

    PS21 header
        1-4    "PS21"
        5-6    "47"                 operation code, payments to the State
        7-27   ordering account     21 digits
        28-35  creation date        YYYYMMDD
        36-43  execution date       YYYYMMDD
        44-46  "EUR"
        47-51  transaction count    5 digits
        52-64  total amount         13 digits, cents
        65-80  zeros

    PS22 detail, one per payment
        1-4    "PS22"
        5-6    "47"
        7-9    entity               first 3 digits of the reference
        10-22  amount               13 digits, cents
        23-31  NIF                  9 digits
        32-46  payment reference    15 digits
        47-54  due date             YYYYMMDD, zeros when unknown
        55-57  tax code             3 digits, "000" when unknown
        58-80  spaces

    PS29 footer
        1-4    "PS29"
        5-6    "47"
        7-14   transaction count    8 digits
        15-31  total amount         17 digits, cents
        32-80  zeros

Records are separated by "\\n" and the file ends with a newline.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple

from config import get_config
from guias_pagamento.utils.helpers import digits_only
from guias_pagamento.utils.logger import get_logger
from .batch import OutputBatch, ValidatedPaymentRecord

# Initialize module logger
logger = get_logger(__name__)

RECORD_LENGTH = 80
OPERATION_CODE = "47"
CURRENCY = "EUR"

HEADER_TYPE = "PS21"
DETAIL_TYPE = "PS22"
FOOTER_TYPE = "PS29"

ACCOUNT_WIDTH = 21
HEADER_COUNT_WIDTH = 5
HEADER_TOTAL_WIDTH = 13
DETAIL_AMOUNT_WIDTH = 13
FOOTER_COUNT_WIDTH = 8
FOOTER_TOTAL_WIDTH = 17

# Footer field offsets (0-based), used by parse_footer
_FOOTER_COUNT = slice(6, 6 + FOOTER_COUNT_WIDTH)
_FOOTER_TOTAL = slice(14, 14 + FOOTER_TOTAL_WIDTH)
_HEADER_COUNT = slice(46, 46 + HEADER_COUNT_WIDTH)
_HEADER_TOTAL = slice(51, 51 + HEADER_TOTAL_WIDTH)


def _numeric(value: int, width: int, name: str) -> str:
    """Zero-pad a non-negative integer; refuses to truncate."""
    text = str(value).zfill(width)
    if value < 0 or len(text) > width:
        raise ValueError(f"{name} {value} does not fit in {width} digits")
    return text


def _digits(value: str, width: int, name: str) -> str:
    digits = digits_only(value or "")
    if len(digits) > width:
        raise ValueError(f"{name} {value!r} does not fit in {width} digits")
    return digits.zfill(width)


def format_date(value: Optional[date]) -> str:
    """date -> YYYYMMDD; None -> eight zeros."""
    if value is None:
        return "0" * 8
    return value.strftime("%Y%m%d")


def format_iso_date(value: str) -> str:
    """"2025-10-31" -> "20251031"; "" -> eight zeros."""
    digits = digits_only(value or "")
    return digits if len(digits) == 8 else "0" * 8


@dataclass(frozen=True)
class PS2Config:
    """
    Optional PS2 settings.

    Attributes:
        account_number: Ordering account (NIB digits); zeros when absent
        execution_date: Requested execution date (default: today)
    """

    account_number: str = ""
    execution_date: Optional[date] = None

    @classmethod
    def from_config(cls) -> 'PS2Config':
        raw_date = get_config("ps2.execution_date", None)
        execution_date = None
        if isinstance(raw_date, date):
            execution_date = raw_date
        elif raw_date:
            execution_date = datetime.strptime(str(raw_date), "%Y-%m-%d").date()

        return cls(
            account_number=str(get_config("ps2.account_number", "") or ""),
            execution_date=execution_date,
        )


def validate_ps2_batch(batch: OutputBatch, config: Optional[PS2Config] = None) -> List[str]:
    """
    Check a batch before writing a PS2 file.

    Returns:
        List of problems, one per offending payment; empty when valid.
    """
    problems = []

    if batch.is_empty:
        problems.append("Sem pagamentos para processar")

    for index, record in enumerate(batch, start=1):
        if len(record.tax_id) != 9 or not record.tax_id.isdigit():
            problems.append(f"Pagamento {index}: NIF inválido")
        if not record.payment_reference:
            problems.append(f"Pagamento {index}: Referência de pagamento em falta")
        if record.amount <= 0:
            problems.append(f"Pagamento {index}: Montante inválido")
        if len(record.entity) != 3:
            problems.append(f"Pagamento {index}: Código de entidade inválido")

    if config is not None and len(digits_only(config.account_number)) > ACCOUNT_WIDTH:
        problems.append(f"Conta ordenante com mais de {ACCOUNT_WIDTH} dígitos")

    return problems


class PS2Encoder:
    """
    PS2 fixed-width encoder.

    Example:
        >>> encoder = PS2Encoder(PS2Config(account_number="003500000000000000000"))
        >>> lines = encoder.render(batch)
        >>> all(len(line) == 80 for line in lines)
        True
    """

    def __init__(
        self,
        config: Optional[PS2Config] = None,
        clock: Optional[Callable[[], datetime]] = None
    ) -> None:
        self.config = config or PS2Config()
        self._clock = clock or datetime.now

    def header(self, batch: OutputBatch, now: datetime) -> str:
        execution_date = self.config.execution_date or now.date()
        return self._check(
            HEADER_TYPE
            + OPERATION_CODE
            + _digits(self.config.account_number, ACCOUNT_WIDTH, "account number")
            + format_date(now.date())
            + format_date(execution_date)
            + CURRENCY
            + _numeric(batch.count, HEADER_COUNT_WIDTH, "transaction count")
            + _numeric(batch.total_cents, HEADER_TOTAL_WIDTH, "total amount")
            + "0" * 16
        )

    def detail(self, record: ValidatedPaymentRecord) -> str:
        return self._check(
            DETAIL_TYPE
            + OPERATION_CODE
            + _digits(record.entity, 3, "entity")
            + _numeric(record.amount_cents, DETAIL_AMOUNT_WIDTH, "amount")
            + _digits(record.tax_id, 9, "NIF")
            + _digits(record.payment_reference, 15, "payment reference")
            + format_iso_date(record.due_date)
            + (_digits(record.tax_code, 3, "tax code") if record.tax_code else "000")
            + " " * 23
        )

    def footer(self, batch: OutputBatch) -> str:
        return self._check(
            FOOTER_TYPE
            + OPERATION_CODE
            + _numeric(batch.count, FOOTER_COUNT_WIDTH, "transaction count")
            + _numeric(batch.total_cents, FOOTER_TOTAL_WIDTH, "total amount")
            + "0" * 49
        )

    @staticmethod
    def _check(line: str) -> str:
        if len(line) != RECORD_LENGTH:
            raise ValueError(f"PS2 record has {len(line)} characters: {line!r}")
        return line

    def render(self, batch: OutputBatch, now: Optional[datetime] = None) -> List[str]:
        """Header, one detail per record, footer."""
        now = now or self._clock()
        lines = [self.header(batch, now)]
        lines.extend(self.detail(record) for record in batch)
        lines.append(self.footer(batch))
        return lines

    def encode(self, batch: OutputBatch, now: Optional[datetime] = None) -> bytes:
        """
        Serialize a batch to the PS2 file contents.

        Returns:
            ASCII bytes, newline-separated 80-character records.
        """
        lines = self.render(batch, now)
        logger.info(
            f"PS2 file built: {batch.count} payment(s), total {batch.total_cents} cents"
        )
        return ("\n".join(lines) + "\n").encode("ascii")


def parse_footer(line: str) -> Tuple[int, int]:
    """
    Read (transaction count, total cents) back from a PS29 footer.

    Raises:
        ValueError: If ``line`` is not an 80-character footer record.
    """
    line = line.rstrip("\r\n")
    if len(line) != RECORD_LENGTH or not line.startswith(FOOTER_TYPE):
        raise ValueError(f"Not a PS2 footer record: {line!r}")
    return int(line[_FOOTER_COUNT]), int(line[_FOOTER_TOTAL])


def parse_header(line: str) -> Tuple[int, int]:
    """Read (transaction count, total cents) back from a PS21 header."""
    line = line.rstrip("\r\n")
    if len(line) != RECORD_LENGTH or not line.startswith(HEADER_TYPE):
        raise ValueError(f"Not a PS2 header record: {line!r}")
    return int(line[_HEADER_COUNT]), int(line[_HEADER_TOTAL])
