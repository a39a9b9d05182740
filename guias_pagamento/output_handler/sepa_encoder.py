"""
SEPA Encoder Module.

Serializes an :class:`OutputBatch` into an ISO 20022 pain.001.001.03
customer credit transfer initiation: one group header, one payment
information block for the debtor, and one credit transfer transaction
per payment guide, all paid to the Portuguese tax authority.

Debtor data comes from configuration and must pass
:func:`validate_debtor_config` before encoding; the encoder itself does
not re-validate it.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional

from config import get_config
from guias_pagamento.postprocessor.validators import BICValidator, IBANValidator
from guias_pagamento.utils.logger import get_logger
from .batch import OutputBatch, ValidatedPaymentRecord

# Initialize module logger
logger = get_logger(__name__)

PAIN_NAMESPACE = "urn:iso:std:iso:20022:tech:xsd:pain.001.001.03"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

CURRENCY = "EUR"

# Creditor: Autoridade Tributária e Aduaneira
CREDITOR_NAME = "AUTORIDADE TRIBUTARIA E ADUANEIRA"
CREDITOR_IBAN = "PT50003506514963985101172"
CREDITOR_BIC = "BBPIPTPLXXX"

CREDITOR_REFERENCE_TYPE = "SCOR"
CREDITOR_REFERENCE_ISSUER = "PT:AT"

REMITTANCE_SEPARATOR = " | "
# pain.001 Max140Text
REMITTANCE_MAX_LENGTH = 140


@dataclass(frozen=True)
class DebtorConfig:
    """
    The paying company's account.

    Attributes:
        name: Debtor name as registered with the bank
        iban: Debtor IBAN (spaces allowed, normalized on encoding)
        bic: Debtor bank BIC, optional
    """

    name: str = ""
    iban: str = ""
    bic: str = ""

    @classmethod
    def from_config(cls) -> 'DebtorConfig':
        """Build from the ``sepa.debtor`` section of the settings."""
        return cls(
            name=get_config("sepa.debtor.name", "") or "",
            iban=get_config("sepa.debtor.iban", "") or "",
            bic=get_config("sepa.debtor.bic", "") or "",
        )

    @property
    def clean_iban(self) -> str:
        return IBANValidator.clean(self.iban)

    @property
    def clean_bic(self) -> str:
        return (self.bic or "").strip().upper()


def validate_debtor_config(debtor: DebtorConfig) -> List[str]:
    """
    Check the debtor data before a SEPA export.

    Args:
        debtor: Debtor configuration.

    Returns:
        List of problems; empty when the configuration is usable.

    Example:
        >>> validate_debtor_config(DebtorConfig(name="", iban="PT50"))
        ['Nome do devedor é obrigatório', 'IBAN do devedor inválido']
    """
    problems = []

    if not debtor.name or not debtor.name.strip():
        problems.append("Nome do devedor é obrigatório")

    if not IBANValidator().is_valid(debtor.iban):
        problems.append("IBAN do devedor inválido")

    if debtor.bic and not BICValidator().is_valid(debtor.bic):
        problems.append("BIC do devedor inválido")

    return problems


def build_remittance_info(record: ValidatedPaymentRecord) -> str:
    """
    Free-text remittance line: NIF, entity, document number and period.

    Empty parts are left out.

    Example:
        >>> build_remittance_info(record)
        'NIF: 123456789 | Entidade: 156 | Documento: 2025 123 | Periodo: 2025/09T'
    """
    parts = [
        f"NIF: {record.tax_id}" if record.tax_id else None,
        f"Entidade: {record.entity}" if record.entity else None,
        f"Documento: {record.document_number}" if record.document_number else None,
        f"Periodo: {record.period}" if record.period else None,
    ]
    info = REMITTANCE_SEPARATOR.join(part for part in parts if part)
    return info[:REMITTANCE_MAX_LENGTH]


def _sub(parent: ET.Element, tag: str, text: Optional[str] = None, **attrib: str) -> ET.Element:
    element = ET.SubElement(parent, tag, attrib)
    if text is not None:
        element.text = text
    return element


def _format_amount(value) -> str:
    return f"{value:.2f}"


class SepaEncoder:
    """
    pain.001.001.03 encoder.

    Message and payment-information identifiers are derived from the
    current time in milliseconds. Pass ``now`` to get reproducible output.

    Attributes:
        debtor: Paying account
        execution_date: Requested execution date (default: today)

    Example:
        >>> encoder = SepaEncoder(DebtorConfig("EMPRESA LDA", "PT50...", "BCOMPTPL"))
        >>> xml_bytes = encoder.encode(batch)
    """

    def __init__(
        self,
        debtor: DebtorConfig,
        execution_date: Optional[date] = None,
        clock: Optional[Callable[[], datetime]] = None
    ) -> None:
        self.debtor = debtor
        self.execution_date = execution_date
        self._clock = clock or datetime.now

    def build_document(self, batch: OutputBatch, now: Optional[datetime] = None) -> ET.Element:
        """
        Build the XML tree for a batch.

        Args:
            batch: Validated records, in export order.
            now: Timestamp for identifiers and creation time.

        Returns:
            Root ``Document`` element.
        """
        now = now or self._clock()
        stamp = int(now.timestamp() * 1000)
        execution_date = self.execution_date or now.date()

        count = str(batch.count)
        control_sum = _format_amount(batch.total_amount)

        document = ET.Element("Document", {"xmlns": PAIN_NAMESPACE, "xmlns:xsi": XSI_NAMESPACE})
        initiation = _sub(document, "CstmrCdtTrfInitn")

        # Group header
        header = _sub(initiation, "GrpHdr")
        _sub(header, "MsgId", f"MSG-{stamp}")
        _sub(header, "CreDtTm", now.replace(microsecond=0).isoformat())
        _sub(header, "NbOfTxs", count)
        _sub(header, "CtrlSum", control_sum)
        initiating_party = _sub(header, "InitgPty")
        _sub(initiating_party, "Nm", self.debtor.name)

        # Payment information
        payment_info = _sub(initiation, "PmtInf")
        _sub(payment_info, "PmtInfId", f"PMT-{stamp}")
        _sub(payment_info, "PmtMtd", "TRF")
        _sub(payment_info, "BtchBookg", "true")
        _sub(payment_info, "NbOfTxs", count)
        _sub(payment_info, "CtrlSum", control_sum)
        payment_type = _sub(payment_info, "PmtTpInf")
        service_level = _sub(payment_type, "SvcLvl")
        _sub(service_level, "Cd", "SEPA")
        _sub(payment_info, "ReqdExctnDt", execution_date.isoformat())

        debtor = _sub(payment_info, "Dbtr")
        _sub(debtor, "Nm", self.debtor.name)
        debtor_account = _sub(payment_info, "DbtrAcct")
        _sub(_sub(debtor_account, "Id"), "IBAN", self.debtor.clean_iban)
        debtor_agent = _sub(_sub(payment_info, "DbtrAgt"), "FinInstnId")
        if self.debtor.clean_bic:
            _sub(debtor_agent, "BIC", self.debtor.clean_bic)
        else:
            _sub(_sub(debtor_agent, "Othr"), "Id", "NOTPROVIDED")

        _sub(payment_info, "ChrgBr", "SLEV")

        for index, record in enumerate(batch, start=1):
            self._add_transaction(payment_info, index, record)

        return document

    def _add_transaction(self, payment_info: ET.Element, index: int, record: ValidatedPaymentRecord) -> None:
        transaction = _sub(payment_info, "CdtTrfTxInf")

        payment_id = _sub(transaction, "PmtId")
        _sub(payment_id, "InstrId", f"TXN-{index}")
        _sub(payment_id, "EndToEndId", record.payment_reference)

        amount = _sub(transaction, "Amt")
        _sub(amount, "InstdAmt", _format_amount(record.amount), Ccy=CURRENCY)

        _sub(_sub(_sub(transaction, "CdtrAgt"), "FinInstnId"), "BIC", CREDITOR_BIC)
        _sub(_sub(transaction, "Cdtr"), "Nm", CREDITOR_NAME)
        _sub(_sub(_sub(transaction, "CdtrAcct"), "Id"), "IBAN", CREDITOR_IBAN)

        structured = _sub(_sub(transaction, "RmtInf"), "Strd")
        reference_info = _sub(structured, "CdtrRefInf")
        reference_type = _sub(reference_info, "Tp")
        _sub(_sub(reference_type, "CdOrPrtry"), "Cd", CREDITOR_REFERENCE_TYPE)
        _sub(reference_type, "Issr", CREDITOR_REFERENCE_ISSUER)
        _sub(reference_info, "Ref", record.payment_reference)

        remittance = build_remittance_info(record)
        if remittance:
            _sub(structured, "AddtlRmtInf", remittance)

    def encode(self, batch: OutputBatch, now: Optional[datetime] = None) -> bytes:
        """
        Serialize a batch to UTF-8 XML bytes.

        Args:
            batch: Validated records, in export order.
            now: Timestamp for identifiers and creation time.

        Returns:
            XML document with declaration, indented by two spaces.
        """
        document = self.build_document(batch, now)
        ET.indent(document, space="  ")
        body = ET.tostring(document, encoding="unicode")

        logger.info(
            f"SEPA document built: {batch.count} transaction(s), "
            f"control sum {_format_amount(batch.total_amount)} {CURRENCY}"
        )
        return f"{XML_DECLARATION}\n{body}\n".encode("utf-8")
