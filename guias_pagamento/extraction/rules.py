"""
Field Rules Module.

Ordered, named pattern lists for every field of a payment guide. Rules
are tried most-specific first and the first match wins; generic
fallbacks (a bare 9-digit run, any amount next to a euro sign) only run
when the labelled patterns failed, typically because OCR garbled or
dropped the label.

Rules are data: each one carries a name so diagnostics can report which
rule fired for which field.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Pattern

from guias_pagamento.postprocessor.normalizers import DigitsNormalizer

# Case-insensitive, tolerant of line breaks inserted by OCR
FLAGS = re.IGNORECASE | re.UNICODE


@dataclass(frozen=True)
class FieldRule:
    """
    One candidate way of locating a field in the document text.

    Attributes:
        name: Identifier reported in diagnostics
        pattern: Compiled regex; ``group`` is the captured value
        group: Capture group holding the value
        finder: Custom search used instead of ``pattern``
        transform: Applied to the captured text before field cleaning
    """

    name: str
    pattern: Optional[Pattern] = None
    group: int = 1
    finder: Optional[Callable[[str], Optional[str]]] = None
    transform: Optional[Callable[[str], Optional[str]]] = None

    def search(self, text: str) -> Optional[str]:
        """Return the captured text, or None if the rule does not match."""
        if self.finder is not None:
            captured = self.finder(text)
        else:
            match = self.pattern.search(text)
            captured = match.group(self.group) if match else None

        if captured is None:
            return None
        if self.transform is not None:
            captured = self.transform(captured)
        return captured


def _rule(name: str, regex: str, flags: int = FLAGS, **kwargs) -> FieldRule:
    return FieldRule(name=name, pattern=re.compile(regex, flags), **kwargs)


def _strip_separators(value: str) -> str:
    return re.sub(r'[\s.]', '', value)


def _strip_non_digits(value: str) -> str:
    return re.sub(r'\D', '', value)


# IVA references are 11 digits, left padded to the 15-digit form
_PADDED_REFERENCE = DigitsNormalizer(15, pad=True)


# =============================================================================
# TAX ID (NIF)
# =============================================================================

_STANDALONE_NINE_DIGITS = re.compile(r'(?<![\w])(\d{9})(?![\w])')


def find_standalone_nif(text: str) -> Optional[str]:
    """
    First 9-digit run that is not part of a longer number.

    Every candidate is checked, so a document whose first 9-digit run sits
    inside an 11-digit code still yields a later isolated NIF.
    """
    for match in _STANDALONE_NINE_DIGITS.finditer(text):
        start, end = match.span(1)
        before = text[start - 1] if start > 0 else ''
        after = text[end] if end < len(text) else ''
        if before.isdigit() or after.isdigit():
            continue
        return match.group(1)
    return None


TAX_ID_RULES: List[FieldRule] = [
    _rule(
        "tax_id_header",
        r'N[ÚU]MERO\s+DE\s+IDENTIFICA[ÇC][ÃA]O\s+FISCAL[\s\S]{0,200}?(?<![\d])(\d{9})(?!\d)',
    ),
    _rule("nif_label", r'\bNIF\s*[:.º°]?\s*(\d{9})(?!\d)'),
    FieldRule(name="standalone_9_digits", finder=find_standalone_nif),
]


# =============================================================================
# PAYMENT REFERENCE
# =============================================================================

PAYMENT_REFERENCE_RULES: List[FieldRule] = [
    _rule(
        "reference_5x3_groups",
        r'(?<!\d)(\d{3}[.\s]\d{3}[.\s]\d{3}[.\s]\d{3}[.\s]\d{3})(?!\d)',
        transform=_strip_separators,
    ),
    _rule("reference_15_digits", r'(?<!\d)(\d{15})(?!\d)'),
    _rule(
        "reference_header",
        r'Refer[êe]ncia\s+(?:para\s+)?pagamento\s*:?[\s\S]*?(\d[\d\s.]{13,23}\d)',
        transform=_strip_non_digits,
    ),
    _rule(
        "reference_loose_groups",
        r'(?<!\d)(\d{2,3}[.\s]\d{2,3}[.\s]\d{2,3}[.\s]\d{2,3}[.\s]\d{2,3})(?!\d)',
        transform=_strip_separators,
    ),
    # IVA guides: 11-digit reference inside the optical line
    _rule(
        "iva_optical_line",
        r'Linha\s+[ÓO]ptica[\s\S]*?62\s+\d{8}\s+\d\s+\d\s+(\d{11})\s+\d{4}',
        transform=_PADDED_REFERENCE.normalize,
    ),
    _rule(
        "iva_barcode",
        r'62\s*10210003\s*6\s*9\s*(\d{11})\s*\d{4}',
        transform=_PADDED_REFERENCE.normalize,
    ),
]


# =============================================================================
# AMOUNT
# =============================================================================

# Thousands may be grouped with dots or single spaces ("1 234,56"). The
# capture never starts or stops inside a space-grouped number, so ragged
# OCR output such as "12 34,56" does not match at all.
_AMOUNT = (
    r'(?<![\d.,])(?<!\d )'
    r'(\d{1,3}(?:[ .]\d{3})+(?:,\d{1,2})?|\d[\d.,]*)'
    r'(?![\d.,]| \d)'
)

AMOUNT_RULES: List[FieldRule] = [
    _rule("valor_a_pagar", r'VALOR\s+A\s+PAGAR\s*:?\s*€?\s*' + _AMOUNT),
    _rule("importancia_a_pagar_euro", r'Import[âa]ncia\s+a\s+pagar[\s\S]{0,100}?€\s*' + _AMOUNT),
    _rule("importancia_a_pagar", r'IMPORT[ÂA]NCIA\s+A\s+PAGAR\s*:?\s*' + _AMOUNT),
    _rule("total_a_pagar_euro", r'Total\s+a\s+Pagar[\s\S]{0,100}?€\s*' + _AMOUNT),
    _rule("total_a_pagar", r'Total\s+a\s+Pagar\s*:?\s*€?\s*' + _AMOUNT),
    _rule("amount_before_euro", _AMOUNT + r'\s*€'),
    _rule("euro_before_amount", r'€\s*' + _AMOUNT),
    _rule("total_label", r'\bTotal\b\s*:?\s*€?\s*' + _AMOUNT),
]


# =============================================================================
# OPTIONAL FIELDS
# =============================================================================

TAXPAYER_NAME_RULES: List[FieldRule] = [
    _rule("nome_header", r'\bNOME\b[ \t]*:?[ \t]*\r?\n\s*([^\n]+)'),
    _rule("nome_label", r'\bNome\b[ \t]*:[ \t]*([^\n]+?)(?=[ \t]+NIF\b|\r?\n|$)'),
    # Company names in capitals ending in a legal-form suffix; case matters here
    _rule(
        "company_suffix",
        r'\b([A-ZÀ-Ú][A-ZÀ-Ú \t,.&-]+?\b(?:LDA|LIMITADA|UNIPESSOAL|S\.A\.|SA))(?![\w])',
        flags=re.UNICODE,
    ),
]

DOCUMENT_NUMBER_RULES: List[FieldRule] = [
    _rule("numero_do_documento", r'N[ÚU]MERO\s+DO\s+DOCUMENTO\s*:?[\s\S]{0,80}?(\d+[ \t]+\d+|\d+)'),
    _rule("documento_n", r'Documento\s+n\.?[ºo°]?\s*:?\s*(\d+)'),
]

_DATE = r'(\d{4}[-/.]\d{2}[-/.]\d{2}|\d{2}[-/.]\d{2}[-/.]\d{4})'

DUE_DATE_RULES: List[FieldRule] = [
    _rule("data_limite_pagamento", r'Data\s+limite\s+(?:de\s+)?pagamento\s*:?\s*' + _DATE),
    _rule("data_limite", r'Data\s+limite\s*:?[\s\S]{0,40}?' + _DATE),
]

TAX_CODE_RULES: List[FieldRule] = [
    _rule("codigo_do_imposto", r'C[óo]digo\s+(?:do\s+)?imposto\s*:?\s*(\d{3})(?!\d)'),
    _rule("codigo_tributo", r'C[óo]digo\s+(?:do\s+)?tributo\s*:?\s*(\d{3})(?!\d)'),
]

PERIOD_RULES: List[FieldRule] = [
    _rule("periodo_label", r'Per[íi]odo\s*:?\s*(\d{4}\s*[/-]\s*\d{1,2}[A-Z]?)\b'),
    _rule("periodo_header", r'PER[ÍI]ODO[\s\S]{0,80}?(\d{4}\s*[/-]\s*\d{1,2}T?)\b'),
]


FIELD_RULES: Dict[str, List[FieldRule]] = {
    "document_number": DOCUMENT_NUMBER_RULES,
    "tax_id": TAX_ID_RULES,
    "taxpayer_name": TAXPAYER_NAME_RULES,
    "payment_reference": PAYMENT_REFERENCE_RULES,
    "amount": AMOUNT_RULES,
    "due_date": DUE_DATE_RULES,
    "tax_code": TAX_CODE_RULES,
    "period": PERIOD_RULES,
}

