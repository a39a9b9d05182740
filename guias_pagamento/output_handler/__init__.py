"""
Output Handler Module.

This module provides functionality for:
    - Validated, immutable export batches
    - SEPA pain.001.001.03 XML encoding
    - PS2 fixed-width encoding
    - Writing export files and the Excel review report
"""

from .batch import OutputBatch, ValidatedPaymentRecord
from .sepa_encoder import DebtorConfig, SepaEncoder, validate_debtor_config
from .ps2_encoder import PS2Config, PS2Encoder, parse_footer, parse_header, validate_ps2_batch
from .excel_exporter import ReviewReportExporter
from .handler import FORMAT_PS2, FORMAT_SEPA, ExportHandler

__all__ = [
    'OutputBatch',
    'ValidatedPaymentRecord',
    'DebtorConfig',
    'SepaEncoder',
    'validate_debtor_config',
    'PS2Config',
    'PS2Encoder',
    'parse_footer',
    'parse_header',
    'validate_ps2_batch',
    'ReviewReportExporter',
    'ExportHandler',
    'FORMAT_SEPA',
    'FORMAT_PS2',
]
