"""
Main Export Handler Module.

Coordinates the export of a processed batch:

    - keeps only ``success`` records, in batch order
    - refuses to export an empty batch or an invalid debtor configuration
    - encodes SEPA XML and/or PS2 and writes the files
    - optionally writes the Excel review report

Export problems are raised once per export attempt; they never touch the
records of the batch.
"""

from datetime import date
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from config import get_config
from guias_pagamento.extraction.payment_record import PaymentRecord
from guias_pagamento.utils.exceptions import (
    EmptyBatchError,
    EncodingPreconditionError,
    ExportWriteError,
    InvalidDebtorConfigError,
)
from guias_pagamento.utils.helpers import ensure_directory, safe_filename
from guias_pagamento.utils.logger import get_logger
from .batch import OutputBatch
from .excel_exporter import ReviewReportExporter
from .ps2_encoder import PS2Config, PS2Encoder, validate_ps2_batch
from .sepa_encoder import DebtorConfig, SepaEncoder, validate_debtor_config

# Initialize module logger
logger = get_logger(__name__)

FORMAT_SEPA = "sepa"
FORMAT_PS2 = "ps2"
SUPPORTED_FORMATS = (FORMAT_SEPA, FORMAT_PS2)

Records = Union[OutputBatch, Sequence[PaymentRecord]]


class ExportHandler:
    """
    Unified export handler for processed batches.

    Attributes:
        output_dir: Directory for export files
        debtor: SEPA debtor account
        ps2_config: PS2 ordering account and execution date
        execution_date: SEPA requested execution date (None = today)

    Example:
        >>> handler = ExportHandler(debtor=DebtorConfig("EMPRESA LDA", "PT50...", ""))
        >>> handler.export(records, "sepa")
        'outputs/SEPA_2025-10-19.xml'
    """

    def __init__(
        self,
        output_dir: Optional[str] = None,
        debtor: Optional[DebtorConfig] = None,
        ps2_config: Optional[PS2Config] = None,
        execution_date: Optional[date] = None
    ) -> None:
        """
        Initialize the export handler.

        Args:
            output_dir: Override of ``output.dir``.
            debtor: Override of the ``sepa.debtor`` settings.
            ps2_config: Override of the ``ps2`` settings.
            execution_date: Override of ``sepa.execution_date``.
        """
        self.output_dir = Path(output_dir or get_config("output.dir", "outputs"))
        self.debtor = debtor or DebtorConfig.from_config()
        self.ps2_config = ps2_config or PS2Config.from_config()
        self.execution_date = execution_date or self._configured_execution_date()
        self.extensions = {
            FORMAT_SEPA: get_config("output.sepa.extension", ".xml"),
            FORMAT_PS2: get_config("output.ps2.extension", ".ps2"),
        }

        self._report_exporter = None

        logger.debug(f"ExportHandler initialized (output_dir={self.output_dir})")

    @staticmethod
    def _configured_execution_date() -> Optional[date]:
        raw = get_config("sepa.execution_date", None)
        if isinstance(raw, date):
            return raw
        if raw:
            return date.fromisoformat(str(raw))
        return None

    @property
    def report_exporter(self) -> ReviewReportExporter:
        """Get or create the review report exporter."""
        if self._report_exporter is None:
            self._report_exporter = ReviewReportExporter(str(self.output_dir))
        return self._report_exporter

    def default_filename(self, export_format: str, today: Optional[date] = None) -> str:
        """SEPA_<YYYY-MM-DD>.xml / PS2_<YYYY-MM-DD>.ps2"""
        today = today or date.today()
        prefix = "SEPA" if export_format == FORMAT_SEPA else "PS2"
        return f"{prefix}_{today.isoformat()}{self.extensions[export_format]}"

    def prepare_batch(self, records: Records, export_format: str) -> OutputBatch:
        """
        Build the export batch and check the preconditions of a format.

        Raises:
            EmptyBatchError: If no record is exportable.
            InvalidDebtorConfigError: If the SEPA debtor data is invalid.
            EncodingPreconditionError: If PS2 data validation fails.
        """
        if export_format not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported export format: {export_format}")

        batch = records if isinstance(records, OutputBatch) else OutputBatch.from_records(records)

        if batch.is_empty:
            raise EmptyBatchError(export_format)

        if export_format == FORMAT_SEPA:
            problems = validate_debtor_config(self.debtor)
            if problems:
                raise InvalidDebtorConfigError(problems)
        else:
            problems = validate_ps2_batch(batch, self.ps2_config)
            if problems:
                raise EncodingPreconditionError(
                    "PS2 data validation failed: " + "; ".join(problems),
                    {"problems": problems}
                )

        return batch

    def encode(self, batch: OutputBatch, export_format: str) -> bytes:
        """Encode an already prepared batch."""
        if export_format == FORMAT_SEPA:
            return SepaEncoder(self.debtor, self.execution_date).encode(batch)
        return PS2Encoder(self.ps2_config).encode(batch)

    def export(
        self,
        records: Records,
        export_format: str,
        filename: Optional[str] = None
    ) -> str:
        """
        Export the exportable records of a batch to one file.

        Args:
            records: Batch records (any status) or a prepared OutputBatch.
            export_format: "sepa" or "ps2".
            filename: Output filename. If None, dated default name.

        Returns:
            Path to the written file.

        Raises:
            EncodingPreconditionError: Empty batch or invalid configuration.
            ExportWriteError: If the file cannot be written.
        """
        batch = self.prepare_batch(records, export_format)
        content = self.encode(batch, export_format)

        filename = safe_filename(filename or self.default_filename(export_format))
        filepath = self.output_dir / filename

        try:
            ensure_directory(self.output_dir)
            filepath.write_bytes(content)
        except OSError as e:
            logger.error(f"Export failed: {e}")
            raise ExportWriteError(str(filepath), str(e))

        logger.info(
            f"{export_format.upper()} export saved: {filepath} "
            f"({batch.count} payments, {batch.total_amount:.2f} EUR)"
        )
        return str(filepath)

    def export_all(self, records: Sequence[PaymentRecord], formats: Sequence[str]) -> Dict[str, str]:
        """
        Export several formats; stops at the first failing one.

        Returns:
            Mapping of format to written path.
        """
        return {export_format: self.export(records, export_format) for export_format in formats}

    def export_report(self, records: Sequence[PaymentRecord], filename: Optional[str] = None) -> str:
        """Write the Excel review report for the whole batch."""
        return self.report_exporter.export(records, filename)
