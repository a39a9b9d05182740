"""
Review Report Exporter Module.

Writes the batch list to an Excel workbook with openpyxl so the records
that need manual review can be worked through outside the CLI.

Sheets:
    - Guias: one row per document, in batch order
    - Resumo: count per status and the exportable control total
"""

from pathlib import Path
from typing import List, Optional, Sequence

from config import get_config
from guias_pagamento.extraction.payment_record import PaymentRecord, PaymentStatus
from guias_pagamento.utils.exceptions import ReportExportError
from guias_pagamento.utils.helpers import ensure_directory, generate_timestamp
from guias_pagamento.utils.logger import get_logger
from .batch import OutputBatch

# Initialize module logger
logger = get_logger(__name__)

# Status fill colours
STATUS_COLORS = {
    PaymentStatus.SUCCESS: "C6EFCE",
    PaymentStatus.NEEDS_REVIEW: "FFEB9C",
    PaymentStatus.ERROR: "FFC7CE",
}


class ReviewReportExporter:
    """
    Exports a processed batch to an Excel review report.

    Attributes:
        output_dir: Directory for report files
        sheet_name: Title of the records sheet

    Example:
        >>> exporter = ReviewReportExporter()
        >>> path = exporter.export(records)
    """

    # Column definitions: (header, record.to_dict() key)
    COLUMNS = [
        ('Ficheiro', 'source_file'),
        ('Estado', 'status'),
        ('NIF', 'tax_id'),
        ('Nome', 'taxpayer_name'),
        ('Documento', 'document_number'),
        ('Referência', 'payment_reference'),
        ('Entidade', 'entity'),
        ('Valor (EUR)', 'amount'),
        ('Data Limite', 'due_date'),
        ('Código Imposto', 'tax_code'),
        ('Período', 'period'),
        ('Origem', 'origin'),
        ('Campos em Falta', 'missing_fields'),
        ('Mensagem', 'error'),
    ]

    def __init__(self, output_dir: Optional[str] = None) -> None:
        """Initialize the exporter with configuration."""
        self.output_dir = Path(output_dir or get_config("output.dir", "outputs"))
        self.sheet_name = get_config("output.report.sheet_name", "Guias")

        # Check for openpyxl
        self._check_dependencies()

        logger.debug(f"ReviewReportExporter initialized (output_dir: {self.output_dir})")

    def _check_dependencies(self) -> None:
        """Check if required libraries are available."""
        try:
            import openpyxl
            self._openpyxl = openpyxl
        except ImportError:
            raise ImportError(
                "openpyxl is required for the review report. "
                "Install with: pip install openpyxl"
            )

    def export(
        self,
        records: Sequence[PaymentRecord],
        filename: Optional[str] = None,
        output_dir: Optional[str] = None
    ) -> str:
        """
        Write the report.

        Args:
            records: Batch records in display order (any status).
            filename: Output filename. If None, timestamped.
            output_dir: Output directory. If None, uses configured dir.

        Returns:
            Path to the created workbook.

        Raises:
            ReportExportError: If the workbook cannot be written.
        """
        out_dir = Path(output_dir) if output_dir else self.output_dir
        ensure_directory(out_dir)

        if filename is None:
            filename = f"Guias_{generate_timestamp()}.xlsx"

        filepath = out_dir / filename

        try:
            workbook = self._openpyxl.Workbook()
            self._create_records_sheet(workbook, records)
            self._create_summary_sheet(workbook, records)
            workbook.save(filepath)
        except Exception as e:
            logger.error(f"Review report export failed: {e}")
            raise ReportExportError(str(filepath), str(e))

        logger.info(f"Review report saved: {filepath} ({len(records)} records)")
        return str(filepath)

    def _create_records_sheet(self, workbook, records: Sequence[PaymentRecord]) -> None:
        from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
        from openpyxl.utils import get_column_letter

        sheet = workbook.active
        sheet.title = self.sheet_name

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        header_alignment = Alignment(horizontal="center", vertical="center")
        thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        for col, (header_name, _) in enumerate(self.COLUMNS, 1):
            cell = sheet.cell(row=1, column=col, value=header_name)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = header_alignment
            cell.border = thin_border

        status_col = [key for _, key in self.COLUMNS].index('status') + 1

        for row_num, record in enumerate(records, 2):
            data = record.to_dict()
            data['missing_fields'] = ", ".join(data['missing_fields'])

            for col, (_, key) in enumerate(self.COLUMNS, 1):
                value = data.get(key)
                if key == 'amount' and record.amount is not None:
                    value = float(record.amount)
                cell = sheet.cell(row=row_num, column=col, value=value if value is not None else '')
                cell.border = thin_border
                if key == 'amount':
                    cell.number_format = '#,##0.00'

            color = STATUS_COLORS.get(record.status)
            if color:
                sheet.cell(row=row_num, column=status_col).fill = PatternFill(
                    start_color=color, end_color=color, fill_type="solid"
                )

        for col, (header_name, _) in enumerate(self.COLUMNS, 1):
            column_letter = get_column_letter(col)
            max_length = len(header_name)
            for row in range(2, len(records) + 2):
                cell_value = sheet.cell(row=row, column=col).value
                if cell_value:
                    max_length = max(max_length, len(str(cell_value)))
            sheet.column_dimensions[column_letter].width = min(max_length + 2, 50)

        sheet.freeze_panes = 'A2'

    def _create_summary_sheet(self, workbook, records: Sequence[PaymentRecord]) -> None:
        from openpyxl.styles import Font

        sheet = workbook.create_sheet(title="Resumo")
        bold = Font(bold=True)

        batch = OutputBatch.from_records(records)
        rows: List[tuple] = [("Estado", "Documentos")]
        for status in (PaymentStatus.SUCCESS, PaymentStatus.NEEDS_REVIEW, PaymentStatus.ERROR):
            rows.append((status.value, sum(1 for r in records if r.status == status)))
        rows.append(("total", len(records)))
        rows.append(())
        rows.append(("Pagamentos exportáveis", batch.count))
        rows.append(("Total exportável (EUR)", float(batch.total_amount)))

        for row in rows:
            sheet.append(list(row))

        sheet['A1'].font = bold
        sheet['B1'].font = bold
        sheet.column_dimensions['A'].width = 28
        sheet.column_dimensions['B'].width = 16
