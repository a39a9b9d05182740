#!/usr/bin/env python3
"""
Guias de Pagamento - Main Entry Point.

Command-line interface for the payment-guide pipeline: reads one PDF or a
directory of PDFs, prints the batch list and exports the successfully
processed payments as SEPA XML and/or PS2.

Usage:
    Command Line:
        python main.py --input guia.pdf
        python main.py --input ./guias/ --format both --debtor-name "EMPRESA LDA" \\
            --debtor-iban PT50000201231234567890154 --report

    Python:
        from main import run_pipeline
        records = run_pipeline("guias/")
"""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Dict, Optional, Sequence

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import project modules
from config import ConfigurationManager
from guias_pagamento.utils.exceptions import GuiasPagamentoError
from guias_pagamento.utils.logger import APP_LOGGER_NAME, get_logger, setup_logger_from_config


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date (expected YYYY-MM-DD): {value}")


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Extract Portuguese tax payment guides and export SEPA / PS2 files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    List the extracted data of a guide:
        python main.py --input guia.pdf

    Export a directory of guides as SEPA XML:
        python main.py --input ./guias/ --format sepa --debtor-name "EMPRESA LDA" \\
            --debtor-iban PT50000201231234567890154

    Export both formats and the review report:
        python main.py --input ./guias/ --format both --report
        """
    )

    # Input/Output arguments
    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="PDF file or directory containing payment guides"
    )

    parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Search subdirectories of --input"
    )

    parser.add_argument(
        "--format", "-f",
        choices=["sepa", "ps2", "both"],
        default=None,
        help="Export format for the successful payments (default: no export)"
    )

    parser.add_argument(
        "--output-dir", "-o",
        type=str,
        default=None,
        help="Directory for export files (default: output.dir from config)"
    )

    parser.add_argument(
        "--report",
        action="store_true",
        help="Write the Excel review report"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the batch as JSON instead of a table"
    )

    # Configuration overrides
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument("--debtor-name", type=str, default=None, help="SEPA debtor name")
    parser.add_argument("--debtor-iban", type=str, default=None, help="SEPA debtor IBAN")
    parser.add_argument("--debtor-bic", type=str, default=None, help="SEPA debtor BIC")
    parser.add_argument("--account-number", type=str, default=None, help="PS2 ordering account")

    parser.add_argument(
        "--execution-date",
        type=_iso_date,
        default=None,
        help="Requested execution date, YYYY-MM-DD (default: today)"
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Number of documents processed concurrently"
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress console logging"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Load configuration, apply command-line overrides and set up logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    if args.config:
        ConfigurationManager.reset()
    config = ConfigurationManager(args.config)

    overrides = {
        "sepa.debtor.name": args.debtor_name,
        "sepa.debtor.iban": args.debtor_iban,
        "sepa.debtor.bic": args.debtor_bic,
        "ps2.account_number": args.account_number,
        "sepa.execution_date": args.execution_date,
        "ps2.execution_date": args.execution_date,
        "batch.max_workers": args.workers,
        "output.dir": args.output_dir,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)

    logger = setup_logger_from_config(quiet=args.quiet)

    if args.debug:
        logging.getLogger(APP_LOGGER_NAME).setLevel(logging.DEBUG)

    logger.info("=" * 60)
    logger.info("GUIAS DE PAGAMENTO - SEPA / PS2")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.1')}")
    logger.info(f"Input: {args.input}")

    return config


def validate_inputs(input_path: str) -> Path:
    """
    Validate the input path.

    Raises:
        FileNotFoundError: If the input path doesn't exist.
        ValueError: If a single file is not a PDF.
    """
    path = Path(input_path)

    if not path.exists():
        raise FileNotFoundError(f"Input path not found: {path}")

    if path.is_file() and path.suffix.lower() != ".pdf":
        raise ValueError(f"Unsupported file type: {path.suffix}")

    return path


def run_pipeline(
    input_path: str,
    recursive: bool = False,
    max_workers: Optional[int] = None
):
    """
    Process payment guides and return their records in input order.

    This is the main programmatic entry point.

    Args:
        input_path: PDF file or directory.
        recursive: Whether to search subdirectories.
        max_workers: Thread pool size (default: batch.max_workers).

    Returns:
        List of PaymentRecord, one per document.
    """
    from guias_pagamento.pipeline import BatchProcessor

    path = validate_inputs(input_path)
    processor = BatchProcessor(max_workers=max_workers)
    return processor.process_paths(path, recursive=recursive)


def export_records(records, export_format: Optional[str], report: bool) -> Dict[str, str]:
    """
    Write the requested export files and, optionally, the review report.

    Raises:
        GuiasPagamentoError: On an empty batch, invalid configuration or
            write failure.
    """
    from guias_pagamento.output_handler import ExportHandler

    handler = ExportHandler()
    written: Dict[str, str] = {}

    if export_format:
        formats = ["sepa", "ps2"] if export_format == "both" else [export_format]
        written.update(handler.export_all(records, formats))

    if report:
        written["report"] = handler.export_report(records)

    return written


def print_batch(records, as_json: bool = False) -> None:
    """Print the batch list to stdout."""
    if as_json:
        print(json.dumps([record.to_dict() for record in records], indent=2, ensure_ascii=False))
        return

    header = f"{'#':>3}  {'Ficheiro':<32} {'Estado':<13} {'NIF':<9}  {'Referência':<15}  {'Valor':>12}"
    print(header)
    print("-" * len(header))
    for index, record in enumerate(records, 1):
        amount = f"{record.amount:,.2f}" if record.amount is not None else ""
        print(
            f"{index:>3}  {record.source_file[:32]:<32} {record.status.value:<13} "
            f"{record.tax_id:<9}  {record.payment_reference:<15}  {amount:>12}"
        )
        if record.error:
            print(f"{'':>5}{record.error}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = None
    try:
        args = parse_arguments(argv)
        config = initialize_system(args)
        logger = get_logger(__name__)

        records = run_pipeline(args.input, recursive=args.recursive)

        if not records:
            logger.error("No files to process")
            return 1

        print_batch(records, as_json=args.json)

        written = export_records(
            records,
            args.format,
            args.report or config.get("output.report.enabled", False)
        )
        for name, path in written.items():
            print(f"{name.upper()}: {path}")

        logger.info("=" * 60)
        logger.info(f"Processing complete. {len(records)} document(s).")
        logger.info("=" * 60)

        return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except GuiasPagamentoError as e:
        print(f"Export error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args is not None and args.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
