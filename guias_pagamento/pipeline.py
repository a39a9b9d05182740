"""
Batch Processing Module.

Runs every document of a batch through text source, field extraction and
record validation on a thread pool. Documents are independent; the only
shared structure is the result list, which is created up front with one
``pending`` record per input and written by position, so the output
keeps the input order regardless of which document finishes first.

A failure in one document (unreadable file, OCR failure, unexpected bug)
is stored on that document's record as ``error`` and never stops the
others.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from config import get_config
from guias_pagamento.extraction import FieldExtractor, PaymentRecord, PaymentStatus
from guias_pagamento.input_handler import TextSourceAdapter
from guias_pagamento.postprocessor import RecordValidator
from guias_pagamento.utils.exceptions import SourceError
from guias_pagamento.utils.logger import get_logger, log_section

# Initialize module logger
logger = get_logger(__name__)

# A document is a path, or (display name, PDF bytes)
DocumentSource = Union[str, Path, Tuple[str, bytes]]
ProgressCallback = Callable[[int, PaymentRecord], None]


def _display_name(source: DocumentSource) -> str:
    if isinstance(source, tuple):
        return source[0]
    return Path(source).name


@dataclass(frozen=True)
class BatchSummary:
    """Counts per terminal status for a processed batch."""

    total: int
    success: int
    needs_review: int
    error: int
    pending: int

    @classmethod
    def from_records(cls, records: Sequence[PaymentRecord]) -> 'BatchSummary':
        def count(status: PaymentStatus) -> int:
            return sum(1 for record in records if record.status == status)

        return cls(
            total=len(records),
            success=count(PaymentStatus.SUCCESS),
            needs_review=count(PaymentStatus.NEEDS_REVIEW),
            error=count(PaymentStatus.ERROR),
            pending=sum(1 for record in records if not record.status.is_terminal),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            'total': self.total,
            'success': self.success,
            'needs_review': self.needs_review,
            'error': self.error,
            'pending': self.pending,
        }


class BatchProcessor:
    """
    Concurrent, order-preserving batch processor.

    Attributes:
        source: Text Source Adapter
        extractor: Field Extractor
        validator: Record Validator
        max_workers: Thread pool size

    Example:
        >>> processor = BatchProcessor()
        >>> records = processor.process(["a.pdf", "b.pdf"])
        >>> [r.status.value for r in records]
        ['success', 'needs_review']
    """

    def __init__(
        self,
        source: Optional[TextSourceAdapter] = None,
        extractor: Optional[FieldExtractor] = None,
        validator: Optional[RecordValidator] = None,
        max_workers: Optional[int] = None
    ) -> None:
        self.source = source or TextSourceAdapter()
        self.extractor = extractor or FieldExtractor()
        self.validator = validator or RecordValidator()
        self.max_workers = max(1, int(max_workers or get_config("batch.max_workers", 4)))

        self._cancelled = threading.Event()

        logger.debug(f"BatchProcessor initialized (max_workers={self.max_workers})")

    def cancel(self) -> None:
        """
        Stop processing documents that have not started yet.

        Documents already in flight (including a running OCR call) finish
        normally; the rest stay ``pending``.
        """
        logger.info("Batch cancellation requested")
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def process(
        self,
        sources: Sequence[DocumentSource],
        on_record: Optional[ProgressCallback] = None
    ) -> List[PaymentRecord]:
        """
        Process a batch of documents.

        Args:
            sources: File paths or (name, bytes) pairs, in display order.
            on_record: Called with (index, record) when a document reaches
                a terminal state. Runs on a worker thread; exceptions it
                raises are logged and ignored.

        Returns:
            One record per source, in the same order as ``sources``.
        """
        self._cancelled.clear()
        records = [PaymentRecord(source_file=_display_name(source)) for source in sources]

        if not records:
            return records

        logger.info(f"Processing {len(records)} document(s) with {self.max_workers} worker(s)")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures: List[Future] = [
                executor.submit(self._process_one, index, source, records[index], on_record)
                for index, source in enumerate(sources)
            ]
            for future in futures:
                future.result()

        summary = BatchSummary.from_records(records)
        logger.info(
            f"Batch complete: {summary.success} success, "
            f"{summary.needs_review} needs review, {summary.error} error"
            + (f", {summary.pending} not processed" if summary.pending else "")
        )
        return records

    def _process_one(
        self,
        index: int,
        source: DocumentSource,
        record: PaymentRecord,
        on_record: Optional[ProgressCallback]
    ) -> None:
        if self._cancelled.is_set():
            logger.debug(f"Skipping {record.source_file}: batch cancelled")
            return

        record.mark_processing()
        log_section(logger, f"Processing PDF: {record.source_file}")

        try:
            if isinstance(source, tuple):
                document = self.source.read(source[1], filename=source[0])
            else:
                document = self.source.read(source)

            extraction = self.extractor.extract(document.text, document.origin)
            self.validator.apply(extraction, record=record)

        except SourceError as e:
            logger.error(f"{record.source_file}: {e}")
            record.mark_error(str(e))

        except Exception as e:
            # Unexpected bugs are confined to the document that hit them
            logger.exception(f"Unexpected error processing {record.source_file}: {e}")
            record.mark_error(f"Unexpected error: {e}")

        if on_record is not None:
            try:
                on_record(index, record)
            except Exception as e:
                # Listener errors never abort the batch
                logger.exception(f"Progress callback failed for {record.source_file}: {e}")

    def process_paths(self, input_path: Union[str, Path], recursive: bool = False) -> List[PaymentRecord]:
        """Process a single PDF or every PDF in a directory."""
        path = Path(input_path)
        if path.is_dir():
            files = self.source.collect_files(path, recursive=recursive)
        else:
            files = [path]
        return self.process(files)
