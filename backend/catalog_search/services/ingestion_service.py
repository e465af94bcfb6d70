"""
Ingestion service — stream the catalog CSV into bounded batches of records.

Rows are read lazily and grouped into chunks of `chunk_size`. Each chunk is
transformed either inline or, with workers > 1, in a process pool with a
bounded number of chunks in flight. Counts are folded in the consuming
generator from per-chunk results; workers never share counters.
Version: 1.0.0
"""
import csv
import logging
import time
from collections import deque
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import psutil

from catalog_search.core.constants.ingestion import (
    MAX_PENDING_CHUNKS_PER_WORKER,
    PROGRESS_LOG_INTERVAL,
)
from catalog_search.core.exceptions import IngestionError, SourceNotFoundError, SourceReadError
from catalog_search.schemas.index import IndexArtifact
from catalog_search.schemas.ingestion import IngestionMetrics, IngestionOptions
from catalog_search.schemas.products import ProductRecord, RowRejection
from catalog_search.utils.batch_grouping import iter_batches
from catalog_search.utils.catalog_normalize import transform_row

logger = logging.getLogger("ingestion_service")

# Product descriptions can exceed the csv module's 128 KiB default
_CSV_FIELD_SIZE_LIMIT = 2**31 - 1

# (line number, row) where row is None for a record the CSV parser rejected
RawRow = Tuple[int, Optional[Dict[str, Any]]]


def _current_memory_mb() -> float:
    return psutil.Process().memory_info().rss / (1024 * 1024)


def transform_chunk(chunk: List[RawRow], options: IngestionOptions) -> Tuple[List[ProductRecord], int]:
    """Transform one chunk of raw rows. Returns (records, rejected count)."""
    records: List[ProductRecord] = []
    rejected = 0
    for row_number, row in chunk:
        if row is None:
            rejected += 1
            continue
        result = transform_row(row, options, row_number=row_number)
        if isinstance(result, RowRejection):
            rejected += 1
            logger.debug(f"Skipping row {row_number}: {result.reason}")
            continue
        records.append(result)
    return records, rejected


class IngestionRun:
    """
    One pass over a source catalog.

    Iterating yields lists of ProductRecord, each at most `chunk_size` long.
    The run can be iterated once; `metrics` is available after it is
    exhausted.
    """

    def __init__(self, path: Path, options: IngestionOptions, workers: int = 1) -> None:
        self.path = path
        self.options = options
        self.workers = max(1, workers)
        self._metrics: Optional[IngestionMetrics] = None
        self._batches = self._run()

    def __iter__(self) -> Iterator[List[ProductRecord]]:
        return self._batches

    @property
    def completed(self) -> bool:
        return self._metrics is not None

    @property
    def metrics(self) -> IngestionMetrics:
        if self._metrics is None:
            raise IngestionError(f"Ingestion of {self.path} has not completed; metrics are not available yet")
        return self._metrics

    def _read_rows(self) -> Iterator[RawRow]:
        csv.field_size_limit(_CSV_FIELD_SIZE_LIMIT)
        try:
            with open(self.path, "r", encoding="utf-8-sig", newline="") as f:
                reader = csv.DictReader(f)
                while True:
                    try:
                        row = next(reader)
                    except StopIteration:
                        break
                    except csv.Error as e:
                        logger.debug(f"Skipping malformed record near line {reader.line_num}: {e}")
                        yield reader.line_num, None
                        continue
                    yield reader.line_num, row
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(str(self.path), str(e)) from e

    def _transform_batches(self) -> Iterator[Tuple[List[ProductRecord], int]]:
        chunks = iter_batches(self._read_rows(), self.options.chunk_size)
        if self.workers == 1:
            for chunk in chunks:
                yield transform_chunk(chunk, self.options)
            return

        # Results are taken in submission order so batches follow the source order
        max_pending = self.workers * MAX_PENDING_CHUNKS_PER_WORKER
        pool = ProcessPoolExecutor(max_workers=self.workers)
        pending: deque = deque()
        try:
            for chunk in chunks:
                pending.append(pool.submit(transform_chunk, chunk, self.options))
                if len(pending) >= max_pending:
                    yield pending.popleft().result()
            while pending:
                yield pending.popleft().result()
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

    def _run(self) -> Iterator[List[ProductRecord]]:
        started = time.perf_counter()
        accepted = 0
        rejected = 0
        peak_memory = 0.0
        next_progress = PROGRESS_LOG_INTERVAL

        logger.info(f"Starting to process CSV file: {self.path} (workers={self.workers})")

        for records, rejected_in_chunk in self._transform_batches():
            accepted += len(records)
            rejected += rejected_in_chunk

            if self.options.enable_metrics:
                peak_memory = max(peak_memory, _current_memory_mb())

            if self.options.enable_progress and accepted >= next_progress:
                logger.info(f"Processed {accepted:,} records...")
                while next_progress <= accepted:
                    next_progress += PROGRESS_LOG_INTERVAL

            if records:
                yield records

        elapsed = time.perf_counter() - started
        self._metrics = IngestionMetrics(
            duration_ms=elapsed * 1000,
            throughput_per_sec=accepted / elapsed if elapsed > 0 else float(accepted),
            peak_memory_mb=peak_memory,
            accepted_count=accepted,
            rejected_count=rejected,
        )
        logger.info(
            f"Processing completed in {elapsed:.1f} seconds: {accepted:,} accepted, "
            f"{rejected:,} rejected, {self._metrics.throughput_per_sec:,.0f} products/second"
        )


class IngestionService:
    def __init__(self, options: Optional[IngestionOptions] = None, workers: int = 1) -> None:
        self._options = options or IngestionOptions()
        self._workers = workers
        self._logger = logger

    @property
    def options(self) -> IngestionOptions:
        return self._options

    def ingest(self, path: Union[str, Path]) -> IngestionRun:
        """
        Start a lazy ingestion run over the CSV at path.

        Raises:
            SourceNotFoundError: path does not exist or is not a file
        """
        source = Path(path)
        if not source.is_file():
            self._logger.error(f"CSV file not found: {source}")
            raise SourceNotFoundError(str(source))
        return IngestionRun(source, self._options, workers=self._workers)

    def build_artifact(self, path: Union[str, Path]) -> Tuple[IndexArtifact, IngestionMetrics]:
        """
        Drain a full run and merge every batch into one artifact.

        Records whose id was already seen are dropped and counted as rejected.
        """
        run = self.ingest(path)
        products: List[ProductRecord] = []
        seen_ids = set()
        duplicates = 0
        for batch in run:
            for record in batch:
                if record.id in seen_ids:
                    duplicates += 1
                    continue
                seen_ids.add(record.id)
                products.append(record)

        metrics = run.metrics
        if duplicates:
            self._logger.warning(f"Dropped {duplicates:,} records with duplicate ids")
            accepted = metrics.accepted_count - duplicates
            elapsed = metrics.duration_ms / 1000
            metrics = metrics.model_copy(
                update={
                    "accepted_count": accepted,
                    "rejected_count": metrics.rejected_count + duplicates,
                    "throughput_per_sec": accepted / elapsed if elapsed > 0 else float(accepted),
                }
            )

        artifact = IndexArtifact.from_products(products)
        self._logger.info(
            f"Found {len(artifact.metadata.vendors)} unique vendors, "
            f"{len(artifact.metadata.product_types)} unique product types"
        )
        return artifact, metrics
