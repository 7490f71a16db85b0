"""Food spreadsheet import pipeline."""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from food_importer.adapters.spreadsheet_reader import (
    SpreadsheetError,
    SpreadsheetReader,
)
from food_importer.domain.foods import FoodRecord, SheetRow
from food_importer.domain.imports import (
    ColumnMapping,
    ImportJobStatus,
    ImportOptions,
    ImportResult,
    JobState,
    RowError,
)
from food_importer.services.dedup import NumberedRecord, partition_duplicates
from food_importer.services.header_detection import (
    HeaderDetectionError,
    detect_header,
    extract_rows,
)
from food_importer.services.job_store import ImportJobStore
from food_importer.services.validation import validate_row

_logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

# Progress checkpoints for each pipeline phase.
READ_DONE = 10
VALIDATION_DONE = 30
DEDUP_DONE = 50
MAX_RUNNING_PROGRESS = 99


class FoodRepository(Protocol):
    """Persistence interface for the shared foods table."""

    def list_food_names(self) -> list[str]:
        """Return the names of every stored food."""

    def insert_foods(self, records: Sequence[FoodRecord]) -> int:
        """Insert a batch in one transaction, skipping existing names.

        Returns the number of rows actually inserted.
        """


@dataclass
class ProgressReporter:
    """Pushes monotonic progress to the job store and an optional callback."""

    job_store: ImportJobStore
    job_id: str | None = None
    callback: ProgressCallback | None = None
    current: int = 0

    def report(self, progress: int) -> None:
        """Report running progress, capped below 100 and never decreasing."""
        self._push(min(int(progress), MAX_RUNNING_PROGRESS))

    def finish(self) -> None:
        """Report completion."""
        self._push(100)

    def _push(self, progress: int) -> None:
        if progress <= self.current:
            return
        self.current = progress
        if self.job_id is not None:
            self.job_store.update(self.job_id, lambda job: job.set_progress(progress))
        if self.callback is not None:
            self.callback(progress)


@dataclass
class _BatchOutcome:
    inserted: int = 0
    conflicts: int = 0
    attempted: int = 0
    failed: int = 0
    errors: list[RowError] = field(default_factory=list)


@dataclass
class FoodImportService:
    """Runs validation, deduplication and batched insertion for a workbook."""

    repository: FoodRepository
    reader: SpreadsheetReader
    job_store: ImportJobStore
    default_batch_size: int = 100

    async def import_buffer(
        self,
        buffer: bytes,
        options: ImportOptions | None = None,
        *,
        job_id: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ImportResult:
        """Import foods from a spreadsheet buffer and return the summary.

        When ``job_id`` is given the job is tracked in the job store from
        ``processing`` to its terminal state. Failures are reported through
        the result, never raised.
        """
        resolved = options or ImportOptions(batch_size=self.default_batch_size)
        started = time.monotonic()
        if job_id is not None:
            self._start_job(job_id)
        reporter = ProgressReporter(self.job_store, job_id, on_progress)
        result = ImportResult()

        try:
            rows = await asyncio.to_thread(self._read_rows, buffer, resolved)
            reporter.report(READ_DONE)

            records, row_errors = self._validate(rows, reporter)
            result.valid_count = len(records)
            result.error_count = len(row_errors)
            result.error_details = row_errors
            reporter.report(VALIDATION_DONE)

            existing_names = await asyncio.to_thread(self.repository.list_food_names)
            partition = partition_duplicates(existing_names, records)
            result.skipped_count = len(partition.duplicates)
            reporter.report(DEDUP_DONE)
            _logger.info(
                "Import %s: %s valid, %s invalid, %s duplicates",
                job_id or "untracked",
                result.valid_count,
                result.error_count,
                result.skipped_count,
            )

            if resolved.dry_run:
                result.success = True
            else:
                outcome = await self._insert_batches(
                    partition.to_insert, resolved.batch_size, reporter
                )
                result.inserted_count = outcome.inserted
                result.skipped_count += outcome.conflicts
                result.error_details.extend(outcome.errors)
                result.success = (
                    outcome.attempted == 0 or outcome.failed < outcome.attempted
                )
                if not result.success:
                    result.error_message = (
                        f"All {outcome.attempted} insert batches failed"
                    )
        except (SpreadsheetError, HeaderDetectionError) as exc:
            _logger.warning("Import %s rejected: %s", job_id or "untracked", exc)
            result.success = False
            result.error_message = str(exc)
        except Exception as exc:
            _logger.exception("Import %s failed", job_id or "untracked")
            result.success = False
            result.error_message = str(exc) or type(exc).__name__

        result.duration_seconds = round(time.monotonic() - started, 3)
        if job_id is not None:
            self.finalize_job(job_id, result)
        reporter.finish()
        return result

    def finalize_job(self, job_id: str, result: ImportResult) -> ImportJobStatus:
        """Store the final result and move the job to its terminal state."""
        target = JobState.COMPLETED if result.success else JobState.FAILED

        def _apply(job: ImportJobStatus) -> None:
            job.result = result
            job.transition(target)
            job.set_progress(100)

        job = self.job_store.update(job_id, _apply)
        _logger.info(
            "Import job %s %s: inserted=%s skipped=%s errors=%s",
            job_id,
            job.status.value,
            result.inserted_count,
            result.skipped_count,
            result.error_count,
        )
        return job

    def _start_job(self, job_id: str) -> None:
        if self.job_store.get(job_id) is None:
            self.job_store.create(ImportJobStatus(id=job_id))
        self.job_store.update(job_id, lambda job: job.transition(JobState.PROCESSING))

    def _read_rows(self, buffer: bytes, options: ImportOptions) -> list[SheetRow]:
        """Parse the workbook into raw rows using the configured column mapping."""
        if options.column_mapping == ColumnMapping.DETECT:
            cells = self.reader.read_rows(buffer, options.sheet_name)
            match = detect_header(cells)
            _logger.info(
                "Detected header at row %s with columns %s",
                match.row_index + 1,
                match.columns,
            )
            return extract_rows(cells, match, brand=options.brand)

        rows = self.reader.read_records(buffer, options.sheet_name)
        if not options.brand:
            return rows
        return [
            row
            if row.values.get("brand")
            else SheetRow(row.row_number, {**row.values, "brand": options.brand})
            for row in rows
        ]

    def _validate(
        self, rows: list[SheetRow], reporter: ProgressReporter
    ) -> tuple[list[NumberedRecord], list[RowError]]:
        records: list[NumberedRecord] = []
        errors: list[RowError] = []
        total = len(rows)
        for index, row in enumerate(rows):
            outcome = validate_row(row.values)
            if isinstance(outcome, FoodRecord):
                records.append((row.row_number, outcome))
            else:
                errors.append(RowError(row=row.row_number, issues=outcome))
            if index % 10 == 0:
                span = VALIDATION_DONE - READ_DONE
                reporter.report(READ_DONE + (index * span) // total)
        return records, errors

    async def _insert_batches(
        self,
        rows: list[NumberedRecord],
        batch_size: int,
        reporter: ProgressReporter,
    ) -> _BatchOutcome:
        outcome = _BatchOutcome()
        size = max(1, batch_size)
        total_batches = (len(rows) + size - 1) // size
        for batch_number, start in enumerate(range(0, len(rows), size), start=1):
            batch = rows[start : start + size]
            records = [record for _row, record in batch]
            outcome.attempted += 1
            try:
                inserted = await asyncio.to_thread(
                    self.repository.insert_foods, records
                )
            except Exception as exc:
                _logger.exception(
                    "Error inserting batch %s/%s", batch_number, total_batches
                )
                outcome.failed += 1
                outcome.errors.append(
                    RowError(row=batch[0][0], issues=f"Database error: {exc}")
                )
            else:
                outcome.inserted += inserted
                outcome.conflicts += len(records) - inserted
            span = MAX_RUNNING_PROGRESS - DEDUP_DONE
            reporter.report(DEDUP_DONE + (batch_number * span) // total_batches)
        return outcome
