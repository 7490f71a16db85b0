"""Background execution of tracked import jobs."""

import asyncio
import logging
import time
from collections.abc import Coroutine
from dataclasses import dataclass, field
from uuid import uuid4

from food_importer.adapters.http_file_source import FileSource
from food_importer.domain.imports import ImportJobStatus, ImportOptions, ImportResult
from food_importer.services.importer import FoodImportService
from food_importer.services.job_store import ImportJobStore

_logger = logging.getLogger(__name__)


@dataclass
class ImportJobRunner:
    """Creates import jobs and runs them independently of the caller.

    The HTTP routes schedule ``run_buffer`` and ``run_url`` as request
    background tasks. ``submit_buffer`` and ``submit_url`` are the entry
    points for callers already running an event loop outside a request, such
    as worker scripts; ``wait_for_all`` drains those tasks on shutdown.
    """

    import_service: FoodImportService
    job_store: ImportJobStore
    file_source: FileSource
    _tasks: set[asyncio.Task[ImportResult]] = field(default_factory=set)

    def create_job(self, source: str | None = None) -> ImportJobStatus:
        """Register a pending job and return it."""
        job = self.job_store.create(ImportJobStatus(id=str(uuid4()), source=source))
        _logger.info("Created import job %s for %s", job.id, source or "upload")
        return job

    def get_job(self, job_id: str) -> ImportJobStatus | None:
        """Return the current status of a job."""
        return self.job_store.get(job_id)

    async def run_buffer(
        self, job_id: str, buffer: bytes, options: ImportOptions
    ) -> ImportResult:
        """Run a created job against an uploaded buffer."""
        return await self.import_service.import_buffer(buffer, options, job_id=job_id)

    async def run_url(
        self, job_id: str, url: str, options: ImportOptions
    ) -> ImportResult:
        """Download a spreadsheet and run a created job against it."""
        started = time.monotonic()
        try:
            buffer = await self.file_source.fetch(url)
        except Exception as exc:
            _logger.exception("Failed to download %s for job %s", url, job_id)
            result = ImportResult(
                success=False,
                duration_seconds=round(time.monotonic() - started, 3),
                error_message=f"Failed to download file: {exc}",
            )
            self.import_service.finalize_job(job_id, result)
            return result
        return await self.run_buffer(job_id, buffer, options)

    def submit_buffer(
        self, buffer: bytes, options: ImportOptions, source: str | None = None
    ) -> str:
        """Start a background import of ``buffer`` and return the job id."""
        job = self.create_job(source)
        self._spawn(self.run_buffer(job.id, buffer, options))
        return job.id

    def submit_url(self, url: str, options: ImportOptions) -> str:
        """Start a background import from ``url`` and return the job id."""
        job = self.create_job(url)
        self._spawn(self.run_url(job.id, url, options))
        return job.id

    async def wait_for_all(self) -> None:
        """Wait for every running background job to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coroutine: Coroutine[object, object, ImportResult]) -> None:
        task = asyncio.create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
