"""Storage for import job status."""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from food_importer.domain.imports import ImportJobStatus


class JobNotFoundError(KeyError):
    """Raised when updating a job id that is not in the store."""


class ImportJobStore(Protocol):
    """Store interface for tracked import jobs."""

    def create(self, job: ImportJobStatus) -> ImportJobStatus:
        """Register a new job and return it."""

    def get(self, job_id: str) -> ImportJobStatus | None:
        """Return a job by id, if present."""

    def update(
        self, job_id: str, mutate: Callable[[ImportJobStatus], None]
    ) -> ImportJobStatus:
        """Apply ``mutate`` to a stored job and return the updated job."""


@dataclass
class InMemoryImportJobStore(ImportJobStore):
    """Process-local job store for single-instance deployments.

    Finished jobs are dropped lazily once they are older than the TTL;
    running jobs are never evicted.
    """

    ttl_seconds: int
    _jobs: dict[str, ImportJobStatus]
    _lock: threading.Lock

    def __init__(self, ttl_seconds: int = 86400) -> None:
        self.ttl_seconds = ttl_seconds
        self._jobs = {}
        self._lock = threading.Lock()

    def create(self, job: ImportJobStatus) -> ImportJobStatus:
        """Register a new job."""
        with self._lock:
            self._prune()
            if job.id in self._jobs:
                raise ValueError(f"Import job {job.id} already exists")
            self._jobs[job.id] = job
            return job

    def get(self, job_id: str) -> ImportJobStatus | None:
        """Return a job by id if it has not expired."""
        with self._lock:
            self._prune()
            return self._jobs.get(job_id)

    def update(
        self, job_id: str, mutate: Callable[[ImportJobStatus], None]
    ) -> ImportJobStatus:
        """Mutate a stored job in place."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            mutate(job)
            return job

    def _prune(self) -> None:
        cutoff = datetime.now(tz=UTC) - timedelta(seconds=self.ttl_seconds)
        expired = [
            job_id
            for job_id, job in self._jobs.items()
            if job.finished_at is not None and job.finished_at < cutoff
        ]
        for job_id in expired:
            self._jobs.pop(job_id, None)
