"""Domain models for food import jobs."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from food_importer.domain.foods import ValidationIssue


class JobState(StrEnum):
    """Lifecycle states of an import job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ColumnMapping(StrEnum):
    """How spreadsheet columns are mapped onto food fields."""

    FIXED = "fixed"
    DETECT = "detect"


_TRANSITIONS: dict[JobState, set[JobState]] = {
    JobState.PENDING: {JobState.PROCESSING, JobState.FAILED},
    JobState.PROCESSING: {JobState.COMPLETED, JobState.FAILED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
}


class InvalidTransitionError(ValueError):
    """Raised when a job is moved to a state it cannot reach."""


@dataclass(frozen=True)
class RowError:
    """Errors attributed to a spreadsheet row (or the first row of a batch)."""

    row: int
    issues: list[ValidationIssue] | str

    def to_dict(self) -> dict[str, object]:
        """Serialize the error for API responses."""
        if isinstance(self.issues, str):
            return {"row": self.row, "issues": self.issues}
        return {
            "row": self.row,
            "issues": [
                {"field": issue.field, "message": issue.message}
                for issue in self.issues
            ],
        }


@dataclass(frozen=True)
class ImportOptions:
    """Options controlling a single import run."""

    batch_size: int = 100
    dry_run: bool = False
    column_mapping: ColumnMapping = ColumnMapping.FIXED
    sheet_name: str | None = None
    brand: str | None = None


@dataclass
class ImportResult:
    """Summary of an import run, returned on success and failure alike."""

    success: bool = False
    valid_count: int = 0
    inserted_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    duration_seconds: float = 0.0
    error_details: list[RowError] = field(default_factory=list)
    error_message: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the result for API responses and CLI output."""
        payload: dict[str, object] = {
            "success": self.success,
            "valid_count": self.valid_count,
            "inserted_count": self.inserted_count,
            "skipped_count": self.skipped_count,
            "error_count": self.error_count,
            "duration_seconds": self.duration_seconds,
            "error_details": [error.to_dict() for error in self.error_details],
        }
        if self.error_message is not None:
            payload["error_message"] = self.error_message
        return payload


@dataclass
class ImportJobStatus:
    """Mutable status of a tracked import job."""

    id: str
    status: JobState = JobState.PENDING
    progress: int = 0
    source: str | None = None
    result: ImportResult = field(default_factory=ImportResult)
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    finished_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        """Return whether the job has reached a final state."""
        return self.status in {JobState.COMPLETED, JobState.FAILED}

    def transition(self, target: JobState) -> None:
        """Move the job to a new state, rejecting illegal transitions."""
        if target not in _TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot move job {self.id} from {self.status} to {target}"
            )
        self.status = target
        self.touch()
        if self.is_terminal:
            self.finished_at = self.updated_at

    def set_progress(self, progress: int) -> None:
        """Raise progress, ignoring values that would move it backwards."""
        bounded = max(0, min(100, int(progress)))
        if bounded > self.progress:
            self.progress = bounded
            self.touch()

    def touch(self) -> None:
        """Refresh the update timestamp."""
        self.updated_at = datetime.now(tz=UTC)

    def to_dict(self) -> dict[str, object]:
        """Serialize the job for polling clients."""
        return {
            "id": self.id,
            "status": self.status.value,
            "progress": self.progress,
            "source": self.source,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            **self.result.to_dict(),
        }
