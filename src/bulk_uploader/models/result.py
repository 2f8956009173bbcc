"""Outcome of a single upload task."""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum

from bulk_uploader.models.api_error import ApiError
from bulk_uploader.models.task import UploadTask


class UploadStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    SKIPPED_MISSING_FILE = "SKIPPED_MISSING_FILE"
    SKIPPED_VALIDATION_ERROR = "SKIPPED_VALIDATION_ERROR"
    SKIPPED_ABORT = "SKIPPED_ABORT"
    ERROR = "ERROR"


SKIPPED_STATUSES = frozenset(
    {
        UploadStatus.SKIPPED_MISSING_FILE,
        UploadStatus.SKIPPED_VALIDATION_ERROR,
        UploadStatus.SKIPPED_ABORT,
    }
)


class FailureKind(str, Enum):
    """Classification of why the last upload attempt failed."""

    HTTP_ERROR = "http-error"
    CONNECTION_ERROR = "connection-error"
    TIMEOUT = "timeout-error"
    UNEXPECTED = "unexpected-error"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UploadResult:
    """Result of attempting one task (possibly over several attempts)."""

    task: UploadTask
    status: UploadStatus
    started_at: datetime
    finished_at: datetime | None = None
    http_status: int | None = None
    response_body: str | None = None
    api_error: ApiError | None = None
    attempt_count: int = 0
    last_error_message: str | None = None
    failure_kind: FailureKind | None = None

    @property
    def is_success(self) -> bool:
        return self.status == UploadStatus.SUCCESS

    @property
    def is_skipped(self) -> bool:
        return self.status in SKIPPED_STATUSES

    @property
    def duration_ms(self) -> int:
        if self.finished_at is None:
            return 0
        return int((self.finished_at - self.started_at).total_seconds() * 1000)

    def completed(self) -> "UploadResult":
        """Copy of this result stamped with a finish time."""
        return replace(self, finished_at=utcnow())

    def with_attempts(self, attempt_count: int) -> "UploadResult":
        return replace(self, attempt_count=attempt_count)

    # Factories for results that never reach the transport

    @classmethod
    def failure(
        cls,
        task: UploadTask,
        message: str,
        failure_kind: FailureKind | None = None,
    ) -> "UploadResult":
        now = utcnow()
        return cls(
            task=task,
            status=UploadStatus.FAILED,
            started_at=now,
            finished_at=now,
            last_error_message=message,
            failure_kind=failure_kind,
        )

    @classmethod
    def skipped_validation(cls, task: UploadTask, reason: str) -> "UploadResult":
        now = utcnow()
        return cls(
            task=task,
            status=UploadStatus.SKIPPED_VALIDATION_ERROR,
            started_at=now,
            finished_at=now,
            last_error_message=reason,
        )

    @classmethod
    def skipped_abort(cls, task: UploadTask) -> "UploadResult":
        now = utcnow()
        return cls(task=task, status=UploadStatus.SKIPPED_ABORT, started_at=now, finished_at=now)
